"""
Redis Connection Management

Shared Redis connection and the chat history store built on it.
Unlike a cache, the history store does not degrade silently: a missing key
is an empty history, but an unreachable Redis fails the request.
"""

import logging
from datetime import timedelta
from typing import Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import ConnectionError, TimeoutError, RedisError

from scheduler.config import settings
from scheduler.core.conversation.models import History, history_from_json, history_to_json
from scheduler.errors import UpstreamUnavailable

# Logger
logger = logging.getLogger(__name__)


class RedisClient:
    """
    Manages Redis connection as a singleton.

    Features:
    - Connection pooling
    - Timeouts
    - Connection is retried on the next request after a failure
    """

    _client: Optional[Redis] = None
    _connected: bool = False

    @classmethod
    async def get_client(cls) -> Optional[Redis]:
        """
        Get or create Redis client.

        Returns:
            Redis client or None if connection fails
        """
        if cls._client is not None and cls._connected:
            return cls._client

        try:
            cls._client = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5.0,
                socket_timeout=5.0,
            )

            # Test connection
            await cls._client.ping()
            cls._connected = True
            logger.info("Redis connection established successfully")
            return cls._client

        except (ConnectionError, TimeoutError, RedisError) as e:
            logger.error(f"Failed to connect to Redis: {e}")
            cls._connected = False
            cls._client = None
            return None

    @classmethod
    async def close(cls) -> None:
        """Close Redis connection."""
        if cls._client is not None:
            try:
                await cls._client.aclose()
                logger.info("Redis connection closed")
            except RedisError as e:
                logger.error(f"Error closing Redis connection: {e}")
            finally:
                cls._client = None
                cls._connected = False

    @classmethod
    def is_connected(cls) -> bool:
        """Check if Redis is connected."""
        return cls._connected


async def get_redis() -> Optional[Redis]:
    """Get the shared Redis client, or None when Redis is unreachable."""
    return await RedisClient.get_client()


class HistoryStore:
    """
    Redis-based chat history storage.

    Keys:
    - chat:{session_id} -> JSON array of {"role", "content"} (TTL 24h)

    Every put replaces the whole record; concurrent turns on one session
    are last-writer-wins.
    """

    def __init__(
        self,
        redis_client: Optional[Redis],
        ttl_seconds: Optional[int] = None,
        key_prefix: Optional[str] = None,
    ):
        self.redis = redis_client
        self.ttl = ttl_seconds if ttl_seconds is not None else settings.history_ttl_seconds
        self.key_prefix = key_prefix if key_prefix is not None else settings.history_key_prefix

    def _key(self, session_id: str) -> str:
        """Generate history key."""
        return f"{self.key_prefix}{session_id}"

    async def get(self, session_id: str) -> History:
        """
        Load a session's history.

        Args:
            session_id: Session identifier

        Returns:
            Stored turns, oldest first (empty if absent or expired)

        Raises:
            UpstreamUnavailable: If Redis is unreachable or the record is corrupt
        """
        if self.redis is None:
            logger.error("Redis unavailable - cannot load history")
            raise UpstreamUnavailable("Redis unavailable")

        try:
            raw = await self.redis.get(self._key(session_id))
        except RedisError as e:
            logger.error(f"Failed to load history for {session_id}: {e}")
            raise UpstreamUnavailable(str(e)) from e

        if raw is None:
            return []

        try:
            return history_from_json(raw)
        except ValueError as e:
            logger.error(f"Corrupt history record for {session_id}: {e}")
            raise UpstreamUnavailable(f"Corrupt history record: {e}") from e

    async def put(self, session_id: str, history: History) -> None:
        """
        Replace a session's history and reset its TTL.

        Args:
            session_id: Session identifier
            history: Full history to store

        Raises:
            UpstreamUnavailable: If Redis is unreachable or the write fails
        """
        if self.redis is None:
            logger.error("Redis unavailable - cannot save history")
            raise UpstreamUnavailable("Redis unavailable")

        try:
            await self.redis.setex(
                self._key(session_id),
                timedelta(seconds=self.ttl),
                history_to_json(history),
            )
        except RedisError as e:
            logger.error(f"Failed to save history for {session_id}: {e}")
            raise UpstreamUnavailable(str(e)) from e

        logger.debug(f"History saved: {session_id} ({len(history)} messages)")


async def get_history_store() -> HistoryStore:
    """
    Get HistoryStore instance.

    Returns a store even if Redis is unavailable; its operations then raise
    UpstreamUnavailable.
    """
    client = await get_redis()
    return HistoryStore(client)


async def check_redis_health() -> bool:
    """
    Check Redis connectivity for health checks.

    Returns:
        True if Redis is accessible and responding, False otherwise
    """
    try:
        client = await get_redis()
        if client is None:
            return False

        await client.ping()
        return True

    except RedisError as e:
        logger.error(f"Redis health check failed: {e}")
        return False
