"""
Claude API Provider

Anthropic-backed inference provider. Anthropic takes system instructions
as a separate parameter, so system turns are lifted out of the message list.
"""

import logging
from typing import Any, Optional, Sequence

from anthropic import AsyncAnthropic, APIError

from scheduler.core.conversation.models import Role, Turn
from scheduler.errors import MalformedProviderResponse, ProviderError
from scheduler.infra.inference import ModelParams

logger = logging.getLogger(__name__)


class AnthropicProvider:
    """
    Async Claude API provider.

    SDK-level retries are disabled: the gateway moves on to the next
    provider instead of retrying.
    """

    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 30.0,
        client: Optional[AsyncAnthropic] = None,
    ):
        """Initialize provider.

        Args:
            api_key: Anthropic API key
            model: Claude model identifier
            timeout: Request timeout in seconds
            client: Preconfigured SDK client (tests)
        """
        if not api_key and client is None:
            raise ValueError("Anthropic API key is required")

        self.model = model
        self._client = client or AsyncAnthropic(
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
        )

        logger.info(f"AnthropicProvider initialized with model={self.model}")

    @staticmethod
    def split_system(messages: Sequence[Turn]) -> tuple[Optional[str], list[dict]]:
        """Separate system text from the conversational turns."""
        system_parts = [t.content for t in messages if t.role == Role.SYSTEM]
        conversation = [t.to_dict() for t in messages if t.role != Role.SYSTEM]
        system = "\n\n".join(system_parts) if system_parts else None
        return system, conversation

    async def complete(self, messages: Sequence[Turn], params: ModelParams) -> str:
        system, conversation = self.split_system(messages)

        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": params.max_tokens,
            "temperature": params.temperature,
            "messages": conversation,
        }
        if system:
            kwargs["system"] = system

        try:
            response = await self._client.messages.create(**kwargs)
        except APIError as e:
            raise ProviderError(self.name, str(e)) from e

        text = "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )
        if not text:
            raise MalformedProviderResponse("No text blocks in Claude response")

        return text

    async def close(self) -> None:
        """Close the client."""
        await self._client.close()
