"""Shared fakes for the turn protocol tests."""

from datetime import datetime, timezone
from typing import Optional, Sequence

import pytest

from scheduler.core.conversation.models import History, Turn
from scheduler.core.conversation.time_context import TimeContextBuilder
from scheduler.errors import InferenceUnavailable, UpstreamUnavailable

FIXED_NOW = datetime(2026, 10, 18, 18, 5, 3, tzinfo=timezone.utc)


class InMemoryHistoryStore:
    """History store double that records every call."""

    def __init__(self, fail_get: bool = False, fail_put: bool = False):
        self.data: dict[str, History] = {}
        self.fail_get = fail_get
        self.fail_put = fail_put
        self.get_calls: list[str] = []
        self.put_calls: list[str] = []

    async def get(self, session_id: str) -> History:
        self.get_calls.append(session_id)
        if self.fail_get:
            raise UpstreamUnavailable("store down")
        return list(self.data.get(session_id, []))

    async def put(self, session_id: str, history: History) -> None:
        self.put_calls.append(session_id)
        if self.fail_put:
            raise UpstreamUnavailable("store down")
        self.data[session_id] = list(history)


class StubGateway:
    """Gateway double returning a canned reply or failing."""

    def __init__(self, reply: str = "Sure, let me check.", fail: bool = False):
        self.reply = reply
        self.fail = fail
        self.calls: list[list[Turn]] = []

    async def complete(self, messages: Sequence[Turn], params: Optional[object] = None) -> str:
        self.calls.append(list(messages))
        if self.fail:
            raise InferenceUnavailable("all providers failed")
        return self.reply


@pytest.fixture
def store():
    """Empty in-memory history store."""
    return InMemoryHistoryStore()


@pytest.fixture
def gateway():
    """Gateway that always answers."""
    return StubGateway()


@pytest.fixture
def fixed_time_builder():
    """TimeContextBuilder pinned to FIXED_NOW."""
    return TimeContextBuilder(clock=lambda: FIXED_NOW)
