"""
Conversation module: the per-session chat turn protocol.

The TurnProcessor lives in scheduler.core.conversation.processor; it is not
re-exported here because it depends on the infra layer, which in turn
imports these models.
"""

from .models import History, Role, TimeContext, Turn, TurnResult
from .prompt import PromptComposer, build_system_prompt
from .time_context import TimeContextBuilder

__all__ = [
    # Models
    "History",
    "Role",
    "TimeContext",
    "Turn",
    "TurnResult",
    # Builders
    "PromptComposer",
    "TimeContextBuilder",
    "build_system_prompt",
]
