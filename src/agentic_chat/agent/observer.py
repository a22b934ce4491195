"""Progress callbacks reported by the agent loop.

The observer has visibility only: callbacks return nothing and cannot steer
the loop. Every field has a no-op default so callers can supply only the
callbacks they care about.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from agentic_chat.tools import ToolExecutionOutcome

    from .message import ToolCallRequest


def _noop(*_args: object) -> None:
    return None


@dataclass
class AgentObserver:
    """Seven progress callbacks, invoked in loop order.

    Attributes:
        on_token: (token, full_response) for every streamed delta
        on_tool_call_started: (tool_call) before a tool is dispatched
        on_tool_call_completed: (tool_call, outcome) after it returns
        on_message_update: (content) when the accumulated text is rewritten
        on_complete: (content) exactly once on success or iteration cap
        on_error: (error) exactly once on failure
        on_iteration_started: (iteration) at the start of each reasoning turn
    """

    on_token: Callable[[str, str], None] = _noop
    on_tool_call_started: Callable[[ToolCallRequest], None] = _noop
    on_tool_call_completed: Callable[[ToolCallRequest, ToolExecutionOutcome], None] = _noop
    on_message_update: Callable[[str], None] = _noop
    on_complete: Callable[[str], None] = _noop
    on_error: Callable[[BaseException], None] = _noop
    on_iteration_started: Callable[[int], None] = _noop
