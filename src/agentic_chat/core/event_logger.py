"""Console logger for agent loop events.

Renders lifecycle events published on an EventBus as dim debug lines.
Used by the CLI in --debug mode.
"""

from typing import Callable

from rich.console import Console

from .events import (
    Event,
    EventBus,
    IterationCompletedEvent,
    IterationStartedEvent,
    LLMResponseEvent,
    LoopCompletedEvent,
    LoopStartedEvent,
    StateChangedEvent,
    ToolExecutionCompletedEvent,
    ToolExecutionStartedEvent,
)

_RULE = "=" * 60
_THIN_RULE = "─" * 60


def _preview(text: str, limit: int = 80) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def _loop_started(e: LoopStartedEvent) -> list[str]:
    return [_RULE, f"[LOOP START] {e.session_id}: {_preview(e.user_message)}"]


def _loop_completed(e: LoopCompletedEvent) -> list[str]:
    return [
        f"[LOOP END] {e.termination_reason}",
        f"  Duration: {e.duration_ms:.0f}ms | Iterations: {e.total_iterations}",
        _RULE,
    ]


def _iteration_started(e: IterationStartedEvent) -> list[str]:
    return [_THIN_RULE, f"[ITERATION {e.iteration}/{e.max_iterations}]"]


def _iteration_completed(e: IterationCompletedEvent) -> list[str]:
    if not e.tool_calls_count:
        return []
    return [f"  Iteration {e.iteration} completed: {e.tool_calls_count} tool(s)"]


def _tool_started(e: ToolExecutionStartedEvent) -> list[str]:
    return [f"  ▶ {e.tool_name}"]


def _tool_completed(e: ToolExecutionCompletedEvent) -> list[str]:
    status = "✓" if e.success else "✗"
    return [f"  {status} {e.tool_name} ({e.duration_ms:.0f}ms)"]


def _llm_response(e: LLMResponseEvent) -> list[str]:
    return [
        f"  LLM: {e.text_length} chars, {e.tool_call_count} tool call(s) "
        f"({e.duration_ms:.0f}ms)"
    ]


# Event type -> lines to print
_FORMATTERS: dict[type[Event], Callable[..., list[str]]] = {
    LoopStartedEvent: _loop_started,
    LoopCompletedEvent: _loop_completed,
    IterationStartedEvent: _iteration_started,
    IterationCompletedEvent: _iteration_completed,
    ToolExecutionStartedEvent: _tool_started,
    ToolExecutionCompletedEvent: _tool_completed,
    LLMResponseEvent: _llm_response,
}


class EventLogger:
    """Prints loop events to a console.

    Normal mode shows the formatted key events. Verbose mode also shows state
    transitions and the names of every other event.
    """

    def __init__(
        self,
        console: Console | None = None,
        verbose: bool = False,
    ) -> None:
        """
        Args:
            console: Rich console for output (stderr by default)
            verbose: Also log state changes and unformatted events
        """
        self.console = console or Console(stderr=True)
        self.verbose = verbose
        self._unsubscribe: Callable[[], None] | None = None

    def attach(self, bus: EventBus) -> None:
        """Start logging events published on ``bus``."""
        self.detach()
        self._unsubscribe = bus.subscribe_all(self.handle)

    def detach(self) -> None:
        """Stop logging."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def handle(self, event: Event) -> None:
        formatter = _FORMATTERS.get(type(event))
        if formatter is not None:
            lines = formatter(event)
        elif not self.verbose:
            return
        elif isinstance(event, StateChangedEvent):
            lines = [f"[STATE] {event.old_state} → {event.new_state}"]
        else:
            lines = [f"  [EVENT] {event.event_type}"]

        for line in lines:
            self.console.print(f"[dim]{line}[/dim]")
