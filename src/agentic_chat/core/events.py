"""Event system for loose coupling between components.

This module provides a simple synchronous event bus that the agent loop
publishes lifecycle events to. Subscribers (such as EventLogger) only
observe; they never influence the run.
"""

from abc import ABC
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, TypeVar

from rich.console import Console

_console = Console(stderr=True)

# Type aliases
EventHandler = Callable[["Event"], None]
T = TypeVar("T", bound="Event")


# =============================================================================
# Base Event Class
# =============================================================================


@dataclass
class Event(ABC):
    """Base class for all events.

    All events should inherit from this class and define their
    specific attributes as dataclass fields.
    """

    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def event_type(self) -> str:
        """Return the event type name (class name)."""
        return self.__class__.__name__


# =============================================================================
# Loop Events
# =============================================================================


@dataclass
class LoopStartedEvent(Event):
    """Emitted when the agent loop starts."""

    session_id: str = ""
    user_message: str = ""
    tools_enabled: bool = False


@dataclass
class LoopCompletedEvent(Event):
    """Emitted when the agent loop reaches a terminal state."""

    session_id: str = ""
    termination_reason: str = ""
    total_iterations: int = 0
    duration_ms: float = 0.0


@dataclass
class IterationStartedEvent(Event):
    """Emitted when a new iteration starts."""

    iteration: int = 0
    max_iterations: int = 0


@dataclass
class IterationCompletedEvent(Event):
    """Emitted when an iteration's tool phase completes."""

    iteration: int = 0
    tool_calls_count: int = 0


# =============================================================================
# State Events
# =============================================================================


@dataclass
class StateChangedEvent(Event):
    """Emitted when the loop state changes."""

    old_state: str = ""
    new_state: str = ""


# =============================================================================
# LLM Events
# =============================================================================


@dataclass
class LLMRequestEvent(Event):
    """Emitted before a streaming model call."""

    message_count: int = 0
    has_tools: bool = False


@dataclass
class LLMResponseEvent(Event):
    """Emitted after a streaming model call returns."""

    tool_call_count: int = 0
    text_length: int = 0
    duration_ms: float = 0.0


# =============================================================================
# Tool Events
# =============================================================================


@dataclass
class ToolExecutionStartedEvent(Event):
    """Emitted before a tool is executed."""

    tool_call_id: str = ""
    tool_name: str = ""
    tool_input: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolExecutionCompletedEvent(Event):
    """Emitted after a tool execution completes."""

    tool_call_id: str = ""
    tool_name: str = ""
    success: bool = True
    duration_ms: float = 0.0
    output_preview: str = ""  # First 200 characters


# =============================================================================
# EventBus
# =============================================================================


class EventBus:
    """Synchronous publish/subscribe hub.

    Handlers subscribed to a class also receive events of its subclasses, so
    subscribing to ``Event`` itself observes everything. Delivery goes from
    the most specific class to ``Event``, in subscription order within each
    class. A failing handler is reported on stderr and skipped.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[Event], list[EventHandler]] = defaultdict(list)

    def subscribe(
        self,
        event_type: type[T],
        handler: Callable[[T], None],
    ) -> Callable[[], None]:
        """Register ``handler`` for ``event_type`` and its subclasses.

        Returns:
            Unsubscribe function (safe to call more than once)
        """
        handlers = self._handlers[event_type]
        handlers.append(handler)  # type: ignore[arg-type]

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)  # type: ignore[arg-type]

        return unsubscribe

    def subscribe_all(self, handler: EventHandler) -> Callable[[], None]:
        """Register ``handler`` for every event."""
        return self.subscribe(Event, handler)

    def publish(self, event: Event) -> None:
        """Deliver ``event`` to every matching handler."""
        for event_class in type(event).__mro__:
            if event_class not in self._handlers:
                continue
            # Copy: handlers may unsubscribe while being called
            for handler in list(self._handlers[event_class]):
                try:
                    handler(event)
                except Exception as e:
                    _console.print(
                        f"[yellow][EventBus][/yellow] Handler error for {event.event_type}: {e}"
                    )

    def clear(self) -> None:
        """Remove all subscriptions."""
        self._handlers.clear()
