"""Core components package.

Contains fundamental building blocks used across the application.
"""

from .events import (
    # Base
    Event,
    EventBus,
    EventHandler,
    # Loop events
    LoopStartedEvent,
    LoopCompletedEvent,
    IterationStartedEvent,
    IterationCompletedEvent,
    # State events
    StateChangedEvent,
    # LLM events
    LLMRequestEvent,
    LLMResponseEvent,
    # Tool events
    ToolExecutionStartedEvent,
    ToolExecutionCompletedEvent,
)
from .event_logger import EventLogger
from .tracer import AgentTracer, IterationSpan, ToolSpan, TraceSession

__all__ = [
    # Base
    "Event",
    "EventBus",
    "EventHandler",
    # Loop events
    "LoopStartedEvent",
    "LoopCompletedEvent",
    "IterationStartedEvent",
    "IterationCompletedEvent",
    # State events
    "StateChangedEvent",
    # LLM events
    "LLMRequestEvent",
    "LLMResponseEvent",
    # Tool events
    "ToolExecutionStartedEvent",
    "ToolExecutionCompletedEvent",
    # Logger
    "EventLogger",
    # Tracing
    "AgentTracer",
    "TraceSession",
    "IterationSpan",
    "ToolSpan",
]
