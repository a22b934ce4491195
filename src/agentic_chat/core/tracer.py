"""Execution tracing for agent runs.

Records one session per run, one span per iteration and one span per tool
call. Recorder methods are fire-and-forget: calls with an unknown or already
finished session id are ignored.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Literal


@dataclass
class ToolSpan:
    """One tool dispatch."""

    tool_call_id: str
    tool_name: str
    arguments: dict[str, Any]
    start_time: float = field(default_factory=time.time)
    end_time: float | None = None
    success: bool | None = None
    error: str | None = None
    data_summary: str | None = None

    def duration_ms(self) -> float | None:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time) * 1000


@dataclass
class IterationSpan:
    """One reasoning turn: a model call plus the tools it requested."""

    iteration: int
    start_time: float = field(default_factory=time.time)
    end_time: float | None = None
    tool_spans: list[ToolSpan] = field(default_factory=list)

    def duration_ms(self) -> float | None:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time) * 1000


@dataclass
class TraceSession:
    """All spans recorded for one agent run."""

    session_id: str
    start_time: float = field(default_factory=time.time)
    end_time: float | None = None
    status: Literal["running", "success", "failure"] = "running"
    iterations: list[IterationSpan] = field(default_factory=list)

    @property
    def tool_spans(self) -> list[ToolSpan]:
        return [span for it in self.iterations for span in it.tool_spans]

    def duration_ms(self) -> float | None:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time) * 1000

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "session_id": self.session_id,
            "status": self.status,
            "duration_ms": self.duration_ms(),
            "iterations": [
                {
                    "iteration": it.iteration,
                    "duration_ms": it.duration_ms(),
                    "tools": [
                        {
                            "tool_call_id": span.tool_call_id,
                            "tool_name": span.tool_name,
                            "arguments": span.arguments,
                            "success": span.success,
                            "error": span.error,
                            "data_summary": span.data_summary,
                            "duration_ms": span.duration_ms(),
                        }
                        for span in it.tool_spans
                    ],
                }
                for it in self.iterations
            ],
        }


class AgentTracer:
    """In-memory tracer keyed by session id."""

    def __init__(self) -> None:
        self._sessions: dict[str, TraceSession] = {}

    def start_session(self, session_id: str) -> None:
        self._sessions[session_id] = TraceSession(session_id=session_id)

    def start_iteration(self, session_id: str, iteration: int) -> None:
        session = self._sessions.get(session_id)
        if session is not None:
            session.iterations.append(IterationSpan(iteration=iteration))

    def end_iteration(self, session_id: str) -> None:
        current = self._current_iteration(session_id)
        if current is not None and current.end_time is None:
            current.end_time = time.time()

    def start_tool_span(
        self,
        session_id: str,
        tool_call_id: str,
        tool_name: str,
        arguments: dict[str, Any],
    ) -> None:
        current = self._current_iteration(session_id)
        if current is not None:
            current.tool_spans.append(ToolSpan(
                tool_call_id=tool_call_id,
                tool_name=tool_name,
                arguments=arguments,
            ))

    def end_tool_span(
        self,
        session_id: str,
        tool_call_id: str,
        success: bool,
        error: str | None = None,
        data_summary: str | None = None,
    ) -> None:
        current = self._current_iteration(session_id)
        if current is None:
            return
        for span in reversed(current.tool_spans):
            if span.tool_call_id == tool_call_id and span.end_time is None:
                span.end_time = time.time()
                span.success = success
                span.error = error
                span.data_summary = data_summary
                return

    def end_session(self, session_id: str, success: bool) -> TraceSession | None:
        """Finish a session exactly once; later calls return None."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return None
        session.end_time = time.time()
        session.status = "success" if success else "failure"
        return session

    def get_session(self, session_id: str) -> TraceSession | None:
        """Return a still-running session."""
        return self._sessions.get(session_id)

    def get_execution_summary(self, trace: TraceSession) -> str:
        """Human-readable one-line summary of a finished trace."""
        tools = trace.tool_spans
        failed = sum(1 for span in tools if span.success is False)
        duration = trace.duration_ms() or 0.0
        return (
            f"{len(trace.iterations)} iteration(s), "
            f"{len(tools)} tool call(s) ({failed} failed), "
            f"{duration:.0f}ms, {trace.status}"
        )

    def _current_iteration(self, session_id: str) -> IterationSpan | None:
        session = self._sessions.get(session_id)
        if session is None or not session.iterations:
            return None
        return session.iterations[-1]
