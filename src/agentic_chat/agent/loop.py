"""Agent loop - Main agent execution loop."""

from __future__ import annotations

import asyncio
import itertools
import json
import time
from dataclasses import replace
from typing import Any, Callable, Sequence, TYPE_CHECKING

from rich.console import Console

from agentic_chat.config import Config
from agentic_chat.core import (
    AgentTracer,
    Event,
    EventBus,
    IterationCompletedEvent,
    IterationStartedEvent,
    LLMRequestEvent,
    LLMResponseEvent,
    LoopCompletedEvent,
    LoopStartedEvent,
    StateChangedEvent,
    ToolExecutionCompletedEvent,
    ToolExecutionStartedEvent,
)
from agentic_chat.provider.base import BaseProvider, StreamCallbacks
from agentic_chat.tools import ToolExecutionOutcome

from .cancellation import CancellationToken, RequestCancelledError
from .executor import ToolExecutor, format_tool_result
from .history import build_messages
from .message import AssistantMessage, ToolCallRequest, ToolMessage
from .observer import AgentObserver
from .options import AgentConfig, AgenticChatOptions
from .states import LoopContext, LoopState, TerminationReason

if TYPE_CHECKING:
    from .session import ChatTurn

# Debug console (shared instance)
_debug_console = Console(stderr=True)

MAX_ITERATIONS_NOTICE = (
    "\n\n*[Agent stopped - reached maximum tool call iterations ({max_iterations})]*"
)

SELF_CORRECTION_GUIDANCE = (
    'The tool "{tool_name}" failed. '
    "Please analyze the error message above and either: "
    "(1) retry with corrected arguments, "
    "(2) try a different approach, or "
    "(3) inform the user if the operation is not possible."
)

_session_counter = itertools.count(1)


def new_session_id() -> str:
    """Time-based trace session id, unique within the process."""
    return f"agent_{int(time.time() * 1000)}_{next(_session_counter)}"


def parse_trace_arguments(arguments: str) -> dict[str, Any]:
    """Best-effort decode of tool arguments for tracing; never raises."""
    try:
        parsed = json.loads(arguments or "{}")
    except (json.JSONDecodeError, TypeError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


def tool_message_content(call: ToolCallRequest, outcome: ToolExecutionOutcome) -> str:
    """Content of the tool message fed back to the model for one outcome.

    Failures carry guidance so the next iteration can correct the call
    instead of repeating it.
    """
    if outcome.success:
        return format_tool_result(outcome)
    return json.dumps({
        "success": False,
        "error": outcome.error or "Unknown error",
        "guidance": SELF_CORRECTION_GUIDANCE.format(tool_name=call.name),
    })


class AgentLoop:
    """Drives model ⇄ tool iterations for one user turn at a time."""

    def __init__(
        self,
        config: Config | None = None,
        provider: BaseProvider | None = None,
        executor: ToolExecutor | None = None,
        tracer: AgentTracer | None = None,
        event_bus: EventBus | None = None,
        cancellation: CancellationToken | None = None,
    ) -> None:
        # Config setup (create default if not provided)
        self.config = config or Config()

        # Event bus (optional)
        self.event_bus = event_bus

        # Provider setup
        if provider is None:
            from agentic_chat.provider import get_provider

            provider = get_provider(self.config.get("provider", "claude"), self.config)
        self.provider = provider

        self.executor = executor or ToolExecutor()
        self.tracer = tracer or AgentTracer()
        self.cancellation = cancellation or CancellationToken()
        self.debug: bool = self.config.get("debug", False)

        # State management
        self.context = LoopContext()
        self._state_change_callbacks: list[Callable[[LoopState, LoopState], None]] = []

    # Debug formatting
    _SEP = "=" * 60

    def _debug_log(self, message: str) -> None:
        """Print debug message in dim style if debug mode is enabled."""
        if self.debug:
            _debug_console.print(f"[dim]{message}[/dim]")

    def _debug_box(self, title: str, messages: list[str] | None = None) -> None:
        """Print a formatted debug box."""
        lines = [f"\n{self._SEP}", title, self._SEP]
        if messages:
            lines.extend(f"[ERROR] {m}" for m in messages)
        lines.append(f"{self._SEP}\n")
        self._debug_log("\n".join(lines))

    def _emit(self, event: Event) -> None:
        """Emit an event to the event bus if available."""
        if self.event_bus:
            self.event_bus.publish(event)

    # --- State management ---

    def _set_state(self, new_state: LoopState) -> None:
        """Change state and invoke callbacks."""
        old_state = self.context.state
        self.context.record_state(new_state)

        self._emit(StateChangedEvent(
            old_state=old_state.name,
            new_state=new_state.name,
        ))

        for callback in self._state_change_callbacks:
            try:
                callback(old_state, new_state)
            except Exception as e:
                self._debug_log(f"[STATE] Callback error: {e}")

    def on_state_change(
        self, callback: Callable[[LoopState, LoopState], None]
    ) -> None:
        """Register state change callback.

        Args:
            callback: Callback function that receives (old_state, new_state)
        """
        self._state_change_callbacks.append(callback)

    def cancel(self) -> None:
        """Request cancellation of the current run."""
        self.cancellation.cancel()

    # --- Run ---

    async def run(
        self,
        text: str,
        system_prompt: str,
        history: Sequence[ChatTurn] = (),
        options: AgenticChatOptions | None = None,
        observer: AgentObserver | None = None,
    ) -> None:
        """Run the agent loop for one user turn.

        Results are delivered only through ``observer``: on_complete with the
        final text on success or iteration cap, on_error before any raised
        exception.

        Raises:
            RequestCancelledError: The cancellation token was set.
            Exception: Model-stream failures, unchanged.

        Note:
            After run() returns, self.context holds the run statistics
            (termination_reason, iteration, total_llm_calls, total_tool_calls,
            duration_ms()).
        """
        options = options or AgenticChatOptions()
        observer = observer or AgentObserver()

        agent_config = replace(
            AgentConfig.from_config(self.config),
            permission_handler=options.permission_handler,
        )
        max_iterations = agent_config.max_agent_iterations

        ctx = self.context
        ctx.reset()
        ctx.max_iterations = max_iterations
        ctx.start_time = time.time()

        self._set_state(LoopState.BUILDING_PROMPT)
        tools = (self.executor.get_tool_definitions() or None) if options.enable_tools else None
        images = options.pasted_images if options.include_images else None
        ctx.messages = build_messages(system_prompt, history, text, images)

        session_id = new_session_id()
        self.tracer.start_session(session_id)
        self._emit(LoopStartedEvent(
            session_id=session_id,
            user_message=text[:100],
            tools_enabled=tools is not None,
        ))

        open_tool_span: str | None = None
        iteration_open = False
        completed = False

        try:
            while ctx.iteration < max_iterations:
                # Cancellation may have happened while the previous batch ran
                self.cancellation.raise_if_cancelled()

                ctx.iteration += 1
                self.tracer.start_iteration(session_id, ctx.iteration)
                iteration_open = True
                self._emit(IterationStartedEvent(
                    iteration=ctx.iteration,
                    max_iterations=max_iterations,
                ))
                observer.on_iteration_started(ctx.iteration)

                iteration_text, tool_calls = await self._call_model(tools, observer)

                if not tool_calls:
                    self.tracer.end_iteration(session_id)
                    iteration_open = False
                    completed = True
                    break

                # Tool phase: strictly sequential so permission prompts never overlap
                self._set_state(LoopState.EXECUTING_TOOLS)
                ctx.messages.append(AssistantMessage(
                    content=iteration_text or None,
                    tool_calls=list(tool_calls),
                ))

                results: list[tuple[ToolCallRequest, ToolExecutionOutcome]] = []
                for call in tool_calls:
                    observer.on_tool_call_started(call)

                    tool_input = parse_trace_arguments(call.arguments)
                    self.tracer.start_tool_span(session_id, call.id, call.name, tool_input)
                    open_tool_span = call.id
                    self._emit(ToolExecutionStartedEvent(
                        tool_call_id=call.id,
                        tool_name=call.name,
                        tool_input=tool_input,
                    ))

                    tool_start_time = time.time()
                    outcome = await self.executor.execute(call, agent_config)
                    tool_duration_ms = (time.time() - tool_start_time) * 1000
                    ctx.total_tool_calls += 1

                    self.tracer.end_tool_span(
                        session_id,
                        call.id,
                        success=outcome.success,
                        error=outcome.error,
                        data_summary=outcome.summary,
                    )
                    open_tool_span = None
                    self._emit(ToolExecutionCompletedEvent(
                        tool_call_id=call.id,
                        tool_name=call.name,
                        success=outcome.success,
                        duration_ms=tool_duration_ms,
                        output_preview=(outcome.summary or outcome.error or "")[:200],
                    ))
                    observer.on_tool_call_completed(call, outcome)

                    results.append((call, outcome))

                    self.cancellation.raise_if_cancelled()

                # Result feedback, in batch order
                for call, outcome in results:
                    if not outcome.success:
                        self._debug_log(
                            f"[TOOL] {call.name} failed, providing self-correction guidance"
                        )
                    ctx.messages.append(ToolMessage(
                        tool_call_id=call.id,
                        content=tool_message_content(call, outcome),
                        is_error=not outcome.success,
                    ))

                self.tracer.end_iteration(session_id)
                iteration_open = False
                self._emit(IterationCompletedEvent(
                    iteration=ctx.iteration,
                    tool_calls_count=len(tool_calls),
                ))

        except (Exception, asyncio.CancelledError) as e:
            self._fail(session_id, e, open_tool_span, iteration_open, observer)
            raise

        if completed:
            ctx.termination_reason = TerminationReason.END_TURN
            self._set_state(LoopState.COMPLETED)
        else:
            self._debug_log(f"[LOOP] Reached max iterations ({max_iterations})")
            ctx.full_response += MAX_ITERATIONS_NOTICE.format(max_iterations=max_iterations)
            observer.on_message_update(ctx.full_response)
            ctx.termination_reason = TerminationReason.MAX_ITERATIONS
            self._set_state(LoopState.MAX_ITERATIONS)

        trace = self.tracer.end_session(session_id, True)
        if trace is not None:
            self._debug_log(f"[TRACE] Summary: {self.tracer.get_execution_summary(trace)}")

        self._finish(session_id)
        observer.on_complete(ctx.full_response)

    async def _call_model(
        self,
        tools: list[dict[str, Any]] | None,
        observer: AgentObserver,
    ) -> tuple[str, list[ToolCallRequest]]:
        """Stream one model turn; return its text and tool-call batch."""
        ctx = self.context
        self._set_state(LoopState.STREAMING_MODEL)

        iteration_text = ""
        tool_calls: list[ToolCallRequest] = []
        stream_error: BaseException | None = None

        def on_token(token: str) -> None:
            nonlocal iteration_text
            iteration_text += token
            ctx.full_response += token
            observer.on_token(token, ctx.full_response)

        def on_tool_calls(calls: list[ToolCallRequest]) -> None:
            nonlocal tool_calls
            # One batch per iteration; a later notification replaces it
            self._debug_log(f"[LLM] Received {len(calls)} tool call(s)")
            tool_calls = list(calls)

        def on_complete(content: str) -> None:
            self._debug_log(
                f"[LLM] Iteration {ctx.iteration} complete, content length: {len(content)}"
            )

        def on_error(error: BaseException) -> None:
            nonlocal stream_error
            stream_error = error

        self._emit(LLMRequestEvent(
            message_count=len(ctx.messages),
            has_tools=tools is not None,
        ))

        llm_start_time = time.time()
        await self.provider.stream_chat(
            list(ctx.messages),
            StreamCallbacks(
                on_token=on_token,
                on_tool_calls=on_tool_calls,
                on_complete=on_complete,
                on_error=on_error,
            ),
            tools=tools,
            cancellation=self.cancellation,
        )
        ctx.total_llm_calls += 1

        if stream_error is not None:
            raise stream_error

        self._emit(LLMResponseEvent(
            tool_call_count=len(tool_calls),
            text_length=len(iteration_text),
            duration_ms=(time.time() - llm_start_time) * 1000,
        ))
        return iteration_text, tool_calls

    def _fail(
        self,
        session_id: str,
        error: BaseException,
        open_tool_span: str | None,
        iteration_open: bool,
        observer: AgentObserver,
    ) -> None:
        """Close open spans and the trace session, then report the error."""
        ctx = self.context

        if open_tool_span is not None:
            self.tracer.end_tool_span(
                session_id,
                open_tool_span,
                success=False,
                error=str(error) or type(error).__name__,
            )
        if iteration_open:
            self.tracer.end_iteration(session_id)
        self.tracer.end_session(session_id, False)

        ctx.last_error = error
        if isinstance(error, (RequestCancelledError, asyncio.CancelledError)):
            ctx.termination_reason = TerminationReason.CANCELLED
            self._set_state(LoopState.ABORTED)
            self._debug_log(f"[LOOP] Cancelled at iteration {ctx.iteration}")
        else:
            ctx.termination_reason = TerminationReason.ERROR
            self._set_state(LoopState.FAILED)
            self._debug_box("[ERROR] Agent run failed", messages=[str(error)])

        self._finish(session_id)
        observer.on_error(error)

    def _finish(self, session_id: str) -> None:
        ctx = self.context
        ctx.end_time = time.time()
        termination = ctx.termination_reason
        self._emit(LoopCompletedEvent(
            session_id=session_id,
            termination_reason=termination.name if termination else "",
            total_iterations=ctx.iteration,
            duration_ms=ctx.duration_ms() or 0.0,
        ))
