"""CLI entry point."""

import asyncio
import signal
import sys

import click
from anthropic import APIError, RateLimitError
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from rich.console import Console
from rich.panel import Panel
from rich.status import Status

from agentic_chat.agent import (
    AgentLoop,
    AgentObserver,
    AgenticChatOptions,
    ApprovalPrompt,
    PastedImage,
    RequestCancelledError,
    Session,
    ToolCallRequest,
)
from agentic_chat.config import Config
from agentic_chat.core import EventBus, EventLogger
from agentic_chat.provider import MissingAPIKeyError
from agentic_chat.tools import ToolExecutionOutcome

console = Console()

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Use the available tools when they help "
    "answer the user's request, and explain what you did."
)


class ConsoleObserver:
    """Streams agent progress to the console."""

    def __init__(self, console: Console) -> None:
        self.console = console
        self._status: Status | None = None
        self.final_text: str | None = None

    def observer(self) -> AgentObserver:
        return AgentObserver(
            on_token=self._on_token,
            on_tool_call_started=self._on_tool_started,
            on_tool_call_completed=self._on_tool_completed,
            on_message_update=self._on_message_update,
            on_complete=self._on_complete,
            on_error=self._on_error,
            on_iteration_started=self._on_iteration_started,
        )

    def spin(self, text: str) -> None:
        if self._status is None:
            self._status = self.console.status(text, spinner="dots")
            self._status.start()
        else:
            self._status.update(text)

    def stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None

    def _on_iteration_started(self, iteration: int) -> None:
        self.spin("[bold green]Thinking...[/bold green]")

    def _on_token(self, token: str, full_response: str) -> None:
        self.stop()
        self.console.print(token, end="", markup=False, highlight=False)

    def _on_tool_started(self, call: ToolCallRequest) -> None:
        self.spin(f"[yellow]Calling {call.name.replace('_', ' ')}...[/yellow]")

    def _on_tool_completed(self, call: ToolCallRequest, outcome: ToolExecutionOutcome) -> None:
        self.stop()
        if outcome.success:
            self.console.print(f"\n[dim]  ✓ {call.name}[/dim]")
        else:
            self.console.print(f"\n[dim]  ✗ {call.name}: {outcome.error}[/dim]")

    def _on_message_update(self, content: str) -> None:
        self.stop()
        self.console.print("\n\n[yellow]Agent stopped - reached maximum tool call iterations.[/yellow]")

    def _on_complete(self, content: str) -> None:
        self.stop()
        self.final_text = content
        self.console.print()

    def _on_error(self, error: BaseException) -> None:
        self.stop()


def build_agent_loop(config: Config, event_bus: EventBus | None) -> AgentLoop:
    """Create the agent loop, exiting with a hint when no API key is set."""
    try:
        return AgentLoop(config=config, event_bus=event_bus)
    except MissingAPIKeyError:
        console.print(
            "[red]Error:[/red] ANTHROPIC_API_KEY environment variable is not set.\n"
            "Set it with:\n"
            "  [bold]export ANTHROPIC_API_KEY='your-api-key'[/bold]"
        )
        sys.exit(1)


async def run_turn(
    agent_loop: AgentLoop,
    session: Session,
    text: str,
    system_prompt: str,
    options: AgenticChatOptions,
) -> bool:
    """Run one user turn, recording it in the session. Returns success."""
    printer = ConsoleObserver(console)
    history = session.history()
    agent_loop.cancellation.reset()

    approval = options.permission_handler
    if isinstance(approval, ApprovalPrompt):
        approval.pause_spinner = printer.stop
        approval.resume_spinner = lambda: printer.spin("[yellow]Running tool...[/yellow]")

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, agent_loop.cancel)
        handles_sigint = True
    except (NotImplementedError, RuntimeError):
        handles_sigint = False  # Windows event loops have no signal handlers

    try:
        await agent_loop.run(text, system_prompt, history, options, printer.observer())
    except RequestCancelledError:
        session.add_user_turn(text)
        session.add_error_turn("Request was cancelled")
        console.print("\n[dim]Cancelled.[/dim]")
        return False
    except RateLimitError:
        session.add_user_turn(text)
        session.add_error_turn("Rate limit exceeded")
        console.print("\n[red bold]⚠️  Rate Limit Exceeded[/red bold]")
        console.print("[yellow]Please wait a moment before trying again.[/yellow]")
        return False
    except APIError as e:
        session.add_user_turn(text)
        session.add_error_turn(str(e))
        console.print("\n[red bold]⚠️  API Error[/red bold]")
        console.print(f"[yellow]{str(e)}[/yellow]")
        console.print("[dim]Please check your connection and API key.[/dim]")
        return False
    finally:
        printer.stop()
        if handles_sigint:
            loop.remove_signal_handler(signal.SIGINT)

    session.add_user_turn(text)
    if printer.final_text:
        session.add_assistant_turn(printer.final_text)
    return True


def _make_config(max_iterations: int | None, debug: bool) -> Config:
    config = Config()
    if max_iterations is not None:
        config.set("max_agent_iterations", max_iterations)
    if debug:
        config.set("debug", True)
    return config


def _make_event_bus(debug: bool) -> EventBus | None:
    if not debug:
        return None
    bus = EventBus()
    EventLogger(console=Console(stderr=True), verbose=True).attach(bus)
    return bus


@click.group()
@click.version_option(package_name="agentic-chat")
def cli() -> None:
    """Agentic Chat - an LLM chat agent with tool calling."""
    pass


@cli.command()
@click.option("--tools/--no-tools", "enable_tools", default=None,
              help="Advertise registered tools to the model (default: from config)")
@click.option("--max-iterations", type=click.IntRange(min=1), default=None,
              help="Maximum model/tool iterations per turn")
@click.option("--system", "system_prompt", default=DEFAULT_SYSTEM_PROMPT,
              help="System prompt")
@click.option("--debug", is_flag=True, default=False,
              help="Enable debug output (iterations, tool calls, trace summary)")
def chat(enable_tools: bool | None, max_iterations: int | None, system_prompt: str, debug: bool) -> None:
    """Start an interactive agent session."""
    config = _make_config(max_iterations, debug)
    if enable_tools is None:
        enable_tools = bool(config.get("enable_tools", True))

    agent_loop = build_agent_loop(config, _make_event_bus(debug))
    approval = ApprovalPrompt(console=console)

    welcome_msg = (
        "[bold blue]Agentic Chat[/bold blue]\n"
        "Type [bold]exit[/bold] or [bold]quit[/bold] to end the session.\n"
        "Type [bold]reset[/bold] to clear conversation history.\n"
        "Press [bold]Ctrl+C[/bold] while the agent works to cancel the request."
    )
    if enable_tools:
        welcome_msg += f"\n\n[green]✓ Tools enabled[/green] [dim]({len(agent_loop.executor.tools)} registered)[/dim]"
    else:
        welcome_msg += "\n\n[yellow]Tools disabled[/yellow]"
    if debug:
        welcome_msg += "\n[cyan]🔍 Debug mode enabled[/cyan]"
    console.print(Panel(welcome_msg, title="Welcome"))

    asyncio.run(_chat_session(agent_loop, approval, system_prompt, enable_tools))


async def _chat_session(
    agent_loop: AgentLoop,
    approval: ApprovalPrompt,
    system_prompt: str,
    enable_tools: bool,
) -> None:
    session = Session()
    prompt_session: PromptSession = PromptSession(history=FileHistory(".agentic_chat_history"))

    while True:
        try:
            user_input = (await prompt_session.prompt_async("\n> ")).strip()
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'exit' to quit[/dim]")
            continue
        except EOFError:
            break

        if not user_input:
            continue

        if user_input.lower() in ("exit", "quit"):
            console.print("[dim]Goodbye![/dim]")
            break

        if user_input.lower() == "reset":
            session.clear()
            console.print("[dim]Conversation history cleared.[/dim]")
            continue

        options = AgenticChatOptions(
            enable_tools=enable_tools,
            permission_handler=approval,
        )
        await run_turn(agent_loop, session, user_input, system_prompt, options)


@cli.command()
@click.argument("message")
@click.option("--image", "images", multiple=True, type=click.Path(exists=True, dir_okay=False),
              help="Attach an image (repeatable)")
@click.option("--tools/--no-tools", "enable_tools", default=None,
              help="Advertise registered tools to the model (default: from config)")
@click.option("--max-iterations", type=click.IntRange(min=1), default=None,
              help="Maximum model/tool iterations")
@click.option("--system", "system_prompt", default=DEFAULT_SYSTEM_PROMPT,
              help="System prompt")
@click.option("--debug", is_flag=True, default=False,
              help="Enable debug output (iterations, tool calls, trace summary)")
def run(
    message: str,
    images: tuple[str, ...],
    enable_tools: bool | None,
    max_iterations: int | None,
    system_prompt: str,
    debug: bool,
) -> None:
    """Run the agent with a single message."""
    config = _make_config(max_iterations, debug)
    if enable_tools is None:
        enable_tools = bool(config.get("enable_tools", True))

    try:
        pasted = [PastedImage.from_path(path) for path in images]
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--image") from e

    agent_loop = build_agent_loop(config, _make_event_bus(debug))
    options = AgenticChatOptions(
        enable_tools=enable_tools,
        include_images=bool(config.get("include_images", True)),
        pasted_images=pasted,
        permission_handler=ApprovalPrompt(console=console),
    )

    ok = asyncio.run(run_turn(agent_loop, Session(), message, system_prompt, options))
    if not ok:
        sys.exit(1)


if __name__ == "__main__":
    cli()
