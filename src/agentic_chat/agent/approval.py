"""
Approval Prompt

Console permission handler for tools configured as "ask".
- Not a tool (the model never calls it)
- Passed to AgentLoop.run() as AgenticChatOptions.permission_handler
- The loop dispatches tools one at a time, so only one prompt is ever open
"""

from typing import Awaitable, Callable

from prompt_toolkit import PromptSession
from rich.console import Console

AskFunc = Callable[[str], Awaitable[str]]


class ApprovalPrompt:
    """Asks the user y/n before a tool runs."""

    def __init__(
        self,
        console: Console | None = None,
        ask: AskFunc | None = None,
    ) -> None:
        """
        Args:
            console: Rich console for the request banner
            ask: Coroutine returning the user's raw answer (defaults to
                a prompt_toolkit session)
        """
        self.console = console or Console()
        self._ask = ask or self._prompt_toolkit_ask
        self._session: PromptSession | None = None
        self.history: list[tuple[str, bool]] = []  # (tool_name, approved)

        # Spinner control callbacks (set by CLI)
        self.pause_spinner: Callable[[], None] | None = None
        self.resume_spinner: Callable[[], None] | None = None

    async def _prompt_toolkit_ask(self, message: str) -> str:
        if self._session is None:
            self._session = PromptSession()
        return await self._session.prompt_async(message)

    async def __call__(self, tool_call_id: str, tool_name: str) -> bool:
        """Permission handler: (tool_call_id, tool_name) -> approved?"""
        if self.pause_spinner:
            self.pause_spinner()

        self.console.print(f"\n⚠️  Permission required: [bold]{tool_name}[/bold]")
        self.console.print(f"[dim]   call id: {tool_call_id}[/dim]")

        try:
            while True:
                try:
                    response = (await self._ask("   Approve? [y/n]: ")).strip().lower()
                except (EOFError, KeyboardInterrupt):
                    self.console.print("\n   Cancelled. Denying permission.")
                    self.history.append((tool_name, False))
                    return False

                if response in ("y", "yes"):
                    self.history.append((tool_name, True))
                    return True
                if response in ("n", "no"):
                    self.history.append((tool_name, False))
                    return False
                self.console.print("   Invalid input. Please enter 'y' or 'n'")
        finally:
            if self.resume_spinner:
                self.resume_spinner()

    def get_history(self) -> list[tuple[str, bool]]:
        """승인 이력 반환"""
        return self.history.copy()

    def clear_history(self) -> None:
        """승인 이력 초기화"""
        self.history.clear()
