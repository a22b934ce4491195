"""Approval Prompt Tests."""

import asyncio
from io import StringIO

from rich.console import Console

from agentic_chat.agent.approval import ApprovalPrompt


def make_prompt(answers):
    """Prompt that replays scripted answers (or raises them)."""
    answers = list(answers)
    asked = []

    async def ask(message):
        asked.append(message)
        answer = answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    buffer = StringIO()
    prompt = ApprovalPrompt(console=Console(file=buffer, color_system=None), ask=ask)
    return prompt, asked, buffer


class TestApprovalPrompt:
    """ApprovalPrompt 테스트."""

    def test_approve(self):
        prompt, asked, buffer = make_prompt(["y"])

        assert asyncio.run(prompt("call_1", "bash")) is True
        assert len(asked) == 1
        assert "Permission required: bash" in buffer.getvalue()
        assert prompt.get_history() == [("bash", True)]

    def test_deny(self):
        prompt, _, _ = make_prompt([" NO "])

        assert asyncio.run(prompt("call_1", "bash")) is False
        assert prompt.get_history() == [("bash", False)]

    def test_invalid_input_reprompts(self):
        prompt, asked, buffer = make_prompt(["maybe", "", "yes"])

        assert asyncio.run(prompt("call_1", "write")) is True
        assert len(asked) == 3
        assert "Invalid input" in buffer.getvalue()

    def test_eof_denies(self):
        prompt, _, _ = make_prompt([EOFError()])

        assert asyncio.run(prompt("call_1", "write")) is False
        assert prompt.get_history() == [("write", False)]

    def test_spinner_hooks(self):
        prompt, _, _ = make_prompt(["y"])
        calls = []
        prompt.pause_spinner = lambda: calls.append("pause")
        prompt.resume_spinner = lambda: calls.append("resume")

        asyncio.run(prompt("call_1", "bash"))

        assert calls == ["pause", "resume"]

    def test_clear_history(self):
        prompt, _, _ = make_prompt(["y"])
        asyncio.run(prompt("call_1", "bash"))

        prompt.clear_history()

        assert prompt.get_history() == []
