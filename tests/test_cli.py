"""CLI Tests."""

import asyncio

import pytest
from click.testing import CliRunner

from agentic_chat.agent import AgentLoop, AgenticChatOptions, Session, ToolExecutor
from agentic_chat.cli import main as cli_main
from agentic_chat.provider.base import BaseProvider


class OneShotProvider(BaseProvider):
    name = "one_shot"

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error

    async def stream_chat(self, messages, callbacks, tools=None, cancellation=None):
        if self.error is not None:
            callbacks.on_error(self.error)
            raise self.error
        callbacks.on_token(self.reply)
        callbacks.on_complete(self.reply)


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """사용자 설정 파일 / API 키 없는 환경."""
    monkeypatch.setattr("agentic_chat.config.config.GLOBAL_CONFIG_PATH", tmp_path / "global.json")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    for key in ("AGENTIC_CHAT_API_KEY", "AGENTIC_CHAT_PROVIDER"):
        monkeypatch.delenv(key, raising=False)
    return tmp_path


class TestCommands:
    """click 명령 테스트."""

    def test_help(self):
        result = CliRunner().invoke(cli_main.cli, ["--help"])
        assert result.exit_code == 0
        assert "chat" in result.output
        assert "run" in result.output

    def test_run_without_api_key(self, isolated):
        result = CliRunner().invoke(cli_main.cli, ["run", "hello"])
        assert result.exit_code == 1
        assert "ANTHROPIC_API_KEY" in result.output

    def test_run_rejects_non_image(self, isolated):
        (isolated / "notes.txt").write_text("text")
        result = CliRunner().invoke(cli_main.cli, ["run", "hello", "--image", "notes.txt"])
        assert result.exit_code == 2
        assert "Unsupported image type" in result.output


class TestRunTurn:
    """run_turn() 세션 기록 테스트."""

    def make_loop(self, config, provider):
        return AgentLoop(config=config, provider=provider, executor=ToolExecutor(tools=[]))

    def test_success_records_turns(self, config):
        loop = self.make_loop(config, OneShotProvider(reply="Hi"))
        session = Session()

        ok = asyncio.run(cli_main.run_turn(loop, session, "Hello", "sys", AgenticChatOptions()))

        assert ok is True
        assert [(t.role, t.content) for t in session.turns] == [("user", "Hello"), ("assistant", "Hi")]

    def test_empty_reply_not_recorded(self, config):
        loop = self.make_loop(config, OneShotProvider(reply=""))
        session = Session()

        ok = asyncio.run(cli_main.run_turn(loop, session, "Hello", "sys", AgenticChatOptions()))

        assert ok is True
        assert [(t.role, t.content) for t in session.turns] == [("user", "Hello")]

    def test_cancelled_records_error_turn(self, config):
        loop = self.make_loop(config, OneShotProvider(reply="never"))
        session = Session()

        async def cancel_then_run():
            original_reset = loop.cancellation.reset

            def reset_then_cancel():
                original_reset()
                loop.cancel()

            loop.cancellation.reset = reset_then_cancel
            return await cli_main.run_turn(loop, session, "Hello", "sys", AgenticChatOptions())

        ok = asyncio.run(cancel_then_run())

        assert ok is False
        assert [(t.role, t.content) for t in session.turns] == [
            ("user", "Hello"),
            ("error", "Request was cancelled"),
        ]

    def test_token_reset_before_run(self, config):
        loop = self.make_loop(config, OneShotProvider(reply="Hi"))
        loop.cancel()

        ok = asyncio.run(cli_main.run_turn(loop, Session(), "Hello", "sys", AgenticChatOptions()))

        assert ok is True
