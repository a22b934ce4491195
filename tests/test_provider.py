"""Provider Tests."""

import asyncio
from types import SimpleNamespace

import pytest

from agentic_chat.agent.cancellation import CancellationToken
from agentic_chat.agent.message import (
    AssistantMessage,
    ImagePart,
    SystemMessage,
    TextPart,
    ToolCallRequest,
    ToolMessage,
    UserMessage,
)
from agentic_chat.provider import (
    ClaudeProvider,
    MissingAPIKeyError,
    StreamCallbacks,
    get_provider,
    list_providers,
    register_provider,
    to_anthropic_messages,
)


# =============================================================================
# Fake Anthropic streaming client
# =============================================================================


def text_start():
    return SimpleNamespace(type="content_block_start", content_block=SimpleNamespace(type="text"))


def text_delta(text):
    return SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(type="text_delta", text=text))


def tool_start(tool_id, name):
    return SimpleNamespace(
        type="content_block_start",
        content_block=SimpleNamespace(type="tool_use", id=tool_id, name=name),
    )


def json_delta(partial):
    return SimpleNamespace(
        type="content_block_delta",
        delta=SimpleNamespace(type="input_json_delta", partial_json=partial),
    )


def block_stop():
    return SimpleNamespace(type="content_block_stop")


class FakeStream:
    def __init__(self, events, error=None, on_event=None):
        self.events = events
        self.error = error
        self.on_event = on_event

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for event in self.events:
            if self.on_event:
                self.on_event(event)
            yield event
        if self.error is not None:
            raise self.error


class FakeMessages:
    def __init__(self, stream):
        self._stream = stream
        self.kwargs = None

    def stream(self, **kwargs):
        self.kwargs = kwargs
        return self._stream


class FakeClient:
    def __init__(self, stream):
        self.messages = FakeMessages(stream)


class Recorder:
    def __init__(self):
        self.tokens = []
        self.tool_calls = []
        self.completed = []
        self.errors = []

    def callbacks(self):
        return StreamCallbacks(
            on_token=self.tokens.append,
            on_tool_calls=self.tool_calls.append,
            on_complete=self.completed.append,
            on_error=self.errors.append,
        )


def stream(provider, messages, tools=None, cancellation=None):
    recorder = Recorder()
    asyncio.run(provider.stream_chat(messages, recorder.callbacks(), tools, cancellation))
    return recorder


# =============================================================================
# Tests
# =============================================================================


class TestToAnthropicMessages:
    """메시지 변환 테스트."""

    def test_system_extracted(self):
        system, msgs = to_anthropic_messages([
            SystemMessage(content="be brief"),
            UserMessage(content="hi"),
        ])
        assert system == "be brief"
        assert msgs == [{"role": "user", "content": "hi"}]

    def test_images(self):
        _, msgs = to_anthropic_messages([UserMessage(content=[
            TextPart(text="look"),
            ImagePart(url="data:image/jpeg;base64,QUJD"),
            ImagePart(url="https://example.com/cat.png"),
        ])])

        assert msgs[0]["content"] == [
            {"type": "text", "text": "look"},
            {"type": "image", "source": {"type": "base64", "media_type": "image/jpeg", "data": "QUJD"}},
            {"type": "image", "source": {"type": "url", "url": "https://example.com/cat.png"}},
        ]

    def test_tool_round_trip_merges_results(self):
        calls = [
            ToolCallRequest(id="a", name="search", arguments='{"q": "x"}'),
            ToolCallRequest(id="b", name="search", arguments="not json"),
        ]
        _, msgs = to_anthropic_messages([
            UserMessage(content="find x"),
            AssistantMessage(content="Searching.", tool_calls=calls),
            ToolMessage(tool_call_id="a", content="r1"),
            ToolMessage(tool_call_id="b", content="r2"),
        ])

        assert msgs[1] == {
            "role": "assistant",
            "content": [
                {"type": "text", "text": "Searching."},
                {"type": "tool_use", "id": "a", "name": "search", "input": {"q": "x"}},
                {"type": "tool_use", "id": "b", "name": "search", "input": {}},
            ],
        }
        assert msgs[2] == {
            "role": "user",
            "content": [
                {"type": "tool_result", "tool_use_id": "a", "content": "r1"},
                {"type": "tool_result", "tool_use_id": "b", "content": "r2"},
            ],
        }
        assert len(msgs) == 3

    def test_empty_assistant_turns_skipped(self):
        _, msgs = to_anthropic_messages([
            UserMessage(content="hi"),
            AssistantMessage(content=None),
            AssistantMessage(content=""),
            UserMessage(content="again"),
        ])
        assert msgs == [
            {"role": "user", "content": "hi"},
            {"role": "user", "content": "again"},
        ]

    def test_failed_tool_result_flagged(self):
        _, msgs = to_anthropic_messages([
            AssistantMessage(content=None, tool_calls=[
                ToolCallRequest(id="a", name="search", arguments="{}"),
            ]),
            ToolMessage(tool_call_id="a", content='{"success": false}', is_error=True),
        ])
        assert msgs[1]["content"] == [
            {"type": "tool_result", "tool_use_id": "a", "content": '{"success": false}', "is_error": True},
        ]


class TestClaudeProvider:
    """ClaudeProvider 스트리밍 테스트."""

    def test_missing_api_key(self, config, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(MissingAPIKeyError):
            ClaudeProvider(config)

    def test_text_stream(self, config):
        client = FakeClient(FakeStream([text_start(), text_delta("Hel"), text_delta("lo"), block_stop()]))
        provider = ClaudeProvider(config, client=client)

        recorder = stream(provider, [SystemMessage(content="sys"), UserMessage(content="hi")])

        assert recorder.tokens == ["Hel", "lo"]
        assert recorder.tool_calls == []
        assert recorder.completed == ["Hello"]
        assert client.messages.kwargs["system"] == "sys"
        assert client.messages.kwargs["model"] == config.get("model")
        assert "tools" not in client.messages.kwargs

    def test_tool_calls_reported_once(self, config):
        client = FakeClient(FakeStream([
            tool_start("a", "search"), json_delta('{"q": '), json_delta('"x"}'), block_stop(),
            tool_start("b", "ping"), block_stop(),
        ]))
        provider = ClaudeProvider(config, client=client)
        tools = [{"name": "search", "description": "d", "input_schema": {"type": "object"}}]

        recorder = stream(provider, [UserMessage(content="go")], tools=tools)

        assert recorder.tool_calls == [[
            ToolCallRequest(id="a", name="search", arguments='{"q": "x"}'),
            ToolCallRequest(id="b", name="ping", arguments="{}"),
        ]]
        assert recorder.completed == [""]
        assert client.messages.kwargs["tools"] == tools

    def test_cancel_mid_stream(self, config):
        token = CancellationToken()

        def cancel_before_second_delta(event):
            if getattr(event, "delta", None) is not None and event.delta.text == "two":
                token.cancel()

        client = FakeClient(FakeStream(
            [text_delta("one "), text_delta("two")],
            on_event=cancel_before_second_delta,
        ))
        provider = ClaudeProvider(config, client=client)

        recorder = stream(provider, [UserMessage(content="go")], cancellation=token)

        assert recorder.tokens == ["one "]
        assert recorder.completed == ["one "]

    def test_stream_error(self, config):
        boom = ConnectionError("reset by peer")
        client = FakeClient(FakeStream([text_delta("partial")], error=boom))
        provider = ClaudeProvider(config, client=client)
        recorder = Recorder()

        with pytest.raises(ConnectionError):
            asyncio.run(provider.stream_chat([UserMessage(content="go")], recorder.callbacks()))

        assert recorder.errors == [boom]
        assert recorder.completed == []


class TestRegistry:
    """프로바이더 레지스트리 테스트."""

    def test_claude_registered(self):
        assert "claude" in list_providers()

    def test_unknown_provider(self, config):
        with pytest.raises(ValueError, match="Unknown provider"):
            get_provider("nope", config)

    def test_register_provider(self, config):
        class DummyProvider(ClaudeProvider):
            def __init__(self, config):
                self.config = config

        register_provider("dummy", DummyProvider)

        assert isinstance(get_provider("dummy", config), DummyProvider)
