"""Tests for agent configuration, per-call options and cancellation."""

import base64

import pytest

from agentic_chat.agent.cancellation import CancellationToken, RequestCancelledError
from agentic_chat.agent.options import (
    DEFAULT_MAX_AGENT_ITERATIONS,
    AgentConfig,
    AgenticChatOptions,
    PastedImage,
)


class TestAgentConfig:
    """AgentConfig 테스트."""

    def test_defaults(self):
        agent_config = AgentConfig()
        assert agent_config.max_agent_iterations == DEFAULT_MAX_AGENT_ITERATIONS == 1000
        assert agent_config.tool_permissions == {}
        assert agent_config.permission_handler is None

    def test_from_config(self, config):
        config.set("max_agent_iterations", 5)
        config.set("tool_permissions", {"bash": "ask"})

        agent_config = AgentConfig.from_config(config)

        assert agent_config.max_agent_iterations == 5
        assert agent_config.tool_permissions == {"bash": "ask"}

    @pytest.mark.parametrize("value", [0, -3, "ten", None])
    def test_invalid_cap_ignored(self, config, value):
        config.set("max_agent_iterations", value)
        assert AgentConfig.from_config(config).max_agent_iterations == 1000

    def test_invalid_permissions_ignored(self, config):
        config.set("tool_permissions", ["bash"])
        assert AgentConfig.from_config(config).tool_permissions == {}


class TestPastedImage:
    """PastedImage 테스트."""

    def test_from_path(self, tmp_path):
        path = tmp_path / "shot.png"
        path.write_bytes(b"\x89PNG fake")

        image = PastedImage.from_path(path)

        encoded = base64.b64encode(b"\x89PNG fake").decode("ascii")
        assert image.image == f"data:image/png;base64,{encoded}"
        assert image.mime_type == "image/png"

    def test_from_path_jpeg(self, tmp_path):
        path = tmp_path / "photo.jpg"
        path.write_bytes(b"jpeg")
        assert PastedImage.from_path(path).mime_type == "image/jpeg"

    def test_unsupported_type(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("not an image")

        with pytest.raises(ValueError, match="Unsupported image type"):
            PastedImage.from_path(path)

    def test_unique_ids(self):
        assert PastedImage(image="u").id != PastedImage(image="u").id


class TestAgenticChatOptions:
    """AgenticChatOptions 테스트."""

    def test_defaults(self):
        options = AgenticChatOptions()
        assert options.enable_tools is True
        assert options.include_images is True
        assert options.pasted_images == []
        assert options.permission_handler is None


class TestCancellationToken:
    """CancellationToken 테스트."""

    def test_initial(self):
        token = CancellationToken()
        assert not token.is_cancelled
        token.raise_if_cancelled()

    def test_cancel_and_reset(self):
        token = CancellationToken()
        token.cancel()
        assert token.is_cancelled

        with pytest.raises(RequestCancelledError, match="Request was cancelled"):
            token.raise_if_cancelled()

        token.reset()
        assert not token.is_cancelled
