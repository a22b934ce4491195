"""Claude provider implementation (streaming)."""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING, Any

from anthropic import AsyncAnthropic
from rich.console import Console

from agentic_chat.agent.message import (
    AssistantMessage,
    ImagePart,
    Message,
    SystemMessage,
    TextPart,
    ToolCallRequest,
    ToolMessage,
    UserMessage,
)

from .base import BaseProvider, StreamCallbacks

if TYPE_CHECKING:
    from agentic_chat.agent.cancellation import CancellationToken
    from agentic_chat.config import Config

_console = Console(stderr=True)


class MissingAPIKeyError(RuntimeError):
    """No API key in config or environment."""


def _image_block(part: ImagePart) -> dict[str, Any]:
    """Convert an image part to an Anthropic image block."""
    if part.url.startswith("data:"):
        header, _, data = part.url.partition(",")
        media_type = header[len("data:"):].split(";", 1)[0] or "image/png"
        return {
            "type": "image",
            "source": {"type": "base64", "media_type": media_type, "data": data},
        }
    return {"type": "image", "source": {"type": "url", "url": part.url}}


def _tool_input(arguments: str) -> dict[str, Any]:
    """Anthropic needs tool_use input as an object; bad JSON becomes {}."""
    try:
        parsed = json.loads(arguments or "{}")
    except json.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def to_anthropic_messages(messages: list[Message]) -> tuple[str, list[dict[str, Any]]]:
    """Convert chat messages to (system, Anthropic messages).

    Consecutive tool results are merged into one user turn, as the API
    requires all results for a tool_use batch in the following message.
    """
    system_parts: list[str] = []
    converted: list[dict[str, Any]] = []

    for msg in messages:
        if isinstance(msg, SystemMessage):
            system_parts.append(msg.content)

        elif isinstance(msg, UserMessage):
            if isinstance(msg.content, str):
                converted.append({"role": "user", "content": msg.content})
            else:
                blocks: list[dict[str, Any]] = []
                for part in msg.content:
                    if isinstance(part, TextPart):
                        blocks.append({"type": "text", "text": part.text})
                    elif isinstance(part, ImagePart):
                        blocks.append(_image_block(part))
                converted.append({"role": "user", "content": blocks})

        elif isinstance(msg, AssistantMessage):
            if not msg.tool_calls:
                # The API rejects empty assistant turns.
                if msg.content:
                    converted.append({"role": "assistant", "content": msg.content})
                continue
            blocks = []
            if msg.content:
                blocks.append({"type": "text", "text": msg.content})
            for call in msg.tool_calls:
                blocks.append({
                    "type": "tool_use",
                    "id": call.id,
                    "name": call.name,
                    "input": _tool_input(call.arguments),
                })
            converted.append({"role": "assistant", "content": blocks})

        elif isinstance(msg, ToolMessage):
            block: dict[str, Any] = {
                "type": "tool_result",
                "tool_use_id": msg.tool_call_id,
                "content": msg.content,
            }
            if msg.is_error:
                block["is_error"] = True
            previous = converted[-1] if converted else None
            if (
                previous is not None
                and previous["role"] == "user"
                and isinstance(previous["content"], list)
                and all(b.get("type") == "tool_result" for b in previous["content"])
            ):
                previous["content"].append(block)
            else:
                converted.append({"role": "user", "content": [block]})

    return "\n\n".join(p for p in system_parts if p), converted


class ClaudeProvider(BaseProvider):
    """Anthropic Claude API provider."""

    @property
    def name(self) -> str:
        return "claude"

    def __init__(self, config: Config, client: AsyncAnthropic | None = None) -> None:
        self.config = config
        if client is None:
            api_key = config.get("api_key") or os.environ.get("ANTHROPIC_API_KEY")
            if not api_key:
                raise MissingAPIKeyError(
                    "ANTHROPIC_API_KEY environment variable is not set."
                )
            client = AsyncAnthropic(api_key=api_key)

        self.client = client
        self.model = config.get("model", "claude-sonnet-4-20250514")
        self.max_tokens = config.get("max_tokens", 16384)

    async def stream_chat(
        self,
        messages: list[Message],
        callbacks: StreamCallbacks,
        tools: list[dict[str, Any]] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """Stream a Claude response, reporting deltas and the tool-call batch."""
        system, api_messages = to_anthropic_messages(messages)
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": api_messages,
        }
        if system:
            kwargs["system"] = system
        if tools:
            kwargs["tools"] = tools

        full_content = ""
        tool_calls: list[ToolCallRequest] = []
        current_tool: dict[str, str] | None = None

        try:
            async with self.client.messages.stream(**kwargs) as stream:
                async for event in stream:
                    if cancellation is not None and cancellation.is_cancelled:
                        callbacks.on_complete(full_content)
                        return

                    if event.type == "content_block_start":
                        block = event.content_block
                        if block.type == "tool_use":
                            current_tool = {"id": block.id, "name": block.name, "args": ""}

                    elif event.type == "content_block_delta":
                        delta = event.delta
                        if delta.type == "text_delta":
                            full_content += delta.text
                            callbacks.on_token(delta.text)
                        elif delta.type == "input_json_delta" and current_tool is not None:
                            current_tool["args"] += delta.partial_json

                    elif event.type == "content_block_stop" and current_tool is not None:
                        tool_calls.append(ToolCallRequest(
                            id=current_tool["id"],
                            name=current_tool["name"],
                            arguments=current_tool["args"] or "{}",
                        ))
                        current_tool = None

        except Exception as e:
            if self.config.get("debug", False):
                _console.print(f"[dim][red][Claude][/red] stream failed: {e}[/dim]")
            callbacks.on_error(e)
            raise

        if tool_calls:
            callbacks.on_tool_calls(tool_calls)
        callbacks.on_complete(full_content)
