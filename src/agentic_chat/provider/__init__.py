"""Provider module - 스트리밍 LLM 프로바이더 추상화."""

from .base import BaseProvider, StreamCallbacks
from .claude import ClaudeProvider, MissingAPIKeyError, to_anthropic_messages
from .registry import get_provider, register_provider, list_providers

__all__ = [
    "BaseProvider",
    "StreamCallbacks",
    "ClaudeProvider",
    "MissingAPIKeyError",
    "to_anthropic_messages",
    "get_provider",
    "register_provider",
    "list_providers",
]
