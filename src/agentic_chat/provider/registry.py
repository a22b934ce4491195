"""이름 → 프로바이더 클래스 매핑.

설정의 "provider" 값으로 스트리밍 모델 클라이언트를 고릅니다.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import BaseProvider
from .claude import ClaudeProvider

if TYPE_CHECKING:
    from agentic_chat.config import Config


PROVIDERS: dict[str, type[BaseProvider]] = {
    "claude": ClaudeProvider,
}


def get_provider(name: str, config: Config) -> BaseProvider:
    """설정으로 초기화된 프로바이더 인스턴스 반환.

    Raises:
        ValueError: 등록되지 않은 이름
        MissingAPIKeyError: Claude API 키 없음
    """
    provider_class = PROVIDERS.get(name.strip().lower())
    if provider_class is None:
        raise ValueError(f"Unknown provider: {name}. Available: {list_providers()}")
    return provider_class(config)  # type: ignore[call-arg]


def register_provider(name: str, provider_class: type[BaseProvider]) -> None:
    """외부 프로바이더 등록. 같은 이름은 덮어씁니다."""
    if not issubclass(provider_class, BaseProvider):
        raise TypeError(f"{provider_class.__name__} must subclass BaseProvider")
    PROVIDERS[name.strip().lower()] = provider_class


def list_providers() -> list[str]:
    return sorted(PROVIDERS)
