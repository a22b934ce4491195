"""LLM 프로바이더 기본 인터페이스 (스트리밍 모델 클라이언트 계약)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from agentic_chat.agent.cancellation import CancellationToken
    from agentic_chat.agent.message import Message, ToolCallRequest


def _noop(*_args: object) -> None:
    return None


@dataclass
class StreamCallbacks:
    """스트리밍 호출 한 번에 대한 콜백 묶음.

    Attributes:
        on_token: 텍스트 델타 (수신 순서 그대로)
        on_tool_calls: 파싱된 도구 호출 배치
        on_complete: 스트림 종료 시 이번 호출의 전체 텍스트
        on_error: 종료 에러. 호출 후 stream_chat()은 같은 에러를 raise합니다.
    """

    on_token: Callable[[str], None] = _noop
    on_tool_calls: Callable[[list[ToolCallRequest]], None] = _noop
    on_complete: Callable[[str], None] = _noop
    on_error: Callable[[BaseException], None] = _noop


class BaseProvider(ABC):
    """LLM 프로바이더 추상 클래스."""

    @property
    @abstractmethod
    def name(self) -> str:
        """프로바이더 이름."""
        pass

    @abstractmethod
    async def stream_chat(
        self,
        messages: list[Message],
        callbacks: StreamCallbacks,
        tools: list[dict[str, Any]] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """
        스트리밍 LLM 호출.

        Args:
            messages: 대화 메시지 리스트 (첫 메시지는 시스템 프롬프트)
            callbacks: 토큰 / 도구 호출 / 완료 / 에러 콜백
            tools: 도구 정의 리스트. None이면 도구 호출을 광고하지 않습니다.
            cancellation: 설정되면 스트림을 조용히 중단하고 지금까지의
                텍스트로 on_complete를 호출합니다.

        Raises:
            Exception: 네트워크 / API 에러 (on_error 호출 후)
        """
        pass
