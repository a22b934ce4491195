"""Agent loop states and context.

에이전트 루프의 상태 관리를 위한 enum과 실행 컨텍스트 클래스 정의.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any
import time

from .message import Message


class LoopState(Enum):
    """에이전트 루프의 현재 상태."""

    IDLE = auto()               # 대기 중 (run() 호출 전)
    BUILDING_PROMPT = auto()    # 프롬프트 구성 중
    STREAMING_MODEL = auto()    # 모델 스트리밍 호출 중
    EXECUTING_TOOLS = auto()    # 도구 순차 실행 중
    COMPLETED = auto()          # 정상 완료 (도구 호출 없는 응답)
    MAX_ITERATIONS = auto()     # 최대 반복 횟수 도달
    ABORTED = auto()            # 사용자 취소
    FAILED = auto()             # 에러 발생


TERMINAL_STATES = frozenset({
    LoopState.COMPLETED,
    LoopState.MAX_ITERATIONS,
    LoopState.ABORTED,
    LoopState.FAILED,
})


class TerminationReason(Enum):
    """루프 종료 사유."""

    END_TURN = auto()           # 모델이 도구 없이 응답 (정상 종료)
    MAX_ITERATIONS = auto()     # 최대 반복 횟수 도달
    CANCELLED = auto()          # 취소 토큰 감지
    ERROR = auto()              # 에러 발생으로 종료


@dataclass
class LoopContext:
    """에이전트 실행 상태.

    run() 진입 시 초기화되고 반복마다 갱신됩니다.
    루프 종료 후에는 통계 조회용으로만 남습니다.
    """

    # 상태
    state: LoopState = LoopState.IDLE
    termination_reason: TerminationReason | None = None

    # 반복 정보
    iteration: int = 0
    max_iterations: int = 1000

    # 누적 응답 텍스트와 모델에 보낼 메시지 목록
    full_response: str = ""
    messages: list[Message] = field(default_factory=list)

    # 에러
    last_error: BaseException | None = None

    # 통계
    total_tool_calls: int = 0
    total_llm_calls: int = 0
    start_time: float | None = None
    end_time: float | None = None

    # 상태 변경 이력 (디버깅용)
    _state_history: list[tuple[float, LoopState]] = field(default_factory=list)

    def is_running(self) -> bool:
        """루프가 실행 중인지 확인."""
        return self.state is not LoopState.IDLE and self.state not in TERMINAL_STATES

    def is_finished(self) -> bool:
        """루프가 종료되었는지 확인."""
        return self.state in TERMINAL_STATES

    def duration_ms(self) -> float | None:
        """실행 시간 (밀리초)."""
        if self.start_time is not None:
            end = self.end_time or time.time()
            return (end - self.start_time) * 1000
        return None

    def record_state(self, state: LoopState) -> None:
        """상태 변경 기록 (이력 추적용)."""
        self._state_history.append((time.time(), state))
        self.state = state

    def reset(self) -> None:
        """컨텍스트 초기화."""
        self.state = LoopState.IDLE
        self.termination_reason = None
        self.iteration = 0
        self.full_response = ""
        self.messages = []
        self.last_error = None
        self.total_tool_calls = 0
        self.total_llm_calls = 0
        self.start_time = None
        self.end_time = None
        self._state_history.clear()

    def to_dict(self) -> dict[str, Any]:
        """컨텍스트를 딕셔너리로 변환 (직렬화용)."""
        return {
            "state": self.state.name,
            "termination_reason": self.termination_reason.name if self.termination_reason else None,
            "iteration": self.iteration,
            "max_iterations": self.max_iterations,
            "message_count": len(self.messages),
            "total_tool_calls": self.total_tool_calls,
            "total_llm_calls": self.total_llm_calls,
            "duration_ms": self.duration_ms(),
            "has_error": self.last_error is not None,
        }
