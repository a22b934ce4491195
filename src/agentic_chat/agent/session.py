"""대화 세션 관리.

사용자에게 보여지는 대화 턴을 보관합니다. 에이전트 루프는 이 기록을
읽기만 하고, 세션은 루프의 on_complete / on_error 콜백을 관찰해서
새 턴을 추가합니다.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal
from uuid import uuid4

TurnRole = Literal["user", "assistant", "system", "error"]


@dataclass
class ChatTurn:
    """사용자에게 표시되는 대화 한 턴."""

    role: TurnRole
    content: str
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """직렬화용 딕셔너리."""
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChatTurn":
        """딕셔너리에서 복원."""
        return cls(
            role=data["role"],
            content=data.get("content", ""),
            id=data.get("id") or str(uuid4()),
            timestamp=(
                datetime.fromisoformat(data["timestamp"])
                if data.get("timestamp")
                else datetime.now()
            ),
        )


class Session:
    """메모리 기반 대화 세션."""

    def __init__(self) -> None:
        self.id: str = str(uuid4())
        self.turns: list[ChatTurn] = []

    def add_user_turn(self, content: str) -> ChatTurn:
        """사용자 턴 추가."""
        return self._add("user", content)

    def add_assistant_turn(self, content: str) -> ChatTurn:
        """어시스턴트 턴 추가 (루프의 on_complete 결과)."""
        return self._add("assistant", content)

    def add_error_turn(self, content: str) -> ChatTurn:
        """에러 턴 추가. 모델에게 다시 전달되지 않습니다."""
        return self._add("error", content)

    def _add(self, role: TurnRole, content: str) -> ChatTurn:
        turn = ChatTurn(role=role, content=content)
        self.turns.append(turn)
        return turn

    def history(self) -> list[ChatTurn]:
        """현재까지의 턴 복사본 반환."""
        return list(self.turns)

    def to_dict(self) -> dict[str, Any]:
        """직렬화용 딕셔너리."""
        return {
            "id": self.id,
            "turns": [turn.to_dict() for turn in self.turns],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        """딕셔너리에서 복원."""
        session = cls()
        session.id = data["id"]
        session.turns = [ChatTurn.from_dict(t) for t in data.get("turns", [])]
        return session

    def clear(self) -> None:
        """세션 초기화."""
        self.turns.clear()
        self.id = str(uuid4())

    def __len__(self) -> int:
        return len(self.turns)
