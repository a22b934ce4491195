"""Message parts and type-safe message system.

대화 메시지를 역할(system / user / assistant / tool)별 타입으로 정의합니다.
OpenAI 스타일 chat 형식으로 변환되며, 프로바이더가 각자의 API 형식으로
다시 변환합니다.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal, Union

Role = Literal["system", "user", "assistant", "tool"]


# =============================================================================
# Content Parts
# =============================================================================


class ContentPart(ABC):
    """멀티모달 사용자 메시지의 콘텐츠 파트."""

    @property
    @abstractmethod
    def part_type(self) -> str:
        """파트 타입 식별자."""
        pass

    @abstractmethod
    def to_api_format(self) -> dict[str, Any]:
        """Chat API 형식으로 변환."""
        pass

    @classmethod
    @abstractmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentPart":
        """API 형식 딕셔너리에서 복원."""
        pass


@dataclass(frozen=True)
class TextPart(ContentPart):
    """텍스트 파트."""

    text: str

    @property
    def part_type(self) -> Literal["text"]:
        return "text"

    def to_api_format(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TextPart":
        return cls(text=data.get("text", ""))


@dataclass(frozen=True)
class ImagePart(ContentPart):
    """이미지 파트.

    url은 http(s) URL 또는 ``data:<mime>;base64,...`` 형식입니다.
    detail은 모델이 처리 해상도를 고르도록 하는 힌트입니다.
    """

    url: str
    detail: Literal["auto", "low", "high"] = "auto"

    @property
    def part_type(self) -> Literal["image_url"]:
        return "image_url"

    def to_api_format(self) -> dict[str, Any]:
        return {
            "type": "image_url",
            "image_url": {"url": self.url, "detail": self.detail},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImagePart":
        image_url = data.get("image_url") or {}
        return cls(url=image_url["url"], detail=image_url.get("detail", "auto"))


# Part 타입 레지스트리
_PART_TYPES: dict[str, type[ContentPart]] = {
    "text": TextPart,
    "image_url": ImagePart,
}


def register_part_type(part_type: str, cls: type[ContentPart]) -> None:
    """새 파트 타입 등록.

    Args:
        part_type: 파트 타입 식별자 (API 형식의 "type" 값)
        cls: ContentPart 서브클래스
    """
    _PART_TYPES[part_type] = cls


def part_from_dict(data: dict[str, Any]) -> ContentPart:
    """API 형식 딕셔너리에서 적절한 Part 인스턴스 생성.

    Raises:
        ValueError: 알 수 없는 파트 타입
    """
    part_type = data.get("type")
    if part_type not in _PART_TYPES:
        raise ValueError(f"Unknown part type: {part_type}")
    return _PART_TYPES[part_type].from_dict(data)


# =============================================================================
# Tool Call Request
# =============================================================================


@dataclass(frozen=True)
class ToolCallRequest:
    """모델이 요청한 단일 도구 호출.

    arguments는 모델이 생성한 JSON 문자열 그대로이며 신뢰할 수 없습니다.
    디코딩과 검증은 도구 실행기의 책임입니다.
    """

    id: str
    name: str
    arguments: str = "{}"

    def to_api_format(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolCallRequest":
        function = data.get("function") or {}
        return cls(
            id=data["id"],
            name=function.get("name", data.get("name", "")),
            arguments=function.get("arguments", data.get("arguments", "{}")),
        )


# =============================================================================
# Messages
# =============================================================================


@dataclass
class SystemMessage:
    """시스템 프롬프트."""

    content: str
    role: Literal["system"] = field(default="system", init=False)

    def to_api_format(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content}


@dataclass
class UserMessage:
    """사용자 메시지 (텍스트 또는 멀티모달 파트 리스트)."""

    content: str | list[ContentPart]
    role: Literal["user"] = field(default="user", init=False)

    @property
    def is_multimodal(self) -> bool:
        return not isinstance(self.content, str)

    def get_text_content(self) -> str:
        """모든 텍스트 파트를 합쳐서 반환."""
        if isinstance(self.content, str):
            return self.content
        return "\n".join(p.text for p in self.content if isinstance(p, TextPart))

    def to_api_format(self) -> dict[str, Any]:
        if isinstance(self.content, str):
            return {"role": self.role, "content": self.content}
        return {
            "role": self.role,
            "content": [part.to_api_format() for part in self.content],
        }


@dataclass
class AssistantMessage:
    """어시스턴트 메시지.

    루프 중간에 생성되는 경우 content는 None일 수 있고 tool_calls를 가집니다.
    """

    content: str | None = None
    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    role: Literal["assistant"] = field(default="assistant", init=False)

    def to_api_format(self) -> dict[str, Any]:
        result: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            result["tool_calls"] = [call.to_api_format() for call in self.tool_calls]
        return result


@dataclass
class ToolMessage:
    """도구 실행 결과 (또는 자기 교정 안내) 메시지."""

    tool_call_id: str
    content: str
    is_error: bool = False
    role: Literal["tool"] = field(default="tool", init=False)

    def to_api_format(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "role": self.role,
            "tool_call_id": self.tool_call_id,
            "content": self.content,
        }
        if self.is_error:
            data["is_error"] = True
        return data


Message = Union[SystemMessage, UserMessage, AssistantMessage, ToolMessage]


def message_from_dict(data: dict[str, Any]) -> Message:
    """API 형식 딕셔너리에서 메시지 복원.

    Raises:
        ValueError: 알 수 없는 role
    """
    role = data.get("role")
    content = data.get("content")

    if role == "system":
        return SystemMessage(content=content or "")
    if role == "user":
        if isinstance(content, list):
            return UserMessage(content=[part_from_dict(p) for p in content])
        return UserMessage(content=content or "")
    if role == "assistant":
        calls = [ToolCallRequest.from_dict(c) for c in data.get("tool_calls") or []]
        return AssistantMessage(content=content, tool_calls=calls)
    if role == "tool":
        return ToolMessage(
            tool_call_id=data["tool_call_id"],
            content=content or "",
            is_error=bool(data.get("is_error", False)),
        )

    raise ValueError(f"Unknown message role: {role}")


def messages_to_api_format(messages: list[Message]) -> list[dict[str, Any]]:
    """메시지 리스트를 API 형식으로 변환."""
    return [msg.to_api_format() for msg in messages]
