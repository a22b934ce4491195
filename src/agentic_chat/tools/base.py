"""Base class for all tools."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable


@dataclass(frozen=True)
class ToolExecutionOutcome:
    """Normalized result of one tool dispatch.

    On success either ``data`` (structured) or ``summary`` (text) carries the
    result; on failure ``error`` explains what went wrong.
    """

    success: bool
    data: Any = None
    summary: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: Any = None, summary: str | None = None) -> "ToolExecutionOutcome":
        return cls(success=True, data=data, summary=summary)

    @classmethod
    def fail(cls, error: str) -> "ToolExecutionOutcome":
        return cls(success=False, error=error)


class BaseTool(ABC):
    """Abstract base class for all tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name used in function calls."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Description of what the tool does."""
        pass

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON Schema properties for tool parameters.

        Each property may carry ``"required": True``; it is lifted into the
        schema's ``required`` list by to_tool_definition().
        """
        pass

    @abstractmethod
    def execute(
        self, **kwargs: Any
    ) -> ToolExecutionOutcome | Awaitable[ToolExecutionOutcome]:
        """Execute the tool with given parameters (sync or async)."""
        pass

    def to_tool_definition(self) -> dict[str, Any]:
        """Convert to a provider-neutral tool definition."""
        clean_properties = {}
        required_fields = []
        for key, value in self.parameters.items():
            prop = {k: v for k, v in value.items() if k != "required"}
            clean_properties[key] = prop
            if value.get("required", False):
                required_fields.append(key)

        return {
            "name": self.name,
            "description": self.description,
            "input_schema": {
                "type": "object",
                "properties": clean_properties,
                "required": required_fields,
            },
        }
