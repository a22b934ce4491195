"""Process-wide tool catalog."""

from typing import Type, TYPE_CHECKING

if TYPE_CHECKING:
    from .base import BaseTool


class ToolRegistry:
    """Catalog of tool classes, instantiated lazily on first lookup.

    Host applications register their tools once at import time; the agent's
    ToolExecutor snapshots get_all() when it is constructed.
    """

    _tools: dict[str, Type["BaseTool"]] = {}
    _instances: dict[str, "BaseTool"] = {}

    @classmethod
    def register(
        cls,
        tool_class: Type["BaseTool"],
        name: str | None = None,
    ) -> Type["BaseTool"]:
        """Add ``tool_class`` under ``name`` (default: its ``name`` attribute).

        Re-registering a name replaces the class and drops any cached instance.

        Raises:
            ValueError: No usable name.
        """
        tool_name = name or getattr(tool_class, "name", None)
        if not isinstance(tool_name, str) or not tool_name:
            raise ValueError(f"Tool class {tool_class.__name__} must have a 'name' attribute")

        cls._tools[tool_name] = tool_class
        cls._instances.pop(tool_name, None)
        return tool_class

    @classmethod
    def get(cls, name: str) -> "BaseTool":
        """Shared instance of the named tool.

        Raises:
            KeyError: Not registered.
        """
        try:
            tool_class = cls._tools[name]
        except KeyError:
            raise KeyError(f"Unknown tool: {name}. Available: {cls.list_tools()}") from None

        instance = cls._instances.get(name)
        if instance is None:
            instance = cls._instances[name] = tool_class()
        return instance

    @classmethod
    def get_all(cls) -> list["BaseTool"]:
        return [cls.get(name) for name in cls._tools]

    @classmethod
    def list_tools(cls) -> list[str]:
        return list(cls._tools)

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._tools

    @classmethod
    def clear(cls) -> None:
        """Forget every registration (tests)."""
        cls._tools.clear()
        cls._instances.clear()


def register_tool(cls: Type["BaseTool"]) -> Type["BaseTool"]:
    """Class decorator form of ToolRegistry.register.

    Usage:
        @register_tool
        class SearchTool(BaseTool):
            name = "search"
            ...
    """
    return ToolRegistry.register(cls)
