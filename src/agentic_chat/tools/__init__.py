"""Tools module - tool contract and catalog.

Concrete tools live with the host application; they register themselves
with ``@register_tool`` and are picked up by get_all_tools().
"""

from .registry import ToolRegistry, register_tool
from .base import BaseTool, ToolExecutionOutcome

__all__ = [
    # Registry
    "ToolRegistry",
    "register_tool",
    # Base
    "BaseTool",
    "ToolExecutionOutcome",
    "get_all_tools",
]


def get_all_tools() -> list[BaseTool]:
    """Get instances of all registered tools."""
    return ToolRegistry.get_all()
