"""Tool executor - Handles tool calls from the model."""

from __future__ import annotations

import inspect
import json
from typing import TYPE_CHECKING, Any

from agentic_chat.tools import BaseTool, ToolExecutionOutcome, get_all_tools

from .options import AgentConfig
from .permissions import PermissionDeniedError, PermissionManager

if TYPE_CHECKING:
    from .message import ToolCallRequest


def parse_tool_arguments(arguments: str) -> dict[str, Any]:
    """Decode a tool call's JSON arguments into keyword arguments.

    Raises:
        ValueError: Arguments are not a JSON object.
    """
    try:
        parsed = json.loads(arguments or "{}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse tool arguments: {e}") from e

    if not isinstance(parsed, dict):
        raise ValueError(
            f"Failed to parse tool arguments: expected a JSON object, got {type(parsed).__name__}"
        )
    return parsed


def format_tool_result(outcome: ToolExecutionOutcome) -> str:
    """Canonical string fed back to the model for a tool outcome."""
    if outcome.success:
        payload: dict[str, Any] = {"success": True}
        if outcome.data is not None:
            payload["data"] = outcome.data
        if outcome.summary is not None:
            payload["summary"] = outcome.summary
    else:
        payload = {"success": False}
        if outcome.error is not None:
            payload["error"] = outcome.error
    return json.dumps(payload, default=str)


class ToolExecutor:
    """Executes exactly one tool call at a time with permission checks."""

    def __init__(
        self,
        tools: list[BaseTool] | None = None,
        permission_manager: PermissionManager | None = None,
    ) -> None:
        """
        Initialize tool executor.

        Args:
            tools: Tools to make available (defaults to all registered tools)
            permission_manager: Fixed rule set. When omitted, rules are built
                per call from AgentConfig.tool_permissions.
        """
        self.tools = {
            tool.name: tool
            for tool in (tools if tools is not None else get_all_tools())
        }
        self.permission = permission_manager

    def get_tool_definitions(self) -> list[dict[str, Any]]:
        """Get the tool catalog advertised to the model."""
        return [tool.to_tool_definition() for tool in self.tools.values()]

    async def execute(
        self,
        call: ToolCallRequest,
        config: AgentConfig | None = None,
    ) -> ToolExecutionOutcome:
        """Execute a tool call and normalize the result.

        Tool-level problems (unknown tool, bad arguments, refused permission,
        exceptions raised by the tool) are returned as failed outcomes so the
        model can correct itself.
        """
        config = config or AgentConfig()

        tool = self.tools.get(call.name)
        if tool is None:
            return ToolExecutionOutcome.fail(f"Unknown tool: {call.name}")

        try:
            tool_input = parse_tool_arguments(call.arguments)
        except ValueError as e:
            return ToolExecutionOutcome.fail(str(e))

        # === Permission Check ===
        # Unreadable settings deny the call.
        try:
            permission = self.permission or PermissionManager.from_tool_permissions(
                config.tool_permissions
            )
            await permission.check(call.name, call.id, config.permission_handler)
        except (PermissionDeniedError, ValueError) as e:
            return ToolExecutionOutcome.fail(str(e))
        except Exception as e:
            return ToolExecutionOutcome.fail(f"Permission check failed for {call.name}: {e}")

        # === Tool Execution ===
        try:
            result = tool.execute(**tool_input)
            if inspect.isawaitable(result):
                result = await result
        except TypeError as e:
            error_msg = str(e)
            if "argument" not in error_msg:
                return ToolExecutionOutcome.fail(f"Error executing {call.name}: {e}")
            return ToolExecutionOutcome.fail(
                f"Tool '{call.name}' called with invalid parameters: {error_msg}\n"
                f"Provided parameters: {list(tool_input.keys())}\n"
                f"Required parameters: {self._required_parameters(tool)}\n"
                "Please retry the tool call with corrected arguments."
            )
        except Exception as e:
            return ToolExecutionOutcome.fail(f"Error executing {call.name}: {e}")

        if not isinstance(result, ToolExecutionOutcome):
            return ToolExecutionOutcome.fail(
                f"Tool '{call.name}' returned an invalid result: {type(result).__name__}"
            )
        return result

    @staticmethod
    def _required_parameters(tool: BaseTool) -> list[str]:
        return [
            key for key, value in tool.parameters.items()
            if value.get("required", False)
        ]
