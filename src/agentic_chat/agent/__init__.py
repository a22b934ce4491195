"""Agent core module."""

from .approval import ApprovalPrompt
from .cancellation import CancellationToken, RequestCancelledError
from .executor import ToolExecutor, format_tool_result, parse_tool_arguments
from .history import build_messages
from .loop import AgentLoop, MAX_ITERATIONS_NOTICE, SELF_CORRECTION_GUIDANCE
from .observer import AgentObserver
from .options import AgentConfig, AgenticChatOptions, PastedImage
from .session import ChatTurn, Session
from .states import LoopState, TerminationReason, LoopContext
from .message import (
    AssistantMessage,
    ContentPart,
    ImagePart,
    Message,
    SystemMessage,
    TextPart,
    ToolCallRequest,
    ToolMessage,
    UserMessage,
    message_from_dict,
    part_from_dict,
    register_part_type,
)
from .permissions import (
    Permission,
    PermissionDeniedError,
    PermissionRule,
    PermissionManager,
)

__all__ = [
    "AgentLoop",
    "AgentObserver",
    "AgentConfig",
    "AgenticChatOptions",
    "PastedImage",
    "ApprovalPrompt",
    "CancellationToken",
    "RequestCancelledError",
    "ToolExecutor",
    "format_tool_result",
    "parse_tool_arguments",
    "build_messages",
    "MAX_ITERATIONS_NOTICE",
    "SELF_CORRECTION_GUIDANCE",
    "ChatTurn",
    "Session",
    "LoopState",
    "TerminationReason",
    "LoopContext",
    # Messages
    "Message",
    "SystemMessage",
    "UserMessage",
    "AssistantMessage",
    "ToolMessage",
    "ToolCallRequest",
    "ContentPart",
    "TextPart",
    "ImagePart",
    "message_from_dict",
    "part_from_dict",
    "register_part_type",
    # Permissions
    "Permission",
    "PermissionDeniedError",
    "PermissionRule",
    "PermissionManager",
]
