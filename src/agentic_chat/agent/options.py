"""Agent configuration and per-call options."""

from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable
from uuid import uuid4

if TYPE_CHECKING:
    from agentic_chat.config import Config

# (tool_call_id, tool_name) -> approved?
PermissionHandler = Callable[[str, str], Awaitable[bool]]

SUPPORTED_IMAGE_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
)

DEFAULT_MAX_AGENT_ITERATIONS = 1000


@dataclass(frozen=True)
class AgentConfig:
    """Settings the loop and the tool dispatcher read for one run."""

    max_agent_iterations: int = DEFAULT_MAX_AGENT_ITERATIONS
    tool_permissions: dict[str, str] = field(default_factory=dict)
    permission_handler: PermissionHandler | None = None

    @classmethod
    def from_config(cls, config: Config) -> AgentConfig:
        """Build the stored defaults from config, ignoring non-positive caps."""
        max_iter = config.get("max_agent_iterations", DEFAULT_MAX_AGENT_ITERATIONS)
        if not isinstance(max_iter, int) or max_iter <= 0:
            max_iter = DEFAULT_MAX_AGENT_ITERATIONS

        permissions = config.get("tool_permissions") or {}
        if not isinstance(permissions, dict):
            permissions = {}

        return cls(
            max_agent_iterations=max_iter,
            tool_permissions=dict(permissions),
        )


@dataclass(frozen=True)
class PastedImage:
    """An image attachment for the new user turn."""

    image: str  # http(s) URL or data: URL
    mime_type: str = "image/png"
    id: str = field(default_factory=lambda: str(uuid4()))

    @classmethod
    def from_path(cls, path: str | Path) -> PastedImage:
        """Read a local image file and encode it as a base64 data URL.

        Raises:
            ValueError: The file is not a supported image type.
        """
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        if mime_type is None or mime_type.lower() not in SUPPORTED_IMAGE_TYPES:
            raise ValueError(f"Unsupported image type: {path.name}")

        encoded = base64.b64encode(path.read_bytes()).decode("ascii")
        return cls(image=f"data:{mime_type};base64,{encoded}", mime_type=mime_type)


@dataclass
class AgenticChatOptions:
    """Per-call options for AgentLoop.run()."""

    enable_tools: bool = True
    include_images: bool = True
    pasted_images: list[PastedImage] = field(default_factory=list)
    permission_handler: PermissionHandler | None = None
