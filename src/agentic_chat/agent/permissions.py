"""
Permission System - Rule-based permission management.

Decides, before a tool runs, whether it is allowed outright, denied, or
needs the user's answer through the run's permission handler.
- Permission enum: ALLOW, DENY, ASK
- PermissionRule: rule matched against the tool name
- PermissionManager: rule evaluation and handler dispatch
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any
import fnmatch

if TYPE_CHECKING:
    from agentic_chat.config import Config
    from .options import PermissionHandler


class Permission(Enum):
    """Permission decision type."""

    ALLOW = auto()  # Auto approve
    DENY = auto()   # Auto deny
    ASK = auto()    # Ask user

    @classmethod
    def parse(cls, value: str) -> Permission:
        """Parse a config value ("allow" | "ask" | "?" | "deny").

        Raises:
            ValueError: Anything else, including non-string values.
        """
        if not isinstance(value, str):
            raise ValueError(f"Unknown permission: {value!r}")
        normalized = value.strip().lower()
        if normalized == "?":
            return cls.ASK
        try:
            return cls[normalized.upper()]
        except KeyError:
            raise ValueError(f"Unknown permission: {value!r}") from None


class PermissionDeniedError(Exception):
    """A tool call was refused by settings or by the user."""


@dataclass
class PermissionRule:
    """Permission rule definition."""

    tool_pattern: str = "*"
    permission: Permission = Permission.ASK
    description: str = ""
    priority: int = 0  # Higher priority evaluated first

    def matches(self, tool_name: str) -> bool:
        """Check if rule matches the tool name."""
        return fnmatch.fnmatchcase(tool_name, self.tool_pattern)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "tool_pattern": self.tool_pattern,
            "permission": self.permission.name.lower(),
            "description": self.description,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PermissionRule:
        """Create from dictionary."""
        return cls(
            tool_pattern=data.get("tool_pattern", "*"),
            permission=Permission.parse(data.get("permission", "ask")),
            description=data.get("description", ""),
            priority=data.get("priority", 0),
        )


class PermissionManager:
    """Rule-based permission manager.

    Exact tool names take precedence over patterns, and patterns over the
    "*" fallback. A tool no rule matches is allowed.
    """

    def __init__(
        self,
        enabled: bool = True,
        rules: list[PermissionRule] | None = None,
        default: Permission = Permission.ALLOW,
    ) -> None:
        self.enabled = enabled
        self.default = default
        self.rules: list[PermissionRule] = list(rules or [])
        self.rules.sort(key=lambda r: r.priority, reverse=True)

        # (tool_name, decision) history
        self.history: list[tuple[str, Permission]] = []

    def add_rule(self, rule: PermissionRule) -> None:
        """Add rule and re-sort."""
        self.rules.append(rule)
        self.rules.sort(key=lambda r: r.priority, reverse=True)

    def evaluate(self, tool_name: str) -> Permission:
        """Evaluate rules in order to determine permission."""
        for rule in self.rules:
            if rule.matches(tool_name):
                return rule.permission
        return self.default

    async def check(
        self,
        tool_name: str,
        tool_call_id: str,
        handler: PermissionHandler | None,
    ) -> None:
        """
        Check permission, prompting through ``handler`` for ASK rules.

        Raises:
            PermissionDeniedError: The call must not run.
        """
        if not self.enabled:
            return

        permission = self.evaluate(tool_name)

        if permission is Permission.ALLOW:
            self.history.append((tool_name, Permission.ALLOW))
            return

        if permission is Permission.DENY:
            self.history.append((tool_name, Permission.DENY))
            raise PermissionDeniedError(f"Tool '{tool_name}' is disabled in settings.")

        if handler is None:
            self.history.append((tool_name, Permission.DENY))
            raise PermissionDeniedError("No permission handler available.")

        approved = await handler(tool_call_id, tool_name)
        self.history.append((tool_name, Permission.ALLOW if approved else Permission.DENY))
        if not approved:
            raise PermissionDeniedError(
                f"Permission Denied: User denied permission to execute tool '{tool_name}'."
            )

    def get_history(self) -> list[tuple[str, Permission]]:
        """Return history."""
        return self.history.copy()

    def clear_history(self) -> None:
        """Clear history."""
        self.history.clear()

    @classmethod
    def from_tool_permissions(cls, permissions: dict[str, str]) -> PermissionManager:
        """Create from a ``{tool_name: "allow" | "ask" | "deny"}`` mapping.

        "*" sets the fallback; names containing glob characters become
        pattern rules ranked below exact names.
        """
        default = Permission.ALLOW
        rules: list[PermissionRule] = []
        for pattern, value in permissions.items():
            permission = Permission.parse(value)
            if pattern == "*":
                default = permission
                continue
            is_glob = any(ch in pattern for ch in "*?[")
            rules.append(PermissionRule(
                tool_pattern=pattern,
                permission=permission,
                description=f"Configured: {value}",
                priority=0 if is_glob else 10,
            ))
        return cls(rules=rules, default=default)

    @classmethod
    def from_config(cls, config: Config) -> PermissionManager:
        """Create PermissionManager from config."""
        return cls.from_tool_permissions(config.get("tool_permissions") or {})
