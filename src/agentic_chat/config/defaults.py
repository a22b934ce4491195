"""기본 설정값 정의."""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    # LLM 설정
    "provider": "claude",
    "model": "claude-sonnet-4-20250514",
    "max_tokens": 16384,
    "api_key": None,

    # 에이전트 설정
    "max_agent_iterations": 1000,
    "enable_tools": True,
    "include_images": True,

    # 도구 권한 설정 (도구 이름 → "allow" | "ask" | "deny", "*"는 기본값)
    "tool_permissions": {},

    # 기능 설정
    "debug": False,
}
