"""Shared fixtures."""

import os

import pytest

from agentic_chat.config import Config
from agentic_chat.tools import ToolRegistry


@pytest.fixture
def config(tmp_path, monkeypatch):
    """기본값만 가진 Config (사용자 설정 파일 / 환경변수 무시)."""
    for key in list(os.environ):
        if key.startswith("AGENTIC_CHAT_"):
            monkeypatch.delenv(key)
    return Config(
        global_path=tmp_path / "global.json",
        project_path=tmp_path / "project.json",
    )


@pytest.fixture(autouse=True)
def clean_tool_registry():
    """테스트 간 도구 레지스트리 격리."""
    saved_tools = dict(ToolRegistry._tools)
    ToolRegistry.clear()
    yield
    ToolRegistry.clear()
    ToolRegistry._tools.update(saved_tools)
