"""설정 관리 클래스."""

import json
import os
from pathlib import Path
from typing import Any

from .defaults import DEFAULT_CONFIG

ENV_PREFIX = "AGENTIC_CHAT_"
GLOBAL_CONFIG_PATH = Path.home() / ".agentic_chat" / "config.json"
PROJECT_CONFIG_NAME = ".agentic_chat.json"


class Config:
    """
    계층적 설정 로더.
    우선순위: CLI 오버라이드 > 환경변수 > 프로젝트 설정 > 글로벌 설정 > 기본값
    """

    def __init__(
        self,
        global_path: Path | None = None,
        project_path: Path | None = None,
    ) -> None:
        self._config: dict[str, Any] = {}
        self._global_path = global_path or GLOBAL_CONFIG_PATH
        self._project_path = project_path or (Path.cwd() / PROJECT_CONFIG_NAME)
        self._load_defaults()
        self._load_file(self._global_path)
        self._load_file(self._project_path)
        self._load_env()

    def get(self, key: str, default: Any = None) -> Any:
        """설정값 조회."""
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """CLI 오버라이드용 설정."""
        self._config[key] = value

    def __getitem__(self, key: str) -> Any:
        return self._config[key]

    def __contains__(self, key: str) -> bool:
        return key in self._config

    def _load_defaults(self) -> None:
        """기본값 로드 (중첩 dict는 복사)."""
        for key, value in DEFAULT_CONFIG.items():
            self._config[key] = value.copy() if isinstance(value, dict) else value

    def _load_file(self, path: Path) -> None:
        """JSON 설정 파일 로드 (글로벌 또는 프로젝트)."""
        if not path.exists():
            return
        try:
            with open(path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError):
            return  # 잘못된 설정 파일은 무시
        if isinstance(data, dict):
            self._config.update(data)

    def _load_env(self) -> None:
        """환경변수 로드 (AGENTIC_CHAT_*)."""
        for key, value in os.environ.items():
            if key.startswith(ENV_PREFIX):
                config_key = key[len(ENV_PREFIX):].lower()
                self._config[config_key] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """환경변수 값을 적절한 타입으로 파싱."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        # JSON 객체 (예: AGENTIC_CHAT_TOOL_PERMISSIONS='{"*": "ask"}')
        if value.startswith("{"):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def to_dict(self) -> dict[str, Any]:
        """설정을 딕셔너리로 반환."""
        return self._config.copy()
