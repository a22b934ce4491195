"""Config Tests."""

import json

from agentic_chat.config import Config, DEFAULT_CONFIG


def make_config(tmp_path, global_data=None, project_data=None):
    global_path = tmp_path / "global.json"
    project_path = tmp_path / "project.json"
    if global_data is not None:
        global_path.write_text(json.dumps(global_data))
    if project_data is not None:
        project_path.write_text(json.dumps(project_data))
    return Config(global_path=global_path, project_path=project_path)


class TestConfig:
    """Config 계층 테스트."""

    def test_defaults(self, config):
        assert config.get("provider") == "claude"
        assert config.get("max_agent_iterations") == 1000
        assert config.get("enable_tools") is True
        assert config.get("tool_permissions") == {}
        assert config.to_dict() == DEFAULT_CONFIG

    def test_defaults_not_shared(self, config):
        """기본값의 dict는 복사되어야 함."""
        config.get("tool_permissions")["bash"] = "deny"
        assert DEFAULT_CONFIG["tool_permissions"] == {}

    def test_project_overrides_global(self, config, tmp_path):
        config = make_config(
            tmp_path,
            global_data={"model": "global-model", "max_tokens": 100},
            project_data={"model": "project-model"},
        )

        assert config.get("model") == "project-model"
        assert config.get("max_tokens") == 100

    def test_invalid_file_ignored(self, config, tmp_path):
        (tmp_path / "global.json").write_text("{not json")
        (tmp_path / "project.json").write_text("[1, 2, 3]")

        config = Config(global_path=tmp_path / "global.json", project_path=tmp_path / "project.json")

        assert config.get("model") == DEFAULT_CONFIG["model"]

    def test_env_overrides_files(self, config, tmp_path, monkeypatch):
        monkeypatch.setenv("AGENTIC_CHAT_MAX_AGENT_ITERATIONS", "7")
        monkeypatch.setenv("AGENTIC_CHAT_DEBUG", "yes")
        monkeypatch.setenv("AGENTIC_CHAT_TOOL_PERMISSIONS", '{"*": "ask"}')

        config = make_config(tmp_path, project_data={"max_agent_iterations": 3})

        assert config.get("max_agent_iterations") == 7
        assert config.get("debug") is True
        assert config.get("tool_permissions") == {"*": "ask"}

    def test_env_value_parsing(self, config):
        assert config._parse_value("false") is False
        assert config._parse_value("NO") is False
        assert config._parse_value("42") == 42
        assert config._parse_value("0.5") == 0.5
        assert config._parse_value("claude-sonnet") == "claude-sonnet"
        assert config._parse_value("{broken") == "{broken"

    def test_set_overrides_everything(self, config, monkeypatch):
        config.set("max_agent_iterations", 2)
        assert config["max_agent_iterations"] == 2
        assert "max_agent_iterations" in config
        assert "nonexistent" not in config
        assert config.get("nonexistent", "fallback") == "fallback"
