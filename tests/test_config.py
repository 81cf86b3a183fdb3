"""Tests for agent settings."""

import json
from unittest.mock import patch

import pytest

from linear_tui.agents.backend import AgentRunOptions
from linear_tui.config import Settings, get_settings


@pytest.fixture
def config_dir(tmp_path):
    with patch("linear_tui.config.get_config_dir", return_value=tmp_path):
        yield tmp_path


class TestSettingsDefaults:
    def test_defaults(self, config_dir):
        settings = Settings.load()
        assert settings.agent_provider == "cursor"
        assert settings.agent_sandbox == "enabled"
        assert settings.agent_model == ""
        assert [c.name for c in settings.agent_commands] == ["Claude", "Cursor"]

    def test_env_prefix(self, config_dir, monkeypatch):
        monkeypatch.setenv("LINEAR_TUI_AGENT_PROVIDER", "claude")
        monkeypatch.setenv("LINEAR_TUI_AGENT_MODEL", "sonnet")
        settings = Settings.load()
        assert settings.agent_provider == "claude"
        assert settings.agent_model == "sonnet"


class TestSettingsFile:
    def test_loads_file(self, config_dir):
        (config_dir / "settings.json").write_text(
            json.dumps(
                {
                    "agent_provider": "claude",
                    "agent_sandbox": "disabled",
                    "agent_commands": [{"name": "Echo", "command": "echo {prompt}"}],
                }
            )
        )
        settings = Settings.load()
        assert settings.agent_provider == "claude"
        assert settings.agent_sandbox == "disabled"
        assert settings.find_command("echo").command == "echo {prompt}"

    def test_corrupt_file_falls_back(self, config_dir):
        (config_dir / "settings.json").write_text("{not json")
        assert Settings.load().agent_provider == "cursor"

    def test_invalid_values_fall_back(self, config_dir):
        (config_dir / "settings.json").write_text(json.dumps({"agent_commands": "nope"}))
        assert len(Settings.load().agent_commands) == 2

    def test_get_settings_reload(self, config_dir):
        get_settings.cache_clear()
        first = get_settings()
        assert get_settings() is first
        (config_dir / "settings.json").write_text(json.dumps({"agent_model": "opus"}))
        assert get_settings(force_reload=True).agent_model == "opus"
        get_settings.cache_clear()


class TestRunOptions:
    def test_from_settings(self):
        settings = Settings(agent_model="m", agent_sandbox="enabled", agent_workspace="/w")
        assert settings.run_options() == AgentRunOptions(
            workspace="/w", model="m", sandbox="enabled"
        )

    def test_workspace_override(self):
        settings = Settings(agent_workspace="/w")
        assert settings.run_options("/other").workspace == "/other"
        assert settings.run_options("").workspace == ""

    def test_find_command_case_insensitive(self):
        settings = Settings()
        assert settings.find_command(" claude ").command == "claude -p {prompt}"
        assert settings.find_command("missing") is None
