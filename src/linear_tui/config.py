"""Configuration management for linear-tui agents.

Settings come from ``~/.linear-tui/settings.json`` when present, then
``LINEAR_TUI_*`` environment variables, then defaults.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from linear_tui.agents.backend import AgentRunOptions

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".linear-tui"
DEFAULT_AGENT_PROVIDER = "cursor"
DEFAULT_AGENT_SANDBOX = "enabled"


def get_config_dir() -> Path:
    """Get the config directory, creating if needed."""
    config_dir = Path.home() / CONFIG_DIR_NAME
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Get the settings file path."""
    return get_config_dir() / "settings.json"


def default_log_file() -> str:
    return str(Path.home() / CONFIG_DIR_NAME / "app.log")


class AgentCommand(BaseModel):
    """A named custom command template, e.g. ``claude -p {prompt}``."""

    name: str
    command: str


def default_agent_commands() -> list[AgentCommand]:
    return [
        AgentCommand(name="Claude", command="claude -p {prompt}"),
        AgentCommand(name="Cursor", command="cursor-agent -p --force {prompt}"),
    ]


class Settings(BaseSettings):
    """Agent settings with env and file support."""

    model_config = SettingsConfigDict(
        env_prefix="LINEAR_TUI_",
        env_file=".env",
        extra="ignore",
    )

    # Agent provider
    agent_provider: str = Field(
        default=DEFAULT_AGENT_PROVIDER, description="Agent provider key: 'cursor' or 'claude'"
    )
    agent_sandbox: str = Field(
        default=DEFAULT_AGENT_SANDBOX,
        description="Sandbox policy passed to the agent: 'enabled' or 'disabled'",
    )
    agent_model: str = Field(
        default="", description="Provider-specific model (empty = CLI default)"
    )
    agent_workspace: str = Field(
        default="", description="Working directory for agent runs (empty = current directory)"
    )
    agent_commands: list[AgentCommand] = Field(
        default_factory=default_agent_commands,
        description="Custom command templates; {prompt} and {branch} are substituted",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level: DEBUG, INFO, WARNING, ERROR")
    log_file: str = Field(
        default_factory=default_log_file, description="Log file path (empty disables file logs)"
    )

    def run_options(self, workspace: str | None = None) -> AgentRunOptions:
        """Build per-run options, letting *workspace* override the configured one."""
        return AgentRunOptions(
            workspace=workspace if workspace is not None else self.agent_workspace,
            model=self.agent_model,
            sandbox=self.agent_sandbox,
        )

    def find_command(self, name: str) -> AgentCommand | None:
        wanted = name.strip().lower()
        for command in self.agent_commands:
            if command.name.strip().lower() == wanted:
                return command
        return None

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from the settings file, falling back to env/defaults."""
        config_path = get_config_path()
        if config_path.exists():
            try:
                data = json.loads(config_path.read_text())
                return cls(**data)
            except (json.JSONDecodeError, OSError, TypeError, ValidationError) as exc:
                logger.warning("Ignoring unreadable settings file %s: %s", config_path, exc)
        return cls()


@lru_cache
def get_settings(force_reload: bool = False) -> Settings:
    """Get cached settings instance."""
    if force_reload:
        get_settings.cache_clear()
    return Settings.load()
