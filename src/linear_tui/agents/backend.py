"""Provider Protocol — the adapter interface every agent CLI implements.

A provider knows how to find its binary, build argv for a non-interactive
streaming run, and pull display text out of its own line protocol.
Providers that can decode lines into ``AgentEvent`` additionally implement
``EventParser``; the runner checks for it per line.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from linear_tui.agents.protocol import AgentEvent

logger = logging.getLogger(__name__)

# shutil.which-compatible lookup: returns the resolved path or None
LookPath = Callable[[str], str | None]

# Keys tried in order when picking a short detail for a tool call
_TOOL_DETAIL_KEYS = ("path", "file_path", "pattern", "command", "url", "query")


@dataclass(frozen=True)
class AgentRunOptions:
    """Optional overrides for one agent run."""

    workspace: str = ""  # working directory and CLI workspace flag
    model: str = ""  # provider-specific model selector
    sandbox: str = ""  # sandbox policy, e.g. "enabled" / "disabled"


@runtime_checkable
class Provider(Protocol):
    """Protocol that all agent CLI providers must implement."""

    def name(self) -> str: ...

    def resolve_binary(self) -> tuple[str | None, bool]: ...

    def build_args(
        self, prompt: str, issue_context: str, options: AgentRunOptions
    ) -> list[str]: ...

    def parse_stream_line(self, line: bytes | str) -> tuple[str, bool]: ...


@runtime_checkable
class EventParser(Protocol):
    """Optional capability: decode a raw stream line into an ``AgentEvent``."""

    def parse_event(self, line: bytes | str) -> tuple[AgentEvent | None, bool]: ...


def build_agent_prompt(prompt: str, issue_context: str) -> str:
    """Combine the user instruction with the issue context."""
    return "\n".join(
        [
            "Use the issue context below to respond to the instruction.",
            "",
            "Instruction:",
            prompt.strip(),
            "",
            "Issue Context:",
            issue_context.strip(),
        ]
    ).strip()


def decode_json_line(line: bytes | str) -> dict[str, Any] | None:
    """Decode one protocol line into a JSON object, or None for anything else."""
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    trimmed = line.strip()
    if not trimmed.startswith("{"):
        return None
    try:
        data = json.loads(trimmed)
    except json.JSONDecodeError as exc:
        logger.debug("Failed to decode stream line: %s", exc)
        return None
    if not isinstance(data, dict):
        return None
    return data


def as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    return 0


def join_message_text(content: Any) -> str:
    """Join the text blocks of a message ``content`` list."""
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    return "".join(as_text(as_dict(item).get("text")) for item in content)


def summarize_tool_input(tool_input: Any) -> str:
    """Pick a concise detail string (path, pattern, command, ...) from tool input."""
    tool_input = as_dict(tool_input)
    for key in _TOOL_DETAIL_KEYS:
        value = tool_input.get(key)
        if value is not None and value != "":
            return str(value)
    return ""


@dataclass(frozen=True)
class ToolUseInfo:
    name: str
    detail: str


class ToolUseTracker:
    """Correlates tool-use starts with their results by tool-use id.

    Owned by a single provider instance for the lifetime of a run. Start and
    finish may be observed from either stream reader, so access is locked.
    Records are removed once consumed.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._uses: dict[str, ToolUseInfo] = {}

    def remember(self, tool_use_id: str, name: str, detail: str) -> None:
        if not tool_use_id.strip():
            return
        with self._lock:
            self._uses[tool_use_id] = ToolUseInfo(name=name, detail=detail)

    def pop(self, tool_use_id: str) -> ToolUseInfo | None:
        with self._lock:
            return self._uses.pop(tool_use_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._uses)
