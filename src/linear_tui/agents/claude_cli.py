"""Claude Code CLI provider.

Runs ``claude -p`` with ``--output-format stream-json`` and decodes its
NDJSON stream. Tool calls arrive as ``tool_use`` blocks inside assistant
messages and finish as ``tool_result`` blocks inside user messages; the two
are matched by tool-use id.

Requires: `claude` on PATH (npm install -g @anthropic-ai/claude-code).
"""

import logging
import shutil
from typing import Any

from linear_tui.agents.backend import (
    AgentRunOptions,
    LookPath,
    ToolUseTracker,
    as_dict,
    as_int,
    as_text,
    build_agent_prompt,
    decode_json_line,
    join_message_text,
    summarize_tool_input,
)
from linear_tui.agents.protocol import (
    AgentEvent,
    AgentEventType,
    AgentToolCall,
    ToolCallStatus,
)

logger = logging.getLogger(__name__)

CLAUDE_BINARY = "claude"

# sandbox setting -> --permission-mode value
_PERMISSION_MODES = {
    "enabled": "default",
    "disabled": "bypassPermissions",
}


class ClaudeCLIProvider:
    """Claude Code provider — stream-json over stdout."""

    def __init__(self, look_path: LookPath | None = None) -> None:
        self._look_path = look_path or shutil.which
        self._tool_uses = ToolUseTracker()

    def name(self) -> str:
        return "Claude"

    def resolve_binary(self) -> tuple[str | None, bool]:
        path = self._look_path(CLAUDE_BINARY)
        if not path:
            return None, False
        return path, True

    def build_args(
        self, prompt: str, issue_context: str, options: AgentRunOptions
    ) -> list[str]:
        args = [
            "-p",
            "--verbose",
            "--output-format",
            "stream-json",
            "--include-partial-messages",
        ]
        if options.model:
            args += ["--model", options.model]
        if options.workspace:
            args += ["--add-dir", options.workspace]
        mode = claude_permission_mode(options.sandbox)
        if mode:
            args += ["--permission-mode", mode]
        args.append(build_agent_prompt(prompt, issue_context))
        return args

    def parse_event(self, line: bytes | str) -> tuple[AgentEvent | None, bool]:
        data = decode_json_line(line)
        if data is None:
            return None, False

        delta = as_text(as_dict(data.get("delta")).get("text")).strip()
        if delta:
            return AgentEvent(type=AgentEventType.ASSISTANT_DELTA, text=delta), True

        event_type = data.get("type")
        content = as_dict(data.get("message")).get("content")

        if event_type == "stream_event":
            partial = self._parse_partial(as_dict(data.get("event")))
            if partial is not None:
                return partial, True

        elif event_type == "system":
            session_id = as_text(data.get("session_id"))
            return (
                AgentEvent(
                    type=AgentEventType.SYSTEM,
                    subtype=as_text(data.get("subtype")),
                    model=as_text(data.get("model")),
                    session_id=session_id,
                    resume_command=build_claude_resume_command(session_id),
                ),
                True,
            )

        elif event_type == "assistant":
            tool_event = self._parse_tool_use(content)
            if tool_event is not None:
                return tool_event, True
            text = join_message_text(content)
            if text:
                return AgentEvent(type=AgentEventType.ASSISTANT, text=text), True
            thinking = _join_thinking(content)
            if thinking:
                return AgentEvent(type=AgentEventType.THINKING, text=thinking), True

        elif event_type == "user":
            tool_event = self._parse_tool_result(content, data.get("tool_use_result"))
            if tool_event is not None:
                return tool_event, True
            text = join_message_text(content)
            if text:
                return AgentEvent(type=AgentEventType.USER, text=text), True

        elif event_type == "result":
            is_error = bool(data.get("is_error"))
            duration_ms = as_int(data.get("duration_ms"))
            subtype = as_text(data.get("subtype"))
            if is_error:
                logger.error(
                    "Claude result error subtype=%s duration_ms=%d", subtype, duration_ms
                )
            return (
                AgentEvent(
                    type=AgentEventType.RESULT,
                    subtype=subtype,
                    text=as_text(data.get("result")),
                    duration_ms=duration_ms,
                    is_error=is_error,
                ),
                True,
            )

        text = extract_claude_event_text(data)
        if text:
            return AgentEvent(type=AgentEventType.UNKNOWN, text=text), True
        return None, False

    def parse_stream_line(self, line: bytes | str) -> tuple[str, bool]:
        data = decode_json_line(line)
        if data is None:
            return "", False
        text = extract_claude_event_text(data)
        if not text:
            return "", False
        return text, True

    @staticmethod
    def _parse_partial(event: dict[str, Any]) -> AgentEvent | None:
        """Unwrap ``--include-partial-messages`` content block deltas."""
        if event.get("type") != "content_block_delta":
            return None
        delta = as_dict(event.get("delta"))
        if delta.get("type") == "thinking_delta":
            thinking = as_text(delta.get("thinking"))
            if thinking:
                return AgentEvent(type=AgentEventType.THINKING, text=thinking)
            return None
        text = as_text(delta.get("text"))
        if text.strip():
            return AgentEvent(type=AgentEventType.ASSISTANT_DELTA, text=text)
        return None

    def _parse_tool_use(self, content: Any) -> AgentEvent | None:
        for item in _blocks(content):
            if item.get("type") != "tool_use":
                continue
            name = as_text(item.get("name")).strip()
            detail = summarize_tool_input(item.get("input"))
            self._tool_uses.remember(as_text(item.get("id")), name, detail)
            return AgentEvent(
                type=AgentEventType.TOOL_CALL,
                subtype=ToolCallStatus.STARTED,
                tool=AgentToolCall(name=name, path=detail, status=ToolCallStatus.STARTED),
            )
        return None

    def _parse_tool_result(self, content: Any, tool_use_result: Any) -> AgentEvent | None:
        for item in _blocks(content):
            if item.get("type") != "tool_result":
                continue
            tool_use_id = as_text(item.get("tool_use_id")).strip()
            if not tool_use_id:
                return None
            info = self._tool_uses.pop(tool_use_id)
            name = info.name.strip() if info else ""
            return AgentEvent(
                type=AgentEventType.TOOL_CALL,
                subtype=ToolCallStatus.COMPLETED,
                tool=AgentToolCall(
                    name=name or "tool",
                    path=info.detail if info else "",
                    status=ToolCallStatus.COMPLETED,
                    summary=summarize_claude_tool_result(item.get("content"), tool_use_result),
                ),
            )
        return None


def build_claude_resume_command(session_id: str) -> str:
    if not session_id.strip():
        return ""
    return f"{CLAUDE_BINARY} --resume {session_id}"


def claude_permission_mode(sandbox: str) -> str:
    """Map a sandbox setting to a ``--permission-mode`` value ("" when unset)."""
    return _PERMISSION_MODES.get(sandbox.strip().lower(), "")


def extract_claude_event_text(data: dict[str, Any]) -> str:
    """Return the most relevant display text for a stream event."""
    for candidate in (
        as_text(as_dict(data.get("delta")).get("text")),
        as_text(data.get("text")),
        as_text(data.get("content")),
    ):
        if candidate.strip():
            return candidate.strip()
    return join_message_text(as_dict(data.get("message")).get("content"))


def summarize_claude_tool_result(content: Any, tool_use_result: Any) -> str:
    """Convert a tool_result payload into a short summary."""
    if isinstance(content, str):
        return content.strip()
    if isinstance(content, list):
        text = join_message_text(content).strip()
        return text or str(content).strip()
    if isinstance(content, dict):
        return str(content).strip()

    if isinstance(tool_use_result, str):
        return tool_use_result.strip()
    if isinstance(tool_use_result, dict):
        filenames = tool_use_result.get("filenames")
        if isinstance(filenames, list) and filenames:
            return ", ".join(str(name) for name in filenames).strip()
        num_files = as_int(tool_use_result.get("numFiles"))
        if num_files > 0:
            return f"{num_files} files"
        return ""
    if tool_use_result is not None:
        return str(tool_use_result).strip()
    return ""


def _blocks(content: Any) -> list[dict[str, Any]]:
    if not isinstance(content, list):
        return []
    return [item for item in content if isinstance(item, dict)]


def _join_thinking(content: Any) -> str:
    return "".join(
        as_text(item.get("thinking")) for item in _blocks(content) if item.get("type") == "thinking"
    )

