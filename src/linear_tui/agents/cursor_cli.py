"""Cursor Agent CLI provider.

Runs ``cursor-agent -p --output-format stream-json`` and decodes its NDJSON
stream. Tool calls arrive as ``tool_call`` events keyed by ``call_id``, with
the tool named by the single key of the ``tool_call`` object, e.g.::

    {"type":"tool_call","subtype":"started","call_id":"c1",
     "tool_call":{"readToolCall":{"args":{"path":"README.md"}}}}

Requires: `cursor-agent` (or its `agent` alias) on PATH.
"""

import json
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

CURSOR_BINARY = "cursor-agent"
CURSOR_BINARY_ALIASES = (CURSOR_BINARY, "agent")

_TOOL_CALL_SUFFIX = "ToolCall"


class CursorCLIProvider:
    """Cursor Agent provider — stream-json over stdout."""

    def __init__(self, look_path: LookPath | None = None) -> None:
        self._look_path = look_path or shutil.which
        self._tool_uses = ToolUseTracker()

    def name(self) -> str:
        return "Cursor"

    def resolve_binary(self) -> tuple[str | None, bool]:
        for candidate in CURSOR_BINARY_ALIASES:
            path = self._look_path(candidate)
            if path:
                return path, True
        return None, False

    def build_args(
        self, prompt: str, issue_context: str, options: AgentRunOptions
    ) -> list[str]:
        args = [
            "-p",
            "--force",
            "--output-format",
            "stream-json",
            "--stream-partial-output",
        ]
        if options.model:
            args += ["--model", options.model]
        if options.workspace:
            args += ["--workspace", options.workspace]
        if options.sandbox.strip():
            args += ["--sandbox", options.sandbox.strip()]
        args.append(build_agent_prompt(prompt, issue_context))
        return args

    def parse_event(self, line: bytes | str) -> tuple[AgentEvent | None, bool]:
        data = decode_json_line(line)
        if data is None:
            return None, False

        delta = _delta_text(data).strip()
        if delta:
            return AgentEvent(type=AgentEventType.ASSISTANT_DELTA, text=delta), True

        event_type = data.get("type")
        subtype = as_text(data.get("subtype"))

        if event_type == "system":
            session_id = as_text(data.get("session_id"))
            return (
                AgentEvent(
                    type=AgentEventType.SYSTEM,
                    subtype=subtype,
                    model=as_text(data.get("model")),
                    session_id=session_id,
                    resume_command=build_cursor_resume_command(session_id),
                ),
                True,
            )

        if event_type in ("user", "assistant"):
            text = join_message_text(as_dict(data.get("message")).get("content"))
            if text:
                kind = AgentEventType.USER if event_type == "user" else AgentEventType.ASSISTANT
                return AgentEvent(type=kind, text=text), True

        elif event_type == "thinking":
            return (
                AgentEvent(
                    type=AgentEventType.THINKING,
                    subtype=subtype,
                    text=as_text(data.get("text")),
                ),
                True,
            )

        elif event_type == "tool_call":
            return self._parse_tool_call(data, subtype), True

        elif event_type == "result":
            is_error = bool(data.get("is_error"))
            duration_ms = as_int(data.get("duration_ms"))
            if is_error:
                logger.error(
                    "Cursor result error subtype=%s duration_ms=%d", subtype, duration_ms
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

        text = _plain_text(data)
        if text:
            return AgentEvent(type=AgentEventType.UNKNOWN, text=text), True
        return None, False

    def parse_stream_line(self, line: bytes | str) -> tuple[str, bool]:
        data = decode_json_line(line)
        if data is None:
            return "", False

        delta = _delta_text(data).strip()
        if delta:
            return f"Assistant delta: {delta}", True

        event_type = data.get("type")
        subtype = as_text(data.get("subtype"))
        message_text = join_message_text(as_dict(data.get("message")).get("content")).strip()

        if event_type == "system":
            display = f"System {subtype}".strip()
            model = as_text(data.get("model"))
            if model:
                display += f" ({model})"
            return display, True
        if event_type == "user" and message_text:
            return f"User: {message_text}", True
        if event_type == "assistant" and message_text:
            return f"Assistant: {message_text}", True
        if event_type == "thinking":
            text = as_text(data.get("text")).strip()
            if text:
                return f"Thinking: {text}", True
            return "", False
        if event_type == "tool_call":
            name, payload = _tool_payload(data.get("tool_call"))
            detail = _tool_detail(payload)
            display = f"Tool call {subtype}:".strip()
            return " ".join(part for part in (display, name, detail) if part), True
        if event_type == "result":
            result = as_text(data.get("result")).strip() or subtype
            return f"Result: {result}".strip(), True

        text = _plain_text(data) or message_text
        if not text:
            return "", False
        return text, True

    def _parse_tool_call(self, data: dict[str, Any], subtype: str) -> AgentEvent:
        call_id = as_text(data.get("call_id"))
        name, payload = _tool_payload(data.get("tool_call"))
        detail = _tool_detail(payload)

        if subtype == ToolCallStatus.COMPLETED:
            info = self._tool_uses.pop(call_id) if call_id else None
            if info is not None:
                name = info.name or name
                detail = info.detail or detail
            return AgentEvent(
                type=AgentEventType.TOOL_CALL,
                subtype=ToolCallStatus.COMPLETED,
                tool=AgentToolCall(
                    name=name or "tool",
                    path=detail,
                    status=ToolCallStatus.COMPLETED,
                    summary=summarize_cursor_tool_result(payload.get("result")),
                ),
            )

        self._tool_uses.remember(call_id, name, detail)
        return AgentEvent(
            type=AgentEventType.TOOL_CALL,
            subtype=subtype or ToolCallStatus.STARTED,
            tool=AgentToolCall(
                name=name or "tool",
                path=detail,
                status=ToolCallStatus.STARTED,
            ),
        )


def build_cursor_resume_command(session_id: str) -> str:
    if not session_id.strip():
        return ""
    return f"{CURSOR_BINARY} --resume {session_id}"


def summarize_cursor_tool_result(result: Any) -> str:
    """Summarize a ``result`` payload: ``{"success": {...}}`` or ``{"error": {...}}``."""
    result = as_dict(result)
    if "error" in result:
        error = result["error"]
        if isinstance(error, dict):
            message = as_text(error.get("errorMessage")) or as_text(error.get("message"))
            return f"error: {message}".strip() if message else "error"
        return f"error: {error}".strip()

    success = result.get("success")
    if isinstance(success, str):
        return success.strip()
    success = as_dict(success)
    if not success:
        return ""
    if "exitCode" in success:
        return f"exit {success['exitCode']}"
    for key, label in (
        ("totalLines", "lines"),
        ("linesCreated", "lines written"),
        ("totalFiles", "files"),
        ("totalMatchedLines", "matches"),
    ):
        count = as_int(success.get(key))
        if count > 0:
            return f"{count} {label}"
    content = as_text(success.get("content")).strip()
    if content:
        return content.splitlines()[0]
    return ""


def _delta_text(data: dict[str, Any]) -> str:
    delta = as_dict(data.get("delta"))
    return as_text(delta.get("text")) or as_text(delta.get("content"))


def _plain_text(data: dict[str, Any]) -> str:
    for candidate in (as_text(data.get("text")), as_text(data.get("content"))):
        if candidate.strip():
            return candidate.strip()
    return ""


def _tool_payload(tool_call: Any) -> tuple[str, dict[str, Any]]:
    """Return ``(tool name, payload)`` from a ``tool_call`` object."""
    tool_call = as_dict(tool_call)
    for key, value in tool_call.items():
        payload = as_dict(value)
        if key == "function":
            return as_text(payload.get("name")), payload
        if key.endswith(_TOOL_CALL_SUFFIX):
            key = key[: -len(_TOOL_CALL_SUFFIX)]
        return key, payload
    return "", {}


def _tool_detail(payload: dict[str, Any]) -> str:
    args = payload.get("args")
    if args is None:
        args = payload.get("arguments")
    if isinstance(args, str):
        try:
            args = json.loads(args)
        except json.JSONDecodeError:
            return args.strip()
    return summarize_tool_input(args)

