"""Stream buffer — turns agent events into display lines.

Thinking deltas are batched into readable chunks, assistant text is held
back as the final answer, and the ``result`` event marks the run done.
The buffer is owned by a single consumer and is not thread-safe.
"""

from dataclasses import dataclass, field
from enum import Enum

from linear_tui.agents.protocol import AgentEvent, AgentEventType, ToolCallStatus

# Pending thinking text is flushed as one line once it reaches this size
THINKING_FLUSH_CHARS = 400


class StreamLineKind(str, Enum):
    THINKING = "thinking"
    SYSTEM = "system"
    ASSISTANT_DELTA = "assistant_delta"
    TOOL_CALL = "tool_call"
    UNKNOWN = "unknown"


@dataclass
class StreamLine:
    kind: StreamLineKind
    text: str


@dataclass
class StreamUpdate:
    """Result of appending one event to the buffer."""

    lines: list[StreamLine] = field(default_factory=list)
    done: bool = False
    final_text: str = ""


class AgentStreamBuffer:
    def __init__(self) -> None:
        self._thinking: list[str] = []
        self._thinking_size = 0
        self._assistant: list[str] = []
        self.done = False

    def append(self, event: AgentEvent) -> StreamUpdate:
        """Consume one event and return any lines that became ready."""
        update = StreamUpdate()

        if event.type == AgentEventType.THINKING:
            if event.text:
                self._thinking.append(event.text)
                self._thinking_size += len(event.text)
            if self._thinking_size >= THINKING_FLUSH_CHARS:
                self._flush_thinking(update)
            return update

        self._flush_thinking(update)

        if event.type == AgentEventType.ASSISTANT:
            self._assistant.append(event.text)
            return update

        if event.type == AgentEventType.RESULT:
            update.done = True
            update.final_text = "".join(self._assistant).strip() or event.text.strip()
            self.done = True
            self._assistant.clear()
            return update

        if event.type == AgentEventType.USER:
            # The agent echoes the prompt and tool results back as user turns
            return update

        text = format_event(event)
        if text:
            update.lines.append(StreamLine(kind=StreamLineKind(event.type.value), text=text))
        return update

    def flush(self) -> StreamUpdate:
        """Return pending thinking text, e.g. when a run ends without a result."""
        update = StreamUpdate(done=self.done)
        self._flush_thinking(update)
        return update

    def _flush_thinking(self, update: StreamUpdate) -> None:
        if not self._thinking:
            return
        text = "".join(self._thinking).strip()
        self._thinking.clear()
        self._thinking_size = 0
        if text:
            update.lines.append(StreamLine(kind=StreamLineKind.THINKING, text=text))


def format_event(event: AgentEvent) -> str:
    """Render a pass-through event as one display line."""
    if event.type == AgentEventType.SYSTEM:
        parts = [f"Session {event.subtype}".strip()]
        if event.model:
            parts.append(f"model: {event.model}")
        if event.resume_command:
            parts.append(f"resume: {event.resume_command}")
        return " | ".join(parts)

    if event.type == AgentEventType.TOOL_CALL:
        tool = event.tool
        if tool is None:
            return ""
        verb = "Completed" if tool.status == ToolCallStatus.COMPLETED else "Running"
        text = f"{verb} {tool.name}"
        if tool.path:
            text += f" {tool.path}"
        summary = tool.summary.strip()
        if summary:
            text += f" -> {summary.splitlines()[0]}"
        return text

    return event.text.strip()
