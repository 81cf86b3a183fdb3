"""Agent Protocol — the normalized event model every provider decodes into."""

from dataclasses import dataclass
from enum import Enum


class AgentEventType(str, Enum):
    """High-level streaming event types.

    Types:
        - "system": Session/model metadata, carries a resume command
        - "user": User message echoed back by the agent
        - "assistant": Complete assistant message text
        - "assistant_delta": Incremental assistant text
        - "thinking": Incremental reasoning text
        - "tool_call": Tool started/completed (see ``AgentEvent.tool``)
        - "result": Terminal event for the run
        - "unknown": Fallback text with no structured meaning
    """

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    ASSISTANT_DELTA = "assistant_delta"
    THINKING = "thinking"
    TOOL_CALL = "tool_call"
    RESULT = "result"
    UNKNOWN = "unknown"


class ToolCallStatus:
    STARTED = "started"
    COMPLETED = "completed"


@dataclass
class AgentToolCall:
    """Tool call details for display.

    ``path`` holds the tool's primary argument (file path, glob, command,
    URL or query), whatever best identifies the call.
    """

    name: str
    path: str = ""
    status: str = ToolCallStatus.STARTED
    summary: str = ""


@dataclass
class AgentEvent:
    """Standardized event decoded from any provider's stream."""

    type: AgentEventType
    subtype: str = ""
    text: str = ""
    model: str = ""
    session_id: str = ""
    resume_command: str = ""
    duration_ms: int = 0
    is_error: bool = False
    tool: AgentToolCall | None = None
