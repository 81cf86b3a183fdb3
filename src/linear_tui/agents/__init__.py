"""Agent invocation and event normalization."""

from linear_tui.agents.backend import AgentRunOptions, EventParser, Provider
from linear_tui.agents.command import parse_command
from linear_tui.agents.errors import (
    AgentError,
    BinaryNotFoundError,
    EmptyTemplateError,
    InvalidProviderError,
    ProcessExitError,
    ProcessStartError,
    ProviderUnavailableError,
    StreamReadError,
)
from linear_tui.agents.protocol import AgentEvent, AgentEventType, AgentToolCall
from linear_tui.agents.registry import available_provider_keys, provider_for_key
from linear_tui.agents.runner import AgentRunner
from linear_tui.agents.stream_buffer import AgentStreamBuffer, StreamLine, StreamUpdate

__all__ = [
    "AgentError",
    "AgentEvent",
    "AgentEventType",
    "AgentRunOptions",
    "AgentRunner",
    "AgentStreamBuffer",
    "AgentToolCall",
    "BinaryNotFoundError",
    "EmptyTemplateError",
    "EventParser",
    "InvalidProviderError",
    "ProcessExitError",
    "ProcessStartError",
    "Provider",
    "ProviderUnavailableError",
    "StreamLine",
    "StreamReadError",
    "StreamUpdate",
    "available_provider_keys",
    "parse_command",
    "provider_for_key",
]
