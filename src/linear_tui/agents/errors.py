"""Errors raised while resolving and running agent commands.

Malformed or unrecognized protocol lines are never errors; they degrade to
raw-text delivery.
"""


class AgentError(Exception):
    """Base class for agent invocation failures."""


class EmptyTemplateError(AgentError):
    def __init__(self) -> None:
        super().__init__("empty command template")


class BinaryNotFoundError(AgentError):
    def __init__(self, binary: str) -> None:
        self.binary = binary
        super().__init__(f"binary {binary!r} not found")


class InvalidProviderError(AgentError, ValueError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"invalid agent provider {key!r}")


class ProviderUnavailableError(AgentError):
    def __init__(self, provider_name: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"agent binary not found for {provider_name}")


class ProcessStartError(AgentError):
    def __init__(self, binary: str, reason: Exception) -> None:
        self.binary = binary
        super().__init__(f"start agent {binary}: {reason}")


class ProcessExitError(AgentError):
    def __init__(self, returncode: int) -> None:
        self.returncode = returncode
        super().__init__(f"agent exited with code {returncode}")


class StreamReadError(AgentError):
    def __init__(self, stream: str, reason: Exception) -> None:
        self.stream = stream
        super().__init__(f"read {stream}: {reason}")
