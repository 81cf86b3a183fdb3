"""Agent runner — spawns a provider CLI and streams its output.

stdout and stderr are consumed by two independent tasks, so a stalled stream
never holds up the other. Line order is preserved within a stream but not
across streams. Callbacks run synchronously inside the reader tasks; callers
that touch UI state must marshal back to the UI themselves.

Cancel the task awaiting ``run()`` to stop the agent: the child is killed and
``asyncio.CancelledError`` propagates. Timeouts work the same way via
``asyncio.timeout``.
"""

import asyncio
import errno
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from linear_tui.agents.backend import AgentRunOptions, EventParser, Provider
from linear_tui.agents.errors import (
    AgentError,
    ProcessExitError,
    ProcessStartError,
    ProviderUnavailableError,
    StreamReadError,
)
from linear_tui.agents.protocol import AgentEvent

logger = logging.getLogger(__name__)

MAX_STREAM_LINE_BYTES = 1024 * 1024
STDERR_PREFIX = "stderr: "

_DRAIN_CHUNK_BYTES = 64 * 1024
# The pipe was closed under us (process exited or was killed)
_BENIGN_ERRNOS = frozenset({errno.EBADF, errno.EPIPE})

EventCallback = Callable[[AgentEvent], None]
LineCallback = Callable[[str], None]
ErrorCallback = Callable[[Exception], None]
LineHandler = Callable[[bytes, str], None]
Spawn = Callable[..., Awaitable[asyncio.subprocess.Process]]


def _noop(_value: Any) -> None:
    pass


class AgentRunner:
    """Runs one agent process at a time and streams its output to callbacks."""

    def __init__(self, spawn: Spawn | None = None) -> None:
        self._spawn = spawn or asyncio.create_subprocess_exec
        self._process: asyncio.subprocess.Process | None = None
        self._stop_requested = False
        self._active = False

    @property
    def running(self) -> bool:
        return self._active

    async def run(
        self,
        provider: Provider,
        prompt: str,
        issue_context: str,
        options: AgentRunOptions | None = None,
        *,
        on_event: EventCallback | None = None,
        on_line: LineCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Run *provider* against the prompt and issue context.

        Structured events go to ``on_event``; anything the provider cannot
        decode goes to ``on_line`` as text (stderr lines prefixed with
        ``"stderr: "``). Mid-run read failures go to ``on_error`` without
        aborting the other stream.

        Raises:
            ProviderUnavailableError: the provider binary cannot be resolved.
            ProcessStartError: the process could not be spawned.
            ProcessExitError: the process exited with a non-zero status.
        """
        options = options or AgentRunOptions()
        on_event = on_event or _noop
        on_line = on_line or _noop

        binary, ok = provider.resolve_binary()
        if not ok or not binary:
            raise ProviderUnavailableError(provider.name())

        logger.debug(
            "Starting agent run provider=%s workspace=%s", provider.name(), options.workspace
        )
        args = provider.build_args(prompt, issue_context, options)
        parser = provider if isinstance(provider, EventParser) else None

        def handle_line(raw: bytes, prefix: str) -> None:
            if parser is not None:
                event, matched = parser.parse_event(raw)
                if matched and event is not None:
                    on_event(event)
                    return
            display, ok = provider.parse_stream_line(raw)
            if not ok:
                display = raw.decode("utf-8", errors="replace")
            display = display.rstrip("\r\n")
            if display:
                on_line(prefix + display)

        await self._execute(binary, args, options.workspace, handle_line, on_error or _noop)
        logger.debug("Agent run completed provider=%s", provider.name())

    async def run_command(
        self,
        binary: str,
        argv: list[str],
        *,
        workspace: str = "",
        on_line: LineCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Run a resolved custom command (see ``parse_command``) as plain text.

        ``argv[0]`` is the resolved binary; every output line is delivered
        through ``on_line`` unparsed.
        """
        on_line = on_line or _noop

        def handle_line(raw: bytes, prefix: str) -> None:
            display = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            if display:
                on_line(prefix + display)

        logger.debug("Starting custom command binary=%s workspace=%s", binary, workspace)
        await self._execute(binary, argv[1:], workspace, handle_line, on_error or _noop)

    async def stop(self) -> None:
        """Terminate the active process; ``run()`` then returns without error."""
        self._stop_requested = True
        if self._process and self._process.returncode is None:
            try:
                self._process.terminate()
            except ProcessLookupError:
                pass

    async def _execute(
        self,
        binary: str,
        args: list[str],
        workspace: str,
        handle_line: LineHandler,
        on_error: ErrorCallback,
    ) -> None:
        if self._active:
            raise AgentError("an agent run is already active")

        # Claimed before the first await so overlapping calls fail fast
        self._active = True
        self._stop_requested = False
        try:
            await self._supervise(binary, args, workspace, handle_line, on_error)
        finally:
            self._process = None
            self._active = False

    async def _supervise(
        self,
        binary: str,
        args: list[str],
        workspace: str,
        handle_line: LineHandler,
        on_error: ErrorCallback,
    ) -> None:
        try:
            process = await self._spawn(
                binary,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=workspace or None,
                limit=MAX_STREAM_LINE_BYTES,
            )
        except OSError as exc:
            logger.error("Failed to start agent binary=%s: %s", binary, exc)
            raise ProcessStartError(binary, exc) from exc

        self._process = process
        if self._stop_requested:
            # stop() arrived while the process was being spawned
            try:
                process.terminate()
            except ProcessLookupError:
                pass

        readers = [
            asyncio.create_task(_stream_lines(process.stdout, "", handle_line, on_error)),
            asyncio.create_task(
                _stream_lines(process.stderr, STDERR_PREFIX, handle_line, on_error)
            ),
        ]
        try:
            await asyncio.gather(*readers)
            returncode = await process.wait()
        except BaseException:
            for task in readers:
                task.cancel()
            await asyncio.gather(*readers, return_exceptions=True)
            await _kill(process)
            raise

        if returncode != 0 and not self._stop_requested:
            logger.error("Agent exited with code %d binary=%s", returncode, binary)
            raise ProcessExitError(returncode)


async def _stream_lines(
    reader: asyncio.StreamReader | None,
    prefix: str,
    handle_line: LineHandler,
    on_error: ErrorCallback,
) -> None:
    """Read *reader* line by line until EOF, forwarding each line."""
    if reader is None:
        return
    stream = "stderr" if prefix else "stdout"
    while True:
        try:
            raw = await reader.readline()
        except ValueError as exc:
            # Line longer than MAX_STREAM_LINE_BYTES
            _report_stream_error(stream, exc, on_error)
            await _drain(reader)
            return
        except OSError as exc:
            if not _is_closed_pipe(exc):
                _report_stream_error(stream, exc, on_error)
            return
        if not raw:
            return
        handle_line(raw.rstrip(b"\r\n"), prefix)


async def _drain(reader: asyncio.StreamReader) -> None:
    """Discard the rest of a stream so the child never blocks on a full pipe."""
    while True:
        try:
            chunk = await reader.read(_DRAIN_CHUNK_BYTES)
        except OSError:
            return
        if not chunk:
            return


def _report_stream_error(stream: str, exc: Exception, on_error: ErrorCallback) -> None:
    logger.error("Stream read error stream=%s: %s", stream, exc)
    on_error(StreamReadError(stream, exc))


def _is_closed_pipe(exc: OSError) -> bool:
    if isinstance(exc, (BrokenPipeError, ConnectionResetError)):
        return True
    return exc.errno in _BENIGN_ERRNOS


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()
