"""linear-tui agent entry point.

Runs a coding-agent CLI against an issue from the terminal and streams its
output, the same way the issue browser does inside its agent panel.
"""

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from linear_tui import __version__
from linear_tui.agents.backend import build_agent_prompt
from linear_tui.agents.command import parse_command
from linear_tui.agents.errors import AgentError
from linear_tui.agents.issue_context import Issue, build_issue_context
from linear_tui.agents.protocol import AgentEvent
from linear_tui.agents.registry import available_provider_keys, list_providers, provider_for_key
from linear_tui.agents.runner import STDERR_PREFIX, AgentRunner
from linear_tui.agents.stream_buffer import AgentStreamBuffer, StreamLineKind, StreamUpdate
from linear_tui.config import Settings, get_settings
from linear_tui.logging_setup import setup_logging

logger = logging.getLogger(__name__)

_LINE_STYLES = {
    StreamLineKind.THINKING: "dim italic",
    StreamLineKind.SYSTEM: "cyan",
    StreamLineKind.TOOL_CALL: "yellow",
    StreamLineKind.ASSISTANT_DELTA: "",
    StreamLineKind.UNKNOWN: "",
}


class ConsoleRenderer:
    """Feeds runner callbacks through a stream buffer onto a Rich console."""

    def __init__(self, console: Console) -> None:
        self.console = console
        self.buffer = AgentStreamBuffer()
        self.final_text = ""
        self.errors: list[Exception] = []

    def on_event(self, event: AgentEvent) -> None:
        self._render(self.buffer.append(event))

    def on_line(self, line: str) -> None:
        style = "red" if line.startswith(STDERR_PREFIX) else ""
        self.console.print(line, style=style, markup=False, highlight=False)

    def on_error(self, exc: Exception) -> None:
        self.errors.append(exc)
        self.console.print(f"error: {exc}", style="bold red", markup=False)

    def finish(self) -> None:
        self._render(self.buffer.flush())
        if self.final_text:
            self.console.rule("Answer")
            self.console.print(Markdown(self.final_text))

    def _render(self, update: StreamUpdate) -> None:
        for line in update.lines:
            self.console.print(
                line.text, style=_LINE_STYLES.get(line.kind, ""), markup=False, highlight=False
            )
        if update.done:
            self.final_text = update.final_text


def load_issue_context(args: argparse.Namespace) -> str:
    """Issue context from ``--issue`` (tracker JSON) or ``--context`` (plain text)."""
    if args.issue:
        data = json.loads(Path(args.issue).read_text())
        return build_issue_context(Issue.from_dict(data))
    return args.context or ""


async def run_ask(args: argparse.Namespace, settings: Settings, console: Console) -> None:
    provider = provider_for_key(args.provider or settings.agent_provider)
    options = dataclasses.replace(
        settings.run_options(args.workspace),
        model=args.model if args.model is not None else settings.agent_model,
        sandbox=args.sandbox if args.sandbox is not None else settings.agent_sandbox,
    )
    renderer = ConsoleRenderer(console)
    console.print(f"Asking {provider.name()}...", style="bold")
    try:
        await AgentRunner().run(
            provider,
            args.prompt,
            load_issue_context(args),
            options,
            on_event=renderer.on_event,
            on_line=renderer.on_line,
            on_error=renderer.on_error,
        )
    finally:
        renderer.finish()


async def run_exec(args: argparse.Namespace, settings: Settings, console: Console) -> None:
    template = args.command
    if not template:
        name = args.name or settings.agent_provider
        command = settings.find_command(name)
        if command is None:
            raise AgentError(f"no agent command named {name!r}")
        template = command.command

    full_prompt = build_agent_prompt(args.prompt, load_issue_context(args))
    binary, argv = parse_command(template, full_prompt, args.branch)
    renderer = ConsoleRenderer(console)
    await AgentRunner().run_command(
        binary,
        argv,
        workspace=args.workspace if args.workspace is not None else settings.agent_workspace,
        on_line=renderer.on_line,
        on_error=renderer.on_error,
    )


def show_providers(console: Console) -> None:
    available = set(available_provider_keys())
    table = Table(title="Agent providers")
    table.add_column("Key")
    table.add_column("Name")
    table.add_column("Available")
    for key in list_providers():
        provider = provider_for_key(key)
        table.add_row(key, provider.name(), "yes" if key in available else "no")
    console.print(table)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linear-tui-agent",
        description="Run a coding agent against an issue and stream its output",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  linear-tui-agent providers
  linear-tui-agent ask "Summarize this issue" --issue issue.json
  linear-tui-agent ask "Fix it" --provider claude --sandbox disabled --workspace .
  linear-tui-agent exec --command "claude -p {prompt}" --prompt "Plan the work"
""",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="mode", required=True)

    subparsers.add_parser("providers", help="List agent providers and their availability")

    def add_context_args(sub: argparse.ArgumentParser) -> None:
        group = sub.add_mutually_exclusive_group()
        group.add_argument("--issue", help="Issue JSON file (title, description, comments)")
        group.add_argument("--context", help="Issue context as plain text")
        sub.add_argument("--workspace", help="Working directory for the agent")

    ask = subparsers.add_parser("ask", help="Run an agent provider with streaming output")
    ask.add_argument("prompt", help="Instruction for the agent")
    ask.add_argument("--provider", help="Provider key (default from settings)")
    ask.add_argument("--model", help="Provider-specific model")
    ask.add_argument("--sandbox", help="Sandbox policy, e.g. enabled / disabled")
    add_context_args(ask)

    run = subparsers.add_parser("exec", help="Run a custom command template")
    source = run.add_mutually_exclusive_group()
    source.add_argument("--command", help="Template such as 'claude -p {prompt}'")
    source.add_argument("--name", help="Name of a configured agent command")
    run.add_argument("--prompt", default="", help="Value substituted for {prompt}")
    run.add_argument("--branch", default="", help="Value substituted for {branch}")
    add_context_args(run)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(level="DEBUG" if args.verbose else settings.log_level, log_file=settings.log_file)
    console = Console()

    try:
        if args.mode == "providers":
            show_providers(console)
        elif args.mode == "ask":
            asyncio.run(run_ask(args, settings, console))
        else:
            asyncio.run(run_exec(args, settings, console))
    except AgentError as exc:
        console.print(f"{exc}", style="bold red", markup=False)
        return 1
    except (OSError, json.JSONDecodeError) as exc:
        console.print(f"Cannot read issue: {exc}", style="bold red", markup=False)
        return 1
    except KeyboardInterrupt:
        logger.info("Agent run cancelled.")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
