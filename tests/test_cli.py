"""Tests for the linear-tui-agent command line."""

import io
import json
import sys
from unittest.mock import patch

import pytest
from rich.console import Console

from linear_tui.__main__ import ConsoleRenderer, build_parser, load_issue_context, main
from linear_tui.agents.protocol import AgentEvent, AgentEventType
from linear_tui.config import Settings


@pytest.fixture
def settings():
    with (
        patch("linear_tui.__main__.get_settings", return_value=Settings(log_file="")),
        patch("linear_tui.__main__.setup_logging"),
    ):
        yield


def _console() -> tuple[Console, io.StringIO]:
    out = io.StringIO()
    return Console(file=out, width=200, color_system=None), out


class TestParser:
    def test_ask(self):
        args = build_parser().parse_args(["ask", "Fix it", "--provider", "claude"])
        assert args.mode == "ask"
        assert args.prompt == "Fix it"
        assert args.provider == "claude"
        assert args.workspace is None

    def test_issue_and_context_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["ask", "x", "--issue", "a.json", "--context", "c"])

    def test_mode_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestLoadIssueContext:
    def test_from_issue_file(self, tmp_path):
        path = tmp_path / "issue.json"
        path.write_text(json.dumps({"title": "Crash", "description": "Boom"}))
        args = build_parser().parse_args(["ask", "x", "--issue", str(path)])
        assert load_issue_context(args).startswith("Title: Crash\nDescription:\nBoom")

    def test_plain_context(self):
        args = build_parser().parse_args(["ask", "x", "--context", "some text"])
        assert load_issue_context(args) == "some text"


class TestConsoleRenderer:
    def test_renders_lines_and_answer(self):
        console, out = _console()
        renderer = ConsoleRenderer(console)
        renderer.on_event(AgentEvent(type=AgentEventType.SYSTEM, subtype="init", model="m"))
        renderer.on_event(AgentEvent(type=AgentEventType.ASSISTANT, text="The answer"))
        renderer.on_event(AgentEvent(type=AgentEventType.RESULT))
        renderer.on_line("stderr: noise")
        renderer.finish()

        text = out.getvalue()
        assert "Session init | model: m" in text
        assert "stderr: noise" in text
        assert "The answer" in text
        assert renderer.final_text == "The answer"

    def test_errors_are_collected(self):
        console, out = _console()
        renderer = ConsoleRenderer(console)
        renderer.on_error(ValueError("bad line"))
        assert len(renderer.errors) == 1
        assert "error: bad line" in out.getvalue()


class TestMain:
    def test_invalid_provider(self, settings):
        assert main(["ask", "x", "--provider", "nope"]) == 1

    def test_exec_runs_template(self, settings, tmp_path, capsys):
        script = tmp_path / "agent.py"
        script.write_text("import sys\nprint('branch=' + sys.argv[1])\n")
        code = main(
            [
                "exec",
                "--command",
                f"{sys.executable} {script} {{branch}} {{prompt}}",
                "--prompt",
                "Plan the work",
                "--branch",
                "feature/x",
            ]
        )
        assert code == 0
        assert "branch=feature/x" in capsys.readouterr().out

    def test_exec_unknown_name(self, settings):
        assert main(["exec", "--name", "missing"]) == 1

    def test_exec_reports_default_command_name(self, capsys):
        configured = Settings(log_file="", agent_provider="gemini", agent_commands=[])
        with (
            patch("linear_tui.__main__.get_settings", return_value=configured),
            patch("linear_tui.__main__.setup_logging"),
        ):
            assert main(["exec"]) == 1
        out = capsys.readouterr().out
        assert "no agent command named 'gemini'" in out
        assert "None" not in out

    def test_providers(self, settings):
        with patch("shutil.which", return_value=None):
            assert main(["providers"]) == 0
