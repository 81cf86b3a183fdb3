"""Tests for command template resolution."""

import pytest

from linear_tui.agents.command import parse_command
from linear_tui.agents.errors import AgentError, BinaryNotFoundError, EmptyTemplateError


def _stub_look_path(*available: str):
    def look_path(name: str) -> str | None:
        return f"/usr/bin/{name}" if name in available else None

    return look_path


class TestParseCommand:
    def test_simple_command_with_real_binary(self):
        binary, args = parse_command("echo {prompt}", "hello world", "")
        assert "echo" in binary
        assert args == [binary, "hello world"]

    def test_flags_preserved(self):
        binary, args = parse_command(
            "claude --flag1 --flag2 {prompt}", "the prompt", "", _stub_look_path("claude")
        )
        assert binary == "/usr/bin/claude"
        assert args == ["/usr/bin/claude", "--flag1", "--flag2", "the prompt"]

    def test_argv0_is_resolved_path(self):
        binary, args = parse_command("claude {prompt}", "x", "", _stub_look_path("claude"))
        assert args[0] == binary == "/usr/bin/claude"

    def test_prompt_is_single_arg(self):
        _, args = parse_command("echo {prompt}", "my prompt text", "", _stub_look_path("echo"))
        assert len(args) == 2
        assert args[1] == "my prompt text"

    def test_multiline_prompt_preserved(self):
        prompt = "line one\nline two\nline three"
        _, args = parse_command("echo {prompt}", prompt, "", _stub_look_path("echo"))
        assert args[1] == prompt

    def test_branch_replacement(self):
        _, args = parse_command(
            "echo --branch {branch} {prompt}",
            "my prompt",
            "feature/my-branch",
            _stub_look_path("echo"),
        )
        assert args[1:] == ["--branch", "feature/my-branch", "my prompt"]

    def test_empty_branch_is_empty_arg(self):
        _, args = parse_command(
            "echo --branch {branch} {prompt}", "my prompt", "", _stub_look_path("echo")
        )
        assert len(args) == 4
        assert args[2] == ""

    def test_no_branch_placeholder(self):
        _, args = parse_command("echo {prompt}", "hello", "some-branch", _stub_look_path("echo"))
        assert args == ["/usr/bin/echo", "hello"]
        assert not any("some-branch" in arg for arg in args)

    def test_placeholder_must_be_whole_token(self):
        _, args = parse_command("echo --x={prompt}", "p", "", _stub_look_path("echo"))
        assert args[1] == "--x={prompt}"

    def test_extra_whitespace_ignored(self):
        _, args = parse_command("  echo \t {prompt}  ", "p", "", _stub_look_path("echo"))
        assert args == ["/usr/bin/echo", "p"]


class TestParseCommandErrors:
    def test_empty_template(self):
        with pytest.raises(EmptyTemplateError):
            parse_command("", "test", "")

    def test_whitespace_template(self):
        with pytest.raises(EmptyTemplateError):
            parse_command("   \n\t", "test", "")

    def test_binary_not_found(self):
        with pytest.raises(BinaryNotFoundError) as exc_info:
            parse_command("nonexistent-binary-xyz {prompt}", "test", "")
        assert "not found" in str(exc_info.value)
        assert "nonexistent-binary-xyz" in str(exc_info.value)
        assert exc_info.value.binary == "nonexistent-binary-xyz"
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_errors_share_base_class(self):
        with pytest.raises(AgentError):
            parse_command("missing {prompt}", "test", "", _stub_look_path())
