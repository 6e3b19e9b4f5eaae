import logging
import os
import stat

import pytest

from leatherkit.errors import ChildExitError, ExecutionError
from leatherkit.execution import (
    each_line,
    execute,
    execute_to_files,
    expand_command,
    log_execution,
)
from leatherkit.streams import ExecutionOptions


def _make_tool(directory, name="tool"):
    path = directory / name
    path.write_text("#!/bin/sh\necho tool\n")
    path.chmod(0o755)
    return str(path)


def test_expand_command_blank_is_empty():
    assert expand_command("") == ""
    assert expand_command("   ") == ""


def test_expand_command_unquoted(tmp_path):
    tool = _make_tool(tmp_path)
    assert expand_command("tool --flag", [str(tmp_path)]) == tool + " --flag"


def test_expand_command_no_arguments(tmp_path):
    tool = _make_tool(tmp_path)
    assert expand_command("tool", [str(tmp_path)]) == tool


def test_expand_command_keeps_quotes(tmp_path):
    tool = _make_tool(tmp_path)
    assert expand_command("'tool' arg", [str(tmp_path)]) == "'" + tool + "' arg"


def test_expand_command_unclosed_quote(tmp_path):
    tool = _make_tool(tmp_path)
    assert expand_command('"tool', [str(tmp_path)]) == '"' + tool + '"'


def test_expand_command_quotes_path_with_space(tmp_path):
    spaced = tmp_path / "my dir"
    spaced.mkdir()
    tool = _make_tool(spaced)
    assert expand_command("tool x", [str(spaced)]) == '"' + tool + '" x'


def test_expand_command_not_found(tmp_path):
    assert expand_command("missing-tool arg", [str(tmp_path)]) == ""


def test_execute_collects_output():
    result = execute("sh", ["-c", "echo hello"])
    assert result.success
    assert result.output == "hello"
    assert result.exit_code == 0


def test_execute_with_input():
    result = execute("cat", [], "data\n")
    assert result.output == "data"


def test_execute_nonzero_exit():
    result = execute("sh", ["-c", "exit 3"])
    assert not result.success
    assert result.exit_code == 3


def test_execute_throws_on_nonzero_exit():
    with pytest.raises(ChildExitError) as info:
        execute(
            "sh",
            ["-c", "exit 3"],
            options=ExecutionOptions.THROW_ON_NONZERO_EXIT | ExecutionOptions.MERGE_ENVIRONMENT,
        )
    assert info.value.status_code == 3


def test_execute_missing_command():
    result = execute("definitely-not-a-command-xyz")
    assert not result.success
    assert result.exit_code == 127


def test_execute_environment():
    result = execute("sh", ["-c", "echo $FOO"], environment={"FOO": "bar"})
    assert result.output == "bar"


def test_execute_sets_c_locale():
    result = execute("sh", ["-c", "echo $LANG"])
    assert result.output == "C"


def test_execute_captures_stderr_when_not_redirected():
    result = execute(
        "sh",
        ["-c", "echo oops 1>&2"],
        options=ExecutionOptions.TRIM_OUTPUT | ExecutionOptions.MERGE_ENVIRONMENT,
    )
    assert result.error == "oops"
    assert result.output == ""


def test_execute_pid_callback():
    seen = []
    result = execute("sh", ["-c", "echo hi"], pid_callback=seen.append)
    assert seen == [result.pid]


def test_execute_to_files_permissions(tmp_path):
    out_file = tmp_path / "out.txt"
    execute_to_files("sh", ["-c", "echo hello"], "", str(out_file), perms=0o600)
    assert stat.S_IMODE(os.stat(out_file).st_mode) == 0o600
    assert out_file.read_text() == "hello\n"


def test_execute_to_files_bad_output_path(tmp_path):
    bad = tmp_path / "missing" / "out.txt"
    with pytest.raises(ExecutionError):
        execute_to_files("sh", ["-c", "echo hello"], "", str(bad))


def test_each_line_collects_lines():
    lines = []

    def collect(line):
        lines.append(line)
        return True

    assert each_line("sh", ["-c", "echo a; echo b; echo c"], stdout_callback=collect)
    assert lines == ["a", "b", "c"]


def test_each_line_stops_early():
    lines = []

    def first_only(line):
        lines.append(line)
        return False

    succeeded = each_line(
        "sh", ["-c", "printf 'a\\nb\\nc\\n'"], stdout_callback=first_only
    )
    assert succeeded is True
    assert lines == ["a"]


def test_each_line_stderr_callback():
    errors = []

    def collect(line):
        errors.append(line)
        return True

    succeeded = each_line("sh", ["-c", "echo oops 1>&2"], stderr_callback=collect)
    assert succeeded is True
    assert errors == ["oops"]


def test_each_line_failure_returns_false():
    assert each_line("sh", ["-c", "exit 1"]) is False


def test_log_execution(caplog):
    with caplog.at_level(logging.DEBUG, logger="leatherkit.execution"):
        log_execution("echo", ["a", "b"])
    assert "executing command: echo a b" in caplog.text