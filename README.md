# leatherkit

Small helpers for two everyday jobs: working with files, and running child
processes whose output you want to collect or consume line by line.

## Installation

```
pip install leatherkit
```

## Files

`leatherkit.file_util` reads, writes and expands paths:

```python
from leatherkit.file_util import (
    atomic_write_to_file, read, each_line, file_readable, tilde_expand, shell_quote,
)

atomic_write_to_file("first\nsecond\n", "notes.txt")
assert file_readable("notes.txt")
print(read("notes.txt"))          # "" if the file cannot be read

each_line("notes.txt", lambda line: print(line) or True)  # return False to stop early

tilde_expand("~/config")    # "$HOME/config"; "~user/x" is left alone
shell_quote('say "hi"')     # '"say \\"hi\\""'
```

- `each_line` returns `False` if the file cannot be opened, `True` otherwise.
- `file_readable` is `True` only for an existing, openable file that is not a directory.
- `atomic_write_to_file(text, file_path, perms=None, mode="wb")` writes to
  `file_path + "~"` and then renames it into place, so readers never see a
  half-written file. `perms`, if given, is applied with `os.chmod`. It raises
  `OSError` if the temporary file cannot be opened.
- `get_home_path` returns `HOME` (`USERPROFILE` on Windows), or `""` if unset.

`leatherkit.directory` walks the entries of one directory:

```python
from leatherkit.directory import each_file, each_subdirectory

each_file("/etc", lambda path: print(path) or True, r"\.conf$")
each_subdirectory("/var", lambda path: print(path) or True)
```

The optional pattern is a regular expression searched for in each entry
name. The callback returns `False` to stop the walk. A directory that cannot
be read yields nothing.

## Running programs

`leatherkit.execution` locates an executable on the search path, starts it,
and collects or streams its output:

```python
from leatherkit.execution import execute, each_line, expand_command
from leatherkit.streams import ExecutionOptions

result = execute("echo", ["hello"])
print(result.success, result.output, result.exit_code, result.pid)

each_line("ls", ["-1"], stdout_callback=lambda line: print(line) or True)

expand_command("ls -l")   # e.g. "/bin/ls -l"; "" if ls cannot be found
```

By default `execute` trims its output, merges the current environment into
the child's, discards standard error, and sets `LC_ALL` and `LANG` to `C`
unless you supply them. A non-zero exit status does not raise unless
`ExecutionOptions.THROW_ON_NONZERO_EXIT` is given; likewise death by signal
raises only with `ExecutionOptions.THROW_ON_SIGNAL`. A program that cannot
be found gives an unsuccessful result with exit code 127. `timeout` is in
seconds (0 for none); a child that runs past it is killed together with its
process group.

`execute_to_files(file, arguments, input, out_file, err_file="", ...)` writes
each output line to `out_file`, and error lines to `err_file` when one is
given. `perms`, if given, is applied to the files it creates.

`each_line` in `leatherkit.execution` passes each line of output to
`stdout_callback` and `stderr_callback` and returns whether the command
succeeded. A callback returning `False` stops reading.

The lower layers can be used on their own:

- `leatherkit.process_search` – `which`, `is_executable`, `is_builtin`,
  `create_environment` and `format_error`.
- `leatherkit.process_runner.run` – the full-control entry point taking
  input, environment, callbacks, options and timeout.
- `leatherkit.streams` – `ExecutionOptions`, `ExecutionResult`,
  `StreamProcessor` (splits chunks of output into lines) and `process_streams`.

### Errors

All failures derive from `leatherkit.errors.ExecutionError`:

- `ChildExitError` – the child exited with a non-zero status (`status_code`, `output`, `error`)
- `ChildSignalError` – the child was killed by a signal (`signal`, `output`, `error`)
- `ExecutionTimeoutError` – the child ran past its timeout (`pid`)

## Limitations

Running programs is supported on POSIX systems only; there is no Windows
process runner. The package is a library and installs no commands.

## Running the tests

```
pip install -e ".[test]"
pytest
```