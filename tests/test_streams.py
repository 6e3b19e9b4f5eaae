import pytest

from leatherkit.streams import (
    ExecutionOptions,
    ExecutionResult,
    StreamProcessor,
    process_streams,
)


def collect():
    lines = []

    def callback(line):
        lines.append(line)
        return True

    return lines, callback


def test_feed_splits_lines_and_keeps_partial():
    lines, cb = collect()
    proc = StreamProcessor(False, cb)
    assert proc.feed("one\ntw")
    assert lines == ["one"]
    assert proc.feed("o\nthree")
    assert lines == ["one", "two"]
    assert proc.finish() == ""
    assert lines == ["one", "two", "three"]


def test_no_trim_keeps_empty_lines():
    lines, cb = collect()
    proc = StreamProcessor(False, cb)
    assert proc.feed("a\n\n b \n") is True
    assert proc.finish() == ""
    assert lines == ["a", "", " b "]


def test_trim_skips_empty_lines_and_strips():
    lines, cb = collect()
    proc = StreamProcessor(True, cb)
    assert proc.feed("  a  \n\n   \nb\n") is True
    assert proc.finish() == ""
    assert lines == ["a", "b"]


def test_without_callback_buffers_everything():
    proc = StreamProcessor(False)
    proc.feed("x\ny\n")
    proc.feed("z")
    assert proc.finish() == "x\ny\nz"


def test_without_callback_trim_strips_buffer():
    proc = StreamProcessor(True)
    proc.feed("  x\ny\n  ")
    assert proc.finish() == "x\ny"


def test_callback_returning_false_stops():
    seen = []

    def cb(line):
        seen.append(line)
        return False

    proc = StreamProcessor(False, cb)
    assert proc.feed("first\nsecond\nthird\n") is False
    assert seen == ["first"]


def test_empty_data_is_ignored():
    lines, cb = collect()
    proc = StreamProcessor(False, cb)
    assert proc.feed("")
    assert proc.finish() == ""
    assert lines == []


def test_process_streams_buffers_when_no_callbacks():
    def reader(out, err):
        assert out("hello\n")
        assert err("oops\n")
        assert out("world")

    output, error = process_streams(True, None, None, reader)
    assert output == "hello\nworld"
    assert error == "oops"


def test_process_streams_with_callbacks():
    out_lines, out_cb = collect()
    err_lines, err_cb = collect()

    def reader(out, err):
        out("a\nb")
        err("e1\ne2")
        out("\nc")

    output, error = process_streams(False, out_cb, err_cb, reader)
    assert (output, error) == ("", "")
    assert out_lines == ["a", "b", "c"]
    assert err_lines == ["e1", "e2"]


def test_process_streams_reader_sees_stop():
    results = []

    def stop(line):
        return False

    def reader(out, err):
        results.append(out("line\nmore\n"))

    output, _ = process_streams(False, stop, None, reader)
    assert results == [False]
    assert output == ""


def test_options_combine():
    opts = ExecutionOptions(
        ExecutionOptions.TRIM_OUTPUT | ExecutionOptions.MERGE_ENVIRONMENT
    )
    assert ExecutionOptions.TRIM_OUTPUT in opts
    assert ExecutionOptions.MERGE_ENVIRONMENT in opts
    assert ExecutionOptions.THROW_ON_SIGNAL not in opts


def test_result_fields():
    result = ExecutionResult(False, "", "", 127, 0)
    assert result.exit_code == 127
    assert result.success is False
    with pytest.raises(AttributeError):
        result.success = True  # type: ignore[misc]