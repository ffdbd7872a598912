import logging
import time

import pytest

from rotolog.config import (
    WINDOWS_LINE_ENDING,
    Cleanup,
    Config,
    Criterion,
    FileSpec,
    Naming,
    ResetError,
    RotationConfig,
)
from rotolog.log_writer import default_format
from rotolog.state import State
from rotolog.state_handle import AsyncStateHandle, SyncStateHandle, make_state_handle
from rotolog.write_mode import WriteMode


def make_record(message, level=logging.ERROR):
    return logging.LogRecord("myApp", level, "server.rs", 144, message, None, None)


def make_state(tmp_path, discriminant, write_mode=None, line_ending=b"\n", rotation=None):
    config = Config(
        print_message=False,
        append=False,
        write_mode=write_mode or WriteMode.direct(),
        file_spec=FileSpec(directory=tmp_path, basename="app", discriminant=discriminant),
        line_ending=line_ending,
    )
    return State(config, rotation, False)


class StubBuilder:
    def __init__(self, state, write_mode):
        self.state = state
        self.write_mode = write_mode
        self.asserted = []

    def assert_write_mode(self, write_mode):
        self.asserted.append(write_mode)
        if write_mode != self.write_mode:
            raise ResetError()

    def try_build_state(self):
        return self.state


def test_sync_write_produces_formatted_line(tmp_path):
    handle = make_state_handle(make_state(tmp_path, "sync"), default_format)
    record = make_record("hello")
    handle.write(record)
    handle.flush()
    content = handle.current_filename().read_bytes()
    assert content == default_format(record).encode() + b"\n"
    assert isinstance(handle, SyncStateHandle)
    handle.shutdown()


def test_windows_line_ending(tmp_path):
    state = make_state(tmp_path, "win", line_ending=WINDOWS_LINE_ENDING)
    handle = make_state_handle(state, default_format)
    handle.write(make_record("one"))
    handle.write(make_record("two"))
    handle.shutdown()
    lines = handle.current_filename().read_bytes().split(b"\r\n")
    assert lines[2] == b""
    assert b"one" in lines[0] and b"two" in lines[1]


def test_plain_write_returns_length(tmp_path):
    handle = make_state_handle(make_state(tmp_path, "plain"), default_format)
    assert handle.plain_write(b"raw bytes") == 9
    handle.shutdown()
    assert handle.current_filename().read_bytes() == b"raw bytes"


def test_async_write_keeps_order(tmp_path):
    mode = WriteMode.async_with(6, 7, 8, 0)
    handle = make_state_handle(make_state(tmp_path, "async", write_mode=mode), default_format)
    assert isinstance(handle, AsyncStateHandle)
    for text in ["ONE", "TWO", "THREE"]:
        handle.write(make_record(text))
    handle.shutdown()
    lines = handle.current_filename().read_text().splitlines()
    assert [line.split()[-1] for line in lines] == ["ONE", "TWO", "THREE"]


def test_async_write_after_shutdown_fails(tmp_path):
    mode = WriteMode.async_default()
    handle = make_state_handle(make_state(tmp_path, "closed", write_mode=mode), default_format)
    handle.shutdown()
    handle.shutdown()
    with pytest.raises(OSError):
        handle.plain_write(b"late")
    with pytest.raises(OSError):
        handle.write(make_record("late"))


def test_async_validate_logs_waits_for_output(tmp_path):
    mode = WriteMode.async_with(1024, 5, 400, 0)
    handle = make_state_handle(make_state(tmp_path, "validate", write_mode=mode), default_format)
    first = make_record("first")
    second = make_record("second", logging.WARNING)
    handle.write(first)
    handle.write(second)
    handle.validate_logs([("ERROR", "server", "first"), ("WARNING", "server", "second")])
    with pytest.raises(AssertionError):
        handle.validate_logs([("ERROR", "server", "first")])
    handle.shutdown()
    assert handle.current_filename().read_text().splitlines() == [
        default_format(first),
        default_format(second),
    ]


def test_sync_validate_logs_detects_mismatch(tmp_path):
    handle = make_state_handle(make_state(tmp_path, "mismatch"), default_format)
    record = make_record("payload")
    handle.write(record)
    handle.validate_logs([("ERROR", "server", "payload")])
    with pytest.raises(AssertionError):
        handle.validate_logs([("INFO", "server", "payload")])
    handle.shutdown()
    assert handle.current_filename().read_text() == default_format(record) + "\n"


def test_reset_switches_to_new_file(tmp_path):
    mode = WriteMode.buffer_dont_flush_with(4)
    handle = make_state_handle(make_state(tmp_path, "reset-1", write_mode=mode), default_format)
    handle.write(make_record("test_reset-1"))
    first = handle.current_filename()

    builder = StubBuilder(make_state(tmp_path, "reset-2", write_mode=mode), mode)
    handle.reset(builder)
    assert builder.asserted == [mode]
    handle.write(make_record("test_reset-2"))
    handle.shutdown()

    second = handle.current_filename()
    assert second != first
    assert "test_reset-1" in first.read_text()
    assert "test_reset-2" in second.read_text()
    assert "test_reset-1" not in second.read_text()


def test_reset_with_other_write_mode_fails(tmp_path):
    mode = WriteMode.buffer_dont_flush_with(4)
    handle = make_state_handle(make_state(tmp_path, "reset-a", write_mode=mode), default_format)
    before = handle.current_filename()
    builder = StubBuilder(make_state(tmp_path, "reset-b"), WriteMode.direct())
    with pytest.raises(ResetError):
        handle.reset(builder)
    assert handle.current_filename() == before
    handle.shutdown()


def test_timed_flush_writes_buffered_output(tmp_path):
    mode = WriteMode.buffer_and_flush_with(8192, 0.05)
    handle = make_state_handle(make_state(tmp_path, "flusher", write_mode=mode), default_format)
    handle.write(make_record("buffered"))
    path = handle.current_filename()
    deadline = time.monotonic() + 5
    while time.monotonic() < deadline and not (path.exists() and path.stat().st_size):
        time.sleep(0.02)
    assert "buffered" in path.read_text()
    handle.shutdown()


def test_sync_format_failure_writes_only_line_ending(tmp_path):
    def broken(record):
        raise ValueError("broken format")

    handle = make_state_handle(make_state(tmp_path, "broken"), broken)
    handle.write(make_record("ignored"))
    handle.shutdown()
    assert handle.current_filename().read_bytes() == b"\n"


def test_async_format_failure_raises(tmp_path):
    def broken(record):
        raise ValueError("broken format")

    mode = WriteMode.async_default()
    handle = make_state_handle(make_state(tmp_path, "broken-async", write_mode=mode), broken)
    with pytest.raises(ValueError):
        handle.write(make_record("ignored"))
    handle.shutdown()


def test_current_filename_with_rotation(tmp_path):
    rotation = RotationConfig(Criterion.by_size(28), Naming.NUMBERS, Cleanup.never())
    handle = make_state_handle(make_state(tmp_path, "rot", rotation=rotation), default_format)
    assert handle.current_filename().name.endswith("_rCURRENT.log")
    handle.write(make_record("rotating"))
    handle.shutdown()
    assert "rotating" in handle.current_filename().read_text()


def test_format_function_is_kept(tmp_path):
    def custom(record):
        return "custom:" + record.getMessage()

    handle = make_state_handle(make_state(tmp_path, "custom"), custom)
    assert handle.format_function is custom
    handle.write(make_record("msg"))
    handle.shutdown()
    assert handle.current_filename().read_text() == "custom:msg\n"