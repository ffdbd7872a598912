"""Thread-safe access to the state of a file log writer, synchronous or via an output thread."""

from __future__ import annotations

import logging
import queue
import sys
import threading
from pathlib import Path
from typing import Protocol

from rotolog.log_writer import FormatFunction
from rotolog.state import State

_FLUSH = object()
_SHUTDOWN = object()


def _report(message: str, error: BaseException) -> None:
    print(f"[rotolog] {message}: {error}", file=sys.stderr)


class _Builder(Protocol):
    def assert_write_mode(self, write_mode) -> None: ...

    def try_build_state(self) -> State: ...


class StateHandle:
    """Shared, lock-protected access to a State, with the format function and line ending."""

    def __init__(self, state: State, format_function: FormatFunction) -> None:
        self._state = state
        self._lock = threading.Lock()
        self.format_function = format_function
        self.line_ending = state.config.line_ending

    def _format(self, record: logging.LogRecord) -> bytes:
        return self.format_function(record).encode("utf-8") + self.line_ending

    def current_filename(self) -> Path:
        """The path of the file that is (or will be) written to."""
        with self._lock:
            return self._state.current_filename()

    def plain_write(self, buffer: bytes) -> int:
        """Write the bytes unformatted; returns their number."""
        raise NotImplementedError

    def write(self, record: logging.LogRecord) -> None:
        """Format the record and write it as one line."""
        raise NotImplementedError

    def flush(self) -> None:
        """Flush buffered output."""
        raise NotImplementedError

    def reset(self, builder: _Builder) -> None:
        """Replace the state with one built from the builder.

        Raises ResetError if the builder has a different write mode.
        """
        with self._lock:
            builder.assert_write_mode(self._state.config.write_mode)
            new_state = builder.try_build_state()
            old_state, self._state = self._state, new_state
            self.line_ending = new_state.config.line_ending
        old_state.shutdown()

    def validate_logs(self, expected) -> None:
        """Check the written log against expected (level, module, text) triples."""
        with self._lock:
            self._state.validate_logs(expected)

    def shutdown(self) -> None:
        """Stop background threads and flush the output."""
        raise NotImplementedError


class SyncStateHandle(StateHandle):
    """Writes in the calling thread; flushes on a timer if the write mode asks for it."""

    def __init__(self, state: State, format_function: FormatFunction) -> None:
        super().__init__(state, format_function)
        self._stop = threading.Event()
        self._flusher: threading.Thread | None = None
        interval = state.config.write_mode.flush_interval()
        if interval:
            self._flusher = threading.Thread(
                target=self._flush_periodically,
                args=(interval,),
                name="rotolog-flusher",
                daemon=True,
            )
            self._flusher.start()

    def _flush_periodically(self, interval: float) -> None:
        while not self._stop.wait(interval):
            with self._lock:
                try:
                    self._state.flush()
                except OSError:
                    pass

    def plain_write(self, buffer: bytes) -> int:
        data = bytes(buffer)
        with self._lock:
            self._state.write_buffer(data)
        return len(data)

    def write(self, record: logging.LogRecord) -> None:
        try:
            text = self.format_function(record).encode("utf-8")
        except Exception as error:  # a broken formatter must not break the caller
            _report("formatting failed", error)
            text = b""
        with self._lock:
            try:
                self._state.write_buffer(text + self.line_ending)
            except OSError as error:
                _report("writing failed", error)

    def flush(self) -> None:
        with self._lock:
            self._state.flush()

    def shutdown(self) -> None:
        self._stop.set()
        with self._lock:
            self._state.shutdown()


class AsyncStateHandle(StateHandle):
    """Hands formatted lines to an output thread that does the I/O, rotation and cleanup."""

    def __init__(self, state: State, format_function: FormatFunction) -> None:
        super().__init__(state, format_function)
        self._queue: queue.Queue = queue.Queue()
        self._send_lock = threading.Lock()
        self._closed = False
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name="rotolog-async-file-writer", daemon=True
        )
        self._thread.start()
        interval = state.config.write_mode.flush_interval()
        if interval:
            threading.Thread(
                target=self._flush_periodically,
                args=(interval,),
                name="rotolog-flusher",
                daemon=True,
            ).start()

    def _run(self) -> None:
        while True:
            message = self._queue.get()
            try:
                with self._lock:
                    if message is _FLUSH:
                        try:
                            self._state.flush()
                        except OSError as error:
                            _report("flushing failed", error)
                    elif message is _SHUTDOWN:
                        self._state.shutdown()
                        return
                    else:
                        try:
                            self._state.write_buffer(message)
                        except OSError as error:
                            _report("writing failed", error)
            finally:
                self._queue.task_done()

    def _flush_periodically(self, interval: float) -> None:
        while not self._stop.wait(interval):
            if not self._send(_FLUSH):
                return

    def _send(self, message) -> bool:
        with self._send_lock:
            if self._closed:
                return False
            self._queue.put(message)
            return True

    def plain_write(self, buffer: bytes) -> int:
        data = bytes(buffer)
        if not self._send(data):
            raise OSError("Send")
        return len(data)

    def write(self, record: logging.LogRecord) -> None:
        try:
            data = self._format(record)
        except Exception as error:
            _report("formatting failed", error)
            raise
        if not self._send(data):
            raise OSError("Send")

    def flush(self) -> None:
        self._send(_FLUSH)

    def validate_logs(self, expected) -> None:
        self._queue.join()
        super().validate_logs(expected)

    def shutdown(self) -> None:
        self._stop.set()
        with self._send_lock:
            if not self._closed:
                self._closed = True
                self._queue.put(_SHUTDOWN)
        if self._thread is not threading.current_thread():
            self._thread.join()


def make_state_handle(state: State, format_function: FormatFunction) -> StateHandle:
    """Create the handle that suits the write mode of the state."""
    if state.config.write_mode.is_async():
        return AsyncStateHandle(state, format_function)
    return SyncStateHandle(state, format_function)