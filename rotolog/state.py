"""The mutable state of a file log writer: the open file, rotation and cleanup."""

from __future__ import annotations

import copy
import io
import os
import queue
import sys
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import BinaryIO

from rotolog.config import Age, Cleanup, Config, FileSpec, Naming, RotationConfig
from rotolog.rotation import (
    CURRENT_INFIX,
    IdxState,
    create_symlink_if_possible,
    get_creation_date,
    get_highest_rotate_idx,
    remove_or_compress_too_old_logfiles,
    rotate_output_file_to_date,
    rotate_output_file_to_idx,
)

_ACT = "act"
_DIE = "die"


def _report(message: str, error: BaseException) -> None:
    print(f"[rotolog] {message}: {error}", file=sys.stderr)


def open_log_file(config: Config, with_rotation: bool) -> tuple[BinaryIO, datetime, Path]:
    """Open the output file and return it with its creation date and path.

    The file is appended to or truncated as configured, and buffered if the
    write mode asks for it.
    """
    path = config.file_spec.as_path(CURRENT_INFIX if with_rotation else None)
    if config.print_message:
        print(f"Log is written to {path}")
    if config.create_symlink is not None:
        create_symlink_if_possible(config.create_symlink, path)

    raw = io.FileIO(path, "a" if config.append else "w")
    capacity = config.write_mode.buffer_size()
    writer: BinaryIO = raw if capacity is None else io.BufferedWriter(raw, buffer_size=max(capacity, 1))
    return writer, get_creation_date(path), path


class _CleanupThread:
    """Runs the cleanup of rotated files in a background thread on request."""

    def __init__(self, cleanup: Cleanup, file_spec: FileSpec) -> None:
        self._cleanup = cleanup
        self._file_spec = file_spec
        self._queue: queue.SimpleQueue[str] = queue.SimpleQueue()
        self._thread = threading.Thread(target=self._run, name="rotolog-cleanup", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while self._queue.get() == _ACT:
            try:
                remove_or_compress_too_old_logfiles(self._cleanup, self._file_spec)
            except OSError:
                pass

    def act(self) -> None:
        self._queue.put(_ACT)

    def stop(self) -> None:
        self._queue.put(_DIE)
        self._thread.join()


@dataclass
class _RotationState:
    naming: Naming
    idx_state: IdxState | None
    age: Age | None
    max_size: int | None
    current_size: int
    created_at: datetime
    cleanup: Cleanup
    cleanup_thread: _CleanupThread | None = None

    def _age_rotation_necessary(self) -> bool:
        now = datetime.now()
        then = self.created_at
        if then.toordinal() != now.toordinal():
            return True
        if self.age is Age.DAY:
            return False
        if then.hour != now.hour:
            return True
        if self.age is Age.HOUR:
            return False
        if then.minute != now.minute:
            return True
        if self.age is Age.MINUTE:
            return False
        return then.second != now.second

    def rotation_necessary(self) -> bool:
        if self.max_size is not None and self.current_size > self.max_size:
            return True
        return self.age is not None and self._age_rotation_necessary()

    def cleanup_rotated(self, file_spec: FileSpec) -> None:
        if self.cleanup_thread is not None:
            self.cleanup_thread.act()
        else:
            remove_or_compress_too_old_logfiles(self.cleanup, file_spec)

    def shutdown(self) -> None:
        thread, self.cleanup_thread = self.cleanup_thread, None
        if thread is not None:
            thread.stop()


class State:
    """The mutable state of a file log writer.

    The output file is opened lazily with the first write. With rotation, the
    writer always writes to the file with infix ``_rCURRENT`` and renames it
    when the rotation criterion is met.
    """

    def __init__(
        self,
        config: Config,
        rotation_config: RotationConfig | None = None,
        cleanup_in_background_thread: bool = True,
    ) -> None:
        self.config = config
        self._rotation_config = rotation_config
        self._cleanup_in_background_thread = cleanup_in_background_thread
        self._writer: BinaryIO | None = None
        self._rotation: _RotationState | None = None

    @property
    def _active(self) -> bool:
        return self._writer is not None

    def _initialize(self) -> None:
        if self._active:
            return
        rotation_config = self._rotation_config
        if rotation_config is None:
            self._writer, _, _ = open_log_file(self.config, False)
            return

        spec = self.config.file_spec
        idx_state: IdxState | None = None
        if rotation_config.naming is Naming.TIMESTAMPS:
            if not self.config.append:
                rotate_output_file_to_date(
                    get_creation_date(spec.as_path(CURRENT_INFIX)), self.config
                )
        else:
            idx_state = get_highest_rotate_idx(spec)
            if not self.config.append:
                idx_state = rotate_output_file_to_idx(idx_state, self.config)

        writer, created_at, path = open_log_file(self.config, True)
        criterion = rotation_config.criterion
        current_size = 0
        if criterion.size is not None and self.config.append:
            current_size = os.path.getsize(path)

        cleanup = rotation_config.cleanup
        cleanup_thread = None
        try:
            if cleanup.do_cleanup():
                remove_or_compress_too_old_logfiles(cleanup, spec)
                if self._cleanup_in_background_thread:
                    cleanup_thread = _CleanupThread(cleanup, copy.copy(spec))
        except BaseException:
            writer.close()
            raise

        self._rotation = _RotationState(
            naming=rotation_config.naming,
            idx_state=idx_state,
            age=criterion.age,
            max_size=criterion.size,
            current_size=current_size,
            created_at=created_at,
            cleanup=cleanup,
            cleanup_thread=cleanup_thread,
        )
        self._writer = writer

    def flush(self) -> None:
        """Flush the output file, if it is open."""
        if self._writer is not None:
            self._writer.flush()

    def _mount_next_writer_if_necessary(self) -> None:
        rotation = self._rotation
        if rotation is None or self._writer is None or not rotation.rotation_necessary():
            return
        old_writer, self._writer = self._writer, None
        try:
            old_writer.close()
        except OSError as error:
            _report("cannot close log file", error)

        if rotation.naming is Naming.TIMESTAMPS:
            rotate_output_file_to_date(rotation.created_at, self.config)
        else:
            rotation.idx_state = rotate_output_file_to_idx(rotation.idx_state, self.config)

        self._writer, rotation.created_at, _ = open_log_file(self.config, True)
        rotation.current_size = 0
        rotation.cleanup_rotated(self.config.file_spec)

    def write_buffer(self, buf: bytes) -> None:
        """Write the bytes to the log, rotating first if the criterion is met."""
        self._initialize()
        try:
            self._mount_next_writer_if_necessary()
        except OSError as error:
            _report("can't open file", error)
        if self._writer is None:
            self._writer, _, _ = open_log_file(self.config, self._rotation is not None)
        self._writer.write(buf)
        if self._rotation is not None:
            self._rotation.current_size += len(buf)

    def current_filename(self) -> Path:
        """The path of the file that is (or will be) written to."""
        rotating = self._rotation is not None if self._active else self._rotation_config is not None
        return self.config.file_spec.as_path(CURRENT_INFIX if rotating else None)

    def validate_logs(self, expected) -> None:
        """Check that the current file holds exactly one line per expected triple,
        each line containing all three parts of its triple."""
        self._initialize()
        self.flush()
        path = self.current_filename()
        with open(path, encoding="utf-8", errors="replace", newline="") as file:
            for parts in expected:
                line = file.readline()
                for part in parts:
                    if part not in line:
                        raise AssertionError(f"Did not find {part} in file {path}")
            rest = file.readline()
            if rest:
                raise AssertionError(f"Found more log lines than expected: {rest}")

    def shutdown(self) -> None:
        """Stop the cleanup thread and flush the output."""
        if self._rotation is not None:
            self._rotation.shutdown()
        if self._writer is not None:
            try:
                self._writer.flush()
            except OSError:
                pass