"""File-level rotation work: naming, renaming and cleanup of rotated log files."""

from __future__ import annotations

import glob
import gzip
import os
import shutil
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from rotolog.config import Cleanup, CleanupKind, Config, FileSpec

CURRENT_INFIX = "_rCURRENT"
_DATE_INFIX_FORMAT = "_r%Y-%m-%d_%H-%M-%S"
_RESTART_MARKER = ".restart-"
_U32_LIMIT = 2**32


def _report(message: str, error: BaseException) -> None:
    print(f"[rotolog] {message}: {error}", file=sys.stderr)


def number_infix(idx: int) -> str:
    """The infix of the rotated file with the given index, e.g. ``_r00007``."""
    return f"_r{idx:05d}"


@dataclass(frozen=True)
class IdxState:
    """The highest index of the numbered rotated files; None if there is none yet."""

    idx: int | None = None

    @property
    def is_start(self) -> bool:
        return self.idx is None

    def next_index(self) -> int:
        """The index the next rotated file gets."""
        return 0 if self.idx is None else self.idx + 1


def _parse_index(text: str) -> int:
    digits = text[1:] if text.startswith("+") else text
    if digits and digits.isascii() and digits.isdigit():
        value = int(digits)
        if value < _U32_LIMIT:
            return value
    return 0


def get_highest_rotate_idx(file_spec: FileSpec) -> IdxState:
    """Find the highest index among the existing rotated files."""
    highest = IdxState()
    for file in list_of_log_and_compressed_files(file_spec):
        idx = _parse_index(file.stem.rsplit("_r", 1)[-1])
        highest = IdxState(idx if highest.idx is None else max(highest.idx, idx))
    return highest


def _list_of_files(pattern: str) -> list[Path]:
    return [Path(name) for name in sorted(glob.glob(pattern), reverse=True)]


def list_of_log_and_compressed_files(file_spec: FileSpec) -> list[Path]:
    """Rotated log files, then gzipped ones, then zipped ones; each newest first."""
    infix = "_r[0-9]*"
    log_files = _list_of_files(file_spec.as_glob_pattern(infix, None))
    gz_files = _list_of_files(file_spec.as_glob_pattern(infix, "gz"))
    zip_files = _list_of_files(file_spec.as_glob_pattern(infix, "zip"))
    return log_files + gz_files + zip_files


def _compress(file: Path) -> None:
    compressed = file.with_name(file.stem + ".log.gz")
    with file.open("rb") as source, gzip.open(compressed, "wb", compresslevel=1) as target:
        shutil.copyfileobj(source, target)
    file.unlink()


def remove_or_compress_too_old_logfiles(cleanup: Cleanup, file_spec: FileSpec) -> None:
    """Delete or compress the rotated files that exceed the cleanup limits."""
    if cleanup.kind is CleanupKind.NEVER:
        return
    log_limit = cleanup.log_limit
    compress_limit = cleanup.compress_limit
    for index, file in enumerate(list_of_log_and_compressed_files(file_spec)):
        if index >= log_limit + compress_limit:
            file.unlink()
        elif index >= log_limit and file.suffix and file.suffix != ".gz":
            _compress(file)


def rotate_output_file_to_date(creation_date: datetime, config: Config) -> None:
    """Rename the current file to a name with its creation timestamp.

    If that name is taken, a ``.restart-NNNN`` marker with the next free
    number is added.
    """
    spec = config.file_spec
    current_path = spec.as_path(CURRENT_INFIX)
    date_infix = creation_date.strftime(_DATE_INFIX_FORMAT)
    rotated_path = spec.as_path(date_infix)

    pattern = glob.escape(str(rotated_path.with_suffix(""))) + _RESTART_MARKER + "*"
    restarts = sorted(glob.glob(pattern))

    if rotated_path.exists() or restarts:
        number = 0
        if restarts:
            rotated_path = Path(restarts[-1])
            stem = rotated_path.stem
            number = int(stem[stem.index(_RESTART_MARKER) + len(_RESTART_MARKER):])
        while rotated_path.exists():
            rotated_path = spec.as_path(f"{date_infix}{_RESTART_MARKER}{number:04d}")
            number += 1

    try:
        os.replace(current_path, rotated_path)
    except FileNotFoundError:
        pass


def rotate_output_file_to_idx(idx_state: IdxState, config: Config) -> IdxState:
    """Rename the current file to the next numbered name and return the new state.

    If there is no current file, nothing happens and the state is returned unchanged.
    """
    spec = config.file_spec
    new_idx = idx_state.next_index()
    try:
        os.replace(spec.as_path(CURRENT_INFIX), spec.as_path(number_infix(new_idx)))
    except FileNotFoundError:
        return idx_state
    return IdxState(new_idx)


def get_creation_date(path: Path) -> datetime:
    """The creation date of the file where the platform reports it reliably, else now."""
    if sys.platform.startswith("linux") or sys.platform == "win32":
        return datetime.now()
    try:
        return datetime.fromtimestamp(os.stat(path).st_birthtime)
    except (OSError, AttributeError):
        return datetime.now()


def create_symlink_if_possible(link: Path, path: Path) -> None:
    """On Linux, point the symlink ``link`` to ``path``, replacing an old link."""
    if not sys.platform.startswith("linux"):
        return
    link = Path(link)
    try:
        os.lstat(link)
    except OSError:
        pass
    else:
        try:
            link.unlink()
        except OSError as error:
            _report("cannot delete symlink to log file", error)
    try:
        os.symlink(path, link)
    except OSError as error:
        _report("cannot create symlink to logfile", error)