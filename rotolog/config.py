"""Configuration types of the file log writer: file naming, rotation and cleanup."""

from __future__ import annotations

import glob
import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from rotolog.write_mode import WriteMode

WINDOWS_LINE_ENDING = b"\r\n"
UNIX_LINE_ENDING = b"\n"

_TIMESTAMP_FORMAT = "_%Y-%m-%d_%H-%M-%S"


class LoggerError(Exception):
    """Base class of the errors raised by this package."""


class ResetError(LoggerError):
    """A reset was tried without a file log writer or with a different write mode."""

    def __init__(self, message: str = "reset not possible with a different write mode") -> None:
        super().__init__(message)


class BadDirectoryError(LoggerError):
    """The configured output directory exists but is not a directory."""

    def __init__(self, message: str = "output directory is not a directory") -> None:
        super().__init__(message)


class Age(Enum):
    """Time span after which a log file is rotated."""

    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"
    SECOND = "second"


@dataclass(frozen=True)
class Criterion:
    """When a log file is rotated: by age, by size in bytes, or by whichever comes first."""

    age: Age | None = None
    size: int | None = None

    def __post_init__(self) -> None:
        if self.age is None and self.size is None:
            raise ValueError("a rotation criterion needs an age or a size")
        if self.size is not None and self.size < 0:
            raise ValueError(f"size must not be negative, got {self.size}")

    @classmethod
    def by_age(cls, age: Age) -> Criterion:
        return cls(age=age)

    @classmethod
    def by_size(cls, size: int) -> Criterion:
        return cls(size=size)

    @classmethod
    def by_age_or_size(cls, age: Age, size: int) -> Criterion:
        return cls(age=age, size=size)


class Naming(Enum):
    """How rotated files are named."""

    TIMESTAMPS = "timestamps"
    NUMBERS = "numbers"


class CleanupKind(Enum):
    NEVER = "never"
    KEEP_LOG_FILES = "keep_log_files"
    KEEP_COMPRESSED_FILES = "keep_compressed_files"
    KEEP_LOG_AND_COMPRESSED_FILES = "keep_log_and_compressed_files"


@dataclass(frozen=True)
class Cleanup:
    """What happens to rotated files: kept, deleted beyond a limit, or compressed."""

    kind: CleanupKind = CleanupKind.NEVER
    log_limit: int = 0
    compress_limit: int = 0

    def __post_init__(self) -> None:
        if self.log_limit < 0 or self.compress_limit < 0:
            raise ValueError("cleanup limits must not be negative")

    @classmethod
    def never(cls) -> Cleanup:
        return cls(CleanupKind.NEVER)

    @classmethod
    def keep_log_files(cls, count: int) -> Cleanup:
        return cls(CleanupKind.KEEP_LOG_FILES, log_limit=count)

    @classmethod
    def keep_compressed_files(cls, count: int) -> Cleanup:
        return cls(CleanupKind.KEEP_COMPRESSED_FILES, compress_limit=count)

    @classmethod
    def keep_log_and_compressed_files(cls, log_count: int, compressed_count: int) -> Cleanup:
        return cls(
            CleanupKind.KEEP_LOG_AND_COMPRESSED_FILES,
            log_limit=log_count,
            compress_limit=compressed_count,
        )

    def do_cleanup(self) -> bool:
        """Whether any cleanup work is to be done."""
        return self.kind is not CleanupKind.NEVER


class TimestampCfg(Enum):
    DEFAULT = "default"
    YES = "yes"
    NO = "no"


def _program_stem() -> str:
    return Path(sys.argv[0]).stem if sys.argv and sys.argv[0] else "log"


@dataclass
class FileSpec:
    """Builds the paths of log files from directory, basename, discriminant,
    an optional timestamp, an optional infix and the suffix."""

    directory: Path = Path(".")
    basename: str = field(default_factory=_program_stem)
    discriminant: str | None = None
    suffix: str | None = "log"
    timestamp_cfg: TimestampCfg = TimestampCfg.DEFAULT
    timestamp: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.directory = Path(self.directory)
        self.timestamp = datetime.now().strftime(_TIMESTAMP_FORMAT)

    def if_default_use_timestamp(self, use_timestamp: bool) -> None:
        """Fix whether a timestamp is used, unless it was chosen explicitly."""
        if self.timestamp_cfg is TimestampCfg.DEFAULT:
            self.timestamp_cfg = TimestampCfg.YES if use_timestamp else TimestampCfg.NO

    def _stem(self, escape) -> str:
        name = escape(self.basename)
        if self.discriminant:
            name += "_" + escape(self.discriminant)
        if self.timestamp_cfg is not TimestampCfg.NO:
            name += escape(self.timestamp)
        return name

    def as_path(self, infix: str | None = None) -> Path:
        """The path of the log file with the given infix."""
        name = self._stem(str)
        if infix:
            name += infix
        if self.suffix:
            name += "." + self.suffix
        return self.directory / name

    def as_glob_pattern(self, infix: str | None = None, suffix: str | None = None) -> str:
        """A glob pattern; the infix is taken as a pattern, the rest literally.
        A given suffix replaces the configured one."""
        name = self._stem(glob.escape)
        if infix:
            name += infix
        chosen = suffix if suffix is not None else self.suffix
        if chosen:
            name += "." + glob.escape(chosen)
        return str(Path(glob.escape(str(self.directory))) / name)


@dataclass(frozen=True)
class RotationConfig:
    """How rotation works: when, how rotated files are named, and what is cleaned up."""

    criterion: Criterion
    naming: Naming
    cleanup: Cleanup


@dataclass
class Config:
    """The fixed configuration of a file log writer."""

    print_message: bool
    append: bool
    write_mode: WriteMode
    file_spec: FileSpec
    create_symlink: Path | None = None
    line_ending: bytes = UNIX_LINE_ENDING