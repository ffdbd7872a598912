"""Write modes: whether output is written directly, buffered, flushed or handed to a thread."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

DEFAULT_BUFFER_CAPACITY = 8 * 1024
"""Default buffer capacity (8k), when buffering is used."""

DEFAULT_FLUSH_INTERVAL = 1.0
"""Default flush interval in seconds, when flushing is used."""

DEFAULT_POOL_CAPA = 50
"""Default size of the message pool of the asynchronous mode."""

DEFAULT_MESSAGE_CAPA = 200
"""Default capacity of a message buffer of the asynchronous mode."""


def _seconds(interval: float | timedelta) -> float:
    seconds = interval.total_seconds() if isinstance(interval, timedelta) else float(interval)
    if seconds < 0:
        raise ValueError(f"flush interval must not be negative, got {seconds}")
    return seconds


def _size(name: str, value: int) -> int:
    value = int(value)
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


class WriteModeKind(Enum):
    """The variants a write mode can be configured with."""

    DIRECT = "direct"
    BUFFER_AND_FLUSH = "buffer_and_flush"
    BUFFER_AND_FLUSH_WITH = "buffer_and_flush_with"
    BUFFER_DONT_FLUSH = "buffer_dont_flush"
    BUFFER_DONT_FLUSH_WITH = "buffer_dont_flush_with"
    ASYNC = "async"
    ASYNC_WITH = "async_with"


class EffectiveKind(Enum):
    """The variants a write mode resolves to once defaults are filled in."""

    DIRECT = "direct"
    BUFFER_AND_FLUSH = "buffer_and_flush"
    BUFFER_DONT_FLUSH = "buffer_dont_flush"
    ASYNC = "async"


@dataclass(frozen=True)
class EffectiveWriteMode:
    """A write mode with all defaults resolved."""

    kind: EffectiveKind
    bufsize: int | None = None
    flush_interval: float = 0.0
    pool_capa: int | None = None
    message_capa: int | None = None


@dataclass(frozen=True)
class WriteMode:
    """Describes whether output is written synchronously or asynchronously,
    and if and how it is buffered and flushed.

    Create instances with the class methods; the default is ``direct``.
    A flush interval of zero suppresses flushing.
    """

    kind: WriteModeKind = WriteModeKind.DIRECT
    bufsize: int | None = None
    interval: float | None = None
    pool_capa: int | None = None
    message_capa: int | None = None

    @classmethod
    def direct(cls) -> WriteMode:
        """Every line is written directly, without buffering."""
        return cls(WriteModeKind.DIRECT)

    @classmethod
    def buffer_and_flush(cls) -> WriteMode:
        """Buffer with the default capacity and flush with the default interval."""
        return cls(WriteModeKind.BUFFER_AND_FLUSH)

    @classmethod
    def buffer_and_flush_with(cls, bufsize: int, flush_interval: float | timedelta) -> WriteMode:
        """Buffer with the given capacity and flush with the given interval."""
        return cls(
            WriteModeKind.BUFFER_AND_FLUSH_WITH,
            bufsize=_size("bufsize", bufsize),
            interval=_seconds(flush_interval),
        )

    @classmethod
    def buffer_dont_flush(cls) -> WriteMode:
        """Buffer with the default capacity, never flush on a timer."""
        return cls(WriteModeKind.BUFFER_DONT_FLUSH)

    @classmethod
    def buffer_dont_flush_with(cls, bufsize: int) -> WriteMode:
        """Buffer with the given capacity, never flush on a timer."""
        return cls(WriteModeKind.BUFFER_DONT_FLUSH_WITH, bufsize=_size("bufsize", bufsize))

    @classmethod
    def async_default(cls) -> WriteMode:
        """Asynchronous output with default values for all parameters."""
        return cls(WriteModeKind.ASYNC)

    @classmethod
    def async_with(
        cls,
        bufsize: int,
        pool_capa: int,
        message_capa: int,
        flush_interval: float | timedelta,
    ) -> WriteMode:
        """Asynchronous output through an output thread with the given parameters."""
        return cls(
            WriteModeKind.ASYNC_WITH,
            bufsize=_size("bufsize", bufsize),
            interval=_seconds(flush_interval),
            pool_capa=_size("pool_capa", pool_capa),
            message_capa=_size("message_capa", message_capa),
        )

    def effective(self) -> EffectiveWriteMode:
        """Resolve the defaults of this write mode."""
        kind = self.kind
        if kind is WriteModeKind.DIRECT:
            return EffectiveWriteMode(EffectiveKind.DIRECT)
        if kind is WriteModeKind.BUFFER_DONT_FLUSH:
            return EffectiveWriteMode(EffectiveKind.BUFFER_DONT_FLUSH, bufsize=DEFAULT_BUFFER_CAPACITY)
        if kind is WriteModeKind.BUFFER_DONT_FLUSH_WITH:
            return EffectiveWriteMode(EffectiveKind.BUFFER_DONT_FLUSH, bufsize=self.bufsize)
        if kind is WriteModeKind.BUFFER_AND_FLUSH:
            return EffectiveWriteMode(
                EffectiveKind.BUFFER_AND_FLUSH,
                bufsize=DEFAULT_BUFFER_CAPACITY,
                flush_interval=DEFAULT_FLUSH_INTERVAL,
            )
        if kind is WriteModeKind.BUFFER_AND_FLUSH_WITH:
            return EffectiveWriteMode(
                EffectiveKind.BUFFER_AND_FLUSH,
                bufsize=self.bufsize,
                flush_interval=self.interval,
            )
        if kind is WriteModeKind.ASYNC:
            return EffectiveWriteMode(
                EffectiveKind.ASYNC,
                bufsize=DEFAULT_BUFFER_CAPACITY,
                flush_interval=DEFAULT_FLUSH_INTERVAL,
                pool_capa=DEFAULT_POOL_CAPA,
                message_capa=DEFAULT_MESSAGE_CAPA,
            )
        return EffectiveWriteMode(
            EffectiveKind.ASYNC,
            bufsize=self.bufsize,
            flush_interval=self.interval,
            pool_capa=self.pool_capa,
            message_capa=self.message_capa,
        )

    def without_flushing(self) -> WriteMode:
        """Return the corresponding write mode that never flushes on a timer."""
        kind = self.kind
        if kind in (
            WriteModeKind.DIRECT,
            WriteModeKind.BUFFER_DONT_FLUSH,
            WriteModeKind.BUFFER_DONT_FLUSH_WITH,
        ):
            return self
        if kind is WriteModeKind.BUFFER_AND_FLUSH:
            return WriteMode.buffer_dont_flush()
        if kind is WriteModeKind.BUFFER_AND_FLUSH_WITH:
            return WriteMode.buffer_dont_flush_with(self.bufsize)
        if kind is WriteModeKind.ASYNC:
            return WriteMode.async_with(
                DEFAULT_BUFFER_CAPACITY, DEFAULT_POOL_CAPA, DEFAULT_MESSAGE_CAPA, 0
            )
        return WriteMode.async_with(self.bufsize, self.pool_capa, self.message_capa, 0)

    def buffer_size(self) -> int | None:
        """The size of the output buffer, or None if output is not buffered."""
        return self.effective().bufsize

    def flush_interval(self) -> float:
        """The flush interval in seconds; zero means no timed flushing."""
        if self.kind in (
            WriteModeKind.DIRECT,
            WriteModeKind.BUFFER_DONT_FLUSH,
            WriteModeKind.BUFFER_DONT_FLUSH_WITH,
        ):
            return 0.0
        if self.kind in (WriteModeKind.BUFFER_AND_FLUSH, WriteModeKind.ASYNC):
            return DEFAULT_FLUSH_INTERVAL
        return self.interval

    def is_async(self) -> bool:
        """Whether output is handed to a dedicated output thread."""
        return self.kind in (WriteModeKind.ASYNC, WriteModeKind.ASYNC_WITH)