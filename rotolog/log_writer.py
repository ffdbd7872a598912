"""The interface of log writers and the default line format.

A log writer writes formatted log records to one output stream. Besides the
default output, writers can be registered under a target name and addressed
explicitly; such records bypass the log specification.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable

FormatFunction = Callable[[logging.LogRecord], str]


def default_format(record: logging.LogRecord) -> str:
    """Format a record as ``LEVEL [module] message``."""
    return f"{record.levelname} [{record.module or '<unnamed>'}] {record.getMessage()}"


class LogWriter(ABC):
    """Writes to a single log output stream."""

    @abstractmethod
    def write(self, record: logging.LogRecord) -> None:
        """Write out a log line; raises OSError on failure."""

    @abstractmethod
    def flush(self) -> None:
        """Flush any buffered records; raises OSError on failure."""

    def max_log_level(self) -> int:
        """The most verbose level that is written; by default every level."""
        return logging.NOTSET

    def format(self, format_function: FormatFunction) -> None:
        """Set the format function; writers without one ignore it."""

    def shutdown(self) -> None:
        """Release open resources, if necessary."""

    def validate_logs(self, expected) -> None:
        """Compare the written log with expected (level, module, text) triples.

        Only writers that write to a readable file support this.
        """
        raise TypeError(f"{type(self).__name__} does not support validate_logs")