"""A log writer that sends RFC 5424 messages to the syslog."""

from __future__ import annotations

import logging
import os
import socket
import sys
import threading
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Callable

from rotolog.log_writer import LogWriter


class SyslogFacility(IntEnum):
    """Syslog facility, already shifted into place."""

    KERNEL = 0 << 3
    USER_LEVEL = 1 << 3
    MAIL_SYSTEM = 2 << 3
    SYSTEM_DAEMONS = 3 << 3
    AUTHORIZATION = 4 << 3
    SYSLOG_D = 5 << 3
    LINE_PRINTER = 6 << 3
    NEWS = 7 << 3
    UUCP = 8 << 3
    CLOCK = 9 << 3
    AUTHORIZATION2 = 10 << 3
    FTP = 11 << 3
    NTP = 12 << 3
    LOG_AUDIT = 13 << 3
    LOG_ALERT = 14 << 3
    CLOCK2 = 15 << 3
    LOCAL_USE_0 = 16 << 3
    LOCAL_USE_1 = 17 << 3
    LOCAL_USE_2 = 18 << 3
    LOCAL_USE_3 = 19 << 3
    LOCAL_USE_4 = 20 << 3
    LOCAL_USE_5 = 21 << 3
    LOCAL_USE_6 = 22 << 3
    LOCAL_USE_7 = 23 << 3


class SyslogSeverity(IntEnum):
    """Syslog severity."""

    EMERGENCY = 0
    ALERT = 1
    CRITICAL = 2
    ERROR = 3
    WARNING = 4
    NOTICE = 5
    INFO = 6
    DEBUG = 7


LevelToSyslogSeverity = Callable[[int], SyslogSeverity]


def default_mapping(level: int) -> SyslogSeverity:
    """Map a logging level to a syslog severity."""
    if level >= logging.ERROR:
        return SyslogSeverity.ERROR
    if level >= logging.WARNING:
        return SyslogSeverity.WARNING
    if level >= logging.INFO:
        return SyslogSeverity.INFO
    return SyslogSeverity.DEBUG


def _address(server) -> tuple:
    if isinstance(server, str):
        host, sep, port = server.rpartition(":")
        if not sep:
            raise OSError(f"invalid socket address: {server!r}")
        return host.strip("[]"), int(port)
    return tuple(server)


def _require_unix_sockets() -> None:
    if not hasattr(socket, "AF_UNIX"):
        raise OSError("unix domain sockets are not available on this platform")


class ConnectorKind(Enum):
    STREAM = "stream"
    DATAGRAM = "datagram"
    UDP = "udp"
    TCP = "tcp"


class SyslogConnector:
    """A connection to the syslog over a unix socket, UDP or TCP."""

    def __init__(self, kind: ConnectorKind, sock: socket.socket) -> None:
        self.kind = kind
        self._socket = sock
        self._writer = sock.makefile("wb") if kind in (ConnectorKind.STREAM, ConnectorKind.TCP) else None

    @classmethod
    def try_datagram(cls, path) -> SyslogConnector:
        """Connect to a unix datagram socket at the given path."""
        _require_unix_sockets()
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
        try:
            sock.connect(os.fspath(path))
        except OSError:
            sock.close()
            raise
        return cls(ConnectorKind.DATAGRAM, sock)

    @classmethod
    def try_stream(cls, path) -> SyslogConnector:
        """Connect to a unix stream socket at the given path."""
        _require_unix_sockets()
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(os.fspath(path))
        except OSError:
            sock.close()
            raise
        return cls(ConnectorKind.STREAM, sock)

    @classmethod
    def try_tcp(cls, server) -> SyslogConnector:
        """Connect via TCP to ``server``, given as ``"host:port"`` or ``(host, port)``."""
        return cls(ConnectorKind.TCP, socket.create_connection(_address(server)))

    @classmethod
    def try_udp(cls, local, server) -> SyslogConnector:
        """Send via UDP from the local address to the server; fragile beyond localhost."""
        host, port = _address(local)[:2]
        family, _, _, _, local_addr = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)[0]
        sock = socket.socket(family, socket.SOCK_DGRAM)
        try:
            sock.bind(local_addr)
            sock.connect(_address(server))
        except OSError:
            sock.close()
            raise
        return cls(ConnectorKind.UDP, sock)

    def write(self, message: bytes) -> int:
        """Send a message; returns the number of bytes of it that were taken."""
        if self.kind is ConnectorKind.STREAM:
            written = self._writer.write(message)
            self._writer.write(b"\0")
            return written
        if self.kind is ConnectorKind.TCP:
            return self._writer.write(message)
        return self._socket.send(message)

    def flush(self) -> None:
        if self._writer is not None:
            self._writer.flush()

    def close(self) -> None:
        """Flush and close the connection."""
        try:
            if self._writer is not None:
                self._writer.close()
        finally:
            self._socket.close()

    def __enter__(self) -> SyslogConnector:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _debug_quote(text: str) -> str:
    escaped = []
    for char in text:
        if char in '"\\':
            escaped.append("\\" + char)
        elif char == "\n":
            escaped.append("\\n")
        elif char == "\r":
            escaped.append("\\r")
        elif char == "\t":
            escaped.append("\\t")
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            escaped.append(f"\\u{{{ord(char):x}}}")
        else:
            escaped.append(char)
    return '"' + "".join(escaped) + '"'


class SyslogWriter(LogWriter):
    """Writes log records as RFC 5424 messages through a SyslogConnector."""

    def __init__(
        self,
        facility: SyslogFacility,
        max_log_level: int,
        message_id: str,
        syslog: SyslogConnector,
        determine_severity: LevelToSyslogSeverity | None = None,
    ) -> None:
        if not sys.argv:
            raise OSError("<no progname>")
        try:
            self.hostname = socket.gethostname()
        except OSError:
            self.hostname = "<unknown_hostname>"
        self.process = sys.argv[0]
        self.pid = os.getpid()
        self.facility = facility
        self.message_id = message_id
        self._determine_severity = determine_severity or default_mapping
        self._syslog = syslog
        self._max_log_level = max_log_level
        self._lock = threading.Lock()

    def write(self, record: logging.LogRecord) -> None:
        severity = self._determine_severity(record.levelno)
        timestamp = (
            datetime.fromtimestamp(record.created, tz=timezone.utc)
            .astimezone()
            .isoformat(timespec="microseconds")
        )
        line = (
            f"<{int(self.facility) | int(severity)}>1 {timestamp} {_debug_quote(self.hostname)} "
            f"{self.process} {self.pid} {self.message_id} - {record.getMessage()}\n"
        )
        with self._lock:
            self._syslog.write(line.encode("utf-8"))

    def flush(self) -> None:
        with self._lock:
            self._syslog.flush()

    def max_log_level(self) -> int:
        return self._max_log_level