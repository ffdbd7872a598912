import logging

import pytest

from rotolog.log_writer import LogWriter, default_format


def _record(msg="%s", args=("hello",), level=logging.ERROR, pathname="server.py"):
    return logging.LogRecord(
        name="myApp",
        level=level,
        pathname=pathname,
        lineno=144,
        msg=msg,
        args=args,
        exc_info=None,
    )


class _ListWriter(LogWriter):
    def __init__(self):
        self.lines = []
        self.flushed = 0

    def write(self, record):
        self.lines.append(default_format(record))

    def flush(self):
        self.flushed += 1


def test_default_format_layout():
    assert default_format(_record()) == "ERROR [server] hello"


def test_default_format_uses_level_name():
    line = default_format(_record(level=logging.INFO, args=("x",)))
    assert line.startswith("INFO [server] ")
    assert line.endswith("x")


def test_default_format_without_module():
    assert default_format(_record(pathname="")) == "ERROR [<unnamed>] hello"


def test_abstract_writer_cannot_be_instantiated():
    with pytest.raises(TypeError):
        LogWriter()


def test_subclass_writes_and_flushes():
    writer = _ListWriter()
    writer.write(_record(args=("one",)))
    writer.write(_record(args=("two",)))
    writer.flush()
    assert writer.lines == [
        default_format(_record(args=("one",))),
        default_format(_record(args=("two",))),
    ]
    assert writer.lines == ["ERROR [server] one", "ERROR [server] two"]
    assert writer.flushed == 1


def test_default_max_log_level_lets_everything_pass():
    assert LogWriter.max_log_level(_ListWriter()) == logging.NOTSET


def test_validate_logs_unsupported_by_default():
    with pytest.raises(TypeError):
        LogWriter.validate_logs(_ListWriter(), [("ERROR", "server", "hello")])