# rotolog

Building blocks for writing log records to files and to a syslog daemon.

- Output to one file, or to a rotating sequence of files.
  - Rotation by size (`Criterion.by_size`), by age (`Criterion.by_age`), or by
    whichever comes first (`Criterion.by_age_or_size`).
  - Rotated files are named with numbers (`_r00000`, `_r00001`, ...) or with
    timestamps (`_r2024-01-31_12-00-00`, plus `.restart-NNNN` on collisions).
  - Old rotated files can be deleted beyond a limit (`Cleanup.keep_log_files(n)`)
    or gzip-compressed (`Cleanup.keep_compressed_files`,
    `Cleanup.keep_log_and_compressed_files`), optionally in a background thread.
- Write modes (`rotolog.write_mode.WriteMode`): direct, buffered with or without
  timed flushing, and asynchronous through an output thread.
- A `SyslogWriter` that sends RFC 5424 messages over TCP, UDP or Unix sockets.

## Installation

```
pip install rotolog
```

## Modules

- `rotolog.write_mode` – `WriteMode` and its defaults (8 KiB buffer, 1 s flush interval).
- `rotolog.config` – `FileSpec`, `Criterion`, `Age`, `Naming`, `Cleanup`,
  `RotationConfig`, `Config`, and the errors `LoggerError`, `ResetError`,
  `BadDirectoryError`.
- `rotolog.log_writer` – the abstract `LogWriter` interface and `default_format`,
  which formats a `logging.LogRecord` as `LEVEL [module] message`.
- `rotolog.rotation` – renaming of the current file, index lookup and cleanup of
  rotated files.
- `rotolog.state` – `State`, which owns the open file and performs rotation.
- `rotolog.state_handle` – thread-safe access to a `State`: `SyncStateHandle`,
  `AsyncStateHandle`, and `make_state_handle`, which picks one by write mode.
- `rotolog.syslog_writer` – `SyslogConnector` and `SyslogWriter`.

## Writing to rotating files

```python
import logging

from rotolog.config import Cleanup, Config, Criterion, FileSpec, Naming, RotationConfig
from rotolog.log_writer import default_format
from rotolog.state import State
from rotolog.state_handle import make_state_handle
from rotolog.write_mode import WriteMode

spec = FileSpec(directory="log_files", discriminant="server")
spec.if_default_use_timestamp(False)  # no start timestamp in the file name

config = Config(
    print_message=False,
    append=True,
    write_mode=WriteMode.buffer_and_flush(),
    file_spec=spec,
)
rotation = RotationConfig(
    Criterion.by_size(1_000_000), Naming.NUMBERS, Cleanup.keep_log_files(5)
)
handle = make_state_handle(State(config, rotation), default_format)

record = logging.LogRecord("app", logging.INFO, __file__, 1, "hello", None, None)
handle.write(record)
handle.flush()
handle.shutdown()
```

The file is opened lazily on the first write. With rotation, output always goes
to the file with infix `_rCURRENT`; when the criterion is met, that file is
renamed to its rotated name and a fresh `_rCURRENT` file is opened. The
directory of the `FileSpec` must already exist.

`FileSpec` uses a timestamp in file names unless `if_default_use_timestamp(False)`
has been called.

With a buffered or asynchronous write mode, call `shutdown()` on the handle
before the program ends. This flushes the output and stops the background threads.

`StateHandle.reset(builder)` swaps in a new `State`. It accepts any object that has
`assert_write_mode(write_mode)` and `try_build_state()`; the first of these should
raise `ResetError` when the write mode differs.

## Writing to the syslog

```python
import logging

from rotolog.syslog_writer import SyslogConnector, SyslogFacility, SyslogWriter

connector = SyslogConnector.try_tcp(("localhost", 601))
syslog = SyslogWriter(SyslogFacility.USER_LEVEL, logging.INFO, "app", connector)
syslog.write(record)
syslog.flush()
connector.close()
```

Log levels are mapped to severities by `default_mapping`. To use another mapping,
pass it as `determine_severity`. Besides `try_tcp`, connectors are created with
`try_udp(local, server)`, and on systems with Unix sockets with
`try_stream(path)` and `try_datagram(path)`.

## What the package does not do

- There is no ready-made file `LogWriter` and no fluent builder for one. File output
  is assembled from `Config`, `RotationConfig`, `State` and `make_state_handle`, as
  shown above.
- There is no `logging.Handler` integration and no log specification or filtering.
  Records are written as they are passed in.
- There is no command-line program.

## Running the tests

```
pip install -e ".[test]"
pytest
```