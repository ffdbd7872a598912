"""Write modes, file naming and rotation, rotating file state with thread-safe handles, and a syslog writer."""

__version__ = "0.1.0"