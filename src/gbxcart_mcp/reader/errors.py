"""Reader controller errors."""

from __future__ import annotations


class ReaderControllerError(Exception):
    """Base class for reader controller failures."""


class FailedToOpenError(ReaderControllerError, ConnectionError):
    """The serial port did not open."""

    def __init__(self, port) -> None:
        self.port = port
        device = getattr(getattr(port, "port_info", None), "device", "") or "reader"
        super().__init__(f"Failed to open {device}")


class ReadCancelledError(ReaderControllerError):
    """A read operation was cancelled before it delivered its data."""
