"""Read operations: queue-owned units that collect bytes from the reader.

A ``ReadOperation`` is also the serial port's delegate for as long as it
runs. It hands each lifecycle point to the controller::

    will-begin -> did-begin -> did-read (per page) -> did-complete
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Callable, Optional

from ..models.context import ReadContext
from ..protocol.commands import PAGE_SIZE
from .errors import FailedToOpenError
from .queue import Operation

if TYPE_CHECKING:
    from .controller import GBxCartController

logger = logging.getLogger(__name__)

ReadResult = Callable[[Optional[bytes]], None]


class ReadOperation(Operation):
    """Read ``unit_count`` bytes from the reader for ``context``.

    Args:
        controller: The controller sequencing commands for this operation.
        context: What is being read.
        unit_count: Number of bytes to collect.
        result: Called once with the collected bytes, or ``None`` if the
            operation was cancelled while running.
    """

    def __init__(
        self,
        controller: GBxCartController,
        context: ReadContext,
        unit_count: int,
        result: ReadResult | None = None,
    ) -> None:
        super().__init__()
        if unit_count <= 0:
            raise ValueError(f"unit_count must be positive, got {unit_count}")
        self.controller = controller
        self.context = context
        self.unit_count = unit_count
        self.result = result
        self.error: Exception | None = None
        self._buffer = bytearray()
        self._done = threading.Event()
        self._accepting = False

    def __repr__(self) -> str:
        return (
            f"ReadOperation(context={self.context!r}, "
            f"progress={len(self._buffer)}/{self.unit_count})"
        )

    @property
    def completed_unit_count(self) -> int:
        return len(self._buffer)

    @property
    def data(self) -> bytes:
        return bytes(self._buffer)

    def cancel(self) -> None:
        super().cancel()
        self._done.set()

    def main(self) -> None:
        try:
            self.controller.open(delegate=self)
        except FailedToOpenError as e:
            logger.error("%s; cancelling %r", e, self)
            self.controller.delegate = None
            self.error = e
            self.cancel()
        else:
            self.controller.read_operation_will_begin(self)
            if not self.is_cancelled:
                self._accepting = True
                self.controller.read_operation_did_begin(self)
                self._done.wait()
            self.controller.read_operation_did_complete(self)

        if self.result is not None:
            self.result(None if self.is_cancelled else self.data)

    # Serial port delegate

    def serial_port_did_receive(self, port, data: bytes) -> None:
        remaining = self.unit_count - len(self._buffer)
        # Bytes before did-begin are leftovers from the previous operation
        if not self._accepting or self._done.is_set() or remaining <= 0:
            return
        data = data[:remaining]
        while data:
            # Report progress at every page boundary
            room = PAGE_SIZE - len(self._buffer) % PAGE_SIZE
            chunk, data = data[:room], data[room:]
            self._buffer += chunk
            self.controller.read_operation_did_read(self, len(self._buffer))
        if len(self._buffer) >= self.unit_count:
            self._done.set()

    def serial_port_was_closed(self, port) -> None:
        logger.warning("Port closed during %r", self)
        self.cancel()

    def serial_port_did_encounter_error(self, port, error: Exception) -> None:
        logger.error("Port error during %r: %s", self, error)
        self.cancel()
