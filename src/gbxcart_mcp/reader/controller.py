"""GBxCart reader controller.

Translates read-operation lifecycle events into reader commands::

               Header                Bank(n, header)                 Cartridge
    will-begin Address(0x100)        Stop, bank switch, Address(...)  -
    did-begin  Start                 Start                            -
    did-read   Continue every 64 B   Continue every 64 B              -
    did-complete Stop, Sleep(75ms)   -                                -

Commands are written synchronously: a callback does not return until
its whole sequence, delays included, has been sent.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from ..models.context import BankContext, CartridgeContext, HeaderContext
from ..models.platform import Platform
from ..protocol.banking import bank_switch_commands
from ..protocol.commands import (
    PAGE_SIZE,
    SET_START_ADDRESS,
    Address,
    Command,
    Continue,
    Sleep,
    Start,
    Stop,
    encode,
)
from ..transport.serial_connection import SerialConnection
from .errors import FailedToOpenError
from .operation import ReadOperation
from .queue import Operation, OperationQueue

logger = logging.getLogger(__name__)

# Pause after a header read. Without it the next operation's address
# write is applied to stale device state and silently reads the wrong
# region. Do not shorten.
HEADER_PAUSE_US = 75_000

BANK_ZERO_BASE = 0x0000
BANKED_WINDOW_BASE = 0x4000


class GBxCartController:
    """Sequences reader commands for queued read operations.

    Args:
        port: Serial transport. Defaults to a :class:`SerialConnection`
            that discovers the reader by USB VID/PID.
        platform: Cartridge platform family being read.
        sleep: Blocking delay function taking seconds.
    """

    def __init__(
        self,
        port: SerialConnection | None = None,
        platform: Platform = Platform.GAMEBOY_CLASSIC,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.port = port if port is not None else SerialConnection()
        self.platform = platform
        self._sleep = sleep
        self._queue = OperationQueue(name="gbxcart-reads")
        self._send_lock = threading.RLock()

    @property
    def is_open(self) -> bool:
        return self.port.is_open

    @property
    def delegate(self):
        return self.port.delegate

    @delegate.setter
    def delegate(self, value) -> None:
        self.port.delegate = value

    @property
    def queue(self) -> OperationQueue:
        return self._queue

    def open(self, delegate=None) -> None:
        """Install ``delegate`` and open the port if needed.

        Raises:
            FailedToOpenError: If the port is still closed afterwards.
        """
        self.delegate = delegate
        if not self.port.is_open:
            self.port.open()
        if not self.port.is_open:
            raise FailedToOpenError(self.port)

    def close(self) -> bool:
        return self.port.close()

    def add_operation(self, operation: Operation) -> None:
        self._queue.add_operation(operation)

    def send(self, *commands: Command) -> None:
        """Write commands in order; ``Sleep`` blocks instead of writing."""
        with self._send_lock:
            for command in commands:
                data = encode(command, self.platform)
                logger.debug("send %r %s", command, data.hex(" ") if data else "")
                if data is None:
                    self._sleep(command.seconds)
                else:
                    self.port.write(data)

    # Read operation lifecycle

    def read_operation_will_begin(self, operation: Operation) -> None:
        if not _is_read_operation(operation):
            operation.cancel()
            return

        context = operation.context
        if isinstance(context, HeaderContext):
            address = self.platform.header_range.start
            self.send(Address(SET_START_ADDRESS, 16, address))
        elif isinstance(context, BankContext):
            self.send(Stop())
            self.set_bank(context.bank, context.header)
            # Drop the page the previous read's last Continue asked for
            self.port.reset_input_buffer()
            base = BANKED_WINDOW_BASE if context.bank > 1 else BANK_ZERO_BASE
            self.send(Address(SET_START_ADDRESS, 16, base))

    def read_operation_did_begin(self, operation: Operation) -> None:
        if not _is_read_operation(operation):
            operation.cancel()
            return

        if isinstance(operation.context, (HeaderContext, BankContext)):
            self.send(Start())

    def read_operation_did_read(self, operation: Operation, completed: int) -> None:
        if not _is_read_operation(operation):
            operation.cancel()
            return

        if isinstance(operation.context, CartridgeContext):
            return
        if completed % PAGE_SIZE == 0:
            self.send(Continue())

    def read_operation_did_complete(self, operation: Operation) -> None:
        self.delegate = None

        if not _is_read_operation(operation):
            operation.cancel()
            return

        if isinstance(operation.context, HeaderContext):
            self.send(Stop(), Sleep(HEADER_PAUSE_US))

    def set_bank(self, bank: int, header) -> None:
        """Map ``bank`` into the banked window; blocks through the settling delays."""
        self.send(*bank_switch_commands(bank, header, self.platform))


def _is_read_operation(operation: Operation) -> bool:
    return isinstance(operation, ReadOperation) and isinstance(
        operation.context, (HeaderContext, BankContext, CartridgeContext)
    )
