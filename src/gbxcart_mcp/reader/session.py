"""Blocking high-level reads on top of the controller's operation queue."""

from __future__ import annotations

import logging
from typing import Callable

from ..models.context import BankContext, CartridgeContext, HeaderContext
from ..models.header import BANK_SIZE, GameboyClassicHeader
from ..models.platform import Platform
from .controller import GBxCartController
from .errors import ReadCancelledError
from .operation import ReadOperation

logger = logging.getLogger(__name__)


class CartridgeReader:
    """Reads headers, banks, and whole ROM images from a cartridge.

    Usage::

        reader = CartridgeReader(GBxCartController())
        header = reader.read_header()
        rom = reader.read_cartridge(header)
    """

    def __init__(self, controller: GBxCartController) -> None:
        self.controller = controller

    def header_operation(self) -> ReadOperation:
        size = len(self.controller.platform.header_range)
        return ReadOperation(self.controller, HeaderContext(), size)

    def bank_operation(self, bank: int, header: GameboyClassicHeader) -> ReadOperation:
        """Bank 1 reads 0x0000-0x7FFF, so it carries bank 0 along with it."""
        size = BANK_SIZE * 2 if bank == 1 else BANK_SIZE
        return ReadOperation(self.controller, BankContext(bank, header), size)

    def stream_operation(self, size: int) -> ReadOperation:
        return ReadOperation(self.controller, CartridgeContext(), size)

    def read_header(self) -> GameboyClassicHeader:
        """Read and parse the cartridge header.

        Raises:
            ReadCancelledError: If the operation was cancelled.
            FailedToOpenError: If the reader could not be opened.
        """
        if self.controller.platform is not Platform.GAMEBOY_CLASSIC:
            raise NotImplementedError(
                f"Header parsing is not implemented for {self.controller.platform}"
            )
        data = self._run(self.header_operation())
        header = GameboyClassicHeader.from_bytes(data)
        logger.info("Read header: %r (%s)", header.title, header.configuration.value)
        if not header.is_valid:
            logger.warning("Header checksum mismatch for %r", header.title)
        return header

    def read_bank(self, bank: int, header: GameboyClassicHeader) -> bytes:
        return self._run(self.bank_operation(bank, header))

    def read_stream(self, size: int) -> bytes:
        """Collect ``size`` bytes from a reader that is already streaming."""
        return self._run(self.stream_operation(size))

    def read_cartridge(
        self,
        header: GameboyClassicHeader,
        progress: Callable[[int, int], None] | None = None,
    ) -> bytes:
        """Read every ROM bank and return the full image.

        Args:
            header: The cartridge's header, deciding bank count and
                bank-switch policy.
            progress: Called as ``progress(banks_done, bank_total)``.

        Raises:
            ValueError: If the header's ROM size code is unknown.
        """
        total = header.rom_banks
        operations = [self.bank_operation(bank, header) for bank in range(1, total)]
        for op in operations:
            self.controller.add_operation(op)

        rom = bytearray()
        done = 1
        for op in operations:
            rom += self._wait(op)
            done += 1
            if progress is not None:
                progress(done, total)
        logger.info("Read %d banks (%d bytes)", total, len(rom))
        return bytes(rom)

    def _run(self, operation: ReadOperation) -> bytes:
        self.controller.add_operation(operation)
        return self._wait(operation)

    def _wait(self, operation: ReadOperation) -> bytes:
        operation.wait()
        queue = self.controller.queue
        if operation.exception is not None:
            raise operation.exception
        if queue.error is not None:
            raise queue.error
        if operation.error is not None:
            queue.cancel_all_operations()
            raise operation.error
        if operation.is_cancelled:
            queue.cancel_all_operations()
            raise ReadCancelledError(f"{operation!r} was cancelled")
        return operation.data
