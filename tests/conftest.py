"""Shared fixtures: a simulated GBxCart reader and synthetic ROM images."""

from __future__ import annotations

import pytest

from gbxcart_mcp.models.platform import Platform
from gbxcart_mcp.protocol.commands import (
    PAGE_SIZE,
    SET_BANK,
    SET_START_ADDRESS,
    Address,
    Continue,
    Start,
    Stop,
)
from gbxcart_mcp.protocol.parser import CommandParser
from gbxcart_mcp.transport.serial_connection import PortInfo
from gbxcart_mcp.utils.checksum import global_checksum, header_checksum

BANK_SIZE = 0x4000


def build_rom(
    banks: int = 4,
    cartridge_type: int = 0x19,
    title: str = "TESTCART",
) -> bytes:
    """Build a ROM whose bytes identify their bank and offset."""
    rom = bytearray()
    for bank in range(banks):
        rom += bytes((bank + i) & 0xFF for i in range(BANK_SIZE))

    rom_size_code = banks.bit_length() - 2
    header = bytearray(rom[0x100:0x150])
    header[0x34:0x44] = title.encode("ascii").ljust(16, b"\x00")
    header[0x44:0x46] = b"01"
    header[0x47] = cartridge_type
    header[0x48] = rom_size_code
    header[0x49] = 0x00
    header[0x4D] = header_checksum(bytes(header))
    rom[0x100:0x150] = header

    checksum = global_checksum(bytes(rom))
    rom[0x14E:0x150] = checksum.to_bytes(2, "big")
    return bytes(rom)


class RecordingPort:
    """Serial port stand-in that records writes and never sends data."""

    def __init__(self, open_result: bool = True) -> None:
        self.delegate = None
        self.open_result = open_result
        self.events: list = []
        self._open = False
        self.port_info = PortInfo(device="/dev/fake")

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> bool:
        self._open = self.open_result
        return self._open

    def close(self) -> bool:
        self._open = False
        return True

    def write(self, data: bytes) -> int:
        self.events.append(bytes(data))
        return len(data)

    def reset_input_buffer(self) -> None:
        self.events.append("reset_input_buffer")

    def sleep(self, seconds: float) -> None:
        self.events.append(("sleep", seconds))

    @property
    def writes(self) -> list[bytes]:
        return [e for e in self.events if isinstance(e, bytes)]


class FakeReader(RecordingPort):
    """A GBxCart that serves pages of a ROM image.

    Commands are decoded with :class:`CommandParser`. Bank register
    writes are applied to a simple MBC model: MBC1 when ``mode_one`` is
    set, MBC5 otherwise. Pages are delivered to the delegate on the
    writing thread, one per ``Start``/``Continue`` while streaming.
    """

    def __init__(
        self,
        rom: bytes,
        mode_one: bool = False,
        platform: Platform = Platform.GAMEBOY_CLASSIC,
    ) -> None:
        super().__init__()
        self.rom = rom
        self.mode_one = mode_one
        self.parser = CommandParser(platform)
        self.commands: list = []
        self.address = 0
        self.streaming = False
        self.registers: dict[int, int] = {}
        self._register: int | None = None
        self._pending: list[bytes] = []
        self._delivering = False

    def write(self, data: bytes) -> int:
        if not self._open:
            raise ConnectionError("Serial port is not open")
        super().write(data)
        for command in self.parser.feed(data):
            self._apply(command)
        self._deliver()
        return len(data)

    @property
    def bank(self) -> int:
        if self.mode_one:
            low = self.registers.get(0x2000, 1) & 0x1F
            return (self.registers.get(0x4000, 0) << 5) | low
        return (self.registers.get(0x3000, 0) << 8) | self.registers.get(0x2100, 1)

    def _apply(self, command) -> None:
        self.commands.append(command)
        if isinstance(command, Address) and command.opcode == SET_START_ADDRESS:
            self.address = command.address
        elif isinstance(command, Address) and command.opcode == SET_BANK:
            if command.radix == 16:
                self._register = command.address
            else:
                self.registers[self._register] = command.address
        elif isinstance(command, Start):
            self.streaming = True
            self._queue_page()
        elif isinstance(command, Continue):
            if self.streaming:
                self._queue_page()
        elif isinstance(command, Stop):
            self.streaming = False
            self._pending.clear()

    def _queue_page(self) -> None:
        page = bytes(self._read(self.address + i) for i in range(PAGE_SIZE))
        self.address += PAGE_SIZE
        self._pending.append(page)

    def _read(self, address: int) -> int:
        if address >= 0x8000:
            return 0xFF
        if address >= 0x4000:
            address = self.bank * BANK_SIZE + address - 0x4000
        return self.rom[address] if address < len(self.rom) else 0xFF

    def _deliver(self) -> None:
        # Pages queued by writes made during delivery are sent by the outer call
        if self._delivering:
            return
        self._delivering = True
        try:
            while self._pending:
                page = self._pending.pop(0)
                handler = getattr(self.delegate, "serial_port_did_receive", None)
                if handler is not None:
                    handler(self, page)
        finally:
            self._delivering = False


@pytest.fixture
def recording_port() -> RecordingPort:
    port = RecordingPort()
    port.open()
    return port


@pytest.fixture
def rom() -> bytes:
    return build_rom()
