"""Device-side decoding of the reader command stream.

The reader firmware receives ``B`` writes in pairs: the first carries a
register address in hex, the second the value in decimal. The parser
keeps that pairing state across calls to :meth:`CommandParser.feed`, so
a byte stream split at arbitrary points decodes the same way.

``Sleep`` never reaches the wire and is never decoded.
"""

from __future__ import annotations

from ..models.platform import Platform
from .commands import (
    CONTINUE,
    SET_BANK,
    SET_START_ADDRESS,
    START_OPCODES,
    STOP,
    Address,
    Command,
    Continue,
    Start,
    Stop,
)

_START_ADDRESS = SET_START_ADDRESS.encode("ascii")
_BANK = SET_BANK.encode("ascii")


class CommandParser:
    """Incremental decoder for bytes written to the reader."""

    def __init__(self, platform: Platform = Platform.GAMEBOY_CLASSIC) -> None:
        self._start = START_OPCODES[platform]
        self._buffer = b""
        self._bank_value_next = False

    @property
    def pending(self) -> bytes:
        """Bytes of an incomplete command still waiting for its terminator."""
        return self._buffer

    def feed(self, data: bytes) -> list[Command]:
        """Decode every complete command in ``data`` plus buffered bytes.

        Raises:
            ValueError: On a byte that starts no known command, or a
                malformed numeral.
        """
        self._buffer += data
        commands: list[Command] = []
        while self._buffer:
            command = self._next()
            if command is None:
                break
            commands.append(command)
        return commands

    def _next(self) -> Command | None:
        buf = self._buffer
        head = buf[:1]
        if buf.startswith(_START_ADDRESS):
            return self._address(SET_START_ADDRESS, len(_START_ADDRESS), 16)
        if head == b"\x00":
            # Possibly the first half of the start-address opcode
            if len(buf) == 1:
                return None
            raise ValueError(f"Unknown command bytes: {buf[:2]!r}")
        if head == _BANK:
            radix = 10 if self._bank_value_next else 16
            command = self._address(SET_BANK, len(_BANK), radix)
            if command is not None:
                self._bank_value_next = not self._bank_value_next
            return command
        if head == self._start:
            self._buffer = buf[1:]
            return Start()
        if head == STOP:
            self._buffer = buf[1:]
            return Stop()
        if head == CONTINUE:
            self._buffer = buf[1:]
            return Continue()
        raise ValueError(f"Unknown command byte: {head!r}")

    def _address(self, opcode: str, opcode_len: int, radix: int) -> Address | None:
        end = self._buffer.find(b"\x00", opcode_len)
        if end < 0:
            return None
        numeral = self._buffer[opcode_len:end].decode("ascii")
        self._buffer = self._buffer[end + 1 :]
        try:
            value = int(numeral, radix)
        except ValueError:
            raise ValueError(
                f"Malformed base-{radix} numeral {numeral!r} for opcode {opcode!r}"
            ) from None
        return Address(opcode, radix, value)


def parse_commands(
    data: bytes, platform: Platform = Platform.GAMEBOY_CLASSIC
) -> list[Command]:
    """Decode a complete byte stream in one call.

    Raises:
        ValueError: If the stream ends inside a command.
    """
    parser = CommandParser(platform)
    commands = parser.feed(data)
    if parser.pending:
        raise ValueError(f"Truncated command: {parser.pending!r}")
    return commands
