"""Reader commands and their ASCII wire encoding.

Every command except ``Sleep`` encodes to a fixed byte sequence::

    Start     b"R" (Game Boy Classic) / b"r" (Game Boy Advance)
    Stop      b"0"
    Continue  b"1"
    Address   <opcode><NUMERAL>\\x00    e.g. b"\\x00A100\\x00", b"B6000\\x00"

``Sleep`` is never transmitted; it blocks the sender for its duration
so the cartridge controller can latch the previous write.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Union

from ..models.platform import Platform

# Address opcodes
SET_START_ADDRESS = "\0A"
SET_BANK = "B"

PAGE_SIZE = 64  # the reader streams in pages of this many bytes

STOP = b"0"
CONTINUE = b"1"

START_OPCODES: dict[Platform, bytes] = {
    Platform.GAMEBOY_CLASSIC: b"R",
    Platform.GAMEBOY_ADVANCE: b"r",
}

_DIGITS = string.digits + string.ascii_uppercase


class UnsupportedPlatformError(RuntimeError):
    """No read strategy exists for a platform.

    This is a configuration error, not a device fault: nothing in the
    library catches it.
    """

    def __init__(self, platform, strategy: str = "read") -> None:
        self.platform = platform
        super().__init__(f"No '{strategy}' strategy provided for {platform!r}")


@dataclass(frozen=True)
class Start:
    """Begin streaming from the current address."""


@dataclass(frozen=True)
class Stop:
    """Halt streaming."""


@dataclass(frozen=True)
class Continue:
    """Advance the device past a page boundary."""


@dataclass(frozen=True)
class Address:
    """Set an address (or write a value) using ``opcode``."""

    opcode: str
    radix: int
    address: int

    def __post_init__(self) -> None:
        if not 2 <= self.radix <= 36:
            raise ValueError(f"Radix must be 2-36, got {self.radix}")
        if self.address < 0:
            raise ValueError(f"Address must be non-negative, got {self.address}")

    def __repr__(self) -> str:
        return (
            f"Address(opcode={self.opcode!r}, radix={self.radix}, "
            f"address={to_numeral(self.address, self.radix)})"
        )


@dataclass(frozen=True)
class Sleep:
    """Block for ``duration`` microseconds."""

    duration: int

    @property
    def seconds(self) -> float:
        return self.duration / 1_000_000


Command = Union[Start, Stop, Continue, Address, Sleep]


def to_numeral(value: int, radix: int) -> str:
    """Render ``value`` in ``radix`` using uppercase digits, unpadded."""
    if value < 0:
        raise ValueError(f"Value must be non-negative, got {value}")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, radix)
        digits.append(_DIGITS[rem])
    return "".join(reversed(digits))


def encode(command: Command, platform: Platform) -> bytes | None:
    """Encode a command into the bytes written to the reader.

    Returns:
        The wire bytes, or ``None`` for ``Sleep``, which is a blocking
        delay rather than a transmission.

    Raises:
        UnsupportedPlatformError: ``Start`` for a platform without a read
            strategy.
    """
    if isinstance(command, Start):
        try:
            return START_OPCODES[platform]
        except KeyError:
            raise UnsupportedPlatformError(platform) from None
    if isinstance(command, Stop):
        return STOP
    if isinstance(command, Continue):
        return CONTINUE
    if isinstance(command, Address):
        numeral = to_numeral(command.address, command.radix)
        return f"{command.opcode}{numeral}\0".encode("ascii")
    if isinstance(command, Sleep):
        return None
    raise TypeError(f"Not a reader command: {command!r}")
