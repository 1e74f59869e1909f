"""Game Boy Classic cartridge header model.

Layout (offsets relative to the header region start, 0x100)::

    +-------+------+-------+----------+-----+------+-----+-----+-----+-----+---------+--------+
    | Entry | Logo | Title | Licensee | SGB | Type | ROM | RAM | Dst | Old | Hdr sum | Global |
    | 0x00  | 0x04 | 0x34  | 0x44     |0x46 | 0x47 |0x48 |0x49 |0x4A |0x4B | 0x4D    | 0x4E   |
    +-------+------+-------+----------+-----+------+-----+-----+-----+-----+---------+--------+
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from ..utils.checksum import header_checksum
from .platform import (
    BankSwitchPolicy,
    MemoryController,
    Platform,
    bank_switch_policy,
    memory_controller,
)

HEADER_SIZE = 0x50
BANK_SIZE = 0x4000

OFF_ENTRY_POINT = 0x00    # 4 bytes
OFF_LOGO = 0x04           # 48 bytes
OFF_TITLE = 0x34          # 16 bytes ASCII (15 on CGB titles)
OFF_CGB_FLAG = 0x43
OFF_NEW_LICENSEE = 0x44   # 2 bytes ASCII
OFF_SGB_FLAG = 0x46
OFF_CART_TYPE = 0x47
OFF_ROM_SIZE = 0x48
OFF_RAM_SIZE = 0x49
OFF_DESTINATION = 0x4A
OFF_OLD_LICENSEE = 0x4B
OFF_VERSION = 0x4C
OFF_HEADER_CHECKSUM = 0x4D
OFF_GLOBAL_CHECKSUM = 0x4E  # 2 bytes, big-endian

# ROM size code -> bank count; 0x52-0x54 fall outside the 2 << n sequence
ROM_BANKS = {code: 2 << code for code in range(0x09)}
ROM_BANKS.update({0x52: 72, 0x53: 80, 0x54: 96})

RAM_SIZES = {
    0x00: 0,
    0x01: 0x800,
    0x02: 0x2000,
    0x03: 0x8000,
    0x04: 0x20000,
    0x05: 0x10000,
}


@dataclass(frozen=True)
class GameboyClassicHeader:
    """The 0x50-byte header of a Game Boy / Game Boy Color cartridge."""

    PLATFORM: ClassVar[Platform] = Platform.GAMEBOY_CLASSIC

    title: str = ""
    licensee: str = ""
    cartridge_type: int = 0
    rom_size_code: int = 0
    ram_size_code: int = 0
    destination: int = 0
    version: int = 0
    checksum: int = 0
    global_checksum: int = 0
    raw: bytes = field(default=b"", repr=False)

    @property
    def configuration(self) -> MemoryController:
        """The memory controller the cartridge carries."""
        return memory_controller(self.cartridge_type)

    @property
    def bank_switch_policy(self) -> BankSwitchPolicy:
        return bank_switch_policy(self.configuration)

    @property
    def rom_banks(self) -> int:
        """Number of 16 KiB ROM banks.

        Raises:
            ValueError: If the ROM size code is not a known value, as read
                from a blank or missing cartridge.
        """
        try:
            return ROM_BANKS[self.rom_size_code]
        except KeyError:
            raise ValueError(
                f"Unknown ROM size code 0x{self.rom_size_code:02X}"
            ) from None

    @property
    def has_known_rom_size(self) -> bool:
        return self.rom_size_code in ROM_BANKS

    @property
    def rom_size(self) -> int:
        return self.rom_banks * BANK_SIZE

    @property
    def ram_size(self) -> int:
        return RAM_SIZES.get(self.ram_size_code, 0)

    @property
    def is_color(self) -> bool:
        return len(self.raw) > OFF_CGB_FLAG and bool(self.raw[OFF_CGB_FLAG] & 0x80)

    @property
    def is_valid(self) -> bool:
        """True when the stored header checksum matches the header bytes."""
        if len(self.raw) < HEADER_SIZE:
            return False
        return header_checksum(self.raw) == self.checksum

    @classmethod
    def from_bytes(cls, data: bytes) -> GameboyClassicHeader:
        """Parse the header region as read from cartridge address 0x100.

        Raises:
            ValueError: If fewer than 0x50 bytes are given.
        """
        if len(data) < HEADER_SIZE:
            raise ValueError(
                f"Header must be {HEADER_SIZE} bytes, got {len(data)}"
            )
        data = bytes(data[:HEADER_SIZE])
        title_end = OFF_CGB_FLAG if data[OFF_CGB_FLAG] & 0x80 else OFF_NEW_LICENSEE
        title_bytes = data[OFF_TITLE:title_end]
        title = title_bytes.split(b"\x00")[0].decode("ascii", errors="replace")
        return cls(
            title=title.strip(),
            licensee=data[OFF_NEW_LICENSEE : OFF_SGB_FLAG].decode("ascii", errors="replace"),
            cartridge_type=data[OFF_CART_TYPE],
            rom_size_code=data[OFF_ROM_SIZE],
            ram_size_code=data[OFF_RAM_SIZE],
            destination=data[OFF_DESTINATION],
            version=data[OFF_VERSION],
            checksum=data[OFF_HEADER_CHECKSUM],
            global_checksum=int.from_bytes(
                data[OFF_GLOBAL_CHECKSUM : OFF_GLOBAL_CHECKSUM + 2], "big"
            ),
            raw=data,
        )

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "licensee": self.licensee,
            "cartridge_type": f"0x{self.cartridge_type:02X}",
            "memory_controller": self.configuration.value,
            "bank_switch_policy": self.bank_switch_policy.value,
            "rom_banks": self.rom_banks if self.has_known_rom_size else None,
            "rom_size": self.rom_size if self.has_known_rom_size else None,
            "ram_size": self.ram_size,
            "version": self.version,
            "header_checksum": f"0x{self.checksum:02X}",
            "global_checksum": f"0x{self.global_checksum:04X}",
            "valid": self.is_valid,
        }
