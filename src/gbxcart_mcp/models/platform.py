"""Cartridge platform families and their memory layout.

Only the Game Boy Classic family has a complete read strategy. The
Game Boy Advance family is known to the reader (it has a header region
and a ``Start`` opcode) but has no bank-switch strategy.
"""

from __future__ import annotations

from enum import Enum


class Platform(Enum):
    """Cartridge platform families."""

    GAMEBOY_CLASSIC = "gb"
    GAMEBOY_ADVANCE = "gba"

    @property
    def header_range(self) -> range:
        """Address range of the cartridge header region."""
        return HEADER_RANGES[self]


HEADER_RANGES: dict[Platform, range] = {
    Platform.GAMEBOY_CLASSIC: range(0x100, 0x150),
    Platform.GAMEBOY_ADVANCE: range(0x00, 0xC0),
}


class MemoryController(Enum):
    """Onboard memory bank controller, decoded from the cartridge type byte."""

    ROM = "ROM"
    MBC1 = "MBC1"
    MBC2 = "MBC2"
    MBC3 = "MBC3"
    MBC5 = "MBC5"
    MBC6 = "MBC6"
    MBC7 = "MBC7"
    MMM01 = "MMM01"
    POCKET_CAMERA = "POCKET CAMERA"
    TAMA5 = "BANDAI TAMA5"
    HUC1 = "HuC1"
    HUC3 = "HuC3"
    UNKNOWN = "UNKNOWN"


# https://gbdev.io/pandocs/The_Cartridge_Header.html
CARTRIDGE_TYPES: dict[int, MemoryController] = {
    0x00: MemoryController.ROM,
    0x01: MemoryController.MBC1,
    0x02: MemoryController.MBC1,
    0x03: MemoryController.MBC1,
    0x05: MemoryController.MBC2,
    0x06: MemoryController.MBC2,
    0x08: MemoryController.ROM,
    0x09: MemoryController.ROM,
    0x0B: MemoryController.MMM01,
    0x0C: MemoryController.MMM01,
    0x0D: MemoryController.MMM01,
    0x0F: MemoryController.MBC3,
    0x10: MemoryController.MBC3,
    0x11: MemoryController.MBC3,
    0x12: MemoryController.MBC3,
    0x13: MemoryController.MBC3,
    0x19: MemoryController.MBC5,
    0x1A: MemoryController.MBC5,
    0x1B: MemoryController.MBC5,
    0x1C: MemoryController.MBC5,
    0x1D: MemoryController.MBC5,
    0x1E: MemoryController.MBC5,
    0x20: MemoryController.MBC6,
    0x22: MemoryController.MBC7,
    0xFC: MemoryController.POCKET_CAMERA,
    0xFD: MemoryController.TAMA5,
    0xFE: MemoryController.HUC3,
    0xFF: MemoryController.HUC1,
}


class BankSwitchPolicy(Enum):
    """How a bank number is written to the memory controller.

    ``MODE_ONE`` selects RAM-banking mode and splits the bank number into
    high and low register writes. ``DIRECT`` writes the bank number to a
    single bank-select register.
    """

    MODE_ONE = "mode-one"
    DIRECT = "direct"


def memory_controller(cartridge_type: int) -> MemoryController:
    """Decode the header's cartridge type byte."""
    return CARTRIDGE_TYPES.get(cartridge_type, MemoryController.UNKNOWN)


def bank_switch_policy(controller: MemoryController) -> BankSwitchPolicy:
    if controller is MemoryController.MBC1:
        return BankSwitchPolicy.MODE_ONE
    return BankSwitchPolicy.DIRECT
