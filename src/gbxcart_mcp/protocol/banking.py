"""Bank-switch command sequences for Game Boy Classic cartridges.

Each register write is an address/value pair sent with the ``B``
opcode: the register address in hex, a settling delay, then the value
in decimal.

Warning: ``SETTLE_DELAY_US`` is load-bearing. The cartridge controller
needs time to latch the register address before the value arrives;
too short or too long a delay (anything far outside 150-250us) makes
the switch land on the wrong bank, and the wrong data comes back
without any error.
"""

from __future__ import annotations

from ..models.header import GameboyClassicHeader
from ..models.platform import BankSwitchPolicy, Platform
from .commands import SET_BANK, Address, Command, Sleep, UnsupportedPlatformError

SETTLE_DELAY_US = 150

# Mode-one (MBC1, RAM-banking mode) registers
MODE_SELECT = 0x6000
BANK_HIGH = 0x4000
BANK_LOW = 0x2000

# Direct registers
BANK_SELECT = 0x2100
BANK_HIGH_BIT = 0x3000


def register_write(register: int, value: int) -> list[Command]:
    """Address + settle + value for a single controller register."""
    return [
        Address(SET_BANK, 16, register),
        Sleep(SETTLE_DELAY_US),
        Address(SET_BANK, 10, value),
    ]


def bank_switch_commands(
    bank: int,
    header: GameboyClassicHeader,
    platform: Platform = Platform.GAMEBOY_CLASSIC,
) -> list[Command]:
    """Build the command sequence that maps ``bank`` into 0x4000-0x7FFF.

    Raises:
        ValueError: If ``bank`` is negative.
        UnsupportedPlatformError: For any platform other than Game Boy
            Classic.
    """
    if platform is not Platform.GAMEBOY_CLASSIC:
        raise UnsupportedPlatformError(platform, "bank switch")
    if bank < 0:
        raise ValueError(f"Bank number must be non-negative, got {bank}")

    if header.bank_switch_policy is BankSwitchPolicy.MODE_ONE:
        return (
            register_write(MODE_SELECT, 0)
            + register_write(BANK_HIGH, bank >> 5)
            + register_write(BANK_LOW, bank & 0x1F)
        )

    commands = register_write(BANK_SELECT, bank)
    if bank >= 0x100:
        commands += register_write(BANK_HIGH_BIT, 1)
    return commands
