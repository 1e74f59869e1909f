"""Data models for platforms, cartridge headers, and read contexts."""

from .platform import Platform, MemoryController, BankSwitchPolicy
from .header import GameboyClassicHeader
from .context import HeaderContext, BankContext, CartridgeContext, ReadContext
