"""What a read operation fetches.

A context is built once by the caller before the operation is queued
and is read-only afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .header import GameboyClassicHeader


@dataclass(frozen=True)
class HeaderContext:
    """Read the platform's header region."""


@dataclass(frozen=True)
class BankContext:
    """Read one ROM bank, switching to it first."""

    bank: int
    header: GameboyClassicHeader

    def __post_init__(self) -> None:
        if self.bank < 0:
            raise ValueError(f"Bank number must be non-negative, got {self.bank}")


@dataclass(frozen=True)
class CartridgeContext:
    """Stream the whole image from an already positioned device."""


ReadContext = Union[HeaderContext, BankContext, CartridgeContext]
