"""ROM image output."""

from __future__ import annotations

import re
from pathlib import Path

from ..utils.checksum import global_checksum
from .header import GameboyClassicHeader

ROM_SUFFIX = ".gb"
COLOR_ROM_SUFFIX = ".gbc"


def rom_filename(header: GameboyClassicHeader) -> str:
    """Suggest a file name for a dump, derived from the header title."""
    stem = re.sub(r"[^A-Za-z0-9_-]+", "_", header.title).strip("_") or "UNTITLED"
    return stem + (COLOR_ROM_SUFFIX if header.is_color else ROM_SUFFIX)


def verify_rom(rom: bytes, header: GameboyClassicHeader) -> bool:
    """Check a dumped image against the header's global checksum."""
    return global_checksum(rom) == header.global_checksum


def export_rom(rom: bytes, path: str | Path) -> Path:
    """Write a dumped ROM image.

    Args:
        rom: The full image.
        path: Output file path. Parent directories are created.

    Returns:
        The path written to.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(rom)
    return path
