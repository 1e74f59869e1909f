"""Game Boy cartridge header and global checksums.

The header checksum covers header bytes 0x134-0x14C and is stored at
0x14D. The global checksum is the 16-bit sum of every ROM byte except
the two checksum bytes themselves (0x14E-0x14F, big-endian).
"""

from __future__ import annotations

HEADER_CHECKSUM_START = 0x134
HEADER_CHECKSUM_END = 0x14D
GLOBAL_CHECKSUM_OFFSET = 0x14E


def header_checksum(data: bytes, base: int = 0x100) -> int:
    """Compute the header checksum.

    Args:
        data: Header bytes, where ``data[0]`` sits at address ``base``.
        base: Cartridge address of the first byte in ``data``. Pass 0 when
            ``data`` is a full ROM image.
    """
    start = HEADER_CHECKSUM_START - base
    end = HEADER_CHECKSUM_END - base
    if start < 0 or len(data) < end:
        raise ValueError(
            f"Need cartridge bytes 0x{HEADER_CHECKSUM_START:X}-"
            f"0x{HEADER_CHECKSUM_END - 1:X}, got {len(data)} bytes from 0x{base:X}"
        )
    checksum = 0
    for b in data[start:end]:
        checksum = (checksum - b - 1) & 0xFF
    return checksum


def global_checksum(rom: bytes) -> int:
    """Compute the global checksum over a full ROM image."""
    total = sum(rom) - sum(rom[GLOBAL_CHECKSUM_OFFSET : GLOBAL_CHECKSUM_OFFSET + 2])
    return total & 0xFFFF
