"""Tests for header and global checksums."""

import pytest

from gbxcart_mcp.utils.checksum import global_checksum, header_checksum


def test_header_checksum_of_zeros():
    """25 zero bytes: each step subtracts one."""
    assert header_checksum(bytes(0x50)) == (-25) & 0xFF


def test_header_checksum_from_full_rom(rom):
    assert header_checksum(rom, base=0) == rom[0x14D]
    assert header_checksum(rom[0x100:0x150]) == rom[0x14D]


def test_header_checksum_needs_range():
    with pytest.raises(ValueError):
        header_checksum(bytes(0x40))
    with pytest.raises(ValueError):
        header_checksum(bytes(0x50), base=0x140)


def test_global_checksum_skips_its_own_bytes(rom):
    data = bytearray(rom)
    data[0x14E:0x150] = b"\xff\xff"
    assert global_checksum(bytes(data)) == global_checksum(rom)
    assert global_checksum(rom) == int.from_bytes(rom[0x14E:0x150], "big")


def test_global_checksum_wraps():
    assert global_checksum(b"\xff" * 0x200 + bytes(2)) == (0xFF * 0x200 - 0xFF * 2) & 0xFFFF
