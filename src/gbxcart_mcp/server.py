"""MCP server entry point for the GBxCart cartridge reader.

Exposes tools, resources, and prompts via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from .models.header import GameboyClassicHeader
from .models.rom_file import export_rom, rom_filename, verify_rom
from .reader.controller import GBxCartController
from .reader.errors import FailedToOpenError, ReadCancelledError
from .reader.session import CartridgeReader
from .transport.serial_connection import SerialConnection

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "gbxcart",
    instructions="Read Game Boy cartridges with an insideGadgets GBxCart reader",
)

# Global connection state
_controller: GBxCartController | None = None
_header: GameboyClassicHeader | None = None

_NO_CARTRIDGE = (
    "Cartridge header is invalid. Check that a cartridge is inserted "
    "and reseat it, then call get_cartridge_info again."
)


def _get_controller() -> GBxCartController:
    """Get the open controller, raising if not connected."""
    if _controller is None or not _controller.is_open:
        raise RuntimeError(
            "Not connected to reader. Use the 'connect' tool first."
        )
    return _controller


def _get_header(reader: CartridgeReader) -> GameboyClassicHeader:
    global _header
    if _header is None:
        _header = reader.read_header()
    return _header


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(port: str | None = None) -> dict[str, Any]:
    """Open the serial connection to the GBxCart reader.

    Args:
        port: Serial device (e.g. /dev/ttyUSB0, COM3). Auto-discovered by
              USB vendor/product ID (0x1A86:0x7523) when omitted.
    """
    global _controller, _header
    if _controller is not None and _controller.is_open:
        return {
            "connected": True,
            "message": "Already connected",
            "port": _controller.port.port_info.device,
        }

    controller = GBxCartController(SerialConnection(port))
    try:
        controller.open()
    except FailedToOpenError as e:
        return {"connected": False, "error": str(e)}

    _controller = controller
    _header = None
    return {"connected": True, "port": controller.port.port_info.device}


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the serial connection to the reader."""
    global _controller, _header
    if _controller is None:
        return {"disconnected": True}
    _controller.queue.cancel_all_operations()
    _controller.close()
    _controller = None
    _header = None
    return {"disconnected": True}


# ─── CARTRIDGE TOOLS ──────────────────────────────────────────────────

@mcp.tool()
def get_cartridge_info(refresh: bool = True) -> dict[str, Any]:
    """Read the inserted cartridge's header.

    Args:
        refresh: Re-read the header even if one is cached (default True).
                 Set after swapping cartridges.
    """
    global _header
    reader = CartridgeReader(_get_controller())
    if refresh:
        _header = None
    try:
        header = _get_header(reader)
    except ReadCancelledError as e:
        return {"error": str(e)}
    return header.to_dict()


@mcp.tool()
def read_bank(bank: int) -> dict[str, Any]:
    """Read one ROM bank and summarize its contents.

    Args:
        bank: ROM bank number (1 to bank count - 1). Bank 1 also
              returns bank 0, as the first 0x8000 bytes of the ROM.
    """
    reader = CartridgeReader(_get_controller())
    try:
        header = _get_header(reader)
    except ReadCancelledError as e:
        return {"error": str(e)}
    if not header.is_valid or not header.has_known_rom_size:
        return {"error": _NO_CARTRIDGE}
    if not 1 <= bank < header.rom_banks:
        return {"error": f"Bank must be 1-{header.rom_banks - 1}"}

    try:
        data = reader.read_bank(bank, header)
    except ReadCancelledError as e:
        return {"error": str(e)}
    return {
        "bank": bank,
        "length": len(data),
        "sha1": hashlib.sha1(data).hexdigest(),
        "preview": data[:64].hex(" "),
    }


@mcp.tool()
def dump_rom(path: str | None = None) -> dict[str, Any]:
    """Read the whole cartridge ROM and write it to a file.

    Args:
        path: Output file. Defaults to the header title with a .gb/.gbc
              suffix in the current directory.
    """
    reader = CartridgeReader(_get_controller())
    try:
        header = _get_header(reader)
    except ReadCancelledError as e:
        return {"error": str(e)}
    if not header.is_valid or not header.has_known_rom_size:
        return {"error": _NO_CARTRIDGE}

    try:
        rom = reader.read_cartridge(
            header,
            progress=lambda done, total: logger.info("Read bank %d/%d", done, total),
        )
    except ReadCancelledError as e:
        return {"error": str(e)}

    out = export_rom(rom, path or rom_filename(header))
    return {
        "path": str(Path(out).resolve()),
        "title": header.title,
        "size": len(rom),
        "banks": header.rom_banks,
        "checksum_ok": verify_rom(rom, header),
    }


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("gbxcart://cartridge/header")
def resource_header() -> str:
    """Most recently read cartridge header."""
    if _header is None:
        return json.dumps({"header": None})
    return json.dumps({"header": _header.to_dict()})


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def backup_cartridge(destination: str = ".") -> str:
    """Guide the AI through backing up the inserted cartridge.

    Args:
        destination: Directory to store the ROM image in.
    """
    return f"""Back up the cartridge currently in the reader to {destination}.
Steps:
- Use connect to open the reader
- Use get_cartridge_info and check that the header is valid
- If the header is invalid, ask the user to reseat the cartridge and retry
- Use dump_rom with a path inside {destination}
- Report whether the global checksum matched"""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
