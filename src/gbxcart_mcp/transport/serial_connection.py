"""USB serial connection to an insideGadgets GBxCart reader.

The reader enumerates as a CH340 USB-serial bridge and talks 8N1 at
1,000,000 baud. Received bytes are delivered asynchronously from a
reader thread to the connection's ``delegate``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

import serial
from serial.tools import list_ports

logger = logging.getLogger(__name__)

VENDOR_ID = 0x1A86
PRODUCT_ID = 0x7523
BAUDRATE = 1_000_000
READ_TIMEOUT_S = 0.1
READ_CHUNK_SIZE = 64


@dataclass
class PortInfo:
    """Identification of the serial device backing a connection."""

    device: str = ""
    vendor_id: int = VENDOR_ID
    product_id: int = PRODUCT_ID
    description: str = ""
    serial_number: str = ""


def find_port(vendor_id: int = VENDOR_ID, product_id: int = PRODUCT_ID) -> PortInfo | None:
    """Find the first serial port whose USB VID/PID match."""
    for p in list_ports.comports():
        if p.vid == vendor_id and p.pid == product_id:
            return PortInfo(
                device=p.device,
                vendor_id=p.vid,
                product_id=p.pid,
                description=p.description or "",
                serial_number=p.serial_number or "",
            )
    return None


class SerialConnection:
    """Manages the serial link to the reader.

    Usage::

        conn = SerialConnection()
        conn.delegate = listener
        if conn.open():
            conn.write(b"0")
        conn.close()

    The delegate may implement any of::

        serial_port_did_receive(port, data)
        serial_port_was_closed(port)
        serial_port_did_encounter_error(port, error)
    """

    def __init__(
        self,
        port: str | None = None,
        baudrate: int = BAUDRATE,
        vendor_id: int = VENDOR_ID,
        product_id: int = PRODUCT_ID,
    ) -> None:
        self._port = port
        self._baudrate = baudrate
        self._vendor_id = vendor_id
        self._product_id = product_id
        self._serial: serial.Serial | None = None
        self._reader: threading.Thread | None = None
        self._closing = threading.Event()
        self._port_info = PortInfo(device=port or "", vendor_id=vendor_id, product_id=product_id)
        self.delegate = None

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    @property
    def port_info(self) -> PortInfo:
        return self._port_info

    def open(self) -> bool:
        """Open the port, discovering it by VID/PID if no name was given.

        Returns:
            ``is_open`` after the attempt. Failures are logged, not raised.
        """
        if self.is_open:
            return True

        if self._port is None:
            info = find_port(self._vendor_id, self._product_id)
            if info is None:
                logger.warning(
                    "No reader found (%#06x:%#06x)", self._vendor_id, self._product_id
                )
                return False
            self._port_info = info
        else:
            self._port_info = PortInfo(
                device=self._port, vendor_id=self._vendor_id, product_id=self._product_id
            )

        try:
            self._serial = serial.Serial(
                self._port_info.device,
                baudrate=self._baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=READ_TIMEOUT_S,
            )
        except serial.SerialException as e:
            logger.warning("Could not open %s: %s", self._port_info.device, e)
            self._serial = None
            return False

        self._serial.reset_input_buffer()
        self._closing.clear()
        self._reader = threading.Thread(
            target=self._read_loop, name=f"serial-reader:{self._port_info.device}", daemon=True
        )
        self._reader.start()
        logger.info("Opened %s at %d baud", self._port_info.device, self._baudrate)
        return True

    def close(self) -> bool:
        """Close the port.

        Returns:
            True if the port is closed afterwards.
        """
        if self._serial is None:
            return True

        self._closing.set()
        try:
            self._serial.close()
        except serial.SerialException as e:
            logger.warning("Error closing %s: %s", self._port_info.device, e)
        finally:
            if self._reader is not None and self._reader is not threading.current_thread():
                self._reader.join(timeout=1.0)
            self._reader = None
            self._serial = None
            logger.info("Closed %s", self._port_info.device)
        self._notify("serial_port_was_closed")
        return True

    def write(self, data: bytes) -> int:
        """Write raw bytes to the reader.

        Raises:
            ConnectionError: If the port is not open.
            serial.SerialException: If the write fails.
        """
        if not self.is_open:
            raise ConnectionError("Serial port is not open")
        written = self._serial.write(data)
        self._serial.flush()
        return written

    def reset_input_buffer(self) -> None:
        """Discard bytes received by the OS but not yet read."""
        if self.is_open:
            self._serial.reset_input_buffer()

    def _read_loop(self) -> None:
        ser = self._serial
        while not self._closing.is_set():
            try:
                data = ser.read(max(1, min(ser.in_waiting, READ_CHUNK_SIZE)))
            except (serial.SerialException, OSError, TypeError) as e:
                if self._closing.is_set():
                    break
                logger.error("Read error on %s: %s", self._port_info.device, e)
                self._notify("serial_port_did_encounter_error", e)
                break
            if not data:
                continue
            try:
                self._notify("serial_port_did_receive", data)
            except Exception as e:
                # A failed write from inside the handler, e.g. a Continue pulse
                logger.error("Delegate failed on %s: %s", self._port_info.device, e)
                self._notify("serial_port_did_encounter_error", e)

    def _notify(self, event: str, *args) -> None:
        delegate = self.delegate
        handler = getattr(delegate, event, None)
        if handler is not None:
            handler(self, *args)
