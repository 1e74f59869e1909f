"""Serial transport to the reader hardware."""

from .serial_connection import SerialConnection
