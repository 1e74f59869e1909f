"""Tests for the serial connection's reader thread."""

from __future__ import annotations

import threading

from gbxcart_mcp.models.context import HeaderContext
from gbxcart_mcp.reader.controller import GBxCartController
from gbxcart_mcp.reader.operation import ReadOperation
from gbxcart_mcp.transport.serial_connection import SerialConnection


class FakeSerial:
    """pyserial stand-in: one 64-byte page after Start, a failing Continue."""

    def __init__(self, fail_on: bytes = b"1") -> None:
        self.is_open = True
        self.fail_on = fail_on
        self.written: list[bytes] = []
        self.flushed_input = 0
        self._page = threading.Event()

    @property
    def in_waiting(self) -> int:
        return 64 if self._page.is_set() else 0

    def read(self, size: int = 1) -> bytes:
        if self._page.wait(timeout=0.01):
            self._page.clear()
            return bytes(64)
        return b""

    def write(self, data: bytes) -> int:
        if data == self.fail_on:
            raise OSError("device unplugged")
        self.written.append(bytes(data))
        if data == b"R":
            self._page.set()
        return len(data)

    def flush(self) -> None:
        pass

    def reset_input_buffer(self) -> None:
        self.flushed_input += 1

    def close(self) -> None:
        self.is_open = False


class Listener:
    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc
        self.received: list[bytes] = []
        self.errors: list[Exception] = []

    def serial_port_did_receive(self, port, data):
        self.received.append(data)
        if self.exc is not None:
            raise self.exc

    def serial_port_did_encounter_error(self, port, error):
        self.errors.append(error)


def _connection(fake: FakeSerial) -> SerialConnection:
    conn = SerialConnection("/dev/fake")
    conn._serial = fake
    return conn


def _run_reader(conn: SerialConnection) -> threading.Thread:
    thread = threading.Thread(target=conn._read_loop, daemon=True)
    thread.start()
    return thread


def test_delegate_failure_is_reported_and_reading_continues():
    fake = FakeSerial()
    conn = _connection(fake)
    listener = Listener(OSError("write failed"))
    conn.delegate = listener
    thread = _run_reader(conn)
    try:
        fake.write(b"R")
        for _ in range(500):
            if listener.errors:
                break
            thread.join(timeout=0.01)
        assert [str(e) for e in listener.errors] == ["write failed"]

        fake.write(b"R")
        for _ in range(500):
            if len(listener.received) == 2:
                break
            thread.join(timeout=0.01)
        assert len(listener.received) == 2
        assert thread.is_alive()
    finally:
        conn._closing.set()
        thread.join(timeout=1)


def test_failed_continue_cancels_read_operation():
    """A write error during a progress pulse ends the read instead of hanging."""
    fake = FakeSerial(fail_on=b"1")
    conn = _connection(fake)
    controller = GBxCartController(conn, sleep=lambda seconds: None)
    results = []
    op = ReadOperation(controller, HeaderContext(), 0x50, result=results.append)
    thread = _run_reader(conn)
    try:
        controller.add_operation(op)
        assert op.wait(timeout=5)
        assert op.is_cancelled
        assert results == [None]
        # Completion still stopped the reader
        assert fake.written[-1] == b"0"
        assert conn.delegate is None
    finally:
        conn._closing.set()
        thread.join(timeout=1)


def test_reset_input_buffer_only_when_open():
    fake = FakeSerial()
    conn = _connection(fake)
    conn.reset_input_buffer()
    assert fake.flushed_input == 1
    fake.is_open = False
    conn.reset_input_buffer()
    assert fake.flushed_input == 1
