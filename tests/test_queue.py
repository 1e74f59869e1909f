"""Tests for the serial operation queue."""

import threading

import pytest

from gbxcart_mcp.reader.queue import Operation, OperationQueue


class Record(Operation):
    def __init__(self, log, name, gate=None):
        super().__init__()
        self.log = log
        self.name = name
        self.gate = gate

    def main(self):
        if self.gate is not None:
            self.gate.wait(timeout=5)
        self.log.append(self.name)


class Explode(Operation):
    def main(self):
        raise RuntimeError("boom")


def test_operations_run_in_order():
    log = []
    q = OperationQueue()
    for name in "abcde":
        q.add_operation(Record(log, name))
    assert q.wait_until_all_operations_are_finished(timeout=5)
    assert log == list("abcde")
    assert q.operation_count == 0


def test_cancelled_operation_is_skipped():
    log = []
    gate = threading.Event()
    q = OperationQueue()
    first = Record(log, "first", gate)
    skipped = Record(log, "skipped")
    q.add_operation(first)
    q.add_operation(skipped)
    skipped.cancel()
    gate.set()
    assert q.wait_until_all_operations_are_finished(timeout=5)
    assert log == ["first"]
    assert skipped.is_finished
    assert skipped.is_cancelled


def test_cancel_all_operations():
    log = []
    gate = threading.Event()
    q = OperationQueue()
    ops = [Record(log, "held", gate)] + [Record(log, str(i)) for i in range(3)]
    for op in ops:
        q.add_operation(op)
    q.cancel_all_operations()
    gate.set()
    assert q.wait_until_all_operations_are_finished(timeout=5)
    assert all(op.is_cancelled for op in ops)
    assert all(op.is_finished for op in ops)


def test_wait_times_out_while_busy():
    gate = threading.Event()
    q = OperationQueue()
    q.add_operation(Record([], "held", gate))
    assert q.wait_until_all_operations_are_finished(timeout=0.05) is False
    gate.set()
    assert q.wait_until_all_operations_are_finished(timeout=5)


def test_error_stops_queue_and_is_reraised():
    log = []
    gate = threading.Event()
    q = OperationQueue()
    q.add_operation(Record(log, "held", gate))
    bad = Explode()
    after = Record(log, "after")
    q.add_operation(bad)
    q.add_operation(after)
    gate.set()

    with pytest.raises(RuntimeError, match="boom"):
        q.wait_until_all_operations_are_finished(timeout=5)
    assert isinstance(bad.exception, RuntimeError)
    assert isinstance(q.error, RuntimeError)
    assert after.is_cancelled and after.is_finished
    assert log == ["held"]

    with pytest.raises(RuntimeError):
        q.add_operation(Record(log, "late"))


def test_base_operation_requires_main():
    with pytest.raises(NotImplementedError):
        Operation().start()
