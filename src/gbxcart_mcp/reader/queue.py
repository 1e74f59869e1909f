"""A serial FIFO operation queue.

Operations run one at a time on a single worker thread, in the order
they were added. Cancelling an operation before it starts turns its
``start()`` into a no-op.
"""

from __future__ import annotations

import logging
import queue
import threading

logger = logging.getLogger(__name__)


class Operation:
    """A unit of work run by :class:`OperationQueue`."""

    def __init__(self) -> None:
        self._cancelled = threading.Event()
        self._finished = threading.Event()
        self._executing = False
        self.exception: BaseException | None = None

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def is_executing(self) -> bool:
        return self._executing

    @property
    def is_finished(self) -> bool:
        return self._finished.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def start(self) -> None:
        """Run the operation on the calling thread."""
        if self.is_finished:
            return
        if self.is_cancelled:
            self._finished.set()
            return
        self._executing = True
        try:
            self.main()
        except BaseException as e:
            self.exception = e
            raise
        finally:
            self._executing = False
            self._finished.set()

    def main(self) -> None:
        raise NotImplementedError

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the operation has finished."""
        return self._finished.wait(timeout)


class OperationQueue:
    """Runs operations sequentially on a daemon worker thread."""

    def __init__(self, name: str = "operation-queue") -> None:
        self._name = name
        self._queue: queue.Queue[Operation] = queue.Queue()
        self._lock = threading.Lock()
        self._pending: list[Operation] = []
        self._worker: threading.Thread | None = None
        self._error: BaseException | None = None
        self._idle = threading.Condition(self._lock)

    @property
    def error(self) -> BaseException | None:
        """The exception that stopped the queue, if any."""
        return self._error

    @property
    def operation_count(self) -> int:
        with self._lock:
            return len(self._pending)

    @property
    def operations(self) -> list[Operation]:
        with self._lock:
            return list(self._pending)

    def add_operation(self, operation: Operation) -> None:
        """Enqueue an operation.

        Raises:
            RuntimeError: If a previous operation failed and stopped the queue.
        """
        with self._lock:
            if self._error is not None:
                raise RuntimeError(f"{self._name} stopped after an error") from self._error
            self._pending.append(operation)
            if self._worker is None:
                self._worker = threading.Thread(target=self._run, name=self._name, daemon=True)
                self._worker.start()
        self._queue.put(operation)

    def cancel_all_operations(self) -> None:
        for op in self.operations:
            op.cancel()

    def wait_until_all_operations_are_finished(self, timeout: float | None = None) -> bool:
        """Block until the queue is empty.

        Returns:
            False if ``timeout`` elapsed first.

        Raises:
            The exception that escaped an operation and stopped the queue.
        """
        with self._idle:
            done = self._idle.wait_for(
                lambda: not self._pending or self._error is not None, timeout
            )
            if self._error is not None:
                raise self._error
        return done

    def _run(self) -> None:
        while True:
            operation = self._queue.get()
            try:
                operation.start()
            except BaseException as e:
                logger.exception("Operation %r failed; stopping %s", operation, self._name)
                with self._idle:
                    self._error = e
                    for op in self._pending:
                        op.cancel()
                        op._finished.set()
                    self._pending.clear()
                    self._worker = None
                    self._idle.notify_all()
                return
            with self._idle:
                self._pending.remove(operation)
                self._idle.notify_all()
