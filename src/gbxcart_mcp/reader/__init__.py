"""Reader layer: operation queue, read operations, and the GBxCart controller."""

from .controller import GBxCartController
from .errors import FailedToOpenError, ReadCancelledError, ReaderControllerError
from .operation import ReadOperation
from .queue import Operation, OperationQueue
from .session import CartridgeReader
