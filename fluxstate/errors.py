"""
FluxState Errors
================

Exception hierarchy shared by the reactive cell, the persistence layer and
the service registry. Each error also derives from the closest built-in
exception so callers can catch it either way.
"""


class FluxError(Exception):
    """Base class for all FluxState errors."""

    pass


class DisposedError(FluxError, RuntimeError):
    """Raised when a disposed Flux is read or mutated."""

    pass


class HistoryIndexError(FluxError, IndexError):
    """Raised when revert() is given an index outside the history."""

    def __init__(self, index: int, length: int):
        super().__init__(
            f"History index {index} out of bounds for history of length {length}"
        )
        self.index = index
        self.length = length


class UnsupportedTypeError(FluxError, TypeError):
    """Raised when a non-primitive value is persisted without a codec function."""

    pass


class MissingServiceError(FluxError, LookupError):
    """Raised when a service lookup finds nothing registered."""

    pass


class StorageError(FluxError):
    """Raised when a key-value backend reports a failed write."""

    pass
