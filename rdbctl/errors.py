"""
Error taxonomy of the rdbctl controller.

    RdbError
     ├── InitializationError   controller built around no database handle
     ├── NotInitializedError   controller used without (or after releasing) its handle
     ├── DriverError           any failure surfaced by the driver
     ├── CompositeError        callback failure followed by a failed rollback
     ├── NonErrorPayloadError  error capture received a non-exception payload
     └── Panic                 carrier for non-exception failure payloads

driver_errors() is the single place where driver exceptions become
DriverError.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional, Sequence


class RdbError(Exception):
    """Base class for every error raised by rdbctl."""


class InitializationError(RdbError):
    pass


class NotInitializedError(RdbError):
    def __init__(self, message: str = "The controller is not initialized"):
        super().__init__(message)


class DriverError(RdbError):
    """
    Failure surfaced by the database driver.

    Attributes
    ----------
    cause:
        The underlying driver exception (also set as __cause__).
    query:
        SQL text being executed, when known.
    params:
        Arguments bound to the query, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        cause: Optional[BaseException] = None,
        query: Optional[str] = None,
        params: Optional[Sequence[Any]] = None,
    ):
        super().__init__(message)
        self.cause = cause
        self.query = query
        self.params = tuple(params) if params is not None else None


class CompositeError(RdbError):
    """
    A transaction callback failed and the automatic rollback failed too.

    Both causes are kept, in order: original, then rollback_error.
    """

    def __init__(self, original: BaseException, rollback_error: BaseException):
        super().__init__(
            f"Transaction has Error: {original}. Rollback has error too: {rollback_error}"
        )
        self.original = original
        self.rollback_error = rollback_error

    @property
    def causes(self) -> tuple:
        return (self.original, self.rollback_error)


class NonErrorPayloadError(RdbError):
    def __init__(self, payload: Any):
        super().__init__(f"The panic[{payload!r}] is not a error object")
        self.payload = payload


class Panic(RdbError):
    """
    Carries a failure payload that is not itself an exception.

    Raised by rdbctl.recovery.panic(); failure handlers receive `value`,
    not the Panic instance.
    """

    def __init__(self, value: Any):
        super().__init__(f"panic: {value!r}")
        self.value = value


@contextmanager
def driver_errors(
    query: Optional[str] = None,
    params: Optional[Sequence[Any]] = None,
) -> Iterator[None]:
    """
    Re-raise any exception from the enclosed driver call as DriverError.

    An exception that is already a DriverError passes through unchanged.

        with driver_errors(query, args):
            result = db.execute(query, *args)
    """
    try:
        yield
    except DriverError:
        raise
    except Exception as e:
        message = str(e)
        if query is not None:
            message = f"{message} | Query: {query!r} | Params: {tuple(params or ())!r}"
        raise DriverError(message, cause=e, query=query, params=params) from e


__all__ = [
    "RdbError",
    "InitializationError",
    "NotInitializedError",
    "DriverError",
    "CompositeError",
    "NonErrorPayloadError",
    "Panic",
    "driver_errors",
]
