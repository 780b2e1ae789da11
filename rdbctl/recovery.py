"""
Failure handling for the controller.

Every controller operation runs inside FailureHandlers.boundary():

    - no exception:          nothing happens
    - exception, no handler: the same exception is re-raised
    - exception, handlers:   each handler is called in registration order
                             with the failure payload; the failure is
                             absorbed unless a handler raises

A handler that raises stops the dispatch; its exception propagates to the
caller and is not intercepted again by the same boundary.

The payload is the exception itself, or the arbitrary value carried by a
Panic raised through panic(value).
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, NoReturn, Optional

from .errors import NonErrorPayloadError, Panic

FailureHandler = Callable[[Any], None]


def panic(value: Any) -> NoReturn:
    """
    Abort the current unit of work with an arbitrary payload.

    Exceptions are raised as-is; any other value is wrapped in Panic.
    """
    if isinstance(value, BaseException):
        raise value
    raise Panic(value)


def payload_of(exc: BaseException) -> Any:
    if isinstance(exc, Panic):
        return exc.value
    return exc


# ----------------------------------------------------------------------
# Handler registry + boundary
# ----------------------------------------------------------------------

class FailureHandlers:
    """
    Ordered, append-only list of failure handlers.

    Registration takes a lock, and each dispatch iterates over a snapshot
    taken at the time of the failure.
    """

    def __init__(self) -> None:
        self._handlers: List[FailureHandler] = []
        self._lock = threading.Lock()

    def register(self, handler: FailureHandler) -> None:
        if not callable(handler):
            raise TypeError(f"Failure handler must be callable, got {handler!r}")
        with self._lock:
            self._handlers.append(handler)

    def snapshot(self) -> List[FailureHandler]:
        with self._lock:
            return list(self._handlers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)

    @contextmanager
    def boundary(self) -> Iterator[None]:
        try:
            yield
        except Exception as exc:
            handlers = self.snapshot()
            if not handlers:
                raise

            payload = payload_of(exc)
            for handler in handlers:
                handler(payload)


# ----------------------------------------------------------------------
# Error capture
# ----------------------------------------------------------------------

@dataclass
class ErrorSlot:
    """Caller-owned holder written by capture_failure_into()."""

    error: Optional[BaseException] = None


def capture_failure_into(slot: ErrorSlot) -> FailureHandler:
    """
    Build a handler storing the failure into `slot.error`.

    Raises NonErrorPayloadError when the payload is not an exception.
    """
    def handler(payload: Any) -> None:
        if not isinstance(payload, BaseException):
            raise NonErrorPayloadError(payload)
        slot.error = payload

    return handler


__all__ = [
    "FailureHandler",
    "FailureHandlers",
    "ErrorSlot",
    "capture_failure_into",
    "panic",
    "payload_of",
]
