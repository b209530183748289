"""Poll-based future for work running on a background thread.

A `PollableFuture` is written exactly once by the worker that owns it and
read any number of times by pollers. The scheduler side never blocks: it
asks `keep_waiting` (or `is_pending()`) once per tick and reads `result()`
after that turns false. Blocking callers can use `wait()` and asyncio code
can simply `await` the future.

Example:
    future = dispatcher.create_archive_async("save.dat", "save.zip")
    while future.keep_waiting:
        render_frame()
    future.result()  # raises if the worker failed
"""

import asyncio
import threading
from typing import Generic, Optional, TypeVar

from .Errors import InvalidStateError
from .Settings import DEFAULT_POLL_INTERVAL

T = TypeVar("T")


class PollableFuture(Generic[T]):
    """One-shot completion flag with a value-or-failure result slot.

    The result slot is written before the completion event is set, and
    `threading.Event` gives the reader a happens-before edge, so a poller
    that sees the future as done always sees the published outcome.

    Attributes:
        name (str): Label used in logs and reprs.
    """

    def __init__(self, name: str = "operation", poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:
        self.name = name
        self._poll_interval = poll_interval
        self._done = threading.Event()
        self._publish_lock = threading.Lock()
        self._published = False
        self._value: Optional[T] = None
        self._error: Optional[BaseException] = None

    def __repr__(self) -> str:
        if self.is_pending():
            state = "pending"
        elif self._error is not None:
            state = f"failed: {type(self._error).__name__}"
        else:
            state = "done"
        return f"<PollableFuture {self.name} {state}>"

    @property
    def keep_waiting(self) -> bool:
        """True while the work is still running; the scheduler's poll."""
        return not self._done.is_set()

    def is_pending(self) -> bool:
        return not self._done.is_set()

    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the future completes or `timeout` seconds pass.

        Returns:
            bool: True if the future completed.
        """
        return self._done.wait(timeout)

    def result(self) -> T:
        """Return the published value, re-raising the failure if the work failed.

        Raises:
            InvalidStateError: If the future is still pending.
        """
        if self.is_pending():
            raise InvalidStateError(f"{self.name} has not completed yet")
        if self._error is not None:
            raise self._error
        return self._value

    def exception(self) -> Optional[BaseException]:
        """Return the published failure, or None if the work succeeded.

        Raises:
            InvalidStateError: If the future is still pending.
        """
        if self.is_pending():
            raise InvalidStateError(f"{self.name} has not completed yet")
        return self._error

    def set_result(self, value: T) -> None:
        self._publish(value, None)

    def set_exception(self, error: BaseException) -> None:
        self._publish(None, error)

    def _publish(self, value: Optional[T], error: Optional[BaseException]) -> None:
        with self._publish_lock:
            if self._published:
                raise InvalidStateError(f"{self.name} was already completed")
            self._published = True
        self._value = value
        self._error = error
        self._done.set()

    def __await__(self):
        while self.is_pending():
            yield from asyncio.sleep(self._poll_interval).__await__()
        return self.result()
