"""Bounded worker pool producing pollable futures.

Each submitted callable runs on one of `max_workers` threads. At most
`max_pending` operations may be outstanding (running or queued); beyond
that the pool either rejects the submission with `PoolSaturatedError` or
blocks the submitter until a slot frees, depending on `block_when_full`.
"""

import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, TypeVar

from .Errors import PoolSaturatedError
from .Futures import PollableFuture
from .Settings import ZipSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WorkerPool:
    """Runs blocking callables in the background and hands out `PollableFuture`s.

    Attributes:
        settings (ZipSettings): Pool size, admission limit and saturation policy.
    """

    def __init__(self, settings: Optional[ZipSettings] = None) -> None:
        self.settings = settings or ZipSettings()
        self._executor = ThreadPoolExecutor(max_workers=self.settings.max_workers,
                                            thread_name_prefix="quickzip")
        self._slots = threading.BoundedSemaphore(self.settings.max_pending)
        self._pending = 0
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

    @property
    def pending(self) -> int:
        """Number of submitted operations that have not published yet."""
        with self._lock:
            return self._pending

    def submit(self, fn: Callable[..., T], *args, name: Optional[str] = None, **kwargs) -> PollableFuture[T]:
        """Run `fn(*args, **kwargs)` on a worker thread.

        Args:
            fn (callable): The blocking work.
            name (str|None): Label for logs; defaults to the function name.

        Returns:
            PollableFuture: Completes with the return value of `fn`, or with
            the exception it raised.

        Raises:
            PoolSaturatedError: If all slots are taken and the pool rejects.
            RuntimeError: If the pool has been shut down.
        """
        label = f"{name or getattr(fn, '__name__', 'task')}#{next(self._ids)}"
        if not self._slots.acquire(blocking=self.settings.block_when_full):
            raise PoolSaturatedError(
                f"Cannot start {label}: {self.settings.max_pending} operations already pending")

        future: PollableFuture[T] = PollableFuture(label, poll_interval=self.settings.poll_interval)
        with self._lock:
            self._pending += 1
        try:
            self._executor.submit(self._run, future, fn, args, kwargs)
        except RuntimeError:
            self._release()
            raise
        logger.debug("Submitted %s", label)
        return future

    def _run(self, future: PollableFuture, fn: Callable, args: tuple, kwargs: dict) -> None:
        # The slot is freed before publishing, so a completed future always
        # means its slot is available again. SystemExit and other
        # BaseExceptions are published like any other failure.
        try:
            value = fn(*args, **kwargs)
        except BaseException as e:
            self._release()
            logger.error("%s failed: %r", future.name, e)
            future.set_exception(e)
        else:
            self._release()
            logger.debug("%s finished", future.name)
            future.set_result(value)

    def _release(self) -> None:
        with self._lock:
            self._pending -= 1
        self._slots.release()

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; with `wait`, block until running work finishes."""
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
