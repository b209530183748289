"""Single-threaded cooperative scheduler for generator coroutines.

A coroutine is a generator that yields whatever it wants to wait on:

- a `PollableFuture`: resumed once the future completes, with the future's
  value sent back in (or its failure raised at the `yield`);
- any other object exposing `keep_waiting`: resumed once that turns false;
- `None`: resumed on the next tick.

Example:
    def save_game(dispatcher, state):
        packed = yield dispatcher.create_archive_bytes_async(state, "save.dat")
        yield dispatcher.write_archive_bytes_async(packed, "save.dat", "slot1.zip")

    scheduler = CooperativeScheduler()
    scheduler.start(save_game(dispatcher, state))
    while scheduler.tick():
        render_frame()
"""

import logging
import time
from typing import Any, Generator, List, Optional

from .Errors import InvalidStateError
from .Futures import PollableFuture
from .Protocols import YieldInstruction
from .Settings import DEFAULT_POLL_INTERVAL

logger = logging.getLogger(__name__)

Coroutine = Generator[Any, Any, Any]


class Task:
    """Handle on a coroutine started by the scheduler.

    Attributes:
        name (str): Label used in logs.
        instruction (object|None): What the coroutine is currently waiting on.
    """

    def __init__(self, coroutine: Coroutine, name: str) -> None:
        self.name = name
        self.instruction: Optional[Any] = None
        self._coroutine = coroutine
        self._done = False
        self._value: Any = None
        self._error: Optional[BaseException] = None

    @property
    def done(self) -> bool:
        return self._done

    def result(self) -> Any:
        """Return the coroutine's return value, re-raising its failure if it raised."""
        if not self._done:
            raise InvalidStateError(f"Task {self.name} is still running")
        if self._error is not None:
            raise self._error
        return self._value

    def exception(self) -> Optional[BaseException]:
        if not self._done:
            raise InvalidStateError(f"Task {self.name} is still running")
        return self._error

    def ready(self) -> bool:
        if self.instruction is None:
            return True
        return not self.instruction.keep_waiting

    def step(self) -> None:
        """Resume the coroutine until its next yield, return or failure."""
        instruction, self.instruction = self.instruction, None
        try:
            if isinstance(instruction, PollableFuture) and instruction.exception() is not None:
                yielded = self._coroutine.throw(instruction.exception())
            elif isinstance(instruction, PollableFuture):
                yielded = self._coroutine.send(instruction.result())
            else:
                yielded = self._coroutine.send(None)
        except StopIteration as stop:
            self._finish(stop.value, None)
            return
        except Exception as e:
            logger.error("Task %s failed: %s", self.name, e)
            self._finish(None, e)
            return

        if yielded is not None and not isinstance(yielded, YieldInstruction):
            self._coroutine.close()
            self._finish(None, TypeError(
                f"Task {self.name} yielded {type(yielded).__name__}, which has no keep_waiting"))
            return
        self.instruction = yielded

    def _finish(self, value: Any, error: Optional[BaseException]) -> None:
        self._value = value
        self._error = error
        self._done = True


class CooperativeScheduler:
    """Drives coroutines one tick at a time without ever blocking on them."""

    def __init__(self, poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:
        self.poll_interval = poll_interval
        self._tasks: List[Task] = []

    @property
    def tasks(self) -> List[Task]:
        return list(self._tasks)

    def start(self, coroutine: Coroutine, name: Optional[str] = None) -> Task:
        """Register `coroutine` and run it up to its first yield."""
        task = Task(coroutine, name or getattr(coroutine, "__name__", "coroutine"))
        task.step()
        if not task.done:
            self._tasks.append(task)
        return task

    def tick(self) -> int:
        """Resume every task whose instruction stopped waiting.

        Returns:
            int: Number of tasks still alive after this tick.
        """
        for task in list(self._tasks):
            if task.ready():
                task.step()
            if task.done:
                self._tasks.remove(task)
        return len(self._tasks)

    def run(self, max_ticks: Optional[int] = None) -> int:
        """Tick until no task is alive, sleeping `poll_interval` between ticks.

        Args:
            max_ticks (int|None): Give up after this many ticks.

        Returns:
            int: Number of ticks performed.
        """
        ticks = 0
        while self._tasks and (max_ticks is None or ticks < max_ticks):
            ticks += 1
            if self.tick():
                time.sleep(self.poll_interval)
        return ticks
