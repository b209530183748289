"""quickzip package initializer.

quickzip is a small facade over `zipfile` for applications that run a
frame loop: archive a file or a directory, extract an archive, or pack a
byte string as a single entry, either blocking or in the background with a
future that the loop polls once per frame.

Exports:

- __version__: Package version string.
- ArchiveDispatcher: The archive operations, synchronous and asynchronous.
- ZipArchiveEngine: The engine the dispatcher delegates to.
- PollableFuture: Result handle of an asynchronous operation.
- WorkerPool: Bounded pool the asynchronous operations run on.
- CooperativeScheduler: Tick-driven runner for generator coroutines.
- ZipSettings: Tunables shared by all of the above.
- The exception types from `quickzip.Errors`.

Example:
    from quickzip import ArchiveDispatcher
    with ArchiveDispatcher() as dispatcher:
        dispatcher.create_archive("level1/", "level1.zip")
"""

# Public version string
__version__ = "0.1.0"

from .ArchiveDispatcher import ArchiveDispatcher
from .Errors import (ConflictError, EmptyArchiveError, EncryptedArchiveError, FormatFailureError,
                     InvalidStateError, IOFailureError, NotFoundError,
                     PoolSaturatedError, ZipManagerError)
from .Futures import PollableFuture
from .Protocols import ArchiveEngineProtocol, YieldInstruction
from .Scheduler import CooperativeScheduler, Task
from .Settings import ZipSettings
from .Workers import WorkerPool
from .ZipArchive import ZipArchiveEngine

# Define the public API
__all__ = [
    "__version__",
    "ArchiveDispatcher",
    "ArchiveEngineProtocol",
    "ConflictError",
    "CooperativeScheduler",
    "EmptyArchiveError",
    "EncryptedArchiveError",
    "FormatFailureError",
    "InvalidStateError",
    "IOFailureError",
    "NotFoundError",
    "PollableFuture",
    "PoolSaturatedError",
    "Task",
    "WorkerPool",
    "YieldInstruction",
    "ZipArchiveEngine",
    "ZipManagerError",
    "ZipSettings",
]
