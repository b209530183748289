"""Protocol definitions.

`ArchiveEngineProtocol` is the interface the dispatcher drives: the only
place that talks to the compression library. `YieldInstruction` is what a
coroutine may yield to the cooperative scheduler to suspend itself until
the instruction stops waiting.
"""

import zipfile
from pathlib import Path
from typing import Callable, List, Optional, Protocol, runtime_checkable

ProgressCallback = Callable[[int], None]


class ArchiveEngineProtocol(Protocol):
    """Minimal directory-oriented archive engine.

    The engine only understands directories on the filesystem side; handling
    of single files is the dispatcher's job.
    """

    def create_from_directory(self, source_dir: Path, archive_path: Path,
                              recurse: bool = True,
                              progress_callback: Optional[ProgressCallback] = None) -> None:
        """Write every file under `source_dir` into a new archive.

        Args:
            source_dir (Path): Directory used as the archive root. Entry names
                are relative to it.
            archive_path (Path): Destination archive file.
            recurse (bool): Descend into sub-directories.
            progress_callback (callable|None): Called with the number of
                uncompressed bytes consumed after each chunk.
        """
        ...

    def extract(self, archive_path: Path, target_dir: Path,
                progress_callback: Optional[ProgressCallback] = None) -> None:
        """Recreate the archived tree under `target_dir`."""
        ...

    def get_entries(self, archive_path: Path) -> List[zipfile.ZipInfo]:
        """Return the entries stored in the archive, in archive order."""
        ...

    def pack_bytes(self, data: bytes, entry_name: str) -> bytes:
        """Return a serialized archive holding `data` as the single entry `entry_name`."""
        ...

    def unpack_bytes(self, data: bytes) -> bytes:
        """Return the content of the first entry of a serialized archive."""
        ...


@runtime_checkable
class YieldInstruction(Protocol):
    """Anything a scheduled coroutine can yield to wait on."""

    @property
    def keep_waiting(self) -> bool:
        ...
