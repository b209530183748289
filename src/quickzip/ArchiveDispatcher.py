"""Archive dispatcher.

`ArchiveDispatcher` is the public entry point for archiving. It accepts a
single file or a whole directory and hides the fact that the engine only
archives directories: a single file is copied into a uniquely named staging
directory next to it, the staging directory is archived, and the staging
directory is removed again on every exit path.

Every operation has an `_async` twin that runs on the dispatcher's
`WorkerPool` and returns a `PollableFuture` straight away.

Example:
    with ArchiveDispatcher() as dispatcher:
        dispatcher.create_archive("saves/slot1.dat", "backup/slot1.zip")
        future = dispatcher.extract_archive_async("backup/slot1.zip", "restore/")
        while future.keep_waiting:
            render_frame()
        future.result()
"""

import logging
import shutil
import tempfile
import zipfile
import zlib
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Union

from .Errors import (ConflictError, EncryptedArchiveError, FormatFailureError,
                     IOFailureError, NotFoundError, ZipManagerError)
from .Futures import PollableFuture
from .Protocols import ArchiveEngineProtocol, ProgressCallback
from .Settings import ZipSettings
from .Workers import WorkerPool
from .ZipArchive import ZipArchiveEngine

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@contextmanager
def _translate_errors(action: str, path: PathLike) -> Iterator[None]:
    """Re-raise library and filesystem errors as quickzip errors."""
    try:
        yield
    except ZipManagerError:
        raise
    except FileNotFoundError as e:
        raise NotFoundError(f"Cannot {action} '{path}': {e}") from e
    except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError) as e:
        raise FormatFailureError(f"Cannot {action} '{path}': {e}") from e
    except RuntimeError as e:
        # zipfile raises RuntimeError for encrypted entries and bad passwords
        message = str(e).casefold()
        if "encrypted" in message or "password" in message:
            raise EncryptedArchiveError(f"Cannot {action} '{path}': {e}") from e
        raise
    except OSError as e:
        raise IOFailureError(f"Cannot {action} '{path}': {e}") from e


class ArchiveDispatcher:
    """
    Creates and extracts ZIP archives from files, directories and bytes.

    Attributes:
        settings (ZipSettings): Compression and pool settings.
        engine (ArchiveEngineProtocol): The compression library handle.
        pool (WorkerPool): Runs the asynchronous variants.
    """

    def __init__(self, engine: Optional[ArchiveEngineProtocol] = None,
                 pool: Optional[WorkerPool] = None,
                 settings: Optional[ZipSettings] = None) -> None:
        """
        Args:
            engine (ArchiveEngineProtocol|None): Engine to delegate to. Built
                from `settings` when omitted.
            pool (WorkerPool|None): Pool for asynchronous operations. When
                omitted the dispatcher builds and owns one, and shuts it down
                in `close()`.
            settings (ZipSettings|None): Defaults to `ZipSettings()`.
        """
        self.settings = settings or ZipSettings()
        self.engine = engine or ZipArchiveEngine(self.settings.compression_level,
                                                 self.settings.chunk_size)
        self._owns_pool = pool is None
        self.pool = pool or WorkerPool(self.settings)

    def close(self) -> None:
        """Shut down the worker pool if this dispatcher created it."""
        if self._owns_pool:
            self.pool.shutdown()

    def __enter__(self) -> "ArchiveDispatcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Synchronous operations

    def create_archive(self, source: PathLike, destination: PathLike,
                       progress_callback: Optional[ProgressCallback] = None) -> None:
        """
        Archive a file or a directory into `destination`.

        A directory becomes the root of the archive, so entry names are
        relative to it. A single file ends up as the only entry, named after
        the file.

        Args:
            source (str|Path): File or directory to archive.
            destination (str|Path): Archive file to write. Missing parent
                directories are created.
            progress_callback (callable|None): Called with byte counts as
                files are added.

        Raises:
            NotFoundError: If `source` does not exist.
            ConflictError: If a staging directory cannot be created.
            IOFailureError: If reading, copying, writing or cleanup fails.
        """
        source = Path(source)
        destination = Path(destination)
        if not source.exists():
            raise NotFoundError(f"Source does not exist: {source}")

        logger.debug("Creating %s from %s", destination, source)
        with _translate_errors("create archive", destination):
            destination.parent.mkdir(parents=True, exist_ok=True)
            if source.is_dir():
                self.engine.create_from_directory(source, destination, True, progress_callback)
            else:
                self._create_from_file(source, destination, progress_callback)
        logger.info("Created %s", destination)

    def extract_archive(self, archive: PathLike, destination: PathLike,
                        progress_callback: Optional[ProgressCallback] = None) -> None:
        """
        Extract every entry of `archive` under the `destination` directory.

        Raises:
            NotFoundError: If `archive` does not exist.
            FormatFailureError: If `archive` is corrupt or not a ZIP archive.
            EncryptedArchiveError: If an entry is password protected.
            IOFailureError: If `destination` cannot be written.
        """
        archive = Path(archive)
        if not archive.exists():
            raise NotFoundError(f"Archive does not exist: {archive}")

        logger.debug("Extracting %s into %s", archive, destination)
        with _translate_errors("extract archive", archive):
            self.engine.extract(archive, Path(destination), progress_callback)
        logger.info("Extracted %s", archive)

    def list_archive(self, archive: PathLike) -> List[zipfile.ZipInfo]:
        """
        Return the entries of `archive`.

        Raises:
            NotFoundError: If `archive` does not exist.
            FormatFailureError: If `archive` is corrupt or not a ZIP archive.
        """
        archive = Path(archive)
        if not archive.exists():
            raise NotFoundError(f"Archive does not exist: {archive}")
        with _translate_errors("read archive", archive):
            return self.engine.get_entries(archive)

    def create_archive_bytes(self, data: bytes, entry_name: str) -> bytes:
        """Return an in-memory archive holding `data` as the single entry `entry_name`."""
        with _translate_errors("pack entry", entry_name):
            return self.engine.pack_bytes(bytes(data), entry_name)

    def extract_archive_bytes(self, data: bytes) -> bytes:
        """
        Return the content of the first entry of an in-memory archive.

        Raises:
            EmptyArchiveError: If the archive holds no entries.
            FormatFailureError: If `data` is not a valid archive.
            EncryptedArchiveError: If the first entry is password protected.
        """
        with _translate_errors("unpack", "<bytes>"):
            return self.engine.unpack_bytes(bytes(data))

    def write_archive_bytes(self, data: bytes, entry_name: str, destination: PathLike) -> None:
        """Pack `data` as the single entry `entry_name` and write the archive to `destination`."""
        packed = self.create_archive_bytes(data, entry_name)
        destination = Path(destination)
        with _translate_errors("write archive", destination):
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(packed)
        logger.info("Wrote %s (%d bytes)", destination, len(packed))

    # Asynchronous operations

    def create_archive_async(self, source: PathLike, destination: PathLike,
                             progress_callback: Optional[ProgressCallback] = None) -> PollableFuture[None]:
        return self.pool.submit(self.create_archive, source, destination,
                                progress_callback=progress_callback, name="create_archive")

    def extract_archive_async(self, archive: PathLike, destination: PathLike,
                              progress_callback: Optional[ProgressCallback] = None) -> PollableFuture[None]:
        return self.pool.submit(self.extract_archive, archive, destination,
                                progress_callback=progress_callback, name="extract_archive")

    def create_archive_bytes_async(self, data: bytes, entry_name: str) -> PollableFuture[bytes]:
        return self.pool.submit(self.create_archive_bytes, data, entry_name,
                                name="create_archive_bytes")

    def extract_archive_bytes_async(self, data: bytes) -> PollableFuture[bytes]:
        return self.pool.submit(self.extract_archive_bytes, data, name="extract_archive_bytes")

    def write_archive_bytes_async(self, data: bytes, entry_name: str,
                                  destination: PathLike) -> PollableFuture[None]:
        return self.pool.submit(self.write_archive_bytes, data, entry_name, destination,
                                name="write_archive_bytes")

    # Single-file staging

    def _create_from_file(self, source: Path, destination: Path,
                          progress_callback: Optional[ProgressCallback]) -> None:
        with self._staging_directory(source) as staging:
            shutil.copy2(source, staging / source.name)
            self.engine.create_from_directory(staging, destination, True, progress_callback)

    @staticmethod
    @contextmanager
    def _staging_directory(source: Path) -> Iterator[Path]:
        """Yield a fresh directory next to `source`, removed again on exit.

        The name starts with the file's stem and carries a random suffix, so
        concurrent calls for same-named files never share a directory.
        """
        try:
            staging = Path(tempfile.mkdtemp(prefix=f"{source.stem}-", suffix=".staging",
                                            dir=source.parent))
        except FileExistsError as e:
            raise ConflictError(f"No free staging directory next to {source}") from e
        logger.debug("Staging %s in %s", source.name, staging)
        try:
            yield staging
        except BaseException:
            try:
                shutil.rmtree(staging)
            except OSError as e:
                logger.warning("Could not remove staging directory %s: %s", staging, e)
            raise
        shutil.rmtree(staging)
