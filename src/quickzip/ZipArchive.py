"""ZIP archive engine adapter.

Provides `ZipArchiveEngine`, a small adapter around the standard library
`zipfile` module. It is the single place that touches the compression
library and deliberately mirrors a directory-oriented API: whole directories
go in, whole directories come out, plus a one-entry in-memory form.

Errors from the library (`OSError`, `zipfile.BadZipFile`) are left to
propagate; the dispatcher translates them into quickzip exceptions.
"""

import io
import logging
import os
import time
import zipfile
from pathlib import Path
from typing import List, Optional

from .Errors import EmptyArchiveError
from .Protocols import ArchiveEngineProtocol, ProgressCallback
from .Settings import DEFAULT_CHUNK_SIZE, DEFAULT_COMPRESSION_LEVEL

logger = logging.getLogger(__name__)


class ZipArchiveEngine(ArchiveEngineProtocol):
    """
    ZIP archive engine using the stdlib zipfile module.

    Attributes:
        compression_level (int): Deflate level used for every written entry.
        chunk_size (int): Buffer size used when streaming entries out.
    """

    def __init__(self, compression_level: int = DEFAULT_COMPRESSION_LEVEL,
                 chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self.compression_level = compression_level
        self.chunk_size = chunk_size

    def create_from_directory(self, source_dir: Path, archive_path: Path,
                              recurse: bool = True,
                              progress_callback: Optional[ProgressCallback] = None) -> None:
        """
        Archive the contents of `source_dir` into `archive_path`.

        Entry names are relative to `source_dir`, so the directory itself is
        the root of the archive. Empty sub-directories are stored as
        directory entries. If `archive_path` lies inside `source_dir` it is
        skipped rather than archived into itself.

        If anything fails after the archive file was opened, the partial
        archive is removed before the error propagates.

        Args:
            source_dir (Path): Directory to archive.
            archive_path (Path): Archive file to (over)write.
            recurse (bool): Descend into sub-directories.
            progress_callback (callable|None): Called with each file's size
                once it has been written.

        Raises:
            OSError: If a file cannot be read or the archive cannot be written.
        """
        source_dir = Path(source_dir)
        archive_path = Path(archive_path)

        archive = zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED,
                                  compresslevel=self.compression_level,
                                  strict_timestamps=False)
        try:
            with archive:
                self._write_tree(archive, source_dir, archive_path.resolve(), recurse, progress_callback)
        except BaseException:
            # Closing still writes a central directory; drop the truncated archive
            try:
                archive_path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove incomplete archive %s: %s", archive_path, e)
            raise

    def _write_tree(self, archive: zipfile.ZipFile, source_dir: Path, skip: Path, recurse: bool,
                    progress_callback: Optional[ProgressCallback]) -> None:
        for root, dirs, files in os.walk(source_dir):
            dirs.sort()
            root_path = Path(root)
            if not recurse:
                dirs.clear()
            elif root_path != source_dir and not dirs and not files:
                # Keep empty directories so the tree survives a round trip
                archive.write(root_path, root_path.relative_to(source_dir).as_posix())

            for name in sorted(files):
                file_path = root_path / name
                if file_path.resolve() == skip:
                    continue
                arcname = file_path.relative_to(source_dir).as_posix()
                archive.write(file_path, arcname)
                logger.debug("Added %s", arcname)
                if progress_callback:
                    progress_callback(file_path.stat().st_size)

    def extract(self, archive_path: Path, target_dir: Path,
                progress_callback: Optional[ProgressCallback] = None) -> None:
        """
        Extract every entry of `archive_path` under `target_dir`.

        Entries are streamed to disk in `chunk_size` pieces. Entries whose
        names would resolve outside `target_dir` (absolute paths, `..`) are
        skipped with a warning.

        Args:
            archive_path (Path): Archive to read.
            target_dir (Path): Root directory to extract into; created if missing.
            progress_callback (callable|None): Called with the number of bytes
                written on each write.

        Raises:
            zipfile.BadZipFile: If the archive is invalid or corrupted.
            OSError: If the archive cannot be opened or a file cannot be written.
        """
        target_dir = Path(target_dir)
        target_dir.mkdir(parents=True, exist_ok=True)
        root = target_dir.resolve()

        with zipfile.ZipFile(archive_path) as archive:
            for info in archive.infolist():
                target = (root / info.filename).resolve()
                if target != root and root not in target.parents:
                    logger.warning("Skipping entry outside the target directory: %s", info.filename)
                    continue

                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue

                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(info) as source, open(target, "wb") as target_file:
                    while chunk := source.read(self.chunk_size):
                        target_file.write(chunk)
                        if progress_callback:
                            progress_callback(len(chunk))

    def get_entries(self, archive_path: Path) -> List[zipfile.ZipInfo]:
        """
        Return the entries stored in `archive_path`, in archive order.

        Raises:
            zipfile.BadZipFile: If the archive is invalid or corrupted.
        """
        with zipfile.ZipFile(archive_path) as archive:
            return archive.infolist()

    def pack_bytes(self, data: bytes, entry_name: str) -> bytes:
        """
        Build an in-memory archive holding `data` as the single entry `entry_name`.

        The entry is stamped with the current local time.

        Returns:
            bytes: The serialized archive.
        """
        entry = zipfile.ZipInfo(entry_name, date_time=time.localtime(time.time())[:6])
        entry.compress_type = zipfile.ZIP_DEFLATED

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr(entry, data, compress_type=zipfile.ZIP_DEFLATED,
                             compresslevel=self.compression_level)
        return buffer.getvalue()

    def unpack_bytes(self, data: bytes) -> bytes:
        """
        Return the decompressed content of the first entry of an in-memory archive.

        Any entries after the first are ignored; a warning is logged so the
        loss does not go unnoticed.

        Raises:
            EmptyArchiveError: If the archive holds no entries.
            zipfile.BadZipFile: If `data` is not a valid archive.
        """
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            entries = archive.infolist()
            if not entries:
                raise EmptyArchiveError("Archive contains no entries")
            if len(entries) > 1:
                logger.warning("Archive holds %d entries, only '%s' is extracted",
                               len(entries), entries[0].filename)

            result = io.BytesIO()
            with archive.open(entries[0]) as source:
                while chunk := source.read(self.chunk_size):
                    result.write(chunk)
            return result.getvalue()
