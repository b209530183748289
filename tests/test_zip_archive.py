import io
import logging
import time
import zipfile

import pytest

from quickzip import EmptyArchiveError, ZipArchiveEngine


def test_directory_entries_are_relative_to_source(tree, tmp_path):
    archive = tmp_path / "out.zip"
    ZipArchiveEngine().create_from_directory(tree, archive)

    with zipfile.ZipFile(archive) as zf:
        names = zf.namelist()
    assert sorted(names) == ["a.txt", "empty/", "sub/b.txt", "sub/deeper/c.bin"]


def test_non_recursive_archives_top_level_only(tree, tmp_path):
    archive = tmp_path / "out.zip"
    ZipArchiveEngine().create_from_directory(tree, archive, recurse=False)

    with zipfile.ZipFile(archive) as zf:
        assert zf.namelist() == ["a.txt"]


def test_entries_use_deflate(tree, tmp_path):
    archive = tmp_path / "out.zip"
    ZipArchiveEngine(compression_level=9).create_from_directory(tree, archive)

    with zipfile.ZipFile(archive) as zf:
        info = zf.getinfo("sub/deeper/c.bin")
    assert info.compress_type == zipfile.ZIP_DEFLATED
    assert info.compress_size < info.file_size


def test_create_reports_progress(tree, tmp_path):
    seen = []
    ZipArchiveEngine().create_from_directory(tree, tmp_path / "out.zip", progress_callback=seen.append)
    assert sum(seen) == 15 + 14 + 256 * 64


def test_extract_reports_progress_in_chunks(tree, tmp_path):
    archive = tmp_path / "out.zip"
    engine = ZipArchiveEngine(chunk_size=1024)
    engine.create_from_directory(tree, archive)

    seen = []
    engine.extract(archive, tmp_path / "dest", progress_callback=seen.append)
    assert sum(seen) == 15 + 14 + 256 * 64
    assert max(seen) <= 1024


def test_extract_skips_entries_escaping_target(tmp_path):
    archive = tmp_path / "evil.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("../outside.txt", "nope")
        zf.writestr("inside.txt", "ok")

    ZipArchiveEngine().extract(archive, tmp_path / "dest")

    assert (tmp_path / "dest" / "inside.txt").read_text() == "ok"
    assert not (tmp_path / "outside.txt").exists()


def test_pack_bytes_single_entry_with_current_timestamp():
    packed = ZipArchiveEngine().pack_bytes(b"payload", "entry.bin")

    with zipfile.ZipFile(io.BytesIO(packed)) as zf:
        (info,) = zf.infolist()
    assert info.filename == "entry.bin"
    assert info.compress_type == zipfile.ZIP_DEFLATED
    assert info.date_time[0] == time.localtime().tm_year


def test_unpack_bytes_of_empty_archive_raises():
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w"):
        pass

    with pytest.raises(EmptyArchiveError):
        ZipArchiveEngine().unpack_bytes(buffer.getvalue())


def test_unpack_bytes_returns_first_entry_and_warns(caplog):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr("first", b"one")
        zf.writestr("second", b"two")

    with caplog.at_level(logging.WARNING, logger="quickzip.ZipArchive"):
        assert ZipArchiveEngine().unpack_bytes(buffer.getvalue()) == b"one"
    assert "only 'first' is extracted" in caplog.text


def test_get_entries_in_archive_order(tmp_path):
    archive = tmp_path / "out.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("z.txt", "z")
        zf.writestr("a.txt", "a")

    assert [e.filename for e in ZipArchiveEngine().get_entries(archive)] == ["z.txt", "a.txt"]


def test_failed_create_removes_partial_archive(tree, tmp_path):
    archive = tmp_path / "out.zip"

    def interrupted(size):
        raise OSError("read error")

    with pytest.raises(OSError, match="read error"):
        ZipArchiveEngine().create_from_directory(tree, archive, progress_callback=interrupted)
    assert not archive.exists()
