import pytest

from quickzip import ArchiveDispatcher, ZipSettings


@pytest.fixture
def dispatcher():
    with ArchiveDispatcher(settings=ZipSettings(max_workers=4, max_pending=16)) as d:
        yield d


@pytest.fixture
def tree(tmp_path):
    """A small directory tree with nested and empty directories."""
    root = tmp_path / "payload"
    (root / "sub" / "deeper").mkdir(parents=True)
    (root / "empty").mkdir()
    (root / "a.txt").write_text("hello ziputils\n")
    (root / "sub" / "b.txt").write_text("subdir content")
    (root / "sub" / "deeper" / "c.bin").write_bytes(bytes(range(256)) * 64)
    return root


def snapshot(root):
    """Map of relative posix path -> bytes (None for directories)."""
    return {
        p.relative_to(root).as_posix(): (p.read_bytes() if p.is_file() else None)
        for p in sorted(root.rglob("*"))
    }
