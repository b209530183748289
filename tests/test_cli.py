import zipfile

from click.testing import CliRunner

from conftest import snapshot
from quickzip.CLI import cli


def test_create_extract_list(tree, tmp_path):
    runner = CliRunner()
    archive = tmp_path / "out.zip"

    result = runner.invoke(cli, ["create", str(tree), str(archive), "--level", "6"])
    assert result.exit_code == 0, result.output
    assert zipfile.is_zipfile(archive)

    result = runner.invoke(cli, ["extract", str(archive), str(tmp_path / "dest")])
    assert result.exit_code == 0, result.output
    assert snapshot(tmp_path / "dest") == snapshot(tree)

    result = runner.invoke(cli, ["list", str(archive)])
    assert result.exit_code == 0, result.output
    assert "a.txt" in result.output


def test_create_single_file(tmp_path):
    (tmp_path / "a.txt").write_text("hello-world")
    archive = tmp_path / "out.zip"

    result = CliRunner().invoke(cli, ["create", str(tmp_path / "a.txt"), str(archive)])
    assert result.exit_code == 0, result.output
    with zipfile.ZipFile(archive) as zf:
        assert zf.read("a.txt") == b"hello-world"


def test_extract_missing_archive_exits_with_error(tmp_path):
    result = CliRunner().invoke(cli, ["extract", str(tmp_path / "missing.zip"), str(tmp_path / "dest")])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_extract_corrupt_archive_exits_with_error(tmp_path):
    archive = tmp_path / "broken.zip"
    archive.write_bytes(b"garbage")

    result = CliRunner().invoke(cli, ["list", str(archive)])
    assert result.exit_code == 1


def test_level_out_of_range_is_rejected(tree, tmp_path):
    result = CliRunner().invoke(cli, ["create", str(tree), str(tmp_path / "out.zip"), "--level", "12"])
    assert result.exit_code == 2


def test_create_level_controls_compression(tree, tmp_path):
    runner = CliRunner()
    stored = tmp_path / "stored.zip"
    packed = tmp_path / "packed.zip"

    assert runner.invoke(cli, ["create", str(tree), str(stored), "-l", "0"]).exit_code == 0
    assert runner.invoke(cli, ["create", str(tree), str(packed), "--level", "9"]).exit_code == 0

    with zipfile.ZipFile(stored) as zf:
        stored_info = zf.getinfo("sub/deeper/c.bin")
    with zipfile.ZipFile(packed) as zf:
        packed_info = zf.getinfo("sub/deeper/c.bin")
    assert stored_info.compress_size >= stored_info.file_size
    assert packed_info.compress_size < stored_info.compress_size
