from pathlib import Path

import pytest

from engine.errors import MalformedDocument
from models.document import OperationResult, OutputFile
from utils.storage import SaveStatus, ensure_directory, output_directory, save_result, write_output


def _multi_file_result() -> OperationResult:
    outputs = [OutputFile(f"page_00{n}.pdf", f"page {n}".encode()) for n in (1, 2)]
    return OperationResult.success("split", outputs, directory="split_pages")


def test_ensure_directory_is_idempotent(tmp_path):
    target = tmp_path / "a" / "b"
    assert ensure_directory(target) == target
    assert ensure_directory(target) == target
    assert target.is_dir()


def test_ensure_directory_rejects_existing_file(tmp_path):
    existing = tmp_path / "file"
    existing.write_bytes(b"x")
    with pytest.raises(FileExistsError):
        ensure_directory(existing)


def test_write_output_overwrites(tmp_path):
    target = tmp_path / "out.pdf"
    write_output(target, b"first")
    write_output(target, b"second")
    assert target.read_bytes() == b"second"


@pytest.mark.parametrize("destination, expected", [
    ("out/split_pages", "out/split_pages"),
    ("out/split_pages.pdf", "out/split_pages"),
    ("out/archive.tar.gz", "out/archive.tar"),
])
def test_output_directory_strips_extension(destination, expected):
    assert output_directory(destination) == Path(expected)


def test_save_single_file_result(tmp_path):
    result = OperationResult.success("merge", [OutputFile("merged.pdf", b"%PDF")])
    outcome = save_result(result, tmp_path / "combined.pdf")

    assert outcome.status is SaveStatus.SAVED
    assert outcome.paths == [tmp_path / "combined.pdf"]
    assert (tmp_path / "combined.pdf").read_bytes() == b"%PDF"


def test_save_multi_file_result_into_folder(tmp_path):
    outcome = save_result(_multi_file_result(), tmp_path / "pages.pdf")

    folder = tmp_path / "pages"
    assert outcome.paths == [folder / "page_001.pdf", folder / "page_002.pdf"]
    assert (folder / "page_002.pdf").read_bytes() == b"page 2"


def test_save_into_existing_folder_overwrites_same_names(tmp_path):
    folder = tmp_path / "split_pages"
    folder.mkdir()
    (folder / "page_001.pdf").write_bytes(b"stale")
    (folder / "leftover.txt").write_bytes(b"keep")

    save_result(_multi_file_result(), folder)

    assert (folder / "page_001.pdf").read_bytes() == b"page 1"
    assert (folder / "leftover.txt").read_bytes() == b"keep"


def test_save_without_destination_is_cancelled(tmp_path):
    outcome = save_result(_multi_file_result(), None)
    assert outcome.cancelled
    assert outcome.paths == []
    assert list(tmp_path.iterdir()) == []


def test_failed_result_cannot_be_saved(tmp_path):
    failed = OperationResult.failure("merge", MalformedDocument("bad"))
    with pytest.raises(ValueError):
        save_result(failed, tmp_path / "merged.pdf")
