"""Unit tests for work unit discovery."""

from __future__ import annotations

import zipfile

import pytest

from core.config import LoaderConfig
from core.errors import RecordLoaderIOError
from ingest.input_discovery import discover_work_units, open_work_unit


def test_discover_walks_directories_in_sorted_order(tmp_path) -> None:
    """Directory inputs expand to sorted relative entry paths."""
    (tmp_path / "b").mkdir()
    (tmp_path / "b" / "two.xml").write_text("<b/>", encoding="utf-8")
    (tmp_path / "a.xml").write_text("<a/>", encoding="utf-8")

    units = discover_work_units([str(tmp_path)], LoaderConfig())

    assert [unit.entry_path for unit in units] == ["a.xml", "b/two.xml"]


def test_discover_file_loader_has_no_basename(tmp_path) -> None:
    """Whole-file units do not contribute a basename to URIs."""
    input_path = tmp_path / "doc.xml"
    input_path.write_text("<doc/>", encoding="utf-8")

    units = discover_work_units([str(input_path)], LoaderConfig())

    assert units[0].basename is None and units[0].entry_path == "doc.xml"


def test_discover_record_loaders_use_file_basename(tmp_path) -> None:
    """Multi-record units carry their file name as basename."""
    input_path = tmp_path / "batch.jsonl"
    input_path.write_text("{}\n", encoding="utf-8")

    units = discover_work_units([str(input_path)], LoaderConfig(loader_type="jsonl"))

    assert units[0].basename == "batch.jsonl"


def test_discover_expands_zip_members(tmp_path) -> None:
    """Zip archives contribute one unit per file member."""
    archive_path = tmp_path / "bundle.zip"
    with zipfile.ZipFile(archive_path, "w") as archive:
        archive.writestr("dir/", "")
        archive.writestr("dir/a.xml", "<a/>")
        archive.writestr("b.xml", "<b/>")

    units = discover_work_units([str(archive_path)], LoaderConfig())

    assert (
        [unit.entry_path for unit in units] == ["dir/a.xml", "b.xml"]
        and all(unit.archive_member for unit in units)
        and units[0].display_path.endswith("bundle.zip!dir/a.xml")
    )


def test_discover_rejects_missing_input(tmp_path) -> None:
    """Missing inputs should fail before any loading starts."""
    with pytest.raises(RecordLoaderIOError):
        discover_work_units([str(tmp_path / "missing")], LoaderConfig())


def test_discover_rejects_corrupt_archive(tmp_path) -> None:
    """Unreadable archives should raise an I/O error."""
    archive_path = tmp_path / "broken.zip"
    archive_path.write_bytes(b"not a zip")

    with pytest.raises(RecordLoaderIOError):
        discover_work_units([str(archive_path)], LoaderConfig())


def test_open_work_unit_reads_member_bytes(tmp_path) -> None:
    """Opened member streams should yield the member content."""
    archive_path = tmp_path / "bundle.zip"
    with zipfile.ZipFile(archive_path, "w") as archive:
        archive.writestr("a.xml", "<a/>")
    unit = discover_work_units([str(archive_path)], LoaderConfig())[0]

    with open_work_unit(unit) as stream:
        content = stream.read()

    assert content == b"<a/>"


def test_open_work_unit_rejects_plain_files(tmp_path) -> None:
    """Plain files are opened lazily by the loader, not here."""
    input_path = tmp_path / "doc.xml"
    input_path.write_text("<doc/>", encoding="utf-8")
    unit = discover_work_units([str(input_path)], LoaderConfig())[0]

    with pytest.raises(RecordLoaderIOError):
        open_work_unit(unit)
