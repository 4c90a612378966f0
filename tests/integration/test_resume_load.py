"""Integration tests for resumable record loading."""

from __future__ import annotations

import json
import zipfile

from cli.main import main
from core.config import LoaderConfig
from core.types import LoadOptions
from ingest.loader_sdk import RecordLoaderClient


def test_interrupted_load_resumes_from_start_id(tmp_path) -> None:
    """A resumed run should load only the records from the start id onward."""
    input_path = tmp_path / "batch.jsonl"
    rows = [{"id": f"r{index}", "text": f"row {index}"} for index in range(6)]
    input_path.write_text("\n".join(json.dumps(row) for row in rows) + "\n", encoding="utf-8")
    config = LoaderConfig.from_sources(
        overrides={
            "connection_uri": f"file://{tmp_path / 'out'}",
            "loader_type": "jsonl",
            "uri_prefix": "/loads",
            "uri_suffix": ".json",
            "thread_count": "2",
        }
    )

    summary = RecordLoaderClient(config).load(
        LoadOptions(inputs=(str(input_path),), start_id="r3")
    )

    loaded = sorted(path.name for path in (tmp_path / "out" / "loads" / "batch").iterdir())
    assert (
        summary.committed == 3
        and summary.skipped == 3
        and loaded == ["r3.json", "r4.json", "r5.json"]
    )


def test_cli_loads_zip_archive_with_collections(tmp_path, capsys) -> None:
    """CLI load should unpack archive members and tag their collection."""
    archive_path = tmp_path / "bundle.zip"
    with zipfile.ZipFile(archive_path, "w") as archive:
        archive.writestr("docs\\a.xml", "<a/>")
        archive.writestr("docs/b c.xml", "<b/>")
    output_dir = tmp_path / "out"

    exit_code = main(
        [
            "load",
            str(archive_path),
            "--connection-uri",
            f"file://{output_dir}",
            "--filename-ids",
            "--normalize-paths",
            "--filename-collection",
        ]
    )
    output = capsys.readouterr().out

    sidecar = output_dir / "docs" / "a.xml.collections.json"
    assert (
        exit_code == 0
        and "committed=2" in output.splitlines()
        and (output_dir / "docs" / "b%20c.xml").exists()
        and json.loads(sidecar.read_text(encoding="utf-8")) == ["bundle.zip"]
    )
