"""Unit tests for record discovery strategies."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from core.config import LoaderConfig
from core.errors import RecordLoaderIOError
from core.types import SourceRecord, WorkUnit
from ingest.record_sources import build_record_source, unit_record_path


def _drain(source) -> list[SourceRecord]:
    records: list[SourceRecord] = []
    while (record := source.next_record()) is not None:
        records.append(record)
    return records


def _unit(name: str = "batch.jsonl", encoding: str = "utf-8") -> WorkUnit:
    return WorkUnit(path=Path(name), encoding=encoding, basename=name, entry_path=name)


def test_whole_file_source_yields_one_text_record() -> None:
    """Whole-file loading yields a single record keyed by path."""
    source = build_record_source(io.BytesIO(b"<doc/>"), _unit("doc.xml"), LoaderConfig())

    records = _drain(source)

    assert (
        len(records) == 1
        and records[0].payload == "<doc/>"
        and records[0].raw_id is None
        and records[0].record_path == "doc.xml"
    )


def test_whole_file_source_keeps_binary_payload() -> None:
    """Binary format should keep bytes unchanged."""
    config = LoaderConfig(document_format="binary")

    records = _drain(build_record_source(io.BytesIO(b"\x00\xff"), _unit("a.bin"), config))

    assert records[0].payload == b"\x00\xff" and records[0].byte_length == 2


def test_whole_file_source_decodes_configured_encoding() -> None:
    """Text payloads should be decoded with the unit's encoding."""
    unit = _unit("doc.txt", encoding="latin-1")

    records = _drain(build_record_source(io.BytesIO("café".encode("latin-1")), unit, LoaderConfig()))

    assert records[0].payload == "café"


def test_jsonl_source_reads_ids_and_skips_blank_lines() -> None:
    """Each non-blank JSON line becomes a record keyed by id_field."""
    payload = b'{"id": "a", "v": 1}\n\n{"id": 7}\n'
    config = LoaderConfig(loader_type="jsonl")

    records = _drain(build_record_source(io.BytesIO(payload), _unit(), config))

    assert [record.raw_id for record in records] == ["a", "7"]


def test_jsonl_source_missing_id_yields_none() -> None:
    """Missing id fields surface as records without ids."""
    config = LoaderConfig(loader_type="jsonl", id_field="key")

    records = _drain(build_record_source(io.BytesIO(b'{"id": "a"}\n'), _unit(), config))

    assert records[0].raw_id is None and records[0].record_path is None


def test_jsonl_source_rejects_invalid_json() -> None:
    """Malformed lines should raise a record-level I/O error."""
    config = LoaderConfig(loader_type="jsonl")
    source = build_record_source(io.BytesIO(b"{not json}\n"), _unit(), config)

    with pytest.raises(RecordLoaderIOError, match="batch.jsonl:1"):
        source.next_record()


def test_jsonl_source_rejects_non_object_rows() -> None:
    """JSON arrays are not records."""
    config = LoaderConfig(loader_type="jsonl")
    source = build_record_source(io.BytesIO(b"[1, 2]\n"), _unit(), config)

    with pytest.raises(RecordLoaderIOError):
        source.next_record()


def test_delimited_source_renders_escaped_xml_rows() -> None:
    """Rows become XML records with escaped values."""
    payload = b"id,title\n1,a<b & c\n"
    config = LoaderConfig(loader_type="delimited")

    records = _drain(build_record_source(io.BytesIO(payload), _unit("rows.csv"), config))

    assert records == [
        SourceRecord(
            raw_id="1",
            payload="<record><id>1</id><title>a&lt;b &amp; c</title></record>",
            document_format="xml",
        )
    ]


def test_delimited_source_supports_tab_delimiter() -> None:
    """The configured delimiter should split columns."""
    config = LoaderConfig(loader_type="delimited", delimiter="\t")

    records = _drain(build_record_source(io.BytesIO(b"id\tv\nx\t1\n"), _unit("rows.tsv"), config))

    assert records[0].raw_id == "x"


def test_delimited_source_sanitizes_header_names() -> None:
    """Column headers must map onto valid XML element names."""
    config = LoaderConfig(loader_type="delimited")

    records = _drain(build_record_source(io.BytesIO(b"id,2 col\nx,1\n"), _unit("r.csv"), config))

    assert "<_2_col>1</_2_col>" in str(records[0].payload)


def test_delimited_source_requires_id_column() -> None:
    """A header without the id column should fail the unit."""
    config = LoaderConfig(loader_type="delimited")
    source = build_record_source(io.BytesIO(b"name\nx\n"), _unit("rows.csv"), config)

    with pytest.raises(RecordLoaderIOError):
        source.next_record()


def test_delimited_source_rejects_ragged_rows() -> None:
    """Rows with the wrong field count are invalid."""
    config = LoaderConfig(loader_type="delimited")
    source = build_record_source(io.BytesIO(b"id,v\nx\n"), _unit("rows.csv"), config)

    with pytest.raises(RecordLoaderIOError):
        source.next_record()


def test_unit_record_path_falls_back_to_file_name() -> None:
    """Units without an entry path are identified by file name."""
    assert unit_record_path(WorkUnit(path=Path("/in/doc.xml"))) == "doc.xml"


def test_jsonl_source_keeps_unicode_line_separators_inside_records() -> None:
    """Only newline ends a JSONL record; U+2028 and friends are string content."""
    payload = '{"id": "1", "text": "a\u2028b\u0085c"}\n{"id": "2"}\n'.encode("utf-8")
    config = LoaderConfig(loader_type="jsonl")

    records = _drain(build_record_source(io.BytesIO(payload), _unit(), config))

    assert [record.raw_id for record in records] == ["1", "2"] and "\u2028" in str(
        records[0].payload
    )


def test_delimited_source_keeps_unicode_line_separators_in_fields() -> None:
    """Line separator characters inside a field stay in that row."""
    payload = "id,title\nx,a\u2028b\n".encode("utf-8")
    config = LoaderConfig(loader_type="delimited")

    records = _drain(build_record_source(io.BytesIO(payload), _unit("rows.csv"), config))

    assert len(records) == 1 and "<title>a\u2028b</title>" in str(records[0].payload)
