"""Record discovery strategies for work units.

This module turns one open input stream into a sequence of records.
Each strategy produces the next record or None once the input is exhausted,
keeping the loader lifecycle independent of input formats.
"""

from __future__ import annotations

import csv
import io
import json
import re
from typing import BinaryIO, Iterator, Protocol

from core.config import LoaderConfig
from core.constants import DELIMITED_ROOT_ELEMENT
from core.errors import RecordLoaderIOError
from core.naming import drain_bytes, drain_text, escape_xml, join
from core.types import DocumentFormat, SourceRecord, WorkUnit

_INVALID_XML_NAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class RecordSource(Protocol):
    """Produces records from one work unit."""

    def next_record(self) -> SourceRecord | None:
        """Return the next record, or None when the input is exhausted."""
        ...


class _IteratorSource:
    """Adapts a record generator onto the ``next_record`` protocol."""

    def __init__(self, records: Iterator[SourceRecord]) -> None:
        self._records = records

    def next_record(self) -> SourceRecord | None:
        return next(self._records, None)


class WholeFileSource(_IteratorSource):
    """One record per work unit; its identifier is the record path."""

    def __init__(self, stream: BinaryIO, unit: WorkUnit, config: LoaderConfig) -> None:
        super().__init__(_whole_file_records(stream, unit, config.document_format))


class JsonlSource(_IteratorSource):
    """One record per non-blank JSON line, identified by ``id_field``."""

    def __init__(self, stream: BinaryIO, unit: WorkUnit, config: LoaderConfig) -> None:
        super().__init__(_jsonl_records(stream, unit, config))


class DelimitedSource(_IteratorSource):
    """One XML record per delimited row, identified by ``id_field`` column."""

    def __init__(self, stream: BinaryIO, unit: WorkUnit, config: LoaderConfig) -> None:
        super().__init__(_delimited_records(stream, unit, config))


def build_record_source(stream: BinaryIO, unit: WorkUnit, config: LoaderConfig) -> RecordSource:
    """Create the configured record strategy for one work unit.

    Args:
        stream: Open byte stream owned by the calling loader.
        unit: Work unit being processed.
        config: Runtime configuration naming the loader type.

    Returns:
        Record source reading from ``stream``.
    """
    if config.loader_type == "jsonl":
        return JsonlSource(stream, unit, config)
    if config.loader_type == "delimited":
        return DelimitedSource(stream, unit, config)
    return WholeFileSource(stream, unit, config)


def unit_record_path(unit: WorkUnit) -> str:
    """Path of a work unit's content, as used for whole-file identifiers."""
    if unit.entry_path is not None:
        return unit.entry_path
    return unit.path.name


def _whole_file_records(
    stream: BinaryIO,
    unit: WorkUnit,
    document_format: DocumentFormat,
) -> Iterator[SourceRecord]:
    payload: bytes | str
    if document_format == "binary":
        payload = drain_bytes(stream)
    else:
        payload = drain_text(stream, unit.encoding)
    yield SourceRecord(
        raw_id=None,
        payload=payload,
        document_format=document_format,
        record_path=unit_record_path(unit),
    )


def _jsonl_records(
    stream: BinaryIO,
    unit: WorkUnit,
    config: LoaderConfig,
) -> Iterator[SourceRecord]:
    reader = _text_reader(stream, unit, newline="\n")
    for line_number, line in enumerate(reader, 1):
        text = line.strip()
        if not text:
            continue
        payload = _parse_jsonl_line(unit, text, line_number)
        raw_id = payload.get(config.id_field)
        yield SourceRecord(
            raw_id=None if raw_id is None else str(raw_id),
            payload=text,
            document_format=config.document_format,
        )


def _parse_jsonl_line(unit: WorkUnit, line: str, line_number: int) -> dict[str, object]:
    """Parse and validate one JSONL row.

    Raises:
        RecordLoaderIOError: If line is not a JSON object.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as error:
        raise RecordLoaderIOError(
            f"Failed to parse JSONL record at {unit.display_path}:{line_number}: "
            f"{error.msg}. Fix the JSON syntax and retry the load."
        ) from error
    if not isinstance(payload, dict):
        raise RecordLoaderIOError(
            f"Invalid JSONL record at {unit.display_path}:{line_number}: "
            "expected a JSON object."
        )
    return payload


def _delimited_records(
    stream: BinaryIO,
    unit: WorkUnit,
    config: LoaderConfig,
) -> Iterator[SourceRecord]:
    reader = _text_reader(stream, unit, newline="")
    rows = csv.reader(reader, delimiter=config.delimiter)
    header = next(rows, None)
    if header is None:
        return
    element_names = [_xml_element_name(column) for column in header]
    if config.id_field not in header:
        raise RecordLoaderIOError(
            f"Delimited input {unit.display_path} has no '{config.id_field}' column. "
            f"Found columns: {join(header, ', ')}."
        )
    id_index = header.index(config.id_field)
    for row_number, row in enumerate(rows, 2):
        if not any(cell.strip() for cell in row):
            continue
        if len(row) != len(header):
            raise RecordLoaderIOError(
                f"Invalid delimited row at {unit.display_path}:{row_number}: "
                f"expected {len(header)} fields, got {len(row)}."
            )
        yield SourceRecord(
            raw_id=row[id_index],
            payload=_row_to_xml(element_names, row),
            document_format="xml",
        )


def _row_to_xml(element_names: list[str], row: list[str]) -> str:
    fields = [
        f"<{name}>{escape_xml(value)}</{name}>" for name, value in zip(element_names, row)
    ]
    return f"<{DELIMITED_ROOT_ELEMENT}>{join(fields, '')}</{DELIMITED_ROOT_ELEMENT}>"


def _xml_element_name(column: str) -> str:
    """Map a column header onto a valid XML element name."""
    name = _INVALID_XML_NAME_CHARS.sub("_", column.strip()) or "_"
    if not (name[0].isalpha() or name[0] == "_"):
        name = f"_{name}"
    return name


def _text_reader(stream: BinaryIO, unit: WorkUnit, newline: str) -> io.TextIOWrapper:
    """Decode a unit's byte stream, splitting lines only on ``newline`` rules.

    Unicode line separators such as U+2028 stay inside their line.
    """
    return io.TextIOWrapper(stream, encoding=unit.encoding, newline=newline)
