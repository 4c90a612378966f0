"""Shared typed models.

This module defines immutable data models used by ingest, store,
SDK, and CLI layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Literal

from core.constants import DEFAULT_INPUT_ENCODING

DocumentFormat = Literal["xml", "binary", "text"]
LoaderType = Literal["file", "jsonl", "delimited"]
OutcomeKind = Literal["success", "skip", "record_fatal", "job_fatal"]
LoaderState = Literal["idle", "input_bound", "processing", "committed", "skipped", "failed", "cleaned"]


@dataclass(frozen=True)
class WorkUnit:
    """One input source consumed by exactly one loader.

    Attributes:
        path: Canonical path of the file or archive on disk.
        encoding: Character encoding used to decode record payloads.
        basename: File name used for identifier derivation.
        entry_path: Path of the content inside its input, such as an archive
            member name or a path relative to an input directory.
        archive_member: Whether ``entry_path`` names a member of the archive at ``path``.
    """

    path: Path
    encoding: str = DEFAULT_INPUT_ENCODING
    basename: str | None = None
    entry_path: str | None = None
    archive_member: bool = False

    @property
    def display_path(self) -> str:
        """Human-readable location, including the archive member."""
        if not self.archive_member:
            return str(self.path)
        return f"{self.path}!{self.entry_path}"


@dataclass(frozen=True)
class SourceRecord:
    """One logical document discovered inside a work unit.

    Attributes:
        raw_id: Identifier exactly as found in the input.
        payload: Document body as bytes or text.
        document_format: Declared document format.
        record_path: Path of the record inside its source, when known.
    """

    raw_id: str | None
    payload: bytes | str
    document_format: DocumentFormat
    record_path: str | None = None

    @property
    def byte_length(self) -> int:
        """Payload size in bytes for accounting."""
        if isinstance(self.payload, bytes):
            return len(self.payload)
        return len(self.payload.encode("utf-8"))


@dataclass(frozen=True)
class FileBound:
    """Input bound to a file that is opened lazily."""

    path: Path


@dataclass(frozen=True)
class StreamBound:
    """Input bound to an already-open byte stream."""

    stream: BinaryIO


InputBinding = FileBound | StreamBound | None


@dataclass(frozen=True)
class LoadOutcome:
    """Tagged result for one loader execution.

    Attributes:
        kind: Outcome variant.
        committed: Records inserted into the store.
        skipped: Records skipped by resume or existing-document policy.
        error: Failure cause for fatal variants.
    """

    kind: OutcomeKind
    committed: int = 0
    skipped: int = 0
    error: BaseException | None = None


@dataclass(frozen=True)
class LoadOptions:
    """Load command options.

    Attributes:
        inputs: Input files, directories, or zip archives.
        start_id: Optional identifier to resume from.
    """

    inputs: tuple[str, ...]
    start_id: str | None = None


@dataclass(frozen=True)
class LoadSummary:
    """Aggregate result of one load job.

    Attributes:
        work_units: Number of work units discovered.
        committed: Records inserted.
        skipped: Records skipped.
        failed_units: Work units that ended with a record-fatal error.
        bytes_loaded: Total payload bytes accounted.
        halted: Whether the job was halted by a fatal condition.
        halt_reason: Root cause message for a halted job.
        elapsed_seconds: Wall-clock job duration.
    """

    work_units: int
    committed: int
    skipped: int
    failed_units: int
    bytes_loaded: int
    halted: bool
    halt_reason: str | None = None
    elapsed_seconds: float = 0.0
