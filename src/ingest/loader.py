"""Record loader lifecycle.

This module drives one work unit from bound input to committed or
skipped records. It derives destination URIs, applies the resume scan
and existing-document policy, reports accounting to the shared monitor,
and releases every per-record and per-file resource on all exit paths.
"""

from __future__ import annotations

import codecs
import csv
import re
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO, Callable
from urllib.parse import quote

from core.config import LoaderConfig
from core.constants import SKIP_REASON_EXISTING_URI, SKIP_REASON_ID_MISMATCH
from core.errors import RecordLoaderError, RecordLoaderFatalError, RecordLoaderIOError
from core.logging_config import get_logger
from core.naming import strip_extension
from core.types import (
    FileBound,
    InputBinding,
    LoaderState,
    LoadOutcome,
    SourceRecord,
    StreamBound,
    WorkUnit,
)
from ingest.accounting import AccountingEvent
from ingest.monitor import LoadMonitor
from ingest.record_sources import RecordSource, build_record_source
from store.content import ContentFactory, RecordContent

_LOGGER = get_logger(__name__)

RecordSourceBuilder = Callable[[BinaryIO, WorkUnit, LoaderConfig], RecordSource]

_BACKSLASH_RUNS = re.compile(r"\\+")
# RFC 3986 pchar plus "/": unreserved and sub-delims stay literal.
_URI_PATH_SAFE = "/!$&'()*+,;=:@"
# Failures confined to one work unit; anything else halts the job.
RECORD_FATAL_ERRORS = (
    OSError,
    EOFError,
    UnicodeError,
    csv.Error,
    zlib.error,
    zipfile.BadZipFile,
    RecordLoaderError,
)


class RecordLoader:
    """Loads the records of one work unit into a content store."""

    def __init__(
        self,
        config: LoaderConfig,
        monitor: LoadMonitor,
        content_factory: ContentFactory,
        source_builder: RecordSourceBuilder = build_record_source,
    ) -> None:
        self._config = config
        self._monitor = monitor
        self._content_factory = content_factory
        self._source_builder = source_builder
        self._state: LoaderState = "idle"
        self._binding: InputBinding = None
        self._input: BinaryIO | None = None
        self._encoding: str | None = None
        self._input_path: Path | None = None
        self._archive_member = False
        self._file_basename: str | None = None
        self._current_file_basename: str | None = None
        self._entry_path: str | None = None
        self._current_record_path: str | None = None
        self._current_uri: str | None = None
        self._current_record: SourceRecord | None = None
        self._content: RecordContent | None = None
        self._event: AccountingEvent | None = None
        self._committed = 0
        self._skipped = 0
        self._cleaned = False

    @property
    def state(self) -> LoaderState:
        return self._state

    @property
    def current_uri(self) -> str | None:
        return self._current_uri

    @property
    def current_record_path(self) -> str | None:
        return self._current_record_path

    def bind_input(self, stream: BinaryIO | None, encoding: str | None) -> None:
        """Bind an already-open byte stream.

        Raises:
            ValueError: If stream or encoding is missing or unknown.
            RecordLoaderFatalError: If processing has already started.
        """
        if stream is None:
            raise ValueError("Cannot bind input: stream is None.")
        self._check_rebind()
        self._encoding = _validate_encoding(encoding)
        self._binding = StreamBound(stream)
        self._input = stream
        self._state = "input_bound"

    def bind_file(self, path: Path | str | None, encoding: str | None) -> None:
        """Bind a file, deferring the open until ``execute``.

        Raises:
            ValueError: If path or encoding is missing or unknown.
            RecordLoaderIOError: If the canonical path cannot be resolved.
            RecordLoaderFatalError: If processing has already started.
        """
        if path is None:
            raise ValueError("Cannot bind input: file path is None.")
        self._check_rebind()
        self._encoding = _validate_encoding(encoding)
        try:
            canonical_path = Path(path).expanduser().resolve()
        except (OSError, RuntimeError) as error:
            raise RecordLoaderIOError(f"Cannot resolve input path {path}: {error}.") from error
        self._binding = FileBound(canonical_path)
        self._input_path = canonical_path
        self._state = "input_bound"

    def bind_work_unit(self, unit: WorkUnit, stream: BinaryIO | None = None) -> None:
        """Bind a discovered work unit with its naming context.

        Archive members need an open ``stream``; plain files open lazily.
        """
        if stream is None:
            self.bind_file(unit.path, unit.encoding)
        else:
            self.bind_input(stream, unit.encoding)
            self._input_path = unit.path
        self._archive_member = unit.archive_member
        self.set_file_basename(unit.basename)
        if unit.entry_path is not None:
            self.set_record_path(unit.entry_path)

    def set_file_basename(self, name: str | None) -> None:
        """Record the source file name used for URIs and collections."""
        self._file_basename = name
        self._current_file_basename = strip_extension(name)
        if name is None:
            return
        _LOGGER.debug("file_basename_set", basename=name)
        if self._config.use_filename_collection:
            self._content_factory.set_file_basename(name)

    def set_record_path(self, path: str | None) -> None:
        """Record the current record path, normalized per configuration.

        Raises:
            ValueError: If path is None.
        """
        if path is None:
            raise ValueError("Cannot set record path: path is None.")
        self._entry_path = path
        record_path = path
        if self._config.input_normalize_paths:
            record_path = _BACKSLASH_RUNS.sub("/", record_path)
        if self._config.use_filename_ids:
            record_path = quote(record_path, safe=_URI_PATH_SAFE)
        self._current_record_path = record_path

    def execute(self) -> LoadOutcome:
        """Load every record of the bound input.

        Job-fatal conditions halt the monitor and return a ``job_fatal``
        outcome. Record-level failures are logged and re-raised.
        Resources are always released.

        Returns:
            Tagged outcome with per-unit record counts.

        Raises:
            RecordLoaderError: For record-level failures.
            OSError: For input or store I/O failures.
        """
        try:
            self._open_input()
            self._state = "processing"
            self._event = AccountingEvent()
            source = self._source_builder(self._require_input(), self._work_unit(), self._config)
            while True:
                if self._monitor.is_halted:
                    _LOGGER.info("loader_stopped_on_halt", path=self._location())
                    break
                record = source.next_record()
                if record is None:
                    break
                self._process_record(record)
            return self._completed_outcome()
        except RecordLoaderFatalError as error:
            return self._halt(error)
        except RECORD_FATAL_ERRORS as error:
            self._state = "failed"
            _LOGGER.warning(
                "record_failed",
                error_type=type(error).__name__,
                error=str(error),
                location=self._location(),
            )
            raise
        except MemoryError as error:
            return self._halt(error)
        except Exception as error:
            return self._halt(error)
        finally:
            self.cleanup()

    def derive_uri(self, raw_id: str | None) -> str:
        """Build the destination URI for a record identifier.

        Raises:
            RecordLoaderIOError: If the identifier is missing or empty once cleaned.
        """
        if raw_id is None:
            raise RecordLoaderIOError("id may not be null")
        clean_id = raw_id.strip()
        strip_prefix = self._config.input_strip_prefix
        if strip_prefix:
            clean_id = clean_id.replace(strip_prefix, "", 1)
        if not clean_id:
            raise RecordLoaderIOError(f"id may not be empty (raw id {raw_id!r})")
        base_path = self._config.uri_prefix
        if self._current_file_basename and not self._config.use_filename_ids:
            base_path += self._current_file_basename
        if base_path:
            return f"{base_path.rstrip('/')}/{clean_id.lstrip('/')}{self._config.uri_suffix}"
        return f"{clean_id}{self._config.uri_suffix}"

    def check_resume_and_skip(self, raw_id: str | None, uri: str) -> bool:
        """Decide whether a record is skipped.

        Returns:
            True when the record precedes the start id, or already exists
            under the skip-existing policy.

        Raises:
            RecordLoaderIOError: If the document exists under the error-existing policy.
        """
        observation = self._config.resume_point.observe(raw_id)
        if observation == "mismatch":
            self._monitor.increment_skipped(f"{SKIP_REASON_ID_MISMATCH}: {raw_id}")
            return True
        if observation == "claimed":
            _LOGGER.info("start_id_found", start_id=raw_id, uri=uri)
            self._monitor.reset_worker_pool()
        return self._check_existing_uri(uri)

    def commit(self) -> None:
        """Insert the current record through its content handle."""
        uri = self._require_uri()
        _LOGGER.debug("record_inserting", uri=uri)
        self._content_handle(uri).insert()

    def record_outcome(self, byte_length: int, skipped: bool = False) -> None:
        """Report the current record's accounting event exactly once."""
        event = self._event if self._event is not None else AccountingEvent()
        if event.reported:
            return
        event.skipped = skipped
        event.increment(byte_length)
        self._monitor.add(self._current_uri, event)
        self._event = AccountingEvent()

    def cleanup_record(self) -> None:
        """Release the current record's content handle and identifiers."""
        if self._content is not None:
            self._content.close()
        self._content = None
        self._current_uri = None
        self._current_record = None

    def cleanup(self) -> None:
        """Release record, input, and connection resources once."""
        if self._cleaned:
            return
        self._cleaned = True
        try:
            self.cleanup_record()
            if self._file_basename is not None and self._entry_path is not None:
                self._monitor.cleanup(self._file_basename, self._entry_path)
        finally:
            try:
                self._close_input()
            finally:
                self._content_factory.close()
                self._state = "cleaned"

    def __enter__(self) -> "RecordLoader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()

    def _process_record(self, record: SourceRecord) -> None:
        self._current_record = record
        if record.record_path is not None:
            self.set_record_path(record.record_path)
        raw_id = record.raw_id
        if raw_id is None and record.record_path is not None:
            raw_id = self._current_record_path
        self._current_uri = self.derive_uri(raw_id)
        if self.check_resume_and_skip(raw_id, self._current_uri):
            self._state = "skipped"
            self._skipped += 1
            self.record_outcome(0, skipped=True)
        else:
            self.commit()
            self._state = "committed"
            self._committed += 1
            self.record_outcome(record.byte_length)
        self.cleanup_record()

    def _check_existing_uri(self, uri: str) -> bool:
        if not self._config.checks_existing:
            return False
        exists = self._content_handle(uri).check_document_uri(uri)
        _LOGGER.debug("existing_uri_checked", uri=uri, exists=exists)
        if not exists:
            return False
        if self._config.error_existing:
            raise RecordLoaderIOError(
                f"ERROR_EXISTING=true, cannot overwrite existing document: {uri}"
            )
        self._monitor.increment_skipped(f"{SKIP_REASON_EXISTING_URI}: {uri}")
        return True

    def _content_handle(self, uri: str) -> RecordContent:
        if self._content is None:
            if self._current_record is None:
                raise RecordLoaderFatalError(f"No current record to build content for {uri}.")
            self._content = self._content_factory.new_content(uri, self._current_record)
        return self._content

    def _open_input(self) -> None:
        if self._binding is None:
            raise RecordLoaderFatalError("Caller must bind input before execute().")
        if self._state != "input_bound":
            raise RecordLoaderFatalError(f"Cannot execute loader in state '{self._state}'.")
        if isinstance(self._binding, FileBound):
            _LOGGER.debug("input_opening", path=str(self._binding.path))
            try:
                self._input = self._binding.path.open("rb")
            except OSError as error:
                raise RecordLoaderIOError(
                    f"Failed to open input {self._binding.path}: {error}."
                ) from error

    def _close_input(self) -> None:
        if self._input is None:
            return
        try:
            self._input.close()
        except OSError as error:
            _LOGGER.warning("input_close_failed", path=self._location(), error=str(error))
        finally:
            self._input = None

    def _check_rebind(self) -> None:
        if self._state not in ("idle", "input_bound"):
            raise RecordLoaderFatalError(
                f"Cannot re-bind input in state '{self._state}'. Create a new loader."
            )

    def _require_input(self) -> BinaryIO:
        if self._input is None:
            raise RecordLoaderFatalError("Input stream is not open.")
        return self._input

    def _require_uri(self) -> str:
        if self._current_uri is None:
            raise RecordLoaderFatalError("No current URI; derive one before commit().")
        return self._current_uri

    def _work_unit(self) -> WorkUnit:
        return WorkUnit(
            path=self._input_path or Path(self._entry_path or "<stream>"),
            encoding=self._encoding or self._config.input_encoding,
            basename=self._file_basename,
            entry_path=self._entry_path,
            archive_member=self._archive_member,
        )

    def _location(self) -> str | None:
        if self._current_uri is not None:
            return self._current_uri
        if self._current_record_path is not None:
            return self._current_record_path
        return str(self._input_path) if self._input_path is not None else None

    def _completed_outcome(self) -> LoadOutcome:
        kind = "skip" if self._committed == 0 and self._skipped > 0 else "success"
        return LoadOutcome(kind=kind, committed=self._committed, skipped=self._skipped)

    def _halt(self, error: BaseException) -> LoadOutcome:
        self._state = "failed"
        self._monitor.halt(error)
        return LoadOutcome(
            kind="job_fatal",
            committed=self._committed,
            skipped=self._skipped,
            error=error,
        )


def _validate_encoding(encoding: str | None) -> str:
    if not encoding:
        raise ValueError("Cannot bind input: character encoding is missing.")
    try:
        codecs.lookup(encoding)
    except LookupError as error:
        raise ValueError(f"Cannot bind input: unknown encoding '{encoding}'.") from error
    return encoding
