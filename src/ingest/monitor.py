"""Shared coordination monitor for concurrent loaders.

This module tracks committed and skipped counts, byte throughput,
archive entry bookkeeping, the job-wide halt signal, and the one-shot
worker pool reset used after a resume scan.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from core.logging_config import get_logger
from core.naming import deepest_cause
from ingest.accounting import AccountingEvent

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class MonitorSnapshot:
    """Point-in-time view of aggregate job counters."""

    committed: int
    skipped: int
    bytes_loaded: int
    elapsed_seconds: float
    halted: bool
    halt_reason: str | None

    @property
    def total(self) -> int:
        return self.committed + self.skipped


class LoadMonitor:
    """Thread-safe accounting and control object shared by all loaders."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._halt_event = threading.Event()
        self._pool_reset_event = threading.Event()
        self._started_at = time.monotonic()
        self._committed = 0
        self._skipped = 0
        self._bytes_loaded = 0
        self._halt_cause: BaseException | None = None
        self._open_entries: dict[str, set[str]] = {}
        self._completed_entries = 0

    @property
    def is_halted(self) -> bool:
        return self._halt_event.is_set()

    @property
    def halt_cause(self) -> BaseException | None:
        with self._lock:
            return self._halt_cause

    @property
    def worker_pool_reset(self) -> bool:
        return self._pool_reset_event.is_set()

    @property
    def completed_entries(self) -> int:
        with self._lock:
            return self._completed_entries

    def halt(self, cause: BaseException) -> None:
        """Signal every worker to stop taking new work.

        Only the first cause is kept; later halts are logged and ignored.
        """
        root_cause = deepest_cause(cause)
        with self._lock:
            first_halt = self._halt_cause is None
            if first_halt:
                self._halt_cause = root_cause
        self._halt_event.set()
        if first_halt:
            _LOGGER.error(
                "load_halted",
                error_type=type(root_cause).__name__,
                error=str(root_cause),
            )
        else:
            _LOGGER.warning("load_halt_repeated", error=str(root_cause))

    def register_entry(self, basename: str, path: str) -> None:
        """Track an in-flight archive entry until its loader cleans up."""
        with self._lock:
            self._open_entries.setdefault(basename, set()).add(path)

    def cleanup(self, basename: str, path: str) -> None:
        """Mark one work unit finished and release its archive bookkeeping."""
        with self._lock:
            entries = self._open_entries.get(basename)
            if entries is None or path not in entries:
                return
            entries.discard(path)
            self._completed_entries += 1
            archive_done = not entries
            if archive_done:
                del self._open_entries[basename]
        if archive_done:
            _LOGGER.debug("archive_completed", basename=basename)

    def increment_skipped(self, reason: str) -> None:
        """Count one skipped record."""
        with self._lock:
            self._skipped += 1
        _LOGGER.debug("record_skipped", reason=reason)

    def add(self, uri: str | None, event: AccountingEvent) -> bool:
        """Report one record outcome.

        Skipped events only contribute bytes; their count is taken by
        ``increment_skipped``. An event is accepted at most once.

        Returns:
            True if the event was counted, False if it was already reported.
        """
        event.stop()
        with self._lock:
            if event.reported:
                return False
            event.reported = True
            if not event.skipped:
                self._committed += 1
            self._bytes_loaded += event.byte_count
        _LOGGER.debug(
            "record_reported",
            uri=uri,
            skipped=event.skipped,
            bytes=event.byte_count,
            elapsed_seconds=round(event.elapsed_seconds, 6),
        )
        return True

    def reset_worker_pool(self) -> None:
        """Widen the worker pool back to full concurrency; repeat calls are no-ops."""
        with self._lock:
            already_reset = self._pool_reset_event.is_set()
            self._pool_reset_event.set()
        if not already_reset:
            _LOGGER.info("worker_pool_reset")

    def snapshot(self) -> MonitorSnapshot:
        """Read all counters under one lock."""
        with self._lock:
            halt_reason = str(self._halt_cause) if self._halt_cause is not None else None
            return MonitorSnapshot(
                committed=self._committed,
                skipped=self._skipped,
                bytes_loaded=self._bytes_loaded,
                elapsed_seconds=time.monotonic() - self._started_at,
                halted=self._halt_event.is_set(),
                halt_reason=halt_reason,
            )
