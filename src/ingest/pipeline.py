"""Load job orchestration.

This module discovers work units, runs one loader per unit, and
aggregates their outcomes. While a start identifier is pending, units
run one at a time in input order so exactly one record can claim the
resume point. Once it is claimed, the remaining units fan out across a
thread pool sized by ``thread_count``.
"""

from __future__ import annotations

import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import BinaryIO, Callable

from core.config import LoaderConfig
from core.errors import RecordLoaderFatalError
from core.logging_config import get_logger
from core.types import LoadOptions, LoadOutcome, LoadSummary, WorkUnit
from ingest.input_discovery import discover_work_units, open_work_unit
from ingest.loader import RECORD_FATAL_ERRORS, RecordLoader
from ingest.monitor import LoadMonitor
from store.content import ContentFactory
from store.content_factory import build_content_factory

_LOGGER = get_logger(__name__)

ContentFactoryBuilder = Callable[[LoaderConfig], ContentFactory]


class LoadJobRunner:
    """Stateful runner for one load job."""

    def __init__(
        self,
        options: LoadOptions,
        config: LoaderConfig,
        monitor: LoadMonitor | None = None,
        content_factory_builder: ContentFactoryBuilder = build_content_factory,
    ) -> None:
        self._options = options
        self._config = config
        self._monitor = monitor if monitor is not None else LoadMonitor()
        self._content_factory_builder = content_factory_builder
        self._failure_lock = threading.Lock()
        self._failed_units = 0

    @property
    def monitor(self) -> LoadMonitor:
        return self._monitor

    def run(self) -> LoadSummary:
        """Execute the load job and return aggregate counts.

        Raises:
            RecordLoaderIOError: If an input path is missing or unreadable.
        """
        if self._options.start_id is not None:
            self._config.set_start_id(self._options.start_id)
        work_units = discover_work_units(self._options.inputs, self._config)
        for unit in work_units:
            if unit.archive_member and unit.basename is not None and unit.entry_path is not None:
                self._monitor.register_entry(unit.basename, unit.entry_path)
        _LOGGER.info(
            "load_started",
            work_units=len(work_units),
            thread_count=self._config.thread_count,
            start_id=self._config.start_id,
            connection_uri=self._config.connection_uri,
        )
        pending_units = deque(work_units)
        self._run_resume_scan(pending_units)
        self._run_pool(pending_units)
        return self._build_summary(len(work_units))

    def _run_resume_scan(self, pending_units: deque[WorkUnit]) -> None:
        while pending_units and self._config.resume_point.active:
            if self._monitor.is_halted:
                return
            self._run_unit(pending_units.popleft())

    def _run_pool(self, pending_units: deque[WorkUnit]) -> None:
        if not pending_units or self._monitor.is_halted:
            return
        with ThreadPoolExecutor(
            max_workers=self._config.thread_count,
            thread_name_prefix="recordloader",
        ) as executor:
            futures = [executor.submit(self._run_unit, unit) for unit in pending_units]
            for future in futures:
                future.result()

    def _run_unit(self, unit: WorkUnit) -> LoadOutcome | None:
        if self._monitor.is_halted:
            return None
        outcome = self._execute_unit(unit)
        if outcome.kind == "record_fatal":
            self._record_failure(unit, outcome.error)
        elif outcome.kind == "job_fatal" and not self._monitor.is_halted:
            self._monitor.halt(outcome.error or RecordLoaderFatalError("unknown failure"))
        _LOGGER.debug(
            "work_unit_completed",
            path=unit.display_path,
            outcome=outcome.kind,
            committed=outcome.committed,
            skipped=outcome.skipped,
        )
        return outcome

    def _execute_unit(self, unit: WorkUnit) -> LoadOutcome:
        """Run one loader and map raised failures onto tagged outcomes."""
        try:
            content_factory = self._content_factory_builder(self._config)
        except Exception as error:
            return LoadOutcome(kind="job_fatal", error=error)
        loader = RecordLoader(self._config, self._monitor, content_factory)
        stream: BinaryIO | None = None
        try:
            stream = open_work_unit(unit) if unit.archive_member else None
            loader.bind_work_unit(unit, stream)
            stream = None
            return loader.execute()
        except RECORD_FATAL_ERRORS as error:
            return LoadOutcome(kind="record_fatal", error=error)
        except ValueError as error:
            return LoadOutcome(kind="job_fatal", error=error)
        finally:
            if stream is not None:
                stream.close()
            loader.cleanup()

    def _record_failure(self, unit: WorkUnit, error: BaseException | None) -> None:
        with self._failure_lock:
            self._failed_units += 1
        _LOGGER.warning(
            "work_unit_failed",
            path=unit.display_path,
            error_type=type(error).__name__,
            error=str(error),
        )

    def _build_summary(self, work_unit_count: int) -> LoadSummary:
        if self._config.resume_point.active and not self._monitor.is_halted:
            _LOGGER.warning("start_id_not_found", start_id=self._config.start_id)
        snapshot = self._monitor.snapshot()
        with self._failure_lock:
            failed_units = self._failed_units
        summary = LoadSummary(
            work_units=work_unit_count,
            committed=snapshot.committed,
            skipped=snapshot.skipped,
            failed_units=failed_units,
            bytes_loaded=snapshot.bytes_loaded,
            halted=snapshot.halted,
            halt_reason=snapshot.halt_reason,
            elapsed_seconds=snapshot.elapsed_seconds,
        )
        _LOGGER.info(
            "load_completed",
            work_units=summary.work_units,
            committed=summary.committed,
            skipped=summary.skipped,
            failed_units=summary.failed_units,
            bytes_loaded=summary.bytes_loaded,
            halted=summary.halted,
            elapsed_seconds=round(summary.elapsed_seconds, 3),
        )
        return summary


def run_load_job(
    options: LoadOptions,
    config: LoaderConfig,
    monitor: LoadMonitor | None = None,
) -> LoadSummary:
    """Run one load job end to end.

    Args:
        options: Inputs and optional start identifier.
        config: Runtime configuration.
        monitor: Optional shared monitor; a new one is created when omitted.

    Returns:
        Aggregate job summary.
    """
    return LoadJobRunner(options, config, monitor).run()
