"""Python SDK for load jobs.

This module exposes a small client that owns resolved configuration
and runs load jobs against it.
"""

from __future__ import annotations

from core.config import LoaderConfig
from core.types import LoadOptions, LoadSummary
from ingest.monitor import LoadMonitor
from ingest.pipeline import run_load_job


class RecordLoaderClient:
    """Primary SDK entry point for loading records into a content store."""

    def __init__(self, config: LoaderConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration; read from env when omitted.
        """
        self._config = config or LoaderConfig.from_env()

    @property
    def config(self) -> LoaderConfig:
        return self._config

    def load(self, options: LoadOptions, monitor: LoadMonitor | None = None) -> LoadSummary:
        """Load every record found under ``options.inputs``.

        Args:
            options: Inputs and optional start identifier.
            monitor: Optional monitor for callers that observe progress.

        Returns:
            Aggregate job summary.

        Raises:
            RecordLoaderIOError: If an input path is missing or unreadable.
        """
        return run_load_job(options, self._config, monitor)
