"""Public SDK surface for RecordLoader.

This module provides a stable import path for library users.
It re-exports the client, job runner, and typed option models.
"""

from __future__ import annotations

from core.config import LoaderConfig
from core.errors import (
    RecordLoaderConfigError,
    RecordLoaderError,
    RecordLoaderFatalError,
    RecordLoaderIOError,
    RecordLoaderStoreError,
)
from core.types import LoadOptions, LoadOutcome, LoadSummary, SourceRecord, WorkUnit
from ingest.loader import RecordLoader
from ingest.loader_sdk import RecordLoaderClient
from ingest.monitor import LoadMonitor
from ingest.pipeline import run_load_job
from store.content_factory import build_content_factory

__all__ = [
    "LoadMonitor",
    "LoadOptions",
    "LoadOutcome",
    "LoadSummary",
    "LoaderConfig",
    "RecordLoader",
    "RecordLoaderClient",
    "RecordLoaderConfigError",
    "RecordLoaderError",
    "RecordLoaderFatalError",
    "RecordLoaderIOError",
    "RecordLoaderStoreError",
    "SourceRecord",
    "WorkUnit",
    "build_content_factory",
    "run_load_job",
]
