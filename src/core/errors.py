"""RecordLoader exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class RecordLoaderError(Exception):
    """Base exception for all RecordLoader failures."""


class RecordLoaderConfigError(RecordLoaderError):
    """Raised for invalid runtime configuration."""


class RecordLoaderIOError(RecordLoaderError, OSError):
    """Raised for record-level I/O failures such as bad identifiers."""


class RecordLoaderStoreError(RecordLoaderError, OSError):
    """Raised for content store connection and write failures."""


class RecordLoaderFatalError(RecordLoaderError):
    """Raised for conditions that must halt the whole load job."""


class RecordLoaderDependencyError(RecordLoaderError):
    """Raised when an optional runtime dependency is missing."""
