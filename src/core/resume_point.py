"""Job-wide resume point shared by every loader.

This module holds the single outstanding start identifier for a job.
All reads and the one-shot clear happen under one lock so that exactly
one loader observes the first match.
"""

from __future__ import annotations

import threading
from typing import Literal

ResumeObservation = Literal["inactive", "mismatch", "claimed"]


class ResumePoint:
    """Mutex-guarded optional start identifier."""

    def __init__(self, start_id: str | None = None) -> None:
        self._lock = threading.Lock()
        self._value = start_id or None

    @property
    def value(self) -> str | None:
        """Current start identifier, or None once cleared."""
        with self._lock:
            return self._value

    @property
    def active(self) -> bool:
        """Return whether loaders are still scanning for the start id."""
        return self.value is not None

    def set(self, start_id: str | None) -> None:
        """Replace the start identifier; empty values clear it."""
        with self._lock:
            self._value = start_id or None

    def observe(self, raw_id: str | None) -> ResumeObservation:
        """Compare one record identifier against the resume point.

        The first matching identifier clears the point for the whole job
        and is the only call that returns ``"claimed"``.

        Args:
            raw_id: Identifier as found in the input record.

        Returns:
            ``"inactive"`` when no resume point is pending,
            ``"mismatch"`` when the record precedes the start id,
            ``"claimed"`` for the record that matched and cleared it.
        """
        with self._lock:
            if self._value is None:
                return "inactive"
            if raw_id != self._value:
                return "mismatch"
            self._value = None
            return "claimed"

    def __repr__(self) -> str:
        return f"ResumePoint(value={self.value!r})"
