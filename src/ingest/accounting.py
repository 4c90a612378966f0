"""Per-record accounting events.

This module times one record outcome and counts its bytes.
Each event is reported to the monitor exactly once.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class AccountingEvent:
    """Timer plus byte counter for one record outcome."""

    started_at: float = field(default_factory=time.monotonic)
    byte_count: int = 0
    skipped: bool = False
    finished_at: float | None = None
    reported: bool = False

    def increment(self, byte_count: int) -> None:
        """Add bytes to the event counter."""
        self.byte_count += max(0, byte_count)

    def stop(self) -> None:
        """Freeze the event timer; later calls keep the first stop time."""
        if self.finished_at is None:
            self.finished_at = time.monotonic()

    @property
    def elapsed_seconds(self) -> float:
        end_at = self.finished_at if self.finished_at is not None else time.monotonic()
        return max(0.0, end_at - self.started_at)
