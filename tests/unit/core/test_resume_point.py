"""Unit tests for the shared resume point."""

from __future__ import annotations

import threading

from core.resume_point import ResumePoint


def test_resume_point_inactive_without_start_id() -> None:
    """No start id means every record is processed."""
    resume_point = ResumePoint()

    assert resume_point.observe("a") == "inactive" and not resume_point.active


def test_resume_point_empty_start_id_is_inactive() -> None:
    """Empty start ids should be treated as unset."""
    assert ResumePoint("").active is False


def test_resume_point_mismatch_then_claim_clears() -> None:
    """A match clears the point; later records are inactive."""
    resume_point = ResumePoint("P")

    observations = [resume_point.observe(raw_id) for raw_id in ("a", "P", "b")]

    assert observations == ["mismatch", "claimed", "inactive"] and resume_point.value is None


def test_resume_point_none_id_is_mismatch() -> None:
    """Records without ids cannot match the start id."""
    assert ResumePoint("P").observe(None) == "mismatch"


def test_resume_point_claimed_once_across_threads() -> None:
    """Exactly one concurrent observer should claim the start id."""
    resume_point = ResumePoint("P")
    results: list[str] = []
    results_lock = threading.Lock()
    barrier = threading.Barrier(8)

    def _observe() -> None:
        barrier.wait()
        observation = resume_point.observe("P")
        with results_lock:
            results.append(observation)

    threads = [threading.Thread(target=_observe) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count("claimed") == 1 and results.count("inactive") == 7
