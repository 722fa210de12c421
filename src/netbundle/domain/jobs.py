"""Fetch job lifecycle.

State machine per job::

    queued -> in_flight -> succeeded
                        -> requeued -> queued
                        -> exhausted
                        -> failed        (non-retryable error)

INVARIANT: The attempt budget is enforced per job, never per network call,
so a requeued job can not loop forever.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import StrEnum


class JobState(StrEnum):
    """Fetch job states."""

    QUEUED = "queued"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    REQUEUED = "requeued"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


_TRANSITIONS: dict[JobState, frozenset[JobState]] = {
    JobState.QUEUED: frozenset({JobState.IN_FLIGHT}),
    JobState.IN_FLIGHT: frozenset(
        {JobState.SUCCEEDED, JobState.REQUEUED, JobState.EXHAUSTED, JobState.FAILED}
    ),
    JobState.REQUEUED: frozenset({JobState.QUEUED}),
    JobState.SUCCEEDED: frozenset(),
    JobState.EXHAUSTED: frozenset(),
    JobState.FAILED: frozenset(),
}

_TERMINAL = frozenset({JobState.SUCCEEDED, JobState.EXHAUSTED, JobState.FAILED})


def default_concurrency() -> int:
    """Half the available processing units, never below one."""
    return max(1, (os.cpu_count() or 1) // 2)


@dataclass
class FetchJob:
    """One URL's sequence of fetch attempts, owned by the fetch queue."""

    url: str
    max_attempts: int
    attempts: int = 0
    redirects: int = 0
    state: JobState = JobState.QUEUED
    errors: list[str] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.state in _TERMINAL

    @property
    def attempts_left(self) -> int:
        return max(0, self.max_attempts - self.attempts)

    def start(self) -> None:
        """Mark the job dispatched to a worker and count the attempt."""
        self.transition(JobState.IN_FLIGHT)
        self.attempts += 1

    def transition(self, target: JobState) -> None:
        """Move to *target*, rejecting transitions outside the state machine."""
        if target not in _TRANSITIONS[self.state]:
            msg = f"Invalid job transition for {self.url}: {self.state} -> {target}"
            raise ValueError(msg)
        self.state = target

    def record_failure(self, error: Exception) -> bool:
        """Record a failed attempt. Returns True if the job may be retried."""
        self.errors.append(str(error))
        return self.attempts < self.max_attempts
