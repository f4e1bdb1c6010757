"""Generation job lifecycle rules.

Statuses are ranked PENDING < PROCESSING < terminal. A transition is legal only
when it strictly increases the rank, which also forbids any write once a job
has reached COMPLETED, FAILED or CANCELED.
"""

from burstlet.domain.enums import JobStatus
from burstlet.errors import InvalidTransitionError

TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELED})
ACTIVE_STATUSES = frozenset({JobStatus.PENDING, JobStatus.PROCESSING})

_RANK: dict[JobStatus, int] = {
    JobStatus.PENDING: 0,
    JobStatus.PROCESSING: 1,
    JobStatus.COMPLETED: 2,
    JobStatus.FAILED: 2,
    JobStatus.CANCELED: 2,
}


def status_rank(status: JobStatus | str) -> int:
    """Position of a status in the lifecycle order."""
    return _RANK[JobStatus(status)]


def is_terminal(status: JobStatus | str) -> bool:
    """True once no further transition can occur."""
    return JobStatus(status) in TERMINAL_STATUSES


def can_transition(current: JobStatus | str, new: JobStatus | str) -> bool:
    """Whether a job in ``current`` may move to ``new``."""
    if is_terminal(current):
        return False
    return status_rank(new) > status_rank(current)


def ensure_transition(current: JobStatus | str, new: JobStatus | str) -> None:
    """Raise InvalidTransitionError unless ``current`` -> ``new`` is legal."""
    if not can_transition(current, new):
        raise InvalidTransitionError(
            f"Cannot move job from {JobStatus(current)} to {JobStatus(new)}",
            details={"current": str(current), "requested": str(new)},
        )
