"""Workflow state machine for tickets.

The transition table is independent of storage and parsing so that it can be
reasoned about and tested without a filesystem.
"""

from __future__ import annotations

from clinban.ticket import Status

TRANSITIONS: dict[Status, tuple[Status, ...]] = {
    Status.BACKLOG: (Status.IN_PROGRESS, Status.BLOCKED),
    Status.IN_PROGRESS: (Status.BLOCKED, Status.DONE),
    Status.BLOCKED: (Status.IN_PROGRESS,),
    Status.DONE: (Status.BACKLOG,),
}

_PUSH_ORDER: dict[Status, Status] = {
    Status.BACKLOG: Status.IN_PROGRESS,
    Status.IN_PROGRESS: Status.DONE,
    Status.BLOCKED: Status.IN_PROGRESS,
}


class TransitionError(ValueError):
    """Raised when a status transition is not allowed."""

    def __init__(self, from_status: str, to_status: str, allowed: tuple[Status, ...]) -> None:
        self.from_status = from_status
        self.to_status = to_status
        self.allowed = allowed
        valid = ", ".join(str(s) for s in allowed)
        super().__init__(
            f'cannot transition from "{from_status}" to "{to_status}"; '
            f"valid transitions: {valid}"
        )


def validate_transition(from_status: str, to_status: str) -> None:
    """Raise TransitionError unless moving from_status to to_status is allowed.

    Self-transitions are never allowed here.
    """
    allowed = TRANSITIONS.get(from_status, ())
    if to_status not in allowed:
        raise TransitionError(str(from_status), str(to_status), allowed)


def next_status(from_status: str) -> Status | None:
    """Return the next forward status, or None when from_status is terminal or unknown."""
    return _PUSH_ORDER.get(from_status)