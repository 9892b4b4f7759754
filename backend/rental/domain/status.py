"""
Booking lifecycle state machine.

    pending --> active --> completed
       |          |
       +----------+-----> cancelled

`pending` is the only initial state. `completed` and `cancelled` are terminal
and vacate the vehicle's held range. The engine is pure: it knows nothing about
storage or the availability index, it only answers whether an edge exists and
whether taking it releases the reservation.
"""

from dataclasses import dataclass
from enum import Enum

from rental.core.exceptions import IllegalTransitionError


class BookingStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


INITIAL_STATUS = BookingStatus.PENDING

TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})
HOLDING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.ACTIVE})

# (from, to) -> releases the held range
_TRANSITIONS = {
    (BookingStatus.PENDING, BookingStatus.ACTIVE): False,
    (BookingStatus.PENDING, BookingStatus.CANCELLED): True,
    (BookingStatus.ACTIVE, BookingStatus.COMPLETED): True,
    (BookingStatus.ACTIVE, BookingStatus.CANCELLED): True,
}


@dataclass(frozen=True)
class Transition:
    new_state: BookingStatus
    releases_range: bool


def next_state(current, requested) -> Transition:
    """
    Resolve a requested status change.

    Raises IllegalTransitionError for every edge outside the lifecycle table,
    including self-transitions and anything leaving a terminal state. Unknown
    status strings are treated as illegal edges as well.
    """
    try:
        current = BookingStatus(current)
        requested = BookingStatus(requested)
    except ValueError:
        raise IllegalTransitionError(current, requested)

    releases = _TRANSITIONS.get((current, requested))
    if releases is None:
        raise IllegalTransitionError(current, requested)
    return Transition(new_state=requested, releases_range=releases)


def allowed_transitions(status) -> list[BookingStatus]:
    status = BookingStatus(status)
    return [to for (frm, to) in _TRANSITIONS if frm is status]


def is_terminal(status) -> bool:
    return BookingStatus(status) in TERMINAL_STATUSES


def holds_range(status) -> bool:
    return BookingStatus(status) in HOLDING_STATUSES
