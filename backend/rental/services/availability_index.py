"""
Per-vehicle index of held rental ranges.

INDEXING STRATEGY
=================

Problem:
  Every booking request has to answer "is this car free for these dates?".
  A flat scan over all bookings grows with the whole fleet's history.

Solution:
  Keep, per vehicle, a tuple of the ranges currently held by non-terminal
  bookings, sorted by start date. Held ranges never overlap, so their end
  dates are sorted too, and an overlap check is a bisect followed by a short
  walk back over the ranges that start before the request ends.

Consistency:
  - Each vehicle has its own lock; reserve() and release() take it so the
    check-then-add is indivisible. Different vehicles never contend.
  - Mutations build a new tuple and swap it in with a single assignment.
    Readers (is_available, held_ranges) take no lock and always see either
    the old or the new snapshot, never a half-applied one.

The index is not persistent. On start-up the coordinator hydrates it from the
booking store with load(), and it reloads a single vehicle with
replace_vehicle() when the store may have moved on without it.
"""

import threading
from bisect import bisect_left, insort
from typing import Iterable

from rental.core.exceptions import ConflictError
from rental.core.logging import get_logger
from rental.domain.calendar_range import CalendarRange

logger = get_logger(__name__)


class AvailabilityIndex:
    def __init__(self):
        self._held: dict = {}
        self._locks: dict = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, vehicle_id) -> threading.Lock:
        lock = self._locks.get(vehicle_id)
        if lock is None:
            with self._locks_guard:
                lock = self._locks.setdefault(vehicle_id, threading.Lock())
        return lock

    def held_ranges(self, vehicle_id) -> tuple:
        return self._held.get(vehicle_id, ())

    def conflicts(self, vehicle_id, range_: CalendarRange) -> list[CalendarRange]:
        """Held ranges for the vehicle that overlap the given range."""
        held = self.held_ranges(vehicle_id)
        if not held:
            return []

        # Only ranges starting before range_.end can overlap. Walk back from
        # there while their ends are still past range_.start.
        hi = bisect_left(held, range_.end, key=lambda r: r.start)
        found = []
        i = hi - 1
        while i >= 0 and held[i].end > range_.start:
            found.append(held[i])
            i -= 1
        found.reverse()
        return found

    def is_available(self, vehicle_id, range_: CalendarRange) -> bool:
        return not self.conflicts(vehicle_id, range_)

    def reserve(self, vehicle_id, range_: CalendarRange) -> None:
        with self._lock_for(vehicle_id):
            clashing = self.conflicts(vehicle_id, range_)
            if clashing:
                logger.info(
                    "reservation_conflict",
                    vehicle_id=vehicle_id,
                    requested=str(range_),
                    conflicts=[str(c) for c in clashing],
                )
                raise ConflictError(vehicle_id, range_, clashing)

            held = list(self.held_ranges(vehicle_id))
            insort(held, range_)
            self._held[vehicle_id] = tuple(held)

        logger.debug("range_reserved", vehicle_id=vehicle_id, range=str(range_))

    def release(self, vehicle_id, range_: CalendarRange) -> None:
        """Drop an exact held range. Releasing an absent range is a no-op."""
        with self._lock_for(vehicle_id):
            held = self.held_ranges(vehicle_id)
            pos = bisect_left(held, range_)
            if pos >= len(held) or held[pos] != range_:
                logger.debug("release_noop", vehicle_id=vehicle_id, range=str(range_))
                return

            remaining = held[:pos] + held[pos + 1:]
            if remaining:
                self._held[vehicle_id] = remaining
            else:
                self._held.pop(vehicle_id, None)

        logger.debug("range_released", vehicle_id=vehicle_id, range=str(range_))

    def load(self, entries: Iterable) -> int:
        """
        Bulk-hydrate from (vehicle_id, range) pairs.

        Pairs are reserved one by one, so overlapping input raises
        ConflictError instead of corrupting the index.
        """
        count = 0
        for vehicle_id, range_ in entries:
            self.reserve(vehicle_id, range_)
            count += 1
        return count

    def replace_vehicle(self, vehicle_id, ranges: Iterable[CalendarRange]) -> None:
        """
        Swap in a vehicle's held ranges wholesale, e.g. after re-reading them
        from the booking store. Overlapping input raises ConflictError and
        leaves the current ranges in place.
        """
        held = sorted(ranges)
        for earlier, later in zip(held, held[1:]):
            if earlier.overlaps(later):
                raise ConflictError(vehicle_id, later, [earlier])

        with self._lock_for(vehicle_id):
            if held:
                self._held[vehicle_id] = tuple(held)
            else:
                self._held.pop(vehicle_id, None)

    def clear(self) -> None:
        with self._locks_guard:
            self._held = {}

    def __len__(self) -> int:
        return sum(len(ranges) for ranges in self._held.values())

