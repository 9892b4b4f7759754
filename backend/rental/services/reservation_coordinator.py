"""
Reservation coordinator: the only entry point for booking writes.

CONCURRENCY STRATEGY: Per-vehicle serialization
===============================================

Problem:
  Two agents book the same car for overlapping dates at the same moment.
  Both check availability, both see the car free, both insert a booking.
  Result: Double-booking.

Solution:
  Every write that touches a vehicle (create_booking, change_status) runs
  inside that vehicle's lock. Inside the lock the sequence

      reserve range in index -> build record -> persist record

  cannot interleave with another write for the same car, and the index's
  own reserve() re-checks availability atomically. Writes for different
  vehicles take different locks and run fully in parallel.

All-or-nothing:
  - create_booking: if persisting fails after the range was reserved, the
    range is released again before the error propagates.
  - change_status: if persisting fails after the range was released, the
    range is reserved again. Nothing else can have taken it in between,
    because the vehicle lock is still held.
  - Records are immutable; a failed call leaves the stored record as it was.

Cancellation:
  A request can be cancelled while its store write is in flight (client
  disconnect, shutdown, timeout). The write runs as its own task and is
  awaited to the end before the CancelledError is delivered, so the index
  is undone exactly when the write did not happen. If the write itself is
  cancelled, it is treated as failed and undone.

Several processes:
  Each process has its own index, loaded at warm_up(). Another process can
  release a range this index still holds, so an index conflict is re-checked
  against the store's held bookings for that vehicle before it is reported.
  Ranges another process has taken but this index lacks are caught by the
  database exclusion constraint on insert.

Errors (InvalidRangeError, ConflictError, IllegalTransitionError,
NotFoundError) are never retried here. None of them is transient.

check_availability() is advisory only. Availability can change between a
probe and a submit; only the check inside create_booking is authoritative.
"""

import asyncio
import time
from datetime import date, datetime
from typing import Callable, Optional

from rental.core.exceptions import ConflictError, IllegalTransitionError, InvalidRangeError, NotFoundError
from rental.core.logging import get_logger
from rental.core.metrics import booking_latency, held_ranges, record_booking_attempt, record_transition
from rental.domain.booking import BookingRecord, VehicleInfo, generate_booking_ref, utcnow
from rental.domain.calendar_range import CalendarRange
from rental.domain.status import BookingStatus, next_state
from rental.services.availability_index import AvailabilityIndex
from rental.services.interfaces.booking_store import BookingStore
from rental.services.interfaces.fleet_directory import FleetDirectory
from rental.services.vehicle_locks import VehicleLocks

logger = get_logger(__name__)


def as_range(range_or_start, end: Optional[date] = None) -> CalendarRange:
    """Accept a CalendarRange, a (start, end) pair of dates, or ISO strings."""
    if isinstance(range_or_start, CalendarRange):
        return range_or_start
    if isinstance(range_or_start, str) or isinstance(end, str):
        return CalendarRange.from_iso(range_or_start, end)
    return CalendarRange(range_or_start, end)


async def settle(coro):
    """
    Await a store write to completion even if the caller is cancelled.

    The write gets its own task. Cancelling the caller does not interrupt it;
    the caller waits for the outcome and is cancelled again once the write
    has succeeded or failed. Raises CancelledError directly only when the
    write itself was cancelled.
    """
    task = asyncio.ensure_future(coro)
    interrupted = False
    try:
        while True:
            try:
                return await asyncio.shield(task)
            except asyncio.CancelledError:
                if task.cancelled():
                    raise
                interrupted = True
    finally:
        if interrupted:
            asyncio.current_task().cancel()


class ReservationCoordinator:
    def __init__(
        self,
        store: BookingStore,
        directory: FleetDirectory,
        index: Optional[AvailabilityIndex] = None,
        locks: Optional[VehicleLocks] = None,
        clock: Callable[[], datetime] = utcnow,
        ref_prefix: str = "BK",
    ):
        self.store = store
        self.directory = directory
        self.index = index or AvailabilityIndex()
        self.locks = locks or VehicleLocks()
        self._clock = clock
        self._ref_prefix = ref_prefix

    async def warm_up(self) -> int:
        """Rebuild the availability index from persisted non-terminal bookings."""
        self.index.clear()
        held = await self.store.list_held()
        count = self.index.load((b.vehicle_id, b.range) for b in held)
        held_ranges.set(len(self.index))
        logger.info("availability_index_loaded", held_ranges=count)
        return count

    # Writes

    async def create_booking(
        self,
        customer_id: int,
        vehicle_id: int,
        range_or_start,
        end: Optional[date] = None,
        *,
        source: str = "direct",
        notes: Optional[str] = None,
    ) -> BookingRecord:
        started = time.perf_counter()
        try:
            range_ = as_range(range_or_start, end)
        except InvalidRangeError:
            record_booking_attempt("invalid")
            raise

        try:
            await self._require_customer(customer_id)
            await self._require_vehicle(vehicle_id)
        except NotFoundError:
            record_booking_attempt("not_found")
            raise

        async with self.locks.hold(vehicle_id):
            try:
                self.index.reserve(vehicle_id, range_)
            except ConflictError:
                # The clash may be a range another process has since released
                await self._reload_vehicle(vehicle_id)
                try:
                    self.index.reserve(vehicle_id, range_)
                except ConflictError:
                    record_booking_attempt("conflict")
                    logger.warning(
                        "booking_conflict",
                        customer_id=customer_id,
                        vehicle_id=vehicle_id,
                        range=str(range_),
                    )
                    raise

            try:
                record = BookingRecord.new(
                    customer_id=customer_id,
                    vehicle_id=vehicle_id,
                    range_=range_,
                    booking_ref=generate_booking_ref(self._ref_prefix),
                    source=source,
                    notes=notes,
                    now=self._clock(),
                )
                record = await settle(self.store.add(record))
            except BaseException as e:
                self.index.release(vehicle_id, range_)
                record_booking_attempt("conflict" if isinstance(e, ConflictError) else "error")
                logger.error(
                    "booking_persist_failed",
                    vehicle_id=vehicle_id,
                    range=str(range_),
                    error=str(e),
                )
                raise

        held_ranges.set(len(self.index))
        booking_latency.observe(time.perf_counter() - started)
        record_booking_attempt("success")
        logger.info(
            "booking_created",
            booking_id=record.id,
            booking_ref=record.booking_ref,
            customer_id=customer_id,
            vehicle_id=vehicle_id,
            start_date=range_.start.isoformat(),
            end_date=range_.end.isoformat(),
            source=source,
        )
        return record

    async def change_status(self, booking_id: int, requested_status) -> BookingRecord:
        booking = await self.store.get(booking_id)
        if booking is None:
            raise NotFoundError("booking", booking_id)

        async with self.locks.hold(booking.vehicle_id):
            # Re-read under the lock: another writer may have moved it on
            booking = await self.store.get(booking_id)
            if booking is None:
                raise NotFoundError("booking", booking_id)

            try:
                transition = next_state(booking.status, requested_status)
            except IllegalTransitionError:
                record_transition(booking.status.value, str(requested_status), applied=False)
                logger.warning(
                    "illegal_status_transition",
                    booking_id=booking_id,
                    current=booking.status.value,
                    requested=str(requested_status),
                )
                raise

            if transition.releases_range:
                self.index.release(booking.vehicle_id, booking.range)

            updated = booking.with_status(transition.new_state, now=self._clock())
            try:
                updated = await settle(self.store.update(updated))
            except BaseException as e:
                if transition.releases_range:
                    self.index.reserve(booking.vehicle_id, booking.range)
                logger.error("status_persist_failed", booking_id=booking_id, error=str(e))
                raise

        held_ranges.set(len(self.index))
        record_transition(booking.status.value, transition.new_state.value, applied=True)
        logger.info(
            "booking_status_changed",
            booking_id=booking_id,
            vehicle_id=booking.vehicle_id,
            from_status=booking.status.value,
            to_status=transition.new_state.value,
            released=transition.releases_range,
        )
        return updated

    # Reads

    def check_availability(self, vehicle_id: int, range_or_start, end: Optional[date] = None) -> bool:
        return self.index.is_available(vehicle_id, as_range(range_or_start, end))

    async def get_booking(self, booking_id: int) -> BookingRecord:
        booking = await self.store.get(booking_id)
        if booking is None:
            raise NotFoundError("booking", booking_id)
        return booking

    async def get_booking_by_ref(self, booking_ref: str) -> BookingRecord:
        booking = await self.store.get_by_ref(booking_ref)
        if booking is None:
            raise NotFoundError("booking", booking_ref)
        return booking

    async def list_bookings(
        self,
        vehicle_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        status: Optional[BookingStatus] = None,
    ) -> list[BookingRecord]:
        return await self.store.list_bookings(
            vehicle_id=vehicle_id, customer_id=customer_id, status=status
        )

    async def bookings_in_range(self, range_: CalendarRange) -> list[BookingRecord]:
        """Calendar view: every booking, terminal or not, touching the window."""
        return await self.store.list_overlapping(range_)

    async def available_vehicles(self, range_: CalendarRange) -> list[VehicleInfo]:
        vehicles = await self.directory.list_vehicles()
        return [
            v for v in vehicles
            if v.rentable and self.index.is_available(v.id, range_)
        ]

    async def _reload_vehicle(self, vehicle_id: int) -> None:
        """Replace a vehicle's held ranges with what the store currently holds."""
        bookings = await self.store.list_bookings(vehicle_id=vehicle_id)
        held = [b.range for b in bookings if b.holds_range]
        stale = set(self.index.held_ranges(vehicle_id)) - set(held)
        self.index.replace_vehicle(vehicle_id, held)
        if stale:
            held_ranges.set(len(self.index))
            logger.info(
                "availability_index_reloaded",
                vehicle_id=vehicle_id,
                dropped=[str(r) for r in sorted(stale)],
            )

    async def _require_customer(self, customer_id: int) -> None:
        if not await self.directory.customer_exists(customer_id):
            raise NotFoundError("customer", customer_id)

    async def _require_vehicle(self, vehicle_id: int) -> None:
        if not await self.directory.vehicle_exists(vehicle_id):
            raise NotFoundError("vehicle", vehicle_id)
