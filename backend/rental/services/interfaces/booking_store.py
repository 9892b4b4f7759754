"""
Booking persistence interface.
The coordinator only talks to this contract; the concrete store decides how
records are kept.
"""

from abc import ABC, abstractmethod
from typing import Optional

from rental.domain.booking import BookingRecord
from rental.domain.calendar_range import CalendarRange


class BookingStore(ABC):
    """
    Interface for booking persistence.

    Implementations:
    - InMemoryBookingStore: process-local dict, for tests and single-node demos
    - SqlBookingStore: SQLAlchemy/PostgreSQL, with an exclusion constraint
      as a second line of defence against double-booking
    """

    @abstractmethod
    async def get(self, booking_id: int) -> Optional[BookingRecord]:
        """Load a booking by id, or None."""

    @abstractmethod
    async def get_by_ref(self, booking_ref: str) -> Optional[BookingRecord]:
        """Load a booking by its human-readable reference, or None."""

    @abstractmethod
    async def add(self, record: BookingRecord) -> BookingRecord:
        """
        Persist a new booking and return it with its id assigned.

        Raises:
            ConflictError if the store itself detects an overlapping
            reservation for the same vehicle.
        """

    @abstractmethod
    async def update(self, record: BookingRecord) -> BookingRecord:
        """Persist a status change (status plus the newest history entry)."""

    @abstractmethod
    async def list_bookings(
        self,
        vehicle_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[BookingRecord]:
        """List bookings, newest first, optionally filtered."""

    @abstractmethod
    async def list_held(self) -> list[BookingRecord]:
        """All bookings whose status still holds a range (pending, active)."""

    @abstractmethod
    async def list_overlapping(self, range_: CalendarRange) -> list[BookingRecord]:
        """Bookings of any status whose dates overlap the range."""
