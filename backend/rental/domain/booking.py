"""
Booking record entity.

Records are immutable snapshots. A status change produces a new record with
one more history entry; nothing edits dates or identity in place, so the
availability index can never drift from what a record claims to hold.
"""

import secrets
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional

from rental.domain.calendar_range import CalendarRange
from rental.domain.status import INITIAL_STATUS, BookingStatus, holds_range


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_booking_ref(prefix: str = "BK") -> str:
    return f"{prefix}-{secrets.token_hex(4).upper()}"


@dataclass(frozen=True)
class StatusChange:
    status: BookingStatus
    changed_at: datetime


@dataclass(frozen=True)
class BookingRecord:
    booking_ref: str
    customer_id: int
    vehicle_id: int
    range: CalendarRange
    status: BookingStatus
    created_at: datetime
    status_history: tuple = ()
    source: str = "direct"
    notes: Optional[str] = None
    id: Optional[int] = None

    @classmethod
    def new(
        cls,
        customer_id: int,
        vehicle_id: int,
        range_: CalendarRange,
        booking_ref: str,
        source: str = "direct",
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "BookingRecord":
        now = now or utcnow()
        return cls(
            booking_ref=booking_ref,
            customer_id=customer_id,
            vehicle_id=vehicle_id,
            range=range_,
            status=INITIAL_STATUS,
            created_at=now,
            status_history=(StatusChange(INITIAL_STATUS, now),),
            source=source,
            notes=notes,
        )

    @property
    def holds_range(self) -> bool:
        return holds_range(self.status)

    @property
    def start_date(self):
        return self.range.start

    @property
    def end_date(self):
        return self.range.end

    def with_status(self, status: BookingStatus, now: Optional[datetime] = None) -> "BookingRecord":
        now = now or utcnow()
        return replace(
            self,
            status=status,
            status_history=self.status_history + (StatusChange(status, now),),
        )

    def with_id(self, booking_id: int) -> "BookingRecord":
        return replace(self, id=booking_id)


@dataclass
class VehicleInfo:
    """Fleet-side view of a vehicle, as returned by a FleetDirectory."""

    id: int
    make: str
    model: str
    year: int
    license_plate: str
    category: str
    status: str = "available"
    maintenance_status: str = "ok"
    daily_rate: int = 0

    @property
    def rentable(self) -> bool:
        return self.status == "available" and self.maintenance_status == "ok"


@dataclass
class CustomerInfo:
    id: int
    full_name: str
    email: str
    phone: Optional[str] = None
    source: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
