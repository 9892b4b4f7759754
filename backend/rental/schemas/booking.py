"""
Pydantic schemas for booking-related request/response validation.
Dates cross the boundary as ISO 8601 calendar dates (YYYY-MM-DD).
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from rental.domain.booking import BookingRecord
from rental.domain.status import BookingStatus


class BookingCreate(BaseModel):
    customer_id: int = Field(..., gt=0)
    vehicle_id: int = Field(..., gt=0)
    start_date: date
    end_date: date
    notes: Optional[str] = Field(None, max_length=2000)


class StatusUpdate(BaseModel):
    status: BookingStatus


class StatusChangeResponse(BaseModel):
    status: BookingStatus
    changed_at: datetime


class BookingResponse(BaseModel):
    id: int
    booking_ref: str
    customer_id: int
    vehicle_id: int
    start_date: date
    end_date: date
    rental_days: int
    status: BookingStatus
    source: str
    notes: Optional[str]
    created_at: datetime
    status_history: list[StatusChangeResponse]

    @classmethod
    def from_record(cls, record: BookingRecord) -> "BookingResponse":
        return cls(
            id=record.id,
            booking_ref=record.booking_ref,
            customer_id=record.customer_id,
            vehicle_id=record.vehicle_id,
            start_date=record.range.start,
            end_date=record.range.end,
            rental_days=record.range.days,
            status=record.status,
            source=record.source,
            notes=record.notes,
            created_at=record.created_at,
            status_history=[
                StatusChangeResponse(status=c.status, changed_at=c.changed_at)
                for c in record.status_history
            ],
        )


class AvailabilityResponse(BaseModel):
    vehicle_id: int
    start_date: date
    end_date: date
    available: bool
    cached: bool = False
