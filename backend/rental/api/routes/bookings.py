"""
Booking endpoints: create, status changes, lookups and the calendar view.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from rental.core.logging import get_logger
from rental.domain.calendar_range import CalendarRange
from rental.domain.status import BookingStatus
from rental.schemas.booking import BookingCreate, BookingResponse, StatusUpdate
from rental.services.cache_service import invalidate_vehicle_availability
from rental.services.coordinator_factory import get_coordinator
from rental.services.reservation_coordinator import ReservationCoordinator

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    """
    Book a vehicle for [start_date, end_date).

    The availability check inside this call is authoritative: if another
    booking for the same vehicle got there first, the response is 409 with
    the conflicting ranges.
    """
    booking = await coordinator.create_booking(
        booking_data.customer_id,
        booking_data.vehicle_id,
        booking_data.start_date,
        booking_data.end_date,
        notes=booking_data.notes,
    )
    await invalidate_vehicle_availability(booking.vehicle_id)
    return BookingResponse.from_record(booking)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def change_booking_status(
    booking_id: int,
    update: StatusUpdate,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    """Move a booking along its lifecycle (confirm, complete, cancel)."""
    booking = await coordinator.change_status(booking_id, update.status)
    if not booking.holds_range:
        await invalidate_vehicle_availability(booking.vehicle_id)
    return BookingResponse.from_record(booking)


@router.get("/", response_model=list[BookingResponse])
async def list_bookings(
    vehicle_id: Optional[int] = Query(None, gt=0),
    customer_id: Optional[int] = Query(None, gt=0),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    bookings = await coordinator.list_bookings(
        vehicle_id=vehicle_id, customer_id=customer_id, status=status_filter
    )
    return [BookingResponse.from_record(b) for b in bookings]


@router.get("/calendar", response_model=list[BookingResponse])
async def calendar_bookings(
    start_date: date,
    end_date: date,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    """Every booking whose dates overlap the window, cancelled ones included."""
    bookings = await coordinator.bookings_in_range(CalendarRange(start_date, end_date))
    return [BookingResponse.from_record(b) for b in bookings]


@router.get("/ref/{booking_ref}", response_model=BookingResponse)
async def get_booking_by_ref(
    booking_ref: str,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    booking = await coordinator.get_booking_by_ref(booking_ref)
    return BookingResponse.from_record(booking)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    booking = await coordinator.get_booking(booking_id)
    return BookingResponse.from_record(booking)
