"""
Vehicle endpoints, including the availability probe.

The probe is advisory. It may be served from Redis for a few seconds and
can go stale between a check and a submit; booking creation re-checks.
"""

from collections import Counter
from datetime import date

from fastapi import APIRouter, Depends, status

from rental.core.exceptions import NotFoundError
from rental.core.logging import get_logger
from rental.core.metrics import record_availability_check
from rental.domain.calendar_range import CalendarRange
from rental.schemas.booking import AvailabilityResponse
from rental.schemas.fleet import VehicleCreate, VehicleMaintenanceUpdate, VehicleResponse, VehicleStatusUpdate
from rental.services.cache_service import (
    get_cached_availability,
    invalidate_vehicle_availability,
    set_cached_availability,
)
from rental.services.coordinator_factory import get_coordinator
from rental.services.reservation_coordinator import ReservationCoordinator

logger = get_logger(__name__)
router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


@router.post("/", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    vehicle = await coordinator.directory.add_vehicle(**vehicle_data.model_dump())
    logger.info("vehicle_created", vehicle_id=vehicle.id, plate=vehicle.license_plate)
    return vehicle


@router.get("/", response_model=list[VehicleResponse])
async def list_vehicles(coordinator: ReservationCoordinator = Depends(get_coordinator)):
    return await coordinator.directory.list_vehicles()


@router.get("/available", response_model=list[VehicleResponse])
async def list_available_vehicles(
    start_date: date,
    end_date: date,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    """Vehicles in service, not in maintenance, and free for the whole window."""
    return await coordinator.available_vehicles(CalendarRange(start_date, end_date))


@router.get("/categories", response_model=dict[str, int])
async def vehicle_categories(coordinator: ReservationCoordinator = Depends(get_coordinator)):
    """Fleet size per category."""
    vehicles = await coordinator.directory.list_vehicles()
    return dict(sorted(Counter(v.category for v in vehicles).items()))


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: int,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    vehicle = await coordinator.directory.get_vehicle(vehicle_id)
    if vehicle is None:
        raise NotFoundError("vehicle", vehicle_id)
    return vehicle


@router.patch("/{vehicle_id}/status", response_model=VehicleResponse)
async def update_vehicle_status(
    vehicle_id: int,
    update: VehicleStatusUpdate,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    """
    Take a vehicle in or out of service. Existing bookings are untouched;
    only the available-vehicles listing looks at fleet status.
    """
    vehicle = await coordinator.directory.update_vehicle(vehicle_id, status=update.status)
    if vehicle is None:
        raise NotFoundError("vehicle", vehicle_id)
    logger.info("vehicle_status_changed", vehicle_id=vehicle_id, status=vehicle.status)
    return vehicle


@router.patch("/{vehicle_id}/maintenance", response_model=VehicleResponse)
async def update_vehicle_maintenance(
    vehicle_id: int,
    update: VehicleMaintenanceUpdate,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    vehicle = await coordinator.directory.update_vehicle(
        vehicle_id, maintenance_status=update.maintenance_status
    )
    if vehicle is None:
        raise NotFoundError("vehicle", vehicle_id)
    logger.info(
        "vehicle_maintenance_changed",
        vehicle_id=vehicle_id,
        maintenance_status=vehicle.maintenance_status,
    )
    return vehicle


@router.get("/{vehicle_id}/availability", response_model=AvailabilityResponse)
async def check_vehicle_availability(
    vehicle_id: int,
    start_date: date,
    end_date: date,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    range_ = CalendarRange(start_date, end_date)

    cached = await get_cached_availability(vehicle_id, range_)
    if cached is not None:
        return AvailabilityResponse(
            vehicle_id=vehicle_id,
            start_date=start_date,
            end_date=end_date,
            available=cached,
            cached=True,
        )

    available = coordinator.check_availability(vehicle_id, range_)
    record_availability_check(available)

    # A write in flight for this vehicle may still roll back; don't cache
    # an answer it could invalidate before finishing.
    if not coordinator.locks.locked(vehicle_id):
        await set_cached_availability(vehicle_id, range_, available)
        # A write that landed during the cache call may have invalidated
        # before our entry arrived
        if coordinator.check_availability(vehicle_id, range_) != available:
            await invalidate_vehicle_availability(vehicle_id)

    return AvailabilityResponse(
        vehicle_id=vehicle_id,
        start_date=start_date,
        end_date=end_date,
        available=available,
    )
