"""
Process-local implementations of BookingStore and FleetDirectory.

Records are immutable dataclasses, so storing them in a dict is enough: a
caller can never mutate a stored booking behind the coordinator's back.
"""

import itertools
from dataclasses import replace
from typing import Optional

from rental.core.exceptions import DuplicateError
from rental.domain.booking import BookingRecord, CustomerInfo, VehicleInfo
from rental.domain.calendar_range import CalendarRange
from rental.domain.status import BookingStatus
from rental.services.interfaces.booking_store import BookingStore
from rental.services.interfaces.fleet_directory import FleetDirectory


class InMemoryBookingStore(BookingStore):
    def __init__(self):
        self._bookings: dict[int, BookingRecord] = {}
        self._ids = itertools.count(1)

    async def get(self, booking_id: int) -> Optional[BookingRecord]:
        return self._bookings.get(booking_id)

    async def get_by_ref(self, booking_ref: str) -> Optional[BookingRecord]:
        for record in self._bookings.values():
            if record.booking_ref == booking_ref:
                return record
        return None

    async def add(self, record: BookingRecord) -> BookingRecord:
        if any(r.booking_ref == record.booking_ref for r in self._bookings.values()):
            raise DuplicateError("booking", "booking_ref", record.booking_ref)
        stored = record.with_id(next(self._ids))
        self._bookings[stored.id] = stored
        return stored

    async def update(self, record: BookingRecord) -> BookingRecord:
        if record.id not in self._bookings:
            raise KeyError(record.id)
        self._bookings[record.id] = record
        return record

    async def list_bookings(
        self,
        vehicle_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[BookingRecord]:
        records = [
            r for r in self._bookings.values()
            if (vehicle_id is None or r.vehicle_id == vehicle_id)
            and (customer_id is None or r.customer_id == customer_id)
            and (status is None or r.status == BookingStatus(status))
        ]
        return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)

    async def list_held(self) -> list[BookingRecord]:
        return [r for r in self._bookings.values() if r.holds_range]

    async def list_overlapping(self, range_: CalendarRange) -> list[BookingRecord]:
        records = [r for r in self._bookings.values() if r.range.overlaps(range_)]
        return sorted(records, key=lambda r: (r.range.start, r.id))


class InMemoryFleetDirectory(FleetDirectory):
    def __init__(self):
        self._customers: dict[int, CustomerInfo] = {}
        self._vehicles: dict[int, VehicleInfo] = {}
        self._customer_ids = itertools.count(1)
        self._vehicle_ids = itertools.count(1)

    async def get_customer(self, customer_id: int) -> Optional[CustomerInfo]:
        return self._customers.get(customer_id)

    async def get_vehicle(self, vehicle_id: int) -> Optional[VehicleInfo]:
        return self._vehicles.get(vehicle_id)

    async def list_customers(self) -> list[CustomerInfo]:
        return sorted(self._customers.values(), key=lambda c: c.id)

    async def list_vehicles(self) -> list[VehicleInfo]:
        return sorted(self._vehicles.values(), key=lambda v: v.id)

    async def add_customer(self, full_name: str, email: str, phone: Optional[str] = None,
                           source: Optional[str] = None) -> CustomerInfo:
        if any(c.email == email for c in self._customers.values()):
            raise DuplicateError("customer", "email", email)
        customer = CustomerInfo(
            id=next(self._customer_ids),
            full_name=full_name,
            email=email,
            phone=phone,
            source=source,
        )
        self._customers[customer.id] = customer
        return customer

    async def add_vehicle(self, make: str, model: str, year: int, license_plate: str,
                          category: str, daily_rate: int = 0, status: str = "available",
                          maintenance_status: str = "ok") -> VehicleInfo:
        if any(v.license_plate == license_plate for v in self._vehicles.values()):
            raise DuplicateError("vehicle", "license_plate", license_plate)
        vehicle = VehicleInfo(
            id=next(self._vehicle_ids),
            make=make,
            model=model,
            year=year,
            license_plate=license_plate,
            category=category,
            status=status,
            maintenance_status=maintenance_status,
            daily_rate=daily_rate,
        )
        self._vehicles[vehicle.id] = vehicle
        return vehicle

    async def update_vehicle(self, vehicle_id: int, status: Optional[str] = None,
                             maintenance_status: Optional[str] = None) -> Optional[VehicleInfo]:
        vehicle = self._vehicles.get(vehicle_id)
        if vehicle is None:
            return None
        changes = {}
        if status is not None:
            changes["status"] = status
        if maintenance_status is not None:
            changes["maintenance_status"] = maintenance_status
        vehicle = self._vehicles[vehicle_id] = replace(vehicle, **changes)
        return vehicle
