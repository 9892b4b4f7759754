"""
SQLAlchemy implementations of BookingStore and FleetDirectory.

Every call runs in its own short transaction. The reservation coordinator
already serializes writes per vehicle, so the store does not take row locks.
On PostgreSQL the `no_vehicle_overlap` exclusion constraint (see the Alembic
migration) backs the in-process availability index: if two application
processes ever race on the same vehicle, the database rejects the second
insert and the store reports it as a ConflictError. Ranges released by
another process are picked up by the coordinator, which re-reads a
vehicle's held bookings from here before it reports a conflict.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from rental.core.exceptions import ConflictError, DuplicateError
from rental.core.logging import get_logger
from rental.domain.booking import BookingRecord, CustomerInfo, StatusChange, VehicleInfo
from rental.domain.calendar_range import CalendarRange
from rental.domain.status import HOLDING_STATUSES, BookingStatus
from rental.models.booking import Booking, BookingStatusChange
from rental.models.customer import Customer
from rental.models.vehicle import Vehicle
from rental.services.interfaces.booking_store import BookingStore
from rental.services.interfaces.fleet_directory import FleetDirectory

logger = get_logger(__name__)

OVERLAP_CONSTRAINT = "no_vehicle_overlap"


def _to_record(row: Booking) -> BookingRecord:
    return BookingRecord(
        id=row.id,
        booking_ref=row.booking_ref,
        customer_id=row.customer_id,
        vehicle_id=row.vehicle_id,
        range=CalendarRange(row.start_date, row.end_date),
        status=BookingStatus(row.status),
        created_at=row.created_at,
        status_history=tuple(
            StatusChange(BookingStatus(h.status), h.changed_at) for h in row.history
        ),
        source=row.source,
        notes=row.notes,
    )


class SqlBookingStore(BookingStore):
    def __init__(self, session_factory: async_sessionmaker):
        self._sessions = session_factory

    async def get(self, booking_id: int) -> Optional[BookingRecord]:
        async with self._sessions() as session:
            row = await session.get(Booking, booking_id)
            return _to_record(row) if row else None

    async def get_by_ref(self, booking_ref: str) -> Optional[BookingRecord]:
        async with self._sessions() as session:
            result = await session.execute(select(Booking).where(Booking.booking_ref == booking_ref))
            row = result.scalar_one_or_none()
            return _to_record(row) if row else None

    async def add(self, record: BookingRecord) -> BookingRecord:
        row = Booking(
            booking_ref=record.booking_ref,
            customer_id=record.customer_id,
            vehicle_id=record.vehicle_id,
            start_date=record.range.start,
            end_date=record.range.end,
            status=record.status.value,
            source=record.source,
            notes=record.notes,
            created_at=record.created_at,
            history=[
                BookingStatusChange(status=change.status.value, changed_at=change.changed_at)
                for change in record.status_history
            ],
        )
        async with self._sessions() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                if OVERLAP_CONSTRAINT in str(e.orig):
                    logger.warning(
                        "booking_overlap_rejected_by_database",
                        vehicle_id=record.vehicle_id,
                        range=str(record.range),
                    )
                    raise ConflictError(record.vehicle_id, record.range) from e
                if "booking_ref" in str(e.orig):
                    raise DuplicateError("booking", "booking_ref", record.booking_ref) from e
                raise

        return record.with_id(row.id)

    async def update(self, record: BookingRecord) -> BookingRecord:
        async with self._sessions() as session:
            row = await session.get(Booking, record.id)
            if row is None:
                raise KeyError(record.id)

            row.status = record.status.value
            persisted = len(row.history)
            for change in record.status_history[persisted:]:
                row.history.append(
                    BookingStatusChange(status=change.status.value, changed_at=change.changed_at)
                )
            await session.commit()
        return record

    async def list_bookings(
        self,
        vehicle_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[BookingRecord]:
        query = select(Booking)
        if vehicle_id is not None:
            query = query.where(Booking.vehicle_id == vehicle_id)
        if customer_id is not None:
            query = query.where(Booking.customer_id == customer_id)
        if status is not None:
            query = query.where(Booking.status == BookingStatus(status).value)
        query = query.order_by(Booking.created_at.desc(), Booking.id.desc())

        async with self._sessions() as session:
            result = await session.execute(query)
            return [_to_record(row) for row in result.scalars().all()]

    async def list_held(self) -> list[BookingRecord]:
        query = (
            select(Booking)
            .where(Booking.status.in_([s.value for s in HOLDING_STATUSES]))
            .order_by(Booking.vehicle_id, Booking.start_date)
        )
        async with self._sessions() as session:
            result = await session.execute(query)
            return [_to_record(row) for row in result.scalars().all()]

    async def list_overlapping(self, range_: CalendarRange) -> list[BookingRecord]:
        # Half-open overlap: start < other.end AND other.start < end
        query = (
            select(Booking)
            .where(Booking.start_date < range_.end, Booking.end_date > range_.start)
            .order_by(Booking.start_date, Booking.id)
        )
        async with self._sessions() as session:
            result = await session.execute(query)
            return [_to_record(row) for row in result.scalars().all()]


def _to_vehicle(row: Vehicle) -> VehicleInfo:
    return VehicleInfo(
        id=row.id,
        make=row.make,
        model=row.model,
        year=row.year,
        license_plate=row.license_plate,
        category=row.category,
        status=row.status,
        maintenance_status=row.maintenance_status,
        daily_rate=row.daily_rate,
    )


def _to_customer(row: Customer) -> CustomerInfo:
    return CustomerInfo(
        id=row.id,
        full_name=row.full_name,
        email=row.email,
        phone=row.phone,
        source=row.source,
        created_at=row.created_at,
    )


class SqlFleetDirectory(FleetDirectory):
    def __init__(self, session_factory: async_sessionmaker):
        self._sessions = session_factory

    async def get_customer(self, customer_id: int) -> Optional[CustomerInfo]:
        async with self._sessions() as session:
            row = await session.get(Customer, customer_id)
            return _to_customer(row) if row else None

    async def get_vehicle(self, vehicle_id: int) -> Optional[VehicleInfo]:
        async with self._sessions() as session:
            row = await session.get(Vehicle, vehicle_id)
            return _to_vehicle(row) if row else None

    async def list_customers(self) -> list[CustomerInfo]:
        async with self._sessions() as session:
            result = await session.execute(select(Customer).order_by(Customer.id))
            return [_to_customer(row) for row in result.scalars().all()]

    async def list_vehicles(self) -> list[VehicleInfo]:
        async with self._sessions() as session:
            result = await session.execute(select(Vehicle).order_by(Vehicle.id))
            return [_to_vehicle(row) for row in result.scalars().all()]

    async def add_customer(self, full_name: str, email: str, phone: Optional[str] = None,
                           source: Optional[str] = None) -> CustomerInfo:
        async with self._sessions() as session:
            existing = await session.execute(select(Customer.id).where(Customer.email == email))
            if existing.scalar_one_or_none() is not None:
                raise DuplicateError("customer", "email", email)

            row = Customer(full_name=full_name, email=email, phone=phone, source=source)
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateError("customer", "email", email) from e
            await session.refresh(row)
            return _to_customer(row)

    async def add_vehicle(self, make: str, model: str, year: int, license_plate: str,
                          category: str, daily_rate: int = 0, status: str = "available",
                          maintenance_status: str = "ok") -> VehicleInfo:
        async with self._sessions() as session:
            existing = await session.execute(
                select(Vehicle.id).where(Vehicle.license_plate == license_plate)
            )
            if existing.scalar_one_or_none() is not None:
                raise DuplicateError("vehicle", "license_plate", license_plate)

            row = Vehicle(
                make=make,
                model=model,
                year=year,
                license_plate=license_plate,
                category=category,
                daily_rate=daily_rate,
                status=status,
                maintenance_status=maintenance_status,
            )
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateError("vehicle", "license_plate", license_plate) from e
            await session.refresh(row)
            return _to_vehicle(row)

    async def update_vehicle(self, vehicle_id: int, status: Optional[str] = None,
                             maintenance_status: Optional[str] = None) -> Optional[VehicleInfo]:
        async with self._sessions() as session:
            row = await session.get(Vehicle, vehicle_id)
            if row is None:
                return None
            if status is not None:
                row.status = status
            if maintenance_status is not None:
                row.maintenance_status = maintenance_status
            await session.commit()
            await session.refresh(row)
            return _to_vehicle(row)
