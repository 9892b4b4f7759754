"""
Tests for the SQLAlchemy store and directory.

Runs against an in-memory SQLite database through aiosqlite. The PostgreSQL
exclusion constraint only exists in the Alembic migration, so overlap
rejection at the database level is covered in the coordinator tests with a
store that raises ConflictError.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from rental.core.exceptions import DuplicateError
from rental.db.base import Base
from rental.domain.booking import BookingRecord
from rental.domain.status import BookingStatus
from rental.models import Booking, BookingStatusChange, Customer, Vehicle  # noqa: F401 - register tables
from rental.services.reservation_coordinator import ReservationCoordinator
from rental.services.stores.sql_store import SqlBookingStore, SqlFleetDirectory
from tests.conftest import make_range


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def sql_coordinator(session_factory) -> ReservationCoordinator:
    return ReservationCoordinator(SqlBookingStore(session_factory), SqlFleetDirectory(session_factory))


@pytest_asyncio.fixture
async def seeded(sql_coordinator: ReservationCoordinator):
    directory = sql_coordinator.directory
    customer = await directory.add_customer("Ivana Babic", "ivana@example.com")
    vehicle = await directory.add_vehicle(
        make="VW", model="Golf", year=2022, license_plate="RI-5005-IJ", category="compact",
    )
    return customer, vehicle


@pytest.mark.asyncio
async def test_create_and_load_booking(sql_coordinator: ReservationCoordinator, seeded):
    customer, vehicle = seeded
    created = await sql_coordinator.create_booking(
        customer.id, vehicle.id, make_range("2025-06-01", "2025-06-05"), notes="Late pickup"
    )
    assert created.id is not None

    loaded = await sql_coordinator.store.get(created.id)
    assert loaded.booking_ref == created.booking_ref
    assert loaded.range == make_range("2025-06-01", "2025-06-05")
    assert loaded.status is BookingStatus.PENDING
    assert loaded.notes == "Late pickup"
    assert [c.status for c in loaded.status_history] == [BookingStatus.PENDING]

    by_ref = await sql_coordinator.store.get_by_ref(created.booking_ref)
    assert by_ref.id == created.id


@pytest.mark.asyncio
async def test_status_history_is_persisted(sql_coordinator: ReservationCoordinator, seeded):
    customer, vehicle = seeded
    booking = await sql_coordinator.create_booking(customer.id, vehicle.id, make_range("2025-06-01", "2025-06-05"))
    await sql_coordinator.change_status(booking.id, "active")
    await sql_coordinator.change_status(booking.id, "cancelled")

    loaded = await sql_coordinator.store.get(booking.id)
    assert loaded.status is BookingStatus.CANCELLED
    assert [c.status.value for c in loaded.status_history] == ["pending", "active", "cancelled"]


@pytest.mark.asyncio
async def test_list_held_and_warm_up(session_factory, sql_coordinator: ReservationCoordinator, seeded):
    customer, vehicle = seeded
    held = await sql_coordinator.create_booking(customer.id, vehicle.id, make_range("2025-06-01", "2025-06-05"))
    done = await sql_coordinator.create_booking(customer.id, vehicle.id, make_range("2025-06-10", "2025-06-12"))
    await sql_coordinator.change_status(done.id, "cancelled")

    assert [b.id for b in await sql_coordinator.store.list_held()] == [held.id]

    restarted = ReservationCoordinator(SqlBookingStore(session_factory), SqlFleetDirectory(session_factory))
    assert await restarted.warm_up() == 1
    assert not restarted.check_availability(vehicle.id, make_range("2025-06-04", "2025-06-06"))
    assert restarted.check_availability(vehicle.id, make_range("2025-06-10", "2025-06-12"))


@pytest.mark.asyncio
async def test_list_filters_and_overlap_query(sql_coordinator: ReservationCoordinator, seeded):
    customer, vehicle = seeded
    june = await sql_coordinator.create_booking(customer.id, vehicle.id, make_range("2025-06-01", "2025-06-05"))
    july = await sql_coordinator.create_booking(customer.id, vehicle.id, make_range("2025-07-01", "2025-07-05"))
    await sql_coordinator.change_status(july.id, "active")

    store = sql_coordinator.store
    assert {b.id for b in await store.list_bookings(vehicle_id=vehicle.id)} == {june.id, july.id}
    assert [b.id for b in await store.list_bookings(status="active")] == [july.id]
    assert await store.list_bookings(customer_id=customer.id + 100) == []

    overlapping = await store.list_overlapping(make_range("2025-06-05", "2025-07-02"))
    assert [b.id for b in overlapping] == [july.id]


@pytest.mark.asyncio
async def test_directory_lookups(sql_coordinator: ReservationCoordinator, seeded):
    customer, vehicle = seeded
    directory = sql_coordinator.directory

    assert await directory.customer_exists(customer.id)
    assert not await directory.customer_exists(customer.id + 100)
    assert (await directory.get_vehicle(vehicle.id)).license_plate == "RI-5005-IJ"
    assert [v.id for v in await directory.list_vehicles()] == [vehicle.id]


@pytest.mark.asyncio
async def test_directory_rejects_duplicates(sql_coordinator: ReservationCoordinator, seeded):
    directory = sql_coordinator.directory
    with pytest.raises(DuplicateError):
        await directory.add_customer("Other", "ivana@example.com")
    with pytest.raises(DuplicateError):
        await directory.add_vehicle(
            make="VW", model="Polo", year=2020, license_plate="RI-5005-IJ", category="compact",
        )


@pytest.mark.asyncio
async def test_directory_lists_customers_and_updates_vehicles(sql_coordinator: ReservationCoordinator, seeded):
    customer, vehicle = seeded
    directory = sql_coordinator.directory
    other = await directory.add_customer("Petra Novak", "petra@example.com")

    assert [c.id for c in await directory.list_customers()] == [customer.id, other.id]

    updated = await directory.update_vehicle(vehicle.id, maintenance_status="service")
    assert updated.maintenance_status == "service"
    assert updated.status == "available"
    assert not (await directory.get_vehicle(vehicle.id)).rentable
    assert await sql_coordinator.available_vehicles(make_range("2025-06-01", "2025-06-05")) == []

    updated = await directory.update_vehicle(vehicle.id, status="retired", maintenance_status="ok")
    assert (updated.status, updated.maintenance_status) == ("retired", "ok")
    assert await directory.update_vehicle(vehicle.id + 100, status="available") is None


@pytest.mark.asyncio
async def test_duplicate_booking_ref_is_rejected(sql_coordinator: ReservationCoordinator, seeded):
    customer, vehicle = seeded
    store = sql_coordinator.store
    first = BookingRecord.new(customer.id, vehicle.id, make_range("2025-06-01", "2025-06-05"), "BK-0000ABCD")
    await store.add(first)

    clash = BookingRecord.new(customer.id, vehicle.id, make_range("2025-07-01", "2025-07-05"), "BK-0000ABCD")
    with pytest.raises(DuplicateError):
        await store.add(clash)
