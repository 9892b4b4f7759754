"""
Pytest fixtures for the reservation core, the HTTP client and seed data.

Tests run against the in-memory store with Redis disabled; each test gets a
fresh coordinator, so availability state never leaks between tests.
SQL store tests build their own SQLite engine in test_sql_store.py.
"""

import os

os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from rental.domain.booking import CustomerInfo, VehicleInfo
from rental.domain.calendar_range import CalendarRange
from rental.main import app
from rental.services.availability_index import AvailabilityIndex
from rental.services.coordinator_factory import get_coordinator
from rental.services.reservation_coordinator import ReservationCoordinator
from rental.services.stores.memory_store import InMemoryBookingStore, InMemoryFleetDirectory


def make_range(start: str, end: str) -> CalendarRange:
    return CalendarRange(date.fromisoformat(start), date.fromisoformat(end))


@pytest.fixture
def index() -> AvailabilityIndex:
    return AvailabilityIndex()


@pytest.fixture
def store() -> InMemoryBookingStore:
    return InMemoryBookingStore()


@pytest.fixture
def directory() -> InMemoryFleetDirectory:
    return InMemoryFleetDirectory()


@pytest.fixture
def coordinator(store, directory, index) -> ReservationCoordinator:
    return ReservationCoordinator(store, directory, index=index)


@pytest_asyncio.fixture
async def customer(directory: InMemoryFleetDirectory) -> CustomerInfo:
    return await directory.add_customer("Ana Kovac", "ana@example.com", phone="+385 91 000 0000")


@pytest_asyncio.fixture
async def vehicle(directory: InMemoryFleetDirectory) -> VehicleInfo:
    return await directory.add_vehicle(
        make="Toyota", model="Corolla", year=2023, license_plate="ZG-1001-AB",
        category="compact", daily_rate=45,
    )


@pytest_asyncio.fixture
async def second_vehicle(directory: InMemoryFleetDirectory) -> VehicleInfo:
    return await directory.add_vehicle(
        make="Skoda", model="Octavia", year=2022, license_plate="ZG-2002-CD",
        category="estate", daily_rate=55,
    )


@pytest_asyncio.fixture
async def client(coordinator: ReservationCoordinator) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that routes every request to the test coordinator."""
    app.dependency_overrides[get_coordinator] = lambda: coordinator

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
