"""
Reservation coordinator wiring.
Chooses the storage backend from settings and keeps one coordinator per
process, since the availability index and vehicle locks are process state.
"""

from typing import Optional

from rental.core.config import get_settings
from rental.services.reservation_coordinator import ReservationCoordinator
from rental.services.stores.memory_store import InMemoryBookingStore, InMemoryFleetDirectory


def build_coordinator() -> ReservationCoordinator:
    """
    Build a coordinator for the configured backend.

    - sql: SqlBookingStore/SqlFleetDirectory on the async engine
    - memory: InMemoryBookingStore/InMemoryFleetDirectory (single process)
    """
    settings = get_settings()

    if settings.STORAGE_BACKEND == "sql":
        from rental.db.session import get_session_factory
        from rental.services.stores.sql_store import SqlBookingStore, SqlFleetDirectory

        factory = get_session_factory()
        store, directory = SqlBookingStore(factory), SqlFleetDirectory(factory)
    else:
        store, directory = InMemoryBookingStore(), InMemoryFleetDirectory()

    return ReservationCoordinator(store, directory, ref_prefix=settings.BOOKING_REF_PREFIX)


_coordinator: Optional[ReservationCoordinator] = None


def get_coordinator() -> ReservationCoordinator:
    """Coordinator singleton; also the FastAPI dependency for routes."""
    global _coordinator
    if _coordinator is None:
        _coordinator = build_coordinator()
    return _coordinator


def reset_coordinator() -> None:
    global _coordinator
    _coordinator = None
