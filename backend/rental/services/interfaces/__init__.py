"""
Service interfaces for dependency inversion.
Allows swapping storage implementations without changing reservation logic.
"""

from .booking_store import BookingStore
from .fleet_directory import FleetDirectory

__all__ = ['BookingStore', 'FleetDirectory']
