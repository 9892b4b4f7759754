"""
Customer and vehicle lookup interface.
Used for existence checks, the available-vehicles listing and fleet
administration; no reservation decision depends on customer or vehicle
attributes.
"""

from abc import ABC, abstractmethod
from typing import Optional

from rental.domain.booking import CustomerInfo, VehicleInfo


class FleetDirectory(ABC):

    @abstractmethod
    async def get_customer(self, customer_id: int) -> Optional[CustomerInfo]:
        pass

    @abstractmethod
    async def get_vehicle(self, vehicle_id: int) -> Optional[VehicleInfo]:
        pass

    @abstractmethod
    async def list_customers(self) -> list[CustomerInfo]:
        pass

    @abstractmethod
    async def list_vehicles(self) -> list[VehicleInfo]:
        pass

    @abstractmethod
    async def add_customer(self, full_name: str, email: str, phone: Optional[str] = None,
                           source: Optional[str] = None) -> CustomerInfo:
        pass

    @abstractmethod
    async def add_vehicle(self, make: str, model: str, year: int, license_plate: str,
                          category: str, daily_rate: int = 0, status: str = "available",
                          maintenance_status: str = "ok") -> VehicleInfo:
        pass

    @abstractmethod
    async def update_vehicle(self, vehicle_id: int, status: Optional[str] = None,
                             maintenance_status: Optional[str] = None) -> Optional[VehicleInfo]:
        """Change fleet status and/or maintenance status. Returns None for an unknown id."""
        pass

    async def customer_exists(self, customer_id: int) -> bool:
        return await self.get_customer(customer_id) is not None

    async def vehicle_exists(self, vehicle_id: int) -> bool:
        return await self.get_vehicle(vehicle_id) is not None
