"""
Pydantic schemas for customers and vehicles.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class CustomerCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    source: Optional[str] = Field(None, max_length=32)


class CustomerResponse(BaseModel):
    id: int
    full_name: str
    email: str
    phone: Optional[str]
    source: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class VehicleCreate(BaseModel):
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: int = Field(..., ge=1950, le=2100)
    license_plate: str = Field(..., min_length=1, max_length=32)
    category: str = Field(..., min_length=1, max_length=50)
    daily_rate: int = Field(0, ge=0)
    status: str = Field("available", max_length=20)
    maintenance_status: str = Field("ok", max_length=20)


class VehicleResponse(BaseModel):
    id: int
    make: str
    model: str
    year: int
    license_plate: str
    category: str
    status: str
    maintenance_status: str
    daily_rate: int

    model_config = {"from_attributes": True}


class VehicleStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1, max_length=20)


class VehicleMaintenanceUpdate(BaseModel):
    maintenance_status: str = Field(..., min_length=1, max_length=20)
