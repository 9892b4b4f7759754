from rental.schemas.booking import BookingCreate, BookingResponse, StatusUpdate, AvailabilityResponse
from rental.schemas.fleet import (
    CustomerCreate, CustomerResponse, VehicleCreate, VehicleMaintenanceUpdate, VehicleResponse,
    VehicleStatusUpdate,
)
from rental.schemas.webhook import WebhookBookingRequest, WebhookResponse

__all__ = [
    "BookingCreate", "BookingResponse", "StatusUpdate", "AvailabilityResponse",
    "CustomerCreate", "CustomerResponse", "VehicleCreate", "VehicleResponse",
    "VehicleStatusUpdate", "VehicleMaintenanceUpdate",
    "WebhookBookingRequest", "WebhookResponse",
]
