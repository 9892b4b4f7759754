"""
Schemas for the workflow-automation (n8n) booking webhook.

The automation flows send camelCase ids and snake_case dates, older flows
send everything in camelCase; both spellings are accepted.
"""

from datetime import date
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field


class WebhookBookingRequest(BaseModel):
    customer_id: int = Field(..., gt=0, validation_alias=AliasChoices("customerId", "customer_id"))
    vehicle_id: int = Field(..., gt=0, validation_alias=AliasChoices("vehicleId", "vehicle_id"))
    start_date: date = Field(..., validation_alias=AliasChoices("start_date", "startDate"))
    end_date: date = Field(..., validation_alias=AliasChoices("end_date", "endDate"))
    notes: Optional[str] = Field(
        None, max_length=2000, validation_alias=AliasChoices("notes", "specialRequests", "special_requests")
    )


class WebhookResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Any] = None
