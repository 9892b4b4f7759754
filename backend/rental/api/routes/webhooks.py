"""
Workflow-automation (n8n) webhook.

The automation flow posts booking requests gathered by the voice agent. They
go through the same coordinator call as the HTTP API, tagged with
source="n8n". Replies keep the {success, message, data} envelope the flows
already parse, with the HTTP status of the underlying outcome.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from rental.api.errors import status_code_for
from rental.core.exceptions import ReservationError
from rental.core.logging import get_logger
from rental.schemas.booking import BookingResponse
from rental.schemas.webhook import WebhookBookingRequest, WebhookResponse
from rental.services.cache_service import invalidate_vehicle_availability
from rental.services.coordinator_factory import get_coordinator
from rental.services.reservation_coordinator import ReservationCoordinator

logger = get_logger(__name__)
router = APIRouter(prefix="/webhooks/n8n", tags=["Webhooks"])

WEBHOOK_SOURCE = "n8n"


@router.post("/booking", response_model=WebhookResponse, status_code=status.HTTP_201_CREATED)
async def booking_webhook(
    payload: WebhookBookingRequest,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    logger.info(
        "webhook_booking_received",
        customer_id=payload.customer_id,
        vehicle_id=payload.vehicle_id,
        start_date=payload.start_date.isoformat(),
        end_date=payload.end_date.isoformat(),
    )
    try:
        booking = await coordinator.create_booking(
            payload.customer_id,
            payload.vehicle_id,
            payload.start_date,
            payload.end_date,
            source=WEBHOOK_SOURCE,
            notes=payload.notes,
        )
    except ReservationError as e:
        body = WebhookResponse(success=False, message=str(e), data=e.to_dict())
        return JSONResponse(status_code=status_code_for(e), content=body.model_dump())

    await invalidate_vehicle_availability(booking.vehicle_id)
    return WebhookResponse(
        success=True,
        message="Booking processed successfully",
        data=BookingResponse.from_record(booking).model_dump(mode="json"),
    )


@router.get("/test", response_model=WebhookResponse)
async def webhook_test():
    """Connectivity check used when wiring up a new flow."""
    return WebhookResponse(
        success=True,
        message="n8n webhook connection is working",
        data={"timestamp": datetime.now(timezone.utc).isoformat()},
    )
