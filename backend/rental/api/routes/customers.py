"""
Customer endpoints. Customers are referenced by bookings; the reservation
core only checks that they exist.
"""

from fastapi import APIRouter, Depends, status

from rental.core.exceptions import NotFoundError
from rental.core.logging import get_logger
from rental.schemas.fleet import CustomerCreate, CustomerResponse
from rental.services.coordinator_factory import get_coordinator
from rental.services.reservation_coordinator import ReservationCoordinator

logger = get_logger(__name__)
router = APIRouter(prefix="/customers", tags=["Customers"])


@router.post("/", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    customer = await coordinator.directory.add_customer(**customer_data.model_dump())
    logger.info("customer_created", customer_id=customer.id)
    return customer


@router.get("/", response_model=list[CustomerResponse])
async def list_customers(coordinator: ReservationCoordinator = Depends(get_coordinator)):
    return await coordinator.directory.list_customers()


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: int,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    customer = await coordinator.directory.get_customer(customer_id)
    if customer is None:
        raise NotFoundError("customer", customer_id)
    return customer
