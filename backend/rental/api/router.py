"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter

from rental.api.routes import bookings, customers, vehicles, webhooks

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(customers.router)
api_router.include_router(vehicles.router)
api_router.include_router(bookings.router)
api_router.include_router(webhooks.router)
