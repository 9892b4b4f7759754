"""
Maps reservation errors onto HTTP responses.

| Error                  | Status |
|------------------------|--------|
| InvalidRangeError      | 422    |
| ConflictError          | 409    |
| DuplicateError         | 409    |
| IllegalTransitionError | 400    |
| NotFoundError          | 404    |
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from rental.core.exceptions import (
    ConflictError,
    DuplicateError,
    IllegalTransitionError,
    InvalidRangeError,
    NotFoundError,
    ReservationError,
)
from rental.core.logging import get_logger

logger = get_logger(__name__)

STATUS_CODES = {
    InvalidRangeError: 422,
    ConflictError: status.HTTP_409_CONFLICT,
    DuplicateError: status.HTTP_409_CONFLICT,
    IllegalTransitionError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
}


def status_code_for(exc: ReservationError) -> int:
    for error_type, code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def reservation_error_handler(request: Request, exc: ReservationError) -> JSONResponse:
    code = status_code_for(exc)
    logger.info("request_rejected", error=exc.code, status_code=code, detail=str(exc))
    return JSONResponse(status_code=code, content=exc.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReservationError, reservation_error_handler)
