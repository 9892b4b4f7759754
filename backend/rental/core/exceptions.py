"""
Reservation error kinds.

None of these conditions is transient, so the coordinator never retries on
them. The API layer maps each kind to an HTTP status in rental.api.errors.
"""


class ReservationError(Exception):
    """Base class for every error raised by the reservation core."""

    code = "reservation_error"

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": str(self)}


class InvalidRangeError(ReservationError):
    """Requested interval is empty, inverted, or not a pair of dates."""

    code = "invalid_range"

    def __init__(self, start, end, reason: str = "start date must be before end date"):
        self.start = start
        self.end = end
        self.reason = reason
        super().__init__(f"Invalid date range {start}..{end}: {reason}")


class ConflictError(ReservationError):
    """Requested range overlaps a range already held for the vehicle."""

    code = "booking_conflict"

    def __init__(self, vehicle_id, requested, conflicts=()):
        self.vehicle_id = vehicle_id
        self.requested = requested
        self.conflicts = list(conflicts)
        held = ", ".join(str(c) for c in self.conflicts) or "an existing reservation"
        super().__init__(
            f"Vehicle {vehicle_id} is not available for {requested}; conflicts with {held}"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["vehicle_id"] = self.vehicle_id
        data["conflicts"] = [c.to_dict() for c in self.conflicts]
        return data


class IllegalTransitionError(ReservationError):
    """Requested status change is not an edge of the booking lifecycle."""

    code = "illegal_transition"

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Illegal booking status transition: {_value(current)} -> {_value(requested)}"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["from"] = _value(self.current)
        data["to"] = _value(self.requested)
        return data


class NotFoundError(ReservationError):
    """Referenced booking, vehicle, or customer does not exist."""

    code = "not_found"

    def __init__(self, resource: str, identifier):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource.capitalize()} {identifier} not found")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["resource"] = self.resource
        data["id"] = self.identifier
        return data


def _value(status) -> str:
    return getattr(status, "value", status)


class DuplicateError(ReservationError):
    """A customer or vehicle with the same unique attribute already exists."""

    code = "duplicate"

    def __init__(self, resource: str, field: str, value):
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource.capitalize()} with {field} {value!r} already exists")
