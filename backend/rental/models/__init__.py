from rental.models.customer import Customer
from rental.models.vehicle import Vehicle
from rental.models.booking import Booking, BookingStatusChange

__all__ = ["Customer", "Vehicle", "Booking", "BookingStatusChange"]
