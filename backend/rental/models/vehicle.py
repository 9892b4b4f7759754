"""
Vehicle model for the rental fleet.

`status` and `maintenance_status` describe the car itself (in service, in the
shop); date-level availability comes from bookings, never from these fields.
"""

from sqlalchemy import CheckConstraint, Column, Integer, String
from sqlalchemy.orm import relationship

from rental.db.base import Base, TimestampMixin


class Vehicle(Base, TimestampMixin):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    license_plate = Column(String(32), unique=True, index=True, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="available")
    maintenance_status = Column(String(20), nullable=False, default="ok")
    daily_rate = Column(Integer, nullable=False, default=0)

    bookings = relationship("Booking", back_populates="vehicle")

    __table_args__ = (
        CheckConstraint("daily_rate >= 0", name="check_vehicle_daily_rate_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Vehicle(id={self.id}, {self.make} {self.model}, plate={self.license_plate})>"
