"""
Booking model representing a customer's rental of one vehicle.

Key design decisions:
- Dates are DATE columns forming a half-open range [start_date, end_date)
- Status field allows cancellation without deleting records
- Status history lives in its own append-only table
- On PostgreSQL the migration adds an exclusion constraint so two pending or
  active bookings can never hold overlapping dates for the same vehicle
"""

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import relationship

from rental.db.base import Base, TimestampMixin


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_ref = Column(String(32), nullable=False, unique=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, active, completed, cancelled
    source = Column(String(32), nullable=False, default="direct")
    notes = Column(Text, nullable=True)

    # Relationships
    customer = relationship("Customer", back_populates="bookings")
    vehicle = relationship("Vehicle", back_populates="bookings")
    history = relationship(
        "BookingStatusChange",
        back_populates="booking",
        order_by="BookingStatusChange.id",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("start_date < end_date", name="check_booking_range_non_empty"),
        CheckConstraint(
            "status IN ('pending', 'active', 'completed', 'cancelled')",
            name="check_booking_status",
        ),
        # Availability lookups: held bookings of one vehicle by date
        Index("ix_bookings_vehicle_dates", "vehicle_id", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, ref={self.booking_ref}, vehicle={self.vehicle_id}, "
            f"{self.start_date}..{self.end_date}, status={self.status})>"
        )


class BookingStatusChange(Base):
    __tablename__ = "booking_status_history"

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    changed_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    booking = relationship("Booking", back_populates="history")

    def __repr__(self) -> str:
        return f"<BookingStatusChange(booking={self.booking_id}, status={self.status})>"
