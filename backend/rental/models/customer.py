"""
Customer model.
"""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from rental.db.base import Base, TimestampMixin


class Customer(Base, TimestampMixin):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(50), nullable=True)
    source = Column(String(32), nullable=True)

    bookings = relationship("Booking", back_populates="customer")

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, email={self.email})>"
