"""LabBooking ORM model."""
import uuid
from sqlalchemy import Column, String, Date, DateTime, ForeignKey
from sqlalchemy.sql import func
from labx.database import Base


class LabBooking(Base):
    __tablename__ = "lab_bookings"

    booking_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    location = Column(String(100), nullable=False)
    booking_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)  # "HH:MM" slot label
    end_time = Column(String(5), nullable=False)
    booked_by = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
