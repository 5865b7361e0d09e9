"""Pydantic schemas for lab bookings."""
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel


class LabBookingCreate(BaseModel):
    location: str
    booking_date: date
    start_index: int
    end_index: Optional[int] = None
    booked_by: str


class LabBookingOut(BaseModel):
    booking_id: str
    location: str
    booking_date: date
    start_time: str
    end_time: str
    booked_by: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LabSlotsOut(BaseModel):
    slots: list[str]
    locations: list[str]
