"""Lab booking API routes."""
import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from labx.database import get_db
from labx.schemas.lab_booking import LabBookingCreate, LabBookingOut, LabSlotsOut
from labx.services import lab_booking_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/slots", response_model=LabSlotsOut)
def list_slots():
    return LabSlotsOut(slots=lab_booking_service.TIME_SLOTS, locations=lab_booking_service.LAB_LOCATIONS)


@router.post("/", response_model=LabBookingOut, status_code=status.HTTP_201_CREATED)
def book_lab(payload: LabBookingCreate, db: Session = Depends(get_db)):
    return lab_booking_service.book_lab(
        db=db,
        location=payload.location,
        booking_date=payload.booking_date,
        start_index=payload.start_index,
        end_index=payload.end_index,
        booked_by=payload.booked_by,
    )


@router.get("/", response_model=list[LabBookingOut])
def list_bookings(
    booking_date: Optional[date] = Query(None),
    location: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return lab_booking_service.list_bookings(db, booking_date, location)
