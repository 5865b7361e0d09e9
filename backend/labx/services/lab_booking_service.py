"""Lab booking on a fixed 20-minute slot grid."""
import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from labx.errors import ValidationError
from labx.models.lab_booking import LabBooking
from labx.services.auth_service import get_user

logger = logging.getLogger(__name__)

FIRST_SLOT = "08:00"
LAST_SLOT = "18:20"
SLOT_INCREMENT_MINUTES = 20
LAB_LOCATIONS = ["Research Lab", "Physics Lab", "Chemistry Lab", "Biology Lab"]


def iterate_time_slots() -> list[str]:
    current = datetime.strptime(FIRST_SLOT, "%H:%M")
    last = datetime.strptime(LAST_SLOT, "%H:%M")
    slots = []
    while current <= last:
        slots.append(current.strftime("%H:%M"))
        current += timedelta(minutes=SLOT_INCREMENT_MINUTES)
    return slots


TIME_SLOTS = iterate_time_slots()


def resolve_selection(start_index: int, end_index: Optional[int] = None) -> list[str]:
    """Inclusive slot range between two taps, in either order; one tap is one slot."""
    if end_index is None:
        end_index = start_index
    for index in (start_index, end_index):
        if not 0 <= index < len(TIME_SLOTS):
            raise ValidationError(f"Slot index {index} is out of range")
    low, high = min(start_index, end_index), max(start_index, end_index)
    return TIME_SLOTS[low:high + 1]


def book_lab(
    db: Session,
    location: str,
    booking_date: date,
    start_index: int,
    end_index: Optional[int],
    booked_by: str,
) -> LabBooking:
    if location not in LAB_LOCATIONS:
        raise ValidationError(f"Unknown lab location: {location}")
    selected = resolve_selection(start_index, end_index)
    user = get_user(db, booked_by)

    booking = LabBooking(
        location=location,
        booking_date=booking_date,
        start_time=selected[0],
        end_time=selected[-1],
        booked_by=user.user_id,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    logger.info("Booked %s on %s from %s to %s for %s", location, booking_date, booking.start_time, booking.end_time, booked_by)
    return booking


def list_bookings(db: Session, booking_date: Optional[date] = None, location: Optional[str] = None) -> list[LabBooking]:
    query = db.query(LabBooking)
    if booking_date:
        query = query.filter(LabBooking.booking_date == booking_date)
    if location:
        query = query.filter(LabBooking.location == location)
    return query.order_by(LabBooking.booking_date, LabBooking.start_time).all()
