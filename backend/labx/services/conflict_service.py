"""Conflict checking for consultation time slots.

A consultation occupies the half-open busy interval
``[scheduled_at, scheduled_at + duration)``. Two approved consultations of the
same teacher must never intersect; touching endpoints are not a conflict.

The internal approved-record check is authoritative. The external free/busy
check only produces a warning signal and never blocks an approval.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from labx.config import settings
from labx.errors import CalendarError
from labx.models.consultation import Consultation, ConsultationStatus
from labx.services.calendar_gateway import BusyInterval, CalendarGateway
from labx.timeutils import as_utc

logger = logging.getLogger(__name__)


def consultation_duration() -> timedelta:
    return timedelta(minutes=settings.CONSULTATION_DURATION_MINUTES)


def busy_interval(start: datetime) -> tuple[datetime, datetime]:
    start = as_utc(start)
    return start, start + consultation_duration()


def intervals_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """Half-open interval intersection."""
    return start1 < end2 and end1 > start2


def _conflict_detail(record: Consultation) -> dict[str, Any]:
    start, end = busy_interval(record.scheduled_at)
    return {
        "consultation_id": record.consultation_id,
        "student": record.student,
        "start": start.isoformat(),
        "end": end.isoformat(),
    }


def find_conflicts(
    db: Session,
    teacher_email: str,
    candidate_start: datetime,
    exclude_id: Optional[str] = None,
) -> list[dict[str, Any]]:
    """Approved consultations of ``teacher_email`` whose busy interval meets the candidate's.

    Always reads from the database so the answer reflects committed state at
    approval time. Teacher emails match case-insensitively.
    """
    cand_start, cand_end = busy_interval(candidate_start)
    # Narrow in SQL by a window one duration wide on each side, decide overlap in Python.
    query = db.query(Consultation).filter(
        func.lower(Consultation.teacher_email) == (teacher_email or "").strip().lower(),
        Consultation.status == ConsultationStatus.approved,
        Consultation.scheduled_at > cand_start - consultation_duration(),
        Consultation.scheduled_at < cand_end,
    )
    if exclude_id:
        query = query.filter(Consultation.consultation_id != exclude_id)

    conflicts = []
    for existing in query.all():
        ex_start, ex_end = busy_interval(existing.scheduled_at)
        if intervals_overlap(cand_start, cand_end, ex_start, ex_end):
            conflicts.append(_conflict_detail(existing))
    return conflicts


def has_conflict(
    db: Session,
    teacher_email: str,
    candidate_start: datetime,
    exclude_id: Optional[str] = None,
) -> bool:
    return bool(find_conflicts(db, teacher_email, candidate_start, exclude_id))


def check_external_calendar(
    gateway: CalendarGateway,
    candidate_start: datetime,
    time_zone: Optional[str] = None,
) -> list[BusyInterval]:
    """Query the teacher's external calendar for the candidate slot.

    Busy blocks are logged as a warning and returned. Calendar failures are
    logged and reported as an empty list.
    """
    time_zone = time_zone or settings.CALENDAR_TIMEZONE
    start, end = busy_interval(candidate_start)
    try:
        busy = gateway.query_free_busy(start, end, time_zone)
    except CalendarError as exc:
        logger.warning("External free/busy check skipped for %s: %s", start.isoformat(), exc)
        return []

    if busy:
        logger.warning(
            "External calendar reports %d busy block(s) overlapping %s..%s",
            len(busy), start.isoformat(), end.isoformat(),
        )
    return busy
