"""Consultation lifecycle service: enforces the record invariants.

Responsibilities:
- Status state machine: pending -> approved | denied, both terminal for staff
- Authorization: only the consultation's teacher approves/denies, only the
  owning student edits or deletes
- Conflict resolution against the teacher's approved consultations
- Optimistic concurrency via the mapper's version column
- Best-effort calendar sync after a successful approval
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from labx.config import settings
from labx.errors import (
    AuthorizationError,
    CalendarError,
    ConflictError,
    NotFoundError,
    StateError,
    ValidationError,
)
from labx.models.consultation import Consultation, ConsultationStatus
from labx.models.user import STAFF_CLASS_NAME, User
from labx.services import conflict_service
from labx.services.calendar_gateway import BusyInterval, CalendarGateway
from labx.timeutils import as_utc, to_utc

logger = logging.getLogger(__name__)

STATUS_FILTER_ALL = "all"


@dataclass
class ApprovalResult:
    consultation: Consultation
    calendar_synced: bool = False
    external_busy: list[BusyInterval] = field(default_factory=list)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _normalise_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _same_email(a: Optional[str], b: Optional[str]) -> bool:
    return _normalise_email(a) == _normalise_email(b)


def validate_record(record: Consultation) -> None:
    """Raise ValidationError unless the record satisfies its invariants."""
    if _blank(record.teacher_name) or _blank(record.teacher_email):
        raise ValidationError("Consultation requires a teacher name and email")
    if _blank(record.student):
        raise ValidationError("Consultation requires a student")
    if record.scheduled_at is None:
        raise ValidationError("Consultation requires a scheduled time")
    try:
        status = ConsultationStatus(record.status)
    except ValueError:
        raise ValidationError(f"Invalid consultation status: {record.status}")
    if status == ConsultationStatus.denied and _blank(record.reason):
        raise ValidationError("A denied consultation must carry a reason")


def get_consultation(db: Session, consultation_id: str) -> Consultation:
    record = db.query(Consultation).filter(Consultation.consultation_id == consultation_id).first()
    if not record:
        raise NotFoundError("Consultation not found")
    return record


def _check_version(record: Consultation, version: Optional[int]) -> None:
    if version is not None and record.version != version:
        raise ConflictError(
            f"Version mismatch: expected {record.version}, got {version}. Re-fetch and retry."
        )


def _staff_profile(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(
        func.lower(User.email) == _normalise_email(email),
        User.class_name == STAFF_CLASS_NAME,
    ).first()


def _check_approver(db: Session, record: Consultation, approver: str) -> None:
    """The approver must be a staff member and the record's own teacher."""
    if not _same_email(record.teacher_email, approver):
        raise AuthorizationError("Only the consultation's teacher may approve or deny it")
    if _staff_profile(db, approver) is None:
        raise AuthorizationError("Only staff may approve or deny consultations")


def _check_owner(record: Consultation, requester: str) -> None:
    if not _same_email(record.student, requester):
        raise AuthorizationError("Only the student who requested this consultation may change it")


def _require_pending(record: Consultation, action: str) -> None:
    if record.status != ConsultationStatus.pending:
        raise StateError(f"Cannot {action} a consultation that is already {record.status.value}")


def _commit(db: Session, record: Consultation) -> None:
    """Commit a write that is conditional on the version loaded with ``record``."""
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        raise ConflictError("Consultation was modified concurrently. Re-fetch and retry.")
    db.refresh(record)


def create_consultation(
    db: Session,
    teacher_name: str,
    teacher_email: str,
    student: str,
    scheduled_at: Optional[datetime],
    location: str = "",
    comment: str = "",
    student_uid: str = "",
) -> Consultation:
    """Student request: a new pending record with an empty reason.

    Emails are stored lowercased; the teacher must have a staff profile.
    """
    record = Consultation(
        teacher_name=(teacher_name or "").strip(),
        teacher_email=_normalise_email(teacher_email),
        student=_normalise_email(student),
        student_uid=student_uid or "",
        scheduled_at=to_utc(scheduled_at) if scheduled_at is not None else None,
        location=location or "",
        comment=comment or "",
        status=ConsultationStatus.pending,
        reason="",
    )
    validate_record(record)
    if _staff_profile(db, record.teacher_email) is None:
        raise ValidationError(f"{record.teacher_email} is not a staff member")

    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(
        "Consultation %s requested by %s with %s at %s",
        record.consultation_id, record.student, record.teacher_email, record.scheduled_at,
    )
    return record


def edit_consultation(
    db: Session,
    consultation_id: str,
    requester: str,
    scheduled_at: datetime,
    comment: str = "",
    reason: str = "",
    version: Optional[int] = None,
) -> Consultation:
    """Owner edit of a pending request; the status stays pending."""
    record = get_consultation(db, consultation_id)
    _check_owner(record, requester)
    _check_version(record, version)
    _require_pending(record, "edit")
    if scheduled_at is None:
        raise ValidationError("Consultation requires a scheduled time")

    record.scheduled_at = to_utc(scheduled_at)
    record.comment = comment or ""
    record.reason = reason or ""
    record.status = ConsultationStatus.pending
    validate_record(record)

    _commit(db, record)
    logger.info("Consultation %s edited by %s (version %d)", consultation_id, requester, record.version)
    return record


def approve_consultation(
    db: Session,
    consultation_id: str,
    approver: str,
    comment: str = "",
    version: Optional[int] = None,
    gateway: Optional[CalendarGateway] = None,
) -> ApprovalResult:
    """Approve a pending consultation unless it overlaps an approved one.

    The overlap check reads committed state; the write itself is conditional
    on the record's version, so a concurrent change aborts with ConflictError.
    Calendar work is advisory: a busy external slot is only reported, and a
    failed event creation never undoes the approval. The free/busy query runs
    before the overlap read so no network call sits between that read and
    the commit.
    """
    record = get_consultation(db, consultation_id)
    _check_approver(db, record, approver)
    _check_version(record, version)
    _require_pending(record, "approve")

    result = ApprovalResult(consultation=record)
    if gateway is not None:
        result.external_busy = conflict_service.check_external_calendar(gateway, record.scheduled_at)

    conflicts = conflict_service.find_conflicts(
        db, record.teacher_email, record.scheduled_at, exclude_id=record.consultation_id,
    )
    if conflicts:
        logger.info("Approval of %s refused: %d overlapping consultation(s)", consultation_id, len(conflicts))
        raise ConflictError("Time slot conflicts with another approved consultation", conflicts=conflicts)

    record.status = ConsultationStatus.approved
    record.reason = (comment or "").strip()
    _commit(db, record)
    logger.info("Consultation %s approved by %s", consultation_id, approver)

    if gateway is not None:
        result.calendar_synced = _sync_calendar(gateway, record)
    return result


def _sync_calendar(gateway: CalendarGateway, record: Consultation) -> bool:
    start, end = conflict_service.busy_interval(record.scheduled_at)
    try:
        synced = gateway.create_event(
            summary=f"Consultation with {record.student}",
            description=record.comment or "",
            start=start,
            end=end,
            time_zone=settings.CALENDAR_TIMEZONE,
        )
    except CalendarError as exc:
        logger.warning("Calendar sync failed for consultation %s: %s", record.consultation_id, exc)
        return False
    if not synced:
        logger.warning("Calendar sync did not register consultation %s", record.consultation_id)
    return synced


def deny_consultation(
    db: Session,
    consultation_id: str,
    approver: str,
    reason: str,
    version: Optional[int] = None,
) -> Consultation:
    record = get_consultation(db, consultation_id)
    _check_approver(db, record, approver)
    _check_version(record, version)
    if _blank(reason):
        raise ValidationError("A reason is required to deny a consultation")
    _require_pending(record, "deny")

    record.status = ConsultationStatus.denied
    record.reason = reason.strip()
    validate_record(record)

    _commit(db, record)
    logger.info("Consultation %s denied by %s (reason: %s)", consultation_id, approver, record.reason)
    return record


def delete_consultation(db: Session, consultation_id: str, requester: str) -> None:
    """Hard delete, owner only, pending only. Staff never delete."""
    record = get_consultation(db, consultation_id)
    _check_owner(record, requester)
    _require_pending(record, "delete")

    db.delete(record)
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        raise ConflictError("Consultation was modified concurrently. Re-fetch and retry.")
    logger.info("Consultation %s deleted by %s", consultation_id, requester)


def _status_or_none(status: Optional[str]) -> Optional[ConsultationStatus]:
    if status is None or status.strip().lower() == STATUS_FILTER_ALL:
        return None
    try:
        return ConsultationStatus(status.strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid status filter: {status}")


def list_for_teacher(db: Session, teacher_email: str, status: Optional[str] = None) -> list[Consultation]:
    query = db.query(Consultation).filter(Consultation.teacher_email == _normalise_email(teacher_email))
    wanted = _status_or_none(status)
    if wanted is not None:
        query = query.filter(Consultation.status == wanted)
    return query.order_by(Consultation.scheduled_at).all()


def list_for_student(db: Session, student: str, status: Optional[str] = None) -> list[Consultation]:
    query = db.query(Consultation).filter(Consultation.student == _normalise_email(student))
    wanted = _status_or_none(status)
    if wanted is not None:
        query = query.filter(Consultation.status == wanted)
    return query.order_by(Consultation.scheduled_at).all()


def filter_consultations(
    records: Iterable[Consultation],
    status: Optional[str] = None,
    upcoming: bool = True,
    now: Optional[datetime] = None,
) -> list[Consultation]:
    """Upcoming-or-past split plus an optional status filter ("All" keeps every status)."""
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)
    wanted = _status_or_none(status)
    kept = []
    for record in records:
        is_future = as_utc(record.scheduled_at) > now
        if is_future != upcoming:
            continue
        if wanted is not None and record.status != wanted:
            continue
        kept.append(record)
    return kept
