"""Consultation API routes: delegates to consultation_service for every transition."""
import logging
from typing import Callable, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from labx.database import get_db
from labx.schemas.consultation import (
    ApprovalOut,
    ApproveRequest,
    ConsultationCreate,
    ConsultationEdit,
    ConsultationOut,
    DenyRequest,
)
from labx.services import consultation_service
from labx.services.calendar_gateway import build_gateway

logger = logging.getLogger(__name__)
router = APIRouter()


def get_gateway_factory() -> Callable:
    """Builds a calendar gateway from the approver's token; overridden in tests."""
    return build_gateway


@router.post("/", response_model=ConsultationOut, status_code=status.HTTP_201_CREATED)
def create_consultation(payload: ConsultationCreate, db: Session = Depends(get_db)):
    """Student requests a consultation slot; it starts pending."""
    return consultation_service.create_consultation(
        db=db,
        teacher_name=payload.teacher.name,
        teacher_email=payload.teacher.email,
        student=payload.student,
        student_uid=payload.student_uid,
        scheduled_at=payload.scheduled_at,
        location=payload.location,
        comment=payload.comment,
    )


@router.get("/", response_model=list[ConsultationOut])
def list_consultations(
    teacher_email: Optional[str] = Query(None),
    student: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    upcoming: Optional[bool] = Query(None, description="True for future, False for past, omit for both"),
    db: Session = Depends(get_db),
):
    """Consultations of one teacher or one student, ordered by scheduled time."""
    if bool(teacher_email) == bool(student):
        raise HTTPException(status_code=400, detail="Provide exactly one of teacher_email or student")

    if teacher_email:
        records = consultation_service.list_for_teacher(db, teacher_email, status_filter)
    else:
        records = consultation_service.list_for_student(db, student, status_filter)
    if upcoming is not None:
        records = consultation_service.filter_consultations(records, upcoming=upcoming)
    return records


@router.get("/{consultation_id}", response_model=ConsultationOut)
def get_consultation(consultation_id: str, db: Session = Depends(get_db)):
    return consultation_service.get_consultation(db, consultation_id)


@router.put("/{consultation_id}", response_model=ConsultationOut)
def edit_consultation(consultation_id: str, payload: ConsultationEdit, db: Session = Depends(get_db)):
    """Owner edits a pending request (new time/comment plus a reason for the change)."""
    return consultation_service.edit_consultation(
        db=db,
        consultation_id=consultation_id,
        requester=payload.requester,
        scheduled_at=payload.scheduled_at,
        comment=payload.comment,
        reason=payload.reason,
        version=payload.version,
    )


@router.post("/{consultation_id}/approve", response_model=ApprovalOut)
def approve_consultation(
    consultation_id: str,
    payload: ApproveRequest,
    db: Session = Depends(get_db),
    gateway_factory: Callable = Depends(get_gateway_factory),
):
    """Teacher approves; 409 with the conflicting slots if it overlaps an approved one."""
    result = consultation_service.approve_consultation(
        db=db,
        consultation_id=consultation_id,
        approver=payload.approver,
        comment=payload.comment,
        version=payload.version,
        gateway=gateway_factory(payload.calendar_access_token),
    )
    return ApprovalOut(
        consultation=ConsultationOut.model_validate(result.consultation),
        calendar_synced=result.calendar_synced,
        external_busy=[{"start": b.start, "end": b.end} for b in result.external_busy],
    )


@router.post("/{consultation_id}/deny", response_model=ConsultationOut)
def deny_consultation(consultation_id: str, payload: DenyRequest, db: Session = Depends(get_db)):
    return consultation_service.deny_consultation(
        db=db,
        consultation_id=consultation_id,
        approver=payload.approver,
        reason=payload.reason,
        version=payload.version,
    )


@router.delete("/{consultation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_consultation(
    consultation_id: str,
    requester: str = Query(..., description="Email of the student deleting the request"),
    db: Session = Depends(get_db),
):
    consultation_service.delete_consultation(db, consultation_id, requester)
