"""Pydantic schemas for Consultations."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator

from labx.timeutils import as_utc


class TeacherRef(BaseModel):
    name: str
    email: str


class ConsultationCreate(BaseModel):
    teacher: TeacherRef
    student: str
    student_uid: str = ""
    scheduled_at: datetime  # naive values are school-local wall-clock time
    location: str = ""
    comment: str = ""


class ConsultationEdit(BaseModel):
    requester: str
    scheduled_at: datetime
    comment: str = ""
    reason: str = ""
    version: Optional[int] = None


class ApproveRequest(BaseModel):
    approver: str
    comment: str = ""
    version: Optional[int] = None
    calendar_access_token: Optional[str] = None


class DenyRequest(BaseModel):
    approver: str
    reason: str
    version: Optional[int] = None


class BusyIntervalOut(BaseModel):
    start: datetime
    end: datetime


class ConsultationOut(BaseModel):
    consultation_id: str
    teacher_name: str
    teacher_email: str
    student: str
    student_uid: str
    scheduled_at: datetime
    location: str
    comment: str
    status: str
    reason: str
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("scheduled_at")
    @classmethod
    def _scheduled_at_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class ApprovalOut(BaseModel):
    consultation: ConsultationOut
    calendar_synced: bool = False
    external_busy: list[BusyIntervalOut] = []
