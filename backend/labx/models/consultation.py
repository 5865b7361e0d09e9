"""Consultation ORM model: the ``consultations`` collection."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, Integer, Enum as SAEnum, Index
from sqlalchemy.sql import func
from labx.database import Base


class ConsultationStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    denied = "denied"


class Consultation(Base):
    __tablename__ = "consultations"

    consultation_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    teacher_name = Column(String(200), nullable=False)
    teacher_email = Column(String(255), nullable=False)
    student = Column(String(255), nullable=False)  # requesting student's email
    student_uid = Column(String(36), nullable=False, default="")
    scheduled_at = Column(DateTime(timezone=True), nullable=False)  # stored as UTC
    location = Column(String(200), nullable=False, default="")
    comment = Column(String(1000), nullable=False, default="")
    status = Column(SAEnum(ConsultationStatus), nullable=False, default=ConsultationStatus.pending)
    reason = Column(String(1000), nullable=False, default="")
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_consultations_teacher_status", "teacher_email", "status", "scheduled_at"),
        Index("idx_consultations_student_status", "student", "status", "scheduled_at"),
    )

    # UPDATE/DELETE carry "WHERE version = <loaded>"; a concurrent write raises StaleDataError.
    __mapper_args__ = {"version_id_col": version}
