"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for the LabX consultations backend:
users, consultations, chat_messages, lab_bookings.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

consultation_status = sa.Enum("pending", "approved", "denied", name="consultationstatus")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("class_name", sa.String(50), nullable=False),
        sa.Column("register_number", sa.String(20), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False, server_default=""),
        sa.Column("email_verified", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("verification_token", sa.String(64), nullable=True, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- consultations ---
    op.create_table(
        "consultations",
        sa.Column("consultation_id", sa.String(36), primary_key=True),
        sa.Column("teacher_name", sa.String(200), nullable=False),
        sa.Column("teacher_email", sa.String(255), nullable=False),
        sa.Column("student", sa.String(255), nullable=False),
        sa.Column("student_uid", sa.String(36), nullable=False, server_default=""),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(200), nullable=False, server_default=""),
        sa.Column("comment", sa.String(1000), nullable=False, server_default=""),
        sa.Column("status", consultation_status, nullable=False, server_default="pending"),
        sa.Column("reason", sa.String(1000), nullable=False, server_default=""),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "idx_consultations_teacher_status", "consultations", ["teacher_email", "status", "scheduled_at"],
    )
    op.create_index(
        "idx_consultations_student_status", "consultations", ["student", "status", "scheduled_at"],
    )

    # --- chat_messages ---
    op.create_table(
        "chat_messages",
        sa.Column("message_id", sa.String(36), primary_key=True),
        sa.Column("sender_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("sender_first_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("sender_last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("text", sa.String(2000), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column(
            "reply_to_id", sa.String(36),
            sa.ForeignKey("chat_messages.message_id", ondelete="CASCADE"), nullable=True,
        ),
    )

    # --- lab_bookings ---
    op.create_table(
        "lab_bookings",
        sa.Column("booking_id", sa.String(36), primary_key=True),
        sa.Column("location", sa.String(100), nullable=False),
        sa.Column("booking_date", sa.Date, nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("booked_by", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("lab_bookings")
    op.drop_table("chat_messages")
    op.drop_index("idx_consultations_student_status", table_name="consultations")
    op.drop_index("idx_consultations_teacher_status", table_name="consultations")
    op.drop_table("consultations")
    consultation_status.drop(op.get_bind(), checkfirst=True)
    op.drop_table("users")
