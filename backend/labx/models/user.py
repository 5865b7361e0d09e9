"""User profile ORM model: the ``users`` collection plus sign-in state."""
import uuid
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func
from labx.database import Base

STAFF_CLASS_NAME = "Staff"


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    class_name = Column(String(50), nullable=False)  # "Staff" for staff accounts
    register_number = Column(String(20), nullable=False)
    password_hash = Column(String(255), nullable=False, default="")
    email_verified = Column(Boolean, nullable=False, default=False)
    verification_token = Column(String(64), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_staff(self) -> bool:
        return self.class_name == STAFF_CLASS_NAME

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
