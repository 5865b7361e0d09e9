"""Pydantic schemas for Users (sign-up, sign-in, profile)."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class SignUpRequest(BaseModel):
    first_name: str
    last_name: str
    email: str
    password: str
    confirm_password: str
    is_staff: bool = False
    class_name: str = ""
    register_number: str = ""


class SignInRequest(BaseModel):
    email: str
    password: str


class VerifyEmailRequest(BaseModel):
    token: str


class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    class_name: Optional[str] = None
    register_number: Optional[str] = None


class UserOut(BaseModel):
    user_id: str
    first_name: str
    last_name: str
    email: str
    class_name: str
    register_number: str
    email_verified: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class StaffOut(BaseModel):
    name: str
    email: str
