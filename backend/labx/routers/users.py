"""User API routes: sign-up, verification, sign-in and profiles."""
import logging
from typing import Callable

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from labx.database import get_db
from labx.schemas.user import (
    SignInRequest,
    SignUpRequest,
    StaffOut,
    UserOut,
    UserUpdate,
    VerifyEmailRequest,
)
from labx.services import auth_service

logger = logging.getLogger(__name__)
router = APIRouter()


def get_verification_sender() -> Callable[[str, str], None]:
    """Delivers (email, token) out of band; overridden in tests."""
    return auth_service.log_verification


@router.post("/signup", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def sign_up(
    payload: SignUpRequest,
    db: Session = Depends(get_db),
    send_verification: Callable[[str, str], None] = Depends(get_verification_sender),
):
    """Register a staff or student account; it must be verified before sign-in."""
    user = auth_service.sign_up(db=db, **payload.model_dump())
    send_verification(user.email, user.verification_token)
    return user


@router.post("/verify", response_model=UserOut)
def verify_email(payload: VerifyEmailRequest, db: Session = Depends(get_db)):
    return auth_service.verify_email(db, payload.token)


@router.post("/signin", response_model=UserOut)
def sign_in(payload: SignInRequest, db: Session = Depends(get_db)):
    return auth_service.sign_in(db, payload.email, payload.password)


@router.get("/staff", response_model=list[StaffOut])
def list_staff(db: Session = Depends(get_db)):
    """Teachers a student can book a consultation with."""
    return auth_service.list_staff(db)


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, db: Session = Depends(get_db)):
    return auth_service.get_user(db, user_id)


@router.put("/{user_id}", response_model=UserOut)
def update_user(user_id: str, payload: UserUpdate, db: Session = Depends(get_db)):
    """Update profile fields (partial update)."""
    return auth_service.update_profile(db, user_id, payload.model_dump(exclude_unset=True))
