"""Sign-up, email verification, sign-in and profile management.

Staff sign up with a school staff address; students with their cohort
address. Accounts must verify their email before the first sign-in.
"""
import logging
import re
import secrets
from typing import Any

import bcrypt
from sqlalchemy.orm import Session

from labx.config import settings
from labx.errors import AuthorizationError, ConflictError, NotFoundError, StateError, ValidationError
from labx.models.user import STAFF_CLASS_NAME, User

logger = logging.getLogger(__name__)

_EMAIL_SHAPE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PROFILE_FIELDS = ("first_name", "last_name", "class_name", "register_number")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def email_allowed(email: str, is_staff: bool) -> bool:
    """Staff must use the staff domain; students their cohort address."""
    if not _EMAIL_SHAPE.match(email):
        return False
    if is_staff:
        return email.lower().endswith("@" + settings.STAFF_EMAIL_DOMAIN.lower())
    return re.match(settings.STUDENT_EMAIL_PATTERN, email) is not None


def sign_up(
    db: Session,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    confirm_password: str,
    is_staff: bool = False,
    class_name: str = "",
    register_number: str = "",
) -> User:
    """Create an unverified account and its profile.

    The returned user carries ``verification_token``. It never leaves the
    server except through a verification sender such as ``log_verification``.
    """
    email = (email or "").strip().lower()
    if not email or not password or not (first_name or "").strip() or not (last_name or "").strip():
        raise ValidationError("Please fill all required fields")
    if not email_allowed(email, is_staff):
        if is_staff:
            raise ValidationError(f"Staff must use @{settings.STAFF_EMAIL_DOMAIN} email")
        raise ValidationError("Students must use their school email address")
    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    if not is_staff and (not class_name.strip() or not register_number.strip()):
        raise ValidationError("Students must provide a class and register number")

    if db.query(User).filter(User.email == email).first():
        raise ConflictError("An account with this email already exists")

    user = User(
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        email=email,
        class_name=STAFF_CLASS_NAME if is_staff else class_name.strip(),
        register_number=STAFF_CLASS_NAME if is_staff else register_number.strip(),
        password_hash=hash_password(password),
        email_verified=False,
        verification_token=secrets.token_urlsafe(32),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Signed up %s %s (%s)", "staff" if is_staff else "student", user.user_id, email)
    return user


def log_verification(email: str, token: str) -> None:
    """Default verification sender: writes the token to the server log only."""
    logger.info("Verification token for %s: %s", email, token)


def verify_email(db: Session, token: str) -> User:
    user = db.query(User).filter(User.verification_token == token).first() if token else None
    if not user:
        raise NotFoundError("Unknown or already used verification token")
    user.email_verified = True
    user.verification_token = None
    db.commit()
    db.refresh(user)
    logger.info("Verified email for user %s", user.user_id)
    return user


def sign_in(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == (email or "").strip().lower()).first()
    if not user or not verify_password(password or "", user.password_hash):
        raise AuthorizationError("Invalid email or password")
    if not user.email_verified:
        raise StateError("Please verify your email before signing in")
    logger.info("User %s signed in", user.user_id)
    return user


def get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def update_profile(db: Session, user_id: str, updates: dict[str, Any]) -> User:
    """Partial profile update; email and credentials are not editable here."""
    user = get_user(db, user_id)
    for field, value in updates.items():
        if field not in _PROFILE_FIELDS or value is None:
            continue
        if not str(value).strip():
            raise ValidationError(f"{field} cannot be blank")
        setattr(user, field, str(value).strip())
    db.commit()
    db.refresh(user)
    logger.info("Updated profile for user %s", user_id)
    return user


def list_staff(db: Session) -> list[dict[str, str]]:
    """Teachers as {name, email} pairs, the shape consultations reference."""
    staff = (
        db.query(User)
        .filter(User.class_name == STAFF_CLASS_NAME)
        .order_by(User.first_name, User.last_name)
        .all()
    )
    return [{"name": user.display_name, "email": user.email} for user in staff]
