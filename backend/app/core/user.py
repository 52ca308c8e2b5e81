# app/core/user.py

import logging
import re
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import AuthError, ConflictError, ValidationError
from app.core.expiry import utcnow
from app.core.security import (
    hash_password,
    hash_token,
    issue_opaque_token,
    verify_password,
)
from app.models.user import User

logger = logging.getLogger(__name__)

SESSION_LIFETIME = timedelta(days=7)
MIN_PASSWORD_LENGTH = 8
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

INVALID_CREDENTIALS = "Invalid email or password"


def normalize_email(email: Optional[str]) -> str:
    return str(email or "").strip().lower()


def _issue_session(db: Session, user: User, now: datetime) -> str:
    """Overwrite any previous session; the raw token leaves this function once."""
    token = issue_opaque_token()
    user.session_token_hash = hash_token(token)
    user.session_expires_at = now + SESSION_LIFETIME
    db.commit()
    return token


def register(db: Session, email: str, password: str, now: Optional[datetime] = None) -> Tuple[str, User]:
    """Create an account and sign it in"""
    now = now or utcnow()
    email = normalize_email(email)
    password = str(password or "")

    if not email or not password:
        raise ValidationError("Email and password are required")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Email address is not valid")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if db.query(User).filter(User.email == email).first():
        raise ConflictError("An account with this email already exists")

    user = User(email=email, password_hash=hash_password(password))
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ConflictError("An account with this email already exists")

    token = _issue_session(db, user, now)
    logger.info("Registered account %s", user.id)
    return token, user


def login(db: Session, email: str, password: str, now: Optional[datetime] = None) -> Tuple[str, User]:
    now = now or utcnow()
    user = db.query(User).filter(User.email == normalize_email(email)).first()

    # Same error for unknown email and wrong password
    if user is None or not verify_password(user.password_hash, password):
        raise AuthError(INVALID_CREDENTIALS)

    return _issue_session(db, user, now), user


def authenticate(db: Session, bearer_token: Optional[str], now: Optional[datetime] = None) -> User:
    if not bearer_token:
        raise AuthError("Authentication required")

    now = now or utcnow()
    user = db.query(User).filter(User.session_token_hash == hash_token(bearer_token)).first()
    if user is None or user.session_expires_at is None or user.session_expires_at <= now:
        raise AuthError("Session expired. Please login again.")
    return user


def logout(db: Session, user: User) -> None:
    user.session_token_hash = None
    user.session_expires_at = None
    db.commit()


def describe_user(user: User) -> dict:
    return {"id": str(user.id), "email": user.email}
