# app/models/user.py

from sqlalchemy import Column, Integer, String, DateTime
from app.core.expiry import utcnow
from app.models.base import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(320), unique=True, nullable=False, index=True)
    password_hash = Column(String(256), nullable=False)

    # Only the SHA-256 digest of the bearer token is kept; one session per account
    session_token_hash = Column(String(64), unique=True, nullable=True, index=True)
    session_expires_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
