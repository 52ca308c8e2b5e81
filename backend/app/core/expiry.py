from datetime import datetime, timedelta, timezone
from typing import Optional

from app.core.config import DEFAULT_EXPIRY_MINUTES, MAX_EXPIRY_MINUTES
from app.core.errors import ValidationError


def utcnow() -> datetime:
    """Naive UTC, matching what the DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def compute_expires_at(
    now: datetime,
    expiry_minutes: Optional[int] = None,
    expires_at: Optional[datetime] = None,
) -> datetime:
    """An absolute timestamp wins over a relative duration.

    Either form is capped at ``MAX_EXPIRY_MINUTES`` from ``now``.
    """
    latest = now + timedelta(minutes=MAX_EXPIRY_MINUTES)

    if expires_at is not None:
        expires_at = to_naive_utc(expires_at)
        if expires_at <= now:
            raise ValidationError("Expiry time must be in the future")
        if expires_at > latest:
            raise ValidationError("Expiry is too far in the future")
        return expires_at

    minutes = DEFAULT_EXPIRY_MINUTES if expiry_minutes is None else expiry_minutes
    if minutes <= 0:
        raise ValidationError("Expiry must be a positive number of minutes")
    if minutes > MAX_EXPIRY_MINUTES:
        raise ValidationError("Expiry is too far in the future")
    return now + timedelta(minutes=minutes)
