# app/core/forms.py

"""
Coercion of multipart form fields into a typed upload request.

Form values arrive as untyped strings ("true", "5", ""). This is the one place
that turns them into Python values; tolerant fields (``maxViews``,
``expiryMinutes``) fall back quietly, strict ones raise ``ValidationError``.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Mapping, Optional

from app.core.errors import ValidationError
from app.models.content import ContentKind

TRUTHY = {"1", "true", "yes", "on"}
# Largest value the view-count columns hold
MAX_VIEWS_LIMIT = 2**31 - 1
_SEPARATORS = re.compile(r"[,;\s]+")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass
class ContentDraft:
    kind: ContentKind
    text: Optional[str] = None
    expiry_minutes: Optional[int] = None
    expires_at: Optional[datetime] = None
    password: Optional[str] = None
    max_views: Optional[int] = None
    one_time_view: bool = False
    allowed_identities: List[str] = field(default_factory=list)


def parse_kind(value: Optional[str]) -> ContentKind:
    try:
        return ContentKind(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError('Invalid type. Must be "text" or "file"')


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in TRUTHY


def parse_int(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = re.match(r"^\s*([+-]?\d+)", str(value))
    return int(match.group(1)) if match else None


def parse_max_views(value) -> Optional[int]:
    number = parse_int(value)
    if number is None or number <= 0 or number > MAX_VIEWS_LIMIT:
        return None
    return number


def parse_timestamp(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    raw = str(value).strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError("expiresAt must be an ISO-8601 timestamp")


def parse_identities(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple, set)):
        items = [str(v) for v in value]
    else:
        items = _SEPARATORS.split(str(value))

    identities = []
    for item in items:
        email = item.strip().lower()
        if not email:
            continue
        if not _EMAIL.match(email):
            raise ValidationError(f"Not a valid email address: {item.strip()}")
        if email not in identities:
            identities.append(email)
    return identities


def parse_content_form(fields: Mapping[str, object]) -> ContentDraft:
    """Build a ``ContentDraft`` from the raw upload form."""
    password = fields.get("password")
    return ContentDraft(
        kind=parse_kind(fields.get("type")),
        text=fields.get("content") or None,
        expiry_minutes=parse_int(fields.get("expiryMinutes")),
        expires_at=parse_timestamp(fields.get("expiresAt")),
        password=str(password) if password else None,
        max_views=parse_max_views(fields.get("maxViews")),
        one_time_view=parse_bool(fields.get("oneTimeView")),
        allowed_identities=parse_identities(fields.get("allowedEmails")),
    )
