# app/core/policy.py

"""
Access policy for stored content.

Viewing is checked in a fixed order and the first failure wins:
exhaustion, then the identity allow-list, then the password gate. Expiry is
checked by the caller before any of this runs.
"""

from dataclasses import dataclass
from typing import Optional

from app.core.errors import ForbiddenError, PasswordRequiredError
from app.core.security import secrets_match, verify_password
from app.models.content import Content
from app.models.user import User


@dataclass
class AccessRequest:
    identity: Optional[User] = None
    password: Optional[str] = None


def can_view(record: Content) -> bool:
    if record.max_views and record.view_count >= record.max_views:
        return False
    return True


def is_owner(record: Content, identity: Optional[User]) -> bool:
    return (
        identity is not None
        and record.owner_id is not None
        and record.owner_id == identity.id
    )


def identity_allowed(record: Content, identity: Optional[User]) -> bool:
    allowed = record.allowed_identities or []
    if not allowed:
        return True
    if is_owner(record, identity):
        return True
    return identity is not None and identity.email.lower() in allowed


def check_view_access(record: Content, request: AccessRequest) -> None:
    if not can_view(record):
        raise ForbiddenError("Content is no longer accessible")

    if not identity_allowed(record, request.identity):
        raise ForbiddenError("This vault is restricted to specific accounts")

    if record.password_hash:
        if not request.password:
            raise PasswordRequiredError("Password required")
        if not verify_password(record.password_hash, request.password):
            raise PasswordRequiredError("Incorrect password")


def can_manage_as_owner(record: Content, identity: Optional[User]) -> bool:
    if record.owner_id is None:
        return True
    return is_owner(record, identity)


def check_manage_access(record: Content, token: Optional[str], identity: Optional[User]) -> None:
    """Gate for delete and delete-preview: capability token plus ownership."""
    if not secrets_match(record.delete_token, token):
        raise ForbiddenError("Invalid delete token")

    if can_manage_as_owner(record, identity):
        return
    raise ForbiddenError("Only the owner can manage this vault")
