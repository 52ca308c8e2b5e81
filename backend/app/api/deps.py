# app/api/deps.py

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from app.core.config import PUBLIC_BASE_URL, UPLOAD_DIR
from app.core.errors import AuthError
from app.core.links import LinkBuilder
from app.core.user import authenticate
from app.infra.postgres import get_db
from app.models.user import User
from app.services.file_store import FileStore

_file_store = FileStore(UPLOAD_DIR)


def get_file_store() -> FileStore:
    return _file_store


def get_links(request: Request) -> LinkBuilder:
    return LinkBuilder(PUBLIC_BASE_URL or str(request.base_url))


def extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        return ""
    parts = str(authorization).split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        return ""
    return parts[1]


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    return authenticate(db, extract_bearer_token(authorization))


def get_optional_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Identity for policy checks on public links; a bad token counts as anonymous."""
    token = extract_bearer_token(authorization)
    if not token:
        return None
    try:
        return authenticate(db, token)
    except AuthError:
        return None
