# app/core/content.py

"""
Lifecycle of a shared vault.

A record is either live or gone. Reads discover the terminal conditions
(expired, views used up, one-time view consumed) and remove the record as
part of the same call, so the viewer that exhausts a vault still gets the
content exactly once.

Two simultaneous final views of a ``max_views`` vault may both succeed before
either deletion lands: each call works from its own snapshot and the last
write wins. No cross-request lock is taken.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import MAX_UPLOAD_BYTES
from app.core.errors import (
    ExpiredError,
    NotFoundError,
    StorageFailure,
    ValidationError,
)
from app.core.expiry import compute_expires_at, utcnow
from app.core.forms import MAX_VIEWS_LIMIT, ContentDraft
from app.core.links import LinkBuilder
from app.core.policy import AccessRequest, check_manage_access, check_view_access
from app.core.security import generate_share_id, hash_password, issue_delete_token
from app.models.content import Content, ContentKind
from app.models.user import User
from app.services.file_store import FileStore

logger = logging.getLogger(__name__)

SHARE_ID_ATTEMPTS = 5

# Documents, images, archives and plain text
ALLOWED_EXTENSIONS = {
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".odt", ".ods", ".odp", ".rtf", ".csv",
    ".txt", ".md", ".json", ".log",
    ".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp",
    ".zip", ".tar", ".gz", ".tgz", ".7z", ".rar",
}
ALLOWED_MIME_PREFIXES = ("image/", "text/")
ALLOWED_MIME_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "application/vnd.oasis.opendocument.text",
    "application/vnd.oasis.opendocument.spreadsheet",
    "application/vnd.oasis.opendocument.presentation",
    "application/rtf",
    "application/json",
    "application/zip",
    "application/x-zip-compressed",
    "application/x-tar",
    "application/gzip",
    "application/x-gzip",
    "application/x-7z-compressed",
    "application/vnd.rar",
    "application/x-rar-compressed",
    # Browsers fall back to this when they do not know the type
    "application/octet-stream",
}
BLOCKED_MIME_TYPES = {"image/svg+xml", "text/html", "text/javascript"}


@dataclass
class FileUpload:
    filename: str
    mime_type: Optional[str]
    stream: BinaryIO


@dataclass
class FileDownload:
    path: Path
    filename: str
    mime_type: Optional[str]
    storage_ref: str
    # True when the record is already gone and the bytes must go after sending
    discard_after: bool = False


# ---------- HELPERS ----------

def check_file_admission(filename: str, mime_type: Optional[str]) -> None:
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError(f"File type not allowed: {ext or 'no extension'}")

    mime = (mime_type or "application/octet-stream").split(";")[0].strip().lower()
    if mime in BLOCKED_MIME_TYPES:
        raise ValidationError(f"File type not allowed: {mime}")
    if mime in ALLOWED_MIME_TYPES or mime.startswith(ALLOWED_MIME_PREFIXES):
        return
    raise ValidationError(f"File type not allowed: {mime}")


def _new_share_id(db: Session) -> str:
    for _ in range(SHARE_ID_ATTEMPTS):
        candidate = generate_share_id()
        if db.get(Content, candidate) is None:
            return candidate
    raise StorageFailure("Could not allocate a share id")


def _load(db: Session, content_id: str) -> Content:
    record = db.get(Content, content_id)
    if record is None:
        raise NotFoundError()
    return record


def _destroy(db: Session, store: FileStore, record: Content, keep_file: bool = False) -> None:
    storage_ref = record.storage_ref if record.is_file else None
    db.delete(record)
    db.commit()
    if storage_ref and not keep_file:
        store.discard(storage_ref)


def _ensure_live(db: Session, store: FileStore, record: Content, now: datetime) -> None:
    """Expired records are reclaimed on discovery instead of waiting for the sweep."""
    if record.is_expired(now):
        _destroy(db, store, record)
        raise ExpiredError()


def _payload(record: Content, links: Optional[LinkBuilder] = None) -> dict:
    body = {
        "success": True,
        "type": record.kind.value,
        "expiresAt": record.expires_at.isoformat(),
        "viewCount": record.view_count,
        "maxViews": record.max_views,
        "oneTimeView": record.one_time_view,
    }
    if record.is_file:
        body.update({
            "fileName": record.original_name,
            "fileSize": record.byte_size,
            "mimeType": record.mime_type,
            "downloadUrl": links.download_url(record.id) if links else f"/api/download/{record.id}",
        })
    else:
        body["content"] = record.text
    return body


def _is_terminal_access(record: Content) -> bool:
    return bool(record.one_time_view or (record.max_views and record.view_count >= record.max_views))


def _settle(db: Session, store: FileStore, record: Content, keep_file: bool = False) -> bool:
    """Persist a counted access. Returns True when it was the last one and the record is gone."""
    if _is_terminal_access(record):
        _destroy(db, store, record, keep_file=keep_file)
        return True
    db.commit()
    return False


def _file_download(store: FileStore, record: Content) -> FileDownload:
    return FileDownload(
        path=store.path_for(record.storage_ref),
        filename=record.original_name or record.storage_ref,
        mime_type=record.mime_type,
        storage_ref=record.storage_ref,
    )


def _load_file(db: Session, store: FileStore, content_id: str, now: datetime) -> Content:
    record = _load(db, content_id)
    _ensure_live(db, store, record, now)
    if not record.is_file:
        raise NotFoundError("File not found or expired")
    return record


# ---------- OPERATIONS ----------

def create_content(
    db: Session,
    store: FileStore,
    draft: ContentDraft,
    owner: Optional[User],
    upload: Optional[FileUpload] = None,
    now: Optional[datetime] = None,
) -> Content:
    now = now or utcnow()

    if draft.kind == ContentKind.TEXT:
        if not draft.text:
            raise ValidationError("Content is required for text uploads")
        if upload is not None:
            raise ValidationError("Text uploads cannot carry a file")
    elif upload is None or not upload.filename:
        raise ValidationError("File is required for file uploads")

    expires_at = compute_expires_at(now, draft.expiry_minutes, draft.expires_at)
    if draft.max_views is not None and not 0 < draft.max_views <= MAX_VIEWS_LIMIT:
        raise ValidationError("maxViews must be a positive number")

    record = Content(
        id=_new_share_id(db),
        kind=draft.kind,
        created_at=now,
        expires_at=expires_at,
        view_count=0,
        max_views=draft.max_views,
        one_time_view=draft.one_time_view,
        password_hash=hash_password(draft.password) if draft.password else None,
        delete_token=issue_delete_token(),
        owner_id=owner.id if owner is not None else None,
        allowed_identities=list(draft.allowed_identities),
    )

    if draft.kind == ContentKind.TEXT:
        record.text = draft.text
    else:
        check_file_admission(upload.filename, upload.mime_type)
        stored = store.save(upload.stream, upload.filename, MAX_UPLOAD_BYTES)
        record.storage_ref = stored.ref
        record.original_name = os.path.basename(upload.filename)
        record.byte_size = stored.size
        record.mime_type = upload.mime_type or "application/octet-stream"

    db.add(record)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to persist vault")
        if record.storage_ref:
            store.discard(record.storage_ref)
        raise StorageFailure("Upload failed")

    logger.info("Created %s vault %s expiring %s", record.kind.value, record.id, expires_at.isoformat())
    return record


def view_content(
    db: Session,
    store: FileStore,
    content_id: str,
    request: AccessRequest,
    links: Optional[LinkBuilder] = None,
    now: Optional[datetime] = None,
) -> dict:
    now = now or utcnow()
    record = _load(db, content_id)
    _ensure_live(db, store, record, now)
    check_view_access(record, request)

    record.view_count += 1
    body = _payload(record, links)
    if _settle(db, store, record):
        logger.info("Vault %s consumed after %d view(s)", content_id, body["viewCount"])
    return body


def download_content(
    db: Session,
    store: FileStore,
    content_id: str,
    request: AccessRequest,
    now: Optional[datetime] = None,
) -> FileDownload:
    now = now or utcnow()
    record = _load_file(db, store, content_id, now)
    check_view_access(record, request)

    if not store.exists(record.storage_ref):
        raise NotFoundError("File not found or expired")

    record.view_count += 1
    download = _file_download(store, record)
    # The bytes outlive the record until the response has been sent
    download.discard_after = _settle(db, store, record, keep_file=True)
    return download


def preview_for_delete(
    db: Session,
    store: FileStore,
    content_id: str,
    token: Optional[str],
    requester: Optional[User],
    links: Optional[LinkBuilder] = None,
    now: Optional[datetime] = None,
) -> dict:
    """Owner's look at a vault before deleting it; does not count as a view."""
    now = now or utcnow()
    record = _load(db, content_id)
    _ensure_live(db, store, record, now)
    check_manage_access(record, token, requester)
    return _payload(record, links)


def download_for_delete(
    db: Session,
    store: FileStore,
    content_id: str,
    token: Optional[str],
    requester: Optional[User],
    now: Optional[datetime] = None,
) -> FileDownload:
    now = now or utcnow()
    record = _load_file(db, store, content_id, now)
    check_manage_access(record, token, requester)
    if not store.exists(record.storage_ref):
        raise NotFoundError("File not found or expired")
    return _file_download(store, record)


def delete_content(
    db: Session,
    store: FileStore,
    content_id: str,
    token: Optional[str],
    requester: Optional[User],
    now: Optional[datetime] = None,
) -> None:
    now = now or utcnow()
    record = _load(db, content_id)
    _ensure_live(db, store, record, now)
    check_manage_access(record, token, requester)
    _destroy(db, store, record)
    logger.info("Vault %s deleted by its owner", content_id)


def summarize(record: Content, links: LinkBuilder) -> dict:
    summary = {
        "uniqueId": record.id,
        "type": record.kind.value,
        "shareUrl": links.share_url(record.id),
        "deleteUrl": links.delete_url(record.id, record.delete_token) if record.delete_token else None,
        "deleteToken": record.delete_token,
        "createdAt": record.created_at.isoformat(),
        "expiresAt": record.expires_at.isoformat(),
        "viewCount": record.view_count,
        "maxViews": record.max_views,
        "oneTimeView": record.one_time_view,
        "hasPassword": bool(record.password_hash),
        "restricted": bool(record.allowed_identities),
        "allowedEmails": list(record.allowed_identities or []),
    }
    if record.is_file:
        summary["fileName"] = record.original_name
        summary["fileSize"] = record.byte_size
    return summary


def list_owned(
    db: Session,
    identity: User,
    links: LinkBuilder,
    now: Optional[datetime] = None,
) -> List[dict]:
    now = now or utcnow()
    records = (
        db.query(Content)
        .filter(Content.owner_id == identity.id, Content.expires_at > now)
        .order_by(Content.created_at.desc())
        .all()
    )
    return [summarize(r, links) for r in records]
