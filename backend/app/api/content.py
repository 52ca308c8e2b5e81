# app/api/content.py

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Header, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from starlette.background import BackgroundTask

from app.api.deps import get_current_user, get_file_store, get_links, get_optional_user
from app.core import content as vaults
from app.core.forms import parse_content_form
from app.core.links import LinkBuilder
from app.core.policy import AccessRequest
from app.infra.postgres import get_db
from app.models.user import User
from app.services.file_store import FileStore

router = APIRouter(prefix="/api")


def _file_response(store: FileStore, download: vaults.FileDownload) -> FileResponse:
    background = BackgroundTask(store.discard, download.storage_ref) if download.discard_after else None
    return FileResponse(
        download.path,
        filename=download.filename,
        media_type=download.mime_type or "application/octet-stream",
        background=background,
    )


@router.post("/upload", status_code=201)
def upload_content(
    kind: Optional[str] = Form(None, alias="type"),
    text: Optional[str] = Form(None, alias="content"),
    expiry_minutes: Optional[str] = Form(None, alias="expiryMinutes"),
    expires_at: Optional[str] = Form(None, alias="expiresAt"),
    password: Optional[str] = Form(None),
    max_views: Optional[str] = Form(None, alias="maxViews"),
    one_time_view: Optional[str] = Form(None, alias="oneTimeView"),
    allowed_emails: Optional[str] = Form(None, alias="allowedEmails"),
    file: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    store: FileStore = Depends(get_file_store),
    links: LinkBuilder = Depends(get_links),
):
    draft = parse_content_form({
        "type": kind,
        "content": text,
        "expiryMinutes": expiry_minutes,
        "expiresAt": expires_at,
        "password": password,
        "maxViews": max_views,
        "oneTimeView": one_time_view,
        "allowedEmails": allowed_emails,
    })
    upload = None
    if file is not None and file.filename:
        upload = vaults.FileUpload(filename=file.filename, mime_type=file.content_type, stream=file.file)

    record = vaults.create_content(db, store, draft, user, upload)

    return {
        "success": True,
        "uniqueId": record.id,
        "type": record.kind.value,
        "shareUrl": links.share_url(record.id),
        "deleteUrl": links.delete_url(record.id, record.delete_token),
        "deleteToken": record.delete_token,
        "expiresAt": record.expires_at.isoformat(),
    }


@router.get("/content/{content_id}")
def view_content(
    content_id: str,
    password: Optional[str] = Query(None),
    x_vault_password: Optional[str] = Header(None),
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    store: FileStore = Depends(get_file_store),
    links: LinkBuilder = Depends(get_links),
):
    request = AccessRequest(identity=user, password=x_vault_password or password)
    return vaults.view_content(db, store, content_id, request, links)


@router.get("/download/{content_id}")
def download_content(
    content_id: str,
    password: Optional[str] = Query(None),
    x_vault_password: Optional[str] = Header(None),
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    store: FileStore = Depends(get_file_store),
):
    request = AccessRequest(identity=user, password=x_vault_password or password)
    return _file_response(store, vaults.download_content(db, store, content_id, request))


@router.get("/delete-preview/{content_id}/{delete_token}")
def delete_preview(
    content_id: str,
    delete_token: str,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    store: FileStore = Depends(get_file_store),
    links: LinkBuilder = Depends(get_links),
):
    return vaults.preview_for_delete(db, store, content_id, delete_token, user, links)


@router.get("/delete-download/{content_id}/{delete_token}")
def delete_download(
    content_id: str,
    delete_token: str,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    store: FileStore = Depends(get_file_store),
):
    return _file_response(store, vaults.download_for_delete(db, store, content_id, delete_token, user))


@router.delete("/content/{content_id}")
def delete_content(
    content_id: str,
    token: Optional[str] = Query(None),
    x_delete_token: Optional[str] = Header(None),
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    store: FileStore = Depends(get_file_store),
):
    vaults.delete_content(db, store, content_id, x_delete_token or token, user)
    return {"success": True, "message": "Content deleted successfully"}


@router.get("/my-links")
def my_links(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    links: LinkBuilder = Depends(get_links),
):
    return {"success": True, "links": vaults.list_owned(db, user, links)}
