# app/api/auth.py

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core import user as identity
from app.core.rate_limit import AUTH_LIMIT, limiter
from app.infra.postgres import get_db
from app.models.user import User

router = APIRouter(prefix="/api/auth")


class CredentialsSchema(BaseModel):
    email: str = ""
    password: str = ""


@router.post("/register", status_code=201)
@limiter.limit(AUTH_LIMIT)
def register_endpoint(request: Request, payload: CredentialsSchema, db: Session = Depends(get_db)):
    token, user = identity.register(db, payload.email, payload.password)
    return {"success": True, "token": token, "user": identity.describe_user(user)}


@router.post("/login")
@limiter.limit(AUTH_LIMIT)
def login_endpoint(request: Request, payload: CredentialsSchema, db: Session = Depends(get_db)):
    token, user = identity.login(db, payload.email, payload.password)
    return {"success": True, "token": token, "user": identity.describe_user(user)}


@router.get("/me")
def whoami(user: User = Depends(get_current_user)):
    return {"success": True, "user": identity.describe_user(user)}


@router.post("/logout")
def logout_endpoint(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    identity.logout(db, user)
    return {"success": True}
