# app/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from app.api import auth, content
from app.api.deps import get_file_store
from app.core.config import CLEANUP_ENABLED, CLEANUP_INTERVAL_SECONDS
from app.core.errors import StorageFailure, VaultError
from app.core.rate_limit import limiter
from app.infra.postgres import db_session, init_db
from app.services.reclamation import ReclamationScheduler
from app.utils.logger import setup_logger

setup_logger()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    scheduler = None
    if CLEANUP_ENABLED:
        scheduler = ReclamationScheduler(db_session, get_file_store(), CLEANUP_INTERVAL_SECONDS)
        scheduler.start()
    yield
    if scheduler:
        scheduler.stop()


app = FastAPI(
    title="Vault Links",
    version="1.0.0",
    description="Ephemeral text and file sharing with expiring, access-controlled links",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(VaultError)
def vault_error_handler(request: Request, exc: VaultError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Storage error on %s %s", request.method, request.url.path, exc_info=exc)
    failure = StorageFailure()
    return JSONResponse(status_code=failure.status_code, content=failure.to_dict())


# Register routers
app.include_router(auth.router, tags=["Auth"])
app.include_router(content.router, tags=["Content"])

@app.get("/health")
def health_check():
    return {"status": "ok"}
