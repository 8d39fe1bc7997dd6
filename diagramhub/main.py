"""diagramhub ASGI application: routers, middleware and lifecycle."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import __version__
from .api import (
    documents_router,
    files_router,
    shares_router,
    versions_router,
    workspace_documents_router,
    workspaces_router,
)
from .core.config import ConfigurationError, DEFAULT_JWT_SECRET, Environment, settings
from .core.logging_config import redact, setup_logging
from .database import DATABASE_URL, engine, get_db, init_db
from .exceptions import DiagramHubError
from .middleware.exception_handler import diagramhub_exception_handler, request_validation_handler
from .middleware.request_context import RequestContextMiddleware
from .repositories import WorkspaceRepository
from .storage import create_storage

setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)

_started_at = time.monotonic()


def _check_startup() -> None:
    """Refuse to start on unsafe production config or an unreachable database.

    Exits the process with status 1 so the supervisor reports a failed start
    instead of a server answering 500s.
    """
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical("Refusing to start: %s", e)
        raise SystemExit(1) from e

    if settings.auth_mode == "header":
        logger.warning(
            "AUTH_MODE=header trusts X-User-ID as sent; "
            "run only behind a gateway that sets it"
        )
    elif settings.environment == Environment.DEVELOPMENT and settings.jwt_secret_key == DEFAULT_JWT_SECRET:
        logger.warning("JWT_SECRET_KEY is the built-in default; generate one with: openssl rand -hex 32")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.critical("Database unreachable at %s: %s", redact(DATABASE_URL), e)
        raise SystemExit(1) from e


@asynccontextmanager
async def lifespan(app: FastAPI):
    _check_startup()
    init_db()
    app.state.storage = create_storage(settings.storage)
    logger.info(
        "diagramhub started",
        extra={
            "environment": settings.environment.value,
            "database": DATABASE_URL.split(":", 1)[0],
            "auth_mode": settings.auth_mode,
            "storage": settings.storage.driver,
        },
    )
    yield
    logger.info("diagramhub stopped")


app = FastAPI(
    title="diagramhub API",
    description=(
        "Workspaces of versioned Mermaid diagrams and markdown documents, "
        "with per-document sharing and pluggable file storage (local, SFTP, S3).\n\n"
        "**Authentication:** `Bearer` token (AUTH_MODE=jwt) or `X-User-ID` from a "
        "trusted gateway (AUTH_MODE=header). Shared documents also accept an "
        "`X-Share-Token` header or `share_token` query parameter."
    ),
    version=__version__,
    lifespan=lifespan,
)

# Starlette runs the last-added middleware outermost.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-Share-Token", "X-Request-ID"],
    expose_headers=["X-Request-ID", "X-Response-Time", "Retry-After"],
)
app.add_middleware(RequestContextMiddleware)

app.add_exception_handler(DiagramHubError, diagramhub_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

for router in (
    workspaces_router,
    workspace_documents_router,
    documents_router,
    versions_router,
    shares_router,
    files_router,
):
    app.include_router(router)


@app.get("/")
def root():
    return {"name": "diagramhub API", "version": __version__, "status": "running"}


@app.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)):
    """Liveness plus a database probe.

    A failing database reports ``degraded`` with HTTP 200 so probes keep
    distinguishing "process up" from "process gone".
    """
    try:
        workspace_count = WorkspaceRepository(db).count_active()
        db_status = "ok"
    except SQLAlchemyError:
        logger.warning("Health check database probe failed", exc_info=True)
        workspace_count = 0
        db_status = "error"

    storage = getattr(request.app.state, "storage", None)
    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "db": db_status,
        "storage": storage.driver if storage is not None else settings.storage.driver,
        "uptime_seconds": round(time.monotonic() - _started_at),
        "version": __version__,
        "workspace_count": workspace_count,
    }
