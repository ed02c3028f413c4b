# This project was developed with assistance from AI tools.
"""FastAPI application entry point."""

import logging
import uuid
from contextlib import asynccontextmanager

from db import DatabaseService
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .admin import setup_admin
from .core.config import settings
from .routes import (
    admin,
    admin_users,
    applications,
    audit,
    auth,
    health,
    legal,
    payments,
    photos,
)
from .schemas.error import ErrorResponse
from .services.identity import IdentityAdminClient
from .services.lifecycle import LifecycleError
from .services.storage import StorageService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    logging.getLogger("dvsubmit").setLevel(settings.LOG_LEVEL.upper())
    app.state.db_service = DatabaseService(settings.DATABASE_URL)
    app.state.storage = StorageService.from_settings(settings)
    app.state.identity = IdentityAdminClient(
        settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY,
    )
    if not app.state.identity.enabled:
        logger.warning("SUPABASE_SERVICE_ROLE_KEY not set; role changes will not sync to the identity provider")
    yield
    await app.state.db_service.dispose()


app = FastAPI(
    title="DVSubmit API",
    description="DV lottery application intake, payment verification and submission relay",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

_HTTP_STATUS_TITLES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    413: "Payload Too Large",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}

_HTTP_STATUS_CODES: dict[int, str] = {
    400: "INVALID_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    413: "INVALID_REQUEST",
    422: "VALIDATION_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id", str(uuid.uuid4()))


def _build_error(status_code: int, code: str, detail: str, request: Request) -> JSONResponse:
    body = ErrorResponse(
        code=code,
        type="about:blank",
        title=_HTTP_STATUS_TITLES.get(status_code, "Error"),
        status=status_code,
        detail=detail,
        request_id=_request_id(request),
        instance=request.url.path,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Convert HTTPException to RFC 7807 Problem Details."""
    code = _HTTP_STATUS_CODES.get(exc.status_code, "INTERNAL_ERROR")
    response = _build_error(exc.status_code, code, str(exc.detail), request)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Convert Pydantic validation errors to RFC 7807 Problem Details."""
    return _build_error(422, "VALIDATION_ERROR", str(exc.errors()), request)


@app.exception_handler(LifecycleError)
async def lifecycle_exception_handler(request: Request, exc: LifecycleError):
    """Domain rule violations carry their own status and stable code."""
    return _build_error(exc.status_code, exc.code, str(exc), request)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all for unhandled exceptions -- log and return 500."""
    logger.exception("Unhandled exception (path=%s)", request.url.path)
    return _build_error(500, "INTERNAL_ERROR", "An unexpected error occurred.", request)


app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(applications.router, prefix="/api/applications", tags=["applications"])
app.include_router(payments.router, prefix="/api/payments", tags=["payments"])
app.include_router(photos.router, prefix="/api/photos", tags=["photos"])
app.include_router(legal.router, prefix="/api/legal", tags=["legal"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(admin_users.router, prefix="/api/admin", tags=["admin"])
app.include_router(audit.router, prefix="/api/admin/audit-logs", tags=["audit"])

# SQLAdmin dashboard at /admin
setup_admin(app)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint"""
    return {"message": "Welcome to the DVSubmit API"}
