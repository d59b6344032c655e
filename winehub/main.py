"""FastAPI application entry point for WineHub."""

import logging
import os
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from pydantic.alias_generators import to_camel
from slowapi import _rate_limit_exceeded_handler
from slowapi.middleware import SlowAPIMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from winehub import __version__
from winehub.config import settings
from winehub.database import close_db, init_db

logger = logging.getLogger(__name__)


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-Permitted-Cross-Domain-Policies": "none",
}
HSTS_VALUE = "max-age=31536000; includeSubDomains; preload"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds the fixed security headers, plus HSTS when HTTPS is enforced."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        if settings.enforce_https:
            response.headers["Strict-Transport-Security"] = HSTS_VALUE
        return response


def _is_production() -> bool:
    # Debug mode and test runs are treated as development
    return not settings.debug and not os.getenv("PYTEST_CURRENT_TEST")


def security_problems(production: bool) -> tuple[list[str], list[str]]:
    """Return ``(blocking, advisory)`` findings for the current settings.

    Blocking findings stop startup in production and are only logged
    otherwise. Advisory findings are checked in production only.
    """
    blocking: list[str] = []
    advisory: list[str] = []

    if settings.secret_key_generated:
        blocking.append("WINEHUB_SECRET_KEY is not set, tokens are signed with a throwaway key")
    elif len(settings.secret_key) < 32:
        blocking.append("WINEHUB_SECRET_KEY must be set to at least 32 characters")

    if production:
        if any(host in settings.mongodb_url for host in ("localhost", "127.0.0.1")):
            advisory.append(f"database {settings.mongodb_url} is on the local host")
        if not settings.enforce_https:
            advisory.append("server.enforce_https is off, no HSTS header will be sent")

    return blocking, advisory


def check_security_configuration() -> None:
    """Log configuration findings; raise RuntimeError on blocking ones in production."""
    production = _is_production()
    blocking, advisory = security_problems(production)

    for finding in advisory:
        logger.warning("Security configuration: %s", finding)
    if not blocking:
        return
    if not production:
        for finding in blocking:
            logger.warning("Security configuration (ignored outside production): %s", finding)
        return
    for finding in blocking:
        logger.error("Security configuration: %s", finding)
    raise RuntimeError("Refusing to start: " + "; ".join(blocking))


# ============================================================================
# Error envelope
# ============================================================================


def _error_field(loc: tuple) -> str:
    """Dotted field path without the request location prefix."""
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header", "cookie")]
    return ".".join(parts)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail
    if exc.status_code == 404 and message == "Not Found":
        message = "Route not found"
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [{"field": _error_field(e["loc"]), "message": e["msg"]} for e in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


async def model_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    # Raised when a merged document fails revalidation; locations are model fields
    errors = [
        {"field": ".".join(to_camel(str(p)) for p in e["loc"]), "message": e["msg"]}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"success": False, "message": "Server error"}
    if settings.debug:
        content["error"] = str(exc)
        content["stack"] = "".join(traceback.format_exception(exc))
    return JSONResponse(status_code=500, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error envelope handlers on an application."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, model_validation_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    check_security_configuration()

    settings.upload_dir.mkdir(parents=True, exist_ok=True)

    await init_db()

    yield

    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Content management API for wineries, wines and vintages",
    version=__version__,
    lifespan=lifespan,
)

from winehub.routers import ai, auth, upload, vintages, wineries, wines

app.state.limiter = auth.limiter
register_exception_handlers(app)

# An empty origin list leaves CORS off (same-origin only)
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=600,
    )

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(SlowAPIMiddleware)


@app.get("/api/health", tags=["Health"])
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(
        content={
            "success": True,
            "message": "WineHub API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
        }
    )


app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(wineries.router, prefix="/api/wineries", tags=["Wineries"])
app.include_router(wines.router, prefix="/api/wines", tags=["Wines"])
app.include_router(vintages.router, prefix="/api/vintages", tags=["Vintages"])
app.include_router(upload.router, prefix="/api/upload", tags=["Uploads"])
app.include_router(ai.router, prefix="/api/ai", tags=["AI"])

# Serve uploaded files - mounted after routes to avoid conflicts
app.mount(
    "/uploads",
    StaticFiles(directory=str(settings.upload_dir), check_dir=False),
    name="uploads",
)
