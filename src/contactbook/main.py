"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis, hashing pool, DB).
Middleware, exception handlers, and routers are all registered here.

Every error leaves through one of the handlers below, so clients always
get the same envelope: {success: false, message, errors?}.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from contactbook import __version__
from contactbook.api import api_router
from contactbook.config import settings
from contactbook.errors import AppError, ValidationFailed

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. Settings (and the JWT secret check) were already validated
    when contactbook.config was imported.
    """
    logger.info(
        "contactbook.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from contactbook.redis_client import close_redis, init_redis
    try:
        await init_redis()
        logger.info("contactbook.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("contactbook.redis_unavailable", error=str(e))
        # Redis is optional: the app works without rate limiting

    yield

    logger.info("contactbook.shutdown")

    await close_redis()

    from contactbook.auth.password import shutdown_executor
    shutdown_executor()

    from contactbook.db.engine import engine
    await engine.dispose()


# ─── Error envelope ──────────────────────────────────────

_VALIDATION_KINDS = {
    "missing": "required",
    "string_too_short": "length",
    "string_too_long": "length",
    "greater_than_equal": "range",
    "less_than_equal": "range",
}


def _error_response(status_code: int, body: dict, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    body = {"success": False, "message": exc.message}
    if isinstance(exc, ValidationFailed):
        body["errors"] = [e.as_dict() for e in exc.errors]
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _error_response(exc.status_code, body, headers)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": str(err["loc"][-1]) if err.get("loc") else "",
            "kind": _VALIDATION_KINDS.get(err.get("type", ""), "format"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return _error_response(
        400, {"success": False, "message": "Invalid data", "errors": errors}
    )


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    body = {"success": False, "message": str(exc.detail)}
    if exc.status_code == 404 and exc.detail == "Not Found":
        body.update(message="Route not found", path=request.url.path, method=request.method)
    return _error_response(exc.status_code, body, getattr(exc, "headers", None))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("contactbook.unhandled_error", error=str(exc))
    body = {"success": False, "message": "Internal server error"}
    if settings.is_development:
        body["error"] = f"{type(exc).__name__}: {exc}"
    return _error_response(500, body)


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Contactbook API",
        description="Private address books behind account authentication",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → RateLimit → CORS → handler

    from contactbook.middleware.rate_limit import RateLimitMiddleware
    from contactbook.middleware.request_id import RequestIdMiddleware
    from contactbook.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: contactbook.main:app)
app = create_app()
