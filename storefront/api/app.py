"""FastAPI application for the Storefront API."""

import os
import uuid
from collections import Counter
from contextlib import asynccontextmanager
from typing import Any, List, Optional, Sequence, Tuple

import sentry_sdk
from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from storefront import __version__
from storefront.api.routes import ROUTERS
from storefront.api.shared.helpers.errors import create_error_response
from storefront.config import get_settings
from storefront.db.session import check_db, close_db, init_db
from storefront.domain.error_codes import ErrorCode, get_error_info
from storefront.domain.errors import ProviderError, StorefrontError
from storefront.http_client import close_clients
from storefront.logging_config import clear_context, get_logger, set_context

logger = get_logger(__name__)

API_PREFIX = "/api"
HEALTH_PATHS = ("/health", "/health/ready", "GET /health", "GET /health/ready")


def _is_production() -> bool:
    return os.getenv("ENVIRONMENT", "development") == "production"


# Initialize Sentry if DSN is configured
def _init_sentry() -> None:
    """Initialize Sentry SDK with FastAPI and SQLAlchemy integrations."""
    sentry_dsn = os.getenv("SENTRY_DSN")
    if not sentry_dsn:
        logger.info("SENTRY_DSN not configured, Sentry error tracking disabled")
        return

    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=os.getenv("ENVIRONMENT", "development"),
        release=os.getenv("RELEASE_VERSION"),
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        profiles_sample_rate=float(os.getenv("SENTRY_PROFILES_SAMPLE_RATE", "0.1")),
        send_default_pii=False,
        traces_sampler=_traces_sampler,
    )
    logger.info("Sentry SDK initialized", extra={"environment": os.getenv("ENVIRONMENT", "development")})


def _traces_sampler(sampling_context: dict[str, Any]) -> float:
    """Skip health check transactions."""
    transaction_name = sampling_context.get("transaction_context", {}).get("name", "")
    if transaction_name in HEALTH_PATHS:
        return 0.0
    return float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1"))


_init_sentry()


CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:3001"
).split(",")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation id to logs, Sentry events and the response."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        # Read back by global_exception_handler, which runs outside this middleware
        request.state.correlation_id = correlation_id

        set_context(correlation_id=correlation_id)
        sentry_sdk.set_tag("correlation_id", correlation_id)

        try:
            response = await call_next(request)
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            clear_context()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Storefront API")
    if get_settings().database.check_on_startup:
        await init_db()
    yield
    logger.info("Shutting down Storefront API")
    await close_clients()
    await close_db()


OPENAPI_TAGS = [
    {
        "name": "admin",
        "description": "Order management, analytics, exports, invoices and review moderation. "
        "Requires an admin bearer token.",
    },
    {
        "name": "checkout",
        "description": "Stripe Checkout sessions, payment confirmation, refunds and invoice downloads.",
    },
    {
        "name": "loyalty",
        "description": "Reward catalog, point balances and redemptions.",
    },
    {
        "name": "newsletter",
        "description": "Newsletter subscriptions and email preferences.",
    },
    {
        "name": "notifications",
        "description": "SMS opt-in and outbound messages.",
    },
    {
        "name": "search",
        "description": "Product search with filters and facets, plus autocomplete.",
    },
    {
        "name": "media",
        "description": "Cloudinary image tagging and organization.",
    },
    {
        "name": "health",
        "description": "Liveness and readiness checks.",
    },
]


# =============================================================================
# Health
# =============================================================================

health_router = APIRouter(tags=["health"])


@health_router.get("/health")
async def health_check():
    """Liveness check."""
    return {"status": "healthy", "version": __version__}


@health_router.get("/health/ready")
async def readiness_check():
    """Readiness check.

    Returns 200 when the database answers, 503 otherwise.
    """
    database_ok = await check_db()
    return JSONResponse(
        status_code=status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if database_ok else "not_ready",
            "checks": {"database": database_ok},
        },
    )


# =============================================================================
# Route table
# =============================================================================

RouteEntry = Tuple[str, str]


def build_route_table(mounts: Sequence[Tuple[str, APIRouter]]) -> List[RouteEntry]:
    """Every (method, path) pair the mounted routers serve.

    Args:
        mounts: (prefix, router) pairs in mount order
    """
    table: List[RouteEntry] = []
    for prefix, router in mounts:
        for route in router.routes:
            if not isinstance(route, APIRoute):
                continue
            for method in sorted(route.methods - {"HEAD"}):
                table.append((method, prefix + route.path))
    return table


def find_duplicate_routes(table: List[RouteEntry]) -> List[RouteEntry]:
    return [entry for entry, count in Counter(table).items() if count > 1]


def create_app(routers: Optional[Sequence[APIRouter]] = None) -> FastAPI:
    """Build the application, failing fast on duplicate routes.

    Args:
        routers: Routers to mount under /api (defaults to ROUTERS)
    """
    mounts = [(API_PREFIX, router) for router in (ROUTERS if routers is None else routers)]
    mounts.append(("", health_router))

    route_table = build_route_table(mounts)
    duplicates = find_duplicate_routes(route_table)
    if duplicates:
        raise RuntimeError(f"Duplicate routes registered: {duplicates}")

    application = FastAPI(
        title="Storefront API",
        description="""
# Storefront API

Backend for the storefront: checkout and payments, order administration,
reviews, loyalty, newsletter, SMS notifications, product search and media
management.

## Authentication

Admin endpoints require a bearer token whose `role` claim is `admin`:

```
Authorization: Bearer <token>
```

## Responses

Successful responses use `{"success": true, "data": ..., "message": ...}`.
Errors use:

```json
{
  "success": false,
  "error": "Human-readable message",
  "error_code": "ERR_ORDER_002",
  "action": "What you can do about it",
  "details": {}
}
```
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    application.add_middleware(CorrelationIdMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for prefix, router in mounts:
        application.include_router(router, prefix=prefix)
    application.state.route_table = route_table

    application.add_exception_handler(StorefrontError, storefront_error_handler)
    application.add_exception_handler(StarletteHTTPException, http_exception_handler)
    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(SQLAlchemyError, database_exception_handler)
    application.add_exception_handler(Exception, global_exception_handler)

    return application


# =============================================================================
# Exception handlers
# =============================================================================

_STATUS_ERROR_CODES = {
    status.HTTP_401_UNAUTHORIZED: ErrorCode.AUTH_INVALID_TOKEN,
    status.HTTP_403_FORBIDDEN: ErrorCode.AUTH_FORBIDDEN,
    status.HTTP_404_NOT_FOUND: ErrorCode.RES_NOT_FOUND,
    status.HTTP_409_CONFLICT: ErrorCode.RES_CONFLICT,
    status.HTTP_429_TOO_MANY_REQUESTS: ErrorCode.LIMIT_RATE_EXCEEDED,
}

_REQUIRED_ERROR_TYPES = frozenset({"missing", "string_too_short", "too_short"})


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    """Render a business error through the error registry."""
    info = get_error_info(exc.error_code)
    status_code = info.status_code
    if isinstance(exc, ProviderError) and exc.status_code:
        status_code = exc.status_code

    log = logger.warning if status_code >= 500 else logger.info
    log(
        f"[{exc.error_code.value}] {exc.message or info.message}",
        extra={"path": request.url.path, "status_code": status_code},
    )
    return JSONResponse(
        status_code=status_code,
        content=create_error_response(exc.error_code, detail=exc.message, details=exc.details),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTPException (and APIError) in the error envelope."""
    if isinstance(exc.detail, dict) and "error_code" in exc.detail:
        content = exc.detail
    else:
        if exc.status_code >= 500:
            error_code = ErrorCode.SYS_INTERNAL_ERROR
        else:
            error_code = _STATUS_ERROR_CODES.get(exc.status_code, ErrorCode.API_BAD_REQUEST)
        content = create_error_response(
            error_code,
            detail=exc.detail if isinstance(exc.detail, str) else None,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request validation failures are 400 with per-field details."""
    errors = exc.errors()
    fields = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]) or None,
            "message": error.get("msg"),
            "type": error.get("type"),
        }
        for error in errors
    ]
    if errors and all(error.get("type") in _REQUIRED_ERROR_TYPES for error in errors):
        error_code = ErrorCode.VAL_REQUIRED_FIELD
    else:
        error_code = ErrorCode.VAL_INVALID_FORMAT

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=create_error_response(error_code, details=fields),
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """A failed database operation is a 500, never a success."""
    sentry_sdk.capture_exception(exc)
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=True)

    details = None if _is_production() else {"exception": str(exc)}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=create_error_response(ErrorCode.SYS_DATABASE_ERROR, details=details),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    correlation_id = getattr(request.state, "correlation_id", None)
    sentry_sdk.capture_exception(exc)
    logger.error(
        f"Unhandled exception: {exc}",
        exc_info=True,
        extra={"correlation_id": correlation_id},
    )

    # Don't expose internal error details in production
    details = None if _is_production() else {"exception": str(exc)}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=create_error_response(ErrorCode.SYS_INTERNAL_ERROR, details=details),
        headers={"X-Correlation-ID": correlation_id} if correlation_id else None,
    )


app = create_app()
ROUTE_TABLE: List[RouteEntry] = app.state.route_table


def custom_openapi() -> dict[str, Any]:
    """Generate the OpenAPI schema with the bearer security scheme."""
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
        tags=app.openapi_tags,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "JWT signed with AUTH_JWT_SECRET. Admin endpoints need role=admin.",
        },
    }
    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi
