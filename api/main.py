"""
api/main.py -- FastAPI application factories for the products and orders services.

Both services are built by the same _build_app() and share everything in the
auth package: login endpoint, bearer-token gate, error envelope, request
logging, /health and auth-protected docs. They differ only in their record
routes and whether they have a peer:

  create_products_app()  -- /api/products routes, no peer
  create_orders_app()    -- /api/orders routes, peer = products service

Run with:  python main.py serve products --port 8080
           uvicorn --factory api.main:create_orders_app --port 8081

Startup validation: the factories read Settings (core/config.py) before
building anything. A short or missing JWT_SECRET, or an orders service without
PEER_SERVICE_URL, raises ConfigurationError and the process never starts
serving.

Per-process state lives on app.state, created once by the factory and shared
by every request handler:
  settings, accounts, login_limiter, token_issuer, token_validator,
  products | orders, peer

Middleware stack (outermost to innermost):
  1. log_requests           -- one log line per request with latency
  2. TrustedHostMiddleware  -- rejects requests with unexpected Host headers
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.openapi.docs import get_redoc_html, get_swagger_ui_html
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, FieldError, HealthResponse
from api.peer import PeerClient
from api.routes.auth import router as auth_router
from api.routes.orders import router as orders_router
from api.routes.products import router as products_router
from auth.dependencies import get_current_principal
from auth.limiter import LoginRateLimiter
from auth.store import DEFAULT_ACCOUNTS, AccountStore
from auth.tokens import TokenIssuer, TokenValidator
from core.config import Settings, get_settings
from core.errors import ConfigurationError, ServiceError
from records.models import SEED_ORDERS, SEED_PRODUCTS
from records.store import RecordStore

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("meshauth.api")

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log startup, and close the peer connection pool on shutdown.

    All state is built eagerly by the factory so configuration errors surface
    before the server binds. Only teardown needs the lifespan hook.
    """
    logger.info("%s starting up", app.title)
    peer: Optional[PeerClient] = app.state.peer
    if peer is not None:
        logger.info("Peer %s service URL configured as: %s", peer.name, peer.base_url)

    yield

    if peer is not None:
        peer.close()
    logger.info("%s shutdown complete", app.title)


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Captures wall-clock time around call_next so every response is logged with
# its latency. Never logs headers -- they carry bearer tokens.
# ---------------------------------------------------------------------------


async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render a ServiceError (400/401/429) into the error envelope.

    401 responses carry the same generic body whatever the reason -- the
    reason was already logged where the error was raised. 429 responses carry
    no Retry-After, so throttled callers learn nothing about the window.
    """
    response = JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(exclude_none=True),
    )
    if exc.status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    response.headers["Cache-Control"] = "no-store"
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with one entry per invalid field, messages passed through verbatim.

    The rejected input values are never echoed back -- a login body holds a
    password.
    """
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        if len(loc) > 1 and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        fields.append(FieldError(field=".".join(loc) or "body", message=err.get("msg", "Invalid value.")))
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error=ErrorDetail(code="validation_error", message="Request validation failed.", fields=fields)
        ).model_dump(exclude_none=True),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for HTTP exceptions (404s, 405s, ...).

    Route handlers raise HTTPException with a {"code", "message"} dict as
    detail. When detail is already a dict, use it directly as the error
    field rather than stringifying it.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(code=f"http_{exc.status_code}", message=str(exc.detail))
        ).model_dump(exclude_none=True),
        headers=exc.headers,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The traceback goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(code="internal_error", message="An unexpected error occurred.")
        ).model_dump(exclude_none=True),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Public and never rate limited. On the orders service it also probes the
# products service; the result is informational only.
# ---------------------------------------------------------------------------


def health(request: Request) -> HealthResponse:
    """Return liveness, current server time, and peer reachability if there is a peer."""
    peer: Optional[PeerClient] = request.app.state.peer
    peer_status = None
    if peer is not None:
        peer_status = "reachable" if peer.probe() else "unreachable"
    return HealthResponse(timestamp=datetime.now(timezone.utc), peer_service=peer_status)


# ---------------------------------------------------------------------------
# Auth-protected API documentation
#
# /docs and /redoc are disabled on the FastAPI() constructor and replaced with
# routes that require a valid bearer token.
# ---------------------------------------------------------------------------


async def docs(request: Request):
    """Swagger UI -- requires authentication."""
    return get_swagger_ui_html(openapi_url="/openapi.json", title=request.app.title)


async def redoc(request: Request):
    """ReDoc UI -- requires authentication."""
    return get_redoc_html(openapi_url="/openapi.json", title=request.app.title)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def _build_app(title: str, description: str, settings: Settings, peer: Optional[PeerClient] = None) -> FastAPI:
    logging.getLogger("meshauth").setLevel(settings.log_level.upper())

    app = FastAPI(
        title=title,
        description=description,
        version=VERSION,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
    )

    # Shared per-process state. Each store guards itself with its own lock.
    app.state.settings = settings
    app.state.accounts = AccountStore.seeded(DEFAULT_ACCOUNTS, rounds=settings.bcrypt_rounds)
    app.state.login_limiter = LoginRateLimiter(
        max_attempts=settings.login_max_attempts,
        window_seconds=settings.login_window_seconds,
    )
    app.state.token_issuer = TokenIssuer.from_settings(settings)
    app.state.token_validator = TokenValidator.from_settings(settings)
    app.state.peer = peer

    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)
    app.middleware("http")(log_requests)

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.add_api_route(
        "/health",
        health,
        methods=["GET"],
        response_model=HealthResponse,
        response_model_exclude_none=True,
        tags=["Health"],
    )
    app.add_api_route("/docs", docs, methods=["GET"], include_in_schema=False, dependencies=[Depends(get_current_principal)])
    app.add_api_route("/redoc", redoc, methods=["GET"], include_in_schema=False, dependencies=[Depends(get_current_principal)])

    app.include_router(auth_router, prefix="/api", tags=["Auth"])
    return app


def create_products_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the products service. Raises ConfigurationError on bad settings."""
    settings = settings or get_settings()
    app = _build_app(
        "Products Service",
        "Product catalogue. Issues and validates bearer tokens shared with the orders service.",
        settings,
    )
    app.state.products = RecordStore(SEED_PRODUCTS)
    app.include_router(products_router, prefix="/api", tags=["Products"])
    return app


def create_orders_app(settings: Optional[Settings] = None, peer: Optional[PeerClient] = None) -> FastAPI:
    """Build the orders service.

    peer defaults to a PeerClient for PEER_SERVICE_URL; tests pass one with a
    pre-mounted transport. Without either, startup fails -- order creation
    cannot verify products without a peer.
    """
    settings = settings or get_settings()
    if peer is None:
        if not settings.peer_service_url:
            raise ConfigurationError("PEER_SERVICE_URL is required by the orders service.")
        peer = PeerClient("products", settings.peer_service_url, timeout=settings.peer_timeout_seconds)
    app = _build_app(
        "Orders Service",
        "Order intake. Verifies products with the products service on the caller's behalf.",
        settings,
        peer=peer,
    )
    app.state.orders = RecordStore(SEED_ORDERS)
    app.include_router(orders_router, prefix="/api", tags=["Orders"])
    return app
