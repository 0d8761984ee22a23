"""
api/main.py -- FastAPI application entry point for userhub.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- adds CORS headers for allowed browser origins
  2. log_requests   -- one access-log line per request with latency

Lifespan handles startup (engine, stores, token service, auth gate, ledger
purge task) and shutdown (cancel purge task, dispose engine) symmetrically.
Every auth collaborator is constructed here from Settings and hung on
app.state; nothing below this module reads configuration on its own.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.errors import Internal
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.users import router as users_router
from auth.errors import CredentialHashError, StoreError
from auth.gate import AuthGate
from auth.revocation import RevocationLedger
from auth.schema import make_engine
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

__version__ = "0.1.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("userhub.api")

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI, interval_seconds: int) -> None:
    """Prune revocation entries whose tokens have expired on their own.

    A failed purge is logged and retried on the next tick; the entries it
    would have removed are harmless until then.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            app.state.ledger.purge_expired()
        except Exception:
            logger.exception("Revocation purge failed")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the auth collaborators on startup and release them on shutdown.

    Startup order matters:
      1. Engine first -- both stores share it.
      2. Stores, then TokenService, then AuthGate (which needs both).
      3. One purge pass, then the periodic purge task.
    """
    logger.info("userhub API starting up")
    engine = make_engine(_settings.database_url)
    app.state.engine = engine
    app.state.user_store = UserStore(engine)
    app.state.ledger = RevocationLedger(engine)
    app.state.token_service = TokenService(
        secret_key=_settings.secret_key,
        issuer=_settings.token_issuer,
        expire_seconds=_settings.token_expire_seconds,
    )
    app.state.auth_gate = AuthGate(app.state.token_service, app.state.ledger)
    app.state.ledger.purge_expired()
    logger.info("Auth initialized (issuer=%s, token_ttl=%ds)", _settings.token_issuer, _settings.token_expire_seconds)
    app.state.purge_task = asyncio.create_task(_purge_loop(app, _settings.revocation_purge_interval_seconds))

    yield

    app.state.purge_task.cancel()
    with suppress(asyncio.CancelledError):
        await app.state.purge_task
    engine.dispose()
    logger.info("userhub API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="userhub API",
    description="User management with bearer-token authentication and token revocation.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


@app.middleware("http")
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
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(users_router, prefix="/api", tags=["Users"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _internal_error_response() -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": Internal().detail})


def _format_validation_error(error: dict) -> str:
    # Input values are left out: they may be passwords.
    loc = ".".join(str(part) for part in error.get("loc", ()))
    return f"{loc}: {error.get('msg', 'invalid')}"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail="; ".join(_format_validation_error(e) for e in exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all HTTP exceptions, api.errors included.

    When detail is already a structured dict, use it directly as the error
    field. Headers (e.g. WWW-Authenticate on 401) are passed through.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=exc.headers,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Database failures (including a ledger outage during the auth check) become a 500."""
    logger.exception("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return _internal_error_response()


@app.exception_handler(CredentialHashError)
async def credential_hash_error_handler(request: Request, exc: CredentialHashError) -> JSONResponse:
    logger.exception("Password hashing failed on %s %s", request.method, request.url.path)
    return _internal_error_response()


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _internal_error_response()


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No authentication.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version and a database probe."""
    db_ok = request.app.state.user_store.ping()
    return HealthResponse(
        version=__version__,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
