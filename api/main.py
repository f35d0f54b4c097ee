"""
api/main.py -- FastAPI application entry point for the Users API.

Run with:  python main.py
           uvicorn asgi:app --port 8080 --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware     -- adds CORS headers for the frontend dev server
  2. log_requests       -- logs start and completion of every request
  3. SlowAPIMiddleware  -- default limit for any route without its own decorator

Every route here carries @limiter.limit(DEFAULT_LIMIT); SlowAPIMiddleware
skips decorated routes so no request is counted twice.

Lifespan creates the in-memory UserStore on startup and seeds it. There is
nothing to release on shutdown: the store lives only in process memory.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import DEFAULT_LIMIT, limiter
from api.models import Envelope, error_envelope
from api.routes.stats import router as stats_router
from api.routes.users import router as users_router
from core.config import SERVER_PORT, get_settings
from users.store import UserStore

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("usersapi.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the shared store before the first request is served.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. The store is attached to app.state so route handlers reach it
    through request.app.state.user_store and tests can swap it out.
    """
    logger.info("Users API starting up")
    store = UserStore()
    if _settings.seed_users:
        store.seed_defaults()
    app.state.user_store = store
    logger.info("User store initialized (%d users)", store.count())

    yield

    logger.info("Users API shutdown complete (%d users discarded)", app.state.user_store.count())


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Users API",
    description="In-memory CRUD service for user records: list, create, read, update, delete, search and stats.",
    version="1.0.0",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Starlette wraps each new middleware around the ones added before it, so the
# LAST one registered is the outermost. Registration order here is therefore
# SlowAPI, then the request logger, then CORS; a request meets them reversed.
# CORS being outermost puts its headers on every response, 429s included.
# ---------------------------------------------------------------------------

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Purely observational: the response is returned unchanged.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    method = request.method
    path = request.url.path
    logger.info("%s %s - Started", method, path)
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info("%s %s - Completed %d in %.1fms", method, path, response.status_code, ms)
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type"],
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(users_router)
app.include_router(stats_router)


# ---------------------------------------------------------------------------
# Welcome endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state.
# ---------------------------------------------------------------------------


@app.get("/", response_model=Envelope, tags=["Welcome"])
@limiter.limit(DEFAULT_LIMIT)
async def welcome(request: Request) -> Envelope:
    """Return a static greeting confirming the server is up."""
    return Envelope(
        success=True,
        message="Welcome to Users API",
        data=f"Server is running on port {SERVER_PORT}",
    )


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same envelope as successful responses, with
# success=false and no data, so clients parse every reply the same way.
# ---------------------------------------------------------------------------

# Replacement messages for the stock errors Starlette's router raises itself
# (no route matched, or the path matched but not the method).
_ROUTER_MESSAGES: dict[int, str] = {
    404: "Endpoint not found",
    405: "Method not allowed",
}

# Which part of the request failed validation decides the message.
_VALIDATION_MESSAGES: dict[str, str] = {
    "path": "Invalid user ID",
    "query": "Name parameter is required",
    "body": "Invalid JSON format",
}


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 when a client exceeds the default rate limit.

    Retry-After tells clients how many seconds to wait before retrying.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(status_code=429, content=error_envelope("Too many requests."))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 when the path, query string or body fails validation.

    Covers malformed JSON, wrongly typed fields, a non-integer user ID and a
    missing search term. The first error's location picks the message.
    """
    errors = exc.errors()
    location = errors[0]["loc"][0] if errors and errors[0].get("loc") else "body"
    message = _VALIDATION_MESSAGES.get(location, _VALIDATION_MESSAGES["body"])
    logger.debug("Validation failed on %s %s: %s", request.method, request.url.path, errors)
    return JSONResponse(status_code=400, content=error_envelope(message))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return the envelope for HTTP errors raised by routes or by the router.

    Registered on Starlette's base class so it also catches the 404/405 the
    router raises before any route runs. Those carry the bare status phrase
    as detail ("Not Found"), which is replaced with a friendlier message.
    """
    message = str(exc.detail)
    if exc.status_code in _ROUTER_MESSAGES and message == HTTPStatus(exc.status_code).phrase:
        message = _ROUTER_MESSAGES[exc.status_code]
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    The client receives only a generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_envelope("An unexpected error occurred."))
