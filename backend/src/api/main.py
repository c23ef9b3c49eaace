"""Application factory wiring: lifespan, middleware, error mapping and routers."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.routers import admin, auth, health, states, students
from core.config import get_settings
from core.rate_limit_config import RateLimitExceededError, RateLimitResult
from core.redis import RedisClient, set_redis_client
from db.session import engine
from models.base import Base
from services.exceptions import ServiceError

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
}


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Create tables if configured, connect Redis, and release both on shutdown."""
    settings = get_settings()

    if settings.create_tables_on_startup:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    redis_client = RedisClient(
        url=settings.redis_url,
        enabled=settings.redis_enabled,
        pool_size=settings.redis_pool_size,
    )
    await redis_client.connect()
    set_redis_client(redis_client)
    try:
        yield
    finally:
        set_redis_client(None)
        await redis_client.close()
        await engine.dispose()


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """X-RateLimit-* headers describing the caller's current window."""
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset),
    }


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp SECURITY_HEADERS on every response (HTTPS only, no sniffing, no framing)."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        return response


class RateLimitHeadersMiddleware(BaseHTTPMiddleware):
    """
    Report the window of a throttled route that let the request through.

    Throttled routes leave their RateLimitResult on request.state.rate_limit;
    denied requests never get here because RateLimitExceededError is turned
    into a 429 by its exception handler.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        response = await call_next(request)
        result = getattr(request.state, "rate_limit", None)
        if result is not None:
            response.headers.update(rate_limit_headers(result))
        return response


settings = get_settings()

app = FastAPI(
    title="TrackMyHomeschool API",
    description="Accounts, one-time-code registration, and homeschool record keeping.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(ServiceError)
async def service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    """Translate expected service failures into their status and client-safe message."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RateLimitExceededError)
async def rate_limit_exception_handler(
    _request: Request, exc: RateLimitExceededError,
) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many code requests. Please try again later."},
        headers={
            "Retry-After": str(exc.result.retry_after),
            **rate_limit_headers(exc.result),
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, _exc: Exception) -> JSONResponse:
    """Log unexpected failures; never echo internal details to the client."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Last added runs first: CORS wraps the header middlewares
app.add_middleware(RateLimitHeadersMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router_module in (health, auth, states, students, admin):
    app.include_router(router_module.router)
