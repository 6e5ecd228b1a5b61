"""FastAPI application wiring for the user service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import redis
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.routes import router as api_router
from .config import Settings, get_settings
from .domain.service import AccountService
from .infrastructure.cache import SessionCache
from .infrastructure.events import RedisStreamPublisher
from .infrastructure.wallet import WalletClient
from .logging_config import configure_logging
from .repository import AccountRepository
from .security.passwords import PasswordHasher
from .security.rate_limiter import SlidingWindowRateLimiter
from .security.tokens import TokenIssuer

logger = logging.getLogger(__name__)

settings = get_settings()


def build_account_service(
    settings: Settings,
    repository,
    redis_client: redis.Redis,
    tokens: TokenIssuer,
    wallet: WalletClient,
) -> AccountService:
    """Assemble the account service from already-opened infrastructure handles."""
    return AccountService(
        repository,
        hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        tokens=tokens,
        cache=SessionCache(redis_client, ttl_seconds=settings.session_cache_ttl_seconds),
        publisher=RedisStreamPublisher(
            redis_client,
            stream=settings.events_stream,
            maxlen=settings.events_stream_maxlen,
            attempts=settings.events_publish_attempts,
        ),
        wallet=wallet,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, Redis, wallet client) for the app lifecycle."""
    pool = ConnectionPool(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        open=False,
    )
    pool.open()
    repository = AccountRepository(pool)
    if settings.db_auto_migrate:
        repository.ensure_schema()

    # redis-py connects lazily; an unreachable server only degrades cache and publish
    redis_client = redis.from_url(settings.redis_url, socket_timeout=2, socket_connect_timeout=2)
    tokens = TokenIssuer.from_settings(settings)
    wallet = WalletClient(
        base_url=settings.wallet_service_url,
        token_factory=lambda: tokens.issue_service_token(settings.service_name),
        enabled=settings.wallet_service_enabled,
        timeout_seconds=settings.wallet_service_timeout_seconds,
    )

    app.state.pool = pool
    app.state.token_issuer = tokens
    app.state.account_service = build_account_service(settings, repository, redis_client, tokens, wallet)
    logger.info("%s %s started", settings.app_name, settings.version)
    try:
        yield
    finally:
        logger.info("shutting down %s", settings.app_name)
        wallet.close()
        redis_client.close()
        pool.close()
        pool.wait_close()


def install_exception_handlers(app: FastAPI) -> None:
    """Render every error with the ``{success, message}`` envelope."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            message = "Route not found"
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"][1:]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Validation failed", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Internal server error"},
        )


def create_app(*, with_lifespan: bool = True) -> FastAPI:
    """Build the FastAPI application.

    Tests pass ``with_lifespan=False`` and populate ``app.state`` with fakes.
    """
    configure_logging(settings.log_level)
    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan if with_lifespan else None,
    )
    app.state.rate_limiter = SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.cors_origins.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    install_exception_handlers(app)

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        """Return a minimal liveness indicator used by orchestration systems."""
        return {
            "status": "OK",
            "service": settings.app_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(api_router)
    return app


app = create_app()
