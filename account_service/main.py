"""FastAPI application wiring for the account service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import boto3
import redis
import uvicorn
from botocore.config import Config as BotoConfig
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.errors import register_exception_handlers
from .api.routes import router as user_router
from .config import Settings, get_settings
from .domain.admin import AccountAdmin
from .domain.identity import IdentityService
from .domain.profile import ProfileManager
from .domain.sessions import SessionIssuer
from .integrations.blob_store import S3BlobStore
from .integrations.mailer import SmtpNotifier
from .repository import AccountRepository
from .security.guard import AuthGuard
from .security.throttle import RedisSlidingWindowThrottle, SlidingWindowThrottle, Throttle
from .security.tokens import TokenCodec

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_throttle(settings: Settings) -> Throttle:
    """Instantiate the configured throttle backend, preferring Redis when requested."""
    if settings.rate_limit_backend == "redis" and settings.redis_url:
        try:
            client = redis.from_url(settings.redis_url)
            client.ping()
        except redis.RedisError as exc:
            logger.warning("redis throttle unavailable, falling back to in-memory: %s", exc)
        else:
            logger.info("throttle configured for redis backend")
            return RedisSlidingWindowThrottle(
                client,
                max_requests=settings.rate_limit_requests,
                window_seconds=settings.rate_limit_window_seconds,
            )

    logger.info("throttle using in-memory backend")
    return SlidingWindowThrottle(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


def install_services(app: FastAPI, repository, blob_store, notifier, settings: Settings) -> None:
    """Construct every service once and publish it on ``app.state`` for the route dependencies."""
    codec = TokenCodec(
        activation_secret=settings.activation_secret,
        session_secret=settings.session_secret,
        issuer=settings.token_issuer,
        activation_ttl_seconds=settings.activation_ttl_seconds,
        session_ttl_seconds=settings.session_ttl_seconds,
    )
    sessions = SessionIssuer(repository, codec)
    app.state.token_codec = codec
    app.state.session_issuer = sessions
    app.state.identity_service = IdentityService(
        repository,
        codec,
        blob_store,
        notifier,
        sessions,
        client_url=settings.client_url,
    )
    app.state.profile_manager = ProfileManager(repository, blob_store)
    app.state.account_admin = AccountAdmin(repository, blob_store)
    app.state.auth_guard = AuthGuard(repository, codec)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, S3 client, mailer) for the app lifecycle."""
    pool = ConnectionPool(settings.database_url, open=False)
    pool.open()
    repository = AccountRepository(pool)
    repository.ensure_schema()

    s3_client = boto3.client(
        "s3",
        region_name=settings.s3_region,
        endpoint_url=settings.s3_endpoint_url or None,
        config=BotoConfig(connect_timeout=5, read_timeout=20, retries={"max_attempts": 1}),
    )
    blob_store = S3BlobStore(
        s3_client,
        bucket=settings.s3_bucket,
        region=settings.s3_region,
        public_base_url=settings.s3_public_base_url,
    )
    notifier = SmtpNotifier(
        host=settings.smtp_host,
        port=settings.smtp_port,
        user=settings.smtp_user,
        password=settings.smtp_password,
        sender=settings.smtp_from,
    )

    app.state.pool = pool
    app.state.throttle = build_throttle(settings)
    install_services(app, repository, blob_store, notifier, settings)
    try:
        yield
    finally:
        pool.close(timeout=10)


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)

register_exception_handlers(app)


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


@app.get("/metrics", tags=["health"])
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(user_router)


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    uvicorn.run(app, host=settings.http_host, port=settings.http_port, log_level=settings.log_level.lower())
