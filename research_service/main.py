import time
import logging
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, settings as default_settings
from .infrastructure.db import Database
from .infrastructure.metrics import (
    metrics_endpoint,
    http_requests_total,
    http_request_duration_seconds
)
from .infrastructure.security import FirebaseTokenVerifier
from .interfaces.http.errors import PersistenceFailure, persistence_failure_handler
from .interfaces.http.routers import auth as auth_router
from .interfaces.http.routers import discussions as discussions_router
from .interfaces.http.routers import research as research_router
from .interfaces.http.routers import users as users_router

VERSION = "0.1.0"

logger = structlog.get_logger()


def configure_logging(level_name: str) -> None:
    log_level = getattr(logging, level_name.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        # loggers re-read the config, so each app instance applies its own LOG_LEVEL
        cache_logger_on_first_use=False,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting research service", version=VERSION)
    app.state.database.connect()
    yield
    close = getattr(app.state.verifier, "close", None)
    if close is not None:
        close()
    app.state.database.dispose()
    logger.info("Research service stopped")


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    verifier=None,
) -> FastAPI:
    """Build the application with its database and token verifier.

    Both collaborators are created from settings unless given; the lifespan
    connects the database on startup and releases both on shutdown.
    """
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Research Service", version=VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database or Database(settings.DATABASE_URL)
    app.state.verifier = verifier or FirebaseTokenVerifier.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def observe_request(request: Request, call_next):
        start_time = time.time()
        method = request.method
        path = request.url.path

        response = await call_next(request)

        if response.headers.get("content-type", "").startswith("application/json"):
            response.headers["content-type"] = "application/json; charset=utf-8"

        duration = time.time() - start_time
        status_code = response.status_code
        http_requests_total.labels(method=method, endpoint=path, status=status_code).inc()
        http_request_duration_seconds.labels(method=method, endpoint=path).observe(duration)

        logger.info(
            "http_request",
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=round(duration * 1000, 2)
        )

        return response

    app.add_exception_handler(PersistenceFailure, persistence_failure_handler)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/metrics")
    def metrics():
        """Prometheus metrics endpoint"""
        return metrics_endpoint()

    app.include_router(auth_router.router)
    app.include_router(users_router.router)
    app.include_router(research_router.router)
    app.include_router(discussions_router.router)
    return app


def run() -> None:
    uvicorn.run(
        "research_service.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=default_settings.PORT,
        log_level=default_settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
