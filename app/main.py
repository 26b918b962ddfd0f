import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError, SQLAlchemyError

from app.config import settings
from app.db.base import engine
from app.db.repositories.credits import InsufficientCreditsError
from app.llm.client import LLMClientConfigError
from app.observability import initialize_langfuse, shutdown_langfuse
from app.routers import (
    artifacts,
    chat,
    clients,
    content,
    credits,
    leads,
    models,
    preview,
    projects,
    publish,
    stripe_webhooks,
    templates,
    upload,
)
from app.services.media_storage import MediaStorageConfigurationError

logger = logging.getLogger(__name__)

ROUTERS = (
    projects.router,
    artifacts.router,
    chat.router,
    leads.router,
    preview.router,
    clients.router,
    credits.router,
    stripe_webhooks.router,
    publish.router,
    templates.router,
    content.router,
    models.router,
    upload.router,
)

_SCHEMA_MISMATCH_MARKERS = ("undefined column", "does not exist", "no such column", "no such table")


def _is_schema_mismatch(exc: ProgrammingError) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) in {"42703", "42P01"}:
        return True
    message = str(orig or exc).lower()
    return any(marker in message for marker in _SCHEMA_MISMATCH_MARKERS)


@asynccontextmanager
async def _lifespan(_app: FastAPI) -> AsyncIterator[None]:
    initialize_langfuse()
    logger.info("API started", extra={"environment": settings.ENVIRONMENT})
    try:
        yield
    finally:
        shutdown_langfuse()


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(InsufficientCreditsError)
    async def insufficient_credits_handler(_request: Request, exc: InsufficientCreditsError) -> ORJSONResponse:
        return ORJSONResponse(status_code=402, content={"detail": "Insufficient credits", "balance": exc.balance})

    @app.exception_handler(LLMClientConfigError)
    async def llm_config_handler(_request: Request, exc: LLMClientConfigError) -> ORJSONResponse:
        logger.error("LLM provider not configured", extra={"error": str(exc)})
        return ORJSONResponse(status_code=503, content={"detail": "AI provider is not configured."})

    @app.exception_handler(MediaStorageConfigurationError)
    async def media_storage_config_handler(
        _request: Request, exc: MediaStorageConfigurationError
    ) -> ORJSONResponse:
        return ORJSONResponse(status_code=500, content={"detail": str(exc)})

    @app.exception_handler(ProgrammingError)
    async def programming_error_handler(request: Request, exc: ProgrammingError) -> ORJSONResponse:
        logger.exception("Database programming error", extra={"path": request.url.path}, exc_info=exc)
        if _is_schema_mismatch(exc):
            return ORJSONResponse(
                status_code=503,
                content={"detail": "Database schema is out of date. Run `alembic upgrade head` and redeploy."},
            )
        return ORJSONResponse(status_code=500, content={"detail": "Database query failed."})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("Unhandled server exception", extra={"path": request.url.path}, exc_info=exc)
        return ORJSONResponse(status_code=500, content={"detail": "Internal server error."})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Anything Business OS API",
        default_response_class=ORJSONResponse,
        lifespan=_lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=sorted(set(settings.BACKEND_CORS_ORIGINS)),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_exception_handlers(app)

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/health/db")
    def health_db():
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.warning("Database health check failed", extra={"error": str(exc)})
            return ORJSONResponse(status_code=503, content={"db": "error"})
        return {"db": "ok"}

    for router in ROUTERS:
        app.include_router(router)
    return app


app = create_app()
