from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from langfuse import Langfuse
from openai import OpenAI as OpenAIClient

from app.config import settings


logger = logging.getLogger(__name__)


class LangfuseConfigError(RuntimeError):
    pass


_langfuse_client: Langfuse | None = None
_langfuse_initialized = False


def langfuse_enabled() -> bool:
    return bool(settings.LANGFUSE_ENABLED)


def _langfuse_host() -> str:
    return settings.LANGFUSE_BASE_URL or settings.LANGFUSE_HOST


def _client_kwargs() -> dict[str, Any]:
    """Validated constructor arguments for the Langfuse client."""
    missing = [
        name for name in ("LANGFUSE_PUBLIC_KEY", "LANGFUSE_SECRET_KEY") if not getattr(settings, name)
    ]
    if missing:
        raise LangfuseConfigError(f"LANGFUSE_ENABLED is true but {', '.join(missing)} not configured.")
    sample_rate = float(settings.LANGFUSE_SAMPLE_RATE)
    if not 0.0 <= sample_rate <= 1.0:
        raise LangfuseConfigError("LANGFUSE_SAMPLE_RATE must be between 0.0 and 1.0.")

    kwargs: dict[str, Any] = {
        "public_key": settings.LANGFUSE_PUBLIC_KEY,
        "secret_key": settings.LANGFUSE_SECRET_KEY,
        "tracing_enabled": True,
        "environment": settings.LANGFUSE_ENVIRONMENT or settings.ENVIRONMENT,
        "release": settings.LANGFUSE_RELEASE,
        "sample_rate": sample_rate,
        "timeout": int(settings.LANGFUSE_TIMEOUT_SECONDS),
        "debug": bool(settings.LANGFUSE_DEBUG),
    }
    host_key = "base_url" if settings.LANGFUSE_BASE_URL else "host"
    kwargs[host_key] = _langfuse_host()
    return kwargs


def _verify_credentials(client: Langfuse) -> None:
    try:
        ok = bool(client.auth_check())
    except Exception as exc:  # noqa: BLE001
        raise LangfuseConfigError(
            "Langfuse auth check failed during initialization. Verify host and project API keys."
        ) from exc
    if not ok:
        raise LangfuseConfigError("Langfuse auth check returned false. Verify the Langfuse API keys.")


def initialize_langfuse() -> None:
    """Create the process-wide client once; tool runs and SSE pipelines trace through it."""
    global _langfuse_client
    global _langfuse_initialized

    if _langfuse_initialized:
        return

    if not langfuse_enabled():
        if bool(settings.LANGFUSE_REQUIRED):
            raise LangfuseConfigError(
                "LANGFUSE_REQUIRED is true but LANGFUSE_ENABLED is false. "
                "Set LANGFUSE_ENABLED=true and configure Langfuse credentials."
            )
        _langfuse_initialized = True
        logger.info("Langfuse tracing disabled")
        return

    client = Langfuse(**_client_kwargs())
    if bool(settings.LANGFUSE_AUTH_CHECK):
        _verify_credentials(client)

    _langfuse_client = client
    _langfuse_initialized = True
    logger.info(
        "Langfuse initialized",
        extra={"host": _langfuse_host(), "sample_rate": settings.LANGFUSE_SAMPLE_RATE},
    )


def get_langfuse_client() -> Langfuse | None:
    initialize_langfuse()
    if not langfuse_enabled():
        return None
    if _langfuse_client is None:
        raise LangfuseConfigError("Langfuse client is not initialized.")
    return _langfuse_client


def shutdown_langfuse() -> None:
    if not _langfuse_initialized or _langfuse_client is None:
        return
    _langfuse_client.shutdown()


def get_openai_client_class() -> type[OpenAIClient]:
    """OpenRouter speaks the OpenAI API; traced calls go through Langfuse's drop-in client."""
    if langfuse_enabled():
        initialize_langfuse()
        from langfuse.openai import OpenAI as LangfuseOpenAI

        return LangfuseOpenAI
    return OpenAIClient


@contextmanager
def start_langfuse_span(
    *,
    name: str,
    input: Any | None = None,
    metadata: dict[str, Any] | None = None,
    user_id: str | None = None,
    session_id: str | None = None,
) -> Iterator[Any | None]:
    """Wrap one tool run or SSE pipeline; the project id is used as the Langfuse session."""
    client = get_langfuse_client()
    if client is None:
        yield None
        return

    with client.start_as_current_span(name=name, input=input, metadata=metadata) as span:
        client.update_current_trace(name=name, user_id=user_id, session_id=session_id, metadata=metadata)
        try:
            yield span
        except Exception as exc:  # noqa: BLE001
            span.update(level="ERROR", status_message=str(exc))
            raise
