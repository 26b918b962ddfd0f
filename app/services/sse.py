from __future__ import annotations

import asyncio
import json
import logging
import threading
from collections.abc import AsyncIterator, Callable, Iterator
from typing import Any

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

SSEEvent = tuple[str, dict[str, Any]]

_DISCONNECT_POLL_SECONDS = 0.5
_DONE = object()


class GenerationCancelled(Exception):
    pass


class CancellationToken:
    """Set when the SSE client goes away; pipelines check it between stages."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise GenerationCancelled()


def format_sse(event: str, data: dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data, default=str, separators=(',', ':'))}\n\n"


def describe_generation_error(error: BaseException | str) -> str:
    """Map a failure to the short message shown in the generation UI."""
    if isinstance(error, SQLAlchemyError):
        return "Database error. Check connection and retry."
    message = str(error) or error.__class__.__name__
    lowered = message.lower()
    if "429" in message:
        return "AI rate limit exceeded. Wait 1-2 minutes and retry."
    if "timeout" in lowered or "timed out" in lowered or "ETIMEDOUT" in message:
        return "Connection timeout. Try again or generate without analyzing the URL."
    if (
        "ENOTFOUND" in message
        or "404" in message
        or "name or service not known" in lowered
        or "nodename nor servname" in lowered
        or "getaddrinfo" in lowered
    ):
        return "Website not found. Verify the URL is correct."
    if "certificate" in lowered or "ssl" in lowered:
        return "SSL certificate error. Source website may have security issues."
    if "database" in lowered or "supabase" in lowered:
        return "Database error. Check connection and retry."
    return message[:100]


async def stream_pipeline(
    request: Request,
    pipeline: Callable[[CancellationToken], Iterator[SSEEvent]],
    *,
    name: str,
) -> AsyncIterator[str]:
    """
    Run a blocking event pipeline in a worker thread and relay its events as SSE frames.

    The client connection is polled while waiting for the next event; when it
    drops, the pipeline's token is cancelled so it stops before its next stage
    and persists nothing further.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()
    token = CancellationToken()

    def _emit(item: Any) -> None:
        try:
            loop.call_soon_threadsafe(queue.put_nowait, item)
        except RuntimeError:
            # Loop already closed: the response is gone.
            token.cancel()

    def _run() -> None:
        try:
            for item in pipeline(token):
                if token.cancelled:
                    break
                _emit(item)
        except GenerationCancelled:
            logger.info("SSE pipeline cancelled", extra={"pipeline": name})
        except Exception as exc:  # noqa: BLE001
            logger.exception("SSE pipeline failed", extra={"pipeline": name})
            _emit(("error", {"stage": "error", "error": describe_generation_error(exc)}))
        finally:
            _emit(_DONE)

    worker = loop.run_in_executor(None, _run)
    try:
        while True:
            try:
                item = await asyncio.wait_for(queue.get(), timeout=_DISCONNECT_POLL_SECONDS)
            except asyncio.TimeoutError:
                if await request.is_disconnected():
                    logger.info("SSE client disconnected", extra={"pipeline": name})
                    token.cancel()
                    break
                continue
            if item is _DONE:
                break
            event, data = item
            yield format_sse(event, data)
    finally:
        token.cancel()
        if worker.done() and not worker.cancelled() and worker.exception() is not None:
            logger.error("SSE worker raised", extra={"pipeline": name}, exc_info=worker.exception())
