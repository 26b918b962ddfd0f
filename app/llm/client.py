from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from openai import OpenAI

from app.config import settings
from app.observability import get_openai_client_class


class LLMClientConfigError(Exception):
    pass


class LLMResponseFormatError(ValueError):
    pass


logger = logging.getLogger(__name__)

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


@dataclass
class LLMGenerationParams:
    model: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: float = 0.7
    response_format: Optional[dict[str, Any]] = None


def normalize_model_id(model: Optional[str]) -> str:
    """Free-tier variants on OpenRouter do not support tool calling, so the suffix is dropped."""
    candidate = (model or "").strip() or settings.LLM_DEFAULT_MODEL
    if candidate.endswith(":free"):
        candidate = candidate[: -len(":free")]
    return candidate


def extract_json_block(text: str) -> Any:
    """
    Parse a JSON payload out of a model reply.

    Models often wrap JSON in ```json fences or add a sentence before it; we try
    the fenced block first, then the outermost object/array in the text.
    """
    if not text or not text.strip():
        raise LLMResponseFormatError("Model returned an empty response.")
    candidates: list[str] = []
    fenced = _JSON_FENCE_RE.search(text)
    if fenced:
        candidates.append(fenced.group(1).strip())
    candidates.append(text.strip())
    for opener, closer in (("{", "}"), ("[", "]")):
        start = text.find(opener)
        end = text.rfind(closer)
        if start != -1 and end > start:
            candidates.append(text[start : end + 1])
    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    raise LLMResponseFormatError("Model response did not contain valid JSON.")


class LLMClient:
    """
    Thin wrapper over the OpenRouter chat-completions API (OpenAI compatible).
    Every model, text or vision, is addressed by its OpenRouter id, e.g.
    `anthropic/claude-3.5-sonnet`.
    """

    def __init__(self, default_model: Optional[str] = None) -> None:
        self.default_model = normalize_model_id(default_model)
        self._client: Optional[OpenAI] = None

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.OPENROUTER_API_KEY)

    def _ensure_client(self) -> OpenAI:
        if self._client is not None:
            return self._client
        if not settings.OPENROUTER_API_KEY:
            raise LLMClientConfigError("OPENROUTER_API_KEY not configured")
        client_cls = get_openai_client_class()
        self._client = client_cls(
            api_key=settings.OPENROUTER_API_KEY,
            base_url=settings.OPENROUTER_BASE_URL,
            timeout=settings.LLM_REQUEST_TIMEOUT,
            max_retries=0,
            default_headers={
                "HTTP-Referer": settings.SITE_URL,
                "X-Title": settings.OPENROUTER_APP_TITLE,
            },
        )
        return self._client

    def _resolve_model(self, params: Optional[LLMGenerationParams]) -> str:
        if params and params.model:
            return normalize_model_id(params.model)
        return self.default_model

    def _completion_kwargs(self, model: str, params: Optional[LLMGenerationParams]) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"model": model}
        if params:
            kwargs["temperature"] = params.temperature
            if params.max_tokens:
                kwargs["max_tokens"] = params.max_tokens
            if params.response_format:
                kwargs["response_format"] = params.response_format
        return kwargs

    def generate_text(
        self,
        prompt: str,
        params: Optional[LLMGenerationParams] = None,
        *,
        system: Optional[str] = None,
    ) -> str:
        client = self._ensure_client()
        model = self._resolve_model(params)
        messages: list[dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        logger.debug("LLM text request", extra={"model": model, "prompt_chars": len(prompt)})
        response = client.chat.completions.create(messages=messages, **self._completion_kwargs(model, params))
        return (response.choices[0].message.content or "").strip()

    def generate_json(
        self,
        prompt: str,
        params: Optional[LLMGenerationParams] = None,
        *,
        system: Optional[str] = None,
    ) -> Any:
        return extract_json_block(self.generate_text(prompt, params, system=system))

    def describe_image(
        self,
        prompt: str,
        image_url: str,
        params: Optional[LLMGenerationParams] = None,
    ) -> str:
        """`image_url` may be an https URL or a `data:<mime>;base64,...` URL."""
        client = self._ensure_client()
        model = self._resolve_model(params)
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ],
            }
        ]
        response = client.chat.completions.create(messages=messages, **self._completion_kwargs(model, params))
        return (response.choices[0].message.content or "").strip()

    def generate_image(self, prompt: str, params: Optional[LLMGenerationParams] = None) -> Optional[str]:
        """Return the first image URL (usually a data URL) produced by an image-capable model."""
        client = self._ensure_client()
        model = self._resolve_model(params)
        response = client.chat.completions.create(
            messages=[{"role": "user", "content": prompt}],
            extra_body={"modalities": ["image", "text"]},
            **self._completion_kwargs(model, params),
        )
        message = response.choices[0].message
        images = getattr(message, "images", None) or (message.model_extra or {}).get("images") or []
        for image in images:
            url = (image.get("image_url") or {}).get("url") if isinstance(image, dict) else None
            if url:
                return url
        return None

    def chat(
        self,
        messages: list[dict[str, Any]],
        *,
        tools: Optional[list[dict[str, Any]]] = None,
        params: Optional[LLMGenerationParams] = None,
    ) -> tuple[Any, Optional[str]]:
        """Single chat-completions round; returns the assistant message (with any tool calls) and finish reason."""
        client = self._ensure_client()
        model = self._resolve_model(params)
        kwargs = self._completion_kwargs(model, params)
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        response = client.chat.completions.create(messages=messages, **kwargs)
        choice = response.choices[0]
        return choice.message, choice.finish_reason


def list_openrouter_models() -> list[dict[str, Any]]:
    """Models that support tool calling, shaped for the model picker."""
    headers = {
        "HTTP-Referer": settings.SITE_URL,
        "X-Title": settings.OPENROUTER_APP_TITLE,
    }
    if settings.OPENROUTER_API_KEY:
        headers["Authorization"] = f"Bearer {settings.OPENROUTER_API_KEY}"
    resp = httpx.get(f"{settings.OPENROUTER_BASE_URL.rstrip('/')}/models", headers=headers, timeout=30)
    resp.raise_for_status()
    payload = resp.json()

    models: list[dict[str, Any]] = []
    for model in payload.get("data") or []:
        if "tools" not in (model.get("supported_parameters") or []):
            continue
        pricing = model.get("pricing") or {}
        top_provider = model.get("top_provider") or {}
        models.append(
            {
                "id": model["id"],
                "name": model.get("name") or model["id"],
                "description": model.get("description") or "",
                "contextLength": model.get("context_length"),
                "maxTokens": model.get("max_completion_tokens") or top_provider.get("max_completion_tokens"),
                "pricing": {
                    "prompt": float(pricing.get("prompt") or 0),
                    "completion": float(pricing.get("completion") or 0),
                },
                "provider": model["id"].split("/")[0],
            }
        )
    models.sort(key=lambda item: (item["provider"], item["name"]))
    return models
