import logging

import httpx
from fastapi import APIRouter, HTTPException, status

from app.llm.client import list_openrouter_models

router = APIRouter(prefix="/models", tags=["models"])
logger = logging.getLogger(__name__)


@router.get("")
def list_models():
    try:
        models = list_openrouter_models()
    except (httpx.HTTPError, ValueError) as exc:
        logger.exception("Failed to fetch OpenRouter models")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch models"
        ) from exc
    return {"models": models}
