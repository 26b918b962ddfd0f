from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel


class ChatRequest(BaseModel):
    projectId: Optional[UUID] = None
    messages: List[Dict[str, Any]] = []
    modelId: Optional[str] = None


class ToolRunRequest(BaseModel):
    projectId: Optional[UUID] = None
    params: Dict[str, Any] = {}
    modelId: Optional[str] = None
