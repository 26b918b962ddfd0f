from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class TemplateCreateRequest(BaseModel):
    project_id: Optional[UUID] = None
    name: Optional[str] = None
    industry: Optional[str] = None
    custom_industry: Optional[str] = None
    screenshot_url: Optional[str] = None
    screenshot_base64: Optional[str] = None
    screenshot_mime_type: Optional[str] = None


class GenerateSitesRequest(BaseModel):
    project_id: Optional[UUID] = None
    lead_ids: List[UUID] = []


class ExtractContentRequest(BaseModel):
    url: Optional[str] = None
