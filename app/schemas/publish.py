from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from app.db.enums import PublishAccessLevelEnum, PublishSourceTypeEnum


class PublishRequest(BaseModel):
    projectId: Optional[UUID] = None
    sourceType: Optional[PublishSourceTypeEnum] = None
    sourceId: Optional[str] = None
    leadId: Optional[str] = None
    subdomain: Optional[str] = None
    accessLevel: Optional[PublishAccessLevelEnum] = None


class PublishUpdateRequest(BaseModel):
    accessLevel: Optional[PublishAccessLevelEnum] = None
    customDomain: Optional[str] = None
