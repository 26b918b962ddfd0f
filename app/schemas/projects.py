from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from app.db.enums import ProjectModeEnum, ProjectStatusEnum


class ProjectCreateRequest(BaseModel):
    mode: ProjectModeEnum = ProjectModeEnum.playground
    name: Optional[str] = None
    description: Optional[str] = None
    modelId: Optional[str] = None
    # agency
    agencyType: Optional[str] = None
    targetMarket: Optional[str] = None
    servicesOffered: Optional[List[str]] = None
    # commerce
    niche: Optional[str] = None
    entryPoint: Optional[str] = None
    productUrl: Optional[str] = None
    productDescription: Optional[str] = None
    productType: Optional[str] = None
    # playground
    prompt: Optional[str] = None


class ProjectUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ProjectStatusEnum] = None
    modelId: Optional[str] = None
