from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel

from app.db.enums import ClientStatusEnum


class PrimaryContact(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    title: Optional[str] = None


class ClientCreateRequest(BaseModel):
    projectId: Optional[UUID] = None
    companyName: Optional[str] = None
    industry: Optional[str] = None
    primaryContact: Optional[PrimaryContact] = None
    website: Optional[str] = None
    status: Optional[ClientStatusEnum] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None


class ClientUpdateRequest(BaseModel):
    projectId: Optional[UUID] = None
    companyName: Optional[str] = None
    industry: Optional[str] = None
    primaryContact: Optional[PrimaryContact] = None
    website: Optional[str] = None
    status: Optional[ClientStatusEnum] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    paymentTerms: Optional[int] = None
    currency: Optional[str] = None


class ClientActivityCreateRequest(BaseModel):
    projectId: Optional[UUID] = None
    type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    userName: Optional[str] = None
