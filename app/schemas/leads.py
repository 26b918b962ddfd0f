from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class LeadCreateRequest(BaseModel):
    project_id: Optional[UUID] = None
    company_name: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    industry: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class LeadStatusUpdateRequest(BaseModel):
    projectId: Optional[UUID] = None
    leadId: Optional[UUID] = None
    status: Optional[str] = None


class LeadWebsiteRequest(BaseModel):
    projectId: Optional[UUID] = None
    industry: Optional[str] = None
    businessName: Optional[str] = None
    websiteUrl: Optional[str] = None
