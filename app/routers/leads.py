from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.auth.dependencies import AuthContext, get_current_user
from app.db.deps import get_session
from app.db.enums import ArtifactTypeEnum, LeadStatusEnum
from app.db.repositories.artifacts import ArtifactsRepository
from app.db.repositories.leads import LeadsRepository
from app.routers.projects import require_project
from app.schemas.leads import LeadCreateRequest, LeadStatusUpdateRequest, LeadWebsiteRequest
from app.services.lead_projection import lead_to_artifact_entry, refresh_leads_projection, remove_lead_website
from app.services.lead_website import run_lead_website_generation
from app.services.sse import stream_pipeline

router = APIRouter(prefix="/leads", tags=["leads"])
logger = logging.getLogger(__name__)

UPDATABLE_STATUSES = {
    LeadStatusEnum.new,
    LeadStatusEnum.contacted,
    LeadStatusEnum.responded,
    LeadStatusEnum.converted,
    LeadStatusEnum.rejected,
}


def _projection_lists_lead(session: Session, project_id: UUID, lead_id: UUID) -> bool:
    data = ArtifactsRepository(session).get_data(project_id, ArtifactTypeEnum.leads) or {}
    return any(entry.get("id") == str(lead_id) for entry in data.get("leads") or [])


@router.get("")
def list_leads(
    projectId: Optional[UUID] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not projectId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="projectId is required")
    require_project(session, auth.user_id, projectId)
    return {"leads": [lead_to_artifact_entry(lead) for lead in LeadsRepository(session).list(projectId)]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_lead(
    payload: LeadCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not payload.project_id or not (payload.company_name or "").strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="project_id and company_name are required"
        )
    require_project(session, auth.user_id, payload.project_id)

    lead = LeadsRepository(session).create(
        payload.project_id,
        payload.company_name.strip(),
        contact_name=payload.contact_name,
        email=payload.email,
        phone=payload.phone,
        website=payload.website,
        industry=payload.industry,
        address=payload.address,
        notes=payload.notes,
        source="manual",
    )
    refresh_leads_projection(session, payload.project_id)
    return {"lead": lead_to_artifact_entry(lead), "success": True}


@router.post("/status")
def update_lead_status(
    payload: LeadStatusUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not payload.projectId or not payload.leadId or not payload.status:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields: projectId, leadId, status"
        )
    try:
        new_status = LeadStatusEnum(payload.status)
    except ValueError:
        new_status = None
    if new_status not in UPDATABLE_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status")
    require_project(session, auth.user_id, payload.projectId)

    lead = LeadsRepository(session).update(payload.projectId, payload.leadId, status=new_status)
    if not lead:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    refresh_leads_projection(session, payload.projectId)
    return {"success": True, "lead": lead_to_artifact_entry(lead)}


@router.delete("/{lead_id}")
def delete_lead(
    lead_id: UUID,
    projectId: Optional[UUID] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not projectId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing projectId query parameter")
    require_project(session, auth.user_id, projectId)

    deleted = LeadsRepository(session).delete(projectId, lead_id)
    if deleted or _projection_lists_lead(session, projectId, lead_id):
        refresh_leads_projection(session, projectId)
    try:
        remove_lead_website(session, projectId, lead_id)
    except Exception:  # noqa: BLE001
        session.rollback()
        logger.exception("Failed to remove lead website", extra={"lead_id": str(lead_id)})
    logger.info("Lead deleted", extra={"lead_id": str(lead_id), "existed": deleted})
    return {"success": True, "leadId": str(lead_id)}


@router.post("/{lead_id}/generate-website")
def generate_lead_website(
    lead_id: UUID,
    request: Request,
    payload: LeadWebsiteRequest,
    auth: AuthContext = Depends(get_current_user),
) -> StreamingResponse:
    def pipeline(token):
        return run_lead_website_generation(
            token,
            user_id=auth.user_id,
            lead_id=lead_id,
            project_id=payload.projectId,
            business_name=payload.businessName,
            industry=payload.industry,
            website_url=payload.websiteUrl,
        )

    return StreamingResponse(
        stream_pipeline(request, pipeline, name="lead_website"),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"},
    )
