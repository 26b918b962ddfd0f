from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.auth.dependencies import AuthContext, get_current_user
from app.db.deps import get_session
from app.routers.projects import require_project
from app.schemas.templates import GenerateSitesRequest, TemplateCreateRequest
from app.services import templates as templates_service
from app.services.templates import INDUSTRIES, TemplateGenerationError, TemplateNotFoundError

router = APIRouter(prefix="/templates", tags=["templates"])
logger = logging.getLogger(__name__)


def _require_project_id(project_id: Optional[UUID]) -> UUID:
    if not project_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Project ID is required")
    return project_id


@router.post("", status_code=status.HTTP_201_CREATED)
def create_template(
    payload: TemplateCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project_id = _require_project_id(payload.project_id)
    if not payload.industry:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Industry is required")
    if not payload.screenshot_url and not payload.screenshot_base64:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Screenshot is required (URL or base64)"
        )
    require_project(session, auth.user_id, project_id)

    try:
        template = templates_service.create_template(
            session,
            project_id,
            industry=payload.industry,
            name=payload.name,
            custom_industry=payload.custom_industry,
            screenshot_url=payload.screenshot_url,
            screenshot_base64=payload.screenshot_base64,
            screenshot_mime_type=payload.screenshot_mime_type,
        )
    except TemplateGenerationError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return {"template": template, "message": "Template created successfully"}


@router.get("")
def list_templates(
    project_id: Optional[UUID] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project_id = _require_project_id(project_id)
    require_project(session, auth.user_id, project_id)
    return {"templates": templates_service.list_templates(session, project_id), "industries": INDUSTRIES}


@router.get("/{template_id}")
def get_template(
    template_id: str,
    project_id: Optional[UUID] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project_id = _require_project_id(project_id)
    require_project(session, auth.user_id, project_id)
    try:
        return {"template": templates_service.get_template(session, project_id, template_id)}
    except TemplateNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.delete("/{template_id}")
def delete_template(
    template_id: str,
    project_id: Optional[UUID] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project_id = _require_project_id(project_id)
    require_project(session, auth.user_id, project_id)
    try:
        templates_service.delete_template(session, project_id, template_id)
    except TemplateNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {"success": True}


@router.post("/{template_id}/generate-sites")
def generate_sites(
    template_id: str,
    payload: GenerateSitesRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project_id = _require_project_id(payload.project_id)
    if not payload.lead_ids:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="At least one lead ID is required")
    require_project(session, auth.user_id, project_id)
    try:
        sites = templates_service.generate_sites(session, project_id, template_id, payload.lead_ids)
    except TemplateNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    logger.info("Template sites generated", extra={"template_id": template_id, "count": len(sites)})
    return {"success": True, "generated": len(sites), "sites": sites}
