from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.auth.dependencies import AuthContext, get_current_user
from app.db.deps import get_session
from app.db.models import Project
from app.db.repositories.projects import ProjectsRepository
from app.schemas.projects import ProjectCreateRequest, ProjectUpdateRequest
from app.services.projects import default_model_id, derive_project_fields

router = APIRouter(prefix="/projects", tags=["projects"])
logger = logging.getLogger(__name__)


def require_project(session: Session, user_id: str, project_id: UUID) -> Project:
    project = ProjectsRepository(session).get(user_id, project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


def project_to_dict(project: Project) -> dict[str, Any]:
    return {
        "id": str(project.id),
        "userId": project.user_id,
        "name": project.name,
        "description": project.description,
        "status": project.status.value,
        "mode": project.mode.value,
        "modeData": project.mode_data or {},
        "modelId": project.model_id,
        "createdAt": project.created_at.isoformat() if project.created_at else None,
        "updatedAt": project.updated_at.isoformat() if project.updated_at else None,
    }


@router.get("")
def list_projects(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    projects = ProjectsRepository(session).list(auth.user_id)
    return {"projects": [project_to_dict(p) for p in projects]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    name, description, mode_data = derive_project_fields(
        payload.mode,
        name=payload.name,
        description=payload.description,
        agency_type=payload.agencyType,
        target_market=payload.targetMarket,
        services_offered=payload.servicesOffered,
        niche=payload.niche,
        entry_point=payload.entryPoint,
        product_url=payload.productUrl,
        product_description=payload.productDescription,
        product_type=payload.productType,
        prompt=payload.prompt,
    )
    project = ProjectsRepository(session).create(
        auth.user_id,
        name,
        description=description,
        mode=payload.mode,
        mode_data=mode_data,
        model_id=default_model_id(payload.modelId),
    )
    logger.info("Project created", extra={"project_id": str(project.id), "mode": project.mode.value})
    return {"project": project_to_dict(project)}


@router.get("/{project_id}")
def get_project(
    project_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return {"project": project_to_dict(require_project(session, auth.user_id, project_id))}


@router.patch("/{project_id}")
def update_project(
    project_id: UUID,
    payload: ProjectUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    fields: dict[str, Any] = {}
    if payload.name is not None:
        if not payload.name.strip():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Project name cannot be empty")
        fields["name"] = payload.name.strip()
    if payload.description is not None:
        fields["description"] = payload.description
    if payload.status is not None:
        fields["status"] = payload.status
    if payload.modelId is not None:
        fields["model_id"] = default_model_id(payload.modelId)

    project = ProjectsRepository(session).update(auth.user_id, project_id, **fields)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return {"project": project_to_dict(project)}


@router.delete("/{project_id}")
def delete_project(
    project_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not ProjectsRepository(session).delete(auth.user_id, project_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return {"success": True}
