from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.auth.dependencies import AuthContext, get_current_user
from app.db.deps import get_session
from app.db.enums import ArtifactTypeEnum
from app.db.models import Artifact
from app.db.repositories.artifacts import ArtifactsRepository, ArtifactUndoUnavailableError
from app.routers.projects import require_project
from app.schemas.artifacts import ArtifactUndoRequest

router = APIRouter(prefix="/artifacts", tags=["artifacts"])


def artifact_to_dict(artifact: Artifact) -> dict[str, Any]:
    return {
        "id": str(artifact.id),
        "project_id": str(artifact.project_id),
        "type": artifact.type.value,
        "data": artifact.data,
        "previous_data": artifact.previous_data,
        "version": artifact.version,
        "created_at": artifact.created_at.isoformat() if artifact.created_at else None,
        "updated_at": artifact.updated_at.isoformat() if artifact.updated_at else None,
    }


def _parse_type(value: Optional[str]) -> ArtifactTypeEnum:
    if not value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing type")
    try:
        return ArtifactTypeEnum(value)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid artifact type") from exc


@router.get("")
def list_artifacts(
    projectId: Optional[UUID] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not projectId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing projectId")
    require_project(session, auth.user_id, projectId)
    return {"artifacts": [artifact_to_dict(a) for a in ArtifactsRepository(session).list(projectId)]}


@router.get("/get")
def get_artifact(
    projectId: Optional[UUID] = Query(default=None),
    type: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not projectId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing projectId")
    artifact_type = _parse_type(type)
    require_project(session, auth.user_id, projectId)
    artifact = ArtifactsRepository(session).get_by_type(projectId, artifact_type)
    return {"artifact": artifact_to_dict(artifact) if artifact else None}


@router.post("/undo")
def undo_artifact(
    payload: ArtifactUndoRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not payload.projectId or not payload.type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields: projectId, type"
        )
    artifact_type = _parse_type(payload.type)
    require_project(session, auth.user_id, payload.projectId)
    try:
        artifact = ArtifactsRepository(session).undo(payload.projectId, artifact_type)
    except ArtifactUndoUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if artifact is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Artifact not found")
    return {"success": True, "artifact": artifact_to_dict(artifact)}
