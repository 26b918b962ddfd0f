from __future__ import annotations

import logging
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.auth.dependencies import AuthContext, get_current_user
from app.db.deps import get_session
from app.db.enums import PublishSourceTypeEnum
from app.db.models import PublishedWebsite
from app.db.repositories.published_websites import PublishedWebsitesRepository
from app.routers.projects import require_project
from app.schemas.publish import PublishRequest, PublishUpdateRequest
from app.services.publishing import (
    DeploymentFailedError,
    PublishSourceError,
    SubdomainTakenError,
    publish_website,
    published_website_to_dict,
    refresh_deployment_status,
    sanitize_subdomain,
    unpublish_website,
)

router = APIRouter(prefix="/publish", tags=["publish"])
logger = logging.getLogger(__name__)


def _require_website(session: Session, user_id: str, website_id: UUID) -> PublishedWebsite:
    website = PublishedWebsitesRepository(session).get(user_id, website_id)
    if not website:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Published website not found")
    return website


@router.post("")
def publish(
    payload: PublishRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not payload.projectId or not payload.sourceType or not payload.subdomain:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields: projectId, sourceType, subdomain",
        )
    subdomain = sanitize_subdomain(payload.subdomain)
    if not subdomain:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid subdomain")
    require_project(session, auth.user_id, payload.projectId)

    source_id = payload.sourceId or payload.leadId
    if payload.sourceType == PublishSourceTypeEnum.project:
        source_id = source_id or str(payload.projectId)
    try:
        website, deployment = publish_website(
            session,
            user_id=auth.user_id,
            project_id=payload.projectId,
            source_type=payload.sourceType,
            source_id=source_id,
            subdomain=subdomain,
            access_level=payload.accessLevel,
        )
    except SubdomainTakenError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except PublishSourceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except DeploymentFailedError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    return {
        "publishedWebsite": published_website_to_dict(website),
        "deployment": deployment.as_dict() if deployment else None,
    }


@router.get("")
def list_published_websites(
    projectId: Optional[UUID] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not projectId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="projectId is required")
    require_project(session, auth.user_id, projectId)
    websites = PublishedWebsitesRepository(session).list(auth.user_id, projectId)
    return {"publishedWebsites": [published_website_to_dict(w) for w in websites]}


@router.get("/{website_id}")
def get_published_website(
    website_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    website = refresh_deployment_status(session, _require_website(session, auth.user_id, website_id))
    return {"publishedWebsite": published_website_to_dict(website)}


@router.patch("/{website_id}")
def update_published_website(
    website_id: UUID,
    payload: PublishUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    website = _require_website(session, auth.user_id, website_id)
    provided = payload.model_dump(exclude_unset=True)
    fields: dict[str, Any] = {}
    if payload.accessLevel is not None:
        fields["access_level"] = payload.accessLevel
    if "customDomain" in provided:
        fields["custom_domain"] = (payload.customDomain or "").strip().lower() or None
    if not fields:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No updatable fields provided")
    website = PublishedWebsitesRepository(session).update(website, **fields)
    return {"publishedWebsite": published_website_to_dict(website)}


@router.delete("/{website_id}")
def delete_published_website(
    website_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    website = _require_website(session, auth.user_id, website_id)
    unpublish_website(session, website)
    logger.info("Published website deleted", extra={"website_id": str(website_id)})
    return {"success": True}
