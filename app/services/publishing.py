from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.db.enums import ArtifactTypeEnum, PublishSourceTypeEnum, PublishStatusEnum
from app.db.models import PublishedWebsite
from app.db.repositories.artifacts import ArtifactsRepository
from app.db.repositories.published_websites import PublishedWebsitesRepository
from app.services import vercel
from app.services.lead_projection import find_lead_website

logger = logging.getLogger(__name__)

MAX_SUBDOMAIN_LENGTH = 63
SUBDOMAIN_TAKEN_MESSAGE = "This subdomain is already taken. Please choose a different one."

_INVALID_CHARS_RE = re.compile(r"[^a-z0-9-]")
_HYPHEN_RUN_RE = re.compile(r"-+")


class SubdomainTakenError(Exception):
    pass


class PublishSourceError(ValueError):
    """The requested source has nothing deployable."""


class DeploymentFailedError(RuntimeError):
    pass


def sanitize_subdomain(value: str) -> str:
    cleaned = _INVALID_CHARS_RE.sub("-", (value or "").lower())
    cleaned = _HYPHEN_RUN_RE.sub("-", cleaned).strip("-")
    return cleaned[:MAX_SUBDOMAIN_LENGTH].strip("-")


def deployment_url(subdomain: str, base_domain: Optional[str] = None) -> str:
    return f"https://{subdomain}.{base_domain or settings.PUBLISH_BASE_DOMAIN}"


def _deployment_status(ready_state: str) -> PublishStatusEnum:
    if ready_state == "READY":
        return PublishStatusEnum.published
    if ready_state in ("ERROR", "CANCELED"):
        return PublishStatusEnum.failed
    return PublishStatusEnum.deploying


def resolve_source_files(
    session: Session,
    project_id: UUID,
    source_type: PublishSourceTypeEnum,
    source_id: Optional[str],
) -> list[dict[str, Any]]:
    artifacts = ArtifactsRepository(session)
    if source_type == PublishSourceTypeEnum.project:
        data = artifacts.get_data(project_id, ArtifactTypeEnum.website_code) or {}
        files = data.get("files") or []
    else:
        if not source_id:
            raise PublishSourceError("leadId is required for lead website publishing")
        site = find_lead_website(artifacts.get_data(project_id, ArtifactTypeEnum.lead_website), source_id)
        files = (site or {}).get("files") or []
    deployable = [
        {"path": f["path"], "content": f.get("content") or ""}
        for f in files
        if isinstance(f, dict) and f.get("path")
    ]
    if not deployable:
        raise PublishSourceError("No files to deploy")
    return deployable


def publish_website(
    session: Session,
    *,
    user_id: str,
    project_id: UUID,
    source_type: PublishSourceTypeEnum,
    source_id: Optional[str],
    subdomain: str,
    access_level: Optional[str] = None,
) -> tuple[PublishedWebsite, Optional[vercel.VercelDeployment]]:
    """
    Deploy a project or lead site to Vercel under `subdomain`.

    The row is inserted as `deploying` before any upload. A taken subdomain
    raises `SubdomainTakenError` without inserting anything. A Vercel failure
    marks the row `failed` and raises `DeploymentFailedError`.
    """
    repo = PublishedWebsitesRepository(session)
    if repo.get_by_subdomain(subdomain) is not None:
        raise SubdomainTakenError(SUBDOMAIN_TAKEN_MESSAGE)

    files = resolve_source_files(session, project_id, source_type, source_id)
    base_domain = settings.PUBLISH_BASE_DOMAIN
    fields: dict[str, Any] = {
        "user_id": user_id,
        "project_id": project_id,
        "source_type": source_type,
        "source_id": source_id,
        "subdomain": subdomain,
        "base_domain": base_domain,
        "deployment_url": deployment_url(subdomain, base_domain),
        "status": PublishStatusEnum.deploying,
    }
    if access_level:
        fields["access_level"] = access_level
    try:
        website = repo.create(**fields)
    except IntegrityError as exc:
        session.rollback()
        raise SubdomainTakenError(SUBDOMAIN_TAKEN_MESSAGE) from exc

    try:
        deployment = vercel.deploy_static_site(files, subdomain)
    except (vercel.VercelAPIError, vercel.VercelConfigError) as exc:
        logger.exception("Vercel deployment failed", extra={"website_id": str(website.id)})
        repo.update(website, status=PublishStatusEnum.failed, error_message=str(exc))
        raise DeploymentFailedError(f"Deployment failed: {exc}") from exc

    status = _deployment_status(deployment.ready_state)
    website = repo.update(
        website,
        vercel_deployment_id=deployment.id,
        vercel_project_id=deployment.project_id,
        deployment_url=deployment.url or website.deployment_url,
        status=status,
        published_at=datetime.now(timezone.utc) if status == PublishStatusEnum.published else None,
    )
    return website, deployment


def refresh_deployment_status(session: Session, website: PublishedWebsite) -> PublishedWebsite:
    """Poll Vercel for a site still deploying; a polling failure leaves the row unchanged."""
    if website.status != PublishStatusEnum.deploying or not website.vercel_deployment_id:
        return website
    try:
        deployment = vercel.get_deployment(website.vercel_deployment_id)
    except (vercel.VercelAPIError, vercel.VercelConfigError):
        logger.exception("Failed to poll Vercel deployment", extra={"website_id": str(website.id)})
        return website

    status = _deployment_status(deployment.ready_state)
    if status == website.status:
        return website
    fields: dict[str, Any] = {"status": status}
    if status == PublishStatusEnum.published:
        fields["published_at"] = datetime.now(timezone.utc)
    else:
        fields["error_message"] = f"Deployment {deployment.ready_state.lower()}"
    return PublishedWebsitesRepository(session).update(website, **fields)


def unpublish_website(session: Session, website: PublishedWebsite) -> None:
    target = website.vercel_project_id or website.subdomain
    try:
        vercel.delete_project(target)
    except (vercel.VercelAPIError, vercel.VercelConfigError):
        logger.exception("Failed to delete Vercel project", extra={"website_id": str(website.id)})
    PublishedWebsitesRepository(session).delete(website)


def published_website_to_dict(website: PublishedWebsite) -> dict[str, Any]:
    return {
        "id": str(website.id),
        "projectId": str(website.project_id),
        "sourceType": website.source_type.value,
        "sourceId": website.source_id,
        "subdomain": website.subdomain,
        "baseDomain": website.base_domain,
        "customDomain": website.custom_domain,
        "vercelProjectId": website.vercel_project_id,
        "vercelDeploymentId": website.vercel_deployment_id,
        "deploymentUrl": website.deployment_url,
        "status": website.status.value,
        "accessLevel": website.access_level.value,
        "errorMessage": website.error_message,
        "publishedAt": website.published_at.isoformat() if website.published_at else None,
        "createdAt": website.created_at.isoformat() if website.created_at else None,
        "updatedAt": website.updated_at.isoformat() if website.updated_at else None,
    }
