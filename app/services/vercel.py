from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class VercelConfigError(RuntimeError):
    pass


class VercelAPIError(RuntimeError):
    """Raised when a Vercel REST call fails."""


@dataclass
class VercelDeployment:
    id: str
    url: str
    ready_state: str
    project_id: Optional[str] = None
    alias: Optional[list[str]] = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "readyState": self.ready_state,
            "projectId": self.project_id,
            "alias": self.alias or [],
        }


def is_vercel_configured() -> bool:
    return bool(str(settings.VERCEL_TOKEN or "").strip())


def _token() -> str:
    token = str(settings.VERCEL_TOKEN or "").strip()
    if not token:
        raise VercelConfigError("Vercel integration is not configured. Please set VERCEL_TOKEN.")
    return token


def _team_params() -> dict[str, str]:
    return {"teamId": settings.VERCEL_TEAM_ID} if settings.VERCEL_TEAM_ID else {}


def _error_detail(response: httpx.Response) -> str:
    detail = response.text.strip()
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        message = error.get("message") if isinstance(error, dict) else body.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
        if not detail:
            return json.dumps(body, ensure_ascii=True)
    return detail or "<empty response body>"


def _vercel_request(
    *,
    method: str,
    path: str,
    payload: Optional[dict[str, Any]] = None,
    content: Optional[bytes] = None,
    extra_headers: Optional[dict[str, str]] = None,
    allowed_statuses: tuple[int, ...] = (),
) -> Any:
    headers = {"Authorization": f"Bearer {_token()}"}
    if content is None:
        headers["Content-Type"] = "application/json"
    if extra_headers:
        headers.update(extra_headers)
    endpoint = f"{settings.VERCEL_API_BASE_URL.rstrip('/')}/{path.lstrip('/')}"
    try:
        with httpx.Client(timeout=settings.VERCEL_TIMEOUT_SECONDS) as client:
            response = client.request(
                method,
                endpoint,
                params=_team_params(),
                headers=headers,
                json=payload if content is None else None,
                content=content,
            )
    except httpx.HTTPError as exc:
        raise VercelAPIError(f"Vercel API request failed ({method} {path}): {exc}") from exc

    if response.status_code >= 400 and response.status_code not in allowed_statuses:
        raise VercelAPIError(
            f"Vercel API request failed ({method} {path}) with status {response.status_code}: "
            f"{_error_detail(response)}"
        )
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def upload_file(content: str) -> tuple[str, int]:
    """Upload one file body; returns its SHA-1 digest and byte size. An already stored digest (409) is fine."""
    data = content.encode("utf-8")
    digest = hashlib.sha1(data).hexdigest()
    _vercel_request(
        method="POST",
        path="/v2/files",
        content=data,
        extra_headers={
            "Content-Type": "application/octet-stream",
            "x-vercel-digest": digest,
            "Content-Length": str(len(data)),
        },
        allowed_statuses=(409,),
    )
    return digest, len(data)


def _to_deployment(payload: dict[str, Any]) -> VercelDeployment:
    url = payload.get("url") or ""
    return VercelDeployment(
        id=payload.get("id") or "",
        url=url if not url or url.startswith("http") else f"https://{url}",
        ready_state=payload.get("readyState") or "QUEUED",
        project_id=payload.get("projectId"),
        alias=payload.get("alias"),
    )


def deploy_static_site(files: list[dict[str, Any]], name: str) -> VercelDeployment:
    """Upload `files` (`path` + `content`) and create a production deployment for project `name`."""
    uploaded: list[dict[str, Any]] = []
    for file in files:
        digest, size = upload_file(file.get("content") or "")
        uploaded.append({"file": str(file["path"]).lstrip("/"), "sha": digest, "size": size})

    payload = _vercel_request(
        method="POST",
        path="/v13/deployments",
        payload={
            "name": name,
            "files": uploaded,
            "projectSettings": {"framework": None},
            "target": "production",
        },
    )
    if not isinstance(payload, dict):
        raise VercelAPIError("Vercel deployment response was empty.")
    deployment = _to_deployment(payload)
    logger.info(
        "Vercel deployment created",
        extra={"deployment_id": deployment.id, "ready_state": deployment.ready_state, "files": len(uploaded)},
    )
    return deployment


def get_deployment(deployment_id: str) -> VercelDeployment:
    payload = _vercel_request(method="GET", path=f"/v13/deployments/{deployment_id}")
    if not isinstance(payload, dict):
        raise VercelAPIError("Vercel deployment status response was empty.")
    return _to_deployment(payload)


def delete_project(project_id_or_name: str) -> None:
    _vercel_request(method="DELETE", path=f"/v9/projects/{project_id_or_name}", allowed_statuses=(404,))
