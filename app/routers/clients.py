from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.auth.dependencies import AuthContext, get_current_user
from app.db.deps import get_session
from app.db.enums import ClientActivityTypeEnum, ClientStatusEnum
from app.db.models import Client, ClientActivity
from app.db.repositories.clients import ClientActivitiesRepository, ClientsRepository
from app.routers.projects import require_project
from app.schemas.clients import ClientActivityCreateRequest, ClientCreateRequest, ClientUpdateRequest

router = APIRouter(prefix="/clients", tags=["clients"])
logger = logging.getLogger(__name__)

_CONTACT_COLUMNS = {
    "name": "primary_contact_name",
    "email": "primary_contact_email",
    "phone": "primary_contact_phone",
    "title": "primary_contact_title",
}


def _money(value: Optional[Decimal]) -> float:
    return float(value or 0)


def client_to_dict(client: Client) -> dict[str, Any]:
    return {
        "id": str(client.id),
        "projectId": str(client.project_id),
        "companyName": client.company_name,
        "industry": client.industry,
        "primaryContact": {
            "name": client.primary_contact_name,
            "email": client.primary_contact_email,
            "phone": client.primary_contact_phone,
            "title": client.primary_contact_title,
        },
        "website": client.website,
        "status": client.status.value,
        "tags": list(client.tags or []),
        "notes": client.notes,
        "source": client.source,
        "paymentTerms": client.payment_terms,
        "currency": client.currency,
        "financialMetrics": {
            "totalRevenue": _money(client.total_revenue),
            "outstandingBalance": _money(client.outstanding_balance),
            "lifetimeValue": _money(client.lifetime_value),
        },
        "createdAt": client.created_at.isoformat() if client.created_at else None,
        "updatedAt": client.updated_at.isoformat() if client.updated_at else None,
    }


def activity_to_dict(activity: ClientActivity) -> dict[str, Any]:
    return {
        "id": str(activity.id),
        "clientId": str(activity.client_id),
        "type": activity.type.value,
        "title": activity.title,
        "description": activity.description,
        "metadata": activity.metadata_ or {},
        "userName": activity.user_name,
        "createdAt": activity.created_at.isoformat() if activity.created_at else None,
    }


def _require_project_id(project_id: Optional[UUID]) -> UUID:
    if not project_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="projectId is required")
    return project_id


def _require_client(session: Session, project_id: UUID, client_id: UUID) -> Client:
    client = ClientsRepository(session).get(project_id, client_id)
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return client


@router.get("")
def list_clients(
    projectId: Optional[UUID] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project_id = _require_project_id(projectId)
    require_project(session, auth.user_id, project_id)
    return {"clients": [client_to_dict(c) for c in ClientsRepository(session).list(project_id)]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_client(
    payload: ClientCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not payload.projectId or not (payload.companyName or "").strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="projectId and companyName are required"
        )
    require_project(session, auth.user_id, payload.projectId)

    contact = payload.primaryContact
    client = ClientsRepository(session).create(
        payload.projectId,
        payload.companyName.strip(),
        industry=payload.industry,
        primary_contact_name=contact.name if contact else None,
        primary_contact_email=contact.email if contact else None,
        primary_contact_phone=contact.phone if contact else None,
        primary_contact_title=contact.title if contact else None,
        website=payload.website,
        status=payload.status or ClientStatusEnum.prospect,
        tags=list(payload.tags or []),
        notes=payload.notes,
        source="manual_entry",
    )
    return {"client": client_to_dict(client), "success": True}


@router.get("/{client_id}")
def get_client(
    client_id: UUID,
    projectId: Optional[UUID] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project_id = _require_project_id(projectId)
    require_project(session, auth.user_id, project_id)
    return {"client": client_to_dict(_require_client(session, project_id, client_id))}


@router.patch("/{client_id}")
def update_client(
    client_id: UUID,
    payload: ClientUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project_id = _require_project_id(payload.projectId)
    require_project(session, auth.user_id, project_id)
    client = _require_client(session, project_id, client_id)
    previous_status = client.status

    provided = payload.model_dump(exclude_unset=True)
    fields: dict[str, Any] = {}
    if payload.companyName:
        fields["company_name"] = payload.companyName
    for key, column in (
        ("industry", "industry"),
        ("website", "website"),
        ("notes", "notes"),
    ):
        if key in provided:
            fields[column] = provided[key]
    # Non-nullable columns: a null leaves the stored value alone.
    if payload.paymentTerms is not None:
        fields["payment_terms"] = payload.paymentTerms
    if payload.currency is not None:
        fields["currency"] = payload.currency
    if "tags" in provided:
        fields["tags"] = list(payload.tags or [])
    if payload.status is not None:
        fields["status"] = payload.status
    if payload.primaryContact is not None:
        for key, value in payload.primaryContact.model_dump(exclude_unset=True).items():
            fields[_CONTACT_COLUMNS[key]] = value

    client = ClientsRepository(session).update(project_id, client_id, **fields)
    if payload.status is not None and payload.status != previous_status:
        try:
            ClientActivitiesRepository(session).create(
                client_id,
                ClientActivityTypeEnum.status_change,
                title=f"Status changed to {payload.status.value}",
                description=f"Status changed from {previous_status.value} to {payload.status.value}",
                metadata_={"from": previous_status.value, "to": payload.status.value},
            )
        except Exception:  # noqa: BLE001
            session.rollback()
            logger.exception("Failed to record client status change", extra={"client_id": str(client_id)})
    return {"client": client_to_dict(client), "success": True}


@router.delete("/{client_id}")
def delete_client(
    client_id: UUID,
    projectId: Optional[UUID] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project_id = _require_project_id(projectId)
    require_project(session, auth.user_id, project_id)
    ClientsRepository(session).delete(project_id, client_id)
    return {"success": True}


@router.get("/{client_id}/activities")
def list_client_activities(
    client_id: UUID,
    projectId: Optional[UUID] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project_id = _require_project_id(projectId)
    require_project(session, auth.user_id, project_id)
    _require_client(session, project_id, client_id)
    activities = ClientActivitiesRepository(session).list(client_id)
    return {"activities": [activity_to_dict(a) for a in activities]}


@router.post("/{client_id}/activities", status_code=status.HTTP_201_CREATED)
def create_client_activity(
    client_id: UUID,
    payload: ClientActivityCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not payload.projectId or not payload.type:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="projectId and type are required")
    try:
        activity_type = ClientActivityTypeEnum(payload.type)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid activity type") from exc
    require_project(session, auth.user_id, payload.projectId)
    _require_client(session, payload.projectId, client_id)

    activity = ClientActivitiesRepository(session).create(
        client_id,
        activity_type,
        title=payload.title,
        description=payload.description or payload.content,
        metadata_=payload.metadata or {},
        user_name=payload.userName or "system",
    )
    return {"activity": activity_to_dict(activity), "success": True}
