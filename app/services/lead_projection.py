from __future__ import annotations

import logging
from typing import Any, Iterable, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.enums import ArtifactTypeEnum
from app.db.models import Lead
from app.db.repositories.artifacts import ArtifactsRepository
from app.db.repositories.leads import LeadsRepository

logger = logging.getLogger(__name__)


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def _number(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def lead_to_artifact_entry(lead: Lead) -> dict[str, Any]:
    """camelCase view of a lead row, as stored in the `leads` artifact."""
    return {
        "id": str(lead.id),
        "projectId": str(lead.project_id),
        "companyName": lead.company_name,
        "industry": lead.industry or "",
        "website": lead.website,
        "phone": lead.phone,
        "email": lead.email,
        "address": lead.address,
        "city": lead.city,
        "state": lead.state,
        "contactName": lead.contact_name,
        "contactTitle": lead.contact_title,
        "contactEmail": lead.contact_email,
        "contactLinkedIn": lead.contact_linkedin,
        "placeId": lead.place_id,
        "rating": lead.rating,
        "reviewCount": lead.review_count,
        "websiteAnalysis": lead.website_analysis,
        "score": lead.score,
        "scoreBreakdown": lead.score_breakdown or {},
        "icpScore": lead.icp_score,
        "icpMatchReasons": list(lead.icp_match_reasons or []),
        "buyingSignals": list(lead.buying_signals or []),
        "painPoints": list(lead.pain_points or []),
        "status": _enum_value(lead.status),
        "priority": _enum_value(lead.priority),
        "source": lead.source,
        "notes": lead.notes,
        "websiteStatus": lead.website_status,
        "previewToken": lead.preview_token,
        "stripePaymentLinkId": lead.stripe_payment_link_id,
        "stripePaymentLinkUrl": lead.stripe_payment_link_url,
        "stripePaymentStatus": lead.stripe_payment_status,
        "paidAt": lead.paid_at.isoformat() if lead.paid_at else None,
        "paidAmount": _number(lead.paid_amount),
        "dealValue": _number(lead.deal_value),
        "dealCurrency": lead.deal_currency,
        "createdAt": lead.created_at.isoformat() if lead.created_at else None,
        "updatedAt": lead.updated_at.isoformat() if lead.updated_at else None,
    }


def rebuild_leads_artifact(
    session: Session,
    project_id: UUID,
    *,
    ideal_customer_profile: Optional[dict[str, Any]] = None,
    search_criteria: Optional[str] = None,
) -> dict[str, Any]:
    """
    Rewrite the `leads` artifact from the leads table.

    The table is the source of truth; the artifact only mirrors it for the
    workspace UI. ICP and search criteria carry over from the previous
    projection unless new values are given. The payload is replaced in place,
    so the projection never becomes undoable.
    """
    artifacts = ArtifactsRepository(session)
    previous = artifacts.get_data(project_id, ArtifactTypeEnum.leads) or {}
    leads = LeadsRepository(session).list(project_id)
    data = {
        "leads": [lead_to_artifact_entry(lead) for lead in leads],
        "idealCustomerProfile": ideal_customer_profile
        if ideal_customer_profile is not None
        else previous.get("idealCustomerProfile") or {},
        "searchCriteria": search_criteria if search_criteria is not None else previous.get("searchCriteria") or "",
    }
    artifacts.upsert(project_id, ArtifactTypeEnum.leads, data, keep_history=False)
    return data


def refresh_leads_projection(session: Session, project_id: UUID) -> None:
    try:
        rebuild_leads_artifact(session, project_id)
    except Exception:  # noqa: BLE001
        session.rollback()
        logger.exception("Failed to rebuild leads artifact", extra={"project_id": str(project_id)})


def find_lead_website(data: Optional[dict[str, Any]], lead_id: Any) -> Optional[dict[str, Any]]:
    for website in (data or {}).get("websites") or []:
        if str(website.get("leadId")) == str(lead_id):
            return website
    return None


def upsert_lead_websites(session: Session, project_id: UUID, entries: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Store lead sites, replacing any existing entry for the same lead."""
    entries = list(entries)
    replaced = {str(entry["leadId"]) for entry in entries}
    artifacts = ArtifactsRepository(session)
    current = artifacts.get_data(project_id, ArtifactTypeEnum.lead_website) or {}
    websites = [site for site in current.get("websites") or [] if str(site.get("leadId")) not in replaced]
    websites.extend(entries)
    data = {**current, "websites": websites}
    artifacts.upsert(project_id, ArtifactTypeEnum.lead_website, data)
    return data


def remove_lead_website(session: Session, project_id: UUID, lead_id: UUID) -> bool:
    """Drop a lead's generated site; the artifact is written only when an entry was removed."""
    artifacts = ArtifactsRepository(session)
    current = artifacts.get_data(project_id, ArtifactTypeEnum.lead_website)
    if not current:
        return False
    websites = current.get("websites") or []
    remaining = [site for site in websites if str(site.get("leadId")) != str(lead_id)]
    if len(remaining) == len(websites):
        return False
    artifacts.upsert(project_id, ArtifactTypeEnum.lead_website, {**current, "websites": remaining})
    return True
