from __future__ import annotations

import logging
import math
import re
from typing import Any, Optional

from pydantic import Field

from app.db.enums import ArtifactTypeEnum, LeadStatusEnum
from app.db.repositories.leads import LeadsRepository
from app.services.lead_projection import rebuild_leads_artifact
from app.services.lead_scoring import (
    detect_pain_points,
    get_icp_template,
    icp_score,
    matched_buying_signals,
    priority_for_score,
    score_lead,
)
from app.services.pricing import CREDIT_COSTS
from app.services.search import search_google_maps_businesses
from app.services.tools.base import BaseTool, ToolArgs, ToolContext, ToolResult

logger = logging.getLogger(__name__)

MAX_QUERY_INDUSTRIES = 3
LEAD_SOURCE = "lead_generation"

_EMAIL_RE = re.compile(r"[\w.-]+@[\w.-]+\.\w+")
_LINKEDIN_RE = re.compile(r"linkedin\.com/(?:in|company)/[\w-]+")
_STATE_ZIP_RE = re.compile(r"^([A-Z]{2})(?:\s+\d{5}(?:-\d{4})?)?$")


def split_address(address: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """Best-effort (city, state) from a US-style "street, city, ST 12345" address."""
    parts = [part.strip() for part in (address or "").split(",") if part.strip()]
    if parts and parts[-1].upper() in {"USA", "UNITED STATES"}:
        parts = parts[:-1]
    if len(parts) < 2:
        return None, None
    match = _STATE_ZIP_RE.match(parts[-1])
    if not match:
        return None, None
    return parts[-2], match.group(1)


def _searchable_text(business: dict[str, Any]) -> str:
    return " ".join(
        str(value)
        for value in (business.get("name"), business.get("type"), business.get("address"), business.get("content"))
        if value
    )


def build_lead_row(business: dict[str, Any], industry: str, icp: dict[str, Any]) -> dict[str, Any]:
    """Column values for a new lead built from one search result."""
    content = _searchable_text(business)
    score, breakdown = score_lead(
        review_count=business.get("reviewCount"),
        rating=business.get("rating"),
        website=business.get("website"),
    )
    email_match = _EMAIL_RE.search(business.get("content") or "")
    linkedin_match = _LINKEDIN_RE.search(business.get("content") or "")
    city, state = split_address(business.get("address"))

    reasons = [f"Industry matches target: {industry}"]
    if not business.get("website"):
        reasons.append("No website found")
    elif business.get("reviewCount") is not None and business["reviewCount"] < 20:
        reasons.append("Limited online reviews")

    return {
        "company_name": (business.get("name") or "Unknown Company")[:120],
        "industry": business.get("type") or industry,
        "website": business.get("website"),
        "phone": business.get("phone"),
        "address": business.get("address"),
        "city": city,
        "state": state,
        "contact_email": email_match.group(0) if email_match else None,
        "contact_linkedin": f"https://{linkedin_match.group(0)}" if linkedin_match else None,
        "place_id": business.get("placeId"),
        "rating": business.get("rating"),
        "review_count": business.get("reviewCount"),
        "score": score,
        "score_breakdown": breakdown,
        "icp_score": icp_score(content, icp["painPoints"]),
        "icp_match_reasons": reasons,
        "pain_points": detect_pain_points(content, icp["painPoints"]),
        "buying_signals": matched_buying_signals(content),
        "status": LeadStatusEnum.new,
        "priority": priority_for_score(score),
        "source": LEAD_SOURCE,
    }


class LeadsArgs(ToolArgs):
    businessType: str = Field(description="The type of business offering services")
    targetIndustries: list[str] = Field(default_factory=list, description="Industries to target for leads")
    targetCompanySize: Optional[str] = Field(
        default=None, description='Target company size (e.g., "small", "medium", "enterprise")'
    )
    location: Optional[str] = Field(default=None, description="Geographic location to focus on")
    numberOfLeads: int = Field(default=10, ge=1, le=15, description="Number of leads to generate")


class LeadsTool(BaseTool[LeadsArgs]):
    name = "generate_leads"
    description = (
        "Find and score potential customers for the business, with pain points and an ideal customer profile"
    )
    ArgsModel = LeadsArgs
    artifact_type = ArtifactTypeEnum.leads
    credit_cost = CREDIT_COSTS["lead_generation"]

    def run(self, *, ctx: ToolContext, args: LeadsArgs) -> ToolResult:
        icp = get_icp_template(args.businessType)
        industries = args.targetIndustries or icp["industries"]
        company_size = args.targetCompanySize or icp["companySize"]
        location = (args.location or "").strip()
        queried = industries[:MAX_QUERY_INDUSTRIES]
        per_query = math.ceil(args.numberOfLeads / len(queried)) + 2

        repo = LeadsRepository(ctx.session)
        seen = repo.existing_place_ids(ctx.project_id)
        rows: list[dict[str, Any]] = []
        skipped = 0
        for industry in queried:
            for business in search_google_maps_businesses(industry, location, limit=per_query):
                place_id = business.get("placeId")
                if not place_id or place_id in seen:
                    skipped += 1
                    continue
                seen.add(place_id)
                rows.append(build_lead_row(business, industry, icp))
        rows.sort(key=lambda row: row["score"], reverse=True)
        created = repo.bulk_create(ctx.project_id, rows[: args.numberOfLeads])

        location_suffix = f" in {location}" if location else ""
        rebuild_leads_artifact(
            ctx.session,
            ctx.project_id,
            ideal_customer_profile={
                "industries": industries[:5],
                "companySize": company_size,
                "painPoints": icp["painPoints"],
                "budget": icp["budget"],
            },
            search_criteria=f"{args.businessType} targeting {', '.join(industries)}{location_suffix}",
        )
        artifact = ctx.artifacts().get_by_type(ctx.project_id, self.artifact_type)
        logger.info(
            "Lead generation completed",
            extra={"project_id": str(ctx.project_id), "created": len(created), "skipped": skipped},
        )

        high_priority = sum(1 for lead in created if lead.score >= 70)
        avg_score = sum(lead.score for lead in created) / len(created) if created else 0
        return ToolResult(
            artifact=artifact,
            summary=(
                f"Generated {len(created)} new leads across {len(queried)} industries. "
                f"{high_priority} high-priority prospects identified (avg score: {avg_score:.0f}/100)."
            ),
            details={"created": len(created), "skipped": skipped},
        )
