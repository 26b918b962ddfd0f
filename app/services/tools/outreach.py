from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from pydantic import Field

from app.db.enums import ArtifactTypeEnum
from app.db.models import Lead
from app.db.repositories.leads import LeadsRepository
from app.services.pricing import CREDIT_COSTS
from app.services.tools.base import BaseTool, ToolArgs, ToolContext, ToolExecutionError, ToolResult

MAX_SCRIPTED_LEADS = 15
SIGNATURE = "Best,\n[Your Name]"


def _first_name(lead: Lead) -> str:
    if lead.contact_name:
        return lead.contact_name.split()[0]
    return "there"


def _pain(lead: Lead, index: int, default: str) -> str:
    pains = list(lead.pain_points or [])
    if len(pains) > index:
        return pains[index][0].lower() + pains[index][1:]
    return default


def build_call_script(lead: Lead, business_type: str, brand_name: str) -> dict[str, Any]:
    greeting = _first_name(lead)
    industry = lead.industry or "your industry"
    primary_pain = _pain(lead, 0, "growing without adding overhead")
    return {
        "opener": (
            f"Hi {greeting}, this is [Your Name] from {brand_name}. I noticed {lead.company_name} "
            f"is doing some interesting things in {industry}. Do you have a quick moment?"
        ),
        "valueProposition": (
            f"We're a {business_type.lower()} that helps {industry} businesses like {lead.company_name} "
            f"with {primary_pain}."
        ),
        "questions": [
            f"How is your team handling {primary_pain} today?",
            "What have you already tried to fix it?",
            "What would a good outcome look like for you in the next 90 days?",
            "Who else would be involved in a decision like this?",
        ],
        "objectionHandlers": {
            "Not interested": (
                "Totally fair. Most owners I talk to say that at first. Would it be okay if I sent "
                "a two-minute example of what we did for a similar business?"
            ),
            "Too expensive": (
                "I hear you. Our work usually pays for itself within the first few months. "
                "Could we look at the numbers together?"
            ),
            "Send me an email": f"Happy to. What's the best address to reach you at, {greeting}?",
            "We already have someone": (
                "Great, it sounds like you value this. Would a quick second opinion be useful?"
            ),
        },
        "closeAttempt": (
            "Would you be open to a 15-minute call later this week so I can show you exactly "
            f"how this would work for {lead.company_name}?"
        ),
    }


def build_email_script(lead: Lead, business_type: str, brand_name: str) -> dict[str, Any]:
    greeting = _first_name(lead)
    industry = lead.industry or "your industry"
    primary_pain = _pain(lead, 0, "growing without adding overhead")
    secondary_pain = _pain(lead, 1, primary_pain)
    return {
        "subject": f"Quick question about {primary_pain} at {lead.company_name}",
        "body": (
            f"Hi {greeting},\n\n"
            f"I came across {lead.company_name} while looking at {industry} businesses and wanted to reach out.\n\n"
            f"At {brand_name} we work with companies like yours on {primary_pain} and {secondary_pain}. "
            f"As a {business_type.lower()}, we focus on results you can measure in the first 30 days.\n\n"
            f"Would you be open to a quick 15-minute call to see if we could help {lead.company_name}?\n\n"
            f"{SIGNATURE}"
        ),
        "followUp1": (
            f"Hi {greeting},\n\n"
            f"Just following up on my previous email. We recently helped another {industry} business "
            f"with {primary_pain}, and I think a similar approach could work for {lead.company_name}.\n\n"
            f"Would a brief call this week work?\n\n{SIGNATURE}"
        ),
        "followUp2": (
            f"Hi {greeting},\n\n"
            "Last note from me. If this isn't a priority right now, I completely understand.\n\n"
            f"If you'd ever like to chat about how other {industry} businesses handle {secondary_pain}, "
            f"I'm always happy to share what we've seen.\n\n{SIGNATURE}"
        ),
    }


class OutreachArgs(ToolArgs):
    businessType: str = Field(description="The type of business doing the outreach")
    brandName: Optional[str] = Field(default=None, description="The brand name to sign the scripts with")
    leadIds: Optional[list[UUID]] = Field(
        default=None, description="Leads to write scripts for; defaults to the highest-scoring leads"
    )


class OutreachTool(BaseTool[OutreachArgs]):
    name = "generate_outreach_scripts"
    description = (
        "Generate personalized cold call scripts and email sequences for each lead, tailored to "
        "their industry and pain points"
    )
    ArgsModel = OutreachArgs
    artifact_type = ArtifactTypeEnum.outreach
    credit_cost = CREDIT_COSTS["outreach"]

    def run(self, *, ctx: ToolContext, args: OutreachArgs) -> ToolResult:
        repo = LeadsRepository(ctx.session)
        if args.leadIds:
            leads = repo.list_by_ids(ctx.project_id, args.leadIds)
        else:
            leads = repo.list(ctx.project_id)[:MAX_SCRIPTED_LEADS]
        if not leads:
            raise ToolExecutionError("No leads found for this project. Generate leads first.")

        brand_name = args.brandName or (ctx.load_artifact_data(ArtifactTypeEnum.identity) or {}).get("name")
        brand_name = brand_name or "[Your Company]"
        scripts = [
            {
                "leadId": str(lead.id),
                "leadName": lead.company_name,
                "callScript": build_call_script(lead, args.businessType, brand_name),
                "emailScript": build_email_script(lead, args.businessType, brand_name),
            }
            for lead in leads
        ]
        artifact = ctx.save_artifact(self.artifact_type, {"scripts": scripts})
        return ToolResult(
            artifact=artifact,
            summary=f"Created call scripts and 3-step email sequences for {len(scripts)} leads.",
        )
