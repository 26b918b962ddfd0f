from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.db.enums import CreditTransactionTypeEnum
from app.db.repositories.credits import CreditsRepository
from app.observability import start_langfuse_span
from app.services.tools.ads import AdsTool
from app.services.tools.base import BaseTool, ToolContext, ToolExecutionError, ToolResult
from app.services.tools.brand_identity import BrandIdentityTool
from app.services.tools.business_plan import BusinessPlanTool
from app.services.tools.edits import EditIdentityTool, EditPricingTool, EditWebsiteTool
from app.services.tools.leads import LeadsTool
from app.services.tools.outreach import OutreachTool
from app.services.tools.research import MarketResearchTool
from app.services.tools.website import WebsiteTool

logger = logging.getLogger(__name__)


class ToolValidationError(ValueError):
    pass


class UnknownToolError(LookupError):
    pass


@dataclass(frozen=True)
class ToolProgress:
    name: str
    steps: tuple[str, ...]
    start_message: str
    complete_message: str


@dataclass
class ToolExecution:
    tool_name: str
    result: ToolResult
    credits_charged: int
    credits_remaining: Optional[int]
    duration_ms: int


TOOLS: dict[str, BaseTool] = {
    tool.name: tool
    for tool in (
        MarketResearchTool(),
        BrandIdentityTool(),
        BusinessPlanTool(),
        WebsiteTool(),
        LeadsTool(),
        OutreachTool(),
        AdsTool(),
        EditWebsiteTool(),
        EditIdentityTool(),
        EditPricingTool(),
    )
}

TOOL_PROGRESS: dict[str, ToolProgress] = {
    "perform_market_research": ToolProgress(
        "Market Research",
        ("Searching for competitors", "Analyzing pricing strategies", "Identifying market gaps"),
        "Researching your market...",
        "Market research complete!",
    ),
    "generate_brand_identity": ToolProgress(
        "Brand Identity",
        ("Generating business name", "Creating logo design", "Selecting color palette"),
        "Creating your brand identity...",
        "Brand identity ready!",
    ),
    "generate_business_plan": ToolProgress(
        "Business Plan",
        ("Defining pricing tiers", "Creating service packages", "Building revenue model"),
        "Creating your business plan...",
        "Business plan ready!",
    ),
    "generate_website_files": ToolProgress(
        "Website",
        ("Designing layout structure", "Writing HTML & CSS", "Adding interactive elements"),
        "Building your website...",
        "Website ready!",
    ),
    "generate_leads": ToolProgress(
        "Lead Generation",
        ("Searching target market", "Qualifying prospects", "Extracting contact info"),
        "Finding leads...",
        "Leads generated!",
    ),
    "generate_outreach_scripts": ToolProgress(
        "Outreach Scripts",
        ("Analyzing lead profiles", "Writing call scripts", "Creating email templates"),
        "Creating outreach scripts...",
        "Scripts ready!",
    ),
    "generate_ads": ToolProgress(
        "Ad Creatives",
        ("Writing ad copy", "Designing ad images", "Formatting for each platform"),
        "Creating your ads...",
        "Ads ready!",
    ),
    "edit_website": ToolProgress(
        "Updating Website",
        ("Reading current code", "Applying changes", "Saving updates"),
        "Updating your website...",
        "Website updated!",
    ),
    "edit_identity": ToolProgress(
        "Updating Brand",
        ("Reading current identity", "Applying changes", "Saving updates"),
        "Updating your brand...",
        "Brand updated!",
    ),
    "edit_pricing": ToolProgress(
        "Updating Pricing",
        ("Reading current plan", "Applying changes", "Saving updates"),
        "Updating your pricing...",
        "Pricing updated!",
    ),
}


def get_tool(name: str) -> Optional[BaseTool]:
    return TOOLS.get(name)


def function_specs() -> list[dict[str, Any]]:
    return [tool.function_spec() for tool in TOOLS.values()]


def progress_for(name: str) -> ToolProgress:
    return TOOL_PROGRESS.get(name) or ToolProgress(name, (), f"Running {name}...", f"{name} complete!")


def _validate_args(tool: BaseTool, raw_args: Optional[dict[str, Any]]) -> Any:
    try:
        return tool.parse_args(raw_args)
    except ValidationError as exc:
        raise ToolValidationError(f"Invalid args for tool {tool.name}: {exc}") from exc


def execute_tool(
    *,
    session: Session,
    user_id: str,
    project_id: UUID,
    tool_name: str,
    raw_args: Optional[dict[str, Any]],
    model_id: Optional[str] = None,
) -> ToolExecution:
    """
    Validate, charge and run one tool.

    The tool's credit cost is deducted before it runs
    (`InsufficientCreditsError` propagates untouched) and refunded if the tool
    fails, so a failed generation never costs the user anything.
    """
    tool = get_tool(tool_name)
    if tool is None:
        raise UnknownToolError(f"Unknown tool: {tool_name}")
    args = _validate_args(tool, raw_args)

    credits = CreditsRepository(session)
    metadata = {
        "project_id": str(project_id),
        "artifact_type": tool.artifact_type.value,
        "tool_name": tool.name,
    }
    credits_remaining: Optional[int] = None
    if tool.credit_cost > 0:
        credits_remaining = credits.deduct(user_id, tool.credit_cost, progress_for(tool.name).name, metadata)

    ctx = ToolContext(session=session, user_id=user_id, project_id=project_id, model_id=model_id)
    started = time.monotonic()
    try:
        with start_langfuse_span(
            name=f"tool.{tool.name}",
            input={"args": args.model_dump(mode="json")},
            metadata=metadata,
            user_id=user_id,
            session_id=str(project_id),
        ):
            result = tool.run(ctx=ctx, args=args)
    except Exception as exc:  # noqa: BLE001
        session.rollback()
        logger.exception("Tool failed", extra={"tool": tool.name, "project_id": str(project_id)})
        if tool.credit_cost > 0:
            credits.add(
                user_id,
                tool.credit_cost,
                CreditTransactionTypeEnum.refund,
                f"Refund: {progress_for(tool.name).name} failed",
                metadata,
            )
        if isinstance(exc, ToolExecutionError):
            raise
        raise ToolExecutionError(f"Tool {tool.name} failed: {exc}") from exc

    duration_ms = int((time.monotonic() - started) * 1000)
    logger.info(
        "Tool completed",
        extra={"tool": tool.name, "project_id": str(project_id), "duration_ms": duration_ms},
    )
    return ToolExecution(
        tool_name=tool.name,
        result=result,
        credits_charged=tool.credit_cost,
        credits_remaining=credits_remaining,
        duration_ms=duration_ms,
    )
