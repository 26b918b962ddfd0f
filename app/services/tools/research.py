from __future__ import annotations

import logging
import re
from typing import Any, Optional

from pydantic import Field

from app.db.enums import ArtifactTypeEnum
from app.services.pricing import CREDIT_COSTS
from app.services.search import SearchProviderError, tavily_search
from app.services.tools.base import BaseTool, ToolArgs, ToolContext, ToolExecutionError, ToolResult

logger = logging.getLogger(__name__)

_LOCATION_RE = re.compile(
    r"in\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)|([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)\s+area",
    re.IGNORECASE,
)
_PRICE_PATTERNS = (
    re.compile(r"\$(\d+(?:,\d{3})*(?:\.\d{2})?)"),
    re.compile(r"(\d+(?:,\d{3})*(?:\.\d{2})?)\s*(?:USD|dollars?|€|euros?)", re.IGNORECASE),
    re.compile(r"price[sd]?\s*:?\s*\$?(\d+(?:,\d{3})*(?:\.\d{2})?)", re.IGNORECASE),
)
_PRICE_VALUE_RE = re.compile(r"\$?([\d,]+(?:\.\d{2})?)")

MAX_SOURCES = 8


def extract_location(query: str) -> Optional[str]:
    match = _LOCATION_RE.search(query or "")
    if not match:
        return None
    return match.group(1) or match.group(2)


def extract_pricing(text: str) -> str:
    for pattern in _PRICE_PATTERNS:
        match = pattern.search(text or "")
        if match:
            return f"${match.group(1)}"
    return "Contact for pricing"


def parse_price(value: str) -> Optional[float]:
    match = _PRICE_VALUE_RE.search(value or "")
    if not match:
        return None
    try:
        return float(match.group(1).replace(",", ""))
    except ValueError:
        return None


def average_price(competitors: list[dict[str, Any]]) -> Optional[float]:
    prices = [price for price in (parse_price(c.get("price") or "") for c in competitors) if price is not None]
    if not prices:
        return None
    return sum(prices) / len(prices)


class MarketResearchArgs(ToolArgs):
    query: str = Field(description="The business idea or market to research")


class MarketResearchTool(BaseTool[MarketResearchArgs]):
    name = "perform_market_research"
    description = (
        "Perform comprehensive market research to identify competitors, pricing strategies, "
        "and market opportunities for a business idea"
    )
    ArgsModel = MarketResearchArgs
    artifact_type = ArtifactTypeEnum.market_research
    credit_cost = CREDIT_COSTS["market_research"]

    def run(self, *, ctx: ToolContext, args: MarketResearchArgs) -> ToolResult:
        location = extract_location(args.query)
        suffix = f" in {location}" if location else ""
        try:
            pricing = tavily_search(f"{args.query} competitor pricing{suffix}", max_results=5, include_answer=True)
            complaints = tavily_search(
                f"{args.query} customer complaints reviews{suffix}", max_results=3, include_answer=True
            )
        except SearchProviderError as exc:
            raise ToolExecutionError(f"Market research search failed: {exc}") from exc

        competitors = [
            {
                "name": result.get("title") or "",
                "url": result.get("url") or "",
                "description": (result.get("content") or "")[:200],
                "price": extract_pricing(result.get("content") or ""),
            }
            for result in pricing["results"][:5]
        ]
        avg = average_price(competitors)
        avg_label = f"${avg:.2f}" if avg is not None else "Varies"
        pain_points = [(r.get("content") or "")[:150] for r in complaints["results"][:3] if r.get("content")]

        sources: list[dict[str, str]] = []
        seen_urls: set[str] = set()
        for result in pricing["results"] + complaints["results"]:
            url = result.get("url") or ""
            if url in seen_urls:
                continue
            seen_urls.add(url)
            sources.append({"title": result.get("title") or "", "url": url})

        top_name = competitors[0]["name"] if competitors else "top competitor"
        next_steps = [
            f"Research {top_name}'s pricing model in detail",
            "Create a positioning strategy to differentiate from competitors",
            "Survey 10-15 potential customers to validate pain points",
            f"Consider pricing between {avg_label} and ${avg * 1.2:.2f}"
            if avg is not None
            else "Conduct pricing research with target customers",
            "Build a minimum viable offering based on competitor gaps",
        ]
        data = {
            "competitors": competitors,
            "marketSummary": pricing.get("answer")
            or f"Market analysis for {args.query}. Average pricing: {avg_label}. "
            f"{len(competitors)} competitors identified.",
            "targetAudience": f"Customers in {location}" if location else "Target market consumers",
            "keyInsights": [
                f"Average market price: {avg_label}",
                f"{len(competitors)} direct competitors found",
                *[f"Customer feedback: {point}..." for point in pain_points],
            ],
            "sources": sources[:MAX_SOURCES],
            "nextSteps": next_steps,
        }
        artifact = ctx.save_artifact(self.artifact_type, data)
        logger.info(
            "Market research saved",
            extra={"project_id": str(ctx.project_id), "competitors": len(competitors)},
        )
        return ToolResult(
            artifact=artifact,
            summary=f"Found {len(competitors)} competitors. Avg price: {avg_label}. {data['marketSummary']}",
        )
