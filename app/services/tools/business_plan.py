from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from app.db.enums import ArtifactTypeEnum
from app.services.lead_scoring import detect_business_type
from app.services.pricing import CREDIT_COSTS
from app.services.tools.base import BaseTool, ToolArgs, ToolContext, ToolResult
from app.services.tools.research import parse_price


def _tier(name: str, price: int, features: list[str]) -> dict[str, Any]:
    return {"name": name, "basePrice": price, "features": features}


def _package(name: str, description: str, deliverables: list[str], price: int) -> dict[str, Any]:
    return {"name": name, "description": description, "deliverables": deliverables, "basePrice": price}


PRICING_TEMPLATES: dict[str, dict[str, list[dict[str, Any]]]] = {
    "ai automation": {
        "tiers": [
            _tier("Starter", 997, ["1 automation workflow", "Basic integrations", "Email support", "30-day setup"]),
            _tier(
                "Growth",
                2497,
                ["3 automation workflows", "Advanced integrations", "Priority support", "Weekly check-ins", "Custom training"],
            ),
            _tier(
                "Enterprise",
                4997,
                ["Unlimited workflows", "Custom AI solutions", "Dedicated account manager", "24/7 support", "White-label options"],
            ),
        ],
        "packages": [
            _package(
                "Lead Automation",
                "Automate your lead capture and nurturing process",
                ["Lead capture forms", "Email sequences", "CRM integration", "Lead scoring"],
                1497,
            ),
            _package(
                "Content Automation",
                "AI-powered content creation and distribution",
                ["AI content generation", "Social scheduling", "Blog automation", "Analytics dashboard"],
                1997,
            ),
            _package(
                "Customer Service Bot",
                "Intelligent chatbot for customer support",
                ["Custom chatbot", "FAQ automation", "Ticket routing", "Integration setup"],
                2497,
            ),
        ],
    },
    "web design": {
        "tiers": [
            _tier("Basic", 1500, ["5-page website", "Mobile responsive", "Contact form", "Basic SEO"]),
            _tier(
                "Professional",
                3500,
                ["10-page website", "Custom animations", "CMS integration", "Advanced SEO", "E-commerce ready"],
            ),
            _tier(
                "Premium",
                7500,
                ["Unlimited pages", "Custom features", "Ongoing maintenance", "Priority support", "Performance optimization"],
            ),
        ],
        "packages": [
            _package(
                "Landing Page",
                "High-converting single page design",
                ["Custom design", "Mobile optimization", "Speed optimization", "Analytics setup"],
                997,
            ),
            _package(
                "Business Website",
                "Complete business website with all essentials",
                ["5-page website", "Contact forms", "SEO optimization", "Social integration"],
                2497,
            ),
            _package(
                "E-commerce Store",
                "Full online store setup",
                ["Product pages", "Shopping cart", "Payment integration", "Inventory system"],
                4997,
            ),
        ],
    },
    "lead gen": {
        "tiers": [
            _tier("Starter", 500, ["50 qualified leads/month", "Basic targeting", "Email list", "Monthly report"]),
            _tier(
                "Scale",
                1500,
                ["150 qualified leads/month", "Multi-channel outreach", "CRM integration", "Weekly reports", "A/B testing"],
            ),
            _tier(
                "Enterprise",
                3500,
                ["Unlimited leads", "Dedicated researcher", "Custom qualification", "Real-time dashboard", "Appointment setting"],
            ),
        ],
        "packages": [
            _package(
                "LinkedIn Outreach",
                "B2B lead generation via LinkedIn",
                ["Profile optimization", "Connection campaigns", "Message sequences", "Lead export"],
                997,
            ),
            _package(
                "Email Campaigns",
                "Cold email lead generation",
                ["Email list building", "Campaign setup", "A/B testing", "Performance tracking"],
                1497,
            ),
            _package(
                "Full-Funnel",
                "Complete lead generation system",
                ["Multi-channel outreach", "Landing pages", "Lead nurturing", "Conversion tracking"],
                2997,
            ),
        ],
    },
    "seo": {
        "tiers": [
            _tier("Local SEO", 500, ["Google Business optimization", "Local citations", "5 keywords", "Monthly reporting"]),
            _tier(
                "Growth",
                1500,
                ["On-page optimization", "Content strategy", "15 keywords", "Link building", "Bi-weekly reports"],
            ),
            _tier(
                "Domination",
                3500,
                ["Full SEO audit", "Technical SEO", "Content creation", "Authority building", "Competitor analysis"],
            ),
        ],
        "packages": [
            _package(
                "SEO Audit",
                "Comprehensive website SEO analysis",
                ["Technical audit", "Content analysis", "Competitor research", "Action plan"],
                497,
            ),
            _package(
                "Local SEO Setup",
                "Get found in local searches",
                ["Google Business setup", "Citation building", "Review strategy", "Local content"],
                997,
            ),
            _package(
                "Content + SEO",
                "Content-driven SEO strategy",
                ["Keyword research", "Content calendar", "4 blog posts/month", "Optimization"],
                1997,
            ),
        ],
    },
    "default": {
        "tiers": [
            _tier("Starter", 500, ["Basic service", "Email support", "Monthly check-in"]),
            _tier("Professional", 1500, ["Full service", "Priority support", "Weekly check-ins", "Custom solutions"]),
            _tier("Enterprise", 3500, ["Unlimited service", "Dedicated manager", "24/7 support", "White-label options"]),
        ],
        "packages": [
            _package(
                "Quick Start",
                "Get started quickly with essential services",
                ["Initial setup", "Basic training", "Support documentation"],
                497,
            ),
            _package(
                "Full Service",
                "Complete service package",
                ["Full implementation", "Training", "Ongoing support", "Optimization"],
                1497,
            ),
            _package(
                "Premium",
                "Premium all-inclusive package",
                ["Everything included", "Priority handling", "Custom features", "Dedicated support"],
                2997,
            ),
        ],
    },
}

REVENUE_MODELS: dict[str, str] = {
    "ai automation": (
        "Hybrid model combining one-time setup fees with monthly retainer subscriptions. Initial projects "
        "generate $1,500-5,000 in setup revenue, followed by $500-2,000/month in recurring maintenance and "
        "optimization fees. Target: 60% recurring revenue within 6 months."
    ),
    "web design": (
        "Project-based pricing with optional maintenance retainers. Average project value of $2,500-7,500 "
        "with 30% of clients converting to $200-500/month maintenance plans. Upsell opportunities through "
        "hosting, SEO, and content services."
    ),
    "lead gen": (
        "Performance-based pricing combined with monthly retainers. Base retainer of $500-1,500/month plus "
        "$50-150 per qualified lead. Target 70% recurring revenue with performance bonuses tied to client ROI."
    ),
    "seo": (
        "Monthly retainer model with 6-12 month minimum commitments. Entry point at $500/month scaling to "
        "$3,500/month for enterprise clients. Revenue compounds through referrals and expanded scope."
    ),
    "default": (
        "Flexible pricing model combining project-based work with monthly retainers. Initial engagements "
        "establish value, followed by ongoing service agreements. Target 50% recurring revenue within the "
        "first year."
    ),
}


def market_multiplier(competitor_prices: list[float]) -> float:
    """Slightly undercut expensive markets and price up in cheap ones."""
    if not competitor_prices:
        return 1.0
    average = sum(competitor_prices) / len(competitor_prices)
    if average > 2000:
        return 0.9
    if average > 1000:
        return 1.0
    return 1.1


def _round_hundreds(value: float) -> int:
    return int(round(value / 100.0)) * 100


def adjust_pricing_to_market(
    template: dict[str, list[dict[str, Any]]],
    competitors: Optional[list[dict[str, Any]]],
) -> dict[str, list[dict[str, Any]]]:
    prices = [p for p in (parse_price(str(c.get("price") or "")) for c in competitors or []) if p is not None]
    if not prices:
        return template
    multiplier = market_multiplier(prices)
    return {
        "tiers": [{**tier, "basePrice": _round_hundreds(tier["basePrice"] * multiplier)} for tier in template["tiers"]],
        "packages": [
            {**package, "basePrice": _round_hundreds(package["basePrice"] * multiplier)}
            for package in template["packages"]
        ],
    }


def build_business_plan(
    business_type: str,
    target_market: str,
    *,
    competitors: Optional[list[dict[str, Any]]] = None,
    brand_name: Optional[str] = None,
) -> dict[str, Any]:
    detected = detect_business_type(business_type)
    pricing = adjust_pricing_to_market(PRICING_TEMPLATES.get(detected, PRICING_TEMPLATES["default"]), competitors)
    name = brand_name or "Your Agency"
    kind = business_type.lower()
    return {
        "executiveSummary": (
            f"{name} is a {kind} positioned to serve {target_market}. Our competitive advantage lies in "
            "combining cutting-edge technology with personalized service delivery, enabling clients to "
            "achieve measurable results quickly. We operate on a value-based pricing model that ensures "
            "sustainable growth while delivering exceptional ROI for our clients."
        ),
        "revenueModel": REVENUE_MODELS.get(detected, REVENUE_MODELS["default"]),
        "pricingTiers": [
            {"name": tier["name"], "price": f"${tier['basePrice']:,}/month", "features": tier["features"]}
            for tier in pricing["tiers"]
        ],
        "servicePackages": [
            {
                "name": package["name"],
                "description": package["description"],
                "deliverables": package["deliverables"],
                "price": f"${package['basePrice']:,}",
            }
            for package in pricing["packages"]
        ],
        "targetMarket": target_market,
        "valueProposition": (
            f"We help {target_market} achieve their goals through expert {kind} services. Unlike "
            "competitors who offer generic solutions, we provide personalized strategies backed by "
            "data-driven insights and dedicated support. Our clients typically see measurable results "
            "within the first 30 days."
        ),
    }


class CompetitorPrice(BaseModel):
    name: str
    price: str


class BusinessPlanArgs(ToolArgs):
    businessType: str = Field(description='The type of business (e.g., "AI Automation Agency")')
    targetMarket: str = Field(description="The target market or customer segment")
    competitors: Optional[list[CompetitorPrice]] = Field(
        default=None, description="Competitor data from market research"
    )
    brandName: Optional[str] = Field(default=None, description="The brand name from identity generation")


class BusinessPlanTool(BaseTool[BusinessPlanArgs]):
    name = "generate_business_plan"
    description = (
        "Generate a complete business plan with pricing tiers, service packages, revenue model, "
        "and value proposition"
    )
    ArgsModel = BusinessPlanArgs
    artifact_type = ArtifactTypeEnum.business_plan
    credit_cost = CREDIT_COSTS["business_plan"]

    def run(self, *, ctx: ToolContext, args: BusinessPlanArgs) -> ToolResult:
        competitors = [c.model_dump() for c in args.competitors] if args.competitors else None
        if competitors is None:
            research = ctx.load_artifact_data(ArtifactTypeEnum.market_research) or {}
            competitors = research.get("competitors") or None
        brand_name = args.brandName
        if not brand_name:
            brand_name = (ctx.load_artifact_data(ArtifactTypeEnum.identity) or {}).get("name")

        plan = build_business_plan(
            args.businessType,
            args.targetMarket,
            competitors=competitors,
            brand_name=brand_name,
        )
        artifact = ctx.save_artifact(self.artifact_type, plan)
        return ToolResult(
            artifact=artifact,
            summary=(
                f"Created business plan with {len(plan['pricingTiers'])} pricing tiers and "
                f"{len(plan['servicePackages'])} service packages."
            ),
        )
