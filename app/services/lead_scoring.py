from __future__ import annotations

import math
from typing import Any, Optional

from app.db.enums import LeadPriorityEnum

ICP_TEMPLATES: dict[str, dict[str, Any]] = {
    "ai automation": {
        "industries": ["SaaS", "E-commerce", "Real Estate", "Financial Services", "Healthcare"],
        "companySize": "10-100 employees",
        "painPoints": [
            "Manual repetitive tasks",
            "Slow customer response times",
            "Data entry errors",
            "Scaling operations",
        ],
        "budget": "$1,000-5,000/month",
    },
    "web design": {
        "industries": ["Local Services", "Professional Services", "Retail", "Restaurants", "Healthcare"],
        "companySize": "1-50 employees",
        "painPoints": [
            "Outdated website",
            "Poor mobile experience",
            "Low conversion rates",
            "No online presence",
        ],
        "budget": "$2,000-10,000 project",
    },
    "lead gen": {
        "industries": ["B2B Services", "Software", "Consulting", "Real Estate", "Financial Services"],
        "companySize": "5-200 employees",
        "painPoints": [
            "Inconsistent lead flow",
            "High customer acquisition cost",
            "Sales team underutilized",
            "Poor lead quality",
        ],
        "budget": "$500-3,000/month",
    },
    "seo": {
        "industries": ["E-commerce", "Local Services", "Professional Services", "Healthcare", "Real Estate"],
        "companySize": "5-100 employees",
        "painPoints": [
            "Low search rankings",
            "Competitors outranking them",
            "Low organic traffic",
            "Wasted ad spend",
        ],
        "budget": "$500-2,500/month",
    },
    "default": {
        "industries": ["Professional Services", "Technology", "Healthcare", "Finance", "Retail"],
        "companySize": "10-100 employees",
        "painPoints": [
            "Growth challenges",
            "Operational inefficiency",
            "Competition",
            "Customer acquisition",
        ],
        "budget": "$1,000-5,000/month",
    },
}

BUYING_SIGNALS = ("looking for", "need help", "seeking", "hiring", "budget", "invest")

_PAIN_INDICATORS: tuple[tuple[str, str], ...] = (
    ("struggling", "Currently facing operational challenges"),
    ("outdated", "Using outdated systems or processes"),
    ("manual", "Heavy reliance on manual processes"),
    ("growth", "Looking to scale operations"),
    ("competition", "Facing increased competition"),
    ("customer", "Customer experience improvements needed"),
    ("efficiency", "Seeking operational efficiency"),
    ("cost", "Looking to reduce costs"),
)

WEBSITE_MAX = 40


def detect_business_type(business_type: str) -> str:
    value = (business_type or "").lower()
    if "ai" in value or "automation" in value:
        return "ai automation"
    if "web" in value or "design" in value:
        return "web design"
    if "lead" in value or "gen" in value:
        return "lead gen"
    if "seo" in value:
        return "seo"
    return "default"


def get_icp_template(business_type: str) -> dict[str, Any]:
    return ICP_TEMPLATES.get(detect_business_type(business_type), ICP_TEMPLATES["default"])


def icp_score(content: str, pain_points: list[str]) -> int:
    """0-10 fit score: base 5, +0.5 per pain keyword hit, +1 per buying signal."""
    lowered = (content or "").lower()
    score = 5.0
    for pain_point in pain_points:
        for keyword in pain_point.lower().split(" "):
            if len(keyword) > 3 and keyword in lowered:
                score += 0.5
    for signal in BUYING_SIGNALS:
        if signal in lowered:
            score += 1
    # Round half up.
    return min(10, math.floor(score + 0.5))


def matched_buying_signals(content: str) -> list[str]:
    lowered = (content or "").lower()
    return [signal for signal in BUYING_SIGNALS if signal in lowered]


def detect_pain_points(content: str, default_pain_points: list[str]) -> list[str]:
    lowered = (content or "").lower()
    detected: list[str] = []
    for keyword, pain_point in _PAIN_INDICATORS:
        if keyword in lowered and len(detected) < 3:
            detected.append(pain_point)
    for pain_point in default_pain_points:
        if len(detected) >= 2:
            break
        if pain_point not in detected:
            detected.append(pain_point)
    return detected[:3]


def _reviews_points(review_count: Optional[int]) -> int:
    if not review_count:
        return 40
    if review_count < 10:
        return 35
    if review_count < 20:
        return 30
    if review_count < 50:
        return 20
    if review_count < 100:
        return 10
    return 5


def _rating_points(rating: Optional[float]) -> int:
    if rating is None:
        return 10
    if rating < 3.5:
        return 20
    if rating < 4.0:
        return 15
    if rating < 4.5:
        return 10
    return 5


def _website_points(website: Optional[str], analysis: Optional[dict[str, Any]]) -> int:
    if analysis and analysis.get("score") is not None:
        return round(float(analysis["score"]) * WEBSITE_MAX / 100)
    if not website:
        return WEBSITE_MAX
    return 15


def score_lead(
    *,
    review_count: Optional[int] = None,
    rating: Optional[float] = None,
    website: Optional[str] = None,
    website_analysis: Optional[dict[str, Any]] = None,
) -> tuple[int, dict[str, int]]:
    """
    Outreach score in 1..100 with its per-signal breakdown.

    Reviews (max 40) favour newer businesses, rating (max 20) favours businesses
    with unhappy customers, and website (max 40) favours a missing or weak site.
    `website_analysis` is the output of `analyze_website`; its 0..100 need score
    is scaled onto the website share.
    """
    breakdown = {
        "reviews": _reviews_points(review_count),
        "rating": _rating_points(rating),
        "website": _website_points(website, website_analysis),
    }
    total = sum(breakdown.values())
    return max(1, min(100, total)), breakdown


def priority_for_score(score: int) -> LeadPriorityEnum:
    if score >= 70:
        return LeadPriorityEnum.high
    if score >= 40:
        return LeadPriorityEnum.medium
    return LeadPriorityEnum.low
