from __future__ import annotations

import base64
import logging
import time
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.config import settings
from app.db.enums import ArtifactTypeEnum
from app.llm.client import LLMGenerationParams
from app.services.pricing import CREDIT_COSTS
from app.services.tools.base import BaseTool, ToolArgs, ToolContext, ToolResult

logger = logging.getLogger(__name__)

Platform = Literal["facebook", "instagram", "google", "linkedin", "tiktok"]
AdFormat = Literal["square", "story", "landscape"]

DEFAULT_PLATFORMS: tuple[Platform, ...] = ("facebook", "instagram", "google", "linkedin")
DEFAULT_FORMATS: tuple[AdFormat, ...] = ("square",)
FALLBACK_PRIMARY = "#3B82F6"
FALLBACK_SECONDARY = "#1E40AF"

CTA_OPTIONS: dict[str, list[str]] = {
    "facebook": ["Learn More", "Shop Now", "Get Started", "Sign Up"],
    "instagram": ["Shop Now", "Swipe Up", "Link in Bio", "Learn More"],
    "google": ["Get Started", "Shop Now", "Learn More", "Contact Us"],
    "linkedin": ["Learn More", "Connect", "Get Started", "Apply Now"],
    "tiktok": ["Shop Now", "Check It Out", "Get Yours", "Try Now"],
}

HEADLINE_TEMPLATES: dict[str, list[str]] = {
    "facebook": ["{benefit} - Limited Time!", "Discover {benefit}", "Ready for {benefit}?"],
    "instagram": ["{benefit} ✨", "{benefit} 🔥", "You deserve {benefit}"],
    "google": ["{benefit} | Get Started Today", "Best {benefit} - Shop Now", "{benefit} - Free Shipping"],
    "linkedin": [
        "Transform Your Business with {benefit}",
        "Professional {benefit} Solutions",
        "{benefit} for Your Team",
    ],
    "tiktok": ["POV: You found {benefit}", "This {benefit} is 🔥", "Wait for it... {benefit}"],
}

BODY_TEMPLATES = (
    "{description}. Perfect for {audience}. {offer}.",
    "Looking for {offer}? We've got you covered. {description}.",
    "{audience} love us! {description}. Get {offer} today.",
)

FORMAT_DIMENSIONS: dict[str, tuple[int, int]] = {
    "square": (400, 400),
    "story": (270, 480),
    "landscape": (480, 270),
}
ASPECT_RATIOS = {"square": "1:1", "story": "9:16", "landscape": "16:9"}


def build_ad_copy(description: str, audience: str, offer: str, platform: str, variant: int) -> dict[str, str]:
    """Headline, body and CTA for one ad; `variant` rotates through the platform's templates."""
    benefit = " ".join(offer.split(" ")[:5])
    headlines = HEADLINE_TEMPLATES.get(platform, HEADLINE_TEMPLATES["facebook"])
    ctas = CTA_OPTIONS.get(platform, CTA_OPTIONS["facebook"])
    body = BODY_TEMPLATES[variant % len(BODY_TEMPLATES)]
    return {
        "headline": headlines[variant % len(headlines)].format(benefit=benefit),
        "bodyText": body.format(description=description.rstrip("."), audience=audience, offer=offer.rstrip(".")),
        "cta": ctas[variant % len(ctas)],
    }


def fallback_ad_image(platform: str, ad_format: str, colors: Optional[dict[str, str]] = None) -> str:
    width, height = FORMAT_DIMENSIONS[ad_format]
    primary = (colors or {}).get("primary") or FALLBACK_PRIMARY
    secondary = (colors or {}).get("secondary") or FALLBACK_SECONDARY
    svg = (
        f'<svg width="{width}" height="{height}" viewBox="0 0 {width} {height}" '
        'xmlns="http://www.w3.org/2000/svg">'
        '<defs><linearGradient id="grad" x1="0%" y1="0%" x2="100%" y2="100%">'
        f'<stop offset="0%" style="stop-color:{primary};stop-opacity:1" />'
        f'<stop offset="100%" style="stop-color:{secondary};stop-opacity:1" />'
        "</linearGradient></defs>"
        f'<rect width="{width}" height="{height}" fill="url(#grad)"/>'
        f'<text x="{width / 2:g}" y="{height / 2:g}" font-family="Arial, sans-serif" font-size="24" '
        'font-weight="bold" fill="white" text-anchor="middle" dominant-baseline="middle">'
        f"{platform.upper()} AD</text></svg>"
    )
    return "data:image/svg+xml;base64," + base64.b64encode(svg.encode("utf-8")).decode("ascii")


class BrandColors(BaseModel):
    primary: str
    secondary: str


class AdsArgs(ToolArgs):
    businessDescription: str = Field(description="Description of the business and what it sells")
    targetAudience: str = Field(description="Who the ads should target")
    mainOffer: str = Field(description="The main offer or value proposition to highlight")
    platforms: Optional[list[Platform]] = Field(default=None, description="Platforms to generate ads for")
    formats: Optional[list[AdFormat]] = Field(default=None, description="Ad formats to generate")
    brandColors: Optional[BrandColors] = Field(default=None, description="Brand colors to use in the ads")
    generateImages: bool = Field(default=True, description="Render an image per ad with an image model")


class AdsTool(BaseTool[AdsArgs]):
    name = "generate_ads"
    description = "Generate ad creatives with headline, body copy, CTA and image for each ad platform"
    ArgsModel = AdsArgs
    artifact_type = ArtifactTypeEnum.ads
    credit_cost = CREDIT_COSTS["ads"]

    def run(self, *, ctx: ToolContext, args: AdsArgs) -> ToolResult:
        platforms = list(args.platforms or DEFAULT_PLATFORMS)
        formats = list(args.formats or DEFAULT_FORMATS)
        colors = args.brandColors.model_dump() if args.brandColors else None
        render = args.generateImages and ctx.llm().is_configured()
        stamp = int(time.time() * 1000)

        ads = []
        index = 0
        for platform in platforms:
            for ad_format in formats:
                copy = build_ad_copy(
                    args.businessDescription, args.targetAudience, args.mainOffer, platform, index
                )
                image_url = self._render_image(ctx, args, platform, ad_format, colors) if render else None
                index += 1
                ads.append(
                    {
                        "id": f"ad-{index}-{stamp}",
                        "imageUrl": image_url or fallback_ad_image(platform, ad_format, colors),
                        **copy,
                        "platform": platform,
                        "format": ad_format,
                    }
                )

        artifact = ctx.save_artifact(self.artifact_type, {"ads": ads})
        return ToolResult(
            artifact=artifact,
            summary=f"Created {len(ads)} ad creatives for {', '.join(p.capitalize() for p in platforms)}.",
        )

    @staticmethod
    def _render_image(
        ctx: ToolContext,
        args: AdsArgs,
        platform: str,
        ad_format: str,
        colors: Optional[dict[str, str]],
    ) -> Optional[str]:
        color_line = f"Brand Colors: Primary {colors['primary']}, Secondary {colors['secondary']}\n" if colors else ""
        prompt = (
            f"Create a professional advertising image for a {platform} ad.\n\n"
            f"Business: {args.businessDescription}\n"
            f"Target Audience: {args.targetAudience}\n"
            f"Main Offer: {args.mainOffer}\n"
            f"Format: {ASPECT_RATIOS[ad_format]} {ad_format}\n"
            f"{color_line}\n"
            "Requirements: eye-catching, modern and clean composition. NO text in the image."
        )
        try:
            return ctx.llm().generate_image(
                prompt, LLMGenerationParams(model=settings.LLM_IMAGE_MODEL, temperature=0.9)
            )
        except Exception:  # noqa: BLE001
            logger.exception("Ad image generation failed", extra={"platform": platform, "format": ad_format})
            return None
