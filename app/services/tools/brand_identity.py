from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import Field

from app.config import settings
from app.db.enums import ArtifactTypeEnum
from app.llm.client import LLMClientConfigError, LLMGenerationParams, LLMResponseFormatError
from app.services.pricing import CREDIT_COSTS
from app.services.tools.base import BaseTool, ToolArgs, ToolContext, ToolResult

logger = logging.getLogger(__name__)

DEFAULT_COLORS = {"primary": "#4361ee", "secondary": "#1a1a2e", "accent": "#f72585"}
DEFAULT_FONT = "Inter"

_IDENTITY_PROMPT = """You are a brand strategist. Create a brand identity for this business.

Business: {description}
{name_hint}
Return ONLY a JSON object:
{{
  "name": "Brand name (1-3 words)",
  "tagline": "Short memorable tagline",
  "colors": {{"primary": "#hex", "secondary": "#hex", "accent": "#hex"}},
  "font": "A Google Font family name",
  "logoDescription": "One sentence describing a simple, modern logo mark",
  "voice": "Two or three words describing the brand voice"
}}"""


def normalize_identity(raw: dict[str, Any], *, fallback_name: str) -> dict[str, Any]:
    colors = raw.get("colors") if isinstance(raw.get("colors"), dict) else {}
    return {
        "name": str(raw.get("name") or fallback_name).strip(),
        "tagline": str(raw.get("tagline") or "").strip(),
        "colors": {key: str(colors.get(key) or value) for key, value in DEFAULT_COLORS.items()},
        "font": str(raw.get("font") or DEFAULT_FONT),
        "logoDescription": str(raw.get("logoDescription") or ""),
        "logoUrl": raw.get("logoUrl"),
        "voice": str(raw.get("voice") or "Professional and friendly"),
    }


def fallback_identity(description: str, name: Optional[str] = None) -> dict[str, Any]:
    words = [word.strip(",.") for word in (description or "").split() if len(word.strip(",.")) > 3]
    derived = " ".join(word.capitalize() for word in words[:2]) or "New Venture"
    brand = name or f"{derived} Co"
    return normalize_identity(
        {
            "name": brand,
            "tagline": f"{derived} done right",
            "logoDescription": f"A clean wordmark spelling {brand}",
        },
        fallback_name=brand,
    )


class BrandIdentityArgs(ToolArgs):
    businessDescription: str = Field(description="Description of the business to brand")
    preferredName: Optional[str] = Field(default=None, description="Business name to keep, if the user gave one")
    generateLogo: bool = Field(default=False, description="Also render a logo image")


class BrandIdentityTool(BaseTool[BrandIdentityArgs]):
    name = "generate_brand_identity"
    description = (
        "Generate a complete brand identity including logo, color palette, typography, and tagline"
    )
    ArgsModel = BrandIdentityArgs
    artifact_type = ArtifactTypeEnum.identity
    credit_cost = CREDIT_COSTS["brand_identity"]

    def run(self, *, ctx: ToolContext, args: BrandIdentityArgs) -> ToolResult:
        llm = ctx.llm()
        if not llm.is_configured():
            identity = fallback_identity(args.businessDescription, args.preferredName)
        else:
            prompt = _IDENTITY_PROMPT.format(
                description=args.businessDescription,
                name_hint=f"Use this exact name: {args.preferredName}\n" if args.preferredName else "",
            )
            try:
                raw = llm.generate_json(prompt, LLMGenerationParams(temperature=0.8))
                identity = normalize_identity(
                    raw if isinstance(raw, dict) else {},
                    fallback_name=args.preferredName or "New Venture",
                )
            except (LLMResponseFormatError, LLMClientConfigError):
                logger.exception("Brand identity generation returned unusable output")
                identity = fallback_identity(args.businessDescription, args.preferredName)

            if args.generateLogo:
                identity["logoUrl"] = self._render_logo(ctx, identity)

        artifact = ctx.save_artifact(self.artifact_type, identity)
        return ToolResult(
            artifact=artifact,
            summary=f"Created brand identity for {identity['name']}: \"{identity['tagline']}\".",
        )

    def _render_logo(self, ctx: ToolContext, identity: dict[str, Any]) -> Optional[str]:
        prompt = (
            f"Minimal flat vector logo for a brand named {identity['name']}. "
            f"{identity['logoDescription']} Colors {identity['colors']['primary']} and "
            f"{identity['colors']['accent']}. White background, no extra text."
        )
        try:
            return ctx.llm().generate_image(prompt, LLMGenerationParams(model=settings.LLM_IMAGE_MODEL))
        except Exception:  # noqa: BLE001
            logger.exception("Logo generation failed", extra={"project_id": str(ctx.project_id)})
            return None
