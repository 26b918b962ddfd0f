from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from pydantic import Field

from app.db.enums import ArtifactTypeEnum
from app.llm.client import LLMGenerationParams, LLMResponseFormatError
from app.services.pricing import CREDIT_COSTS
from app.services.tools.base import BaseTool, ToolArgs, ToolContext, ToolExecutionError, ToolResult
from app.services.tools.brand_identity import normalize_identity

logger = logging.getLogger(__name__)

EDIT_WEBSITE_MODEL = "google/gemini-2.0-flash-001"
PRICING_EDIT_MODEL = "anthropic/claude-3.5-sonnet"

_SIMPLE_EDIT_RE = re.compile(
    r"^(change|update|make|set|use|switch)\s+(the\s+)?"
    r"(font|color|text|heading|title|button|background|padding|margin|size)",
    re.IGNORECASE,
)
_HTML_FENCE_RE = re.compile(r"```(?:html)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

_DIFF_PROMPT = """You are making a SURGICAL edit to HTML. Return ONLY the find/replace operations needed.

USER REQUEST: "{instructions}"

CURRENT HTML (excerpt):
```html
{excerpt}
```

Return a JSON array of operations, each with "find" (exact string to find, with enough
context to be unique) and "replace". Return ONLY the JSON array, no explanation."""

_FULL_EDIT_PROMPT = """You are editing a website's HTML. Make ONLY the changes the user requested.

USER REQUEST: "{instructions}"
{pages}
CURRENT HTML:
```html
{html}
```

Follow the request exactly. You may add, remove or reorganize sections and change layouts,
styles and content freely. Return ONLY the complete modified HTML, no markdown, no explanation."""

_IDENTITY_EDIT_PROMPT = """You are editing a brand identity. Current identity:

{identity}

User Request: {instructions}

Return the UPDATED identity as a JSON object with the same keys (name, tagline, colors with
primary/secondary/accent, font, logoDescription, voice). Only change what the user requested."""

_PRICING_EDIT_PROMPT = """You are editing a business plan's pricing. Current pricing structure:

PRICING TIERS:
{tiers}

SERVICE PACKAGES:
{packages}

OTHER INFO:
- Executive Summary: {summary}
- Revenue Model: {revenue}
- Target Market: {market}
- Value Proposition: {value}

User Request: {instructions}

Return the UPDATED business plan as JSON. Only change what the user requested.
Keep everything else exactly the same.

{{
  "executiveSummary": "...",
  "revenueModel": "...",
  "pricingTiers": [{{"name": "...", "price": "$X/month", "features": ["..."]}}],
  "servicePackages": [{{"name": "...", "description": "...", "deliverables": ["..."], "price": "$X"}}],
  "targetMarket": "...",
  "valueProposition": "..."
}}

Price format for tiers is "$X/month" (or "$X" for one-time), for packages "$X".
Features and deliverables are arrays of strings."""


def _display_path(path: str) -> str:
    if path == "/index.html":
        return "/"
    if path.endswith("/index.html"):
        return path[: -len("/index.html")]
    return path.replace(".html", "")


def apply_replacements(html: str, operations: Any) -> Optional[str]:
    """Apply find/replace operations; None when nothing matched."""
    if not isinstance(operations, list):
        return None
    updated = html
    applied = 0
    for operation in operations:
        if not isinstance(operation, dict):
            continue
        find = operation.get("find")
        replace = operation.get("replace")
        if not find or replace is None or find not in updated:
            continue
        updated = updated.replace(find, str(replace))
        applied += 1
    return updated if applied else None


def strip_html_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        match = _HTML_FENCE_RE.search(text)
        if match:
            return match.group(1).strip()
    return text


class EditArgs(ToolArgs):
    editInstructions: str = Field(description="What changes to make")


class EditWebsiteArgs(EditArgs):
    targetPage: str = Field(default="/index.html", description="Which page to edit; defaults to /index.html")


class EditWebsiteTool(BaseTool[EditWebsiteArgs]):
    name = "edit_website"
    description = (
        "Edit an existing website - use this to make changes like updating colors, text, layout, "
        "or sections. Do NOT use generate_website_files for edits."
    )
    ArgsModel = EditWebsiteArgs
    artifact_type = ArtifactTypeEnum.website_code
    credit_cost = CREDIT_COSTS["website_edit"]

    def run(self, *, ctx: ToolContext, args: EditWebsiteArgs) -> ToolResult:
        website = ctx.load_artifact_data(self.artifact_type)
        if not website or not website.get("files"):
            raise ToolExecutionError("No website found to edit. Generate a website first.")

        files = list(website["files"])
        target = args.targetPage if args.targetPage.startswith("/") else f"/{args.targetPage}"
        page = next((f for f in files if f.get("path") == target), None)
        page = page or next((f for f in files if f.get("path") == "/index.html"), None)
        if page is None:
            raise ToolExecutionError(f"Page {target} not found")

        current_html = page.get("content") or ""
        new_html: Optional[str] = None
        if _SIMPLE_EDIT_RE.match(args.editInstructions):
            new_html = self._quick_edit(ctx, args.editInstructions, current_html)
        if not new_html or new_html == current_html:
            new_html = self._full_edit(ctx, args.editInstructions, current_html, files)

        updated_files = [{**f, "content": new_html} if f is page else f for f in files]
        artifact = ctx.save_artifact(self.artifact_type, {**website, "files": updated_files})
        return ToolResult(artifact=artifact, summary=f"Website updated: {args.editInstructions}")

    @staticmethod
    def _quick_edit(ctx: ToolContext, instructions: str, html: str) -> Optional[str]:
        excerpt = html[:2000] + ("\n... [truncated]" if len(html) > 2000 else "")
        try:
            operations = ctx.llm(EDIT_WEBSITE_MODEL).generate_json(
                _DIFF_PROMPT.format(instructions=instructions, excerpt=excerpt),
                LLMGenerationParams(temperature=0, max_tokens=2000),
            )
        except LLMResponseFormatError:
            logger.info("Quick edit response unusable; falling back to full edit")
            return None
        return apply_replacements(html, operations)

    @staticmethod
    def _full_edit(ctx: ToolContext, instructions: str, html: str, files: list[dict[str, Any]]) -> str:
        pages = [_display_path(f["path"]) for f in files if str(f.get("path", "")).endswith(".html")]
        page_list = ""
        if len(pages) > 1:
            page_list = "\nAVAILABLE PAGES (use these paths for internal links):\n" + "\n".join(
                f"- {p}" for p in pages
            )
        text = ctx.llm().generate_text(
            _FULL_EDIT_PROMPT.format(instructions=instructions, pages=page_list, html=html),
            LLMGenerationParams(temperature=0.1, max_tokens=32000),
        )
        edited = strip_html_fence(text)
        if "<" not in edited:
            raise ToolExecutionError("AI did not return valid HTML")
        return edited


class EditIdentityTool(BaseTool[EditArgs]):
    name = "edit_identity"
    description = (
        "Edit the existing brand identity - use this to change the business name, colors, tagline, "
        "or regenerate the logo. Do NOT use generate_brand_identity for edits."
    )
    ArgsModel = EditArgs
    artifact_type = ArtifactTypeEnum.identity
    credit_cost = CREDIT_COSTS["identity_edit"]

    def run(self, *, ctx: ToolContext, args: EditArgs) -> ToolResult:
        identity = ctx.load_artifact_data(self.artifact_type)
        if not identity:
            raise ToolExecutionError("No brand identity found to edit. Generate one first.")

        editable = {key: value for key, value in identity.items() if key != "logoUrl"}
        try:
            raw = ctx.llm().generate_json(
                _IDENTITY_EDIT_PROMPT.format(identity=json.dumps(editable, indent=2), instructions=args.editInstructions),
                LLMGenerationParams(temperature=0.3),
            )
        except LLMResponseFormatError as exc:
            raise ToolExecutionError("Failed to parse AI response") from exc
        if not isinstance(raw, dict):
            raise ToolExecutionError("Failed to parse AI response")

        updated = normalize_identity({**identity, **raw}, fallback_name=identity.get("name") or "New Venture")
        updated["logoUrl"] = identity.get("logoUrl")
        artifact = ctx.save_artifact(self.artifact_type, updated)
        return ToolResult(artifact=artifact, summary=f"Brand updated: {args.editInstructions}")


class EditPricingTool(BaseTool[EditArgs]):
    name = "edit_pricing"
    description = (
        "Edit the existing pricing and business plan - use this to add/remove tiers, change prices, "
        "or update service packages. Do NOT use generate_business_plan for edits."
    )
    ArgsModel = EditArgs
    artifact_type = ArtifactTypeEnum.business_plan
    credit_cost = CREDIT_COSTS["pricing_edit"]

    def run(self, *, ctx: ToolContext, args: EditArgs) -> ToolResult:
        plan = ctx.load_artifact_data(self.artifact_type)
        if not plan:
            raise ToolExecutionError("No business plan found to edit. Generate one first.")

        prompt = _PRICING_EDIT_PROMPT.format(
            tiers=json.dumps(plan.get("pricingTiers") or [], indent=2),
            packages=json.dumps(plan.get("servicePackages") or [], indent=2),
            summary=plan.get("executiveSummary") or "",
            revenue=plan.get("revenueModel") or "",
            market=plan.get("targetMarket") or "",
            value=plan.get("valueProposition") or "",
            instructions=args.editInstructions,
        )
        try:
            updated = ctx.llm(PRICING_EDIT_MODEL).generate_json(prompt, LLMGenerationParams(temperature=0.3))
        except LLMResponseFormatError as exc:
            raise ToolExecutionError("Failed to parse AI response") from exc
        if not isinstance(updated, dict) or not isinstance(updated.get("pricingTiers"), list):
            raise ToolExecutionError("Failed to parse AI response")

        artifact = ctx.save_artifact(self.artifact_type, {**plan, **updated})
        return ToolResult(artifact=artifact, summary=f"Pricing updated: {args.editInstructions}")
