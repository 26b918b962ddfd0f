from __future__ import annotations

import html
import logging
from typing import Any, Optional

from pydantic import BaseModel, Field

from app.config import settings
from app.db.enums import ArtifactTypeEnum
from app.llm.client import LLMGenerationParams, LLMResponseFormatError
from app.services.industry_context import (
    architect_prompt,
    get_industry_colors,
    get_industry_context,
    industry_brief_lines,
    style_for_description,
)
from app.services.pricing import CREDIT_COSTS
from app.services.tools.base import BaseTool, ToolArgs, ToolContext, ToolResult

logger = logging.getLogger(__name__)

PRIMARY_PAGE = "/index.html"
PROJECT_ID_PLACEHOLDER = "__PROJECT_ID__"

_WEBSITE_PROMPT = """You are a senior web designer and front-end engineer.

===== PROJECT BRIEF =====
Business Description: {description}
{identity_block}
{industry_block}

===== YOUR TASK =====
Generate a production-ready landing page with SEPARATE HTML, CSS, and JavaScript files.

Requirements:
1. Tailwind CSS CDN for base styling
2. Google Font: {font}
3. Mobile-first responsive design, semantic HTML5, SEO meta tags, ARIA labels
4. Sections: hero with {hero_hint} and CTA; 3-6 features in a bento grid; testimonials; final CTA
5. A contact form without an action attribute containing
   <input type="hidden" name="projectId" value="{placeholder}" />, name, email, company, message
   and a submit button with id="submit-btn"

Return EXACTLY 3 files in this JSON format (NO markdown, NO explanations):
{{
  "files": [
    {{"path": "/index.html", "content": "<!DOCTYPE html>...", "type": "html"}},
    {{"path": "/styles.css", "content": "/* Custom CSS */...", "type": "css"}},
    {{"path": "/script.js", "content": "// Interactive JavaScript...", "type": "javascript"}}
  ]
}}"""

_IDENTITY_BLOCK = """
===== BRAND IDENTITY (MANDATORY) =====
Business Name: {name}
Tagline: {tagline}
Primary Color: {primary} (headlines, CTA buttons)
Secondary Color: {secondary} (section backgrounds, cards)
Accent Color: {accent} (highlights, hover states)
Use these exact hex codes throughout styles.css.
"""


def _file_type(path: str) -> str:
    if path.endswith(".html"):
        return "html"
    if path.endswith(".css"):
        return "css"
    if path.endswith(".js"):
        return "javascript"
    return "text"


def normalize_files(raw: Any, project_id: str) -> list[dict[str, str]]:
    """Validate model output into `{path, content, type}` entries with the project id filled in."""
    files = raw.get("files") if isinstance(raw, dict) else None
    if not isinstance(files, list) or not files:
        raise LLMResponseFormatError("Model response did not include any files.")
    normalized: list[dict[str, str]] = []
    for item in files:
        if not isinstance(item, dict) or not item.get("path") or item.get("content") is None:
            continue
        path = str(item["path"])
        if not path.startswith("/"):
            path = f"/{path}"
        normalized.append(
            {
                "path": path,
                "content": str(item["content"]).replace(PROJECT_ID_PLACEHOLDER, project_id),
                "type": str(item.get("type") or _file_type(path)),
            }
        )
    if not any(item["path"] == PRIMARY_PAGE for item in normalized):
        raise LLMResponseFormatError("Model response did not include /index.html.")
    return normalized


def fallback_website(description: str, identity: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    identity = identity or {}
    colors = identity.get("colors") or {}
    name = html.escape(identity.get("name") or "Your Business")
    tagline = html.escape(identity.get("tagline") or description or "")
    palette = get_industry_colors(description)
    primary = colors.get("primary") or palette["primary"]
    secondary = colors.get("secondary") or palette["secondary"]
    cta = html.escape(get_industry_context(description).cta_language[0])
    font = identity.get("font") or "Inter"
    index = f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{name}</title>
  <meta name="description" content="{tagline}" />
  <link rel="stylesheet" href="/styles.css" />
</head>
<body>
  <header class="hero">
    <h1>{name}</h1>
    <p>{tagline}</p>
    <a class="cta" href="#contact">{cta}</a>
  </header>
  <main>
    <section id="contact" class="contact">
      <h2>Contact us</h2>
      <form>
        <input type="text" name="name" required placeholder="Your Name" />
        <input type="email" name="email" required placeholder="your@email.com" />
        <textarea name="message" placeholder="How can we help?"></textarea>
        <button type="submit" id="submit-btn">Send</button>
      </form>
    </section>
  </main>
  <footer>&copy; {name}</footer>
  <script src="/script.js"></script>
</body>
</html>
"""
    styles = f"""body {{ margin: 0; font-family: '{font}', sans-serif; color: {secondary}; }}
.hero {{ padding: 6rem 1.5rem; text-align: center; background: {primary}; color: #fff; }}
.cta {{ display: inline-block; margin-top: 1.5rem; padding: 0.75rem 1.5rem; background: #fff; color: {primary};
  border-radius: 9999px; text-decoration: none; font-weight: 600; }}
.contact {{ max-width: 32rem; margin: 4rem auto; padding: 0 1.5rem; }}
.contact form {{ display: grid; gap: 0.75rem; }}
footer {{ padding: 2rem; text-align: center; opacity: 0.7; }}
"""
    script = """document.querySelectorAll('a[href^="#"]').forEach((link) => {
  link.addEventListener('click', (event) => {
    const target = document.querySelector(link.getAttribute('href'));
    if (target) {
      event.preventDefault();
      target.scrollIntoView({ behavior: 'smooth' });
    }
  });
});
"""
    return {
        "files": [
            {"path": PRIMARY_PAGE, "content": index, "type": "html"},
            {"path": "/styles.css", "content": styles, "type": "css"},
            {"path": "/script.js", "content": script, "type": "javascript"},
        ],
        "primaryPage": PRIMARY_PAGE,
    }


class IdentityInput(BaseModel):
    name: str
    colors: dict[str, str] = Field(default_factory=dict)
    font: str = "Inter"
    tagline: Optional[str] = None
    logoUrl: Optional[str] = None


class WebsiteArgs(ToolArgs):
    businessDescription: str = Field(description="Description of the business and its purpose")
    identity: Optional[IdentityInput] = Field(default=None, description="Brand identity to use for styling")


class WebsiteTool(BaseTool[WebsiteArgs]):
    name = "generate_website_files"
    description = "Generate a complete, production-ready landing page with HTML, CSS, and JavaScript"
    ArgsModel = WebsiteArgs
    artifact_type = ArtifactTypeEnum.website_code
    credit_cost = CREDIT_COSTS["website_generation"]

    def run(self, *, ctx: ToolContext, args: WebsiteArgs) -> ToolResult:
        identity = args.identity.model_dump() if args.identity else ctx.load_artifact_data(ArtifactTypeEnum.identity)
        llm = ctx.llm(settings.PROJECT_DEFAULT_MODEL)
        website: Optional[dict[str, Any]] = None
        if llm.is_configured():
            try:
                raw = llm.generate_json(
                    self._prompt(args.businessDescription, identity),
                    LLMGenerationParams(),
                    system=self._system_prompt(args.businessDescription),
                )
                website = {"files": normalize_files(raw, str(ctx.project_id)), "primaryPage": PRIMARY_PAGE}
            except Exception:  # noqa: BLE001
                logger.exception("Website generation failed; using fallback website", extra={"project_id": str(ctx.project_id)})
        if website is None:
            website = fallback_website(args.businessDescription, identity)

        artifact = ctx.save_artifact(self.artifact_type, website)
        brand = (identity or {}).get("name") or "custom"
        return ToolResult(
            artifact=artifact,
            summary=f"Generated {len(website['files'])} files with {brand} branding.",
        )

    @staticmethod
    def _prompt(description: str, identity: Optional[dict[str, Any]]) -> str:
        identity_block = ""
        if identity:
            colors = identity.get("colors") or {}
            identity_block = _IDENTITY_BLOCK.format(
                name=identity.get("name") or "",
                tagline=identity.get("tagline") or "Not provided",
                primary=colors.get("primary") or "",
                secondary=colors.get("secondary") or "",
                accent=colors.get("accent") or "",
            )
        industry_lines = industry_brief_lines(description)
        if not (identity or {}).get("colors"):
            palette = get_industry_colors(description)
            industry_lines.append(
                f"Suggested Palette: primary {palette['primary']}, secondary {palette['secondary']}, accent {palette['accent']}"
            )
        tagline = (identity or {}).get("tagline")
        return _WEBSITE_PROMPT.format(
            description=description,
            identity_block=identity_block,
            industry_block="\n".join(industry_lines),
            font=(identity or {}).get("font") or "Inter",
            hero_hint=f'tagline "{tagline}"' if tagline else "a compelling subheadline",
            placeholder=PROJECT_ID_PLACEHOLDER,
        )

    @staticmethod
    def _system_prompt(description: str) -> str:
        return architect_prompt(get_industry_context(description).industry, style_for_description(description))
