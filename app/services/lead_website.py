from __future__ import annotations

import hashlib
import logging
import secrets
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.config import settings
from app.db.base import session_scope
from app.db.enums import ArtifactTypeEnum
from app.db.repositories.artifacts import ArtifactsRepository
from app.db.repositories.leads import LeadsRepository
from app.db.repositories.projects import ProjectsRepository
from app.llm.client import LLMClient, LLMGenerationParams
from app.services.industry_context import architect_prompt, get_website_style, industry_brief_lines
from app.services.lead_projection import refresh_leads_projection, upsert_lead_websites
from app.services.sse import CancellationToken, GenerationCancelled, SSEEvent, describe_generation_error
from app.services.website_analyzer import extract_website_content

logger = logging.getLogger(__name__)

PREVIEW_TOKEN_LENGTH = 21
LEAD_WEBSITE_MODEL = "anthropic/claude-3.5-sonnet"
WEBSITE_STATUS_READY = "ready"

DESIGN_STYLES = ("modern-minimal", "bold-editorial", "warm-organic", "corporate-clean", "dark-premium")
_LAYOUT_STYLES = {
    "hero-centric": "bold-editorial",
    "grid-based": "corporate-clean",
    "sidebar": "modern-minimal",
    "single-column": "warm-organic",
}

FALLBACK_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Your New Website</title>
  <script src="https://cdn.tailwindcss.com"></script>
  <link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&display=swap" rel="stylesheet">
  <style>body { font-family: 'Inter', sans-serif; }</style>
</head>
<body class="bg-white text-gray-900">
  <header class="py-4 px-6 flex justify-between items-center border-b">
    <h1 class="text-lg font-bold">Your Business</h1>
    <nav class="flex gap-4">
      <a href="#services" class="text-sm text-gray-600 hover:text-gray-900">Services</a>
      <a href="#contact" class="text-sm text-gray-600 hover:text-gray-900">Contact</a>
    </nav>
  </header>
  <main>
    <section class="py-12 px-6 text-center bg-gradient-to-br from-blue-50 to-indigo-100">
      <h2 class="text-3xl font-bold mb-6">Welcome to Your New Website</h2>
      <p class="text-base text-gray-600 mb-8 max-w-2xl mx-auto">
        This is a preview of what your professional website could look like.
        We can customize every aspect to match your brand and business needs.
      </p>
      <a href="#contact" class="bg-blue-600 text-white px-4 py-2 rounded-xl font-semibold text-sm">Get Started</a>
    </section>
    <section id="services" class="py-12 px-6">
      <h3 class="text-2xl font-bold text-center mb-12">Our Services</h3>
      <div class="grid md:grid-cols-3 gap-6 max-w-5xl mx-auto">
        <div class="p-4 border rounded-xl"><h4 class="text-lg font-semibold mb-2">Service One</h4></div>
        <div class="p-4 border rounded-xl"><h4 class="text-lg font-semibold mb-2">Service Two</h4></div>
        <div class="p-4 border rounded-xl"><h4 class="text-lg font-semibold mb-2">Service Three</h4></div>
      </div>
    </section>
  </main>
  <footer id="contact" class="py-6 px-6 bg-gray-100 text-center text-xs text-gray-600">
    <p>Website Preview - Powered by Your Agency</p>
  </footer>
</body>
</html>"""


def generate_preview_token() -> str:
    return secrets.token_urlsafe(16)[:PREVIEW_TOKEN_LENGTH]


def preview_expiry(now: Optional[datetime] = None) -> datetime:
    return (now or datetime.now(timezone.utc)) + timedelta(days=settings.LEAD_PREVIEW_TTL_DAYS)


def fallback_files() -> list[dict[str, str]]:
    return [{"path": "/index.html", "content": FALLBACK_HTML, "type": "html"}]


def select_design_style(lead_id: str, layout: Optional[str], recent: list[str]) -> str:
    """Prefer the style matching the source layout, otherwise rotate deterministically per lead."""
    preferred = _LAYOUT_STYLES.get(layout or "")
    if preferred and preferred not in recent:
        return preferred
    start = int(hashlib.sha1(lead_id.encode("utf-8")).hexdigest(), 16) % len(DESIGN_STYLES)
    for offset in range(len(DESIGN_STYLES)):
        style = DESIGN_STYLES[(start + offset) % len(DESIGN_STYLES)]
        if style not in recent:
            return style
    return DESIGN_STYLES[start]


def build_lead_website_prompt(
    business_name: str,
    industry: str,
    design_style: Optional[str],
    extracted: Optional[dict[str, Any]],
) -> str:
    lines = [
        "Generate a STUNNING, industry-specific landing page for:",
        "",
        f"BUSINESS: {business_name}",
        f"INDUSTRY: {industry}",
    ]
    if design_style:
        lines.append(f"DESIGN STYLE: {design_style}")
    lines += ["", *industry_brief_lines(industry)]
    if not design_style:
        style = get_website_style(industry)
        lines += [
            "",
            "===== STYLE DIRECTIVE =====",
            f"Design Style: {style.style}",
            f"Color Scheme: {style.color_scheme}",
            f"Typography: {style.typography}",
            f"Imagery Guidelines: {style.imagery}",
            f"CTA Style: {style.cta_style}",
            "Sections to include:",
        ]
        lines += [f"{index}. {section}" for index, section in enumerate(style.sections, start=1)]

    images: list[str] = []
    if extracted and extracted.get("content"):
        content = extracted["content"]
        lines += ["", "===== EXTRACTED CONTENT FROM EXISTING WEBSITE ====="]
        if content.get("headline"):
            lines.append(f"Headline: {content['headline']}")
        if content.get("tagline"):
            lines.append(f"Tagline: {content['tagline']}")
        if content.get("headings"):
            lines.append(f"Key Headings: {' | '.join(content['headings'])}")
        if content.get("paragraphs"):
            lines.append("Content: " + "\n\n".join(content["paragraphs"]))
        colors = extracted.get("colors") or {}
        for role in ("primary", "secondary", "accent"):
            if colors.get(role):
                lines.append(f"- {role.capitalize()} color: {colors[role]}")
        images = list(extracted.get("images") or [])
        if images:
            lines.append(f"Available Real Images ({len(images)} from original website):")
            lines += [f"{index}. {image}" for index, image in enumerate(images, start=1)]
        lines.append("PRESERVE this information in the new design while modernizing and improving clarity.")

    image_rule = (
        f"Use the {len(images)} real images above first; use https://placehold.co for any extra images"
        if images
        else "Use placeholder images from https://placehold.co"
    )
    lines += [
        "",
        "===== REQUIREMENTS =====",
        f"1. {image_rule}",
        "2. Realistic content that matches the industry",
        "3. Mobile-responsive design using Tailwind CSS CDN",
        "4. Smooth animations and hover effects",
        '5. A footer with "Website Preview - Powered by [Your Agency]"',
        "",
        "Return ONLY a valid JSON object:",
        '{"files": [{"path": "/index.html", "content": "<!DOCTYPE html>...", "type": "html"}]}',
    ]
    return "\n".join(lines)


def generate_site_files(prompt: str, *, industry: Optional[str] = None) -> list[dict[str, str]]:
    """LLM-built site files; the static fallback page when no key is set or the call fails."""
    llm = LLMClient(default_model=LEAD_WEBSITE_MODEL)
    if not llm.is_configured():
        logger.warning("OPENROUTER_API_KEY not configured; using fallback lead website")
        return fallback_files()
    try:
        parsed = llm.generate_json(
            prompt, LLMGenerationParams(temperature=0.7, max_tokens=12000), system=architect_prompt(industry)
        )
    except Exception:  # noqa: BLE001
        logger.exception("Lead website generation failed; using fallback lead website")
        return fallback_files()
    files = parsed.get("files") if isinstance(parsed, dict) else None
    if not isinstance(files, list) or not files:
        logger.warning("Lead website response had no files; using fallback")
        return fallback_files()
    return [
        {"path": str(f.get("path") or "/index.html"), "content": str(f.get("content") or ""), "type": str(f.get("type") or "html")}
        for f in files
        if isinstance(f, dict)
    ]


def run_lead_website_generation(
    token: CancellationToken,
    *,
    user_id: str,
    lead_id: UUID,
    project_id: Optional[UUID],
    business_name: Optional[str] = None,
    industry: Optional[str] = None,
    website_url: Optional[str] = None,
) -> Iterator[SSEEvent]:
    """
    Build a shareable preview site for one lead.

    Emits `progress` events per stage and ends with `success` or `error`.
    Nothing is written once the token is cancelled.
    """
    stage = "validation"
    try:
        if not project_id:
            yield "error", {"stage": stage, "error": "Project ID is required"}
            return
        with session_scope() as session:
            if ProjectsRepository(session).get(user_id, project_id) is None:
                yield "error", {"stage": stage, "error": "Invalid project ID"}
                return
            lead = LeadsRepository(session).get(project_id, lead_id)
            if lead is None:
                yield "error", {"stage": stage, "error": "Lead not found"}
                return
            name = business_name or lead.company_name
            lead_industry = industry or lead.industry or "default"
            source_url = website_url or None
            recent = _recent_styles(session, project_id, lead_id)
        yield "progress", {"stage": stage, "message": "Inputs validated successfully"}

        extracted: Optional[dict[str, Any]] = None
        design_style: Optional[str] = None
        if source_url:
            stage = "fetch"
            token.raise_if_cancelled()
            yield "progress", {"stage": stage, "message": "Fetching website content..."}
            extracted = extract_website_content(source_url)
            yield "progress", {"stage": stage, "message": "Content extracted successfully"}

            stage = "analysis"
            token.raise_if_cancelled()
            yield "progress", {"stage": stage, "message": "Analyzing website structure..."}
            design_style = select_design_style(
                str(lead_id), (extracted.get("structure") or {}).get("layout"), recent
            )
            yield "progress", {"stage": stage, "message": f"Style selected: {design_style}"}

        stage = "generation"
        token.raise_if_cancelled()
        yield "progress", {"stage": stage, "message": "AI is designing your website..."}
        files = generate_site_files(
            build_lead_website_prompt(name, lead_industry, design_style, extracted), industry=lead_industry
        )
        yield "progress", {"stage": stage, "message": "Website generated successfully!"}

        stage = "database"
        token.raise_if_cancelled()
        yield "progress", {"stage": stage, "message": "Saving website preview..."}
        preview_token = generate_preview_token()
        expires_at = preview_expiry()
        with session_scope() as session:
            upsert_lead_websites(
                session,
                project_id,
                [
                    {
                        "leadId": str(lead_id),
                        "leadName": name,
                        "previewToken": preview_token,
                        "files": files,
                        "expiresAt": expires_at.isoformat(),
                        "designStyle": design_style,
                        "sourceUrl": source_url,
                        "createdAt": datetime.now(timezone.utc).isoformat(),
                    }
                ],
            )
            LeadsRepository(session).update(
                project_id, lead_id, preview_token=preview_token, website_status=WEBSITE_STATUS_READY
            )
            refresh_leads_projection(session, project_id)
        yield "progress", {"stage": stage, "message": "Preview saved successfully!"}
        yield "success", {
            "previewToken": preview_token,
            "previewUrl": f"/preview/{preview_token}",
            "expiresAt": expires_at.isoformat(),
            "designStyle": design_style,
        }
    except GenerationCancelled:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("Lead website generation failed", extra={"lead_id": str(lead_id), "stage": stage})
        yield "error", {"stage": stage, "error": describe_generation_error(exc)}


def _recent_styles(session: Session, project_id: UUID, lead_id: UUID) -> list[str]:
    data = ArtifactsRepository(session).get_data(project_id, ArtifactTypeEnum.lead_website) or {}
    return [
        site["designStyle"]
        for site in (data.get("websites") or [])
        if str(site.get("leadId")) == str(lead_id) and site.get("designStyle")
    ][:5]


def find_preview(session: Session, preview_token: str, *, now: Optional[datetime] = None) -> Optional[dict[str, Any]]:
    """The lead site stored under `preview_token`, or None if unknown or expired."""
    lead = LeadsRepository(session).get_by_preview_token(preview_token)
    if lead is None:
        return None
    data = ArtifactsRepository(session).get_data(lead.project_id, ArtifactTypeEnum.lead_website) or {}
    site = next((s for s in data.get("websites") or [] if s.get("previewToken") == preview_token), None)
    if site is None:
        return None
    expires_at = site.get("expiresAt")
    if expires_at:
        try:
            expiry = datetime.fromisoformat(str(expires_at).replace("Z", "+00:00"))
        except ValueError:
            return None
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        if expiry <= (now or datetime.now(timezone.utc)):
            return None
    return site
