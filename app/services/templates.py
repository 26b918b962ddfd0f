from __future__ import annotations

import copy
import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from app.config import settings
from app.db.enums import ArtifactTypeEnum
from app.db.repositories.artifacts import ArtifactsRepository
from app.db.repositories.leads import LeadsRepository
from app.llm.client import (
    LLMClient,
    LLMClientConfigError,
    LLMGenerationParams,
    LLMResponseFormatError,
    extract_json_block,
)
from app.services.lead_projection import refresh_leads_projection, upsert_lead_websites
from app.services.lead_website import WEBSITE_STATUS_READY, generate_preview_token, preview_expiry

logger = logging.getLogger(__name__)

TEMPLATE_MODEL = "anthropic/claude-sonnet-4"

INDUSTRIES = [
    "plumbers",
    "electricians",
    "hvac",
    "roofers",
    "landscapers",
    "dentists",
    "chiropractors",
    "gyms",
    "yoga-studios",
    "restaurants",
    "cafes",
    "salons",
    "barbers",
    "real-estate",
    "lawyers",
    "accountants",
    "auto-repair",
    "cleaning-services",
    "photographers",
    "other",
]

DEFAULT_DESIGN_DNA: dict[str, Any] = {
    "layout": {
        "heroStyle": "centered",
        "gridPattern": "3-column",
        "sectionSpacing": "generous",
        "navStyle": "fixed-top",
    },
    "colorScheme": {
        "dominantColor": "#1a1a2e",
        "accentColor": "#4361ee",
        "backgroundColor": "#ffffff",
        "textColor": "#1a1a2e",
        "backgroundStyle": "light",
    },
    "typography": {
        "headingStyle": "bold-sans",
        "headingWeight": "bold",
        "bodyFont": "sans-serif",
        "textDensity": "balanced",
    },
    "components": {
        "buttonStyle": "rounded",
        "cardStyle": "elevated",
        "imageStyle": "rounded",
    },
    "effects": {
        "hasAnimations": True,
        "hasShadows": True,
        "hasGradients": False,
        "hasGlassmorphism": False,
        "hasParallax": False,
        "hasHoverEffects": True,
    },
    "sectionStructure": {
        "order": ["hero", "services", "about", "testimonials", "cta", "footer"],
        "sections": {},
    },
    "overallVibe": "Professional and trustworthy business website",
    "designNotes": "",
}

_DESIGN_DNA_GROUPS = ("layout", "colorScheme", "typography", "components", "effects", "sectionStructure")

DESIGN_DNA_PROMPT = """Analyze this website screenshot and extract its design DNA.

Return ONLY a JSON object with these keys:
- layout: {heroStyle, gridPattern, sectionSpacing, navStyle}
- colorScheme: {dominantColor, accentColor, backgroundColor, textColor, backgroundStyle} (hex colors)
- typography: {headingStyle, headingWeight, bodyFont, textDensity}
- components: {buttonStyle, cardStyle, imageStyle}
- effects: {hasAnimations, hasShadows, hasGradients, hasGlassmorphism, hasParallax, hasHoverEffects} (booleans)
- sectionStructure: {order: [section names top to bottom], sections: {}}
- overallVibe: one sentence describing the look and feel
- designNotes: anything distinctive a designer should reproduce"""

PLACEHOLDERS = ("{{BUSINESS_NAME}}", "{{PHONE}}", "{{ADDRESS}}", "{{TAGLINE}}")
DEFAULT_PHONE = "(555) 123-4567"
DEFAULT_ADDRESS = "Your City, State"

_FENCE_RE = re.compile(r"```(?:html)?\n?", re.IGNORECASE)


class TemplateNotFoundError(LookupError):
    pass


class TemplateGenerationError(RuntimeError):
    pass


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_design_dna(raw: Any) -> dict[str, Any]:
    """Fill missing DNA groups with defaults; groups the model did return are kept as-is."""
    raw = raw if isinstance(raw, dict) else {}
    dna = copy.deepcopy(DEFAULT_DESIGN_DNA)
    for group in _DESIGN_DNA_GROUPS:
        if isinstance(raw.get(group), dict) and raw[group]:
            dna[group] = raw[group]
    for key in ("overallVibe", "designNotes"):
        if isinstance(raw.get(key), str) and raw[key]:
            dna[key] = raw[key]
    order = dna["sectionStructure"].get("order")
    if not isinstance(order, list) or not order:
        dna["sectionStructure"] = {**dna["sectionStructure"], "order": list(DEFAULT_DESIGN_DNA["sectionStructure"]["order"])}
    return dna


def extract_design_dna(image_url: str) -> dict[str, Any]:
    """
    Vision pass over a screenshot (https or data URL).

    Without an OpenRouter key the default DNA is used, so templates still
    work in local setups.
    """
    llm = LLMClient(default_model=settings.LLM_VISION_MODEL)
    if not llm.is_configured():
        logger.warning("OPENROUTER_API_KEY not configured; using default design DNA")
        return normalize_design_dna(None)
    try:
        text = llm.describe_image(DESIGN_DNA_PROMPT, image_url, LLMGenerationParams(temperature=0.2, max_tokens=3000))
        return normalize_design_dna(extract_json_block(text))
    except LLMResponseFormatError:
        logger.warning("Design DNA response was not JSON; using defaults")
        return normalize_design_dna(None)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Screenshot analysis failed")
        raise TemplateGenerationError("Failed to analyze screenshot") from exc


def _effects_list(effects: dict[str, Any]) -> str:
    labels = {
        "hasAnimations": "animations",
        "hasShadows": "shadows",
        "hasGradients": "gradients",
        "hasGlassmorphism": "glassmorphism",
        "hasHoverEffects": "hover effects",
    }
    return " ".join(label for key, label in labels.items() if effects.get(key)) or "none"


def build_template_prompt(industry: str, dna: dict[str, Any]) -> str:
    layout, colors = dna["layout"], dna["colorScheme"]
    typography, components = dna["typography"], dna["components"]
    return f"""You are a world-class web designer. Generate a beautiful, modern HTML landing page template for a {industry} business.

## DESIGN DNA (MATCH THIS EXACTLY):
- Layout: {layout.get('heroStyle')} hero, {layout.get('gridPattern')} grid, {layout.get('sectionSpacing')} spacing
- Colors: Primary {colors.get('dominantColor')}, Accent {colors.get('accentColor')}, Background {colors.get('backgroundColor')}, Text {colors.get('textColor')}
- Background Style: {colors.get('backgroundStyle')}
- Typography: {typography.get('headingStyle')} headings ({typography.get('headingWeight')}), {typography.get('bodyFont')} body, {typography.get('textDensity')} density
- Buttons: {components.get('buttonStyle')} style
- Cards: {components.get('cardStyle')} style
- Images: {components.get('imageStyle')} style
- Effects: {_effects_list(dna['effects'])}

## SECTION ORDER:
{' -> '.join(dna['sectionStructure']['order'])}

## VIBE:
{dna['overallVibe']}

## DESIGN NOTES:
{dna['designNotes']}

## REQUIREMENTS:
1. Use Tailwind CSS (via CDN)
2. Use placeholder variables for personalization:
   - {{{{BUSINESS_NAME}}}} - Company name
   - {{{{PHONE}}}} - Phone number
   - {{{{ADDRESS}}}} - Business address
   - {{{{TAGLINE}}}} - Business tagline
3. Mobile responsive
4. Include all sections from the section order
5. Use professional stock images from unsplash (use relevant {industry} images)
6. Include a contact form

Return ONLY the complete HTML file content, nothing else. Do not use markdown code blocks."""


def fallback_template_html(industry: str, dna: dict[str, Any]) -> str:
    colors = dna["colorScheme"]
    sections = "\n".join(
        f'    <section id="{name}" class="py-16 px-6 max-w-5xl mx-auto"><h2 class="text-2xl font-bold mb-4">'
        f"{name.replace('-', ' ').title()}</h2><p>{{{{BUSINESS_NAME}}}} serves {industry} customers.</p></section>"
        for name in dna["sectionStructure"]["order"]
        if name not in ("hero", "footer")
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{{{BUSINESS_NAME}}}}</title>
  <script src="https://cdn.tailwindcss.com"></script>
</head>
<body style="background:{colors.get('backgroundColor', '#ffffff')};color:{colors.get('textColor', '#1a1a2e')}">
  <header class="py-24 px-6 text-center" style="background:{colors.get('dominantColor', '#1a1a2e')};color:#ffffff">
    <h1 class="text-4xl font-bold mb-4">{{{{BUSINESS_NAME}}}}</h1>
    <p class="text-lg mb-8">{{{{TAGLINE}}}}</p>
    <a href="tel:{{{{PHONE}}}}" class="px-6 py-3 rounded-lg font-semibold" style="background:{colors.get('accentColor', '#4361ee')}">Call {{{{PHONE}}}}</a>
  </header>
  <main>
{sections}
  </main>
  <footer class="py-8 px-6 text-center text-sm">
    <p>{{{{BUSINESS_NAME}}}} &middot; {{{{ADDRESS}}}} &middot; {{{{PHONE}}}}</p>
  </footer>
</body>
</html>"""


def clean_template_html(text: str) -> str:
    html = _FENCE_RE.sub("", text).strip()
    if not html.lower().startswith("<!doctype"):
        html = "<!DOCTYPE html>\n" + html
    return html


def generate_base_template(industry: str, dna: dict[str, Any]) -> dict[str, Any]:
    llm = LLMClient(default_model=TEMPLATE_MODEL)
    html: Optional[str] = None
    if llm.is_configured():
        try:
            html = clean_template_html(
                llm.generate_text(build_template_prompt(industry, dna), LLMGenerationParams(temperature=0.7))
            )
        except LLMClientConfigError:
            html = None
        except Exception as exc:  # noqa: BLE001
            logger.exception("Base template generation failed", extra={"industry": industry})
            raise TemplateGenerationError("Failed to generate template website") from exc
    if not html:
        html = fallback_template_html(industry, dna)
    return {"files": [{"path": "/index.html", "content": html, "type": "html"}], "primaryPage": "/index.html"}


def personalize_template(html: str, *, business_name: str, phone: str, address: str, tagline: str) -> str:
    return (
        html.replace("{{BUSINESS_NAME}}", business_name)
        .replace("{{PHONE}}", phone)
        .replace("{{ADDRESS}}", address)
        .replace("{{TAGLINE}}", tagline)
    )


def list_templates(session: Session, project_id: UUID) -> list[dict[str, Any]]:
    data = ArtifactsRepository(session).get_data(project_id, ArtifactTypeEnum.templates) or {}
    return list(data.get("templates") or [])


def get_template(session: Session, project_id: UUID, template_id: str) -> dict[str, Any]:
    for template in list_templates(session, project_id):
        if template.get("id") == template_id:
            return template
    raise TemplateNotFoundError("Template not found")


def _save_templates(session: Session, project_id: UUID, templates: list[dict[str, Any]]) -> None:
    ArtifactsRepository(session).upsert(project_id, ArtifactTypeEnum.templates, {"templates": templates})


def create_template(
    session: Session,
    project_id: UUID,
    *,
    industry: str,
    name: Optional[str] = None,
    custom_industry: Optional[str] = None,
    screenshot_url: Optional[str] = None,
    screenshot_base64: Optional[str] = None,
    screenshot_mime_type: Optional[str] = None,
) -> dict[str, Any]:
    if screenshot_url:
        image_url = screenshot_url
    elif screenshot_base64:
        image_url = (
            screenshot_base64
            if screenshot_base64.startswith("data:")
            else f"data:{screenshot_mime_type or 'image/png'};base64,{screenshot_base64}"
        )
    else:
        raise ValueError("Screenshot is required (URL or base64)")

    dna = extract_design_dna(image_url)
    target_industry = (custom_industry or "business") if industry == "other" else industry
    base_website = generate_base_template(target_industry, dna)

    now = _now_iso()
    template = {
        "id": uuid4().hex,
        "name": name or f"{industry} Template",
        "industry": industry,
        "customIndustry": custom_industry if industry == "other" else None,
        "screenshotUrl": screenshot_url,
        "designDNA": dna,
        "baseWebsite": base_website,
        "generatedSites": [],
        "createdAt": now,
        "updatedAt": now,
    }
    _save_templates(session, project_id, [*list_templates(session, project_id), template])
    logger.info("Template created", extra={"project_id": str(project_id), "template_id": template["id"]})
    return template


def delete_template(session: Session, project_id: UUID, template_id: str) -> None:
    templates = list_templates(session, project_id)
    remaining = [t for t in templates if t.get("id") != template_id]
    if len(remaining) == len(templates):
        raise TemplateNotFoundError("Template not found")
    _save_templates(session, project_id, remaining)


def generate_sites(
    session: Session,
    project_id: UUID,
    template_id: str,
    lead_ids: list[UUID],
) -> list[dict[str, Any]]:
    """
    Personalize a template for each lead and publish the results as lead previews.

    Existing `lead_website` entries for those leads are replaced, and each
    lead gets a fresh preview token.
    """
    templates = list_templates(session, project_id)
    template = next((t for t in templates if t.get("id") == template_id), None)
    if template is None:
        raise TemplateNotFoundError("Template not found")

    files = (template.get("baseWebsite") or {}).get("files") or []
    base_html = files[0].get("content", "") if files else ""
    tagline = f"Quality {template.get('industry')} services you can trust"
    design_style = (template.get("designDNA") or {}).get("overallVibe")

    leads_repo = LeadsRepository(session)
    entries: list[dict[str, Any]] = []
    generated: list[dict[str, Any]] = []
    for lead in leads_repo.list_by_ids(project_id, lead_ids):
        preview_token = generate_preview_token()
        now = _now_iso()
        html = personalize_template(
            base_html,
            business_name=lead.company_name,
            phone=lead.phone or DEFAULT_PHONE,
            address=lead.address or DEFAULT_ADDRESS,
            tagline=tagline,
        )
        entries.append(
            {
                "leadId": str(lead.id),
                "leadName": lead.company_name,
                "previewToken": preview_token,
                "files": [{"path": "/index.html", "content": html, "type": "html"}],
                "expiresAt": preview_expiry().isoformat(),
                "designStyle": design_style,
                "createdAt": now,
            }
        )
        generated.append(
            {
                "leadId": str(lead.id),
                "leadName": lead.company_name,
                "previewToken": preview_token,
                "previewUrl": f"/preview/{preview_token}",
                "generatedAt": now,
                "status": WEBSITE_STATUS_READY,
            }
        )
        leads_repo.apply(lead, preview_token=preview_token, website_status=WEBSITE_STATUS_READY)

    if entries:
        upsert_lead_websites(session, project_id, entries)
        updated = {**template, "generatedSites": [*(template.get("generatedSites") or []), *generated], "updatedAt": _now_iso()}
        _save_templates(session, project_id, [updated if t.get("id") == template_id else t for t in templates])
        refresh_leads_projection(session, project_id)
    return generated
