import pytest

from app.llm import client as llm_client
from app.services import industry_context
from app.services.industry_context import (
    WEBSITE_STYLES,
    analyze_business_personality,
    architect_prompt,
    detect_industry_key,
    get_design_adaptations,
    get_industry_colors,
    get_website_style,
    style_for_description,
)
from app.services.tools.website import WebsiteTool, fallback_website


@pytest.mark.parametrize(
    "description,expected",
    [
        ("Family-run Italian restaurant downtown", "restaurant"),
        ("Thai kitchen and takeaway restaurant", "restaurant"),
        ("We help dentists fill their chairs", "dentist"),
        ("Barbershop and beauty salon", "salon"),
        ("Roofing and plumbing contractor", "contractor"),
        ("Workflow automation with AI agents", "ai_automation"),
        ("", "consulting"),
        (None, "consulting"),
    ],
)
def test_detect_industry_key(description, expected):
    assert detect_industry_key(description) == expected


def test_colors_follow_description_keywords():
    assert get_industry_colors("Independent investment advisors")["primary"] == "#1E3A8A"
    assert get_industry_colors("Neighborhood coffee roaster") == industry_context.INDUSTRY_COLORS["food"]
    assert get_industry_colors("Something else entirely") == industry_context.INDUSTRY_COLORS["default"]
    get_industry_colors("bank")["primary"] = "#000000"
    assert industry_context.INDUSTRY_COLORS["finance"]["primary"] == "#1E3A8A"


def test_website_style_matches_normalized_industry_names():
    assert get_website_style("Real Estate").style == "MINIMALIST CLEAN"
    assert get_website_style("Barbershop") is WEBSITE_STYLES["salon"]
    assert get_website_style("Cocktail Bar") is WEBSITE_STYLES["bar"]
    assert get_website_style("Auto Detailing") is WEBSITE_STYLES["automotive"]
    assert get_website_style(None) is WEBSITE_STYLES["default"]
    assert style_for_description("Happy hour trivia nights") is WEBSITE_STYLES["consulting"]


def test_personality_and_design_adaptations():
    premium = analyze_business_personality("Luxury boutique spa for exclusive clients")
    assert premium.tone == "premium"
    assert premium.price_position == "premium"
    adaptations = get_design_adaptations(premium)
    assert adaptations.color_scheme.startswith("Gold, navy")
    assert "Generous whitespace" in adaptations.spacing

    budget = analyze_business_personality("Affordable local community gym")
    assert budget.tone == "friendly"
    assert budget.price_position == "budget"
    assert budget.target_audience == "b2c"
    assert budget.sophistication == "simple"

    b2b = analyze_business_personality("Enterprise analytics platform for companies")
    assert b2b.sophistication == "advanced"
    assert b2b.target_audience == "b2b"
    assert get_design_adaptations(b2b).typography.startswith("Modern sans-serif")


def test_architect_prompt_is_keyed_by_industry():
    generic = architect_prompt("default")
    assert "This business is" not in generic

    legal = architect_prompt("Law Firm")
    assert legal.startswith(generic)
    assert "CORPORATE PROFESSIONAL" in legal
    assert "Attorney profiles" in legal


def test_website_tool_prompt_includes_industry_brief():
    prompt = WebsiteTool._prompt("A cozy Italian restaurant in Boston", None)
    assert "Industry: Restaurant" in prompt
    assert '"Reserve Your Table"' in prompt
    assert "Suggested Palette: primary #EF4444" in prompt

    branded = WebsiteTool._prompt(
        "A cozy Italian restaurant in Boston",
        {"name": "Nonna's", "colors": {"primary": "#112233", "secondary": "#445566", "accent": "#778899"}},
    )
    assert "Primary Color: #112233" in branded
    assert "Suggested Palette" not in branded
    assert "WARM & FRIENDLY" in WebsiteTool._system_prompt("A cozy Italian restaurant in Boston")


def test_fallback_website_uses_industry_palette_and_cta():
    site = fallback_website("A cozy Italian restaurant in Boston")
    index = next(f["content"] for f in site["files"] if f["path"] == "/index.html")
    styles = next(f["content"] for f in site["files"] if f["path"] == "/styles.css")
    assert "Reserve Your Table" in index
    assert "#EF4444" in styles


def test_website_tool_falls_back_when_llm_call_fails(api_client, project, monkeypatch):
    systems = []

    def _fail(self, prompt, params=None, *, system=None):
        systems.append(system)
        raise RuntimeError("OpenRouter API error: 500")

    monkeypatch.setattr(llm_client.settings, "OPENROUTER_API_KEY", "sk-test")
    monkeypatch.setattr(llm_client.LLMClient, "generate_text", _fail)

    resp = api_client.post(
        "/tools/generate_website_files",
        json={"projectId": str(project.id), "params": {"businessDescription": "Emergency dental clinic"}},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["creditsCharged"] == 15
    paths = [f["path"] for f in body["artifact"]["data"]["files"]]
    assert paths == ["/index.html", "/styles.css", "/script.js"]
    assert len(systems) == 1
    assert "MINIMALIST CLEAN" in systems[0]
