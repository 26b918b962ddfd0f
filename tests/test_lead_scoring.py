from app.db.enums import LeadPriorityEnum
from app.services.lead_scoring import (
    detect_business_type,
    detect_pain_points,
    icp_score,
    matched_buying_signals,
    priority_for_score,
    score_lead,
)
from app.services.tools.business_plan import build_business_plan, market_multiplier
from app.services.website_analyzer import analyze_html, analyze_website, extract_content_from_html


def test_score_lead_favours_new_businesses_without_websites():
    score, breakdown = score_lead(review_count=None, rating=None, website=None)
    assert breakdown == {"reviews": 40, "rating": 10, "website": 40}
    assert score == 90

    established, _ = score_lead(review_count=500, rating=4.9, website="https://big.example")
    assert established == 25


def test_score_lead_scales_website_analysis():
    _, breakdown = score_lead(review_count=15, rating=3.8, website="http://x.example", website_analysis={"score": 50})
    assert breakdown == {"reviews": 30, "rating": 15, "website": 20}


def test_priority_thresholds():
    assert priority_for_score(70) == LeadPriorityEnum.high
    assert priority_for_score(69) == LeadPriorityEnum.medium
    assert priority_for_score(40) == LeadPriorityEnum.medium
    assert priority_for_score(39) == LeadPriorityEnum.low


def test_detect_business_type():
    assert detect_business_type("AI Automation Agency") == "ai automation"
    assert detect_business_type("Web Design Studio") == "web design"
    assert detect_business_type("SEO consultancy") == "seo"
    assert detect_business_type("Bakery") == "default"


def test_icp_score_and_signals():
    content = "We are hiring and looking for help with manual data entry"
    assert matched_buying_signals(content) == ["looking for", "hiring"]
    assert icp_score(content, ["Manual data entry"]) == 9
    assert icp_score("", []) == 5


def test_detect_pain_points_fills_from_defaults():
    detected = detect_pain_points("struggling with outdated tools", ["Default pain"])
    assert detected == ["Currently facing operational challenges", "Using outdated systems or processes"]
    assert detect_pain_points("", ["One", "Two", "Three"]) == ["One", "Two"]


def test_analyze_html_flags_legacy_site():
    html = "<html><body><font face='arial'>Hi</font><p>copyright 2009</p></body></html>"
    result = analyze_html(html, "http://old.example", 9000, current_year=2025)
    assert result["score"] == 80
    assert result["status"] == "poor"
    assert result["hasSSL"] is False
    assert result["lastUpdated"] == "2009"
    assert any("font tags" in issue for issue in result["issues"])


def test_analyze_html_modern_site_is_good():
    html = (
        "<html><head><title>Acme</title><meta name='viewport' content='width=device-width'>"
        "<meta name='description' content='Acme plumbing'></head>"
        "<body><h1>Acme</h1><script src='/_next/static/react.js'></script></body></html>"
    )
    result = analyze_html(html, "https://acme.example", 800, current_year=2025)
    assert result["score"] == 0
    assert result["status"] == "good"
    assert result["issues"] == ["Website appears to be in good condition"]
    assert "React/Next.js" in result["technologies"]


def test_analyze_website_without_url_is_top_priority():
    result = analyze_website(None)
    assert result["status"] == "none"
    assert result["score"] == 100


def test_extract_content_from_html():
    html = (
        "<html><head><title>Fallback</title><meta name='description' content='Fresh bread daily'></head>"
        "<body><aside>menu</aside><h1>Corner <b>Bakery</b></h1><h2>Our breads</h2>"
        "<p>We bake sourdough every single morning before dawn.</p>"
        "<img src='/img/loaf.jpg'><img src='data:image/png;base64,AAAA'>"
        "<div style='color:#aa3300'></div></body></html>"
    )
    content = extract_content_from_html(html, "https://bakery.example/home")
    assert content["content"]["headline"] == "Corner Bakery"
    assert content["content"]["tagline"] == "Fresh bread daily"
    assert content["content"]["headings"] == ["Our breads"]
    assert content["images"] == ["https://bakery.example/img/loaf.jpg"]
    assert content["colors"] == {"primary": "#aa3300"}
    assert content["structure"]["layout"] == "sidebar"


def test_market_multiplier_bands():
    assert market_multiplier([]) == 1.0
    assert market_multiplier([2500, 3000]) == 0.9
    assert market_multiplier([1500]) == 1.0
    assert market_multiplier([300, 500]) == 1.1


def test_business_plan_adjusts_prices_to_cheap_market():
    plan = build_business_plan(
        "AI Automation Agency",
        "dentists",
        competitors=[{"name": "A", "price": "$500/month"}, {"name": "B", "price": "$700"}],
        brand_name="Botworks",
    )
    assert [tier["price"] for tier in plan["pricingTiers"]] == ["$1,100/month", "$2,700/month", "$5,500/month"]
    assert plan["executiveSummary"].startswith("Botworks is a ai automation agency")
    assert plan["targetMarket"] == "dentists"


def test_business_plan_without_competitors_uses_template_prices():
    plan = build_business_plan("AI Automation Agency", "dentists")
    assert [tier["price"] for tier in plan["pricingTiers"]] == ["$997/month", "$2,497/month", "$4,997/month"]
    assert plan["executiveSummary"].startswith("Your Agency")
