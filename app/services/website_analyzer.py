from __future__ import annotations

import html as html_lib
import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urljoin

import httpx

from app.config import settings

logger = logging.getLogger(__name__)

_ANALYZER_USER_AGENT = "Mozilla/5.0 (compatible; BusinessAnalyzer/1.0)"
_EXTRACTOR_USER_AGENT = "Mozilla/5.0 (compatible; WebsiteImprover/1.0)"

_COPYRIGHT_RE = re.compile(r"copyright\s*(?:&copy;|©|&#169;)?\s*(\d{4})", re.IGNORECASE)
_PHONE_RE = re.compile(r"\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
_CONTACT_FORM_RE = re.compile(r"type=[\"']email[\"']|<form.*contact|contact.*form", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_HEX_COLOR_RE = re.compile(r"#[0-9A-Fa-f]{6}\b")
_RGB_COLOR_RE = re.compile(r"rgb\([0-9, ]+\)")

_SOCIAL_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("Facebook", re.compile(r"facebook\.com", re.IGNORECASE)),
    ("Twitter/X", re.compile(r"twitter\.com|x\.com", re.IGNORECASE)),
    ("Instagram", re.compile(r"instagram\.com", re.IGNORECASE)),
    ("LinkedIn", re.compile(r"linkedin\.com", re.IGNORECASE)),
    ("YouTube", re.compile(r"youtube\.com", re.IGNORECASE)),
]

_TECHNOLOGY_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("WordPress", re.compile(r"wordpress|wp-content", re.IGNORECASE)),
    ("Wix", re.compile(r"wix\.com", re.IGNORECASE)),
    ("Squarespace", re.compile(r"squarespace", re.IGNORECASE)),
    ("Shopify", re.compile(r"shopify", re.IGNORECASE)),
    ("React/Next.js", re.compile(r"react|__NEXT_DATA__|next\.js", re.IGNORECASE)),
    ("Vue/Nuxt", re.compile(r"vue\.js|nuxt", re.IGNORECASE)),
    ("Bootstrap", re.compile(r"bootstrap", re.IGNORECASE)),
    ("Tailwind CSS", re.compile(r"tailwind", re.IGNORECASE)),
    ("jQuery", re.compile(r"jquery", re.IGNORECASE)),
]
_MODERN_TECHNOLOGIES = {"React/Next.js", "Vue/Nuxt", "Tailwind CSS"}


def normalize_url(url: str) -> str:
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        return f"https://{url}"
    return url


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _status_for_score(score: int) -> str:
    if score >= 50:
        return "poor"
    if score >= 25:
        return "outdated"
    return "good"


def analyze_html(html: str, url: str, load_time_ms: int, *, current_year: Optional[int] = None) -> dict[str, Any]:
    """
    Score an existing website's need for a rebuild from its HTML (0-80).

    100 is reserved for businesses with no website at all.
    """
    issues: list[str] = []
    score = 0
    year = current_year or datetime.now(timezone.utc).year

    has_ssl = url.startswith("https")
    if not has_ssl:
        issues.append("No SSL certificate (HTTP only) - security risk")
        score += 20

    copyright_match = _COPYRIGHT_RE.search(html)
    copyright_year = int(copyright_match.group(1)) if copyright_match else None
    if copyright_year and copyright_year < year - 2:
        issues.append(f"Copyright shows {copyright_year} - website likely outdated")
        score += 30

    has_viewport = "viewport" in html
    has_media_queries = "@media" in html or "responsive" in html
    mobile_responsive = has_viewport or has_media_queries
    if not mobile_responsive:
        issues.append("Not mobile responsive - poor mobile experience")
        score += 25

    uses_table_layout = len(re.findall(r"<table", html, re.IGNORECASE)) > 5
    uses_legacy_tags = bool(re.search(r"<font\s|<frame|<frameset|<marquee", html, re.IGNORECASE))
    if uses_legacy_tags:
        issues.append("Uses very outdated HTML (font tags/frames/marquee)")
        score += 30
    elif uses_table_layout:
        issues.append("Uses table-based layout - outdated design approach")
        score += 15

    if load_time_ms > 8000:
        issues.append(f"Very slow load time: {load_time_ms / 1000:.1f}s")
        score += 20
    elif load_time_ms > 5000:
        issues.append(f"Slow load time: {load_time_ms / 1000:.1f}s")
        score += 10

    if not re.search(r"<title[^>]*>[^<]+</title>", html, re.IGNORECASE):
        issues.append("Missing page title - poor SEO")
        score += 10
    if not re.search(r"meta.*name=[\"']description[\"']", html, re.IGNORECASE):
        issues.append("Missing meta description - poor SEO")
        score += 5
    if not re.search(r"<h1[^>]*>", html, re.IGNORECASE):
        issues.append("Missing H1 heading - poor SEO structure")
        score += 5

    has_contact_form = bool(_CONTACT_FORM_RE.search(html))
    has_phone = bool(_PHONE_RE.search(html))
    social_links = [label for label, pattern in _SOCIAL_PATTERNS if pattern.search(html)]
    technologies = [label for label, pattern in _TECHNOLOGY_PATTERNS if pattern.search(html)]

    if re.search(r"\.swf|<embed.*flash|<object.*flash", html, re.IGNORECASE):
        issues.append("Uses Flash content - completely obsolete")
        score += 25

    if _MODERN_TECHNOLOGIES.intersection(technologies):
        score = max(0, score - 15)

    score = min(score, 80)

    return {
        "status": _status_for_score(score),
        "score": score,
        "issues": issues or ["Website appears to be in good condition"],
        "lastUpdated": str(copyright_year) if copyright_year else None,
        "technologies": technologies or None,
        "hasSSL": has_ssl,
        "loadTime": load_time_ms,
        "mobileResponsive": mobile_responsive,
        "hasContactForm": has_contact_form,
        "hasPhone": has_phone,
        "socialLinks": social_links or None,
    }


def _broken(url: str, score: int, issue: str, *, has_ssl: bool, load_time_ms: Optional[int] = None) -> dict[str, Any]:
    result: dict[str, Any] = {
        "status": "broken",
        "score": score,
        "issues": [issue],
        "hasSSL": has_ssl,
        "analyzedAt": _now_iso(),
        "url": url,
    }
    if load_time_ms is not None:
        result["loadTime"] = load_time_ms
    return result


def analyze_website(url: Optional[str], *, timeout: Optional[float] = None) -> dict[str, Any]:
    if not url:
        return {
            "status": "none",
            "score": 100,
            "issues": ["No website detected - highest priority for web services"],
            "hasSSL": False,
            "analyzedAt": _now_iso(),
        }

    normalized = normalize_url(url)
    started = time.monotonic()
    try:
        resp = httpx.get(
            normalized,
            headers={"User-Agent": _ANALYZER_USER_AGENT, "Accept": "text/html,application/xhtml+xml"},
            timeout=timeout or settings.WEBSITE_FETCH_TIMEOUT_SECONDS,
            follow_redirects=True,
        )
    except httpx.TimeoutException:
        return _broken(
            normalized, 85, "Website takes too long to load (>10 seconds)", has_ssl=normalized.startswith("https")
        )
    except httpx.ConnectError as exc:
        message = str(exc).lower()
        if "name or service not known" in message or "nodename nor servname" in message or "getaddrinfo" in message:
            return _broken(normalized, 95, "Domain not found or DNS error - website does not exist", has_ssl=False)
        if "certificate" in message or "ssl" in message:
            return _broken(normalized, 85, "SSL certificate error - security issue", has_ssl=False)
        return _broken(
            normalized, 85, "Website unreachable or connection error", has_ssl=normalized.startswith("https")
        )
    except httpx.HTTPError:
        logger.info("Website fetch failed", extra={"url": normalized}, exc_info=True)
        return _broken(
            normalized, 85, "Website unreachable or connection error", has_ssl=normalized.startswith("https")
        )

    load_time_ms = int((time.monotonic() - started) * 1000)
    if resp.is_error:
        return _broken(
            normalized,
            90,
            f"Website returns {resp.status_code} error - needs replacement",
            has_ssl=normalized.startswith("https"),
            load_time_ms=load_time_ms,
        )

    analysis = analyze_html(resp.text, str(resp.url), load_time_ms)
    analysis["analyzedAt"] = _now_iso()
    analysis["url"] = normalized
    return analysis


def _text(fragment: str) -> str:
    return " ".join(html_lib.unescape(_TAG_RE.sub(" ", fragment)).split())


def extract_content_from_html(html: str, url: str) -> dict[str, Any]:
    colors_found: list[str] = []
    for pattern in (_HEX_COLOR_RE, _RGB_COLOR_RE):
        for match in pattern.findall(html):
            if match not in colors_found:
                colors_found.append(match)
    colors_found = colors_found[:10]
    colors: dict[str, str] = {}
    for role, value in zip(("primary", "secondary", "accent"), colors_found):
        colors[role] = value
    if "primary" not in colors:
        theme = re.search(r"<meta[^>]+name=[\"']theme-color[\"'][^>]+content=[\"']([^\"']+)", html, re.IGNORECASE)
        if theme:
            colors["primary"] = theme.group(1)

    h1 = re.search(r"<h1[^>]*>([\s\S]*?)</h1>", html, re.IGNORECASE)
    headline = _text(h1.group(1))[:100] if h1 else None
    if not headline:
        title = re.search(r"<title[^>]*>([\s\S]*?)</title>", html, re.IGNORECASE)
        headline = _text(title.group(1))[:100] if title else None
    description = re.search(
        r"<meta[^>]+name=[\"']description[\"'][^>]+content=[\"']([^\"']+)", html, re.IGNORECASE
    )
    headings = [
        text for text in (_text(m) for m in re.findall(r"<h[2-3][^>]*>([\s\S]*?)</h[2-3]>", html, re.IGNORECASE)) if text
    ][:10]
    paragraphs = [
        text for text in (_text(m) for m in re.findall(r"<p[^>]*>([\s\S]*?)</p>", html, re.IGNORECASE)) if len(text) > 20
    ][:10]

    images: list[str] = []
    for src in re.findall(r"<img[^>]+src=[\"']([^\"']+)[\"']", html, re.IGNORECASE):
        if src.startswith("data:"):
            continue
        absolute = urljoin(url, src)
        if absolute not in images:
            images.append(absolute)
    images = images[:20]

    has_cta = bool(re.search(r"<button|class=[\"'][^\"']*(?:btn|cta)", html, re.IGNORECASE))
    has_gallery = len(images) >= 6 or bool(re.search(r"gallery|carousel|slider", html, re.IGNORECASE))
    if re.search(r"<aside|sidebar", html, re.IGNORECASE):
        layout = "sidebar"
    elif re.search(r"class=[\"'][^\"']*hero", html, re.IGNORECASE):
        layout = "hero-centric"
    elif re.search(r"grid|col-md-|columns", html, re.IGNORECASE):
        layout = "grid-based"
    elif paragraphs:
        layout = "single-column"
    else:
        layout = "unknown"

    return {
        "url": url,
        "colors": colors,
        "content": {
            "headline": headline,
            "tagline": description.group(1) if description else None,
            "headings": headings,
            "paragraphs": paragraphs,
        },
        "structure": {"layout": layout, "hasCTA": has_cta, "hasGallery": has_gallery},
        "images": images,
    }


def _empty_content(url: str) -> dict[str, Any]:
    return {
        "url": url,
        "colors": {},
        "content": {"headings": [], "paragraphs": []},
        "structure": {"layout": "unknown", "hasCTA": False, "hasGallery": False},
        "images": [],
    }


def extract_website_content(url: str) -> dict[str, Any]:
    """Pull colors, copy and images from a live site; a fetch failure yields an empty structure."""
    normalized = normalize_url(url)
    try:
        resp = httpx.get(
            normalized,
            headers={"User-Agent": _EXTRACTOR_USER_AGENT, "Accept": "text/html,application/xhtml+xml"},
            timeout=15,
            follow_redirects=True,
        )
        resp.raise_for_status()
    except httpx.HTTPError:
        logger.info("Content extraction fetch failed", extra={"url": normalized}, exc_info=True)
        return _empty_content(url)
    return extract_content_from_html(resp.text, str(resp.url))
