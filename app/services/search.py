from __future__ import annotations

import hashlib
import logging
import re
from typing import Any, Optional
from urllib.parse import parse_qs, unquote, urlparse

import httpx

from app.config import settings

logger = logging.getLogger(__name__)

SERPAPI_SEARCH_URL = "https://serpapi.com/search"
TAVILY_SEARCH_URL = "https://api.tavily.com/search"

_PHONE_RE = re.compile(r"\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
_REDIRECT_Q_RE = re.compile(r"[?&]q=([^&]+)")

DEFAULT_NO_WEBSITE_CATEGORIES = ["plumbers", "electricians", "restaurants", "cleaning services"]


class SearchProviderError(RuntimeError):
    pass


def clean_google_redirect_url(url: Optional[str]) -> Optional[str]:
    """Unwrap `/url?q=<target>` redirect links returned in Maps results."""
    if not url:
        return None
    if "url?q=" not in url:
        return url
    full_url = url if url.startswith("http") else f"https://google.com{url}"
    try:
        target = parse_qs(urlparse(full_url).query).get("q")
    except ValueError:
        target = None
    if target and target[0]:
        return target[0]
    match = _REDIRECT_Q_RE.search(url)
    if match:
        return unquote(match.group(1))
    return url


def _map_local_result(result: dict[str, Any]) -> dict[str, Any]:
    coordinates = result.get("gps_coordinates") or None
    return {
        "placeId": result.get("place_id"),
        "name": result.get("title"),
        "address": result.get("address"),
        "phone": result.get("phone"),
        "website": clean_google_redirect_url(result.get("website")),
        "rating": result.get("rating"),
        "reviewCount": result.get("reviews"),
        "type": result.get("type"),
        "thumbnail": result.get("thumbnail"),
        "coordinates": (
            {"latitude": coordinates.get("latitude"), "longitude": coordinates.get("longitude")}
            if coordinates
            else None
        ),
    }


def tavily_search(
    query: str,
    *,
    max_results: int = 10,
    search_depth: str = "advanced",
    include_answer: bool = False,
) -> dict[str, Any]:
    """Raw Tavily response: `results` (`title`, `url`, `content`) and, when requested, `answer`."""
    if not settings.TAVILY_API_KEY:
        raise SearchProviderError("TAVILY_API_KEY not configured")
    payload = {
        "api_key": settings.TAVILY_API_KEY,
        "query": query,
        "search_depth": search_depth,
        "max_results": max_results,
        "include_answer": include_answer,
    }
    try:
        resp = httpx.post(TAVILY_SEARCH_URL, json=payload, timeout=settings.SEARCH_TIMEOUT_SECONDS)
    except httpx.HTTPError as exc:
        raise SearchProviderError(f"Tavily request failed: {exc}") from exc
    if resp.status_code >= 400:
        raise SearchProviderError(f"Tavily request failed with status {resp.status_code}: {resp.text[:200]}")
    payload = resp.json()
    return {"results": list(payload.get("results") or []), "answer": payload.get("answer")}


def _tavily_place_id(index: int, result: dict[str, Any]) -> str:
    """Stable id derived from the result URL so repeated searches map to the same lead."""
    source = result.get("url") or f"{index}:{result.get('title') or ''}"
    return f"tavily-{hashlib.sha1(source.encode('utf-8')).hexdigest()[:16]}"


def _search_with_tavily_fallback(query: str, location: str, limit: int) -> list[dict[str, Any]]:
    if not settings.TAVILY_API_KEY:
        logger.error("No search provider configured for business search")
        return []
    try:
        results = tavily_search(f"{query} {location} business contact phone address", max_results=limit)["results"]
    except SearchProviderError:
        logger.exception("Tavily fallback search failed", extra={"query": query, "location": location})
        return []

    businesses: list[dict[str, Any]] = []
    for index, result in enumerate(results):
        phone_match = _PHONE_RE.search(result.get("content") or "")
        name = (result.get("title") or "").split(" - ")[0].split(" | ")[0].strip()
        businesses.append(
            {
                "placeId": _tavily_place_id(index, result),
                "name": name,
                "address": location,
                "phone": phone_match.group(0) if phone_match else None,
                "website": clean_google_redirect_url(result.get("url")),
                "rating": None,
                "reviewCount": None,
                "type": None,
                "thumbnail": None,
                "coordinates": None,
                "content": result.get("content") or "",
            }
        )
    logger.info(
        "Tavily fallback search completed",
        extra={"query": query, "location": location, "count": len(businesses)},
    )
    return businesses


def search_google_maps_businesses(query: str, location: str, *, limit: int = 20) -> list[dict[str, Any]]:
    """
    Local business search through SerpAPI's Google Maps engine.

    Falls back to a Tavily web search when SerpAPI is not configured or the
    request fails; fallback results carry `tavily-*` place ids derived from their URL.
    """
    if not settings.SERPAPI_API_KEY:
        logger.warning("SERPAPI_API_KEY not configured; using Tavily fallback")
        return _search_with_tavily_fallback(query, location, limit)

    params = {
        "engine": "google_maps",
        "q": f"{query} in {location}" if location else query,
        "type": "search",
        "api_key": settings.SERPAPI_API_KEY,
        "hl": "en",
        "gl": "us",
    }
    try:
        resp = httpx.get(
            SERPAPI_SEARCH_URL,
            params=params,
            headers={"Accept": "application/json"},
            timeout=settings.SEARCH_TIMEOUT_SECONDS,
        )
        if resp.status_code >= 400:
            raise SearchProviderError(f"SerpAPI request failed: {resp.status_code}")
        data = resp.json()
        if data.get("error"):
            raise SearchProviderError(f"SerpAPI error: {data['error']}")
    except (httpx.HTTPError, ValueError, SearchProviderError):
        logger.exception("SerpAPI search failed; using Tavily fallback", extra={"query": query})
        return _search_with_tavily_fallback(query, location, limit)

    results = [_map_local_result(item) for item in (data.get("local_results") or [])[:limit]]
    logger.info(
        "SerpAPI search completed",
        extra={"query": query, "location": location, "count": len(results)},
    )
    return results


def needs_website(business: dict[str, Any]) -> bool:
    """No site, few reviews or a weak rating all mark a business worth pitching."""
    if not business.get("website"):
        return True
    reviews = business.get("reviewCount")
    if reviews is not None and reviews < 20:
        return True
    rating = business.get("rating")
    return rating is not None and rating < 4.0


def _review_sort_key(business: dict[str, Any]) -> int:
    reviews = business.get("reviewCount")
    return min(reviews, 50) if reviews else 0


def dedupe_and_rank(businesses: list[dict[str, Any]], limit: int) -> list[dict[str, Any]]:
    unique: dict[str, dict[str, Any]] = {}
    for business in businesses:
        place_id = business.get("placeId")
        if place_id:
            unique[place_id] = business
    return sorted(unique.values(), key=_review_sort_key)[:limit]


def search_businesses_needing_websites(
    location: str,
    categories: Optional[list[str]] = None,
    *,
    limit: int = 30,
) -> list[dict[str, Any]]:
    collected: list[dict[str, Any]] = []
    for category in categories or DEFAULT_NO_WEBSITE_CATEGORIES:
        results = search_google_maps_businesses(category, location, limit=limit * 2)
        matching = [business for business in results if needs_website(business)]
        logger.debug(
            "Category search filtered",
            extra={"category": category, "total": len(results), "matching": len(matching)},
        )
        collected.extend(matching)
    return dedupe_and_rank(collected, limit)
