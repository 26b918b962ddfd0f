import httpx
import pytest

from app.services import search


TAVILY_RESULTS = {
    "results": [
        {
            "title": "Joe's Plumbing - Austin's Best Plumber",
            "url": "https://joesplumbing.example",
            "content": "Call us at (512) 555-0101 for emergency repairs.",
        },
        {"title": "Drain Bros | Home", "url": "https://drainbros.example", "content": "No phone listed"},
    ]
}


@pytest.fixture()
def tavily_only(monkeypatch):
    monkeypatch.setattr(search.settings, "SERPAPI_API_KEY", None)
    monkeypatch.setattr(search.settings, "TAVILY_API_KEY", "tvly-test")
    calls: list[dict] = []

    def _post(url, json=None, timeout=None):
        calls.append(json)
        return httpx.Response(200, json=TAVILY_RESULTS)

    monkeypatch.setattr(search.httpx, "post", _post)
    return calls


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, None),
        ("https://plain.example", "https://plain.example"),
        ("/url?q=https://target.example/page&sa=U", "https://target.example/page"),
        ("https://google.com/url?q=https%3A%2F%2Fenc.example", "https://enc.example"),
    ],
)
def test_clean_google_redirect_url(raw, expected):
    assert search.clean_google_redirect_url(raw) == expected


def test_tavily_fallback_maps_results(tavily_only):
    businesses = search.search_google_maps_businesses("plumbers", "Austin, TX", limit=5)

    assert [b["name"] for b in businesses] == ["Joe's Plumbing", "Drain Bros"]
    assert businesses[0]["phone"] == "(512) 555-0101"
    assert businesses[1]["phone"] is None
    assert businesses[0]["address"] == "Austin, TX"
    assert all(b["placeId"].startswith("tavily-") for b in businesses)
    assert tavily_only[0]["query"] == "plumbers Austin, TX business contact phone address"
    assert tavily_only[0]["max_results"] == 5


def test_tavily_place_ids_are_stable_across_searches(tavily_only):
    first = search.search_google_maps_businesses("plumbers", "Austin, TX")
    second = search.search_google_maps_businesses("plumbers", "Austin, TX")
    assert [b["placeId"] for b in first] == [b["placeId"] for b in second]
    assert len({b["placeId"] for b in first}) == 2


def test_no_provider_returns_empty(monkeypatch):
    monkeypatch.setattr(search.settings, "SERPAPI_API_KEY", None)
    monkeypatch.setattr(search.settings, "TAVILY_API_KEY", None)
    assert search.search_google_maps_businesses("plumbers", "Austin, TX") == []


def test_serpapi_results_are_mapped(monkeypatch):
    monkeypatch.setattr(search.settings, "SERPAPI_API_KEY", "serp-test")
    payload = {
        "local_results": [
            {
                "place_id": "ChIJ123",
                "title": "Joe's Plumbing",
                "address": "12 Main St, Austin, TX 78701",
                "website": "/url?q=https://joes.example",
                "rating": 4.2,
                "reviews": 12,
                "type": "Plumber",
                "gps_coordinates": {"latitude": 30.2, "longitude": -97.7},
            }
        ]
    }
    seen_params: list[dict] = []

    def _get(url, params=None, headers=None, timeout=None):
        seen_params.append(params)
        return httpx.Response(200, json=payload)

    monkeypatch.setattr(search.httpx, "get", _get)

    [business] = search.search_google_maps_businesses("plumbers", "Austin, TX")
    assert business["placeId"] == "ChIJ123"
    assert business["website"] == "https://joes.example"
    assert business["reviewCount"] == 12
    assert business["coordinates"] == {"latitude": 30.2, "longitude": -97.7}
    assert seen_params[0]["q"] == "plumbers in Austin, TX"
    assert seen_params[0]["engine"] == "google_maps"


def test_serpapi_error_falls_back_to_tavily(monkeypatch, tavily_only):
    monkeypatch.setattr(search.settings, "SERPAPI_API_KEY", "serp-test")
    monkeypatch.setattr(search.httpx, "get", lambda *a, **k: httpx.Response(200, json={"error": "quota"}))

    businesses = search.search_google_maps_businesses("plumbers", "Austin, TX")
    assert len(businesses) == 2
    assert len(tavily_only) == 1


def test_businesses_needing_websites_are_deduped_and_ranked(monkeypatch):
    results = {
        "plumbers": [
            {"placeId": "a", "website": None, "reviewCount": 30},
            {"placeId": "b", "website": "https://ok.example", "reviewCount": 200, "rating": 4.8},
        ],
        "electricians": [
            {"placeId": "a", "website": None, "reviewCount": 30},
            {"placeId": "c", "website": "https://weak.example", "reviewCount": 3},
        ],
    }
    monkeypatch.setattr(search, "search_google_maps_businesses", lambda q, loc, limit=20: results[q])

    ranked = search.search_businesses_needing_websites("Austin", ["plumbers", "electricians"], limit=5)
    assert [b["placeId"] for b in ranked] == ["c", "a"]
