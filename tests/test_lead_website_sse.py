import asyncio
import threading
import time
from uuid import uuid4

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from app.db.enums import ArtifactTypeEnum
from app.db.repositories.artifacts import ArtifactsRepository
from app.db.repositories.leads import LeadsRepository
from app.llm import client as llm_client
from app.services import lead_website, sse
from app.services.lead_website import (
    DESIGN_STYLES,
    FALLBACK_HTML,
    PREVIEW_TOKEN_LENGTH,
    build_lead_website_prompt,
    generate_preview_token,
    run_lead_website_generation,
    select_design_style,
)
from app.services.sse import CancellationToken, GenerationCancelled, describe_generation_error, format_sse

from conftest import parse_sse


@pytest.mark.parametrize(
    "error,expected",
    [
        (RuntimeError("Error 429: too many requests"), "AI rate limit exceeded. Wait 1-2 minutes and retry."),
        (httpx.ReadTimeout("timed out"), "Connection timeout. Try again or generate without analyzing the URL."),
        (RuntimeError("getaddrinfo ENOTFOUND example.invalid"), "Website not found. Verify the URL is correct."),
        (RuntimeError("SSL certificate verify failed"), "SSL certificate error. Source website may have security issues."),
        (OperationalError("SELECT 1", {}, Exception("locked")), "Database error. Check connection and retry."),
        (RuntimeError("x" * 150), "x" * 100),
    ],
)
def test_describe_generation_error(error, expected):
    assert describe_generation_error(error) == expected


def test_format_sse_frame():
    assert format_sse("progress", {"stage": "fetch"}) == 'event: progress\ndata: {"stage":"fetch"}\n\n'


def test_preview_token_shape():
    token = generate_preview_token()
    assert len(token) == PREVIEW_TOKEN_LENGTH
    assert token != generate_preview_token()


def test_select_design_style_prefers_layout_then_rotates():
    assert select_design_style("lead-1", "sidebar", []) == "modern-minimal"
    assert select_design_style("lead-1", "sidebar", ["modern-minimal"]) != "modern-minimal"
    assert select_design_style("lead-1", "unknown", []) in DESIGN_STYLES
    first = select_design_style("lead-1", None, [])
    assert select_design_style("lead-1", None, []) == first
    assert select_design_style("lead-1", None, [first]) != first


def test_lead_website_stream_uses_fallback_without_llm(api_client, db_session, project):
    lead = LeadsRepository(db_session).create(project.id, "Corner Bakery", industry="bakery")

    resp = api_client.post(f"/leads/{lead.id}/generate-website", json={"projectId": str(project.id)})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")

    events = parse_sse(resp.text)
    names = [name for name, _ in events]
    assert names[-1] == "success"
    assert set(names[:-1]) == {"progress"}
    stages = [data["stage"] for name, data in events if name == "progress"]
    assert stages[0] == "validation"
    assert "fetch" not in stages
    success = events[-1][1]
    assert success["previewUrl"] == f"/preview/{success['previewToken']}"

    db_session.expire_all()
    refreshed = LeadsRepository(db_session).get(project.id, lead.id)
    assert refreshed.preview_token == success["previewToken"]
    assert refreshed.website_status == "ready"
    site = ArtifactsRepository(db_session).get_data(project.id, ArtifactTypeEnum.lead_website)["websites"][0]
    assert site["files"][0]["content"] == FALLBACK_HTML
    projection = ArtifactsRepository(db_session).get_data(project.id, ArtifactTypeEnum.leads)
    assert projection["leads"][0]["previewToken"] == success["previewToken"]


def test_lead_website_stream_reports_validation_errors(api_client, project):
    missing_project = api_client.post(f"/leads/{uuid4()}/generate-website", json={})
    assert parse_sse(missing_project.text) == [("error", {"stage": "validation", "error": "Project ID is required"})]

    missing_lead = api_client.post(f"/leads/{uuid4()}/generate-website", json={"projectId": str(project.id)})
    assert parse_sse(missing_lead.text) == [("error", {"stage": "validation", "error": "Lead not found"})]


def test_lead_website_fetch_failure_is_reported_with_stage(api_client, db_session, project, monkeypatch):
    lead = LeadsRepository(db_session).create(project.id, "Timeout Co")

    def _slow(url):
        raise httpx.ConnectTimeout("timed out")

    monkeypatch.setattr(lead_website, "extract_website_content", _slow)

    resp = api_client.post(
        f"/leads/{lead.id}/generate-website",
        json={"projectId": str(project.id), "websiteUrl": "https://slow.example"},
    )
    events = parse_sse(resp.text)
    assert events[-1] == (
        "error",
        {"stage": "fetch", "error": "Connection timeout. Try again or generate without analyzing the URL."},
    )
    db_session.expire_all()
    assert LeadsRepository(db_session).get(project.id, lead.id).preview_token is None


def test_cancelled_generation_persists_nothing(db_session, project, monkeypatch):
    lead = LeadsRepository(db_session).create(project.id, "Cancelled Co")
    token = CancellationToken()
    monkeypatch.setattr(lead_website, "generate_site_files", lambda prompt, **_: token.cancel() or [])

    pipeline = run_lead_website_generation(
        token, user_id="test-user", lead_id=lead.id, project_id=project.id
    )
    with pytest.raises(GenerationCancelled):
        list(pipeline)

    db_session.expire_all()
    assert LeadsRepository(db_session).get(project.id, lead.id).preview_token is None
    assert ArtifactsRepository(db_session).get_data(project.id, ArtifactTypeEnum.lead_website) is None


def test_lead_website_falls_back_when_llm_call_fails(api_client, db_session, project, monkeypatch):
    lead = LeadsRepository(db_session).create(project.id, "Upstream Down Dental", industry="dentist")
    calls = []

    def _fail(self, prompt, params=None, *, system=None):
        calls.append(system)
        raise RuntimeError("OpenRouter API error: 500")

    monkeypatch.setattr(llm_client.settings, "OPENROUTER_API_KEY", "sk-test")
    monkeypatch.setattr(llm_client.LLMClient, "generate_text", _fail)

    resp = api_client.post(f"/leads/{lead.id}/generate-website", json={"projectId": str(project.id)})
    events = parse_sse(resp.text)
    assert events[-1][0] == "success"
    assert len(calls) == 1
    assert "MINIMALIST CLEAN" in calls[0]

    site = ArtifactsRepository(db_session).get_data(project.id, ArtifactTypeEnum.lead_website)["websites"][0]
    assert site["files"][0]["content"] == FALLBACK_HTML


def test_lead_website_prompt_carries_industry_guidance():
    prompt = build_lead_website_prompt("Mario's", "restaurant", None, None)
    assert "Industry: Restaurant" in prompt
    assert '"Reserve Your Table"' in prompt
    assert "Design Style: WARM & FRIENDLY" in prompt
    assert "===== BUSINESS PERSONALITY =====" in prompt

    styled = build_lead_website_prompt("Mario's", "restaurant", "dark-premium", None)
    assert "DESIGN STYLE: dark-premium" in styled
    assert "===== STYLE DIRECTIVE =====" not in styled


class DisconnectedRequest:
    def __init__(self) -> None:
        self.polls = 0

    async def is_disconnected(self) -> bool:
        self.polls += 1
        return True


def test_client_disconnect_cancels_pipeline_before_saving(db_session, project, monkeypatch):
    lead = LeadsRepository(db_session).create(project.id, "Gone Away Co")
    tokens: list[CancellationToken] = []
    finished = threading.Event()

    def _slow_generation(prompt, **_):
        deadline = time.monotonic() + 5
        while not tokens[0].cancelled and time.monotonic() < deadline:
            time.sleep(0.01)
        return lead_website.fallback_files()

    def _pipeline(token):
        tokens.append(token)
        try:
            yield from run_lead_website_generation(
                token, user_id="test-user", lead_id=lead.id, project_id=project.id
            )
        finally:
            finished.set()

    monkeypatch.setattr(sse, "_DISCONNECT_POLL_SECONDS", 0.05)
    monkeypatch.setattr(lead_website, "generate_site_files", _slow_generation)
    request = DisconnectedRequest()

    async def _consume():
        return [frame async for frame in sse.stream_pipeline(request, _pipeline, name="lead_website")]

    frames = asyncio.run(_consume())
    assert finished.wait(timeout=5)

    assert request.polls >= 1
    assert tokens[0].cancelled
    assert not any(frame.startswith("event: success") for frame in frames)
    db_session.expire_all()
    assert LeadsRepository(db_session).get(project.id, lead.id).preview_token is None
    assert ArtifactsRepository(db_session).get_data(project.id, ArtifactTypeEnum.lead_website) is None
