import hashlib
import json

import httpx
import pytest

from app.services import vercel


@pytest.fixture()
def vercel_api(monkeypatch):
    """Route Vercel REST calls through a mock transport and record the requests."""
    monkeypatch.setattr(vercel.settings, "VERCEL_TOKEN", "vc-token")
    monkeypatch.setattr(vercel.settings, "VERCEL_TEAM_ID", "team_1")
    requests: list[httpx.Request] = []
    responses: dict[tuple[str, str], httpx.Response] = {}
    real_client = httpx.Client

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return responses.get((request.method, request.url.path), httpx.Response(200, json={}))

    def _client(**kwargs):
        return real_client(transport=httpx.MockTransport(_handler), **kwargs)

    monkeypatch.setattr(vercel.httpx, "Client", _client)
    return {"requests": requests, "responses": responses}


def test_missing_token_is_a_config_error(monkeypatch):
    monkeypatch.setattr(vercel.settings, "VERCEL_TOKEN", "  ")
    assert vercel.is_vercel_configured() is False
    with pytest.raises(vercel.VercelConfigError, match="VERCEL_TOKEN"):
        vercel.get_deployment("dpl_1")


def test_error_detail_prefers_structured_message():
    nested = httpx.Response(400, json={"error": {"code": "bad", "message": " Project name taken "}})
    assert vercel._error_detail(nested) == "Project name taken"
    flat = httpx.Response(400, json={"message": "nope"})
    assert vercel._error_detail(flat) == "nope"
    assert vercel._error_detail(httpx.Response(502, text="")) == "<empty response body>"
    assert vercel._error_detail(httpx.Response(502, text="Bad Gateway")) == "Bad Gateway"


def test_upload_tolerates_existing_digest(vercel_api):
    vercel_api["responses"][("POST", "/v2/files")] = httpx.Response(409, json={"error": {"message": "exists"}})

    digest, size = vercel.upload_file("<h1>Hi</h1>")

    assert digest == hashlib.sha1(b"<h1>Hi</h1>").hexdigest()
    assert size == 11
    [request] = vercel_api["requests"]
    assert request.headers["x-vercel-digest"] == digest
    assert request.headers["Authorization"] == "Bearer vc-token"
    assert request.url.params["teamId"] == "team_1"


def test_deploy_static_site_uploads_then_creates_deployment(vercel_api):
    vercel_api["responses"][("POST", "/v13/deployments")] = httpx.Response(
        200,
        json={"id": "dpl_9", "url": "acme-abc.vercel.app", "readyState": "BUILDING", "projectId": "prj_9"},
    )

    deployment = vercel.deploy_static_site(
        [{"path": "/index.html", "content": "<h1>Hi</h1>"}, {"path": "/styles.css", "content": "body{}"}],
        "acme",
    )

    assert deployment.as_dict() == {
        "id": "dpl_9",
        "url": "https://acme-abc.vercel.app",
        "readyState": "BUILDING",
        "projectId": "prj_9",
        "alias": [],
    }
    paths = [request.url.path for request in vercel_api["requests"]]
    assert paths == ["/v2/files", "/v2/files", "/v13/deployments"]
    body = json.loads(vercel_api["requests"][-1].content)
    assert body["name"] == "acme"
    assert body["target"] == "production"
    assert [f["file"] for f in body["files"]] == ["index.html", "styles.css"]


def test_failed_request_raises_api_error(vercel_api):
    vercel_api["responses"][("GET", "/v13/deployments/dpl_x")] = httpx.Response(
        404, json={"error": {"message": "Deployment not found"}}
    )
    with pytest.raises(vercel.VercelAPIError, match="status 404: Deployment not found"):
        vercel.get_deployment("dpl_x")


def test_delete_missing_project_is_ignored(vercel_api):
    vercel_api["responses"][("DELETE", "/v9/projects/prj_gone")] = httpx.Response(404, json={})
    vercel.delete_project("prj_gone")
    assert vercel_api["requests"][0].method == "DELETE"


def test_deployment_without_url_keeps_it_empty(vercel_api):
    vercel_api["responses"][("GET", "/v13/deployments/dpl_1")] = httpx.Response(
        200, json={"id": "dpl_1", "readyState": "QUEUED"}
    )

    deployment = vercel.get_deployment("dpl_1")
    assert deployment.url == ""
    assert deployment.ready_state == "QUEUED"
