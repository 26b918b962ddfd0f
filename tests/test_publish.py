import pytest

from app.db.enums import ArtifactTypeEnum, PublishSourceTypeEnum, PublishStatusEnum
from app.db.models import PublishedWebsite
from app.db.repositories.artifacts import ArtifactsRepository
from app.db.repositories.published_websites import PublishedWebsitesRepository
from app.services import publishing, vercel
from app.services.publishing import SUBDOMAIN_TAKEN_MESSAGE, sanitize_subdomain


@pytest.fixture()
def website_files(db_session, project):
    ArtifactsRepository(db_session).upsert(
        project.id,
        ArtifactTypeEnum.website_code,
        {"files": [{"path": "/index.html", "content": "<h1>Hi</h1>", "type": "html"}], "primaryPage": "/index.html"},
    )


@pytest.fixture()
def fake_vercel(monkeypatch):
    deployed: list[tuple[list, str]] = []
    deleted: list[str] = []

    def _deploy(files, name):
        deployed.append((files, name))
        return vercel.VercelDeployment(
            id="dpl_123", url="https://acme-site.vercel.app", ready_state="READY", project_id="prj_1"
        )

    monkeypatch.setattr(vercel, "deploy_static_site", _deploy)
    monkeypatch.setattr(vercel, "delete_project", lambda target: deleted.append(target))
    return {"deployed": deployed, "deleted": deleted}


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Acme Site", "acme-site"),
        ("--Joe's  Plumbing!!--", "joe-s-plumbing"),
        ("UPPER_case.domain", "upper-case-domain"),
        ("a" * 80, "a" * 63),
        ("!!!", ""),
    ],
)
def test_sanitize_subdomain(raw, expected):
    assert sanitize_subdomain(raw) == expected


def test_publish_project_site(api_client, project, website_files, fake_vercel):
    resp = api_client.post(
        "/publish",
        json={"projectId": str(project.id), "sourceType": "project", "subdomain": "Acme Site"},
    )
    assert resp.status_code == 200
    body = resp.json()
    site = body["publishedWebsite"]
    assert site["subdomain"] == "acme-site"
    assert site["status"] == "published"
    assert site["vercelDeploymentId"] == "dpl_123"
    assert site["sourceId"] == str(project.id)
    assert site["publishedAt"] is not None
    assert body["deployment"]["readyState"] == "READY"

    files, name = fake_vercel["deployed"][0]
    assert name == "acme-site"
    assert files == [{"path": "/index.html", "content": "<h1>Hi</h1>"}]


def test_subdomain_collision_returns_conflict(api_client, db_session, project, website_files, fake_vercel):
    PublishedWebsitesRepository(db_session).create(
        user_id="someone-else",
        project_id=project.id,
        source_type=PublishSourceTypeEnum.project,
        subdomain="taken",
        base_domain="vercel.app",
        status=PublishStatusEnum.published,
    )

    resp = api_client.post(
        "/publish",
        json={"projectId": str(project.id), "sourceType": "project", "subdomain": "Taken"},
    )
    assert resp.status_code == 409
    assert resp.json()["detail"] == SUBDOMAIN_TAKEN_MESSAGE
    assert fake_vercel["deployed"] == []
    assert db_session.query(PublishedWebsite).count() == 1


def test_publish_without_files_is_bad_request(api_client, project, fake_vercel):
    resp = api_client.post(
        "/publish",
        json={"projectId": str(project.id), "sourceType": "project", "subdomain": "empty"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No files to deploy"


def test_publish_validates_subdomain(api_client, project):
    resp = api_client.post(
        "/publish",
        json={"projectId": str(project.id), "sourceType": "project", "subdomain": "***"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid subdomain"


def test_vercel_failure_marks_row_failed(api_client, db_session, project, website_files, monkeypatch):
    def _fail(files, name):
        raise vercel.VercelAPIError("quota exceeded")

    monkeypatch.setattr(vercel, "deploy_static_site", _fail)

    resp = api_client.post(
        "/publish",
        json={"projectId": str(project.id), "sourceType": "project", "subdomain": "broken"},
    )
    assert resp.status_code == 500
    row = PublishedWebsitesRepository(db_session).get_by_subdomain("broken")
    assert row.status == PublishStatusEnum.failed
    assert row.error_message == "quota exceeded"


def test_get_refreshes_deploying_status(api_client, db_session, project, monkeypatch):
    row = PublishedWebsitesRepository(db_session).create(
        user_id="test-user",
        project_id=project.id,
        source_type=PublishSourceTypeEnum.project,
        subdomain="pending",
        base_domain="vercel.app",
        vercel_deployment_id="dpl_pending",
        status=PublishStatusEnum.deploying,
    )
    monkeypatch.setattr(
        vercel,
        "get_deployment",
        lambda deployment_id: vercel.VercelDeployment(id=deployment_id, url="https://x", ready_state="ERROR"),
    )

    resp = api_client.get(f"/publish/{row.id}")
    assert resp.status_code == 200
    assert resp.json()["publishedWebsite"]["status"] == "failed"
    assert resp.json()["publishedWebsite"]["errorMessage"] == "Deployment error"


def test_update_and_unpublish(api_client, project, website_files, fake_vercel):
    site = api_client.post(
        "/publish",
        json={"projectId": str(project.id), "sourceType": "project", "subdomain": "acme"},
    ).json()["publishedWebsite"]

    patched = api_client.patch(f"/publish/{site['id']}", json={"accessLevel": "private", "customDomain": " Acme.COM "})
    assert patched.status_code == 200
    assert patched.json()["publishedWebsite"]["accessLevel"] == "private"
    assert patched.json()["publishedWebsite"]["customDomain"] == "acme.com"

    assert api_client.patch(f"/publish/{site['id']}", json={}).status_code == 400

    deleted = api_client.delete(f"/publish/{site['id']}")
    assert deleted.json() == {"success": True}
    assert fake_vercel["deleted"] == ["prj_1"]
    assert api_client.get(f"/publish/{site['id']}").status_code == 404


def test_list_is_scoped_to_project(api_client, project, website_files, fake_vercel):
    api_client.post("/publish", json={"projectId": str(project.id), "sourceType": "project", "subdomain": "one"})
    listed = api_client.get("/publish", params={"projectId": str(project.id)})
    assert [w["subdomain"] for w in listed.json()["publishedWebsites"]] == ["one"]


def test_deployment_status_mapping():
    assert publishing._deployment_status("READY") == PublishStatusEnum.published
    assert publishing._deployment_status("CANCELED") == PublishStatusEnum.failed
    assert publishing._deployment_status("BUILDING") == PublishStatusEnum.deploying


def test_publish_keeps_subdomain_url_when_vercel_returns_none(api_client, project, website_files, monkeypatch):
    monkeypatch.setattr(
        vercel,
        "deploy_static_site",
        lambda files, name: vercel.VercelDeployment(id="dpl_7", url="", ready_state="QUEUED", project_id="prj_7"),
    )

    resp = api_client.post(
        "/publish",
        json={"projectId": str(project.id), "sourceType": "project", "subdomain": "no-url-site"},
    )
    assert resp.status_code == 200
    site = resp.json()["publishedWebsite"]
    assert site["status"] == "deploying"
    assert site["deploymentUrl"] == publishing.deployment_url("no-url-site", site["baseDomain"])
    assert site["deploymentUrl"] != "https://"
