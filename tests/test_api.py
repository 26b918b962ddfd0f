from uuid import uuid4

from fastapi.testclient import TestClient

from app.auth import dependencies as auth_dependencies
from app.db.deps import get_session
from app.main import app


def test_protected_routes_require_auth():
    app.dependency_overrides.clear()
    with TestClient(app) as client:
        resp = client.get("/projects")
    assert resp.status_code == 401


def test_health_endpoints():
    with TestClient(app) as client:
        health = client.get("/health")
        db_health = client.get("/health/db")

    assert health.status_code == 200
    assert health.json() == {"ok": True}
    assert db_health.status_code == 200
    assert db_health.json() == {"db": "ok"}


def test_bearer_token_claims_become_auth_context(db_session, monkeypatch):
    app.dependency_overrides.clear()

    def get_session_override():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_session] = get_session_override
    monkeypatch.setattr(
        auth_dependencies,
        "verify_supabase_token",
        lambda _token: {"sub": "supabase-user", "email": "someone@example.com"},
    )

    try:
        with TestClient(app) as client:
            resp = client.post(
                "/projects",
                headers={"Authorization": "Bearer test-token"},
                json={"name": "Token Project"},
            )
        assert resp.status_code == 201
        assert resp.json()["project"]["userId"] == "supabase-user"
    finally:
        app.dependency_overrides.clear()


def test_token_without_subject_is_rejected(monkeypatch):
    app.dependency_overrides.clear()
    monkeypatch.setattr(auth_dependencies, "verify_supabase_token", lambda _token: {"email": "x@example.com"})
    with TestClient(app) as client:
        resp = client.get("/projects", headers={"Authorization": "Bearer test-token"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid token claims"


def test_agency_project_name_is_derived_from_agency_type(api_client):
    resp = api_client.post(
        "/projects",
        json={"mode": "agency", "agencyType": "web-design", "targetMarket": "local plumbers"},
    )
    assert resp.status_code == 201
    project = resp.json()["project"]
    assert project["name"] == "Web Design Agency"
    assert project["description"] == "Web Design Agency targeting local plumbers"
    assert project["mode"] == "agency"
    assert project["modeData"]["agencyType"] == "web-design"
    assert project["modeData"]["servicesOffered"] == []


def test_explicit_project_name_wins_over_derived_name(api_client):
    resp = api_client.post("/projects", json={"mode": "agency", "agencyType": "smma", "name": "Acme Social"})
    assert resp.status_code == 201
    assert resp.json()["project"]["name"] == "Acme Social"


def test_commerce_project_name_uses_niche(api_client):
    resp = api_client.post("/projects", json={"mode": "commerce", "niche": "Pet Toys"})
    assert resp.status_code == 201
    assert resp.json()["project"]["name"] == "Pet Toys Store"


def test_project_crud_round_trip(api_client):
    created = api_client.post("/projects", json={"name": "Playground", "prompt": "a bakery"}).json()["project"]
    project_id = created["id"]
    assert created["modelId"]

    listed = api_client.get("/projects").json()["projects"]
    assert [p["id"] for p in listed] == [project_id]

    patched = api_client.patch(f"/projects/{project_id}", json={"name": "Renamed", "status": "archived"})
    assert patched.status_code == 200
    assert patched.json()["project"]["name"] == "Renamed"
    assert patched.json()["project"]["status"] == "archived"

    blank = api_client.patch(f"/projects/{project_id}", json={"name": "   "})
    assert blank.status_code == 400

    assert api_client.delete(f"/projects/{project_id}").json() == {"success": True}
    assert api_client.get(f"/projects/{project_id}").status_code == 404


def test_other_users_project_is_not_found(api_client, db_session):
    from app.db.models import Project

    foreign = Project(id=uuid4(), user_id="someone-else", name="Not yours")
    db_session.add(foreign)
    db_session.commit()

    assert api_client.get(f"/projects/{foreign.id}").status_code == 404
    assert api_client.get("/artifacts", params={"projectId": str(foreign.id)}).status_code == 404
