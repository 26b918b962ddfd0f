from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.db.enums import ArtifactTypeEnum, LeadPriorityEnum
from app.db.repositories.artifacts import ArtifactsRepository
from app.db.repositories.leads import LeadsRepository
from app.services.lead_projection import upsert_lead_websites
from app.services.tools import leads as leads_tool
from app.services.tools.leads import build_lead_row, split_address
from app.services.tools.registry import execute_tool
from app.services.lead_scoring import get_icp_template


FAKE_BUSINESSES = [
    {
        "placeId": "place-1",
        "name": "Joe's Plumbing",
        "address": "12 Main St, Austin, TX 78701",
        "phone": "(512) 555-0101",
        "website": None,
        "rating": 3.2,
        "reviewCount": 4,
        "type": "Plumber",
    },
    {
        "placeId": "place-2",
        "name": "Pipe Masters",
        "address": "99 Oak Ave, Austin, TX 78702",
        "phone": "(512) 555-0102",
        "website": "https://pipemasters.example",
        "rating": 4.8,
        "reviewCount": 240,
        "type": "Plumber",
    },
    {
        "placeId": "place-3",
        "name": "Drain Bros",
        "address": "5 Elm Rd, Austin, TX 78703",
        "phone": None,
        "website": "http://drainbros.example",
        "rating": 4.1,
        "reviewCount": 35,
        "type": "Plumber",
    },
]


@pytest.fixture()
def fake_search(monkeypatch):
    calls: list[tuple[str, str, int]] = []

    def _search(query, location, *, limit=20):
        calls.append((query, location, limit))
        return [dict(business) for business in FAKE_BUSINESSES]

    monkeypatch.setattr(leads_tool, "search_google_maps_businesses", _search)
    return calls


def _leads_artifact(db_session, project_id):
    db_session.expire_all()
    return ArtifactsRepository(db_session).get_data(project_id, ArtifactTypeEnum.leads) or {}


def test_create_lead_updates_projection(api_client, db_session, project):
    resp = api_client.post(
        "/leads",
        json={"project_id": str(project.id), "company_name": "  Corner Bakery ", "phone": "555-0100"},
    )
    assert resp.status_code == 201
    lead = resp.json()["lead"]
    assert lead["companyName"] == "Corner Bakery"
    assert lead["source"] == "manual"
    assert lead["status"] == "new"

    projection = _leads_artifact(db_session, project.id)
    assert [entry["id"] for entry in projection["leads"]] == [lead["id"]]


def test_create_lead_requires_fields(api_client, project):
    resp = api_client.post("/leads", json={"project_id": str(project.id)})
    assert resp.status_code == 400


def test_deleting_a_lead_twice_is_idempotent(api_client, db_session, project):
    keep = api_client.post("/leads", json={"project_id": str(project.id), "company_name": "Keep Co"}).json()["lead"]
    doomed = api_client.post("/leads", json={"project_id": str(project.id), "company_name": "Gone Co"}).json()["lead"]

    first = api_client.delete(f"/leads/{doomed['id']}", params={"projectId": str(project.id)})
    assert first.status_code == 200
    assert first.json() == {"success": True, "leadId": doomed["id"]}
    after_first = _leads_artifact(db_session, project.id)
    assert [entry["id"] for entry in after_first["leads"]] == [keep["id"]]

    second = api_client.delete(f"/leads/{doomed['id']}", params={"projectId": str(project.id)})
    assert second.status_code == 200
    assert second.json() == {"success": True, "leadId": doomed["id"]}
    assert _leads_artifact(db_session, project.id) == after_first


def test_deleting_a_lead_drops_its_generated_site(api_client, db_session, project):
    lead = LeadsRepository(db_session).create(project.id, "Site Owner")
    other = LeadsRepository(db_session).create(project.id, "Other Owner")
    upsert_lead_websites(
        db_session,
        project.id,
        [
            {"leadId": str(lead.id), "previewToken": "tok-a", "files": []},
            {"leadId": str(other.id), "previewToken": "tok-b", "files": []},
        ],
    )

    resp = api_client.delete(f"/leads/{lead.id}", params={"projectId": str(project.id)})
    assert resp.status_code == 200

    db_session.expire_all()
    sites = ArtifactsRepository(db_session).get_data(project.id, ArtifactTypeEnum.lead_website)["websites"]
    assert [site["leadId"] for site in sites] == [str(other.id)]


def test_delete_requires_project_id(api_client):
    resp = api_client.delete(f"/leads/{uuid4()}")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Missing projectId query parameter"


def test_status_update_validates_status(api_client, project):
    lead = api_client.post("/leads", json={"project_id": str(project.id), "company_name": "Status Co"}).json()["lead"]

    bad = api_client.post(
        "/leads/status", json={"projectId": str(project.id), "leadId": lead["id"], "status": "closed"}
    )
    assert bad.status_code == 400
    assert bad.json()["detail"] == "Invalid status"

    ok = api_client.post(
        "/leads/status", json={"projectId": str(project.id), "leadId": lead["id"], "status": "contacted"}
    )
    assert ok.status_code == 200
    assert ok.json()["lead"]["status"] == "contacted"

    missing = api_client.post(
        "/leads/status", json={"projectId": str(project.id), "leadId": str(uuid4()), "status": "contacted"}
    )
    assert missing.status_code == 404


def test_lead_generation_rerun_does_not_duplicate_leads(db_session, project, fake_search):
    args = {"businessType": "Web Design Agency", "targetIndustries": ["plumbers"], "location": "Austin, TX"}

    first = execute_tool(
        session=db_session, user_id="test-user", project_id=project.id, tool_name="generate_leads", raw_args=args
    )
    assert first.result.details == {"created": 3, "skipped": 0}
    assert first.credits_charged == 5

    second = execute_tool(
        session=db_session, user_id="test-user", project_id=project.id, tool_name="generate_leads", raw_args=args
    )
    assert second.result.details == {"created": 0, "skipped": 3}

    leads = LeadsRepository(db_session).list(project.id)
    assert sorted(lead.place_id for lead in leads) == ["place-1", "place-2", "place-3"]
    projection = _leads_artifact(db_session, project.id)
    assert len(projection["leads"]) == 3
    # Highest score first.
    assert projection["leads"][0]["placeId"] == "place-1"
    assert projection["searchCriteria"] == "Web Design Agency targeting plumbers in Austin, TX"
    assert fake_search[0] == ("plumbers", "Austin, TX", 12)


def test_build_lead_row_scores_and_flags_missing_website():
    icp = get_icp_template("web design")
    row = build_lead_row(dict(FAKE_BUSINESSES[0]), "plumbers", icp)
    assert row["score"] == 95
    assert row["score_breakdown"] == {"reviews": 35, "rating": 20, "website": 40}
    assert row["priority"] == LeadPriorityEnum.high
    assert row["city"] == "Austin"
    assert row["state"] == "TX"
    assert "No website found" in row["icp_match_reasons"]


def test_split_address_handles_non_us_formats():
    assert split_address("1 Rue de Rivoli, Paris, France") == (None, None)
    assert split_address("400 Broadway, New York, NY 10013, USA") == ("New York", "NY")
    assert split_address(None) == (None, None)


def test_preview_serves_unexpired_site(api_client, db_session, project):
    lead = LeadsRepository(db_session).create(project.id, "Preview Co", preview_token="live-token")
    upsert_lead_websites(
        db_session,
        project.id,
        [
            {
                "leadId": str(lead.id),
                "leadName": "Preview Co",
                "previewToken": "live-token",
                "files": [{"path": "/index.html", "content": "<html></html>", "type": "html"}],
                "expiresAt": (datetime.now(timezone.utc) + timedelta(days=3)).isoformat(),
            }
        ],
    )

    resp = api_client.get("/preview/live-token")
    assert resp.status_code == 200
    body = resp.json()
    assert body["leadName"] == "Preview Co"
    assert body["primaryPage"] == "/index.html"
    assert body["files"][0]["content"] == "<html></html>"


def test_preview_rejects_expired_and_unknown_tokens(api_client, db_session, project):
    lead = LeadsRepository(db_session).create(project.id, "Old Co", preview_token="old-token")
    upsert_lead_websites(
        db_session,
        project.id,
        [
            {
                "leadId": str(lead.id),
                "previewToken": "old-token",
                "files": [],
                "expiresAt": (datetime.now(timezone.utc) - timedelta(minutes=1)).isoformat(),
            }
        ],
    )

    assert api_client.get("/preview/old-token").status_code == 404
    assert api_client.get("/preview/never-issued").status_code == 404
