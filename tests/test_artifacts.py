from app.db.enums import ArtifactTypeEnum
from app.db.repositories.artifacts import ArtifactsRepository
from app.services.lead_projection import rebuild_leads_artifact


def test_upsert_keeps_one_previous_version(db_session, project):
    repo = ArtifactsRepository(db_session)
    first = repo.upsert(project.id, ArtifactTypeEnum.identity, {"name": "First"})
    assert first.version == 1
    assert first.previous_data is None

    repo.upsert(project.id, ArtifactTypeEnum.identity, {"name": "Second"})
    third = repo.upsert(project.id, ArtifactTypeEnum.identity, {"name": "Third"})
    assert third.version == 3
    assert third.data == {"name": "Third"}
    assert third.previous_data == {"name": "Second"}


def test_undo_swaps_current_and_previous(api_client, db_session, project):
    repo = ArtifactsRepository(db_session)
    repo.upsert(project.id, ArtifactTypeEnum.identity, {"name": "Old"})
    repo.upsert(project.id, ArtifactTypeEnum.identity, {"name": "New"})

    resp = api_client.post("/artifacts/undo", json={"projectId": str(project.id), "type": "identity"})
    assert resp.status_code == 200
    artifact = resp.json()["artifact"]
    assert artifact["data"] == {"name": "Old"}
    assert artifact["previous_data"] == {"name": "New"}

    # Undoing again flips back (redo).
    again = api_client.post("/artifacts/undo", json={"projectId": str(project.id), "type": "identity"})
    assert again.json()["artifact"]["data"] == {"name": "New"}


def test_undo_without_history_is_rejected(api_client, db_session, project):
    ArtifactsRepository(db_session).upsert(project.id, ArtifactTypeEnum.identity, {"name": "Only"})

    resp = api_client.post("/artifacts/undo", json={"projectId": str(project.id), "type": "identity"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No previous version available to undo"


def test_undo_missing_artifact_is_not_found(api_client, project):
    resp = api_client.post("/artifacts/undo", json={"projectId": str(project.id), "type": "ads"})
    assert resp.status_code == 404


def test_leads_projection_is_never_undoable(api_client, db_session, project):
    rebuild_leads_artifact(db_session, project.id, search_criteria="first")
    rebuild_leads_artifact(db_session, project.id, search_criteria="second")

    resp = api_client.post("/artifacts/undo", json={"projectId": str(project.id), "type": "leads"})
    assert resp.status_code == 400


def test_get_artifact_validates_type(api_client, project):
    assert api_client.get("/artifacts/get", params={"projectId": str(project.id)}).status_code == 400
    bad = api_client.get("/artifacts/get", params={"projectId": str(project.id), "type": "nope"})
    assert bad.status_code == 400
    missing = api_client.get("/artifacts/get", params={"projectId": str(project.id), "type": "identity"})
    assert missing.status_code == 200
    assert missing.json() == {"artifact": None}


def test_list_artifacts(api_client, db_session, project):
    repo = ArtifactsRepository(db_session)
    repo.upsert(project.id, ArtifactTypeEnum.identity, {"name": "Acme"})
    repo.upsert(project.id, ArtifactTypeEnum.ads, {"ads": []})

    resp = api_client.get("/artifacts", params={"projectId": str(project.id)})
    assert resp.status_code == 200
    assert {a["type"] for a in resp.json()["artifacts"]} == {"identity", "ads"}
