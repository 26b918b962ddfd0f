from uuid import uuid4


def _create_client(api_client, project_id, **overrides):
    payload = {
        "projectId": str(project_id),
        "companyName": "Northwind Traders",
        "industry": "Retail",
        "primaryContact": {"name": "Ana", "email": "ana@northwind.example"},
        "tags": ["retail", "priority"],
    }
    payload.update(overrides)
    resp = api_client.post("/clients", json=payload)
    assert resp.status_code == 201
    return resp.json()["client"]


def test_create_and_list_clients(api_client, project):
    client = _create_client(api_client, project.id)
    assert client["status"] == "prospect"
    assert client["source"] == "manual_entry"
    assert client["primaryContact"]["email"] == "ana@northwind.example"
    assert client["financialMetrics"] == {"totalRevenue": 0.0, "outstandingBalance": 0.0, "lifetimeValue": 0.0}

    listed = api_client.get("/clients", params={"projectId": str(project.id)})
    assert listed.status_code == 200
    assert [c["id"] for c in listed.json()["clients"]] == [client["id"]]


def test_create_client_requires_company_name(api_client, project):
    resp = api_client.post("/clients", json={"projectId": str(project.id), "companyName": " "})
    assert resp.status_code == 400


def test_missing_client_is_not_found(api_client, project):
    missing_id = uuid4()
    get_resp = api_client.get(f"/clients/{missing_id}", params={"projectId": str(project.id)})
    assert get_resp.status_code == 404
    assert get_resp.json()["detail"] == "Client not found"

    patch_resp = api_client.patch(f"/clients/{missing_id}", json={"projectId": str(project.id), "notes": "x"})
    assert patch_resp.status_code == 404

    activities = api_client.get(f"/clients/{missing_id}/activities", params={"projectId": str(project.id)})
    assert activities.status_code == 404


def test_status_change_records_activity(api_client, project):
    client = _create_client(api_client, project.id)

    resp = api_client.patch(
        f"/clients/{client['id']}",
        json={"projectId": str(project.id), "status": "active", "primaryContact": {"phone": "555-0199"}},
    )
    assert resp.status_code == 200
    updated = resp.json()["client"]
    assert updated["status"] == "active"
    assert updated["primaryContact"]["phone"] == "555-0199"
    assert updated["primaryContact"]["name"] == "Ana"

    activities = api_client.get(
        f"/clients/{client['id']}/activities", params={"projectId": str(project.id)}
    ).json()["activities"]
    assert len(activities) == 1
    assert activities[0]["type"] == "status_change"
    assert activities[0]["metadata"] == {"from": "prospect", "to": "active"}


def test_unchanged_status_records_nothing(api_client, project):
    client = _create_client(api_client, project.id, status="active")
    api_client.patch(f"/clients/{client['id']}", json={"projectId": str(project.id), "status": "active"})

    activities = api_client.get(
        f"/clients/{client['id']}/activities", params={"projectId": str(project.id)}
    ).json()["activities"]
    assert activities == []


def test_manual_activity_and_validation(api_client, project):
    client = _create_client(api_client, project.id)

    bad = api_client.post(
        f"/clients/{client['id']}/activities", json={"projectId": str(project.id), "type": "fax"}
    )
    assert bad.status_code == 400

    ok = api_client.post(
        f"/clients/{client['id']}/activities",
        json={"projectId": str(project.id), "type": "call", "title": "Intro call", "content": "Went well"},
    )
    assert ok.status_code == 201
    activity = ok.json()["activity"]
    assert activity["description"] == "Went well"
    assert activity["userName"] == "system"


def test_delete_client_cascades_activities(api_client, project):
    client = _create_client(api_client, project.id)
    api_client.post(
        f"/clients/{client['id']}/activities", json={"projectId": str(project.id), "type": "note"}
    )

    resp = api_client.delete(f"/clients/{client['id']}", params={"projectId": str(project.id)})
    assert resp.status_code == 200
    assert api_client.get(f"/clients/{client['id']}", params={"projectId": str(project.id)}).status_code == 404


def test_null_payment_terms_and_currency_keep_stored_values(api_client, project):
    client = _create_client(api_client, project.id)
    assert client["paymentTerms"] == 30
    assert client["currency"] == "USD"

    changed = api_client.patch(
        f"/clients/{client['id']}",
        json={"projectId": str(project.id), "paymentTerms": 45, "currency": "EUR"},
    )
    assert changed.status_code == 200

    resp = api_client.patch(
        f"/clients/{client['id']}",
        json={"projectId": str(project.id), "paymentTerms": None, "currency": None, "notes": None},
    )
    assert resp.status_code == 200
    updated = resp.json()["client"]
    assert updated["paymentTerms"] == 45
    assert updated["currency"] == "EUR"
    assert updated["notes"] is None
