from conftest import AUTH


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


def test_missing_token_returns_401(client):
    resp = client.get("/api/data/user")

    assert resp.status_code == 401
    assert resp.json() == {"error": "Missing or malformed token"}


def test_rejected_token_returns_401(client):
    resp = client.get("/api/data/user", headers={"Authorization": "Bearer nope"})

    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid or expired token"}


# ---------------------------------------------------------------------------
# POST
# ---------------------------------------------------------------------------


def test_post_user_returns_materialized_row(client):
    resp = client.post(
        "/api/data/user",
        json={"email": "a@b.com", "firstName": "A", "lastName": "B"},
        headers=AUTH,
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["id"]
    assert body["data"]["createdAt"]
    assert body["data"]["firstName"] == "A"


def test_post_unknown_column_returns_400(client):
    resp = client.post("/api/data/user", json={"email": "a@b.com", "nickname": "x"}, headers=AUTH)

    assert resp.status_code == 400
    assert "nickname" in resp.json()["error"]


def test_post_constraint_violation_returns_generic_500(client):
    resp = client.post("/api/data/zone", json={"userId": "ghost", "zoneName": "Z"}, headers=AUTH)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to insert entry."}


def test_post_to_unknown_table_returns_404(client):
    resp = client.post("/api/data/unknownTable", json={"a": 1}, headers=AUTH)

    assert resp.status_code == 404


def test_post_malformed_json_returns_400(client):
    resp = client.post(
        "/api/data/user",
        content="{not json",
        headers={**AUTH, "Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert "error" in resp.json()


# ---------------------------------------------------------------------------
# GET
# ---------------------------------------------------------------------------


def test_get_unknown_table_returns_404(client):
    resp = client.get("/api/data/unknownTable", headers=AUTH)

    assert resp.status_code == 404
    assert resp.json() == {"error": "Table unknownTable not found"}


def test_get_filters_and_limits(client, gateway, user):
    for severity in ("high", "high", "high", "low"):
        gateway.insert("alert", {"userId": "uid-1", "message": "m", "severity": severity, "status": "unhandled"})

    resp = client.get("/api/data/alert?severity=high&status=unhandled&limit=2", headers=AUTH)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert len(data) == 2
    assert all(row["severity"] == "high" for row in data)


def test_get_malformed_limit_returns_400(client, user):
    resp = client.get("/api/data/user?limit=abc", headers=AUTH)

    assert resp.status_code == 400
    assert "limit" in resp.json()["error"]


def test_get_zero_limit_returns_400(client, user):
    assert client.get("/api/data/user?limit=0", headers=AUTH).status_code == 400


def test_get_unknown_filter_column_returns_400(client, user):
    resp = client.get("/api/data/user?shoeSize=9", headers=AUTH)

    assert resp.status_code == 400


def test_list_tables(client):
    resp = client.get("/api/tables", headers=AUTH)

    assert resp.status_code == 200
    assert "user" in resp.json()["data"]


# ---------------------------------------------------------------------------
# PATCH / PUT
# ---------------------------------------------------------------------------


def test_patch_accepts_partial_entry(client, user):
    resp = client.patch("/api/data/user", json={"id": "uid-1", "location": "Detroit"}, headers=AUTH)

    assert resp.status_code == 200
    body = resp.json()
    assert body["updated"] is True
    assert body["data"]["location"] == "Detroit"
    assert body["data"]["firstName"] == "A"


def test_patch_no_match_returns_404(client, user):
    resp = client.patch("/api/data/user", json={"id": "ghost", "location": "Detroit"}, headers=AUTH)

    assert resp.status_code == 404
    assert resp.json()["reason"] == "no match"


def test_patch_missing_primary_key_returns_400(client, user):
    resp = client.patch("/api/data/user", json={"location": "Detroit"}, headers=AUTH)

    assert resp.status_code == 400


def test_patch_batch_reports_partial_success(client, gateway, user):
    resp = client.patch(
        "/api/data/user",
        json=[{"id": "uid-1", "location": "Detroit"}, {"location": "Nowhere"}],
        headers=AUTH,
    )

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "validCount": 1,
        "invalidEntries": [{"entry": {"location": "Nowhere"}, "reason": "missing primary key"}],
    }
    assert gateway.query("user", {"id": "uid-1"})[0]["location"] == "Detroit"


def test_put_missing_required_field_is_rejected_without_mutation(client, gateway, user):
    resp = client.put(
        "/api/data/user",
        json={"id": "uid-1", "email": "new@b.com", "firstName": "New"},
        headers=AUTH,
    )

    assert resp.status_code == 400
    assert resp.json()["missingFields"] == ["lastName"]
    assert gateway.query("user", {"id": "uid-1"})[0]["email"] == "a@b.com"


def test_put_complete_entry_updates(client, user):
    resp = client.put(
        "/api/data/user",
        json={"id": "uid-1", "email": "new@b.com", "firstName": "New", "lastName": "Name"},
        headers=AUTH,
    )

    assert resp.status_code == 200
    assert resp.json()["data"]["email"] == "new@b.com"


def test_put_batch_with_incomplete_entry_writes_nothing(client, gateway, user):
    complete = {"id": "uid-1", "email": "new@b.com", "firstName": "New", "lastName": "Name"}
    incomplete = {"id": "uid-1", "email": "other@b.com"}

    resp = client.put("/api/data/user", json=[complete, incomplete], headers=AUTH)

    assert resp.status_code == 400
    assert resp.json()["invalidEntries"] == [{"entry": incomplete, "missing": ["firstName", "lastName"]}]
    assert gateway.query("user", {"id": "uid-1"})[0]["email"] == "a@b.com"


# ---------------------------------------------------------------------------
# DELETE
# ---------------------------------------------------------------------------


def test_delete_entry(client, gateway, user):
    zone = gateway.insert("zone", {"userId": "uid-1", "zoneName": "Front"})

    resp = client.delete(f"/api/data/zone/{zone['id']}", headers=AUTH)

    assert resp.status_code == 200
    assert resp.json()["deleted"] is True
    assert resp.json()["data"]["zoneName"] == "Front"
    assert gateway.query("zone") == []


def test_delete_missing_entry_returns_404(client):
    assert client.delete("/api/data/zone/ghost", headers=AUTH).status_code == 404


# ---------------------------------------------------------------------------
# Internal errors
# ---------------------------------------------------------------------------


def test_unexpected_errors_do_not_leak_details(client, gateway, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("connection string with secrets")

    monkeypatch.setattr(gateway, "query", boom)

    resp = client.get("/api/data/user", headers=AUTH)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}
