from conftest import AUTH, OTHER_AUTH


def test_first_login_creates_user(client, gateway):
    resp = client.post("/api/login", json={"firstName": "A", "lastName": "B", "location": "Detroit"}, headers=AUTH)

    assert resp.status_code == 201
    user = resp.json()["user"]
    assert user["id"] == "uid-1"
    assert user["email"] == "a@b.com"
    assert user["location"] == "Detroit"
    assert user["createdAt"]
    assert len(gateway.query("user")) == 1


def test_second_login_returns_existing_user(client, gateway, user):
    resp = client.post("/api/login", json={"firstName": "Changed"}, headers=AUTH)

    assert resp.status_code == 200
    assert resp.json()["user"]["firstName"] == "A"
    assert len(gateway.query("user")) == 1


def test_me_returns_only_callers_rows(client, gateway, user):
    gateway.insert("user", {"id": "uid-2", "email": "c@d.com"})
    gateway.insert("zone", {"userId": "uid-1", "zoneName": "Mine"})
    gateway.insert("zone", {"userId": "uid-2", "zoneName": "Theirs"})

    resp = client.get("/api/me/zone", headers=AUTH)

    assert resp.status_code == 200
    body = resp.json()
    assert body["table"] == "zone"
    assert body["count"] == 1
    assert body["data"][0]["zoneName"] == "Mine"

    own = client.get("/api/me/user", headers=OTHER_AUTH).json()
    assert [row["id"] for row in own["data"]] == ["uid-2"]


def test_me_log_table_and_unknown_table(client, user):
    assert client.get("/api/me/waterLog", headers=AUTH).status_code == 200
    assert client.get("/api/me/unknownTable", headers=AUTH).status_code == 404


def test_create_zone(client, gateway, user):
    resp = client.post("/api/zones", json={"zoneName": "Greenhouse"}, headers=AUTH)

    assert resp.status_code == 201
    body = resp.json()
    assert body["zoneName"] == "Greenhouse"
    assert gateway.query("zone", {"id": body["zoneId"]})[0]["userId"] == "uid-1"


def test_create_zone_requires_name(client, user):
    resp = client.post("/api/zones", json={}, headers=AUTH)

    assert resp.status_code == 400


def test_pair_device_normalizes_mac_and_creates_user(client, gateway):
    resp = client.post("/api/pair", json={"raspiMac": "AA-BB-CC-DD-EE-FF", "firstName": "A"}, headers=AUTH)

    assert resp.status_code == 200
    assert resp.json()["user"]["raspiMac"] == "aa:bb:cc:dd:ee:ff"
    assert gateway.query("user", {"id": "uid-1"})[0]["firstName"] == "A"


def test_pair_device_rejects_bad_mac(client, user):
    resp = client.post("/api/pair", json={"raspiMac": "not-a-mac"}, headers=AUTH)

    assert resp.status_code == 400
    assert "raspiMac" in resp.json()["error"]


def test_me_returns_every_row_unless_limited(client, gateway, user):
    reading = {"userId": "uid-1", "type": "temperature", "value": "20"}
    gateway.insert_many("tempAndHumidity", [reading] * 105)

    body = client.get("/api/me/tempAndHumidity", headers=AUTH).json()
    assert body["count"] == 105
    assert len(body["data"]) == 105

    limited = client.get("/api/me/tempAndHumidity?limit=10", headers=AUTH).json()
    assert limited["count"] == 10

    assert client.get("/api/me/tempAndHumidity?limit=0", headers=AUTH).status_code == 400
