# tests/test_settings_api.py

def test_read_default_settings(client):
    response = client.get("/settings")
    assert response.status_code == 200

    data = response.json()
    assert data["preferences"]["startHour"] == "09:00"
    assert data["preferences"]["endHour"] == "17:00"
    assert data["preferences"]["workDays"] == ["Mon", "Tue", "Wed", "Thu", "Fri"]
    assert data["summary"] == ""
    assert data["refresh_interval_seconds"] == 30


def test_update_settings_is_partial_and_persisted(client):
    response = client.put("/settings", json={"timezone": "UTC", "workDays": ["Mon", "Tue", "Mon"]})
    assert response.status_code == 200
    assert response.json()["saved"] is True

    client.put("/settings", json={"pageSize": 25})

    data = client.get("/settings").json()
    assert data["preferences"]["timezone"] == "UTC"
    assert data["preferences"]["workDays"] == ["Mon", "Tue"]
    assert data["preferences"]["pageSize"] == 25
    assert data["summary"].startswith("UTC • 09:00–17:00 • MonTue • Local now: ")


def test_update_settings_rejects_unknown_weekday(client):
    response = client.put("/settings", json={"workDays": ["Funday"]})
    assert response.status_code == 422


def test_override_lifecycle(client):
    assert client.post("/settings/overrides", json={"userId": "abc"}).status_code == 400

    response = client.post("/settings/overrides", json={"userId": "42"})
    assert response.status_code == 201

    rows = client.get("/settings/overrides").json()
    assert len(rows) == 1
    assert rows[0]["key"] == "42"
    assert rows[0]["name"] == "42"
    assert rows[0]["timezone"] == "(default)"
    assert rows[0]["start_hour"] == "09:00"
    assert rows[0]["source"] == "manual"

    bad = client.put("/settings/overrides/42", json={"timezone": "Mars/Base"})
    assert bad.status_code == 400

    good = client.put("/settings/overrides/42", json={"timezone": "Asia/Tokyo", "endHour": "15:00"})
    assert good.status_code == 200

    exported = client.get("/settings/overrides/export").json()
    assert exported["42"]["timezone"] == "Asia/Tokyo"
    assert exported["42"]["endHour"] == "15:00"

    assert client.delete("/settings/overrides/42").status_code == 200
    assert client.delete("/settings/overrides/42").status_code == 404
    assert client.get("/settings/overrides").json() == []


def test_import_overrides(client):
    assert client.post("/settings/overrides/import", json=["nope"]).status_code == 400

    response = client.post(
        "/settings/overrides/import",
        json={"7": {"timezone": "Europe/Paris"}, "Ada": {"startHour": "08:00"}},
    )
    assert response.status_code == 200

    rows = {row["key"]: row for row in client.get("/settings/overrides").json()}
    assert rows["7"]["timezone"] == "Europe/Paris"
    assert rows["Ada"]["name"] == "Ada"
    assert rows["Ada"]["start_hour"] == "08:00"


def test_notices_record_saves(client):
    client.put("/settings", json={"timezone": "UTC"})

    notices = client.get("/notices").json()
    assert notices[-1]["type"] == "success"
    assert notices[-1]["message"] == "Settings saved."


def test_view_selection(client):
    assert client.get("/view", params={"mode": "settings"}).json()["view"] == "settings"
    assert client.get("/view", params={"mode": "fullScreen"}).json()["view"] == "board"
    assert client.get("/view", params={"mode": "bogus"}).json() == {"mode": None, "view": "board"}
    assert (
        client.get("/view", params={"instance_type": "account_settings_view"}).json()["view"]
        == "settings"
    )


def test_import_with_out_of_range_timestamp_is_accepted(client):
    response = client.post(
        "/settings/overrides/import",
        content='{"1": {"timezone": "Asia/Tokyo", "updatedAt": 1e400}}',
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 200

    rows = client.get("/settings/overrides").json()
    assert rows[0]["timezone"] == "Asia/Tokyo"
    assert rows[0]["updated"] == "-"
    assert client.get("/settings").status_code == 200
