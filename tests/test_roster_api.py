# tests/test_roster_api.py
from workclock.core.errors import DirectoryClientError
from workclock.schemas.roster import Person

# Tuesday
NOW = "2024-06-04T16:05:00Z"

PERSONS = [
    {"id": "1", "name": "Cy", "timezone": "America/Toronto"},
    {"id": "2", "name": "Bob", "timezone": "Asia/Tokyo"},
    {"id": "3", "name": "Ada", "timezone": "UTC"},
]


class FakeDirectory:
    def __init__(self, persons=None, error=None):
        self.persons = persons or []
        self.error = error
        self.boards = []

    async def list_assigned_persons(self, board_id):
        self.boards.append(board_id)
        if self.error is not None:
            raise self.error
        return self.persons

    async def lookup_user_names(self, ids):
        return {p.id: p.name for p in self.persons if p.id in ids}

    async def aclose(self):
        pass


def test_resolve_roster_uses_defaults(client):
    response = client.post("/roster/resolve", json={"persons": PERSONS, "now": NOW})
    assert response.status_code == 200

    data = response.json()
    assert [item["name"] for item in data["items"]] == ["Ada", "Bob", "Cy"]
    assert [item["status"] for item in data["items"]] == ["lastHour", "off", "working"]
    assert data["items"][0]["display_time"] == "4:05 p.m."
    assert data["items"][2]["display_time"] == "12:05 p.m."
    assert data["page"] == 1
    assert data["page_size"] == 10
    assert data["total"] == 3
    assert data["page_numbers"] == [1]
    assert data["sort_criteria"] == "name"


def test_resolve_roster_filters_sorts_and_clamps(client):
    response = client.post(
        "/roster/resolve",
        json={
            "persons": PERSONS,
            "now": NOW,
            "query": {
                "sort_criteria": "status",
                "online_only": True,
                "page": 9,
                "page_size": 1,
            },
        },
    )
    assert response.status_code == 200

    data = response.json()
    assert data["total"] == 2
    assert data["total_pages"] == 2
    assert data["page"] == 2
    assert [item["name"] for item in data["items"]] == ["Ada"]
    assert data["online_only"] is True


def test_resolve_roster_follows_stored_preferences(client):
    client.put("/settings", json={"sortCriteria": "timezone", "sortDirection": "desc"})

    response = client.post("/roster/resolve", json={"persons": PERSONS, "now": NOW})
    data = response.json()

    assert data["sort_criteria"] == "timezone"
    assert data["sort_direction"] == "desc"
    assert [item["effective_timezone"] for item in data["items"]] == [
        "UTC",
        "Asia/Tokyo",
        "America/Toronto",
    ]


def test_board_roster_without_directory_is_503(client):
    response = client.get("/boards/123/roster")
    assert response.status_code == 503


def test_board_roster_with_directory(client, app):
    directory = FakeDirectory(persons=[Person(**p) for p in PERSONS])
    app.state.directory = directory

    response = client.get("/boards/123/roster", params={"sort_criteria": "name", "page_size": 2})
    assert response.status_code == 200

    data = response.json()
    assert directory.boards == ["123"]
    assert data["total"] == 3
    assert data["total_pages"] == 2
    assert [item["name"] for item in data["items"]] == ["Ada", "Bob"]


def test_board_roster_directory_failure_is_502(client, app):
    app.state.directory = FakeDirectory(error=DirectoryClientError("boom"))

    response = client.get("/boards/123/roster")
    assert response.status_code == 502


def test_resolve_roster_at_far_future_instant(client):
    response = client.post(
        "/roster/resolve",
        json={"persons": PERSONS, "now": "9999-12-31T23:59:00Z"},
    )
    assert response.status_code == 200

    by_name = {item["name"]: item for item in response.json()["items"]}
    assert by_name["Bob"]["display_time"] == "—"
    assert by_name["Bob"]["status"] == "off"
    assert by_name["Ada"]["display_time"] == "11:59 p.m."
