import uuid
from datetime import date, timedelta

import pytest

from .conftest import client, make_scientist, unique


def _future(days=365):
    return (date.today() + timedelta(days=days)).isoformat()


@pytest.mark.parametrize("board", ["ibc-board-members", "irb-board-members"])
def test_board_member_crud(client, board):
    scientist = make_scientist(client)
    resp = client.post(
        f"/api/{board}",
        json={"scientist_id": scientist["id"], "role": "chair", "expertise": ["virology"], "term_end_date": _future()},
    )
    assert resp.status_code == 201, resp.text
    member = resp.json()
    assert member["scientist"]["id"] == scientist["id"]

    resp = client.patch(f"/api/{board}/{member['id']}", json={"role": "deputy_chair"})
    assert resp.json()["role"] == "deputy_chair"
    assert client.patch(f"/api/{board}/{member['id']}", json={"role": "observer"}).status_code == 400

    assert client.delete(f"/api/{board}/{member['id']}").status_code == 204
    assert client.get(f"/api/{board}/{member['id']}").status_code == 404


@pytest.mark.parametrize("board", ["ibc-board-members", "irb-board-members"])
def test_active_board_members_exclude_lapsed_terms(client, board):
    current = make_scientist(client)
    lapsed = make_scientist(client)
    inactive = make_scientist(client)
    client.post(f"/api/{board}", json={"scientist_id": current["id"], "term_end_date": _future()})
    client.post(f"/api/{board}", json={"scientist_id": lapsed["id"], "term_end_date": _future(-1)})
    client.post(
        f"/api/{board}",
        json={"scientist_id": inactive["id"], "term_end_date": _future(), "is_active": False},
    )
    active = {row["scientist_id"] for row in client.get(f"/api/{board}/active").json()}
    assert current["id"] in active
    assert lapsed["id"] not in active
    assert inactive["id"] not in active


def test_ibc_board_member_training(client):
    scientist = make_scientist(client)
    resp = client.post(
        "/api/ibc-board-members",
        json={"scientist_id": scientist["id"], "term_end_date": _future(), "biosafety_training": ["BSL-3 practices"]},
    )
    assert resp.json()["biosafety_training"] == ["BSL-3 practices"]


def test_board_member_requires_scientist(client):
    resp = client.post(
        "/api/irb-board-members",
        json={"scientist_id": str(uuid.uuid4()), "term_end_date": _future()},
    )
    assert resp.status_code == 404


def test_buildings_and_rooms(client):
    resp = client.post("/api/buildings", json={"name": unique("Research Tower")})
    assert resp.status_code == 201
    building = resp.json()
    assert client.post("/api/buildings", json={"name": building["name"]}).status_code == 409

    resp = client.post(
        "/api/rooms",
        json={"building_id": building["id"], "room_number": "B-201", "biosafety_level": "BSL-2"},
    )
    assert resp.status_code == 201
    room = resp.json()
    assert client.post("/api/rooms", json={"building_id": building["id"], "room_number": "B-201"}).status_code == 409
    assert client.post("/api/rooms", json={"building_id": str(uuid.uuid4()), "room_number": "X"}).status_code == 404

    rows = client.get("/api/rooms", params={"building_id": building["id"]}).json()
    assert [row["id"] for row in rows] == [room["id"]]

    assert client.delete(f"/api/buildings/{building['id']}").status_code == 409
    assert client.delete(f"/api/rooms/{room['id']}").status_code == 204
    assert client.delete(f"/api/buildings/{building['id']}").status_code == 204


def test_role_permissions_default_and_upsert(client):
    title = unique("Lab Manager")
    resp = client.get("/api/role-permissions/access", params={"job_title": title, "navigation_item": "patents"})
    assert resp.json()["access_level"] == "view"

    resp = client.put(
        "/api/role-permissions",
        json=[
            {"job_title": title, "navigation_item": "patents", "access_level": "hide"},
            {"job_title": title, "navigation_item": "publications", "access_level": "edit"},
        ],
    )
    assert resp.status_code == 200, resp.text
    assert len(resp.json()) == 2

    resp = client.put(
        "/api/role-permissions",
        json=[{"job_title": title, "navigation_item": "patents", "access_level": "edit"}],
    )
    rows = client.get("/api/role-permissions", params={"job_title": title}).json()
    assert {(row["navigation_item"], row["access_level"]) for row in rows} == {
        ("patents", "edit"),
        ("publications", "edit"),
    }
    resp = client.get("/api/role-permissions/access", params={"job_title": title, "navigation_item": "patents"})
    assert resp.json()["access_level"] == "edit"


def test_role_permission_rejects_unknown_level(client):
    resp = client.post(
        "/api/role-permissions",
        json={"job_title": "Tech", "navigation_item": "patents", "access_level": "admin"},
    )
    assert resp.status_code == 400


def test_journal_impact_factors(client):
    journal = f"Annals of {uuid.uuid4().hex[:8]}"
    resp = client.post(
        "/api/journal-impact-factors/bulk",
        json=[
            {"journal_name": journal, "abbreviated_journal": "ANN", "year": 2021, "impact_factor": 3.1},
            {"journal_name": journal, "abbreviated_journal": "ANN", "year": 2022, "impact_factor": 3.4},
        ],
    )
    assert resp.json() == {"created": 2, "updated": 0}
    resp = client.post(
        "/api/journal-impact-factors/bulk",
        json=[{"journal_name": journal, "year": 2022, "impact_factor": 3.9}],
    )
    assert resp.json() == {"created": 0, "updated": 1}

    history = client.get("/api/journal-impact-factors/history", params={"journal": journal.upper()}).json()
    assert [(row["year"], row["impact_factor"]) for row in history] == [(2021, 3.1), (2022, 3.9)]

    rows = client.get("/api/journal-impact-factors", params={"search": journal[-8:], "year": 2021}).json()
    assert [row["year"] for row in rows] == [2021]

    duplicate = {"journal_name": journal, "year": 2021, "impact_factor": 1.0}
    assert client.post("/api/journal-impact-factors", json=duplicate).status_code == 409

    factor_id = history[0]["id"]
    resp = client.patch(f"/api/journal-impact-factors/{factor_id}", json={"quartile": "Q2"})
    assert resp.json()["quartile"] == "Q2"
    assert client.delete(f"/api/journal-impact-factors/{factor_id}").status_code == 204
    assert client.get(f"/api/journal-impact-factors/{factor_id}").status_code == 404
