"""
HTTP layer: rooms, seats, seat tokens and actions routed through the reducer.
Runs against a throwaway SQLite file.
"""

import os
import tempfile

_db_dir = tempfile.mkdtemp(prefix="veche-test-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'veche.db')}"

import pytest
from fastapi.testclient import TestClient

from veche.api.main import app
from veche.engine.actions import Action, RandomValues
from veche.engine.reducer import replay_from_actions
from veche.engine.utils import create_initial_game_state

NAMES = ("Dovmont", "Tverdilo", "Boris")


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def new_room(client):
    response = client.post("/rooms")
    assert response.status_code == 200
    return response.json()["room_code"]


def join(client, code, faction):
    response = client.post(f"/rooms/{code}/join", json={"player_name": NAMES[faction], "faction": faction})
    assert response.status_code == 200, response.text
    return {"X-Seat-Token": response.json()["token"]}


def started_room(client):
    """A room with all three seats taken and ready. Returns (code, [headers per seat])."""
    code = new_room(client)
    headers = [join(client, code, i) for i in range(3)]
    for h in headers:
        response = client.post(f"/rooms/{code}/ready", headers=h)
        assert response.status_code == 200
    return code, headers


def act(client, code, headers, **body):
    return client.post(f"/rooms/{code}/actions", json=body, headers=headers)


def test_root_and_definitions(client):
    assert client.get("/").json()["message"] == "Veche API"
    defs = client.get("/definitions").json()
    assert defs["regions"]["bearhill"]["display_name"] == "Bear Hill"
    assert defs["factions"]["Nobles"]["base_strength"] == 40
    assert "merchant_mansion" in defs["buildings"]
    assert "embassy" in defs["events"]


def test_lobby(client):
    code = new_room(client)
    assert code.startswith("PSKOV-")

    info = client.get(f"/rooms/{code}").json()
    assert info["status"] == "lobby"
    assert info["seats"] == [None, None, None]

    headers = join(client, code, 1)
    info = client.get(f"/rooms/{code}").json()
    assert info["player_count"] == 1
    assert info["seats"][1] == {"name": "Tverdilo", "faction": "Merchants", "ready": False}

    taken = client.post(f"/rooms/{code}/join", json={"player_name": "Ivan", "faction": 1})
    assert taken.status_code == 400
    bad_name = client.post(f"/rooms/{code}/join", json={"player_name": "<script>", "faction": 0})
    assert bad_name.status_code == 400
    bad_faction = client.post(f"/rooms/{code}/join", json={"player_name": "Ivan", "faction": 3})
    assert bad_faction.status_code == 400

    assert client.get(f"/rooms/{code}/state").status_code == 400

    info = client.post(f"/rooms/{code}/leave", headers=headers).json()
    assert info["player_count"] == 0


def test_unknown_room(client):
    assert client.get("/rooms/PSKOV-NONE").status_code == 404


def test_seat_tokens(client):
    code, headers = started_room(client)
    other = new_room(client)
    foreign = join(client, other, 0)

    assert client.post(f"/rooms/{code}/actions", json={"type": "NEXT_PHASE"}).status_code == 401
    assert act(client, code, {"X-Seat-Token": "not-a-token"}, type="NEXT_PHASE").status_code == 401
    assert act(client, code, foreign, type="NEXT_PHASE").status_code == 403


def test_game_starts_when_everyone_is_ready(client):
    code = new_room(client)
    headers = [join(client, code, i) for i in range(3)]
    client.post(f"/rooms/{code}/ready", headers=headers[0])
    client.post(f"/rooms/{code}/ready", headers=headers[1])
    # toggling twice un-readies
    client.post(f"/rooms/{code}/ready", headers=headers[0])
    info = client.post(f"/rooms/{code}/ready", headers=headers[2]).json()
    assert info["game_started"] is False

    info = client.post(f"/rooms/{code}/ready", headers=headers[0]).json()
    assert info["game_started"] is True
    assert info["status"] == "active"
    assert info["state"]["phase"] == "resources"
    assert info["state"]["summary"]["attack_targets"] == ["bearhill"]

    late = client.post(f"/rooms/{code}/join", json={"player_name": "Ivan", "faction": 0})
    assert late.status_code == 400


def test_actions_go_through_the_engine(client):
    code, headers = started_room(client)

    response = act(client, code, headers[2], type="NEXT_PHASE")
    assert response.status_code == 200
    body = response.json()
    assert body["state"]["phase"] == "construction"
    assert [p["money"] for p in body["state"]["players"]] == [2.0, 2.0, 2.0]
    assert body["result"]["type"] == "phase_changed"

    response = act(client, code, headers[1], type="BUY_EQUIPMENT", item="weapons")
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "turn_violation"

    response = act(client, code, headers[0], type="BUY_EQUIPMENT", item="weapons")
    assert response.status_code == 200
    assert response.json()["state"]["players"][0]["weapons"] == 1
    assert response.json()["state"]["summary"]["factions"][0]["strength"] == 45

    response = act(client, code, headers[0], type="BUILD_BUILDING", building_type="mill")
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "insufficient_funds"

    response = act(client, code, headers[0], type="SURRENDER")
    assert response.json()["detail"]["error"] == "unknown_action"

    state = client.get(f"/rooms/{code}/state").json()["state"]
    assert state["players"][0]["money"] == 1.0


def test_action_log_replays(client):
    code, headers = started_room(client)
    act(client, code, headers[0], type="NEXT_PHASE")
    act(client, code, headers[0], type="BUY_EQUIPMENT", item="armor")
    act(client, code, headers[1], type="BUY_EQUIPMENT", item="armor")  # rejected, not logged
    act(client, code, headers[0], type="SELECT_REGION", region_name="gdov")

    log = client.get(f"/rooms/{code}/log").json()["log"]
    assert [entry["action"]["type"] for entry in log] == ["NEXT_PHASE", "BUY_EQUIPMENT", "SELECT_REGION"]
    assert [entry["player_id"] for entry in log] == [0, 0, 0]

    replayed, _ = replay_from_actions(
        create_initial_game_state(),
        [
            (Action.from_dict(e["action"]), e["player_id"], RandomValues.from_dict(e["random_values"]))
            for e in log
        ],
    )
    live = client.get(f"/rooms/{code}/state").json()["state"]
    live.pop("summary")
    assert replayed.to_dict() == live


def test_validate_is_a_dry_run(client):
    code, headers = started_room(client)
    act(client, code, headers[0], type="NEXT_PHASE")

    response = client.post(
        f"/rooms/{code}/actions/validate", json={"type": "BUY_EQUIPMENT", "item": "weapons"}, headers=headers[1]
    )
    assert response.status_code == 200
    assert response.json() == {
        "valid": False,
        "error": "turn_violation",
        "message": "Not player 1's turn. Current player: 0",
    }

    response = client.post(
        f"/rooms/{code}/actions/validate", json={"type": "BUY_EQUIPMENT", "item": "weapons"}, headers=headers[0]
    )
    assert response.json()["valid"] is True

    assert len(client.get(f"/rooms/{code}/log").json()["log"]) == 1
    assert client.get(f"/rooms/{code}/state").json()["state"]["players"][0]["weapons"] == 0


def test_suggestions_for_a_seat(client):
    code, headers = started_room(client)
    act(client, code, headers[0], type="NEXT_PHASE")

    response = client.get(f"/rooms/{code}/suggestions", headers=headers[0])
    assert response.status_code == 200
    assert response.json()["actions"] == [{"type": "BUILD_BUILDING", "building_type": "noble_manor"}]
    assert client.get(f"/rooms/{code}/suggestions", headers=headers[1]).json()["actions"] == []
    assert client.get(f"/rooms/{code}/suggestions").status_code == 401

    suggested = client.get(f"/rooms/{code}/suggestions", headers=headers[0]).json()["actions"][0]
    assert act(client, code, headers[0], **suggested).status_code == 200


def test_reset(client):
    code, headers = started_room(client)
    act(client, code, headers[0], type="NEXT_PHASE")
    response = client.post(f"/rooms/{code}/reset", headers=headers[2])
    assert response.status_code == 200
    assert response.json()["result"]["type"] == "game_reset"
    assert response.json()["state"]["phase"] == "resources"
    assert [p["money"] for p in response.json()["state"]["players"]] == [0, 0, 0]


def test_database_url_resolution():
    from veche.api.database import DEFAULT_DB_PATH, resolve_database_url

    assert resolve_database_url("postgres://u:p@host/db") == "postgresql://u:p@host/db"
    assert resolve_database_url("postgresql://u:p@host/db") == "postgresql://u:p@host/db"
    assert resolve_database_url(None, "/tmp/rooms.db") == "sqlite:////tmp/rooms.db"
    assert resolve_database_url() == f"sqlite:///{DEFAULT_DB_PATH}"
