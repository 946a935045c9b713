from __future__ import annotations

import fakeredis
import pytest
from fastapi.testclient import TestClient

from undercover.api.models import SessionState


def _indices(data: dict, role: str) -> list[int]:
    return [p["index"] for p in data["round"]["players"] if p["role"] == role]


def _reveal_all(client: TestClient, sid: str, player_count: int) -> dict:
    data: dict = {}
    for _ in range(player_count):
        assert client.post(f"/session/{sid}/reveal").status_code == 200
        resp = client.post(f"/session/{sid}/advance")
        assert resp.status_code == 200
        data = resp.json()
    return data


def test_full_round_over_http(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    resp = client.post(
        "/session",
        json={"player_count": 5, "minority_count": 2, "player_names": ["Ada", "Bob", "", "Di", "Ed"], "language": "en"},
    )
    assert resp.status_code == 201
    created = resp.json()
    sid = created["session_id"]

    assert created["phase"] == "configuring"
    assert created["round"] is None
    assert created["config"]["player_names"] == ["Ada", "Bob", "Player 3", "Di", "Ed"]

    resp = client.post(f"/session/{sid}/start")
    assert resp.status_code == 200
    started = resp.json()
    assert started["phase"] == "revealing"
    assert started["round"]["current_turn"] == 0
    assert started["round"]["remaining_minority_count"] == 2
    assert started["round"]["category"] == "animals"

    # Card is hidden until flipped.
    card = client.get(f"/session/{sid}/card").json()
    assert card == {"player_index": 0, "player_name": "Ada", "revealed": False, "word": None}

    client.post(f"/session/{sid}/reveal")
    card = client.get(f"/session/{sid}/card").json()
    assert card["revealed"] is True
    assert card["word"] == started["round"]["players"][0]["word"]
    client.post(f"/session/{sid}/reveal")

    voting = _reveal_all(client, sid, 5)
    assert voting["phase"] == "voting"
    assert voting["round"]["turns_complete"] is True
    assert client.get(f"/session/{sid}/card").status_code == 422

    majority = _indices(voting, "majority")
    resp = client.post(f"/session/{sid}/vote", json={"player_index": majority[0]})
    assert resp.status_code == 200
    body = resp.json()
    assert body["result"]["was_minority"] is False
    assert body["result"]["round_concluded"] is False
    assert body["session"]["round"]["players"][majority[0]]["eligible"] is False

    # Same target twice is rejected.
    resp = client.post(f"/session/{sid}/vote", json={"player_index": majority[0]})
    assert resp.status_code == 422

    minority = _indices(voting, "minority")
    client.post(f"/session/{sid}/vote", json={"player_index": minority[0]})
    resp = client.post(f"/session/{sid}/vote", json={"player_index": minority[1]})
    final = resp.json()
    assert final["result"]["remaining_minority_count"] == 0
    assert final["result"]["winner"] == "majority"
    assert final["session"]["phase"] == "concluded"

    resp = client.post(f"/session/{sid}/reset")
    assert resp.status_code == 200
    reset = resp.json()
    assert reset["phase"] == "configuring"
    assert reset["round"] is None
    assert reset["config"]["player_count"] == 5
    assert reset["config"]["player_names"] == ["Ada", "Bob", "Player 3", "Di", "Ed"]

    # GET by id + list
    assert client.get(f"/session/{sid}").json()["phase"] == "configuring"
    sessions = client.get("/session").json()["sessions"]
    assert [s["session_id"] for s in sessions] == [sid]


def test_session_validation(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    assert client.post("/session", json={"player_count": 2, "minority_count": 1}).status_code == 422
    assert client.post("/session", json={"player_count": 26, "minority_count": 1}).status_code == 422
    assert client.post("/session", json={"player_count": 3, "minority_count": 2}).status_code == 422
    assert client.post("/session", json={"player_count": 3, "minority_count": 1, "player_names": ["A"]}).status_code == 422
    assert client.post("/session", json={"player_count": 3, "minority_count": 1, "language": "xx"}).status_code == 422


def test_phase_errors_map_to_422(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    sid = client.post("/session", json={"player_count": 3, "minority_count": 1}).json()["session_id"]

    assert client.post(f"/session/{sid}/advance").status_code == 422
    assert client.post(f"/session/{sid}/vote", json={"player_index": 0}).status_code == 422
    assert client.post(f"/session/{sid}/reset").status_code == 422

    client.post(f"/session/{sid}/start")
    resp = client.put(f"/session/{sid}/config", json={"player_count": 4, "minority_count": 1})
    assert resp.status_code == 422
    assert "not allowed" in resp.json()["detail"]


def test_configure_route(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    sid = client.post("/session", json={"language": "it"}).json()["session_id"]

    resp = client.put(f"/session/{sid}/config", json={"player_count": 6, "minority_count": 3})
    assert resp.status_code == 200
    cfg = resp.json()["config"]
    assert cfg["player_count"] == 6
    assert cfg["minority_count"] == 3
    assert cfg["player_names"][0] == "Giocatore 1"

    resp = client.put(f"/session/{sid}/config", json={"player_count": 6, "minority_count": 4})
    assert resp.status_code == 422


def test_generic_action_endpoint(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    sid = client.post("/session", json={"player_count": 3, "minority_count": 1}).json()["session_id"]

    resp = client.post(f"/sessions/{sid}/actions/start", json={"player_names": ["A", "B", "C"]})
    assert resp.status_code == 200
    assert [p["name"] for p in resp.json()["round"]["players"]] == ["A", "B", "C"]

    for _ in range(3):
        resp = client.post(f"/sessions/{sid}/actions/advance")
        assert resp.status_code == 200
    assert resp.json()["phase"] == "voting"

    resp = client.post(f"/sessions/{sid}/actions/vote", json={})
    assert resp.status_code == 422

    current = client.get(f"/session/{sid}").json()
    assert current["phase"] == "voting"
    minority = _indices(current, "minority")
    resp = client.post(f"/sessions/{sid}/actions/vote", json={"player_index": minority[0]})
    assert resp.status_code == 200
    assert resp.json()["phase"] == "concluded"

    assert client.post(f"/sessions/{sid}/actions/explode").status_code == 422


def test_unknown_session_is_404(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    missing = "00000000-0000-0000-0000-000000000000"

    assert client.get(f"/session/{missing}").status_code == 404
    assert client.get(f"/session/{missing}/card").status_code == 404
    assert client.post(f"/session/{missing}/start").status_code == 404


def test_busy_session_is_rejected(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, r = client_and_redis
    sid = client.post("/session", json={"player_count": 3, "minority_count": 1}).json()["session_id"]

    r.set(f"lock:session:{sid}", "1")
    resp = client.post(f"/session/{sid}/start")
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Session is busy"

    r.delete(f"lock:session:{sid}")
    assert client.post(f"/session/{sid}/start").status_code == 200


def test_language_preference_drives_new_sessions(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    assert client.get("/settings/language").json() == {"language": "it"}
    it_session = client.post("/session", json={"player_count": 3, "minority_count": 1}).json()
    assert it_session["language"] == "it"
    assert it_session["config"]["player_names"][0] == "Giocatore 1"

    assert client.put("/settings/language", json={"language": "en"}).json() == {"language": "en"}
    assert client.put("/settings/language", json={"language": "xx"}).status_code == 422

    en_session = client.post("/session", json={"player_count": 3, "minority_count": 1}).json()
    assert en_session["language"] == "en"
    started = client.post(f"/session/{en_session['session_id']}/start").json()
    assert started["round"]["category"] == "animals"

    # Existing sessions keep the language they were created with.
    assert client.get(f"/session/{it_session['session_id']}").json()["language"] == "it"


def test_info_and_healthcheck(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    assert client.get("/healthcheck").json() == {"status": "ok"}
    assert client.get("/info").json()["name"] == "undercover"


def test_counter_routes_clamp_and_follow_player_count(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    sid = client.post(
        "/session",
        json={"player_count": 4, "minority_count": 2, "player_names": ["A", "B", "C", "D"], "language": "en"},
    ).json()["session_id"]

    # 3 players allow a single minority player, so the minority count follows the cap down.
    cfg = client.post(f"/session/{sid}/players", json={"delta": -1}).json()["config"]
    assert cfg == {"player_count": 3, "minority_count": 1, "player_names": ["A", "B", "C"]}

    cfg = client.post(f"/session/{sid}/players", json={"delta": -1}).json()["config"]
    assert cfg["player_count"] == 3

    cfg = client.post(f"/session/{sid}/minority", json={"delta": 1}).json()["config"]
    assert cfg["minority_count"] == 1

    cfg = client.post(f"/session/{sid}/players", json={"delta": 100}).json()["config"]
    assert cfg["player_count"] == 25
    assert cfg["player_names"][:3] == ["A", "B", "C"]
    assert cfg["player_names"][-1] == "Player 25"

    cfg = client.post(f"/session/{sid}/minority", json={"delta": 100}).json()["config"]
    assert cfg["minority_count"] == 12
    cfg = client.post(f"/session/{sid}/minority", json={"delta": -100}).json()["config"]
    assert cfg["minority_count"] == 1

    assert client.post(f"/session/{sid}/minority", json={}).status_code == 422

    # Counters are only live while configuring.
    client.post(f"/session/{sid}/start")
    assert client.post(f"/session/{sid}/players", json={"delta": 1}).status_code == 422

    resp = client.post(f"/sessions/{sid}/actions/reset")
    assert resp.status_code == 200
    resp = client.post(f"/sessions/{sid}/actions/adjust_players", json={"delta": -30})
    assert resp.status_code == 200
    assert resp.json()["config"]["player_count"] == 3


def test_reconfigure_without_names_keeps_entered_names(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    sid = client.post(
        "/session",
        json={"player_count": 3, "minority_count": 1, "player_names": ["Ada", "Bob", "Cy"], "language": "en"},
    ).json()["session_id"]

    cfg = client.put(f"/session/{sid}/config", json={"player_count": 5, "minority_count": 2}).json()["config"]
    assert cfg["player_names"] == ["Ada", "Bob", "Cy", "Player 4", "Player 5"]

    cfg = client.put(f"/session/{sid}/config", json={"player_count": 4, "minority_count": 1}).json()["config"]
    assert cfg["player_names"] == ["Ada", "Bob", "Cy", "Player 4"]


def test_vote_without_result_is_a_server_error(
    client_and_redis: tuple[TestClient, fakeredis.FakeRedis],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    from undercover.actions import ActionResult
    from undercover.api import routes

    client, _ = client_and_redis
    created = client.post("/session", json={"player_count": 3, "minority_count": 1}).json()
    state = SessionState.model_validate(created)

    monkeypatch.setattr(routes, "dispatch_action", lambda **_: ActionResult(state=state))
    resp = client.post(f"/session/{created['session_id']}/vote", json={"player_index": 0})
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Vote produced no result"
