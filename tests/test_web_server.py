import pytest

import web_server


@pytest.fixture
def session_state():
    return web_server.SessionState()


@pytest.fixture
def client(session_state):
    flask_app = web_server.create_flask_app(
        web_server.WebServerConfig(host="127.0.0.1", port=5178),
        session_state,
    )
    flask_app.testing = True
    return flask_app.test_client()


def test_status_reports_published_snapshot(client, session_state):
    response = client.get("/api/status")
    assert response.status_code == 200
    assert response.get_json() == {"ok": True, "state": "init", "pending_intents": []}
    assert response.headers["Cache-Control"] == "no-store"

    session_state.publish_status({"state": "running", "score": 4})
    session_state.set_error_text("  server hiccup  ")
    payload = client.get("/api/status").get_json()
    assert payload["state"] == "running"
    assert payload["score"] == 4
    assert payload["error"] == "server hiccup"


@pytest.mark.parametrize("route, intent", [("/api/start", "start"), ("/api/stop", "stop"), ("/api/calibrate", "calibrate")])
def test_control_routes_queue_intents(client, session_state, route, intent):
    response = client.post(route)
    assert response.status_code == 200
    assert response.get_json() == {"ok": True, "queued": intent}
    assert client.get("/api/status").get_json()["pending_intents"] == [intent]
    assert session_state.drain_intents() == [web_server.ControlIntent(intent)]
    assert session_state.drain_intents() == []


def test_generic_intent_route(client, session_state):
    assert client.post("/api/intent", json={"intent": " Start "}).status_code == 200
    response = client.post("/api/intent", json={"intent": "dance"})
    assert response.status_code == 400
    assert response.get_json()["ok"] is False
    assert client.post("/api/intent", data="garbage").status_code == 400
    assert session_state.drain_intents() == [web_server.ControlIntent.START]


def test_landmarks_route(client, session_state):
    faces = [[{"x": 0.5, "y": 0.5}, {"x": 0.4, "y": 0.6}]]
    response = client.post("/api/landmarks", json={"faces": faces})
    assert response.get_json() == {"ok": True, "faces": 1}
    assert client.post("/api/landmarks", json={"faces": []}).get_json() == {"ok": True, "faces": 0}
    assert client.post("/api/landmarks", json={"faces": "nope"}).status_code == 400

    assert session_state.drain_landmarks() == [faces, []]
    assert session_state.drain_landmarks() == []


def test_unknown_route_and_method_return_json(client):
    response = client.get("/api/nothing")
    assert response.status_code == 404
    assert response.get_json() == {"ok": False, "error": "Not found"}

    response = client.get("/api/start")
    assert response.status_code == 405
    assert response.get_json()["ok"] is False


def test_pending_intents_are_bounded():
    state = web_server.SessionState(max_pending=2)
    for intent in (web_server.ControlIntent.START, web_server.ControlIntent.STOP, web_server.ControlIntent.CALIBRATE):
        assert state.request(intent)
    assert state.drain_intents() == [web_server.ControlIntent.STOP, web_server.ControlIntent.CALIBRATE]
    assert not state.request("jump")


@pytest.mark.parametrize(
    "body",
    [
        {"faces": [5]},
        {"faces": [{"a": 1, "b": 2}]},
        {"faces": [[{"x": 0.5}]]},
        {"faces": [[{"x": "0.5", "y": 0.5}]]},
        {"faces": [[[0.5]]]},
        {"faces": [[{"x": True, "y": 0.5}]]},
        ["faces"],
    ],
)
def test_malformed_landmarks_are_rejected(client, session_state, body):
    response = client.post("/api/landmarks", json=body)
    assert response.status_code == 400
    assert response.get_json()["ok"] is False
    assert session_state.drain_landmarks() == []


def test_non_finite_landmarks_are_rejected(client, session_state):
    body = '{"faces": [[{"x": 0.5, "y": 0.5}, {"x": 1e400, "y": 0.5}]]}'
    response = client.post("/api/landmarks", data=body, content_type="application/json")
    assert response.status_code == 400
    assert "finite" in response.get_json()["error"]
    assert session_state.drain_landmarks() == []


def test_pair_landmarks_are_accepted(client, session_state):
    faces = [[[0.5, 0.5], [0.3, 0.6]]]
    assert client.post("/api/landmarks", json={"faces": faces}).get_json() == {"ok": True, "faces": 1}
    assert session_state.drain_landmarks() == [faces]
