"""API tests through FastAPI's TestClient with a stubbed LLM."""

import pytest
from fastapi.testclient import TestClient

from conftest import StubLLM
from rta_samvada.app import create_app
from rta_samvada.config import Settings

RESPONSE = """[BUDDHI]
That does not follow.
--- DEBUG PANEL ---
Active Level: 2
Ṛta Integrity Score: 80 / 100
Active Contradictions: claimed two birthplaces
-------------------"""

COLLAPSE = """[KARMA]
Enough.
--- DEBUG PANEL ---
Ṛta Integrity Score: 0 / 100
"""


@pytest.fixture
def make_client(tmp_path, stub_llms):
    def _make(responses):
        llm = StubLLM(responses)
        stub_llms.append(llm)
        app = create_app(settings=Settings(data_dir=tmp_path / "data"), llm=llm)
        return TestClient(app), llm

    return _make


def test_health(make_client):
    client, _ = make_client([])
    assert client.get("/api/health").json() == {"status": "ok"}


def test_initial_state(make_client):
    client, _ = make_client([])
    state = client.get("/api/state").json()
    assert state["current_level"] == 1
    assert state["integrity_score"] == 100
    assert state["session_history"] == []
    assert client.get("/api/debug").json() == {"debug": None}


def test_chat_turn(make_client):
    client, llm = make_client([RESPONSE])
    resp = client.post("/api/chat", json={"message": "I was born in two cities."})
    assert resp.status_code == 200
    data = resp.json()

    assert data["dissolved"] is False
    assert data["notice"] is None
    user, model = data["messages"]
    assert user["role"] == "user"
    assert model["speaker"] == "BUDDHI"
    assert model["text"] == "That does not follow."
    assert data["state"]["integrity_score"] == 80
    assert data["state"]["current_level"] == 2
    assert data["state"]["contradictions"] == ["claimed two birthplaces"]
    assert len(llm.calls) == 1

    assert client.get("/api/state").json() == data["state"]
    assert client.get("/api/debug").json()["debug"].startswith("Active Level: 2")


def test_chat_blank_message_400(make_client):
    client, _ = make_client([])
    resp = client.post("/api/chat", json={"message": "  "})
    assert resp.status_code == 400


def test_chat_missing_body_422(make_client):
    client, _ = make_client([])
    assert client.post("/api/chat", json={}).status_code == 422


def test_chat_dissolution(make_client):
    client, _ = make_client([RESPONSE, COLLAPSE])
    first = client.post("/api/chat", json={"message": "one"}).json()
    second = client.post("/api/chat", json={"message": "two"}).json()

    assert second["dissolved"] is True
    assert second["notice"].startswith("NARRATIVE DISSOLUTION")
    assert second["state"]["player_id"] != first["state"]["player_id"]
    assert second["state"]["integrity_score"] == 100
    assert second["state"]["session_history"] == []


def test_reset(make_client):
    client, _ = make_client([RESPONSE])
    before = client.post("/api/chat", json={"message": "one"}).json()["state"]
    fresh = client.post("/api/reset").json()
    assert fresh["player_id"] != before["player_id"]
    assert fresh["contradictions"] == []
    assert client.get("/api/state").json() == fresh


def test_state_survives_restart(make_client):
    client, _ = make_client([RESPONSE])
    state = client.post("/api/chat", json={"message": "one"}).json()["state"]
    restarted, _ = make_client([])
    assert restarted.get("/api/state").json() == state


def test_chat_while_busy_409(make_client):
    client, _ = make_client([])
    client.app.state.session._busy = True
    resp = client.post("/api/chat", json={"message": "hello"})
    assert resp.status_code == 409
    assert client.post("/api/reset").status_code == 409
