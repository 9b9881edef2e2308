from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from selfauthor.api.deps import get_generator
from selfauthor.config import get_settings
from selfauthor.main import app
from selfauthor.providers import GenerationError
from selfauthor.utils import db


@pytest.fixture
def client(database, settings):
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


def _use_generator(gen) -> None:
    app.dependency_overrides[get_generator] = lambda: gen


def test_health(client: TestClient) -> None:
    for path in ("/", "/health", "/healthz"):
        r = client.get(path)
        assert r.status_code == 200
        assert r.json() == {"status": "ok"}


def test_login_is_idempotent(client: TestClient) -> None:
    first = client.post("/login", json={"username": "alice"})
    assert first.status_code == 200
    assert first.json()["summary"] is None

    client.post(f"/prompt/{first.json()['user_id']}", json={"new_prompt": "custom"})

    second = client.post("/login", json={"username": "alice"})
    assert second.json()["user_id"] == first.json()["user_id"]
    assert client.get(f"/prompt/{first.json()['user_id']}").text == "custom"


def test_login_rejects_empty_username(client: TestClient) -> None:
    assert client.post("/login", json={"username": ""}).status_code == 422


def test_fresh_user_gets_default_persona(client: TestClient, settings) -> None:
    user_id = client.post("/login", json={"username": "bob"}).json()["user_id"]

    r = client.get(f"/prompt/{user_id}")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    assert r.text == settings.default_persona


def test_prompt_routes_return_404_for_unknown_user(client: TestClient) -> None:
    assert client.get("/prompt/999").status_code == 404
    assert client.post("/prompt/999", json={"new_prompt": "x"}).status_code == 404


def test_update_prompt_echoes_new_prompt(client: TestClient) -> None:
    user_id = client.post("/login", json={"username": "carol"}).json()["user_id"]
    r = client.post(f"/prompt/{user_id}", json={"new_prompt": "Be brief."})
    assert r.status_code == 200
    assert r.json() == {"prompt": "Be brief."}


def test_summary_is_404_until_first_turn(client: TestClient, scripted) -> None:
    user_id = client.post("/login", json={"username": "alice"}).json()["user_id"]
    assert client.get(f"/summary/{user_id}").status_code == 404

    gen = scripted(["Let's explore that."], ["Alice feels stuck in her career."])
    _use_generator(gen)

    r = client.post("/chat", json={"user_id": user_id, "message": "I feel stuck"})
    assert r.status_code == 200
    assert r.json() == {"reply": "Let's explore that.", "user_id": user_id}

    assert client.get(f"/summary/{user_id}").json() == {"summary": "Alice feels stuck in her career."}
    assert client.post("/login", json={"username": "alice"}).json()["summary"] == "Alice feels stuck in her career."


def test_chat_for_unknown_user_is_401(client: TestClient, scripted) -> None:
    _use_generator(scripted())
    r = client.post("/chat", json={"user_id": 12345, "message": "hi"})
    assert r.status_code == 401


def test_chat_backend_failure_is_opaque_500(client: TestClient, scripted) -> None:
    user_id = client.post("/login", json={"username": "dave"}).json()["user_id"]
    _use_generator(scripted(GenerationError("OpenAI 401: Incorrect API key provided: sk-secret")))

    r = client.post("/chat", json={"user_id": user_id, "message": "hi"})
    assert r.status_code == 500
    assert r.json() == {"detail": "internal error"}
    assert db.find_summary(user_id) is None


def test_chat_validates_payload(client: TestClient) -> None:
    assert client.post("/chat", json={"message": "hi"}).status_code == 422


def test_chat_store_failure_is_500_not_401(client: TestClient, scripted, monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_lookup(user_id: int):
        raise db.StoreError("connection reset")

    monkeypatch.setattr(db, "find_user_by_id", broken_lookup)
    _use_generator(scripted())

    r = client.post("/chat", json={"user_id": 1, "message": "hi"})
    assert r.status_code == 500
    assert r.json() == {"detail": "internal error"}
