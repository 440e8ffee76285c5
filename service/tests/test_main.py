"""Tests for FastAPI endpoints."""

import pytest
from fastapi.testclient import TestClient

import postbot.main as main
from postbot.main import app

client = TestClient(app)


@pytest.fixture
def received(settings_env, monkeypatch):
    """Replace update processing; records each update handed to it."""
    updates = []

    async def _noop():
        return None

    def fake_handle(update_data):
        updates.append(update_data)
        return _noop()

    monkeypatch.setattr(main, "handle_telegram_update", fake_handle)
    return updates


def test_health_endpoint(settings_env):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["environment"] == "development"


def test_root_endpoint():
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["service"] == "X Post Bot API"


def test_webhook_acknowledges(received):
    update = {"update_id": 1, "message": {"message_id": 5, "text": "/start"}}
    response = client.post("/telegram/webhook", json=update)

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert received == [update]


def test_webhook_acknowledges_garbage(received):
    response = client.post(
        "/telegram/webhook",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 200
    assert received == []


def test_webhook_secret_required(received, settings_env):
    settings_env.setenv("TELEGRAM_WEBHOOK_SECRET", "s3cret")
    main.get_settings.cache_clear()

    response = client.post("/telegram/webhook", json={"update_id": 1})
    assert response.status_code == 403

    response = client.post(
        "/telegram/webhook",
        json={"update_id": 2},
        headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"},
    )
    assert response.status_code == 200
    assert received == [{"update_id": 2}]


def test_oauth_callback_page():
    response = client.get("/auth/x/callback?state=abc&code=xyz")

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "state=abc&amp;code=xyz" in response.text


@pytest.mark.parametrize("query", ["", "?code=xyz", "?state=abc", "?code=&state=abc"])
def test_oauth_callback_missing_params(query):
    response = client.get(f"/auth/x/callback{query}")
    assert response.status_code == 400
