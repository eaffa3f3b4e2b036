from __future__ import annotations

import sqlite3

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from partyboard import api, board
from partyboard.dispatch import BOARD_BUSY


@pytest.fixture()
def client(monkeypatch, store):
    """FastAPI test client around the in-memory store, scheduler disabled."""

    monkeypatch.setattr(api, "start_scheduler", lambda: None)
    monkeypatch.setattr(api, "stop_scheduler", lambda: None)
    with TestClient(api.create_app(store)) as test_client:
        yield test_client


def test_get_api_runs_action(client, store):
    board.issue_guest(store, "Ann", guest_id="g1")

    response = client.get("/api", params={"action": "validate", "guest": "g1"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "guest": {"guestId": "g1", "name": "Ann"}}
    assert response.headers["cache-control"].startswith("no-store")


def test_unknown_action_is_still_200(client):
    response = client.get("/api", params={"action": "explode"})
    assert response.status_code == 200
    assert response.json() == {"success": False, "error": "Unknown action"}


def test_missing_action(client):
    response = client.get("/api")
    assert response.json() == {"success": False, "error": "Unknown action"}


def test_full_guest_flow(client):
    rsvp = client.get(
        "/api",
        params={
            "action": "rsvp",
            "guest": "g1",
            "name": "Ann",
            "status": "attending",
            "plusOne": "true",
            "showPublic": "true",
        },
    ).json()
    assert rsvp["success"] is True
    assert rsvp["guests"][0]["plusOne"] is True

    topics = client.get(
        "/api",
        params={
            "action": "topic",
            "guest": "g1",
            "authorName": "Ann",
            "text": "Bring a gift?",
        },
    ).json()["topics"]
    topic_id = topics[0]["id"]

    for _ in range(2):
        liked = client.get(
            "/api",
            params={"action": "like", "guest": "g2", "topicId": topic_id},
        ).json()
    assert liked["topics"][0]["likes"] == 1

    init = client.get("/api", params={"action": "init", "guest": "g2"}).json()
    assert init["myLikes"] == [topic_id]
    assert init["rsvp"] is None
    assert init["guests"][0]["name"] == "Ann"


def test_post_is_rejected(client):
    response = client.post("/api", json={"action": "rsvp"})
    assert response.status_code == 200
    assert response.json() == {"success": False, "error": "Use GET requests instead"}


def test_healthz(client):
    body = client.get("/healthz").json()
    assert body["status"] == "ok"
    assert body["version"]


def test_cors_headers_present(client):
    response = client.get(
        "/api",
        params={"action": "init"},
        headers={"Origin": "https://party.example"},
    )
    assert response.headers.get("access-control-allow-origin") in {
        "*",
        "https://party.example",
    }


def test_locked_database_reported_in_body(client, monkeypatch):
    def locked(*_args, **_kwargs):
        raise OperationalError(
            "SELECT 1", {}, sqlite3.OperationalError("database is locked")
        )

    monkeypatch.setattr(board, "list_topics", locked)

    response = client.get("/api", params={"action": "init", "guest": "g1"})

    assert response.status_code == 200
    assert response.json() == {"success": False, "error": BOARD_BUSY}
