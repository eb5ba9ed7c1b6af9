"""
Unit Tests for the Web API

Tests the REST endpoints against a real orchestrator backed by a
temporary data directory.

Author: AutoDrop Project
License: MIT
"""

import pytest
from fastapi.testclient import TestClient

from autodrop.config.schema import Config
from autodrop.core.orchestrator import AutoDropOrchestrator
from autodrop.web.app import app
from autodrop.web.routes import set_orchestrator


@pytest.fixture
def orchestrator(tmp_path):
    config = Config(
        storage={"data_dir": str(tmp_path / "data")},
        destinations={"fallback_folder": str(tmp_path / "Downloads")},
    )
    instance = AutoDropOrchestrator(config)
    set_orchestrator(instance)
    yield instance
    set_orchestrator(None)
    instance.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def inbox(tmp_path):
    folder = tmp_path / "inbox"
    folder.mkdir()
    for name in ("a.txt", "b.txt"):
        (folder / name).write_text(name)
    return folder


def organize(client, inbox, *names):
    response = client.post("/api/organize", json={"paths": [str(inbox / name) for name in names]})
    assert response.status_code == 200
    return response.json()


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_not_initialized_returns_503(client):
    set_orchestrator(None)

    assert client.get("/api/history").status_code == 503
    assert client.get("/api/status").status_code == 503


def test_organize_and_history(tmp_path, client, orchestrator, inbox):
    body = organize(client, inbox, "a.txt", "b.txt")

    assert body["success"] is True
    assert body["success_count"] == 2
    assert (tmp_path / "Downloads" / "a.txt").exists()

    history = client.get("/api/history", params={"limit": 1}).json()
    assert history["total"] == 2
    assert len(history["items"]) == 1
    assert history["items"][0]["item_name"] == "b.txt"
    assert history["items"][0]["status"] == "Success"
    assert history["items"][0]["can_undo"] is True

    undoable = client.get("/api/history/undoable").json()
    assert len(undoable["items"]) == 2


def test_organize_validation(client, orchestrator):
    assert client.post("/api/organize", json={"paths": []}).status_code == 422
    assert client.post("/api/organize", json={"paths": ["  "]}).status_code == 400


def test_undo_single_operation(client, orchestrator, inbox):
    body = organize(client, inbox, "a.txt")
    operation_id = body["operations"][0]["id"]

    response = client.post(f"/api/history/{operation_id}/undo")

    assert response.status_code == 200
    assert response.json()["item"]["status"] == "Undone"
    assert (inbox / "a.txt").exists()

    assert client.post(f"/api/history/{operation_id}/undo").status_code == 409


def test_undo_unknown_operation(client, orchestrator):
    assert client.post("/api/history/unknown/undo").status_code == 404


def test_undo_many(client, orchestrator, inbox):
    body = organize(client, inbox, "a.txt", "b.txt")
    ids = [operation["id"] for operation in body["operations"]]

    response = client.post("/api/history/undo", json={"ids": ids + ["missing"]})

    assert response.json() == {"succeeded": 2, "failed": 1}


def test_one_click_undo(client, orchestrator, inbox):
    assert client.post("/api/undo").status_code == 409

    organize(client, inbox, "a.txt", "b.txt")
    pending = client.get("/api/undo").json()
    assert pending == {"can_undo": True, "pending_count": 1, "description": "2 items"}

    response = client.post("/api/undo")

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert (inbox / "a.txt").exists()
    assert client.get("/api/undo").json()["can_undo"] is False


def test_clear_history(client, orchestrator, inbox):
    organize(client, inbox, "a.txt")

    assert client.delete("/api/history").status_code == 200
    assert client.get("/api/history").json()["total"] == 0


def test_status(client, orchestrator, inbox):
    organize(client, inbox, "a.txt")

    body = client.get("/api/status").json()

    assert body["status"] == "ready"
    assert body["history_count"] == 1
    assert body["pending_undo"] == 1
    assert body["duplicate_detection"] is True
