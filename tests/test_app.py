"""
Tests for the HTTP surface, driven through FastAPI's TestClient with a fake gateway.

Run with: pytest tests/test_app.py -v
"""

import threading
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from qca.app import create_app
from qca.curriculum import QUANTUM_BANKING_TOPICS
from qca.errors import ConfigurationError, GenerationError
from qca.session_store import SessionStore

GROVER = "Grover's Algorithm for Unstructured Financial Database Search"


@pytest.fixture
def client(settings, gateway):
    return TestClient(create_app(settings=settings, gateway=gateway))


class TestTopics:
    def test_curriculum_unlocked_before_first_selection(self, client):
        data = client.get("/api/topics").json()
        assert data["topics"] == QUANTUM_BANKING_TOPICS
        assert len(data["topics"]) == 20
        assert data["curriculum_locked"] is False

    def test_curriculum_locked_after_selection(self, client):
        client.post("/api/topics/select", json={"topic": GROVER})
        assert client.get("/api/topics").json()["curriculum_locked"] is True

    def test_empty_topic_rejected(self, client):
        assert client.post("/api/topics/select", json={"topic": ""}).status_code == 422


class TestSelection:
    def test_successful_selection(self, client):
        data = client.post("/api/topics/select", json={"topic": GROVER}).json()
        assert data["accepted"] is True
        assert data["started"] is True
        assert len(data["history"]) == 1
        assert data["history"][0]["topic"] == GROVER
        assert data["history"][0]["illustration_uri"].startswith("data:image/jpeg;base64,")
        assert data["suggested_topics"] == ["Amplitude Amplification", "Oracle Design"]
        assert data["status"] == {"is_busy": False, "stage_label": "", "last_error": None}

        logs = client.get("/api/logs").json()
        assert [entry["severity"] for entry in logs] == ["info", "success", "success"]

    def test_failed_selection_reports_error_in_body(self, client, gateway):
        gateway.illustration_error = GenerationError("AI did not return any images.")
        response = client.post("/api/topics/select", json={"topic": GROVER})
        data = response.json()
        assert response.status_code == 200
        assert data["history"] == []
        assert data["status"]["last_error"].startswith("Failed to generate analysis.")
        assert client.get("/api/session").json()["status"]["is_busy"] is False


class TestExports:
    def test_exports_are_no_ops_when_empty(self, client):
        assert client.get("/api/export/session").status_code == 204
        assert client.get("/api/export/logs").status_code == 204
        assert client.get("/api/logs").json() == []

    def test_session_export(self, client):
        client.post("/api/topics/select", json={"topic": GROVER})
        response = client.get("/api/export/session")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "qca-session-report-" in response.headers["content-disposition"]
        assert "Analysis of Grover" in response.text
        assert client.get("/api/logs").json()[-1]["message"] == "HTML download initiated."

    def test_log_export_includes_its_own_entry(self, client):
        client.post("/api/topics/select", json={"topic": GROVER})
        response = client.get("/api/export/logs")
        assert response.status_code == 200
        assert "qca-logs-" in response.headers["content-disposition"]
        lines = response.text.splitlines()
        assert len(lines) == 4
        assert lines[0].endswith(f'[INFO] Analysis initiated for: "{GROVER}"')
        assert lines[-1].endswith("[INFO] Log download initiated.")


class TestStartup:
    def test_placeholder_key_is_fatal(self, settings):
        with pytest.raises(ConfigurationError):
            create_app(settings=replace(settings, gemini_api_key="MISSING_API_KEY"))

    def test_index_served(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "Quantum Code Architect" in response.text


class TestStateConfinement:
    def test_store_mutations_stay_on_one_thread(self, settings, gateway):
        """Selections and downloads all write the store from the event-loop thread."""
        store = SessionStore()
        threads = set()
        original_append_log = store.append_log

        def recording_append_log(*args, **kwargs):
            threads.add(threading.current_thread().name)
            return original_append_log(*args, **kwargs)

        store.append_log = recording_append_log
        with TestClient(create_app(settings=settings, gateway=gateway, store=store)) as client:
            client.post("/api/topics/select", json={"topic": GROVER})
            client.get("/api/export/session")
            client.get("/api/export/logs")
            client.get("/api/logs")

        assert len(store.logs) == 5
        assert len(threads) == 1
