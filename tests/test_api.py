"""Tests for the read-only status API (store on tmp_path, service checks mocked)."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from tests.fakes import make_settings
from vidscribe.config import get_settings
from vidscribe.main import app
from vidscribe.models.schemas import NO_AUDIO, Candidate, ProcessingRecord, ProcessingStore
from vidscribe.services.pipeline import ServiceStatus, save_store


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings(tmp_path):
    return make_settings(tmp_path, candidate_count=2)


@pytest.fixture()
def client(settings):
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def populated(settings):
    store = ProcessingStore()
    store.upsert(
        ProcessingRecord(
            source_path="trips/beach.mp4",
            audio_asset_path=".tmp/beach_1.wav",
            transcript="waves",
            candidates=[Candidate(ordinal=1, text="Sea"), Candidate(ordinal=2, text="Sand")],
            best_candidate_ordinal=2,
        )
    )
    store.upsert(ProcessingRecord(source_path="silent.mp4", audio_asset_path=NO_AUDIO))
    store.upsert(
        ProcessingRecord(
            source_path="talk.mov",
            audio_asset_path=".tmp/talk_1.wav",
            transcript="hello",
            candidates=[Candidate(ordinal=1, text="A talk")],
            best_candidate_ordinal=1,
        )
    )
    save_store(settings.store_path, store)
    return store


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_services(self, client, settings):
        status = ServiceStatus(whisper=True, ollama=False, claude=True)
        with patch(
            "vidscribe.main.ProcessingStrategy.check_availability",
            AsyncMock(return_value=status),
        ):
            response = client.get("/health/services")

        body = response.json()
        assert body["whisper"] is True
        assert body["ollama"] is False
        assert body["claude"] is True
        assert body["ollama_url"] == settings.ollama_url


class TestRecords:
    def test_missing_store_is_empty(self, client):
        response = client.get("/api/records")
        assert response.status_code == 200
        assert response.json() == []

    def test_lists_records_in_store_order(self, client, populated):
        response = client.get("/api/records")
        assert [r["source_path"] for r in response.json()] == ["trips/beach.mp4", "silent.mp4", "talk.mov"]

    def test_get_record_by_nested_path(self, client, populated):
        response = client.get("/api/records/trips/beach.mp4")
        assert response.status_code == 200
        body = response.json()
        assert body["best_candidate_ordinal"] == 2
        assert body["candidates"][1] == {"ordinal": 2, "text": "Sand"}

    def test_get_record_normalizes_key(self, client, populated):
        response = client.get("/api/records/trips%5Cbeach.mp4")
        assert response.status_code == 200

    def test_unknown_record(self, client, populated):
        response = client.get("/api/records/nope.mp4")
        assert response.status_code == 404

    def test_malformed_store(self, client, settings):
        settings.store_path.write_text("[1, 2", encoding="utf-8")
        response = client.get("/api/records")
        assert response.status_code == 500
        assert "invalid JSON" in response.json()["detail"]


class TestSummary:
    def test_default_target(self, client, populated):
        body = client.get("/api/summary").json()
        assert body == {"target": 2, "total": 3, "complete": 1, "no_audio": 1, "pending": 1}

    def test_explicit_target(self, client, populated):
        body = client.get("/api/summary", params={"target": 1}).json()
        assert body["complete"] == 2
        assert body["pending"] == 0

    def test_invalid_target(self, client):
        assert client.get("/api/summary", params={"target": 0}).status_code == 422
