"""Tests for the HTTP and websocket endpoints."""

import json
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fakes import FakeLLMService, FakeStreamingService
from fastapi.testclient import TestClient

from dependencies import (
    get_base_extraction_prompt,
    get_broadcast_channel,
    get_llm_service,
    get_orchestrator,
    get_persistence_gateway,
    get_streaming_service,
    get_training_repository,
)
from domain.models import ActionItem, ExtractedRecord, LeadFields, SentimentAnalysis, Utterance
from exceptions import PersistenceUnavailableError
from main import app
from repositories.training_repository import TrainingRepository


class GreetingStreamingService(FakeStreamingService):
    """Emits one final utterance as soon as the session opens."""

    async def open(self, call_id, on_final):
        session = await super().open(call_id, on_final)
        await on_final(Utterance(speaker="0", text="Thanks for calling.", start_offset=0.0, end_offset=1.1))
        return session


@pytest.fixture
def orchestrator():
    return MagicMock()


@pytest.fixture
def training_repository(tmp_path):
    return TrainingRepository(tmp_path / "training")


@pytest.fixture
def llm():
    return FakeLLMService()


@pytest.fixture
def streaming():
    return GreetingStreamingService()


@pytest.fixture
def client(orchestrator, gateway, broadcast, training_repository, llm, streaming):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_persistence_gateway] = lambda: gateway
    app.dependency_overrides[get_broadcast_channel] = lambda: broadcast
    app.dependency_overrides[get_training_repository] = lambda: training_repository
    app.dependency_overrides[get_llm_service] = lambda: llm
    app.dependency_overrides[get_base_extraction_prompt] = lambda: "BASE PROMPT"
    app.dependency_overrides[get_streaming_service] = lambda: streaming
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestTwilioWebhooks:
    """Tests for the Twilio callback endpoints."""

    def test_recording_status_schedules_pipeline(self, client, orchestrator):
        response = client.post(
            "/api/twilio/recording-status",
            data={
                "RecordingSid": "RE1",
                "RecordingStatus": "completed",
                "CallSid": "CA1",
                "RecordingUrl": "https://api.twilio.com/Recordings/RE1",
                "RecordingDuration": "95",
            },
        )

        assert response.status_code == 200
        assert response.text == "OK"
        event = orchestrator.schedule.call_args.args[0]
        assert event.recording_id == "RE1"
        assert event.call_id == "CA1"
        assert event.duration_seconds == 95
        assert event.is_trigger is True

    def test_recording_status_requires_ids(self, client, orchestrator):
        response = client.post("/api/twilio/recording-status", data={"RecordingStatus": "completed"})

        assert response.status_code == 422
        orchestrator.schedule.assert_not_called()

    def test_call_status_creates_record(self, client, primary_store):
        response = client.post(
            "/api/twilio/call-status",
            data={
                "CallSid": "CA1",
                "CallStatus": "completed",
                "CallDuration": "120",
                "From": "+13105550142",
                "To": "+18005550100",
                "Direction": "inbound",
            },
        )

        assert response.text == "OK"
        record = primary_store.records["CA1"]
        assert record["call_status"] == "completed"
        assert record["duration"] == 120
        assert record["from_number"] == "+13105550142"
        assert record["direction"] == "inbound"


class TestCalls:
    """Tests for the call record endpoints."""

    def test_list_calls(self, client, primary_store):
        primary_store.upsert("CA1", {"needs_review": True})
        primary_store.upsert("CA2", {"needs_review": False})

        response = client.get("/api/calls", params={"needs_review": "true"})

        assert response.status_code == 200
        assert [record["call_id"] for record in response.json()] == ["CA1"]

    def test_limit_is_bounded(self, client):
        assert client.get("/api/calls", params={"limit": 0}).status_code == 422

    def test_get_call_with_overdue_items(self, client, primary_store):
        extraction = ExtractedRecord(
            fields=LeadFields(),
            confidence_score=10,
            action_items=[
                ActionItem(task="Pull credit", priority="high", due_date=date(2020, 1, 1)),
                ActionItem(task="Later", priority="medium"),
            ],
            sentiment=SentimentAnalysis(),
            extracted_at=datetime(2020, 1, 1, tzinfo=timezone.utc),
        )
        primary_store.upsert("CA1", {"extraction": extraction.model_dump(mode="json")})

        response = client.get("/api/calls/CA1")

        assert response.status_code == 200
        body = response.json()
        assert body["record"]["call_id"] == "CA1"
        assert [item["task"] for item in body["overdue_action_items"]] == ["Pull credit"]

    def test_unknown_call_is_404(self, client):
        assert client.get("/api/calls/CA404").status_code == 404

    def test_storage_outage_is_503(self, client):
        broken = MagicMock()
        broken.get = AsyncMock(side_effect=PersistenceUnavailableError("CA1", "get"))
        app.dependency_overrides[get_persistence_gateway] = lambda: broken

        assert client.get("/api/calls/CA1").status_code == 503


class TestReprocess:
    """Tests for re-running the pipeline on a stored recording."""

    URL = "/api/calls/CA1/recordings/RE1/reprocess"

    @pytest.fixture
    def failed_call(self, primary_store):
        primary_store.upsert(
            "CA1",
            {
                "recording_id": "RE1",
                "recording_url": "https://api.twilio.com/Recordings/RE1",
                "duration": 95,
                "status": "failed",
                "failed_stage": "transcribing",
            },
        )

    def test_failed_recording_is_rescheduled(self, client, orchestrator, failed_call):
        orchestrator.reprocess = AsyncMock(return_value=MagicMock())

        response = client.post(self.URL)

        assert response.status_code == 202
        assert response.json() == {
            "call_id": "CA1",
            "recording_id": "RE1",
            "previous_status": "failed",
            "status": "scheduled",
        }
        event = orchestrator.reprocess.call_args.args[0]
        assert event.recording_url == "https://api.twilio.com/Recordings/RE1"
        assert event.duration_seconds == 95
        assert event.is_trigger is True

    def test_in_flight_recording_is_409(self, client, orchestrator, failed_call):
        orchestrator.reprocess = AsyncMock(return_value=None)

        assert client.post(self.URL).status_code == 409

    def test_unknown_recording_is_404(self, client, orchestrator, failed_call):
        orchestrator.reprocess = AsyncMock()

        response = client.post("/api/calls/CA1/recordings/RE9/reprocess")

        assert response.status_code == 404
        orchestrator.reprocess.assert_not_called()

    def test_unknown_call_is_404(self, client, orchestrator):
        orchestrator.reprocess = AsyncMock()

        assert client.post(self.URL).status_code == 404
        orchestrator.reprocess.assert_not_called()


class TestTraining:
    """Tests for the training endpoints."""

    PAYLOAD = {
        "recordingSid": "RE1",
        "markedFields": {"borrower_name": [{"text": "Dana Whitfield"}]},
        "trainedBy": "sam",
        "trainedAt": "2025-03-03T10:00:00Z",
    }

    def test_save_get_and_delete(self, client):
        saved = client.post("/api/training/save", json=self.PAYLOAD)
        assert saved.json() == {"success": True, "message": "Training data saved successfully"}

        loaded = client.get("/api/training/RE1").json()
        assert loaded["recordingId"] == "RE1"
        assert loaded["markedFields"]["borrower_name"][0]["text"] == "Dana Whitfield"

        assert client.delete("/api/training/RE1").status_code == 200
        assert client.get("/api/training/RE1").status_code == 404

    def test_invalid_recording_id_is_rejected(self, client):
        response = client.post("/api/training/save", json={**self.PAYLOAD, "recordingSid": "a b"})

        assert response.status_code == 422

    def test_delete_unknown_is_404(self, client):
        assert client.delete("/api/training/RE404").status_code == 404

    def test_export_and_stats(self, client):
        client.post("/api/training/save", json=self.PAYLOAD)

        export = client.get("/api/training/export").json()
        stats = client.get("/api/training/stats").json()

        assert export["totalRecordings"] == 1
        assert export["data"][0]["recordingId"] == "RE1"
        assert stats["totalRecordings"] == 1
        assert stats["fieldCounts"] == {"borrower_name": 1}

    def test_update_prompt_applies_enhanced_prompt(self, client, llm, training_repository):
        client.post("/api/training/save", json=self.PAYLOAD)

        response = client.post("/api/training/update-prompt")

        assert response.json()["examplesUsed"] == 1
        assert llm.prompt.startswith("BASE PROMPT")
        assert '- borrower_name: "Dana Whitfield"' in llm.prompt
        assert training_repository.load_prompt() == llm.prompt


class TestWebsockets:
    """Tests for the media stream and live viewer sockets."""

    def test_media_stream_persists_live_transcript(self, client, streaming, primary_store):
        with client.websocket_connect("/media-stream") as websocket:
            websocket.send_text(json.dumps({"event": "connected"}))
            websocket.send_text(json.dumps({"event": "start", "start": {"callSid": "CA1", "streamSid": "MZ1"}}))
            websocket.send_text(json.dumps({"event": "media", "media": {"payload": "AQI="}}))
            websocket.send_text(json.dumps({"event": "stop"}))

        assert streaming.session.frames == [b"\x01\x02"]
        assert streaming.session.finish_calls == 1
        assert primary_store.records["CA1"]["live_transcript_text"] == "0: Thanks for calling."

    def test_disconnect_without_stop_still_finalizes(self, client, streaming, primary_store):
        with client.websocket_connect("/media-stream") as websocket:
            websocket.send_text(json.dumps({"event": "start", "start": {"callSid": "CA2", "streamSid": "MZ2"}}))

        assert streaming.session.finish_calls == 1
        assert "live_transcript" in primary_store.records["CA2"]

    def test_viewer_receives_live_transcript(self, client):
        with client.websocket_connect("/ws/live/CA1") as viewer:
            with client.websocket_connect("/media-stream") as stream:
                stream.send_text(json.dumps({"event": "start", "start": {"callSid": "CA1", "streamSid": "MZ1"}}))

                message = viewer.receive_json()

                assert message["event"] == "live-transcript"
                assert message["data"]["callId"] == "CA1"
                assert message["data"]["text"] == "Thanks for calling."
