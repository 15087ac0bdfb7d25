"""Tests for the adapters around third-party APIs, with their clients mocked."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import assemblyai as aai
import httpx
import pytest
import redis
import resend
from assemblyai import api as assemblyai_api

from domain.models import (
    EmailAttachment,
    EmailMessage,
    JobState,
    LeadFields,
    RecordingLocator,
    SentimentAnalysis,
    TranscriptionJob,
)
from exceptions import (
    JobRegistryError,
    LLMServiceError,
    NotificationFailedError,
    TranscriptionFailedError,
    TranscriptionStatusError,
    UploadFailedError,
)
from infrastructure.assemblyai_transcriber import AssemblyAITranscriber, build_transcription_config
from infrastructure.gemini_llm import GeminiLLMService
from infrastructure.redis_job_registry import KEY_PREFIX, RedisJobRegistry
from infrastructure.resend_email import ResendEmailService
from infrastructure.twilio_recordings import TwilioRecordingSource


class TestGeminiLLMService:
    """Tests for GeminiLLMService."""

    @staticmethod
    def make_service(response_text):
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(
            return_value=SimpleNamespace(text=response_text)
        )
        service = GeminiLLMService(
            client,
            "gemini-test",
            extraction_prompt="EXTRACT",
            sentiment_prompt="SENTIMENT",
        )
        return service, client.aio.models.generate_content

    @pytest.mark.asyncio
    async def test_extract_fields_parses_schema(self):
        payload = {"borrower_information": {"full_name": "Dana"}, "summary": "Buyer"}
        service, generate = self.make_service(json.dumps(payload))

        fields = await service.extract_fields("A: hi")

        assert isinstance(fields, LeadFields)
        assert fields.borrower_information.full_name == "Dana"
        kwargs = generate.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert kwargs["contents"].endswith("\n\nA: hi")
        assert kwargs["config"]["system_instruction"] == "EXTRACT"
        assert kwargs["config"]["response_schema"] is LeadFields
        assert kwargs["config"]["max_output_tokens"] == 2000

    @pytest.mark.asyncio
    async def test_analyze_sentiment(self):
        service, generate = self.make_service(
            json.dumps({"overall": "negative", "urgency": "high", "concerns": ["rates"]})
        )

        sentiment = await service.analyze_sentiment("A: hi")

        assert sentiment == SentimentAnalysis(overall="negative", urgency="high", concerns=["rates"])
        assert generate.call_args.kwargs["config"]["system_instruction"] == "SENTIMENT"

    @pytest.mark.asyncio
    async def test_replaced_prompt_is_used(self):
        service, generate = self.make_service("{}")

        service.use_extraction_prompt("ENHANCED")
        await service.extract_fields("A: hi")

        assert generate.call_args.kwargs["config"]["system_instruction"] == "ENHANCED"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response_text", ["", "not json", '{"overall": "ecstatic"}'])
    async def test_bad_responses_raise(self, response_text):
        service, _ = self.make_service(response_text)

        with pytest.raises(LLMServiceError):
            await service.analyze_sentiment("A: hi")

    @pytest.mark.asyncio
    async def test_api_error_raises(self):
        service, generate = self.make_service("{}")
        generate.side_effect = RuntimeError("quota exceeded")

        with pytest.raises(LLMServiceError, match="quota exceeded"):
            await service.extract_fields("A: hi")


class TestRedisJobRegistry:
    """Tests for RedisJobRegistry."""

    JOB = TranscriptionJob(recording_id="RE1", call_id="CA1")

    @pytest.mark.asyncio
    async def test_claim_uses_set_nx_with_ttl(self):
        client = AsyncMock()
        client.set.return_value = True
        registry = RedisJobRegistry(client, ttl_seconds=600)

        assert await registry.claim(self.JOB) is True
        args, kwargs = client.set.call_args
        assert args[0] == KEY_PREFIX + "RE1"
        assert kwargs == {"nx": True, "ex": 600}

    @pytest.mark.asyncio
    async def test_claim_of_existing_key_returns_false(self):
        client = AsyncMock()
        client.set.return_value = None

        assert await RedisJobRegistry(client, 600).claim(self.JOB) is False

    @pytest.mark.asyncio
    async def test_get_parses_stored_job(self):
        stored = self.JOB.model_copy(update={"state": JobState.POLLING, "provider_job_id": "job-1"})
        client = AsyncMock()
        client.get.return_value = stored.model_dump_json()

        job = await RedisJobRegistry(client, 600).get("RE1")

        assert job == stored

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self):
        client = AsyncMock()
        client.get.return_value = None

        assert await RedisJobRegistry(client, 600).get("RE1") is None

    @pytest.mark.asyncio
    async def test_redis_errors_raise_registry_error(self):
        client = AsyncMock()
        client.set.side_effect = redis.ConnectionError("refused")
        registry = RedisJobRegistry(client, 600)

        with pytest.raises(JobRegistryError):
            await registry.claim(self.JOB)
        with pytest.raises(JobRegistryError):
            await registry.update(self.JOB)

    @pytest.mark.asyncio
    async def test_release_deletes_key(self):
        client = AsyncMock()

        await RedisJobRegistry(client, 600).release("RE1")

        client.delete.assert_awaited_once_with(KEY_PREFIX + "RE1")

    @pytest.mark.asyncio
    async def test_release_error_raises_registry_error(self):
        client = AsyncMock()
        client.delete.side_effect = redis.ConnectionError("refused")

        with pytest.raises(JobRegistryError):
            await RedisJobRegistry(client, 600).release("RE1")


class TestResendEmailService:
    """Tests for ResendEmailService."""

    MESSAGE = EmailMessage(
        to="officer@example.com",
        subject="New Lead",
        html="<p>hi</p>",
        text="hi",
        attachments=[EmailAttachment(filename="t.txt", content="ab")],
    )

    @pytest.mark.asyncio
    async def test_builds_resend_params(self, monkeypatch):
        sent = []

        def fake_send(params):
            sent.append(params)
            return {"id": "email-123"}

        monkeypatch.setattr(resend.Emails, "send", fake_send)
        service = ResendEmailService("re_key", "leads@example.com", "Lead Desk")

        message_id = await service.send(self.MESSAGE)

        assert message_id == "email-123"
        params = sent[0]
        assert params["from"] == "Lead Desk <leads@example.com>"
        assert params["to"] == ["officer@example.com"]
        assert params["text"] == "hi"
        assert params["attachments"] == [{"filename": "t.txt", "content": [97, 98]}]

    @pytest.mark.asyncio
    async def test_sender_name_override(self, monkeypatch):
        sent = []
        monkeypatch.setattr(resend.Emails, "send", lambda params: sent.append(params) or {"id": "1"})
        service = ResendEmailService("re_key", "leads@example.com", "Lead Desk")

        await service.send(self.MESSAGE.model_copy(update={"sender_name": "Sam - Harbor"}))

        assert sent[0]["from"] == "Sam - Harbor <leads@example.com>"

    @pytest.mark.asyncio
    async def test_api_error_raises(self, monkeypatch):
        def fake_send(params):
            raise ConnectionError("resend unreachable")

        monkeypatch.setattr(resend.Emails, "send", fake_send)
        service = ResendEmailService("re_key", "leads@example.com", "Lead Desk")

        with pytest.raises(NotificationFailedError):
            await service.send(self.MESSAGE)


class TestAssemblyAITranscriber:
    """Tests for AssemblyAITranscriber."""

    @staticmethod
    def make_transcriber(sdk=None):
        return AssemblyAITranscriber(sdk or MagicMock(), MagicMock(), build_transcription_config())

    def test_config_enables_diarization_entities_and_sentiment(self):
        config = build_transcription_config()

        assert config.speaker_labels is True
        assert config.entity_detection is True
        assert config.sentiment_analysis is True

    @pytest.mark.asyncio
    async def test_upload_returns_provider_url(self):
        sdk = MagicMock()
        sdk.upload_file.return_value = "https://cdn.assemblyai.com/upload/abc"

        url = await self.make_transcriber(sdk).upload("RE1", b"audio")

        assert url == "https://cdn.assemblyai.com/upload/abc"
        assert sdk.upload_file.call_args.args[0].read() == b"audio"

    @pytest.mark.asyncio
    async def test_upload_failure_raises(self):
        sdk = MagicMock()
        sdk.upload_file.side_effect = ConnectionError("upload rejected")

        with pytest.raises(UploadFailedError):
            await self.make_transcriber(sdk).upload("RE1", b"audio")

    @pytest.mark.asyncio
    async def test_create_job_returns_id(self):
        sdk = MagicMock()
        sdk.submit.return_value = SimpleNamespace(id="job-1", status=aai.TranscriptStatus.queued, error=None)

        assert await self.make_transcriber(sdk).create_job("RE1", "https://cdn") == "job-1"

    @pytest.mark.asyncio
    async def test_rejected_job_raises(self):
        sdk = MagicMock()
        sdk.submit.return_value = SimpleNamespace(
            id=None, status=aai.TranscriptStatus.error, error="invalid audio"
        )

        with pytest.raises(TranscriptionFailedError, match="invalid audio"):
            await self.make_transcriber(sdk).create_job("RE1", "https://cdn")

    @pytest.mark.asyncio
    async def test_get_status_maps_response(self, monkeypatch):
        response = SimpleNamespace(
            status=aai.TranscriptStatus.completed,
            text="Hello",
            utterances=[SimpleNamespace(speaker="A", text="Hello", start=0, end=800)],
            audio_duration=12,
            error=None,
        )
        monkeypatch.setattr(assemblyai_api, "get_transcript", lambda client, job_id: response)

        status = await self.make_transcriber().get_status("job-1")

        assert status.status == "completed"
        assert status.utterances[0].speaker == "A"
        assert status.audio_duration == 12

    @pytest.mark.asyncio
    async def test_get_status_network_error_raises_status_error(self, monkeypatch):
        def fail(client, job_id):
            raise httpx.ConnectError("reset")

        monkeypatch.setattr(assemblyai_api, "get_transcript", fail)

        with pytest.raises(TranscriptionStatusError):
            await self.make_transcriber().get_status("job-1")


class TestTwilioRecordingSource:
    """Tests for TwilioRecordingSource."""

    LOCATOR = RecordingLocator(
        recording_id="RE1", call_id="CA1", url="https://api.twilio.com/Recordings/RE1"
    )

    @pytest.mark.asyncio
    async def test_downloads_with_basic_auth(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"RIFFaudio")

        source = TwilioRecordingSource("AC1", "secret", transport=httpx.MockTransport(handler))

        audio = await source.fetch(self.LOCATOR)

        assert audio == b"RIFFaudio"
        assert seen[0].headers["authorization"].startswith("Basic ")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,content", [(404, b"missing"), (200, b"")])
    async def test_failed_or_empty_download_raises(self, status, content):
        transport = httpx.MockTransport(lambda request: httpx.Response(status, content=content))
        source = TwilioRecordingSource("AC1", "secret", transport=transport)

        with pytest.raises(UploadFailedError):
            await source.fetch(self.LOCATOR)
