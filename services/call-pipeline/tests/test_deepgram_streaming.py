"""Tests for the Deepgram live transcription adapter."""

import asyncio
import json
from urllib.parse import parse_qs, urlparse

import pytest

from config import DeepgramConfig
from exceptions import StreamingSessionError
from infrastructure.deepgram_streaming import (
    CLOSE_STREAM_MESSAGE,
    DeepgramSession,
    DeepgramStreamingService,
    parse_final_result,
)


def results_message(transcript: str, is_final: bool = True, speaker=1) -> str:
    words = [{"word": "hello", "speaker": speaker}] if speaker is not None else []
    return json.dumps(
        {
            "type": "Results",
            "is_final": is_final,
            "start": 2.5,
            "duration": 1.25,
            "channel": {"alternatives": [{"transcript": transcript, "words": words}]},
        }
    )


class FakeWebSocket:
    """Echoes scripted messages until it receives CloseStream."""

    def __init__(self, messages=()):
        self.sent: list = []
        self.closed = False
        self._incoming: asyncio.Queue = asyncio.Queue()
        for message in messages:
            self._incoming.put_nowait(message)

    async def send(self, data):
        self.sent.append(data)
        if data == CLOSE_STREAM_MESSAGE:
            self._incoming.put_nowait(None)

    def __aiter__(self):
        return self

    async def __anext__(self):
        message = await self._incoming.get()
        if message is None:
            raise StopAsyncIteration
        return message

    async def close(self):
        self.closed = True


class TestParseFinalResult:
    """Tests for parse_final_result."""

    def test_final_result_becomes_utterance(self):
        utterance = parse_final_result(results_message("Hello there."))

        assert utterance.speaker == "1"
        assert utterance.text == "Hello there."
        assert utterance.start_offset == 2.5
        assert utterance.end_offset == 3.75

    def test_missing_speaker_is_unknown(self):
        assert parse_final_result(results_message("Hi", speaker=None)).speaker == "Unknown"

    @pytest.mark.parametrize(
        "message",
        [
            results_message("interim", is_final=False),
            results_message("   "),
            json.dumps({"type": "UtteranceEnd"}),
            "not json",
            "null",
            "[1, 2]",
        ],
    )
    def test_ignored_messages(self, message):
        assert parse_final_result(message) is None


class TestDeepgramSession:
    """Tests for DeepgramSession."""

    @pytest.mark.asyncio
    async def test_full_buffer_drops_frames(self):
        websocket = FakeWebSocket()
        received = []

        async def on_final(utterance):
            received.append(utterance)

        session = DeepgramSession("CA1", websocket, on_final, max_pending_frames=2)

        accepted = [session.send(b"1"), session.send(b"2"), session.send(b"3")]
        await session.finish()

        assert accepted == [True, True, False]
        assert session.dropped_frames == 1
        assert websocket.sent == [b"1", b"2", CLOSE_STREAM_MESSAGE]
        assert websocket.closed is True

    @pytest.mark.asyncio
    async def test_final_results_reach_callback_in_order(self):
        websocket = FakeWebSocket([results_message("First."), results_message("Second.")])
        received = []

        async def on_final(utterance):
            received.append(utterance.text)

        session = DeepgramSession("CA1", websocket, on_final, max_pending_frames=10)
        await session.finish()

        assert received == ["First.", "Second."]

    @pytest.mark.asyncio
    async def test_non_object_message_does_not_stop_receiving(self):
        websocket = FakeWebSocket([results_message("First."), "null", results_message("Second.")])
        received = []

        async def on_final(utterance):
            received.append(utterance.text)

        session = DeepgramSession("CA1", websocket, on_final, max_pending_frames=10)
        await session.finish()

        assert received == ["First.", "Second."]

    @pytest.mark.asyncio
    async def test_failed_receive_loop_still_closes(self):
        websocket = FakeWebSocket([results_message("First.")])

        async def on_final(utterance):
            raise RuntimeError("callback failed")

        session = DeepgramSession("CA1", websocket, on_final, max_pending_frames=10)
        await session.finish()

        assert websocket.closed is True
        assert websocket.sent == [CLOSE_STREAM_MESSAGE]

    @pytest.mark.asyncio
    async def test_finish_is_idempotent_and_rejects_frames(self):
        websocket = FakeWebSocket()

        async def on_final(utterance):
            pass

        session = DeepgramSession("CA1", websocket, on_final, max_pending_frames=10)
        await session.finish()
        await session.finish()

        assert session.send(b"late") is False
        assert websocket.sent.count(CLOSE_STREAM_MESSAGE) == 1


class TestDeepgramStreamingService:
    """Tests for DeepgramStreamingService."""

    def test_listen_url(self):
        service = DeepgramStreamingService(DeepgramConfig(api_key="dg"))

        query = parse_qs(urlparse(service.listen_url()).query)

        assert query["encoding"] == ["mulaw"]
        assert query["sample_rate"] == ["8000"]
        assert query["diarize"] == ["true"]
        assert query["interim_results"] == ["true"]

    @pytest.mark.asyncio
    async def test_open_sends_token_header(self):
        websocket = FakeWebSocket()
        calls = []

        async def connect(url, **kwargs):
            calls.append((url, kwargs))
            return websocket

        service = DeepgramStreamingService(DeepgramConfig(api_key="dg-key"), connect=connect)

        async def on_final(utterance):
            pass

        session = await service.open("CA1", on_final)
        await session.finish()

        assert calls[0][1]["additional_headers"] == {"Authorization": "Token dg-key"}

    @pytest.mark.asyncio
    async def test_connection_failure_raises(self):
        async def connect(url, **kwargs):
            raise OSError("unreachable")

        service = DeepgramStreamingService(DeepgramConfig(api_key="dg"), connect=connect)

        async def on_final(utterance):
            pass

        with pytest.raises(StreamingSessionError):
            await service.open("CA1", on_final)
