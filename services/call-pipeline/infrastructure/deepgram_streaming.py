"""Deepgram live transcription over a websocket."""

import asyncio
import json
from urllib.parse import urlencode

import websockets
from leadcapture_common.logging import setup_logging

from config import DeepgramConfig
from domain.models import Utterance
from exceptions import StreamingSessionError

from .interfaces import FinalResultCallback, StreamingService, StreamingSession

logger = setup_logging()

CLOSE_STREAM_MESSAGE = json.dumps({"type": "CloseStream"})
FINISH_TIMEOUT_SECONDS = 5.0


def parse_final_result(message: str | bytes) -> Utterance | None:
    """
    Converts a Deepgram results message into an utterance.

    Interim results, empty transcripts and non-result messages yield None.
    The speaker is taken from the first word.
    """
    try:
        payload = json.loads(message)
    except (TypeError, ValueError):
        logger.warning("Skipping malformed Deepgram message")
        return None

    if not isinstance(payload, dict):
        logger.warning("Skipping non-object Deepgram message")
        return None

    if payload.get("type") != "Results" or not payload.get("is_final"):
        return None

    alternatives = payload.get("channel", {}).get("alternatives") or [{}]
    text = (alternatives[0].get("transcript") or "").strip()
    if not text:
        return None

    words = alternatives[0].get("words") or []
    speaker = words[0].get("speaker") if words else None
    start = float(payload.get("start", 0.0))
    return Utterance(
        speaker=str(speaker) if speaker is not None else "Unknown",
        text=text,
        start_offset=start,
        end_offset=start + float(payload.get("duration", 0.0)),
    )


class DeepgramSession(StreamingSession):
    """One open Deepgram connection with a bounded outbound frame buffer."""

    def __init__(
        self,
        call_id: str,
        websocket,
        on_final: FinalResultCallback,
        max_pending_frames: int,
    ):
        self._call_id = call_id
        self._websocket = websocket
        self._on_final = on_final
        self._frames: asyncio.Queue[bytes | None] = asyncio.Queue(maxsize=max_pending_frames)
        self._finished = False
        self.dropped_frames = 0
        self._sender = asyncio.create_task(self._send_loop())
        self._receiver = asyncio.create_task(self._receive_loop())

    def send(self, frame: bytes) -> bool:
        if self._finished:
            return False
        try:
            self._frames.put_nowait(frame)
        except asyncio.QueueFull:
            self.dropped_frames += 1
            if self.dropped_frames == 1 or self.dropped_frames % 100 == 0:
                logger.warning(
                    "Deepgram buffer full, dropping audio",
                    extra={"call_id": self._call_id, "dropped_frames": self.dropped_frames},
                )
            return False
        return True

    async def finish(self) -> None:
        if self._finished:
            return
        self._finished = True

        try:
            await asyncio.wait_for(self._frames.put(None), FINISH_TIMEOUT_SECONDS)
            results = await asyncio.wait_for(
                asyncio.gather(self._sender, self._receiver, return_exceptions=True),
                FINISH_TIMEOUT_SECONDS,
            )
            for result in results:
                if isinstance(result, Exception):
                    logger.error(
                        "Deepgram session loop failed",
                        extra={"call_id": self._call_id},
                        exc_info=(type(result), result, result.__traceback__),
                    )
        except asyncio.TimeoutError:
            logger.warning(
                "Deepgram session did not close in time", extra={"call_id": self._call_id}
            )
            self._sender.cancel()
            self._receiver.cancel()
        finally:
            await self._websocket.close()

        logger.info(
            "Deepgram session finished",
            extra={"call_id": self._call_id, "dropped_frames": self.dropped_frames},
        )

    async def _send_loop(self) -> None:
        try:
            while True:
                frame = await self._frames.get()
                if frame is None:
                    break
                await self._websocket.send(frame)
            await self._websocket.send(CLOSE_STREAM_MESSAGE)
        except websockets.ConnectionClosed:
            logger.warning("Deepgram connection closed while sending", extra={"call_id": self._call_id})

    async def _receive_loop(self) -> None:
        try:
            async for message in self._websocket:
                utterance = parse_final_result(message)
                if utterance:
                    await self._on_final(utterance)
        except websockets.ConnectionClosed:
            logger.warning("Deepgram connection closed while receiving", extra={"call_id": self._call_id})


class DeepgramStreamingService(StreamingService):
    """Opens Deepgram live sessions for Twilio mu-law audio."""

    def __init__(self, config: DeepgramConfig, connect=websockets.connect):
        self._config = config
        self._connect = connect

    def listen_url(self) -> str:
        params = {
            "model": self._config.model,
            "language": self._config.language,
            "encoding": self._config.encoding,
            "sample_rate": self._config.sample_rate,
            "channels": 1,
            "punctuate": "true",
            "smart_format": "true",
            "diarize": "true",
            "interim_results": "true",
            "utterance_end_ms": self._config.utterance_end_ms,
        }
        return f"{self._config.url}?{urlencode(params)}"

    async def open(self, call_id: str, on_final: FinalResultCallback) -> StreamingSession:
        try:
            websocket = await self._connect(
                self.listen_url(),
                additional_headers={"Authorization": f"Token {self._config.api_key}"},
                ping_interval=20,
                ping_timeout=10,
                close_timeout=10,
            )
        except Exception as e:
            logger.exception("Failed to connect to Deepgram", extra={"call_id": call_id})
            raise StreamingSessionError(call_id, cause=e) from e

        logger.info("Deepgram session opened", extra={"call_id": call_id})
        return DeepgramSession(call_id, websocket, on_final, self._config.max_pending_frames)
