"""Per-socket live transcription of a Twilio media stream."""

import base64
import binascii
import json
from enum import Enum

from leadcapture_common.logging import setup_logging

from domain.events import live_transcript
from domain.models import Utterance
from exceptions import InvalidStreamTransitionError, StreamingSessionError
from infrastructure.broadcast_channel import BroadcastChannel
from infrastructure.interfaces import StreamingService, StreamingSession
from repositories.persistence_gateway import PersistenceGateway

logger = setup_logging()


class StreamState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    CLOSED = "closed"


class LiveStreamTranscriber:
    """
    Forwards audio frames to a streaming provider and collects final utterances.

    Idle -> Streaming -> Closed, with no way out of Closed. Media frames
    are only forwarded while Streaming. Finalisation runs once, on stop
    or on socket closure, whichever comes first.
    """

    def __init__(
        self,
        streaming_service: StreamingService,
        broadcast: BroadcastChannel,
        gateway: PersistenceGateway,
    ):
        self._streaming = streaming_service
        self._broadcast = broadcast
        self._gateway = gateway
        self._session: StreamingSession | None = None
        self._utterances: list[Utterance] = []
        self.state = StreamState.IDLE
        self.call_id: str | None = None
        self.stream_id: str | None = None
        self.dropped_frames = 0

    @property
    def utterances(self) -> list[Utterance]:
        return list(self._utterances)

    async def handle_message(self, raw: str) -> None:
        """Dispatches one media stream message. Malformed messages are skipped."""
        try:
            message = json.loads(raw)
        except ValueError:
            logger.warning("Skipping malformed media stream message")
            return
        if not isinstance(message, dict):
            logger.warning("Skipping malformed media stream message")
            return

        event = message.get("event")
        if event == "start":
            start = message.get("start") or {}
            try:
                await self.start(start.get("callSid"), start.get("streamSid"))
            except InvalidStreamTransitionError as e:
                logger.warning(str(e), extra={"call_id": self.call_id})
            except StreamingSessionError:
                logger.error(
                    "Live transcription unavailable for call",
                    extra={"call_id": self.call_id},
                )
                self.state = StreamState.CLOSED
        elif event == "media":
            self.on_media((message.get("media") or {}).get("payload"))
        elif event == "stop":
            await self.finalize()
        elif event == "connected":
            logger.debug("Media stream connected")

    async def start(self, call_id: str | None, stream_id: str | None) -> None:
        """
        Opens the provider session for a call.

        Raises:
            InvalidStreamTransitionError: If the stream is not Idle.
            StreamingSessionError: If the provider session cannot be opened.
        """
        if self.state != StreamState.IDLE:
            raise InvalidStreamTransitionError(self.state.value, "start")
        if not call_id:
            logger.warning("Start message without call id ignored")
            return

        self.call_id = call_id
        self.stream_id = stream_id
        self._session = await self._streaming.open(call_id, self._on_final)
        self.state = StreamState.STREAMING
        logger.info("Live stream started", extra={"call_id": call_id, "stream_id": stream_id})

    def on_media(self, payload: str | None) -> None:
        if self.state != StreamState.STREAMING or self._session is None:
            self.dropped_frames += 1
            return
        try:
            frame = base64.b64decode(payload or "", validate=True)
        except (binascii.Error, ValueError):
            logger.warning("Skipping undecodable audio frame", extra={"call_id": self.call_id})
            return
        if frame and not self._session.send(frame):
            self.dropped_frames += 1

    async def finalize(self) -> None:
        """Closes the provider session once and persists the collected transcript."""
        if self.state == StreamState.CLOSED:
            return
        was_streaming = self.state == StreamState.STREAMING
        self.state = StreamState.CLOSED
        if not was_streaming or self._session is None:
            return

        try:
            await self._session.finish()
        finally:
            utterances = self.utterances
            await self._gateway.upsert(
                self.call_id,
                {
                    "live_transcript": utterances,
                    "live_transcript_text": "\n".join(f"{u.speaker}: {u.text}" for u in utterances),
                },
            )
        logger.info(
            "Live stream finalized",
            extra={
                "call_id": self.call_id,
                "utterance_count": len(utterances),
                "dropped_frames": self.dropped_frames,
            },
        )

    async def _on_final(self, utterance: Utterance) -> None:
        self._utterances.append(utterance)
        self._broadcast.publish(live_transcript(self.call_id, utterance))
