"""Events published to live viewers."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from domain.models import PipelineStage, Utterance


class BroadcastEvent(BaseModel, frozen=True):
    """A named event with a JSON payload, scoped to a call when call_id is set."""

    event: str
    call_id: str | None = None
    data: dict[str, Any]

    def to_message(self) -> dict[str, Any]:
        return {"event": self.event, "data": self.data}


def transcription_ready(call_id: str, recording_id: str, transcription: str) -> BroadcastEvent:
    return BroadcastEvent(
        event="transcription-ready",
        call_id=call_id,
        data={"recordingId": recording_id, "callId": call_id, "transcription": transcription},
    )


def live_transcript(call_id: str, utterance: Utterance) -> BroadcastEvent:
    return BroadcastEvent(
        event="live-transcript",
        call_id=call_id,
        data={
            "callId": call_id,
            "speaker": utterance.speaker,
            "text": utterance.text,
            "startOffset": utterance.start_offset,
            "endOffset": utterance.end_offset,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def pipeline_status(
    call_id: str, recording_id: str, stage: PipelineStage, detail: str | None = None
) -> BroadcastEvent:
    return BroadcastEvent(
        event="pipeline-status",
        call_id=call_id,
        data={
            "callId": call_id,
            "recordingId": recording_id,
            "stage": stage.value,
            "detail": detail,
        },
    )
