"""Twilio webhook endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Form
from fastapi.responses import PlainTextResponse
from leadcapture_common.logging import setup_logging

from dependencies import get_orchestrator, get_persistence_gateway
from domain.models import CallStatusEvent, RecordingEvent
from handlers.pipeline_orchestrator import PipelineOrchestrator
from repositories.persistence_gateway import PersistenceGateway

logger = setup_logging()

router = APIRouter(prefix="/api/twilio", tags=["twilio"])

OrchestratorDep = Annotated[PipelineOrchestrator, Depends(get_orchestrator)]
GatewayDep = Annotated[PersistenceGateway, Depends(get_persistence_gateway)]


def _to_int(value: str | None) -> int | None:
    return int(value) if value and value.isdigit() else None


@router.post("/recording-status", response_class=PlainTextResponse)
async def recording_status(
    orchestrator: OrchestratorDep,
    recording_sid: str = Form(..., alias="RecordingSid"),
    recording_status: str = Form(..., alias="RecordingStatus"),
    call_sid: str = Form(..., alias="CallSid"),
    recording_url: str | None = Form(None, alias="RecordingUrl"),
    recording_duration: str | None = Form(None, alias="RecordingDuration"),
) -> str:
    """
    Receives recording lifecycle callbacks.

    Responds immediately; a completed recording starts the pipeline in the
    background.
    """
    event = RecordingEvent(
        recording_id=recording_sid,
        recording_status=recording_status,
        recording_url=recording_url,
        call_id=call_sid,
        duration_seconds=_to_int(recording_duration),
    )
    logger.info(
        "Recording status received",
        extra={"recording_id": recording_sid, "call_id": call_sid, "status": recording_status},
    )
    orchestrator.schedule(event)
    return "OK"


@router.post("/call-status", response_class=PlainTextResponse)
async def call_status(
    gateway: GatewayDep,
    call_sid: str = Form(..., alias="CallSid"),
    status: str = Form(..., alias="CallStatus"),
    call_duration: str | None = Form(None, alias="CallDuration"),
    from_number: str | None = Form(None, alias="From"),
    to_number: str | None = Form(None, alias="To"),
    direction: str | None = Form(None, alias="Direction"),
) -> str:
    """Records call lifecycle updates, creating the call record on first reference."""
    event = CallStatusEvent(
        call_id=call_sid,
        call_status=status,
        duration_seconds=_to_int(call_duration),
        from_number=from_number,
        to_number=to_number,
        direction=direction,
    )
    fields = {"call_status": event.call_status}
    if event.duration_seconds is not None:
        fields["duration"] = event.duration_seconds
    for name in ("from_number", "to_number", "direction"):
        value = getattr(event, name)
        if value:
            fields[name] = value

    await gateway.upsert(event.call_id, fields)
    logger.info("Call status recorded", extra={"call_id": call_sid, "status": status})
    return "OK"
