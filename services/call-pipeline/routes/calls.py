"""Call record endpoints."""

from datetime import date
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Query
from leadcapture_common.logging import setup_logging

from dependencies import get_orchestrator, get_persistence_gateway
from domain.models import CallRecord, RecordingEvent
from exceptions import PersistenceUnavailableError
from handlers.pipeline_orchestrator import PipelineOrchestrator
from repositories.persistence_gateway import PersistenceGateway
from response_models import CallDetailResponse, ReprocessResponse

logger = setup_logging()

router = APIRouter(prefix="/api/calls", tags=["calls"])

GatewayDep = Annotated[PersistenceGateway, Depends(get_persistence_gateway)]
OrchestratorDep = Annotated[PipelineOrchestrator, Depends(get_orchestrator)]


async def _get_record(gateway: PersistenceGateway, call_id: str) -> CallRecord:
    try:
        record = await gateway.get(call_id)
    except PersistenceUnavailableError:
        raise HTTPException(status_code=503, detail="Call records unavailable")
    if record is None:
        raise HTTPException(status_code=404, detail="Call not found")
    return record


@router.get("", response_model=List[CallRecord])
async def list_calls(
    gateway: GatewayDep,
    needs_review: bool | None = None,
    limit: int = Query(50, ge=1, le=500),
):
    """Returns call records newest first."""
    try:
        return await gateway.list_records(needs_review=needs_review, limit=limit)
    except PersistenceUnavailableError:
        raise HTTPException(status_code=503, detail="Call records unavailable")


@router.get("/{call_id}", response_model=CallDetailResponse)
async def get_call(call_id: str, gateway: GatewayDep):
    """Returns one call record with its overdue action items."""
    record = await _get_record(gateway, call_id)
    return CallDetailResponse(
        record=record, overdue_action_items=record.overdue_action_items(date.today())
    )


@router.post(
    "/{call_id}/recordings/{recording_id}/reprocess",
    response_model=ReprocessResponse,
    status_code=202,
)
async def reprocess_recording(
    call_id: str,
    recording_id: str,
    gateway: GatewayDep,
    orchestrator: OrchestratorDep,
):
    """
    Runs the batch pipeline again for a call's recording.

    Used by operators after a failed run; the previous job claim is released
    and the record is overwritten as the new run progresses.
    """
    record = await _get_record(gateway, call_id)
    if record.recording_id != recording_id or not record.recording_url:
        raise HTTPException(status_code=404, detail="Recording not found for call")

    event = RecordingEvent(
        recording_id=recording_id,
        recording_status="completed",
        recording_url=record.recording_url,
        call_id=call_id,
        duration_seconds=record.duration,
    )
    task = await orchestrator.reprocess(event)
    if task is None:
        raise HTTPException(status_code=409, detail="Recording is already being processed")

    logger.info(
        "Reprocessing requested",
        extra={"call_id": call_id, "recording_id": recording_id, "previous_status": record.status},
    )
    return ReprocessResponse(call_id=call_id, recording_id=recording_id, previous_status=record.status)
