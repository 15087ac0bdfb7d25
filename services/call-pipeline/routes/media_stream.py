"""Twilio Media Streams websocket endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from leadcapture_common.logging import setup_logging

from dependencies import get_broadcast_channel, get_persistence_gateway, get_streaming_service
from handlers.live_stream_transcriber import LiveStreamTranscriber
from infrastructure import BroadcastChannel
from infrastructure.interfaces import StreamingService
from repositories.persistence_gateway import PersistenceGateway

logger = setup_logging()

router = APIRouter(tags=["streaming"])

StreamingDep = Annotated[StreamingService, Depends(get_streaming_service)]
BroadcastDep = Annotated[BroadcastChannel, Depends(get_broadcast_channel)]
GatewayDep = Annotated[PersistenceGateway, Depends(get_persistence_gateway)]


@router.websocket("/media-stream")
async def media_stream(
    websocket: WebSocket,
    streaming: StreamingDep,
    broadcast: BroadcastDep,
    gateway: GatewayDep,
):
    """Transcribes one call's audio while it is in progress."""
    await websocket.accept()
    transcriber = LiveStreamTranscriber(streaming, broadcast, gateway)
    try:
        while True:
            await transcriber.handle_message(await websocket.receive_text())
    except WebSocketDisconnect:
        logger.info("Media stream disconnected", extra={"call_id": transcriber.call_id})
    finally:
        await transcriber.finalize()
