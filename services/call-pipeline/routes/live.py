"""Websocket feeds for live viewers."""

import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from leadcapture_common.logging import setup_logging

from dependencies import get_broadcast_channel
from infrastructure import BroadcastChannel

logger = setup_logging()

router = APIRouter(prefix="/ws/live", tags=["live"])

BroadcastDep = Annotated[BroadcastChannel, Depends(get_broadcast_channel)]


async def _send_events(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        event = await queue.get()
        await websocket.send_json(event.to_message())


async def _forward_events(
    websocket: WebSocket, broadcast: BroadcastChannel, call_id: str | None
) -> None:
    """Pushes subscribed events until the viewer disconnects."""
    # subscribed before the handshake completes
    queue = broadcast.subscribe(call_id)
    sender: asyncio.Task | None = None
    try:
        await websocket.accept()
        sender = asyncio.create_task(_send_events(websocket, queue))
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Viewer disconnected", extra={"call_id": call_id})
    finally:
        broadcast.unsubscribe(queue, call_id)
        if sender is not None:
            sender.cancel()
            (result,) = await asyncio.gather(sender, return_exceptions=True)
            if isinstance(result, Exception):
                logger.warning(
                    "Viewer feed stopped with error",
                    extra={"call_id": call_id, "error": str(result)},
                )


@router.websocket("")
async def all_calls(websocket: WebSocket, broadcast: BroadcastDep):
    """Streams events for every call."""
    await _forward_events(websocket, broadcast, None)


@router.websocket("/{call_id}")
async def one_call(websocket: WebSocket, call_id: str, broadcast: BroadcastDep):
    """Streams events for a single call."""
    await _forward_events(websocket, broadcast, call_id)
