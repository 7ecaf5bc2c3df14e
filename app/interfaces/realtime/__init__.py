"""
FastAPI router for real-time market data streaming.

Provides:
- WebSocket endpoint for live rate updates and on-demand requests
- SSE (Server-Sent Events) endpoint for HTTP-only clients
- Stream status endpoint (subscribers, poller, scheduler)
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse

from app.application.market.broadcaster import Subscription
from app.application.market.client_commands import ClientCommandHandler
from app.core.container import Container
from app.interfaces.trading.dependencies import get_container

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["realtime"])


# ------------------------------------------------------------------
# WebSocket endpoint
# ------------------------------------------------------------------


async def _pump(websocket: WebSocket, subscription: Subscription) -> None:
    """Forward the subscription's events to the socket at the client's pace."""
    while True:
        event = await subscription.next()
        await websocket.send_text(event.to_json())


@router.websocket("/ws/rates")
async def ws_rates(websocket: WebSocket) -> None:
    """WebSocket endpoint for live exchange-rate streaming.

    Protocol (JSON):
        → {"action": "request_latest_rates", "base_currency": "USD"}
        ← {"event": "latest_rates_update", "data": {...}, "timestamp": "..."}

        → {"action": "request_historical_data", "base_currency": "USD",
           "quote_currency": "EUR", "start_date": "...", "end_date": "..."}
        ← {"event": "historical_data_update", "data": {...}, "timestamp": "..."}

        → {"action": "ping"}
        ← {"event": "pong", "data": {}, "timestamp": "..."}
    """
    container: Container = websocket.app.state.container
    handler = ClientCommandHandler(container.poller, container.get_historical_rates)

    await websocket.accept()
    subscription = container.broadcaster.subscribe()
    sender = asyncio.create_task(_pump(websocket, subscription))
    requests: set[asyncio.Task] = set()

    try:
        while True:
            raw = await websocket.receive_text()
            task = asyncio.create_task(handler.handle(raw, subscription))
            requests.add(task)
            task.add_done_callback(requests.discard)
    except WebSocketDisconnect:
        logger.debug("Subscriber %d closed the socket", subscription.id)
    finally:
        container.broadcaster.unsubscribe(subscription)
        sender.cancel()
        for task in list(requests):
            task.cancel()
        await asyncio.gather(sender, *requests, return_exceptions=True)


# ------------------------------------------------------------------
# SSE endpoint
# ------------------------------------------------------------------


@router.get(
    "/stream/rates",
    summary="Server-Sent Events rate stream",
    description="HTTP streaming endpoint for clients that can't use WebSocket.",
)
async def sse_rates(request: Request) -> StreamingResponse:
    """SSE endpoint: streams market updates as text/event-stream."""
    container: Container = request.app.state.container
    return StreamingResponse(
        container.broadcaster.sse_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


# ------------------------------------------------------------------
# Stream status
# ------------------------------------------------------------------


@router.get(
    "/stream/status",
    summary="Get stream status",
    description="Return subscriber stats, poller state and scheduler status.",
)
def stream_status(container: Container = Depends(get_container)) -> dict:
    """Return streaming stats."""
    return {
        **container.broadcaster.stats,
        "poller": container.poller.get_status(),
        "scheduler": container.scheduler.get_status(),
    }
