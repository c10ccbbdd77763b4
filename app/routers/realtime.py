"""
Live change feed

Websocket clients (judge screens, results board) receive every change to
their competition's scores, entries, admin filters and medal awards.
"""
import asyncio
from typing import List, Dict, Any, Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from loguru import logger

from change_feed.events import EventPublisher
from app.dependencies import get_event_publisher

router = APIRouter(tags=["Realtime"])


def _parse_tables(tables: Optional[str]) -> Optional[List[str]]:
    if not tables:
        return None
    parsed = [t.strip() for t in tables.split(",") if t.strip()]
    return parsed or None


@router.websocket("/ws/competitions/{competition_id}")
async def competition_feed(
    websocket: WebSocket,
    competition_id: str,
    tables: Optional[str] = Query(None, description="Comma separated table names"),
    publisher: EventPublisher = Depends(get_event_publisher)
):
    await websocket.accept()
    subscription = publisher.open_subscription(competition_id, _parse_tables(tables))

    async def forward():
        while True:
            event = await subscription.get()
            await websocket.send_json({"type": "change", **event.to_dict()})

    forward_task = None
    try:
        await websocket.send_json({
            "type": "subscribed",
            "competition_id": competition_id,
            "tables": sorted(subscription.tables) if subscription.tables else "all",
        })
        forward_task = asyncio.create_task(forward())
        while True:
            # Client messages are ignored; receiving detects the disconnect
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug(f"Websocket closed for competition {competition_id}")
    finally:
        if forward_task:
            forward_task.cancel()
        publisher.close_subscription(subscription)


@router.get("/api/competitions/{competition_id}/events")
async def recent_events(
    competition_id: str,
    limit: int = Query(50, ge=1, le=1000),
    publisher: EventPublisher = Depends(get_event_publisher)
) -> List[Dict[str, Any]]:
    """Recent changes (oldest first) for clients catching up after a reconnect"""
    return [e.to_dict() for e in publisher.get_recent_events(limit, competition_id=competition_id)]
