"""Realtime decision feed over WebSocket.

A client receives one ``snapshot`` message with the recent decision log on
connect (empty if the log cannot be read), then a ``decision`` message for
every insert. Sending the text ``ping`` gets a ``pong`` back; any other
client text is ignored.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from eva.exceptions import EvaError
from eva.signals.models import Decision

log = structlog.get_logger(__name__)

router = APIRouter()


class DecisionHub:
    """Fan-out of decision inserts to every open socket."""

    def __init__(self) -> None:
        self.connections: list[WebSocket] = []

    async def connect(self, ws: WebSocket, recent: list[Decision]) -> None:
        await ws.accept()
        await ws.send_json({"type": "snapshot", "data": [d.to_dict() for d in recent]})
        self.connections.append(ws)
        log.info("decision_feed_connected", total=len(self.connections))

    def disconnect(self, ws: WebSocket) -> None:
        if ws in self.connections:
            self.connections.remove(ws)
        log.info("decision_feed_disconnected", total=len(self.connections))

    async def broadcast(self, payload: dict) -> None:
        """Send ``payload`` to every socket; a socket that fails is dropped."""
        for ws in list(self.connections):
            try:
                await ws.send_json(payload)
            except Exception as exc:
                self.disconnect(ws)
                log.warning("decision_feed_send_failed", error=str(exc))

    async def on_decision(self, decision: Decision) -> None:
        """DecisionStore insert listener."""
        await self.broadcast({"type": "decision", "data": decision.to_dict()})


@router.websocket("/ws")
async def decision_feed(websocket: WebSocket) -> None:
    state = websocket.app.state
    hub: DecisionHub = state.hub
    try:
        recent = await state.store.query_recent(state.settings.store.recent_limit)
    except EvaError as e:
        log.warning("decision_feed_snapshot_failed", error=str(e))
        recent = []
    await hub.connect(websocket, recent)
    try:
        while True:
            if await websocket.receive_text() == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        hub.disconnect(websocket)
