"""
WebSocket connection manager.
Broadcasts bed, patient, request and alert events to connected clients.
"""
from typing import List, Dict, Optional, Set, Iterable
from fastapi import WebSocket, WebSocketDisconnect
import logging

logger = logging.getLogger("bed_allocation.websocket")


class ConnectionManager:
    """
    WebSocket connection manager.

    Keeps the active connections, optional per-ward subscriptions, and
    drops dead connections when a send fails.
    """

    def __init__(self):
        self.active_connections: List[WebSocket] = []
        # Connections interested in one ward only
        self.ward_subscriptions: Dict[str, Set[WebSocket]] = {}

    async def connect(
        self,
        websocket: WebSocket,
        ward_id: Optional[str] = None
    ) -> None:
        """
        Accepts a WebSocket client.

        Args:
            websocket: WebSocket connection
            ward_id: Ward to subscribe to (optional)
        """
        await websocket.accept()
        self.active_connections.append(websocket)

        if ward_id:
            self.ward_subscriptions.setdefault(ward_id, set()).add(websocket)

        logger.info(
            f"WebSocket connected. Total connections: {len(self.active_connections)}"
        )

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

        for ward_id in list(self.ward_subscriptions.keys()):
            self.ward_subscriptions[ward_id].discard(websocket)
            if not self.ward_subscriptions[ward_id]:
                del self.ward_subscriptions[ward_id]

        logger.info(
            f"WebSocket disconnected. Total connections: {len(self.active_connections)}"
        )

    async def publish_events(self, events: Iterable[dict]) -> None:
        """
        Publishes the events produced by a service operation.

        Clients without a subscription receive everything. Subscribed
        clients receive events of their ward and events with no ward.

        Args:
            events: Event dictionaries, each with a `type` key
        """
        for event in events:
            ward_id = event.get("ward_id")
            recipients = [
                connection for connection in self.active_connections
                if ward_id is None
                or not self._is_subscribed(connection)
                or connection in self.ward_subscriptions.get(ward_id, set())
            ]
            await self._send_all(recipients, event)

    def _is_subscribed(self, websocket: WebSocket) -> bool:
        return any(websocket in subscribers for subscribers in self.ward_subscriptions.values())

    async def _send_all(self, connections: Iterable[WebSocket], message: dict) -> None:
        disconnected: List[WebSocket] = []

        for connection in list(connections):
            try:
                await connection.send_json(message)
            except (WebSocketDisconnect, RuntimeError, ConnectionError) as e:
                logger.warning(f"Error sending message: {e}")
                disconnected.append(connection)

        for conn in disconnected:
            self.disconnect(conn)

    @property
    def connection_count(self) -> int:
        return len(self.active_connections)


# Global manager instance
manager = ConnectionManager()
