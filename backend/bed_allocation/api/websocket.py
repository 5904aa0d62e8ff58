"""
WebSocket endpoints.
"""
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState
from typing import Optional
import logging

from bed_allocation.core.websocket_manager import manager

router = APIRouter()
logger = logging.getLogger("bed_allocation.websocket")


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, ward_id: Optional[str] = None):
    """
    Realtime bed, patient, request and alert events.

    Clients may pass ?ward_id=... to receive only that ward's events.
    Supported client messages:
    - {"action": "ping"} keeps the connection alive
    - {"action": "subscribe", "ward_id": "..."} narrows the feed to a ward
    """
    await manager.connect(websocket, ward_id)

    try:
        while websocket.client_state == WebSocketState.CONNECTED:
            data = await websocket.receive_json()
            if not isinstance(data, dict):
                await websocket.send_json({"type": "error", "detail": "Expected a JSON object"})
                continue
            action = data.get("action")

            if action == "ping":
                await websocket.send_json({"type": "pong"})

            elif action == "subscribe" and data.get("ward_id"):
                manager.ward_subscriptions.setdefault(data["ward_id"], set()).add(websocket)
                await websocket.send_json({"type": "subscribed", "ward_id": data["ward_id"]})

    except WebSocketDisconnect:
        pass
    except (RuntimeError, ValueError) as e:
        # Malformed JSON or a receive after the peer closed
        logger.warning(f"WebSocket error: {e}")
    finally:
        manager.disconnect(websocket)
