from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from workshop.services.chat import AUTH_FAILED_CLOSE_CODE

router = APIRouter(tags=["websocket"])

logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    registry = websocket.app.state.registry
    protocol = websocket.app.state.chat_protocol

    await websocket.accept()
    conn = registry.register(websocket)
    logger.info("Websocket connected: %s", conn.id)
    try:
        # the dispatcher unregisters and closes a connection whose send failed
        while conn in registry:
            raw = await websocket.receive_text()
            keep_open = await protocol.handle(conn, raw)
            if conn not in registry:
                break
            if not keep_open:
                await websocket.close(code=AUTH_FAILED_CLOSE_CODE, reason="Unauthorized")
                break
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("Websocket %s failed", conn.id)
        raise
    finally:
        registry.unregister(conn)
        logger.info("Websocket disconnected: %s", conn.id)
