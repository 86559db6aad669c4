"""WebSocket transport for live run events."""
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/runs/{run_id}")
async def run_socket(websocket: WebSocket, run_id: str):
    broadcaster = websocket.app.state.container.broadcaster
    await websocket.accept()
    subscription = broadcaster.subscribe(run_id)
    try:
        async for event in subscription:
            await websocket.send_text(json.dumps(event.to_payload(), ensure_ascii=False))
        await websocket.close()
    except WebSocketDisconnect:
        logger.info("Run %s websocket subscriber disconnected", run_id)
    except Exception as exc:  # pylint: disable=broad-except
        logger.error("Run %s websocket error: %s", run_id, exc)
    finally:
        broadcaster.unsubscribe(run_id, subscription)
