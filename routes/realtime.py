import json
import logging
from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from services.auth_service import decode_session
from services.realtime_service import get_notifier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket, token: str = Query(default="")):
    """
    Realtime channel.

    Connect with ?token=<jwt>. Managers are placed in the manager room on
    connect. Clients send {"action": "joinUserRoom", "userId": ...} or
    {"action": "joinManagerRoom"} and then receive
    {"event", "data", "sent_at"} frames.
    """
    try:
        session = decode_session(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    notifier = get_notifier()
    await notifier.connect(websocket, session)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_json({"event": "error", "message": "Frames must be JSON objects"})
                continue

            try:
                room = notifier.handle_client_message(websocket, message)
                await websocket.send_json({"event": "joined", "room": room})
            except ValueError as e:
                await websocket.send_json({"event": "error", "message": str(e)})
    except WebSocketDisconnect:
        pass
    finally:
        notifier.disconnect(websocket)
