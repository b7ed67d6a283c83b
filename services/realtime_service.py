import logging
from typing import Dict, Iterable, Optional, Set

from fastapi import WebSocket

from models.auth import Role, Session
from modules.rota.events import EventType, MANAGER_ROOM, RealtimeEvent, user_room

logger = logging.getLogger(__name__)


class RealtimeNotifier:
    """
    Fan-out of scheduling events to connected WebSocket clients.

    Delivery is best-effort and at-most-once: a send that fails drops the
    connection and clients re-fetch on reconnect.
    """

    def __init__(self):
        self._sessions: Dict[WebSocket, Session] = {}
        self._rooms: Dict[str, Set[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, session: Session) -> None:
        await websocket.accept()
        self._sessions[websocket] = session
        if session.role is Role.MANAGER:
            self.join(websocket, MANAGER_ROOM)
        logger.info(f"Realtime client connected: {session.staff_id} ({session.role.value})")

    def disconnect(self, websocket: WebSocket) -> None:
        session = self._sessions.pop(websocket, None)
        for members in self._rooms.values():
            members.discard(websocket)
        if session:
            logger.info(f"Realtime client disconnected: {session.staff_id}")

    def join(self, websocket: WebSocket, room: str) -> None:
        self._rooms.setdefault(room, set()).add(websocket)

    def handle_client_message(self, websocket: WebSocket, message: dict) -> Optional[str]:
        """
        Apply a subscription frame from a client.

        Returns the joined room, or raises ValueError for frames the caller
        may not send.
        """
        session = self._sessions.get(websocket)
        if session is None:
            raise ValueError("Unknown connection")
        if not isinstance(message, dict):
            raise ValueError("Frames must be JSON objects")

        action = message.get("action")
        if action == "joinUserRoom":
            user_id = str(message.get("userId") or session.staff_id)
            if user_id != session.staff_id:
                raise ValueError("You can only join your own room")
            room = user_room(user_id)
        elif action == "joinManagerRoom":
            if session.role is not Role.MANAGER:
                raise ValueError("Only managers can join the manager room")
            room = MANAGER_ROOM
        else:
            raise ValueError(f"Unknown action '{action}'")

        self.join(websocket, room)
        return room

    def connection_count(self) -> int:
        return len(self._sessions)

    async def publish(self, event_type: EventType, data: dict, rooms: Iterable[str]) -> int:
        """Send one event to every connection in `rooms`; returns the number delivered."""
        targets: Set[WebSocket] = set()
        for room in rooms:
            targets.update(self._rooms.get(room, set()))

        if not targets:
            return 0

        frame = RealtimeEvent(event=event_type, data=data).model_dump(mode="json")
        delivered = 0
        for websocket in list(targets):
            try:
                await websocket.send_json(frame)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping realtime connection after failed send: {e}")
                self.disconnect(websocket)

        logger.info(f"Published {event_type.value} to {delivered} connection(s)")
        return delivered

    async def close_all(self) -> None:
        for websocket in list(self._sessions):
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing realtime connection: {e}")
            self.disconnect(websocket)


notifier = RealtimeNotifier()


def get_notifier() -> RealtimeNotifier:
    return notifier
