from datetime import datetime, timezone
from typing import Any, Dict
import logging
import socketio
from pydantic import ValidationError
from urllib.parse import parse_qs

from app.core.constants import ADMIN_ROOM, ATTEMPT_FINALIZED_EVENT, RoleEnum
from app.core.exceptions import Unauthorized
from app.core.security import decode_access_token
from app.schemas.token import TokenPayload
from app.utils.events import EventBus, event_bus

logger = logging.getLogger(__name__)

connected_clients: Dict[str, dict] = {}


def student_room(student_id: int) -> str:
    return f"student:{student_id}"


def _extract_token(environ, auth):
    if auth and 'token' in auth:
        return auth['token']
    if environ.get('QUERY_STRING'):
        query_params = parse_qs(environ.get('QUERY_STRING', ''))
        return query_params.get('token', [None])[0]
    return None


def make_finalized_broadcaster(sio_server: socketio.AsyncServer):
    """Event-bus handler that pushes finalized attempts to admins and to the student who sat it."""

    async def broadcast_attempt_finalized(data: Dict[str, Any]):
        await sio_server.emit(ATTEMPT_FINALIZED_EVENT, data, room=ADMIN_ROOM)
        student_id = data.get('student_id')
        if student_id is not None:
            await sio_server.emit(ATTEMPT_FINALIZED_EVENT, data, room=student_room(student_id))
        logger.info(f"Broadcast {ATTEMPT_FINALIZED_EVENT} for attempt {data.get('attempt_id')}")

    return broadcast_attempt_finalized


def register_websocket_events(sio_server: socketio.AsyncServer, events: EventBus = event_bus):

    events.subscribe(ATTEMPT_FINALIZED_EVENT, make_finalized_broadcaster(sio_server))

    @sio_server.event
    async def connect(sid, environ, auth=None):
        token = _extract_token(environ, auth)
        if not token:
            logger.warning(f"Connection rejected for {sid}: No token")
            return False

        try:
            token_data = TokenPayload(**decode_access_token(token))
        except Unauthorized:
            logger.warning(f"Connection rejected for {sid}: Invalid token")
            return False
        except ValidationError:
            logger.warning(f"Connection rejected for {sid}: Invalid token payload")
            return False

        if token_data.role == RoleEnum.ADMIN:
            room = ADMIN_ROOM
        elif token_data.student_id is not None:
            room = student_room(token_data.student_id)
        else:
            logger.warning(f"Connection rejected for {sid}: Token carries no student")
            return False

        await sio_server.enter_room(sid, room)
        connected_clients[sid] = {
            'role': token_data.role.value,
            'room': room,
            'connected_at': datetime.now(timezone.utc),
        }
        await sio_server.save_session(sid, {'role': token_data.role.value, 'student_id': token_data.student_id})
        logger.info(f"Client {sid} connected ({token_data.role.value}, room {room})")

        await sio_server.emit('connected', {
            'status': 'success',
            'message': 'Connected successfully'
        }, room=sid)
        return True

    @sio_server.event
    async def disconnect(sid):
        client = connected_clients.pop(sid, {})
        logger.info(f"Client {sid} disconnected ({client.get('role')})")

    @sio_server.on('ping')
    async def handle_ping(sid, data=None):
        await sio_server.emit('pong', {
            'timestamp': datetime.now(timezone.utc).isoformat()
        }, room=sid)
