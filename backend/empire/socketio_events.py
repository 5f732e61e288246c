from flask_socketio import join_room, emit
from flask import current_app, request
from empire.actions import ACTIONS, dispatch
from empire.broadcast import NAMESPACE, room_for
from empire.errors import GameError
from empire.services.games.registry import registry
from typing import Dict, Set
import threading


# Actions whose success puts the connection into the session's room
_ROOM_ACTIONS = {'create_session', 'join_session', 'join_as_moderator', 'resume_session'}

_sid_to_codes: Dict[str, Set[str]] = {}
_ctx_lock = threading.Lock()


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _enter_room(sid: str, code: str) -> None:
    join_room(room_for(code))
    with _ctx_lock:
        _sid_to_codes.setdefault(sid, set()).add(code)


def handle_connect():
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_disconnect(*args):
    # Only an explicit disconnect prunes players; sessions survive until idle
    sid = _get_sid()
    with _ctx_lock:
        codes = _sid_to_codes.pop(sid, set())
    for code in codes:
        try:
            session = registry.get_session(code)
        except GameError:
            continue
        try:
            session.handle_disconnect(sid)
        except Exception:
            current_app.logger.exception(f"[disconnect-error] code={code} sid={sid}")
    registry.sweep_idle()


def handle_ping(data=None):
    emit('pong', data or {})


def _make_handler(action_name: str):
    def handler(data=None):
        sid = _get_sid()
        result = dispatch(action_name, data, connection_ref=sid)
        if result.get('success') and action_name in _ROOM_ACTIONS:
            _enter_room(sid, result['code'])
        return result
    handler.__name__ = f'handle_{action_name}'
    return handler


def register_socketio_handlers(socketio, testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    Each action handler returns its result dict as the acknowledgement.
    """
    namespaces = [NAMESPACE, '/'] if testing else [NAMESPACE]
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
        for name in ACTIONS:
            socketio.on_event(name, _make_handler(name), namespace=namespace)
