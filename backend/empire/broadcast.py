"""Outbound fan-out for session state changes.

Sessions call ``notifier.broadcast(code, event, payload)`` after a
successful mutation. The Socket.IO implementation emits to the session's
room; tests substitute a recording notifier.
"""
from typing import Any, Dict

NAMESPACE = '/ws'


def room_for(code: str) -> str:
    return f"session:{code.upper()}"


class Notifier:
    """Interface. The base implementation drops every message."""

    def broadcast(self, code: str, event: str, payload: Dict[str, Any]) -> None:
        pass


class SocketIONotifier(Notifier):
    def __init__(self, socketio, namespace: str = NAMESPACE):
        self.socketio = socketio
        self.namespace = namespace

    def broadcast(self, code, event, payload):
        # socketio.emit works outside a request context, e.g. from the sweeper task
        self.socketio.emit(event, payload, to=room_for(code), namespace=self.namespace)
