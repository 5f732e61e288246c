from flask import Blueprint, jsonify
from empire.actions import dispatch
from empire.errors import GameError, status_for
from empire.services.games.registry import registry

sessions = Blueprint('sessions', __name__)


@sessions.route('', methods=['POST'])
def create_session():
    """
    Creates a new session in the lobby and returns its code.
    Players join and act over the /ws Socket.IO namespace.
    """
    result = dispatch('create_session')
    return jsonify(result), 201 if result['success'] else status_for(result)


@sessions.route('/<string:code>', methods=['GET'])
def get_session_state(code):
    """
    Returns the public state of a session. Submitted identities stay hidden
    until the game is finished.
    """
    try:
        session = registry.get_session(code)
    except GameError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    with session.lock:
        payload = session.to_dict()
    return jsonify({'success': True, **payload})
