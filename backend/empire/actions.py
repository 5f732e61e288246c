"""Action table shared by the Socket.IO handlers and the HTTP routes.

``dispatch(name, data, connection_ref)`` resolves the session code, runs
the matching session or registry operation and always returns a result
dict: ``{'success': True, ...payload}`` or the failure produced by
:meth:`empire.errors.GameError.to_dict`. Exceptions never escape.
"""
import logging
from typing import Any, Callable, Dict, Optional

from empire.errors import GameError, InternalError, Validation
from empire.services.games.registry import SessionRegistry, registry as default_registry

logger = logging.getLogger(__name__)

ActionFn = Callable[[SessionRegistry, Dict[str, Any], Optional[str]], Dict[str, Any]]
ACTIONS: Dict[str, ActionFn] = {}


def action(name: str):
    def decorator(fn: ActionFn) -> ActionFn:
        ACTIONS[name] = fn
        return fn
    return decorator


def _require(data: Dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise Validation(f'{key} is required')
    if not isinstance(value, str):
        raise Validation(f'{key} must be a string')
    return value


def _optional_text(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise Validation(f'{key} must be a string')
    return value


def _session(reg: SessionRegistry, data: Dict[str, Any]):
    return reg.get_session(_require(data, 'code'))


@action('create_session')
def create_session(reg, data, connection_ref):
    session = reg.create_session(host_ref=connection_ref)
    return {'code': session.code}


@action('join_session')
def join_session(reg, data, connection_ref):
    session = _session(reg, data)
    player = session.add_player(_optional_text(data, 'display_name'), connection_ref=connection_ref)
    return {
        'code': session.code,
        'player_id': player.id,
        'name': player.display_name,
        'is_host': connection_ref is not None and connection_ref == session.host_ref,
    }


@action('join_as_moderator')
def join_as_moderator(reg, data, connection_ref):
    session = _session(reg, data)
    snapshot = session.add_moderator(connection_ref) if connection_ref else session.snapshot()
    return {'code': session.code, **snapshot}


@action('resume_session')
def resume_session(reg, data, connection_ref):
    session = _session(reg, data)
    player = session.reattach(_require(data, 'player_id'), connection_ref)
    return {
        'code': session.code,
        'player_id': player.id,
        'name': player.display_name,
        'status': session.status.value,
    }


@action('remove_player')
def remove_player(reg, data, connection_ref):
    session = _session(reg, data)
    player = session.remove_player(_require(data, 'player_id'), connection_ref)
    return {'removed_name': player.display_name}


@action('submit_identity')
def submit_identity(reg, data, connection_ref):
    session = _session(reg, data)
    identity = session.record_submission(_require(data, 'player_id'), _optional_text(data, 'identity'))
    return {'identity': identity}


@action('start_game')
def start_game(reg, data, connection_ref):
    identities, order, first_turn = _session(reg, data).start()
    return {'shuffled_identities': identities, 'turn_order': order, 'first_turn': first_turn}


@action('reveal_guess')
def reveal_guess(reg, data, connection_ref):
    reveal = _session(reg, data).reveal_guess(_require(data, 'identity'), _optional_text(data, 'guessed_by'))
    return reveal.to_dict()


@action('eliminate_player')
def eliminate_player(reg, data, connection_ref):
    remaining = _session(reg, data).eliminate(_require(data, 'display_name'))
    return {'remaining_active': remaining}


@action('advance_turn')
def advance_turn(reg, data, connection_ref):
    return {'next_turn': _session(reg, data).advance_turn()}


@action('reset_session')
def reset_session(reg, data, connection_ref):
    return {'roster': _session(reg, data).reset()}


def dispatch(name: str, data=None, connection_ref: Optional[str] = None,
             registry: Optional[SessionRegistry] = None) -> Dict[str, Any]:
    reg = registry or default_registry
    if not isinstance(data, dict):
        data = {}
    handler = ACTIONS.get(name)
    try:
        if handler is None:
            raise Validation(f'Unknown action: {name}')
        payload = handler(reg, data, connection_ref)
    except GameError as exc:
        logger.info(f"[action-rejected] action={name} code={data.get('code')} kind={exc.kind} message={exc.message!r}")
        return exc.to_dict()
    except Exception:
        logger.exception(f"[action-error] action={name} code={data.get('code')}")
        return InternalError('Something went wrong. Please try again.').to_dict()
    return {'success': True, **payload}
