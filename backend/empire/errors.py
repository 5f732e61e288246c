"""Failure taxonomy shared by the game core and the transport adapter.

Core operations raise these; :mod:`empire.actions` turns them into
structured results so nothing is thrown across the transport boundary.
"""


class GameError(Exception):
    kind = 'error'
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {'success': False, 'kind': self.kind, 'error': self.message}


class NotFound(GameError):
    kind = 'not_found'
    status_code = 404


class InvalidState(GameError):
    kind = 'invalid_state'
    status_code = 409


class Validation(GameError):
    kind = 'validation'
    status_code = 400


class Conflict(GameError):
    kind = 'conflict'
    status_code = 409


class Unauthorized(GameError):
    kind = 'unauthorized'
    status_code = 403


class InternalError(GameError):
    kind = 'internal_error'
    status_code = 500


STATUS_CODES = {
    cls.kind: cls.status_code
    for cls in (NotFound, InvalidState, Validation, Conflict, Unauthorized, InternalError)
}


def status_for(result: dict) -> int:
    if result.get('success'):
        return 200
    return STATUS_CODES.get(result.get('kind'), 400)
