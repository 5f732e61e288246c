"""Game domain services: naming, codes, shuffling, sessions and the registry.

This package contains the pure(ish) game logic that socket handlers and
HTTP routes call into, keeping transport concerns separated from the
session state machine.
"""

from .naming import normalize_name, names_match
from .codes import CODE_ALPHABET, generate_session_code
from .shuffle import shuffled
from .session import Session
from .registry import SessionRegistry

__all__ = [
    'normalize_name',
    'names_match',
    'CODE_ALPHABET',
    'generate_session_code',
    'shuffled',
    'Session',
    'SessionRegistry',
]
