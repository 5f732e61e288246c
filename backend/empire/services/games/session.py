import logging
import random
import threading
import time
from typing import Any, Dict, List, Optional, Set, Tuple

from empire.broadcast import Notifier
from empire.errors import Conflict, InvalidState, NotFound, Unauthorized, Validation
from empire.models import Player, Reveal, Status
from .naming import names_match, normalize_name
from .shuffle import shuffled

logger = logging.getLogger(__name__)


class Session:
    """State machine for one game: lobby -> active -> finished, reset back to lobby.

    Every public operation takes the session lock, validates before touching
    any state, and broadcasts through the notifier while still holding the
    lock, so observers see notifications in mutation order. A rejected
    operation raises a :class:`empire.errors.GameError` and changes nothing.
    """

    def __init__(
        self,
        code: str,
        host_ref: Optional[str] = None,
        *,
        rng: Optional[random.Random] = None,
        notifier: Optional[Notifier] = None,
        min_players: int = 2,
        strict_reveals: bool = False,
        clock=time.time,
    ):
        self._code = code
        self.host_ref = host_ref
        self.status = Status.LOBBY
        self.players: Dict[str, Player] = {}  # insertion order is join order
        self.submissions: Dict[str, str] = {}
        self.shuffled_identities: List[str] = []
        self.turn_order: List[str] = []
        self.eliminated: Set[str] = set()
        self.current_turn_index: Optional[int] = None
        self.reveal_log: List[Reveal] = []
        self.winner: Optional[str] = None
        self.moderators: Set[str] = set()
        self.rng = rng or random.SystemRandom()
        self.notifier = notifier or Notifier()
        self.min_players = min_players
        self.strict_reveals = strict_reveals
        self._clock = clock
        self.created_at = clock()
        self.last_active_at = self.created_at
        self.lock = threading.RLock()
        self.closed = False

    @property
    def code(self) -> str:
        return self._code

    # ---- Read helpers ----

    @property
    def is_empty(self) -> bool:
        return not self.players

    def idle_for(self, now: Optional[float] = None) -> float:
        now = self._clock() if now is None else now
        return now - self.last_active_at

    def roster(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self.players.values()]

    def active_players(self) -> List[str]:
        return [name for name in self.turn_order if name not in self.eliminated]

    @property
    def current_turn(self) -> Optional[str]:
        if self.current_turn_index is None or not self.turn_order:
            return None
        return self.turn_order[self.current_turn_index]

    def is_moderator(self, connection_ref: Optional[str]) -> bool:
        if connection_ref is None:
            return False
        return connection_ref == self.host_ref or connection_ref in self.moderators

    def get_player(self, player_id: str) -> Player:
        player = self.players.get(player_id) if isinstance(player_id, str) else None
        if player is None:
            raise NotFound('You are not in this game.')
        return player

    def snapshot(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'player_count': len(self.players),
            'submission_count': len(self.submissions),
            'roster': self.roster(),
        }

    def to_dict(self, reveal_identities: bool = False) -> Dict[str, Any]:
        payload = {
            'code': self.code,
            'status': self.status.value,
            'players': self.roster(),
            'player_count': len(self.players),
            'submission_count': len(self.submissions),
            'turn_order': list(self.turn_order),
            'current_turn': self.current_turn,
            'eliminated': [n for n in self.turn_order if n in self.eliminated],
            'reveals': [r.to_dict() for r in self.reveal_log],
            'winner': self.winner,
            'identity_count': len(self.shuffled_identities),
        }
        if reveal_identities or self.status == Status.FINISHED:
            payload['shuffled_identities'] = list(self.shuffled_identities)
        return payload

    # ---- Internal ----

    def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        self.notifier.broadcast(self.code, event, payload)

    def _touch(self) -> None:
        self.last_active_at = self._clock()

    def close(self) -> None:
        """Retire the session; every later operation fails with NotFound."""
        with self.lock:
            self.closed = True

    def _require_open(self) -> None:
        if self.closed:
            raise NotFound('Game not found. Please check the code.')

    def _require(self, status: Status, message: str) -> None:
        self._require_open()
        if self.status != status:
            raise InvalidState(message)

    def _next_active_index(self, start: int) -> int:
        size = len(self.turn_order)
        idx = start
        for _ in range(size):
            idx = (idx + 1) % size
            if self.turn_order[idx] not in self.eliminated:
                return idx
        return start

    def _turn_name(self, display_name: str) -> str:
        for name in self.turn_order:
            if names_match(name, display_name):
                return name
        raise NotFound(f'{display_name!r} is not in the turn order.')

    # ---- Lobby ----

    def add_player(self, display_name_raw, connection_ref: Optional[str] = None) -> Player:
        name = normalize_name(display_name_raw)
        with self.lock:
            self._require(Status.LOBBY, 'Game has already started.')
            if not name:
                raise Validation('Please enter a name.')
            if any(names_match(p.display_name, name) for p in self.players.values()):
                raise Validation('That name is already taken. Please choose a different name.')
            player = Player(display_name=name, connection_ref=connection_ref)
            self.players[player.id] = player
            self._touch()
            self._emit('roster_update', {'players': self.roster()})
        logger.info(f"[player-join] code={self.code} player={player.id} name={name!r}")
        return player

    def remove_player(self, player_id: str, actor_ref: Optional[str]) -> Player:
        with self.lock:
            self._require_open()
            if not self.is_moderator(actor_ref):
                raise Unauthorized('Only the moderator may remove players.')
            self._require(Status.LOBBY, 'Players can only be removed in the lobby.')
            player = self.get_player(player_id)
            del self.players[player_id]
            self.submissions.pop(player_id, None)
            self._touch()
            self._emit('roster_update', {'players': self.roster()})
            self._emit('player_removed', {'player_id': player.id, 'name': player.display_name})
        logger.info(f"[player-remove] code={self.code} player={player.id} name={player.display_name!r}")
        return player

    def record_submission(self, player_id: str, identity_raw) -> str:
        identity = normalize_name(identity_raw)
        with self.lock:
            self._require(Status.LOBBY, 'Submissions are closed.')
            player = self.get_player(player_id)
            if player.has_submitted:
                raise Conflict('You have already submitted a name.')
            if not identity:
                raise Validation('Please enter a name to submit.')
            self.submissions[player_id] = identity
            player.has_submitted = True
            self._touch()
            self._emit('roster_update', {'players': self.roster()})
        logger.info(f"[submission] code={self.code} player={player_id} count={len(self.submissions)}")
        return identity

    def add_moderator(self, connection_ref: str) -> Dict[str, Any]:
        with self.lock:
            self._require_open()
            self.moderators.add(connection_ref)
            self._touch()
            return self.snapshot()

    def reattach(self, player_id: str, connection_ref: str) -> Player:
        """Bind an existing player to a new connection after a reconnect."""
        with self.lock:
            self._require_open()
            player = self.get_player(player_id)
            player.connection_ref = connection_ref
            self._touch()
            self._emit('roster_update', {'players': self.roster()})
        logger.info(f"[player-resume] code={self.code} player={player_id}")
        return player

    def handle_disconnect(self, connection_ref: str) -> List[Player]:
        """Forget a lost connection.

        Unsubmitted players are pruned while in the lobby; anyone who has
        submitted, or is mid-game, stays on the roster with no connection.
        Returns the removed players.
        """
        removed: List[Player] = []
        with self.lock:
            if self.closed:
                return removed
            self.moderators.discard(connection_ref)
            affected = [p for p in self.players.values() if p.connection_ref == connection_ref]
            if not affected:
                return removed
            for player in affected:
                if self.status == Status.LOBBY and not player.has_submitted:
                    del self.players[player.id]
                    self.submissions.pop(player.id, None)
                    removed.append(player)
                else:
                    player.connection_ref = None
            self._touch()
            self._emit('roster_update', {'players': self.roster()})
        for player in removed:
            logger.info(f"[player-drop] code={self.code} player={player.id} name={player.display_name!r}")
        return removed

    # ---- Round ----

    def start(self) -> Tuple[List[str], List[str], str]:
        with self.lock:
            self._require(Status.LOBBY, 'Game has already started.')
            if len(self.submissions) < self.min_players:
                raise Validation(f'Need at least {self.min_players} players with submissions to start.')
            if any(not p.has_submitted for p in self.players.values()):
                raise Validation('Not all players have submitted their names.')

            # Independent shuffles: identity order says nothing about turn order
            identities = shuffled(list(self.submissions.values()), self.rng)
            order = shuffled([p.display_name for p in self.players.values()], self.rng)

            self.shuffled_identities = identities
            self.turn_order = order
            self.eliminated = set()
            self.reveal_log = []
            self.winner = None
            self.current_turn_index = 0
            self.status = Status.ACTIVE
            self._touch()
            self._emit('game_started', {
                'turn_order': list(order),
                'current_turn': order[0],
                'identity_count': len(identities),
            })
        logger.info(f"[session-start] code={self.code} identities={len(identities)}")
        return list(identities), list(order), order[0]

    def reveal_guess(self, identity, guessed_by) -> Reveal:
        with self.lock:
            self._require(Status.ACTIVE, 'Game not in progress.')
            if self.strict_reveals:
                name = normalize_name(identity)
                if name not in self.shuffled_identities:
                    raise Validation(f'{identity!r} is not one of the submitted names.')
                if any(r.identity == name for r in self.reveal_log):
                    raise Conflict(f'{name!r} has already been revealed.')
                identity = name
            reveal = Reveal(identity=identity, guessed_by=guessed_by)
            self.reveal_log.append(reveal)
            self._touch()
            self._emit('identity_revealed', reveal.to_dict())
        return reveal

    def eliminate(self, display_name) -> List[str]:
        """Mark a player out. Returns the names still in play, in turn order."""
        with self.lock:
            self._require(Status.ACTIVE, 'Game not in progress.')
            name = self._turn_name(display_name)
            if name in self.eliminated:
                return self.active_players()
            self.eliminated.add(name)
            remaining = self.active_players()
            self._touch()
            self._emit('player_eliminated', {'name': name, 'remaining_active': list(remaining)})
            if len(remaining) == 1:
                self.status = Status.FINISHED
                self.winner = remaining[0]
                self.current_turn_index = self.turn_order.index(self.winner)
                self._emit('game_over', {
                    'winner': self.winner,
                    'shuffled_identities': list(self.shuffled_identities),
                })
            elif self.current_turn == name:
                self.current_turn_index = self._next_active_index(self.current_turn_index)
                self._emit('turn_changed', {'current_turn': self.current_turn})
        logger.info(f"[eliminate] code={self.code} name={name!r} remaining={len(remaining)}")
        if len(remaining) == 1:
            logger.info(f"[game-over] code={self.code} winner={remaining[0]!r}")
        return remaining

    def advance_turn(self) -> str:
        with self.lock:
            self._require(Status.ACTIVE, 'Game not in progress.')
            self.current_turn_index = self._next_active_index(self.current_turn_index)
            current = self.current_turn
            self._touch()
            self._emit('turn_changed', {'current_turn': current})
        return current

    def reset(self) -> List[Dict[str, Any]]:
        with self.lock:
            self._require_open()
            self.status = Status.LOBBY
            self.submissions.clear()
            self.shuffled_identities = []
            self.turn_order = []
            self.eliminated = set()
            self.current_turn_index = None
            self.reveal_log = []
            self.winner = None
            for player in self.players.values():
                player.has_submitted = False
            roster = self.roster()
            self._touch()
            self._emit('session_reset', {'players': roster})
        logger.info(f"[session-reset] code={self.code} players={len(roster)}")
        return roster
