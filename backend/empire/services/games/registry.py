import logging
import random
import threading
import time
from typing import Dict, List, Optional

from empire.broadcast import Notifier
from empire.errors import InternalError, NotFound
from .codes import generate_session_code
from .session import Session

logger = logging.getLogger(__name__)


class SessionRegistry:
    """In-memory registry of live sessions, keyed by code.

    Follows the Flask extension pattern: create it at import time, then bind
    it to an application with :meth:`init_app`. Sessions are process-local,
    so binding to an application starts from an empty registry.
    """

    def __init__(self, app=None, notifier: Optional[Notifier] = None, clock=time.time):
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self.notifier = notifier or Notifier()
        self.idle_timeout = 30 * 60
        self.min_players = 2
        self.code_length = 6
        self.code_max_attempts = 1000
        self.strict_reveals = False
        self.seed = None
        self._rng = random.SystemRandom()
        if app is not None:
            self.init_app(app, notifier)

    def init_app(self, app, notifier: Optional[Notifier] = None) -> None:
        cfg = app.config
        self.idle_timeout = int(cfg.get('SESSION_IDLE_TIMEOUT_SEC', 1800))
        self.min_players = int(cfg.get('MIN_PLAYERS', 2))
        self.code_length = int(cfg.get('CODE_LENGTH', 6))
        self.code_max_attempts = int(cfg.get('CODE_MAX_ATTEMPTS', 1000))
        self.strict_reveals = bool(cfg.get('STRICT_REVEALS', False))
        self.seed = cfg.get('RANDOM_SEED')
        self._rng = random.Random(self.seed) if self.seed is not None else random.SystemRandom()
        if notifier is not None:
            self.notifier = notifier
        with self._lock:
            self._sessions.clear()
        app.extensions['session_registry'] = self

    def _session_rng(self) -> random.Random:
        if self.seed is None:
            return random.SystemRandom()
        return random.Random(self._rng.getrandbits(64))

    def create_session(self, host_ref: Optional[str] = None) -> Session:
        with self._lock:
            for _ in range(self.code_max_attempts):
                code = generate_session_code(self._rng, self.code_length)
                if code not in self._sessions:
                    break
            else:
                raise InternalError('Unable to create a session code right now.')
            session = Session(
                code,
                host_ref,
                rng=self._session_rng(),
                notifier=self.notifier,
                min_players=self.min_players,
                strict_reveals=self.strict_reveals,
                clock=self._clock,
            )
            self._sessions[code] = session
        logger.info(f"[session-create] code={code} host={host_ref}")
        return session

    def get_session(self, code) -> Session:
        if not isinstance(code, str):
            raise NotFound('Game not found. Please check the code.')
        with self._lock:
            session = self._sessions.get(code.strip().upper())
        if session is None:
            raise NotFound('Game not found. Please check the code.')
        return session

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def codes(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def sweep_idle(self, now: Optional[float] = None) -> List[str]:
        """Drop sessions with an empty roster that have idled past the timeout."""
        now = self._clock() if now is None else now
        with self._lock:
            candidates = list(self._sessions.values())
        removed = []
        for session in candidates:
            with session.lock:
                if not session.is_empty or session.idle_for(now) <= self.idle_timeout:
                    continue
                with self._lock:
                    if self._sessions.get(session.code) is session:
                        session.close()
                        del self._sessions[session.code]
                        removed.append(session.code)
        for code in removed:
            logger.info(f"[session-sweep] code={code} idle>{self.idle_timeout}s")
        return removed


registry = SessionRegistry()


def start_sweeper(app, socketio) -> None:
    """Run :meth:`SessionRegistry.sweep_idle` every SWEEP_INTERVAL_SEC seconds.

    No-ops when the interval is 0 or in TESTING mode.
    """
    interval = int(app.config.get('SWEEP_INTERVAL_SEC', 0))
    if interval <= 0 or app.config.get('TESTING'):
        return

    def _worker():
        while True:
            socketio.sleep(interval)
            try:
                registry.sweep_idle()
            except Exception:
                app.logger.exception('[sweep-error] idle sweep failed')

    socketio.start_background_task(_worker)
    app.logger.info(f"[sweep-start] interval={interval}s")
