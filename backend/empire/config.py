import os


def _flag(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Sessions with an empty roster are reclaimed after this much idle time (seconds)
    SESSION_IDLE_TIMEOUT_SEC = int(os.environ.get('SESSION_IDLE_TIMEOUT_SEC', '1800'))
    # Optional: periodic idle sweep (sec). 0 sweeps only on disconnect.
    SWEEP_INTERVAL_SEC = int(os.environ.get('SWEEP_INTERVAL_SEC', '0'))
    # Minimum submitted players required to start a round
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    CODE_LENGTH = int(os.environ.get('CODE_LENGTH', '6'))
    CODE_MAX_ATTEMPTS = int(os.environ.get('CODE_MAX_ATTEMPTS', '1000'))
    # Reject reveals of unknown or already revealed identities
    STRICT_REVEALS = _flag('STRICT_REVEALS')
    # Unset uses OS entropy; set for reproducible shuffles
    RANDOM_SEED = os.environ.get('RANDOM_SEED')
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000',
        ).split(',')
        if origin.strip()
    ]
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
