import random

# Excludes 0/O and 1/I
CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'


def generate_session_code(rng: random.Random = None, length: int = 6) -> str:
    """Generate a short session code. Uniqueness is the registry's job."""
    rng = rng or random.SystemRandom()
    return ''.join(rng.choice(CODE_ALPHABET) for _ in range(length))
