import random
from typing import List, Sequence, TypeVar

T = TypeVar('T')


def shuffled(items: Sequence[T], rng: random.Random) -> List[T]:
    """Return a uniformly permuted copy of ``items`` (Fisher-Yates)."""
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randrange(i + 1)
        result[i], result[j] = result[j], result[i]
    return result
