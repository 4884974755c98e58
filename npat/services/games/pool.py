import random
import string
from typing import Hashable, Iterable, List, Optional

from .errors import PoolExhausted

ALPHABET = tuple(string.ascii_uppercase)


def avatar_tokens(count: int) -> List[int]:
    return list(range(1, count + 1))


class ResourcePool:
    """Finite set of tokens handed out without replacement until reset.

    Draws pick uniformly among the tokens still available and swap-remove the
    chosen slot, so a draw is O(1) and never returns a token that is still
    outstanding.
    """

    def __init__(self, tokens: Iterable[Hashable] = (), rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self._available: List[Hashable] = []
        self.reset(tokens)

    def reset(self, tokens: Iterable[Hashable]) -> None:
        self._available = list(tokens)

    def draw_random(self) -> Hashable:
        if not self._available:
            raise PoolExhausted()
        idx = self._rng.randrange(len(self._available))
        last = len(self._available) - 1
        self._available[idx], self._available[last] = self._available[last], self._available[idx]
        return self._available.pop()

    def release(self, token: Hashable) -> None:
        """Return a previously drawn token. Releasing an available token is a no-op."""
        if token is None or token in self._available:
            return
        self._available.append(token)

    @property
    def remaining(self) -> List[Hashable]:
        return list(self._available)

    def __len__(self) -> int:
        return len(self._available)

    def __contains__(self, token) -> bool:
        return token in self._available
