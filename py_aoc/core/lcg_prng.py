"""
Linear congruential PRNG used for every random draw in the game.

A 32-bit LCG with the Numerical Recipes constants. The whole stream
state is one integer, so it can be saved and restored with a game.
"""

from typing import Sequence, TypeVar

T = TypeVar("T")

_MULTIPLIER = 1664525
_INCREMENT = 1013904223
_MASK = 0xFFFFFFFF
_SCALE = 2.0 ** -32


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & _MASK


class LCGPRNG:
    """
    Seeded 32-bit linear congruential generator.

    ``random()`` advances ``s = (s * 1664525 + 1013904223) mod 2**32`` and
    returns ``s / 2**32``, a float in [0, 1).
    """

    def __init__(self, seed: int):
        """Initialize with a 32-bit seed (wider values are truncated)."""
        self.call_count = 0
        self._state = _uint32(seed)

    @property
    def state(self) -> int:
        """Current stream position, enough to resume the sequence."""
        return self._state

    @state.setter
    def state(self, value: int) -> None:
        self._state = _uint32(value)

    def random(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        self._state = (self._state * _MULTIPLIER + _INCREMENT) & _MASK
        return self._state * _SCALE

    def randint(self, n: int) -> int:
        """Return an integer in [0, n) as ``floor(random() * n)``."""
        return int(self.random() * n)

    def uniform(self, low: float, high: float) -> float:
        """Return a float in [low, high)."""
        return low + (high - low) * self.random()

    def chance(self, probability: float) -> bool:
        """Return True with the given probability (one draw, always consumed)."""
        return self.random() < probability

    def choice(self, seq: Sequence[T]) -> T:
        """Choose a random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[int(self.random() * len(seq))]
