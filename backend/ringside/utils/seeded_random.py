"""
Seeded random number generator.

Reproducible shuffles/picks/integers from a string seed. Every randomized
step (bracket shuffling, backfill club picks, demo data) receives an
instance explicitly; there is no module-level generator.

String-to-seed transform (rolling hash):
    h = 0
    for ch in seed:
        h = (h << 5) - h + ord(ch)      # h * 31 + ch
        h = fold into signed 32-bit range
    seed = abs(h)

Step (linear congruential):
    seed = (seed * 9301 + 49297) % 233280
    next() = seed / 233280
"""

from typing import List, Sequence, TypeVar

T = TypeVar("T")

_MODULUS = 233280
_MULTIPLIER = 9301
_INCREMENT = 49297


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def string_to_seed(seed: str) -> int:
    """Rolling polynomial hash of `seed`, folded into 32-bit signed range, made non-negative."""
    h = 0
    for ch in seed:
        h = _to_int32((h << 5) - h + ord(ch))
    return abs(h)


class SeededRandom:
    """Deterministic RNG. Same seed string => identical output sequence."""

    def __init__(self, seed: str):
        self.seed_text = str(seed)
        self._state = string_to_seed(self.seed_text)

    def next(self) -> float:
        """Float in [0, 1)."""
        self._state = (self._state * _MULTIPLIER + _INCREMENT) % _MODULUS
        return self._state / _MODULUS

    def int(self, lo: int, hi: int) -> int:
        """Integer in [lo, hi], both inclusive."""
        if hi < lo:
            raise ValueError(f"int: hi ({hi}) must be >= lo ({lo})")
        return int(self.next() * (hi - lo + 1)) + lo

    def pick(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("pick: cannot pick from an empty sequence")
        return items[self.int(0, len(items) - 1)]

    def shuffle(self, items: Sequence[T]) -> List[T]:
        """Return a new list in Fisher-Yates shuffled order; input is untouched."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = int(self.next() * (i + 1))
            result[i], result[j] = result[j], result[i]
        return result
