"""Deterministic hashing and sampling for reproducible procedural picks.

The same seed string always produces the same picks, so every player sees the
same daily/weekly challenge for a cycle while per-run offers stay unique by
mixing the user and start time into the seed.
"""
from typing import Sequence

_FNV_OFFSET_BASIS = 2166136261
_FNV_PRIME = 16777619
_LCG_MULTIPLIER = 1664525
_LCG_INCREMENT = 1013904223
_UINT32_MASK = 0xFFFFFFFF


def hash_string(value: str) -> int:
    """32-bit FNV-1a hash over the UTF-16 code units of ``value``.

    Order- and case-sensitive. Collisions are possible and tolerated.
    """
    data = value.encode("utf-16-le")
    result = _FNV_OFFSET_BASIS
    for index in range(0, len(data), 2):
        unit = data[index] | (data[index + 1] << 8)
        result ^= unit
        result = (result * _FNV_PRIME) & _UINT32_MASK
    return result


class SeededPicker:
    """Linear congruential step function seeded with a uint32."""

    def __init__(self, seed: int):
        self._cursor = seed & _UINT32_MASK

    def next(self) -> int:
        self._cursor = (self._cursor * _LCG_MULTIPLIER + _LCG_INCREMENT) & _UINT32_MASK
        return self._cursor

    def pick_unique(self, count: int, pool: Sequence[str]) -> list[str]:
        """Sample ``count`` items without replacement, keeping pick order."""
        remaining = list(pool)
        picked: list[str] = []
        while len(picked) < count and remaining:
            index = self.next() % len(remaining)
            picked.append(remaining.pop(index))
        return picked


def pick_unique(seed: int, count: int, pool: Sequence[str]) -> list[str]:
    """Deterministically pick ``count`` unique items from ``pool``.

    If ``count`` exceeds the pool size the whole pool is returned (in picked
    order); a non-positive count returns an empty list.
    """
    return SeededPicker(seed).pick_unique(count, pool)
