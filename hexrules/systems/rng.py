"""Keyed deterministic RNG using xxhash.

The Golden Rule: a random draw depends ONLY on the world seed and a stable
key (rule name, action index, target cell). Evaluation order, worker count and
thread scheduling must not matter.

Formula: RNG_Value = Hash(WorldSeed, RuleName, ActionIndex, Cell, Domain, Draw)
"""

from __future__ import annotations

import struct
from typing import Sequence, TypeVar

import xxhash

from hexrules.core.enums import Domain
from hexrules.core.hex import Hex

T = TypeVar("T")

_MAX_UINT64 = (1 << 64) - 1


class RandomStream:
    """An independent sub-stream. Owned by exactly one action application."""

    __slots__ = ("_key", "_draws")

    def __init__(self, key: bytes) -> None:
        self._key = key
        self._draws = 0

    def _next(self, domain: Domain) -> int:
        payload = self._key + struct.pack("<iI", domain.value, self._draws)
        self._draws += 1
        return xxhash.xxh64(payload).intdigest()

    def next_float(self, domain: Domain) -> float:
        """Return a deterministic float in [0.0, 1.0)."""
        return self._next(domain) / (_MAX_UINT64 + 1)

    def next_int(self, domain: Domain, low: int, high: int) -> int:
        """Return a deterministic integer in [low, high] inclusive."""
        f = self.next_float(domain)
        return low + int(f * (high - low + 1))

    def next_bool(self, domain: Domain, probability: float = 0.5) -> bool:
        """Return True with the given probability."""
        return self.next_float(domain) < probability

    def choice(self, domain: Domain, items: Sequence[T]) -> T:
        if not items:
            raise IndexError("choice from an empty sequence")
        return items[self.next_int(domain, 0, len(items) - 1)]


class DeterministicRNG:
    """Stateless factory of keyed sub-streams — safe to share across threads."""

    __slots__ = ("_seed",)

    def __init__(self, seed: int) -> None:
        self._seed = seed & _MAX_UINT64

    @property
    def seed(self) -> int:
        return self._seed

    def stream(self, rule_name: str, action_index: int, cell: Hex) -> RandomStream:
        key = (
            struct.pack("<Q", self._seed)
            + rule_name.encode("utf-8")
            + b"\x00"
            + struct.pack("<iii", action_index, cell.q, cell.r)
        )
        return RandomStream(key)
