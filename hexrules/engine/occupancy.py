"""Occupancy ledger — which rule in the current pass claimed each cell."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from hexrules.core.hex import Hex


@dataclass(frozen=True, slots=True)
class Claim:
    seq: int
    rule: str


class OccupancyLedger:
    """Records the first writer of every cell within one generation pass.

    Rules run in schedule order, so a claim with a lower sequence number
    belongs to a higher-priority rule and blocks later writers. A rule never
    conflicts with itself.
    """

    __slots__ = ("_claims",)

    def __init__(self) -> None:
        self._claims: dict[Hex, Claim] = {}

    def owner(self, pos: Hex) -> Claim | None:
        return self._claims.get(pos)

    def blocked(self, cells: Iterable[Hex], seq: int) -> list[Hex]:
        """Cells from *cells* that an earlier rule already claimed, sorted."""
        out = []
        for pos in cells:
            claim = self._claims.get(pos)
            if claim is not None and claim.seq < seq:
                out.append(pos)
        return sorted(set(out))

    def claim(self, cells: Iterable[Hex], seq: int, rule: str) -> None:
        for pos in cells:
            if pos not in self._claims:
                self._claims[pos] = Claim(seq, rule)

    def claimed_by(self, rule: str) -> list[Hex]:
        return sorted(pos for pos, c in self._claims.items() if c.rule == rule)

    def __len__(self) -> int:
        return len(self._claims)
