"""Axial hex coordinates and the pure geometry built on them."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True, slots=True, order=True)
class Hex:
    """Immutable axial coordinate. Ordering is by ``(q, r)``."""

    q: int = 0
    r: int = 0

    @property
    def s(self) -> int:
        return -self.q - self.r

    def __add__(self, other: Hex) -> Hex:
        return Hex(self.q + other.q, self.r + other.r)

    def __sub__(self, other: Hex) -> Hex:
        return Hex(self.q - other.q, self.r - other.r)

    def scale(self, k: int) -> Hex:
        return Hex(self.q * k, self.r * k)

    def distance(self, other: Hex) -> int:
        dq = self.q - other.q
        dr = self.r - other.r
        return (abs(dq) + abs(dr) + abs(dq + dr)) // 2

    def neighbor(self, direction: int) -> Hex:
        return self + DIRECTIONS[direction % 6]

    def neighbors(self) -> tuple[Hex, ...]:
        return tuple(self + d for d in DIRECTIONS)

    def ring(self, radius: int) -> list[Hex]:
        """Cells at exactly *radius* from this hex, walked in a fixed order."""
        if radius <= 0:
            return [self]
        result: list[Hex] = []
        cur = self + DIRECTIONS[4].scale(radius)
        for side in range(6):
            for _ in range(radius):
                result.append(cur)
                cur = cur + DIRECTIONS[side]
        return result

    def within(self, radius: int) -> Iterator[Hex]:
        """Spiral outward: the center first, then ring 1, ring 2, ..."""
        for k in range(max(radius, 0) + 1):
            yield from self.ring(k)

    def line_to(self, other: Hex) -> list[Hex]:
        """Cells on the straight line between both hexes, endpoints included."""
        n = self.distance(other)
        if n == 0:
            return [self]
        # Nudge so that ties on cell edges always round the same way
        aq, ar = self.q + 1e-6, self.r + 1e-6
        bq, br = other.q + 1e-6, other.r + 1e-6
        out: list[Hex] = []
        for i in range(n + 1):
            t = i / n
            out.append(cube_round(aq + (bq - aq) * t, ar + (br - ar) * t))
        return out

    def __repr__(self) -> str:
        return f"Hex({self.q}, {self.r})"


# East, north-east, north-west, west, south-west, south-east
DIRECTIONS: tuple[Hex, ...] = (
    Hex(1, 0),
    Hex(1, -1),
    Hex(0, -1),
    Hex(-1, 0),
    Hex(-1, 1),
    Hex(0, 1),
)


def cube_round(fq: float, fr: float) -> Hex:
    fs = -fq - fr
    q, r, s = round(fq), round(fr), round(fs)
    dq, dr, ds = abs(q - fq), abs(r - fr), abs(s - fs)
    if dq > dr and dq > ds:
        q = -r - s
    elif dr > ds:
        r = -q - s
    return Hex(int(q), int(r))


def slope_degrees(elevation_delta: int, distance: int = 1, elevation_scale: float = 1.0) -> float:
    """Angle of the incline between two cells *distance* apart."""
    if distance <= 0:
        return 0.0
    return math.degrees(math.atan2(abs(elevation_delta) * elevation_scale, distance))


def parallelogram(width: int, height: int, origin: Hex = Hex(0, 0)) -> list[Hex]:
    """Axial rectangle ``q in [0, width)``, ``r in [0, height)`` in ascending order."""
    return [Hex(origin.q + q, origin.r + r) for q in range(width) for r in range(height)]
