"""Enumerations used throughout the engine."""

from __future__ import annotations

from enum import IntEnum, unique


@unique
class Terrain(IntEnum):
    """Terrain types a hex cell can carry."""

    PLAIN = 0
    ROUGH = 1
    WATER = 2
    WALL = 3
    SAND = 4
    SNOW = 5
    SWAMP = 6
    LAVA = 7

    @classmethod
    def parse(cls, value: str | int | Terrain) -> Terrain:
        """Accept enum members, ids, or case-insensitive names (``"Plain"``)."""
        if isinstance(value, Terrain):
            return value
        if isinstance(value, int):
            return cls(value)
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"unknown terrain {value!r}") from None


@unique
class ConnectionType(IntEnum):
    """How a structure connection point is stamped onto the grid."""

    ROAD = 0
    WALL = 1
    BRIDGE = 2
    DOOR = 3
    PATH = 4


@unique
class DiagnosticKind(IntEnum):
    """Categories of non-fatal generation diagnostics."""

    VALIDATION = 0
    CONFLICT = 1
    CAPACITY = 2
    NO_CANDIDATES = 3
    VACUOUS = 4
    STALE = 5
    LOAD = 6


@unique
class Domain(IntEnum):
    """RNG domains for deterministic randomness isolation."""

    VARIANT = 1
    CLUSTER = 2
    ROAD = 3
    TERRAIN = 4
    RESOURCE = 5


@unique
class GrowthKind(IntEnum):
    """Order in which placements search outward from an origin."""

    OUTWARD = 0
    INWARD = 1
    LINEAR = 2


@unique
class WaterFeatureKind(IntEnum):
    """Water bodies ``CreateWaterFeature`` can grow."""

    LAKE = 0
    POND = 1
