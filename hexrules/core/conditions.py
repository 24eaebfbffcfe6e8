"""Condition trees — a closed set of frozen predicate variants.

Leaves query the world; ``And``/``Or``/``Not`` compose them. A tree is
immutable once built and evaluation never writes anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Union

from hexrules.core.enums import Terrain


@dataclass(frozen=True, slots=True)
class TerrainType:
    terrain: Terrain


@dataclass(frozen=True, slots=True)
class ElevationRange:
    min: int
    max: int


@dataclass(frozen=True, slots=True)
class NearWater:
    distance: int


@dataclass(frozen=True, slots=True)
class MinDistanceFrom:
    structure_type: str
    distance: int


@dataclass(frozen=True, slots=True)
class MaxDistanceFrom:
    structure_type: str
    distance: int


@dataclass(frozen=True, slots=True)
class AdjacentTo:
    structure_type: str


@dataclass(frozen=True, slots=True)
class SlopeRange:
    min_degrees: float
    max_degrees: float


@dataclass(frozen=True, slots=True)
class ViewDistance:
    min: int


@dataclass(frozen=True, slots=True)
class WindExposure:
    min: float
    max: float


@dataclass(frozen=True, slots=True)
class ResourceAvailable:
    resource: str
    amount: int


@dataclass(frozen=True, slots=True)
class RoadAccess:
    distance: int


@dataclass(frozen=True, slots=True)
class And:
    conditions: tuple[Condition, ...]


@dataclass(frozen=True, slots=True)
class Or:
    conditions: tuple[Condition, ...]


@dataclass(frozen=True, slots=True)
class Not:
    condition: Condition


Condition = Union[
    TerrainType,
    ElevationRange,
    NearWater,
    MinDistanceFrom,
    MaxDistanceFrom,
    AdjacentTo,
    SlopeRange,
    ViewDistance,
    WindExposure,
    ResourceAvailable,
    RoadAccess,
    And,
    Or,
    Not,
]


def walk(condition: Condition) -> Iterator[Condition]:
    """Yield every node of the tree, depth first, parents before children."""
    yield condition
    match condition:
        case And(conditions=children) | Or(conditions=children):
            for child in children:
                yield from walk(child)
        case Not(condition=child):
            yield from walk(child)


def describe(condition: Condition) -> str:
    """Short human-readable rendering used in diagnostics."""
    match condition:
        case TerrainType(terrain=t):
            return f"TerrainType({t.name})"
        case And(conditions=children):
            return "And(" + ", ".join(describe(c) for c in children) + ")"
        case Or(conditions=children):
            return "Or(" + ", ".join(describe(c) for c in children) + ")"
        case Not(condition=child):
            return f"Not({describe(child)})"
        case _:
            return repr(condition)
