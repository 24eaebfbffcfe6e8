"""Condition evaluator — a recursive match over the closed condition variants.

Evaluation is a pure function of (tree, world view, cell): it reads the view
and its spatial index and never writes, so it can run on worker threads over
an immutable ``Snapshot``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Iterator

from hexrules.core.conditions import (
    AdjacentTo,
    And,
    Condition,
    ElevationRange,
    MaxDistanceFrom,
    MinDistanceFrom,
    NearWater,
    Not,
    Or,
    ResourceAvailable,
    RoadAccess,
    SlopeRange,
    TerrainType,
    ViewDistance,
    WindExposure,
)

if TYPE_CHECKING:
    from hexrules.config import GenerationConfig
    from hexrules.core.hex import Hex
    from hexrules.core.snapshot import WorldView
    from hexrules.core.world_state import HexCell
    from hexrules.systems.environment import EnvironmentProvider


@dataclass(frozen=True, slots=True)
class Evaluation:
    """Truthy when the condition holds; ``failed`` names the node that did not."""

    passed: bool
    failed: Condition | None = None

    def __bool__(self) -> bool:
        return self.passed


_PASS = Evaluation(True)


class ConditionEvaluator:
    """Stateless evaluator bound to an environment provider."""

    __slots__ = ("_environment", "_config")

    def __init__(self, environment: EnvironmentProvider, config: GenerationConfig) -> None:
        self._environment = environment
        self._config = config

    def matches(self, condition: Condition, view: WorldView, pos: Hex) -> bool:
        return self.evaluate(condition, view, pos).passed

    def evaluate_all(self, conditions: Iterable[Condition], view: WorldView, pos: Hex) -> Evaluation:
        """Top-level rule conditions are an implicit And."""
        for condition in conditions:
            result = self.evaluate(condition, view, pos)
            if not result:
                return result
        return _PASS

    def evaluate(self, condition: Condition, view: WorldView, pos: Hex) -> Evaluation:
        match condition:
            case And(conditions=children):
                return self.evaluate_all(children, view, pos)
            case Or(conditions=children):
                for child in children:
                    if self.evaluate(child, view, pos):
                        return _PASS
                return Evaluation(False, condition)
            case Not(condition=child):
                if self.evaluate(child, view, pos):
                    return Evaluation(False, condition)
                return _PASS
        cell = view.cell(pos)
        if cell is None or not self._leaf(condition, view, pos, cell):
            return Evaluation(False, condition)
        return _PASS

    def _leaf(self, condition: Condition, view: WorldView, pos: Hex, cell: HexCell) -> bool:
        spatial = view.spatial_index
        env = self._environment
        match condition:
            case TerrainType(terrain=terrain):
                return cell.terrain == terrain
            case ElevationRange(min=low, max=high):
                return low <= cell.elevation <= high
            case NearWater(distance=d):
                return spatial.nearest_water_distance(pos, d) is not None
            case MinDistanceFrom(structure_type=stype, distance=d):
                # Nothing within d - 1 means the nearest is at least d away (or absent)
                if d <= 0:
                    return True
                return spatial.nearest_structure_distance(stype, pos, d - 1) is None
            case MaxDistanceFrom(structure_type=stype, distance=d):
                return spatial.nearest_structure_distance(stype, pos, d) is not None
            case AdjacentTo(structure_type=stype):
                return spatial.nearest_structure_distance(stype, pos, 1) is not None
            case SlopeRange(min_degrees=low, max_degrees=high):
                slope = max((env.slope_between(view, pos, n) for n in view.neighbors(pos)), default=0.0)
                return low <= slope <= high
            case ViewDistance(min=minimum):
                return env.visible_range(view, pos) >= minimum
            case WindExposure(min=low, max=high):
                return low <= env.wind_at(view, pos) <= high
            case ResourceAvailable(resource=resource, amount=amount):
                radius = self._config.resource_search_radius
                return spatial.resource_within(pos, resource, radius) >= amount
            case RoadAccess(distance=d):
                return spatial.road_within(pos, d)
        raise TypeError(f"unknown condition {condition!r}")


def _unnegated(condition: Condition) -> Iterator[Condition]:
    """Nodes whose truth counts toward a match. ``Not`` subtrees are skipped."""
    yield condition
    match condition:
        case And(conditions=children) | Or(conditions=children):
            for child in children:
                yield from _unnegated(child)


def vacuous_structure_types(conditions: Iterable[Condition], view: WorldView) -> list[str]:
    """Types named by un-negated ``MinDistanceFrom`` that have no placed instance yet.

    Under a ``Not`` the vacuous truth makes the branch fail, so nothing held
    vacuously there.
    """
    found: list[str] = []
    for root in conditions:
        for node in _unnegated(root):
            if isinstance(node, MinDistanceFrom) and node.structure_type not in found:
                if view.spatial_index.structure_count(node.structure_type) == 0:
                    found.append(node.structure_type)
    return found
