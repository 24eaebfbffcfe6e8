"""Environmental providers: wind, slope, view range and movement cost.

The engine treats these as pure functions of a world view. ``TerrainEnvironment``
is the default provider; callers may pass any object with the same methods.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Protocol

from hexrules.core.enums import Terrain
from hexrules.core.hex import DIRECTIONS, Hex, slope_degrees

if TYPE_CHECKING:
    from hexrules.config import GenerationConfig
    from hexrules.core.snapshot import WorldView

IMPASSABLE = math.inf

# Base movement cost per terrain
TERRAIN_COST: dict[Terrain, float] = {
    Terrain.PLAIN: 1.0,
    Terrain.ROUGH: 2.0,
    Terrain.WATER: 3.0,
    Terrain.WALL: IMPASSABLE,
    Terrain.SAND: 2.0,
    Terrain.SNOW: 2.0,
    Terrain.SWAMP: 3.0,
    Terrain.LAVA: IMPASSABLE,
}


class EnvironmentProvider(Protocol):
    def wind_at(self, view: WorldView, pos: Hex) -> float: ...

    def slope_between(self, view: WorldView, a: Hex, b: Hex) -> float: ...

    def visible_range(self, view: WorldView, pos: Hex) -> int: ...

    def movement_cost(self, view: WorldView, a: Hex, b: Hex) -> float: ...


class TerrainEnvironment:
    """Derives every environmental input from terrain and elevation alone."""

    __slots__ = ("_config",)

    def __init__(self, config: GenerationConfig) -> None:
        self._config = config

    def wind_at(self, view: WorldView, pos: Hex) -> float:
        """Half relative height, half openness (neighbours not sheltering the cell)."""
        cell = view.cell(pos)
        if cell is None:
            return 0.0
        cfg = self._config
        span = max(cfg.max_elevation - cfg.min_elevation, 1)
        height = min(max((cell.elevation - cfg.min_elevation) / span, 0.0), 1.0)
        sheltered = 0
        for n in pos.neighbors():
            other = view.cell(n)
            if other is not None and (other.elevation > cell.elevation or other.terrain == Terrain.WALL):
                sheltered += 1
        openness = 1.0 - sheltered / 6
        return round(0.5 * height + 0.5 * openness, 6)

    def slope_between(self, view: WorldView, a: Hex, b: Hex) -> float:
        ca, cb = view.cell(a), view.cell(b)
        if ca is None or cb is None:
            return 0.0
        return slope_degrees(cb.elevation - ca.elevation, a.distance(b), self._config.elevation_scale)

    def visible_range(self, view: WorldView, pos: Hex) -> int:
        """Longest unobstructed straight run in any of the six directions."""
        cell = view.cell(pos)
        if cell is None:
            return 0
        best = 0
        for step in DIRECTIONS:
            for k in range(1, self._config.max_view_range + 1):
                other = view.cell(pos + step.scale(k))
                if other is None or other.terrain == Terrain.WALL or other.elevation > cell.elevation:
                    break
                best = max(best, k)
        return best

    def movement_cost(self, view: WorldView, a: Hex, b: Hex) -> float:
        ca, cb = view.cell(a), view.cell(b)
        if ca is None or cb is None:
            return IMPASSABLE
        base = TERRAIN_COST[cb.terrain]
        if base == IMPASSABLE or TERRAIN_COST[ca.terrain] == IMPASSABLE:
            return IMPASSABLE
        diff = abs(cb.elevation - ca.elevation)
        climb = float(diff if diff <= 1 else diff * 2)
        pair = {ca.terrain, cb.terrain}
        if Terrain.WATER in pair or Terrain.SNOW in pair:
            climb *= 2
        elif Terrain.ROUGH in pair:
            climb *= 1.5
        return base + climb
