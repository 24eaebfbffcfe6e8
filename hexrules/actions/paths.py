"""PathAction — walls and roads traced across the grid."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hexrules.actions.base import AppliedChange, CellWrite, commit
from hexrules.core.enums import Domain
from hexrules.core.errors import ValidationError
from hexrules.core.hex import DIRECTIONS
from hexrules.core.rules import Winding
from hexrules.systems.environment import IMPASSABLE

if TYPE_CHECKING:
    from hexrules.actions.base import ActionContext
    from hexrules.core.hex import Hex
    from hexrules.core.rules import GenerateRoad, GenerateWall

logger = logging.getLogger(__name__)


def _unique(cells: list[Hex]) -> list[Hex]:
    seen: set[Hex] = set()
    out = []
    for pos in cells:
        if pos not in seen:
            seen.add(pos)
            out.append(pos)
    return out


def on_perimeter(pos: Hex, selection: frozenset[Hex], ctx: ActionContext) -> bool:
    """True when *pos* has an in-region neighbour outside *selection*."""
    if not selection:
        return True
    return any(n not in selection for n in ctx.world.neighbors(pos))


def winding_path(start: Hex, end: Hex, variation: float, ctx: ActionContext) -> list[Hex]:
    """Straight line with interior waypoints nudged by the RNG.

    Waypoints sit every ``road_waypoint_spacing`` cells along the straight
    line; each interior one moves up to ``round(variation * spacing)`` hexes.
    """
    line = start.line_to(end)
    spacing = max(ctx.config.road_waypoint_spacing, 1)
    waypoints = line[::spacing]
    if waypoints[-1] != end:
        waypoints.append(end)
    max_offset = round(variation * spacing)
    if max_offset > 0:
        for i in range(1, len(waypoints) - 1):
            direction = ctx.rng.next_int(Domain.ROAD, 0, 5)
            steps = ctx.rng.next_int(Domain.ROAD, 0, max_offset)
            waypoints[i] = waypoints[i] + DIRECTIONS[direction].scale(steps)
    path: list[Hex] = [start]
    for a, b in zip(waypoints, waypoints[1:]):
        path.extend(a.line_to(b)[1:])
    return _unique(path)


class PathAction:
    """Stateless handler for GenerateWall and GenerateRoad."""

    @staticmethod
    def wall(action: GenerateWall, ctx: ActionContext) -> AppliedChange:
        if action.to is not None:
            line = ctx.target.line_to(action.to)
            cells = [pos for pos in line if pos in ctx.world]
            outside = [(pos, "wall leaves the region") for pos in line if pos not in ctx.world]
        elif on_perimeter(ctx.target, ctx.selection, ctx):
            cells = [ctx.target]
            outside = []
        else:
            return AppliedChange()
        writes = [CellWrite(pos, terrain=action.material, height=action.height) for pos in cells]
        change = commit(ctx, writes)
        change.rejected.extend(outside)
        return change

    @staticmethod
    def road(action: GenerateRoad, ctx: ActionContext) -> AppliedChange:
        """Lay a road from the target to ``to`` or the nearest structure.

        Structure cells are never overwritten, so a road to a structure stops
        at its perimeter. Impassable cells are reported and left alone.
        """
        if action.width < 1:
            raise ValidationError(f"road width must be >= 1, got {action.width}")
        world = ctx.world
        end = action.to
        if end is None:
            end = world.spatial_index.nearest_structure_cell(ctx.target)
            if end is None:
                raise ValidationError("no destination: 'to' is unset and no structure has been placed")

        if isinstance(action.style, Winding):
            path = winding_path(ctx.target, end, action.style.variation, ctx)
        else:
            path = ctx.target.line_to(end)

        rings = action.width // 2
        cells = _unique([pos for centre in path for pos in centre.within(rings)])

        writes = []
        impassable: list[tuple[Hex, str]] = []
        for pos in cells:
            cell = world.cell(pos)
            if cell is None or cell.occupant is not None:
                continue
            if ctx.environment.movement_cost(world, pos, pos) == IMPASSABLE:
                impassable.append((pos, f"{cell.terrain.name} is impassable for a road"))
                continue
            writes.append(CellWrite(pos, terrain=action.material, road=True))
        change = commit(ctx, writes)
        change.rejected.extend(impassable)
        if impassable:
            logger.debug("Road from %s skipped %d impassable cell(s)", ctx.target, len(impassable))
        return change
