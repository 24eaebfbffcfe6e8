"""WaterAction — grows lakes and ponds breadth-first from the target."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from hexrules.actions.base import AppliedChange, CellWrite, commit
from hexrules.core.enums import Terrain, WaterFeatureKind
from hexrules.core.errors import ValidationError
from hexrules.core.world_state import WaterFeature

if TYPE_CHECKING:
    from hexrules.actions.base import ActionContext
    from hexrules.core.hex import Hex
    from hexrules.core.rules import CreateWaterFeature


def _can_flood(pos: Hex, ctx: ActionContext) -> bool:
    cell = ctx.world.cell(pos)
    return cell is not None and cell.terrain != Terrain.WALL and cell.occupant is None


def grow_body(start: Hex, size: int, ctx: ActionContext) -> list[Hex]:
    """Up to *size* floodable cells in BFS order from *start*."""
    body: list[Hex] = []
    seen = {start}
    queue: deque[Hex] = deque([start])
    while queue and len(body) < size:
        pos = queue.popleft()
        body.append(pos)
        for n in pos.neighbors():
            if n not in seen and _can_flood(n, ctx):
                seen.add(n)
                queue.append(n)
    return body


class WaterAction:
    """Stateless handler for CreateWaterFeature."""

    @staticmethod
    def create(action: CreateWaterFeature, ctx: ActionContext) -> AppliedChange:
        if action.size <= 0:
            raise ValidationError(f"water feature size must be positive, got {action.size}")
        if not _can_flood(ctx.target, ctx):
            raise ValidationError(f"{ctx.target} cannot hold water")
        depth = ctx.config.lake_depth if action.feature_type == WaterFeatureKind.LAKE else ctx.config.pond_depth
        body = grow_body(ctx.target, action.size, ctx)
        change = commit(ctx, [CellWrite(pos, terrain=Terrain.WATER, water_depth=depth) for pos in body])
        if change.cells:
            ctx.world.add_water_feature(WaterFeature(action.feature_type, ctx.target, tuple(change.cells)))
        return change
