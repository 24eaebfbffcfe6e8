"""TerrainAction — direct cell writes and area elevation operations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hexrules.actions.base import AppliedChange, CellWrite, commit
from hexrules.core.enums import Domain
from hexrules.core.errors import ValidationError
from hexrules.core.rules import Flatten, Lower, Raise, Roughen, Smooth

if TYPE_CHECKING:
    from hexrules.actions.base import ActionContext
    from hexrules.core.hex import Hex
    from hexrules.core.rules import ModifyTerrain, SetElevation, SetTerrain, TerrainOperation


class TerrainAction:
    """Stateless handler for SetTerrain, SetElevation and ModifyTerrain."""

    @staticmethod
    def set_terrain(action: SetTerrain, ctx: ActionContext) -> AppliedChange:
        return commit(ctx, [CellWrite(ctx.target, terrain=action.terrain)])

    @staticmethod
    def set_elevation(action: SetElevation, ctx: ActionContext) -> AppliedChange:
        return commit(ctx, [CellWrite(ctx.target, elevation=action.elevation)])

    @staticmethod
    def modify(action: ModifyTerrain, ctx: ActionContext) -> AppliedChange:
        """Apply one operation to every in-region cell within ``radius``.

        All new values derive from the elevations before the pass. Cells whose
        elevation would not change are not written.
        """
        if action.radius < 0:
            raise ValidationError(f"radius must be >= 0, got {action.radius}")
        world = ctx.world
        area = sorted(pos for pos in ctx.target.within(action.radius) if pos in world)
        before = {pos: world.cells[pos].elevation for pos in area}
        writes = []
        for pos in area:
            new = _apply(action.operation, pos, before[pos], ctx)
            if new != before[pos]:
                writes.append(CellWrite(pos, elevation=new))
        return commit(ctx, writes)


def _apply(operation: TerrainOperation, pos: Hex, elevation: int, ctx: ActionContext) -> int:
    match operation:
        case Flatten(target=target):
            return target
        case Raise(amount=amount):
            return elevation + amount
        case Lower(amount=amount):
            return elevation - amount
        case Smooth():
            ring = [elevation] + [ctx.world.cells[n].elevation for n in ctx.world.neighbors(pos)]
            return round(sum(ring) / len(ring))
        case Roughen(intensity=intensity):
            jitter = round(intensity * 3)
            if jitter <= 0:
                return elevation
            return elevation + ctx.rng.next_int(Domain.TERRAIN, -jitter, jitter)
    raise TypeError(f"unknown terrain operation {operation!r}")
