"""ResourceAction — drops resource deposits at or around the target."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from hexrules.actions.base import AppliedChange
from hexrules.core.enums import Domain
from hexrules.core.errors import ValidationError

if TYPE_CHECKING:
    from hexrules.actions.base import ActionContext
    from hexrules.core.rules import SpawnResource


class ResourceAction:
    """Stateless handler for SpawnResource."""

    @staticmethod
    def spawn(action: SpawnResource, ctx: ActionContext) -> AppliedChange:
        """Deposit the whole amount at the target, or scatter unit deposits.

        With ``spread > 0`` each unit lands on an in-region cell within
        ``spread`` of the target, chosen by the RNG.
        """
        if action.amount <= 0:
            raise ValidationError(f"resource amount must be positive, got {action.amount}")
        world = ctx.world
        if action.spread > 0:
            area = sorted(pos for pos in ctx.target.within(action.spread) if pos in world)
            deposits = Counter(ctx.rng.choice(Domain.RESOURCE, area) for _ in range(action.amount))
        else:
            deposits = Counter({ctx.target: action.amount})

        change = AppliedChange()
        blocked = set(ctx.ledger.blocked(deposits, ctx.seq))
        for pos in sorted(deposits):
            if pos in blocked:
                change.conflicts.append(pos)
                continue
            world.add_resource(pos, action.resource_type, deposits[pos])
            change.cells.append(pos)
        ctx.ledger.claim(change.cells, ctx.seq, ctx.rule_name)
        return change
