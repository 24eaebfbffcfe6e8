"""ActionExecutor — dispatches one action at one candidate and reports the outcome.

No ``GenerationError`` escapes ``apply``: the rule engine only ever sees
``ActionOutcome`` values and turns failures into diagnostics.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hexrules.actions.base import ActionOutcome, AppliedChange
from hexrules.actions.paths import PathAction
from hexrules.actions.resources import ResourceAction
from hexrules.actions.structure import StructureAction
from hexrules.actions.terrain import TerrainAction
from hexrules.actions.water import WaterAction
from hexrules.core.errors import GenerationError, LoadError
from hexrules.core.rules import (
    ApplyTemplate,
    CreateWaterFeature,
    GenerateRoad,
    GenerateWall,
    ModifyTerrain,
    PlaceStructure,
    PlaceStructureCluster,
    SetElevation,
    SetTerrain,
    SpawnResource,
)

if TYPE_CHECKING:
    from hexrules.actions.base import ActionContext
    from hexrules.core.rules import Action

logger = logging.getLogger(__name__)


class ActionExecutor:
    """Routes each action variant to its stateless handler."""

    __slots__ = ()

    def apply(self, action: Action, ctx: ActionContext) -> ActionOutcome:
        try:
            change = self._dispatch(action, ctx)
        except GenerationError as exc:
            logger.debug(
                "%s action#%d at %s rejected (%s): %s",
                ctx.rule_name, ctx.action_index, ctx.target, exc.kind.name, exc,
            )
            return ActionOutcome.failure(exc)
        if change.halted is not None:
            return ActionOutcome.failure(change.halted, change)
        return ActionOutcome.success(change)

    @staticmethod
    def _dispatch(action: Action, ctx: ActionContext) -> AppliedChange:
        match action:
            case PlaceStructure():
                return StructureAction.place(action, ctx)
            case PlaceStructureCluster():
                return StructureAction.place_cluster(action, ctx)
            case ModifyTerrain():
                return TerrainAction.modify(action, ctx)
            case SetTerrain():
                return TerrainAction.set_terrain(action, ctx)
            case SetElevation():
                return TerrainAction.set_elevation(action, ctx)
            case GenerateWall():
                return PathAction.wall(action, ctx)
            case GenerateRoad():
                return PathAction.road(action, ctx)
            case CreateWaterFeature():
                return WaterAction.create(action, ctx)
            case SpawnResource():
                return ResourceAction.spawn(action, ctx)
            case ApplyTemplate(template_name=name):
                if ctx.library.template(name) is None:
                    raise LoadError(f"unknown template {name!r}")
                return AppliedChange(splices=[name])
        raise TypeError(f"unknown action {action!r}")
