"""StructureAction — validates and stamps structure footprints.

A placement is all-or-nothing: every check runs before the first write, and
the footprint is committed atomically. Conflicting cells are tolerated only up
to the action's overlap tolerance; tolerated cells are left unwritten.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hexrules.actions.base import AppliedChange, CellWrite, commit
from hexrules.core.enums import Domain
from hexrules.core.errors import CapacityError, ConflictError, GenerationError, ValidationError
from hexrules.core.hex import DIRECTIONS, Hex
from hexrules.core.structures import apply_variant, resolve_structure

if TYPE_CHECKING:
    from hexrules.actions.base import ActionContext
    from hexrules.core.rules import PlaceStructure, PlaceStructureCluster
    from hexrules.core.structures import Structure

logger = logging.getLogger(__name__)


def _tolerance(explicit: int | None, ctx: ActionContext) -> int:
    return ctx.config.overlap_tolerance if explicit is None else explicit


def choose_variant(structure: Structure, ctx: ActionContext) -> tuple[Structure, str | None]:
    """Roll once against the cumulative variant probabilities.

    When the roll lands past the last variant the base structure is used.
    """
    if not structure.variants:
        return structure, None
    roll = ctx.rng.next_float(Domain.VARIANT)
    cumulative = 0.0
    for variant in structure.variants:
        cumulative += variant.probability
        if roll < cumulative:
            return apply_variant(structure, variant), variant.name
    return structure, None


class StructureAction:
    """Stateless handler for PlaceStructure and PlaceStructureCluster."""

    @staticmethod
    def place(action: PlaceStructure, ctx: ActionContext) -> AppliedChange:
        structure = resolve_structure(action.structure, ctx.library.structures)
        return StructureAction.place_at(structure, ctx.target, ctx, _tolerance(action.overlap_tolerance, ctx))

    @staticmethod
    def place_cluster(action: PlaceStructureCluster, ctx: ActionContext) -> AppliedChange:
        """Place ``count`` copies, walking the search origin around the target.

        The i-th origin is the previous one moved ``spacing`` steps along
        direction ``i % 6``. A member with no valid site is reported and
        skipped; reaching ``max_count`` halts the cluster.
        """
        if action.count <= 0:
            raise ValidationError(f"cluster count must be positive, got {action.count}")
        structure = resolve_structure(action.structure, ctx.library.structures)
        tolerance = _tolerance(action.overlap_tolerance, ctx)
        radius = max(1, action.spacing // 2)
        pattern = structure.rules.growth_pattern

        change = AppliedChange()
        base = ctx.target
        for i in range(action.count):
            if i > 0:
                base = base + DIRECTIONS[i % 6].scale(action.spacing)
            origin = base
            if action.variation:
                origin = base + Hex(
                    ctx.rng.next_int(Domain.CLUSTER, -radius, radius),
                    ctx.rng.next_int(Domain.CLUSTER, -radius, radius),
                )

            placed = False
            last_error: GenerationError | None = None
            for anchor in pattern.search_order(origin, radius):
                if anchor not in ctx.world:
                    continue
                try:
                    change.merge(StructureAction.place_at(structure, anchor, ctx, tolerance))
                except CapacityError as exc:
                    change.halted = exc
                    return change
                except (ValidationError, ConflictError) as exc:
                    last_error = exc
                    continue
                placed = True
                break

            if not placed:
                reason = str(last_error) if last_error else "search area lies outside the region"
                change.rejected.append((origin, f"cluster member {i}: no valid site ({reason})"))
        return change

    @staticmethod
    def place_at(structure: Structure, anchor: Hex, ctx: ActionContext, tolerance: int) -> AppliedChange:
        """Check every placement constraint at *anchor*, then stamp the footprint."""
        world = ctx.world
        structure, variant = choose_variant(structure, ctx)
        rules = structure.rules

        if rules.alignment is not None and not rules.alignment.accepts(anchor):
            raise ValidationError(f"{anchor} is off the {rules.alignment.spacing}-cell alignment grid")
        if rules.max_count is not None and world.count_named(structure.name) >= rules.max_count:
            raise CapacityError(f"{structure.name!r} reached max_count {rules.max_count}")
        if rules.min_spacing > 0:
            for other in world.anchors_named(structure.name):
                if other.distance(anchor) < rules.min_spacing:
                    raise ValidationError(
                        f"{structure.name!r} at {other} is closer than min_spacing {rules.min_spacing}"
                    )

        footprint = structure.footprint_at(anchor)
        outside = sorted(pos for pos in footprint if pos not in world)
        if outside:
            raise ValidationError(f"footprint leaves the region at {outside[0]}")

        occupied = [pos for pos in footprint if world.cells[pos].occupant is not None]
        conflicts = sorted(set(ctx.ledger.blocked(footprint, ctx.seq)) | set(occupied))
        if len(conflicts) > tolerance:
            raise ConflictError(
                f"{structure.name!r} footprint overlaps {len(conflicts)} claimed cell(s), tolerance {tolerance}",
                conflicts,
            )
        skipped = set(conflicts)
        cells = [pos for pos in sorted(footprint) if pos not in skipped]

        requirement = structure.elevation_requirements
        if requirement is not None:
            if requirement.relative_to_base:
                base = ctx.snapshot.cell(anchor)
                if base is None or not requirement.accepts(base.elevation):
                    raise ValidationError(f"base elevation at {anchor} outside [{requirement.min}, {requirement.max}]")
            else:
                for pos in cells:
                    if not requirement.accepts(world.cells[pos].elevation):
                        raise ValidationError(
                            f"elevation {world.cells[pos].elevation} at {pos} outside "
                            f"[{requirement.min}, {requirement.max}]"
                        )

        if structure.required_terrain is not None:
            for pos in cells:
                if world.cells[pos].terrain != structure.required_terrain:
                    raise ValidationError(f"{pos} is not {structure.required_terrain.name}")

        layout = ctx.layout.generate(structure, anchor, cells)
        marks = layout.stamps()
        for decoration in structure.decorations or ():
            marks.setdefault(anchor + decoration.position, f"decoration:{decoration.decoration_type}")

        writes = [
            CellWrite(pos, terrain=footprint[pos].terrain, height=footprint[pos].height, marker=marks.get(pos))
            for pos in cells
        ]
        change = commit(ctx, writes, atomic=True, tolerance=tolerance)
        change.conflicts.extend(conflicts)
        placed = world.place_structure(structure, anchor, change.cells, ctx.rule_name, variant, layout)
        change.structures.append(placed)
        logger.debug("Placed %s #%d at %s (%d cells)", structure.name, placed.structure_id, anchor, len(change.cells))
        return change
