"""Action context, outcomes, and the shared validate-then-commit helper.

Handlers plan a set of ``CellWrite`` entries, then hand them to ``commit``,
which checks the occupancy ledger and the elevation bands before touching
the world. Handlers raise ``GenerationError`` subclasses; the executor turns
them into ``ActionOutcome`` values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from hexrules.core.enums import Terrain
from hexrules.core.errors import CapacityError, ConflictError, GenerationError, ValidationError

if TYPE_CHECKING:
    from hexrules.config import GenerationConfig
    from hexrules.core.hex import Hex
    from hexrules.core.rules import TemplateLibrary
    from hexrules.core.snapshot import Snapshot
    from hexrules.core.structures import PlacedStructure
    from hexrules.core.world_state import WorldState
    from hexrules.engine.occupancy import OccupancyLedger
    from hexrules.systems.environment import EnvironmentProvider
    from hexrules.systems.layout import LayoutGenerator
    from hexrules.systems.rng import RandomStream


@dataclass(slots=True)
class ActionContext:
    """Everything one action needs at one candidate cell."""

    world: WorldState
    snapshot: Snapshot              # the view the rule's conditions were evaluated on
    ledger: OccupancyLedger
    rng: RandomStream
    config: GenerationConfig
    environment: EnvironmentProvider
    library: TemplateLibrary
    layout: LayoutGenerator
    rule_name: str
    seq: int
    action_index: int
    target: Hex
    selection: frozenset[Hex] = frozenset()


@dataclass(frozen=True, slots=True)
class CellWrite:
    """A planned mutation of one cell. ``None`` fields are left untouched."""

    pos: Hex
    terrain: Terrain | None = None
    elevation: int | None = None
    water_depth: int = 0
    height: int | None = None
    marker: str | None = None
    road: bool = False


@dataclass(slots=True)
class AppliedChange:
    """What an action did. Partial failures live in ``conflicts``/``rejected``."""

    cells: list[Hex] = field(default_factory=list)
    conflicts: list[Hex] = field(default_factory=list)
    rejected: list[tuple[Hex, str]] = field(default_factory=list)
    structures: list[PlacedStructure] = field(default_factory=list)
    splices: list[str] = field(default_factory=list)
    halted: CapacityError | None = None  # set when a multi-step action stopped early

    def merge(self, other: AppliedChange) -> None:
        self.cells.extend(other.cells)
        self.conflicts.extend(other.conflicts)
        self.rejected.extend(other.rejected)
        self.structures.extend(other.structures)
        self.splices.extend(other.splices)
        if other.halted is not None:
            self.halted = other.halted


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    change: AppliedChange | None = None
    error: GenerationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, change: AppliedChange) -> ActionOutcome:
        return cls(change=change)

    @classmethod
    def failure(cls, error: GenerationError, change: AppliedChange | None = None) -> ActionOutcome:
        return cls(change=change, error=error)


def commit(
    ctx: ActionContext,
    writes: Iterable[CellWrite],
    atomic: bool = False,
    tolerance: int = 0,
) -> AppliedChange:
    """Validate *writes* against the ledger and bands, then apply them.

    Atomic commits write everything or nothing: more than *tolerance*
    conflicting cells raises ConflictError, any band violation raises
    ValidationError. Non-atomic commits drop the offending cells and report
    them in the returned change.
    """
    planned: dict[Hex, CellWrite] = {}
    for w in writes:
        planned[w.pos] = w
    change = AppliedChange()

    blocked = ctx.ledger.blocked(planned, ctx.seq)
    if blocked:
        if atomic and len(blocked) > tolerance:
            raise ConflictError(
                f"{len(blocked)} cell(s) already claimed by a higher-priority rule", blocked
            )
        change.conflicts.extend(blocked)
        for pos in blocked:
            del planned[pos]

    valid: list[CellWrite] = []
    for pos in sorted(planned):
        w = planned[pos]
        try:
            ctx.world.check_write(pos, terrain=w.terrain, elevation=w.elevation)
        except ValidationError as exc:
            if atomic:
                raise
            change.rejected.append((pos, str(exc)))
            continue
        valid.append(w)

    world = ctx.world
    for w in valid:
        world.update_cell(w.pos, terrain=w.terrain, elevation=w.elevation, water_depth=w.water_depth, height=w.height)
        if w.marker is not None:
            world.set_marker(w.pos, w.marker)
        if w.road:
            world.add_road(w.pos)
        change.cells.append(w.pos)

    ctx.ledger.claim(change.cells, ctx.seq, ctx.rule_name)
    return change
