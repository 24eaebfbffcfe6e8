"""RuleEngine — the single-writer scheduler of a generation pass.

Pass cycle:
  1. Validation: resolve every template reference and structure (LoadError aborts)
  2. Scheduling: sort rules by priority, declaration order breaking ties
  3. Per rule: snapshot, evaluate candidates (possibly in workers), collect matches
  4. Per match: optionally recheck against the live world, apply actions in order, splice templates
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Mapping, Sequence

from hexrules.actions.base import ActionContext
from hexrules.actions.executor import ActionExecutor
from hexrules.config import GenerationConfig
from hexrules.core.enums import DiagnosticKind
from hexrules.core.errors import CapacityError
from hexrules.core.rules import TemplateLibrary
from hexrules.core.snapshot import Snapshot
from hexrules.core.world_state import ElevationBands, WorldState
from hexrules.engine.occupancy import OccupancyLedger
from hexrules.engine.templates import RuleSetValidator, child_rules, schedule_order
from hexrules.engine.worker_pool import CandidateWorkerPool
from hexrules.systems.environment import TerrainEnvironment
from hexrules.systems.evaluator import ConditionEvaluator, vacuous_structure_types
from hexrules.systems.layout import LayoutGenerator
from hexrules.systems.rng import DeterministicRNG
from hexrules.systems.spatial_index import SpatialIndex
from hexrules.utils.diagnostics import Diagnostic, DiagnosticLog

if TYPE_CHECKING:
    from hexrules.actions.base import ActionOutcome
    from hexrules.core.conditions import Condition
    from hexrules.core.hex import Hex
    from hexrules.core.rules import Rule, Template
    from hexrules.core.structures import PlacedStructure
    from hexrules.core.world_state import HexCell
    from hexrules.systems.environment import EnvironmentProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScheduledRule:
    """A rule in the pass schedule. Spliced template rules carry their cell restriction."""

    rule: Rule
    restrict_to: frozenset[Hex] | None = None


@dataclass(frozen=True, slots=True)
class GenerationResult:
    world: WorldState
    mutated_cells: tuple[Hex, ...]
    diagnostics: tuple[Diagnostic, ...]
    structures: tuple[PlacedStructure, ...]

    def diagnostics_of(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]


class _Pass:
    """Mutable bookkeeping for one run."""

    __slots__ = ("world", "rng", "ledger", "log", "mutated", "placed", "seq")

    def __init__(self, world: WorldState, seed: int) -> None:
        self.world = world
        self.rng = DeterministicRNG(seed)
        self.ledger = OccupancyLedger()
        self.log = DiagnosticLog()
        self.mutated: set[Hex] = set()
        self.placed: list[PlacedStructure] = []
        self.seq = 0

    def note(self, rule: str, kind: DiagnosticKind, message: str,
             cell: Hex | None = None, action_index: int | None = None) -> None:
        self.log.append(Diagnostic(self.seq, rule, kind, message, cell, action_index))


class RuleEngine:
    """Applies an ordered rule set to a world, one rule at a time.

    Only this class mutates the world during a pass. Condition evaluation
    reads a per-rule Snapshot and may run on worker threads.
    """

    __slots__ = ("_config", "_library", "_environment", "_evaluator", "_executor", "_layout", "_pool")

    def __init__(
        self,
        config: GenerationConfig | None = None,
        library: TemplateLibrary | None = None,
        environment: EnvironmentProvider | None = None,
    ) -> None:
        self._config = config or GenerationConfig()
        self._library = library if library is not None else TemplateLibrary()
        self._environment = environment or TerrainEnvironment(self._config)
        self._evaluator = ConditionEvaluator(self._environment, self._config)
        self._executor = ActionExecutor()
        self._layout = LayoutGenerator()
        self._pool = CandidateWorkerPool(self._config, self._evaluator)

    @property
    def library(self) -> TemplateLibrary:
        return self._library

    def run(
        self,
        rules: Sequence[Rule],
        world: WorldState,
        seed: int,
        region: Iterable[Hex] | None = None,
    ) -> GenerationResult:
        """Run one pass. Raises LoadError before any mutation if the rules are malformed."""
        RuleSetValidator(self._library).validate(rules)

        state = _Pass(world, seed)
        restrict = frozenset(region) if region is not None else None
        queue = [ScheduledRule(rule, restrict) for rule in schedule_order(rules)]
        logger.info("=== Generation started (seed=%d, rules=%d, cells=%d) ===", seed, len(queue), len(world.region))

        i = 0
        while i < len(queue):
            entry = queue[i]
            splices = self._run_rule(entry, state)
            inserted: list[ScheduledRule] = []
            for name, cells in splices.items():
                template = self._library.template(name)
                if template is None:
                    continue
                inserted.extend(ScheduledRule(child, frozenset(cells)) for child in child_rules(template))
                logger.info("Rule %s spliced template %s at %d cell(s)", entry.rule.name, name, len(cells))
            queue[i + 1:i + 1] = inserted
            state.seq += 1
            i += 1

        result = GenerationResult(
            world=world,
            mutated_cells=tuple(sorted(state.mutated)),
            diagnostics=state.log.entries(),
            structures=tuple(state.placed),
        )
        logger.info(
            "=== Generation finished: %d rule(s), %d cell(s) mutated, %d structure(s), %d diagnostic(s) ===",
            state.seq, len(result.mutated_cells), len(result.structures), len(result.diagnostics),
        )
        return result

    def shutdown(self) -> None:
        self._pool.shutdown()

    # -- internals --

    def _candidates(self, entry: ScheduledRule, world: WorldState) -> list[Hex]:
        if entry.restrict_to is None:
            return list(world.region)
        return sorted(pos for pos in entry.restrict_to if pos in world)

    def _run_rule(self, entry: ScheduledRule, state: _Pass) -> dict[str, set[Hex]]:
        """Evaluate and apply one rule. Returns template splice requests by template name."""
        rule = entry.rule
        world = state.world
        splices: dict[str, set[Hex]] = {}

        snapshot = Snapshot.from_world(world)
        candidates = self._candidates(entry, world)
        cap = self._config.candidate_scan_cap
        if cap is not None and len(candidates) > cap:
            state.note(rule.name, DiagnosticKind.CAPACITY,
                       f"candidate scan cap {cap} reached, {len(candidates) - cap} cell(s) left unvisited")
            logger.warning("Rule %s: scan capped at %d of %d candidates", rule.name, cap, len(candidates))
            candidates = candidates[:cap]

        matches = self._pool.matching(rule.conditions, snapshot, candidates)
        if not matches:
            state.note(rule.name, DiagnosticKind.NO_CANDIDATES, "no candidates matched")
            logger.info("Rule %s [p=%d]: no candidates", rule.name, rule.priority)
            return splices

        for structure_type in vacuous_structure_types(rule.conditions, snapshot):
            state.note(rule.name, DiagnosticKind.VACUOUS,
                       f"no {structure_type!r} structure exists, MinDistanceFrom held vacuously")

        selection = frozenset(matches)
        applied = 0
        for target in matches:
            if self._config.recheck_conditions_at_commit and not self._still_matches(rule.conditions, world, target):
                state.note(rule.name, DiagnosticKind.STALE,
                           "conditions no longer hold after earlier writes", cell=target)
                continue
            halt: CapacityError | None = None
            for index, action in enumerate(rule.actions):
                ctx = ActionContext(
                    world=world,
                    snapshot=snapshot,
                    ledger=state.ledger,
                    rng=state.rng.stream(rule.name, index, target),
                    config=self._config,
                    environment=self._environment,
                    library=self._library,
                    layout=self._layout,
                    rule_name=rule.name,
                    seq=state.seq,
                    action_index=index,
                    target=target,
                    selection=selection,
                )
                outcome = self._executor.apply(action, ctx)
                self._record(outcome, rule.name, index, target, state, splices)
                if not outcome.ok:
                    if isinstance(outcome.error, CapacityError):
                        halt = outcome.error
                    break
            else:
                applied += 1
            if halt is not None:
                logger.info("Rule %s stopped early at %s: %s", rule.name, target, halt)
                break

        logger.info("Rule %s [p=%d]: %d match(es), %d applied", rule.name, rule.priority, len(matches), applied)
        return splices

    def _still_matches(self, conditions: Sequence[Condition], world: WorldState, target: Hex) -> bool:
        return bool(self._evaluator.evaluate_all(conditions, world, target))

    @staticmethod
    def _record(
        outcome: ActionOutcome,
        rule: str,
        index: int,
        target: Hex,
        state: _Pass,
        splices: dict[str, set[Hex]],
    ) -> None:
        change = outcome.change
        if change is not None:
            state.mutated.update(change.cells)
            state.placed.extend(change.structures)
            if change.conflicts:
                cells = sorted(set(change.conflicts))
                state.note(rule, DiagnosticKind.CONFLICT,
                           f"{len(cells)} cell(s) claimed by a higher-priority rule: {cells}",
                           cell=target, action_index=index)
            for pos, reason in change.rejected:
                state.note(rule, DiagnosticKind.VALIDATION, reason, cell=pos, action_index=index)
            for name in change.splices:
                splices.setdefault(name, set()).add(target)
        if outcome.error is not None:
            state.note(rule, outcome.error.kind, str(outcome.error), cell=target, action_index=index)


def apply_rules(
    region: WorldState | Mapping[Hex, HexCell],
    rules: Sequence[Rule],
    seed: int,
    templates: TemplateLibrary | Iterable[Template] | None = None,
    config: GenerationConfig | None = None,
    environment: EnvironmentProvider | None = None,
) -> GenerationResult:
    """Run *rules* once over *region* and return what changed.

    *region* is either a prepared world or a mapping of cells, in which case a
    world is built around it with the configured bands and index.
    """
    cfg = config or GenerationConfig()
    if isinstance(region, WorldState):
        world = region
    else:
        world = WorldState(seed, region, SpatialIndex(cfg.spatial_cell_size), ElevationBands.from_config(cfg))
    if templates is None or isinstance(templates, TemplateLibrary):
        library = templates
    else:
        library = TemplateLibrary(templates)
    engine = RuleEngine(cfg, library, environment)
    try:
        return engine.run(rules, world, seed)
    finally:
        engine.shutdown()
