"""Engine layer: rule scheduling, occupancy ledger, worker pool, template expansion."""

from hexrules.engine.occupancy import OccupancyLedger
from hexrules.engine.rule_engine import GenerationResult, RuleEngine, ScheduledRule, apply_rules
from hexrules.engine.templates import RuleSetValidator
from hexrules.engine.worker_pool import CandidateWorkerPool

__all__ = [
    "CandidateWorkerPool",
    "GenerationResult",
    "OccupancyLedger",
    "RuleEngine",
    "RuleSetValidator",
    "ScheduledRule",
    "apply_rules",
]
