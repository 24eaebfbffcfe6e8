"""Engine systems: RNG, spatial indexing, environment, evaluation and layout."""

from hexrules.systems.rng import DeterministicRNG
from hexrules.systems.spatial_index import SpatialIndex
from hexrules.systems.environment import TerrainEnvironment
from hexrules.systems.evaluator import ConditionEvaluator
from hexrules.systems.layout import LayoutGenerator

__all__ = ["ConditionEvaluator", "DeterministicRNG", "LayoutGenerator", "SpatialIndex", "TerrainEnvironment"]
