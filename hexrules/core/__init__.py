"""Core data models: hex geometry, conditions, structures, rules and world state."""

from hexrules.core.enums import ConnectionType, DiagnosticKind, Domain, GrowthKind, Terrain, WaterFeatureKind
from hexrules.core.errors import CapacityError, ConflictError, GenerationError, LoadError, ValidationError
from hexrules.core.hex import Hex
from hexrules.core.structures import PlacedStructure, Structure
from hexrules.core.rules import Rule, Template, TemplateLibrary
from hexrules.core.world_state import HexCell, WorldState
from hexrules.core.snapshot import Snapshot

__all__ = [
    "CapacityError",
    "ConflictError",
    "ConnectionType",
    "DiagnosticKind",
    "Domain",
    "GenerationError",
    "GrowthKind",
    "Hex",
    "HexCell",
    "LoadError",
    "PlacedStructure",
    "Rule",
    "Snapshot",
    "Structure",
    "Template",
    "TemplateLibrary",
    "Terrain",
    "ValidationError",
    "WaterFeatureKind",
    "WorldState",
]
