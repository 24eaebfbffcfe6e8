"""Actions, rules, templates, and the library that names them."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Union

from hexrules.core.conditions import Condition
from hexrules.core.enums import Terrain, WaterFeatureKind
from hexrules.core.hex import Hex
from hexrules.core.structures import Structure


# ---------------------------------------------------------------------------
# Terrain operations
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Flatten:
    target: int


@dataclass(frozen=True, slots=True)
class Raise:
    amount: int


@dataclass(frozen=True, slots=True)
class Lower:
    amount: int


@dataclass(frozen=True, slots=True)
class Smooth:
    pass


@dataclass(frozen=True, slots=True)
class Roughen:
    intensity: float


TerrainOperation = Union[Flatten, Raise, Lower, Smooth, Roughen]


@dataclass(frozen=True, slots=True)
class Straight:
    pass


@dataclass(frozen=True, slots=True)
class Winding:
    variation: float


RoadStyle = Union[Straight, Winding]


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class PlaceStructure:
    structure: Structure
    overlap_tolerance: int | None = None


@dataclass(frozen=True, slots=True)
class PlaceStructureCluster:
    structure: Structure
    count: int
    spacing: int
    variation: bool = False
    overlap_tolerance: int | None = None


@dataclass(frozen=True, slots=True)
class ModifyTerrain:
    radius: int
    operation: TerrainOperation


@dataclass(frozen=True, slots=True)
class SetTerrain:
    terrain: Terrain


@dataclass(frozen=True, slots=True)
class SetElevation:
    elevation: int


@dataclass(frozen=True, slots=True)
class GenerateWall:
    height: int
    material: Terrain = Terrain.WALL
    to: Hex | None = None


@dataclass(frozen=True, slots=True)
class GenerateRoad:
    width: int
    material: Terrain
    style: RoadStyle = field(default_factory=Straight)
    to: Hex | None = None


@dataclass(frozen=True, slots=True)
class CreateWaterFeature:
    feature_type: WaterFeatureKind
    size: int


@dataclass(frozen=True, slots=True)
class SpawnResource:
    resource_type: str
    amount: int
    spread: int = 0


@dataclass(frozen=True, slots=True)
class ApplyTemplate:
    template_name: str


Action = Union[
    PlaceStructure,
    PlaceStructureCluster,
    ModifyTerrain,
    SetTerrain,
    SetElevation,
    GenerateWall,
    GenerateRoad,
    CreateWaterFeature,
    SpawnResource,
    ApplyTemplate,
]


# ---------------------------------------------------------------------------
# Rules and templates
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Rule:
    """Conditions are AND-ed; actions run in order at every matching cell."""

    name: str
    priority: int
    conditions: tuple[Condition, ...] = ()
    actions: tuple[Action, ...] = ()

    def structures(self) -> Iterator[Structure]:
        for action in self.actions:
            if isinstance(action, (PlaceStructure, PlaceStructureCluster)):
                yield action.structure

    def template_references(self) -> Iterator[str]:
        for action in self.actions:
            if isinstance(action, ApplyTemplate):
                yield action.template_name


@dataclass(frozen=True, slots=True)
class Template:
    """A named, reusable bundle of rules."""

    name: str
    rules: tuple[Rule, ...]
    description: str = ""
    tags: tuple[str, ...] = ()


class TemplateLibrary:
    """Templates by name plus base structures that ``parent_template`` can name."""

    __slots__ = ("_templates", "_structures")

    def __init__(
        self,
        templates: Iterable[Template] = (),
        structures: Iterable[Structure] = (),
    ) -> None:
        self._templates: dict[str, Template] = {}
        self._structures: dict[str, Structure] = {}
        for template in templates:
            self.add_template(template)
        for structure in structures:
            self.add_structure(structure)

    def add_template(self, template: Template) -> None:
        self._templates[template.name] = template
        # Structures declared inside a template are valid inheritance bases
        for rule in template.rules:
            for structure in rule.structures():
                self._structures.setdefault(structure.name, structure)

    def add_structure(self, structure: Structure) -> None:
        self._structures[structure.name] = structure

    def template(self, name: str) -> Template | None:
        return self._templates.get(name)

    @property
    def templates(self) -> Mapping[str, Template]:
        return MappingProxyType(self._templates)

    @property
    def structures(self) -> Mapping[str, Structure]:
        return MappingProxyType(self._structures)

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)
