"""Pydantic documents for rule, template and structure files.

Every tagged variant is a discriminated union on ``type``, so an unknown
condition or action tag fails validation instead of reaching the engine.
Action payloads may be written flat or wrapped in ``params``. Each document
converts itself to the frozen engine model with ``to_model()``.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Annotated, Any, Callable, Literal, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from hexrules.core import conditions as cond
from hexrules.core import rules as act
from hexrules.core import structures as st
from hexrules.core.enums import ConnectionType, GrowthKind, Terrain, WaterFeatureKind
from hexrules.core.hex import Hex


def _enum_tag(enum_cls: type[IntEnum]) -> BeforeValidator:
    """Accept ``"Plain"``, ``{"type": "Plain"}``, a member, or its integer value."""

    def parse(value: Any) -> Any:
        if isinstance(value, dict):
            value = value.get("type")
        if isinstance(value, enum_cls):
            return value
        if isinstance(value, int):
            return enum_cls(value)
        if isinstance(value, str):
            try:
                return enum_cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"unknown {enum_cls.__name__} {value!r}") from None
        raise ValueError(f"expected a {enum_cls.__name__} name, got {value!r}")

    return BeforeValidator(parse)


TerrainName = Annotated[Terrain, _enum_tag(Terrain)]
ConnectionName = Annotated[ConnectionType, _enum_tag(ConnectionType)]
WaterFeatureName = Annotated[WaterFeatureKind, _enum_tag(WaterFeatureKind)]


def _tuple_or_none(items: list | None, convert: Callable[[Any], Any] = lambda x: x) -> tuple | None:
    """Empty lists mean "unset" so that they inherit from a parent structure."""
    if not items:
        return None
    return tuple(convert(item) for item in items)


class Document(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class HexDoc(Document):
    """An axial offset. Extra keys (``terrain``, ``z``) are tolerated and ignored."""

    q: int
    r: int

    def to_model(self) -> Hex:
        return Hex(self.q, self.r)


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------

class TerrainTypeDoc(Document):
    type: Literal["TerrainType"]
    terrain: TerrainName

    def to_model(self) -> cond.Condition:
        return cond.TerrainType(self.terrain)


class ElevationRangeDoc(Document):
    type: Literal["ElevationRange"]
    min: int
    max: int

    def to_model(self) -> cond.Condition:
        return cond.ElevationRange(self.min, self.max)


class NearWaterDoc(Document):
    type: Literal["NearWater"]
    distance: int

    def to_model(self) -> cond.Condition:
        return cond.NearWater(self.distance)


class MinDistanceFromDoc(Document):
    type: Literal["MinDistanceFrom"]
    structure_type: str
    distance: int

    def to_model(self) -> cond.Condition:
        return cond.MinDistanceFrom(self.structure_type, self.distance)


class MaxDistanceFromDoc(Document):
    type: Literal["MaxDistanceFrom"]
    structure_type: str
    distance: int

    def to_model(self) -> cond.Condition:
        return cond.MaxDistanceFrom(self.structure_type, self.distance)


class AdjacentToDoc(Document):
    type: Literal["AdjacentTo"]
    structure_type: str

    def to_model(self) -> cond.Condition:
        return cond.AdjacentTo(self.structure_type)


class SlopeRangeDoc(Document):
    type: Literal["SlopeRange"]
    min_degrees: float
    max_degrees: float

    def to_model(self) -> cond.Condition:
        return cond.SlopeRange(self.min_degrees, self.max_degrees)


class ViewDistanceDoc(Document):
    type: Literal["ViewDistance"]
    min: int

    def to_model(self) -> cond.Condition:
        return cond.ViewDistance(self.min)


class WindExposureDoc(Document):
    type: Literal["WindExposure"]
    min: float
    max: float

    def to_model(self) -> cond.Condition:
        return cond.WindExposure(self.min, self.max)


class ResourceAvailableDoc(Document):
    type: Literal["ResourceAvailable"]
    resource: str
    amount: int

    def to_model(self) -> cond.Condition:
        return cond.ResourceAvailable(self.resource, self.amount)


class RoadAccessDoc(Document):
    type: Literal["RoadAccess"]
    distance: int

    def to_model(self) -> cond.Condition:
        return cond.RoadAccess(self.distance)


class AndDoc(Document):
    type: Literal["And"]
    conditions: list[ConditionDoc]

    def to_model(self) -> cond.Condition:
        return cond.And(tuple(c.to_model() for c in self.conditions))


class OrDoc(Document):
    type: Literal["Or"]
    conditions: list[ConditionDoc]

    def to_model(self) -> cond.Condition:
        return cond.Or(tuple(c.to_model() for c in self.conditions))


class NotDoc(Document):
    type: Literal["Not"]
    condition: ConditionDoc

    def to_model(self) -> cond.Condition:
        return cond.Not(self.condition.to_model())


ConditionDoc = Annotated[
    Union[
        TerrainTypeDoc,
        ElevationRangeDoc,
        NearWaterDoc,
        MinDistanceFromDoc,
        MaxDistanceFromDoc,
        AdjacentToDoc,
        SlopeRangeDoc,
        ViewDistanceDoc,
        WindExposureDoc,
        ResourceAvailableDoc,
        RoadAccessDoc,
        AndDoc,
        OrDoc,
        NotDoc,
    ],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Structures
# ---------------------------------------------------------------------------

class FootprintCellDoc(Document):
    q: int
    r: int
    terrain: TerrainName = Terrain.PLAIN
    height: int = 0

    def to_model(self) -> st.FootprintCell:
        return st.FootprintCell(self.q, self.r, self.terrain, self.height)


class ElevationRequirementDoc(Document):
    min: int
    max: int
    relative_to_base: bool = False

    def to_model(self) -> st.ElevationRequirement:
        return st.ElevationRequirement(self.min, self.max, self.relative_to_base)


class GridAlignmentDoc(Document):
    type: Literal["Grid"] = "Grid"
    spacing: int

    def to_model(self) -> st.GridAlignment:
        return st.GridAlignment(self.spacing)


class GrowthPatternDoc(Document):
    type: Literal["Outward", "Inward", "Linear"] = "Outward"
    direction: int = 0

    def to_model(self) -> st.GrowthPattern:
        return st.GrowthPattern(GrowthKind[self.type.upper()], self.direction)


class GenerationRulesDoc(Document):
    min_spacing: int = 0
    max_count: int | None = None
    alignment: GridAlignmentDoc | None = None
    growth_pattern: GrowthPatternDoc | None = None

    def to_model(self) -> st.GenerationRules:
        return st.GenerationRules(
            min_spacing=self.min_spacing,
            max_count=self.max_count,
            alignment=self.alignment.to_model() if self.alignment else None,
            growth_pattern=self.growth_pattern.to_model() if self.growth_pattern else st.GrowthPattern(),
        )


class RoomDoc(Document):
    size: tuple[int, int]
    purpose: str
    required_connections: list[str] = Field(default_factory=list)

    def to_model(self) -> st.Room:
        return st.Room(self.size, self.purpose, tuple(self.required_connections))


class CorridorDoc(Document):
    start: HexDoc
    end: HexDoc
    width: int = 1

    def to_model(self) -> st.Corridor:
        return st.Corridor(self.start.to_model(), self.end.to_model(), self.width)


class InteriorLayoutDoc(Document):
    rooms: list[RoomDoc] = Field(default_factory=list)
    corridors: list[CorridorDoc] = Field(default_factory=list)
    entrances: list[HexDoc] = Field(default_factory=list)

    def to_model(self) -> st.InteriorLayout:
        return st.InteriorLayout(
            rooms=tuple(r.to_model() for r in self.rooms),
            corridors=tuple(c.to_model() for c in self.corridors),
            entrances=tuple(e.to_model() for e in self.entrances),
        )


class ConnectionDoc(Document):
    position: HexDoc
    connection_type: ConnectionName
    required: bool = False

    def to_model(self) -> st.Connection:
        return st.Connection(self.position.to_model(), self.connection_type, self.required)


class ModifyFootprintDoc(Document):
    type: Literal["ModifyTerrain"]
    position: HexDoc
    terrain: TerrainName

    def to_model(self) -> st.Modification:
        return st.ModifyFootprint(self.position.to_model(), self.terrain)


class AddWallDoc(Document):
    type: Literal["AddWall"]
    position: HexDoc
    height: int

    def to_model(self) -> st.Modification:
        return st.AddWall(self.position.to_model(), self.height)


class AddDecorationDoc(Document):
    type: Literal["AddDecoration"]
    decoration_type: str
    position: HexDoc

    def to_model(self) -> st.AddDecoration:
        return st.AddDecoration(self.decoration_type, self.position.to_model())


ModificationDoc = Annotated[
    Union[ModifyFootprintDoc, AddWallDoc, AddDecorationDoc],
    Field(discriminator="type"),
]


class VariantDoc(Document):
    name: str
    probability: float
    modifications: list[ModificationDoc] = Field(default_factory=list)

    def to_model(self) -> st.StructureVariant:
        return st.StructureVariant(self.name, self.probability, tuple(m.to_model() for m in self.modifications))


class StructureDoc(Document):
    """A structure definition. Omitted fields inherit from ``parent_template``."""

    name: str
    structure_type: str | None = None
    footprint: list[FootprintCellDoc] | None = None
    required_terrain: TerrainName | None = None
    elevation_requirements: ElevationRequirementDoc | None = None
    generation_rules: GenerationRulesDoc | None = None
    interior_layout: InteriorLayoutDoc | None = None
    connections: list[ConnectionDoc] | None = None
    tags: list[str] | None = None
    variants: list[VariantDoc] | None = None
    decorations: list[AddDecorationDoc] | None = None
    parent_template: str | None = None

    def to_model(self) -> st.Structure:
        def convert(doc: Any) -> Any:
            return doc.to_model()

        return st.Structure(
            name=self.name,
            structure_type=self.structure_type or None,
            footprint=_tuple_or_none(self.footprint, convert),
            required_terrain=self.required_terrain,
            elevation_requirements=self.elevation_requirements.to_model() if self.elevation_requirements else None,
            generation_rules=self.generation_rules.to_model() if self.generation_rules else None,
            interior_layout=self.interior_layout.to_model() if self.interior_layout else None,
            connections=_tuple_or_none(self.connections, convert),
            tags=_tuple_or_none(self.tags),
            variants=_tuple_or_none(self.variants, convert),
            decorations=_tuple_or_none(self.decorations, convert),
            parent_template=self.parent_template,
        )


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

class FlattenDoc(Document):
    type: Literal["Flatten"]
    target: int

    def to_model(self) -> act.TerrainOperation:
        return act.Flatten(self.target)


class RaiseDoc(Document):
    type: Literal["Raise"]
    amount: int

    def to_model(self) -> act.TerrainOperation:
        return act.Raise(self.amount)


class LowerDoc(Document):
    type: Literal["Lower"]
    amount: int

    def to_model(self) -> act.TerrainOperation:
        return act.Lower(self.amount)


class SmoothDoc(Document):
    type: Literal["Smooth"]

    def to_model(self) -> act.TerrainOperation:
        return act.Smooth()


class RoughenDoc(Document):
    type: Literal["Roughen"]
    intensity: float

    def to_model(self) -> act.TerrainOperation:
        return act.Roughen(self.intensity)


TerrainOperationDoc = Annotated[
    Union[FlattenDoc, RaiseDoc, LowerDoc, SmoothDoc, RoughenDoc],
    Field(discriminator="type"),
]


class StraightDoc(Document):
    type: Literal["Straight"]

    def to_model(self) -> act.RoadStyle:
        return act.Straight()


class WindingDoc(Document):
    type: Literal["Winding"]
    variation: float

    def to_model(self) -> act.RoadStyle:
        return act.Winding(self.variation)


RoadStyleDoc = Annotated[Union[StraightDoc, WindingDoc], Field(discriminator="type")]


class ActionDocument(Document):
    """Base for action documents: lifts a ``params`` mapping to the top level."""

    @model_validator(mode="before")
    @classmethod
    def _flatten_params(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("params"), dict):
            merged = dict(data["params"])
            merged.update({k: v for k, v in data.items() if k != "params"})
            return merged
        return data


class PlaceStructureDoc(ActionDocument):
    type: Literal["PlaceStructure"]
    structure: StructureDoc
    overlap_tolerance: int | None = None

    def to_model(self) -> act.Action:
        return act.PlaceStructure(self.structure.to_model(), self.overlap_tolerance)


class PlaceStructureClusterDoc(ActionDocument):
    type: Literal["PlaceStructureCluster"]
    structure: StructureDoc
    count: int
    spacing: int
    variation: bool = False
    overlap_tolerance: int | None = None

    def to_model(self) -> act.Action:
        return act.PlaceStructureCluster(
            self.structure.to_model(), self.count, self.spacing, self.variation, self.overlap_tolerance
        )


class ModifyTerrainDoc(ActionDocument):
    type: Literal["ModifyTerrain"]
    radius: int
    operation: TerrainOperationDoc

    def to_model(self) -> act.Action:
        return act.ModifyTerrain(self.radius, self.operation.to_model())


class SetTerrainDoc(ActionDocument):
    type: Literal["SetTerrain"]
    terrain: TerrainName

    def to_model(self) -> act.Action:
        return act.SetTerrain(self.terrain)


class SetElevationDoc(ActionDocument):
    type: Literal["SetElevation"]
    elevation: int

    def to_model(self) -> act.Action:
        return act.SetElevation(self.elevation)


class GenerateWallDoc(ActionDocument):
    type: Literal["GenerateWall"]
    height: int
    material: TerrainName = Terrain.WALL
    to: HexDoc | None = None

    def to_model(self) -> act.Action:
        return act.GenerateWall(self.height, self.material, self.to.to_model() if self.to else None)


class GenerateRoadDoc(ActionDocument):
    type: Literal["GenerateRoad"]
    width: int
    material: TerrainName
    style: RoadStyleDoc = Field(default_factory=lambda: StraightDoc(type="Straight"))
    to: HexDoc | None = None

    def to_model(self) -> act.Action:
        return act.GenerateRoad(
            self.width, self.material, self.style.to_model(), self.to.to_model() if self.to else None
        )


class CreateWaterFeatureDoc(ActionDocument):
    type: Literal["CreateWaterFeature"]
    feature_type: WaterFeatureName
    size: int

    def to_model(self) -> act.Action:
        return act.CreateWaterFeature(self.feature_type, self.size)


class SpawnResourceDoc(ActionDocument):
    type: Literal["SpawnResource"]
    resource_type: str
    amount: int
    spread: int = 0

    def to_model(self) -> act.Action:
        return act.SpawnResource(self.resource_type, self.amount, self.spread)


class ApplyTemplateDoc(ActionDocument):
    type: Literal["ApplyTemplate"]
    template_name: str

    def to_model(self) -> act.Action:
        return act.ApplyTemplate(self.template_name)


ActionDoc = Annotated[
    Union[
        PlaceStructureDoc,
        PlaceStructureClusterDoc,
        ModifyTerrainDoc,
        SetTerrainDoc,
        SetElevationDoc,
        GenerateWallDoc,
        GenerateRoadDoc,
        CreateWaterFeatureDoc,
        SpawnResourceDoc,
        ApplyTemplateDoc,
    ],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Rules, templates, libraries
# ---------------------------------------------------------------------------

class RuleDoc(Document):
    name: str
    priority: int
    conditions: list[ConditionDoc]
    actions: list[ActionDoc]

    def to_model(self) -> act.Rule:
        return act.Rule(
            name=self.name,
            priority=self.priority,
            conditions=tuple(c.to_model() for c in self.conditions),
            actions=tuple(a.to_model() for a in self.actions),
        )


class TemplateDoc(Document):
    name: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    rules: list[RuleDoc]

    def to_model(self) -> act.Template:
        return act.Template(
            name=self.name,
            rules=tuple(r.to_model() for r in self.rules),
            description=self.description,
            tags=tuple(self.tags),
        )


class LibraryDoc(Document):
    """Several templates plus standalone base structures in one file."""

    templates: list[TemplateDoc] = Field(default_factory=list)
    structures: list[StructureDoc] = Field(default_factory=list)

    def to_model(self) -> act.TemplateLibrary:
        return act.TemplateLibrary(
            templates=[t.to_model() for t in self.templates],
            structures=[s.to_model() for s in self.structures],
        )


for _model in (AndDoc, OrDoc, NotDoc, RuleDoc, TemplateDoc, LibraryDoc):
    _model.model_rebuild()
