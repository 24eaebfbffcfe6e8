"""Metadata endpoints — terrains, rule vocabulary and the built-in templates.

Condition and action tags are read from the loader's discriminated unions, so
this listing always matches what a rule document may contain.
"""

from __future__ import annotations

from typing import get_args

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from hexrules.api.dependencies import get_generation_service
from hexrules.api.generation_service import GenerationService
from hexrules.core.enums import ConnectionType, DiagnosticKind, Terrain, WaterFeatureKind
from hexrules.loader.documents import ActionDoc, ConditionDoc, TerrainOperationDoc
from hexrules.systems.environment import TERRAIN_COST

router = APIRouter(prefix="/metadata", tags=["Metadata"])


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class EnumEntry(BaseModel):
    id: int
    name: str


class TerrainEntry(BaseModel):
    id: int
    name: str
    movement_cost: float | None  # None = impassable


class EnumsResponse(BaseModel):
    terrains: list[TerrainEntry]
    connection_types: list[EnumEntry]
    water_features: list[EnumEntry]
    diagnostic_kinds: list[EnumEntry]


class VocabularyResponse(BaseModel):
    conditions: list[str]
    actions: list[str]
    terrain_operations: list[str]


class TemplateEntry(BaseModel):
    name: str
    description: str
    tags: list[str]
    rules: list[str]


class TemplatesResponse(BaseModel):
    templates: list[TemplateEntry]
    structures: list[str]


def _tags(union: object) -> list[str]:
    """Document class names of an ``Annotated[Union[...], Field(...)]`` minus the suffix."""
    members = get_args(get_args(union)[0])
    return [cls.__name__.removesuffix("Doc") for cls in members]


def _entries(enum_cls) -> list[EnumEntry]:
    return [EnumEntry(id=int(m), name=m.name) for m in enum_cls]


@router.get("/enums", response_model=EnumsResponse)
def get_enums() -> EnumsResponse:
    """Terrains with their movement cost, connection types, water features, diagnostic kinds."""
    terrains = []
    for t in Terrain:
        cost = TERRAIN_COST[t]
        terrains.append(TerrainEntry(id=int(t), name=t.name, movement_cost=None if cost == float("inf") else cost))
    return EnumsResponse(
        terrains=terrains,
        connection_types=_entries(ConnectionType),
        water_features=_entries(WaterFeatureKind),
        diagnostic_kinds=_entries(DiagnosticKind),
    )


@router.get("/vocabulary", response_model=VocabularyResponse)
def get_vocabulary() -> VocabularyResponse:
    return VocabularyResponse(
        conditions=_tags(ConditionDoc),
        actions=_tags(ActionDoc),
        terrain_operations=_tags(TerrainOperationDoc),
    )


@router.get("/templates", response_model=TemplatesResponse)
def get_templates(service: GenerationService = Depends(get_generation_service)) -> TemplatesResponse:
    library = service.library
    templates = [
        TemplateEntry(
            name=t.name,
            description=t.description,
            tags=list(t.tags),
            rules=[r.name for r in t.rules],
        )
        for t in sorted(library.templates.values(), key=lambda t: t.name)
    ]
    return TemplatesResponse(templates=templates, structures=sorted(library.structures))
