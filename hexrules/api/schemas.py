"""Pydantic request and response models for the REST API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from hexrules.loader.documents import RuleDoc, StructureDoc, TemplateDoc


# --- Requests ---

class CellOverride(BaseModel):
    q: int
    r: int
    terrain: str = "Plain"
    elevation: int = 0


class GenerateRequest(BaseModel):
    """A parallelogram region, its starting cells, and the rules to run over it.

    ``run`` names templates (built-in or supplied in ``templates``) whose rules
    are executed after the inline ``rules``.
    """

    seed: int | None = None
    width: int = Field(32, ge=1, le=256)
    height: int = Field(32, ge=1, le=256)
    base_terrain: str = "Plain"
    base_elevation: int = 0
    cells: list[CellOverride] = Field(default_factory=list)
    templates: list[TemplateDoc] = Field(default_factory=list)
    structures: list[StructureDoc] = Field(default_factory=list)
    rules: list[RuleDoc] = Field(default_factory=list)
    run: list[str] = Field(default_factory=list)


# --- Generation results ---

class CellSchema(BaseModel):
    q: int
    r: int
    terrain: str
    elevation: int
    water_depth: int = 0
    height: int = 0
    occupant: int | None = None
    marker: str | None = None
    road: bool = False


class StructureSchema(BaseModel):
    structure_id: int
    name: str
    structure_type: str
    anchor: tuple[int, int]
    cells: list[tuple[int, int]]
    rule: str
    variant: str | None = None


class DiagnosticSchema(BaseModel):
    seq: int
    rule: str
    kind: str
    message: str
    cell: tuple[int, int] | None = None
    action_index: int | None = None


class GenerateResponse(BaseModel):
    seed: int
    width: int
    height: int
    mutated_cells: list[CellSchema]
    structures: list[StructureSchema]
    diagnostics: list[DiagnosticSchema]


# --- Map ---

class MapResponse(BaseModel):
    """Terrain ids of the last world, RLE-encoded as ``[value, count, ...]``.

    Cells are ordered by ``q`` then ``r``, so every run of ``height`` cells is
    one column of the parallelogram.
    """

    width: int
    height: int
    grid: list[int]
    elevation: list[int]


# --- Config ---

class GenerationConfigResponse(BaseModel):
    world_seed: int
    region_width: int
    region_height: int
    num_workers: int
    candidate_scan_cap: int | None
    overlap_tolerance: int
    recheck_conditions_at_commit: bool
    min_elevation: int
    max_elevation: int
    snow_min_elevation: int
    lava_max_elevation: int
    resource_search_radius: int
    max_view_range: int
    road_waypoint_spacing: int
