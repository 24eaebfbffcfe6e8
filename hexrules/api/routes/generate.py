"""POST /api/v1/generate — run a generation pass and return what changed."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException

from hexrules.api.dependencies import get_generation_service
from hexrules.api.generation_service import GenerationService
from hexrules.api.schemas import (
    CellSchema,
    DiagnosticSchema,
    GenerateRequest,
    GenerateResponse,
    StructureSchema,
)
from hexrules.core.errors import GenerationError

if TYPE_CHECKING:
    from hexrules.engine.rule_engine import GenerationResult

router = APIRouter()


def build_response(result: GenerationResult, width: int, height: int) -> GenerateResponse:
    """Serialize a generation result; shared with the ``generate`` CLI command."""
    world = result.world
    mutated = []
    for pos in result.mutated_cells:
        cell = world.cells[pos]
        mutated.append(CellSchema(
            q=pos.q,
            r=pos.r,
            terrain=cell.terrain.name,
            elevation=cell.elevation,
            water_depth=cell.water_depth,
            height=cell.height,
            occupant=cell.occupant,
            marker=cell.marker,
            road=pos in world.roads,
        ))

    structures = [
        StructureSchema(
            structure_id=s.structure_id,
            name=s.name,
            structure_type=s.structure_type,
            anchor=(s.anchor.q, s.anchor.r),
            cells=[(c.q, c.r) for c in s.iter_cells()],
            rule=s.rule_name,
            variant=s.variant,
        )
        for s in result.structures
    ]

    diagnostics = [
        DiagnosticSchema(
            seq=d.seq,
            rule=d.rule,
            kind=d.kind.name,
            message=d.message,
            cell=(d.cell.q, d.cell.r) if d.cell is not None else None,
            action_index=d.action_index,
        )
        for d in result.diagnostics
    ]

    return GenerateResponse(
        seed=world.seed,
        width=width,
        height=height,
        mutated_cells=mutated,
        structures=structures,
        diagnostics=diagnostics,
    )


@router.post("/generate", response_model=GenerateResponse)
def generate(
    request: GenerateRequest,
    service: GenerationService = Depends(get_generation_service),
) -> GenerateResponse:
    try:
        result = service.generate(request)
    except GenerationError as exc:
        raise HTTPException(status_code=422, detail=f"{exc.kind.name}: {exc}") from exc
    return build_response(result, request.width, request.height)
