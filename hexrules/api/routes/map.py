"""GET /api/v1/map — terrain and elevation of the last generated world."""

from __future__ import annotations

from typing import Iterable

from fastapi import APIRouter, Depends, HTTPException

from hexrules.api.dependencies import get_generation_service
from hexrules.api.generation_service import GenerationService
from hexrules.api.schemas import MapResponse

router = APIRouter()


def run_length_encode(values: Iterable[int]) -> list[int]:
    """RLE encode: [value, count, value, count, ...]"""
    rle: list[int] = []
    cur_val: int | None = None
    cur_count = 0
    for v in values:
        if v == cur_val:
            cur_count += 1
            continue
        if cur_val is not None:
            rle.append(cur_val)
            rle.append(cur_count)
        cur_val = v
        cur_count = 1
    if cur_val is not None:
        rle.append(cur_val)
        rle.append(cur_count)
    return rle


@router.get("/map", response_model=MapResponse)
def get_map(service: GenerationService = Depends(get_generation_service)) -> MapResponse:
    result, (width, height) = service.latest()
    if result is None:
        raise HTTPException(status_code=404, detail="No world generated yet.")

    world = result.world
    cells = [world.cells[pos] for pos in world.region]
    return MapResponse(
        width=width,
        height=height,
        grid=run_length_encode(int(c.terrain) for c in cells),
        elevation=run_length_encode(c.elevation for c in cells),
    )
