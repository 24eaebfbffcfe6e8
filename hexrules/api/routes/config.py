"""GET /api/v1/config — expose generation configuration."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from hexrules.api.dependencies import get_generation_service
from hexrules.api.generation_service import GenerationService
from hexrules.api.schemas import GenerationConfigResponse

router = APIRouter()


@router.get("/config", response_model=GenerationConfigResponse)
def get_config(
    service: GenerationService = Depends(get_generation_service),
) -> GenerationConfigResponse:
    cfg = service.config
    return GenerationConfigResponse(
        world_seed=cfg.world_seed,
        region_width=cfg.region_width,
        region_height=cfg.region_height,
        num_workers=cfg.num_workers,
        candidate_scan_cap=cfg.candidate_scan_cap,
        overlap_tolerance=cfg.overlap_tolerance,
        recheck_conditions_at_commit=cfg.recheck_conditions_at_commit,
        min_elevation=cfg.min_elevation,
        max_elevation=cfg.max_elevation,
        snow_min_elevation=cfg.snow_min_elevation,
        lava_max_elevation=cfg.lava_max_elevation,
        resource_search_radius=cfg.resource_search_radius,
        max_view_range=cfg.max_view_range,
        road_waypoint_spacing=cfg.road_waypoint_spacing,
    )
