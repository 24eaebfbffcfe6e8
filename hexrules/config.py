"""Generation configuration with sensible defaults."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GenerationConfig:
    """Immutable configuration for a generation pass."""

    # World
    world_seed: int = 42
    region_width: int = 32
    region_height: int = 32

    # Workers
    num_workers: int = 1
    worker_chunk_size: int = 256

    # Scheduling
    candidate_scan_cap: int | None = None   # None = scan the whole region
    overlap_tolerance: int = 0              # conflicting footprint cells a placement may skip
    recheck_conditions_at_commit: bool = False  # True = skip matches invalidated by earlier writes (STALE)

    # Spatial index
    spatial_cell_size: int = 8

    # Elevation bands
    min_elevation: int = -10
    max_elevation: int = 15
    snow_min_elevation: int = 5
    lava_max_elevation: int = 2

    # Environment
    resource_search_radius: int = 3
    max_view_range: int = 20
    elevation_scale: float = 1.0            # vertical units per hex width, for slopes

    # Actions
    road_waypoint_spacing: int = 4
    lake_depth: int = 2
    pond_depth: int = 1

    # Logging
    log_level: str = "INFO"
