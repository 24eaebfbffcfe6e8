"""Mutable authoritative world state — only mutated by the rule engine's writer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Mapping

from hexrules.core.enums import Terrain, WaterFeatureKind
from hexrules.core.errors import ValidationError
from hexrules.core.hex import Hex, parallelogram
from hexrules.core.structures import PlacedStructure, Structure

if TYPE_CHECKING:
    from hexrules.config import GenerationConfig
    from hexrules.systems.layout import StructureLayout
    from hexrules.systems.spatial_index import SpatialIndex


@dataclass(slots=True)
class HexCell:
    """Per-cell state. ``occupant`` is a placed structure id."""

    terrain: Terrain = Terrain.PLAIN
    elevation: int = 0
    water_depth: int = 0
    occupant: int | None = None
    height: int = 0
    marker: str | None = None

    def copy(self) -> HexCell:
        return HexCell(
            terrain=self.terrain,
            elevation=self.elevation,
            water_depth=self.water_depth,
            occupant=self.occupant,
            height=self.height,
            marker=self.marker,
        )


@dataclass(frozen=True, slots=True)
class ElevationBands:
    """Elevation limits per terrain. Violations are errors, never clamped."""

    min_elevation: int = -10
    max_elevation: int = 15
    snow_min_elevation: int = 5
    lava_max_elevation: int = 2

    @classmethod
    def from_config(cls, config: GenerationConfig) -> ElevationBands:
        return cls(
            min_elevation=config.min_elevation,
            max_elevation=config.max_elevation,
            snow_min_elevation=config.snow_min_elevation,
            lava_max_elevation=config.lava_max_elevation,
        )

    def violation(self, terrain: Terrain, elevation: int) -> str | None:
        """Describe why (*terrain*, *elevation*) is invalid, or None."""
        if not self.min_elevation <= elevation <= self.max_elevation:
            return f"elevation {elevation} outside [{self.min_elevation}, {self.max_elevation}]"
        if terrain == Terrain.SNOW and elevation < self.snow_min_elevation:
            return f"SNOW needs elevation >= {self.snow_min_elevation}, got {elevation}"
        if terrain == Terrain.LAVA and elevation > self.lava_max_elevation:
            return f"LAVA needs elevation <= {self.lava_max_elevation}, got {elevation}"
        return None


@dataclass(frozen=True, slots=True)
class WaterFeature:
    feature_type: WaterFeatureKind
    origin: Hex
    cells: tuple[Hex, ...]


class WorldState:
    """The single source of truth for one generation pass."""

    __slots__ = (
        "seed", "cells", "spatial_index", "bands", "structures", "resources",
        "water_features", "roads", "_region", "_next_structure_id",
    )

    def __init__(
        self,
        seed: int,
        cells: Mapping[Hex, HexCell],
        spatial_index: SpatialIndex,
        bands: ElevationBands | None = None,
    ) -> None:
        self.seed: int = seed
        self.cells: dict[Hex, HexCell] = dict(cells)
        self.spatial_index: SpatialIndex = spatial_index
        self.bands: ElevationBands = bands or ElevationBands()
        self.structures: dict[int, PlacedStructure] = {}
        self.resources: dict[Hex, dict[str, int]] = {}
        self.water_features: list[WaterFeature] = []
        self.roads: set[Hex] = set()
        self._region: tuple[Hex, ...] = tuple(sorted(self.cells))
        self._next_structure_id: int = 1
        for pos in self._region:
            cell = self.cells[pos]
            problem = self.bands.violation(cell.terrain, cell.elevation)
            if problem is not None:
                raise ValidationError(f"invalid initial cell {pos}: {problem}")
            if cell.terrain == Terrain.WATER:
                self.spatial_index.set_water(pos, True)

    @classmethod
    def parallelogram(
        cls,
        width: int,
        height: int,
        spatial_index: SpatialIndex,
        terrain: Terrain = Terrain.PLAIN,
        elevation: int = 0,
        seed: int = 0,
        bands: ElevationBands | None = None,
    ) -> WorldState:
        cells = {pos: HexCell(terrain=terrain, elevation=elevation) for pos in parallelogram(width, height)}
        return cls(seed, cells, spatial_index, bands)

    # -- read access --

    @property
    def region(self) -> tuple[Hex, ...]:
        """Every addressable coordinate in ascending order."""
        return self._region

    def __contains__(self, pos: object) -> bool:
        return pos in self.cells

    def cell(self, pos: Hex) -> HexCell | None:
        return self.cells.get(pos)

    def neighbors(self, pos: Hex) -> list[Hex]:
        return [n for n in pos.neighbors() if n in self.cells]

    def count_named(self, name: str) -> int:
        return sum(1 for s in self.structures.values() if s.name == name)

    def anchors_named(self, name: str) -> list[Hex]:
        return [s.anchor for s in self.structures.values() if s.name == name]

    def resource_amount(self, pos: Hex, resource_type: str) -> int:
        return self.resources.get(pos, {}).get(resource_type, 0)

    # -- validation --

    def check_write(self, pos: Hex, terrain: Terrain | None = None, elevation: int | None = None) -> None:
        """Raise ValidationError if the resulting cell would break a band."""
        cell = self.cells.get(pos)
        if cell is None:
            raise ValidationError(f"{pos} is outside the region")
        new_terrain = cell.terrain if terrain is None else terrain
        new_elevation = cell.elevation if elevation is None else elevation
        problem = self.bands.violation(new_terrain, new_elevation)
        if problem is not None:
            raise ValidationError(f"{pos}: {problem}")

    # -- mutation --

    def update_cell(
        self,
        pos: Hex,
        terrain: Terrain | None = None,
        elevation: int | None = None,
        water_depth: int = 0,
        height: int | None = None,
    ) -> None:
        """Apply terrain and elevation together, validated as one combination."""
        self.check_write(pos, terrain=terrain, elevation=elevation)
        cell = self.cells[pos]
        if elevation is not None:
            cell.elevation = elevation
        if height is not None:
            cell.height = height
        if terrain is None:
            return
        was_water = cell.terrain == Terrain.WATER
        cell.terrain = terrain
        cell.water_depth = water_depth if terrain == Terrain.WATER else 0
        is_water = terrain == Terrain.WATER
        if was_water != is_water:
            self.spatial_index.set_water(pos, is_water)

    def set_terrain(self, pos: Hex, terrain: Terrain, water_depth: int = 0, height: int | None = None) -> None:
        self.update_cell(pos, terrain=terrain, water_depth=water_depth, height=height)

    def set_elevation(self, pos: Hex, elevation: int) -> None:
        self.update_cell(pos, elevation=elevation)

    def set_marker(self, pos: Hex, marker: str) -> None:
        if pos not in self.cells:
            raise ValidationError(f"{pos} is outside the region")
        self.cells[pos].marker = marker

    def add_road(self, pos: Hex) -> None:
        if pos not in self.roads:
            self.roads.add(pos)
            self.spatial_index.add_road(pos)

    def add_resource(self, pos: Hex, resource_type: str, amount: int) -> None:
        if pos not in self.cells:
            raise ValidationError(f"{pos} is outside the region")
        bucket = self.resources.setdefault(pos, {})
        bucket[resource_type] = bucket.get(resource_type, 0) + amount
        self.spatial_index.add_resource(pos, resource_type, amount)

    def add_water_feature(self, feature: WaterFeature) -> None:
        self.water_features.append(feature)

    def place_structure(
        self,
        structure: Structure,
        anchor: Hex,
        cells: Iterable[Hex],
        rule_name: str,
        variant: str | None = None,
        layout: StructureLayout | None = None,
    ) -> PlacedStructure:
        """Register a structure whose cells have already been stamped."""
        sid = self._next_structure_id
        self._next_structure_id += 1
        placed = PlacedStructure(
            structure_id=sid,
            structure=structure,
            anchor=anchor,
            cells=frozenset(cells),
            rule_name=rule_name,
            variant=variant,
            layout=layout,
        )
        for pos in placed.cells:
            self.cells[pos].occupant = sid
        self.structures[sid] = placed
        self.spatial_index.add_structure(placed)
        return placed
