"""Bucketed spatial index over placed structures, water, roads and resources."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from hexrules.core.hex import Hex

if TYPE_CHECKING:
    from hexrules.core.structures import PlacedStructure


class HexBuckets:
    """Grid-based bucket map from ``(q // size, r // size)`` to hex sets."""

    __slots__ = ("_cell_size", "_cells", "_count")

    def __init__(self, cell_size: int = 8) -> None:
        self._cell_size = cell_size
        self._cells: dict[tuple[int, int], set[Hex]] = defaultdict(set)
        self._count = 0

    def _key(self, pos: Hex) -> tuple[int, int]:
        return pos.q // self._cell_size, pos.r // self._cell_size

    def __len__(self) -> int:
        return self._count

    def insert(self, pos: Hex) -> None:
        bucket = self._cells[self._key(pos)]
        if pos not in bucket:
            bucket.add(pos)
            self._count += 1

    def remove(self, pos: Hex) -> None:
        key = self._key(pos)
        bucket = self._cells.get(key)
        if bucket is not None and pos in bucket:
            bucket.discard(pos)
            self._count -= 1
            if not bucket:
                del self._cells[key]

    def query_radius(self, pos: Hex, radius: int) -> list[Hex]:
        """Every stored hex within hex distance *radius* of *pos*."""
        # Hex distance <= r implies |dq| <= r and |dr| <= r
        cq, cr = self._key(pos)
        span = (radius // self._cell_size) + 1
        result: list[Hex] = []
        for dq in range(-span, span + 1):
            for dr in range(-span, span + 1):
                bucket = self._cells.get((cq + dq, cr + dr))
                if bucket:
                    result.extend(h for h in bucket if h.distance(pos) <= radius)
        return result

    def nearest(self, pos: Hex, limit: int | None = None) -> tuple[int, Hex] | None:
        """Closest stored hex as ``(distance, hex)``; ties go to the lowest hex."""
        if limit is None:
            pool = [h for bucket in self._cells.values() for h in bucket]
        else:
            pool = self.query_radius(pos, limit)
        if not pool:
            return None
        return min((h.distance(pos), h) for h in pool)

    def copy(self) -> HexBuckets:
        new = HexBuckets.__new__(HexBuckets)
        new._cell_size = self._cell_size
        new._cells = defaultdict(set, {k: set(v) for k, v in self._cells.items()})
        new._count = self._count
        return new


class SpatialIndex:
    """Answers nearest-of-type and within-distance questions.

    Kept current by ``WorldState``'s mutators, so later rules in a pass
    see the placements of earlier ones.
    """

    __slots__ = ("_cell_size", "_by_type", "_type_counts", "_all_structures", "_water", "_roads", "_resources")

    def __init__(self, cell_size: int = 8) -> None:
        self._cell_size = cell_size
        self._by_type: dict[str, HexBuckets] = {}
        self._type_counts: dict[str, int] = defaultdict(int)
        self._all_structures = HexBuckets(cell_size)
        self._water = HexBuckets(cell_size)
        self._roads = HexBuckets(cell_size)
        self._resources: dict[str, dict[Hex, int]] = defaultdict(dict)

    # -- structures --

    def add_structure(self, placed: PlacedStructure) -> None:
        buckets = self._by_type.get(placed.structure_type)
        if buckets is None:
            buckets = self._by_type[placed.structure_type] = HexBuckets(self._cell_size)
        for pos in placed.cells:
            buckets.insert(pos)
            self._all_structures.insert(pos)
        self._type_counts[placed.structure_type] += 1

    def structure_count(self, structure_type: str) -> int:
        return self._type_counts.get(structure_type, 0)

    def nearest_structure_distance(self, structure_type: str, pos: Hex, limit: int | None = None) -> int | None:
        """Distance to the closest cell of any *structure_type* structure."""
        buckets = self._by_type.get(structure_type)
        if buckets is None:
            return None
        found = buckets.nearest(pos, limit)
        return found[0] if found else None

    def nearest_structure_cell(self, pos: Hex, limit: int | None = None) -> Hex | None:
        found = self._all_structures.nearest(pos, limit)
        return found[1] if found else None

    def structure_cells_of(self, structure_type: str, pos: Hex, radius: int) -> list[Hex]:
        buckets = self._by_type.get(structure_type)
        return buckets.query_radius(pos, radius) if buckets else []

    # -- water --

    def set_water(self, pos: Hex, is_water: bool) -> None:
        if is_water:
            self._water.insert(pos)
        else:
            self._water.remove(pos)

    def nearest_water_distance(self, pos: Hex, limit: int | None = None) -> int | None:
        found = self._water.nearest(pos, limit)
        return found[0] if found else None

    # -- roads --

    def add_road(self, pos: Hex) -> None:
        self._roads.insert(pos)

    def road_within(self, pos: Hex, distance: int) -> bool:
        return bool(self._roads.query_radius(pos, distance))

    # -- resources --

    def add_resource(self, pos: Hex, resource_type: str, amount: int) -> None:
        deposits = self._resources[resource_type]
        deposits[pos] = deposits.get(pos, 0) + amount

    def resource_within(self, pos: Hex, resource_type: str, radius: int) -> int:
        deposits = self._resources.get(resource_type)
        if not deposits:
            return 0
        return sum(amount for cell, amount in deposits.items() if cell.distance(pos) <= radius)

    # -- copy --

    def copy(self) -> SpatialIndex:
        new = SpatialIndex.__new__(SpatialIndex)
        new._cell_size = self._cell_size
        new._by_type = {t: b.copy() for t, b in self._by_type.items()}
        new._type_counts = defaultdict(int, self._type_counts)
        new._all_structures = self._all_structures.copy()
        new._water = self._water.copy()
        new._roads = self._roads.copy()
        new._resources = defaultdict(dict, {t: dict(d) for t, d in self._resources.items()})
        return new
