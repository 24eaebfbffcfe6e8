"""Immutable snapshot of the world state for condition-evaluation workers."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Protocol

from hexrules.core.hex import Hex
from hexrules.core.structures import PlacedStructure
from hexrules.core.world_state import HexCell, WorldState
from hexrules.systems.spatial_index import SpatialIndex


class WorldView(Protocol):
    """The read-only surface shared by ``WorldState`` and ``Snapshot``."""

    spatial_index: SpatialIndex

    @property
    def region(self) -> tuple[Hex, ...]: ...

    def __contains__(self, pos: object) -> bool: ...

    def cell(self, pos: Hex) -> HexCell | None: ...

    def neighbors(self, pos: Hex) -> list[Hex]: ...


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Read-only view of the world, safe to share across threads.

    Cells are copied and wrapped in a MappingProxyType; the spatial index is a
    private copy, so the writer can mutate the live world afterwards.
    """

    seed: int
    cells: Mapping[Hex, HexCell]
    spatial_index: SpatialIndex
    structures: tuple[PlacedStructure, ...]
    region: tuple[Hex, ...]

    @classmethod
    def from_world(cls, world: WorldState) -> Snapshot:
        return cls(
            seed=world.seed,
            cells=MappingProxyType({pos: c.copy() for pos, c in world.cells.items()}),
            spatial_index=world.spatial_index.copy(),
            structures=tuple(world.structures.values()),
            region=world.region,
        )

    def __contains__(self, pos: object) -> bool:
        return pos in self.cells

    def cell(self, pos: Hex) -> HexCell | None:
        return self.cells.get(pos)

    def neighbors(self, pos: Hex) -> list[Hex]:
        return [n for n in pos.neighbors() if n in self.cells]
