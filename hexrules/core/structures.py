"""Structure definitions, inheritance merge, and placed-structure records.

A ``Structure`` read from a rule document may leave any field unset
(``None``). ``parent_template`` names a base structure; resolution merges the
override over the fully-resolved base with ``StructureBuilder`` so that the
explicit value always wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Iterator, Mapping, Union

from hexrules.core.enums import ConnectionType, GrowthKind, Terrain
from hexrules.core.errors import LoadError
from hexrules.core.hex import DIRECTIONS, Hex

if TYPE_CHECKING:
    from hexrules.systems.layout import StructureLayout


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FootprintCell:
    """Relative offset from the anchor with its terrain override."""

    q: int
    r: int
    terrain: Terrain = Terrain.PLAIN
    height: int = 0

    @property
    def offset(self) -> Hex:
        return Hex(self.q, self.r)


@dataclass(frozen=True, slots=True)
class ElevationRequirement:
    min: int
    max: int
    relative_to_base: bool = False

    def accepts(self, elevation: int) -> bool:
        return self.min <= elevation <= self.max


@dataclass(frozen=True, slots=True)
class GridAlignment:
    spacing: int

    def accepts(self, cell: Hex) -> bool:
        if self.spacing <= 1:
            return True
        return cell.q % self.spacing == 0 and cell.r % self.spacing == 0


@dataclass(frozen=True, slots=True)
class GrowthPattern:
    kind: GrowthKind = GrowthKind.OUTWARD
    direction: int = 0

    def search_order(self, origin: Hex, radius: int) -> list[Hex]:
        """Cells to try, in order, when looking for a spot around *origin*."""
        match self.kind:
            case GrowthKind.INWARD:
                order: list[Hex] = []
                for k in range(radius, -1, -1):
                    order.extend(origin.ring(k))
                return order
            case GrowthKind.LINEAR:
                step = DIRECTIONS[self.direction % 6]
                return [origin + step.scale(k) for k in range(radius + 1)]
            case _:
                return list(origin.within(radius))


@dataclass(frozen=True, slots=True)
class GenerationRules:
    min_spacing: int = 0
    max_count: int | None = None
    alignment: GridAlignment | None = None
    growth_pattern: GrowthPattern = field(default_factory=GrowthPattern)


@dataclass(frozen=True, slots=True)
class Room:
    size: tuple[int, int]
    purpose: str
    required_connections: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Corridor:
    start: Hex
    end: Hex
    width: int = 1


@dataclass(frozen=True, slots=True)
class InteriorLayout:
    rooms: tuple[Room, ...] = ()
    corridors: tuple[Corridor, ...] = ()
    entrances: tuple[Hex, ...] = ()


@dataclass(frozen=True, slots=True)
class Connection:
    position: Hex
    connection_type: ConnectionType
    required: bool = False


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ModifyFootprint:
    position: Hex
    terrain: Terrain


@dataclass(frozen=True, slots=True)
class AddWall:
    position: Hex
    height: int


@dataclass(frozen=True, slots=True)
class AddDecoration:
    decoration_type: str
    position: Hex


Modification = Union[ModifyFootprint, AddWall, AddDecoration]


@dataclass(frozen=True, slots=True)
class StructureVariant:
    name: str
    probability: float
    modifications: tuple[Modification, ...] = ()


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Structure:
    """A placeable structure. ``None`` means "unset, inherit from parent"."""

    name: str
    structure_type: str | None = None
    footprint: tuple[FootprintCell, ...] | None = None
    required_terrain: Terrain | None = None
    elevation_requirements: ElevationRequirement | None = None
    generation_rules: GenerationRules | None = None
    interior_layout: InteriorLayout | None = None
    connections: tuple[Connection, ...] | None = None
    tags: tuple[str, ...] | None = None
    variants: tuple[StructureVariant, ...] | None = None
    decorations: tuple[AddDecoration, ...] | None = None
    parent_template: str | None = None

    @property
    def rules(self) -> GenerationRules:
        return self.generation_rules or GenerationRules()

    def footprint_at(self, anchor: Hex) -> dict[Hex, FootprintCell]:
        """Absolute cell -> footprint entry. Later duplicates override earlier ones."""
        return {anchor + cell.offset: cell for cell in self.footprint or ()}


class StructureBuilder:
    """Field-merge construction over an optional base structure."""

    __slots__ = ("_fields",)

    def __init__(self, base: Structure | None = None) -> None:
        self._fields: dict[str, object] = {}
        if base is not None:
            self.merge(base)

    def merge(self, override: Structure) -> StructureBuilder:
        for f in fields(Structure):
            value = getattr(override, f.name)
            if value is not None:
                self._fields[f.name] = value
        return self

    def build(self) -> Structure:
        data = dict(self._fields)
        data["parent_template"] = None
        return Structure(**data)  # type: ignore[arg-type]


def _merged(structure: Structure, library: Mapping[str, Structure], chain: tuple[str, ...]) -> Structure:
    parent_name = structure.parent_template
    if parent_name is None:
        return structure
    if parent_name in chain:
        cycle = " -> ".join(chain + (parent_name,))
        raise LoadError(f"structure inheritance cycle: {cycle}")
    base = library.get(parent_name)
    if base is None:
        raise LoadError(f"structure {structure.name!r} inherits from unknown structure {parent_name!r}")
    resolved_base = _merged(base, library, chain + (parent_name,))
    return StructureBuilder(resolved_base).merge(structure).build()


def resolve_structure(structure: Structure, library: Mapping[str, Structure] | None = None) -> Structure:
    """Flatten the ``parent_template`` chain and check the result is placeable."""
    resolved = _merged(structure, library or {}, (structure.name,))
    if not resolved.structure_type:
        raise LoadError(f"structure {resolved.name!r} has no structure_type")
    if not resolved.footprint:
        raise LoadError(f"structure {resolved.name!r} has an empty footprint")
    return resolved


def apply_variant(structure: Structure, variant: StructureVariant) -> Structure:
    """Return a copy of *structure* with the variant's modifications applied."""
    cells = {cell.offset: cell for cell in structure.footprint or ()}
    decorations = list(structure.decorations or ())
    for mod in variant.modifications:
        match mod:
            case ModifyFootprint(position=pos, terrain=terrain):
                previous = cells.get(pos)
                height = previous.height if previous else 0
                cells[pos] = FootprintCell(pos.q, pos.r, terrain, height)
            case AddWall(position=pos, height=height):
                cells[pos] = FootprintCell(pos.q, pos.r, Terrain.WALL, height)
            case AddDecoration():
                decorations.append(mod)
    return replace(
        structure,
        footprint=tuple(cells.values()),
        decorations=tuple(decorations) or None,
    )


@dataclass(frozen=True, slots=True)
class PlacedStructure:
    """A structure stamped onto the world. Never mutated after placement."""

    structure_id: int
    structure: Structure
    anchor: Hex
    cells: frozenset[Hex]
    rule_name: str
    variant: str | None = None
    layout: StructureLayout | None = None

    @property
    def name(self) -> str:
        return self.structure.name

    @property
    def structure_type(self) -> str:
        return self.structure.structure_type or ""

    def iter_cells(self) -> Iterator[Hex]:
        return iter(sorted(self.cells))
