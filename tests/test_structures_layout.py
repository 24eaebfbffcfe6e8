"""Tests for structure inheritance, variants, placement rules and interior layout."""

import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from hexrules.core.enums import ConnectionType, GrowthKind, Terrain
from hexrules.core.errors import LoadError, ValidationError
from hexrules.core.hex import Hex
from hexrules.core.structures import (
    AddDecoration,
    AddWall,
    Connection,
    Corridor,
    FootprintCell,
    GenerationRules,
    GridAlignment,
    GrowthPattern,
    InteriorLayout,
    ModifyFootprint,
    Room,
    Structure,
    StructureBuilder,
    StructureVariant,
    apply_variant,
    resolve_structure,
)
from hexrules.systems.layout import LayoutGenerator, purpose_order
from tests.helpers.world_builder import building, limited


# ---------------------------------------------------------------------------
# Inheritance
# ---------------------------------------------------------------------------

class TestInheritance:

    def test_builder_explicit_values_win(self):
        base = building("Cottage", "residential", tags=("small",))
        override = Structure(name="House", generation_rules=limited(max_count=3))
        merged = StructureBuilder(base).merge(override).build()
        assert merged.name == "House"
        assert merged.structure_type == "residential"
        assert merged.footprint == base.footprint
        assert merged.tags == ("small",)
        assert merged.generation_rules.max_count == 3

    def test_resolve_through_parent(self):
        library = {"Cottage": building("Cottage", "residential")}
        house = Structure(name="House", parent_template="Cottage", required_terrain=Terrain.PLAIN)
        resolved = resolve_structure(house, library)
        assert resolved.structure_type == "residential"
        assert resolved.required_terrain == Terrain.PLAIN
        assert resolved.parent_template is None

    def test_resolution_is_idempotent(self):
        library = {"Cottage": building("Cottage", "residential")}
        house = Structure(name="House", parent_template="Cottage")
        once = resolve_structure(house, library)
        assert resolve_structure(once, library) == once

    def test_multi_level_chain(self):
        library = {
            "Base": building("Base", "civic", tags=("a",)),
            "Mid": Structure(name="Mid", parent_template="Base", tags=("b",)),
        }
        top = Structure(name="Top", parent_template="Mid")
        resolved = resolve_structure(top, library)
        assert resolved.structure_type == "civic"
        assert resolved.tags == ("b",)

    def test_unknown_parent(self):
        with pytest.raises(LoadError):
            resolve_structure(Structure(name="House", parent_template="Nowhere"), {})

    def test_cycle(self):
        library = {
            "A": Structure(name="A", parent_template="B"),
            "B": Structure(name="B", parent_template="A"),
        }
        with pytest.raises(LoadError, match="cycle"):
            resolve_structure(library["A"], library)

    def test_incomplete_structure(self):
        with pytest.raises(LoadError):
            resolve_structure(Structure(name="Ghost", structure_type="civic"))
        with pytest.raises(LoadError):
            resolve_structure(Structure(name="Ghost", footprint=(FootprintCell(0, 0),)))


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

class TestVariants:

    def test_add_wall_and_modify(self):
        base = Structure(
            name="Hut",
            structure_type="residential",
            footprint=(FootprintCell(0, 0, Terrain.WALL, 2), FootprintCell(1, 0, Terrain.PLAIN)),
        )
        variant = StructureVariant("fortified", 1.0, (
            ModifyFootprint(Hex(0, 0), Terrain.ROUGH),
            AddWall(Hex(0, 1), 4),
        ))
        result = apply_variant(base, variant)
        cells = {c.offset: c for c in result.footprint}
        assert cells[Hex(0, 0)] == FootprintCell(0, 0, Terrain.ROUGH, 2)
        assert cells[Hex(0, 1)] == FootprintCell(0, 1, Terrain.WALL, 4)
        assert cells[Hex(1, 0)].terrain == Terrain.PLAIN
        assert base.footprint[0].terrain == Terrain.WALL

    def test_add_decoration(self):
        base = building("Hut")
        result = apply_variant(base, StructureVariant("garden", 1.0, (AddDecoration("garden", Hex(0, 0)),)))
        assert result.decorations == (AddDecoration("garden", Hex(0, 0)),)
        assert base.decorations is None


# ---------------------------------------------------------------------------
# Generation rules
# ---------------------------------------------------------------------------

class TestGenerationRules:

    def test_grid_alignment(self):
        grid = GridAlignment(3)
        assert grid.accepts(Hex(0, 0))
        assert grid.accepts(Hex(3, -6))
        assert not grid.accepts(Hex(1, 0))
        assert GridAlignment(1).accepts(Hex(7, 5))

    def test_outward_search(self):
        order = GrowthPattern(GrowthKind.OUTWARD).search_order(Hex(2, 2), 1)
        assert order[0] == Hex(2, 2)
        assert len(order) == 7

    def test_inward_search(self):
        order = GrowthPattern(GrowthKind.INWARD).search_order(Hex(2, 2), 2)
        assert order[-1] == Hex(2, 2)
        assert Hex(2, 2).distance(order[0]) == 2
        assert len(order) == 19

    def test_linear_search(self):
        order = GrowthPattern(GrowthKind.LINEAR, direction=3).search_order(Hex(2, 2), 2)
        assert order == [Hex(2, 2), Hex(1, 2), Hex(0, 2)]

    def test_default_rules(self):
        assert building("Hut").rules == GenerationRules()


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

def _keep(**fields) -> Structure:
    return Structure(
        name="Keep",
        structure_type="military",
        footprint=tuple(FootprintCell(q, r, Terrain.WALL) for q, r in [(0, 0), (1, 0), (2, 0), (0, 1)]),
        **fields,
    )


class TestPurposeGraph:

    def test_bfs_from_entrance(self):
        layout = InteriorLayout(
            rooms=(
                Room((3, 4), "great_hall", ("entrance", "kitchen")),
                Room((2, 2), "kitchen", ("storage",)),
                Room((1, 2), "storage"),
            ),
            entrances=(Hex(0, 1),),
        )
        assert purpose_order(layout) == ["great_hall", "kitchen", "storage"]

    def test_missing_purpose_fails(self):
        layout = InteriorLayout(rooms=(Room((1, 1), "hall", ("armory",)),))
        with pytest.raises(ValidationError, match="armory"):
            purpose_order(layout)

    def test_unreachable_room_fails(self):
        layout = InteriorLayout(rooms=(Room((1, 1), "hall", ("kitchen",)), Room((1, 1), "kitchen"), Room((1, 1), "vault")))
        with pytest.raises(ValidationError, match="vault"):
            purpose_order(layout)

    def test_empty_layout(self):
        assert purpose_order(InteriorLayout()) == []


class TestLayoutGenerator:

    def test_generate_full_plan(self):
        keep = _keep(
            interior_layout=InteriorLayout(
                rooms=(Room((2, 1), "hall", ("entrance",)),),
                corridors=(Corridor(Hex(0, 0), Hex(2, 0), 1),),
                entrances=(Hex(0, 1),),
            ),
            connections=(Connection(Hex(0, 1), ConnectionType.DOOR, True),),
        )
        anchor = Hex(4, 4)
        cells = [anchor + c.offset for c in keep.footprint]
        layout = LayoutGenerator().generate(keep, anchor, cells)
        assert layout.room_cells("hall") == (Hex(4, 4), Hex(5, 4))
        assert layout.corridors == ((Hex(4, 4), Hex(5, 4), Hex(6, 4)),)
        assert layout.entrances == (Hex(4, 5),)
        stamps = layout.stamps()
        assert stamps[Hex(4, 5)] == "door"
        assert stamps[Hex(5, 4)] == "corridor"

    def test_wide_corridor(self):
        keep = _keep(interior_layout=InteriorLayout(corridors=(Corridor(Hex(0, 0), Hex(0, 0), 2),)))
        layout = LayoutGenerator().generate(keep, Hex(0, 0), [])
        assert len(layout.corridors[0]) == 7

    def test_entrance_must_be_in_footprint(self):
        keep = _keep(interior_layout=InteriorLayout(entrances=(Hex(5, 5),)))
        with pytest.raises(ValidationError):
            LayoutGenerator().generate(keep, Hex(0, 0), [Hex(0, 0), Hex(1, 0)])

    def test_entrance_must_be_on_boundary(self):
        center = Hex(0, 0)
        keep = _keep(interior_layout=InteriorLayout(entrances=(center,)))
        with pytest.raises(ValidationError, match="boundary"):
            LayoutGenerator().generate(keep, center, list(center.within(1)))

    def test_required_connection_outside_footprint(self):
        keep = _keep(connections=(Connection(Hex(0, 3), ConnectionType.PATH, True),))
        with pytest.raises(ValidationError):
            LayoutGenerator().generate(keep, Hex(0, 0), [Hex(0, 0)])

    def test_optional_connection_outside_footprint(self):
        keep = _keep(connections=(Connection(Hex(0, 3), ConnectionType.PATH, False),))
        layout = LayoutGenerator().generate(keep, Hex(0, 0), [Hex(0, 0)])
        assert layout.stamps() == {Hex(0, 3): "path"}

    def test_invalid_room_size(self):
        keep = _keep(interior_layout=InteriorLayout(rooms=(Room((0, 2), "hall"),)))
        with pytest.raises(ValidationError):
            LayoutGenerator().generate(keep, Hex(0, 0), [Hex(0, 0)])
