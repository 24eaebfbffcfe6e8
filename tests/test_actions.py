"""Tests for the action handlers and the executor.

Covers:
- Direct terrain/elevation writes and area operations
- Ledger conflicts and band violations in non-atomic commits
- Structure placement: atomicity, tolerance, spacing, alignment, variants
- Clusters, walls, roads, water bodies and resources
- Executor outcome conversion and template splice requests
"""

import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from hexrules.actions.base import CellWrite, commit
from hexrules.actions.executor import ActionExecutor
from hexrules.actions.paths import PathAction
from hexrules.actions.resources import ResourceAction
from hexrules.actions.structure import StructureAction
from hexrules.actions.terrain import TerrainAction
from hexrules.actions.water import WaterAction
from hexrules.core.enums import Terrain, WaterFeatureKind
from hexrules.core.errors import CapacityError, ConflictError, LoadError, ValidationError
from hexrules.core.hex import Hex
from hexrules.core.rules import (
    ApplyTemplate,
    CreateWaterFeature,
    Flatten,
    GenerateRoad,
    GenerateWall,
    ModifyTerrain,
    PlaceStructure,
    PlaceStructureCluster,
    Raise,
    Roughen,
    Rule,
    SetElevation,
    SetTerrain,
    Smooth,
    SpawnResource,
    Straight,
    Template,
    TemplateLibrary,
    Winding,
)
from hexrules.core.structures import (
    AddDecoration,
    ElevationRequirement,
    FootprintCell,
    GenerationRules,
    GridAlignment,
    Structure,
    StructureVariant,
)
from hexrules.engine.occupancy import OccupancyLedger
from tests.helpers.world_builder import building, limited, make_context, make_world


# ---------------------------------------------------------------------------
# Terrain
# ---------------------------------------------------------------------------

class TestTerrainActions:

    def test_set_terrain(self):
        world = make_world(8, 8)
        change = TerrainAction.set_terrain(SetTerrain(Terrain.ROUGH), make_context(world, Hex(3, 3)))
        assert change.cells == [Hex(3, 3)]
        assert world.cells[Hex(3, 3)].terrain == Terrain.ROUGH

    def test_set_terrain_band_violation_is_rejected(self):
        world = make_world(8, 8, elevation=2)
        change = TerrainAction.set_terrain(SetTerrain(Terrain.SNOW), make_context(world, Hex(3, 3)))
        assert change.cells == []
        assert change.rejected[0][0] == Hex(3, 3)
        assert world.cells[Hex(3, 3)].terrain == Terrain.PLAIN

    def test_set_elevation(self):
        world = make_world(8, 8)
        TerrainAction.set_elevation(SetElevation(7), make_context(world, Hex(1, 1)))
        assert world.cells[Hex(1, 1)].elevation == 7

    def test_flatten_radius(self):
        world = make_world(8, 8, elevation=2)
        world.set_elevation(Hex(3, 3), 4)
        change = TerrainAction.modify(ModifyTerrain(1, Flatten(4)), make_context(world, Hex(3, 3)))
        assert len(change.cells) == 6
        assert Hex(3, 3) not in change.cells
        assert all(world.cells[pos].elevation == 4 for pos in Hex(3, 3).within(1))

    def test_raise_beyond_bounds_is_rejected_per_cell(self):
        world = make_world(8, 8, elevation=2)
        change = TerrainAction.modify(ModifyTerrain(1, Raise(20)), make_context(world, Hex(3, 3)))
        assert change.cells == []
        assert len(change.rejected) == 7
        assert world.cells[Hex(3, 3)].elevation == 2

    def test_smooth_uses_pre_pass_values(self):
        world = make_world(8, 8, elevation=2)
        world.set_elevation(Hex(3, 3), 9)
        TerrainAction.modify(ModifyTerrain(0, Smooth()), make_context(world, Hex(3, 3)))
        assert world.cells[Hex(3, 3)].elevation == 3

    def test_roughen_zero_intensity_is_a_no_op(self):
        world = make_world(8, 8)
        change = TerrainAction.modify(ModifyTerrain(2, Roughen(0.0)), make_context(world, Hex(3, 3)))
        assert change.cells == []

    def test_roughen_is_deterministic(self):
        results = []
        for _ in range(2):
            world = make_world(8, 8, elevation=5)
            TerrainAction.modify(ModifyTerrain(2, Roughen(1.0)), make_context(world, Hex(3, 3)))
            results.append([world.cells[pos].elevation for pos in world.region])
        assert results[0] == results[1]
        assert all(2 <= e <= 8 for e in results[0])

    def test_negative_radius(self):
        with pytest.raises(ValidationError):
            TerrainAction.modify(ModifyTerrain(-1, Smooth()), make_context(make_world(4, 4), Hex(1, 1)))


class TestLedgerConflicts:

    def test_earlier_rule_blocks_cell(self):
        world = make_world(8, 8)
        ledger = OccupancyLedger()
        ledger.claim([Hex(3, 3)], seq=0, rule="first")
        change = TerrainAction.set_terrain(SetTerrain(Terrain.ROUGH), make_context(world, Hex(3, 3), seq=1, ledger=ledger))
        assert change.conflicts == [Hex(3, 3)]
        assert world.cells[Hex(3, 3)].terrain == Terrain.PLAIN

    def test_same_rule_never_conflicts_with_itself(self):
        world = make_world(8, 8)
        ledger = OccupancyLedger()
        ledger.claim([Hex(3, 3)], seq=2, rule="same")
        change = TerrainAction.set_terrain(SetTerrain(Terrain.ROUGH), make_context(world, Hex(3, 3), seq=2, ledger=ledger))
        assert change.cells == [Hex(3, 3)]

    def test_commit_claims_written_cells(self):
        world = make_world(8, 8)
        ctx = make_context(world, Hex(0, 0), rule_name="writer", seq=4)
        commit(ctx, [CellWrite(Hex(0, 0), terrain=Terrain.SAND), CellWrite(Hex(1, 0), terrain=Terrain.SAND)])
        assert ctx.ledger.claimed_by("writer") == [Hex(0, 0), Hex(1, 0)]
        assert ctx.ledger.owner(Hex(1, 0)).seq == 4

    def test_atomic_commit_raises(self):
        world = make_world(8, 8)
        ledger = OccupancyLedger()
        ledger.claim([Hex(1, 0)], seq=0, rule="first")
        ctx = make_context(world, Hex(0, 0), seq=1, ledger=ledger)
        with pytest.raises(ConflictError) as info:
            commit(ctx, [CellWrite(Hex(0, 0), terrain=Terrain.SAND), CellWrite(Hex(1, 0), terrain=Terrain.SAND)], atomic=True)
        assert info.value.cells == (Hex(1, 0),)
        assert world.cells[Hex(0, 0)].terrain == Terrain.PLAIN


# ---------------------------------------------------------------------------
# Structures
# ---------------------------------------------------------------------------

class TestStructurePlacement:

    def test_place_stamps_footprint(self):
        world = make_world(8, 8)
        hall = building("Hall", "civic", [(0, 0), (1, 0), (0, 1)])
        change = StructureAction.place(PlaceStructure(hall), make_context(world, Hex(3, 3)))
        assert sorted(change.cells) == [Hex(3, 3), Hex(3, 4), Hex(4, 3)]
        assert len(change.structures) == 1
        sid = change.structures[0].structure_id
        for pos in change.cells:
            assert world.cells[pos].terrain == Terrain.WALL
            assert world.cells[pos].occupant == sid
        assert world.spatial_index.nearest_structure_distance("civic", Hex(3, 3)) == 0

    def test_occupied_cell_conflicts(self):
        world = make_world(8, 8)
        StructureAction.place(PlaceStructure(building("A")), make_context(world, Hex(3, 3)))
        with pytest.raises(ConflictError):
            StructureAction.place(PlaceStructure(building("B")), make_context(world, Hex(3, 3)))

    def test_overlap_tolerance_skips_conflicting_cells(self):
        world = make_world(8, 8)
        StructureAction.place(PlaceStructure(building("A")), make_context(world, Hex(3, 3)))
        wide = building("B", offsets=[(0, 0), (1, 0)], terrain=Terrain.ROUGH)
        change = StructureAction.place(PlaceStructure(wide, overlap_tolerance=1), make_context(world, Hex(3, 3)))
        assert change.cells == [Hex(4, 3)]
        assert change.conflicts == [Hex(3, 3)]
        assert world.cells[Hex(3, 3)].terrain == Terrain.WALL
        assert world.cells[Hex(4, 3)].terrain == Terrain.ROUGH

    def test_footprint_is_atomic(self):
        world = make_world(8, 8, elevation=2)
        broken = Structure(
            name="Broken",
            structure_type="civic",
            footprint=(FootprintCell(0, 0, Terrain.WALL), FootprintCell(1, 0, Terrain.SNOW)),
        )
        with pytest.raises(ValidationError):
            StructureAction.place(PlaceStructure(broken), make_context(world, Hex(3, 3)))
        assert world.cells[Hex(3, 3)].terrain == Terrain.PLAIN
        assert world.cells[Hex(4, 3)].terrain == Terrain.PLAIN
        assert world.structures == {}

    def test_footprint_outside_region(self):
        world = make_world(8, 8)
        with pytest.raises(ValidationError):
            StructureAction.place(PlaceStructure(building("A", offsets=[(0, 0), (1, 0)])), make_context(world, Hex(7, 7)))

    def test_max_count(self):
        world = make_world(8, 8)
        unique = building("Shrine", generation_rules=limited(max_count=1))
        StructureAction.place(PlaceStructure(unique), make_context(world, Hex(1, 1)))
        with pytest.raises(CapacityError):
            StructureAction.place(PlaceStructure(unique), make_context(world, Hex(5, 5)))

    def test_min_spacing(self):
        world = make_world(8, 8)
        hut = building("Hut", generation_rules=limited(min_spacing=3))
        StructureAction.place(PlaceStructure(hut), make_context(world, Hex(2, 2)))
        with pytest.raises(ValidationError):
            StructureAction.place(PlaceStructure(hut), make_context(world, Hex(3, 2)))
        StructureAction.place(PlaceStructure(hut), make_context(world, Hex(5, 2)))
        assert world.count_named("Hut") == 2

    def test_alignment(self):
        world = make_world(8, 8)
        post = building("Post", generation_rules=GenerationRules(alignment=GridAlignment(2)))
        with pytest.raises(ValidationError):
            StructureAction.place(PlaceStructure(post), make_context(world, Hex(3, 2)))
        StructureAction.place(PlaceStructure(post), make_context(world, Hex(2, 2)))

    def test_absolute_elevation_requirement(self):
        world = make_world(8, 8, elevation=2)
        lofty = building("Lofty", elevation_requirements=ElevationRequirement(3, 5))
        with pytest.raises(ValidationError):
            StructureAction.place(PlaceStructure(lofty), make_context(world, Hex(3, 3)))
        world.set_elevation(Hex(3, 3), 4)
        StructureAction.place(PlaceStructure(lofty), make_context(world, Hex(3, 3)))

    def test_relative_elevation_reads_the_base_only(self):
        world = make_world(8, 8, elevation=2)
        world.set_elevation(Hex(4, 3), 12)
        wide = building("Wide", offsets=[(0, 0), (1, 0)],
                        elevation_requirements=ElevationRequirement(1, 3, relative_to_base=True))
        change = StructureAction.place(PlaceStructure(wide), make_context(world, Hex(3, 3)))
        assert len(change.structures) == 1

    def test_required_terrain(self):
        world = make_world(8, 8)
        quarry = building("Quarry", required_terrain=Terrain.ROUGH)
        with pytest.raises(ValidationError):
            StructureAction.place(PlaceStructure(quarry), make_context(world, Hex(3, 3)))

    def test_inherits_from_library_structure(self):
        world = make_world(8, 8)
        library = TemplateLibrary(structures=[building("Cottage", "residential")])
        house = Structure(name="House", parent_template="Cottage")
        change = StructureAction.place(PlaceStructure(house), make_context(world, Hex(2, 2), library=library))
        assert change.structures[0].structure_type == "residential"
        assert change.structures[0].name == "House"

    def test_certain_variant_is_applied(self):
        world = make_world(8, 8)
        garden = StructureVariant("with_garden", 1.0, (AddDecoration("garden", Hex(0, 0)),))
        hut = building("Hut", variants=(garden,))
        change = StructureAction.place(PlaceStructure(hut), make_context(world, Hex(2, 2)))
        assert change.structures[0].variant == "with_garden"
        assert world.cells[Hex(2, 2)].marker == "decoration:garden"

    def test_impossible_variant_keeps_base(self):
        world = make_world(8, 8)
        never = StructureVariant("never", 0.0, (AddDecoration("garden", Hex(0, 0)),))
        change = StructureAction.place(PlaceStructure(building("Hut", variants=(never,))), make_context(world, Hex(2, 2)))
        assert change.structures[0].variant is None
        assert world.cells[Hex(2, 2)].marker is None


class TestClusters:

    def test_cluster_walks_the_directions(self):
        world = make_world(12, 12)
        action = PlaceStructureCluster(building("Tower", "military"), count=3, spacing=3)
        change = StructureAction.place_cluster(action, make_context(world, Hex(2, 6)))
        assert [s.anchor for s in change.structures] == [Hex(2, 6), Hex(5, 3), Hex(5, 0)]
        assert change.rejected == []

    def test_cluster_member_outside_region_is_reported(self):
        world = make_world(12, 12)
        action = PlaceStructureCluster(building("Tower", "military"), count=2, spacing=3)
        change = StructureAction.place_cluster(action, make_context(world, Hex(1, 1)))
        assert len(change.structures) == 1
        assert len(change.rejected) == 1

    def test_cluster_halts_at_max_count(self):
        world = make_world(12, 12)
        tower = building("Tower", "military", generation_rules=limited(max_count=2))
        action = PlaceStructureCluster(tower, count=3, spacing=3)
        outcome = ActionExecutor().apply(action, make_context(world, Hex(2, 6)))
        assert not outcome.ok
        assert isinstance(outcome.error, CapacityError)
        assert len(outcome.change.structures) == 2

    def test_cluster_with_variation_is_deterministic(self):
        anchors = []
        for _ in range(2):
            world = make_world(16, 16)
            action = PlaceStructureCluster(building("Tower", "military"), count=3, spacing=4, variation=True)
            change = StructureAction.place_cluster(action, make_context(world, Hex(3, 10)))
            anchors.append([s.anchor for s in change.structures])
        assert anchors[0] == anchors[1]

    def test_cluster_count_must_be_positive(self):
        action = PlaceStructureCluster(building("Tower"), count=0, spacing=3)
        with pytest.raises(ValidationError):
            StructureAction.place_cluster(action, make_context(make_world(4, 4), Hex(1, 1)))


# ---------------------------------------------------------------------------
# Walls and roads
# ---------------------------------------------------------------------------

class TestWalls:

    def test_interior_cell_of_selection_is_skipped(self):
        world = make_world(8, 8)
        block = list(Hex(3, 3).within(1))
        change = PathAction.wall(GenerateWall(3), make_context(world, Hex(3, 3), selection=block))
        assert change.cells == []
        assert world.cells[Hex(3, 3)].terrain == Terrain.PLAIN

    def test_perimeter_cell_is_walled(self):
        world = make_world(8, 8)
        block = list(Hex(3, 3).within(1))
        PathAction.wall(GenerateWall(3), make_context(world, Hex(4, 3), selection=block))
        cell = world.cells[Hex(4, 3)]
        assert cell.terrain == Terrain.WALL
        assert cell.height == 3

    def test_wall_line(self):
        world = make_world(8, 8)
        change = PathAction.wall(GenerateWall(2, Terrain.WALL, to=Hex(3, 0)), make_context(world, Hex(0, 0)))
        assert change.cells == [Hex(0, 0), Hex(1, 0), Hex(2, 0), Hex(3, 0)]

    def test_wall_line_leaving_region(self):
        world = make_world(8, 8)
        change = PathAction.wall(GenerateWall(2, to=Hex(-2, 0)), make_context(world, Hex(0, 0)))
        assert change.cells == [Hex(0, 0)]
        assert sorted(pos for pos, _ in change.rejected) == [Hex(-2, 0), Hex(-1, 0)]


class TestRoads:

    def test_straight_road(self):
        world = make_world(8, 8)
        action = GenerateRoad(1, Terrain.ROUGH, Straight(), to=Hex(4, 0))
        change = PathAction.road(action, make_context(world, Hex(0, 0)))
        assert change.cells == [Hex(q, 0) for q in range(5)]
        assert world.roads == set(change.cells)
        assert all(world.cells[pos].terrain == Terrain.ROUGH for pos in change.cells)

    def test_impassable_cells_are_rejected(self):
        world = make_world(8, 8)
        world.set_terrain(Hex(2, 0), Terrain.WALL)
        action = GenerateRoad(1, Terrain.ROUGH, Straight(), to=Hex(4, 0))
        change = PathAction.road(action, make_context(world, Hex(0, 0)))
        assert Hex(2, 0) not in change.cells
        assert [pos for pos, _ in change.rejected] == [Hex(2, 0)]
        assert world.cells[Hex(2, 0)].terrain == Terrain.WALL

    def test_road_to_nearest_structure_stops_at_it(self):
        world = make_world(8, 8)
        StructureAction.place(PlaceStructure(building("Hall")), make_context(world, Hex(5, 0)))
        change = PathAction.road(GenerateRoad(1, Terrain.ROUGH), make_context(world, Hex(0, 0), rule_name="road"))
        assert change.cells == [Hex(q, 0) for q in range(5)]
        assert Hex(5, 0) not in world.roads

    def test_road_needs_a_destination(self):
        with pytest.raises(ValidationError):
            PathAction.road(GenerateRoad(1, Terrain.ROUGH), make_context(make_world(8, 8), Hex(0, 0)))

    def test_road_width(self):
        world = make_world(8, 8)
        with pytest.raises(ValidationError):
            PathAction.road(GenerateRoad(0, Terrain.ROUGH, to=Hex(3, 3)), make_context(world, Hex(0, 0)))
        change = PathAction.road(GenerateRoad(2, Terrain.ROUGH, to=Hex(4, 3)), make_context(world, Hex(4, 0)))
        assert len(change.cells) > 4

    def test_winding_road_connects_endpoints(self):
        results = []
        for _ in range(2):
            world = make_world(12, 12)
            action = GenerateRoad(1, Terrain.ROUGH, Winding(0.5), to=Hex(9, 5))
            change = PathAction.road(action, make_context(world, Hex(1, 5)))
            results.append(change.cells)
            assert Hex(1, 5) in change.cells
            assert Hex(9, 5) in change.cells
        assert results[0] == results[1]


# ---------------------------------------------------------------------------
# Water and resources
# ---------------------------------------------------------------------------

class TestWater:

    def test_lake(self):
        world = make_world(10, 10)
        change = WaterAction.create(CreateWaterFeature(WaterFeatureKind.LAKE, 4), make_context(world, Hex(5, 5)))
        assert len(change.cells) == 4
        assert Hex(5, 5) in change.cells
        assert all(world.cells[pos].terrain == Terrain.WATER for pos in change.cells)
        assert all(world.cells[pos].water_depth == 2 for pos in change.cells)
        assert world.water_features[0].feature_type == WaterFeatureKind.LAKE
        assert world.spatial_index.nearest_water_distance(Hex(5, 5)) == 0

    def test_pond_depth(self):
        world = make_world(10, 10)
        WaterAction.create(CreateWaterFeature(WaterFeatureKind.POND, 1), make_context(world, Hex(5, 5)))
        assert world.cells[Hex(5, 5)].water_depth == 1

    def test_walls_stop_growth(self):
        world = make_world(10, 10)
        for n in Hex(5, 5).neighbors():
            world.set_terrain(n, Terrain.WALL)
        change = WaterAction.create(CreateWaterFeature(WaterFeatureKind.LAKE, 5), make_context(world, Hex(5, 5)))
        assert change.cells == [Hex(5, 5)]

    def test_invalid_target_and_size(self):
        world = make_world(10, 10)
        world.set_terrain(Hex(1, 1), Terrain.WALL)
        with pytest.raises(ValidationError):
            WaterAction.create(CreateWaterFeature(WaterFeatureKind.LAKE, 3), make_context(world, Hex(1, 1)))
        with pytest.raises(ValidationError):
            WaterAction.create(CreateWaterFeature(WaterFeatureKind.LAKE, 0), make_context(world, Hex(2, 2)))


class TestResources:

    def test_spawn_at_target(self):
        world = make_world(8, 8)
        change = ResourceAction.spawn(SpawnResource("ore", 5), make_context(world, Hex(3, 3)))
        assert change.cells == [Hex(3, 3)]
        assert world.resource_amount(Hex(3, 3), "ore") == 5

    def test_spread_keeps_the_total(self):
        world = make_world(8, 8)
        change = ResourceAction.spawn(SpawnResource("wood", 12, spread=2), make_context(world, Hex(3, 3)))
        total = sum(world.resource_amount(pos, "wood") for pos in world.region)
        assert total == 12
        assert all(Hex(3, 3).distance(pos) <= 2 for pos in change.cells)

    def test_amount_must_be_positive(self):
        with pytest.raises(ValidationError):
            ResourceAction.spawn(SpawnResource("ore", 0), make_context(make_world(4, 4), Hex(1, 1)))


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------

class TestExecutor:

    def test_errors_become_outcomes(self):
        world = make_world(8, 8)
        outcome = ActionExecutor().apply(PlaceStructure(building("A", required_terrain=Terrain.SAND)),
                                         make_context(world, Hex(1, 1)))
        assert not outcome.ok
        assert isinstance(outcome.error, ValidationError)

    def test_success(self):
        outcome = ActionExecutor().apply(SetTerrain(Terrain.SAND), make_context(make_world(4, 4), Hex(1, 1)))
        assert outcome.ok
        assert outcome.change.cells == [Hex(1, 1)]

    def test_apply_template_requests_splice(self):
        template = Template("houses", (Rule("House", 1),))
        ctx = make_context(make_world(4, 4), Hex(1, 1), library=TemplateLibrary([template]))
        outcome = ActionExecutor().apply(ApplyTemplate("houses"), ctx)
        assert outcome.ok
        assert outcome.change.splices == ["houses"]

    def test_apply_unknown_template(self):
        outcome = ActionExecutor().apply(ApplyTemplate("missing"), make_context(make_world(4, 4), Hex(1, 1)))
        assert isinstance(outcome.error, LoadError)
