"""Tests for axial hex geometry — distance, rings, spirals and lines."""

import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from hexrules.core.hex import DIRECTIONS, Hex, parallelogram, slope_degrees


class TestHexBasics:

    def test_ordering_is_q_then_r(self):
        cells = [Hex(1, 0), Hex(0, 5), Hex(0, -1)]
        assert sorted(cells) == [Hex(0, -1), Hex(0, 5), Hex(1, 0)]

    def test_arithmetic(self):
        assert Hex(1, 2) + Hex(3, -1) == Hex(4, 1)
        assert Hex(1, 2) - Hex(3, -1) == Hex(-2, 3)
        assert Hex(1, -1).scale(3) == Hex(3, -3)
        assert Hex(2, 3).s == -5

    def test_hashable_and_frozen(self):
        assert len({Hex(1, 1), Hex(1, 1)}) == 1
        with pytest.raises(Exception):
            Hex(0, 0).q = 3  # type: ignore

    def test_distance(self):
        assert Hex(0, 0).distance(Hex(0, 0)) == 0
        assert Hex(0, 0).distance(Hex(3, -1)) == 3
        assert Hex(2, 2).distance(Hex(-1, 0)) == 5
        assert Hex(2, 2).distance(Hex(-1, 0)) == Hex(-1, 0).distance(Hex(2, 2))

    def test_neighbors_are_distance_one_in_fixed_order(self):
        origin = Hex(4, 4)
        neighbors = origin.neighbors()
        assert neighbors == tuple(origin + d for d in DIRECTIONS)
        assert all(origin.distance(n) == 1 for n in neighbors)
        assert origin.neighbor(7) == origin + DIRECTIONS[1]


class TestRingsAndSpirals:

    def test_ring_zero_is_center(self):
        assert Hex(2, 2).ring(0) == [Hex(2, 2)]

    def test_ring_one_order(self):
        assert Hex(0, 0).ring(1) == [
            Hex(-1, 1), Hex(0, 1), Hex(1, 0), Hex(1, -1), Hex(0, -1), Hex(-1, 0),
        ]

    def test_ring_sizes_and_distances(self):
        center = Hex(3, -2)
        for radius in (1, 2, 3):
            ring = center.ring(radius)
            assert len(ring) == 6 * radius
            assert len(set(ring)) == 6 * radius
            assert all(center.distance(h) == radius for h in ring)

    def test_within_spirals_from_center(self):
        cells = list(Hex(0, 0).within(2))
        assert cells[0] == Hex(0, 0)
        assert len(cells) == 19
        assert [Hex(0, 0).distance(h) for h in cells] == sorted(Hex(0, 0).distance(h) for h in cells)

    def test_within_negative_radius_is_center_only(self):
        assert list(Hex(1, 1).within(-3)) == [Hex(1, 1)]


class TestLines:

    def test_straight_line_along_axis(self):
        assert Hex(0, 0).line_to(Hex(3, 0)) == [Hex(0, 0), Hex(1, 0), Hex(2, 0), Hex(3, 0)]

    def test_degenerate_line(self):
        assert Hex(2, 2).line_to(Hex(2, 2)) == [Hex(2, 2)]

    @pytest.mark.parametrize("end", [Hex(5, -2), Hex(-3, 4), Hex(2, 7), Hex(-4, -1)])
    def test_line_is_contiguous(self, end):
        start = Hex(1, 1)
        line = start.line_to(end)
        assert line[0] == start
        assert line[-1] == end
        assert len(line) == start.distance(end) + 1
        assert all(a.distance(b) == 1 for a, b in zip(line, line[1:]))

    def test_line_is_deterministic(self):
        assert Hex(0, 0).line_to(Hex(4, -3)) == Hex(0, 0).line_to(Hex(4, -3))


class TestHelpers:

    def test_parallelogram_order(self):
        assert parallelogram(2, 3) == [
            Hex(0, 0), Hex(0, 1), Hex(0, 2), Hex(1, 0), Hex(1, 1), Hex(1, 2),
        ]

    def test_parallelogram_with_origin(self):
        assert parallelogram(1, 2, Hex(5, 5)) == [Hex(5, 5), Hex(5, 6)]

    def test_slope(self):
        assert slope_degrees(0) == 0.0
        assert slope_degrees(1) == pytest.approx(45.0)
        assert slope_degrees(-1) == pytest.approx(45.0)
        assert slope_degrees(1, distance=0) == 0.0
        assert slope_degrees(2, distance=2, elevation_scale=0.5) == pytest.approx(26.565, abs=1e-3)
