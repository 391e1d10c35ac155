"""Tests for fog of war."""

import numpy as np

from py_aoc.core.game import run_turns
from py_aoc.core.units import UnitKind
from py_aoc.core.vision import compute_vision, query_explored, query_visible, sight_radius, visible_tiles


class TestVision:
    """Test visible and explored layers."""

    def test_layers_shape(self, small_world):
        shape = (len(small_world.factions), small_world.grid.size)
        assert small_world.visible.shape == shape
        assert small_world.explored.shape == shape

    def test_units_reveal_their_square(self, small_world):
        grid = small_world.grid
        for unit in small_world.units.values():
            radius = sight_radius(unit, small_world.era_index)
            assert query_visible(small_world, unit.owner, unit.x, unit.y)
            for x, y in ((unit.x + radius, unit.y), (unit.x - radius, unit.y - radius)):
                if grid.in_bounds(x, y):
                    assert query_visible(small_world, unit.owner, x, y)

    def test_sight_grows_with_era(self, small_world):
        unit = next(iter(small_world.units.values()))
        assert sight_radius(unit, 2) == unit.stats.sight + 2

    def test_vision_never_shrinks_with_era(self, small_world):
        before = small_world.visible.copy()
        small_world.era_index += 2
        compute_vision(small_world)
        assert np.all(small_world.visible[before])
        assert small_world.visible.sum() >= before.sum()

    def test_vision_never_shrinks_with_sight(self, small_world):
        unit = small_world.factions[0].units[0]
        before = small_world.visible.copy()
        unit.kind = UnitKind.SCOUT
        compute_vision(small_world)
        assert np.all(small_world.visible[before])

    def test_explored_contains_visible(self, small_world):
        assert np.all(small_world.explored[small_world.visible])

    def test_explored_is_monotonic(self, small_world):
        before = small_world.explored.copy()
        run_turns(small_world, 5)
        assert np.all(small_world.explored[before])

    def test_faction_without_units_sees_nothing(self, small_world):
        for unit in list(small_world.factions[0].units):
            small_world.remove_unit(unit)
        compute_vision(small_world)
        assert not small_world.visible[0].any()
        assert small_world.explored[0].any()

    def test_out_of_bounds_queries(self, small_world):
        assert not query_visible(small_world, 0, -1, 0)
        assert not query_visible(small_world, 0, 0, small_world.grid.height)
        assert not query_visible(small_world, 99, 0, 0)
        assert not query_explored(small_world, -1, 0, 0)
        assert visible_tiles(small_world, 99) is None
