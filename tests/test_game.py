"""Tests for game-level operations."""

import numpy as np

from py_aoc.core.game import new_game, run_turns, set_region_owner
from py_aoc.core.game_config import GameConfig
from py_aoc.core.snapshot import serialize_state
from py_aoc.config.config import Settings


class TestNewGame:
    """Test game generation."""

    def test_same_seed_same_world(self, small_config):
        a = new_game(77, small_config)
        b = new_game(77, small_config)
        np.testing.assert_array_equal(a.grid.heights, b.grid.heights)
        np.testing.assert_array_equal(a.grid.region, b.grid.region)
        assert serialize_state(a) == serialize_state(b)

    def test_same_seed_same_turns(self, small_config):
        a = new_game(77, small_config)
        b = new_game(77, small_config)
        run_turns(a, 8)
        run_turns(b, 8)
        assert serialize_state(a) == serialize_state(b)

    def test_string_seed(self, small_config):
        assert new_game("42", small_config).seed == 42

    def test_random_seed(self, small_config):
        world = new_game(None, small_config)
        assert 0 <= world.seed < 2**32

    def test_initial_state(self, small_world):
        assert small_world.turn == 0
        assert small_world.era_index == 0
        assert small_world.visible is not None

    def test_run_zero_turns(self, small_world):
        assert run_turns(small_world, 0) == []
        assert small_world.turn == 0

    def test_config_from_settings(self):
        settings = Settings(default_map_width=64, default_map_height=40, default_factions_count=4)
        config = GameConfig.from_settings(settings)
        assert config.width == 64
        assert config.height == 40
        assert config.factions.factions_count == 4


class TestSetRegionOwner:
    """Test the editor override."""

    def test_change_owner(self, small_world):
        region = next(r for r in small_world.regions if r.owner != 1)
        previous = small_world.faction(region.owner)

        assert set_region_owner(small_world, region.id, 1)
        assert region.owner == 1
        assert region.id in small_world.factions[1].regions
        if previous is not None:
            assert region.id not in previous.regions

    def test_clear_owner(self, small_world):
        region_id = small_world.factions[0].regions[0]
        assert set_region_owner(small_world, region_id, None)
        assert small_world.regions[region_id].owner is None
        assert region_id not in small_world.factions[0].regions

    def test_can_take_capital_region(self, small_world):
        region_id = small_world.capital_region(small_world.factions[0])
        assert set_region_owner(small_world, region_id, 2)
        assert small_world.regions[region_id].owner == 2

    def test_unknown_region_is_noop(self, small_world):
        before = serialize_state(small_world)
        assert not set_region_owner(small_world, 10_000, 0)
        assert not set_region_owner(small_world, -1, 0)
        assert serialize_state(small_world) == before

    def test_unknown_faction_is_noop(self, small_world):
        before = serialize_state(small_world)
        assert not set_region_owner(small_world, 0, 42)
        assert serialize_state(small_world) == before
