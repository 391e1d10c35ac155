"""Shared fixtures: small maps keep generation fast."""

import pytest

from py_aoc.core.factions import FactionOptions
from py_aoc.core.game import new_game
from py_aoc.core.game_config import GameConfig
from py_aoc.core.regions import RegionOptions


@pytest.fixture
def small_config():
    """48x32 map with 20 regions, 3 factions and 4 neutral towns."""
    return GameConfig(
        width=48,
        height=32,
        regions=RegionOptions(region_count=20),
        factions=FactionOptions(factions_count=3, initial_cities=4),
    )


@pytest.fixture
def small_world(small_config):
    return new_game(1234, small_config)
