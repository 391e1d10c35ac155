"""
Game-level operations used by renderers, the API and tests.

Generation process:
1. Heightmap, terrain classification and rivers (world_grid)
2. Region partition (regions)
3. Factions, capitals, garrisons and neutral towns (factions)
4. Initial fog of war (vision)

Each stage draws from its own seeded stream, so a seed always yields the
same world. Generation builds a brand new WorldState; nothing is mutated
until it has fully succeeded.
"""

from typing import List, Optional

import structlog

from ..utils.random import (
    FACTIONS_SALT,
    HEIGHTMAP_SALT,
    REGIONS_SALT,
    SeedLike,
    derive_seed,
    make_prng,
    normalize_seed,
)
from .factions import FactionGenerator
from .game_config import GameConfig
from .regions import RegionPartitioner
from .snapshot import GameSnapshot, build_snapshot
from .state import WorldState
from .turn_engine import TurnEngine, TurnReport
from .vision import compute_vision, query_visible
from .world_grid import build_world_grid

logger = structlog.get_logger()

__all__ = [
    "new_game",
    "advance_turn",
    "run_turns",
    "set_region_owner",
    "query_visible",
    "compute_vision",
    "snapshot",
]


def new_game(seed: SeedLike = None, config: Optional[GameConfig] = None) -> WorldState:
    """
    Generate a complete new game.

    Args:
        seed: Any seed-like value; normalized to 32 bits, random if None
        config: Game configuration, defaults to a 160x96 map with 8 factions

    Returns:
        Fresh WorldState at turn 0

    Raises:
        GenerationConfigError: If factions cannot be placed on the generated map
    """
    config = config or GameConfig()
    seed = normalize_seed(seed)
    logger.info("Generating new game", seed=seed, width=config.width, height=config.height)

    rng = make_prng(seed)
    grid = build_world_grid(
        config.width,
        config.height,
        derive_seed(seed, HEIGHTMAP_SALT),
        rng,
        heightmap_config=config.heightmap_config(),
        grid_options=config.terrain,
        hydrology_options=config.hydrology,
    )
    regions = RegionPartitioner(grid, make_prng(seed, REGIONS_SALT), config.regions).partition()

    world = WorldState(config=config, seed=seed, rng=rng, grid=grid, regions=regions)
    FactionGenerator(world, make_prng(seed, FACTIONS_SALT), config.factions).generate()
    compute_vision(world)

    logger.info(
        "Game generated",
        seed=seed,
        regions=len(world.regions),
        factions=len(world.factions),
        units=len(world.units),
    )
    return world


def advance_turn(world: WorldState) -> TurnReport:
    """Advance the world by one turn, in place."""
    return TurnEngine(world, world.config.simulation).advance()


def run_turns(world: WorldState, count: int) -> List[TurnReport]:
    """Advance several turns back to back (auto-play)."""
    engine = TurnEngine(world, world.config.simulation)
    return [engine.advance() for _ in range(max(count, 0))]


def set_region_owner(world: WorldState, region_id: int, faction_id: Optional[int]) -> bool:
    """
    Editor override: hand a region to a faction (or to nobody).

    Bypasses the AI entirely, including the protection of capital
    regions. Unknown region or faction IDs are ignored.

    Returns:
        True if the owner was changed
    """
    if world.region(region_id) is None:
        logger.warning("Ignoring owner change for unknown region", region=region_id)
        return False
    if faction_id is not None and world.faction(faction_id) is None:
        logger.warning("Ignoring owner change to unknown faction", faction=faction_id)
        return False

    world.assign_region(region_id, faction_id)
    compute_vision(world)
    logger.info("Region owner set", region=region_id, faction=faction_id)
    return True


def snapshot(world: WorldState) -> GameSnapshot:
    """Read-only projection of the world for renderers and persistence."""
    return build_snapshot(world)
