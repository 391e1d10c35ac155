"""
Fog of war.

Visibility is rebuilt from scratch every turn: each unit reveals the
square of tiles within its sight radius (its kind's sight plus the era
index) to its faction. The explored layer remembers every tile a
faction has ever seen.
"""

from typing import Optional

import numpy as np
import structlog

from .state import WorldState
from .units import Unit

logger = structlog.get_logger()


def sight_radius(unit: Unit, era: int) -> int:
    return unit.stats.sight + era


def compute_vision(world: WorldState) -> np.ndarray:
    """
    Recompute every faction's visible tiles.

    Returns:
        Boolean array of shape (factions, tiles), also stored on the world
    """
    grid = world.grid
    count = len(world.factions)
    visible = np.zeros((count, grid.height, grid.width), dtype=bool)

    for unit in world.units.values():
        if not 0 <= unit.owner < count:
            continue
        radius = sight_radius(unit, world.era_index)
        y0, y1 = max(unit.y - radius, 0), min(unit.y + radius, grid.height - 1)
        x0, x1 = max(unit.x - radius, 0), min(unit.x + radius, grid.width - 1)
        visible[unit.owner, y0:y1 + 1, x0:x1 + 1] = True

    world.visible = visible.reshape(count, grid.size)
    if world.explored is None or world.explored.shape != world.visible.shape:
        world.explored = world.visible.copy()
    else:
        world.explored |= world.visible

    logger.debug(
        "Vision computed",
        turn=world.turn,
        visible_tiles=[int(row.sum()) for row in world.visible],
    )
    return world.visible


def query_visible(world: WorldState, faction_id: int, x: int, y: int) -> bool:
    """Whether a faction currently sees (x, y); False for anything unknown."""
    if world.visible is None or not 0 <= faction_id < world.visible.shape[0]:
        return False
    if not world.grid.in_bounds(x, y):
        return False
    return bool(world.visible[faction_id, world.grid.index(x, y)])


def query_explored(world: WorldState, faction_id: int, x: int, y: int) -> bool:
    """Whether a faction has ever seen (x, y)."""
    if world.explored is None or not 0 <= faction_id < world.explored.shape[0]:
        return False
    if not world.grid.in_bounds(x, y):
        return False
    return bool(world.explored[faction_id, world.grid.index(x, y)])


def visible_tiles(world: WorldState, faction_id: int) -> Optional[np.ndarray]:
    """Flat indices of the tiles a faction sees, or None for unknown factions."""
    if world.visible is None or not 0 <= faction_id < world.visible.shape[0]:
        return None
    return np.flatnonzero(world.visible[faction_id])
