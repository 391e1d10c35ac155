"""
Core world generation and simulation.
"""

from .errors import AOCError, GenerationConfigError, SnapshotLoadError
from .lcg_prng import LCGPRNG
from .heightmap_generator import HeightmapGenerator, HeightmapConfig
from .world_grid import WorldGrid, Terrain, build_world_grid
from .regions import Region, RegionPartitioner, RegionOptions
from .game_config import GameConfig
from .state import Faction, WorldState
from .units import UNIT_CATALOG, Unit, UnitKind

__all__ = ['AOCError', 'GenerationConfigError', 'SnapshotLoadError', 'LCGPRNG',
           'HeightmapGenerator', 'HeightmapConfig', 'WorldGrid', 'Terrain', 'build_world_grid',
           'Region', 'RegionPartitioner', 'RegionOptions', 'GameConfig',
           'Faction', 'WorldState', 'UNIT_CATALOG', 'Unit', 'UnitKind']
