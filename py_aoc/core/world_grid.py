"""
World grid: a flat, index-addressed arena of tiles.

Terrain lives in NumPy arrays indexed by ``i = y * width + x``; sparse
per-tile data (the occupying unit, a city) lives in dictionaries keyed by
the same index. ``build_world_grid`` runs the full terrain pipeline:
heightmap, water/mountain classification and river carving.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional, Tuple

import numpy as np
import structlog

from .heightmap_generator import HeightmapConfig, HeightmapGenerator
from .hydrology import Hydrology, HydrologyOptions, River
from .lcg_prng import LCGPRNG

if TYPE_CHECKING:
    from .units import Unit

logger = structlog.get_logger()

NO_REGION = -1


class Terrain(str, Enum):
    """Movement-relevant terrain class of a tile."""

    WATER = "water"
    MOUNTAIN = "mountain"
    PLAIN = "plain"


@dataclass
class WorldGridOptions:
    """Terrain classification thresholds."""

    water_threshold: float = 0.48
    mountain_threshold: float = 0.80


@dataclass
class City:
    """A settlement sitting on a tile."""

    name: str
    owner: Optional[int] = None  # Faction ID, None for neutral towns
    garrison: List[str] = field(default_factory=list)  # Unit IDs raised here


@dataclass
class Tile:
    """Read-only view of one tile, assembled from the arena on demand."""

    x: int
    y: int
    height: float
    water: bool
    mountain: bool
    region: Optional[int]
    unit: Optional["Unit"]
    city: Optional[City]

    @property
    def terrain(self) -> Terrain:
        if self.water:
            return Terrain.WATER
        if self.mountain:
            return Terrain.MOUNTAIN
        return Terrain.PLAIN


@dataclass
class WorldGrid:
    """Tile arena for a width x height map."""

    width: int
    height: int
    heights: np.ndarray  # float64, flat
    water: np.ndarray  # bool, flat
    mountain: np.ndarray  # bool, flat
    region: np.ndarray  # int32, flat, NO_REGION when unassigned
    occupants: Dict[int, "Unit"] = field(default_factory=dict)
    cities: Dict[int, City] = field(default_factory=dict)
    rivers: List[River] = field(default_factory=list)

    @classmethod
    def from_heights(cls, heights: np.ndarray, options: Optional[WorldGridOptions] = None) -> "WorldGrid":
        """Create a grid from an (height, width) heightmap and classify terrain."""
        options = options or WorldGridOptions()
        h, w = heights.shape
        flat = np.ascontiguousarray(heights, dtype=np.float64).reshape(-1)
        return cls(
            width=w,
            height=h,
            heights=flat,
            water=flat < options.water_threshold,
            mountain=flat > options.mountain_threshold,
            region=np.full(w * h, NO_REGION, dtype=np.int32),
        )

    @property
    def size(self) -> int:
        return self.width * self.height

    def index(self, x: int, y: int) -> int:
        return y * self.width + x

    def coords(self, i: int) -> Tuple[int, int]:
        return i % self.width, i // self.width

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def clamp(self, x: int, y: int) -> Tuple[int, int]:
        return min(max(x, 0), self.width - 1), min(max(y, 0), self.height - 1)

    def terrain(self, i: int) -> Terrain:
        if self.water[i]:
            return Terrain.WATER
        if self.mountain[i]:
            return Terrain.MOUNTAIN
        return Terrain.PLAIN

    def is_plain(self, i: int) -> bool:
        return not self.water[i] and not self.mountain[i]

    def tile(self, x: int, y: int) -> Optional[Tile]:
        """Tile at (x, y), or None when out of bounds."""
        if not self.in_bounds(x, y):
            return None
        i = self.index(x, y)
        region = int(self.region[i])
        return Tile(
            x=x,
            y=y,
            height=float(self.heights[i]),
            water=bool(self.water[i]),
            mountain=bool(self.mountain[i]),
            region=None if region == NO_REGION else region,
            unit=self.occupants.get(i),
            city=self.cities.get(i),
        )

    def unit_at(self, x: int, y: int) -> Optional["Unit"]:
        if not self.in_bounds(x, y):
            return None
        return self.occupants.get(self.index(x, y))

    def city_at(self, x: int, y: int) -> Optional[City]:
        if not self.in_bounds(x, y):
            return None
        return self.cities.get(self.index(x, y))

    def neighbors(self, x: int, y: int, radius: int = 1) -> Iterator[Tuple[int, int]]:
        """In-bounds tiles of the square neighborhood, row by row, excluding (x, y)."""
        for dy in range(-radius, radius + 1):
            for dx in range(-radius, radius + 1):
                if dx == 0 and dy == 0:
                    continue
                nx, ny = x + dx, y + dy
                if self.in_bounds(nx, ny):
                    yield nx, ny

    def ring_search(
        self,
        x: int,
        y: int,
        max_radius: int,
        accept: Callable[[int], bool],
    ) -> Optional[int]:
        """
        Find the nearest tile around (x, y) satisfying ``accept``.

        Searches expanding square rings (radius 0 first), scanning each
        ring row by row, and returns the first accepted tile index.
        """
        for radius in range(max_radius + 1):
            for dy in range(-radius, radius + 1):
                for dx in range(-radius, radius + 1):
                    if max(abs(dx), abs(dy)) != radius:
                        continue
                    nx, ny = x + dx, y + dy
                    if not self.in_bounds(nx, ny):
                        continue
                    i = self.index(nx, ny)
                    if accept(i):
                        return i
        return None


def build_world_grid(
    width: int,
    height: int,
    seed: int,
    prng: LCGPRNG,
    heightmap_config: Optional[HeightmapConfig] = None,
    grid_options: Optional[WorldGridOptions] = None,
    hydrology_options: Optional[HydrologyOptions] = None,
) -> WorldGrid:
    """
    Build a classified, river-carved world grid.

    Args:
        width: Map width in tiles
        height: Map height in tiles
        seed: Heightmap stream seed (already salted by the caller)
        prng: Main game stream, used for river sources
        heightmap_config: Optional heightmap overrides (size is forced)
        grid_options: Terrain thresholds
        hydrology_options: River carving parameters

    Returns:
        New WorldGrid
    """
    if heightmap_config is not None:
        config = replace(heightmap_config, width=width, height=height)
    else:
        config = HeightmapConfig(width=width, height=height)

    heights = HeightmapGenerator(config, LCGPRNG(seed)).generate()
    grid = WorldGrid.from_heights(heights, grid_options)

    hydrology = Hydrology(grid, prng, hydrology_options)
    grid.rivers = hydrology.carve_rivers()

    logger.info(
        "World grid built",
        width=width,
        height=height,
        water_tiles=int(grid.water.sum()),
        mountain_tiles=int(grid.mountain.sum()),
        rivers=len(grid.rivers),
    )
    return grid
