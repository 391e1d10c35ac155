"""
Region partitioning based on a discrete Voronoi diagram.

Process:
1. scatter_seeds() - Random seed points, one per region
2. assign_tiles() - Every tile joins its nearest seed
3. merge_small_regions() - Undersized regions fold into a nearby region
4. compact() - Surviving regions are renumbered 0..N-1
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import structlog
from pydantic import BaseModel, Field

from .lcg_prng import LCGPRNG
from .world_grid import NO_REGION, WorldGrid

logger = structlog.get_logger()


class RegionOptions(BaseModel):
    """Region partition options."""

    region_count: int = Field(default=80, ge=1, description="Number of Voronoi seeds")
    min_region_size: int = Field(
        default=20, ge=0, description="Absolute floor for the merge threshold"
    )
    min_size_divisor: int = Field(
        default=240, ge=1, description="Merge threshold is map area / this (if larger)"
    )
    merge_search_radius: int = Field(
        default=2, ge=1, description="Neighborhood scanned for a merge target"
    )


@dataclass
class Region:
    """A territorial unit: an ordered list of tile indices and an owner."""

    id: int
    tiles: List[int] = field(default_factory=list)
    owner: Optional[int] = None

    def representative_tile(self, ratio: float = 0.4) -> int:
        """
        A fixed tile used as the region's position for distance checks.

        Not a centroid: the tile at ``floor(len(tiles) * ratio)`` in
        membership order.
        """
        return self.tiles[int(len(self.tiles) * ratio)]


class RegionPartitioner:
    """Splits a world grid into regions."""

    def __init__(self, grid: WorldGrid, prng: LCGPRNG, options: Optional[RegionOptions] = None):
        """
        Initialize the partitioner.

        Args:
            grid: Classified world grid; its region array is overwritten
            prng: Region stream (seed points only)
            options: Region partition options
        """
        self.grid = grid
        self.prng = prng
        self.options = options or RegionOptions()

    def partition(self) -> List[Region]:
        """Run the full partition and return the compacted region list."""
        seeds = self.scatter_seeds()
        regions = self.assign_tiles(seeds)
        merged = self.merge_small_regions(regions)
        compacted = self.compact(regions)

        logger.info(
            "Regions partitioned",
            seeds=len(seeds),
            merged=merged,
            regions=len(compacted),
        )
        return compacted

    def scatter_seeds(self) -> List[Tuple[int, int]]:
        """Draw one (x, y) seed per requested region."""
        seeds = []
        for _ in range(self.options.region_count):
            x = self.prng.randint(self.grid.width)
            y = self.prng.randint(self.grid.height)
            seeds.append((x, y))
        return seeds

    def assign_tiles(self, seeds: List[Tuple[int, int]]) -> List[Region]:
        """
        Assign each tile to the seed at minimal squared distance.

        Ties go to the lowest seed index. Tiles within a region are kept
        in row-major order.
        """
        grid = self.grid
        cells = np.arange(grid.size, dtype=np.int64)
        xs = cells % grid.width
        ys = cells // grid.width

        seed_x = np.array([s[0] for s in seeds], dtype=np.int64)
        seed_y = np.array([s[1] for s in seeds], dtype=np.int64)
        d2 = (xs[None, :] - seed_x[:, None]) ** 2 + (ys[None, :] - seed_y[:, None]) ** 2

        # argmin returns the first minimum, which is the lowest seed index
        nearest = np.argmin(d2, axis=0).astype(np.int32)
        grid.region[:] = nearest

        order = np.argsort(nearest, kind="stable")
        counts = np.bincount(nearest, minlength=len(seeds))
        bounds = np.concatenate(([0], np.cumsum(counts)))

        return [
            Region(id=rid, tiles=order[bounds[rid]:bounds[rid + 1]].tolist())
            for rid in range(len(seeds))
        ]

    def merge_small_regions(self, regions: List[Region]) -> int:
        """
        Fold undersized regions into a neighboring region.

        For each region (in list order) smaller than
        ``max(min_region_size, area // min_size_divisor)``, the square
        neighborhood of its first tile is scanned row by row for a tile of
        another region. If one is found, all tiles move there; otherwise
        the region is left as it is.

        Returns:
            Number of regions merged away
        """
        grid = self.grid
        min_size = max(self.options.min_region_size, grid.size // self.options.min_size_divisor)
        merged = 0

        for region in list(regions):
            if not region.tiles or len(region.tiles) >= min_size:
                continue

            x, y = grid.coords(region.tiles[0])
            neighbor = self._find_neighbor_region(x, y, region.id)
            if neighbor is None:
                logger.debug("Undersized region kept", region=region.id, tiles=len(region.tiles))
                continue

            target = regions[neighbor]
            grid.region[np.asarray(region.tiles, dtype=np.int64)] = neighbor
            target.tiles.extend(region.tiles)
            region.tiles = []
            merged += 1

        return merged

    def _find_neighbor_region(self, x: int, y: int, region_id: int) -> Optional[int]:
        grid = self.grid
        radius = self.options.merge_search_radius
        for dy in range(-radius, radius + 1):
            for dx in range(-radius, radius + 1):
                nx, ny = x + dx, y + dy
                if not grid.in_bounds(nx, ny):
                    continue
                other = int(grid.region[grid.index(nx, ny)])
                if other != region_id and other != NO_REGION:
                    return other
        return None

    def compact(self, regions: List[Region]) -> List[Region]:
        """Drop empty regions and renumber the rest densely, updating tiles."""
        compacted = []
        for region in regions:
            if not region.tiles:
                continue
            region.id = len(compacted)
            self.grid.region[np.asarray(region.tiles, dtype=np.int64)] = region.id
            compacted.append(region)
        return compacted
