"""
River carving.

Rivers are greedy descents: starting from a random tile, a walker
repeatedly steps to the strictly lowest of its eight neighbors, turning
the tiles it visits into water, until it reaches a local minimum or runs
out of steps. There is no flow accumulation.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Tuple

import structlog

from .lcg_prng import LCGPRNG

if TYPE_CHECKING:
    from .world_grid import WorldGrid

logger = structlog.get_logger()


@dataclass
class HydrologyOptions:
    """River carving options."""

    river_density: float = 0.002  # Walks per tile of map area
    max_river_steps: int = 300  # Step budget per walk
    river_height_threshold: float = 0.52  # A walk's tiles below this become water


@dataclass
class River:
    """Tiles visited by one descending walk, source first."""

    id: int
    cells: List[int] = field(default_factory=list)

    @property
    def source_cell(self) -> int:
        return self.cells[0]

    @property
    def mouth_cell(self) -> int:
        return self.cells[-1]

    @property
    def length(self) -> int:
        return len(self.cells)


class Hydrology:
    """Carves rivers into a classified world grid."""

    def __init__(self, grid: "WorldGrid", prng: LCGPRNG, options: Optional[HydrologyOptions] = None):
        """
        Initialize hydrology system.

        Args:
            grid: WorldGrid with heights and water/mountain flags populated
            prng: Stream the river sources are drawn from
            options: River carving options
        """
        self.grid = grid
        self.prng = prng
        self.options = options or HydrologyOptions()
        self.rivers: List[River] = []

    def carve_rivers(self) -> List[River]:
        """
        Run every river walk and return the walks as River records.

        The number of walks is ``floor(width * height * river_density)``.
        """
        grid = self.grid
        trials = int(grid.width * grid.height * self.options.river_density)
        logger.info("Carving rivers", trials=trials)

        self.rivers = []
        for river_id in range(trials):
            x = self.prng.randint(grid.width)
            y = self.prng.randint(grid.height)
            self.rivers.append(self._walk(river_id, x, y))

        logger.info(
            "Rivers carved",
            rivers=len(self.rivers),
            longest=max((r.length for r in self.rivers), default=0),
        )
        return self.rivers

    def _walk(self, river_id: int, x: int, y: int) -> River:
        grid = self.grid
        threshold = self.options.river_height_threshold
        river = River(id=river_id, cells=[grid.index(x, y)])

        for _ in range(self.options.max_river_steps):
            i = grid.index(x, y)
            if grid.heights[i] < threshold:
                self._flood(i)

            lowest = self._lowest_neighbor(x, y)
            if lowest is None:
                break
            x, y = lowest
            j = grid.index(x, y)
            self._flood(j)
            river.cells.append(j)
        return river

    def _lowest_neighbor(self, x: int, y: int) -> Optional[Tuple[int, int]]:
        """Strictly lowest neighbor of (x, y); the first one scanned wins ties."""
        grid = self.grid
        best = None
        best_height = grid.heights[grid.index(x, y)]
        for nx, ny in grid.neighbors(x, y):
            h = grid.heights[grid.index(nx, ny)]
            if h < best_height:
                best = (nx, ny)
                best_height = h
        return best

    def _flood(self, i: int) -> None:
        # Water wins over mountain so each tile has exactly one terrain class
        self.grid.water[i] = True
        self.grid.mountain[i] = False
