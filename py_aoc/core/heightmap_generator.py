"""
Heightmap generation for the game world.

Sums several octaves of value noise (fractal Brownian motion) over the
tile grid, using NumPy so a whole map is evaluated in a few vectorized
passes.
"""

from dataclasses import dataclass

import numpy as np
import structlog

from .lcg_prng import LCGPRNG
from .noise import ValueNoise

logger = structlog.get_logger()


@dataclass
class HeightmapConfig:
    """Configuration for heightmap generation."""

    width: int
    height: int
    lattice_size: int = 32
    octaves: int = 5
    persistence: float = 0.5  # Amplitude multiplier per octave
    lacunarity: float = 2.0  # Frequency multiplier per octave
    latitude_bias: float = 0.0  # 0 disables the equator-favoring falloff


class HeightmapGenerator:
    """
    Generates elevation for every tile of the world grid.

    Heights are normalized by the total octave amplitude so they cluster
    in [0, 1]; the optional latitude bias lowers land towards the poles.
    """

    def __init__(self, config: HeightmapConfig, prng: LCGPRNG):
        """
        Initialize the heightmap generator.

        Args:
            config: Heightmap configuration
            prng: Stream used to fill the noise lattice
        """
        self.config = config
        self.noise = ValueNoise(config.lattice_size, config.lattice_size, prng)

    def height_at(self, x: float, y: float) -> float:
        """Height of a single world coordinate."""
        return float(self._fbm(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64)))

    def generate(self) -> np.ndarray:
        """
        Generate heights for the whole grid.

        Returns:
            Array of shape (height, width), indexed ``[y, x]``
        """
        cfg = self.config
        ys, xs = np.mgrid[0:cfg.height, 0:cfg.width]
        heights = self._fbm(xs.astype(np.float64), ys.astype(np.float64))

        logger.info(
            "Heightmap generated",
            width=cfg.width,
            height=cfg.height,
            min_height=float(heights.min()),
            max_height=float(heights.max()),
        )
        return heights

    def _fbm(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        cfg = self.config
        nx = x / cfg.width
        ny = y / cfg.height

        amp = 1.0
        freq = 1.0
        total = np.zeros(np.shape(nx), dtype=np.float64)
        norm = 0.0
        for _ in range(cfg.octaves):
            total = total + amp * self.noise.sample(np.mod(nx * freq, 1.0), np.mod(ny * freq, 1.0))
            norm += amp
            amp *= cfg.persistence
            freq *= cfg.lacunarity
        heights = total / norm

        if cfg.latitude_bias:
            heights = heights * (1.0 - cfg.latitude_bias * np.abs(2.0 * ny - 1.0))
        return heights
