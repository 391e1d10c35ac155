"""
Value noise over a random lattice.

The lattice is filled from an LCG stream and sampled with bilinear
interpolation, which gives a smooth continuous field on [0, 1) x [0, 1).
"""

from typing import Union

import numpy as np

from .lcg_prng import LCGPRNG

ArrayLike = Union[float, np.ndarray]

# Largest float strictly below 1.0
_BELOW_ONE = np.nextafter(1.0, 0.0)


class ValueNoise:
    """
    Bilinearly interpolated value noise.

    Builds a (w + 1) x (h + 1) lattice of random values, filled column by
    column (x outer, y inner) so the draw order is fixed for a given seed.
    """

    def __init__(self, width: int, height: int, prng: LCGPRNG):
        """
        Initialize the lattice.

        Args:
            width: Lattice cells along u (must be at least 2)
            height: Lattice cells along v (must be at least 2)
            prng: Stream the lattice values are drawn from
        """
        if width < 2 or height < 2:
            raise ValueError("Noise lattice needs at least 2x2 cells")
        self.width = width
        self.height = height
        self.lattice = np.array(
            [[prng.random() for _ in range(height + 1)] for _ in range(width + 1)],
            dtype=np.float64,
        )

    def sample(self, u: ArrayLike, v: ArrayLike) -> ArrayLike:
        """
        Sample the field at (u, v).

        Coordinates are clamped into [0, 1) so lattice access never goes
        out of bounds. Accepts scalars or equally shaped numpy arrays.
        """
        scalar = np.isscalar(u) and np.isscalar(v)
        u = np.clip(np.asarray(u, dtype=np.float64), 0.0, _BELOW_ONE)
        v = np.clip(np.asarray(v, dtype=np.float64), 0.0, _BELOW_ONE)

        fu = u * (self.width - 1)
        fv = v * (self.height - 1)
        x = np.floor(fu).astype(np.int64)
        y = np.floor(fv).astype(np.int64)
        fx = fu - x
        fy = fv - y

        a = self.lattice[x, y]
        b = self.lattice[x + 1, y]
        c = self.lattice[x, y + 1]
        d = self.lattice[x + 1, y + 1]

        top = a + (b - a) * fx
        bottom = c + (d - c) * fx
        result = top + (bottom - top) * fy
        return float(result) if scalar else result
