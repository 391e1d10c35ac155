"""
Seed handling for the game's LCG streams.

Every generation stage draws from its own stream, derived from the game
seed with a fixed XOR salt, so changing how many numbers one stage
consumes never shifts another stage's output.
"""

import secrets
import zlib
from typing import Optional, Union

from ..core.lcg_prng import LCGPRNG

HEIGHTMAP_SALT = 0xDEADBEEF
REGIONS_SALT = 0xC0FFEE
FACTIONS_SALT = 0x1234

SeedLike = Union[int, float, str, None]


def normalize_seed(seed: SeedLike) -> int:
    """
    Coerce any seed-like value to an unsigned 32-bit integer.

    Integers (including negative ones) wrap modulo 2**32, floats are
    truncated first, numeric strings are parsed and other strings are
    hashed with CRC32. ``None`` draws a fresh random seed.

    Args:
        seed: Seed value supplied by a caller

    Returns:
        Seed in the range [0, 2**32)
    """
    if seed is None:
        return secrets.randbits(32)
    if isinstance(seed, bool):
        return int(seed)
    if isinstance(seed, int):
        return seed & 0xFFFFFFFF
    if isinstance(seed, float):
        if seed != seed or seed in (float("inf"), float("-inf")):
            return 0
        return int(seed) & 0xFFFFFFFF
    text = str(seed).strip()
    try:
        return int(text) & 0xFFFFFFFF
    except ValueError:
        return zlib.crc32(text.encode("utf-8")) & 0xFFFFFFFF


def derive_seed(seed: int, salt: int) -> int:
    """Derive a stage seed from the game seed."""
    return (normalize_seed(seed) ^ salt) & 0xFFFFFFFF


def make_prng(seed: SeedLike, salt: Optional[int] = None) -> LCGPRNG:
    """
    Build an LCG stream for a seed, optionally salted for a stage.

    Args:
        seed: Game seed
        salt: Optional stage salt (see the ``*_SALT`` constants)

    Returns:
        Fresh LCGPRNG instance
    """
    base = normalize_seed(seed)
    if salt is not None:
        base = derive_seed(base, salt)
    return LCGPRNG(base)
