"""Tests for the LCG stream and seed handling."""

import zlib

import pytest

from py_aoc.core.lcg_prng import LCGPRNG
from py_aoc.utils.random import (
    FACTIONS_SALT,
    HEIGHTMAP_SALT,
    REGIONS_SALT,
    derive_seed,
    make_prng,
    normalize_seed,
)


class TestLCGPRNG:
    """Test the linear congruential generator."""

    def test_first_values_follow_recurrence(self):
        prng = LCGPRNG(0)
        assert prng.random() == 1013904223 / 2**32

        state = 1013904223
        for _ in range(10):
            state = (state * 1664525 + 1013904223) % 2**32
            assert prng.random() == state / 2**32

    def test_seed_one(self):
        assert LCGPRNG(1).random() == (1664525 + 1013904223) / 2**32

    def test_values_in_unit_interval(self):
        prng = LCGPRNG(987654321)
        values = [prng.random() for _ in range(1000)]
        assert all(0.0 <= v < 1.0 for v in values)
        assert prng.call_count == 1000

    def test_same_seed_same_sequence(self):
        a = LCGPRNG(42)
        b = LCGPRNG(42)
        assert [a.random() for _ in range(50)] == [b.random() for _ in range(50)]

    def test_wide_seed_truncated(self):
        assert LCGPRNG(2**32 + 5).random() == LCGPRNG(5).random()

    def test_state_resumes_sequence(self):
        prng = LCGPRNG(42)
        for _ in range(17):
            prng.random()
        resumed = LCGPRNG(0)
        resumed.state = prng.state
        assert [resumed.random() for _ in range(5)] == [prng.random() for _ in range(5)]

    def test_randint_range(self):
        prng = LCGPRNG(3)
        values = [prng.randint(7) for _ in range(500)]
        assert min(values) == 0
        assert max(values) == 6

    def test_uniform_range(self):
        prng = LCGPRNG(11)
        values = [prng.uniform(0.6, 1.4) for _ in range(500)]
        assert all(0.6 <= v < 1.4 for v in values)

    def test_chance_consumes_one_draw(self):
        prng = LCGPRNG(5)
        prng.chance(0.0)
        prng.chance(1.0)
        assert prng.call_count == 2

    def test_choice(self):
        prng = LCGPRNG(8)
        items = ["a", "b", "c"]
        assert all(prng.choice(items) in items for _ in range(20))
        with pytest.raises(IndexError):
            prng.choice([])


class TestSeeds:
    """Test seed normalization and stage derivation."""

    def test_integers_wrap(self):
        assert normalize_seed(42) == 42
        assert normalize_seed(-1) == 0xFFFFFFFF
        assert normalize_seed(2**32 + 3) == 3

    def test_floats_truncate(self):
        assert normalize_seed(3.9) == 3
        assert normalize_seed(float("nan")) == 0
        assert normalize_seed(float("inf")) == 0

    def test_strings(self):
        assert normalize_seed("42") == 42
        assert normalize_seed("abc") == zlib.crc32(b"abc")

    def test_none_is_random_32_bit(self):
        seed = normalize_seed(None)
        assert 0 <= seed < 2**32

    def test_derived_streams_differ(self):
        seeds = {derive_seed(42, salt) for salt in (HEIGHTMAP_SALT, REGIONS_SALT, FACTIONS_SALT)}
        assert len(seeds) == 3
        assert derive_seed(42, HEIGHTMAP_SALT) == 42 ^ 0xDEADBEEF

    def test_make_prng_with_salt(self):
        assert make_prng(42, REGIONS_SALT).state == 42 ^ 0xC0FFEE
        assert make_prng("42").state == 42
