"""Tests for region partitioning."""

import numpy as np
import pytest

from py_aoc.core.lcg_prng import LCGPRNG
from py_aoc.core.regions import Region, RegionOptions, RegionPartitioner
from py_aoc.core.world_grid import NO_REGION, WorldGrid, build_world_grid


def flat_grid(width, height):
    return WorldGrid.from_heights(np.full((height, width), 0.6))


class TestRegionPartitioner:
    """Test discrete Voronoi regions."""

    @pytest.fixture
    def partitioned(self):
        grid = build_world_grid(48, 32, 21, LCGPRNG(21))
        regions = RegionPartitioner(grid, LCGPRNG(22), RegionOptions(region_count=20)).partition()
        return grid, regions

    def test_ids_are_dense(self, partitioned):
        _, regions = partitioned
        assert [r.id for r in regions] == list(range(len(regions)))
        assert all(r.tiles for r in regions)

    def test_every_tile_in_exactly_one_region(self, partitioned):
        grid, regions = partitioned
        assert not np.any(grid.region == NO_REGION)

        all_tiles = [t for r in regions for t in r.tiles]
        assert len(all_tiles) == grid.size
        assert len(set(all_tiles)) == grid.size
        for region in regions:
            assert np.all(grid.region[region.tiles] == region.id)

    def test_no_more_regions_than_seeds(self, partitioned):
        _, regions = partitioned
        assert 1 <= len(regions) <= 20

    def test_deterministic(self):
        grid_a = build_world_grid(48, 32, 3, LCGPRNG(3))
        grid_b = build_world_grid(48, 32, 3, LCGPRNG(3))
        a = RegionPartitioner(grid_a, LCGPRNG(4)).partition()
        b = RegionPartitioner(grid_b, LCGPRNG(4)).partition()
        assert [r.tiles for r in a] == [r.tiles for r in b]
        np.testing.assert_array_equal(grid_a.region, grid_b.region)

    def test_ties_go_to_lowest_seed(self):
        grid = flat_grid(3, 1)
        regions = RegionPartitioner(grid, LCGPRNG(0)).assign_tiles([(0, 0), (2, 0)])
        assert regions[0].tiles == [0, 1]
        assert regions[1].tiles == [2]

    def test_tiles_in_row_major_order(self):
        grid = flat_grid(6, 6)
        regions = RegionPartitioner(grid, LCGPRNG(0)).assign_tiles([(1, 1), (4, 4)])
        for region in regions:
            assert region.tiles == sorted(region.tiles)

    def test_small_region_merges_into_neighbor(self):
        grid = flat_grid(10, 10)
        corner = grid.index(9, 9)
        grid.region[:] = 0
        grid.region[corner] = 1
        regions = [
            Region(id=0, tiles=[i for i in range(grid.size) if i != corner]),
            Region(id=1, tiles=[corner]),
        ]

        partitioner = RegionPartitioner(grid, LCGPRNG(0), RegionOptions(min_region_size=5))
        assert partitioner.merge_small_regions(regions) == 1
        assert regions[1].tiles == []
        assert corner in regions[0].tiles

        compacted = partitioner.compact(regions)
        assert len(compacted) == 1
        assert np.all(grid.region == 0)

    def test_isolated_small_region_is_kept(self):
        grid = flat_grid(3, 3)
        grid.region[:] = 0
        regions = [Region(id=0, tiles=list(range(9)))]

        partitioner = RegionPartitioner(grid, LCGPRNG(0), RegionOptions(min_region_size=100))
        assert partitioner.merge_small_regions(regions) == 0
        assert len(regions[0].tiles) == 9

    def test_compact_renumbers(self):
        grid = flat_grid(4, 1)
        grid.region[:] = [0, 0, 2, 2]
        regions = [Region(id=0, tiles=[0, 1]), Region(id=1, tiles=[]), Region(id=2, tiles=[2, 3])]

        compacted = RegionPartitioner(grid, LCGPRNG(0)).compact(regions)
        assert [r.id for r in compacted] == [0, 1]
        assert grid.region.tolist() == [0, 0, 1, 1]

    def test_representative_tile(self):
        region = Region(id=0, tiles=[10, 11, 12, 13, 14])
        assert region.representative_tile() == 12
        assert region.representative_tile(0.0) == 10
