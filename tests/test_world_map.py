"""Tests for the WorldMap read API."""

import pytest
import numpy as np
from py_worldgen.core.errors import UnknownCellError
from py_worldgen.core.world_map import SEA_LEVEL, WorldMap


class TestWorldMap:
    """Test queries on a 3x3 grid of unit cells."""

    @pytest.fixture
    def world(self, grid_graph):
        heights = np.array([0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9])
        return WorldMap(graph=grid_graph, heights=heights, scale=10.0, height_scale=2.0,
                        seed="abc")

    def test_height_and_elevation(self, world):
        assert world.height(4) == pytest.approx(0.5)
        assert world.elevation(8) == pytest.approx(1.8)

    def test_neighbors(self, world):
        assert world.neighbors(4) == [1, 3, 5, 7]
        assert world.neighbors(0) == [1, 3]

    def test_position_in_world_units(self, world):
        np.testing.assert_allclose(world.position(4), [15.0, 15.0])

    def test_bounds(self, world):
        low, high = world.bounds()
        np.testing.assert_allclose(low, [5.0, 5.0])
        np.testing.assert_allclose(high, [25.0, 25.0])

    def test_cell_for_position(self, world):
        assert world.cell_for_position((15.0, 15.0)) == 4
        assert world.cell_for_position((29.0, 1.0)) == 2
        assert world.cell_for_position((1.0, 29.0)) == 6

    def test_cell_for_position_outside(self, world):
        assert world.cell_for_position((-1.0, 5.0)) is None
        assert world.cell_for_position((100.0, 100.0)) is None

    def test_shared_edge_resolves_to_lowest_id(self, world):
        assert world.cell_for_position((10.0, 5.0)) == 0
        assert world.cell_for_position((10.0, 10.0)) == 0

    def test_polygon(self, world):
        polygon = world.polygon(4)
        assert polygon.area == pytest.approx(100.0)

    def test_is_water(self, world):
        assert world.is_water(3)
        assert not world.is_water(4)
        assert SEA_LEVEL == 0.5

    def test_land_fraction(self, world):
        assert world.land_fraction() == pytest.approx(5 / 9)

    def test_unknown_cell(self, world):
        with pytest.raises(UnknownCellError):
            world.height(9)
        with pytest.raises(UnknownCellError):
            world.neighbors(-1)
        with pytest.raises(IndexError):
            world.position(100)

    def test_heights_read_only(self, world):
        with pytest.raises(ValueError):
            world.heights[0] = 1.0

    def test_frozen(self, world):
        with pytest.raises(AttributeError):
            world.scale = 2.0

    def test_copies_input(self, grid_graph):
        heights = np.full(9, 0.5)
        world = WorldMap(graph=grid_graph, heights=heights)
        heights[0] = 0.0
        assert world.height(0) == 0.5

    def test_with_heights(self, world):
        updated = world.with_heights(np.full(9, 0.25))
        assert updated is not world
        assert updated.height(8) == 0.25
        assert world.height(8) == pytest.approx(0.9)
        assert updated.seed == world.seed
        assert updated.cell_for_position((15.0, 15.0)) == 4

    def test_non_finite_cells(self, grid_graph):
        heights = np.full(9, 0.5)
        heights[[2, 7]] = np.nan
        world = WorldMap(graph=grid_graph, heights=heights)
        np.testing.assert_array_equal(world.non_finite_cells(), [2, 7])

    def test_wrong_height_count(self, grid_graph):
        with pytest.raises(ValueError):
            WorldMap(graph=grid_graph, heights=np.zeros(4))

    def test_iter_cells(self, world):
        assert list(world.iter_cells()) == list(range(9))
