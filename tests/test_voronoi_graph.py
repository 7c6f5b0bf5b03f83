"""Tests for Voronoi graph generation."""

import pytest
import numpy as np
from py_worldgen.core.alea_prng import AleaPRNG
from py_worldgen.core.errors import ConfigurationError, UnknownCellError
from py_worldgen.core.voronoi_graph import (
    GridConfig, build_voronoi_graph, compute_polygon_centroid, generate_voronoi_graph,
    get_boundary_points, get_jittered_grid
)


class TestJitteredGrid:
    """Test jittered grid generation."""

    def test_grid_size(self):
        """Test that grid generates expected number of points."""
        points = get_jittered_grid(10, 10, 1, AleaPRNG("test_seed"))
        assert len(points) == 100

    def test_point_bounds(self):
        """Test that all points are within bounds."""
        width, height = 16.0, 9.0
        points = get_jittered_grid(width, height, 0.3, AleaPRNG("test_seed"))

        assert np.all(points[:, 0] >= 0)
        assert np.all(points[:, 0] <= width)
        assert np.all(points[:, 1] >= 0)
        assert np.all(points[:, 1] <= height)

    def test_jittering_consistency(self):
        """Test that same seed produces same jittering."""
        points1 = get_jittered_grid(5, 5, 0.5, AleaPRNG("test_seed"))
        points2 = get_jittered_grid(5, 5, 0.5, AleaPRNG("test_seed"))
        np.testing.assert_array_equal(points1, points2)

    def test_different_seeds(self):
        """Test that different seeds produce different results."""
        points1 = get_jittered_grid(5, 5, 0.5, AleaPRNG("seed1"))
        points2 = get_jittered_grid(5, 5, 0.5, AleaPRNG("seed2"))
        assert not np.array_equal(points1, points2)


class TestBoundaryPoints:
    """Test pseudo-clipping boundary ring."""

    def test_points_outside_domain(self):
        """Every boundary point lies outside the domain rectangle."""
        points = get_boundary_points(16.0, 9.0, 0.5)
        outside = ((points[:, 0] < 0) | (points[:, 0] > 16.0) |
                   (points[:, 1] < 0) | (points[:, 1] > 9.0))
        assert outside.all()

    def test_small_spacing(self):
        """Fractional spacings still produce a ring."""
        points = get_boundary_points(4.0, 3.0, 0.2)
        assert len(points) > 20
        assert points[:, 0].min() == pytest.approx(-0.2)


class TestPolygonCentroid:

    def test_square_centroid(self):
        square = np.array([[0, 0], [2, 0], [2, 2], [0, 2]], dtype=float)
        np.testing.assert_allclose(compute_polygon_centroid(square), [1, 1])


class TestVoronoiGraph:
    """Test the generated partition."""

    @pytest.fixture
    def graph(self):
        return generate_voronoi_graph(GridConfig(4.0, 3.0, 120), AleaPRNG("voronoi_test"))

    def test_cell_count(self, graph):
        """Jittered grid yields roughly the requested cell count."""
        assert 100 <= graph.cell_count <= 140

    def test_neighbors_symmetric(self, graph):
        """Adjacency is symmetric and never self-referencing."""
        for cell, neighbors in enumerate(graph.cell_neighbors):
            assert cell not in neighbors
            for neighbor in neighbors:
                assert cell in graph.cell_neighbors[neighbor]

    def test_every_cell_has_neighbors(self, graph):
        assert all(len(n) > 0 for n in graph.cell_neighbors)

    def test_hull_cells_flagged(self, graph):
        """Both hull and interior cells exist."""
        hull = graph.cell_border_flags
        assert hull.any()
        assert (~hull).any()

    def test_for_each_cell(self, graph):
        cells = list(graph.for_each_cell())
        assert len(cells) == graph.cell_count
        cell_id, position, on_hull = cells[0]
        assert cell_id == 0
        np.testing.assert_array_equal(position, graph.points[0])
        assert on_hull == bool(graph.cell_border_flags[0])

    def test_boundary_vertices_closed_polygon(self, graph):
        """Every cell has a polygon surrounding its site."""
        for cell in range(graph.cell_count):
            vertices = graph.boundary_vertices(cell)
            assert len(vertices) >= 3

    def test_boundary_vertices_counter_clockwise(self, graph):
        vertices = graph.boundary_vertices(graph.cell_count // 2)
        x, y = vertices[:, 0], vertices[:, 1]
        signed_area = 0.5 * np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y)
        assert signed_area > 0

    def test_mean_edge_length(self, graph):
        """Mean neighbor distance is close to the grid spacing."""
        assert graph.mean_edge_length() == pytest.approx(graph.spacing, rel=0.35)

    def test_deterministic(self):
        config = GridConfig(4.0, 3.0, 80)
        g1 = generate_voronoi_graph(config, AleaPRNG("same"))
        g2 = generate_voronoi_graph(config, AleaPRNG("same"))
        np.testing.assert_array_equal(g1.points, g2.points)
        assert g1.cell_neighbors == g2.cell_neighbors

    def test_unknown_cell(self, graph):
        with pytest.raises(UnknownCellError):
            graph.neighbors(graph.cell_count)
        with pytest.raises(UnknownCellError):
            graph.boundary_vertices(-1)

    def test_invalid_config(self):
        with pytest.raises(ConfigurationError):
            generate_voronoi_graph(GridConfig(0, 3.0, 10), AleaPRNG("x"))
        with pytest.raises(ConfigurationError):
            generate_voronoi_graph(GridConfig(4.0, 3.0, 0), AleaPRNG("x"))

    def test_build_from_points(self):
        points = np.array([[0.5, 0.5], [1.5, 0.5], [0.5, 1.5], [1.5, 1.5]]) + 0.01 * np.array(
            [[0, 1], [1, 0], [-1, 0], [0, -1]])
        graph = build_voronoi_graph(points, 2.0, 2.0)
        assert graph.cell_count == 4
        assert all(len(n) >= 2 for n in graph.cell_neighbors)

    def test_build_needs_two_points(self):
        with pytest.raises(ConfigurationError):
            build_voronoi_graph(np.array([[0.5, 0.5]]), 1.0, 1.0)
