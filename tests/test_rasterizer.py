"""Tests for screen projection and grid geometry."""

import math

import numpy as np
import pytest

from py_atlas.core.rasterizer import (
    LinearScale,
    cell_centers,
    grid_geometry,
    is_renderable,
    project_points,
)


class TestGridGeometry:
    """Test grid sizing from canvas dimensions."""

    def test_square_canvas(self):
        """Test a square canvas gets resolution cells per side."""
        geometry = grid_geometry(400, 400, 200)
        assert geometry.cell_size == 2
        assert geometry.cols == 200
        assert geometry.rows == 200

    def test_wide_canvas(self):
        """Test cell size follows the longest side."""
        geometry = grid_geometry(800, 400, 200)
        assert geometry.cell_size == 4
        assert geometry.cols == 200
        assert geometry.rows == 100

    def test_partial_cells_round_up(self):
        geometry = grid_geometry(401, 400, 200)
        assert geometry.cols == 200
        assert geometry.rows == 200
        assert geometry.rows * geometry.cell_size >= 400

    def test_at_least_one_cell(self):
        geometry = grid_geometry(1000, 1, 10)
        assert geometry.rows == 1

    @pytest.mark.parametrize(
        "width,height",
        [(0, 100), (100, -1), (math.inf, 100), (100, math.nan)],
    )
    def test_degenerate_canvas_not_renderable(self, width, height):
        assert not is_renderable(width, height)

    def test_cell_centers(self):
        geometry = grid_geometry(4, 2, 4)
        xs, ys = cell_centers(geometry)
        assert xs.shape == (2, 4)
        np.testing.assert_allclose(xs[0], [0.5, 1.5, 2.5, 3.5])
        np.testing.assert_allclose(ys[:, 0], [0.5, 1.5])


class TestProjection:
    """Test data-to-screen projection."""

    def test_linear_scale(self):
        scale = LinearScale((0, 10), (50, 150))
        np.testing.assert_allclose(scale(np.array([0, 5, 10])), [50, 100, 150])

    def test_zero_span_maps_to_midpoint(self):
        """Test a zero-width domain maps to the middle of the range."""
        scale = LinearScale((3, 3), (50, 150))
        np.testing.assert_allclose(scale(np.array([3.0])), [100])

    def test_triangle_projection(self):
        """Test the extent fills the padded canvas with y inverted."""
        coords = np.array([[0, 2], [2, 2], [1, 0]], dtype=float)
        screen = project_points(coords, 200, 200, padding=50)
        np.testing.assert_allclose(screen, [[50, 50], [150, 50], [100, 150]])

    def test_single_point_centred(self):
        screen = project_points(np.array([[7.0, -3.0]]), 300, 200, padding=50)
        np.testing.assert_allclose(screen, [[150, 100]])

    def test_no_points(self):
        screen = project_points(np.zeros((0, 2)), 200, 200)
        assert screen.shape == (0, 2)
