"""Screen projection and grid geometry for density rasterization."""

import math
from typing import NamedTuple, Tuple

import numpy as np
import structlog

logger = structlog.get_logger()


class GridGeometry(NamedTuple):
    """Grid dimensions derived from a canvas size."""
    cols: int
    rows: int
    cell_size: float


class LinearScale:
    """
    Linear map from a data domain to a screen range.

    A zero-width domain maps every value to the middle of the range.
    """

    def __init__(self, domain: Tuple[float, float], range_: Tuple[float, float]):
        self.domain = domain
        self.range = range_

    def __call__(self, values):
        d0, d1 = self.domain
        r0, r1 = self.range
        span = d1 - d0
        if span == 0:
            t = np.full_like(np.asarray(values, dtype=np.float64), 0.5)
        else:
            t = (np.asarray(values, dtype=np.float64) - d0) / span
        return r0 + t * (r1 - r0)


def is_renderable(width: float, height: float) -> bool:
    """Whether a canvas size can hold a grid at all."""
    return (
        math.isfinite(width)
        and math.isfinite(height)
        and width > 0
        and height > 0
    )


def grid_geometry(width: float, height: float, resolution: int) -> GridGeometry:
    """
    Derive grid dimensions from a canvas size.

    Args:
        width: Canvas width in pixels
        height: Canvas height in pixels
        resolution: Number of cells along the longest side

    Returns:
        GridGeometry with at least one column and one row
    """
    cell_size = max(width, height) / resolution
    cols = max(1, math.ceil(width / cell_size))
    rows = max(1, math.ceil(height / cell_size))
    return GridGeometry(cols=cols, rows=rows, cell_size=cell_size)


def build_scales(
    coordinates: np.ndarray, width: float, height: float, padding: float = 50
) -> Tuple[LinearScale, LinearScale]:
    """
    Build x/y scales mapping the point extent into the padded canvas.

    The y scale is inverted: data-up maps to screen-down.
    """
    x_extent = (float(coordinates[:, 0].min()), float(coordinates[:, 0].max()))
    y_extent = (float(coordinates[:, 1].min()), float(coordinates[:, 1].max()))

    x_scale = LinearScale(x_extent, (padding, width - padding))
    y_scale = LinearScale(y_extent, (height - padding, padding))
    return x_scale, y_scale


def project_points(
    coordinates: np.ndarray, width: float, height: float, padding: float = 50
) -> np.ndarray:
    """
    Project data-space coordinates into screen space.

    Args:
        coordinates: (n, 2) array of data coordinates
        width: Canvas width
        height: Canvas height
        padding: Border kept free around the extent

    Returns:
        (n, 2) array of screen coordinates; empty when there are no points
    """
    if len(coordinates) == 0:
        return np.zeros((0, 2), dtype=np.float64)

    x_scale, y_scale = build_scales(coordinates, width, height, padding)
    screen = np.empty_like(coordinates, dtype=np.float64)
    screen[:, 0] = x_scale(coordinates[:, 0])
    screen[:, 1] = y_scale(coordinates[:, 1])
    return screen


def cell_centers(geometry: GridGeometry) -> Tuple[np.ndarray, np.ndarray]:
    """Screen-space x and y of every cell centre, each shaped (rows, cols)."""
    xs = np.arange(geometry.cols) * geometry.cell_size + geometry.cell_size / 2
    ys = np.arange(geometry.rows) * geometry.cell_size + geometry.cell_size / 2
    return np.meshgrid(xs, ys)
