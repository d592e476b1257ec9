"""
Kernel density estimation over a screen-space grid.

This module implements:
- Coarse terrain density (Gaussian kernel, 3-sigma cutoff)
- Fine settlement density (2x resolution, 2-sigma cutoff, 2x amplification)
- Interior 3x3 box-blur smoothing with contour regeneration
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import structlog

from ..config import Settings, settings as default_settings
from .contours import Contour, extract_contours
from .rasterizer import (
    GridGeometry,
    cell_centers,
    grid_geometry,
    is_renderable,
    project_points,
)

logger = structlog.get_logger()


@dataclass
class KernelOptions:
    """Parameters of one density variant."""

    bandwidth: float  # fraction of min(width, height)
    resolution_factor: int = 1  # multiplier on the base grid resolution
    cutoff_sigmas_sq: float = 9.0  # cutoff radius squared, in bandwidths squared
    amplification: float = 1.0


TERRAIN_KERNEL_CUTOFF = 9.0
SETTLEMENT_KERNEL_CUTOFF = 4.0
SETTLEMENT_AMPLIFICATION = 2.0
SETTLEMENT_RESOLUTION_FACTOR = 2


@dataclass
class DensityGrid:
    """Normalized density field over a rectangular grid."""

    cols: int
    rows: int
    cell_size: float
    values: np.ndarray  # (rows, cols), float64 in [0, 1]
    contours: List[Contour] = field(default_factory=list)
    max_density: float = 0.0

    @classmethod
    def empty(cls) -> "DensityGrid":
        """The zero-sized grid returned for degenerate input."""
        return cls(cols=0, rows=0, cell_size=1.0, values=np.zeros((0, 0)), contours=[])

    @property
    def is_empty(self) -> bool:
        return self.cols == 0 or self.rows == 0

    def cell_center(self, row: int, col: int):
        """Screen-space centre of a cell."""
        return (col * self.cell_size + self.cell_size / 2, row * self.cell_size + self.cell_size / 2)


class DensityEstimator:
    """Computes terrain and settlement density grids from a point set."""

    def __init__(self, config: Optional[Settings] = None):
        """
        Initialize the estimator.

        Args:
            config: Engine settings (resolution, bandwidths, padding)
        """
        self.config = config or default_settings
        self.terrain_kernel = KernelOptions(
            bandwidth=self.config.kernel_bandwidth,
            cutoff_sigmas_sq=TERRAIN_KERNEL_CUTOFF,
        )
        self.settlement_kernel = KernelOptions(
            bandwidth=self.config.settlement_bandwidth,
            resolution_factor=SETTLEMENT_RESOLUTION_FACTOR,
            cutoff_sigmas_sq=SETTLEMENT_KERNEL_CUTOFF,
            amplification=SETTLEMENT_AMPLIFICATION,
        )

    def calculate_density_grid(
        self,
        coordinates: np.ndarray,
        width: float,
        height: float,
        padding: Optional[float] = None,
    ) -> DensityGrid:
        """Coarse terrain density grid."""
        return self._calculate(coordinates, width, height, padding, self.terrain_kernel)

    def calculate_settlement_density_grid(
        self,
        coordinates: np.ndarray,
        width: float,
        height: float,
        padding: Optional[float] = None,
    ) -> DensityGrid:
        """Fine settlement density grid at twice the terrain resolution."""
        return self._calculate(coordinates, width, height, padding, self.settlement_kernel)

    def _calculate(
        self,
        coordinates: np.ndarray,
        width: float,
        height: float,
        padding: Optional[float],
        kernel: KernelOptions,
    ) -> DensityGrid:
        if not is_renderable(width, height):
            logger.warning("Degenerate canvas, returning empty grid", width=width, height=height)
            return DensityGrid.empty()

        padding = self.config.padding if padding is None else padding
        geometry = grid_geometry(
            width, height, self.config.grid_resolution * kernel.resolution_factor
        )
        screen = project_points(np.asarray(coordinates, dtype=np.float64), width, height, padding)

        bandwidth = kernel.bandwidth * min(width, height)
        values = accumulate_density(screen, geometry, bandwidth, kernel)

        max_density = float(values.max()) if values.size else 0.0
        if max_density > 0:
            values = values / max_density
        else:
            logger.warning("No density contributions", points=len(screen))

        logger.info(
            "Density grid calculated",
            cols=geometry.cols,
            rows=geometry.rows,
            cell_size=geometry.cell_size,
            points=len(screen),
        )

        return DensityGrid(
            cols=geometry.cols,
            rows=geometry.rows,
            cell_size=geometry.cell_size,
            values=values,
            contours=extract_contours(values),
            max_density=1.0 if max_density > 0 else 0.0,
        )

    def smooth_density_grid(
        self, grid: DensityGrid, iterations: Optional[int] = None
    ) -> DensityGrid:
        """
        Apply interior 3x3 box-blur passes and regenerate contours.

        Border cells keep their values. The input grid is not modified.

        Args:
            grid: Grid to smooth
            iterations: Number of passes (defaults to the configured count)

        Returns:
            New DensityGrid with smoothed values and fresh contours
        """
        iterations = self.config.smoothing_iterations if iterations is None else iterations
        if grid.is_empty:
            return grid

        values = grid.values.copy()
        for _ in range(iterations):
            values = box_blur_interior(values)

        return DensityGrid(
            cols=grid.cols,
            rows=grid.rows,
            cell_size=grid.cell_size,
            values=values,
            contours=extract_contours(values),
            max_density=grid.max_density,
        )


def accumulate_density(
    screen: np.ndarray, geometry: GridGeometry, bandwidth: float, kernel: KernelOptions
) -> np.ndarray:
    """
    Sum Gaussian kernel weights at every cell centre.

    Points farther than the cutoff radius contribute nothing. Rows are
    processed one at a time to bound memory at cols x points.
    """
    values = np.zeros((geometry.rows, geometry.cols), dtype=np.float64)
    if len(screen) == 0:
        return values

    bandwidth_sq = bandwidth * bandwidth
    cutoff = bandwidth_sq * kernel.cutoff_sigmas_sq
    xs, ys = cell_centers(geometry)
    px = screen[:, 0]
    py = screen[:, 1]

    for row in range(geometry.rows):
        dx = xs[row][:, None] - px[None, :]
        dy = ys[row][:, None] - py[None, :]
        dist_sq = dx * dx + dy * dy
        weights = np.exp(-dist_sq / (2 * bandwidth_sq)) * kernel.amplification
        values[row] = np.where(dist_sq < cutoff, weights, 0.0).sum(axis=1)

    return values


def box_blur_interior(values: np.ndarray) -> np.ndarray:
    """One 3x3 mean pass over interior cells; borders are copied unchanged."""
    result = values.copy()
    rows, cols = values.shape
    if rows < 3 or cols < 3:
        return result

    total = np.zeros((rows - 2, cols - 2), dtype=values.dtype)
    for dr in (-1, 0, 1):
        for dc in (-1, 0, 1):
            total = total + values[1 + dr:rows - 1 + dr, 1 + dc:cols - 1 + dc]
    result[1:-1, 1:-1] = total / 9
    return result
