"""
Terrain raster compositing.

Produces an RGBA pixel buffer from a terrain density grid: biome fill,
hill shading, peak highlights and a 2 px blur, optionally overlaid with
the settlement density surface.
"""

from typing import Optional

import numpy as np
import structlog
from scipy.ndimage import gaussian_filter

from ..config.terrain_settings import ResolvedTerrainSettings, TerrainSettings, resolve
from ..core.biomes import BiomeClassifier
from ..core.density import DensityGrid
from ..core.rasterizer import is_renderable
from ..core.settlements import SURFACE_TIERS, classify_settlement_grid

logger = structlog.get_logger()

LIGHT_DIRECTION = (-0.7, -0.7)
SHADOW_STRENGTH = 0.3
HIGHLIGHT_START = 0.85
TERRAIN_BLUR_PX = 2.0
SETTLEMENT_BLUR_PX = 1.0


def calculate_shadow(grid: DensityGrid, row: int, col: int) -> float:
    """
    Shading of one cell lit from the top-left.

    Zero on the last row/column and on flat cells.
    """
    if row >= grid.rows - 1 or col >= grid.cols - 1:
        return 0.0

    current = grid.values[row, col]
    dx = grid.values[row, col + 1] - current
    dy = grid.values[row + 1, col] - current

    magnitude = np.hypot(dx, dy)
    if magnitude == 0:
        return 0.0

    dot = (dx / magnitude) * LIGHT_DIRECTION[0] + (dy / magnitude) * LIGHT_DIRECTION[1]
    return float(max(0.0, min(1.0, (dot + 1) / 2)))


def shadow_map(grid: DensityGrid) -> np.ndarray:
    """calculate_shadow for every cell at once."""
    values = grid.values
    shadow = np.zeros_like(values)
    if grid.rows < 2 or grid.cols < 2:
        return shadow

    current = values[:-1, :-1]
    dx = values[:-1, 1:] - current
    dy = values[1:, :-1] - current
    magnitude = np.hypot(dx, dy)
    safe = np.where(magnitude == 0, 1.0, magnitude)
    dot = (dx / safe) * LIGHT_DIRECTION[0] + (dy / safe) * LIGHT_DIRECTION[1]
    shaded = np.clip((dot + 1) / 2, 0.0, 1.0)
    shadow[:-1, :-1] = np.where(magnitude == 0, 0.0, shaded)
    return shadow


def _blend(base: np.ndarray, color, alpha: np.ndarray) -> np.ndarray:
    alpha = alpha[..., None]
    return base * (1 - alpha) + np.asarray(color, dtype=np.float64) * alpha


def _cells_to_pixels(cell_image: np.ndarray, cell_size: float, width: int, height: int) -> np.ndarray:
    """
    Expand a per-cell image to pixels.

    Cells are drawn cell_size + 1 wide in row-major order, so each pixel
    shows the last cell covering it: floor(pixel / cell_size).
    """
    rows, cols = cell_image.shape[:2]
    row_idx = np.minimum((np.arange(height) // cell_size).astype(int), rows - 1)
    col_idx = np.minimum((np.arange(width) // cell_size).astype(int), cols - 1)
    return cell_image[row_idx[:, None], col_idx[None, :]]


def _blur(image: np.ndarray, sigma: float) -> np.ndarray:
    return gaussian_filter(image, sigma=(sigma, sigma, 0), mode="nearest")


class TerrainRenderer:
    """Composites terrain and settlement surfaces into an RGBA buffer."""

    def render(
        self,
        grid: DensityGrid,
        width: int,
        height: int,
        settings: Optional[TerrainSettings] = None,
        settlement_grid: Optional[DensityGrid] = None,
    ) -> np.ndarray:
        """
        Render the terrain.

        Args:
            grid: Smoothed terrain density grid
            width: Raster width in pixels
            height: Raster height in pixels
            settings: Terrain settings (palette, settlement surface options)
            settlement_grid: Fine settlement density grid, drawn only for
                island style with surface settlements shown

        Returns:
            (height, width, 4) uint8 RGBA array; (0, 0, 4) for an empty grid
        """
        if grid.is_empty or not is_renderable(width, height):
            return np.zeros((0, 0, 4), dtype=np.uint8)
        width, height = int(width), int(height)

        resolved = settings if isinstance(settings, ResolvedTerrainSettings) else resolve(settings)
        classifier = BiomeClassifier(resolved)

        values = grid.values
        cells = classifier.color_table()[classifier.classify_grid(values)].astype(np.float64)
        cells = _blend(cells, (0, 0, 0), shadow_map(grid) * SHADOW_STRENGTH)
        highlight = np.where(values > HIGHLIGHT_START, np.minimum(1.0, (values - HIGHLIGHT_START) * 2), 0.0)
        cells = _blend(cells, (255, 255, 255), highlight)

        image = _blur(_cells_to_pixels(cells, grid.cell_size, width, height), TERRAIN_BLUR_PX)

        if resolved.draws_settlement_surface and settlement_grid is not None and not settlement_grid.is_empty:
            image = self._overlay_settlements(image, settlement_grid, resolved)

        rgba = np.empty((height, width, 4), dtype=np.uint8)
        rgba[..., :3] = np.clip(np.round(image), 0, 255).astype(np.uint8)
        rgba[..., 3] = 255

        logger.info("Terrain raster rendered", width=width, height=height, urban=resolved.is_urban)
        return rgba

    def _overlay_settlements(
        self, image: np.ndarray, settlement_grid: DensityGrid, resolved: ResolvedTerrainSettings
    ) -> np.ndarray:
        height, width = image.shape[:2]
        tiers = _cells_to_pixels(
            classify_settlement_grid(settlement_grid, resolved), settlement_grid.cell_size, width, height
        )

        for index, tier in enumerate(SURFACE_TIERS):
            if tier is None:
                continue
            r, g, b, alpha = tier.color
            mask = (tiers == index).astype(np.float64) * (alpha * resolved.settlement_opacity)
            image = _blend(image, (r, g, b), mask)

        return _blur(image, SETTLEMENT_BLUR_PX)
