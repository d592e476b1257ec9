"""
Settlement detection.

Two independent display strategies:
1. Point clusters - greedy local grouping of projected points into
   discrete markers (village, town, city, metropolis)
2. Density surface - fine density grid cells classified into house,
   village and city tiers

The two tier vocabularies are deliberately separate.

Process (point clusters):
1. Project points to screen space
2. Walk points in input order; each unprocessed point seeds a group and
   absorbs every unprocessed point within 2 bandwidths
3. Groups of 3+ points become settlements at their centroid
4. Sort by size descending and keep the first max_settlements
"""

from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

import numpy as np
import structlog
from pydantic import BaseModel, ConfigDict, Field
from sklearn.neighbors import KDTree

from ..config import Settings, settings as default_settings
from ..config.terrain_settings import ResolvedTerrainSettings, TerrainSettings, resolve
from .density import DensityGrid
from .rasterizer import is_renderable, project_points

logger = structlog.get_logger()

MIN_SETTLEMENT_SIZE = 3


class SettlementType(str, Enum):
    """Discrete marker tiers."""

    VILLAGE = "village"
    TOWN = "town"
    CITY = "city"
    METROPOLIS = "metropolis"


# (minimum group size, type), largest first
SETTLEMENT_SIZE_TIERS = [
    (30, SettlementType.METROPOLIS),
    (15, SettlementType.CITY),
    (8, SettlementType.TOWN),
    (MIN_SETTLEMENT_SIZE, SettlementType.VILLAGE),
]


class Settlement(BaseModel):
    """A discrete settlement marker in screen space."""

    model_config = ConfigDict(frozen=True)

    x: float = Field(description="X coordinate")
    y: float = Field(description="Y coordinate")
    size: int = Field(ge=MIN_SETTLEMENT_SIZE, description="Number of absorbed points")
    type: SettlementType = Field(description="Settlement tier")


class SurfaceTier(NamedTuple):
    """A settlement surface tier with its RGBA overlay color."""
    name: str
    color: Tuple[int, int, int, float]


HOUSE = SurfaceTier("house", (160, 82, 45, 0.5))
VILLAGE = SurfaceTier("village", (128, 128, 128, 0.6))
CITY = SurfaceTier("city", (106, 90, 205, 0.7))

# Index 0 means no settlement
SURFACE_TIERS: List[Optional[SurfaceTier]] = [None, HOUSE, VILLAGE, CITY]


class DensityPeak(NamedTuple):
    x: float
    y: float
    density: float


def settlement_type_for_size(size: int) -> SettlementType:
    for minimum, settlement_type in SETTLEMENT_SIZE_TIERS:
        if size >= minimum:
            return settlement_type
    raise ValueError(f"Groups smaller than {MIN_SETTLEMENT_SIZE} are not settlements")


class SettlementDetector:
    """Greedy point-cluster settlement detection."""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings

    def calculate_settlements(
        self,
        coordinates: np.ndarray,
        width: float,
        height: float,
        padding: Optional[float] = None,
    ) -> List[Settlement]:
        """
        Detect settlements from raw points.

        The result depends on input order: the first unprocessed point is
        always the seed of the next group.

        Args:
            coordinates: (n, 2) data coordinates in input order
            width: Canvas width
            height: Canvas height
            padding: Screen padding (defaults to the configured padding)

        Returns:
            At most max_settlements settlements, largest first
        """
        coordinates = np.asarray(coordinates, dtype=np.float64)
        if len(coordinates) == 0 or not is_renderable(width, height):
            return []

        padding = self.config.padding if padding is None else padding
        screen = project_points(coordinates, width, height, padding)

        bandwidth = self.config.settlement_bandwidth * min(width, height)
        bandwidth_sq = bandwidth * bandwidth
        radius_sq = bandwidth_sq * 4

        tree = KDTree(screen)
        # Slightly widened; the strict squared-distance test below decides
        candidates = tree.query_radius(screen, r=2 * bandwidth * (1 + 1e-9))

        processed = np.zeros(len(screen), dtype=bool)
        settlements: List[Settlement] = []

        for idx in range(len(screen)):
            if processed[idx]:
                continue

            px, py = screen[idx]
            cluster = [idx]
            cluster_x = px
            cluster_y = py

            for other in np.sort(candidates[idx]):
                if other == idx or processed[other]:
                    continue
                ox, oy = screen[other]
                dx = px - ox
                dy = py - oy
                if dx * dx + dy * dy < radius_sq:
                    cluster.append(other)
                    cluster_x += ox
                    cluster_y += oy
                    processed[other] = True

            if len(cluster) >= MIN_SETTLEMENT_SIZE:
                processed[idx] = True
                settlements.append(
                    Settlement(
                        x=float(cluster_x / len(cluster)),
                        y=float(cluster_y / len(cluster)),
                        size=len(cluster),
                        type=settlement_type_for_size(len(cluster)),
                    )
                )

        settlements.sort(key=lambda s: s.size, reverse=True)
        limited = settlements[: self.config.max_settlements]

        logger.info(
            "Settlements detected",
            found=len(settlements),
            kept=len(limited),
            points=len(screen),
        )
        return limited


def get_settlement_type(
    density: float, settings: Optional[TerrainSettings] = None
) -> Optional[SurfaceTier]:
    """
    Surface tier for a fine density value, or None below the house threshold.
    """
    resolved = settings if isinstance(settings, ResolvedTerrainSettings) else resolve(settings)
    if density < resolved.house_threshold:
        return None
    if density < resolved.village_threshold:
        return HOUSE
    if density < resolved.city_threshold:
        return VILLAGE
    return CITY


def classify_settlement_grid(
    grid: DensityGrid, settings: Optional[TerrainSettings] = None
) -> np.ndarray:
    """
    Surface tier index (into SURFACE_TIERS) for every fine grid cell.
    """
    resolved = settings if isinstance(settings, ResolvedTerrainSettings) else resolve(settings)
    values = grid.values
    tiers = np.select(
        [
            values < resolved.house_threshold,
            values < resolved.village_threshold,
            values < resolved.city_threshold,
        ],
        [0, 1, 2],
        default=3,
    )
    return tiers.astype(np.uint8)


def find_density_peaks(grid: DensityGrid, min_density: float = 0.5) -> List[DensityPeak]:
    """
    Interior local maxima of a density grid, thinned by distance.

    Superseded by SettlementDetector for marker placement; kept for
    callers that place labels on density peaks.

    Args:
        grid: Density grid
        min_density: Lowest value considered a peak

    Returns:
        Peaks in screen coordinates, highest first, no two closer than
        five cells
    """
    peaks: List[DensityPeak] = []
    values = grid.values

    for row in range(1, grid.rows - 1):
        for col in range(1, grid.cols - 1):
            value = values[row, col]
            if value < min_density:
                continue
            window = values[row - 1:row + 2, col - 1:col + 2]
            if window.max() > value:
                continue
            x, y = grid.cell_center(row, col)
            peaks.append(DensityPeak(x, y, float(value)))

    peaks.sort(key=lambda p: p.density, reverse=True)

    min_distance = grid.cell_size * 5
    filtered: List[DensityPeak] = []
    for peak in peaks:
        too_close = any(
            np.hypot(peak.x - existing.x, peak.y - existing.y) < min_distance
            for existing in filtered
        )
        if not too_close:
            filtered.append(peak)

    return filtered
