"""
Density-based biome classification.

This module implements:
- The two fixed palettes (natural: ocean to peaks, urban: ocean to metropolis)
- Palettes derived from custom natural thresholds
- Per-value and per-grid classification
- Biome region contours and a continuous biome color scale
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
import structlog

from ..config.terrain_settings import (
    NaturalThresholds,
    ResolvedTerrainSettings,
    TerrainSettings,
    resolve,
)
from .contours import Contour, extract_contours
from .density import DensityGrid

logger = structlog.get_logger()


@dataclass(frozen=True)
class Biome:
    """A density bucket with its render color and elevation."""

    name: str
    min_density: float
    max_density: float
    color: str
    elevation: float

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ").title()

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return hex_to_rgb(self.color)

    def contains(self, density: float) -> bool:
        """Inclusive lower, exclusive upper bound."""
        return self.min_density <= density < self.max_density


NATURAL_BIOMES: List[Biome] = [
    Biome("ocean", 0, 0.001, "#0A0F1B", 0),
    Biome("shallow_water", 0.001, 0.01, "#2e5a8f", 0.05),
    Biome("beach", 0.01, 0.05, "#f4e4c1", 0.1),
    Biome("desert", 0.05, 0.15, "#e8d4a0", 0.2),
    Biome("savanna", 0.15, 0.25, "#c5b783", 0.3),
    Biome("grassland", 0.25, 0.35, "#8fb171", 0.4),
    Biome("forest", 0.35, 0.5, "#5a8a4c", 0.5),
    Biome("hills", 0.5, 0.7, "#7a9b76", 0.7),
    Biome("mountains", 0.7, 0.85, "#8b9391", 0.9),
    Biome("peaks", 0.85, 1.0, "#e8e8e8", 1.0),
]

URBAN_BIOMES: List[Biome] = [
    Biome("ocean", 0, 0.001, "#0A0F1B", 0),
    Biome("shallow_water", 0.001, 0.01, "#2a3f52", 0.05),
    Biome("land", 0.01, 0.1, "#3d4a57", 0.1),
    Biome("village", 0.1, 0.25, "#4a5663", 0.2),
    Biome("town", 0.25, 0.4, "#5a6673", 0.3),
    Biome("outskirts", 0.4, 0.55, "#6a7683", 0.4),
    Biome("city", 0.55, 0.7, "#7a8693", 0.6),
    Biome("downtown", 0.7, 0.85, "#8a96a3", 0.8),
    Biome("metropolis", 0.85, 1.0, "#9aa6b3", 1.0),
]

# Custom palettes use a lighter ocean than the canvas background
CUSTOM_OCEAN_COLOR = "#1e3a5f"


def hex_to_rgb(color: str) -> Tuple[int, int, int]:
    """Parse '#rrggbb' into an RGB tuple."""
    color = color.lstrip("#")
    return int(color[0:2], 16), int(color[2:4], 16), int(color[4:6], 16)


def build_custom_biomes(t: NaturalThresholds) -> List[Biome]:
    """
    Natural palette from custom cut points.

    Savanna/grassland split at the desert/forest midpoint, forest/hills
    at the forest/mountain midpoint, and mountains/peaks halfway between
    the mountain threshold and 1.
    """
    dry_mid = (t.desert + t.forest) / 2
    wet_mid = (t.forest + t.mountain) / 2
    high_mid = (t.mountain + 1) / 2
    return [
        Biome("ocean", 0, t.ocean, CUSTOM_OCEAN_COLOR, 0),
        Biome("shallow_water", t.ocean, t.shallow_water, "#2e5a8f", 0.05),
        Biome("beach", t.shallow_water, t.beach, "#f4e4c1", 0.1),
        Biome("desert", t.beach, t.desert, "#e8d4a0", 0.2),
        Biome("savanna", t.desert, dry_mid, "#c5b783", 0.3),
        Biome("grassland", dry_mid, t.forest, "#8fb171", 0.4),
        Biome("forest", t.forest, wet_mid, "#5a8a4c", 0.5),
        Biome("hills", wet_mid, t.mountain, "#7a9b76", 0.7),
        Biome("mountains", t.mountain, high_mid, "#8b9391", 0.9),
        Biome("peaks", high_mid, 1.0, "#e8e8e8", 1.0),
    ]


def fixed_palette(resolved: ResolvedTerrainSettings) -> List[Biome]:
    """The fixed palette for a style, ignoring custom thresholds."""
    return URBAN_BIOMES if resolved.is_urban else NATURAL_BIOMES


def _as_resolved(settings) -> ResolvedTerrainSettings:
    if isinstance(settings, ResolvedTerrainSettings):
        return settings
    return resolve(settings)


class BiomeClassifier:
    """Classifies density values against one threshold table."""

    def __init__(self, settings: Optional[TerrainSettings] = None):
        """
        Initialize classifier.

        Args:
            settings: TerrainSettings, ResolvedTerrainSettings or None
        """
        self.settings = _as_resolved(settings)
        self.biomes = self._build_table()

    def _build_table(self) -> List[Biome]:
        if self.settings.is_urban:
            return URBAN_BIOMES
        if self.settings.thresholds is not None:
            return build_custom_biomes(self.settings.thresholds)
        return NATURAL_BIOMES

    def classify(self, density: float) -> Biome:
        """
        First biome containing the value, else the last biome.

        The fallback covers density == 1.0 exactly.
        """
        for biome in self.biomes:
            if biome.contains(density):
                return biome
        return self.biomes[-1]

    def classify_grid(self, values: np.ndarray) -> np.ndarray:
        """
        Biome index for every cell, with the same first-match rule.

        Returns:
            Integer array shaped like values
        """
        indices = np.full(values.shape, len(self.biomes) - 1, dtype=np.int16)
        assigned = np.zeros(values.shape, dtype=bool)
        for i, biome in enumerate(self.biomes):
            hit = ~assigned & (values >= biome.min_density) & (values < biome.max_density)
            indices[hit] = i
            assigned |= hit
        return indices

    def color_table(self) -> np.ndarray:
        """(n_biomes, 3) uint8 colors aligned with classify_grid indices."""
        return np.array([b.rgb for b in self.biomes], dtype=np.uint8)


def get_biome(density: float, settings: Optional[TerrainSettings] = None) -> Biome:
    """Classify a single density value."""
    return BiomeClassifier(settings).classify(density)


def generate_biome_regions(
    grid: DensityGrid, settings: Optional[TerrainSettings] = None
) -> Dict[str, List[Contour]]:
    """
    Contours bounding each biome of the fixed palette.

    Ocean is skipped (it is everything below the lowest land threshold).

    Returns:
        Mapping of biome name to its [min, max] contours
    """
    regions: Dict[str, List[Contour]] = {}
    if grid.is_empty:
        return regions

    for biome in fixed_palette(_as_resolved(settings)):
        if biome.name == "ocean":
            continue
        contours = extract_contours(grid.values, [biome.min_density, biome.max_density])
        if any(not c.is_empty for c in contours):
            regions[biome.name] = contours

    logger.debug("Biome regions generated", regions=len(regions))
    return regions


def create_biome_color_scale(
    settings: Optional[TerrainSettings] = None,
) -> Callable[[float], Tuple[int, int, int]]:
    """
    Piecewise-linear RGB scale over biome range midpoints.

    Values outside the midpoint domain take the end colors.
    """
    biomes = fixed_palette(_as_resolved(settings))
    domain = np.array([(b.min_density + b.max_density) / 2 for b in biomes])
    colors = np.array([b.rgb for b in biomes], dtype=np.float64)

    def scale(density: float) -> Tuple[int, int, int]:
        r, g, b = (np.interp(density, domain, colors[:, channel]) for channel in range(3))
        return int(round(r)), int(round(g)), int(round(b))

    return scale
