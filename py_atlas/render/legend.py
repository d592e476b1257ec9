"""
Legend content for exported maps.

Built from the same biome and settlement tables the classifiers use, so
the legend cannot drift from the rendered colors.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from ..config.terrain_settings import (
    ResolvedTerrainSettings,
    SettlementStyle,
    TerrainSettings,
    resolve,
)
from ..core.biomes import fixed_palette
from ..core.settlements import SURFACE_TIERS

BIOME_TITLE = "Terrain Biomes"
SETTLEMENT_TITLE = "Settlement Density"

# Surface swatches are drawn a little more opaque than the overlay itself
SURFACE_LEGEND_ALPHA = {"house": 0.7, "village": 0.8, "city": 0.9}
SURFACE_LEGEND_LABELS = {"house": "Houses", "village": "Villages", "city": "Cities"}

# Marker fill colors used for point-style settlements
MARKER_COLORS = {
    "village": "#cccccc",
    "town": "#dddddd",
    "city": "#eeeeee",
    "metropolis": "#ffffff",
}

MARKER_LEGEND = [
    ("Villages", "village"),
    ("Towns", "town"),
    ("Cities", "city"),
    ("Metropolis", "metropolis"),
]


@dataclass
class LegendEntry:
    name: str
    color: str  # '#rrggbb' or 'rgba(r, g, b, a)'


@dataclass
class Legend:
    """Everything drawn on the legend image."""

    biomes: List[LegendEntry]
    settlements: List[LegendEntry] = field(default_factory=list)
    generated_on: Optional[date] = None
    surface_style: bool = False

    @property
    def caption(self) -> str:
        if self.generated_on is None:
            return ""
        return f"Generated on {self.generated_on.isoformat()}"


def _rgba(color) -> str:
    r, g, b, a = color
    return f"rgba({r}, {g}, {b}, {a})"


def build_legend(
    settings: Optional[TerrainSettings] = None, generated_on: Optional[date] = None
) -> Legend:
    """
    Legend for the active palette and settlement style.

    Args:
        settings: Terrain settings
        generated_on: Date stamp supplied by the caller

    Returns:
        Legend; settlement entries are omitted when settlements are hidden
    """
    resolved = settings if isinstance(settings, ResolvedTerrainSettings) else resolve(settings)

    biomes = [LegendEntry(b.display_name, b.color) for b in fixed_palette(resolved)]

    surface = resolved.settlement_style == SettlementStyle.SURFACE
    settlements: List[LegendEntry] = []
    if resolved.show_settlements:
        if surface:
            for tier in SURFACE_TIERS:
                if tier is None:
                    continue
                r, g, b, _ = tier.color
                settlements.append(
                    LegendEntry(
                        SURFACE_LEGEND_LABELS[tier.name],
                        _rgba((r, g, b, SURFACE_LEGEND_ALPHA[tier.name])),
                    )
                )
        else:
            settlements = [LegendEntry(label, MARKER_COLORS[key]) for label, key in MARKER_LEGEND]

    return Legend(
        biomes=biomes,
        settlements=settlements,
        generated_on=generated_on,
        surface_style=surface,
    )
