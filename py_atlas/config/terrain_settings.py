"""
User-facing terrain settings and their resolution step.

TerrainSettings mirrors the control panel of the explorer: density cut
points for the natural palette, render hints, and settlement options.
Missing optional fields are filled in exactly once by ``resolve()``; the
classifiers only ever read a ResolvedTerrainSettings.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TerrainStyle(str, Enum):
    """Terrain palettes."""

    ISLAND = "island"
    GREYSCALE = "greyscale"


class SettlementStyle(str, Enum):
    """Settlement display modes."""

    POINTS = "points"
    SURFACE = "surface"


# Fallbacks used when optional fields are absent
SHALLOW_WATER_FACTOR = 5
BEACH_FACTOR = 20
DEFAULT_HOUSE_THRESHOLD = 0.1
DEFAULT_VILLAGE_THRESHOLD = 0.3
DEFAULT_CITY_THRESHOLD = 0.6
DEFAULT_SETTLEMENT_OPACITY = 0.7


class TerrainSettings(BaseModel):
    """Terrain configuration supplied by the caller."""

    # Natural biome cut points
    ocean_threshold: float = Field(ge=0, le=1, description="Upper bound of ocean")
    shallow_water_threshold: Optional[float] = Field(
        default=None, ge=0, le=1, description="Upper bound of shallow water (default 5x ocean)"
    )
    beach_threshold: Optional[float] = Field(
        default=None, ge=0, le=1, description="Upper bound of beach (default 20x ocean)"
    )
    desert_threshold: float = Field(ge=0, le=1, description="Upper bound of desert")
    forest_threshold: float = Field(ge=0, le=1, description="Lower bound of forest")
    mountain_threshold: float = Field(ge=0, le=1, description="Lower bound of mountains")

    # Render hints
    contour_opacity: Optional[float] = Field(default=None, ge=0, le=1)
    point_size: Optional[float] = Field(default=None, ge=0)
    label_opacity: Optional[float] = Field(default=None, ge=0, le=1)

    terrain_style: Optional[TerrainStyle] = Field(default=None, description="Palette selector")

    # Settlements
    show_settlements: Optional[bool] = Field(default=None)
    settlement_opacity: Optional[float] = Field(default=None, ge=0, le=1)
    settlement_style: Optional[SettlementStyle] = Field(default=None)
    house_threshold: Optional[float] = Field(default=None, ge=0, le=1)
    village_threshold: Optional[float] = Field(default=None, ge=0, le=1)
    city_threshold: Optional[float] = Field(default=None, ge=0, le=1)

    @classmethod
    def defaults(cls) -> "TerrainSettings":
        """The explorer's "reset to defaults" configuration."""
        return cls(
            ocean_threshold=0.01,
            shallow_water_threshold=0.05,
            beach_threshold=0.20,
            desert_threshold=0.09,
            forest_threshold=0.35,
            mountain_threshold=0.85,
            contour_opacity=0.3,
            point_size=3,
            label_opacity=0.8,
            terrain_style=TerrainStyle.ISLAND,
            show_settlements=True,
            settlement_opacity=1.0,
            settlement_style=SettlementStyle.SURFACE,
            house_threshold=0.23,
            village_threshold=0.35,
            city_threshold=0.72,
        )


class NaturalThresholds(BaseModel):
    """The six natural-palette cut points after fallback derivation."""

    model_config = ConfigDict(frozen=True)

    ocean: float
    shallow_water: float
    beach: float
    desert: float
    forest: float
    mountain: float


class ResolvedTerrainSettings(BaseModel):
    """TerrainSettings with every optional field filled in."""

    model_config = ConfigDict(frozen=True)

    # None when no settings were supplied: the fixed natural palette applies
    thresholds: Optional[NaturalThresholds] = None
    terrain_style: Optional[TerrainStyle] = None
    show_settlements: bool = True
    settlement_opacity: float = DEFAULT_SETTLEMENT_OPACITY
    settlement_style: Optional[SettlementStyle] = None
    house_threshold: float = DEFAULT_HOUSE_THRESHOLD
    village_threshold: float = DEFAULT_VILLAGE_THRESHOLD
    city_threshold: float = DEFAULT_CITY_THRESHOLD

    @property
    def is_urban(self) -> bool:
        return self.terrain_style == TerrainStyle.GREYSCALE

    @property
    def draws_settlement_surface(self) -> bool:
        """Settlement surfaces are only composited onto island terrain."""
        return (
            self.terrain_style == TerrainStyle.ISLAND
            and self.show_settlements
            and self.settlement_style == SettlementStyle.SURFACE
        )


def resolve(settings: Optional[TerrainSettings] = None) -> ResolvedTerrainSettings:
    """
    Derive the full configuration from (possibly partial) settings.

    Shallow water and beach fall back to 5x and 20x the ocean threshold
    when absent or zero. Settlement thresholds fall back to 0.1/0.3/0.6
    only when absent, so an explicit 0 is honoured.

    Args:
        settings: Caller settings, or None for the fixed palettes

    Returns:
        ResolvedTerrainSettings
    """
    if settings is None:
        return ResolvedTerrainSettings()

    thresholds = NaturalThresholds(
        ocean=settings.ocean_threshold,
        shallow_water=settings.shallow_water_threshold
        or settings.ocean_threshold * SHALLOW_WATER_FACTOR,
        beach=settings.beach_threshold or settings.ocean_threshold * BEACH_FACTOR,
        desert=settings.desert_threshold,
        forest=settings.forest_threshold,
        mountain=settings.mountain_threshold,
    )

    def _or_default(value, default):
        return default if value is None else value

    return ResolvedTerrainSettings(
        thresholds=thresholds,
        terrain_style=settings.terrain_style,
        show_settlements=settings.show_settlements is not False,
        settlement_opacity=_or_default(settings.settlement_opacity, DEFAULT_SETTLEMENT_OPACITY),
        settlement_style=settings.settlement_style,
        house_threshold=_or_default(settings.house_threshold, DEFAULT_HOUSE_THRESHOLD),
        village_threshold=_or_default(settings.village_threshold, DEFAULT_VILLAGE_THRESHOLD),
        city_threshold=_or_default(settings.city_threshold, DEFAULT_CITY_THRESHOLD),
    )
