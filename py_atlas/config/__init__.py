"""
Configuration modules for terrain generation.
"""

from .config import Settings, settings
from .terrain_settings import (
    ResolvedTerrainSettings,
    SettlementStyle,
    TerrainSettings,
    TerrainStyle,
    resolve,
)

__all__ = ['Settings', 'settings', 'TerrainSettings', 'ResolvedTerrainSettings',
           'TerrainStyle', 'SettlementStyle', 'resolve']
