"""
Raster rendering and image export.
"""

from .raster import TerrainRenderer, calculate_shadow, shadow_map
from .legend import Legend, LegendEntry, build_legend
from .export import export_images

__all__ = ['TerrainRenderer', 'calculate_shadow', 'shadow_map',
           'Legend', 'LegendEntry', 'build_legend', 'export_images']
