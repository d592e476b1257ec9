"""
Procedural world generation for 2-D embedding point clouds.

Turns a projected point set plus its cluster hierarchy into terrain
(density field, biomes, contours, settlements) and organic landmass
polygons.
"""

__version__ = "0.1.0"
