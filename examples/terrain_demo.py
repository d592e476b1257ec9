#!/usr/bin/env python3
"""
Demo script: terrain, settlements and landmasses for a synthetic point cloud.
"""

import time
from datetime import date

import numpy as np

from py_atlas.config import TerrainSettings
from py_atlas.core import ClusterLevel, ClusterMembership, Point, WorldContext
from py_atlas.engine import TerrainEngine
from py_atlas.render import build_legend, export_images
from py_atlas.utils.logging import configure_logging


def synthetic_world(seed=7):
    """Three gaussian clusters with a few stragglers."""
    rng = np.random.default_rng(seed)
    centres = [(-6.0, 0.0), (4.0, 3.0), (2.0, -5.0)]
    sizes = [400, 250, 150]

    points = []
    clusters = []
    for c, (centre, size) in enumerate(zip(centres, sizes)):
        coords = rng.normal(loc=centre, scale=1.4, size=(size, 2))
        ids = range(len(points), len(points) + size)
        points += [Point(id=i, x=float(x), y=float(y)) for i, (x, y) in zip(ids, coords)]
        for level in (ClusterLevel.HIGH, ClusterLevel.DETAILED):
            clusters.append(
                ClusterMembership(
                    cluster_id=f"{level.value.lower()}-{c}",
                    level=level,
                    member_ids=frozenset(ids),
                    centroid=centre,
                    name=f"Region {c}",
                )
            )
    return WorldContext(points, clusters)


def main():
    """Generate one viewport and export it."""
    configure_logging(level="INFO", fmt="plain")
    print("Py-Atlas Terrain Demo")
    print("=" * 40)

    context = synthetic_world()
    engine = TerrainEngine(context)
    settings = TerrainSettings.defaults()

    width, height = 900, 600
    result = engine.generate(width, height, settings)

    print(f"\nPoints: {len(context)}")
    print(f"Grid: {result.density_grid.cols}x{result.density_grid.rows}")
    print(f"Settlements: {len(result.settlements)}")
    for settlement in result.settlements[:5]:
        print(f"  - {settlement.type.value:<10} size {settlement.size:3d} at ({settlement.x:.0f}, {settlement.y:.0f})")
    print(f"Biome regions: {', '.join(sorted(result.biome_regions))}")

    counts = {}
    for polygon in result.map_polygons:
        counts[polygon.level.value] = counts.get(polygon.level.value, 0) + 1
    print(f"Landmasses: {counts}")

    legend = build_legend(settings, date.today())
    paths = export_images(result.raster, legend, "output", int(time.time() * 1000))
    print("\nWrote:")
    for path in paths:
        print(f"  {path}")


if __name__ == "__main__":
    main()
