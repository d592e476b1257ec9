"""
Organic landmass polygons from cluster membership.

Process:
1. Continents - concave hull of every High-level cluster
2. Islands - k-means sub-regions of every Detailed-level cluster, each
   attached to the continent containing its first vertex
3. Atolls - distance outliers of every Detailed-level cluster
4. Every hull boundary is subdivided, displaced along edge normals by
   seeded OpenSimplex noise and smoothed once
5. Polygons are sorted by area, largest first

Polygons are in data space, not screen space.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np
import structlog

from ..config import Settings, settings as default_settings
from .clustering import find_outliers, split_into_subclusters
from .geometry import edge_normal, point_in_polygon, polygon_area, smooth_polygon
from .hulls import HullParams, generate_concave_hull
from .noise import create_noise
from .points import ClusterLevel, ClusterMembership, WorldContext

logger = structlog.get_logger()


class MapLevel(str, Enum):
    """Landmass kinds."""

    CONTINENT = "continent"
    ISLAND = "island"
    ATOLL = "atoll"


CONTINENT_PARAMS = HullParams(concavity=2.0, length_threshold=0.3, noise_intensity=1.5)
ISLAND_PARAMS = HullParams(concavity=1.5, length_threshold=0.2, noise_intensity=0.8)
ATOLL_PARAMS = HullParams(concavity=1.0, length_threshold=0.15, noise_intensity=0.4)

COASTLINE_SMOOTHING = 0.3
ATOLL_RING_SMOOTHING = 0.2
OUTLIER_THRESHOLD = 2.5
MIN_POLYGON_POINTS = 3


@dataclass
class MapPolygon:
    """A landmass ring bounding (part of) a cluster."""

    id: str
    points: np.ndarray  # (m, 2), closed implicitly
    cluster: ClusterMembership
    level: MapLevel
    area: float = 0.0
    children: List["MapPolygon"] = field(default_factory=list)  # continents only


class LandmassSynthesizer:
    """Generates continent, island and atoll polygons."""

    def __init__(self, config: Optional[Settings] = None, seed: Optional[str] = None):
        """
        Initialize the synthesizer.

        Args:
            config: Engine settings (noise seed, scale, amplitude)
            seed: Overrides the configured noise seed
        """
        self.config = config or default_settings
        self.noise = create_noise(seed if seed is not None else self.config.noise_seed)
        self.noise_scale = self.config.noise_scale
        self.noise_amplitude = self.config.noise_amplitude

    def generate_map_polygons(self, context: WorldContext) -> List[MapPolygon]:
        """
        All landmass polygons for a world, largest first.

        Args:
            context: Points and clusters

        Returns:
            Flat list of continents, islands and atolls sorted by area
        """
        continents = self.generate_continents(context, context.clusters_at(ClusterLevel.HIGH))
        detailed = context.clusters_at(ClusterLevel.DETAILED)
        islands = self.generate_islands(context, detailed, continents)
        atolls = self.generate_atolls(context, detailed)

        polygons = continents + islands + atolls
        polygons.sort(key=lambda p: p.area, reverse=True)

        logger.info(
            "Map polygons generated",
            continents=len(continents),
            islands=len(islands),
            atolls=len(atolls),
        )
        return polygons

    def generate_continents(
        self, context: WorldContext, clusters: List[ClusterMembership]
    ) -> List[MapPolygon]:
        continents = []
        for cluster in clusters:
            cluster_points = context.member_coordinates(cluster)
            if len(cluster_points) < MIN_POLYGON_POINTS:
                logger.debug("Skipping small cluster", cluster_id=cluster.cluster_id, points=len(cluster_points))
                continue

            ring = self._coastline(cluster_points, CONTINENT_PARAMS)
            if ring is None:
                continue
            continents.append(
                MapPolygon(
                    id=f"continent-{cluster.cluster_id}",
                    points=ring,
                    cluster=cluster,
                    level=MapLevel.CONTINENT,
                    area=polygon_area(ring),
                )
            )
        return continents

    def generate_islands(
        self,
        context: WorldContext,
        clusters: List[ClusterMembership],
        continents: List[MapPolygon],
    ) -> List[MapPolygon]:
        islands = []
        for cluster in clusters:
            cluster_points = context.member_coordinates(cluster)
            if len(cluster_points) < MIN_POLYGON_POINTS:
                continue

            for idx, sub_points in enumerate(split_into_subclusters(cluster_points, 3, 8)):
                if len(sub_points) < MIN_POLYGON_POINTS:
                    continue

                ring = self._coastline(sub_points, ISLAND_PARAMS)
                if ring is None:
                    continue
                island = MapPolygon(
                    id=f"island-{cluster.cluster_id}-{idx}",
                    points=ring,
                    cluster=cluster,
                    level=MapLevel.ISLAND,
                    area=polygon_area(ring),
                )

                parent = find_parent_continent(ring[0], continents)
                if parent is not None:
                    parent.children.append(island)

                islands.append(island)
        return islands

    def generate_atolls(
        self, context: WorldContext, clusters: List[ClusterMembership]
    ) -> List[MapPolygon]:
        atolls = []
        for cluster in clusters:
            cluster_points = context.member_coordinates(cluster)

            for idx, group in enumerate(find_outliers(cluster_points, OUTLIER_THRESHOLD)):
                if len(group) < MIN_POLYGON_POINTS:
                    ring = self.generate_atoll_ring(group[0])
                else:
                    ring = self._coastline(group, ATOLL_PARAMS)
                    if ring is None:
                        continue

                atolls.append(
                    MapPolygon(
                        id=f"atoll-{cluster.cluster_id}-{idx}",
                        points=ring,
                        cluster=cluster,
                        level=MapLevel.ATOLL,
                        area=polygon_area(ring),
                    )
                )
        return atolls

    def _coastline(self, points: np.ndarray, params: HullParams) -> Optional[np.ndarray]:
        hull = generate_concave_hull(points, params.concavity, params.length_threshold)
        if len(hull) < MIN_POLYGON_POINTS:
            return None
        return self.add_organic_noise(hull, params.noise_intensity)

    def add_organic_noise(self, polygon: np.ndarray, intensity: float = 1.0) -> np.ndarray:
        """Displace the ring's coastline and smooth it once."""
        return smooth_polygon(self.displace_coastline(polygon, intensity), COASTLINE_SMOOTHING)

    def displace_coastline(self, polygon: np.ndarray, intensity: float = 1.0) -> np.ndarray:
        """
        Subdivide every edge and push the new vertices along the edge normal.

        Each edge gets max(2, floor(length * 10)) vertices, starting at its
        first endpoint, each displaced by
        noise(x * scale, y * scale) * amplitude * intensity.
        """
        noisy = []
        n = len(polygon)
        for i in range(n):
            point = polygon[i]
            next_point = polygon[(i + 1) % n]

            edge_length = math.hypot(next_point[0] - point[0], next_point[1] - point[1])
            subdivisions = max(2, int(math.floor(edge_length * 10)))
            normal = edge_normal(point, next_point)

            for j in range(subdivisions):
                t = j / subdivisions
                x = point[0] + (next_point[0] - point[0]) * t
                y = point[1] + (next_point[1] - point[1]) * t

                noise_value = self.noise.noise2(x * self.noise_scale, y * self.noise_scale)
                displacement = noise_value * self.noise_amplitude * intensity
                noisy.append((x + normal[0] * displacement, y + normal[1] * displacement))

        return np.array(noisy, dtype=np.float64)

    def _unit_jitter(self, x: float, y: float) -> float:
        """Noise remapped to [0, 1)."""
        value = (self.noise.noise2(x, y) + 1) / 2
        return min(max(value, 0.0), math.nextafter(1.0, 0.0))

    def generate_atoll_ring(self, center, radius: Optional[float] = None) -> np.ndarray:
        """
        A small noisy ring around a lone outlier.

        Segment count (16-23) and radius (0.3-0.5) are jittered by the
        noise field sampled at the centre, so they are reproducible.
        """
        cx, cy = float(center[0]), float(center[1])
        sx, sy = cx * self.noise_scale, cy * self.noise_scale
        if radius is None:
            radius = 0.3 + self._unit_jitter(sx, sy) * 0.2
        segments = 16 + int(math.floor(self._unit_jitter(sx + 101.3, sy - 57.7) * 8))

        points = []
        for i in range(segments):
            angle = (i / segments) * math.pi * 2
            noise_value = self.noise.noise2(math.cos(angle) * 2, math.sin(angle) * 2)
            r = radius * (1 + noise_value * 0.3)
            points.append((cx + math.cos(angle) * r, cy + math.sin(angle) * r))

        return smooth_polygon(np.array(points, dtype=np.float64), ATOLL_RING_SMOOTHING)


def find_parent_continent(point, continents: List[MapPolygon]) -> Optional[MapPolygon]:
    """First continent whose ring contains the point."""
    for continent in continents:
        if point_in_polygon(point, continent.points):
            return continent
    return None
