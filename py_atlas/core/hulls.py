"""
Concave hull construction with a convex fallback.

Concave hulls come from the ``concave_hull`` package (a concaveman port):
``concavity`` is the relative measure of concavity (1 is detailed,
larger is looser, infinity is convex) and edges shorter than
``length_threshold`` are never refined. Results are validated with
shapely; anything without area falls back to a scipy convex hull, and a
point set with no convex hull at all (collinear or duplicate points)
yields an empty ring.
"""

from typing import NamedTuple

import numpy as np
import structlog
from concave_hull import concave_hull
from scipy.spatial import ConvexHull, QhullError
from shapely.errors import GEOSException
from shapely.geometry import Polygon

logger = structlog.get_logger()


class HullParams(NamedTuple):
    """Hull and coastline parameters for one landmass level."""
    concavity: float
    length_threshold: float
    noise_intensity: float


class DegenerateHullError(ValueError):
    """A hull routine produced fewer than three distinct vertices or no area."""


def _open_ring(ring: np.ndarray) -> np.ndarray:
    # Drop a repeated closing vertex if the hull routine added one
    if len(ring) > 1 and np.array_equal(ring[0], ring[-1]):
        return ring[:-1]
    return ring


def convex_hull(points: np.ndarray) -> np.ndarray:
    """
    Convex hull vertices in counter-clockwise order.

    Raises:
        QhullError: For fewer than three non-collinear points
    """
    hull = ConvexHull(points)
    return points[hull.vertices]


def _concave_ring(points: np.ndarray, concavity: float, length_threshold: float) -> np.ndarray:
    ring = _open_ring(
        np.asarray(
            concave_hull(points, concavity=concavity, length_threshold=length_threshold),
            dtype=np.float64,
        )
    )
    if len(ring) < 3:
        raise DegenerateHullError("Concave hull has fewer than three vertices")

    polygon = Polygon(ring)
    if polygon.is_empty or polygon.area <= 0:
        raise DegenerateHullError("Concave hull has no area")
    return ring


def generate_concave_hull(
    points: np.ndarray, concavity: float = 2.0, length_threshold: float = 0.3
) -> np.ndarray:
    """
    Concave hull of a point set.

    Fewer than three points are returned unchanged. Any failure or
    degenerate concave result falls back to the convex hull; if that
    fails too (collinear or duplicate points) the ring is empty.

    Args:
        points: (n, 2) coordinates
        concavity: Hull looseness
        length_threshold: Edges at or below this length are not refined

    Returns:
        (m, 2) ring without a repeated closing vertex
    """
    points = np.asarray(points, dtype=np.float64)
    if len(points) < 3:
        return points

    try:
        return _concave_ring(points, concavity, length_threshold)
    except (ValueError, GEOSException) as e:
        logger.warning("Concave hull failed, using convex hull", points=len(points), error=str(e))

    try:
        return convex_hull(points)
    except QhullError as e:
        logger.warning("Convex hull failed, no ring", points=len(points), error=str(e))
        return np.zeros((0, 2), dtype=np.float64)
