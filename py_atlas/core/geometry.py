"""Polygon helpers shared by landmass synthesis."""

import numpy as np


def polygon_area(ring: np.ndarray) -> float:
    """Shoelace area; independent of winding."""
    if len(ring) < 3:
        return 0.0
    x = ring[:, 0]
    y = ring[:, 1]
    x_next = np.roll(x, -1)
    y_next = np.roll(y, -1)
    return float(abs(np.sum(x * y_next - x_next * y) / 2))


def point_in_polygon(point, ring: np.ndarray) -> bool:
    """Even-odd ray casting test."""
    x, y = point
    inside = False
    n = len(ring)
    j = n - 1
    for i in range(n):
        xi, yi = ring[i]
        xj, yj = ring[j]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def edge_normal(p1, p2) -> np.ndarray:
    """Unit left-hand normal of the edge p1 -> p2; zero for a degenerate edge."""
    dx = p2[0] - p1[0]
    dy = p2[1] - p1[1]
    length = np.hypot(dx, dy)
    if length == 0:
        return np.zeros(2)
    return np.array([-dy / length, dx / length])


def smooth_polygon(ring: np.ndarray, factor: float) -> np.ndarray:
    """
    One pass of a 3-point weighted average around a closed ring.

    Each vertex becomes curr * (1 - 2 * factor) + (prev + next) * factor.
    """
    if len(ring) == 0:
        return ring
    prev = np.roll(ring, 1, axis=0)
    nxt = np.roll(ring, -1, axis=0)
    return ring * (1 - 2 * factor) + (prev + nxt) * factor
