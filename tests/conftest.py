"""Shared fixtures: small worlds with known structure."""

import numpy as np
import pytest

from py_atlas.core.points import ClusterLevel, ClusterMembership, Point, WorldContext


def make_points(coords, start_id=0):
    return [Point(id=start_id + i, x=float(x), y=float(y)) for i, (x, y) in enumerate(coords)]


@pytest.fixture
def triangle_points():
    """Three points projecting to (50, 50), (150, 50) and (100, 150) on a 200x200 canvas."""
    return make_points([(0, 2), (2, 2), (1, 0)])


@pytest.fixture
def blob_coords():
    """Two gaussian blobs plus a far outlier, fixed seed."""
    rng = np.random.default_rng(42)
    west = rng.normal(loc=(-5.0, 0.0), scale=1.0, size=(120, 2))
    east = rng.normal(loc=(5.0, 1.0), scale=0.8, size=(80, 2))
    outlier = np.array([[-5.0, 14.0]])
    return np.vstack([west, east, outlier])


@pytest.fixture
def blob_world(blob_coords):
    """Blob points with one High cluster per blob and Detailed clusters matching them."""
    points = make_points(blob_coords)
    west_ids = frozenset(range(0, 120)) | {200}
    east_ids = frozenset(range(120, 200))
    clusters = [
        ClusterMembership(cluster_id="w", level=ClusterLevel.HIGH, member_ids=west_ids),
        ClusterMembership(cluster_id="e", level=ClusterLevel.HIGH, member_ids=east_ids),
        ClusterMembership(cluster_id="w1", level=ClusterLevel.DETAILED, member_ids=west_ids),
        ClusterMembership(cluster_id="e1", level=ClusterLevel.DETAILED, member_ids=east_ids),
    ]
    return WorldContext(points, clusters)
