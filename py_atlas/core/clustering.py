"""
Point grouping for landmass synthesis.

This module handles:
- Deterministic k-means (first k points as initial centroids)
- Splitting a cluster into 3-8 sub-regions
- Distance outliers from the cluster centroid
- Greedy grouping of nearby outliers
"""

import math
from typing import List

import numpy as np
import structlog
from sklearn.neighbors import KDTree

logger = structlog.get_logger()

KMEANS_MAX_ITERATIONS = 50
KMEANS_TOLERANCE = 0.001


def _assign(points: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Index of the nearest centroid per point; ties go to the lowest index."""
    dx = points[:, None, 0] - centroids[None, :, 0]
    dy = points[:, None, 1] - centroids[None, :, 1]
    return np.argmin(np.sqrt(dx * dx + dy * dy), axis=1)


def _groups(points: np.ndarray, labels: np.ndarray, k: int) -> List[np.ndarray]:
    return [points[labels == c] for c in range(k)]


def kmeans_clustering(points: np.ndarray, k: int) -> List[np.ndarray]:
    """
    Partition points into at most k groups.

    Starts from the first k points, runs at most 50 iterations and stops
    once every centroid moved less than 0.001 on both axes. An empty
    group takes the current first centroid.

    Args:
        points: (n, 2) coordinates
        k: Number of centroids

    Returns:
        Non-empty groups, in centroid order
    """
    points = np.asarray(points, dtype=np.float64)
    if len(points) <= k:
        return [points[i:i + 1] for i in range(len(points))]

    centroids = points[:k].copy()
    for iteration in range(KMEANS_MAX_ITERATIONS):
        groups = _groups(points, _assign(points, centroids), k)
        new_centroids = np.array(
            [g.sum(axis=0) / len(g) if len(g) else centroids[0] for g in groups]
        )

        delta = np.abs(centroids - new_centroids)
        if np.all(delta < KMEANS_TOLERANCE):
            logger.debug("k-means converged", k=k, iterations=iteration + 1)
            break
        centroids = new_centroids

    groups = _groups(points, _assign(points, centroids), k)
    return [g for g in groups if len(g) > 0]


def subcluster_count(n_points: int, min_clusters: int = 3, max_clusters: int = 8) -> int:
    """clamp(floor(sqrt(n / 2)), min, max)."""
    return min(max_clusters, max(min_clusters, int(math.floor(math.sqrt(n_points / 2)))))


def split_into_subclusters(
    points: np.ndarray, min_clusters: int = 3, max_clusters: int = 8
) -> List[np.ndarray]:
    """Split a point set with k-means, k chosen from its size."""
    k = subcluster_count(len(points), min_clusters, max_clusters)
    return kmeans_clustering(points, k)


def find_outliers(points: np.ndarray, threshold: float = 2.5) -> List[np.ndarray]:
    """
    Points farther than mean + threshold * stddev from the centroid,
    grouped with neighbours within half a standard deviation.

    Args:
        points: (n, 2) coordinates
        threshold: Standard deviations above the mean distance

    Returns:
        Outlier groups (possibly empty list)
    """
    points = np.asarray(points, dtype=np.float64)
    if len(points) == 0:
        return []

    centroid = points.sum(axis=0) / len(points)
    distances = np.hypot(points[:, 0] - centroid[0], points[:, 1] - centroid[1])
    mean_dist = distances.mean()
    std_dev = math.sqrt(np.mean((distances - mean_dist) ** 2))

    outliers = points[distances > mean_dist + threshold * std_dev]
    return group_nearby_points(outliers, std_dev * 0.5)


def group_nearby_points(points: np.ndarray, max_distance: float) -> List[np.ndarray]:
    """
    Greedy grouping in input order.

    Each unvisited point seeds a group and takes every unvisited point
    within max_distance of the seed (inclusive).
    """
    if len(points) == 0:
        return []

    neighbours = KDTree(points).query_radius(points, r=max_distance)
    visited = np.zeros(len(points), dtype=bool)
    groups = []

    for idx in range(len(points)):
        if visited[idx]:
            continue
        visited[idx] = True
        members = [idx]
        for other in np.sort(neighbours[idx]):
            if visited[other]:
                continue
            members.append(other)
            visited[other] = True
        groups.append(points[members])

    return groups
