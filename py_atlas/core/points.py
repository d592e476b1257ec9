"""
Input data model: projected points, cluster memberships and the world
context that owns them.
"""

import hashlib
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

import numpy as np
import structlog
from pydantic import BaseModel, ConfigDict, Field

logger = structlog.get_logger()


class ClusterLevel(str, Enum):
    """Cluster hierarchy levels."""

    HIGH = "High"
    DETAILED = "Detailed"


class Point(BaseModel):
    """A single projected record."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Unique point identifier")
    x: float = Field(description="First projection dimension")
    y: float = Field(description="Second projection dimension")


class ClusterMembership(BaseModel):
    """A cluster at one hierarchy level."""

    model_config = ConfigDict(frozen=True)

    cluster_id: str = Field(description="Cluster identifier")
    level: ClusterLevel = Field(description="Hierarchy level")
    member_ids: FrozenSet[int] = Field(default_factory=frozenset, description="Member point ids")
    centroid: Tuple[float, float] = Field(default=(0.0, 0.0), description="Cluster centroid")
    color: str = Field(default="#888888", description="Render color in hex format")
    name: str = Field(default="", description="Display name")


class WorldContext:
    """
    Caller-owned bundle of points and clusters passed into the engine.

    Coordinates are materialised once as an (n, 2) array in input order;
    the order is significant for settlement detection.
    """

    def __init__(
        self,
        points: Sequence[Point],
        clusters: Optional[Sequence[ClusterMembership]] = None,
    ):
        self.points: List[Point] = list(points)
        self.clusters: List[ClusterMembership] = list(clusters or [])

        if self.points:
            self.coordinates = np.array([[p.x, p.y] for p in self.points], dtype=np.float64)
        else:
            self.coordinates = np.zeros((0, 2), dtype=np.float64)
        self.index_by_id: Dict[int, int] = {p.id: i for i, p in enumerate(self.points)}

        self._validate_memberships()
        self._digest: Optional[str] = None

    def _validate_memberships(self) -> None:
        """Warn about member ids that do not refer to a known point."""
        for cluster in self.clusters:
            unknown = [m for m in cluster.member_ids if m not in self.index_by_id]
            if unknown:
                logger.warning(
                    "Cluster references unknown points",
                    cluster_id=cluster.cluster_id,
                    unknown=len(unknown),
                )

    def __len__(self) -> int:
        return len(self.points)

    def clusters_at(self, level: ClusterLevel) -> List[ClusterMembership]:
        return [c for c in self.clusters if c.level == level]

    def member_coordinates(self, cluster: ClusterMembership) -> np.ndarray:
        """Member coordinates in data space, in point input order."""
        indices = [i for i, p in enumerate(self.points) if p.id in cluster.member_ids]
        return self.coordinates[indices]

    @property
    def digest(self) -> str:
        """SHA-1 over ids and coordinates in input order."""
        if self._digest is None:
            h = hashlib.sha1()
            ids = np.array([p.id for p in self.points], dtype=np.int64)
            h.update(ids.tobytes())
            h.update(np.ascontiguousarray(self.coordinates).tobytes())
            self._digest = h.hexdigest()
        return self._digest
