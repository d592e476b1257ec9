"""
Iso-density contour extraction.

Contours are extracted with marching squares (scikit-image) on the grid
padded by one below-threshold cell, so every ring is closed. Ring
coordinates are in grid-cell units: cell (row, col) spans
[col, col + 1] x [row, row + 1]. Consumers multiply by the grid's cell
size before drawing.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np
import structlog
from skimage.measure import find_contours

logger = structlog.get_logger()

# Elevation lines every 0.1 across [0, 1)
CONTOUR_STEP = 0.1
CONTOUR_THRESHOLDS = [i * CONTOUR_STEP for i in range(10)]

_PAD_VALUE = -1.0


@dataclass
class Contour:
    """All rings of one iso-density threshold."""

    value: float
    rings: List[np.ndarray] = field(default_factory=list)  # each (m, 2) as x, y

    def scaled(self, cell_size: float) -> List[np.ndarray]:
        """Rings in screen units."""
        return [ring * cell_size for ring in self.rings]

    @property
    def is_empty(self) -> bool:
        return len(self.rings) == 0


def extract_contours(
    values: np.ndarray, thresholds: Sequence[float] = CONTOUR_THRESHOLDS
) -> List[Contour]:
    """
    Extract one Contour per threshold from a 2-D density array.

    Args:
        values: (rows, cols) density values
        thresholds: Iso levels, in order

    Returns:
        List of Contour, one per threshold (possibly with no rings)
    """
    if values.size == 0:
        return []

    padded = np.pad(np.asarray(values, dtype=np.float64), 1, constant_values=_PAD_VALUE)
    contours = []
    for threshold in thresholds:
        rings = []
        for ring in find_contours(padded, level=threshold):
            # (row, col) in padded index space -> (x, y) in cell units
            xy = np.column_stack((ring[:, 1] - 0.5, ring[:, 0] - 0.5))
            rings.append(xy)
        contours.append(Contour(value=threshold, rings=rings))

    logger.debug(
        "Contours extracted",
        levels=len(contours),
        rings=sum(len(c.rings) for c in contours),
    )
    return contours
