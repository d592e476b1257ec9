"""
Unit tests for settlement detection.

Tests cover:
- Greedy point grouping and its order dependence
- Size tiers and the per-generation cap
- Settlement surface tiers
- Density peaks
"""

import numpy as np
import pytest
from pydantic import ValidationError

from py_atlas.config import Settings
from py_atlas.config.terrain_settings import TerrainSettings
from py_atlas.core.density import DensityGrid
from py_atlas.core.settlements import (
    CITY,
    HOUSE,
    SURFACE_TIERS,
    VILLAGE,
    Settlement,
    SettlementDetector,
    SettlementType,
    classify_settlement_grid,
    find_density_peaks,
    get_settlement_type,
    settlement_type_for_size,
)


@pytest.fixture
def detector():
    return SettlementDetector(Settings(max_settlements=50))


def tight_group(center, n, spread=0.001):
    cx, cy = center
    return [(cx + (i % 5) * spread, cy + (i // 5) * spread) for i in range(n)]


class TestSettlementModel:
    """Test the settlement data model."""

    def test_settlement_creation(self):
        settlement = Settlement(x=10.0, y=20.0, size=3, type=SettlementType.VILLAGE)
        assert settlement.size == 3
        assert settlement.type == "village"

    def test_rejects_small_groups(self):
        with pytest.raises(ValidationError):
            Settlement(x=0.0, y=0.0, size=2, type=SettlementType.VILLAGE)

    @pytest.mark.parametrize(
        "size,expected",
        [
            (3, SettlementType.VILLAGE),
            (7, SettlementType.VILLAGE),
            (8, SettlementType.TOWN),
            (15, SettlementType.CITY),
            (29, SettlementType.CITY),
            (30, SettlementType.METROPOLIS),
        ],
    )
    def test_size_tiers(self, size, expected):
        assert settlement_type_for_size(size) == expected


class TestSettlementDetector:
    """Test greedy settlement detection."""

    def test_single_village(self, detector):
        coords = np.array(tight_group((0, 0), 3) + [(10, 10)])
        settlements = detector.calculate_settlements(coords, 400, 400)

        assert len(settlements) == 1
        assert settlements[0].size == 3
        assert settlements[0].type == SettlementType.VILLAGE
        assert settlements[0].x == pytest.approx(50, abs=0.5)
        assert settlements[0].y == pytest.approx(350, abs=0.5)

    def test_tiers_from_group_sizes(self, detector):
        coords = np.array(
            tight_group((0, 0), 30)
            + tight_group((10, 0), 15)
            + tight_group((0, 10), 8)
            + tight_group((10, 10), 3)
        )
        settlements = detector.calculate_settlements(coords, 400, 400)

        assert [s.size for s in settlements] == [30, 15, 8, 3]
        assert [s.type for s in settlements] == [
            SettlementType.METROPOLIS,
            SettlementType.CITY,
            SettlementType.TOWN,
            SettlementType.VILLAGE,
        ]

    def test_cap_and_ordering(self, detector):
        """Test at most 50 settlements are kept, largest first."""
        coords = []
        for gx in range(8):
            for gy in range(8):
                coords += tight_group((gx, gy), 3 + (gx + gy) % 3, spread=0.01)
        settlements = detector.calculate_settlements(np.array(coords), 400, 400)

        assert len(settlements) == 50
        sizes = [s.size for s in settlements]
        assert sizes == sorted(sizes, reverse=True)
        assert all(s.size >= 3 for s in settlements)

    def test_order_dependence(self, detector):
        """Test a seed's neighbours are consumed even if its group is too small."""
        anchor = (300, 0)
        in_order = np.array([(0, 0), (6, 0), (12, 0), (18, 0), anchor], dtype=float)
        assert detector.calculate_settlements(in_order, 400, 400) == []

        reordered = np.array([(6, 0), (0, 0), (12, 0), (18, 0), anchor], dtype=float)
        settlements = detector.calculate_settlements(reordered, 400, 400)
        assert len(settlements) == 1
        assert settlements[0].size == 3
        assert settlements[0].x == pytest.approx(56)
        assert settlements[0].y == pytest.approx(200)

    def test_no_points(self, detector):
        assert detector.calculate_settlements(np.zeros((0, 2)), 400, 400) == []

    def test_degenerate_canvas(self, detector, blob_coords):
        assert detector.calculate_settlements(blob_coords, 0, 400) == []

    def test_configured_cap(self, blob_coords):
        detector = SettlementDetector(Settings(max_settlements=2, settlement_bandwidth=0.05))
        assert len(detector.calculate_settlements(blob_coords, 400, 400)) <= 2


class TestSettlementSurface:
    """Test settlement surface tiers."""

    @pytest.mark.parametrize(
        "density,expected",
        [(0.05, None), (0.1, HOUSE), (0.29, HOUSE), (0.3, VILLAGE), (0.6, CITY), (1.0, CITY)],
    )
    def test_default_thresholds(self, density, expected):
        assert get_settlement_type(density) == expected

    def test_custom_thresholds(self):
        settings = TerrainSettings.defaults()
        assert get_settlement_type(0.2, settings) is None
        assert get_settlement_type(0.23, settings) == HOUSE
        assert get_settlement_type(0.5, settings) == VILLAGE
        assert get_settlement_type(0.72, settings) == CITY

    def test_grid_matches_scalar(self):
        settings = TerrainSettings.defaults()
        values = np.linspace(0, 1, 101).reshape(1, -1)
        grid = DensityGrid(cols=101, rows=1, cell_size=1.0, values=values)
        tiers = classify_settlement_grid(grid, settings)
        for value, tier in zip(values[0], tiers[0]):
            assert SURFACE_TIERS[tier] == get_settlement_type(value, settings)


class TestDensityPeaks:
    """Test density peak detection."""

    def test_single_peak(self):
        values = np.zeros((9, 9))
        values[4, 4] = 0.9
        grid = DensityGrid(cols=9, rows=9, cell_size=2.0, values=values)

        peaks = find_density_peaks(grid)
        assert len(peaks) == 1
        assert peaks[0].x == 9.0
        assert peaks[0].y == 9.0
        assert peaks[0].density == 0.9

    def test_close_peaks_thinned(self):
        values = np.zeros((9, 12))
        values[4, 3] = 0.9
        values[4, 6] = 0.8
        grid = DensityGrid(cols=12, rows=9, cell_size=1.0, values=values)

        peaks = find_density_peaks(grid)
        assert [p.density for p in peaks] == [0.9]

    def test_below_minimum(self):
        values = np.zeros((5, 5))
        values[2, 2] = 0.3
        grid = DensityGrid(cols=5, rows=5, cell_size=1.0, values=values)
        assert find_density_peaks(grid) == []
