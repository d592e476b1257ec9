"""Tests for biome classification."""

import numpy as np
import pytest

from py_atlas.config.terrain_settings import TerrainSettings, TerrainStyle, resolve
from py_atlas.core.biomes import (
    CUSTOM_OCEAN_COLOR,
    NATURAL_BIOMES,
    URBAN_BIOMES,
    BiomeClassifier,
    create_biome_color_scale,
    generate_biome_regions,
    get_biome,
    hex_to_rgb,
)
from py_atlas.core.density import DensityGrid


@pytest.fixture
def custom_settings():
    """Natural thresholds with derived shallow water and beach."""
    return TerrainSettings(
        ocean_threshold=0.005,
        desert_threshold=0.2,
        forest_threshold=0.4,
        mountain_threshold=0.8,
    )


class TestFixedPalettes:
    """Test the built-in natural and urban tables."""

    @pytest.mark.parametrize("table", [NATURAL_BIOMES, URBAN_BIOMES])
    def test_contiguous(self, table):
        assert table[0].min_density == 0
        assert table[-1].max_density == 1.0
        for lower, upper in zip(table, table[1:]):
            assert lower.max_density == upper.min_density

    @pytest.mark.parametrize("table", [NATURAL_BIOMES, URBAN_BIOMES])
    def test_exactly_one_bucket_below_one(self, table):
        """Test every density in [0, 1) falls in exactly one biome."""
        for d in np.linspace(0, 1, 1001)[:-1]:
            assert sum(b.contains(d) for b in table) == 1

    def test_one_maps_to_last_biome(self):
        """Test density 1.0 falls through to the final bucket."""
        assert get_biome(1.0).name == "peaks"

    @pytest.mark.parametrize(
        "density,expected",
        [
            (0.0, "ocean"),
            (0.0005, "ocean"),
            (0.001, "shallow_water"),
            (0.03, "beach"),
            (0.1, "desert"),
            (0.2, "savanna"),
            (0.3, "grassland"),
            (0.4, "forest"),
            (0.6, "hills"),
            (0.8, "mountains"),
            (0.85, "peaks"),
        ],
    )
    def test_natural_buckets(self, density, expected):
        assert get_biome(density).name == expected

    def test_urban_palette(self, custom_settings):
        """Test greyscale style uses the urban table and ignores custom thresholds."""
        urban = custom_settings.model_copy(update={"terrain_style": TerrainStyle.GREYSCALE})
        classifier = BiomeClassifier(urban)
        assert classifier.biomes is URBAN_BIOMES
        assert classifier.classify(0.9).name == "metropolis"
        assert classifier.classify(1.0).name == "metropolis"
        assert classifier.classify(0.5).name == "outskirts"

    def test_display_name(self):
        assert NATURAL_BIOMES[1].display_name == "Shallow Water"

    def test_hex_to_rgb(self):
        assert hex_to_rgb("#0A0F1B") == (10, 15, 27)


class TestCustomThresholds:
    """Test palettes built from caller thresholds."""

    def test_derived_fallbacks(self, custom_settings):
        resolved = resolve(custom_settings)
        assert resolved.thresholds.shallow_water == pytest.approx(0.025)
        assert resolved.thresholds.beach == pytest.approx(0.1)

    def test_zero_fallback_uses_derivation(self, custom_settings):
        """Test an explicit zero shallow water threshold is treated as absent."""
        zeroed = custom_settings.model_copy(update={"shallow_water_threshold": 0.0})
        assert resolve(zeroed).thresholds.shallow_water == pytest.approx(0.025)

    @pytest.mark.parametrize(
        "density,expected",
        [
            (0.001, "ocean"),
            (0.01, "shallow_water"),
            (0.05, "beach"),
            (0.15, "desert"),
            (0.25, "savanna"),
            (0.35, "grassland"),
            (0.5, "forest"),
            (0.7, "hills"),
            (0.85, "mountains"),
            (0.95, "peaks"),
            (1.0, "peaks"),
        ],
    )
    def test_midpoint_interpolation(self, custom_settings, density, expected):
        assert get_biome(density, custom_settings).name == expected

    def test_custom_ocean_color(self, custom_settings):
        assert get_biome(0.0, custom_settings).color == CUSTOM_OCEAN_COLOR

    def test_grid_matches_scalar(self, custom_settings):
        """Test vectorized classification agrees with per-value classification."""
        classifier = BiomeClassifier(custom_settings)
        values = np.linspace(0, 1, 257).reshape(1, -1)
        indices = classifier.classify_grid(values)
        for value, index in zip(values[0], indices[0]):
            assert classifier.biomes[index] == classifier.classify(value)


class TestRegionsAndScale:
    """Test biome region contours and the continuous color scale."""

    @pytest.fixture
    def bump_grid(self):
        values = np.zeros((7, 7))
        values[3, 3] = 1.0
        values[2:5, 2:5] = np.maximum(values[2:5, 2:5], 0.4)
        return DensityGrid(cols=7, rows=7, cell_size=2.0, values=values)

    def test_regions_skip_ocean(self, bump_grid):
        regions = generate_biome_regions(bump_grid)
        assert "ocean" not in regions
        assert "peaks" in regions
        assert "forest" in regions

    def test_regions_empty_grid(self):
        assert generate_biome_regions(DensityGrid.empty()) == {}

    def test_scale_endpoints_clamp(self):
        scale = create_biome_color_scale()
        assert scale(0.0) == NATURAL_BIOMES[0].rgb
        assert scale(1.0) == NATURAL_BIOMES[-1].rgb

    def test_scale_at_midpoint(self):
        scale = create_biome_color_scale()
        forest = NATURAL_BIOMES[6]
        assert scale((forest.min_density + forest.max_density) / 2) == forest.rgb

    def test_scale_urban(self):
        urban = TerrainSettings(
            ocean_threshold=0.01,
            desert_threshold=0.1,
            forest_threshold=0.3,
            mountain_threshold=0.8,
            terrain_style=TerrainStyle.GREYSCALE,
        )
        scale = create_biome_color_scale(urban)
        assert scale(1.0) == URBAN_BIOMES[-1].rgb
