"""
End-to-end tests for the terrain engine.

Tests cover:
- Full generation for a viewport
- Degenerate worlds
- Density and raster caching
- Cooperative cancellation and background tasks
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from py_atlas.config import Settings
from py_atlas.config.terrain_settings import TerrainSettings
from py_atlas.core.density import DensityGrid
from py_atlas.core.errors import AtlasError, GenerationCancelled
from py_atlas.core.landmass import MapLevel
from py_atlas.core.points import WorldContext
from py_atlas.engine import GenerationTask, TerrainEngine, TerrainResult


@pytest.fixture
def engine(blob_world):
    return TerrainEngine(blob_world, Settings())


class TestGenerate:
    """Test full generation."""

    def test_generate(self, engine):
        result = engine.generate(200, 150, TerrainSettings.defaults())

        assert isinstance(result, TerrainResult)
        assert result.density_grid.values.shape == (150, 200)
        assert result.raster.shape == (150, 200, 4)
        assert result.settlement_grid is not None
        assert result.settlement_grid.cols == 400
        assert len(result.settlements) <= 50
        assert "peaks" in result.biome_regions
        assert any(p.level == MapLevel.CONTINENT for p in result.map_polygons)

    def test_generate_without_polygons(self, engine):
        result = engine.generate(200, 150, include_polygons=False)
        assert result.map_polygons == []
        assert result.settlement_grid is None

    def test_empty_world(self):
        """Test no points yields zero density, no settlements and no polygons."""
        result = TerrainEngine(WorldContext([]), Settings()).generate(100, 100)
        assert not result.density_grid.values.any()
        assert result.settlements == []
        assert result.map_polygons == []

    def test_degenerate_canvas(self, engine):
        result = engine.generate(0, 150, include_polygons=False)
        assert result.density_grid.is_empty
        assert result.raster.shape == (0, 0, 4)
        assert result.settlements == []


class TestCaching:
    """Test memoized density grids and rasters."""

    def test_density_cached(self, engine):
        first = engine.density_grid(200, 150)
        second = engine.density_grid(200, 150)
        assert first is second
        assert engine.density_cache.hits == 1

    def test_resize_recomputes(self, engine):
        first = engine.density_grid(200, 150)
        second = engine.density_grid(220, 150)
        assert first is not second
        assert engine.density_cache.misses == 2

    def test_raster_keyed_by_settings(self, engine):
        settings = TerrainSettings.defaults()
        first = engine.terrain_raster(200, 150, settings)
        assert engine.terrain_raster(200, 150, TerrainSettings.defaults()) is first

        changed = settings.model_copy(update={"forest_threshold": 0.5})
        assert engine.terrain_raster(200, 150, changed) is not first

    def test_supplied_grid_bypasses_cache(self, engine):
        """Test a raster drawn from a caller's grid ignores and keeps the cached one."""
        settings = TerrainSettings.defaults()
        cached = engine.terrain_raster(200, 150, settings)
        hits, misses = engine.raster_cache.hits, engine.raster_cache.misses

        flat = DensityGrid(values=np.zeros((150, 200)), cols=200, rows=150, cell_size=1.0)
        raster = engine.terrain_raster(200, 150, settings, grid=flat)

        assert raster is not cached
        assert not np.array_equal(raster, cached)
        assert (engine.raster_cache.hits, engine.raster_cache.misses) == (hits, misses)
        assert engine.terrain_raster(200, 150, settings) is cached


class TestCancellation:
    """Test cancellable generation."""

    def test_cancel_before_start(self, engine):
        event = threading.Event()
        event.set()
        with pytest.raises(GenerationCancelled):
            engine.generate(200, 150, cancel_event=event)

    def test_cancelled_is_atlas_error(self):
        assert issubclass(GenerationCancelled, AtlasError)

    def test_task_result(self, engine):
        task = GenerationTask(engine, 120, 90, TerrainSettings.defaults())
        try:
            result = task.result(timeout=120)
            assert result.raster.shape == (90, 120, 4)
            assert not task.cancelled
        finally:
            task.shutdown()

    def test_task_cancel_while_queued(self, engine):
        """Test a queued task is cancelled before it runs."""
        executor = ThreadPoolExecutor(max_workers=1)
        release = threading.Event()
        executor.submit(release.wait)
        try:
            task = GenerationTask(engine, 120, 90, executor=executor)
            future = task.submit()
            task.cancel()
            assert task.cancelled
            assert future.cancelled()
        finally:
            release.set()
            executor.shutdown(wait=True)

    def test_task_restart(self, engine):
        task = GenerationTask(engine, 120, 90)
        try:
            task.submit()
            future = task.restart()
            assert not task.cancelled
            result = future.result(timeout=120)
            assert np.asarray(result.raster).shape == (90, 120, 4)
        finally:
            task.shutdown()
