"""
Terrain engine entry points.

TerrainEngine wires the components together over a caller-owned
WorldContext:

    points + clusters -> density -> smoothing -> biomes / contours -> raster
    points            -> settlements (markers, surface grid)
    points + clusters -> landmass polygons

Density grids and rasters are memoized in single-slot caches owned by
the engine. GenerationTask runs a full generation on an executor and can
be cancelled between phases.
"""

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import structlog

from .config import Settings, settings as default_settings
from .config.terrain_settings import TerrainSettings, resolve
from .render.raster import TerrainRenderer
from .core.biomes import generate_biome_regions
from .core.cache import CacheKey, GenerationCache, settings_snapshot
from .core.contours import Contour
from .core.density import DensityEstimator, DensityGrid
from .core.errors import GenerationCancelled
from .core.landmass import LandmassSynthesizer, MapPolygon
from .core.points import WorldContext
from .core.settlements import Settlement, SettlementDetector

logger = structlog.get_logger()


@dataclass
class TerrainResult:
    """Everything a renderer needs for one viewport."""

    density_grid: DensityGrid
    settlements: List[Settlement] = field(default_factory=list)
    settlement_grid: Optional[DensityGrid] = None
    raster: Optional[np.ndarray] = None
    biome_regions: Dict[str, List[Contour]] = field(default_factory=dict)
    map_polygons: List[MapPolygon] = field(default_factory=list)


class TerrainEngine:
    """Generation facade over one world context."""

    def __init__(
        self,
        context: WorldContext,
        config: Optional[Settings] = None,
        density_cache: Optional[GenerationCache] = None,
        raster_cache: Optional[GenerationCache] = None,
    ):
        """
        Initialize the engine.

        Args:
            context: Points and clusters to generate from
            config: Engine settings
            density_cache: Slot for smoothed terrain grids
            raster_cache: Slot for rendered terrain rasters
        """
        self.context = context
        self.config = config or default_settings
        self.density_cache = density_cache or GenerationCache("density")
        self.raster_cache = raster_cache or GenerationCache("raster")

        self.estimator = DensityEstimator(self.config)
        self.detector = SettlementDetector(self.config)
        self.synthesizer = LandmassSynthesizer(self.config)
        self.renderer = TerrainRenderer()

    def _key(self, width: float, height: float, settings: Optional[TerrainSettings] = None) -> CacheKey:
        return CacheKey(
            point_digest=self.context.digest,
            width=width,
            height=height,
            settings=settings_snapshot(settings),
        )

    def density_grid(self, width: float, height: float) -> DensityGrid:
        """Smoothed terrain grid, cached per (points, width, height)."""

        def compute() -> DensityGrid:
            grid = self.estimator.calculate_density_grid(self.context.coordinates, width, height)
            return self.estimator.smooth_density_grid(grid)

        return self.density_cache.get_or_compute(self._key(width, height), compute)

    def settlement_density_grid(self, width: float, height: float) -> DensityGrid:
        return self.estimator.calculate_settlement_density_grid(self.context.coordinates, width, height)

    def settlements(self, width: float, height: float) -> List[Settlement]:
        return self.detector.calculate_settlements(self.context.coordinates, width, height)

    def terrain_raster(
        self,
        width: int,
        height: int,
        settings: Optional[TerrainSettings] = None,
        grid: Optional[DensityGrid] = None,
        settlement_grid: Optional[DensityGrid] = None,
    ) -> np.ndarray:
        """
        RGBA terrain raster, cached per (points, width, height, settings).

        Rasters drawn from caller-supplied grids are rendered directly and
        never read from or written to the cache.
        """
        resolved = resolve(settings)
        if grid is None and settlement_grid is None:
            return self._cached_raster(width, height, settings)

        terrain = grid if grid is not None else self.density_grid(width, height)
        fine = settlement_grid
        if fine is None and resolved.draws_settlement_surface:
            fine = self.settlement_density_grid(width, height)
        return self.renderer.render(terrain, width, height, resolved, fine)

    def _cached_raster(
        self,
        width: int,
        height: int,
        settings: Optional[TerrainSettings] = None,
        settlement_grid: Optional[DensityGrid] = None,
    ) -> np.ndarray:
        # settlement_grid, when given, must be derived from this engine's points
        resolved = resolve(settings)

        def compute() -> np.ndarray:
            fine = settlement_grid
            if fine is None and resolved.draws_settlement_surface:
                fine = self.settlement_density_grid(width, height)
            return self.renderer.render(self.density_grid(width, height), width, height, resolved, fine)

        return self.raster_cache.get_or_compute(self._key(width, height, settings), compute)

    def map_polygons(self) -> List[MapPolygon]:
        return self.synthesizer.generate_map_polygons(self.context)

    def generate(
        self,
        width: int,
        height: int,
        settings: Optional[TerrainSettings] = None,
        cancel_event: Optional[threading.Event] = None,
        include_polygons: bool = True,
    ) -> TerrainResult:
        """
        Full generation for one viewport.

        Args:
            width: Canvas width
            height: Canvas height
            settings: Terrain settings
            cancel_event: Checked between phases
            include_polygons: Also synthesize landmass polygons

        Returns:
            TerrainResult

        Raises:
            GenerationCancelled: If cancel_event is set between phases
        """

        def checkpoint(phase: str) -> None:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Generation cancelled", phase=phase)
                raise GenerationCancelled(f"Cancelled before {phase}")

        logger.info("Generating terrain", width=width, height=height, points=len(self.context))
        resolved = resolve(settings)

        checkpoint("density")
        grid = self.density_grid(width, height)

        checkpoint("settlements")
        settlements = self.settlements(width, height)
        settlement_grid = None
        if resolved.draws_settlement_surface:
            settlement_grid = self.settlement_density_grid(width, height)

        checkpoint("raster")
        raster = self._cached_raster(width, height, settings, settlement_grid)
        biome_regions = generate_biome_regions(grid, settings)

        polygons: List[MapPolygon] = []
        if include_polygons:
            checkpoint("landmasses")
            polygons = self.map_polygons()

        return TerrainResult(
            density_grid=grid,
            settlements=settlements,
            settlement_grid=settlement_grid,
            raster=raster,
            biome_regions=biome_regions,
            map_polygons=polygons,
        )


class GenerationTask:
    """
    Cancellable, restartable background generation.

    Cancellation is cooperative: a running generation stops at its next
    phase boundary and its future raises GenerationCancelled.
    """

    def __init__(
        self,
        engine: TerrainEngine,
        width: int,
        height: int,
        settings: Optional[TerrainSettings] = None,
        executor: Optional[Executor] = None,
    ):
        self.engine = engine
        self.width = width
        self.height = height
        self.settings = settings
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="atlas-gen")
        self._cancel_event = threading.Event()
        self._future: Optional[Future] = None

    def submit(self) -> Future:
        """Start generation (no-op if already running)."""
        if self._future is not None and not self._future.done():
            return self._future
        self._cancel_event = threading.Event()
        self._future = self._executor.submit(
            self.engine.generate, self.width, self.height, self.settings, self._cancel_event
        )
        return self._future

    def cancel(self) -> None:
        self._cancel_event.set()
        if self._future is not None:
            self._future.cancel()

    def restart(self) -> Future:
        """Cancel the current run and start a fresh one."""
        self.cancel()
        if self._future is not None and not self._future.cancelled():
            # Let the cancelled run reach its checkpoint before resubmitting
            self._future.exception()
        self._future = None
        return self.submit()

    def result(self, timeout: Optional[float] = None) -> TerrainResult:
        if self._future is None:
            self.submit()
        return self._future.result(timeout)

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def shutdown(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)
