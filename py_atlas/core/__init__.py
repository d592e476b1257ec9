"""
Core terrain generation functionality.
"""

from .points import ClusterLevel, ClusterMembership, Point, WorldContext
from .density import DensityEstimator, DensityGrid
from .contours import Contour, extract_contours
from .biomes import Biome, BiomeClassifier, get_biome
from .settlements import Settlement, SettlementDetector, SettlementType, get_settlement_type
from .landmass import LandmassSynthesizer, MapLevel, MapPolygon
from .cache import CacheKey, GenerationCache

__all__ = ['ClusterLevel', 'ClusterMembership', 'Point', 'WorldContext',
           'DensityEstimator', 'DensityGrid', 'Contour', 'extract_contours',
           'Biome', 'BiomeClassifier', 'get_biome',
           'Settlement', 'SettlementDetector', 'SettlementType', 'get_settlement_type',
           'LandmassSynthesizer', 'MapLevel', 'MapPolygon',
           'CacheKey', 'GenerationCache']
