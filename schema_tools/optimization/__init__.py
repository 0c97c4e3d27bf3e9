"""
Single-schema optimization analysis.
"""

from .optimizer import FREQUENT_JOIN_THRESHOLD, Optimization, OptimizationService, OptimizationType
from .statistics import SchemaStatistics, TableStatistics

__all__ = [
    "FREQUENT_JOIN_THRESHOLD",
    "Optimization",
    "OptimizationService",
    "OptimizationType",
    "SchemaStatistics",
    "TableStatistics",
]
