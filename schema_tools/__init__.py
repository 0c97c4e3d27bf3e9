"""
Schema drift inspector.

Compares relational schema snapshots across environments, prioritizes every
difference with ICE scoring, analyzes foreign key relationships and validates
schema integrity.
"""

from .comparison import SchemaComparator, SchemaComparisonResult, SchemaComparisonTool, SchemaDifference
from .config import DatabaseConfig
from .models import Environment, Schema
from .optimization import OptimizationService, SchemaStatistics
from .relationships import RelationshipAnalyzer
from .scoring import ICECalculator, ICEScore
from .snapshots import JsonSnapshotProvider, SchemaProvider
from .validation import SchemaValidator

__version__ = "0.1.0"

__all__ = [
    "DatabaseConfig",
    "Environment",
    "ICECalculator",
    "ICEScore",
    "JsonSnapshotProvider",
    "OptimizationService",
    "RelationshipAnalyzer",
    "Schema",
    "SchemaComparator",
    "SchemaComparisonResult",
    "SchemaComparisonTool",
    "SchemaDifference",
    "SchemaProvider",
    "SchemaStatistics",
    "SchemaValidator",
    "__version__",
]
