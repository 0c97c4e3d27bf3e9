"""
Schema comparison package.
"""

from .comparison_tool import SchemaComparisonInput, SchemaComparisonTool
from .difference import DifferenceLocation, SchemaDifference, derive_severity
from .result import ComparisonMetadata, ComparisonSummary, SchemaComparisonResult
from .schema_comparator import SchemaComparator, column_types_differ, generate_create_table_ddl, normalize_type

__all__ = [
    "ComparisonMetadata",
    "ComparisonSummary",
    "DifferenceLocation",
    "SchemaComparator",
    "SchemaComparisonInput",
    "SchemaComparisonResult",
    "SchemaComparisonTool",
    "SchemaDifference",
    "column_types_differ",
    "derive_severity",
    "generate_create_table_ddl",
    "normalize_type",
]
