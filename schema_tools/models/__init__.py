"""
Schema model package.

Immutable value objects for one schema snapshot.
"""

from .differences import DifferenceType, Severity
from .schema import (
    Column,
    Environment,
    ForeignKey,
    Index,
    ReferentialAction,
    Schema,
    Table,
    TableKind,
    is_valid_environment,
    parse_environment,
)

__all__ = [
    "Column",
    "DifferenceType",
    "Environment",
    "ForeignKey",
    "Index",
    "ReferentialAction",
    "Schema",
    "Severity",
    "Table",
    "TableKind",
    "is_valid_environment",
    "parse_environment",
]
