"""
Classification of schema differences.
"""

from enum import Enum


class DifferenceType(Enum):
    """Kinds of drift detected between a source and a target schema."""

    MISSING_TABLE = "missing_table"
    MISSING_COLUMN = "missing_column"
    EXTRA_TABLE = "extra_table"  # exists in target only
    EXTRA_COLUMN = "extra_column"  # exists in target only
    TYPE_MISMATCH = "type_mismatch"
    MISSING_INDEX = "missing_index"
    MISSING_FOREIGN_KEY = "missing_foreign_key"

    @property
    def is_structural(self) -> bool:
        """Table/column existence or column type."""
        return self in _STRUCTURAL

    @property
    def is_constraint(self) -> bool:
        """Index or foreign key."""
        return self in _CONSTRAINT

    @property
    def escalates_to_critical(self) -> bool:
        """Missing tables and columns are escalated when their priority is high."""
        return self in (DifferenceType.MISSING_TABLE, DifferenceType.MISSING_COLUMN)


_STRUCTURAL = frozenset(
    {
        DifferenceType.MISSING_TABLE,
        DifferenceType.MISSING_COLUMN,
        DifferenceType.EXTRA_TABLE,
        DifferenceType.EXTRA_COLUMN,
        DifferenceType.TYPE_MISMATCH,
    }
)
_CONSTRAINT = frozenset({DifferenceType.MISSING_INDEX, DifferenceType.MISSING_FOREIGN_KEY})


class Severity(Enum):
    """Severity of a difference, derived from its ICE priority."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """0 for CRITICAL up to 3 for LOW; used for ordering reports."""
        return list(Severity).index(self)
