"""
Single-schema integrity validation.
"""

from .validator import (
    SchemaValidationReport,
    SchemaValidator,
    ValidationCategory,
    ValidationIssue,
    ValidationSeverity,
)

__all__ = [
    "SchemaValidationReport",
    "SchemaValidator",
    "ValidationCategory",
    "ValidationIssue",
    "ValidationSeverity",
]
