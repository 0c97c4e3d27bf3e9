"""
Schema Validation

Checks a single schema snapshot for integrity problems that do not need a
second environment to be noticed:
- Foreign keys pointing at tables or columns that do not exist
- Tables without a primary key
- Base tables without any index
- Nullable foreign key columns that do not use ON DELETE SET NULL

Errors make a schema invalid; warnings and info findings are advisory.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

from loguru import logger

from ..models import Environment, ForeignKey, ReferentialAction, Schema, Table, TableKind, parse_environment


class ValidationSeverity(Enum):
    """Severity of a validation issue."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationCategory(Enum):
    """Rule that produced a validation issue."""

    MISSING_PRIMARY_KEY = "missing_primary_key"
    ORPHANED_FOREIGN_KEY = "orphaned_foreign_key"
    INVALID_FOREIGN_KEY = "invalid_foreign_key"
    NO_INDEXES = "no_indexes"
    NULLABLE_FOREIGN_KEY = "nullable_foreign_key"


@dataclass(frozen=True)
class ValidationIssue:
    """
    A single integrity finding.

    ``details`` carries rule-specific data such as the referenced table or a
    recommendation; it is read-only once the issue is built.
    """

    severity: ValidationSeverity
    category: ValidationCategory
    message: str
    table: str
    column: str | None = None
    details: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if not self.message or not self.message.strip():
            raise ValueError("ValidationIssue message cannot be empty")
        object.__setattr__(self, "severity", ValidationSeverity(self.severity))
        object.__setattr__(self, "category", ValidationCategory(self.category))
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    @property
    def location(self) -> str:
        if self.column:
            return f"{self.table}.{self.column}"
        return self.table

    def get_description(self) -> str:
        return f"[{self.severity.value.upper()}] {self.location}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "category": self.category.value,
            "message": self.message,
            "table": self.table,
            "column": self.column,
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class SchemaValidationReport:
    """All issues found in one schema, with per-severity counts."""

    database_name: str
    environment: Environment
    issues: tuple[ValidationIssue, ...]
    validated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        object.__setattr__(self, "environment", parse_environment(self.environment))
        object.__setattr__(self, "issues", tuple(self.issues))

    def get_issues_by_severity(self, severity: ValidationSeverity) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity is severity]

    def get_issues_for_table(self, table_name: str) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.table == table_name]

    @property
    def error_count(self) -> int:
        return len(self.get_issues_by_severity(ValidationSeverity.ERROR))

    @property
    def warning_count(self) -> int:
        return len(self.get_issues_by_severity(ValidationSeverity.WARNING))

    @property
    def info_count(self) -> int:
        return len(self.get_issues_by_severity(ValidationSeverity.INFO))

    @property
    def is_valid(self) -> bool:
        """A schema is valid when no rule reported an error."""
        return self.error_count == 0

    def get_formatted_summary(self) -> str:
        status = "valid" if self.is_valid else "INVALID"
        lines = [
            f"Validation of {self.database_name} ({self.environment.value}): {status}",
            f"  Errors: {self.error_count}, warnings: {self.warning_count}, info: {self.info_count}",
        ]
        lines.extend(f"  {issue.get_description()}" for issue in self.issues)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "database_name": self.database_name,
            "environment": self.environment.value,
            "is_valid": self.is_valid,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "info_count": self.info_count,
            "issues": [issue.to_dict() for issue in self.issues],
            "validated_at": self.validated_at.isoformat(),
        }


class SchemaValidator:
    """
    Stateless integrity checks over a schema snapshot.

    Rules run table by table in schema order. Within a table the order is:
    primary key, foreign key targets, indexes, nullable foreign keys.
    """

    def validate(self, schema: Schema) -> SchemaValidationReport:
        """
        Run every rule against every table.

        Args:
            schema: Snapshot to validate

        Returns:
            SchemaValidationReport listing the issues in rule order
        """
        logger.info(f"Validating schema '{schema.name}' ({schema.environment.value})")

        issues: list[ValidationIssue] = []
        for table in schema.tables:
            issues.extend(self.validate_table(table, schema))

        report = SchemaValidationReport(schema.name, schema.environment, tuple(issues))
        logger.info(
            f"Schema validation of '{schema.name}' found {report.error_count} error(s), "
            f"{report.warning_count} warning(s), {report.info_count} info"
        )
        return report

    def validate_table(self, table: Table, schema: Schema) -> list[ValidationIssue]:
        """Issues for one table; the schema resolves foreign key targets."""
        issues: list[ValidationIssue] = []

        if not table.has_primary_key():
            issues.append(self._missing_primary_key(table))

        for fk in table.foreign_keys:
            issue = self._check_foreign_key_target(fk, schema)
            if issue is not None:
                issues.append(issue)

        if table.kind is TableKind.TABLE and not table.indexes:
            issues.append(self._no_indexes(table))

        for fk in table.foreign_keys:
            column = table.get_column(fk.column)
            if column is not None and column.is_nullable and fk.on_delete is not ReferentialAction.SET_NULL:
                issues.append(self._nullable_foreign_key(fk))

        return issues

    def _missing_primary_key(self, table: Table) -> ValidationIssue:
        return ValidationIssue(
            ValidationSeverity.WARNING,
            ValidationCategory.MISSING_PRIMARY_KEY,
            f"Table '{table.name}' has no primary key",
            table.name,
            details={
                "recommendation": "Add a primary key column for better query performance and data integrity"
            },
        )

    def _check_foreign_key_target(self, fk: ForeignKey, schema: Schema) -> ValidationIssue | None:
        """ERROR when the referenced table, or its referenced column, is missing."""
        details = {"referenced_table": fk.references_table, "referenced_column": fk.references_column}
        referenced = schema.get_table(fk.references_table)

        if referenced is None:
            return ValidationIssue(
                ValidationSeverity.ERROR,
                ValidationCategory.ORPHANED_FOREIGN_KEY,
                f"Foreign key references non-existent table '{fk.references_table}'",
                fk.table,
                fk.column,
                details,
            )

        if referenced.get_column(fk.references_column) is None:
            return ValidationIssue(
                ValidationSeverity.ERROR,
                ValidationCategory.INVALID_FOREIGN_KEY,
                f"Foreign key references non-existent column '{fk.references_column}' "
                f"in table '{fk.references_table}'",
                fk.table,
                fk.column,
                details,
            )

        return None

    def _no_indexes(self, table: Table) -> ValidationIssue:
        return ValidationIssue(
            ValidationSeverity.INFO,
            ValidationCategory.NO_INDEXES,
            f"Table '{table.name}' has no indexes",
            table.name,
            details={"recommendation": "Consider adding indexes on frequently queried columns"},
        )

    def _nullable_foreign_key(self, fk: ForeignKey) -> ValidationIssue:
        return ValidationIssue(
            ValidationSeverity.WARNING,
            ValidationCategory.NULLABLE_FOREIGN_KEY,
            f"Nullable foreign key column '{fk.column}' should have ON DELETE SET NULL",
            fk.table,
            fk.column,
            {
                "current_on_delete": fk.on_delete.value if fk.on_delete else None,
                "recommendation": ReferentialAction.SET_NULL.value,
            },
        )
