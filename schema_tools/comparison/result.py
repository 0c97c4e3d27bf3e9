"""
Schema Comparison Result

Aggregates the differences of one comparison: sorted by ICE score, summarized by
severity and type, and rendered as a text summary or a migration plan.
"""

from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

from ..models import DifferenceType, Environment, Severity, parse_environment
from .difference import SchemaDifference


@dataclass(frozen=True)
class ComparisonMetadata:
    source_environment: Environment
    target_environment: Environment
    source_table_count: int
    target_table_count: int
    compared_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        object.__setattr__(self, "source_environment", parse_environment(self.source_environment))
        object.__setattr__(self, "target_environment", parse_environment(self.target_environment))
        if self.source_table_count < 0 or self.target_table_count < 0:
            raise ValueError("SchemaComparisonResult table counts cannot be negative")

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_environment": self.source_environment.value,
            "target_environment": self.target_environment.value,
            "source_table_count": self.source_table_count,
            "target_table_count": self.target_table_count,
            "compared_at": self.compared_at.isoformat(),
        }


@dataclass(frozen=True)
class ComparisonSummary:
    """Counts over the differences of one comparison."""

    total_differences: int = 0
    critical_count: int = 0
    high_count: int = 0
    medium_count: int = 0
    low_count: int = 0
    structural_differences: int = 0
    constraint_differences: int = 0
    missing_tables: int = 0
    missing_columns: int = 0
    type_mismatches: int = 0
    missing_indexes: int = 0
    missing_foreign_keys: int = 0

    @classmethod
    def from_differences(cls, differences: tuple[SchemaDifference, ...]) -> "ComparisonSummary":
        by_severity = Counter(diff.severity for diff in differences)
        by_type = Counter(diff.type for diff in differences)
        return cls(
            total_differences=len(differences),
            critical_count=by_severity[Severity.CRITICAL],
            high_count=by_severity[Severity.HIGH],
            medium_count=by_severity[Severity.MEDIUM],
            low_count=by_severity[Severity.LOW],
            structural_differences=sum(1 for diff in differences if diff.is_structural_difference()),
            constraint_differences=sum(1 for diff in differences if diff.is_constraint_difference()),
            missing_tables=by_type[DifferenceType.MISSING_TABLE],
            missing_columns=by_type[DifferenceType.MISSING_COLUMN],
            type_mismatches=by_type[DifferenceType.TYPE_MISMATCH],
            missing_indexes=by_type[DifferenceType.MISSING_INDEX],
            missing_foreign_keys=by_type[DifferenceType.MISSING_FOREIGN_KEY],
        )

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class SchemaComparisonResult:
    """
    Immutable outcome of one schema comparison.

    Differences are stored sorted by combined ICE score, highest first. The sort
    is stable, so equally scored differences keep the order they were found in.
    """

    metadata: ComparisonMetadata
    differences: tuple[SchemaDifference, ...]
    summary: ComparisonSummary = field(init=False)

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.differences, key=lambda diff: diff.ice_score.combined, reverse=True))
        object.__setattr__(self, "differences", ordered)
        object.__setattr__(self, "summary", ComparisonSummary.from_differences(ordered))

    @classmethod
    def create(
        cls,
        source_environment: Environment,
        target_environment: Environment,
        source_table_count: int,
        target_table_count: int,
        differences: list[SchemaDifference],
    ) -> "SchemaComparisonResult":
        metadata = ComparisonMetadata(
            source_environment, target_environment, source_table_count, target_table_count
        )
        return cls(metadata, tuple(differences))

    def is_identical(self) -> bool:
        return not self.differences

    def has_critical_differences(self) -> bool:
        return self.summary.critical_count > 0

    def has_high_severity_differences(self) -> bool:
        """Critical differences count as high severity too."""
        return self.summary.high_count > 0 or self.summary.critical_count > 0

    def get_critical_differences(self) -> list[SchemaDifference]:
        return [diff for diff in self.differences if diff.is_critical()]

    def get_differences_by_severity(self, severity: Severity | str) -> list[SchemaDifference]:
        """Differences at exactly the given severity, in score order."""
        wanted = Severity(severity)
        return [diff for diff in self.differences if diff.severity is wanted]

    def get_differences_by_type(self, difference_type: DifferenceType | str) -> list[SchemaDifference]:
        """Differences of one type; accepts the enum or its value."""
        wanted = DifferenceType(difference_type)
        return [diff for diff in self.differences if diff.type is wanted]

    def get_structural_differences(self) -> list[SchemaDifference]:
        return [diff for diff in self.differences if diff.is_structural_difference()]

    def get_constraint_differences(self) -> list[SchemaDifference]:
        return [diff for diff in self.differences if diff.is_constraint_difference()]

    def get_differences_for_table(self, table_name: str) -> list[SchemaDifference]:
        """Differences located in a table; empty for an unknown table."""
        return [diff for diff in self.differences if diff.affects_table(table_name)]

    def get_formatted_summary(self) -> str:
        """Human readable overview of the comparison."""
        meta = self.metadata
        summary = self.summary
        lines = [
            f"Schema Comparison: {meta.source_environment.value} → {meta.target_environment.value}",
            f"Compared at: {meta.compared_at.isoformat()}",
            f"Source tables: {meta.source_table_count}, Target tables: {meta.target_table_count}",
            "",
        ]

        if self.is_identical():
            lines.append("Schemas are identical - no differences found!")
            return "\n".join(lines)

        lines.extend(
            [
                f"Total differences: {summary.total_differences}",
                "",
                "By Severity:",
                f"  Critical: {summary.critical_count}",
                f"  High: {summary.high_count}",
                f"  Medium: {summary.medium_count}",
                f"  Low: {summary.low_count}",
                "",
                "By Type:",
                f"  Missing tables: {summary.missing_tables}",
                f"  Missing columns: {summary.missing_columns}",
                f"  Type mismatches: {summary.type_mismatches}",
                f"  Missing indexes: {summary.missing_indexes}",
                f"  Missing foreign keys: {summary.missing_foreign_keys}",
            ]
        )
        return "\n".join(lines)

    def get_migration_plan(self) -> str:
        """
        Migration script grouped by severity, most severe first.

        Each statement is preceded by a SQL comment holding the full description
        of the difference it resolves.
        """
        if self.is_identical():
            return "-- No migration needed - schemas are identical"

        meta = self.metadata
        lines = [
            "-- Schema Migration Plan",
            f"-- From: {meta.source_environment.value}",
            f"-- To: {meta.target_environment.value}",
            f"-- Generated: {meta.compared_at.isoformat()}",
            "",
            "-- CRITICAL AND HIGH PRIORITY CHANGES",
            "-- Review carefully before applying!",
            "",
        ]

        for severity in Severity:
            group = self.get_differences_by_severity(severity)
            if not group:
                continue
            lines.append(f"-- === {severity.value.upper()} ===")
            for diff in group:
                lines.append(f"-- {diff.get_full_description()}")
                lines.append(diff.get_migration_sql())
                lines.append("")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict(),
            "summary": self.summary.to_dict(),
            "differences": [diff.to_dict() for diff in self.differences],
        }
