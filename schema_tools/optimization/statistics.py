"""
Schema statistics

Descriptive metrics over the tables of one snapshot: counts, column type
distribution, tables needing attention and tables without any relationship.
"""

from collections import Counter
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any

from ..models import Column, Table


@dataclass(frozen=True)
class SchemaOverview:
    total_tables: int
    total_columns: int
    tables_with_primary_keys: int
    tables_without_primary_keys: int
    tables_with_foreign_keys: int
    tables_with_indexes: int
    total_indexes: int
    total_foreign_keys: int
    total_views: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class TableStatistics:
    table_name: str
    column_count: int
    has_primary_key: bool
    primary_key_columns: list[str]
    required_columns: list[str]
    foreign_key_count: int
    index_count: int
    is_view: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NullabilityReport:
    nullable_columns: list[Column]
    not_null_columns: list[Column]
    nullable_percentage: float


class SchemaStatistics:
    """Stateless metrics calculator."""

    def analyze_schema(self, tables: Sequence[Table]) -> SchemaOverview:
        """Counts across all tables."""
        return SchemaOverview(
            total_tables=len(tables),
            total_columns=sum(len(t.columns) for t in tables),
            tables_with_primary_keys=sum(1 for t in tables if t.has_primary_key()),
            tables_without_primary_keys=sum(1 for t in tables if not t.has_primary_key()),
            tables_with_foreign_keys=sum(1 for t in tables if t.has_foreign_keys()),
            tables_with_indexes=sum(1 for t in tables if t.indexes),
            total_indexes=sum(len(t.indexes) for t in tables),
            total_foreign_keys=sum(len(t.foreign_keys) for t in tables),
            total_views=sum(1 for t in tables if t.is_view()),
        )

    def analyze_table(self, table: Table) -> TableStatistics:
        """Column, index and foreign key counts of one table."""
        return TableStatistics(
            table_name=table.name,
            column_count=len(table.columns),
            has_primary_key=table.has_primary_key(),
            primary_key_columns=[col.name for col in table.get_primary_key_columns()],
            required_columns=[col.name for col in table.get_required_columns()],
            foreign_key_count=len(table.foreign_keys),
            index_count=len(table.indexes),
            is_view=table.is_view(),
        )

    def analyze_column_types(self, tables: Sequence[Table]) -> dict[str, int]:
        """Number of columns per declared type, in first-seen order."""
        return dict(Counter(col.type for table in tables for col in table.columns))

    def identify_problematic_tables(self, tables: Sequence[Table]) -> list[Table]:
        """
        Base tables lacking a primary key or with an unindexed foreign key column.

        Args:
            tables: Tables to inspect

        Returns:
            Problematic tables in input order
        """
        problematic = []
        for table in tables:
            if table.is_view():
                continue
            if not table.has_primary_key():
                problematic.append(table)
            elif any(not table.has_index_on_column(col) for col in table.get_foreign_key_columns()):
                problematic.append(table)
        return problematic

    def analyze_nullability(self, table: Table) -> NullabilityReport:
        nullable = [col for col in table.columns if col.is_nullable]
        not_null = [col for col in table.columns if not col.is_nullable]
        return NullabilityReport(nullable, not_null, len(nullable) / len(table.columns) * 100)

    def get_tables_by_complexity(self, tables: Sequence[Table]) -> list[tuple[Table, int]]:
        """Tables with columns + indexes + foreign keys, most complex first."""
        scored = [(t, len(t.columns) + len(t.indexes) + len(t.foreign_keys)) for t in tables]
        return sorted(scored, key=lambda item: item[1], reverse=True)

    def identify_orphaned_tables(self, tables: Sequence[Table]) -> list[Table]:
        """Base tables that neither reference nor are referenced by another table."""
        referenced = {fk.references_table for t in tables for fk in t.foreign_keys}
        return [
            t
            for t in tables
            if not t.has_foreign_keys() and t.name not in referenced and not t.is_view()
        ]
