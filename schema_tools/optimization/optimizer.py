"""
Optimization Service

Inspects a single schema snapshot and recommends structural improvements:
missing primary keys, foreign key columns without an index, nullable foreign
keys and indexes made redundant by a longer index with the same leading columns.
Every recommendation carries an ICE score computed for the schema's environment.
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger

from ..models import Index, Schema, Table
from ..scoring import (
    ExecutionPlan,
    ICECalculator,
    ICEScore,
    MissingIndexContext,
    MissingPrimaryKeyContext,
    NullableForeignKeyContext,
    Priority,
)

# A referenced table counts as frequently joined from this many inbound foreign keys.
FREQUENT_JOIN_THRESHOLD = 2


class OptimizationType(Enum):
    MISSING_INDEX = "missing_index"
    MISSING_PRIMARY_KEY = "missing_primary_key"
    NULLABLE_FOREIGN_KEY = "nullable_foreign_key"
    REDUNDANT_INDEX = "redundant_index"


@dataclass(frozen=True)
class Optimization:
    """
    One recommendation for a table or column.

    When an ICE score is attached, the priority must be the score's priority.
    """

    type: OptimizationType
    table: str
    reason: str
    suggestion: str
    priority: Priority
    column: str | None = None
    ice_score: ICEScore | None = None

    def __post_init__(self) -> None:
        for attr in ("table", "reason", "suggestion"):
            value = getattr(self, attr)
            if not value or not value.strip():
                raise ValueError(f"Optimization {attr} cannot be empty")
            object.__setattr__(self, attr, value.strip())

        object.__setattr__(self, "type", OptimizationType(self.type))
        object.__setattr__(self, "priority", Priority(self.priority))
        object.__setattr__(self, "column", (self.column or "").strip() or None)

        if self.ice_score is not None and self.priority is not self.ice_score.priority:
            raise ValueError(
                f"Priority '{self.priority.value}' does not match ICEScore priority "
                f"'{self.ice_score.priority.value}'. Use ICEScore.priority or omit priority."
            )

    @classmethod
    def with_ice_score(
        cls,
        optimization_type: OptimizationType,
        table: str,
        reason: str,
        suggestion: str,
        ice_score: ICEScore,
        column: str | None = None,
    ) -> "Optimization":
        return cls(optimization_type, table, reason, suggestion, ice_score.priority, column, ice_score)

    def is_high_priority(self) -> bool:
        return self.priority is Priority.HIGH

    def affects_column(self, column_name: str) -> bool:
        return self.column == column_name

    def is_index_optimization(self) -> bool:
        return self.type in (OptimizationType.MISSING_INDEX, OptimizationType.REDUNDANT_INDEX)

    def has_ice_score(self) -> bool:
        return self.ice_score is not None

    def get_ice_combined_score(self) -> float | None:
        return self.ice_score.combined if self.ice_score else None

    def get_description(self) -> str:
        location = f"{self.table}.{self.column}" if self.column else self.table
        description = f"[{self.priority.value.upper()}] {self.type.value} on {location}: {self.reason}"
        if self.ice_score:
            return f"{description}\n{self.ice_score.get_description()}"
        return description

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "table": self.table,
            "column": self.column,
            "reason": self.reason,
            "suggestion": self.suggestion,
            "priority": self.priority.value,
            "ice_score": self.ice_score.to_dict() if self.ice_score else None,
        }


class OptimizationService:
    """Single-schema recommendations scored with ICE."""

    def __init__(self, calculator: ICECalculator | None = None) -> None:
        self.calculator = calculator or ICECalculator()

    def analyze_schema(self, schema: Schema) -> list[Optimization]:
        """
        Run every check against a schema.

        Args:
            schema: Snapshot to inspect

        Returns:
            Recommendations in check order: primary keys, indexes, nullable
            foreign keys, redundant indexes
        """
        optimizations: list[Optimization] = []
        optimizations.extend(self.check_missing_primary_keys(schema))
        optimizations.extend(self.check_missing_indexes(schema))
        optimizations.extend(self.check_nullable_foreign_keys(schema))
        for table in schema.get_base_tables():
            optimizations.extend(self.check_redundant_indexes(table))

        logger.info(
            f"Found {len(optimizations)} optimization(s) in '{schema.name}' "
            f"({schema.environment.value})"
        )
        return optimizations

    def check_missing_primary_keys(self, schema: Schema) -> list[Optimization]:
        """Base tables without a primary key; views are skipped."""
        optimizations = []
        for table in schema.get_base_tables():
            if table.has_primary_key():
                continue
            ice_score = self.calculator.calculate_for_missing_primary_key(
                MissingPrimaryKeyContext(table, schema, schema.environment)
            )
            optimizations.append(
                Optimization.with_ice_score(
                    OptimizationType.MISSING_PRIMARY_KEY,
                    table.name,
                    "Table without primary key may cause replication and uniqueness issues",
                    ExecutionPlan.for_add_primary_key(table.name).sql,
                    ice_score,
                )
            )
        return optimizations

    def check_missing_indexes(self, schema: Schema) -> list[Optimization]:
        """Foreign key columns not covered by any index."""
        optimizations = []
        for table in schema.tables:
            for column in table.get_foreign_key_columns():
                if table.has_index_on_column(column):
                    continue
                context = MissingIndexContext(
                    table_name=table.name,
                    column_name=column,
                    is_frequently_joined=self.is_frequently_joined(schema, table, column),
                    schema=schema,
                    environment=schema.environment,
                )
                optimizations.append(
                    Optimization.with_ice_score(
                        OptimizationType.MISSING_INDEX,
                        table.name,
                        f"Foreign key column '{column}' without index may cause slow joins",
                        ExecutionPlan.for_create_index(table.name, column).sql,
                        self.calculator.calculate_for_missing_foreign_key_index(context),
                        column,
                    )
                )
        return optimizations

    def check_nullable_foreign_keys(self, schema: Schema) -> list[Optimization]:
        """One low-priority review per nullable foreign key column."""
        optimizations = []
        for table in schema.tables:
            for column_name in table.get_foreign_key_columns():
                column = table.get_column(column_name)
                if column is None or not column.is_nullable:
                    continue
                ice_score = self.calculator.calculate_for_nullable_foreign_key(
                    NullableForeignKeyContext(table.name, column_name, schema.environment)
                )
                optimizations.append(
                    Optimization.with_ice_score(
                        OptimizationType.NULLABLE_FOREIGN_KEY,
                        table.name,
                        f"Foreign key column '{column_name}' is nullable - "
                        "consider if relationship is truly optional",
                        ExecutionPlan.for_nullable_foreign_key_review(table.name, column_name).sql,
                        ice_score,
                        column_name,
                    )
                )
        return optimizations

    def check_redundant_indexes(self, table: Table) -> list[Optimization]:
        """
        Indexes whose columns are a strict prefix of another index on the table.

        Unique indexes are never redundant: they enforce a constraint the longer
        index does not.
        """
        optimizations = []
        for index in table.indexes:
            if index.is_unique or index.is_primary_key:
                continue
            covering = self._find_covering_index(index, table.indexes)
            if covering is None:
                continue
            optimizations.append(
                Optimization.with_ice_score(
                    OptimizationType.REDUNDANT_INDEX,
                    table.name,
                    f"Index {index.name} is redundant - covered by {covering.name}",
                    f"DROP INDEX {index.name}",
                    ICEScore.low(),
                )
            )
        return optimizations

    def is_frequently_joined(self, schema: Schema, table: Table, column: str) -> bool:
        """Whether the table referenced through ``column`` is a join hub."""
        referenced = {fk.references_table for fk in table.foreign_keys if fk.column == column}
        inbound = Counter(fk.references_table for t in schema.tables for fk in t.foreign_keys)
        return any(inbound[name] >= FREQUENT_JOIN_THRESHOLD for name in referenced)

    def filter_by_priority(self, optimizations: list[Optimization], priority: Priority | str) -> list[Optimization]:
        """Optimizations at exactly the given priority."""
        wanted = Priority(priority)
        return [opt for opt in optimizations if opt.priority is wanted]

    def filter_by_type(
        self, optimizations: list[Optimization], optimization_type: OptimizationType | str
    ) -> list[Optimization]:
        """Optimizations of one type; accepts the enum or its value."""
        wanted = OptimizationType(optimization_type)
        return [opt for opt in optimizations if opt.type is wanted]

    def filter_by_table(self, optimizations: list[Optimization], table_name: str) -> list[Optimization]:
        """Optimizations that target the given table."""
        return [opt for opt in optimizations if opt.table == table_name]

    def sort_by_priority(self, optimizations: list[Optimization]) -> list[Optimization]:
        """High first; within a priority the stronger ICE score comes first."""
        return sorted(
            optimizations,
            key=lambda opt: (opt.priority.rank, -(opt.get_ice_combined_score() or 0.0)),
        )

    def get_summary(self, optimizations: list[Optimization]) -> dict[str, Any]:
        """Totals by priority and by type."""
        by_priority = Counter(opt.priority for opt in optimizations)
        by_type = Counter(opt.type.value for opt in optimizations)
        return {
            "total": len(optimizations),
            "by_priority": {priority.value: by_priority[priority] for priority in Priority},
            "by_type": dict(by_type),
        }

    def _find_covering_index(self, index: Index, indexes: tuple[Index, ...]) -> Index | None:
        return next(
            (other for other in indexes if other is not index and index.is_prefix_of(other)),
            None,
        )
