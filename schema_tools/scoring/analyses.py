"""
ICE dimension analyses

Each dimension of an ICE score is produced by an analysis object holding a set
of named factors (each 0-10) and a human-readable reasoning. The dimension
score is the mean of the supplied factors, rounded half-up to one decimal.

- InsightAnalysis: semantic understanding of the issue
- ContextAnalysis: environmental criticality and migration risk
- ExecutionPlan: the SQL to apply and how safely it can be applied

Scenario-specific constructors encode the factor values for each kind of
issue the inspector reports.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from ..models import DifferenceType, Environment

INSIGHT_FACTORS = frozenset(
    {
        "table_importance",  # centrality of the table in the schema
        "relationship_impact",  # number/criticality of affected relationships
        "data_integrity",  # risk to data consistency
        "semantic_clarity",  # how well the issue is understood
        "pattern_recognition",  # how established the pattern is
    }
)

CONTEXT_FACTORS = frozenset(
    {
        "environment_criticality",
        "migration_risk",
        "dependency_complexity",
        "operational_impact",
    }
)

EXECUTION_FACTORS = frozenset(
    {
        "sql_precision",
        "migration_complexity",  # inverse: higher means easier to apply
        "rollback_safety",
        "testing_clarity",
        "downtime",  # inverse: higher means less downtime
    }
)

_ENVIRONMENT_CRITICALITY = {
    Environment.PRODUCTION: 10,
    Environment.STAGING: 7,
    Environment.DEVELOPMENT: 4,
}

_OPERATIONAL_IMPACT = {
    Environment.PRODUCTION: 9,
    Environment.STAGING: 6,
    Environment.DEVELOPMENT: 3,
}


def round_half_up(value: float) -> float:
    """Round to one decimal, halves away from zero for positive values."""
    return math.floor(value * 10 + 0.5) / 10


def score_factors(factors: Mapping[str, float], allowed: frozenset[str], label: str) -> float:
    """
    Average a factor set into a 0-10 dimension score.

    Args:
        factors: Factor name to value (0-10)
        allowed: Factor names accepted for this dimension
        label: Dimension name used in error messages

    Returns:
        Mean of the factors rounded to one decimal

    Raises:
        ValueError: On an empty set, unknown factor or out-of-range value
    """
    if not factors:
        raise ValueError(f"{label} must have at least one factor")

    for name, value in factors.items():
        if name not in allowed:
            raise ValueError(f"Unknown {label} factor: {name}")
        if not math.isfinite(value) or not 0 <= value <= 10:
            raise ValueError(f"{label} factor must be 0-10, got {name}={value}")

    return round_half_up(sum(factors.values()) / len(factors))


def _freeze_factors(factors: Mapping[str, float]) -> Mapping[str, float]:
    return MappingProxyType(dict(factors))


def _require_reasoning(reasoning: str, label: str) -> str:
    if not reasoning or not reasoning.strip():
        raise ValueError(f"{label} reasoning cannot be empty")
    return reasoning.strip()


@dataclass(frozen=True)
class InsightAnalysis:
    """The "I" of ICE: depth of understanding of the issue."""

    factors: Mapping[str, float] = field(hash=False)
    reasoning: str
    score: float = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "factors", _freeze_factors(self.factors))
        object.__setattr__(self, "reasoning", _require_reasoning(self.reasoning, "InsightAnalysis"))
        object.__setattr__(
            self, "score", score_factors(self.factors, INSIGHT_FACTORS, "InsightAnalysis")
        )

    @classmethod
    def for_missing_primary_key(cls, table_name: str, has_relationships: bool) -> "InsightAnalysis":
        """A table without identity; worse when other tables reference it."""
        return cls(
            {
                "table_importance": 9 if has_relationships else 7,
                "data_integrity": 9,
                "semantic_clarity": 10,
                "pattern_recognition": 10,
            },
            f"Table '{table_name}' lacks primary key - fundamental identity mechanism missing",
        )

    @classmethod
    def for_missing_foreign_key_index(
        cls, table_name: str, column_name: str, is_frequently_joined: bool
    ) -> "InsightAnalysis":
        return cls(
            {
                "table_importance": 8 if is_frequently_joined else 6,
                "relationship_impact": 9 if is_frequently_joined else 7,
                "semantic_clarity": 9,
                "pattern_recognition": 9,
            },
            f"Foreign key '{table_name}.{column_name}' without index will cause slow joins",
        )

    @classmethod
    def for_nullable_foreign_key(cls, table_name: str, column_name: str) -> "InsightAnalysis":
        """Nullable references are often intentional, so insight stays medium."""
        return cls(
            {
                "table_importance": 5,
                "data_integrity": 6,
                "semantic_clarity": 8,
                "pattern_recognition": 7,
            },
            f"Foreign key '{table_name}.{column_name}' is nullable - "
            "verify if relationship is truly optional",
        )

    @classmethod
    def for_schema_difference(
        cls, difference_type: DifferenceType, name: str, is_production: bool
    ) -> "InsightAnalysis":
        """
        Insight for drift between two environments.

        Args:
            difference_type: Kind of drift
            name: Table, ``table.column`` or index name the drift refers to
            is_production: Whether the target environment is production

        Returns:
            InsightAnalysis for the difference
        """
        base_importance = 9 if is_production else 6

        match difference_type:
            case DifferenceType.MISSING_TABLE:
                return cls(
                    {
                        "table_importance": base_importance,
                        "data_integrity": 8,
                        "semantic_clarity": 10,
                    },
                    f"Table '{name}' missing in target environment - "
                    "potential data loss or application errors",
                )
            case DifferenceType.MISSING_COLUMN:
                return cls(
                    {
                        "table_importance": base_importance - 1,
                        "data_integrity": 7,
                        "semantic_clarity": 9,
                    },
                    f"Column '{name}' missing in target environment - may cause query failures",
                )
            case DifferenceType.TYPE_MISMATCH:
                return cls(
                    {
                        "table_importance": base_importance - 2,
                        "data_integrity": 6,
                        "semantic_clarity": 8,
                    },
                    f"Type mismatch for '{name}' - may cause data conversion issues",
                )
            case DifferenceType.MISSING_INDEX:
                return cls(
                    {"table_importance": 7, "relationship_impact": 7, "semantic_clarity": 9},
                    f"Index '{name}' missing in target environment",
                )
            case DifferenceType.MISSING_FOREIGN_KEY:
                return cls(
                    {"table_importance": 7, "data_integrity": 8, "semantic_clarity": 9},
                    f"Foreign key '{name}' missing in target environment",
                )
            case DifferenceType.EXTRA_TABLE:
                return cls(
                    {"table_importance": 5},
                    f"Table '{name}' exists only in target environment",
                )
            case DifferenceType.EXTRA_COLUMN:
                return cls(
                    {"table_importance": 4},
                    f"Column '{name}' exists only in target environment",
                )

    def get_description(self) -> str:
        return f"Insight: {self.score:.1f}/10 - {self.reasoning}"

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "factors": dict(self.factors), "reasoning": self.reasoning}


class MigrationDirection(Enum):
    """Direction of a schema migration between environments."""

    DEV_TO_STAGING = "dev_to_staging"
    STAGING_TO_PRODUCTION = "staging_to_production"
    DEV_TO_PRODUCTION = "dev_to_production"
    REVERSE = "reverse"


_MIGRATION_BASE_RISK = {
    MigrationDirection.DEV_TO_STAGING: 5,
    MigrationDirection.STAGING_TO_PRODUCTION: 9,
    MigrationDirection.DEV_TO_PRODUCTION: 10,  # skipping staging
    MigrationDirection.REVERSE: 3,
}


@dataclass(frozen=True)
class ContextAnalysis:
    """The "C" of ICE: criticality of the environment the issue lives in."""

    factors: Mapping[str, float] = field(hash=False)
    reasoning: str
    environment: Environment | None = None
    score: float = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "factors", _freeze_factors(self.factors))
        object.__setattr__(self, "reasoning", _require_reasoning(self.reasoning, "ContextAnalysis"))
        object.__setattr__(
            self, "score", score_factors(self.factors, CONTEXT_FACTORS, "ContextAnalysis")
        )

    @staticmethod
    def environment_criticality(environment: Environment) -> int:
        """Production 10, staging 7, development 4."""
        return _ENVIRONMENT_CRITICALITY[environment]

    @staticmethod
    def migration_direction(source: Environment, target: Environment) -> MigrationDirection:
        if source is Environment.DEVELOPMENT and target is Environment.STAGING:
            return MigrationDirection.DEV_TO_STAGING
        if source is Environment.STAGING and target is Environment.PRODUCTION:
            return MigrationDirection.STAGING_TO_PRODUCTION
        if source is Environment.DEVELOPMENT and target is Environment.PRODUCTION:
            return MigrationDirection.DEV_TO_PRODUCTION
        return MigrationDirection.REVERSE

    @staticmethod
    def migration_risk(direction: MigrationDirection, differences_count: int) -> float:
        """Base risk of the direction plus up to 2 points for the drift depth, capped at 10."""
        multiplier = min(differences_count / 5, 1)
        adjusted = _MIGRATION_BASE_RISK[direction] + multiplier * 2
        return min(round_half_up(adjusted), 10)

    @classmethod
    def for_environment(cls, environment: Environment, has_dependencies: bool) -> "ContextAnalysis":
        """Single-environment context, used for informational findings."""
        suffix = " with dependencies" if has_dependencies else ""
        return cls(
            {
                "environment_criticality": cls.environment_criticality(environment),
                "dependency_complexity": 7 if has_dependencies else 4,
                "operational_impact": _OPERATIONAL_IMPACT[environment],
            },
            f"Optimization in {environment.value} environment{suffix}",
            environment,
        )

    @classmethod
    def for_schema_migration(
        cls, source: Environment, target: Environment, differences_count: int = 1
    ) -> "ContextAnalysis":
        """
        Context for drift found while comparing two environments.

        Args:
            source: Environment the schema is expected to come from
            target: Environment being brought in line
            differences_count: Depth of the drift behind this finding

        Returns:
            ContextAnalysis weighted by target criticality and migration direction
        """
        if differences_count < 0:
            raise ValueError(f"differences_count cannot be negative, got {differences_count}")

        direction = cls.migration_direction(source, target)
        return cls(
            {
                "environment_criticality": cls.environment_criticality(target),
                "migration_risk": cls.migration_risk(direction, differences_count),
                "dependency_complexity": min(differences_count, 10),
                "operational_impact": _OPERATIONAL_IMPACT[target],
            },
            f"Schema migration from {source.value} to {target.value} "
            f"with {differences_count} difference(s)",
            target,
        )

    @classmethod
    def for_missing_primary_key(
        cls, environment: Environment, is_referenced_by_others: bool
    ) -> "ContextAnalysis":
        suffix = " (table is referenced by others)" if is_referenced_by_others else ""
        return cls(
            {
                "environment_criticality": cls.environment_criticality(environment),
                "dependency_complexity": 9 if is_referenced_by_others else 5,
                "operational_impact": 8 if environment.is_production else 5,
            },
            f"Missing primary key in {environment.value}{suffix}",
            environment,
        )

    @classmethod
    def for_missing_foreign_key_index(
        cls, environment: Environment, is_frequently_queried: bool, table_count: int
    ) -> "ContextAnalysis":
        """Larger schemas amplify the cost of unindexed joins."""
        suffix = " (frequently queried)" if is_frequently_queried else ""
        return cls(
            {
                "environment_criticality": cls.environment_criticality(environment),
                "operational_impact": 8 if is_frequently_queried else 5,
                "dependency_complexity": min(table_count, 10),
            },
            f"Missing index in {environment.value}{suffix}",
            environment,
        )

    @classmethod
    def for_nullable_foreign_key(cls, environment: Environment) -> "ContextAnalysis":
        return cls(
            {
                "environment_criticality": cls.environment_criticality(environment),
                "operational_impact": 4,
            },
            f"Nullable foreign key in {environment.value} - likely intentional design",
            environment,
        )

    def get_description(self) -> str:
        return f"Context: {self.score:.1f}/10 - {self.reasoning}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "factors": dict(self.factors),
            "reasoning": self.reasoning,
            "environment": self.environment.value if self.environment else None,
        }


@dataclass(frozen=True)
class ExecutionPlan:
    """The "E" of ICE: the SQL that resolves the issue and how safe it is."""

    sql: str
    factors: Mapping[str, float] = field(hash=False)
    reasoning: str
    score: float = field(init=False)

    def __post_init__(self) -> None:
        if not self.sql or not self.sql.strip():
            raise ValueError("ExecutionPlan SQL cannot be empty")
        object.__setattr__(self, "sql", self.sql.strip())
        object.__setattr__(self, "factors", _freeze_factors(self.factors))
        object.__setattr__(self, "reasoning", _require_reasoning(self.reasoning, "ExecutionPlan"))
        object.__setattr__(
            self, "score", score_factors(self.factors, EXECUTION_FACTORS, "ExecutionPlan")
        )

    @classmethod
    def for_add_primary_key(cls, table_name: str) -> "ExecutionPlan":
        """Standard DDL; duplicates must be ruled out before applying it."""
        return cls(
            f"ALTER TABLE {table_name} ADD COLUMN id INTEGER PRIMARY KEY",
            {
                "sql_precision": 9,
                "migration_complexity": 6,
                "rollback_safety": 7,
                "testing_clarity": 9,
                "downtime": 8,
            },
            f"Add primary key to {table_name} - standard DDL operation",
        )

    @classmethod
    def for_create_index(
        cls, table_name: str, column_names: str, index_name: str | None = None
    ) -> "ExecutionPlan":
        """
        CREATE INDEX plan.

        Args:
            table_name: Table to index
            column_names: Comma separated column list
            index_name: Explicit index name; derived from table and columns when omitted

        Returns:
            ExecutionPlan with near-maximal confidence
        """
        if index_name is None:
            suffix = "_".join(col.strip() for col in column_names.split(","))
            index_name = f"idx_{table_name}_{suffix}"
        return cls._index_plan(
            f"CREATE INDEX {index_name} ON {table_name}({column_names})",
            f"Create index on {table_name}({column_names}) - safe, reversible operation",
        )

    @classmethod
    def _index_plan(cls, sql: str, reasoning: str) -> "ExecutionPlan":
        return cls(
            sql,
            {
                "sql_precision": 10,
                "migration_complexity": 9,
                "rollback_safety": 10,
                "testing_clarity": 9,
                "downtime": 9,
            },
            reasoning,
        )

    @classmethod
    def for_nullable_foreign_key_review(cls, table_name: str, column_name: str) -> "ExecutionPlan":
        """A business review, not an automatic fix."""
        sql = (
            f"-- Review: Should {table_name}.{column_name} be NOT NULL?\n"
            f"-- If yes: ALTER TABLE {table_name} ALTER COLUMN {column_name} SET NOT NULL"
        )
        return cls(
            sql,
            {
                "sql_precision": 5,
                "migration_complexity": 4,
                "rollback_safety": 6,
                "testing_clarity": 4,
            },
            f"Review business logic for {table_name}.{column_name} - may require discussion",
        )

    @classmethod
    def for_schema_difference(
        cls, difference_type: DifferenceType, name: str, ddl: str
    ) -> "ExecutionPlan":
        """
        Plan for aligning the target schema with the source.

        Args:
            difference_type: Kind of drift
            name: Object the DDL applies to
            ddl: Statement (or review comment) that resolves the drift

        Returns:
            ExecutionPlan scored by how risky the DDL is
        """
        match difference_type:
            case DifferenceType.MISSING_TABLE:
                return cls(
                    ddl,
                    {
                        "sql_precision": 8,
                        "migration_complexity": 5,
                        "rollback_safety": 6,
                        "testing_clarity": 9,
                        "downtime": 7,
                    },
                    f"Create missing table {name} - requires testing of dependent code",
                )
            case DifferenceType.MISSING_COLUMN:
                return cls(
                    ddl,
                    {
                        "sql_precision": 9,
                        "migration_complexity": 7,
                        "rollback_safety": 8,
                        "testing_clarity": 9,
                        "downtime": 8,
                    },
                    f"Add missing column {name} - verify dependent queries",
                )
            case DifferenceType.TYPE_MISMATCH:
                return cls(
                    ddl,
                    {
                        "sql_precision": 7,
                        "migration_complexity": 4,
                        "rollback_safety": 5,
                        "testing_clarity": 7,
                        "downtime": 6,
                    },
                    f"Fix type mismatch for {name} - requires data validation",
                )
            case DifferenceType.MISSING_INDEX:
                return cls._index_plan(ddl, f"Create missing index {name} - safe, reversible operation")
            case DifferenceType.MISSING_FOREIGN_KEY:
                return cls(
                    ddl,
                    {"sql_precision": 7, "rollback_safety": 8},
                    f"Add foreign key constraint {name}",
                )
            case DifferenceType.EXTRA_TABLE | DifferenceType.EXTRA_COLUMN:
                return cls(ddl, {"sql_precision": 5}, f"Review required for {name}")

    def is_high_risk(self) -> bool:
        return self.score < 5.0

    def is_safe(self) -> bool:
        return self.score >= 7.0

    def get_description(self) -> str:
        return f"Execution: {self.score:.1f}/10 - {self.reasoning}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "sql": self.sql,
            "factors": dict(self.factors),
            "reasoning": self.reasoning,
        }
