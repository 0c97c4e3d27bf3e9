"""
ICE Calculator

Builds ICE scores for each kind of issue the inspector reports. The calculator
is stateless: every method derives the three analyses from the issue context
and combines them into an ICEScore.
"""

from dataclasses import dataclass
from typing import Any

from loguru import logger

from ..models import DifferenceType, Environment, Schema, Table
from .analyses import ContextAnalysis, ExecutionPlan, InsightAnalysis
from .ice_score import ICEScore

# Differences that exist only in the target are informational and scored
# against the target environment alone.
_ENVIRONMENT_CONTEXT_TYPES = frozenset({DifferenceType.EXTRA_TABLE, DifferenceType.EXTRA_COLUMN})


@dataclass(frozen=True)
class MissingPrimaryKeyContext:
    table: Table
    schema: Schema
    environment: Environment


@dataclass(frozen=True)
class MissingIndexContext:
    table_name: str
    column_name: str
    is_frequently_joined: bool
    schema: Schema
    environment: Environment


@dataclass(frozen=True)
class NullableForeignKeyContext:
    table_name: str
    column_name: str
    environment: Environment


@dataclass(frozen=True)
class SchemaDifferenceContext:
    """
    Description of one drift finding between two environments.

    Attributes:
        difference_type: Kind of drift
        name: Object the drift refers to (table, table.column or index name)
        source_environment: Environment the schema is expected to come from
        target_environment: Environment being brought in line
        ddl_statement: Statement or review comment resolving the drift
        depth: Number of differences behind the finding, feeds migration risk
        has_relationships: Whether the object takes part in foreign keys
    """

    difference_type: DifferenceType
    name: str
    source_environment: Environment
    target_environment: Environment
    ddl_statement: str
    depth: int = 1
    has_relationships: bool = False


@dataclass(frozen=True)
class ScoredAnalysis:
    """An ICEScore together with the three analyses it was built from."""

    ice_score: ICEScore
    insight: InsightAnalysis
    context: ContextAnalysis
    execution: ExecutionPlan

    def to_dict(self) -> dict[str, Any]:
        return {
            "ice_score": self.ice_score.to_dict(),
            "insight": self.insight.to_dict(),
            "context": self.context.to_dict(),
            "execution": self.execution.to_dict(),
        }


class ICECalculator:
    """Scenario-specific ICE scoring."""

    def calculate_for_missing_primary_key(self, context: MissingPrimaryKeyContext) -> ICEScore:
        """Tables without a primary key; referenced tables score higher."""
        is_referenced = context.schema.is_referenced(context.table.name)

        return self.calculate_with_components(
            InsightAnalysis.for_missing_primary_key(context.table.name, is_referenced),
            ContextAnalysis.for_missing_primary_key(context.environment, is_referenced),
            ExecutionPlan.for_add_primary_key(context.table.name),
        ).ice_score

    def calculate_for_missing_foreign_key_index(self, context: MissingIndexContext) -> ICEScore:
        """Foreign key columns without an index covering them."""
        return self.calculate_with_components(
            InsightAnalysis.for_missing_foreign_key_index(
                context.table_name, context.column_name, context.is_frequently_joined
            ),
            ContextAnalysis.for_missing_foreign_key_index(
                context.environment, context.is_frequently_joined, len(context.schema.tables)
            ),
            ExecutionPlan.for_create_index(context.table_name, context.column_name),
        ).ice_score

    def calculate_for_nullable_foreign_key(self, context: NullableForeignKeyContext) -> ICEScore:
        return self.calculate_with_components(
            InsightAnalysis.for_nullable_foreign_key(context.table_name, context.column_name),
            ContextAnalysis.for_nullable_foreign_key(context.environment),
            ExecutionPlan.for_nullable_foreign_key_review(context.table_name, context.column_name),
        ).ice_score

    def calculate_for_schema_difference(self, context: SchemaDifferenceContext) -> ICEScore:
        return self.analyze_schema_difference(context).ice_score

    def analyze_schema_difference(self, context: SchemaDifferenceContext) -> ScoredAnalysis:
        """
        Score a drift finding and keep the analyses behind the score.

        Args:
            context: The drift finding

        Returns:
            ScoredAnalysis with the ICEScore and its three analyses
        """
        insight = InsightAnalysis.for_schema_difference(
            context.difference_type,
            context.name,
            context.target_environment.is_production,
        )
        context_analysis = self._schema_comparison_context(context)
        execution = ExecutionPlan.for_schema_difference(
            context.difference_type, context.name, context.ddl_statement
        )

        scored = self.calculate_with_components(insight, context_analysis, execution)
        logger.debug(
            f"Scored {context.difference_type.value} '{context.name}': "
            f"{scored.ice_score.get_description()}"
        )
        return scored

    def calculate_with_components(
        self,
        insight: InsightAnalysis,
        context: ContextAnalysis,
        execution: ExecutionPlan,
    ) -> ScoredAnalysis:
        """Combine three ready-made analyses."""
        ice_score = ICEScore(insight.score, context.score, execution.score)
        return ScoredAnalysis(ice_score, insight, context, execution)

    def _schema_comparison_context(self, context: SchemaDifferenceContext) -> ContextAnalysis:
        if context.difference_type in _ENVIRONMENT_CONTEXT_TYPES:
            return ContextAnalysis.for_environment(
                context.target_environment, context.has_relationships
            )

        return ContextAnalysis.for_schema_migration(
            context.source_environment, context.target_environment, context.depth
        )
