"""
Tests for ICE scoring: score combination, dimension analyses and the calculator.
"""

import pytest

from schema_tools.models import Column, DifferenceType, Environment, Schema, Table
from schema_tools.scoring import (
    ContextAnalysis,
    ExecutionPlan,
    ICECalculator,
    ICEScore,
    InsightAnalysis,
    MigrationDirection,
    MissingIndexContext,
    MissingPrimaryKeyContext,
    NullableForeignKeyContext,
    Priority,
    SchemaDifferenceContext,
    round_half_up,
)


@pytest.fixture
def calculator() -> ICECalculator:
    return ICECalculator()


class TestICEScore:
    """Test score combination and priority buckets."""

    def test_presets(self) -> None:
        assert ICEScore.high().combined == pytest.approx(7.29)
        assert ICEScore.high().priority is Priority.HIGH
        assert ICEScore.medium().combined == pytest.approx(3.43)
        assert ICEScore.medium().priority is Priority.MEDIUM
        assert ICEScore.low().combined == pytest.approx(1.25)
        assert ICEScore.low().priority is Priority.LOW

    def test_threshold_boundaries(self) -> None:
        assert ICEScore(10, 6, 10).priority is Priority.HIGH
        assert ICEScore(10, 3, 10).priority is Priority.MEDIUM
        assert ICEScore(10, 2.9, 10).priority is Priority.LOW

    def test_priority_is_monotonic(self) -> None:
        ranks = [ICEScore(value / 2, 10, 10).priority.rank for value in range(21)]

        assert ranks == sorted(ranks, reverse=True)

    def test_order_independent(self) -> None:
        assert ICEScore(3, 8, 5).combined == pytest.approx(ICEScore(5, 3, 8).combined)

    @pytest.mark.parametrize("values", [(11, 5, 5), (5, -1, 5), (5, 5, float("nan"))])
    def test_out_of_range_rejected(self, values: tuple[float, float, float]) -> None:
        with pytest.raises(ValueError):
            ICEScore(*values)

    def test_non_numeric_rejected(self) -> None:
        with pytest.raises(TypeError):
            ICEScore("5", 5, 5)  # type: ignore[arg-type]

    def test_comparison_helpers(self) -> None:
        assert ICEScore.high().is_stronger_than(ICEScore.low())
        assert ICEScore.low().compare_to(ICEScore.high()) < 0
        assert ICEScore.high().get_description() == "ICE Score: 7.29 (I:9 C:9 E:9) - Priority: HIGH"


class TestDimensionAnalyses:
    """Test factor validation and averaging."""

    def test_round_half_up(self) -> None:
        assert round_half_up(0.25) == 0.3
        assert round_half_up(7.75) == 7.8
        assert round_half_up(7.0) == 7.0

    def test_score_is_rounded_mean(self) -> None:
        insight = InsightAnalysis({"table_importance": 7, "data_integrity": 8}, "Average of two")

        assert insight.score == 7.5

    def test_empty_factors_rejected(self) -> None:
        with pytest.raises(ValueError, match="at least one factor"):
            InsightAnalysis({}, "Nothing to average")

    def test_unknown_factor_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown"):
            ContextAnalysis({"table_importance": 5}, "Insight factor in context")

    def test_factor_out_of_range_rejected(self) -> None:
        with pytest.raises(ValueError):
            ExecutionPlan("SELECT 1", {"sql_precision": 12}, "Too precise")

    def test_empty_reasoning_rejected(self) -> None:
        with pytest.raises(ValueError, match="reasoning"):
            InsightAnalysis({"semantic_clarity": 5}, "  ")

    def test_empty_sql_rejected(self) -> None:
        with pytest.raises(ValueError, match="SQL"):
            ExecutionPlan("", {"sql_precision": 5}, "No statement")

    def test_factors_are_read_only(self) -> None:
        factors = {"semantic_clarity": 8.0}
        insight = InsightAnalysis(factors, "Insight")
        factors["semantic_clarity"] = 1.0

        assert insight.factors == {"semantic_clarity": 8.0}
        with pytest.raises(TypeError):
            insight.factors["semantic_clarity"] = 2.0  # type: ignore[index]

    def test_analyses_are_hashable(self) -> None:
        first = ExecutionPlan("-- review", {"sql_precision": 5}, "Execution")
        second = ExecutionPlan("-- review", {"sql_precision": 5}, "Execution")

        assert first == second
        assert hash(first) == hash(second)
        assert len({ContextAnalysis.for_nullable_foreign_key(Environment.STAGING), first}) == 2


class TestContextAnalysis:
    """Test environment and migration context."""

    @pytest.mark.parametrize(
        "environment, criticality",
        [(Environment.PRODUCTION, 10), (Environment.STAGING, 7), (Environment.DEVELOPMENT, 4)],
    )
    def test_environment_criticality(self, environment: Environment, criticality: int) -> None:
        assert ContextAnalysis.environment_criticality(environment) == criticality

    @pytest.mark.parametrize(
        "source, target, direction",
        [
            (Environment.DEVELOPMENT, Environment.STAGING, MigrationDirection.DEV_TO_STAGING),
            (Environment.STAGING, Environment.PRODUCTION, MigrationDirection.STAGING_TO_PRODUCTION),
            (Environment.DEVELOPMENT, Environment.PRODUCTION, MigrationDirection.DEV_TO_PRODUCTION),
            (Environment.PRODUCTION, Environment.DEVELOPMENT, MigrationDirection.REVERSE),
        ],
    )
    def test_migration_direction(
        self, source: Environment, target: Environment, direction: MigrationDirection
    ) -> None:
        assert ContextAnalysis.migration_direction(source, target) is direction

    def test_migration_risk(self) -> None:
        assert ContextAnalysis.migration_risk(MigrationDirection.DEV_TO_STAGING, 0) == 5
        assert ContextAnalysis.migration_risk(MigrationDirection.REVERSE, 5) == 5
        assert ContextAnalysis.migration_risk(MigrationDirection.STAGING_TO_PRODUCTION, 10) == 10

    def test_schema_migration_to_production(self) -> None:
        context = ContextAnalysis.for_schema_migration(Environment.DEVELOPMENT, Environment.PRODUCTION, 1)

        assert context.factors == {
            "environment_criticality": 10,
            "migration_risk": 10,
            "dependency_complexity": 1,
            "operational_impact": 9,
        }
        assert context.score == 7.5
        assert context.environment is Environment.PRODUCTION

    def test_for_environment(self) -> None:
        assert ContextAnalysis.for_environment(Environment.PRODUCTION, False).score == 7.7
        assert ContextAnalysis.for_environment(Environment.DEVELOPMENT, True).factors[
            "dependency_complexity"
        ] == 7


class TestExecutionPlan:
    """Test execution plans and their SQL."""

    def test_create_index(self) -> None:
        plan = ExecutionPlan.for_create_index("posts", "user_id")

        assert plan.sql == "CREATE INDEX idx_posts_user_id ON posts(user_id)"
        assert plan.score == 9.4
        assert plan.is_safe()

    def test_add_primary_key(self) -> None:
        plan = ExecutionPlan.for_add_primary_key("logs")

        assert plan.sql == "ALTER TABLE logs ADD COLUMN id INTEGER PRIMARY KEY"
        assert plan.score == 7.8

    def test_nullable_review_is_high_risk(self) -> None:
        plan = ExecutionPlan.for_nullable_foreign_key_review("posts", "user_id")

        assert plan.sql.startswith("-- Review: Should posts.user_id be NOT NULL?")
        assert plan.score == 4.8
        assert plan.is_high_risk()

    @pytest.mark.parametrize(
        "difference_type, score",
        [
            (DifferenceType.MISSING_TABLE, 7.0),
            (DifferenceType.MISSING_COLUMN, 8.2),
            (DifferenceType.TYPE_MISMATCH, 5.8),
            (DifferenceType.MISSING_INDEX, 9.4),
            (DifferenceType.MISSING_FOREIGN_KEY, 7.5),
            (DifferenceType.EXTRA_TABLE, 5.0),
        ],
    )
    def test_schema_difference_scores(self, difference_type: DifferenceType, score: float) -> None:
        plan = ExecutionPlan.for_schema_difference(difference_type, "users", "-- statement")

        assert plan.score == score


class TestICECalculator:
    """Test scenario scoring."""

    @pytest.fixture
    def audit_schema(self) -> Schema:
        logs = Table("logs", columns=(Column("message", "TEXT"),))
        users = Table("users", columns=(Column("id", "INTEGER", is_primary_key=True),))
        return Schema("audit", Environment.PRODUCTION, (logs, users))

    def test_missing_primary_key_in_production(self, calculator: ICECalculator, audit_schema: Schema) -> None:
        logs = audit_schema.get_table("logs")
        assert logs is not None

        score = calculator.calculate_for_missing_primary_key(
            MissingPrimaryKeyContext(logs, audit_schema, Environment.PRODUCTION)
        )

        assert (score.insight, score.context, score.execution) == (9.0, 7.7, 7.8)
        assert score.priority is Priority.MEDIUM

    def test_frequently_joined_index(self, calculator: ICECalculator, blog_schema: Schema) -> None:
        score = calculator.calculate_for_missing_foreign_key_index(
            MissingIndexContext("posts", "user_id", True, blog_schema, Environment.PRODUCTION)
        )

        assert (score.insight, score.context, score.execution) == (8.8, 7.0, 9.4)
        assert score.priority is Priority.MEDIUM

    def test_nullable_foreign_key_is_low(self, calculator: ICECalculator) -> None:
        score = calculator.calculate_for_nullable_foreign_key(
            NullableForeignKeyContext("posts", "user_id", Environment.DEVELOPMENT)
        )

        assert (score.insight, score.context, score.execution) == (6.5, 4.0, 4.8)
        assert score.priority is Priority.LOW

    @pytest.mark.parametrize(
        "difference_type, expected",
        [
            (DifferenceType.MISSING_TABLE, (9.0, 7.5, 7.0)),
            (DifferenceType.MISSING_COLUMN, (8.0, 7.5, 8.2)),
            (DifferenceType.TYPE_MISMATCH, (7.0, 7.5, 5.8)),
            (DifferenceType.EXTRA_TABLE, (5.0, 7.7, 5.0)),
            (DifferenceType.EXTRA_COLUMN, (4.0, 7.7, 5.0)),
        ],
    )
    def test_schema_difference_to_production(
        self,
        calculator: ICECalculator,
        difference_type: DifferenceType,
        expected: tuple[float, float, float],
    ) -> None:
        scored = calculator.analyze_schema_difference(
            SchemaDifferenceContext(
                difference_type=difference_type,
                name="users",
                source_environment=Environment.DEVELOPMENT,
                target_environment=Environment.PRODUCTION,
                ddl_statement="-- statement",
            )
        )

        assert (scored.ice_score.insight, scored.ice_score.context, scored.ice_score.execution) == expected
        assert scored.insight.score == expected[0]

    def test_calculate_with_components(self, calculator: ICECalculator) -> None:
        scored = calculator.calculate_with_components(
            InsightAnalysis({"semantic_clarity": 9}, "Clear"),
            ContextAnalysis({"environment_criticality": 10}, "Production"),
            ExecutionPlan("CREATE INDEX i ON t(c)", {"sql_precision": 9}, "Safe"),
        )

        assert scored.ice_score.combined == pytest.approx(8.1)
        assert scored.ice_score.is_high_priority()
        assert set(scored.to_dict()) == {"ice_score", "insight", "context", "execution"}
