"""
Tests for OptimizationService and SchemaStatistics.
"""

import pytest

from schema_tools.models import Column, Environment, ForeignKey, Index, Schema, Table
from schema_tools.optimization import (
    Optimization,
    OptimizationService,
    OptimizationType,
    SchemaStatistics,
)
from schema_tools.scoring import ICEScore, Priority


@pytest.fixture
def service() -> OptimizationService:
    return OptimizationService()


@pytest.fixture
def logs_table() -> Table:
    return Table("logs", columns=(Column("message", "TEXT"), Column("level", "TEXT")))


@pytest.fixture
def production_schema(
    users_table: Table, posts_table: Table, comments_table: Table, logs_table: Table
) -> Schema:
    return Schema(
        name="blog",
        environment=Environment.PRODUCTION,
        tables=(users_table, posts_table, comments_table, logs_table),
    )


class TestOptimization:
    """Test Optimization validation."""

    def test_priority_must_match_score(self) -> None:
        with pytest.raises(ValueError, match="does not match"):
            Optimization(
                OptimizationType.MISSING_INDEX,
                "posts",
                "Unindexed foreign key",
                "CREATE INDEX idx_posts_user_id ON posts(user_id)",
                Priority.LOW,
                "user_id",
                ICEScore.high(),
            )

    def test_empty_reason_rejected(self) -> None:
        with pytest.raises(ValueError, match="reason"):
            Optimization(OptimizationType.REDUNDANT_INDEX, "t", " ", "DROP INDEX i", Priority.LOW)

    def test_without_score(self) -> None:
        opt = Optimization(OptimizationType.REDUNDANT_INDEX, "t", "Covered by idx_t_a_b", "DROP INDEX idx_t_a", "medium")

        assert opt.priority is Priority.MEDIUM
        assert not opt.has_ice_score()
        assert opt.get_ice_combined_score() is None
        assert opt.get_description() == "[MEDIUM] redundant_index on t: Covered by idx_t_a_b"


class TestOptimizationService:
    """Test single-schema checks."""

    def test_missing_primary_key(self, service: OptimizationService, production_schema: Schema) -> None:
        [opt] = service.check_missing_primary_keys(production_schema)

        assert opt.table == "logs"
        assert opt.suggestion == "ALTER TABLE logs ADD COLUMN id INTEGER PRIMARY KEY"
        assert opt.ice_score is not None
        assert opt.ice_score.combined == pytest.approx(5.4054)
        assert opt.priority is Priority.MEDIUM

    def test_views_skipped_for_primary_key(self, service: OptimizationService) -> None:
        view = Table("active_users", columns=(Column("id", "INTEGER"),), kind="view")
        schema = Schema("app", Environment.PRODUCTION, (view,))

        assert service.check_missing_primary_keys(schema) == []

    def test_missing_indexes_on_join_hub(self, service: OptimizationService, production_schema: Schema) -> None:
        optimizations = service.check_missing_indexes(production_schema)

        # comments.post_id is already indexed
        assert [(opt.table, opt.column) for opt in optimizations] == [
            ("posts", "user_id"),
            ("comments", "user_id"),
        ]
        first = optimizations[0]
        assert first.suggestion == "CREATE INDEX idx_posts_user_id ON posts(user_id)"
        assert first.get_ice_combined_score() == pytest.approx(6.03856)
        assert first.is_high_priority()
        assert first.is_index_optimization()

    def test_index_not_on_join_hub(self, service: OptimizationService) -> None:
        id_column = Column("id", "INTEGER", is_primary_key=True, is_nullable=False)
        categories = Table("categories", columns=(id_column,))
        products = Table(
            "products",
            columns=(id_column, Column("category_id", "INTEGER", is_nullable=False)),
            foreign_keys=(ForeignKey("products", "category_id", "categories", "id"),),
        )
        schema = Schema("shop", Environment.PRODUCTION, (categories, products))

        [opt] = service.check_missing_indexes(schema)

        assert not service.is_frequently_joined(schema, products, "category_id")
        assert opt.priority is Priority.MEDIUM

    def test_nullable_foreign_keys(self, service: OptimizationService, production_schema: Schema) -> None:
        optimizations = service.check_nullable_foreign_keys(production_schema)

        assert [(opt.table, opt.column) for opt in optimizations] == [
            ("posts", "user_id"),
            ("comments", "user_id"),
        ]
        assert optimizations[0].get_ice_combined_score() == pytest.approx(2.184)
        assert all(opt.priority is Priority.LOW for opt in optimizations)
        assert optimizations[0].suggestion.startswith("-- Review: Should posts.user_id be NOT NULL?")

    def test_redundant_indexes(self, service: OptimizationService) -> None:
        table = Table(
            "events",
            columns=(Column("a", "INTEGER"), Column("b", "INTEGER")),
            indexes=(
                Index("idx_a", "events", ("a",)),
                Index("idx_ab", "events", ("a", "b")),
                Index("uq_a", "events", ("a",), is_unique=True),
            ),
        )

        [opt] = service.check_redundant_indexes(table)

        assert opt.type is OptimizationType.REDUNDANT_INDEX
        assert opt.suggestion == "DROP INDEX idx_a"
        assert opt.reason == "Index idx_a is redundant - covered by idx_ab"
        assert opt.priority is Priority.LOW

    def test_analyze_schema(self, service: OptimizationService, production_schema: Schema) -> None:
        optimizations = service.analyze_schema(production_schema)

        assert [opt.type for opt in optimizations] == [
            OptimizationType.MISSING_PRIMARY_KEY,
            OptimizationType.MISSING_INDEX,
            OptimizationType.MISSING_INDEX,
            OptimizationType.NULLABLE_FOREIGN_KEY,
            OptimizationType.NULLABLE_FOREIGN_KEY,
        ]
        assert service.get_summary(optimizations) == {
            "total": 5,
            "by_priority": {"high": 2, "medium": 1, "low": 2},
            "by_type": {"missing_primary_key": 1, "missing_index": 2, "nullable_foreign_key": 2},
        }

    def test_sort_and_filters(self, service: OptimizationService, production_schema: Schema) -> None:
        optimizations = service.analyze_schema(production_schema)
        ordered = service.sort_by_priority(optimizations)

        assert [opt.priority for opt in ordered] == [
            Priority.HIGH,
            Priority.HIGH,
            Priority.MEDIUM,
            Priority.LOW,
            Priority.LOW,
        ]
        assert len(service.filter_by_priority(optimizations, "high")) == 2
        assert len(service.filter_by_type(optimizations, OptimizationType.NULLABLE_FOREIGN_KEY)) == 2
        assert [opt.type for opt in service.filter_by_table(optimizations, "logs")] == [
            OptimizationType.MISSING_PRIMARY_KEY
        ]

    def test_clean_schema(self, service: OptimizationService, users_table: Table) -> None:
        schema = Schema("clean", Environment.PRODUCTION, (users_table,))

        assert service.analyze_schema(schema) == []


class TestSchemaStatistics:
    """Test descriptive schema metrics."""

    @pytest.fixture
    def statistics(self) -> SchemaStatistics:
        return SchemaStatistics()

    def test_overview(self, statistics: SchemaStatistics, production_schema: Schema) -> None:
        overview = statistics.analyze_schema(production_schema.tables)

        assert overview.total_tables == 4
        assert overview.total_columns == 12
        assert overview.tables_with_primary_keys == 3
        assert overview.tables_without_primary_keys == 1
        assert overview.tables_with_foreign_keys == 2
        assert overview.total_foreign_keys == 3
        assert overview.total_indexes == 2
        assert overview.total_views == 0

    def test_table_statistics(self, statistics: SchemaStatistics, comments_table: Table) -> None:
        stats = statistics.analyze_table(comments_table)

        assert stats.primary_key_columns == ["id"]
        assert stats.required_columns == ["id", "post_id"]
        assert stats.foreign_key_count == 2
        assert stats.to_dict()["index_count"] == 1

    def test_column_types(self, statistics: SchemaStatistics, blog_tables: tuple[Table, ...]) -> None:
        assert statistics.analyze_column_types(blog_tables) == {"INTEGER": 6, "TEXT": 4}

    def test_problematic_and_orphaned(self, statistics: SchemaStatistics, production_schema: Schema) -> None:
        problematic = statistics.identify_problematic_tables(production_schema.tables)
        orphaned = statistics.identify_orphaned_tables(production_schema.tables)

        assert [t.name for t in problematic] == ["posts", "comments", "logs"]
        assert [t.name for t in orphaned] == ["logs"]

    def test_nullability(self, statistics: SchemaStatistics, users_table: Table) -> None:
        report = statistics.analyze_nullability(users_table)

        assert [col.name for col in report.nullable_columns] == ["name"]
        assert report.nullable_percentage == pytest.approx(100 / 3)

    def test_complexity_order(self, statistics: SchemaStatistics, blog_tables: tuple[Table, ...]) -> None:
        ranked = statistics.get_tables_by_complexity(blog_tables)

        assert [(t.name, score) for t, score in ranked] == [("comments", 7), ("users", 4), ("posts", 4)]
