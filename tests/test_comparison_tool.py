"""
Tests for SchemaComparisonTool and the command line entry point.
"""

import json
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from main import main
from schema_tools.base import ToolErrorCode, ToolStatus
from schema_tools.comparison import SchemaComparisonInput, SchemaComparisonTool
from schema_tools.config import DatabaseConfig, DatabaseInstance
from schema_tools.models import Column, Environment, Schema, Table
from schema_tools.snapshots import JsonSnapshotProvider


@pytest.fixture
def snapshot_dir(tmp_path: Path, blog_schema: Schema, users_table: Table) -> Path:
    """Development has the full blog schema, production only the users table."""
    directory = tmp_path / "snapshots"
    provider = JsonSnapshotProvider(directory)
    provider.save_schema("db-dev", blog_schema)
    provider.save_schema("db-prod", Schema("blog", Environment.PRODUCTION, (users_table,)))
    return directory


@pytest.fixture
def config(snapshot_dir: Path) -> DatabaseConfig:
    return DatabaseConfig(
        {
            Environment.DEVELOPMENT: DatabaseInstance("blog-dev", "db-dev"),
            Environment.PRODUCTION: DatabaseInstance("blog-prod", "db-prod"),
        },
        snapshot_dir,
    )


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate the CLI from any SCHEMA_* variables or .env of the caller."""
    monkeypatch.chdir(tmp_path)
    for key in (
        "SCHEMA_DATABASE_ID",
        "SCHEMA_DEV_DATABASE_ID",
        "SCHEMA_STAGING_DATABASE_ID",
        "SCHEMA_PROD_DATABASE_ID",
        "SCHEMA_PRODUCTION_DATABASE_ID",
        "SCHEMA_SNAPSHOT_DIR",
    ):
        monkeypatch.delenv(key, raising=False)


class TestSchemaComparisonInput:
    """Test input normalization."""

    def test_environment_aliases(self) -> None:
        input_data = SchemaComparisonInput("dev", "prod")

        assert input_data.source_environment is Environment.DEVELOPMENT
        assert input_data.target_environment is Environment.PRODUCTION

    def test_invalid_environment(self) -> None:
        with pytest.raises(ValueError, match="Invalid environment"):
            SchemaComparisonInput("qa", "prod")


class TestSchemaComparisonTool:
    """Test end to end comparison through the tool envelope."""

    def test_same_database_rejected_before_fetch(self) -> None:
        provider = MagicMock()
        tool = SchemaComparisonTool(provider)
        input_data = SchemaComparisonInput("dev", "prod", "db-1", "db-1")

        with pytest.raises(ValueError, match="Cannot compare a database with itself"):
            tool.execute(input_data)

        result = tool.run(input_data)

        assert result.status is ToolStatus.ERROR
        assert result.error_code is ToolErrorCode.INVALID_INPUT
        provider.fetch_schema.assert_not_called()

    def test_success_with_configured_ids(self, config: DatabaseConfig) -> None:
        tool = SchemaComparisonTool(JsonSnapshotProvider(config.snapshot_dir), config)

        result = tool.run(SchemaComparisonInput(Environment.DEVELOPMENT, Environment.PRODUCTION))

        assert result.is_success
        assert result.output is not None
        assert [d.location.table_name for d in result.output.differences] == ["posts", "comments"]
        assert result.output.summary.missing_tables == 2
        assert result.metrics is not None
        assert result.metrics.tables_processed == 4
        assert result.metrics.differences_found == 2
        assert result.evidence[0].location == "db-dev -> db-prod"
        assert result.warnings == []

    def test_explicit_ids_override_config(self, snapshot_dir: Path) -> None:
        provider = MagicMock(wraps=JsonSnapshotProvider(snapshot_dir))
        tool = SchemaComparisonTool(provider)

        result = tool.run(SchemaComparisonInput("prod", "dev", "db-prod", "db-dev"))

        assert result.is_success
        assert result.output is not None
        assert result.output.summary.total_differences == 2
        assert [call.args[0] for call in provider.fetch_schema.call_args_list] == ["db-prod", "db-dev"]

    def test_missing_snapshot(self, snapshot_dir: Path) -> None:
        tool = SchemaComparisonTool(JsonSnapshotProvider(snapshot_dir))

        result = tool.run(SchemaComparisonInput("dev", "prod", "db-dev", "db-missing"))

        assert result.error_code is ToolErrorCode.SNAPSHOT_NOT_FOUND
        assert "db-missing" in (result.error_message or "")

    def test_missing_configuration(self, snapshot_dir: Path) -> None:
        tool = SchemaComparisonTool(JsonSnapshotProvider(snapshot_dir))

        result = tool.run(SchemaComparisonInput("dev", "prod"))

        assert result.error_code is ToolErrorCode.CONFIGURATION_ERROR

    def test_unconfigured_environment(self, config: DatabaseConfig) -> None:
        tool = SchemaComparisonTool(JsonSnapshotProvider(config.snapshot_dir), config)

        result = tool.run(SchemaComparisonInput("staging", "prod"))

        assert result.error_code is ToolErrorCode.CONFIGURATION_ERROR
        assert "Available: development, production" in (result.error_message or "")

    def test_stale_snapshot_warns(self, tmp_path: Path, users_table: Table) -> None:
        provider = JsonSnapshotProvider(tmp_path)
        stale = Schema.from_dict(
            {
                **Schema("old", Environment.STAGING, (users_table,)).to_dict(),
                "fetched_at": "2020-01-01T00:00:00+00:00",
            }
        )
        tags = Table("tags", columns=(Column("id", "INTEGER"),))
        provider.save_schema("db-old", stale)
        provider.save_schema("db-new", Schema("new", Environment.PRODUCTION, (users_table, tags)))

        result = SchemaComparisonTool(provider).run(SchemaComparisonInput("staging", "prod", "db-old", "db-new"))

        assert result.is_success
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("Snapshot of 'old' is")

    def test_naive_snapshot_timestamps(self, users_table: Table, posts_table: Table) -> None:
        taken_at = datetime(2026, 1, 1)
        provider = MagicMock()
        provider.fetch_schema.side_effect = [
            Schema("blog", Environment.DEVELOPMENT, (users_table, posts_table), fetched_at=taken_at),
            Schema("blog", Environment.PRODUCTION, (users_table,), fetched_at=taken_at),
        ]

        result = SchemaComparisonTool(provider).run(SchemaComparisonInput("dev", "prod", "db-a", "db-b"))

        assert result.is_success
        assert result.output is not None
        assert result.output.summary.missing_tables == 1
        assert len(result.warnings) == 2

    def test_provider_timeout_is_a_processing_error(self) -> None:
        provider = MagicMock()
        provider.fetch_schema.side_effect = TimeoutError("snapshot store did not answer")

        result = SchemaComparisonTool(provider).run(SchemaComparisonInput("dev", "prod", "db-a", "db-b"))

        assert result.status is ToolStatus.ERROR
        assert result.error_code is ToolErrorCode.PROCESSING_ERROR
        assert set(result.to_dict()) == {
            "status",
            "output",
            "error_code",
            "error_message",
            "evidence",
            "metrics",
            "warnings",
        }

    def test_result_serializes_to_json(self, config: DatabaseConfig) -> None:
        tool = SchemaComparisonTool(JsonSnapshotProvider(config.snapshot_dir), config)

        data = json.loads(tool.run(SchemaComparisonInput("dev", "prod")).to_json())

        assert data["status"] == "success"
        assert data["output"]["summary"]["missing_tables"] == 2


class TestCommandLine:
    """Test the schema-inspector CLI."""

    def test_compare_json(
        self, clean_env: None, snapshot_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(
            [
                "--snapshot-dir",
                str(snapshot_dir),
                "--format",
                "json",
                "compare",
                "--source",
                "dev",
                "--target",
                "prod",
                "--source-id",
                "db-dev",
                "--target-id",
                "db-prod",
            ]
        )

        data = json.loads(capsys.readouterr().out)
        assert data["output"]["summary"]["total_differences"] == 2

    def test_compare_failure_exit_code(self, clean_env: None, snapshot_dir: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--snapshot-dir", str(snapshot_dir), "compare", "--source", "dev", "--target", "prod"])

        assert exc_info.value.code == 1

    def test_relationships_text(
        self, clean_env: None, snapshot_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(["--snapshot-dir", str(snapshot_dir), "relationships", "--database-id", "db-dev", "--table", "users"])

        out = capsys.readouterr().out
        assert "posts.user_id → users.id" in out
        assert "Population order: users → posts → comments" in out
        assert "users → posts → comments" in out.split("Cascade chains from users:")[1]

    def test_optimize_json(
        self, clean_env: None, snapshot_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(["--snapshot-dir", str(snapshot_dir), "--format", "json", "optimize", "--database-id", "db-dev"])

        data = json.loads(capsys.readouterr().out)
        assert data["environment"] == "development"
        assert data["statistics"]["total_tables"] == 3
        assert data["summary"]["total"] == len(data["optimizations"])
