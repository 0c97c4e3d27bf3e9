"""
Schema Comparison Tool

Compares the schemas of two environments end to end: resolves each environment
to a database id, fetches both snapshots through a SchemaProvider, runs the
SchemaComparator and wraps the outcome in a ToolResult with evidence and metrics.
"""

from dataclasses import dataclass

from loguru import logger

from ..base import BaseTool, ConfigurationError, ToolEvidence, ToolResult
from ..config import DatabaseConfig
from ..models import Environment, parse_environment
from ..snapshots import SchemaProvider
from .result import SchemaComparisonResult
from .schema_comparator import SchemaComparator


@dataclass
class SchemaComparisonInput:
    """
    Input for a schema comparison.

    Database ids default to the ones configured for each environment.
    """

    source_environment: Environment | str
    target_environment: Environment | str
    source_database_id: str | None = None
    target_database_id: str | None = None

    def __post_init__(self) -> None:
        self.source_environment = parse_environment(self.source_environment)
        self.target_environment = parse_environment(self.target_environment)


class SchemaComparisonTool(BaseTool[SchemaComparisonInput, SchemaComparisonResult]):
    """Tool comparing two environment schemas and prioritizing the drift."""

    def __init__(
        self,
        provider: SchemaProvider,
        config: DatabaseConfig | None = None,
        comparator: SchemaComparator | None = None,
    ) -> None:
        super().__init__("schema_comparison")
        self.provider = provider
        self.config = config
        self.comparator = comparator or SchemaComparator()

    def execute(self, input_data: SchemaComparisonInput) -> ToolResult[SchemaComparisonResult]:
        """
        Compare the source and target schemas.

        Args:
            input_data: Environments and optional explicit database ids

        Returns:
            ToolResult holding the SchemaComparisonResult

        Raises:
            ValueError: If source and target resolve to the same database
            ConfigurationError: If an environment has no database id
        """
        source_env = input_data.source_environment
        target_env = input_data.target_environment
        source_id = self._resolve_database_id(source_env, input_data.source_database_id)
        target_id = self._resolve_database_id(target_env, input_data.target_database_id)

        if source_id == target_id:
            raise ValueError(
                "Cannot compare a database with itself. Source and target must be different."
            )

        logger.info(f"Fetching schemas {source_id} ({source_env.value}) and {target_id} ({target_env.value})")
        source_schema = self.provider.fetch_schema(source_id)
        target_schema = self.provider.fetch_schema(target_id)

        result = self.comparator.compare(source_schema, target_schema, source_env, target_env)

        warnings = []
        for schema in (source_schema, target_schema):
            if not schema.is_fresh():
                warnings.append(
                    f"Snapshot of '{schema.name}' is {schema.get_age_in_minutes():.0f} minutes old"
                )
        for warning in warnings:
            logger.warning(warning)

        metrics = self._create_metrics(
            tables_processed=len(source_schema.tables) + len(target_schema.tables),
            differences_found=result.summary.total_differences,
            additional_metrics={
                "critical": result.summary.critical_count,
                "high": result.summary.high_count,
                "medium": result.summary.medium_count,
                "low": result.summary.low_count,
            },
        )

        return ToolResult.success(
            output=result,
            evidence=self._create_evidence(source_id, target_id, result),
            metrics=metrics,
            warnings=warnings,
        )

    def _resolve_database_id(self, environment: Environment, explicit_id: str | None) -> str:
        if explicit_id and explicit_id.strip():
            return explicit_id.strip()
        if self.config is None:
            raise ConfigurationError(
                f"No database id given for {environment.value} and no database configuration loaded"
            )
        return self.config.get_database_id(environment)

    def _create_evidence(
        self, source_id: str, target_id: str, result: SchemaComparisonResult
    ) -> list[ToolEvidence]:
        """
        Create evidence for the comparison.

        Args:
            source_id: Database id of the source schema
            target_id: Database id of the target schema
            result: Comparison result

        Returns:
            List of evidence items
        """
        summary = result.summary
        evidence = [
            ToolEvidence(
                location=f"{source_id} -> {target_id}",
                content=f"Found {summary.total_differences} difference(s)",
                evidence_type="comparison",
                description="Number of differences between source and target schemas",
            )
        ]

        if summary.critical_count:
            evidence.append(
                ToolEvidence(
                    location=target_id,
                    content=f"{summary.critical_count} critical difference(s)",
                    evidence_type="severity",
                    description="Missing tables or columns that break dependent code",
                )
            )

        for diff in result.get_critical_differences():
            evidence.append(
                ToolEvidence(
                    location=str(diff.location),
                    content=diff.get_migration_sql(),
                    evidence_type="critical_difference",
                    description=diff.description,
                )
            )

        return evidence
