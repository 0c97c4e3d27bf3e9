import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from loguru import logger

from schema_tools.base import ConfigurationError
from schema_tools.comparison import SchemaComparisonInput, SchemaComparisonTool
from schema_tools.config import DEFAULT_SNAPSHOT_DIR, DatabaseConfig
from schema_tools.models import Schema, parse_environment
from schema_tools.optimization import OptimizationService, SchemaStatistics
from schema_tools.relationships import RelationshipAnalyzer
from schema_tools.snapshots import JsonSnapshotProvider
from schema_tools.validation import SchemaValidator

ENVIRONMENT_CHOICES = ["development", "dev", "staging", "stage", "production", "prod"]


def _load_env() -> None:
    """Load environment variables from .env if present."""
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)


def _optional_config() -> DatabaseConfig | None:
    """Database configuration, or None when no database id is configured."""
    try:
        return DatabaseConfig.from_environment()
    except ConfigurationError as e:
        logger.debug(f"No database configuration loaded: {e}")
        return None


def _snapshot_dir(args: argparse.Namespace, config: DatabaseConfig | None) -> Path:
    if args.snapshot_dir:
        return Path(args.snapshot_dir)
    if config is not None:
        return config.snapshot_dir
    return Path(os.getenv("SCHEMA_SNAPSHOT_DIR", DEFAULT_SNAPSHOT_DIR))


def _emit(payload: Any, text: str, output_format: str) -> None:
    if output_format == "json":
        print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))
    else:
        print(text)


def _load_single_schema(args: argparse.Namespace) -> Schema:
    """Fetch the snapshot named by --database-id, or the one configured for --env."""
    config = _optional_config()
    provider = JsonSnapshotProvider(_snapshot_dir(args, config))

    database_id = args.database_id
    if not database_id:
        if config is None:
            raise ConfigurationError("Pass --database-id or configure SCHEMA_*_DATABASE_ID")
        database_id = config.get_database_id(parse_environment(args.env))
    return provider.fetch_schema(database_id)


def _run_compare(args: argparse.Namespace) -> int:
    config = _optional_config()
    tool = SchemaComparisonTool(JsonSnapshotProvider(_snapshot_dir(args, config)), config)
    result = tool.run(
        SchemaComparisonInput(
            source_environment=args.source,
            target_environment=args.target,
            source_database_id=args.source_id,
            target_database_id=args.target_id,
        )
    )

    if not result.is_success or result.output is None:
        logger.error(f"Comparison failed [{result.error_code.value}]: {result.error_message}")
        if args.format == "json":
            print(result.to_json())
        return 1

    comparison = result.output
    text = comparison.get_formatted_summary()
    if args.migration_plan:
        text = f"{text}\n\n{comparison.get_migration_plan()}"
    _emit(result.to_dict(), text, args.format)

    if args.fail_on_critical and comparison.has_critical_differences():
        logger.warning(f"{comparison.summary.critical_count} critical difference(s) found")
        return 2
    return 0


def _run_relationships(args: argparse.Namespace) -> int:
    schema = _load_single_schema(args)
    analyzer = RelationshipAnalyzer()
    relationships = analyzer.extract_relationships(schema.tables)
    cycles = analyzer.detect_circular_dependencies(relationships)
    plan = analyzer.get_population_plan(relationships)
    independent = [t.name for t in analyzer.get_independent_tables(schema.tables)]

    payload: dict[str, Any] = {
        "database": schema.name,
        "environment": schema.environment.value,
        "relationships": [rel.to_dict() for rel in relationships],
        "graph": analyzer.build_dependency_graph(relationships).to_dict(),
        "circular_dependencies": cycles,
        "population_order": list(plan.order),
        "unresolved_tables": list(plan.unresolved),
        "independent_tables": independent,
    }

    lines = [f"Relationships in {schema.name} ({schema.environment.value}): {len(relationships)}"]
    lines.extend(f"  {rel.get_description()}" for rel in relationships)
    lines.append(f"Independent tables: {', '.join(independent) or '-'}")
    lines.append(f"Population order: {' → '.join(plan.order) or '-'}")
    if plan.unresolved:
        lines.append(f"Unresolved (cyclic): {', '.join(plan.unresolved)}")
    for cycle in cycles:
        lines.append(f"Cycle: {' → '.join(cycle)}")

    if args.table:
        chains = analyzer.get_cascade_chains(args.table, relationships)
        payload["cascade_chains"] = chains
        lines.append(f"Cascade chains from {args.table}:")
        lines.extend(f"  {' → '.join(chain)}" for chain in chains)

    _emit(payload, "\n".join(lines), args.format)
    return 0


def _run_optimize(args: argparse.Namespace) -> int:
    schema = _load_single_schema(args)
    service = OptimizationService()
    optimizations = service.sort_by_priority(service.analyze_schema(schema))
    statistics = SchemaStatistics()

    payload = {
        "database": schema.name,
        "environment": schema.environment.value,
        "statistics": statistics.analyze_schema(schema.tables).to_dict(),
        "column_types": statistics.analyze_column_types(schema.tables),
        "summary": service.get_summary(optimizations),
        "optimizations": [opt.to_dict() for opt in optimizations],
    }

    lines = [f"Optimizations for {schema.name} ({schema.environment.value}): {len(optimizations)}"]
    for opt in optimizations:
        lines.append(opt.get_description())
        lines.append(f"  {opt.suggestion}")
    _emit(payload, "\n".join(lines), args.format)
    return 0


def _run_validate(args: argparse.Namespace) -> int:
    report = SchemaValidator().validate(_load_single_schema(args))
    _emit(report.to_dict(), report.get_formatted_summary(), args.format)

    if args.fail_on_error and not report.is_valid:
        logger.warning(f"{report.error_count} validation error(s) found")
        return 2
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect schema drift between environments")
    parser.add_argument(
        "--snapshot-dir", help=f"Directory of JSON schema snapshots (default: {DEFAULT_SNAPSHOT_DIR})"
    )
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format")
    subparsers = parser.add_subparsers(dest="command", required=True)

    compare = subparsers.add_parser("compare", help="Compare two environment schemas")
    compare.add_argument("--source", required=True, choices=ENVIRONMENT_CHOICES, help="Source environment")
    compare.add_argument("--target", required=True, choices=ENVIRONMENT_CHOICES, help="Target environment")
    compare.add_argument("--source-id", help="Source database id (default: from configuration)")
    compare.add_argument("--target-id", help="Target database id (default: from configuration)")
    compare.add_argument("--migration-plan", action="store_true", help="Print the migration plan")
    compare.add_argument(
        "--fail-on-critical", action="store_true", help="Exit with status 2 on critical differences"
    )
    compare.set_defaults(handler=_run_compare)

    for name, handler, help_text in (
        ("relationships", _run_relationships, "Analyze foreign key relationships"),
        ("optimize", _run_optimize, "Suggest schema optimizations"),
        ("validate", _run_validate, "Check schema integrity"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        target = sub.add_mutually_exclusive_group(required=True)
        target.add_argument("--env", choices=ENVIRONMENT_CHOICES, help="Environment to inspect")
        target.add_argument("--database-id", help="Database id (snapshot file stem)")
        sub.set_defaults(handler=handler)

    subparsers.choices["relationships"].add_argument("--table", help="Show cascade chains from this table")
    subparsers.choices["validate"].add_argument(
        "--fail-on-error", action="store_true", help="Exit with status 2 when the schema is invalid"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point of the schema drift inspector.

    Args:
        argv: Optional list of CLI arguments (for testing). If None, sys.argv is used.
    """

    _load_env()
    args = _build_parser().parse_args(argv)

    logger.info(f"Schema inspector starting: {args.command}")
    try:
        exit_code = args.handler(args)
    except Exception as e:
        logger.exception(f"Schema inspector failed: {e}")
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
