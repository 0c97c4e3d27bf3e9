"""
Schema Comparator

Walks a source and a target schema snapshot and reports every structural and
constraint difference, each scored with ICE so the migration can be prioritized.

Differences detected:
- tables present in only one of the schemas
- columns missing from, or extra in, a common table
- column types that differ after affinity normalization
- source indexes missing from the target (matched by index name)
- source foreign keys missing from the target (matched by FK column)
"""

from loguru import logger

from ..models import Column, DifferenceType, Environment, ForeignKey, Index, Schema, Table
from ..scoring import ICECalculator, SchemaDifferenceContext
from .difference import DifferenceLocation, SchemaDifference
from .result import SchemaComparisonResult


def normalize_type(type_name: str) -> str:
    """
    Reduce a declared column type to its storage affinity.

    Declared types are matched by substring, so ``BIGINT`` and ``INT`` both
    normalize to ``INTEGER`` and ``VARCHAR(255)`` to ``TEXT``. Types that match
    no family are returned upper-cased.

    Args:
        type_name: Declared column type

    Returns:
        INTEGER, TEXT, BLOB, REAL or the upper-cased declared type
    """
    normalized = type_name.strip().upper()

    if "INT" in normalized:
        return "INTEGER"
    if any(token in normalized for token in ("CHAR", "CLOB", "TEXT")):
        return "TEXT"
    if "BLOB" in normalized:
        return "BLOB"
    if any(token in normalized for token in ("REAL", "FLOA", "DOUB")):
        return "REAL"
    return normalized


def column_types_differ(source: Column, target: Column) -> bool:
    return normalize_type(source.type) != normalize_type(target.type)


def generate_create_table_ddl(table: Table) -> str:
    """CREATE TABLE statement regenerated from the table's column definitions."""
    column_defs = []
    for col in table.columns:
        definition = f"  {col.name} {col.type}"
        if col.is_primary_key:
            definition += " PRIMARY KEY"
        elif not col.is_nullable:
            definition += " NOT NULL"
        column_defs.append(definition)

    return "\n".join([f"CREATE TABLE {table.name} (", ",\n".join(column_defs), ");"])


class SchemaComparator:
    """Compares two schema snapshots and scores each difference."""

    def __init__(self, calculator: ICECalculator | None = None) -> None:
        self.calculator = calculator or ICECalculator()

    def compare(
        self,
        source_schema: Schema,
        target_schema: Schema,
        source_environment: Environment,
        target_environment: Environment,
    ) -> SchemaComparisonResult:
        """
        Compare two schemas.

        Args:
            source_schema: Schema the target is expected to match
            target_schema: Schema being checked for drift
            source_environment: Environment of the source schema
            target_environment: Environment of the target schema

        Returns:
            SchemaComparisonResult with differences sorted by ICE score
        """
        logger.info(
            f"Comparing schema '{source_schema.name}' ({source_environment.value}) "
            f"with '{target_schema.name}' ({target_environment.value})"
        )

        differences: list[SchemaDifference] = []
        differences.extend(
            self._find_missing_tables(source_schema, target_schema, source_environment, target_environment)
        )
        differences.extend(
            self._find_extra_tables(source_schema, target_schema, source_environment, target_environment)
        )

        for source_table, target_table in self._find_common_tables(source_schema, target_schema):
            differences.extend(
                self._compare_columns(source_table, target_table, source_environment, target_environment)
            )
            differences.extend(
                self._compare_indexes(source_table, target_table, source_environment, target_environment)
            )
            differences.extend(
                self._compare_foreign_keys(source_table, target_table, source_environment, target_environment)
            )

        result = SchemaComparisonResult.create(
            source_environment,
            target_environment,
            len(source_schema.tables),
            len(target_schema.tables),
            differences,
        )

        logger.info(
            f"Schema comparison {source_environment.value} → {target_environment.value} "
            f"found {result.summary.total_differences} difference(s) "
            f"({result.summary.critical_count} critical)"
        )
        return result

    def _create_difference(
        self,
        difference_type: DifferenceType,
        location: DifferenceLocation,
        description: str,
        ddl: str,
        source_environment: Environment,
        target_environment: Environment,
        name: str | None = None,
    ) -> SchemaDifference:
        scored = self.calculator.analyze_schema_difference(
            SchemaDifferenceContext(
                difference_type=difference_type,
                name=name or str(location),
                source_environment=source_environment,
                target_environment=target_environment,
                ddl_statement=ddl,
            )
        )

        return SchemaDifference(
            type=difference_type,
            location=location,
            description=description,
            source_environment=source_environment,
            target_environment=target_environment,
            insight_analysis=scored.insight,
            context_analysis=scored.context,
            execution_plan=scored.execution,
        )

    def _find_missing_tables(
        self, source_schema: Schema, target_schema: Schema, source_env: Environment, target_env: Environment
    ) -> list[SchemaDifference]:
        target_names = set(target_schema.get_table_names())
        return [
            self._create_difference(
                DifferenceType.MISSING_TABLE,
                DifferenceLocation(table.name),
                f"Table '{table.name}' exists in {source_env.value} but missing in {target_env.value}",
                generate_create_table_ddl(table),
                source_env,
                target_env,
            )
            for table in source_schema.tables
            if table.name not in target_names
        ]

    def _find_extra_tables(
        self, source_schema: Schema, target_schema: Schema, source_env: Environment, target_env: Environment
    ) -> list[SchemaDifference]:
        source_names = set(source_schema.get_table_names())
        differences = []
        for table in target_schema.tables:
            if table.name in source_names:
                continue
            ddl = (
                f"-- Table '{table.name}' exists in {target_env.value} but not in {source_env.value}\n"
                f"-- Consider if this should be in {source_env.value}"
            )
            differences.append(
                self._create_difference(
                    DifferenceType.EXTRA_TABLE,
                    DifferenceLocation(table.name),
                    f"Table '{table.name}' exists in {target_env.value} but not in {source_env.value}",
                    ddl,
                    source_env,
                    target_env,
                )
            )
        return differences

    def _find_common_tables(self, source_schema: Schema, target_schema: Schema) -> list[tuple[Table, Table]]:
        """Pairs of tables present in both schemas, in source order."""
        target_tables = {table.name: table for table in target_schema.tables}
        return [
            (table, target_tables[table.name])
            for table in source_schema.tables
            if table.name in target_tables
        ]

    def _compare_columns(
        self, source_table: Table, target_table: Table, source_env: Environment, target_env: Environment
    ) -> list[SchemaDifference]:
        differences = []
        target_columns = {col.name: col for col in target_table.columns}

        for source_col in source_table.columns:
            target_col = target_columns.get(source_col.name)

            if target_col is None:
                not_null = "" if source_col.is_nullable else " NOT NULL"
                differences.append(
                    self._create_difference(
                        DifferenceType.MISSING_COLUMN,
                        DifferenceLocation(target_table.name, source_col.name),
                        f"Column '{source_col.name}' missing in {target_env.value}",
                        f"ALTER TABLE {target_table.name} ADD COLUMN {source_col.name} {source_col.type}{not_null}",
                        source_env,
                        target_env,
                    )
                )
            elif column_types_differ(source_col, target_col):
                differences.append(
                    self._type_mismatch(target_table.name, source_col, target_col, source_env, target_env)
                )

        source_names = {col.name for col in source_table.columns}
        for target_col in target_table.columns:
            if target_col.name in source_names:
                continue
            differences.append(
                self._create_difference(
                    DifferenceType.EXTRA_COLUMN,
                    DifferenceLocation(target_table.name, target_col.name),
                    f"Column '{target_col.name}' exists in {target_env.value} but not in {source_env.value}",
                    f"-- Column '{target_col.name}' exists in {target_env.value} but not in {source_env.value}",
                    source_env,
                    target_env,
                )
            )

        return differences

    def _type_mismatch(
        self,
        table_name: str,
        source_col: Column,
        target_col: Column,
        source_env: Environment,
        target_env: Environment,
    ) -> SchemaDifference:
        ddl = "\n".join(
            [
                f"-- Type mismatch: {table_name}.{source_col.name}",
                f"-- Source ({source_env.value}): {source_col.type}",
                f"-- Target ({target_env.value}): {target_col.type}",
                "-- Review and migrate data carefully",
            ]
        )
        return self._create_difference(
            DifferenceType.TYPE_MISMATCH,
            DifferenceLocation(table_name, source_col.name, source_col.type, target_col.type),
            f"Column '{source_col.name}' type mismatch: "
            f"{source_col.type} ({source_env.value}) vs {target_col.type} ({target_env.value})",
            ddl,
            source_env,
            target_env,
        )

    def _compare_indexes(
        self, source_table: Table, target_table: Table, source_env: Environment, target_env: Environment
    ) -> list[SchemaDifference]:
        target_names = {index.name for index in target_table.indexes}
        return [
            self._missing_index(target_table.name, index, source_env, target_env)
            for index in source_table.indexes
            if index.name not in target_names
        ]

    def _missing_index(
        self, table_name: str, index: Index, source_env: Environment, target_env: Environment
    ) -> SchemaDifference:
        column_list = ", ".join(index.columns)
        return self._create_difference(
            DifferenceType.MISSING_INDEX,
            DifferenceLocation(table_name, column_list),
            f"Index '{index.name}' missing in {target_env.value}",
            f"CREATE INDEX {index.name} ON {table_name}({column_list})",
            source_env,
            target_env,
            name=index.name,
        )

    def _compare_foreign_keys(
        self, source_table: Table, target_table: Table, source_env: Environment, target_env: Environment
    ) -> list[SchemaDifference]:
        target_fk_columns = set(target_table.get_foreign_key_columns())
        return [
            self._missing_foreign_key(target_table.name, fk, source_env, target_env)
            for fk in source_table.foreign_keys
            if fk.column not in target_fk_columns
        ]

    def _missing_foreign_key(
        self, table_name: str, fk: ForeignKey, source_env: Environment, target_env: Environment
    ) -> SchemaDifference:
        ddl = (
            f"-- Foreign key '{fk.column}' missing in {target_env.value}\n"
            f"-- {fk.table}.{fk.column} -> {fk.references_table}.{fk.references_column}"
        )
        return self._create_difference(
            DifferenceType.MISSING_FOREIGN_KEY,
            DifferenceLocation(table_name, fk.column),
            f"Foreign key '{fk.column}' missing in {target_env.value}",
            ddl,
            source_env,
            target_env,
        )
