"""
Schema Model

Immutable value objects describing one point-in-time snapshot of a relational
schema: columns, indexes, foreign keys, tables and the schema itself.

The objects are constructed fully formed (by a snapshot provider or directly in
code) and validated in ``__post_init__``. Collections are stored as tuples so a
snapshot can never be patched after it was fetched.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class Environment(Enum):
    """Deployment environment a schema snapshot was taken from."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"

    @property
    def is_production(self) -> bool:
        return self is Environment.PRODUCTION


_ENVIRONMENT_ALIASES = {
    "development": Environment.DEVELOPMENT,
    "dev": Environment.DEVELOPMENT,
    "staging": Environment.STAGING,
    "stage": Environment.STAGING,
    "production": Environment.PRODUCTION,
    "prod": Environment.PRODUCTION,
}


def parse_environment(value: "str | Environment") -> Environment:
    """
    Parse an environment label.

    Args:
        value: Label such as "production", "prod" or an Environment member

    Returns:
        The matching Environment

    Raises:
        ValueError: If the label is not a known environment
    """
    if isinstance(value, Environment):
        return value

    environment = _ENVIRONMENT_ALIASES.get(value.strip().lower())
    if environment is None:
        raise ValueError(
            f'Invalid environment: "{value}". '
            "Must be one of: development, staging, production"
        )
    return environment


def is_valid_environment(value: str) -> bool:
    """Check whether a label parses to an Environment."""
    return value.strip().lower() in _ENVIRONMENT_ALIASES


class ReferentialAction(Enum):
    """ON DELETE / ON UPDATE actions of a foreign key."""

    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"
    RESTRICT = "RESTRICT"
    NO_ACTION = "NO ACTION"

    @classmethod
    def parse(cls, value: "str | ReferentialAction | None") -> "ReferentialAction | None":
        """Parse an action name, tolerating case and underscores. None stays None."""
        if value is None or isinstance(value, ReferentialAction):
            return value
        normalized = " ".join(value.replace("_", " ").upper().split())
        if not normalized:
            return None
        return cls(normalized)


class TableKind(Enum):
    """Kind of relation stored in the schema."""

    TABLE = "table"
    VIEW = "view"


def _require_text(value: str, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(message)
    return value.strip()


@dataclass(frozen=True)
class Column:
    """A table column. The declared type is stored upper-cased."""

    name: str
    type: str
    is_primary_key: bool = False
    is_nullable: bool = True
    default_value: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _require_text(self.name, "Column name cannot be empty"))
        type_name = _require_text(self.type, "Column type cannot be empty")
        object.__setattr__(self, "type", type_name.upper())

    def is_required(self) -> bool:
        """NOT NULL without a default: a value must be supplied on insert."""
        return not self.is_nullable and self.default_value is None

    def has_default(self) -> bool:
        return self.default_value is not None

    def type_category(self) -> str:
        """Group the declared type into text, numeric, blob or unknown."""
        if "TEXT" in self.type or "CHAR" in self.type:
            return "text"
        if any(token in self.type for token in ("INT", "REAL", "NUMERIC", "DECIMAL")):
            return "numeric"
        if "BLOB" in self.type:
            return "blob"
        return "unknown"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "is_primary_key": self.is_primary_key,
            "is_nullable": self.is_nullable,
            "default_value": self.default_value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Column":
        return cls(
            name=data["name"],
            type=data["type"],
            is_primary_key=bool(data.get("is_primary_key", False)),
            is_nullable=bool(data.get("is_nullable", True)),
            default_value=data.get("default_value"),
        )


@dataclass(frozen=True)
class Index:
    """An index; column order is significant for composite indexes."""

    name: str
    table_name: str
    columns: tuple[str, ...]
    is_unique: bool = False
    is_primary_key: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _require_text(self.name, "Index name cannot be empty"))
        object.__setattr__(
            self, "table_name", _require_text(self.table_name, "Table name cannot be empty")
        )
        if isinstance(self.columns, str):
            raise TypeError(f"Index '{self.name}' columns must be a sequence of names, not a string")
        columns = tuple(self.columns or ())
        if not columns:
            raise ValueError("Index must have at least one column")
        object.__setattr__(
            self,
            "columns",
            tuple(_require_text(col, "Index column names cannot be empty") for col in columns),
        )

    def is_composite(self) -> bool:
        return len(self.columns) > 1

    def covers_column(self, column_name: str) -> bool:
        return column_name in self.columns

    def has_column_as_prefix(self, column_name: str) -> bool:
        """True when the column leads the index and can be used on its own."""
        return self.columns[0] == column_name

    def is_prefix_of(self, other: "Index") -> bool:
        """True when this index's columns are a strict prefix of ``other``'s."""
        if len(self.columns) >= len(other.columns):
            return False
        return other.columns[: len(self.columns)] == self.columns

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "table_name": self.table_name,
            "columns": list(self.columns),
            "is_unique": self.is_unique,
            "is_primary_key": self.is_primary_key,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], table_name: str | None = None) -> "Index":
        return cls(
            name=data["name"],
            table_name=data.get("table_name") or table_name or "",
            columns=tuple(data.get("columns", ())),
            is_unique=bool(data.get("is_unique", False)),
            is_primary_key=bool(data.get("is_primary_key", False)),
        )


@dataclass(frozen=True)
class ForeignKey:
    """A foreign key from ``table.column`` to ``references_table.references_column``."""

    table: str
    column: str
    references_table: str
    references_column: str
    on_delete: ReferentialAction | None = None
    on_update: ReferentialAction | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "table", _require_text(self.table, "Foreign key table name cannot be empty")
        )
        object.__setattr__(
            self, "column", _require_text(self.column, "Foreign key column name cannot be empty")
        )
        object.__setattr__(
            self,
            "references_table",
            _require_text(self.references_table, "Referenced table name cannot be empty"),
        )
        object.__setattr__(
            self,
            "references_column",
            _require_text(self.references_column, "Referenced column name cannot be empty"),
        )
        object.__setattr__(self, "on_delete", ReferentialAction.parse(self.on_delete))
        object.__setattr__(self, "on_update", ReferentialAction.parse(self.on_update))

    def is_required(self) -> bool:
        return self.on_delete in (ReferentialAction.CASCADE, ReferentialAction.RESTRICT)

    def cascades_on_delete(self) -> bool:
        return self.on_delete is ReferentialAction.CASCADE

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "column": self.column,
            "references_table": self.references_table,
            "references_column": self.references_column,
            "on_delete": self.on_delete.value if self.on_delete else None,
            "on_update": self.on_update.value if self.on_update else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], table_name: str | None = None) -> "ForeignKey":
        return cls(
            table=data.get("table") or table_name or "",
            column=data["column"],
            references_table=data["references_table"],
            references_column=data["references_column"],
            on_delete=data.get("on_delete"),
            on_update=data.get("on_update"),
        )


@dataclass(frozen=True)
class Table:
    """
    Complete metadata of one table or view.

    The table is the consistency boundary: its columns, indexes and foreign
    keys are validated together and never change after construction.
    """

    name: str
    columns: tuple[Column, ...]
    indexes: tuple[Index, ...] = ()
    foreign_keys: tuple[ForeignKey, ...] = ()
    kind: TableKind = TableKind.TABLE

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _require_text(self.name, "Table name cannot be empty"))
        columns = tuple(self.columns or ())
        if not columns:
            raise ValueError(f"Table '{self.name}' must have at least one column")
        object.__setattr__(self, "columns", columns)
        object.__setattr__(self, "indexes", tuple(self.indexes or ()))
        object.__setattr__(self, "foreign_keys", tuple(self.foreign_keys or ()))
        object.__setattr__(self, "kind", TableKind(self.kind))

    def is_view(self) -> bool:
        return self.kind is TableKind.VIEW

    def has_primary_key(self) -> bool:
        return any(col.is_primary_key for col in self.columns)

    def get_primary_key_columns(self) -> list[Column]:
        return [col for col in self.columns if col.is_primary_key]

    def has_foreign_keys(self) -> bool:
        return bool(self.foreign_keys)

    def has_index_on_column(self, column_name: str) -> bool:
        return any(index.covers_column(column_name) for index in self.indexes)

    def get_column(self, column_name: str) -> Column | None:
        return next((col for col in self.columns if col.name == column_name), None)

    def get_index(self, index_name: str) -> Index | None:
        return next((index for index in self.indexes if index.name == index_name), None)

    def get_foreign_key_columns(self) -> list[str]:
        """Distinct FK column names in declaration order."""
        return list(dict.fromkeys(fk.column for fk in self.foreign_keys))

    def get_referenced_tables(self) -> list[str]:
        """Distinct tables this table depends on, in declaration order."""
        return list(dict.fromkeys(fk.references_table for fk in self.foreign_keys))

    def get_required_columns(self) -> list[Column]:
        return [col for col in self.columns if col.is_required()]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.kind.value,
            "columns": [col.to_dict() for col in self.columns],
            "indexes": [index.to_dict() for index in self.indexes],
            "foreign_keys": [fk.to_dict() for fk in self.foreign_keys],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Table":
        name = data["name"]
        return cls(
            name=name,
            kind=TableKind(data.get("type", "table")),
            columns=tuple(Column.from_dict(col) for col in data.get("columns", ())),
            indexes=tuple(Index.from_dict(idx, name) for idx in data.get("indexes", ())),
            foreign_keys=tuple(
                ForeignKey.from_dict(fk, name) for fk in data.get("foreign_keys", ())
            ),
        )


@dataclass(frozen=True)
class Schema:
    """
    Snapshot of one database at a point in time.

    Attributes:
        name: Database name
        environment: Environment the snapshot was taken from
        tables: Tables in introspection order (at least one)
        fetched_at: When the snapshot was taken; naive values are read as UTC
    """

    name: str
    environment: Environment
    tables: tuple[Table, ...]
    fetched_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _require_text(self.name, "Database name cannot be empty"))
        object.__setattr__(self, "environment", parse_environment(self.environment))
        tables = tuple(self.tables or ())
        if not tables:
            raise ValueError("Database must have at least one table")
        object.__setattr__(self, "tables", tables)
        if self.fetched_at.tzinfo is None:
            object.__setattr__(self, "fetched_at", self.fetched_at.replace(tzinfo=UTC))

    def get_table(self, table_name: str) -> Table | None:
        return next((table for table in self.tables if table.name == table_name), None)

    def get_table_names(self) -> list[str]:
        return [table.name for table in self.tables]

    def get_tables_that_reference(self, table_name: str) -> list[Table]:
        """Tables owning a foreign key into ``table_name``."""
        return [t for t in self.tables if table_name in t.get_referenced_tables()]

    def get_tables_referenced_by(self, table_name: str) -> list[str]:
        table = self.get_table(table_name)
        return table.get_referenced_tables() if table else []

    def is_referenced(self, table_name: str) -> bool:
        return any(
            fk.references_table == table_name for t in self.tables for fk in t.foreign_keys
        )

    def get_tables_without_primary_key(self) -> list[Table]:
        return [t for t in self.tables if not t.has_primary_key()]

    def get_tables_with_foreign_keys(self) -> list[Table]:
        return [t for t in self.tables if t.has_foreign_keys()]

    def get_views(self) -> list[Table]:
        return [t for t in self.tables if t.is_view()]

    def get_base_tables(self) -> list[Table]:
        return [t for t in self.tables if not t.is_view()]

    def get_age_in_minutes(self, now: datetime | None = None) -> float:
        current = now or datetime.now(UTC)
        return (current - self.fetched_at).total_seconds() / 60

    def is_fresh(self, within_minutes: float = 10, now: datetime | None = None) -> bool:
        """Whether the snapshot is recent enough to reuse without refetching."""
        return self.get_age_in_minutes(now) <= within_minutes

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "environment": self.environment.value,
            "fetched_at": self.fetched_at.isoformat(),
            "tables": [table.to_dict() for table in self.tables],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Schema":
        fetched_at = data.get("fetched_at")
        if isinstance(fetched_at, str):
            fetched_at = datetime.fromisoformat(fetched_at)
        if fetched_at is None:
            fetched_at = datetime.now(UTC)
        return cls(
            name=data["name"],
            environment=parse_environment(data.get("environment", "development")),
            tables=tuple(Table.from_dict(table) for table in data.get("tables", ())),
            fetched_at=fetched_at,
        )
