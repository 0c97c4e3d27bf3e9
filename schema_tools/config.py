"""
Database configuration

Maps deployment environments to the database holding their schema. The mapping
is read from environment variables (typically loaded from ``.env``):

- SCHEMA_DEV_DATABASE_ID (or SCHEMA_DATABASE_ID), SCHEMA_DEV_DATABASE_NAME
- SCHEMA_STAGING_DATABASE_ID, SCHEMA_STAGING_DATABASE_NAME
- SCHEMA_PROD_DATABASE_ID (or SCHEMA_PRODUCTION_DATABASE_ID),
  SCHEMA_PROD_DATABASE_NAME (or SCHEMA_PRODUCTION_DATABASE_NAME)
- SCHEMA_SNAPSHOT_DIR: directory of JSON snapshots (default ./snapshots)
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from .base import ConfigurationError
from .models import Environment

DEFAULT_SNAPSHOT_DIR = "./snapshots"


@dataclass(frozen=True)
class DatabaseInstance:
    name: str
    id: str


def _first_set(env: Mapping[str, str], *keys: str) -> str | None:
    for key in keys:
        value = env.get(key)
        if value and value.strip():
            return value.strip()
    return None


@dataclass(frozen=True)
class DatabaseConfig:
    """Environment to database mapping with at least one entry."""

    databases: dict[Environment, DatabaseInstance]
    snapshot_dir: Path = field(default_factory=lambda: Path(DEFAULT_SNAPSHOT_DIR))

    def __post_init__(self) -> None:
        if not self.databases:
            raise ConfigurationError("At least one database must be configured")
        object.__setattr__(self, "databases", dict(self.databases))
        object.__setattr__(self, "snapshot_dir", Path(self.snapshot_dir))

    def get_database_instance(self, environment: Environment) -> DatabaseInstance:
        instance = self.databases.get(environment)
        if instance is None:
            available = ", ".join(env.value for env in self.databases)
            raise ConfigurationError(
                f"No database configured for environment: {environment.value}. Available: {available}"
            )
        return instance

    def get_database_id(self, environment: Environment) -> str:
        return self.get_database_instance(environment).id

    def get_database_name(self, environment: Environment) -> str:
        return self.get_database_instance(environment).name

    def has_environment(self, environment: Environment) -> bool:
        return environment in self.databases

    def get_configured_environments(self) -> list[Environment]:
        return list(self.databases)

    @classmethod
    def from_environment(cls, env: Mapping[str, str] | None = None) -> "DatabaseConfig":
        """
        Build the configuration from environment variables.

        Args:
            env: Variables to read; defaults to ``os.environ``

        Returns:
            DatabaseConfig for every environment with a database id

        Raises:
            ConfigurationError: If no database id is set at all
        """
        env = os.environ if env is None else env
        databases: dict[Environment, DatabaseInstance] = {}

        dev_id = _first_set(env, "SCHEMA_DEV_DATABASE_ID", "SCHEMA_DATABASE_ID")
        if dev_id:
            databases[Environment.DEVELOPMENT] = DatabaseInstance(
                name=_first_set(env, "SCHEMA_DEV_DATABASE_NAME") or "development",
                id=dev_id,
            )

        staging_id = _first_set(env, "SCHEMA_STAGING_DATABASE_ID")
        if staging_id:
            databases[Environment.STAGING] = DatabaseInstance(
                name=_first_set(env, "SCHEMA_STAGING_DATABASE_NAME") or "staging",
                id=staging_id,
            )

        prod_id = _first_set(env, "SCHEMA_PROD_DATABASE_ID", "SCHEMA_PRODUCTION_DATABASE_ID")
        if prod_id:
            databases[Environment.PRODUCTION] = DatabaseInstance(
                name=_first_set(env, "SCHEMA_PROD_DATABASE_NAME", "SCHEMA_PRODUCTION_DATABASE_NAME")
                or "production",
                id=prod_id,
            )

        if not databases:
            raise ConfigurationError(
                "No databases configured. Set at least one of: "
                "SCHEMA_DEV_DATABASE_ID, SCHEMA_STAGING_DATABASE_ID, SCHEMA_PROD_DATABASE_ID"
            )

        snapshot_dir = Path(_first_set(env, "SCHEMA_SNAPSHOT_DIR") or DEFAULT_SNAPSHOT_DIR)
        logger.debug(
            f"Configured environments: {', '.join(e.value for e in databases)} "
            f"(snapshots in {snapshot_dir})"
        )
        return cls(databases, snapshot_dir)
