"""
Schema snapshot providers

A provider turns a database id into a Schema. The comparison tool only depends
on the SchemaProvider protocol; JsonSnapshotProvider reads snapshots exported as
JSON documents named ``<database_id>.json``.
"""

import json
from pathlib import Path
from typing import Protocol

from loguru import logger

from .models import Schema


class SchemaProvider(Protocol):
    """Source of schema snapshots."""

    def fetch_schema(self, database_id: str) -> Schema:
        """Return the current schema of the given database."""
        ...


class JsonSnapshotProvider:
    """Reads schema snapshots from a directory of JSON files."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def snapshot_path(self, database_id: str) -> Path:
        if not database_id or not database_id.strip():
            raise ValueError("Database id cannot be empty")
        if Path(database_id).name != database_id:
            raise ValueError(f"Invalid database id: {database_id}")
        return self.directory / f"{database_id}.json"

    def fetch_schema(self, database_id: str) -> Schema:
        """
        Load the snapshot of one database.

        Args:
            database_id: Id of the database, also the snapshot file stem

        Returns:
            Parsed Schema

        Raises:
            FileNotFoundError: If no snapshot exists for the database
            ValueError: If the snapshot is not a valid schema document
        """
        path = self.snapshot_path(database_id)
        if not path.is_file():
            raise FileNotFoundError(f"Schema snapshot not found: {path}")

        logger.debug(f"Loading schema snapshot {path}")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid schema snapshot {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Invalid schema snapshot {path}: expected a JSON object")

        try:
            schema = Schema.from_dict(data)
        except KeyError as e:
            raise ValueError(f"Invalid schema snapshot {path}: missing field {e}") from e

        logger.info(f"Loaded schema '{schema.name}' with {len(schema.tables)} table(s) from {path}")
        return schema

    def save_schema(self, database_id: str, schema: Schema) -> Path:
        """Write a snapshot, creating the directory when needed."""
        path = self.snapshot_path(database_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(schema.to_dict(), indent=2), encoding="utf-8")
        logger.debug(f"Saved schema snapshot {path}")
        return path
