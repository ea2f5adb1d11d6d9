"""
Static schema introspector backed by a dict or YAML document.

Used for offline exploration and tests. Document layout::

    tables:
      users:
        columns: [id, name]
        primary_key: id
      user_rollups:
        columns: [id, user_id]
        primary_key: id
        unique: [user_id]
      jobs_websites:
        columns: [job_id, website_id]
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from dynamic_entities.exceptions import ConfigurationError
from dynamic_entities.metadata.base import SchemaIntrospector
from dynamic_entities.models import IndexMetadata, TableSchema

logger = logging.getLogger(__name__)


class StaticIntrospector(SchemaIntrospector):
    """Serves schema metadata from in-memory table definitions."""

    def __init__(self, tables: Iterable[TableSchema]):
        self._tables: Dict[str, TableSchema] = {}
        for table in tables:
            self._tables[table.name] = table

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> StaticIntrospector:
        """Create from a ``{"tables": {name: {...}}}`` document."""
        tables = data.get("tables")
        if not isinstance(tables, dict):
            raise ConfigurationError("schema document needs a 'tables' mapping")
        return cls(TableSchema.from_dict(name, tdata or {}) for name, tdata in tables.items())

    @classmethod
    def from_yaml(cls, path: Path) -> StaticIntrospector:
        """Load table definitions from a YAML file."""
        path = Path(path)
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        introspector = cls.from_dict(data)
        logger.info(f"Loaded {len(introspector._tables)} table definitions from {path}")
        return introspector

    def list_tables(self) -> List[str]:
        return list(self._tables)

    def list_columns(self, table_name: str) -> List[str]:
        return list(self._table(table_name).columns)

    def list_indexes(self, table_name: str) -> List[IndexMetadata]:
        return list(self._table(table_name).indexes)

    def primary_key(self, table_name: str) -> Optional[str]:
        return self._table(table_name).primary_key

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"tables": {name: t.to_dict() for name, t in self._tables.items()}}

    def _table(self, table_name: str) -> TableSchema:
        try:
            return self._tables[table_name]
        except KeyError:
            raise KeyError(f"Unknown table: {table_name}") from None
