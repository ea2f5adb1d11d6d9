"""
SQLAlchemy-backed schema introspector.

Works with any dialect SQLAlchemy can reflect (SQLite, PostgreSQL, MySQL,
...). Unique constraints are reported as unique indexes so that one-to-one
detection sees both forms.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Union

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine

from dynamic_entities.metadata.base import SchemaIntrospector, join_primary_key
from dynamic_entities.models import IndexMetadata

logger = logging.getLogger(__name__)


class SqlAlchemyIntrospector(SchemaIntrospector):
    """Introspects a database through ``sqlalchemy.inspect``."""

    def __init__(self, engine: Union[Engine, str], schema: Optional[str] = None):
        """
        Initialize the introspector.

        Args:
            engine: SQLAlchemy engine or database URL
            schema: Optional schema name to reflect instead of the default
        """
        self._owns_engine = isinstance(engine, str)
        self.engine = create_engine(engine) if isinstance(engine, str) else engine
        self.schema = schema
        self._inspector = None

    @property
    def inspector(self):
        if self._inspector is None:
            self._inspector = inspect(self.engine)
            logger.debug(f"Reflecting {self.engine.url.render_as_string(hide_password=True)}")
        return self._inspector

    def close(self) -> None:
        """Dispose of the engine if this introspector created it."""
        self._inspector = None
        if self._owns_engine:
            self.engine.dispose()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def list_tables(self) -> List[str]:
        return list(self.inspector.get_table_names(schema=self.schema))

    def list_columns(self, table_name: str) -> List[str]:
        return [col["name"] for col in self.inspector.get_columns(table_name, schema=self.schema)]

    def list_indexes(self, table_name: str) -> List[IndexMetadata]:
        indexes: List[IndexMetadata] = []
        seen = set()

        for idx in self.inspector.get_indexes(table_name, schema=self.schema):
            # expression indexes report None for their computed columns
            columns = [c for c in idx.get("column_names", []) if c is not None]
            if not columns:
                continue
            unique = bool(idx.get("unique"))
            seen.add((tuple(columns), unique))
            indexes.append(IndexMetadata(columns=columns, unique=unique, name=idx.get("name")))

        for constraint in self.inspector.get_unique_constraints(table_name, schema=self.schema):
            columns = list(constraint.get("column_names", []))
            if not columns or (tuple(columns), True) in seen:
                continue
            seen.add((tuple(columns), True))
            indexes.append(IndexMetadata(columns=columns, unique=True, name=constraint.get("name")))

        return indexes

    def primary_key(self, table_name: str) -> Optional[str]:
        pk = self.inspector.get_pk_constraint(table_name, schema=self.schema) or {}
        return join_primary_key(list(pk.get("constrained_columns") or []))
