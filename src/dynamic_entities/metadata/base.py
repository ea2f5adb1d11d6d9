"""
Schema introspection interface consumed by the catalog and inference engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from dynamic_entities.models import IndexMetadata, TableSchema


class SchemaIntrospector(ABC):
    """
    Supplies tables, columns, indexes and primary keys of a database.

    Implementations are blocking; connection handling, retries and timeouts
    are their own concern.
    """

    @abstractmethod
    def list_tables(self) -> List[str]:
        """Return table names in discovery order."""

    @abstractmethod
    def list_columns(self, table_name: str) -> List[str]:
        """Return column names in schema order."""

    @abstractmethod
    def list_indexes(self, table_name: str) -> List[IndexMetadata]:
        """Return indexes defined on a table."""

    @abstractmethod
    def primary_key(self, table_name: str) -> Optional[str]:
        """Return the primary key column, comma-joined if composite, or None."""

    def describe(self, table_name: str) -> TableSchema:
        """Collect everything known about one table."""
        return TableSchema(
            name=table_name,
            columns=self.list_columns(table_name),
            primary_key=self.primary_key(table_name),
            indexes=self.list_indexes(table_name),
        )


def join_primary_key(columns: List[str]) -> Optional[str]:
    """Collapse primary key columns into the single-string form."""
    if not columns:
        return None
    return ",".join(columns)
