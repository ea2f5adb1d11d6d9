"""
Oracle schema introspector using oracledb.

Reads tables, columns, indexes and primary keys from the Oracle data
dictionary views.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from dynamic_entities.metadata.base import SchemaIntrospector, join_primary_key
from dynamic_entities.models import IndexMetadata

logger = logging.getLogger(__name__)


def parse_connection_string(connection_string: str) -> Tuple[str, str, str, str, str]:
    """
    Split ``user/pwd@host:port/service`` into its parts.

    Returns:
        Tuple of (user, password, host, port, service). ``host`` holds the
        whole DSN (e.g. a TNS alias) when no port is given.
    """
    parts = connection_string.split("@")
    user_pwd = parts[0]
    host_service = parts[1] if len(parts) > 1 else ""

    user, password = user_pwd.split("/", 1) if "/" in user_pwd else (user_pwd, "")

    if ":" not in host_service:
        return user, password, host_service, "", ""

    host_port, service = host_service.rsplit("/", 1) if "/" in host_service else (host_service, "")
    host, port = host_port.split(":") if ":" in host_port else (host_port, "1521")
    return user, password, host, port, service


class OracleIntrospector(SchemaIntrospector):
    """
    Introspects an Oracle schema.

    Uses Oracle data dictionary views:
    - ALL_TABLES
    - ALL_TAB_COLUMNS
    - ALL_INDEXES / ALL_IND_COLUMNS
    - ALL_CONSTRAINTS / ALL_CONS_COLUMNS
    """

    def __init__(self, connection_string: str, schema: Optional[str] = None):
        """
        Initialize introspector with Oracle connection.

        Args:
            connection_string: Oracle connection string (user/pwd@host:port/service)
            schema: Owner to introspect (defaults to the connecting user)
        """
        self.connection_string = connection_string
        user = parse_connection_string(connection_string)[0]
        self.owner = (schema or user).upper()
        self._conn = None

    def connect(self) -> None:
        """Establish database connection."""
        import oracledb

        user, password, host, port, service = parse_connection_string(self.connection_string)
        if port:
            dsn = oracledb.makedsn(host, int(port), service_name=service)
        else:
            dsn = host

        self._conn = oracledb.connect(user=user, password=password, dsn=dsn)
        logger.info(f"Connected to Oracle database as {user}")

    def disconnect(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def list_tables(self) -> List[str]:
        rows = self._fetch("""
            SELECT table_name
            FROM all_tables
            WHERE owner = :owner
            ORDER BY table_name
        """, owner=self.owner)
        return [row[0] for row in rows]

    def list_columns(self, table_name: str) -> List[str]:
        rows = self._fetch("""
            SELECT column_name
            FROM all_tab_columns
            WHERE owner = :owner AND table_name = :table_name
            ORDER BY column_id
        """, owner=self.owner, table_name=table_name)
        return [row[0] for row in rows]

    def list_indexes(self, table_name: str) -> List[IndexMetadata]:
        rows = self._fetch("""
            SELECT i.index_name, i.uniqueness, ic.column_name
            FROM all_indexes i
            JOIN all_ind_columns ic
                ON i.owner = ic.index_owner
                AND i.index_name = ic.index_name
            WHERE i.table_owner = :owner
                AND i.table_name = :table_name
            ORDER BY i.index_name, ic.column_position
        """, owner=self.owner, table_name=table_name)

        indexes: Dict[str, IndexMetadata] = {}
        for index_name, uniqueness, column_name in rows:
            if index_name not in indexes:
                indexes[index_name] = IndexMetadata(
                    columns=[],
                    unique=uniqueness == "UNIQUE",
                    name=index_name,
                )
            indexes[index_name].columns.append(column_name)

        return list(indexes.values())

    def primary_key(self, table_name: str) -> Optional[str]:
        rows = self._fetch("""
            SELECT cc.column_name
            FROM all_constraints c
            JOIN all_cons_columns cc
                ON c.owner = cc.owner
                AND c.constraint_name = cc.constraint_name
            WHERE c.owner = :owner
                AND c.table_name = :table_name
                AND c.constraint_type = 'P'
            ORDER BY cc.position
        """, owner=self.owner, table_name=table_name)
        return join_primary_key([row[0] for row in rows])

    def _fetch(self, sql: str, **params) -> List[tuple]:
        if not self._conn:
            self.connect()

        cursor = self._conn.cursor()
        try:
            cursor.execute(sql, **params)
            return list(cursor)
        finally:
            cursor.close()
