"""
Explorer configuration.

Collects everything a schema exploration needs - where the schema comes
from, table filters, manual foreign keys, type name overrides and the
extension directory - and loads it from YAML::

    connection_url: sqlite:///app.db
    skip_tables:
      - tmp_load_data_table
      - stats_*
    relationships:
      websites:
        company_website_id: company_website
    table_type_names:
      websites: CompanyWebsite
    extensions_path: db/extensions
    id_suffix: _id
    disable_sti: true
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from dynamic_entities.exceptions import ConfigurationError
from dynamic_entities.metadata.base import SchemaIntrospector

logger = logging.getLogger(__name__)


@dataclass
class ExplorerConfig:
    """Configuration for one schema exploration."""
    connection_url: Optional[str] = None  # SQLAlchemy URL
    oracle_conn: Optional[str] = None  # user/pwd@host:port/service
    schema: Optional[str] = None  # schema/owner to introspect
    schema_file: Optional[Path] = None  # static YAML schema

    skip_tables: List[str] = field(default_factory=list)
    include_tables: List[str] = field(default_factory=list)
    table_type_names: Dict[str, str] = field(default_factory=dict)

    # {referenced_table: {fk_column: relationship_name}}
    relationships: Dict[str, Dict[str, Optional[str]]] = field(default_factory=dict)

    extensions_path: Optional[Path] = None
    id_suffix: Optional[str] = None
    disable_sti: bool = False

    def __post_init__(self):
        if isinstance(self.schema_file, str):
            self.schema_file = Path(self.schema_file)
        if isinstance(self.extensions_path, str):
            self.extensions_path = Path(self.extensions_path)

    def skip_table(self, table: str) -> None:
        self.skip_tables.append(table)

    def foreign_key(
        self,
        table_name: str,
        foreign_key: str,
        relationship_name: Optional[str] = None,
    ) -> None:
        """Register a manual foreign key pointing at ``table_name``."""
        self.relationships.setdefault(table_name, {})[foreign_key] = relationship_name

    def build_introspector(self) -> SchemaIntrospector:
        """
        Create the introspector for the configured schema source.

        Precedence: schema_file, then connection_url, then oracle_conn.
        """
        if self.schema_file:
            from dynamic_entities.metadata.static import StaticIntrospector
            return StaticIntrospector.from_yaml(self.schema_file)

        if self.connection_url:
            from dynamic_entities.metadata.sql import SqlAlchemyIntrospector
            return SqlAlchemyIntrospector(self.connection_url, schema=self.schema)

        if self.oracle_conn:
            from dynamic_entities.metadata.oracle import OracleIntrospector
            return OracleIntrospector(self.oracle_conn, schema=self.schema)

        raise ConfigurationError(
            "No schema source configured: set schema_file, connection_url or oracle_conn"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "connection_url": self.connection_url,
            "oracle_conn": self.oracle_conn,
            "schema": self.schema,
            "schema_file": str(self.schema_file) if self.schema_file else None,
            "skip_tables": list(self.skip_tables),
            "include_tables": list(self.include_tables),
            "table_type_names": dict(self.table_type_names),
            "relationships": {t: dict(fks) for t, fks in self.relationships.items()},
            "extensions_path": str(self.extensions_path) if self.extensions_path else None,
            "id_suffix": self.id_suffix,
            "disable_sti": self.disable_sti,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ExplorerConfig:
        """Create from dictionary, rejecting unknown keys and malformed sections."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

        for key in ("skip_tables", "include_tables"):
            if not isinstance(data.get(key, []), list):
                raise ConfigurationError(f"'{key}' must be a list of table names")

        relationships = data.get("relationships") or {}
        if not isinstance(relationships, dict) or not all(
            isinstance(fks, dict) for fks in relationships.values()
        ):
            raise ConfigurationError(
                "'relationships' must map table names to {foreign_key: relationship_name}"
            )

        return cls(
            connection_url=data.get("connection_url"),
            oracle_conn=data.get("oracle_conn"),
            schema=data.get("schema"),
            schema_file=data.get("schema_file"),
            skip_tables=[str(t) for t in data.get("skip_tables", [])],
            include_tables=[str(t) for t in data.get("include_tables", [])],
            table_type_names=dict(data.get("table_type_names") or {}),
            relationships={t: dict(fks) for t, fks in relationships.items()},
            extensions_path=data.get("extensions_path"),
            id_suffix=data.get("id_suffix"),
            disable_sti=bool(data.get("disable_sti", False)),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> ExplorerConfig:
        """Load configuration from a YAML file."""
        path = Path(path)
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")

        config = cls.from_dict(data)
        logger.info(f"Loaded explorer configuration from {path}")
        return config
