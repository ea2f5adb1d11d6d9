"""
Explorer - creates entity types and relationships for a whole schema.

Sequence:
1. List tables through the introspector
2. Create an entity type per table that passes the skip/include filters
3. Register manual foreign keys
4. Infer and declare relationships

Usage:
    from dynamic_entities import explore
    from dynamic_entities.metadata import SqlAlchemyIntrospector

    database = explore(
        SqlAlchemyIntrospector("sqlite:///app.db"),
        skip_tables=["stats_*"],
        relationships={"websites": {"company_website_id": "company_website"}},
    )
"""

from __future__ import annotations

import fnmatch
import logging
import re
from typing import Dict, Iterable, Mapping, Optional

from dynamic_entities.catalog.database import Database, TableMatcher
from dynamic_entities.catalog.foreign_key import ForeignKeyRegistry
from dynamic_entities.config import ExplorerConfig
from dynamic_entities.discovery.relationship_inferrer import RelationshipInferrer
from dynamic_entities.metadata.base import SchemaIntrospector
from dynamic_entities.models import EntityType

logger = logging.getLogger(__name__)

Relationships = Mapping[str, Mapping[str, Optional[str]]]

GLOB_CHARS = ("*", "?", "[")


def table_matcher(table: TableMatcher) -> TableMatcher:
    """Turn ``stats_*`` style names into anchored patterns; other names stay literal."""
    if isinstance(table, str) and any(ch in table for ch in GLOB_CHARS):
        return re.compile(r"\A" + fnmatch.translate(table))
    return table


class Explorer:
    """
    Sequences schema exploration for one introspector.

    Each call to ``explore`` builds an independent catalog; nothing is
    cached between runs apart from the shared namespace, if one is given.
    """

    def __init__(
        self,
        introspector: SchemaIntrospector,
        namespace: Optional[Dict[str, EntityType]] = None,
    ):
        self.introspector = introspector
        self.namespace = namespace
        self.inferrer: Optional[RelationshipInferrer] = None

    @classmethod
    def from_config(cls, config: ExplorerConfig) -> Database:
        """
        Explore the schema described by a configuration.

        Applies the FK suffix, filters, type name overrides and manual
        foreign keys, then optional STI disabling and extension files.
        The process-wide suffix is always reset: a config without
        ``id_suffix`` restores the default ``_id``.
        """
        ForeignKeyRegistry.set_id_suffix(config.id_suffix)

        explorer = cls(config.build_introspector())
        database = explorer.explore(
            skip_tables=config.skip_tables,
            include_tables=config.include_tables,
            relationships=config.relationships,
            table_type_names=config.table_type_names,
        )

        if config.disable_sti:
            database.disable_standard_table_inheritance()
        if config.extensions_path:
            database.update_all_models(config.extensions_path)

        return database

    def explore(
        self,
        skip_tables: Iterable[TableMatcher] = (),
        relationships: Optional[Relationships] = None,
        include_tables: Iterable[TableMatcher] = (),
        table_type_names: Optional[Mapping[str, str]] = None,
    ) -> Database:
        """
        Create models and relationships.

        Args:
            skip_tables: Table names, glob-style names or compiled patterns to skip
            relationships: Manual foreign keys as {table: {fk_column: label}}
            include_tables: Table names or patterns to restrict exploration to
            table_type_names: Type name overrides as {table: type_name}

        Returns:
            Database holding the created models
        """
        logger.info("Starting schema exploration")

        database = self.create_models(skip_tables, include_tables, table_type_names)
        self.build_relationships(database, relationships or {})

        logger.info(f"Exploration complete: {len(database.models)} models")
        return database

    def create_models(
        self,
        skip_tables: Iterable[TableMatcher] = (),
        include_tables: Iterable[TableMatcher] = (),
        table_type_names: Optional[Mapping[str, str]] = None,
    ) -> Database:
        database = Database(self.introspector, self.namespace)
        database.skip_tables(table_matcher(t) for t in skip_tables)
        database.include_tables(table_matcher(t) for t in include_tables)
        for table_name, type_name in (table_type_names or {}).items():
            database.table_type_name(table_name, type_name)

        database.create_models()
        return database

    def build_relationships(
        self,
        database: Database,
        relationships: Relationships,
    ) -> RelationshipInferrer:
        inferrer = RelationshipInferrer(database)
        for table_name, foreign_keys in relationships.items():
            for foreign_key, relationship_name in foreign_keys.items():
                inferrer.add_foreign_key(table_name, foreign_key, relationship_name)

        inferrer.build()
        self.inferrer = inferrer
        return inferrer


def explore(
    introspector: SchemaIntrospector,
    skip_tables: Iterable[TableMatcher] = (),
    relationships: Optional[Relationships] = None,
    include_tables: Iterable[TableMatcher] = (),
    table_type_names: Optional[Mapping[str, str]] = None,
    namespace: Optional[Dict[str, EntityType]] = None,
) -> Database:
    """
    Convenience function to explore a schema in one call.

    Returns:
        Database with models and declared relationships
    """
    explorer = Explorer(introspector, namespace)
    return explorer.explore(
        skip_tables=skip_tables,
        relationships=relationships,
        include_tables=include_tables,
        table_type_names=table_type_names,
    )
