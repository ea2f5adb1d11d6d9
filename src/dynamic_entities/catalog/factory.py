"""
Entity type factory - creates or fetches the descriptor for a table.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Type

from dynamic_entities.exceptions import TypeNameCollision
from dynamic_entities.metadata.base import SchemaIntrospector
from dynamic_entities.models import EntityType
from dynamic_entities.utils import classify

logger = logging.getLogger(__name__)

# Prefix for type names that would otherwise start with a digit
DIGIT_PREFIX = "N"


class EntityFactory:
    """
    Creates entity types and registers them in a namespace keyed by type name.

    Creation is idempotent: asking again for the same table returns the
    registered descriptor. Two different tables resolving to one type name
    raise ``TypeNameCollision``.
    """

    def __init__(
        self,
        introspector: SchemaIntrospector,
        namespace: Optional[Dict[str, EntityType]] = None,
        entity_class: Type[EntityType] = EntityType,
    ):
        """
        Initialize the factory.

        Args:
            introspector: Source of column and primary key metadata
            namespace: Shared mapping of type name -> entity type
            entity_class: EntityType subclass to instantiate
        """
        self.introspector = introspector
        self.namespace: Dict[str, EntityType] = namespace if namespace is not None else {}
        self.entity_class = entity_class

    def create(self, table_name: str, type_name: Optional[str] = None) -> EntityType:
        """
        Create the entity type for a table, or return the existing one.

        Args:
            table_name: Table to describe
            type_name: Explicit type name overriding the derived one

        Returns:
            The registered EntityType
        """
        type_name = type_name or self.generate_type_name(table_name)

        existing = self.namespace.get(type_name)
        if existing is not None:
            if existing.table_name != table_name:
                raise TypeNameCollision(type_name, existing.table_name, table_name)
            return existing

        entity = self.entity_class(
            table_name=table_name,
            type_name=type_name,
            column_names=self.introspector.list_columns(table_name),
            primary_key=self.introspector.primary_key(table_name),
        )
        self.namespace[type_name] = entity
        logger.debug(f"Created {type_name} for table {table_name}")
        return entity

    def generate_type_name(self, table_name: str) -> str:
        name = classify(table_name)
        if name[:1].isdigit():
            name = DIGIT_PREFIX + name
        return name
