"""
Dynamic Entities - Entity types and relationships derived from database schemas

Inspects a relational schema at runtime and builds one entity type per
table, with relationships inferred from its structure.

Features:
- belongs_to / has_many from foreign key column naming conventions
- has_one from unique single-column indexes
- has_and_belongs_to_many from join tables without a primary key
- Manual foreign keys, table filters and type name overrides
- SQLAlchemy, Oracle and static YAML schema introspection
- Editable Python class stubs generated from the explored model
"""

__version__ = "0.1.0"

from dynamic_entities.models import (
    EntityType,
    IndexMetadata,
    RelationshipDeclaration,
    RelationshipKind,
    TableSchema,
)

from dynamic_entities.exceptions import (
    ConfigurationError,
    DynamicEntitiesError,
    ModelNotFound,
    TypeNameCollision,
)

from dynamic_entities.catalog import Database, EntityFactory, ForeignKeyRegistry
from dynamic_entities.config import ExplorerConfig

# Import discovery module
from dynamic_entities.discovery import Explorer, RelationshipInferrer, explore

# Import output module
from dynamic_entities.output import ModelTemplate, TemplateWriter, dump_relationships

__all__ = [
    # Core models
    "EntityType",
    "IndexMetadata",
    "RelationshipDeclaration",
    "RelationshipKind",
    "TableSchema",
    # Errors
    "ConfigurationError",
    "DynamicEntitiesError",
    "ModelNotFound",
    "TypeNameCollision",
    # Catalog
    "Database",
    "EntityFactory",
    "ForeignKeyRegistry",
    "ExplorerConfig",
    # Discovery
    "Explorer",
    "RelationshipInferrer",
    "explore",
    # Output
    "ModelTemplate",
    "TemplateWriter",
    "dump_relationships",
]
