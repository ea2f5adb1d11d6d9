"""
Entity catalog for dynamic_entities.

Creates one entity type per table, tracks the foreign keys that may point
at each entity, and exposes lookup, filtering and extension hooks.
"""

from dynamic_entities.catalog.database import Database, load_extension
from dynamic_entities.catalog.factory import EntityFactory
from dynamic_entities.catalog.foreign_key import ForeignKeyRegistry

__all__ = [
    "Database",
    "EntityFactory",
    "ForeignKeyRegistry",
    "load_extension",
]
