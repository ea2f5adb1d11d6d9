"""
Schema introspection for dynamic_entities.

Provides a common interface to list tables, columns, indexes and primary
keys, with static (dict/YAML), SQLAlchemy and Oracle implementations.
"""

from dynamic_entities.metadata.base import SchemaIntrospector
from dynamic_entities.metadata.oracle import OracleIntrospector
from dynamic_entities.metadata.sql import SqlAlchemyIntrospector
from dynamic_entities.metadata.static import StaticIntrospector

__all__ = [
    "SchemaIntrospector",
    "OracleIntrospector",
    "SqlAlchemyIntrospector",
    "StaticIntrospector",
]
