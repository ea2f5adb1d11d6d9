"""
Discovery module for deriving entity relationships from schema structure.

Relationships are inferred without manual configuration, using:
- Foreign key column naming conventions (``user_id`` -> ``users``)
- Unique single-column indexes (one-to-one)
- Join tables without a primary key (many-to-many)

Manual foreign keys can be registered for columns that break the naming
convention.

Usage:
    from dynamic_entities.discovery import explore

    database = explore(introspector, skip_tables=["stats_*"])
"""

from dynamic_entities.discovery.relationship_inferrer import ForeignKeyMatch, RelationshipInferrer
from dynamic_entities.discovery.explorer import Explorer, explore, table_matcher

__all__ = [
    "ForeignKeyMatch",
    "RelationshipInferrer",
    "Explorer",
    "explore",
    "table_matcher",
]
