"""
Exceptions raised by dynamic_entities.

Only explicit lookups and naming collisions raise; relationship inference
itself never does.
"""


class DynamicEntitiesError(Exception):
    """Base class for all dynamic_entities errors."""


class ModelNotFound(DynamicEntitiesError, LookupError):
    """Raised when no entity type exists for a requested table."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"no model found for table {table_name}")


class TypeNameCollision(DynamicEntitiesError):
    """Raised when two different tables resolve to the same type name."""

    def __init__(self, type_name: str, existing_table: str, table_name: str):
        self.type_name = type_name
        self.existing_table = existing_table
        self.table_name = table_name
        super().__init__(
            f"type name {type_name} for table {table_name} is already used by "
            f"table {existing_table}; set an explicit type name for one of them"
        )


class ConfigurationError(DynamicEntitiesError, ValueError):
    """Raised for invalid or incomplete explorer configuration."""
