"""
Core data models for the dynamic_entities package.

Defines entity type descriptors, the relationship declarations attached to
them, and the table/index metadata consumed from schema introspection.
"""

from __future__ import annotations

import keyword
import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

logger = logging.getLogger(__name__)


class RelationshipKind(str, Enum):
    """Kinds of relationships an entity type can declare."""
    BELONGS_TO = "belongs_to"
    HAS_MANY = "has_many"
    HAS_ONE = "has_one"
    HAS_AND_BELONGS_TO_MANY = "has_and_belongs_to_many"


@dataclass
class IndexMetadata:
    """An index reported by schema introspection."""
    columns: List[str]
    unique: bool = False
    name: Optional[str] = None

    def covers_only(self, column_name: str) -> bool:
        """Return True if this index covers exactly ``column_name`` (case-insensitive)."""
        return len(self.columns) == 1 and self.columns[0].lower() == column_name.lower()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "columns": list(self.columns),
            "unique": self.unique,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> IndexMetadata:
        """Create from dictionary."""
        return cls(
            columns=list(data["columns"]),
            unique=bool(data.get("unique", False)),
            name=data.get("name"),
        )


@dataclass
class TableSchema:
    """Structural metadata for one table."""
    name: str
    columns: List[str] = field(default_factory=list)
    primary_key: Optional[str] = None
    indexes: List[IndexMetadata] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "columns": list(self.columns),
            "primary_key": self.primary_key,
            "indexes": [i.to_dict() for i in self.indexes],
        }

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> TableSchema:
        """
        Create from dictionary.

        ``unique`` may list single columns carrying a unique index as a
        shorthand for full index entries.
        """
        indexes = [IndexMetadata.from_dict(i) for i in data.get("indexes", [])]
        for column in data.get("unique", []):
            indexes.append(IndexMetadata(columns=[column], unique=True))

        return cls(
            name=name,
            columns=list(data.get("columns", [])),
            primary_key=data.get("primary_key"),
            indexes=indexes,
        )


@dataclass
class RelationshipDeclaration:
    """A named, directed relationship attached to an entity type."""
    kind: RelationshipKind
    name: str
    target: EntityType
    foreign_key: Optional[str] = None
    primary_key: Optional[str] = None  # column the foreign key references
    join_table: Optional[str] = None  # has_and_belongs_to_many only

    @property
    def class_name(self) -> str:
        return self.target.type_name

    def same_as(self, other: RelationshipDeclaration) -> bool:
        """Return True if ``other`` describes the same edge, ignoring its name."""
        return (
            self.kind == other.kind
            and self.target is other.target
            and self.foreign_key == other.foreign_key
            and self.primary_key == other.primary_key
            and self.join_table == other.join_table
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind.value,
            "name": self.name,
            "class_name": self.class_name,
            "target_table": self.target.table_name,
            "foreign_key": self.foreign_key,
            "primary_key": self.primary_key,
            "join_table": self.join_table,
        }


@dataclass(eq=False)
class EntityType:
    """
    Descriptor for one database table as a typed entity.

    Descriptors compare by identity; exactly one exists per table within a
    catalog. Relationships are declared through the ORM-style methods
    (``belongs_to``, ``has_many``, ``has_one``,
    ``has_and_belongs_to_many``), which keep relationship names unique.
    """
    table_name: str
    type_name: str
    column_names: List[str] = field(default_factory=list)
    primary_key: Optional[str] = None
    inheritance_column: Optional[str] = "type"
    relationships: List[RelationshipDeclaration] = field(default_factory=list, repr=False)
    extensions: Dict[str, Any] = field(default_factory=dict, repr=False)

    def has_column(self, name: str) -> bool:
        """Check for a column (case-insensitive)."""
        name_lower = name.lower()
        return any(c.lower() == name_lower for c in self.column_names)

    @property
    def attribute_names(self) -> List[str]:
        """Column names that are safe to expose as attributes."""
        return [c for c in self.column_names if not is_dangerous_attribute(c)]

    @property
    def ignored_columns(self) -> List[str]:
        """Column names that would shadow keywords or descriptor attributes."""
        return [c for c in self.column_names if is_dangerous_attribute(c)]

    def belongs_to(
        self,
        name: str,
        target: EntityType,
        foreign_key: str,
        primary_key: Optional[str] = None,
    ) -> RelationshipDeclaration:
        return self.add_relationship(RelationshipDeclaration(
            kind=RelationshipKind.BELONGS_TO,
            name=name,
            target=target,
            foreign_key=foreign_key,
            primary_key=primary_key,
        ))

    def has_many(
        self,
        name: str,
        target: EntityType,
        foreign_key: str,
        primary_key: Optional[str] = None,
    ) -> RelationshipDeclaration:
        return self.add_relationship(RelationshipDeclaration(
            kind=RelationshipKind.HAS_MANY,
            name=name,
            target=target,
            foreign_key=foreign_key,
            primary_key=primary_key,
        ))

    def has_one(
        self,
        name: str,
        target: EntityType,
        foreign_key: str,
        primary_key: Optional[str] = None,
    ) -> RelationshipDeclaration:
        return self.add_relationship(RelationshipDeclaration(
            kind=RelationshipKind.HAS_ONE,
            name=name,
            target=target,
            foreign_key=foreign_key,
            primary_key=primary_key,
        ))

    def has_and_belongs_to_many(
        self,
        name: str,
        target: EntityType,
        join_table: str,
    ) -> RelationshipDeclaration:
        return self.add_relationship(RelationshipDeclaration(
            kind=RelationshipKind.HAS_AND_BELONGS_TO_MANY,
            name=name,
            target=target,
            join_table=join_table,
        ))

    def add_relationship(self, declaration: RelationshipDeclaration) -> RelationshipDeclaration:
        """
        Attach a declaration, keeping names unique on this entity.

        Re-declaring an existing edge returns the stored declaration. A
        different edge under a taken name is renamed
        ``<name>_via_<foreign key or join table>``, with a numeric suffix if
        that is taken as well.
        """
        existing = self.get_relationship(declaration.name)
        if existing is None:
            self.relationships.append(declaration)
            return declaration
        if existing.same_as(declaration):
            return existing

        qualifier = declaration.foreign_key or declaration.join_table
        base_name = f"{declaration.name}_via_{qualifier}"
        name = base_name
        counter = 2
        while True:
            taken = self.get_relationship(name)
            if taken is None:
                break
            if taken.same_as(declaration):
                return taken
            name = f"{base_name}_{counter}"
            counter += 1

        logger.warning(
            f"Relationship {declaration.name} already declared on {self.table_name}, "
            f"renamed to {name}"
        )
        declaration.name = name
        self.relationships.append(declaration)
        return declaration

    def get_relationship(self, name: str) -> Optional[RelationshipDeclaration]:
        """Get a declaration by name."""
        for rel in self.relationships:
            if rel.name == name:
                return rel
        return None

    def has_relationship(self, name: str, kind: Optional[RelationshipKind] = None) -> bool:
        """Check for a declaration by name, optionally of a given kind."""
        rel = self.get_relationship(name)
        return rel is not None and (kind is None or rel.kind == kind)

    def relationships_of(self, kind: RelationshipKind) -> List[RelationshipDeclaration]:
        """Get all declarations of one kind, in declaration order."""
        return [r for r in self.relationships if r.kind == kind]

    def define(self, name: str, value: Any) -> None:
        """Attach extension data or behaviour under ``name``."""
        self.extensions[name] = value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "table_name": self.table_name,
            "type_name": self.type_name,
            "columns": list(self.column_names),
            "primary_key": self.primary_key,
            "inheritance_column": self.inheritance_column,
            "relationships": [r.to_dict() for r in self.relationships],
        }


RESERVED_ATTRIBUTE_NAMES: FrozenSet[str] = (
    frozenset(keyword.kwlist)
    | frozenset(f.name for f in fields(EntityType))
    | frozenset(n for n in dir(EntityType) if not n.startswith("_"))
)


def is_dangerous_attribute(name: str) -> bool:
    """Return True if a column name would clash as an attribute name."""
    return name in RESERVED_ATTRIBUTE_NAMES or name.startswith("__")
