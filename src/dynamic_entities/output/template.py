"""
Model Template - renders an entity type as an editable Python class stub.

Options are only written where a declaration deviates from convention, so
a stub for a conventional schema reads like a hand-written model::

    class Employment(Entity):
        user = belongs_to("User")
        company = belongs_to("Company")
"""

from __future__ import annotations

from typing import List, Optional

from dynamic_entities.catalog.foreign_key import ForeignKeyRegistry
from dynamic_entities.models import EntityType, RelationshipDeclaration, RelationshipKind
from dynamic_entities.utils import pluralize, singularize, underscore

DEFAULT_BASE_CLASS = "Entity"
DEFAULT_PRIMARY_KEY = "id"
DEFAULT_INHERITANCE_COLUMN = "type"

INDENT = "    "


class ModelTemplate:
    """Renders one entity type and its relationship declarations."""

    def __init__(self, entity: EntityType, base_class: str = DEFAULT_BASE_CLASS):
        self.entity = entity
        self.base_class = base_class

    def render(self) -> str:
        """Return the class source, terminated by a newline."""
        lines = [f"class {self.entity.type_name}({self.base_class}):"]

        header = self._header_lines()
        body = [self.render_relationship(rel) for rel in self.entity.relationships]

        lines.extend(INDENT + line for line in header)
        if header and body:
            lines.append("")
        lines.extend(INDENT + line for line in body)

        if not header and not body:
            lines.append(INDENT + "pass")

        return "\n".join(lines) + "\n"

    def render_relationship(self, rel: RelationshipDeclaration) -> str:
        args = [f'"{rel.class_name}"']

        if rel.kind == RelationshipKind.HAS_AND_BELONGS_TO_MANY:
            args.append(f'join_table="{rel.join_table}"')
        else:
            if rel.foreign_key and rel.foreign_key != self.default_foreign_key(rel):
                args.append(f'foreign_key="{rel.foreign_key}"')
            if rel.primary_key and rel.primary_key != DEFAULT_PRIMARY_KEY:
                args.append(f'primary_key="{rel.primary_key}"')

        return f"{rel.name} = {rel.kind.value}({', '.join(args)})"

    def default_foreign_key(self, rel: RelationshipDeclaration) -> Optional[str]:
        """The foreign key an ORM would assume for a declaration."""
        suffix = ForeignKeyRegistry.id_suffix()
        if rel.kind == RelationshipKind.BELONGS_TO:
            return rel.name + suffix
        if rel.kind in (RelationshipKind.HAS_MANY, RelationshipKind.HAS_ONE):
            return singularize(underscore(self.entity.table_name)) + suffix
        return None

    def conventional_table_name(self) -> str:
        return pluralize(underscore(self.entity.type_name))

    def _header_lines(self) -> List[str]:
        lines = []
        if self.entity.table_name != self.conventional_table_name():
            lines.append(f'__tablename__ = "{self.entity.table_name}"')
        if self.entity.inheritance_column != DEFAULT_INHERITANCE_COLUMN:
            lines.append(f'__inheritance_column__ = "{self.entity.inheritance_column}"')
        if self.entity.ignored_columns:
            ignored = ", ".join(f'"{c}"' for c in self.entity.ignored_columns)
            lines.append(f"__ignored_columns__ = [{ignored}]")
        return lines
