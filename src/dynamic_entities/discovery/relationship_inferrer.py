"""
Relationship Inferrer - declares relationships between the entity types of
a catalog.

Relationships are derived from structure alone:
1. Foreign key columns, matched by name against every entity's registry
   (``user_id`` -> ``users``, plus manually registered keys)
2. Unique single-column indexes, which turn has_many into has_one
3. Join tables (no primary key, two foreign key columns), which produce
   has_and_belongs_to_many on both sides
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from dynamic_entities.catalog.database import Database
from dynamic_entities.catalog.foreign_key import ForeignKeyRegistry
from dynamic_entities.exceptions import ModelNotFound
from dynamic_entities.models import EntityType, IndexMetadata, RelationshipDeclaration
from dynamic_entities.utils import pluralize, singularize, underscore

logger = logging.getLogger(__name__)


@dataclass
class ForeignKeyMatch:
    """An entity a foreign key column name may reference."""
    entity: EntityType
    label: str
    additional: bool = False


class RelationshipInferrer:
    """
    Infers and declares relationships for every model of a catalog.

    For each column of each model whose name matches a registered foreign
    key of another model:

    - the column's model ``belongs_to`` the referenced model
    - the referenced model ``has_one`` the column's model when the column
      carries a unique single-column index, otherwise ``has_many``

    Relationships are declared in model order, then column order, so the
    same schema always yields the same declarations.
    """

    def __init__(self, database: Database):
        """
        Initialize the inferrer.

        Args:
            database: Catalog whose models have already been created
        """
        self.database = database
        self.table_indexes: Dict[str, List[IndexMetadata]] = {}
        self._foreign_keys: Dict[str, ForeignKeyRegistry] = {}

        for model in database.models:
            self._foreign_keys[model.table_name] = ForeignKeyRegistry(model)
            self.table_indexes[model.table_name] = database.introspector.list_indexes(model.table_name)

    def add_foreign_key(
        self,
        table_name: str,
        foreign_key: str,
        relationship_name: Optional[str] = None,
    ) -> None:
        """
        Register an extra column name that references a table.

        Args:
            table_name: Referenced table
            foreign_key: Column name used by other tables
            relationship_name: Label for the generated relationships
        """
        self.foreign_keys(table_name).add(foreign_key, relationship_name)

    def foreign_keys(self, table_name: str) -> ForeignKeyRegistry:
        registry = self._foreign_keys.get(str(table_name))
        if registry is None:
            raise ModelNotFound(str(table_name))
        return registry

    def build(self) -> List[RelationshipDeclaration]:
        """
        Declare relationships on all models.

        Returns:
            Declarations made during this pass, in declaration order
        """
        fk_map = self.create_foreign_key_map()
        declared: List[RelationshipDeclaration] = []

        for model in self.database.models:
            for column_name in model.column_names:
                for match in fk_map.get(column_name.lower(), []):
                    if match.entity is model:
                        continue
                    declared.extend(self._add_relationships(model, match, column_name))

        for join_table in self.database.join_tables:
            declared.extend(self._add_many_to_many(join_table, fk_map))

        logger.info(
            f"Declared {len(declared)} relationships across "
            f"{len(self.database.models)} models"
        )
        return declared

    def create_foreign_key_map(self) -> Dict[str, List[ForeignKeyMatch]]:
        """Map lowercase foreign key names to the entities they may reference."""
        fk_map: Dict[str, List[ForeignKeyMatch]] = {}
        for registry in self._foreign_keys.values():
            for key, label, additional in registry.entries():
                fk_map.setdefault(key.lower(), []).append(
                    ForeignKeyMatch(entity=registry.entity, label=label, additional=additional)
                )
        return fk_map

    def _add_relationships(
        self,
        model: EntityType,
        match: ForeignKeyMatch,
        foreign_key: str,
    ) -> List[RelationshipDeclaration]:
        target = match.entity
        logger.debug(f"{model.table_name}.{foreign_key} references {target.table_name}")

        belongs_to = model.belongs_to(
            singularize(match.label),
            target,
            foreign_key=foreign_key,
            primary_key=target.primary_key,
        )

        if self._unique_index(model, foreign_key):
            reverse = target.has_one(
                self._has_one_name(match, model),
                model,
                foreign_key=foreign_key,
                primary_key=target.primary_key,
            )
        else:
            reverse = target.has_many(
                self._has_many_name(match, model),
                model,
                foreign_key=foreign_key,
                primary_key=target.primary_key,
            )

        return [belongs_to, reverse]

    def _add_many_to_many(
        self,
        join_table: EntityType,
        fk_map: Dict[str, List[ForeignKeyMatch]],
    ) -> List[RelationshipDeclaration]:
        targets: List[EntityType] = []
        for column_name in join_table.column_names:
            match = next(
                (m for m in fk_map.get(column_name.lower(), []) if m.entity is not join_table),
                None,
            )
            if match is not None and match.entity not in targets:
                targets.append(match.entity)

        if len(targets) != 2:
            logger.debug(
                f"Skipping join table {join_table.table_name}: "
                f"columns resolve to {len(targets)} distinct models"
            )
            return []

        first, second = targets
        return [
            first.has_and_belongs_to_many(
                pluralize(underscore(second.table_name)),
                second,
                join_table=join_table.table_name,
            ),
            second.has_and_belongs_to_many(
                pluralize(underscore(first.table_name)),
                first,
                join_table=join_table.table_name,
            ),
        ]

    def _is_default_label(self, match: ForeignKeyMatch) -> bool:
        return match.label == self._foreign_keys[match.entity.table_name].default_label

    def _has_many_name(self, match: ForeignKeyMatch, model: EntityType) -> str:
        if self._is_default_label(match) and not match.additional:
            name = model.table_name
        else:
            name = f"{match.label}_{model.table_name}"
        return pluralize(underscore(name))

    def _has_one_name(self, match: ForeignKeyMatch, model: EntityType) -> str:
        if not self._is_default_label(match):
            name = match.label
        elif match.additional:
            name = f"{match.label}_{model.table_name}"
        else:
            name = model.table_name
        return singularize(underscore(name))

    def _unique_index(self, model: EntityType, foreign_key: str) -> bool:
        return any(
            index.unique and index.covers_only(foreign_key)
            for index in self.table_indexes.get(model.table_name, [])
        )
