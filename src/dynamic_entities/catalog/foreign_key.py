"""
Foreign key registry - the column names other tables may use to reference an
entity, and the relationship label each one produces.
"""

from __future__ import annotations

from typing import ClassVar, Dict, Iterator, Optional, Tuple

from dynamic_entities.models import EntityType
from dynamic_entities.utils import singularize, underscore

DEFAULT_ID_SUFFIX = "_id"


class ForeignKeyRegistry:
    """
    Tracks foreign keys that point at one entity type.

    The registry is seeded with the conventional key for the entity's table
    (``users`` -> ``user_id``). Keys added afterwards are "additional": they
    produce label-qualified relationship names during inference.

    The id suffix is process-wide and read whenever a key is generated, so
    changing it only affects registries created afterwards. Set it once
    before a run.
    """

    _id_suffix: ClassVar[Optional[str]] = None

    def __init__(self, entity: EntityType, id_suffix: Optional[str] = None):
        self.entity = entity
        self._suffix_override = id_suffix
        self.keys: Dict[str, str] = {}
        self.add(self.generate_foreign_key(entity.table_name))

    @classmethod
    def id_suffix(cls) -> str:
        return cls._id_suffix if cls._id_suffix is not None else DEFAULT_ID_SUFFIX

    @classmethod
    def set_id_suffix(cls, value: Optional[str]) -> None:
        """Change the process-wide suffix; ``None`` restores ``_id``."""
        cls._id_suffix = value

    @property
    def default_label(self) -> str:
        return underscore(self.entity.table_name)

    def add(self, key: str, label: Optional[str] = None) -> None:
        """Register ``key`` with a relationship label (defaults to the table's label)."""
        self.keys[key] = label or self.default_label

    def generate_foreign_key(self, table_name: str) -> str:
        suffix = self._suffix_override if self._suffix_override is not None else self.id_suffix()
        return singularize(table_name) + suffix

    def entries(self) -> Iterator[Tuple[str, str, bool]]:
        """Yield ``(key, label, additional)``; only the first key is not additional."""
        for position, (key, label) in enumerate(self.keys.items()):
            yield key, label, position > 0
