"""
Entity catalog - iterates over the tables of a database and creates an
entity type for each table that passes the skip/include filters.
"""

from __future__ import annotations

import importlib.util
import logging
import re
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Type, Union

from dynamic_entities.catalog.factory import EntityFactory
from dynamic_entities.catalog.foreign_key import ForeignKeyRegistry
from dynamic_entities.exceptions import ConfigurationError, ModelNotFound
from dynamic_entities.metadata.base import SchemaIntrospector
from dynamic_entities.models import EntityType

logger = logging.getLogger(__name__)

TableMatcher = Union[str, Pattern[str]]
Extension = Callable[[EntityType], None]

STI_DISABLED_COLUMN = "_type_disabled"
EXTENSION_SUFFIX = ".ext.py"


def load_extension(path: Path) -> Extension:
    """
    Load the ``extend(entity)`` callback defined in an extension file.

    Args:
        path: Python file defining a top-level ``extend`` function

    Returns:
        The extension callback
    """
    path = Path(path)
    module_name = "dynamic_entities_ext_" + re.sub(r"\W", "_", path.name)
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"Cannot load extension file: {path}")

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    extension = getattr(module, "extend", None)
    if not callable(extension):
        raise ConfigurationError(f"Extension file {path} does not define extend(entity)")
    return extension


class Database:
    """
    Owns the entity types created for one schema exploration.

    Filtering:
        A table is processed iff it is not skip-matched and either no
        include filters exist or it is include-matched. Strings match
        literally; compiled patterns match with ``re.search``.
    """

    def __init__(
        self,
        introspector: SchemaIntrospector,
        namespace: Optional[Dict[str, EntityType]] = None,
        entity_class: Type[EntityType] = EntityType,
    ):
        self.introspector = introspector
        self.factory = EntityFactory(introspector, namespace, entity_class)
        self.table_type_names: Dict[str, str] = {}
        self.models: List[EntityType] = []
        self.join_tables: List[EntityType] = []

        self._skip_tables: List[str] = []
        self._skip_table_matchers: List[Pattern[str]] = []
        self._include_tables: List[str] = []
        self._include_table_matchers: List[Pattern[str]] = []

    @property
    def namespace(self) -> Dict[str, EntityType]:
        return self.factory.namespace

    def skip_table(self, table: TableMatcher) -> None:
        if isinstance(table, re.Pattern):
            self._skip_table_matchers.append(table)
        else:
            self._skip_tables.append(str(table))

    def skip_tables(self, tables: Iterable[TableMatcher]) -> None:
        for table in tables:
            self.skip_table(table)

    def include_table(self, table: TableMatcher) -> None:
        if isinstance(table, re.Pattern):
            self._include_table_matchers.append(table)
        else:
            self._include_tables.append(str(table))

    def include_tables(self, tables: Iterable[TableMatcher]) -> None:
        for table in tables:
            self.include_table(table)

    @property
    def skipped_tables(self) -> List[TableMatcher]:
        return [*self._skip_tables, *self._skip_table_matchers]

    @property
    def included_tables(self) -> List[TableMatcher]:
        return [*self._include_tables, *self._include_table_matchers]

    def table_type_name(self, table_name: str, type_name: str) -> None:
        """Override the type name derived for a table."""
        self.table_type_names[str(table_name)] = type_name

    def is_skipped(self, table_name: str) -> bool:
        return (
            table_name in self._skip_tables
            or any(r.search(table_name) for r in self._skip_table_matchers)
        )

    def is_included(self, table_name: str) -> bool:
        return (
            (not self._include_tables and not self._include_table_matchers)
            or table_name in self._include_tables
            or any(r.search(table_name) for r in self._include_table_matchers)
        )

    def create_models(self) -> List[EntityType]:
        """
        Create entity types for every table that passes the filters.

        Tables are processed in introspector order. Tables with no primary
        key and exactly two foreign-key shaped columns are also recorded as
        join tables.

        Returns:
            The catalog's models
        """
        tables = self.introspector.list_tables()

        for table_name in tables:
            if self.is_skipped(table_name) or not self.is_included(table_name):
                logger.debug(f"Skipping table {table_name}")
                continue

            model = self.factory.create(table_name, self.table_type_names.get(table_name))
            if model in self.models:
                continue

            self.models.append(model)
            if self.is_join_table(model):
                logger.debug(f"Table {table_name} looks like a join table")
                self.join_tables.append(model)

        logger.info(f"Created {len(self.models)} models from {len(tables)} tables")
        return self.models

    @staticmethod
    def is_join_table(model: EntityType) -> bool:
        suffix = ForeignKeyRegistry.id_suffix().lower()
        return (
            model.primary_key is None
            and len(model.column_names) == 2
            and all(c.lower().endswith(suffix) for c in model.column_names)
        )

    def disable_standard_table_inheritance(self) -> None:
        """Stop a literal ``type`` column from acting as an inheritance discriminator."""
        for model in self.models:
            if "type" in model.column_names:
                model.inheritance_column = STI_DISABLED_COLUMN

    disable_sti = disable_standard_table_inheritance

    def get_model(self, table_name: str) -> Optional[EntityType]:
        table_name = str(table_name)
        for model in self.models:
            if model.table_name == table_name:
                return model
        return None

    def get_model_or_fail(self, table_name: str) -> EntityType:
        model = self.get_model(table_name)
        if model is None:
            raise ModelNotFound(str(table_name))
        return model

    def extend(self, table_name: str, extension: Extension) -> EntityType:
        """Apply an extension callback to the model of a table."""
        return self.update_model(table_name, extension)

    def update_model(
        self,
        table_name: str,
        extension: Optional[Extension] = None,
        file: Optional[Path] = None,
    ) -> EntityType:
        """
        Apply an extension file and/or callback to a model.

        The file's ``extend`` runs before ``extension``.
        """
        model = self.get_model_or_fail(table_name)
        if file is not None:
            load_extension(file)(model)
        if extension is not None:
            extension(model)
        return model

    def update_all_models(self, base_dir: Path, ext: str = EXTENSION_SUFFIX) -> List[EntityType]:
        """
        Apply every ``<table_name><ext>`` file in ``base_dir`` to its model.

        Returns:
            The updated models, in file name order
        """
        updated = []
        for path in sorted(Path(base_dir).glob(f"*{ext}")):
            if not path.is_file():
                continue

            table_name = path.name.split(".", 1)[0]
            updated.append(self.update_model(table_name, file=path))

        logger.info(f"Applied {len(updated)} extension files from {base_dir}")
        return updated
