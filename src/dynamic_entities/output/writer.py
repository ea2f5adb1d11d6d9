"""
Template Writer - writes rendered class stubs to disk.

Output Structure:
    <output_dir>/
    ├── user.py              # one stub per entity, named after the type
    ├── employment.py
    ├── ...
    └── manifest.json        # entities, files and relationship counts
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List

from dynamic_entities.models import EntityType
from dynamic_entities.output.template import DEFAULT_BASE_CLASS, ModelTemplate
from dynamic_entities.utils import underscore

logger = logging.getLogger(__name__)


class TemplateWriter:
    """Writes one editable Python module per entity type."""

    def __init__(self, output_dir: Path, base_class: str = DEFAULT_BASE_CLASS):
        """
        Initialize the writer.

        Args:
            output_dir: Directory receiving the stubs (created if missing)
            base_class: Base class name used in every stub
        """
        self.output_dir = Path(output_dir)
        self.base_class = base_class
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def file_name(self, entity: EntityType) -> str:
        return f"{underscore(entity.type_name)}.py"

    def write(self, models: Iterable[EntityType]) -> Dict[str, Path]:
        """
        Render and write a stub for every model.

        Returns:
            Dict of table_name -> written path
        """
        models = list(models)
        output_paths: Dict[str, Path] = {}

        for entity in models:
            path = self.output_dir / self.file_name(entity)
            source = ModelTemplate(entity, self.base_class).render()
            path.write_text(f'"""Entity stub for table ``{entity.table_name}``."""\n\n\n{source}')

            output_paths[entity.table_name] = path
            logger.debug(f"Wrote {entity.type_name} to {path}")

        self._write_manifest(models, output_paths)
        logger.info(f"Wrote {len(output_paths)} entity stubs to {self.output_dir}")
        return output_paths

    def _write_manifest(
        self,
        models: List[EntityType],
        output_paths: Dict[str, Path],
    ) -> Path:
        """Write generation manifest."""
        manifest: Dict[str, Any] = {
            "generated_at": datetime.now().isoformat(),
            "base_class": self.base_class,
            "entities": {},
        }

        for entity in models:
            manifest["entities"][entity.table_name] = {
                "type_name": entity.type_name,
                "file": output_paths[entity.table_name].name,
                "relationships": len(entity.relationships),
            }

        manifest_path = self.output_dir / "manifest.json"
        with open(manifest_path, "w") as f:
            json.dump(manifest, f, indent=2, default=str)

        logger.info(f"Wrote manifest to {manifest_path}")
        return manifest_path


def dump_relationships(models: Iterable[EntityType]) -> Dict[str, Any]:
    """
    Collect all declarations into a YAML-ready dict.

    Returns:
        {"entities": {table_name: {"type_name", "primary_key", "relationships"}}}
    """
    entities = {}
    for entity in models:
        entities[entity.table_name] = {
            "type_name": entity.type_name,
            "primary_key": entity.primary_key,
            "relationships": [rel.to_dict() for rel in entity.relationships],
        }
    return {"entities": entities}
