"""
Output module for rendering explored entities.

Supports:
- Python class stubs, one module per entity
- Manifest of written files
- YAML-ready relationship dumps
"""

from dynamic_entities.output.template import ModelTemplate
from dynamic_entities.output.writer import TemplateWriter, dump_relationships

__all__ = [
    "ModelTemplate",
    "TemplateWriter",
    "dump_relationships",
]
