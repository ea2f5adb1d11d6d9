"""Naming helpers shared by the factory, registry and inference engine."""

from dynamic_entities.utils.inflector import (
    camelize,
    classify,
    pluralize,
    singularize,
    underscore,
)

__all__ = [
    "camelize",
    "classify",
    "pluralize",
    "singularize",
    "underscore",
]
