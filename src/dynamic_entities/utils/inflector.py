"""
Table and type name inflection.

Only the last underscore-separated word of a name is inflected, so
``user_rollups`` singularizes to ``user_rollup`` and
``company_website_companies`` is already plural.
"""

from __future__ import annotations

import re
from typing import Tuple

import inflect

_engine = inflect.engine()

_ACRONYM_BOUNDARY = re.compile(r"([A-Z\d]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")

# Endings of singular nouns (address, bus, analysis)
SINGULAR_ENDINGS = ("ss", "us", "is")


def _split_last_word(word: str) -> Tuple[str, str]:
    head, sep, last = word.rpartition("_")
    return head + sep, last


def _is_plural(word: str) -> bool:
    """
    Return True if ``word`` is a plural noun.

    singular_noun() assumes plural input and strips the "s" of singular
    words such as ``address`` or ``bus``, so its answer is only trusted
    when pluralizing it gives back ``word``.
    """
    if word.lower().endswith(SINGULAR_ENDINGS):
        return False
    singular = _engine.singular_noun(word)
    return bool(singular) and _engine.plural_noun(singular) == word


def singularize(word: str) -> str:
    """Return the singular form of ``word``; singular words are returned unchanged."""
    prefix, last = _split_last_word(word)
    if not last or not _is_plural(last):
        return word
    return prefix + _engine.singular_noun(last)


def pluralize(word: str) -> str:
    """Return the plural form of ``word``; plural words are returned unchanged."""
    prefix, last = _split_last_word(word)
    if not last or _is_plural(last):
        return word
    return prefix + _engine.plural_noun(last)


def underscore(word: str) -> str:
    """Convert ``CamelCase`` or dashed names to lowercase ``snake_case``."""
    word = _ACRONYM_BOUNDARY.sub(r"\1_\2", word)
    word = _WORD_BOUNDARY.sub(r"\1_\2", word)
    return word.replace("-", "_").lower()


def camelize(word: str) -> str:
    """Convert ``snake_case`` to ``CamelCase``."""
    return "".join(part[:1].upper() + part[1:] for part in word.split("_") if part)


def classify(table_name: str) -> str:
    """
    Derive a type name from a table name.

    A schema prefix (``core.users``) is dropped, the last word is
    singularized and the result camelized: ``jobs_websites`` -> ``JobsWebsite``.
    """
    name = table_name.rsplit(".", 1)[-1]
    return camelize(singularize(underscore(name)))
