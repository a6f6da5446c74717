# File: eavgen/naming.py
"""
EAVGen - Name Resolver
========================

Pure string functions that turn model slugs and field keys into table and
column names under the active naming convention.

Rules:
- PascalCase / camelCase treat ``-`` and ``_`` as word boundaries; every
  word keeps only its first letter capitalised.
- snake_case inserts ``_`` before each uppercase letter and lowercases.
- Only ASCII letters, digits, hyphens and underscores are expected.

Every function is wrapped in ``functools.lru_cache`` because the same
slug is resolved many times per run (base table, translation table,
component tables, junction tables, relation targets).
"""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass, field, replace
from typing import FrozenSet, List, Optional

from eavgen.models import NamingConvention

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("eavgen.naming")

# ---------------------------------------------------------------------------
# Pre-compiled patterns
# ---------------------------------------------------------------------------

_WORD_BOUNDARY_RE: re.Pattern[str] = re.compile(r"[-_]")
_UPPERCASE_RE: re.Pattern[str] = re.compile(r"[A-Z]")

IDENTIFIER_PLACEHOLDER: str = "${identifier}"
DEFAULT_TRANSLATION_PATTERN: str = "${identifier}_translation"
TRANSLATION_SUFFIX: str = "Translation"


# ---------------------------------------------------------------------------
# Case conversion
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_pascal_case(value: str) -> str:
    """
    Convert a slug or key to PascalCase.

    Examples:
        >>> to_pascal_case("blog-post")
        'BlogPost'
        >>> to_pascal_case("meta_title")
        'MetaTitle'
        >>> to_pascal_case("SEO")
        'Seo'
    """
    words: List[str] = _WORD_BOUNDARY_RE.split(value)
    return "".join(word[:1].upper() + word[1:].lower() for word in words)


@functools.lru_cache(maxsize=None)
def to_camel_case(value: str) -> str:
    """
    Convert a slug or key to camelCase.

    Examples:
        >>> to_camel_case("blog-post")
        'blogPost'
    """
    pascal: str = to_pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


@functools.lru_cache(maxsize=None)
def to_snake_case(value: str) -> str:
    """
    Convert a PascalCase / camelCase identifier to snake_case.

    Examples:
        >>> to_snake_case("PostSeo")
        'post_seo'
        >>> to_snake_case("blogPost")
        'blog_post'
        >>> to_snake_case("already_snake")
        'already_snake'
    """
    converted: str = _UPPERCASE_RE.sub(lambda m: f"_{m.group(0).lower()}", value)
    return converted[1:] if converted.startswith("_") else converted


@functools.lru_cache(maxsize=None)
def to_column_case(value: str, convention: NamingConvention) -> str:
    """Re-case *value* for use as a column name under *convention*."""
    if convention == NamingConvention.SNAKE_CASE:
        return to_snake_case(value)
    if convention == NamingConvention.CAMEL_CASE:
        return to_camel_case(value)
    return to_pascal_case(value)


# ---------------------------------------------------------------------------
# Table names
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_table_name(
    slug: str,
    convention: NamingConvention = NamingConvention.PASCAL_CASE,
    prefix: Optional[str] = None,
) -> str:
    """
    Resolve a model/component slug to its table name.

    Examples:
        >>> to_table_name("blog-post")
        'BlogPost'
        >>> to_table_name("blog-post", NamingConvention.SNAKE_CASE)
        'blog_post'
        >>> to_table_name("post", NamingConvention.PASCAL_CASE, "Cms")
        'CmsPost'
    """
    if convention == NamingConvention.SNAKE_CASE:
        name: str = slug.replace("-", "_")
    elif convention == NamingConvention.CAMEL_CASE:
        name = to_camel_case(slug)
    else:
        name = to_pascal_case(slug)
    return f"{prefix}{name}" if prefix else name


@functools.lru_cache(maxsize=None)
def to_translation_table_name(
    table_name: str,
    pattern: str = DEFAULT_TRANSLATION_PATTERN,
) -> str:
    """
    Physical name of a translation table.

    The ``${identifier}`` placeholder in *pattern* is replaced by the
    snake_cased owner table name.

        >>> to_translation_table_name("BlogPost")
        'blog_post_translation'
        >>> to_translation_table_name("Post", "i18n_${identifier}")
        'i18n_post'
    """
    return pattern.replace(IDENTIFIER_PLACEHOLDER, to_snake_case(table_name))


def translation_model_name(table_name: str) -> str:
    """Logical name of the translation table that belongs to *table_name*."""
    return f"{table_name}{TRANSLATION_SUFFIX}"


@functools.lru_cache(maxsize=None)
def strip_plural_suffix(key: str) -> str:
    """Drop one trailing ``s`` (``blocks`` → ``block``). Not a real singulariser."""
    return key[:-1] if key.endswith("s") else key


@functools.lru_cache(maxsize=None)
def component_table_name(
    parent_table: str,
    field_key: str,
    convention: NamingConvention,
) -> str:
    """
    Table holding the component instances embedded by *field_key*.

        >>> component_table_name("Post", "seo", NamingConvention.PASCAL_CASE)
        'PostSeo'
        >>> component_table_name("Post", "blocks", NamingConvention.PASCAL_CASE)
        'PostBlock'
        >>> component_table_name("post", "blocks", NamingConvention.SNAKE_CASE)
        'post_block'
    """
    segment: str = strip_plural_suffix(field_key)
    if convention == NamingConvention.SNAKE_CASE:
        return f"{to_snake_case(parent_table)}_{segment}"
    return f"{parent_table}{to_pascal_case(segment)}"


@functools.lru_cache(maxsize=None)
def junction_table_name(
    owner_table: str,
    target_table: str,
    convention: NamingConvention,
) -> str:
    """
    Name of the explicit many-to-many table between two tables.

        >>> junction_table_name("Post", "Category", NamingConvention.PASCAL_CASE)
        'PostCategory'
        >>> junction_table_name("post", "category", NamingConvention.SNAKE_CASE)
        'post_category'
    """
    if convention == NamingConvention.SNAKE_CASE:
        return f"{to_snake_case(owner_table)}_{to_snake_case(target_table)}"
    return f"{owner_table}{target_table}"


# ---------------------------------------------------------------------------
# Column names derived from tables
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def foreign_key_name(table_name: str) -> str:
    """``BlogPost`` → ``blog_post_id``."""
    return f"{to_column_case(table_name, NamingConvention.SNAKE_CASE)}_id"


@functools.lru_cache(maxsize=None)
def back_relation_name(table_name: str) -> str:
    """Name of the relation column that points back to *table_name*."""
    return to_column_case(table_name, NamingConvention.SNAKE_CASE)


# ---------------------------------------------------------------------------
# Build settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BuildSettings:
    """Run-wide naming and i18n choices shared by every compiler function."""

    convention: NamingConvention = NamingConvention.PASCAL_CASE
    prefix: Optional[str] = None
    i18n_enabled: bool = True
    translation_pattern: str = DEFAULT_TRANSLATION_PATTERN
    external_names: FrozenSet[str] = field(default_factory=frozenset)

    def table_name(self, slug: str) -> str:
        """Table name of a generated model or component."""
        return to_table_name(slug, self.convention, self.prefix)

    def target_name(self, target: str) -> str:
        """Table name of a relation target; externally declared names pass through."""
        if target in self.external_names:
            return target
        return self.table_name(target)

    def without_i18n(self) -> "BuildSettings":
        return replace(self, i18n_enabled=False)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "IDENTIFIER_PLACEHOLDER",
    "DEFAULT_TRANSLATION_PATTERN",
    "TRANSLATION_SUFFIX",
    "to_pascal_case",
    "to_camel_case",
    "to_snake_case",
    "to_column_case",
    "to_table_name",
    "to_translation_table_name",
    "translation_model_name",
    "strip_plural_suffix",
    "component_table_name",
    "junction_table_name",
    "foreign_key_name",
    "back_relation_name",
    "BuildSettings",
]

logger.debug("eavgen.naming loaded — %d public symbols.", len(__all__))
