# File: eavgen/builder.py
"""
EAVGen - Model Compiler
=========================
Compiles one ``ModelDefinition`` into its base table and, when i18n
applies and the model has translatable fields, its translation table.

Base table column order:

    id
    fields kept on the base table, in declaration order
        (component fields become a reference to ``<Model><Key>``)
    created_at, updated_at
    translations            only when a translation table is emitted

Component and junction tables are *not* produced here; the orchestrator
emits them right after the model's own tables.
"""

from __future__ import annotations

import logging
from typing import Collection, List, Optional

from eavgen.components import build_translation_table, translations_column
from eavgen.definitions import ComponentConfig, FieldType, ModelDefinition
from eavgen.fields import (
    component_reference_column,
    created_at_column,
    id_column,
    split_translatable,
    translate_field,
    updated_at_column,
)
from eavgen.models import ColumnInfo, TableInfo
from eavgen.naming import BuildSettings, to_translation_table_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("eavgen.builder")

STATUS_INDEX: List[str] = ["status", "published_at"]


def model_settings(model: ModelDefinition, settings: BuildSettings) -> BuildSettings:
    """Settings in effect for *model*; ``enableI18n: false`` opts it out of i18n."""
    if settings.i18n_enabled and model.settings.enable_i18n is False:
        return settings.without_i18n()
    return settings


def model_indexes(model: ModelDefinition) -> List[List[str]]:
    """
    ``sortField`` index first, then the fixed ``(status, published_at)``
    index when both keys exist. Field types are not checked.
    """
    indexes: List[List[str]] = []
    if model.settings.sort_field:
        indexes.append([model.settings.sort_field])
    keys = set(model.field_keys)
    if all(key in keys for key in STATUS_INDEX):
        indexes.append(list(STATUS_INDEX))
    return indexes


def build_model(
    model: ModelDefinition,
    settings: BuildSettings,
    available_components: Optional[Collection[str]] = None,
) -> List[TableInfo]:
    """
    Base table (+ translation table) for *model*.

    When *available_components* is given, component fields whose slug is not
    in it produce no reference column. Derived fields produce no column at all.
    """
    settings = model_settings(model, settings)
    table_name: str = settings.table_name(model.slug)

    stored = [field for field in model.fields if not field.derived]
    translatable, _ = split_translatable(stored)
    if not settings.i18n_enabled:
        translatable = []
    moved = {field.key for field in translatable}

    columns: List[ColumnInfo] = [id_column()]
    for field in stored:
        if field.type == FieldType.COMPONENT:
            config = field.config
            if (
                available_components is not None
                and isinstance(config, ComponentConfig)
                and config.slug not in available_components
            ):
                continue
            columns.append(component_reference_column(field, table_name, settings))
        elif field.key not in moved:
            columns.extend(translate_field(field, settings))
    columns.append(created_at_column())
    columns.append(updated_at_column())
    if translatable:
        columns.append(translations_column(table_name))

    tables: List[TableInfo] = [
        TableInfo(name=table_name, columns=columns, indexes=model_indexes(model))
    ]
    if translatable:
        tables.append(
            build_translation_table(
                table_name,
                translatable,
                settings,
                map_name=to_translation_table_name(table_name, settings.translation_pattern),
            )
        )

    logger.debug(
        "Model '%s' → %s (%d column(s) on base table)",
        model.slug,
        ", ".join(t.name for t in tables),
        len(columns),
    )
    return tables


__all__: List[str] = [
    "STATUS_INDEX",
    "model_settings",
    "model_indexes",
    "build_model",
]

logger.debug("eavgen.builder loaded — %d public symbols.", len(__all__))
