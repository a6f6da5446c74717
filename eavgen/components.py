# File: eavgen/components.py
"""
EAVGen - Component Tables
===========================
Each component field of a model gets its own table, named after the owner
and the field key (``Post`` + ``seo`` → ``PostSeo``). Column layout:

    id
    <owner>_id          @unique unless the field is repeatable
    order Int?          repeatable only
    variant_id, enabled A/B testing only
    <component fields>  translatable ones move out when i18n is on
    created_at, updated_at
    <owner> back-relation (onDelete: Cascade)
    translations        when a translation table exists

Translatable component fields go to ``<ComponentTable>Translation``, keyed
by ``(<component_table>_id, lang)``.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from eavgen.definitions import ComponentContext, ComponentDefinition, FieldDefinition
from eavgen.fields import (
    back_relation_column,
    created_at_column,
    id_column,
    split_translatable,
    translate_field,
    updated_at_column,
)
from eavgen.models import ColumnInfo, ReferentialAction, ScalarType, TableInfo
from eavgen.naming import (
    BuildSettings,
    component_table_name,
    foreign_key_name,
    to_snake_case,
    translation_model_name,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("eavgen.components")


# ---------------------------------------------------------------------------
# Translation tables (shared with the model builder)
# ---------------------------------------------------------------------------


def build_translation_table(
    owner_table: str,
    fields: List[FieldDefinition],
    settings: BuildSettings,
    map_name: Optional[str] = None,
) -> TableInfo:
    """``<owner>Translation`` holding one row per (owner row, language)."""
    owner_fk: str = foreign_key_name(owner_table)
    columns: List[ColumnInfo] = [
        id_column(),
        ColumnInfo(name=owner_fk, type=ScalarType.STRING),
        ColumnInfo(name="lang", type=ScalarType.STRING),
    ]
    for field in fields:
        columns.extend(translate_field(field, settings))
    columns.append(back_relation_column(owner_table, owner_fk, ReferentialAction.CASCADE))

    return TableInfo(
        name=translation_model_name(owner_table),
        columns=columns,
        unique=[[owner_fk, "lang"]],
        map_name=map_name,
    )


def translations_column(owner_table: str) -> ColumnInfo:
    return ColumnInfo(
        name="translations",
        type=translation_model_name(owner_table),
        is_list=True,
    )


# ---------------------------------------------------------------------------
# Component tables
# ---------------------------------------------------------------------------


def _ab_testing_columns() -> List[ColumnInfo]:
    return [
        ColumnInfo(name="variant_id", type=ScalarType.STRING, nullable=True),
        ColumnInfo(name="enabled", type=ScalarType.BOOLEAN, nullable=True, default=True),
    ]


def build_component_tables(
    owner_table: str,
    field_key: str,
    component: ComponentDefinition,
    settings: BuildSettings,
    repeatable: bool = False,
    context: Optional[ComponentContext] = None,
) -> List[TableInfo]:
    """
    Component table for *field_key* on *owner_table*, followed by its
    translation table when i18n is on and the component has translatable
    fields.
    """
    table_name: str = component_table_name(owner_table, field_key, settings.convention)
    owner_fk: str = foreign_key_name(owner_table)

    fields = [field for field in component.fields if not field.derived]
    translatable, stored_here = split_translatable(fields)
    if not settings.i18n_enabled:
        translatable, stored_here = [], fields

    columns: List[ColumnInfo] = [
        id_column(),
        ColumnInfo(
            name=owner_fk,
            type=ScalarType.STRING,
            attributes=[] if repeatable else ["@unique"],
        ),
    ]
    if repeatable:
        columns.append(ColumnInfo(name="order", type=ScalarType.INT, nullable=True))
    if context is not None and context.ab_testing_enabled:
        columns.extend(_ab_testing_columns())
    for field in stored_here:
        columns.extend(translate_field(field, settings))
    columns.append(created_at_column())
    columns.append(updated_at_column())
    columns.append(back_relation_column(owner_table, owner_fk, ReferentialAction.CASCADE))
    if translatable:
        columns.append(translations_column(table_name))

    tables: List[TableInfo] = [
        TableInfo(
            name=table_name,
            columns=columns,
            indexes=[[owner_fk]] if repeatable else [],
        )
    ]
    if translatable:
        translation_name: str = translation_model_name(table_name)
        tables.append(
            build_translation_table(
                table_name,
                translatable,
                settings,
                map_name=to_snake_case(translation_name),
            )
        )

    logger.debug(
        "Component '%s' on %s.%s → %s",
        component.slug,
        owner_table,
        field_key,
        ", ".join(t.name for t in tables),
    )
    return tables


__all__: List[str] = [
    "build_translation_table",
    "translations_column",
    "build_component_tables",
]

logger.debug("eavgen.components loaded — %d public symbols.", len(__all__))
