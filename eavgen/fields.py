# File: eavgen/fields.py
"""
EAVGen - Field Translator
===========================
Maps one ``FieldDefinition`` to the column(s) it occupies in its owner's
table.

    text / rich / select / json   → String
    number                        → Float (Int when format == "integer")
    boolean                       → Boolean
    date                          → DateTime
    media                         → <key>_id String?   (or Media[] list)
    relation oneToOne / manyToOne → <key>_id String (+ @unique for 1:1)
    relation oneToMany / M:N      → <key> Target[]
    component                     → reference to the component table

Nullability is the inverse of ``required``. Validation metadata is carried
onto scalar columns only.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Tuple

from eavgen.definitions import (
    BooleanConfig,
    ComponentConfig,
    FieldDefinition,
    FieldType,
    MediaConfig,
    NumberConfig,
    NumberFormat,
    RelationConfig,
    RelationType,
)
from eavgen.exceptions import UnsupportedFieldError
from eavgen.models import ColumnInfo, ReferentialAction, RelationInfo, ScalarType
from eavgen.naming import BuildSettings, back_relation_name, component_table_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("eavgen.fields")

MEDIA_MODEL_NAME: str = "Media"

FieldTranslator = Callable[[FieldDefinition, BuildSettings], List[ColumnInfo]]


# ---------------------------------------------------------------------------
# Per-type translators
# ---------------------------------------------------------------------------


def _string_column(field: FieldDefinition, settings: BuildSettings) -> List[ColumnInfo]:
    return [
        ColumnInfo(
            name=field.key,
            type=ScalarType.STRING,
            nullable=not field.required,
            validation=field.validation,
        )
    ]


def _number_column(field: FieldDefinition, settings: BuildSettings) -> List[ColumnInfo]:
    config = field.config if isinstance(field.config, NumberConfig) else NumberConfig()
    scalar: ScalarType = ScalarType.INT if config.format == NumberFormat.INTEGER else ScalarType.FLOAT
    return [
        ColumnInfo(
            name=field.key,
            type=scalar,
            nullable=not field.required,
            default=config.default,
            validation=field.validation,
        )
    ]


def _boolean_column(field: FieldDefinition, settings: BuildSettings) -> List[ColumnInfo]:
    config = field.config if isinstance(field.config, BooleanConfig) else BooleanConfig()
    return [
        ColumnInfo(
            name=field.key,
            type=ScalarType.BOOLEAN,
            nullable=not field.required,
            default=config.default,
            validation=field.validation,
        )
    ]


def _date_column(field: FieldDefinition, settings: BuildSettings) -> List[ColumnInfo]:
    return [
        ColumnInfo(
            name=field.key,
            type=ScalarType.DATETIME,
            nullable=not field.required,
            validation=field.validation,
        )
    ]


def _media_column(field: FieldDefinition, settings: BuildSettings) -> List[ColumnInfo]:
    config = field.config if isinstance(field.config, MediaConfig) else MediaConfig()
    if config.multiple and MEDIA_MODEL_NAME in settings.external_names:
        return [ColumnInfo(name=field.key, type=MEDIA_MODEL_NAME, is_list=True)]
    return [
        ColumnInfo(name=f"{field.key}_id", type=ScalarType.STRING, nullable=not field.required)
    ]


def _relation_column(field: FieldDefinition, settings: BuildSettings) -> List[ColumnInfo]:
    config = field.config
    if not isinstance(config, RelationConfig):
        raise UnsupportedFieldError(f"Relation field '{field.key}' has no relation config")

    if config.relation_type in (RelationType.ONE_TO_MANY, RelationType.MANY_TO_MANY):
        return [
            ColumnInfo(
                name=field.key,
                type=settings.target_name(config.target_model),
                is_list=True,
            )
        ]

    attributes: List[str] = ["@unique"] if config.relation_type == RelationType.ONE_TO_ONE else []
    return [
        ColumnInfo(
            name=f"{field.key}_id",
            type=ScalarType.STRING,
            nullable=not field.required,
            attributes=attributes,
        )
    ]


def _component_reference(field: FieldDefinition, settings: BuildSettings) -> List[ColumnInfo]:
    """
    Standalone reference to a component table.

    Inside a base table the builder names the target after the owner
    (``PostSeo``); here only the component slug is known.
    """
    config = field.config
    if not isinstance(config, ComponentConfig):
        raise UnsupportedFieldError(f"Component field '{field.key}' has no component config")
    return [
        ColumnInfo(
            name=field.key,
            type=settings.table_name(config.slug),
            nullable=not field.required,
            is_list=config.repeatable,
        )
    ]


_TRANSLATORS: Dict[FieldType, FieldTranslator] = {
    FieldType.TEXT: _string_column,
    FieldType.RICH: _string_column,
    FieldType.SELECT: _string_column,
    FieldType.JSON: _string_column,
    FieldType.NUMBER: _number_column,
    FieldType.BOOLEAN: _boolean_column,
    FieldType.DATE: _date_column,
    FieldType.MEDIA: _media_column,
    FieldType.RELATION: _relation_column,
    FieldType.COMPONENT: _component_reference,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def translate_field(field: FieldDefinition, settings: BuildSettings) -> List[ColumnInfo]:
    """
    Column(s) for *field* in its owner's table.

    Raises:
        UnsupportedFieldError: the field type has no storage mapping.
    """
    translator = _TRANSLATORS.get(field.type)
    if translator is None:
        raise UnsupportedFieldError(f"Unknown field type: {field.type!r} (field '{field.key}')")
    return translator(field, settings)


def component_reference_column(
    field: FieldDefinition,
    owner_table: str,
    settings: BuildSettings,
) -> ColumnInfo:
    """Reference column on *owner_table* pointing at its component table."""
    config = field.config
    if not isinstance(config, ComponentConfig):
        raise UnsupportedFieldError(f"Component field '{field.key}' has no component config")
    return ColumnInfo(
        name=field.key,
        type=component_table_name(owner_table, field.key, settings.convention),
        nullable=True,
        is_list=config.repeatable,
    )


def split_translatable(
    fields: List[FieldDefinition],
) -> Tuple[List[FieldDefinition], List[FieldDefinition]]:
    """``(translatable, non_translatable)`` in declaration order."""
    translatable: List[FieldDefinition] = []
    rest: List[FieldDefinition] = []
    for field in fields:
        (translatable if field.is_translatable else rest).append(field)
    return translatable, rest


# ---------------------------------------------------------------------------
# System columns
# ---------------------------------------------------------------------------


def id_column() -> ColumnInfo:
    return ColumnInfo(
        name="id",
        type=ScalarType.STRING,
        attributes=["@id", "@default(cuid())"],
    )


def created_at_column() -> ColumnInfo:
    return ColumnInfo(name="created_at", type=ScalarType.DATETIME, attributes=["@default(now())"])


def updated_at_column() -> ColumnInfo:
    return ColumnInfo(name="updated_at", type=ScalarType.DATETIME, attributes=["@updatedAt"])


def back_relation_column(
    target_table: str,
    fk_column: str,
    on_delete: ReferentialAction = ReferentialAction.CASCADE,
) -> ColumnInfo:
    """Relation column ``<snake(target)> Target @relation(fields: [fk], references: [id])``."""
    return ColumnInfo(
        name=back_relation_name(target_table),
        type=target_table,
        relation=RelationInfo(fields=[fk_column], references=["id"], on_delete=on_delete),
    )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MEDIA_MODEL_NAME",
    "translate_field",
    "component_reference_column",
    "split_translatable",
    "id_column",
    "created_at_column",
    "updated_at_column",
    "back_relation_column",
]

logger.debug("eavgen.fields loaded — %d public symbols.", len(__all__))
