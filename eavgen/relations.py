# File: eavgen/relations.py
"""
EAVGen - Junction Tables
==========================
Many-to-many relation fields are materialised as an explicit join table
with its own id, ordering column and creation timestamp.

    PostCategory
      id           String   @id @default(cuid())
      post_id      String
      category_id  String
      order        Int?
      created_at   DateTime @default(now())
      post         Post     @relation(... onDelete: Restrict)
      category     Category @relation(... onDelete: Cascade)
      @@unique([post_id, category_id])
      @@index([post_id])
      @@index([category_id])

The owner edge follows the field's cascade policy; the target edge always
cascades.
"""

from __future__ import annotations

import logging
from typing import List

from eavgen.definitions import CascadePolicy, FieldDefinition, RelationConfig, RelationType
from eavgen.exceptions import UnsupportedFieldError
from eavgen.fields import back_relation_column, created_at_column, id_column
from eavgen.models import ColumnInfo, ReferentialAction, ScalarType, TableInfo
from eavgen.naming import BuildSettings, foreign_key_name, junction_table_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("eavgen.relations")

_OWNER_ON_DELETE = {
    CascadePolicy.CASCADE: ReferentialAction.CASCADE,
    CascadePolicy.RESTRICT: ReferentialAction.RESTRICT,
    CascadePolicy.SET_NULL: ReferentialAction.RESTRICT,
}


def needs_junction_table(field: FieldDefinition) -> bool:
    return (
        isinstance(field.config, RelationConfig)
        and field.config.relation_type == RelationType.MANY_TO_MANY
    )


def build_junction_table(
    owner_table: str,
    field: FieldDefinition,
    settings: BuildSettings,
) -> TableInfo:
    """
    Join table for the many-to-many *field* declared on *owner_table*.

    Raises:
        UnsupportedFieldError: *field* is not a many-to-many relation.
    """
    config = field.config
    if not isinstance(config, RelationConfig) or config.relation_type != RelationType.MANY_TO_MANY:
        raise UnsupportedFieldError(f"Field '{field.key}' is not a many-to-many relation")

    target_table: str = settings.target_name(config.target_model)
    owner_fk: str = foreign_key_name(owner_table)
    target_fk: str = foreign_key_name(target_table)

    if owner_table == target_table:
        logger.warning(
            "Self-referential many-to-many '%s' on '%s' produces duplicate column names",
            field.key,
            owner_table,
        )

    table = TableInfo(
        name=junction_table_name(owner_table, target_table, settings.convention),
        columns=[
            id_column(),
            ColumnInfo(name=owner_fk, type=ScalarType.STRING),
            ColumnInfo(name=target_fk, type=ScalarType.STRING),
            ColumnInfo(name="order", type=ScalarType.INT, nullable=True),
            created_at_column(),
            back_relation_column(owner_table, owner_fk, _OWNER_ON_DELETE[config.cascade]),
            back_relation_column(target_table, target_fk, ReferentialAction.CASCADE),
        ],
        unique=[[owner_fk, target_fk]],
        indexes=[[owner_fk], [target_fk]],
    )
    logger.debug("Junction table %s built for %s.%s", table.name, owner_table, field.key)
    return table


__all__: List[str] = [
    "needs_junction_table",
    "build_junction_table",
]

logger.debug("eavgen.relations loaded — %d public symbols.", len(__all__))
