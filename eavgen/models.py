# File: eavgen/models.py
"""
EAVGen - Relational Schema Models
===================================
Pydantic V2 models describing the generated relational schema: columns,
relations, tables, the datasource and generator blocks. These models are
the single hand-off point between compilation (fields → builder) and
serialization (writer), and are also what the external-schema parser
produces.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from eavgen.definitions import FieldValidation

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("eavgen.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ScalarType(str, Enum):
    """Scalar column types emitted by the compiler."""

    STRING = "String"
    INT = "Int"
    FLOAT = "Float"
    BOOLEAN = "Boolean"
    DATETIME = "DateTime"
    JSON = "Json"


class ReferentialAction(str, Enum):
    """``onDelete`` / ``onUpdate`` actions of a relation."""

    CASCADE = "Cascade"
    RESTRICT = "Restrict"
    NO_ACTION = "NoAction"
    SET_NULL = "SetNull"
    SET_DEFAULT = "SetDefault"


class NamingConvention(str, Enum):
    """How model slugs become table names."""

    SNAKE_CASE = "snake_case"
    CAMEL_CASE = "camelCase"
    PASCAL_CASE = "PascalCase"


class DatasourceProvider(str, Enum):
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"


# ---------------------------------------------------------------------------
# Shared model config
# ---------------------------------------------------------------------------

_SHARED_CONFIG = ConfigDict(
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)

DefaultValue = Union[bool, int, float, str]


# ---------------------------------------------------------------------------
# Column level
# ---------------------------------------------------------------------------


class RelationInfo(BaseModel):
    """Foreign-key wiring of a relation column."""

    model_config = _SHARED_CONFIG

    name: Optional[str] = Field(default=None, description="Relation name (disambiguation).")
    fields: List[str] = Field(default_factory=list, description="Local FK columns.")
    references: List[str] = Field(default_factory=list, description="Referenced columns.")
    on_delete: Optional[ReferentialAction] = None
    on_update: Optional[ReferentialAction] = None

    def __repr__(self) -> str:
        return f"<Relation {self.fields} -> {self.references} onDelete={self.on_delete}>"


class ColumnInfo(BaseModel):
    """
    One column of a generated table.

    ``type`` is either a scalar (``String``, ``Int`` ...) or the name of
    another table for relation columns. A list column is never nullable.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Column name.")
    type: str = Field(..., min_length=1, description="Scalar type or referenced table.")
    nullable: bool = Field(default=False, description="Renders as `Type?`.")
    is_list: bool = Field(default=False, description="Renders as `Type[]`.")
    default: Optional[DefaultValue] = Field(
        default=None, description="Literal default, rendered as @default(value)."
    )
    attributes: List[str] = Field(
        default_factory=list, description="Raw attributes, e.g. '@id', '@unique'."
    )
    relation: Optional[RelationInfo] = None
    map_name: Optional[str] = Field(default=None, description="Physical column name.")
    validation: Optional[FieldValidation] = Field(
        default=None, description="Carried-through validation metadata."
    )

    @field_validator("type", mode="before")
    @classmethod
    def _unwrap_scalar(cls, v: Any) -> Any:
        return v.value if isinstance(v, ScalarType) else v

    @model_validator(mode="before")
    @classmethod
    def _list_is_never_nullable(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("is_list") and data.get("nullable"):
            data = {**data, "nullable": False}
        return data

    @computed_field  # type: ignore[misc]
    @property
    def type_signature(self) -> str:
        """``Type``, ``Type?`` or ``Type[]``."""
        if self.is_list:
            return f"{self.type}[]"
        if self.nullable:
            return f"{self.type}?"
        return self.type

    @computed_field  # type: ignore[misc]
    @property
    def is_scalar(self) -> bool:
        return self.type in _SCALAR_VALUES

    def has_attribute(self, prefix: str) -> bool:
        return any(attr.startswith(prefix) for attr in self.attributes)

    def __repr__(self) -> str:
        return f"<Column {self.name} {self.type_signature}>"


_SCALAR_VALUES: FrozenSet[str] = frozenset(t.value for t in ScalarType)


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------


class TableInfo(BaseModel):
    """A generated (or externally declared) table."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Logical table name.")
    columns: List[ColumnInfo] = Field(..., min_length=1)
    indexes: List[List[str]] = Field(default_factory=list)
    unique: List[List[str]] = Field(default_factory=list)
    map_name: Optional[str] = Field(default=None, description="Physical table name.")

    @computed_field  # type: ignore[misc]
    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def get_column(self, name: str) -> Optional[ColumnInfo]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def __repr__(self) -> str:
        return f"<Table {self.name} ({len(self.columns)} cols)>"


# ---------------------------------------------------------------------------
# Schema-level blocks
# ---------------------------------------------------------------------------


class DatasourceInfo(BaseModel):
    model_config = _SHARED_CONFIG

    provider: DatasourceProvider = DatasourceProvider.SQLITE.value
    url: str = 'env("DATABASE_URL")'
    direct_url: Optional[str] = None


class GeneratorInfo(BaseModel):
    """A ``generator`` block (client or user-supplied)."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1)
    provider: str = Field(..., min_length=1)
    output: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)


class SchemaInfo(BaseModel):
    """The complete document handed to the writer."""

    model_config = _SHARED_CONFIG

    datasource: DatasourceInfo = Field(default_factory=DatasourceInfo)
    generators: List[GeneratorInfo] = Field(default_factory=list)
    tables: List[TableInfo] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    def get_table(self, name: str) -> Optional[TableInfo]:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def __repr__(self) -> str:
        return f"<Schema {len(self.tables)} tables, {len(self.generators)} generators>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ScalarType",
    "ReferentialAction",
    "NamingConvention",
    "DatasourceProvider",
    "RelationInfo",
    "ColumnInfo",
    "TableInfo",
    "DatasourceInfo",
    "GeneratorInfo",
    "SchemaInfo",
]

logger.debug("eavgen.models loaded — %d public symbols.", len(__all__))
