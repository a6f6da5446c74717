# File: eavgen/definitions.py
"""
EAVGen - Content Definition Models
====================================
Pydantic V2 models for the user-authored side of the pipeline: model
definitions, component definitions, their fields and the per-type config
blocks. Inputs arrive camelCased (``targetModel``, ``enableI18n``) and are
exposed snake_cased on the Python side.

Unknown keys are accepted everywhere and kept in ``model_extra`` so that
definitions written for newer tooling still load.

Only *structural* rules live here. Rules that need the whole field list
(unique keys, A/B reserved keys) are applied in ``eavgen.validators``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("eavgen.definitions")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SLUG_PATTERN: str = r"^[a-z][a-z0-9_-]*$"

SYSTEM_RESERVED_KEYS: frozenset = frozenset({"id", "created_at", "updated_at"})
AB_TESTING_RESERVED_KEYS: frozenset = frozenset({"variant_id", "enabled"})


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class FieldType(str, Enum):
    """Every field type a definition may declare."""

    TEXT = "text"
    RICH = "rich"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    SELECT = "select"
    JSON = "json"
    MEDIA = "media"
    RELATION = "relation"
    COMPONENT = "component"


class RelationType(str, Enum):
    ONE_TO_ONE = "oneToOne"
    MANY_TO_ONE = "manyToOne"
    ONE_TO_MANY = "oneToMany"
    MANY_TO_MANY = "manyToMany"


class CascadePolicy(str, Enum):
    """What happens to the owner side when the related row is deleted."""

    RESTRICT = "restrict"
    CASCADE = "cascade"
    SET_NULL = "setNull"


class NumberFormat(str, Enum):
    INTEGER = "integer"
    DECIMAL = "decimal"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"


class DateFormat(str, Enum):
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"


# ---------------------------------------------------------------------------
# Shared model config
# ---------------------------------------------------------------------------

_DEFINITION_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="allow",
    frozen=False,
)

Number = Union[int, float]


# ---------------------------------------------------------------------------
# Validation metadata
# ---------------------------------------------------------------------------


class FieldValidation(BaseModel):
    """
    Optional per-field validation rules.

    Carried through to the output as a ``/// @zod.`` documentation comment;
    never enforced by the generator itself.
    """

    model_config = _DEFINITION_CONFIG

    # String
    min_length: Optional[Number] = None
    max_length: Optional[Number] = None
    pattern: Optional[str] = None
    email: Optional[bool] = None
    url: Optional[bool] = None
    uuid: Optional[bool] = None
    cuid: Optional[bool] = None

    # Number
    min: Optional[Number] = None
    max: Optional[Number] = None
    integer: Optional[bool] = Field(default=None, alias="int")
    positive: Optional[bool] = None
    negative: Optional[bool] = None

    # Array
    min_items: Optional[Number] = None
    max_items: Optional[Number] = None

    # Date
    min_date: Optional[str] = None
    max_date: Optional[str] = None

    custom: Optional[str] = None
    error_message: Optional[str] = None


# ---------------------------------------------------------------------------
# Per-type field config
# ---------------------------------------------------------------------------


class TextConfig(BaseModel):
    model_config = _DEFINITION_CONFIG

    type: Literal["text"] = "text"
    multiline: Optional[bool] = None
    default: Optional[str] = None


class RichConfig(BaseModel):
    model_config = _DEFINITION_CONFIG

    type: Literal["rich"] = "rich"


class NumberConfig(BaseModel):
    model_config = _DEFINITION_CONFIG

    type: Literal["number"] = "number"
    step: Optional[Number] = None
    default: Optional[Number] = None
    format: Optional[NumberFormat] = None


class BooleanConfig(BaseModel):
    model_config = _DEFINITION_CONFIG

    type: Literal["boolean"] = "boolean"
    default: Optional[bool] = None


class SelectOption(BaseModel):
    model_config = _DEFINITION_CONFIG

    value: str
    label: str


class SelectConfig(BaseModel):
    model_config = _DEFINITION_CONFIG

    type: Literal["select"] = "select"
    multiple: bool = False
    options: List[Union[str, SelectOption]] = Field(..., min_length=1)
    default: Optional[Union[str, List[str]]] = None


class JsonConfig(BaseModel):
    model_config = _DEFINITION_CONFIG

    type: Literal["json"] = "json"


class MediaConfig(BaseModel):
    model_config = _DEFINITION_CONFIG

    type: Literal["media"] = "media"
    multiple: bool = False


class RelationConfig(BaseModel):
    """Target and cardinality of a relation field."""

    model_config = _DEFINITION_CONFIG

    type: Literal["relation"] = "relation"
    relation_type: RelationType
    target_model: str = Field(..., min_length=1)
    display_field: Optional[str] = None
    cascade: CascadePolicy = CascadePolicy.RESTRICT


class DateConfig(BaseModel):
    model_config = _DEFINITION_CONFIG

    type: Literal["date"] = "date"
    format: DateFormat = DateFormat.DATE
    default: Optional[str] = None


class AIPromptContext(BaseModel):
    model_config = _DEFINITION_CONFIG

    template: str
    auto_generate: bool = False
    include_history: bool = True


class ABTestingContext(BaseModel):
    model_config = _DEFINITION_CONFIG

    enabled: bool = False
    variant_count: int = Field(default=3, ge=2, le=5)


class ComponentContext(BaseModel):
    model_config = _DEFINITION_CONFIG

    ai_prompt: Optional[AIPromptContext] = None
    ab_testing: Optional[ABTestingContext] = None

    @property
    def ab_testing_enabled(self) -> bool:
        return bool(self.ab_testing and self.ab_testing.enabled)


class ComponentConfig(BaseModel):
    """Reference from a field to a reusable component definition."""

    model_config = _DEFINITION_CONFIG

    type: Literal["component"] = "component"
    slug: str = Field(..., pattern=SLUG_PATTERN)
    repeatable: bool = False
    context: Optional[ComponentContext] = None


FieldConfig = Annotated[
    Union[
        TextConfig,
        RichConfig,
        NumberConfig,
        BooleanConfig,
        SelectConfig,
        JsonConfig,
        MediaConfig,
        RelationConfig,
        DateConfig,
        ComponentConfig,
    ],
    Field(discriminator="type"),
]

_CONFIG_REQUIRED: frozenset = frozenset(
    {FieldType.SELECT, FieldType.RELATION, FieldType.COMPONENT}
)


# ---------------------------------------------------------------------------
# Field
# ---------------------------------------------------------------------------


class FieldDefinition(BaseModel):
    """
    One typed attribute of a model or component.

    ``config`` may omit its ``type`` discriminator; it is taken from the
    field's own ``type``. Select, relation and component fields must carry
    a config block.
    """

    model_config = _DEFINITION_CONFIG

    key: str = Field(..., min_length=1, pattern=SLUG_PATTERN)
    label: str = Field(..., min_length=1)
    type: FieldType
    config: Optional[FieldConfig] = None
    required: bool = False
    translatable: bool = True
    validation: Optional[FieldValidation] = None
    derived: bool = False

    @model_validator(mode="before")
    @classmethod
    def _inherit_config_type(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        config: Any = data.get("config")
        if isinstance(config, dict) and "type" not in config and "type" in data:
            data = {**data, "config": {**config, "type": data["type"]}}
        return data

    @field_validator("key")
    @classmethod
    def _not_system_reserved(cls, v: str) -> str:
        if v in SYSTEM_RESERVED_KEYS:
            raise ValueError(f"Field key '{v}' is reserved by the system")
        return v

    @model_validator(mode="after")
    def _config_matches_type(self) -> "FieldDefinition":
        if self.config is None:
            if self.type in _CONFIG_REQUIRED:
                raise ValueError(f"{self.type.value} fields require a config block")
            return self
        if self.config.type != self.type.value:
            raise ValueError(
                f"config type '{self.config.type}' does not match field type "
                f"'{self.type.value}'"
            )
        return self

    # -- Helpers ------------------------------------------------------------

    @property
    def is_translatable(self) -> bool:
        """Relation and component fields never move to a translation table."""
        if self.type in (FieldType.RELATION, FieldType.COMPONENT):
            return False
        return self.translatable

    @property
    def extras(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    def __repr__(self) -> str:
        return f"<Field {self.key}: {self.type.value}>"


# ---------------------------------------------------------------------------
# Models and components
# ---------------------------------------------------------------------------


class ModelSettings(BaseModel):
    model_config = _DEFINITION_CONFIG

    enable_i18n: Optional[bool] = Field(default=None, alias="enableI18n")
    sort_field: Optional[str] = None


class ModelDefinition(BaseModel):
    """A user-defined content type, compiled to one base table."""

    model_config = _DEFINITION_CONFIG

    slug: str = Field(..., pattern=SLUG_PATTERN)
    name: str = Field(..., min_length=1)
    fields: List[FieldDefinition] = Field(..., min_length=1)
    settings: ModelSettings = Field(default_factory=ModelSettings)

    @property
    def field_keys(self) -> List[str]:
        return [f.key for f in self.fields]

    def get_field(self, key: str) -> Optional[FieldDefinition]:
        for field in self.fields:
            if field.key == key:
                return field
        return None

    def __repr__(self) -> str:
        return f"<Model {self.slug} ({len(self.fields)} fields)>"


class ComponentDefinition(BaseModel):
    """A reusable field group embedded into models through component fields."""

    model_config = _DEFINITION_CONFIG

    slug: str = Field(..., pattern=SLUG_PATTERN)
    name: str = Field(..., min_length=1)
    fields: List[FieldDefinition] = Field(..., min_length=1)

    def __repr__(self) -> str:
        return f"<Component {self.slug} ({len(self.fields)} fields)>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SLUG_PATTERN",
    "SYSTEM_RESERVED_KEYS",
    "AB_TESTING_RESERVED_KEYS",
    "FieldType",
    "RelationType",
    "CascadePolicy",
    "NumberFormat",
    "DateFormat",
    "FieldValidation",
    "TextConfig",
    "RichConfig",
    "NumberConfig",
    "BooleanConfig",
    "SelectOption",
    "SelectConfig",
    "JsonConfig",
    "MediaConfig",
    "RelationConfig",
    "DateConfig",
    "AIPromptContext",
    "ABTestingContext",
    "ComponentContext",
    "ComponentConfig",
    "FieldConfig",
    "FieldDefinition",
    "ModelSettings",
    "ModelDefinition",
    "ComponentDefinition",
]

logger.debug("eavgen.definitions loaded — %d public symbols.", len(__all__))
