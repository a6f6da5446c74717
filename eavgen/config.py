# File: eavgen/config.py
"""
EAVGen - Run Configuration
============================
Pydantic V2 model of everything one generation run consumes: where the
definitions come from, how tables are named, whether i18n is on, which
external schema files to merge and where the result is written.

Keys are accepted camelCased (``schemaPath``, ``externalModels``) or
snake_cased. In YAML / JSON files, hooks (``input.loader``,
``mapper.model``, ``mapper.component``) are written as
``"package.module:attribute"`` strings and imported on validation.

Example (YAML)::

    connection: sqlite:///./content.db
    tables:
      models: content_model
      components: content_component
    i18n:
      enabled: true
    output:
      schemaPath: ./prisma/content.prisma
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from eavgen.exceptions import ConfigurationError
from eavgen.models import DatasourceInfo, DatasourceProvider, GeneratorInfo, NamingConvention
from eavgen.naming import DEFAULT_TRANSLATION_PATTERN, BuildSettings
from eavgen.utils import import_string, load_structured_file, resolve_env_reference

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("eavgen.config")

DEFAULT_CONFIG_FILE: str = "eavgen.config.yaml"
DEFAULT_SCHEMA_PATH: str = "./prisma/schema.prisma"
DEFAULT_MODELS_TABLE: str = "content_model"
CLIENT_GENERATOR_NAME: str = "client"
CLIENT_GENERATOR_PROVIDER: str = "prisma-client-js"

_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    use_enum_values=True,
    arbitrary_types_allowed=True,
    extra="forbid",
)

Hook = Callable[..., Any]


class InputSource(str, Enum):
    DIRECT = "direct"
    LOADER = "loader"
    DATABASE = "database"


def _coerce_hook(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return import_string(value)
        except ImportError as exc:
            raise ValueError(f"cannot import hook '{value}': {exc}") from exc
    return value


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


class InputConfig(BaseModel):
    """In-memory definitions or a loader returning ``{models, components}``."""

    model_config = _CONFIG

    models: Optional[List[Any]] = None
    components: Optional[List[Any]] = None
    loader: Optional[Hook] = None

    @field_validator("loader", mode="before")
    @classmethod
    def _import_loader(cls, v: Any) -> Any:
        return _coerce_hook(v)


class TablesConfig(BaseModel):
    model_config = _CONFIG

    models: str = DEFAULT_MODELS_TABLE
    components: Optional[str] = None


class MapperConfig(BaseModel):
    """Per-row transforms applied before validation."""

    model_config = _CONFIG

    model: Optional[Hook] = None
    component: Optional[Hook] = None

    @field_validator("model", "component", mode="before")
    @classmethod
    def _import_hooks(cls, v: Any) -> Any:
        return _coerce_hook(v)


class ExternalModelsConfig(BaseModel):
    model_config = _CONFIG

    path: Union[str, List[str]]
    include: Optional[List[str]] = None
    exclude: Optional[List[str]] = None


class DatasourceConfig(BaseModel):
    model_config = _CONFIG

    provider: DatasourceProvider = DatasourceProvider.SQLITE.value
    url: str = 'env("DATABASE_URL")'
    direct_url: Optional[str] = None

    def to_info(self) -> DatasourceInfo:
        return DatasourceInfo(provider=self.provider, url=self.url, direct_url=self.direct_url)


class ClientConfig(BaseModel):
    model_config = _CONFIG

    preview_features: List[str] = Field(default_factory=list)


class OutputConfig(BaseModel):
    model_config = _CONFIG

    schema_path: str = DEFAULT_SCHEMA_PATH
    client_path: Optional[str] = None
    client: ClientConfig = Field(default_factory=ClientConfig)
    datasource: DatasourceConfig = Field(default_factory=DatasourceConfig)


class I18nConfig(BaseModel):
    model_config = _CONFIG

    enabled: bool = False
    table_naming: str = DEFAULT_TRANSLATION_PATTERN
    default_lang: str = "en"


class NamingConfig(BaseModel):
    model_config = _CONFIG

    convention: NamingConvention = NamingConvention.PASCAL_CASE.value
    prefix: Optional[str] = None


class GeneratorConfig(BaseModel):
    """An extra ``generator`` block emitted after the client generator."""

    model_config = _CONFIG

    name: str = Field(..., min_length=1)
    provider: str = Field(..., min_length=1)
    output: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)

    def to_info(self) -> GeneratorInfo:
        return GeneratorInfo(
            name=self.name,
            provider=self.provider,
            output=self.output,
            config=dict(self.config),
        )


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


class GenerationConfig(BaseModel):
    """
    Root configuration of one generation run.

    Exactly one definition source must be configured: ``input.models``,
    ``input.loader`` or ``connection`` (+ ``tables``). See ``input_source``.
    """

    model_config = _CONFIG

    connection: Optional[str] = None
    input: Optional[InputConfig] = None
    tables: TablesConfig = Field(default_factory=TablesConfig)
    mapper: MapperConfig = Field(default_factory=MapperConfig)
    external_models: Optional[Union[str, List[str], ExternalModelsConfig]] = None
    output: OutputConfig = Field(default_factory=OutputConfig)
    i18n: I18nConfig = Field(default_factory=I18nConfig)
    naming: NamingConfig = Field(default_factory=NamingConfig)
    generators: List[GeneratorConfig] = Field(default_factory=list)

    # -- Helpers ------------------------------------------------------------

    def input_source(self) -> InputSource:
        """
        Which definition source drives this run.

        Raises:
            ConfigurationError: no source, or more than one.
        """
        has_models: bool = self.input is not None and self.input.models is not None
        has_loader: bool = self.input is not None and self.input.loader is not None
        has_connection: bool = bool(self.connection)

        if has_models and has_loader:
            raise ConfigurationError("input.models and input.loader are mutually exclusive")
        if (has_models or has_loader) and has_connection:
            raise ConfigurationError("Configure either 'input' or 'connection', not both")
        if has_models:
            return InputSource.DIRECT
        if has_loader:
            return InputSource.LOADER
        if has_connection:
            return InputSource.DATABASE
        raise ConfigurationError(
            "No input source configured: set 'connection' (with 'tables'), "
            "'input.models' or 'input.loader'"
        )

    def connection_url(self) -> str:
        """``connection`` with an ``env("VAR")`` reference expanded."""
        if not self.connection:
            raise ConfigurationError("No 'connection' configured")
        url: Optional[str] = resolve_env_reference(self.connection)
        if not url:
            raise ConfigurationError(f"Environment variable for {self.connection} is not set")
        return url

    def build_settings(self, external_names: Iterable[str] = ()) -> BuildSettings:
        return BuildSettings(
            convention=NamingConvention(self.naming.convention),
            prefix=self.naming.prefix,
            i18n_enabled=self.i18n.enabled,
            translation_pattern=self.i18n.table_naming,
            external_names=frozenset(external_names),
        )

    def client_generator(self) -> GeneratorInfo:
        config: Dict[str, Any] = {}
        if self.output.client.preview_features:
            config["previewFeatures"] = list(self.output.client.preview_features)
        return GeneratorInfo(
            name=CLIENT_GENERATOR_NAME,
            provider=CLIENT_GENERATOR_PROVIDER,
            output=self.output.client_path,
            config=config,
        )

    def generator_infos(self) -> List[GeneratorInfo]:
        """Client generator first, then user generators in declared order."""
        return [self.client_generator(), *(g.to_info() for g in self.generators)]

    def __repr__(self) -> str:
        return f"<GenerationConfig schema_path={self.output.schema_path!r}>"


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _format_validation_error(exc: PydanticValidationError) -> str:
    lines: List[str] = []
    for err in exc.errors():
        loc: str = ".".join(str(part) for part in err["loc"]) or "<root>"
        lines.append(f"  {loc}: {err['msg']}")
    return "\n".join(lines)


def parse_config(data: Mapping[str, Any]) -> GenerationConfig:
    """
    Validate a raw configuration mapping.

    Raises:
        ConfigurationError: the mapping does not match the expected shape.
    """
    try:
        return GenerationConfig.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise ConfigurationError("Invalid configuration:\n" + _format_validation_error(exc)) from exc


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_FILE) -> GenerationConfig:
    """
    Load and validate a YAML / JSON configuration file.

    Raises:
        ConfigurationError: missing file, unparsable content or invalid shape.
    """
    path = Path(path)
    try:
        raw: Dict[str, Any] = load_structured_file(path)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Config file not found: {path}") from exc
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc

    config: GenerationConfig = parse_config(raw)
    logger.info("Loaded configuration from %s", path)
    return config


__all__: List[str] = [
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_SCHEMA_PATH",
    "DEFAULT_MODELS_TABLE",
    "InputSource",
    "InputConfig",
    "TablesConfig",
    "MapperConfig",
    "ExternalModelsConfig",
    "DatasourceConfig",
    "ClientConfig",
    "OutputConfig",
    "I18nConfig",
    "NamingConfig",
    "GeneratorConfig",
    "GenerationConfig",
    "parse_config",
    "load_config",
]

logger.debug("eavgen.config loaded — %d public symbols.", len(__all__))
