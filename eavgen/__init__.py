# File: eavgen/__init__.py
"""
EAVGen — EAV Content Model to Relational Schema Compiler
==========================================================

Turns dynamic Entity-Attribute-Value content definitions (models and
reusable components stored as JSON) into a fixed, typed, indexed schema
that an ORM code generator can compile into a client.

Architecture overview::

    ┌──────────────┐     ┌────────────────┐     ┌────────────────────┐
    │  CLI / Entry │────▶│ SchemaGenerator │────▶│  builder / fields  │
    │   (cli.py)   │     │ (generator.py)  │     │ components / rels  │
    └──────────────┘     └───────┬────────┘     └────────────────────┘
                                 │
                    ┌────────────┼────────────┐
                    ▼            ▼            ▼
             ┌──────────┐ ┌───────────┐ ┌───────────┐
             │  reader  │ │ external  │ │  writer   │
             │  (.py)   │ │  (.py)    │ │  (.py)    │
             └──────────┘ └───────────┘ └───────────┘

Usage::

    # As a library
    import asyncio
    from eavgen import SchemaGenerator, parse_config

    config = parse_config({"input": {"models": [...]}})
    result = asyncio.run(SchemaGenerator(config).generate())
    print(result.schema)

    # From the command line
    eavgen generate --config eavgen.config.yaml

Public API:
    - SchemaGenerator    — Pipeline orchestrator
    - GenerationConfig   — Run configuration
    - ModelDefinition    — Validated content model
    - write_schema       — Schema serializer
    - check_definitions  — Non-raising definition checks
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from eavgen.builder import build_model
from eavgen.components import build_component_tables
from eavgen.config import GenerationConfig, load_config, parse_config
from eavgen.definitions import (
    ComponentDefinition,
    FieldDefinition,
    FieldType,
    ModelDefinition,
    RelationType,
)
from eavgen.exceptions import (
    ConfigurationError,
    DefinitionParseError,
    DefinitionValidationError,
    EAVGenError,
    MapperError,
    SourceReadError,
    UnsupportedFieldError,
)
from eavgen.external import parse_schema_file, parse_schema_text
from eavgen.fields import translate_field
from eavgen.generator import GenerationResult, SchemaGenerator
from eavgen.models import ColumnInfo, NamingConvention, SchemaInfo, TableInfo
from eavgen.naming import BuildSettings, to_table_name
from eavgen.reader import EAVReader, SqlAlchemyRowSource
from eavgen.relations import build_junction_table
from eavgen.validators import ValidationResult, check_definitions, validate_component, validate_model
from eavgen.writer import write_schema

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Orchestrator
    "SchemaGenerator",
    "GenerationResult",
    "GenerationConfig",
    "load_config",
    "parse_config",
    # Definitions
    "ComponentDefinition",
    "FieldDefinition",
    "FieldType",
    "ModelDefinition",
    "RelationType",
    # Validation
    "ValidationResult",
    "check_definitions",
    "validate_component",
    "validate_model",
    # Compilation
    "BuildSettings",
    "build_model",
    "build_component_tables",
    "build_junction_table",
    "translate_field",
    "to_table_name",
    # Output model / serialization
    "ColumnInfo",
    "NamingConvention",
    "SchemaInfo",
    "TableInfo",
    "write_schema",
    "parse_schema_file",
    "parse_schema_text",
    # Reading
    "EAVReader",
    "SqlAlchemyRowSource",
    # Errors
    "EAVGenError",
    "ConfigurationError",
    "DefinitionParseError",
    "DefinitionValidationError",
    "MapperError",
    "SourceReadError",
    "UnsupportedFieldError",
]
