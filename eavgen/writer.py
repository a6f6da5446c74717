# File: eavgen/writer.py
"""
EAVGen - Schema Serializer
============================
Renders a ``SchemaInfo`` into Prisma-style schema text.

Output layout (blocks separated by one blank line, file ends with ``\\n``)::

    datasource db { ... }
    generator client { ... }       # client first, user generators after
    model <Table> { ... }          # external tables, then generated ones

Inside a model block every column is one line, name and type padded to
the widest entry of that table. A column carrying validation metadata is
preceded by a ``/// @zod.`` comment. Block directives (``@@index``,
``@@unique``, ``@@map``) follow after a single blank line.

All functions are pure; the same schema always renders byte-identically.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

from eavgen.definitions import FieldValidation
from eavgen.models import ColumnInfo, DatasourceInfo, GeneratorInfo, RelationInfo, SchemaInfo, TableInfo

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("eavgen.writer")

INDENT: str = "  "
VALIDATION_MARKER: str = "/// @zod."


# ---------------------------------------------------------------------------
# Scalar formatting
# ---------------------------------------------------------------------------


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _format_literal(value: Any) -> str:
    """Literal as written in the schema language (``true``, ``3``, ``"draft"``)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _format_number(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_format_literal(v) for v in value) + "]"
    return _quote(str(value))


def _format_url(url: str) -> str:
    return url if url.startswith("env(") else _quote(url)


# ---------------------------------------------------------------------------
# Validation comments
# ---------------------------------------------------------------------------


def build_validation_comment(validation: Optional[FieldValidation]) -> Optional[str]:
    """
    ``/// @zod.email().min(5).max(100)``-style comment, or ``None``.

    Order is fixed: format checks, string length / pattern, numeric
    bounds and sign, array length, then the custom expression.
    """
    if validation is None:
        return None

    parts: List[str] = []
    for flag in ("email", "url", "uuid", "cuid"):
        if getattr(validation, flag):
            parts.append(f"{flag}()")

    if validation.min_length is not None:
        parts.append(f"min({_format_number(validation.min_length)})")
    if validation.max_length is not None:
        parts.append(f"max({_format_number(validation.max_length)})")
    if validation.pattern:
        parts.append(f"regex(/{validation.pattern}/)")

    if validation.min is not None:
        parts.append(f"min({_format_number(validation.min)})")
    if validation.max is not None:
        parts.append(f"max({_format_number(validation.max)})")
    if validation.integer:
        parts.append("int()")
    if validation.positive:
        parts.append("positive()")
    if validation.negative:
        parts.append("negative()")

    # Array bounds render as fixed-length constraints.
    if validation.min_items is not None:
        parts.append(f"length({_format_number(validation.min_items)})")
    if validation.max_items is not None:
        parts.append(f"length({_format_number(validation.max_items)})")

    if validation.custom:
        parts.append(validation.custom)

    if not parts:
        return None
    return VALIDATION_MARKER + ".".join(parts)


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


def write_datasource(datasource: DatasourceInfo, name: str = "db") -> str:
    lines: List[str] = [
        f"datasource {name} {{",
        f'{INDENT}provider = "{datasource.provider}"',
        f"{INDENT}url = {_format_url(datasource.url)}",
    ]
    if datasource.direct_url:
        lines.append(f"{INDENT}directUrl = {_format_url(datasource.direct_url)}")
    lines.append("}")
    return "\n".join(lines)


def write_generator(generator: GeneratorInfo) -> str:
    lines: List[str] = [
        f"generator {generator.name} {{",
        f'{INDENT}provider = "{generator.provider}"',
    ]
    if generator.output:
        lines.append(f'{INDENT}output = "{generator.output}"')
    for key, value in generator.config.items():
        if value is None:
            continue
        lines.append(f"{INDENT}{key} = {_format_literal(value)}")
    lines.append("}")
    return "\n".join(lines)


def format_relation(relation: RelationInfo) -> str:
    parts: List[str] = []
    if relation.name:
        parts.append(_quote(relation.name))
    if relation.fields:
        parts.append(f"fields: [{', '.join(relation.fields)}]")
    if relation.references:
        parts.append(f"references: [{', '.join(relation.references)}]")
    if relation.on_delete:
        parts.append(f"onDelete: {relation.on_delete}")
    if relation.on_update:
        parts.append(f"onUpdate: {relation.on_update}")
    return f"@relation({', '.join(parts)})"


def column_modifiers(column: ColumnInfo) -> List[str]:
    """Everything after the type token, in render order."""
    tokens: List[str] = list(column.attributes)
    if column.default is not None and not column.has_attribute("@default"):
        tokens.append(f"@default({_format_literal(column.default)})")
    if column.relation is not None:
        tokens.append(format_relation(column.relation))
    if column.map_name:
        tokens.append(f'@map("{column.map_name}")')
    return tokens


def write_column(column: ColumnInfo, name_width: int = 0, type_width: int = 0) -> str:
    """One column line without indentation."""
    head: str = f"{column.name.ljust(name_width)} {column.type_signature.ljust(type_width)}"
    return " ".join([head, *column_modifiers(column)]).rstrip()


def _directive_lines(table: TableInfo) -> List[str]:
    lines: List[str] = []
    for columns in table.indexes:
        lines.append(f"{INDENT}@@index([{', '.join(columns)}])")
    for columns in table.unique:
        lines.append(f"{INDENT}@@unique([{', '.join(columns)}])")
    if table.map_name:
        lines.append(f'{INDENT}@@map("{table.map_name}")')
    return lines


def write_table(table: TableInfo) -> str:
    name_width: int = max(len(c.name) for c in table.columns)
    type_width: int = max(len(c.type_signature) for c in table.columns)

    lines: List[str] = [f"model {table.name} {{"]
    for column in table.columns:
        comment: Optional[str] = build_validation_comment(column.validation)
        if comment:
            lines.append(f"{INDENT}{comment}")
        lines.append(f"{INDENT}{write_column(column, name_width, type_width)}")

    directives: List[str] = _directive_lines(table)
    if directives:
        lines.append("")
        lines.extend(directives)
    lines.append("}")
    return "\n".join(lines)


def write_schema(schema: SchemaInfo) -> str:
    """Full schema text, ending with a single newline."""
    blocks: List[str] = [write_datasource(schema.datasource)]
    blocks.extend(write_generator(g) for g in schema.generators)
    blocks.extend(write_table(t) for t in schema.tables)
    text: str = "\n\n".join(blocks) + "\n"
    logger.debug(
        "Serialized %d generator(s) and %d table(s) into %d bytes",
        len(schema.generators),
        len(schema.tables),
        len(text.encode("utf-8")),
    )
    return text


__all__: List[str] = [
    "INDENT",
    "VALIDATION_MARKER",
    "build_validation_comment",
    "write_datasource",
    "write_generator",
    "format_relation",
    "column_modifiers",
    "write_column",
    "write_table",
    "write_schema",
]

logger.debug("eavgen.writer loaded — %d public symbols.", len(__all__))
