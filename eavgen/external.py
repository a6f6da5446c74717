# File: eavgen/external.py
"""
EAVGen - External Model Merge
===============================
Reads hand-written schema files (for example an existing ``Media`` or
``User`` model) and turns every ``model`` block into a ``TableInfo`` so
that generated relations can point at it.

The parser is regex based and deliberately shallow: one field per line,
``Type``, ``Type?`` or ``Type[]``, attributes split at top-level ``@``.
Block directives understood: ``@@index``, ``@@unique``, ``@@map``.

``load_external_tables`` never raises for a bad path; it returns a warning
string instead and moves on to the next file.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from eavgen.config import ExternalModelsConfig
from eavgen.models import ColumnInfo, ReferentialAction, RelationInfo, TableInfo

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("eavgen.external")

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_MODEL_RE: re.Pattern[str] = re.compile(r"^model\s+(\w+)\s*\{(.*?)^\}", re.MULTILINE | re.DOTALL)
_INDEX_RE: re.Pattern[str] = re.compile(r"@@index\(\[([^\]]+)\]")
_UNIQUE_RE: re.Pattern[str] = re.compile(r"@@unique\(\[([^\]]+)\]")
_TABLE_MAP_RE: re.Pattern[str] = re.compile(r'@@map\("([^"]+)"\)')
_COLUMN_MAP_RE: re.Pattern[str] = re.compile(r'@map\("([^"]+)"\)')
_DEFAULT_RE: re.Pattern[str] = re.compile(r"@default\((.+)\)$")
_REL_FIELDS_RE: re.Pattern[str] = re.compile(r"fields:\s*\[([^\]]+)\]")
_REL_REFERENCES_RE: re.Pattern[str] = re.compile(r"references:\s*\[([^\]]+)\]")
_REL_NAME_RE: re.Pattern[str] = re.compile(r'@relation\(\s*(?:name:\s*)?"([^"]+)"')
_REL_ON_DELETE_RE: re.Pattern[str] = re.compile(r"onDelete:\s*(\w+)")
_REL_ON_UPDATE_RE: re.Pattern[str] = re.compile(r"onUpdate:\s*(\w+)")
_INT_RE: re.Pattern[str] = re.compile(r"^-?\d+$")
_FLOAT_RE: re.Pattern[str] = re.compile(r"^-?\d+\.\d+$")

_ACTIONS = {action.value for action in ReferentialAction}

ExternalSource = Union[str, Sequence[str], ExternalModelsConfig]
SchemaFileParser = Callable[[Union[str, Path]], List[TableInfo]]


# ---------------------------------------------------------------------------
# Line-level parsing
# ---------------------------------------------------------------------------


def split_attributes(line: str) -> List[str]:
    """
    Split the attribute tail of a field line at top-level ``@`` tokens.

        >>> split_attributes('id String @id @default(cuid())')
        ['@id', '@default(cuid())']
    """
    attributes: List[str] = []
    current: str = ""
    depth: int = 0
    in_attribute: bool = False

    for char in line:
        if char == "@" and depth == 0 and not in_attribute:
            current = "@"
            in_attribute = True
        elif in_attribute:
            if char == "(":
                depth += 1
                current += char
            elif char == ")":
                depth -= 1
                current += char
                if depth == 0:
                    attributes.append(current)
                    current, in_attribute = "", False
            elif char.isspace() and depth == 0:
                if current.strip():
                    attributes.append(current.strip())
                current, in_attribute = "", False
            else:
                current += char

    if in_attribute and current.strip():
        attributes.append(current.strip())
    return attributes


def _split_names(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_default(attribute: str) -> Union[bool, int, float, str, None]:
    match = _DEFAULT_RE.match(attribute)
    if not match:
        return None
    value: str = match.group(1).strip()
    if value in ("true", "false"):
        return value == "true"
    if _INT_RE.match(value):
        return int(value)
    if _FLOAT_RE.match(value):
        return float(value)
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_relation(attribute: str) -> RelationInfo:
    def _action(pattern: re.Pattern[str]) -> Optional[str]:
        match = pattern.search(attribute)
        return match.group(1) if match and match.group(1) in _ACTIONS else None

    fields_match = _REL_FIELDS_RE.search(attribute)
    references_match = _REL_REFERENCES_RE.search(attribute)
    name_match = _REL_NAME_RE.match(attribute)
    return RelationInfo(
        name=name_match.group(1) if name_match else None,
        fields=_split_names(fields_match.group(1)) if fields_match else [],
        references=_split_names(references_match.group(1)) if references_match else [],
        on_delete=_action(_REL_ON_DELETE_RE),
        on_update=_action(_REL_ON_UPDATE_RE),
    )


def parse_field_line(line: str) -> Optional[ColumnInfo]:
    """``name Type? @attr ...`` → ``ColumnInfo``; ``None`` for non-field lines."""
    parts: List[str] = line.split()
    if len(parts) < 2:
        return None

    name, type_token = parts[0], parts[1]
    nullable: bool = type_token.endswith("?")
    if nullable:
        type_token = type_token[:-1]
    is_list: bool = type_token.endswith("[]")
    if is_list:
        type_token = type_token[:-2]
    if not type_token:
        return None

    attributes: List[str] = []
    default = None
    relation: Optional[RelationInfo] = None
    map_name: Optional[str] = None
    for attribute in split_attributes(line):
        if attribute.startswith("@relation"):
            relation = parse_relation(attribute)
            continue
        if attribute.startswith("@map"):
            match = _COLUMN_MAP_RE.match(attribute)
            map_name = match.group(1) if match else None
            continue
        if attribute.startswith("@default"):
            default = parse_default(attribute)
        attributes.append(attribute)

    return ColumnInfo(
        name=name,
        type=type_token,
        nullable=nullable and not is_list,
        is_list=is_list,
        default=default,
        attributes=attributes,
        relation=relation,
        map_name=map_name,
    )


# ---------------------------------------------------------------------------
# Document-level parsing
# ---------------------------------------------------------------------------


def parse_schema_text(text: str) -> List[TableInfo]:
    """Every ``model`` block of *text*, in document order."""
    tables: List[TableInfo] = []
    for match in _MODEL_RE.finditer(text):
        name, body = match.group(1), match.group(2)
        columns: List[ColumnInfo] = []
        indexes: List[List[str]] = []
        unique: List[List[str]] = []
        map_name: Optional[str] = None

        for raw_line in body.splitlines():
            line: str = raw_line.strip()
            if not line or line.startswith("//"):
                continue
            if line.startswith("@@index"):
                found = _INDEX_RE.match(line)
                if found:
                    indexes.append(_split_names(found.group(1)))
                continue
            if line.startswith("@@unique"):
                found = _UNIQUE_RE.match(line)
                if found:
                    unique.append(_split_names(found.group(1)))
                continue
            if line.startswith("@@map"):
                found = _TABLE_MAP_RE.match(line)
                if found:
                    map_name = found.group(1)
                continue
            if line.startswith("@@"):
                logger.debug("Ignoring block directive in model %s: %s", name, line)
                continue
            column = parse_field_line(line)
            if column is not None:
                columns.append(column)

        if not columns:
            logger.warning("External model '%s' has no fields; skipped", name)
            continue
        tables.append(
            TableInfo(name=name, columns=columns, indexes=indexes, unique=unique, map_name=map_name)
        )
    return tables


def parse_schema_file(path: Union[str, Path]) -> List[TableInfo]:
    return parse_schema_text(Path(path).read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def resolve_external_paths(source: ExternalSource) -> List[str]:
    if isinstance(source, ExternalModelsConfig):
        source = source.path
    if isinstance(source, str):
        return [source]
    return list(source)


def filter_external_tables(
    tables: Iterable[TableInfo],
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
) -> List[TableInfo]:
    """Whitelist by *include* first, then drop *exclude*. Exact, case-sensitive."""
    result: List[TableInfo] = list(tables)
    if include:
        allowed = set(include)
        result = [t for t in result if t.name in allowed]
    if exclude:
        blocked = set(exclude)
        result = [t for t in result if t.name not in blocked]
    return result


def load_external_tables(
    source: Optional[ExternalSource],
    parser: SchemaFileParser = parse_schema_file,
) -> Tuple[List[TableInfo], List[str]]:
    """
    Tables from every path of *source*, concatenated in path order.

    Returns:
        ``(tables, warnings)``; an unreadable path adds one warning and
        contributes no tables.
    """
    if not source:
        return [], []

    include: Optional[List[str]] = None
    exclude: Optional[List[str]] = None
    if isinstance(source, ExternalModelsConfig):
        include, exclude = source.include, source.exclude

    tables: List[TableInfo] = []
    warnings: List[str] = []
    for path in resolve_external_paths(source):
        try:
            parsed: List[TableInfo] = parser(path)
        except (OSError, ValueError) as exc:
            message = f'Failed to load external models from "{path}": {exc}'
            logger.warning(message)
            warnings.append(message)
            continue
        kept = filter_external_tables(parsed, include, exclude)
        logger.info("Loaded %d external model(s) from %s (%d parsed)", len(kept), path, len(parsed))
        tables.extend(kept)
    return tables, warnings


__all__: List[str] = [
    "split_attributes",
    "parse_default",
    "parse_relation",
    "parse_field_line",
    "parse_schema_text",
    "parse_schema_file",
    "resolve_external_paths",
    "filter_external_tables",
    "load_external_tables",
]

logger.debug("eavgen.external loaded — %d public symbols.", len(__all__))
