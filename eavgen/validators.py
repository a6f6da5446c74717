# File: eavgen/validators.py
"""
EAVGen - Definition Validators
================================
Turns raw definition payloads (dicts decoded from JSON, YAML or a mapper)
into validated ``ModelDefinition`` / ``ComponentDefinition`` objects.

Pydantic handles per-field structure (slugs, types, config blocks). This
module adds the rules that need the whole field list:

- field keys must be unique within one definition
- ``variant_id`` and ``enabled`` are reserved inside components

Every violation found in one payload is reported together through a single
``DefinitionValidationError``.

``check_definitions`` is the non-raising variant used by ``eavgen validate``:
it accumulates errors plus cross-definition warnings into a
``ValidationResult``.

Usage:
    from eavgen.validators import validate_model
    model = validate_model(payload)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from eavgen.definitions import (
    AB_TESTING_RESERVED_KEYS,
    ComponentConfig,
    ComponentDefinition,
    ModelDefinition,
    RelationConfig,
)
from eavgen.exceptions import DefinitionValidationError

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("eavgen.validators")

Issue = Tuple[str, str]

_KINDS: Dict[str, Type[BaseModel]] = {
    "model": ModelDefinition,
    "component": ComponentDefinition,
}

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """One finding reported by ``check_definitions``."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"


class ValidationResult:
    """Accumulates ``ValidationIssue`` instances across many definitions."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    def add_error(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationIssue("error", code, message, context))

    def add_warning(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    def add_info(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationIssue("info", code, message, context))

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self._items if i.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self._items if i.is_warning]

    @property
    def codes(self) -> List[str]:
        return [i.code for i in self._items]

    @property
    def is_valid(self) -> bool:
        return not any(i.is_error for i in self._items)

    def summary(self) -> str:
        return (
            f"Validation: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __bool__(self) -> bool:
        """Truthy when there are NO errors."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            marker: str = {"error": "✗", "warning": "!", "info": "i"}.get(item.level, "•")
            lines.append(f"  {marker} [{item.code}] {item.message}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Issue collection
# ---------------------------------------------------------------------------


def _format_loc(loc: Iterable[Union[int, str]]) -> str:
    return ".".join(str(part) for part in loc)


def _pydantic_issues(exc: PydanticValidationError) -> List[Issue]:
    issues: List[Issue] = []
    for err in exc.errors():
        message: str = err["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        issues.append((_format_loc(err["loc"]), message))
    return issues


def _field_list_issues(raw: Mapping[str, Any], kind: str) -> List[Issue]:
    """Rules that look across all fields of one definition."""
    fields: Any = raw.get("fields")
    if not isinstance(fields, list):
        return []

    issues: List[Issue] = []
    first_seen: Dict[str, int] = {}
    for index, entry in enumerate(fields):
        if not isinstance(entry, Mapping):
            continue
        key: Any = entry.get("key")
        if not isinstance(key, str):
            continue
        path: str = f"fields.{index}.key"

        if key in first_seen:
            issues.append(
                (path, f"Field keys must be unique; '{key}' is already declared at fields.{first_seen[key]}")
            )
        else:
            first_seen[key] = index

        if kind == "component" and key in AB_TESTING_RESERVED_KEYS:
            issues.append((path, f"Field key '{key}' is reserved for A/B testing in components"))
    return issues


def _parse(raw: Any, kind: str) -> Tuple[Optional[BaseModel], List[Issue]]:
    if not isinstance(raw, Mapping):
        return None, [("", f"Expected a {kind} object, got {type(raw).__name__}")]

    parsed: Optional[BaseModel] = None
    issues: List[Issue] = []
    try:
        parsed = _KINDS[kind].model_validate(dict(raw))
    except PydanticValidationError as exc:
        issues.extend(_pydantic_issues(exc))
    issues.extend(_field_list_issues(raw, kind))
    return parsed, issues


def definition_issues(raw: Any, kind: str = "model") -> List[Issue]:
    """
    Every rule violation of one raw definition, as ``(path, message)`` pairs.

    An empty list means the payload is valid.
    """
    return _parse(raw, kind)[1]


def _identifier(raw: Any) -> Optional[str]:
    if isinstance(raw, Mapping):
        slug: Any = raw.get("slug")
        return slug if isinstance(slug, str) else None
    return None


def _validate(raw: Any, kind: str) -> BaseModel:
    parsed, issues = _parse(raw, kind)
    if issues or parsed is None:
        identifier: Optional[str] = _identifier(raw)
        logger.debug("%s '%s' failed validation with %d issue(s)", kind, identifier, len(issues))
        raise DefinitionValidationError(kind, identifier, issues)
    return parsed


def validate_model(raw: Any) -> ModelDefinition:
    """Validate one model payload or raise ``DefinitionValidationError``."""
    return _validate(raw, "model")  # type: ignore[return-value]


def validate_component(raw: Any) -> ComponentDefinition:
    """Validate one component payload or raise ``DefinitionValidationError``."""
    return _validate(raw, "component")  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Non-raising checks
# ---------------------------------------------------------------------------


def _record_issues(result: ValidationResult, kind: str, identifier: str, issues: List[Issue]) -> None:
    for path, message in issues:
        subject: str = f'{kind} "{identifier}"'
        result.add_error(
            f"INVALID_{kind.upper()}",
            f"{subject}: {path}: {message}" if path else f"{subject}: {message}",
            {kind: identifier, "path": path},
        )


def check_model(raw: Any) -> ValidationResult:
    """Errors of one model payload, without cross-definition checks."""
    result: ValidationResult = ValidationResult()
    _record_issues(result, "model", _identifier(raw) or "<unknown>", definition_issues(raw, "model"))
    return result


def check_component(raw: Any) -> ValidationResult:
    """Errors of one component payload, without cross-definition checks."""
    result: ValidationResult = ValidationResult()
    _record_issues(
        result, "component", _identifier(raw) or "<unknown>", definition_issues(raw, "component")
    )
    return result


def check_definitions(
    models: Iterable[Any],
    components: Iterable[Any] = (),
    external_names: Iterable[str] = (),
) -> ValidationResult:
    """
    Validate every model and component and cross-check their references.

    Errors are the same violations ``validate_model`` would raise. Warnings
    flag things the generator tolerates: duplicate slugs (last one wins),
    missing components and unknown sort fields. Unresolved relation
    targets and derived fields are reported as info.
    """
    result: ValidationResult = ValidationResult()
    valid_models: List[ModelDefinition] = []
    component_slugs: Set[str] = set()

    for kind, items in (("component", components), ("model", models)):
        seen: Set[str] = set()
        for raw in items:
            identifier: str = _identifier(raw) or "<unknown>"
            parsed, issues = _parse(raw, kind)
            _record_issues(result, kind, identifier, issues)
            if identifier in seen:
                result.add_warning(
                    f"DUPLICATE_{kind.upper()}_SLUG",
                    f'{kind} slug "{identifier}" is declared more than once; the last one wins.',
                    {kind: identifier},
                )
            seen.add(identifier)
            if issues:
                continue
            if kind == "component":
                component_slugs.add(identifier)
            else:
                valid_models.append(parsed)  # type: ignore[arg-type]

    model_slugs: Set[str] = {m.slug for m in valid_models}
    known_targets: Set[str] = model_slugs | set(external_names)

    for model in valid_models:
        keys: Set[str] = set(model.field_keys)
        for field in model.fields:
            if field.derived:
                result.add_info(
                    "DERIVED_FIELD_SKIPPED",
                    f'Derived field "{field.key}" in model "{model.slug}" produces no column.',
                    {"model": model.slug, "field": field.key},
                )
                continue
            config = field.config
            if isinstance(config, ComponentConfig) and config.slug not in component_slugs:
                result.add_warning(
                    "MISSING_COMPONENT",
                    f'Component "{config.slug}" not found for field "{field.key}" '
                    f'in model "{model.slug}".',
                    {"model": model.slug, "field": field.key},
                )
            elif isinstance(config, RelationConfig) and config.target_model not in known_targets:
                result.add_info(
                    "UNRESOLVED_RELATION_TARGET",
                    f'Relation "{field.key}" in model "{model.slug}" targets '
                    f'"{config.target_model}", which is not defined here.',
                    {"model": model.slug, "field": field.key},
                )
        sort_field: Optional[str] = model.settings.sort_field
        if sort_field and sort_field not in keys:
            result.add_warning(
                "UNKNOWN_SORT_FIELD",
                f'sortField "{sort_field}" of model "{model.slug}" is not one of its fields.',
                {"model": model.slug},
            )

    if result.is_valid:
        logger.info("Definitions valid. %s", result.summary())
    else:
        logger.error("Definition validation FAILED. %s", result.summary())
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "definition_issues",
    "validate_model",
    "validate_component",
    "check_model",
    "check_component",
    "check_definitions",
]

logger.debug("eavgen.validators loaded — %d public symbols.", len(__all__))
