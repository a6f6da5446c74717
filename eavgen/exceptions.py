# File: eavgen/exceptions.py
"""
EAVGen - Error Taxonomy
=========================

Every fatal condition raised by the pipeline derives from ``EAVGenError``
so callers (and the CLI) can catch the whole family in one place.
Recoverable reference problems are *not* exceptions — they are plain
warning strings collected on ``GenerationResult.warnings``.

    EAVGenError
    ├── ConfigurationError         missing / conflicting input source
    ├── DefinitionValidationError  model or component fails schema checks
    ├── DefinitionParseError       stored definition is not valid JSON
    ├── SourceReadError            row source could not be queried
    ├── MapperError                user-supplied mapper / loader raised
    └── UnsupportedFieldError      unknown field type reached the translator
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple


class EAVGenError(Exception):
    """Base class for all fatal generation errors."""


class ConfigurationError(EAVGenError):
    """Raised before any read when the configuration cannot drive a run."""


class DefinitionValidationError(EAVGenError):
    """
    A model or component definition violated one or more schema rules.

    ``issues`` holds every violation as a ``(path, message)`` pair, where
    *path* is dot-joined (``fields.2.config.options``).
    """

    def __init__(
        self,
        kind: str,
        identifier: Optional[str],
        issues: Sequence[Tuple[str, str]],
    ) -> None:
        self.kind: str = kind
        self.identifier: Optional[str] = identifier
        self.issues: List[Tuple[str, str]] = list(issues)
        super().__init__(self._render())

    @property
    def messages(self) -> List[str]:
        return [f"{path}: {message}" for path, message in self.issues]

    def _render(self) -> str:
        subject: str = f'{self.kind} "{self.identifier}"' if self.identifier else self.kind
        return f"Validation failed for {subject}:\n" + "\n".join(self.messages)


class DefinitionParseError(EAVGenError):
    """A stored definition payload could not be decoded."""

    def __init__(self, slug: Optional[str], row_id: Optional[str], detail: str) -> None:
        self.slug: Optional[str] = slug
        self.row_id: Optional[str] = row_id
        super().__init__(f'Invalid JSON in definition "{slug}" (id: {row_id}): {detail}')


class SourceReadError(EAVGenError):
    """The data source could not return rows for a definition table."""


class MapperError(EAVGenError):
    """A user-supplied mapper or loader hook raised."""

    def __init__(self, hook: str, identifier: Optional[str], cause: BaseException) -> None:
        self.hook: str = hook
        self.identifier: Optional[str] = identifier
        target: str = f' for "{identifier}"' if identifier else ""
        super().__init__(
            f"{hook} hook failed{target}: {type(cause).__name__}: {cause}"
        )


class UnsupportedFieldError(EAVGenError):
    """A field type the translator has no storage mapping for."""


__all__: List[str] = [
    "EAVGenError",
    "ConfigurationError",
    "DefinitionValidationError",
    "DefinitionParseError",
    "SourceReadError",
    "MapperError",
    "UnsupportedFieldError",
]
