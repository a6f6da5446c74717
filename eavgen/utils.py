# File: eavgen/utils.py
"""
EAVGen - Utility Functions & Helpers
======================================
File I/O, structured-file loading, hook plumbing and timing helpers used
across the pipeline.

- ``write_file`` writes through a temporary file in the target directory
  and renames it into place, creating parent directories first.
- ``load_structured_file`` dispatches on extension (YAML / JSON).
- ``resolve_awaitable`` lets user hooks be plain or ``async`` functions.
"""

from __future__ import annotations

import importlib
import inspect
import json
import logging
import os
import re
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("eavgen.utils")

_ENV_REFERENCE_RE: re.Pattern[str] = re.compile(r'^env\(\s*["\']([^"\']+)["\']\s*\)$')


# ---------------------------------------------------------------------------
# Structured file loading
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object at top level, got {type(data).__name__}.")
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping at top level, got {type(data).__name__}.")
    return data


def load_structured_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a JSON or YAML mapping, dispatching on the file extension.

    Raises:
        FileNotFoundError: *path* does not exist.
        ValueError: the content is not a mapping or cannot be parsed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if not path.is_file():
        raise ValueError(f"Path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except ValueError:
        return _load_yaml_file(path)


def dump_yaml(data: Dict[str, Any]) -> str:
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False, allow_unicode=True)


# ---------------------------------------------------------------------------
# File writing
# ---------------------------------------------------------------------------


def write_file(path: Union[str, Path], content: str) -> int:
    """
    Write *content* as UTF-8 (no BOM) to *path*, creating parent dirs.

    Returns the number of bytes written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded: bytes = content.encode("utf-8")

    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(encoded)
        shutil.move(tmp_path, str(path))
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


# ---------------------------------------------------------------------------
# Hooks and references
# ---------------------------------------------------------------------------


async def resolve_awaitable(value: Any) -> Any:
    """Await *value* if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


def import_string(reference: str) -> Any:
    """
    Resolve ``"package.module:attribute"`` (or ``package.module.attribute``).

    Raises:
        ImportError: the module or attribute does not exist.
    """
    module_name, sep, attribute = reference.partition(":")
    if not sep:
        module_name, _, attribute = reference.rpartition(".")
    if not module_name or not attribute:
        raise ImportError(f"'{reference}' is not a 'module:attribute' reference")

    module = importlib.import_module(module_name)
    try:
        return getattr(module, attribute)
    except AttributeError as exc:
        raise ImportError(f"Module '{module_name}' has no attribute '{attribute}'") from exc


def resolve_env_reference(value: str, environ: Optional[Dict[str, str]] = None) -> Optional[str]:
    """
    Expand ``env("NAME")`` to the variable's value; other strings pass through.

    Returns ``None`` when the variable is unset.
    """
    match = _ENV_REFERENCE_RE.match(value.strip())
    if not match:
        return value
    return (environ if environ is not None else os.environ).get(match.group(1))


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for pipeline stages.

    Usage:
        with Timer("compile models") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.elapsed = time.perf_counter() - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


__all__: List[str] = [
    "load_structured_file",
    "dump_yaml",
    "write_file",
    "resolve_awaitable",
    "import_string",
    "resolve_env_reference",
    "Timer",
]

logger.debug("eavgen.utils loaded — %d public symbols.", len(__all__))
