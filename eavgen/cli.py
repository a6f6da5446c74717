# File: eavgen/cli.py
"""
EAVGen - Command-Line Interface
=================================

Thin ``argparse`` driver around ``SchemaGenerator``.

Usage examples::

    # Write the schema configured in eavgen.config.yaml
    eavgen generate

    # Another config file, with progress output
    eavgen -v generate --config ./config/eav.yaml

    # Create a config file (prompts; --yes takes every default)
    eavgen init --yes

    # Check every model / component definition
    eavgen validate

    # Per-model statistics and the tables a run would emit
    eavgen analyze

Exit codes:
    0 — success
    1 — any fatal error (message on stderr)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from eavgen.config import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_MODELS_TABLE,
    DEFAULT_SCHEMA_PATH,
    GenerationConfig,
    load_config,
    parse_config,
)
from eavgen.definitions import ComponentConfig, FieldType, ModelDefinition, RelationConfig
from eavgen.exceptions import EAVGenError
from eavgen.external import load_external_tables
from eavgen.generator import GenerationResult, RawDefinitions, SchemaGenerator
from eavgen.models import DatasourceProvider, NamingConvention
from eavgen.utils import Timer, dump_yaml, write_file
from eavgen.validators import ValidationResult, check_definitions

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("eavgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_FAILURE: int = 1

DEFAULT_CONNECTION: str = "sqlite:///./content.db"


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the eavgen logger based on verbosity level.

    Args:
        verbosity: -1 = silent, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    elif verbosity == 0:
        level = logging.WARNING
    else:
        level = logging.CRITICAL + 1

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    formatter: logging.Formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")
    handler.setFormatter(formatter)

    root_logger: logging.Logger = logging.getLogger("eavgen")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=DEFAULT_CONFIG_FILE,
        metavar="PATH",
        help=f"Configuration file (YAML or JSON). Default: {DEFAULT_CONFIG_FILE}",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from eavgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="eavgen",
        description=(
            "EAVGen — compile EAV content models into a relational schema.\n\n"
            "Reads model and component definitions from a database, a loader "
            "hook or the config itself, and writes Prisma-style schema text."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"EAVGen v{__version__}")
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log output (-v info, -vv debug).",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Silence all log output.",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    generate = subparsers.add_parser("generate", help="Generate and write the schema file.")
    _add_config_option(generate)

    init = subparsers.add_parser("init", help="Create a configuration file.")
    init.add_argument(
        "-o", "--output",
        type=str,
        default=DEFAULT_CONFIG_FILE,
        metavar="PATH",
        help=f"Where to write the config. Default: {DEFAULT_CONFIG_FILE}",
    )
    init.add_argument("-y", "--yes", action="store_true", help="Accept every default without prompting.")
    init.add_argument("--force", action="store_true", help="Overwrite an existing file.")

    validate = subparsers.add_parser("validate", help="Validate every model and component definition.")
    _add_config_option(validate)

    analyze = subparsers.add_parser("analyze", help="Show per-model statistics and planned tables.")
    _add_config_option(analyze)

    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _run_generate(args: argparse.Namespace) -> int:
    config: GenerationConfig = load_config(args.config)
    result: GenerationResult = asyncio.run(SchemaGenerator(config).write())
    print(result.summary())
    return EXIT_SUCCESS


def _prompt(question: str, default: str, assume_yes: bool) -> str:
    if assume_yes:
        return default
    answer: str = input(f"{question} [{default}]: ").strip()
    return answer or default


def _prompt_bool(question: str, default: bool, assume_yes: bool) -> bool:
    answer: str = _prompt(f"{question} (y/n)", "y" if default else "n", assume_yes)
    return answer.lower() in ("y", "yes", "true", "1")


def build_init_config(assume_yes: bool = True) -> Dict[str, Any]:
    """Config mapping assembled from prompts (or defaults)."""
    connection: str = _prompt("Database URL of the EAV tables", DEFAULT_CONNECTION, assume_yes)
    models_table: str = _prompt("Table holding model definitions", DEFAULT_MODELS_TABLE, assume_yes)
    components_table: str = _prompt("Table holding component definitions (blank for none)", "", assume_yes)
    schema_path: str = _prompt("Schema output path", DEFAULT_SCHEMA_PATH, assume_yes)
    provider: str = _prompt(
        f"Datasource provider ({'/'.join(p.value for p in DatasourceProvider)})",
        DatasourceProvider.SQLITE.value,
        assume_yes,
    )
    convention: str = _prompt(
        f"Naming convention ({'/'.join(c.value for c in NamingConvention)})",
        NamingConvention.PASCAL_CASE.value,
        assume_yes,
    )
    i18n: bool = _prompt_bool("Enable translation tables", False, assume_yes)

    tables: Dict[str, Any] = {"models": models_table}
    if components_table:
        tables["components"] = components_table

    data: Dict[str, Any] = {
        "connection": connection,
        "tables": tables,
        "output": {
            "schemaPath": schema_path,
            "datasource": {"provider": provider, "url": 'env("DATABASE_URL")'},
        },
        "i18n": {"enabled": i18n},
        "naming": {"convention": convention},
    }
    # Reject bad answers before anything is written.
    parse_config(data)
    return data


def _run_init(args: argparse.Namespace) -> int:
    path: Path = Path(args.output)
    if path.exists() and not args.force:
        print(f"Error: {path} already exists (use --force to overwrite).", file=sys.stderr)
        return EXIT_FAILURE

    data: Dict[str, Any] = build_init_config(assume_yes=args.yes)
    write_file(path, dump_yaml(data))
    print(f"Created {path}")
    return EXIT_SUCCESS


def _external_names(config: GenerationConfig) -> List[str]:
    tables, _ = load_external_tables(config.external_models)
    return [t.name for t in tables]


def _run_validate(args: argparse.Namespace) -> int:
    config: GenerationConfig = load_config(args.config)
    generator: SchemaGenerator = SchemaGenerator(config)

    with Timer("validation") as t:
        raw: RawDefinitions = asyncio.run(generator.load_raw_definitions())
        result: ValidationResult = check_definitions(
            raw.models, raw.components, external_names=_external_names(config)
        )

    print(f"\n{'='*50}")
    print("  Definition Validation Report")
    print(f"{'='*50}")
    print(f"  Config:      {args.config}")
    print(f"  Models:      {len(raw.models)}")
    print(f"  Components:  {len(raw.components)}")
    print(f"  Time:        {t.elapsed:.3f}s")
    print(f"  Valid:       {'Yes' if result.is_valid else 'No'}")
    for message in raw.warnings:
        print(f"    ⚠ {message}")
    report: str = result.format_report()
    if report:
        print()
        print(report)
    if result.is_valid and not result.warnings:
        print("\n  ✅ All definitions are valid!")
    print(f"{'='*50}\n")

    return EXIT_SUCCESS if result.is_valid else EXIT_FAILURE


def _model_stats(model: ModelDefinition) -> str:
    fields = [f for f in model.fields if not f.derived]
    translatable: int = sum(1 for f in fields if f.is_translatable)
    relations: int = sum(1 for f in fields if isinstance(f.config, RelationConfig))
    components: int = sum(1 for f in fields if isinstance(f.config, ComponentConfig))
    media: int = sum(1 for f in fields if f.type == FieldType.MEDIA)
    return (
        f"{len(fields)} field(s), {translatable} translatable, "
        f"{relations} relation(s), {components} component(s), {media} media"
    )


def _run_analyze(args: argparse.Namespace) -> int:
    config: GenerationConfig = load_config(args.config)
    generator: SchemaGenerator = SchemaGenerator(config)

    models, components, _ = asyncio.run(generator.read_definitions())
    settings = config.build_settings(_external_names(config))
    tables = generator.compile_tables(models, components, settings)

    print(f"\n{'='*50}")
    print("  Content Model Analysis")
    print(f"{'='*50}")
    print(f"  Models:      {len(models)}")
    print(f"  Components:  {len(components)}")
    print(f"  i18n:        {'on' if config.i18n.enabled else 'off'}")
    print(f"  Naming:      {config.naming.convention}")
    print(f"{'─'*50}")
    for model in models:
        print(f"  {model.slug:<20s} {_model_stats(model)}")
    print(f"{'─'*50}")
    print(f"  Tables ({len(tables)}):")
    for table in tables:
        print(f"    • {table.name:<30s} {len(table.columns)} column(s)")
    print(f"{'='*50}\n")
    return EXIT_SUCCESS


_COMMANDS = {
    "generate": _run_generate,
    "init": _run_init,
    "validate": _run_validate,
    "analyze": _run_analyze,
}


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run one CLI command and return its exit code.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)
    _setup_logging(-1 if args.quiet else args.verbose)

    try:
        return _COMMANDS[args.command](args)
    except (EAVGenError, OSError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILURE


def main() -> None:
    """Console-script entry point."""
    sys.exit(cli_main())


__all__: List[str] = [
    "cli_main",
    "main",
    "build_init_config",
    "EXIT_SUCCESS",
    "EXIT_FAILURE",
]

logger.debug("eavgen.cli loaded.")
