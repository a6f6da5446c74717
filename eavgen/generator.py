# File: eavgen/generator.py
"""
EAVGen - Generation Pipeline (Orchestrator)
=============================================

Connects every phase of a run:

    External models → Read source → Mapper + validation
        → Compile models → Derived tables → Serialize

``SchemaGenerator`` is both the programmatic entry point and the backend
of the CLI.

Workflow::

    1. Parse external schema files; their table names become known targets.
    2. Fetch raw definitions (in-memory list, loader hook or database rows).
    3. Run the optional mapper over every row and validate the result.
    4. Compile each model into its base (+ translation) table.
    5. Emit component and junction tables right after their model.
    6. Merge external and generated tables, external first.
    7. Render datasource, generators and tables into schema text.

Error handling strategy:
    - Configuration, read, parse, validation and mapper errors abort the
      run; the stage moves to ``FAILED`` and the exception propagates.
    - Missing components, derived fields, unreadable external files and
      table-name collisions are warnings. They are logged, collected on
      the result and never stop the run.

Per-run accumulators (warnings, emitted junction names, external names)
live on a private ``_RunState`` created inside ``generate()``; one
``SchemaGenerator`` must not run two generations at the same time.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from eavgen.builder import build_model, model_settings
from eavgen.components import build_component_tables
from eavgen.config import GenerationConfig, InputSource
from eavgen.definitions import ComponentConfig, ComponentDefinition, ModelDefinition
from eavgen.exceptions import ConfigurationError, EAVGenError, MapperError, SourceReadError
from eavgen.external import load_external_tables
from eavgen.models import SchemaInfo, TableInfo
from eavgen.naming import BuildSettings
from eavgen.reader import EAVReader, RowSource, SqlAlchemyRowSource
from eavgen.relations import build_junction_table, needs_junction_table
from eavgen.utils import Timer, resolve_awaitable, write_file
from eavgen.validators import validate_component, validate_model
from eavgen.writer import write_schema

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("eavgen.generator")


class GenerationStage(str, Enum):
    IDLE = "idle"
    LOADING_EXTERNAL_MODELS = "loading_external_models"
    READING_SOURCE = "reading_source"
    APPLYING_MAPPER = "applying_mapper"
    COMPILING_MODELS = "compiling_models"
    EMITTING_DERIVED_TABLES = "emitting_derived_tables"
    SERIALIZING = "serializing"
    DONE = "done"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Generation result
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline stage."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationResult:
    """
    Everything ``SchemaGenerator.generate()`` produced.

    ``schema`` is the rendered text; ``tables`` the final table list in
    output order (external first).
    """

    schema: str = ""
    models_generated: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    warnings_by_model: Dict[str, List[str]] = field(default_factory=dict)
    tables: List[TableInfo] = field(default_factory=list)
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    schema_path: Optional[str] = None
    bytes_written: int = 0
    total_elapsed_seconds: float = 0.0

    @property
    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        lines.append(f"{'='*60}")
        lines.append("  EAVGen — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Models generated: {len(self.models_generated)}")
        lines.append(f"  Tables emitted:   {len(self.tables)}")
        if self.schema_path:
            lines.append(f"  Output:           {self.schema_path}")
            lines.append(f"  Bytes written:    {self.bytes_written:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        if self.warnings:
            lines.append(f"{'─'*60}")
            lines.append(f"  Warnings ({len(self.warnings)}):")
            for warn in self.warnings:
                lines.append(f"    ⚠ {warn}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


@dataclass(slots=True)
class _RunState:
    warnings: List[str] = field(default_factory=list)
    warnings_by_model: Dict[str, List[str]] = field(default_factory=dict)
    emitted_junctions: Set[str] = field(default_factory=set)
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)

    def warn(self, message: str, model: Optional[str] = None) -> None:
        logger.warning(message)
        self.warnings.append(message)
        if model is not None:
            self.warnings_by_model.setdefault(model, []).append(message)

    def record(self, step_name: str, timer: Timer, detail: str = "") -> None:
        self.step_metrics.append(
            GenerationStepMetric(
                step_name=step_name,
                success=True,
                elapsed_seconds=timer.elapsed,
                detail=detail,
            )
        )


@dataclass(slots=True)
class RawDefinitions:
    """Mapped but unvalidated definitions, as handed to the validators."""

    models: List[Any] = field(default_factory=list)
    components: List[Any] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Table merge
# ---------------------------------------------------------------------------


def merge_tables(
    external: Iterable[TableInfo],
    generated: Iterable[TableInfo],
) -> Tuple[List[TableInfo], List[str]]:
    """
    External tables then generated ones, keyed by name.

    A repeated name keeps the position of its first occurrence but the
    table of its last one. Returns ``(tables, collided_names)``.
    """
    merged: Dict[str, TableInfo] = {}
    collisions: List[str] = []
    for table in [*external, *generated]:
        if table.name in merged:
            collisions.append(table.name)
        merged[table.name] = table
    return list(merged.values()), collisions


# ---------------------------------------------------------------------------
# SchemaGenerator — pipeline orchestrator
# ---------------------------------------------------------------------------


class SchemaGenerator:
    """
    Runs one configured generation.

    Usage::

        generator = SchemaGenerator(load_config("eavgen.config.yaml"))
        result = asyncio.run(generator.write())
        print(result.summary())

    Args:
        config:     Validated run configuration.
        row_source: Row source for database input. When omitted and the
                    config names a ``connection``, a ``SqlAlchemyRowSource``
                    is created for the run and disposed afterwards.
    """

    def __init__(self, config: GenerationConfig, row_source: Optional[RowSource] = None) -> None:
        self.config: GenerationConfig = config
        self.row_source: Optional[RowSource] = row_source
        self.stage: GenerationStage = GenerationStage.IDLE

    def _enter(self, stage: GenerationStage) -> None:
        logger.debug("Stage %s → %s", self.stage.value, stage.value)
        self.stage = stage

    # -----------------------------------------------------------------
    # Reading
    # -----------------------------------------------------------------

    async def _call_loader(self, loader: Callable[..., Any]) -> Tuple[List[Any], List[Any]]:
        try:
            data: Any = await resolve_awaitable(loader())
        except EAVGenError:
            raise
        except Exception as exc:
            raise MapperError("input.loader", None, exc) from exc
        if not isinstance(data, Mapping) or "models" not in data:
            raise ConfigurationError("input.loader must return a mapping with a 'models' key")
        return list(data.get("models") or []), list(data.get("components") or [])

    async def _read_database(self, state_warnings: List[str]) -> Tuple[List[Any], List[Any]]:
        source: RowSource = self.row_source or SqlAlchemyRowSource(self.config.connection_url())
        try:
            model_reader = EAVReader(source, self.config.tables.models, self.config.mapper.model, "model")
            model_rows = await model_reader.fetch_rows()

            component_rows: List[Any] = []
            components_table: Optional[str] = self.config.tables.components
            if components_table:
                component_reader = EAVReader(
                    source, components_table, self.config.mapper.component, "component"
                )
                try:
                    component_rows = await component_reader.fetch_rows()
                except SourceReadError as exc:
                    message = f'Failed to read components from "{components_table}": {exc}'
                    logger.warning(message)
                    state_warnings.append(message)

            self._enter(GenerationStage.APPLYING_MAPPER)
            models = [await model_reader.transform(row) for row in model_rows]
            components = []
            if component_rows:
                components = [await component_reader.transform(row) for row in component_rows]
        finally:
            if self.row_source is None and isinstance(source, SqlAlchemyRowSource):
                source.dispose()
        return models, components

    async def _apply_mapper(self, items: List[Any], hook: Optional[Callable[..., Any]], name: str) -> List[Any]:
        if hook is None:
            return items
        mapped: List[Any] = []
        for item in items:
            try:
                mapped.append(await resolve_awaitable(hook(item)))
            except EAVGenError:
                raise
            except Exception as exc:
                identifier = item.get("slug") if isinstance(item, Mapping) else None
                raise MapperError(name, identifier, exc) from exc
        return mapped

    async def load_raw_definitions(self) -> RawDefinitions:
        """
        Raw model and component definitions after the mapper ran.

        Raises:
            ConfigurationError: the configured input source is unusable.
            MapperError: a loader or mapper hook raised.
            DefinitionParseError: a stored row holds invalid JSON.
            SourceReadError: the model table could not be read.
        """
        source_kind: InputSource = self.config.input_source()
        raw: RawDefinitions = RawDefinitions()

        self._enter(GenerationStage.READING_SOURCE)
        if source_kind == InputSource.DATABASE:
            raw.models, raw.components = await self._read_database(raw.warnings)
            return raw

        assert self.config.input is not None
        if source_kind == InputSource.LOADER:
            models, components = await self._call_loader(self.config.input.loader)  # type: ignore[arg-type]
        else:
            models = list(self.config.input.models or [])
            components = list(self.config.input.components or [])

        self._enter(GenerationStage.APPLYING_MAPPER)
        raw.models = await self._apply_mapper(models, self.config.mapper.model, "mapper.model")
        raw.components = await self._apply_mapper(
            components, self.config.mapper.component, "mapper.component"
        )
        return raw

    async def read_definitions(
        self,
    ) -> Tuple[List[ModelDefinition], Dict[str, ComponentDefinition], List[str]]:
        """
        Validated models, components by slug, and read warnings.

        Raises:
            DefinitionValidationError: any definition breaks a schema rule.
        """
        raw: RawDefinitions = await self.load_raw_definitions()
        models: List[ModelDefinition] = [validate_model(item) for item in raw.models]
        components: Dict[str, ComponentDefinition] = {}
        for item in raw.components:
            component: ComponentDefinition = validate_component(item)
            components[component.slug] = component
        return models, components, raw.warnings

    # -----------------------------------------------------------------
    # Compiling
    # -----------------------------------------------------------------

    def _derived_tables(
        self,
        model: ModelDefinition,
        settings: BuildSettings,
        components: Mapping[str, ComponentDefinition],
        state: _RunState,
    ) -> List[TableInfo]:
        """Component and junction tables of *model*, in field order."""
        settings = model_settings(model, settings)
        owner: str = settings.table_name(model.slug)
        tables: List[TableInfo] = []

        for item in model.fields:
            if item.derived:
                continue
            config = item.config
            if isinstance(config, ComponentConfig):
                component: Optional[ComponentDefinition] = components.get(config.slug)
                if component is None:
                    state.warn(
                        f'Component "{config.slug}" not found for field "{item.key}" '
                        f'in model "{model.slug}"',
                        model=model.slug,
                    )
                    continue
                tables.extend(
                    build_component_tables(
                        owner,
                        item.key,
                        component,
                        settings,
                        repeatable=config.repeatable,
                        context=config.context,
                    )
                )
            elif needs_junction_table(item):
                junction: TableInfo = build_junction_table(owner, item, settings)
                if junction.name in state.emitted_junctions:
                    logger.debug("Junction table %s already emitted; skipped", junction.name)
                    continue
                state.emitted_junctions.add(junction.name)
                tables.append(junction)
        return tables

    def compile_tables(
        self,
        models: List[ModelDefinition],
        components: Mapping[str, ComponentDefinition],
        settings: BuildSettings,
        state: Optional[_RunState] = None,
    ) -> List[TableInfo]:
        """Generated tables of every model, each model's derived tables right after it."""
        state = state if state is not None else _RunState()

        self._enter(GenerationStage.COMPILING_MODELS)
        with Timer("compile models") as t_compile:
            compiled: List[Tuple[ModelDefinition, List[TableInfo]]] = []
            for model in models:
                for item in model.fields:
                    if item.derived:
                        state.warn(
                            f'Skipped derived field "{item.key}" in model "{model.slug}"',
                            model=model.slug,
                        )
                compiled.append((model, build_model(model, settings, components.keys())))
        state.record("Compile Models", t_compile, f"{len(models)} model(s)")

        self._enter(GenerationStage.EMITTING_DERIVED_TABLES)
        generated: List[TableInfo] = []
        with Timer("derived tables") as t_derived:
            derived_count: int = 0
            for model, own_tables in compiled:
                generated.extend(own_tables)
                derived: List[TableInfo] = self._derived_tables(model, settings, components, state)
                derived_count += len(derived)
                generated.extend(derived)
        state.record("Emit Derived Tables", t_derived, f"{derived_count} table(s)")
        return generated

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    async def generate(self) -> GenerationResult:
        """
        Run the whole pipeline and return the rendered schema.

        Raises:
            EAVGenError: any fatal configuration, read or definition error.
        """
        pipeline_start: float = time.perf_counter()
        state: _RunState = _RunState()
        try:
            self.config.input_source()

            self._enter(GenerationStage.LOADING_EXTERNAL_MODELS)
            with Timer("external models") as t_external:
                external, external_warnings = load_external_tables(self.config.external_models)
            for message in external_warnings:
                state.warnings.append(message)
            state.record("Load External Models", t_external, f"{len(external)} table(s)")

            with Timer("read definitions") as t_read:
                models, components, read_warnings = await self.read_definitions()
            state.warnings.extend(read_warnings)
            state.record(
                "Read Definitions",
                t_read,
                f"{len(models)} model(s), {len(components)} component(s)",
            )

            settings: BuildSettings = self.config.build_settings(t.name for t in external)
            generated: List[TableInfo] = self.compile_tables(models, components, settings, state)

            tables, collisions = merge_tables(external, generated)
            for name in collisions:
                state.warn(
                    f'Table "{name}" is defined more than once; the last definition replaces the earlier one'
                )

            self._enter(GenerationStage.SERIALIZING)
            with Timer("serialize") as t_write:
                schema = SchemaInfo(
                    datasource=self.config.output.datasource.to_info(),
                    generators=self.config.generator_infos(),
                    tables=tables,
                )
                text: str = write_schema(schema)
            state.record("Serialize", t_write, f"{len(text):,} chars")
        except Exception:
            self._enter(GenerationStage.FAILED)
            raise

        self._enter(GenerationStage.DONE)
        result = GenerationResult(
            schema=text,
            models_generated=[m.slug for m in models],
            warnings=state.warnings,
            warnings_by_model=state.warnings_by_model,
            tables=tables,
            step_metrics=state.step_metrics,
            total_elapsed_seconds=time.perf_counter() - pipeline_start,
        )
        logger.info(
            "Generated %d table(s) from %d model(s) with %d warning(s) in %.3fs",
            len(tables),
            len(models),
            len(state.warnings),
            result.total_elapsed_seconds,
        )
        return result

    async def write(self) -> GenerationResult:
        """
        Generate, then write the schema to ``output.schema_path``.

        Raises:
            OSError: the file could not be written.
        """
        result: GenerationResult = await self.generate()
        path: str = self.config.output.schema_path
        result.bytes_written = write_file(path, result.schema)
        result.schema_path = path
        logger.info("Schema written to %s (%d bytes)", path, result.bytes_written)
        return result

    def __repr__(self) -> str:
        return f"<SchemaGenerator stage={self.stage.value}>"


__all__: List[str] = [
    "GenerationStage",
    "GenerationStepMetric",
    "GenerationResult",
    "RawDefinitions",
    "merge_tables",
    "SchemaGenerator",
]

logger.debug("eavgen.generator loaded — %d public symbols.", len(__all__))
