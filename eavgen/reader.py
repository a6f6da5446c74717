# File: eavgen/reader.py
"""
EAVGen - Definition Reader
============================
Fetches stored model / component rows and turns them into validated
definitions.

A row source only has to answer ``find_many(table_name)`` with a list of
mappings (sync or ``async``). ``SqlAlchemyRowSource`` is the stock
implementation: it reflects the table from any SQLAlchemy URL and returns
every row as a plain ``dict``.

Rows are expected to look like ``{id, slug, definition: "<json>", ...}``.
Without a mapper the ``definition`` column is JSON-decoded; a mapper
replaces that step entirely.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Union

from sqlalchemy import MetaData, Table, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from eavgen.definitions import ComponentDefinition, ModelDefinition
from eavgen.exceptions import DefinitionParseError, EAVGenError, MapperError, SourceReadError
from eavgen.utils import resolve_awaitable
from eavgen.validators import validate_component, validate_model

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("eavgen.reader")

DEFINITION_COLUMN: str = "definition"

Row = Mapping[str, Any]
RowMapper = Callable[[Any], Any]
Definition = Union[ModelDefinition, ComponentDefinition]


class RowSource(Protocol):
    """Anything that can bulk-fetch the rows of one table."""

    def find_many(self, table_name: str) -> Any:  # List[Row] or an awaitable of it
        ...


# ---------------------------------------------------------------------------
# SQLAlchemy row source
# ---------------------------------------------------------------------------


class SqlAlchemyRowSource:
    """
    Row source backed by a SQLAlchemy engine.

    The table is reflected on every call, so no ORM mapping is needed and
    custom columns next to ``definition`` come along untouched. Calls block;
    ``EAVReader`` runs them in a worker thread.
    """

    def __init__(self, url: str, engine: Optional[Engine] = None) -> None:
        self.url: str = url
        self._engine: Optional[Engine] = engine

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_engine(self.url)
        return self._engine

    def find_many(self, table_name: str) -> List[Dict[str, Any]]:
        try:
            table = Table(table_name, MetaData(), autoload_with=self.engine)
            with self.engine.connect() as connection:
                rows = connection.execute(select(table)).mappings().all()
        except SQLAlchemyError as exc:
            raise SourceReadError(f'Failed to read rows from table "{table_name}": {exc}') from exc

        logger.debug("Fetched %d row(s) from %s", len(rows), table_name)
        return [dict(row) for row in rows]

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def __repr__(self) -> str:
        return f"<SqlAlchemyRowSource url={self.url!r}>"


# ---------------------------------------------------------------------------
# Row decoding
# ---------------------------------------------------------------------------


def _row_value(row: Any, key: str) -> Optional[str]:
    if isinstance(row, Mapping) and row.get(key) is not None:
        return str(row[key])
    return None


def decode_definition(row: Row) -> Any:
    """
    Default mapper: the JSON payload stored in the ``definition`` column.

    Raises:
        DefinitionParseError: the column is missing or not valid JSON.
    """
    payload: Any = row.get(DEFINITION_COLUMN)
    if isinstance(payload, (dict, list)):
        return payload
    if payload is None:
        raise DefinitionParseError(
            _row_value(row, "slug"), _row_value(row, "id"), f'missing "{DEFINITION_COLUMN}" column'
        )
    try:
        return json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise DefinitionParseError(_row_value(row, "slug"), _row_value(row, "id"), str(exc)) from exc


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


class EAVReader:
    """
    Reads one definition table (models or components).

    Args:
        source:     Row source answering ``find_many``.
        table_name: Table holding the definitions.
        mapper:     Optional ``row -> raw definition`` hook (sync or async).
        kind:       ``"model"`` or ``"component"``; selects the validator.
    """

    def __init__(
        self,
        source: RowSource,
        table_name: str = "content_model",
        mapper: Optional[RowMapper] = None,
        kind: str = "model",
    ) -> None:
        if kind not in ("model", "component"):
            raise ValueError(f"kind must be 'model' or 'component', got {kind!r}")
        self.source: RowSource = source
        self.table_name: str = table_name
        self.mapper: Optional[RowMapper] = mapper
        self.kind: str = kind

    async def fetch_rows(self) -> List[Row]:
        """All rows of the table; a blocking ``find_many`` runs in a worker thread."""
        find_many = self.source.find_many
        if inspect.iscoroutinefunction(find_many):
            rows: Any = await find_many(self.table_name)
        else:
            rows = await resolve_awaitable(await asyncio.to_thread(find_many, self.table_name))
        return list(rows or [])

    async def transform(self, row: Row) -> Any:
        """Raw definition for *row*, via the mapper when one is set."""
        if self.mapper is None:
            return decode_definition(row)
        try:
            return await resolve_awaitable(self.mapper(row))
        except EAVGenError:
            raise
        except Exception as exc:
            raise MapperError(f"mapper.{self.kind}", _row_value(row, "slug"), exc) from exc

    async def read_raw(self) -> List[Any]:
        """Mapped but unvalidated definitions, in row order."""
        rows: List[Row] = await self.fetch_rows()
        raw: List[Any] = []
        for row in rows:
            raw.append(await self.transform(row))
        logger.info("Read %d %s row(s) from %s", len(raw), self.kind, self.table_name)
        return raw

    def validate(self, raw: Any) -> Definition:
        if self.kind == "component":
            return validate_component(raw)
        return validate_model(raw)

    async def read_models(self) -> List[Definition]:
        """
        Every definition of the table, validated.

        Raises:
            DefinitionParseError: a row's payload is not valid JSON.
            DefinitionValidationError: a definition breaks a schema rule.
            MapperError: the mapper raised.
            SourceReadError: the source could not be queried.
        """
        return [self.validate(raw) for raw in await self.read_raw()]

    async def read_model(self, slug: str) -> Optional[Definition]:
        """The definition stored under *slug*, or ``None``."""
        for row in await self.fetch_rows():
            if _row_value(row, "slug") == slug:
                return self.validate(await self.transform(row))
        return None

    def __repr__(self) -> str:
        return f"<EAVReader kind={self.kind!r} table={self.table_name!r}>"


__all__: List[str] = [
    "DEFINITION_COLUMN",
    "RowSource",
    "SqlAlchemyRowSource",
    "decode_definition",
    "EAVReader",
]

logger.debug("eavgen.reader loaded — %d public symbols.", len(__all__))
