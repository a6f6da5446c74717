"""
tests/conftest.py
Shared fixtures for the eavgen test suite.

Definitions are plain dicts shaped like the JSON stored in the
``definition`` column, so every test goes through the same validation
path as real input. Real file I/O happens inside pytest's ``tmp_path``.
"""

from __future__ import annotations

import copy
import json
import pathlib
from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy import Column, MetaData, String, Table, Text, create_engine

from eavgen.config import GenerationConfig, parse_config
from eavgen.definitions import ComponentDefinition, ModelDefinition
from eavgen.models import NamingConvention
from eavgen.naming import BuildSettings
from eavgen.validators import validate_component, validate_model


# ---------------------------------------------------------------------------
# Raw definition fixtures
# ---------------------------------------------------------------------------


def text_field(key: str, **extra: Any) -> Dict[str, Any]:
    """A text field dict; keyword arguments override the defaults."""
    data: Dict[str, Any] = {"key": key, "label": key.replace("_", " ").title(), "type": "text"}
    data.update(extra)
    return data


@pytest.fixture()
def tag_model_dict() -> Dict[str, Any]:
    """Smallest useful model: one required, non-translatable text field."""
    return {
        "slug": "tag",
        "name": "Tag",
        "fields": [text_field("name", required=True, translatable=False)],
    }


@pytest.fixture()
def category_model_dict() -> Dict[str, Any]:
    return {
        "slug": "category",
        "name": "Category",
        "fields": [
            text_field("name", required=True),
            text_field("slug", required=True, translatable=False),
        ],
    }


@pytest.fixture()
def post_model_dict() -> Dict[str, Any]:
    """A post with translatable text, a status index pair, M:N categories and an SEO component."""
    return {
        "slug": "post",
        "name": "Post",
        "fields": [
            text_field("title", required=True, validation={"minLength": 3, "maxLength": 120}),
            text_field("slug", required=True, translatable=False),
            {"key": "body", "label": "Body", "type": "rich"},
            {
                "key": "status",
                "label": "Status",
                "type": "select",
                "translatable": False,
                "config": {"options": ["draft", "published"]},
            },
            {"key": "published_at", "label": "Published", "type": "date", "translatable": False},
            {
                "key": "categories",
                "label": "Categories",
                "type": "relation",
                "config": {"relationType": "manyToMany", "targetModel": "category"},
            },
            {
                "key": "seo",
                "label": "SEO",
                "type": "component",
                "config": {"slug": "seo"},
            },
        ],
        "settings": {"sortField": "published_at"},
    }


@pytest.fixture()
def seo_component_dict() -> Dict[str, Any]:
    return {
        "slug": "seo",
        "name": "SEO",
        "fields": [
            text_field("meta_title"),
            text_field("canonical_url", translatable=False),
        ],
    }


@pytest.fixture()
def blocks_component_dict() -> Dict[str, Any]:
    return {
        "slug": "hero",
        "name": "Hero",
        "fields": [
            text_field("headline", required=True),
            {"key": "visible", "label": "Visible", "type": "boolean", "translatable": False},
        ],
    }


# ---------------------------------------------------------------------------
# Validated definition fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def tag_model(tag_model_dict: Dict[str, Any]) -> ModelDefinition:
    return validate_model(tag_model_dict)


@pytest.fixture()
def post_model(post_model_dict: Dict[str, Any]) -> ModelDefinition:
    return validate_model(post_model_dict)


@pytest.fixture()
def seo_component(seo_component_dict: Dict[str, Any]) -> ComponentDefinition:
    return validate_component(seo_component_dict)


@pytest.fixture()
def settings() -> BuildSettings:
    """PascalCase naming, i18n on, no external tables."""
    return BuildSettings(convention=NamingConvention.PASCAL_CASE, i18n_enabled=True)


@pytest.fixture()
def settings_no_i18n() -> BuildSettings:
    return BuildSettings(convention=NamingConvention.PASCAL_CASE, i18n_enabled=False)


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


def direct_config(
    models: List[Dict[str, Any]],
    components: Optional[List[Dict[str, Any]]] = None,
    **overrides: Any,
) -> GenerationConfig:
    """Config that feeds *models* / *components* in memory."""
    data: Dict[str, Any] = {
        "input": {"models": copy.deepcopy(models), "components": copy.deepcopy(components or [])},
    }
    data.update(overrides)
    return parse_config(data)


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------


def create_definition_table(url: str, table_name: str, rows: List[Dict[str, Any]]) -> None:
    """Create ``table_name`` (id, slug, definition) in *url* and insert *rows*."""
    engine = create_engine(url)
    metadata = MetaData()
    table = Table(
        table_name,
        metadata,
        Column("id", String, primary_key=True),
        Column("slug", String, nullable=False),
        Column("definition", Text, nullable=False),
    )
    metadata.create_all(engine)
    with engine.begin() as connection:
        for row in rows:
            definition: Any = row["definition"]
            connection.execute(
                table.insert().values(
                    id=row["id"],
                    slug=row["slug"],
                    definition=definition if isinstance(definition, str) else json.dumps(definition),
                )
            )
    engine.dispose()


@pytest.fixture()
def sqlite_url(tmp_path: pathlib.Path) -> str:
    return f"sqlite:///{tmp_path / 'content.db'}"


@pytest.fixture()
def populated_db(
    sqlite_url: str,
    tag_model_dict: Dict[str, Any],
    post_model_dict: Dict[str, Any],
    category_model_dict: Dict[str, Any],
    seo_component_dict: Dict[str, Any],
) -> str:
    """SQLite database holding three models and one component; returns its URL."""
    create_definition_table(
        sqlite_url,
        "content_model",
        [
            {"id": "1", "slug": "tag", "definition": tag_model_dict},
            {"id": "2", "slug": "category", "definition": category_model_dict},
            {"id": "3", "slug": "post", "definition": post_model_dict},
        ],
    )
    create_definition_table(
        sqlite_url,
        "content_component",
        [{"id": "c1", "slug": "seo", "definition": seo_component_dict}],
    )
    return sqlite_url
