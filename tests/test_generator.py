"""
tests/test_generator.py
Integration tests for eavgen.generator.SchemaGenerator.

Tests cover:
- End-to-end table lists for the common model shapes
- Warnings for missing components, derived fields and name collisions
- External model merge and filtering
- Loader / mapper hooks and database input
- Writing the schema file and failure stages
"""

from __future__ import annotations

import asyncio
import pathlib
from typing import Any, Dict, List

import pytest

from conftest import direct_config, text_field

from eavgen.config import parse_config
from eavgen.exceptions import ConfigurationError, DefinitionValidationError, MapperError
from eavgen.generator import GenerationResult, GenerationStage, SchemaGenerator, merge_tables
from eavgen.models import ColumnInfo, TableInfo


def _run(config: Any) -> GenerationResult:
    return asyncio.run(SchemaGenerator(config).generate())


def _table(name: str, column: str = "id") -> TableInfo:
    return TableInfo(name=name, columns=[ColumnInfo(name=column, type="String")])


# ===========================================================================
# End-to-end shapes
# ===========================================================================


class TestGenerateShapes:
    def test_single_model_without_i18n(self, tag_model_dict: Dict[str, Any]) -> None:
        result = _run(direct_config([tag_model_dict]))
        assert result.table_names == ["Tag"]
        assert result.warnings == []
        assert result.models_generated == ["tag"]
        assert result.tables[0].get_column("name").type_signature == "String"
        assert "model Tag {" in result.schema

    def test_many_to_many_emits_junction(
        self,
        post_model_dict: Dict[str, Any],
        category_model_dict: Dict[str, Any],
        seo_component_dict: Dict[str, Any],
    ) -> None:
        result = _run(direct_config([post_model_dict, category_model_dict], [seo_component_dict]))
        assert result.table_names == ["Post", "PostCategory", "PostSeo", "Category"]
        post = result.tables[0]
        assert post.get_column("categories").type_signature == "Category[]"
        junction = result.tables[1]
        assert junction.unique == [["post_id", "category_id"]]

    def test_component_with_i18n(
        self,
        post_model_dict: Dict[str, Any],
        category_model_dict: Dict[str, Any],
        seo_component_dict: Dict[str, Any],
    ) -> None:
        config = direct_config(
            [post_model_dict, category_model_dict],
            [seo_component_dict],
            i18n={"enabled": True},
        )
        result = _run(config)
        assert result.table_names == [
            "Post",
            "PostTranslation",
            "PostCategory",
            "PostSeo",
            "PostSeoTranslation",
            "Category",
            "CategoryTranslation",
        ]
        seo = result.tables[3]
        assert seo.get_column("post_id").attributes == ["@unique"]
        assert result.tables[4].unique == [["post_seo_id", "lang"]]
        assert result.warnings == []

    def test_missing_component_warns_once(self, post_model_dict: Dict[str, Any]) -> None:
        result = _run(direct_config([post_model_dict], i18n={"enabled": True}))
        assert result.table_names == ["Post", "PostTranslation", "PostCategory"]
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert '"seo"' in warning and '"post"' in warning
        assert warning == 'Component "seo" not found for field "seo" in model "post"'
        assert result.warnings_by_model == {"post": [warning]}
        assert "seo" not in result.tables[0].column_names

    def test_model_disables_i18n(self, post_model_dict: Dict[str, Any]) -> None:
        post_model_dict["settings"]["enableI18n"] = False
        post_model_dict["fields"] = post_model_dict["fields"][:5]
        result = _run(direct_config([post_model_dict], i18n={"enabled": True}))
        assert result.table_names == ["Post"]
        assert result.tables[0].column_names[1:6] == [
            "title",
            "slug",
            "body",
            "status",
            "published_at",
        ]

    def test_schema_layout(self, tag_model_dict: Dict[str, Any]) -> None:
        config = direct_config(
            [tag_model_dict],
            output={
                "clientPath": "../generated",
                "client": {"previewFeatures": ["fullTextSearch"]},
                "datasource": {"provider": "postgresql"},
            },
            generators=[{"name": "zod", "provider": "zod-prisma-types"}],
        )
        schema = _run(config).schema
        assert schema.startswith('datasource db {\n  provider = "postgresql"\n  url = env("DATABASE_URL")\n}')
        assert schema.index("generator client") < schema.index("generator zod") < schema.index("model Tag")
        assert '  previewFeatures = ["fullTextSearch"]' in schema
        assert schema.endswith("}\n")

    def test_naming_convention(self, tag_model_dict: Dict[str, Any]) -> None:
        config = direct_config([tag_model_dict], naming={"convention": "snake_case", "prefix": "cms_"})
        assert _run(config).table_names == ["cms_tag"]

    def test_output_is_deterministic(
        self, post_model_dict: Dict[str, Any], seo_component_dict: Dict[str, Any]
    ) -> None:
        first = _run(direct_config([post_model_dict], [seo_component_dict], i18n={"enabled": True}))
        second = _run(direct_config([post_model_dict], [seo_component_dict], i18n={"enabled": True}))
        assert first.schema == second.schema


# ===========================================================================
# Warnings and dedup
# ===========================================================================


class TestWarnings:
    def test_duplicate_junction_is_emitted_once(self, tag_model_dict: Dict[str, Any]) -> None:
        relation = {"relationType": "manyToMany", "targetModel": "tag"}
        article = {
            "slug": "article",
            "name": "Article",
            "fields": [
                {"key": "tags", "label": "Tags", "type": "relation", "config": relation},
                {"key": "featured_tags", "label": "Featured", "type": "relation", "config": relation},
            ],
        }
        result = _run(direct_config([article, tag_model_dict]))
        assert result.table_names == ["Article", "ArticleTag", "Tag"]
        assert result.warnings == []

    def test_derived_field_is_skipped_with_warning(self, tag_model_dict: Dict[str, Any]) -> None:
        tag_model_dict["fields"].append(text_field("usage", derived=True))
        result = _run(direct_config([tag_model_dict]))
        assert "usage" not in result.tables[0].column_names
        assert result.warnings == ['Skipped derived field "usage" in model "tag"']

    def test_last_duplicate_component_wins(self, post_model_dict: Dict[str, Any], seo_component_dict: Dict[str, Any]) -> None:
        replacement = {
            "slug": "seo",
            "name": "SEO v2",
            "fields": [text_field("keywords", translatable=False)],
        }
        post_model_dict["fields"] = [post_model_dict["fields"][0], post_model_dict["fields"][6]]
        result = _run(direct_config([post_model_dict], [seo_component_dict, replacement]))
        seo = result.tables[1]
        assert seo.name == "PostSeo"
        assert "keywords" in seo.column_names
        assert "meta_title" not in seo.column_names

    def test_summary_lists_warnings(self, tag_model_dict: Dict[str, Any]) -> None:
        tag_model_dict["fields"].append(text_field("usage", derived=True))
        summary = _run(direct_config([tag_model_dict])).summary()
        assert "Generation Report" in summary
        assert "Warnings (1)" in summary


# ===========================================================================
# External models
# ===========================================================================


EXTERNAL_SCHEMA = """
model User {
  id    String @id @default(cuid())
  email String @unique
}

model Media {
  id  String @id
  url String
}
"""


class TestExternalModels:
    @pytest.fixture()
    def base_schema(self, tmp_path: pathlib.Path) -> str:
        path = tmp_path / "base.prisma"
        path.write_text(EXTERNAL_SCHEMA, encoding="utf-8")
        return str(path)

    def test_external_tables_come_first(self, base_schema: str, tag_model_dict: Dict[str, Any]) -> None:
        result = _run(direct_config([tag_model_dict], externalModels=base_schema))
        assert result.table_names == ["User", "Media", "Tag"]

    def test_include_and_exclude(self, base_schema: str, tag_model_dict: Dict[str, Any]) -> None:
        included = _run(
            direct_config([tag_model_dict], externalModels={"path": base_schema, "include": ["Media"]})
        )
        assert included.table_names == ["Media", "Tag"]
        excluded = _run(
            direct_config([tag_model_dict], externalModels={"path": [base_schema], "exclude": ["Media"]})
        )
        assert excluded.table_names == ["User", "Tag"]

    def test_relation_to_external_model(self, base_schema: str) -> None:
        author = {
            "slug": "profile",
            "name": "Profile",
            "fields": [
                {
                    "key": "users",
                    "label": "Users",
                    "type": "relation",
                    "config": {"relationType": "oneToMany", "targetModel": "User"},
                },
                {"key": "gallery", "label": "Gallery", "type": "media", "config": {"multiple": True}},
            ],
        }
        result = _run(direct_config([author], externalModels=base_schema))
        profile = result.tables[-1]
        assert profile.get_column("users").type_signature == "User[]"
        assert profile.get_column("gallery").type_signature == "Media[]"

    def test_unreadable_path_is_a_warning(self, tmp_path: pathlib.Path, tag_model_dict: Dict[str, Any]) -> None:
        missing = str(tmp_path / "missing.prisma")
        result = _run(direct_config([tag_model_dict], externalModels=missing))
        assert result.table_names == ["Tag"]
        assert len(result.warnings) == 1
        assert missing in result.warnings[0]

    def test_name_collision_keeps_first_position_last_table(
        self, tmp_path: pathlib.Path, tag_model_dict: Dict[str, Any]
    ) -> None:
        path = tmp_path / "base.prisma"
        path.write_text(
            "model Tag {\n  id String @id\n  label String\n}\n\nmodel User {\n  id String @id\n}\n",
            encoding="utf-8",
        )
        result = _run(direct_config([tag_model_dict], externalModels=str(path)))
        # Known quirk: the generated Tag silently replaces the external one.
        assert result.table_names == ["Tag", "User"]
        assert result.tables[0].get_column("label") is None
        assert result.tables[0].get_column("name") is not None
        assert result.warnings == [
            'Table "Tag" is defined more than once; the last definition replaces the earlier one'
        ]


class TestMergeTables:
    def test_no_collision(self) -> None:
        tables, collisions = merge_tables([_table("User")], [_table("Tag")])
        assert [t.name for t in tables] == ["User", "Tag"]
        assert collisions == []

    def test_collision(self) -> None:
        tables, collisions = merge_tables(
            [_table("Tag", "external"), _table("User")], [_table("Tag", "generated")]
        )
        assert [t.name for t in tables] == ["Tag", "User"]
        assert tables[0].column_names == ["generated"]
        assert collisions == ["Tag"]


# ===========================================================================
# Input sources and hooks
# ===========================================================================


class TestInputSources:
    def test_sync_loader(self, tag_model_dict: Dict[str, Any], seo_component_dict: Dict[str, Any]) -> None:
        def loader() -> Dict[str, List[Any]]:
            return {"models": [tag_model_dict], "components": [seo_component_dict]}

        result = _run(parse_config({"input": {"loader": loader}}))
        assert result.table_names == ["Tag"]

    def test_async_loader(self, tag_model_dict: Dict[str, Any]) -> None:
        async def loader() -> Dict[str, List[Any]]:
            return {"models": [tag_model_dict]}

        assert _run(parse_config({"input": {"loader": loader}})).table_names == ["Tag"]

    def test_loader_must_return_models(self) -> None:
        config = parse_config({"input": {"loader": lambda: [1, 2, 3]}})
        with pytest.raises(ConfigurationError, match="models"):
            _run(config)

    def test_failing_loader(self) -> None:
        def loader() -> Dict[str, Any]:
            raise RuntimeError("backend down")

        generator = SchemaGenerator(parse_config({"input": {"loader": loader}}))
        with pytest.raises(MapperError, match="input.loader hook failed: RuntimeError: backend down"):
            asyncio.run(generator.generate())
        assert generator.stage == GenerationStage.FAILED

    def test_model_mapper_runs_before_validation(self, tag_model_dict: Dict[str, Any]) -> None:
        wrapped = {"payload": tag_model_dict}
        config = parse_config(
            {"input": {"models": [wrapped]}, "mapper": {"model": lambda item: item["payload"]}}
        )
        assert _run(config).table_names == ["Tag"]

    def test_failing_mapper_names_the_slug(self, tag_model_dict: Dict[str, Any]) -> None:
        def mapper(item: Dict[str, Any]) -> Dict[str, Any]:
            raise ValueError("nope")

        config = parse_config({"input": {"models": [tag_model_dict]}, "mapper": {"model": mapper}})
        with pytest.raises(MapperError) as exc_info:
            _run(config)
        assert exc_info.value.hook == "mapper.model"
        assert exc_info.value.identifier == "tag"

    def test_database_input(self, populated_db: str) -> None:
        config = parse_config(
            {
                "connection": populated_db,
                "tables": {"models": "content_model", "components": "content_component"},
            }
        )
        result = _run(config)
        assert result.table_names == ["Tag", "Category", "Post", "PostCategory", "PostSeo"]
        assert result.models_generated == ["tag", "category", "post"]
        assert result.warnings == []

    def test_unreadable_component_table_is_a_warning(self, populated_db: str) -> None:
        config = parse_config(
            {"connection": populated_db, "tables": {"models": "content_model", "components": "nope"}}
        )
        result = _run(config)
        assert result.warnings[0].startswith('Failed to read components from "nope"')
        assert 'Component "seo" not found' in result.warnings[1]
        assert "PostSeo" not in result.table_names


# ===========================================================================
# Failures and output
# ===========================================================================


class TestFailuresAndOutput:
    def test_no_input_source(self) -> None:
        generator = SchemaGenerator(parse_config({}))
        with pytest.raises(ConfigurationError, match="No input source"):
            asyncio.run(generator.generate())
        assert generator.stage == GenerationStage.FAILED

    def test_invalid_definition_aborts(self, tag_model_dict: Dict[str, Any]) -> None:
        tag_model_dict["fields"].append(text_field("id"))
        generator = SchemaGenerator(direct_config([tag_model_dict]))
        with pytest.raises(DefinitionValidationError, match='model "tag"'):
            asyncio.run(generator.generate())
        assert generator.stage == GenerationStage.FAILED

    def test_stage_and_metrics_after_success(self, tag_model_dict: Dict[str, Any]) -> None:
        generator = SchemaGenerator(direct_config([tag_model_dict]))
        result = asyncio.run(generator.generate())
        assert generator.stage == GenerationStage.DONE
        assert [m.step_name for m in result.step_metrics] == [
            "Load External Models",
            "Read Definitions",
            "Compile Models",
            "Emit Derived Tables",
            "Serialize",
        ]

    def test_write_creates_file(self, tmp_path: pathlib.Path, tag_model_dict: Dict[str, Any]) -> None:
        target = tmp_path / "prisma" / "schema.prisma"
        config = direct_config([tag_model_dict], output={"schemaPath": str(target)})
        result = asyncio.run(SchemaGenerator(config).write())
        assert target.read_text(encoding="utf-8") == result.schema
        assert result.bytes_written == len(result.schema.encode("utf-8"))
        assert result.schema_path == str(target)
