"""
tests/test_external.py
Unit tests for eavgen.external (hand-written schema parsing and merge).
"""

from __future__ import annotations

import asyncio
import pathlib
from typing import Any, Dict, List, Tuple

from conftest import direct_config, text_field

from eavgen.config import ExternalModelsConfig
from eavgen.external import (
    filter_external_tables,
    load_external_tables,
    parse_default,
    parse_field_line,
    parse_schema_text,
    resolve_external_paths,
    split_attributes,
)
from eavgen.generator import SchemaGenerator
from eavgen.models import SchemaInfo, TableInfo
from eavgen.writer import write_schema

BASE_SCHEMA = """
// Hand-written models shared by every project.

model User {
  id        String   @id @default(cuid())
  email     String   @unique
  name      String?
  age       Int      @default(18)
  score     Float    @default(1.5)
  active    Boolean  @default(true)
  role      String   @default("editor") @map("user_role")
  media     Media[]

  @@index([email])
  @@map("users")
}

model Media {
  id        String @id @default(cuid())
  url       String
  owner_id  String?
  owner     User?  @relation("MediaOwner", fields: [owner_id], references: [id], onDelete: SetNull)

  @@unique([url, owner_id])
}

model Empty {
}
"""


class TestLineParsing:
    def test_split_attributes_respects_parentheses(self) -> None:
        assert split_attributes("id String @id @default(cuid())") == ["@id", "@default(cuid())"]
        assert split_attributes('a String @default("x y") @unique') == ['@default("x y")', "@unique"]

    def test_parse_default_literals(self) -> None:
        assert parse_default("@default(true)") is True
        assert parse_default("@default(18)") == 18
        assert parse_default("@default(1.5)") == 1.5
        assert parse_default('@default("editor")') == "editor"
        assert parse_default("@default(now())") == "now()"
        assert parse_default("@unique") is None

    def test_optional_and_list_types(self) -> None:
        optional = parse_field_line("name String?")
        assert optional.nullable is True and optional.type == "String"
        listed = parse_field_line("media Media[]")
        assert listed.is_list is True and listed.nullable is False

    def test_non_field_lines(self) -> None:
        assert parse_field_line("}") is None

    def test_default_stays_as_attribute(self) -> None:
        column = parse_field_line("age Int @default(18)")
        assert column.default == 18
        assert column.attributes == ["@default(18)"]

    def test_relation_is_extracted(self) -> None:
        column = parse_field_line(
            'owner User? @relation("MediaOwner", fields: [owner_id], references: [id], onDelete: SetNull)'
        )
        assert column.attributes == []
        assert column.relation.name == "MediaOwner"
        assert column.relation.fields == ["owner_id"]
        assert column.relation.references == ["id"]
        assert column.relation.on_delete == "SetNull"


class TestDocumentParsing:
    def test_models_in_document_order(self) -> None:
        tables = parse_schema_text(BASE_SCHEMA)
        assert [t.name for t in tables] == ["User", "Media"]

    def test_user_block(self) -> None:
        user = parse_schema_text(BASE_SCHEMA)[0]
        assert user.column_names == ["id", "email", "name", "age", "score", "active", "role", "media"]
        assert user.indexes == [["email"]]
        assert user.map_name == "users"
        assert user.get_column("role").map_name == "user_role"

    def test_media_block(self) -> None:
        media = parse_schema_text(BASE_SCHEMA)[1]
        assert media.unique == [["url", "owner_id"]]

    def test_round_trip_through_writer(self) -> None:
        tables = parse_schema_text(BASE_SCHEMA)
        rendered = write_schema(SchemaInfo(tables=tables))
        reparsed = parse_schema_text(rendered)
        assert [t.model_dump() for t in reparsed] == [t.model_dump() for t in tables]


def _shapes(tables: List[TableInfo]) -> List[Tuple[str, List[Tuple[str, str, bool, bool]]]]:
    return [
        (t.name, [(c.name, c.type_signature, c.nullable, c.is_list) for c in t.columns]) for t in tables
    ]


class TestGeneratedRoundTrip:
    """Generated schemas parse back into the same table shapes."""

    def test_generated_schema_parses_back(
        self,
        post_model_dict: Dict[str, Any],
        category_model_dict: Dict[str, Any],
        seo_component_dict: Dict[str, Any],
    ) -> None:
        store: Dict[str, Any] = {
            "slug": "store",
            "name": "Store",
            "fields": [
                text_field("zip", required=True, translatable=False, validation={"pattern": r"^\d{5}$"}),
                text_field("city"),
            ],
        }
        config = direct_config(
            [post_model_dict, category_model_dict, store],
            [seo_component_dict],
            i18n={"enabled": True},
        )
        result = asyncio.run(SchemaGenerator(config).generate())
        assert r"/// @zod.regex(/^\d{5}$/)" in result.schema
        assert {"PostTranslation", "PostCategory", "PostSeo", "Store"} <= set(result.table_names)

        reparsed = parse_schema_text(result.schema)
        assert _shapes(reparsed) == _shapes(result.tables)
        store_table = next(t for t in reparsed if t.name == "Store")
        assert "city" not in store_table.column_names
        assert "zip" in store_table.column_names

    def test_brace_inside_comment_does_not_end_block(self) -> None:
        text = "model Code {\n  /// @zod.regex(/^\\d{5}$/)\n  zip String\n  city String?\n}\n"
        [table] = parse_schema_text(text)
        assert table.column_names == ["zip", "city"]


class TestFilterAndLoad:
    def test_include_then_exclude(self) -> None:
        tables = parse_schema_text(BASE_SCHEMA)
        assert [t.name for t in filter_external_tables(tables, include=["Media"])] == ["Media"]
        assert [t.name for t in filter_external_tables(tables, exclude=["User"])] == ["Media"]
        assert filter_external_tables(tables, include=["User"], exclude=["User"]) == []

    def test_filter_is_case_sensitive(self) -> None:
        tables = parse_schema_text(BASE_SCHEMA)
        assert filter_external_tables(tables, include=["user"]) == []

    def test_resolve_paths(self) -> None:
        assert resolve_external_paths("a.prisma") == ["a.prisma"]
        assert resolve_external_paths(["a", "b"]) == ["a", "b"]
        assert resolve_external_paths(ExternalModelsConfig(path="c")) == ["c"]

    def test_load_from_files(self, tmp_path: pathlib.Path) -> None:
        first = tmp_path / "base.prisma"
        first.write_text(BASE_SCHEMA, encoding="utf-8")
        second = tmp_path / "extra.prisma"
        second.write_text("model Audit {\n  id String @id\n}\n", encoding="utf-8")

        tables, warnings = load_external_tables([str(first), str(second)])
        assert [t.name for t in tables] == ["User", "Media", "Audit"]
        assert warnings == []

    def test_config_filters_apply(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "base.prisma"
        path.write_text(BASE_SCHEMA, encoding="utf-8")
        source = ExternalModelsConfig(path=str(path), include=["User"])
        tables, _ = load_external_tables(source)
        assert [t.name for t in tables] == ["User"]

    def test_missing_file_becomes_warning(self, tmp_path: pathlib.Path) -> None:
        missing = tmp_path / "nope.prisma"
        tables, warnings = load_external_tables(str(missing))
        assert tables == []
        assert len(warnings) == 1
        assert warnings[0].startswith(f'Failed to load external models from "{missing}"')

    def test_no_source(self) -> None:
        assert load_external_tables(None) == ([], [])
