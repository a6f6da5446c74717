"""
tests/test_config.py
Unit tests for eavgen.config and the file helpers in eavgen.utils.
"""

from __future__ import annotations

import json
import pathlib

import pytest

from eavgen.config import (
    DEFAULT_SCHEMA_PATH,
    GenerationConfig,
    InputSource,
    load_config,
    parse_config,
)
from eavgen.exceptions import ConfigurationError
from eavgen.models import NamingConvention
from eavgen.utils import import_string, resolve_env_reference, write_file


class TestInputSource:
    def test_direct(self) -> None:
        assert parse_config({"input": {"models": []}}).input_source() == InputSource.DIRECT

    def test_loader(self) -> None:
        config = parse_config({"input": {"loader": lambda: {"models": []}}})
        assert config.input_source() == InputSource.LOADER

    def test_database(self) -> None:
        assert parse_config({"connection": "sqlite://"}).input_source() == InputSource.DATABASE

    def test_none_configured(self) -> None:
        with pytest.raises(ConfigurationError, match="No input source"):
            parse_config({}).input_source()

    def test_models_and_loader_conflict(self) -> None:
        config = parse_config({"input": {"models": [], "loader": lambda: {}}})
        with pytest.raises(ConfigurationError, match="mutually exclusive"):
            config.input_source()

    def test_input_and_connection_conflict(self) -> None:
        config = parse_config({"input": {"models": []}, "connection": "sqlite://"})
        with pytest.raises(ConfigurationError, match="not both"):
            config.input_source()


class TestParseConfig:
    def test_defaults(self) -> None:
        config = GenerationConfig()
        assert config.output.schema_path == DEFAULT_SCHEMA_PATH
        assert config.tables.models == "content_model"
        assert config.i18n.enabled is False
        assert config.naming.convention == NamingConvention.PASCAL_CASE.value

    def test_camel_case_keys(self) -> None:
        config = parse_config(
            {
                "output": {"schemaPath": "out.prisma", "clientPath": "../client"},
                "i18n": {"enabled": True, "tableNaming": "tr_${identifier}"},
                "externalModels": {"path": ["a.prisma"], "include": ["User"]},
            }
        )
        assert config.output.schema_path == "out.prisma"
        assert config.i18n.table_naming == "tr_${identifier}"
        assert config.external_models.include == ["User"]

    def test_unknown_key_is_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            parse_config({"outputs": {}})

    def test_hook_import_string(self) -> None:
        config = parse_config({"mapper": {"model": "json:loads"}})
        assert config.mapper.model is json.loads

    def test_unimportable_hook(self) -> None:
        with pytest.raises(ConfigurationError, match="cannot import hook"):
            parse_config({"mapper": {"component": "no_such_module_xyz:hook"}})

    def test_build_settings(self) -> None:
        config = parse_config(
            {"naming": {"convention": "snake_case", "prefix": "cms_"}, "i18n": {"enabled": True}}
        )
        settings = config.build_settings(["User"])
        assert settings.convention == NamingConvention.SNAKE_CASE
        assert settings.prefix == "cms_"
        assert settings.i18n_enabled is True
        assert settings.external_names == frozenset({"User"})

    def test_generators(self) -> None:
        config = parse_config(
            {
                "output": {"client": {"previewFeatures": ["views"]}},
                "generators": [{"name": "zod", "provider": "zod-prisma-types", "config": {"a": 1}}],
            }
        )
        client, zod = config.generator_infos()
        assert client.name == "client"
        assert client.provider == "prisma-client-js"
        assert client.config == {"previewFeatures": ["views"]}
        assert zod.config == {"a": 1}

    def test_default_datasource_provider_is_plain_string(self) -> None:
        info = GenerationConfig().output.datasource.to_info()
        assert info.provider == "sqlite"
        assert f"{info.provider}" == "sqlite"
        assert f"{GenerationConfig().naming.convention}" == "PascalCase"

    def test_client_without_preview_features(self) -> None:
        assert GenerationConfig().client_generator().config == {}


class TestConnectionUrl:
    def test_plain_url(self) -> None:
        assert parse_config({"connection": "sqlite:///x.db"}).connection_url() == "sqlite:///x.db"

    def test_env_reference(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EAVGEN_TEST_DB", "sqlite:///env.db")
        config = parse_config({"connection": 'env("EAVGEN_TEST_DB")'})
        assert config.connection_url() == "sqlite:///env.db"

    def test_unset_env_reference(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("EAVGEN_TEST_DB", raising=False)
        with pytest.raises(ConfigurationError, match="not set"):
            parse_config({"connection": 'env("EAVGEN_TEST_DB")'}).connection_url()


class TestLoadConfig:
    def test_yaml_file(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "eavgen.config.yaml"
        path.write_text(
            "connection: sqlite:///./content.db\n"
            "tables:\n"
            "  models: cms_models\n"
            "naming:\n"
            "  convention: camelCase\n",
            encoding="utf-8",
        )
        config = load_config(path)
        assert config.tables.models == "cms_models"
        assert config.naming.convention == "camelCase"

    def test_json_file(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "eavgen.json"
        path.write_text(json.dumps({"input": {"models": []}}), encoding="utf-8")
        assert load_config(path).input_source() == InputSource.DIRECT

    def test_empty_yaml_gives_defaults(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path).output.schema_path == DEFAULT_SCHEMA_PATH

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(ConfigurationError, match="Config file not found"):
            load_config(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("tables: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(path)

    def test_top_level_list(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(path)


class TestUtils:
    def test_import_string_forms(self) -> None:
        assert import_string("json:dumps") is json.dumps
        assert import_string("json.dumps") is json.dumps
        with pytest.raises(ImportError):
            import_string("json:missing_attribute")

    def test_resolve_env_reference(self) -> None:
        assert resolve_env_reference('env("X")', {"X": "1"}) == "1"
        assert resolve_env_reference("env('X')", {}) is None
        assert resolve_env_reference("postgres://h/db", {}) == "postgres://h/db"

    def test_write_file_creates_parents(self, tmp_path: pathlib.Path) -> None:
        target = tmp_path / "a" / "b" / "schema.prisma"
        written = write_file(target, "model É {}\n")
        assert target.read_text(encoding="utf-8") == "model É {}\n"
        assert written == len("model É {}\n".encode("utf-8"))
        assert [p.name for p in target.parent.iterdir()] == ["schema.prisma"]
