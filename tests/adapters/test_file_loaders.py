from __future__ import annotations

import json
from pathlib import Path

import pytest

from lib_ordinal_config.adapters.file_loaders import structured as structured_module
from lib_ordinal_config.adapters.file_loaders.structured import (
    JSONFileLoader,
    TOMLFileLoader,
    YAMLFileLoader,
    loader_for,
)
from lib_ordinal_config.adapters.sources.file import DEFAULT_FILE_ORDINAL, FilePropertySource
from lib_ordinal_config.domain.errors import InvalidFormat, NotFound


def test_toml_loader(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[db]\nport = 5432\n")
    data = TOMLFileLoader().load(str(path))
    assert data["db"]["port"] == 5432


def test_toml_loader_missing_file(tmp_path: Path) -> None:
    with pytest.raises(NotFound):
        TOMLFileLoader().load(str(tmp_path / "missing.toml"))


def test_toml_loader_invalid(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[db\nport = ")
    with pytest.raises(InvalidFormat):
        TOMLFileLoader().load(str(path))


def test_json_loader_invalid(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{invalid}")
    with pytest.raises(InvalidFormat):
        JSONFileLoader().load(str(path))


def test_json_loader_requires_mapping(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("[1, 2]")
    with pytest.raises(InvalidFormat):
        JSONFileLoader().load(str(path))


def test_json_loader_valid(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"feature": True}), encoding="utf-8")
    assert JSONFileLoader().load(str(path))["feature"] is True


@pytest.mark.skipif(structured_module.yaml is None, reason="PyYAML not available")
def test_yaml_loader_handles_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("# empty file\n")
    assert YAMLFileLoader().load(str(path)) == {}


def test_loader_for_suffix() -> None:
    assert isinstance(loader_for("a.TOML"), TOMLFileLoader)
    assert isinstance(loader_for("a.yml"), YAMLFileLoader)
    with pytest.raises(InvalidFormat):
        loader_for("a.ini")


def test_file_source_flattens_document(tmp_path: Path) -> None:
    path = tmp_path / "app.toml"
    path.write_text(
        '[db]\nurl = "pg"\npool = 5\n[feature]\nenabled = true\nhosts = ["a", "b,c"]\n',
        encoding="utf-8",
    )
    source = FilePropertySource(str(path))
    values = {key: entry.value for key, entry in source.properties().items()}
    assert values == {
        "db.url": "pg",
        "db.pool": "5",
        "feature.enabled": "true",
        "feature.hosts": "a,b\\,c",
    }
    assert source.name == source.path == str(path)
    assert source.ordinal == DEFAULT_FILE_ORDINAL
    assert source.get("db.url").source == str(path)


def test_file_source_custom_name_and_ordinal(tmp_path: Path) -> None:
    path = tmp_path / "site.json"
    path.write_text('{"k": "v"}', encoding="utf-8")
    source = FilePropertySource(str(path), ordinal=150, name="site")
    assert (source.name, source.ordinal) == ("site", 150)
    assert source.get("k").source == "site"


def test_file_source_keeps_meta_entries(tmp_path: Path) -> None:
    path = tmp_path / "meta.json"
    path.write_text('{"hosts": {"combination-policy": "collect"}}', encoding="utf-8")
    source = FilePropertySource(str(path))
    assert source.get("hosts.combination-policy").value == "collect"
