from __future__ import annotations

import pytest

from lib_ordinal_config.adapters.filters.default import HideFilter, MapFilter, MaskFilter
from lib_ordinal_config.adapters.sources.memory import MappingPropertySource
from lib_ordinal_config.application.context import ConfigurationContext, SourceRegistry
from lib_ordinal_config.domain.errors import ConversionError


class Shout:
    supported_format = "<word>!"

    def convert(self, raw, context):
        return raw.endswith("!") or None


class Reverse:
    def collect(self, current, key, source, meta):
        entry = source.get(key)
        if entry is None:
            return current
        return entry.value if current is None else f"{entry.value}{current}"


class RecordFilter:
    def __init__(self) -> None:
        self.contexts = []

    def filter_property(self, entry, context):
        self.contexts.append(context)
        return entry


def make_context() -> ConfigurationContext:
    return ConfigurationContext(
        [
            MappingPropertySource("defaults", {"db": {"url": "h2", "pool": 5}, "secret": "s3"}, ordinal=0),
            MappingPropertySource("site", {"db": {"url": "pg"}}, ordinal=100),
        ]
    )


def test_resolve_merges_sources() -> None:
    config = make_context().resolve()
    assert config.as_dict() == {"db.url": "pg", "db.pool": "5", "secret": "s3"}
    assert config.origin("db.url")["source"] == "site"
    assert config.get_as("db.pool", int) == 5


def test_sources_are_read_on_every_resolve() -> None:
    context = make_context()
    assert context.resolve()["db.url"] == "pg"
    override = MappingPropertySource("env", {"db": {"url": "mysql"}}, ordinal=300)
    context.add_source(override)
    assert context.resolve()["db.url"] == "mysql"
    context.remove_source(override)
    assert context.resolve()["db.url"] == "pg"
    assert [source.name for source in context.sources] == ["defaults", "site"]


def test_filters_apply_to_resolve_and_get() -> None:
    context = make_context()
    context.add_filter(HideFilter("secret"), MaskFilter(r"db\.url"))
    config = context.resolve()
    assert "secret" not in config
    assert config["db.url"] == "*****"
    assert context.get("secret") is None
    assert context.get("db.url").value == "*****"
    assert len(context.filters) == 2


def test_get_uses_single_property_context() -> None:
    context = make_context()
    recorder = RecordFilter()
    context.add_filter(recorder)
    assert context.get("db.pool").value == "5"
    assert context.get("missing") is None
    assert [(ctx.key, ctx.single_property) for ctx in recorder.contexts] == [("db.pool", True)]
    context.resolve()
    assert recorder.contexts[-1].single_property is False


def test_remove_filter() -> None:
    context = make_context()
    hide = HideFilter("secret")
    context.add_filter(hide)
    context.remove_filter(hide)
    assert "secret" in context.resolve()


def test_register_converter_extends_typed_access() -> None:
    context = ConfigurationContext([MappingPropertySource("s", {"greeting": "hi!"})])
    with pytest.raises(ConversionError):
        context.resolve().require("greeting", complex)
    context.register_converter(complex, Shout())
    assert context.resolve().require("greeting", complex) is True


def test_register_policy_makes_identifier_selectable() -> None:
    context = ConfigurationContext(
        [
            MappingPropertySource("a", {"k": "1", "k.combination-policy": "reverse"}, ordinal=0),
            MappingPropertySource("b", {"k": "2"}, ordinal=1),
        ]
    )
    context.register_policy("reverse", Reverse)
    assert context.resolve()["k"] == "21"


def test_close_releases_everything() -> None:
    context = make_context()
    context.add_filter(HideFilter("x"))
    context.close()
    assert context.sources == ()
    assert context.filters == ()
    assert len(context.resolve()) == 0


def test_source_registry_snapshot() -> None:
    first = MappingPropertySource("a", {})
    registry = SourceRegistry([first])
    snapshot = registry.snapshot()
    registry.add(MappingPropertySource("b", {}))
    assert len(snapshot) == 1
    assert [source.name for source in registry] == ["a", "b"]
    registry.remove(first)
    assert len(registry) == 1
    registry.clear()
    assert registry.snapshot() == ()


@pytest.mark.parametrize("data", [{"legacy.port": "1", "app.port": "2"}, {"app.port": "2", "legacy.port": "1"}])
def test_resolve_and_get_agree_when_a_rename_collides(data: dict[str, str]) -> None:
    context = ConfigurationContext(
        [MappingPropertySource("site", data)],
        [MapFilter(matches=r"legacy\..*", cutoff="legacy.", target="app.")],
    )
    assert context.resolve().get("app.port") == "2"
    assert context.get("app.port").value == "2"
