from __future__ import annotations

from lib_ordinal_config.adapters.sources.memory import MappingPropertySource, flatten, render_value
from lib_ordinal_config.application.tokenizer import split


def test_flatten_produces_dotted_keys() -> None:
    assert flatten({"db": {"url": "h2", "pool": {"max": 5}}, "debug": False, "none": None}) == {
        "db.url": "h2",
        "db.pool.max": "5",
        "debug": "false",
    }


def test_render_value_sequences_round_trip_through_tokenizer() -> None:
    rendered = render_value(["a,b", "c", True])
    assert split(rendered) == ["a,b", "c", "true"]
    assert render_value({"b", "a"}) == "a,b"
    assert render_value(None) is None
    assert render_value(1.5) == "1.5"


def test_source_serves_entries_with_provenance_and_meta() -> None:
    source = MappingPropertySource("defaults", {"port": 80}, ordinal=3, meta={"owner": "ops"})
    entry = source.get("port")
    assert (entry.key, entry.value, entry.source) == ("port", "80", "defaults")
    assert dict(entry.meta) == {"owner": "ops"}
    assert (source.name, source.ordinal, source.scannable) == ("defaults", 3, True)
    assert "defaults" in repr(source)


def test_non_scannable_source_only_answers_get() -> None:
    source = MappingPropertySource("vault", {"token": "t"}, scannable=False)
    assert dict(source.properties()) == {}
    assert source.get("token").value == "t"
