from __future__ import annotations

import dataclasses

import pytest

from lib_ordinal_config.adapters.sources.memory import MappingPropertySource
from lib_ordinal_config.domain.values import ConversionContext, FilterContext, PropertyEntry, describe


def test_entry_rejects_empty_key() -> None:
    with pytest.raises(ValueError):
        PropertyEntry("", "value", "source")


def test_entry_is_frozen() -> None:
    entry = PropertyEntry("db.url", "h2", "defaults")
    with pytest.raises(dataclasses.FrozenInstanceError):
        entry.value = "pg"  # type: ignore[misc]


def test_entry_meta_is_read_only_copy() -> None:
    raw = {"item-separator": ";"}
    entry = PropertyEntry("hosts", "a;b", "s", raw)
    raw["item-separator"] = "|"
    assert entry.meta["item-separator"] == ";"
    with pytest.raises(TypeError):
        entry.meta["item-separator"] = "|"  # type: ignore[index]


def test_with_helpers_return_copies() -> None:
    entry = PropertyEntry("db.url", "h2", "defaults", {"read-only": "true"})
    updated = entry.with_value("pg")
    assert (updated.key, updated.value, updated.source) == ("db.url", "pg", "defaults")
    assert dict(updated.meta) == {"read-only": "true"}
    assert entry.with_key("database.url").key == "database.url"
    extended = entry.with_meta({"item-separator": ";"})
    assert dict(extended.meta) == {"read-only": "true", "item-separator": ";"}
    assert entry.value == "h2" and "item-separator" not in entry.meta


def test_conversion_context_records_formats_with_owner() -> None:
    context = ConversionContext(key="port", target_type=int)
    context.add_supported_formats("IntConverter", "<int>")
    context.add_supported_formats("HexConverter", "0x<hex>", "<hex>h")
    assert context.supported_formats == ["<int> (IntConverter)", "0x<hex> (HexConverter)", "<hex>h (HexConverter)"]


def test_conversion_context_derive_starts_with_fresh_formats() -> None:
    context = ConversionContext(key="ports", target_type=list[int], meta={"item-separator": ";"})
    context.add_supported_formats("CollectionConverter", "<items>")
    item_context = context.derive(int)
    assert item_context.target_type is int
    assert item_context.key == "ports"
    assert item_context.meta == {"item-separator": ";"}
    assert item_context.supported_formats == []


def test_filter_context_defaults() -> None:
    context = FilterContext("db.url")
    assert context.entries == {}
    assert context.single_property is False


def test_describe_captures_source_facts() -> None:
    descriptor = describe(MappingPropertySource("defaults", {}, ordinal=7, scannable=False))
    assert (descriptor.name, descriptor.ordinal, descriptor.scannable) == ("defaults", 7, False)
