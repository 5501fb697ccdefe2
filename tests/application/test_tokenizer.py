from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_ordinal_config.application.tokenizer import split, split_map_entry

ITEM = st.text(alphabet=st.characters(blacklist_characters=",\\"), min_size=1, max_size=8)


def test_escaped_separator_is_not_a_split_point() -> None:
    assert split("a\\,b,c", ",") == ["a,b", "c"]


@pytest.mark.parametrize(
    ("value", "separator", "expected"),
    [
        ("a,b,c", ",", ["a", "b", "c"]),
        ("a,,b", ",", ["a", "", "b"]),
        ("a,b,", ",", ["a", "b"]),
        (",a", ",", ["", "a"]),
        ("", ",", []),
        ("single", ",", ["single"]),
        ("a::b::c", "::", ["a", "b", "c"]),
        ("a\\::b::c", "::", ["a::b", "c"]),
        ("\\,", ",", [","]),
        ("a\\,b\\,c", ",", ["a,b,c"]),
    ],
)
def test_split_cases(value: str, separator: str, expected: list[str]) -> None:
    assert split(value, separator) == expected


def test_split_rejects_empty_separator() -> None:
    with pytest.raises(ValueError):
        split("a,b", "")


@given(st.lists(ITEM, min_size=1, max_size=6))
def test_split_recovers_joined_items(items: list[str]) -> None:
    assert split(",".join(items)) == items


@given(st.lists(st.text(alphabet="ab,", min_size=1, max_size=5), min_size=1, max_size=5))
def test_split_recovers_escaped_items(items: list[str]) -> None:
    joined = ",".join(item.replace(",", "\\,") for item in items)
    assert split(joined) == items


def test_split_map_entry_trims_both_parts() -> None:
    assert split_map_entry(" read = 5 ") == ("read", "5")
    assert split_map_entry("url=jdbc:h2=mem") == ("url", "jdbc:h2=mem")


def test_split_map_entry_bracket_quoting_keeps_inner_padding() -> None:
    assert split_map_entry("[ key = value ]") == (" key", " value ")


def test_split_map_entry_custom_separator() -> None:
    assert split_map_entry("a::b", "::") == ("a", "b")


def test_split_map_entry_without_separator_echoes_entry() -> None:
    # compatibility behaviour only
    assert split_map_entry("novalue", "::") == ("novalue", "novalue")


def test_split_map_entry_rejects_empty_separator() -> None:
    with pytest.raises(ValueError):
        split_map_entry("a=b", "")
