"""In-memory property source.

Purpose
-------
Wrap a (possibly nested) mapping as a :class:`PropertySource`. File, dotenv and
environment adapters all parse into mappings and then delegate here, so the
flattening rules live in one place.

Key behaviours
--------------
* Nested mappings become dotted keys (``{"db": {"url": x}}`` → ``db.url``).
* Booleans render as ``true``/``false``; ``None`` values are skipped.
* Sequences and sets are joined with ``,``; commas inside items are escaped so
  the tokenizer recovers the original items.
"""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from types import MappingProxyType
from typing import Any, Mapping

from ...application.tokenizer import DEFAULT_ITEM_SEPARATOR, ESCAPE
from ...domain.values import PropertyEntry


class MappingPropertySource:
    """Serve entries from a mapping captured at construction time.

    Examples
    --------
    >>> source = MappingPropertySource("defaults", {"db": {"url": "h2", "pool": 5}, "debug": True})
    >>> sorted(source.properties())
    ['db.pool', 'db.url', 'debug']
    >>> source.get("debug").value
    'true'
    """

    def __init__(
        self,
        name: str,
        data: Mapping[str, Any],
        *,
        ordinal: int = 0,
        scannable: bool = True,
        meta: Mapping[str, str] | None = None,
    ) -> None:
        self._name = name
        self._ordinal = ordinal
        self._scannable = scannable
        entry_meta = dict(meta or {})
        self._entries: Mapping[str, PropertyEntry] = MappingProxyType(
            {key: PropertyEntry(key=key, value=value, source=name, meta=entry_meta) for key, value in flatten(data).items()}
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def ordinal(self) -> int:
        return self._ordinal

    @property
    def scannable(self) -> bool:
        return self._scannable

    def get(self, key: str) -> PropertyEntry | None:
        return self._entries.get(key)

    def properties(self) -> Mapping[str, PropertyEntry]:
        """Return every entry, or nothing when the source is not scannable."""

        if not self._scannable:
            return MappingProxyType({})
        return self._entries

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, ordinal={self._ordinal}, keys={len(self._entries)})"


def flatten(data: Mapping[str, Any], prefix: str = "") -> dict[str, str]:
    """Flatten nested *data* into dotted keys with string values.

    Examples
    --------
    >>> flatten({"a": {"b": 1, "c": [1, "x,y"]}, "d": None})
    {'a.b': '1', 'a.c': '1,x\\\\,y'}
    """

    flat: dict[str, str] = {}
    for key, value in data.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, MappingABC):
            flat.update(flatten(value, dotted))
            continue
        rendered = render_value(value)
        if rendered is not None:
            flat[dotted] = rendered
    return flat


def render_value(value: Any) -> str | None:
    """Render a scalar or sequence the way the converters parse it back."""

    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set, frozenset)):
        items = sorted(value, key=str) if isinstance(value, (set, frozenset)) else value
        escaped = ESCAPE + DEFAULT_ITEM_SEPARATOR
        return DEFAULT_ITEM_SEPARATOR.join(
            (render_value(item) or "").replace(DEFAULT_ITEM_SEPARATOR, escaped) for item in items
        )
    return str(value)
