"""Meta-entry naming convention.

Meta-entries are ordinary key/value pairs that configure how *another* key is
resolved, e.g. ``db.url.combination-policy=collect`` or
``db.url.item-separator=;``. The convention is the only wire protocol the
pipeline depends on and is kept byte for byte.

Two spellings are recognised:

* ``<key>.<meta-name>`` for a known meta name;
* any key starting with the reserved prefix ``_`` (``_<key>.<meta-name>`` is
  read as a fallback for the plain spelling).
"""

from __future__ import annotations

from typing import Final, Iterable, Mapping

COMBINATION_POLICY: Final[str] = "combination-policy"
ITEM_SEPARATOR: Final[str] = "item-separator"
MAP_ENTRY_SEPARATOR: Final[str] = "map-entry-separator"
COLLECTION_TYPE: Final[str] = "collection-type"
READ_ONLY: Final[str] = "read-only"
ITEM_CONVERTER: Final[str] = "item-converter"

META_PREFIX: Final[str] = "_"
DEFAULT_META_NAMES: Final[tuple[str, ...]] = (
    COMBINATION_POLICY,
    ITEM_SEPARATOR,
    MAP_ENTRY_SEPARATOR,
    COLLECTION_TYPE,
    READ_ONLY,
    ITEM_CONVERTER,
)


class MetaKeys:
    """Recognise meta-entry keys and map them back to their target key.

    Examples
    --------
    >>> keys = MetaKeys()
    >>> keys.is_meta("db.url.combination-policy"), keys.is_meta("db.url")
    (True, False)
    >>> keys.split("db.url.item-separator")
    ('db.url', 'item-separator')
    >>> keys.key_for("db.url", "item-separator")
    'db.url.item-separator'
    """

    def __init__(self, names: Iterable[str] = DEFAULT_META_NAMES, *, prefix: str = META_PREFIX) -> None:
        self._names = tuple(names)
        self._prefix = prefix

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    def is_meta(self, key: str) -> bool:
        """Return ``True`` when *key* is a meta-entry rather than a visible key."""

        if self._prefix and key.startswith(self._prefix):
            return True
        return self.split(key) is not None

    def split(self, key: str) -> tuple[str, str] | None:
        """Return ``(target_key, meta_name)`` for a meta-entry key, else ``None``.

        The reserved prefix is stripped from the target key.
        """

        bare = key[len(self._prefix) :] if self._prefix and key.startswith(self._prefix) else key
        for name in self._names:
            suffix = "." + name
            if bare.endswith(suffix) and len(bare) > len(suffix):
                return bare[: -len(suffix)], name
        return None

    def key_for(self, key: str, name: str) -> str:
        """Return the canonical meta-entry key for *key* and *name*."""

        return f"{key}.{name}"

    def candidates(self, key: str, name: str) -> tuple[str, str]:
        """Return the plain and prefixed spellings, in lookup order."""

        plain = self.key_for(key, name)
        return plain, self._prefix + plain

    def collect(self, meta_values: Mapping[str, str | None]) -> dict[str, dict[str, str]]:
        """Group merged meta-entry values by target key.

        Plain spellings take precedence over prefixed ones for the same target.

        Examples
        --------
        >>> MetaKeys().collect({"a.item-separator": "|", "_a.item-separator": ";", "_b.read-only": "true"})
        {'a': {'item-separator': '|'}, 'b': {'read-only': 'true'}}
        """

        grouped: dict[str, dict[str, str]] = {}
        prefixed: list[tuple[str, str, str]] = []
        for meta_key, value in meta_values.items():
            if value is None:
                continue
            parts = self.split(meta_key)
            if parts is None:
                continue
            target, name = parts
            if self._prefix and meta_key.startswith(self._prefix):
                prefixed.append((target, name, value))
            else:
                grouped.setdefault(target, {})[name] = value
        for target, name, value in prefixed:
            grouped.setdefault(target, {}).setdefault(name, value)
        return grouped


DEFAULT_META_KEYS: Final[MetaKeys] = MetaKeys()
"""Shared convention instance used when callers do not supply their own."""
