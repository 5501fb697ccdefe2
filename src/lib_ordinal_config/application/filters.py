"""Ordered, thread-safe filter chain applied to merged entries.

Purpose
-------
Run every registered :class:`~lib_ordinal_config.application.ports.PropertyFilter`
over a merged entry, in registration order, stopping as soon as one filter
vetoes the entry by returning ``None``.

Contents
--------
* :class:`FilterChain` – encapsulated list with ``add``/``remove``/``snapshot``
  guarded by one lock, plus ``apply`` and ``apply_all``.

System Role
-----------
Owned by :class:`lib_ordinal_config.application.context.ConfigurationContext`.
Mutations take the lock; traversal works on a snapshot so slow filters (for
example network-backed access checks) never run while the lock is held.
"""

from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from ..domain.values import FilterContext, PropertyEntry
from ..observability import log_debug, log_warning, make_event
from .ports import PropertyFilter


class FilterChain:
    """Registration-ordered list of filters.

    Examples
    --------
    >>> class Upper:
    ...     def filter_property(self, entry, context):
    ...         return entry.with_value(entry.value.upper())
    >>> chain = FilterChain([Upper()])
    >>> chain.apply(PropertyEntry("k", "v", "s"), FilterContext(key="k")).value
    'V'
    """

    def __init__(self, filters: Iterable[PropertyFilter] = ()) -> None:
        self._lock = threading.Lock()
        self._filters: list[PropertyFilter] = list(filters)

    def add(self, *filters: PropertyFilter) -> None:
        """Append *filters* at the end of the chain."""

        with self._lock:
            self._filters.extend(filters)

    def remove(self, *filters: PropertyFilter) -> None:
        """Remove *filters*; filters not registered are ignored."""

        with self._lock:
            for item in filters:
                if item in self._filters:
                    self._filters.remove(item)

    def clear(self) -> None:
        with self._lock:
            self._filters.clear()

    def snapshot(self) -> tuple[PropertyFilter, ...]:
        """Return the current filters as an immutable tuple."""

        with self._lock:
            return tuple(self._filters)

    def __len__(self) -> int:
        with self._lock:
            return len(self._filters)

    def __iter__(self) -> Iterator[PropertyFilter]:
        return iter(self.snapshot())

    def apply(self, entry: PropertyEntry, context: FilterContext) -> PropertyEntry | None:
        """Run every filter over *entry* in order.

        Each filter receives the previous filter's output. A ``None`` result
        drops the entry and no later filter is invoked for it.
        """

        current: PropertyEntry | None = entry
        for item in self.snapshot():
            current = item.filter_property(current, context)
            if current is None:
                log_debug("property_filtered", **make_event(entry.source, entry.key, {"filter": type(item).__name__}))
                return None
        return current

    def apply_all(self, entries: Mapping[str, PropertyEntry]) -> dict[str, PropertyEntry]:
        """Filter every entry of a resolution pass.

        Dropped entries disappear; entries renamed by a filter are stored under
        their new key. A renamed entry only fills a key that no entry kept
        under its own name; among renamed entries the smallest original key
        wins. Losers are reported as ``property_rekey_collision``.
        """

        if not len(self):
            return dict(entries)
        view = MappingProxyType(dict(entries))
        result: dict[str, PropertyEntry] = {}
        renamed: list[tuple[str, PropertyEntry]] = []
        for key, entry in entries.items():
            filtered = self.apply(entry, FilterContext(key=key, entries=view, single_property=False))
            if filtered is None or filtered.value is None:
                continue
            if filtered.key == key:
                result[key] = filtered
            else:
                renamed.append((key, filtered))
        for original, filtered in sorted(renamed, key=lambda item: item[0]):
            if filtered.key in result:
                log_warning(
                    "property_rekey_collision",
                    **make_event(filtered.source, filtered.key, {"renamed_from": original}),
                )
                continue
            result[filtered.key] = filtered
        return result
