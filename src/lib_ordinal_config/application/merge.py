"""Application-layer ordinal merge engine.

Purpose
-------
Convert a set of property sources into a single coherent mapping of
:class:`~lib_ordinal_config.domain.values.PropertyEntry` objects. Sources are
consumed in ascending ordinal order and every key is combined through the
policy its meta-entries select. The engine performs no I/O of its own and holds
no lock while calling into sources.

Contents
    - ``order_sources``: stable ascending-ordinal ordering.
    - ``OrdinalMergeEngine``: ``resolve_all`` (bulk pass) and ``resolve``
      (single key) driven by a simple per-key loop.
    - ``_Snapshot``: read-through view that lets policies query an already
      fetched source without calling it again.

System Role
-----------
Called by :class:`lib_ordinal_config.application.context.ConfigurationContext`;
its output is passed through the filter chain and wrapped in
:class:`lib_ordinal_config.domain.config.Config`.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from ..domain.meta import DEFAULT_META_KEYS, MetaKeys
from ..domain.values import PropertyEntry
from ..observability import log_debug, make_event
from .policies import CombinationPolicyResolver
from .ports import CombinationPolicy, PropertySource


def order_sources(sources: Iterable[PropertySource]) -> list[PropertySource]:
    """Return *sources* sorted by ascending ordinal.

    Ties keep their registration order (``sorted`` is stable), which makes the
    merge deterministic for sources sharing an ordinal.

    Examples
    --------
    >>> from lib_ordinal_config.adapters.sources.memory import MappingPropertySource
    >>> ordered = order_sources([
    ...     MappingPropertySource("b", {}, ordinal=5),
    ...     MappingPropertySource("a", {}, ordinal=0),
    ...     MappingPropertySource("c", {}, ordinal=5),
    ... ])
    >>> [source.name for source in ordered]
    ['a', 'b', 'c']
    """

    return sorted(sources, key=lambda source: source.ordinal)


class _Snapshot:
    """Serve a source's already fetched entries through the source protocol."""

    def __init__(self, source: PropertySource, entries: Mapping[str, PropertyEntry]) -> None:
        self._source = source
        self._entries = entries

    @property
    def name(self) -> str:
        return self._source.name

    @property
    def ordinal(self) -> int:
        return self._source.ordinal

    @property
    def scannable(self) -> bool:
        return True

    @property
    def entries(self) -> Mapping[str, PropertyEntry]:
        return self._entries

    def get(self, key: str) -> PropertyEntry | None:
        return self._entries.get(key)

    def properties(self) -> Mapping[str, PropertyEntry]:
        return self._entries


class OrdinalMergeEngine:
    """Merge property sources key by key in ascending ordinal order.

    Why
    ----
    Centralising merge semantics guarantees deterministic precedence whatever
    order sources were registered in, and keeps meta-entries out of the visible
    result.

    What
    ----
    Meta-entries are merged first ("last non-null wins") and grouped by the key
    they describe. Every visible key then starts from ``None`` and is fed
    through the policy its meta-entries select, once per source holding the key.
    Keys ending up ``None`` are absent from the result.

    Examples
    --------
    >>> from lib_ordinal_config.adapters.sources.memory import MappingPropertySource
    >>> engine = OrdinalMergeEngine()
    >>> merged = engine.resolve_all([
    ...     MappingPropertySource("s1", {"k": "a"}, ordinal=0),
    ...     MappingPropertySource("s2", {"k": "b"}, ordinal=10),
    ...     MappingPropertySource("s3", {"k": "c"}, ordinal=5),
    ... ])
    >>> merged["k"].value, merged["k"].source
    ('b', 's2')
    """

    def __init__(
        self,
        policies: CombinationPolicyResolver | None = None,
        *,
        meta_keys: MetaKeys = DEFAULT_META_KEYS,
    ) -> None:
        self._policies = policies or CombinationPolicyResolver(meta_keys=meta_keys)
        self._meta_keys = meta_keys

    @property
    def policies(self) -> CombinationPolicyResolver:
        return self._policies

    def resolve_all(self, sources: Iterable[PropertySource]) -> dict[str, PropertyEntry]:
        """Merge every key of every source into one mapping.

        Parameters
        ----------
        sources:
            Property sources in any order.

        Returns
        -------
        dict[str, PropertyEntry]
            Visible keys mapped to their merged entries. Meta-entries are
            attached to ``PropertyEntry.meta`` instead of appearing as keys.

        Notes
        -----
        Non-scannable sources cannot be enumerated; they contribute through
        ``get`` for every key (and meta-entry) discovered in scannable sources.
        Exceptions raised by a source propagate and no partial result is
        returned.
        """

        ordered = order_sources(sources)
        snapshots, keys = self._fetch(ordered)
        meta = self._merge_meta(snapshots)

        merged: dict[str, PropertyEntry] = {}
        for key in keys:
            if self._meta_keys.is_meta(key):
                continue
            entry = self._merge_key(key, snapshots, meta.get(key, {}))
            if entry is not None:
                merged[key] = entry
        log_debug("merge_complete", **make_event(None, None, {"sources": len(ordered), "keys": len(merged)}))
        return merged

    def resolve(self, key: str, sources: Iterable[PropertySource]) -> PropertyEntry | None:
        """Merge a single *key*, querying each source with ``get``.

        Meta-entry keys are never visible and resolve to ``None``.
        """

        if self._meta_keys.is_meta(key):
            return None
        ordered = order_sources(sources)
        wanted = [key]
        for name in self._meta_keys.names:
            wanted.extend(self._meta_keys.candidates(key, name))
        snapshots = [_Snapshot(source, _fetch_keys(source, wanted)) for source in ordered]
        meta = self._merge_meta(snapshots)
        return self._merge_key(key, snapshots, meta.get(key, {}))

    def _fetch(self, ordered: Sequence[PropertySource]) -> tuple[list[_Snapshot], list[str]]:
        """Read every scannable source once and collect the key universe."""

        fetched: list[tuple[PropertySource, Mapping[str, PropertyEntry] | None]] = []
        keys: dict[str, None] = {}
        for source in ordered:
            if not source.scannable:
                fetched.append((source, None))
                continue
            entries = dict(source.properties())
            keys.update(dict.fromkeys(entries))
            fetched.append((source, entries))
            log_debug("source_loaded", **make_event(source.name, None, {"ordinal": source.ordinal, "keys": len(entries)}))

        lookups = list(keys)
        for key in list(keys):
            if self._meta_keys.is_meta(key):
                continue
            for name in self._meta_keys.names:
                lookups.extend(self._meta_keys.candidates(key, name))

        snapshots: list[_Snapshot] = []
        for source, entries in fetched:
            if entries is None:
                entries = _fetch_keys(source, lookups)
                log_debug("source_queried", **make_event(source.name, None, {"ordinal": source.ordinal, "keys": len(entries)}))
            snapshots.append(_Snapshot(source, entries))
        return snapshots, list(keys)

    def _merge_meta(self, snapshots: Sequence[_Snapshot]) -> dict[str, dict[str, str]]:
        """Merge meta-entries with "last non-null wins" and group them by key."""

        values: dict[str, str | None] = {}
        for snapshot in snapshots:
            for key, entry in snapshot.entries.items():
                if entry.value is not None and self._meta_keys.is_meta(key):
                    values[key] = entry.value
        return self._meta_keys.collect(values)

    def _merge_key(self, key: str, snapshots: Sequence[_Snapshot], meta: Mapping[str, str]) -> PropertyEntry | None:
        """Run the per-key state machine across *snapshots*."""

        current: str | None = None
        contributor: tuple[_Snapshot, PropertyEntry] | None = None
        policy: CombinationPolicy | None = None
        for snapshot in snapshots:
            entry = snapshot.get(key)
            if entry is None:
                continue
            if policy is None:
                policy = self._policies.resolve(key, meta)
            current = policy.collect(current, key, snapshot, meta)
            if entry.value is not None:
                contributor = (snapshot, entry)
        if current is None or contributor is None:
            return None
        snapshot, entry = contributor
        return PropertyEntry(key=key, value=current, source=snapshot.name, meta={**entry.meta, **meta})


def _fetch_keys(source: PropertySource, keys: Iterable[str]) -> dict[str, PropertyEntry]:
    """Query *source* for each of *keys*, keeping the ones it holds."""

    found: dict[str, PropertyEntry] = {}
    for key in keys:
        entry = source.get(key)
        if entry is not None:
            found[key] = entry
    return found
