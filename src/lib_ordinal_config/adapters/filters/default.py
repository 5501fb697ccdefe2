"""Built-in property filters.

Purpose
-------
Ready-made implementations of the
:class:`~lib_ordinal_config.application.ports.PropertyFilter` port covering the
usual post-merge concerns: hiding, masking, re-keying, freezing, caching and
role based access control.

Contents
--------
* :class:`HideFilter` – drop keys matching a pattern.
* :class:`MaskFilter` – replace values of matching keys with a mask.
* :class:`MapFilter` – strip a key prefix and/or prepend a new one.
* :class:`ImmutableFilter` – the first value seen for a key sticks.
* :class:`CachedFilter` – time-bounded memoization of matching entries.
* :class:`SecuredFilter` – role checks with hide / warn / raise policies.

Patterns are regular expressions matched against the *whole* key.
"""

from __future__ import annotations

import enum
import re
import threading
import time
from typing import Callable, Iterable

from ...domain.errors import AccessDenied
from ...domain.values import FilterContext, PropertyEntry
from ...observability import log_warning, make_event


def _compile(matches: str | None) -> re.Pattern[str] | None:
    return re.compile(matches) if matches is not None else None


def _applies(pattern: re.Pattern[str] | None, key: str) -> bool:
    return pattern is None or pattern.fullmatch(key) is not None


class HideFilter:
    """Remove every entry whose key matches *matches*.

    Examples
    --------
    >>> HideFilter(r"secret\\..*").filter_property(PropertyEntry("secret.token", "x", "s"), FilterContext("secret.token")) is None
    True
    """

    def __init__(self, matches: str) -> None:
        self._pattern = re.compile(matches)

    def filter_property(self, entry: PropertyEntry, context: FilterContext) -> PropertyEntry | None:
        if self._pattern.fullmatch(entry.key):
            return None
        return entry

    def __repr__(self) -> str:
        return f"HideFilter(matches={self._pattern.pattern!r})"


class MaskFilter:
    """Replace the value of matching keys with *mask*."""

    def __init__(self, matches: str, *, mask: str = "*****") -> None:
        self._pattern = re.compile(matches)
        self._mask = mask

    def filter_property(self, entry: PropertyEntry, context: FilterContext) -> PropertyEntry | None:
        if self._pattern.fullmatch(entry.key):
            return entry.with_value(self._mask)
        return entry

    def __repr__(self) -> str:
        return f"MaskFilter(matches={self._pattern.pattern!r}, mask={self._mask!r})"


class MapFilter:
    """Re-key matching entries: strip *cutoff*, then prepend *target*.

    Examples
    --------
    >>> mapper = MapFilter(cutoff="legacy.", target="app.")
    >>> mapper.filter_property(PropertyEntry("legacy.port", "80", "s"), FilterContext("legacy.port")).key
    'app.port'
    """

    def __init__(self, *, matches: str | None = None, cutoff: str | None = None, target: str | None = None) -> None:
        self._pattern = _compile(matches)
        self._cutoff = cutoff
        self._target = target

    def filter_property(self, entry: PropertyEntry, context: FilterContext) -> PropertyEntry | None:
        if not _applies(self._pattern, entry.key):
            return entry
        key = entry.key
        if self._cutoff and key.startswith(self._cutoff) and len(key) > len(self._cutoff):
            key = key[len(self._cutoff) :]
        if self._target:
            key = self._target + key
        return entry if key == entry.key else entry.with_key(key)

    def __repr__(self) -> str:
        pattern = self._pattern.pattern if self._pattern else None
        return f"MapFilter(matches={pattern!r}, cutoff={self._cutoff!r}, target={self._target!r})"


class ImmutableFilter:
    """Freeze every key at the first value this filter sees for it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._seen: dict[str, str | None] = {}

    def filter_property(self, entry: PropertyEntry, context: FilterContext) -> PropertyEntry | None:
        with self._lock:
            frozen = self._seen.setdefault(entry.key, entry.value)
        return entry if frozen == entry.value else entry.with_value(frozen)


class CachedFilter:
    """Memoize matching entries for *timeout* seconds.

    Why
    ----
    Sources backed by remote stores can change between passes; caching pins a
    value for a bounded time so consumers see a stable view.

    What
    ----
    While a cached entry is younger than *timeout* it replaces the incoming one.
    Expired entries are refreshed with the incoming entry. Once *max_size*
    entries are cached (``-1`` = unbounded) new keys pass through uncached.
    """

    def __init__(
        self,
        matches: str | None = None,
        *,
        timeout: float = 300.0,
        max_size: int = -1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._pattern = _compile(matches)
        self._timeout = timeout
        self._max_size = max_size
        self._clock = clock
        self._lock = threading.Lock()
        self._cache: dict[str, tuple[float, PropertyEntry]] = {}

    def filter_property(self, entry: PropertyEntry, context: FilterContext) -> PropertyEntry | None:
        if not _applies(self._pattern, entry.key):
            return entry
        now = self._clock()
        with self._lock:
            cached = self._cache.get(entry.key)
            if cached is not None and cached[0] > now:
                return cached[1]
            if cached is None and 0 <= self._max_size <= len(self._cache):
                return entry
            self._cache[entry.key] = (now + self._timeout, entry)
        return entry

    def invalidate(self, key: str | None = None) -> None:
        """Drop the cached entry for *key*, or the whole cache."""

        with self._lock:
            if key is None:
                self._cache.clear()
            else:
                self._cache.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


class SecurePolicy(str, enum.Enum):
    """What :class:`SecuredFilter` does when no role grants access."""

    HIDE = "hide"
    WARN = "warn"
    RAISE = "raise"


class SecuredFilter:
    """Restrict matching keys to callers holding one of *roles*.

    The *role_supplier* returns the caller's roles; ``None`` means "no security
    context" and lets the entry through.

    Examples
    --------
    >>> guard = SecuredFilter(r"db\\..*", roles=["admin"], role_supplier=lambda: {"dev"})
    >>> guard.filter_property(PropertyEntry("db.password", "x", "s"), FilterContext("db.password")) is None
    True
    """

    def __init__(
        self,
        matches: str | None = None,
        *,
        roles: Iterable[str] = (),
        role_supplier: Callable[[], Iterable[str] | None] = lambda: None,
        policy: SecurePolicy | str = SecurePolicy.HIDE,
    ) -> None:
        self._pattern = _compile(matches)
        self._roles = frozenset(role.strip() for role in roles)
        self._role_supplier = role_supplier
        self._policy = SecurePolicy(policy)

    @property
    def roles(self) -> frozenset[str]:
        return self._roles

    @property
    def policy(self) -> SecurePolicy:
        return self._policy

    def filter_property(self, entry: PropertyEntry, context: FilterContext) -> PropertyEntry | None:
        if not _applies(self._pattern, entry.key):
            return entry
        assigned = self._role_supplier()
        if assigned is None:
            return entry
        if self._roles.intersection(assigned):
            return entry
        if self._policy is SecurePolicy.RAISE:
            raise AccessDenied(f"Unauthorized access to {entry.key!r}, not in {sorted(self._roles)}")
        if self._policy is SecurePolicy.WARN:
            log_warning("unauthorized_access", **make_event(entry.source, entry.key, {"roles": sorted(self._roles)}))
            return entry
        return None
