"""Ordered, fallible converter chains keyed by target type.

Purpose
-------
Turn raw string values into typed results. Each target type owns a list of
converters tried in registration order; the first non-``None`` result wins,
failures are logged and skipped, and every attempt leaves a trace in
``ConversionContext.supported_formats`` so callers can explain failures.

Contents
--------
* :class:`ConverterRegistry` – thread-safe registry and conversion driver.
* Scalar converters: :class:`BoolConverter`, :class:`IntConverter`,
  :class:`FloatConverter`, :class:`DecimalConverter`, :class:`PathConverter`,
  :class:`EnumConverter`, :class:`DurationConverter`.
* :class:`CollectionConverter` / :class:`MappingConverter` – tokenizer backed
  converters for ``list``/``tuple``/``set``/``frozenset`` and ``dict``.
* :func:`default_registry` – registry pre-populated with all of the above.
"""

from __future__ import annotations

import enum
import re
import threading
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, get_args, get_origin

from ..domain import meta as meta_names
from ..domain.values import ConversionContext
from ..observability import log_debug, log_warning, make_event
from .ports import Converter
from .tokenizer import DEFAULT_ITEM_SEPARATOR, DEFAULT_MAP_ENTRY_SEPARATOR, split, split_map_entry


def raw_type(target_type: Any) -> Any:
    """Return the runtime class behind a possibly parameterised *target_type*.

    Examples
    --------
    >>> raw_type(list[int]), raw_type(int)
    (<class 'list'>, <class 'int'>)
    """

    return get_origin(target_type) or target_type


class ConverterRegistry:
    """Hold converter chains per target type and drive conversions.

    Why
    ----
    Conversion must be order-preserving and must never crash a resolution pass;
    keeping both rules in one class avoids every caller re-implementing them.

    What
    ----
    Converter lists are guarded by a single lock and read through snapshots,
    so conversions never run while holding it.

    Examples
    --------
    >>> registry = ConverterRegistry()
    >>> registry.register(int, IntConverter())
    >>> ctx = ConversionContext(key="port", target_type=int)
    >>> registry.convert("0x10", int, ctx)
    16
    >>> registry.convert("8080", str, ctx)
    '8080'
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._converters: dict[Any, list[Converter]] = {}

    def register(self, target_type: Any, converter: Converter) -> None:
        """Append *converter* to the chain of *target_type*."""

        with self._lock:
            self._converters.setdefault(raw_type(target_type), []).append(converter)

    def unregister(self, target_type: Any, converter: Converter) -> None:
        """Remove *converter* from the chain of *target_type* if present."""

        with self._lock:
            chain = self._converters.get(raw_type(target_type), [])
            if converter in chain:
                chain.remove(converter)

    def converters_for(self, target_type: Any) -> tuple[Converter, ...]:
        """Return the chain used for *target_type*, in registration order.

        Exact matches win; otherwise the first registered base class along the
        MRO provides the chain (one converter serves every ``Enum`` subclass).
        Enum subclasses only consult enum bases, so an ``IntEnum`` never lands
        on the ``int`` chain.
        """

        origin = raw_type(target_type)
        bases = getattr(origin, "__mro__", ())[1:]
        if isinstance(origin, type) and issubclass(origin, enum.Enum):
            bases = tuple(base for base in bases if issubclass(base, enum.Enum))
        with self._lock:
            chain = self._converters.get(origin)
            if chain:
                return tuple(chain)
            for base in bases:
                chain = self._converters.get(base)
                if chain:
                    return tuple(chain)
        return ()

    def convert(self, raw: str, target_type: Any, context: ConversionContext) -> Any | None:
        """Convert *raw* into *target_type* or return ``None``.

        What
        ----
        ``str`` targets pass through without invoking any converter. Otherwise
        each converter first records its ``supported_format`` into *context*,
        then runs; exceptions are logged and treated as "no result".
        """

        if target_type is str:
            return raw
        for converter in self.converters_for(target_type):
            name = type(converter).__name__
            context.add_supported_formats(name, converter.supported_format)
            try:
                result = converter.convert(raw, context)
            except Exception as exc:  # noqa: BLE001 - a failing converter must not abort the chain
                log_debug("converter_failed", **make_event(None, context.key, {"converter": name, "error": str(exc)}))
                continue
            if result is not None:
                return result
        log_debug(
            "conversion_exhausted",
            **make_event(None, context.key, {"target": repr(target_type), "formats": list(context.supported_formats)}),
        )
        return None


class BoolConverter:
    """Parse common boolean spellings (case-insensitive)."""

    supported_format = "true|false|yes|no|on|off|1|0"

    _TRUE = frozenset({"true", "yes", "on", "1", "y"})
    _FALSE = frozenset({"false", "no", "off", "0", "n"})

    def convert(self, raw: str, context: ConversionContext) -> bool | None:
        lowered = raw.strip().lower()
        if lowered in self._TRUE:
            return True
        if lowered in self._FALSE:
            return False
        return None


class IntConverter:
    """Parse decimal integers plus ``0x``/``0o``/``0b`` prefixed literals."""

    supported_format = "<int>, 0x<hex>, 0o<oct>, 0b<bin>"

    def convert(self, raw: str, context: ConversionContext) -> int | None:
        text = raw.strip().replace("_", "")
        if not text:
            return None
        return int(text, 0) if text.lower().lstrip("+-").startswith(("0x", "0o", "0b")) else int(text)


class FloatConverter:
    supported_format = "<float>, nan, inf"

    def convert(self, raw: str, context: ConversionContext) -> float | None:
        text = raw.strip()
        return float(text) if text else None


class DecimalConverter:
    supported_format = "<decimal>"

    def convert(self, raw: str, context: ConversionContext) -> Decimal | None:
        text = raw.strip()
        if not text:
            return None
        try:
            return Decimal(text)
        except InvalidOperation:
            return None


class PathConverter:
    supported_format = "<path>"

    def convert(self, raw: str, context: ConversionContext) -> Path | None:
        text = raw.strip()
        return Path(text).expanduser() if text else None


class EnumConverter:
    """Resolve an ``Enum`` member by name (case-insensitive) or by value."""

    supported_format = "<member name>, <member value>"

    def convert(self, raw: str, context: ConversionContext) -> enum.Enum | None:
        enum_type = raw_type(context.target_type)
        text = raw.strip()
        for member in enum_type:
            if member.name.lower() == text.lower():
                return member
        for member in enum_type:
            if str(member.value) == text:
                return member
        return None


_DURATION = re.compile(r"^\s*(?P<amount>\d+(?:\.\d+)?)\s*(?P<unit>ms|s|m|h|d)?\s*$", re.IGNORECASE)
_DURATION_UNITS: Mapping[str, str] = MappingProxyType(
    {"ms": "milliseconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}
)


class DurationConverter:
    """Parse ``<amount>[ms|s|m|h|d]`` into :class:`~datetime.timedelta` (seconds by default)."""

    supported_format = "<n>ms, <n>s, <n>m, <n>h, <n>d"

    def convert(self, raw: str, context: ConversionContext) -> timedelta | None:
        match = _DURATION.match(raw)
        if match is None:
            return None
        unit = _DURATION_UNITS[(match.group("unit") or "s").lower()]
        return timedelta(**{unit: float(match.group("amount"))})


_COLLECTION_FACTORIES: Mapping[str, Callable[[Iterable[Any]], Any]] = MappingProxyType(
    {
        "list": list,
        "tuple": tuple,
        "set": set,
        "frozenset": frozenset,
        "sorted": sorted,
    }
)
_READ_ONLY_VARIANTS: Mapping[Any, Callable[[Iterable[Any]], Any]] = MappingProxyType(
    {list: tuple, set: frozenset, sorted: lambda items: tuple(sorted(items))}
)


class CollectionConverter:
    """Split a value into items and convert each through the registry.

    Why
    ----
    ``hosts=a,b,c`` should become ``["a", "b", "c"]`` and ``ports=80,443`` a
    ``list[int]`` without every application writing its own splitter.

    What
    ----
    Uses the entry's ``item-separator`` (default ``,``). ``collection-type``
    overrides the container (``list``, ``tuple``, ``set``, ``frozenset``,
    ``sorted``); ``read-only=true`` turns lists and sorted lists into tuples
    and sets into frozensets. Items failing conversion are skipped with a warning.
    """

    supported_format = "<item><sep><item>... (item-separator, default ',')"

    def convert(self, raw: str, context: ConversionContext) -> Any | None:
        item_type = _type_argument(context.target_type, 0)
        separator = context.meta.get(meta_names.ITEM_SEPARATOR, DEFAULT_ITEM_SEPARATOR)
        items = []
        for token in split(raw, separator):
            value = _convert_item(token.strip(), item_type, context)
            if value is not None:
                items.append(value)
        factory = _collection_factory(raw_type(context.target_type), context.meta)
        return factory(items)


class MappingConverter:
    """Split a value into ``key=value`` items and build a ``dict``.

    Honours ``item-separator`` and ``map-entry-separator``; ``read-only=true``
    returns a read-only mapping proxy.
    """

    supported_format = "<key>=<value><sep>... (map-entry-separator, default '=')"

    def convert(self, raw: str, context: ConversionContext) -> Mapping[str, Any] | None:
        value_type = _type_argument(context.target_type, 1)
        separator = context.meta.get(meta_names.ITEM_SEPARATOR, DEFAULT_ITEM_SEPARATOR)
        entry_separator = context.meta.get(meta_names.MAP_ENTRY_SEPARATOR, DEFAULT_MAP_ENTRY_SEPARATOR)
        result: dict[str, Any] = {}
        for token in split(raw, separator):
            key, text = split_map_entry(token, entry_separator)
            value = _convert_item(text, value_type, context)
            if value is not None:
                result[key] = value
        if _is_read_only(context.meta):
            return MappingProxyType(result)
        return result


def _type_argument(target_type: Any, index: int) -> Any:
    """Return the *index*-th generic argument of *target_type*, ``str`` when absent."""

    args = get_args(target_type)
    if len(args) > index and args[index] is not Ellipsis:
        return args[index]
    return str


def _convert_item(token: str, item_type: Any, context: ConversionContext) -> Any | None:
    """Convert a single collection item via the registry, logging failures."""

    registry: ConverterRegistry | None = context.converters
    if item_type is str or registry is None:
        return token
    item_context = context.derive(item_type)
    value = registry.convert(token, item_type, item_context)
    context.supported_formats.extend(item_context.supported_formats)
    if value is None:
        log_warning(
            "collection_item_skipped",
            **make_event(None, context.key, {"item": token, "target": repr(item_type)}),
        )
    return value


def _collection_factory(origin: Any, meta: Mapping[str, str]) -> Callable[[Iterable[Any]], Any]:
    """Pick the container constructor from ``collection-type`` / ``read-only`` meta."""

    requested = meta.get(meta_names.COLLECTION_TYPE)
    factory: Callable[[Iterable[Any]], Any]
    if requested:
        factory = _COLLECTION_FACTORIES.get(requested.strip().lower().rsplit(".", 1)[-1], origin)
    else:
        factory = origin
    if _is_read_only(meta):
        factory = _READ_ONLY_VARIANTS.get(factory, factory)
    return factory


def _is_read_only(meta: Mapping[str, str]) -> bool:
    return meta.get(meta_names.READ_ONLY, "false").strip().lower() == "true"


def default_registry() -> ConverterRegistry:
    """Return a registry populated with the built-in converters.

    Examples
    --------
    >>> registry = default_registry()
    >>> ctx = ConversionContext(key="hosts", target_type=list[int], converters=registry)
    >>> registry.convert("80, 443", list[int], ctx)
    [80, 443]
    """

    registry = ConverterRegistry()
    registry.register(bool, BoolConverter())
    registry.register(int, IntConverter())
    registry.register(float, FloatConverter())
    registry.register(Decimal, DecimalConverter())
    registry.register(Path, PathConverter())
    registry.register(enum.Enum, EnumConverter())
    registry.register(timedelta, DurationConverter())
    collection = CollectionConverter()
    for container in (list, tuple, set, frozenset):
        registry.register(container, collection)
    registry.register(dict, MappingConverter())
    return registry
