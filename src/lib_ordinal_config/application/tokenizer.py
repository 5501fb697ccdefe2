"""Split delimited configuration values into items.

Purpose
-------
Collection-typed values (``hosts=a,b,c``; ``limits=read=5,write=2``) are plain
strings until a converter asks for their items. The tokenizer is the one place
that knows about escaping and bracket quoting.

Contents
--------
* :func:`split` – separator split honouring ``\\`` escapes.
* :func:`split_map_entry` – ``key<sep>value`` split with bracket quoting.
"""

from __future__ import annotations

from typing import Final

ESCAPE: Final[str] = "\\"
DEFAULT_ITEM_SEPARATOR: Final[str] = ","
DEFAULT_MAP_ENTRY_SEPARATOR: Final[str] = "="


def split(value: str, separator: str = DEFAULT_ITEM_SEPARATOR) -> list[str]:
    """Split *value* on every unescaped occurrence of *separator*.

    Why
    ----
    Items sometimes contain the separator themselves; prefixing it with ``\\``
    keeps it inside the item.

    What
    ----
    Scans left to right with literal substring search. An occurrence preceded by
    the escape character is not a split point; the escape is removed from the
    item. Interior items are emitted as found (empty ones included), the trailing
    remainder only when it is non-empty.

    Parameters
    ----------
    value:
        Raw string value.
    separator:
        Non-empty literal separator.

    Returns
    -------
    list[str]
        Items in order of occurrence.

    Examples
    --------
    >>> split("a\\\\,b,c", ",")
    ['a,b', 'c']
    >>> split("x|y|", "|")
    ['x', 'y']
    >>> split("a::b", "::")
    ['a', 'b']
    """

    if not separator:
        raise ValueError("separator must not be empty")
    items: list[str] = []
    pending = ""
    start = 0
    search = 0
    while True:
        index = value.find(separator, search)
        if index < 0:
            break
        if index > 0 and value[index - 1] == ESCAPE:
            pending += value[start : index - 1] + separator
            start = search = index + len(separator)
            continue
        items.append(pending + value[start:index])
        pending = ""
        start = search = index + len(separator)
    remainder = pending + value[start:]
    if remainder:
        items.append(remainder)
    return items


def split_map_entry(entry: str, separator: str = DEFAULT_MAP_ENTRY_SEPARATOR) -> tuple[str, str]:
    """Split *entry* into ``(key, value)`` on the first *separator*.

    What
    ----
    Both parts are trimmed. A leading ``[`` on the key and a trailing ``]`` on
    the value are stripped, so ``[ key ]`` style quoting keeps padding on the
    inner side. When the separator is missing the entry is echoed as both key
    and value; that fallback exists for compatibility with existing
    configuration files and should not be relied upon.

    Examples
    --------
    >>> split_map_entry(" read = 5 ")
    ('read', '5')
    >>> split_map_entry("[ key = value ]")
    (' key', ' value ')
    >>> split_map_entry("novalue", "::")
    ('novalue', 'novalue')
    """

    if not separator:
        raise ValueError("separator must not be empty")
    index = entry.find(separator)
    if index < 0:
        key, value = entry, entry
    else:
        key, value = entry[:index], entry[index + len(separator) :]
    key = key.strip()
    if key.startswith("["):
        key = key[1:]
    if value.strip().endswith("]"):
        value = value.rstrip()[:-1]
    else:
        value = value.strip()
    return key, value
