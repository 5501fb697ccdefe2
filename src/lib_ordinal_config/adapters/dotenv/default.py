"""`.env` adapter.

Purpose
-------
Parse a `.env` file into a property source. Keys follow the same nesting rule
as the environment adapter (``DB__URL`` → ``db.url``) so a value can move from
`.env` to the real environment without renaming.

Contents
--------
* :class:`DotEnvPropertySource` – source backed by one parsed file.
* :func:`find_dotenv` – upward search for the first `.env` file.
* Helper functions (`_parse_dotenv`, `_strip_quotes`) that perform parsing.
"""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Final, Iterable, Mapping

from ...domain.errors import InvalidFormat, NotFound
from ...domain.values import PropertyEntry
from ...observability import log_debug, log_error
from ..env.default import env_key

DEFAULT_DOTENV_ORDINAL: Final[int] = 250


class DotEnvPropertySource:
    """Serve entries parsed from a dotenv file.

    Raises
    ------
    NotFound
        When *path* does not exist.
    InvalidFormat
        When a non-comment line lacks ``=``.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> path = Path(tmp.name) / '.env'
    >>> _ = path.write_text('SERVICE__TOKEN="secret"', encoding='utf-8')
    >>> DotEnvPropertySource(str(path)).get('service.token').value
    'secret'
    >>> tmp.cleanup()
    """

    def __init__(self, path: str, *, ordinal: int = DEFAULT_DOTENV_ORDINAL) -> None:
        file_path = Path(path)
        if not file_path.is_file():
            raise NotFound(f"Dotenv file not found: {path}")
        self._path = str(file_path)
        self._ordinal = ordinal
        parsed = _parse_dotenv(file_path)
        self._entries: Mapping[str, PropertyEntry] = MappingProxyType(
            {key: PropertyEntry(key=key, value=value, source=self._path) for key, value in parsed.items()}
        )
        log_debug("dotenv_loaded", source=self._path, key=None, keys=sorted(self._entries))

    @property
    def name(self) -> str:
        return self._path

    @property
    def ordinal(self) -> int:
        return self._ordinal

    @property
    def scannable(self) -> bool:
        return True

    def get(self, key: str) -> PropertyEntry | None:
        return self._entries.get(key)

    def properties(self) -> Mapping[str, PropertyEntry]:
        return self._entries


def find_dotenv(start_dir: str | None = None) -> str | None:
    """Return the first `.env` file walking from *start_dir* to the filesystem root."""

    for candidate in _iter_candidates(start_dir):
        if candidate.is_file():
            return str(candidate)
    log_debug("dotenv_not_found", source="dotenv", key=None, start_dir=start_dir)
    return None


def _iter_candidates(start_dir: str | None) -> Iterable[Path]:
    """Yield candidate dotenv paths walking from ``start_dir`` to filesystem root.

    Examples
    --------
    >>> next(_iter_candidates('.')).name
    '.env'
    """

    base = Path(start_dir) if start_dir else Path.cwd()
    for directory in [base, *base.parents]:
        yield directory / ".env"


def _parse_dotenv(path: Path) -> dict[str, str]:
    """Parse ``path`` into dotted keys, raising ``InvalidFormat`` on malformed lines."""

    result: dict[str, str] = {}
    with path.open("r", encoding="utf-8") as handle:
        for line_number, raw_line in enumerate(handle, start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[len("export ") :].lstrip()
            if "=" not in line:
                log_error("dotenv_invalid_line", source=str(path), key=None, line=line_number)
                raise InvalidFormat(f"Malformed line {line_number} in {path}")
            key, value = line.split("=", 1)
            key = key.strip()
            if not key:
                log_error("dotenv_invalid_line", source=str(path), key=None, line=line_number)
                raise InvalidFormat(f"Missing key on line {line_number} in {path}")
            result[env_key(key)] = _strip_quotes(value.strip())
    return result


def _strip_quotes(value: str) -> str:
    """Trim surrounding quotes and inline comments from ``value``.

    Examples
    --------
    >>> _strip_quotes('"token"')
    'token'
    >>> _strip_quotes("value # comment")
    'value'
    """

    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    if value.startswith("#"):
        return ""
    if " #" in value:
        return value.split(" #", 1)[0].strip()
    return value
