"""File-backed property source.

Parses a TOML, JSON or YAML document once (through
:mod:`lib_ordinal_config.adapters.file_loaders.structured`) and serves its
flattened entries. Parse failures surface as :class:`InvalidFormat`, missing
files as :class:`NotFound`; the composition root decides what to do with them.
"""

from __future__ import annotations

from typing import Final, Mapping

from ...domain.values import PropertyEntry
from ...observability import log_debug, make_event
from ..file_loaders.structured import loader_for
from .memory import MappingPropertySource

DEFAULT_FILE_ORDINAL: Final[int] = 100


class FilePropertySource:
    """Serve entries parsed from a structured configuration file.

    Examples
    --------
    >>> from pathlib import Path
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> path = Path(tmp.name) / "app.toml"
    >>> _ = path.write_text('[db]\\nurl = "h2"\\n', encoding="utf-8")
    >>> FilePropertySource(str(path)).get("db.url").value
    'h2'
    >>> tmp.cleanup()
    """

    def __init__(self, path: str, *, ordinal: int = DEFAULT_FILE_ORDINAL, name: str | None = None) -> None:
        data = loader_for(path).load(path)
        self._path = path
        self._delegate = MappingPropertySource(name or path, data, ordinal=ordinal)
        log_debug("source_created", **make_event(self._delegate.name, None, {"ordinal": ordinal, "path": path}))

    @property
    def path(self) -> str:
        return self._path

    @property
    def name(self) -> str:
        return self._delegate.name

    @property
    def ordinal(self) -> int:
        return self._delegate.ordinal

    @property
    def scannable(self) -> bool:
        return True

    def get(self, key: str) -> PropertyEntry | None:
        return self._delegate.get(key)

    def properties(self) -> Mapping[str, PropertyEntry]:
        return self._delegate.properties()
