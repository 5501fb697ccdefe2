"""Structured configuration file loaders.

Purpose
-------
Convert on-disk artifacts into Python mappings that the file property source
flattens into entries. Adapters are small wrappers around
``tomllib``/``json``/``yaml.safe_load`` so error handling and observability
live in one place.

Contents
--------
* :class:`BaseFileLoader` – shared helpers for reading files and validating
  mapping outputs.
* :class:`TOMLFileLoader` – loader for the canonical TOML format.
* :class:`JSONFileLoader` – minimal JSON loader.
* :class:`YAMLFileLoader` – optional YAML loader (only available when PyYAML is
  installed).
* :data:`FILE_LOADERS` / :func:`loader_for` – suffix based lookup.
"""

from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

from ...domain.errors import InvalidFormat, NotFound
from ...observability import log_debug, log_error

try:
    import yaml  # type: ignore[import-not-found]
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    yaml = None  # type: ignore[assignment]


class BaseFileLoader:
    """Common utilities shared by the structured file loaders."""

    def load(self, path: str) -> Mapping[str, object]:  # pragma: no cover - overridden by every loader
        raise NotImplementedError

    def _read(self, path: str) -> bytes:
        """Read *path* as bytes, raising :class:`NotFound` when the file is missing."""

        file_path = Path(path)
        if not file_path.is_file():
            raise NotFound(f"Configuration file not found: {path}")
        payload = file_path.read_bytes()
        log_debug("config_file_read", source=path, key=None, size=len(payload))
        return payload

    @staticmethod
    def _ensure_mapping(data: object, *, path: str) -> Mapping[str, object]:
        """Ensure *data* behaves like a mapping, otherwise raise ``InvalidFormat``.

        Examples
        --------
        >>> BaseFileLoader._ensure_mapping({"key": 1}, path="demo")
        {'key': 1}
        >>> BaseFileLoader._ensure_mapping(42, path="demo")
        Traceback (most recent call last):
        ...
        lib_ordinal_config.domain.errors.InvalidFormat: File demo did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise InvalidFormat(f"File {path} did not produce a mapping")
        return data  # type: ignore[return-value]


class TOMLFileLoader(BaseFileLoader):
    """Load TOML documents using the standard library parser."""

    def load(self, path: str) -> Mapping[str, object]:
        """Return mapping extracted from TOML file at *path*.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile('w', delete=False, encoding='utf-8')
        >>> _ = tmp.write('key = "value"')
        >>> tmp.close()
        >>> TOMLFileLoader().load(tmp.name)["key"]
        'value'
        >>> Path(tmp.name).unlink()
        """

        try:
            text = self._read(path).decode("utf-8")
            data = tomllib.loads(text)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            log_error("config_file_invalid", source=path, key=None, format="toml", error=str(exc))
            raise InvalidFormat(f"Invalid TOML in {path}: {exc}") from exc
        result = self._ensure_mapping(data, path=path)
        log_debug("config_file_loaded", source=path, key=None, format="toml")
        return result


class JSONFileLoader(BaseFileLoader):
    """Load JSON documents."""

    def load(self, path: str) -> Mapping[str, object]:
        try:
            data = json.loads(self._read(path))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            log_error("config_file_invalid", source=path, key=None, format="json", error=str(exc))
            raise InvalidFormat(f"Invalid JSON in {path}: {exc}") from exc
        result = self._ensure_mapping(data, path=path)
        log_debug("config_file_loaded", source=path, key=None, format="json")
        return result


class YAMLFileLoader(BaseFileLoader):
    """Load YAML documents when PyYAML is available."""

    def load(self, path: str) -> Mapping[str, object]:
        """Return mapping extracted from YAML file at *path*.

        Raises
        ------
        NotFound
            When PyYAML is not installed.
        """

        if yaml is None:
            raise NotFound("PyYAML is required for YAML configuration support")
        try:
            data = yaml.safe_load(self._read(path))
        except yaml.YAMLError as exc:
            log_error("config_file_invalid", source=path, key=None, format="yaml", error=str(exc))
            raise InvalidFormat(f"Invalid YAML in {path}: {exc}") from exc
        if data is None:
            data = {}
        result = self._ensure_mapping(data, path=path)
        log_debug("config_file_loaded", source=path, key=None, format="yaml")
        return result


# Supported structured file loaders keyed by suffix.
FILE_LOADERS: Mapping[str, BaseFileLoader] = MappingProxyType(
    {
        ".toml": TOMLFileLoader(),
        ".json": JSONFileLoader(),
        ".yaml": YAMLFileLoader(),
        ".yml": YAMLFileLoader(),
    }
)


def loader_for(path: str) -> BaseFileLoader:
    """Return the loader registered for *path*'s suffix.

    Raises
    ------
    InvalidFormat
        When the suffix is not supported.
    """

    loader = FILE_LOADERS.get(Path(path).suffix.lower())
    if loader is None:
        raise InvalidFormat(f"Unsupported configuration file type: {path}")
    return loader
