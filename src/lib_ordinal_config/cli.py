"""CLI adapter for ``lib_ordinal_config`` built on ``lib_cli_exit_tools``.

Purpose
-------
Expose the resolution pipeline via a command line interface so operators can
inspect precedence outcomes, typed lookups and value tokenization without
writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_env_prefix` – helper exposing :func:`default_env_prefix`.
* :func:`cli_resolve` – resolves all sources and prints JSON.
* :func:`cli_get` – resolves one key and converts it to a type.
* :func:`cli_split` – shows how a value is tokenized.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. It invokes the composition root and
never reaches into adapter internals. ``lib_cli_exit_tools`` centralises the
exit code strategy so all commands behave consistently across shells and CI.
"""

from __future__ import annotations

import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Final, Optional, Sequence, TypeVar

import lib_cli_exit_tools
import rich_click as click

from .adapters.filters.default import HideFilter, MaskFilter
from .application.ports import PropertyFilter
from .application.tokenizer import DEFAULT_ITEM_SEPARATOR, DEFAULT_MAP_ENTRY_SEPARATOR, split, split_map_entry
from .core import FileSpec, build_context, default_env_prefix, read_config
from .domain.config import Config

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

TYPE_CHOICES: Final[dict[str, Any]] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "list": list[str],
    "set": set[str],
    "dict": dict[str, str],
}

F = TypeVar("F", bound=Callable[..., Any])


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` when not installed."""

    try:
        return metadata.version("lib_ordinal_config")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def _source_options(func: F) -> F:
    """Attach the source selection options shared by ``resolve`` and ``get``."""

    options = [
        click.option(
            "--file",
            "files",
            multiple=True,
            metavar="PATH[:ORDINAL]",
            help="TOML/JSON/YAML file to load, optionally with an explicit ordinal (repeatable)",
        ),
        click.option("--env-prefix", default=None, help="Read environment variables carrying this prefix"),
        click.option(
            "--dotenv",
            type=click.Path(path_type=Path, exists=True, file_okay=True, dir_okay=False, readable=True),
            default=None,
            help="Load a .env file",
        ),
        click.option("--hide", "hide", multiple=True, metavar="REGEX", help="Hide keys matching REGEX (repeatable)"),
        click.option("--mask", "mask", multiple=True, metavar="REGEX", help="Mask values of keys matching REGEX (repeatable)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group(
    help="Ordinal-based configuration resolver",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="lib_ordinal_config",
    message="lib_ordinal_config version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command storing the traceback preference for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata("lib_ordinal_config")
    except metadata.PackageNotFoundError:
        click.echo("lib_ordinal_config (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'lib_ordinal_config')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("env-prefix", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("slug")
def cli_env_prefix(slug: str) -> None:
    """Compute the canonical environment prefix for *slug*.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> result = CliRunner().invoke(cli, ["env-prefix", "config-kit"])
    >>> result.output.strip()
    'CONFIG_KIT'
    """

    click.echo(default_env_prefix(slug))


@cli.command("resolve", context_settings=CLICK_CONTEXT_SETTINGS)
@_source_options
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
@click.option(
    "--provenance/--no-provenance",
    default=False,
    help="Include the contributing source and meta-entries of every key",
)
def cli_resolve(
    files: Sequence[str],
    env_prefix: Optional[str],
    dotenv: Optional[Path],
    hide: Sequence[str],
    mask: Sequence[str],
    indent: Optional[int],
    provenance: bool,
) -> None:
    """Resolve every source and print the visible keys as JSON."""

    config = read_config(
        files=_parse_files(files),
        env_prefix=env_prefix,
        dotenv=str(dotenv) if dotenv is not None else None,
        filters=_build_filters(hide, mask),
    )
    if provenance:
        payload = {"config": config.as_dict(), "provenance": config.provenance()}
        click.echo(json.dumps(payload, indent=indent, separators=(",", ":")))
        return
    click.echo(config.to_json(indent=indent))


@cli.command("get", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
@click.option(
    "--type",
    "type_name",
    type=click.Choice(tuple(TYPE_CHOICES), case_sensitive=False),
    default="str",
    show_default=True,
    help="Target type for conversion",
)
@_source_options
def cli_get(
    key: str,
    type_name: str,
    files: Sequence[str],
    env_prefix: Optional[str],
    dotenv: Optional[Path],
    hide: Sequence[str],
    mask: Sequence[str],
) -> None:
    """Resolve *key*, convert it and print the result as JSON.

    Missing keys and unconvertible values exit non-zero.
    """

    context = build_context(
        files=_parse_files(files),
        env_prefix=env_prefix,
        dotenv=str(dotenv) if dotenv is not None else None,
        filters=_build_filters(hide, mask),
    )
    try:
        entry = context.get(key)
        config = Config({key: entry} if entry is not None else {}, context.converters)
        value = config.require(key, TYPE_CHOICES[type_name.lower()])
    finally:
        context.close()
    click.echo(json.dumps(_jsonable(value), separators=(",", ":")))


@cli.command("split", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("value")
@click.option("--separator", default=DEFAULT_ITEM_SEPARATOR, show_default=True, help="Item separator")
@click.option(
    "--map-entry-separator",
    default=None,
    help="Additionally split every token into a key/value pair on this separator",
)
def cli_split(value: str, separator: str, map_entry_separator: Optional[str]) -> None:
    """Print the tokens of *value* as a JSON array (or object with pairs).

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> CliRunner().invoke(cli, ["split", "a\\\\,b,c"]).output.strip()
    '["a,b","c"]'
    """

    tokens = split(value, separator)
    if map_entry_separator is None:
        click.echo(json.dumps(tokens, separators=(",", ":")))
        return
    pairs = dict(split_map_entry(token, map_entry_separator or DEFAULT_MAP_ENTRY_SEPARATOR) for token in tokens)
    click.echo(json.dumps(pairs, separators=(",", ":")))


def _parse_files(values: Sequence[str]) -> list[FileSpec]:
    """Turn ``PATH[:ORDINAL]`` option values into file specs.

    A trailing ``:<digits>`` is read as the ordinal; anything else stays part
    of the path (so Windows drive letters survive).

    Examples
    --------
    >>> _parse_files(["app.toml", "site.json:150", "C:/cfg.toml"])
    ['app.toml', ('site.json', 150), 'C:/cfg.toml']
    """

    parsed: list[FileSpec] = []
    for value in values:
        path, sep, ordinal = value.rpartition(":")
        if sep and path and ordinal.lstrip("-").isdigit():
            parsed.append((path, int(ordinal)))
        else:
            parsed.append(value)
    return parsed


def _build_filters(hide: Sequence[str], mask: Sequence[str]) -> list[PropertyFilter]:
    """Create hide filters first so masked keys that are also hidden stay hidden."""

    filters: list[PropertyFilter] = [HideFilter(pattern) for pattern in hide]
    filters.extend(MaskFilter(pattern) for pattern in mask)
    return filters


def _jsonable(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, tuple):
        return list(value)
    if hasattr(value, "items"):
        return dict(value.items())
    return value


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="lib_ordinal_config",
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
