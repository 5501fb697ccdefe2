"""End-to-end CLI coverage for the public commands exposed by lib_ordinal_config.

These tests exercise the documented CLI workflows (resolve, get, split,
metadata lookups) against temporary configuration files.
"""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

import lib_cli_exit_tools

from lib_ordinal_config import cli
from lib_ordinal_config.domain.errors import ConversionError, MissingRequiredKey


def _runner() -> CliRunner:
    """Return a fresh CLI runner so each test starts from a clean state."""

    return CliRunner()


def _write(tmp_path: Path, name: str, body: str) -> str:
    path = tmp_path / name
    path.write_text(body, encoding="utf-8")
    return str(path)


def test_cli_resolve_outputs_json(tmp_path: Path) -> None:
    """`resolve` should emit merged JSON respecting file order and explicit ordinals."""

    base = _write(tmp_path, "base.toml", '[service]\ntimeout = 15\nname = "base"\n')
    site = _write(tmp_path, "site.json", '{"service": {"timeout": 30}}')
    result = _runner().invoke(cli.cli, ["resolve", "--file", f"{site}:50", "--file", base, "--indent", "0"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload == {"service.timeout": "15", "service.name": "base"}


def test_cli_resolve_with_env_prefix_and_provenance(tmp_path: Path) -> None:
    """Environment variables override files and provenance names the winner."""

    base = _write(tmp_path, "base.toml", "[service]\ntimeout = 15\n")
    result = _runner().invoke(
        cli.cli,
        ["resolve", "--file", base, "--env-prefix", "CLI_TEST", "--provenance"],
        env={"CLI_TEST_SERVICE__TIMEOUT": "99"},
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["config"]["service.timeout"] == "99"
    assert payload["provenance"]["service.timeout"]["source"] == "env"


def test_cli_resolve_with_dotenv_and_filters(tmp_path: Path) -> None:
    dotenv = _write(tmp_path, ".env", "DB__PASSWORD=hunter2\nDB__USER=app\nINTERNAL__TOKEN=t\n")
    result = _runner().invoke(
        cli.cli,
        ["resolve", "--dotenv", dotenv, "--mask", r".*password", "--hide", r"internal\..*"],
    )
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"db.password": "*****", "db.user": "app"}


def test_cli_resolve_collect_policy(tmp_path: Path) -> None:
    base = _write(tmp_path, "base.json", '{"hosts": "a", "hosts.combination-policy": "collect"}')
    extra = _write(tmp_path, "extra.json", '{"hosts": "b"}')
    result = _runner().invoke(cli.cli, ["resolve", "--file", base, "--file", extra])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"hosts": "a,b"}


def test_cli_resolve_reports_invalid_files(tmp_path: Path) -> None:
    broken = _write(tmp_path, "broken.json", "{invalid")
    result = _runner().invoke(cli.cli, ["resolve", "--file", broken])
    assert result.exit_code != 0


def test_cli_get_converts_values(tmp_path: Path) -> None:
    base = _write(tmp_path, "base.toml", 'port = "0x1F90"\nhosts = ["a", "b"]\nlimits = "read=1,write=2"\n')
    runner = _runner()
    port = runner.invoke(cli.cli, ["get", "port", "--type", "int", "--file", base])
    assert port.exit_code == 0, port.output
    assert json.loads(port.output) == 8080
    hosts = runner.invoke(cli.cli, ["get", "hosts", "--type", "list", "--file", base])
    assert json.loads(hosts.output) == ["a", "b"]
    limits = runner.invoke(cli.cli, ["get", "limits", "--type", "dict", "--file", base])
    assert json.loads(limits.output) == {"read": "1", "write": "2"}
    raw = runner.invoke(cli.cli, ["get", "port", "--file", base])
    assert json.loads(raw.output) == "0x1F90"


def test_cli_get_missing_and_unconvertible(tmp_path: Path) -> None:
    base = _write(tmp_path, "base.toml", 'name = "demo"\n')
    runner = _runner()
    missing = runner.invoke(cli.cli, ["get", "absent", "--file", base])
    assert missing.exit_code != 0
    assert isinstance(missing.exception, MissingRequiredKey)
    wrong = runner.invoke(cli.cli, ["get", "name", "--type", "int", "--file", base])
    assert wrong.exit_code != 0
    assert isinstance(wrong.exception, ConversionError)


def test_cli_get_respects_hide(tmp_path: Path) -> None:
    base = _write(tmp_path, "base.toml", 'secret = "s"\n')
    result = _runner().invoke(cli.cli, ["get", "secret", "--file", base, "--hide", "secret"])
    assert isinstance(result.exception, MissingRequiredKey)


def test_cli_split_command() -> None:
    runner = _runner()
    assert json.loads(runner.invoke(cli.cli, ["split", "a\\,b,c"]).output) == ["a,b", "c"]
    assert json.loads(runner.invoke(cli.cli, ["split", "a|b", "--separator", "|"]).output) == ["a", "b"]
    pairs = runner.invoke(cli.cli, ["split", "read=5, write = 10", "--map-entry-separator", "="])
    assert json.loads(pairs.output) == {"read": "5", "write": "10"}


def test_cli_env_prefix_command() -> None:
    """`env-prefix` should echo the canonical uppercase prefix for a slug."""

    result = _runner().invoke(cli.cli, ["env-prefix", "config-kit"])
    assert result.exit_code == 0
    assert result.output.strip() == "CONFIG_KIT"


def test_cli_info_handles_missing_metadata(monkeypatch) -> None:
    """`info` must degrade gracefully when package metadata is unavailable."""

    def _raise_pkg_not_found(*_args, **_kwargs):
        raise cli.metadata.PackageNotFoundError()

    monkeypatch.setattr(cli.metadata, "metadata", _raise_pkg_not_found)
    result = _runner().invoke(cli.cli, ["info"])
    assert result.exit_code == 0
    assert "metadata unavailable" in result.output


def test_parse_files_reads_trailing_ordinal() -> None:
    assert cli._parse_files(["a.toml", "b.json:150", "c.yaml:-1", "C:/cfg.toml"]) == [
        "a.toml",
        ("b.json", 150),
        ("c.yaml", -1),
        "C:/cfg.toml",
    ]


def test_cli_main_restores_traceback_flag(tmp_path: Path) -> None:
    """`main` should restore lib_cli_exit_tools tracebacks after execution."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    base = _write(tmp_path, "base.toml", "value = 1\n")
    exit_code = cli.main(["--traceback", "resolve", "--file", base], restore_traceback=True)
    assert exit_code == 0
    assert getattr(lib_cli_exit_tools.config, "traceback", False) == previous_traceback


def test_cli_main_returns_non_zero_on_errors(tmp_path: Path) -> None:
    base = _write(tmp_path, "base.toml", "value = 1\n")
    assert cli.main(["get", "missing", "--file", base]) != 0
