"""Tests for the top-level CLI and registry commands."""

from __future__ import annotations

import json
from typing import Any

from typer import Typer
from typer.testing import CliRunner

from cmctl import __version__
from cmctl.cli.app import app, main
from cmctl.config import ConfigStore
from cmctl.registry import ConnectionProfile, RegistryStore, ServerEntry

runner = CliRunner()

CREATE_ARGS = [
    "create",
    "--name",
    "prod",
    "--host",
    "cm.example.com",
    "--port",
    "7180",
    "--protocol",
    "http",
    "--username",
    "admin",
    "--password",
    "secret",
    "--cluster",
    "c1",
]


def test_app_is_typer_instance() -> None:
    """Ensure the CLI exposes a Typer application."""
    assert isinstance(app, Typer)


def test_version_option_outputs_package_version() -> None:
    """The CLI should emit the package version when requested."""
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == __version__


def test_main_handles_version_flag(capsys: Any) -> None:
    """Entry point should surface version output when flags are provided."""
    assert main(["-V"]) == 0
    assert capsys.readouterr().out.strip() == __version__


def test_no_command_shows_help() -> None:
    """Invoking the CLI bare should print help rather than fail."""

    result = runner.invoke(app, [])

    assert result.exit_code == 0
    assert "Usage" in result.stdout


def test_profiles_command_shows_help_when_missing_subcommand() -> None:
    """Invoking the profiles group without a subcommand should display help."""

    result = runner.invoke(app, ["profiles"])

    assert result.exit_code == 0
    assert "profiles [OPTIONS] COMMAND" in result.stdout
    assert "Missing command" not in result.stdout


def test_init_creates_registry() -> None:
    """The init command should create the registry file."""

    result = runner.invoke(app, ["init"])

    assert result.exit_code == 0
    assert "CM registry DB has been initialized." in result.stdout
    assert RegistryStore().is_initialized()


def test_create_registers_active_server() -> None:
    """Creating an entry stores it and makes it active."""

    result = runner.invoke(app, CREATE_ARGS)

    assert result.exit_code == 0, result.output
    assert "New CM server entry has been created: prod" in result.stdout
    entry = RegistryStore().get_active()
    assert (entry.name, entry.hostname, entry.password, entry.cluster) == (
        "prod",
        "cm.example.com",
        "secret",
        "c1",
    )


def test_create_prompts_for_missing_values() -> None:
    """Missing options are asked for interactively with defaults."""

    result = runner.invoke(
        app,
        ["create", "--name", "lab"],
        input="cm-lab\n\n\n\nsecret\n\n",
    )

    assert result.exit_code == 0, result.output
    entry = RegistryStore().get_server("lab")
    assert entry.hostname == "cm-lab"
    assert entry.port == 7180
    assert entry.protocol == "http"
    assert entry.username == "admin"
    assert entry.cluster == ""


def test_create_rejects_duplicate_and_bad_protocol() -> None:
    """Duplicate names and unknown protocols are refused."""

    runner.invoke(app, CREATE_ARGS)

    duplicate = runner.invoke(app, CREATE_ARGS)
    assert duplicate.exit_code == 1
    assert "already exists" in duplicate.output

    args = list(CREATE_ARGS)
    args[2] = "other"
    args[args.index("http")] = "ftp"
    bad_protocol = runner.invoke(app, args)
    assert bad_protocol.exit_code == 2
    assert "Use 'http' or 'https'" in bad_protocol.output


def test_list_and_show_mask_passwords() -> None:
    """Tables list entries without revealing passwords."""

    runner.invoke(app, CREATE_ARGS)

    listed = runner.invoke(app, ["ls"])
    shown = runner.invoke(app, ["show"])

    for result in (listed, shown):
        assert result.exit_code == 0
        assert "prod" in result.stdout
        assert "cm.example.com" in result.stdout
        assert "secret" not in result.stdout
        assert "********" in result.stdout


def test_list_without_entries() -> None:
    """Empty tables print a placeholder."""

    result = runner.invoke(app, ["list"])

    assert result.exit_code == 0
    assert "CM SERVERS:" in result.stdout
    assert "NO ENTRIES FOUND!" in result.stdout


def test_use_and_delete_commands() -> None:
    """Entries can be selected and removed by name."""

    store = RegistryStore()
    store.register(ServerEntry(name="prod", hostname="cm1"))
    store.register(ServerEntry(name="dev", hostname="cm2"))

    used = runner.invoke(app, ["use", "prod"])
    assert used.exit_code == 0
    assert store.get_active().name == "prod"

    deleted = runner.invoke(app, ["delete", "dev"])
    assert deleted.exit_code == 0
    assert [entry.name for entry in store.list_servers()] == ["prod"]

    missing = runner.invoke(app, ["use", "dev"])
    assert missing.exit_code == 1
    assert "does not exist" in missing.output


def test_main_returns_error_code_for_missing_entry() -> None:
    """The entry point should propagate command exit codes."""

    assert main(["delete", "ghost"]) == 1


def test_clear_drops_servers() -> None:
    """Clear removes every server entry."""

    RegistryStore().register(ServerEntry(name="prod", hostname="cm1"))

    result = runner.invoke(app, ["clear"])

    assert result.exit_code == 0
    assert RegistryStore().list_servers() == []


def test_profiles_create_list_delete(tmp_path: Any) -> None:
    """Profile commands manage connection profile records."""

    key = tmp_path / "id_rsa"
    key.write_text("key", encoding="utf-8")

    created = runner.invoke(
        app,
        [
            "profiles",
            "create",
            "--name",
            "ops",
            "--key-path",
            str(key),
            "--port",
            "2222",
            "--username",
            "ops",
        ],
    )
    assert created.exit_code == 0, created.output
    assert RegistryStore().get_profile("ops") == ConnectionProfile(
        name="ops", key_path=str(key), port=2222, username="ops"
    )

    listed = runner.invoke(app, ["profiles", "list"])
    assert "ops" in listed.stdout
    assert "2222" in listed.stdout

    deleted = runner.invoke(app, ["profiles", "delete", "ops"])
    assert deleted.exit_code == 0
    assert RegistryStore().list_profiles() == []


def test_profiles_create_rejects_missing_key(tmp_path: Any) -> None:
    """A key path that does not exist is refused."""

    result = runner.invoke(
        app,
        ["profiles", "create", "--name", "ops", "--key-path", str(tmp_path / "nope")],
    )

    assert result.exit_code == 1
    assert "SSH key does not exist" in result.output


def test_attach_uses_active_server_by_default() -> None:
    """Attach without a server name targets the active entry."""

    store = RegistryStore()
    store.register(ServerEntry(name="prod", hostname="cm1"))
    store.add_profile(ConnectionProfile(name="ops"))

    result = runner.invoke(app, ["attach", "ops"])

    assert result.exit_code == 0
    assert "Attach profile 'ops' to 'prod'" in result.stdout
    assert store.get_server("prod").connection_profile == "ops"


def test_attach_without_active_server_fails() -> None:
    """Attach reports a missing active entry."""

    result = runner.invoke(app, ["attach", "ops"])

    assert result.exit_code == 1
    assert "No active CM server selected" in result.output


def test_config_set_and_show() -> None:
    """Config commands persist and display settings."""

    updated = runner.invoke(app, ["config", "set", "api_version", "v41"])
    assert updated.exit_code == 0
    assert ConfigStore().load().api_version == "v41"

    shown = runner.invoke(app, ["config", "show"])
    assert json.loads(shown.stdout)["api_version"] == "v41"

    reset = runner.invoke(app, ["config", "reset"])
    assert reset.exit_code == 0
    assert ConfigStore().load().api_version == "v19"


def test_config_set_rejects_unknown_key() -> None:
    """Unknown settings exit with a usage error code."""

    result = runner.invoke(app, ["config", "set", "colour", "blue"])

    assert result.exit_code == 2
    assert "Unknown configuration key" in result.output
