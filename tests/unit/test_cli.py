"""
Unit tests for the auxctl CLI commands that work without a container runtime.

Commands run in-process through click's CliRunner against the sample
service document.
"""

from types import SimpleNamespace

import pytest
import yaml
from click.testing import CliRunner

from auxctl.cli import cli
from auxctl.cli.commands.lifecycle import _select
from auxctl.cli.context import AuxctlContext
from auxctl.core.settings import load_settings, user_config_path
from auxctl.services.registry import ServiceRegistry


@pytest.fixture
def invoke(service_document):
    runner = CliRunner()

    def _invoke(*args: str):
        return runner.invoke(cli, ["--document", str(service_document), *args])

    return _invoke


class TestHelp:
    """Tests for the top-level group."""

    def test_no_command_shows_help(self):
        """Running auxctl alone prints the help."""
        result = CliRunner().invoke(cli, [])
        assert result.exit_code == 0
        assert "auxctl start ID..." in result.output

    def test_version(self):
        """--version prints the program name."""
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "auxctl" in result.output


class TestListCommand:
    """Tests for `auxctl list`."""

    def test_lists_enabled_services(self, invoke):
        """list shows enabled services in menu order."""
        result = invoke("list")

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].split() == ["ID", "NAME", "MODE", "CATEGORY", "ENABLED"]
        assert lines[2].startswith("miner")
        assert lines[3].startswith("node")
        assert "legacy" not in result.output

    def test_all_includes_disabled(self, invoke):
        """list --all includes disabled services."""
        assert "legacy" in invoke("list", "--all").output

    def test_missing_document_warns(self, tmp_path):
        """A missing document is a warning and an empty list."""
        result = CliRunner().invoke(cli, ["--document", str(tmp_path / "absent.yaml"), "list"])

        assert result.exit_code == 0
        assert "Service document not found" in result.output
        assert "No services defined." in result.output


class TestStatusCommand:
    """Tests for `auxctl status` with an unusable container CLI."""

    @pytest.fixture(autouse=True)
    def no_docker(self, monkeypatch):
        monkeypatch.setenv("AUXCTL_DOCKER__BINARY", "auxctl-test-no-such-docker")

    def test_table(self, invoke):
        """status without an id shows every service, unknown when docker is missing."""
        result = invoke("status")

        assert result.exit_code == 0
        rows = {line.split()[0]: line for line in result.output.splitlines()[2:] if line.strip()}
        assert rows["miner"].endswith("not created")
        assert rows["node"].endswith("unknown")
        assert "28333:18333" in rows["node"]

    def test_native_details(self, invoke):
        """status of a native service shows its binary."""
        result = invoke("status", "miner")
        assert result.exit_code == 0
        assert "Binary: miner" in result.output
        assert "Status: not created" in result.output

    def test_container_details_mask_sensitive_values(self, invoke):
        """status of a container service masks secrets."""
        result = invoke("status", "node")

        assert result.exit_code == 0
        assert "Status: unknown" in result.output
        assert "Image: ghcr.io/example/node:v1.2.3" in result.output
        assert "Env RPC_PASSWORD: ********" in result.output
        assert "hunter2" not in result.output
        assert "Param rpcport: 18332 (default, not passed)" in result.output

    def test_unknown_service(self, invoke):
        """An unknown id fails with its name in the message."""
        result = invoke("status", "nope")
        assert result.exit_code != 0
        assert "nope" in result.output


class TestParamCommand:
    """Tests for `auxctl param`."""

    def test_set_then_show(self, invoke, service_document):
        """param set stores a value that param show reports."""
        result = invoke("param", "set", "node", "rpcport", "18443")
        assert result.exit_code == 0, result.output
        assert "Set node.rpcport = 18443" in result.output

        shown = invoke("param", "show", "node")
        assert "Command: noded -rpcport=18443" in shown.output
        assert "18332 (default, not passed)" not in shown.output

        stored = ServiceRegistry(service_document).get_service("node").get_parameter("rpcport")
        assert stored.value == 18443

    def test_invalid_value_rejected(self, invoke, service_document):
        """A value outside the parameter bounds is rejected."""
        result = invoke("param", "set", "node", "rpcport", "80")

        assert result.exit_code != 0
        assert ">= 1024" in result.output
        assert ServiceRegistry(service_document).get_service("node").get_parameter("rpcport").value is None

    def test_unset(self, invoke, service_document):
        """param unset removes the value again."""
        invoke("param", "set", "node", "txindex", "true")
        result = invoke("param", "unset", "node", "txindex")

        assert result.exit_code == 0
        assert ServiceRegistry(service_document).get_service("node").get_parameter("txindex").value is None

    def test_show_defaults(self, invoke):
        """param show marks defaults that are not passed."""
        result = invoke("param", "show", "node")

        assert result.exit_code == 0
        assert "18332 (default, not passed)" in result.output
        assert "Command: noded" in result.output


class TestOverrideCommands:
    """Tests for `auxctl override` and `auxctl mode`."""

    def test_port_override_and_reset(self, invoke, service_document):
        """A port override is written and removed again by --reset."""
        assert invoke("override", "port", "node", "rpc", "28332").exit_code == 0
        data = yaml.safe_load(service_document.read_text())
        rpc = data["services"][0]["ports"][0]
        assert rpc["host_port_override"] == 28332

        assert invoke("override", "port", "node", "rpc", "--reset").exit_code == 0
        data = yaml.safe_load(service_document.read_text())
        assert "host_port_override" not in data["services"][0]["ports"][0]

    def test_value_and_reset_conflict(self, invoke):
        """A value together with --reset is a usage error."""
        result = invoke("override", "port", "node", "rpc", "28332", "--reset")
        assert result.exit_code == 2

    def test_sensitive_env_masked(self, invoke):
        """Setting a secret environment value does not echo it."""
        result = invoke("override", "env", "node", "RPC_PASSWORD", "s3cret")

        assert result.exit_code == 0
        assert "s3cret" not in result.output
        assert "********" in result.output

    def test_mode_switch(self, invoke, service_document):
        """mode switches the execution mode of a service."""
        result = invoke("mode", "node", "process")

        assert result.exit_code == 0
        assert "native mode" in result.output
        assert ServiceRegistry(service_document).get_service("node").execution_mode == "native"
        assert invoke("mode", "node").output.strip() == "native"


class TestExecCommand:
    """Tests for `auxctl exec` without a running instance."""

    def test_lists_actions(self, invoke):
        """exec without an action lists the custom commands."""
        result = invoke("exec", "node")

        assert result.exit_code == 0
        assert "send" in result.output
        assert "Send coins" in result.output

    def test_no_actions(self, invoke):
        """exec on a service without custom commands says so."""
        result = invoke("exec", "miner")
        assert "defines no custom commands" in result.output

    def test_input_failing_pattern(self, invoke):
        """An input that fails its pattern is a usage error."""
        result = invoke("exec", "node", "send", "-i", "address=NOT VALID")
        assert result.exit_code == 2
        assert "must match" in result.output


class TestConfigCommand:
    """Tests for `auxctl config`."""

    def test_set_and_get(self, tmp_path):
        """config set writes a value config get reads back."""
        runner = CliRunner()

        result = runner.invoke(cli, ["config", "set", "docker.binary", "podman"])
        assert result.exit_code == 0, result.output
        assert (tmp_path / ".auxctl" / "config.toml").exists()

        result = runner.invoke(cli, ["config", "get", "docker.binary"])
        assert result.output.strip() == "docker.binary: podman"

    def test_token_masked(self):
        """The registry token is masked in config output."""
        runner = CliRunner()

        result = runner.invoke(cli, ["config", "set", "discovery.github_token", "ghp_secret"])
        assert "ghp_secret" not in result.output

        result = runner.invoke(cli, ["config", "get", "discovery.github_token"])
        assert "ghp_secret" not in result.output
        assert "********" in result.output

    def test_unknown_key(self):
        """config set of an unknown key fails."""
        result = CliRunner().invoke(cli, ["config", "set", "nope.key", "1"])
        assert result.exit_code == 1
        assert "Unknown config key" in result.output

    def test_list(self):
        """config list shows every configurable key."""
        result = CliRunner().invoke(cli, ["config", "list"])
        assert "process.services_root" in result.output


class TestServiceSelection:
    """Tests for choosing the services a lifecycle command acts on."""

    def test_duplicate_ids_collapsed(self, registry):
        """A service named twice is acted on once, in first-seen order."""
        ctx = SimpleNamespace(registry=registry)
        assert _select(ctx, ("node", "miner", "node"), False) == ["node", "miner"]


class TestTokenPrompt:
    """Tests for keeping a prompted registry token."""

    def test_token_saved_to_user_config(self, tmp_path):
        """The token goes to the per-user file, never the project directory."""
        ctx = AuxctlContext.create(cwd=tmp_path)

        ctx._save_token("ghp_secret")

        assert not (tmp_path / ".auxctl").exists()
        assert "ghp_secret" in user_config_path().read_text()
        assert load_settings(start_dir=str(tmp_path)).discovery.github_token == "ghp_secret"
