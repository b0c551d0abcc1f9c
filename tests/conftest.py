"""
Shared pytest fixtures for auxctl tests.

This module provides:
- service_document: A YAML service document with one container service and
  one native service, written to a temporary directory
- registry: A ServiceRegistry loaded from that document
- fake_runner: A CommandRunner stand-in that records container CLI calls
- isolated settings: auxctl never reads the developer's config or writes
  its log file during tests
"""

from __future__ import annotations

from pathlib import Path

import pytest

from auxctl.core.bootstrap import reset as reset_application
from auxctl.plugins.backends.base import CommandOutput
from auxctl.services.registry import ServiceRegistry

SAMPLE_DOCUMENT = """\
version: 1.0
defaults:
  docker_network: auxnet
services:
  - id: node
    name: Test Node
    category: nodes
    execution_mode: docker
    container:
      repository: ghcr.io/example
      image: node
      default_tag: v1.2.3
      binary: noded
    ports:
      - name: rpc
        container_port: 18332
      - name: p2p
        container_port: 18333
        host_port_default: 28333
      - name: metrics
        container_port: 9100
        optional: true
    volumes:
      - name: data
        container_path: /data
        host_path_default: ./node-data
      - name: conf
        container_path: /etc/node/node.conf
        host_path_default: ./node.conf
        read_only: true
        is_file: true
    environment:
      - name: NETWORK
        value: testnet
      - name: RPC_PASSWORD
        value: hunter2
        sensitive: true
      - name: EMPTY
        value: ""
    parameters:
      - name: txindex
        cli_flag: -txindex
        type: bool
        default: false
      - name: rpcport
        cli_flag: -rpcport
        type: int
        default: 18332
        validation:
          min: 1024
          max: 65535
      - name: chain
        cli_flag: --chain
        type: string
        enum: [main, test, regtest]
      - name: connect
        cli_flag: --connect
        type: string[]
        use_equals: false
    menu:
      main_menu_order: 2
      submenu:
        - action: custom
          id: send
          label: Send coins
          command:
            binary: node-cli
            arguments:
              - sendtoaddress
              - "{{input:address}}"
              - "{{macro:Timestamp.Now}}"
            inputs:
              - name: address
                prompt: Destination address
                pattern: "^[a-z0-9]+$"
    x_maintainer: ops-team
  - id: miner
    name: Test Miner
    execution_mode: native
    container:
      binary: miner
    spawn_new_console: false
    menu:
      main_menu_order: 1
  - id: legacy
    name: Disabled Service
    enabled: false
"""


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep settings, logs and the DI container independent of the host."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("AUXCTL_LOGGING__FILE", "false")
    for name in ("AUXCTL_DOCUMENT__PATH", "AUXCTL_DISCOVERY__GITHUB_TOKEN", "XDG_CONFIG_HOME"):
        monkeypatch.delenv(name, raising=False)
    reset_application()
    yield
    reset_application()


@pytest.fixture
def service_document(tmp_path: Path) -> Path:
    """Write the sample service document and return its path."""
    path = tmp_path / "services.yaml"
    path.write_text(SAMPLE_DOCUMENT)
    return path


@pytest.fixture
def registry(service_document: Path) -> ServiceRegistry:
    """A registry loaded from the sample document."""
    registry = ServiceRegistry(service_document)
    registry.load()
    return registry


class FakeRunner:
    """
    Records container CLI invocations and answers from a script.

    Responses are matched on the CLI arguments after the binary: the first
    registered prefix that matches wins; anything else exits 0 silently.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self._responses: list[tuple[list[str], CommandOutput]] = []

    def respond(self, prefix: list[str], exit_code: int = 0, stdout: str = "", stderr: str = "") -> None:
        self._responses.append((prefix, CommandOutput(exit_code, stdout, stderr)))

    def commands(self, verb: str) -> list[list[str]]:
        """All recorded argument lists whose first CLI argument is verb."""
        return [call[1:] for call in self.calls if len(call) > 1 and call[1] == verb]

    async def __call__(self, args: list[str], **kwargs) -> CommandOutput:
        self.calls.append(list(args))
        cli_args = args[1:]
        for prefix, response in self._responses:
            if cli_args[: len(prefix)] == prefix:
                return response
        return CommandOutput(0, "", "")


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()
