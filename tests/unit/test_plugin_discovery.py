"""
Unit tests for backend and wallet plugin discovery.

Entry points are replaced with in-memory stand-ins, so nothing installed on
the host takes part.
"""

import importlib.metadata
from types import SimpleNamespace

import pytest

from auxctl.core.container import get_container
from auxctl.core.interfaces.wallet import IWalletProvider
from auxctl.core.registry import discover_plugins
from auxctl.plugins.backends.container import DockerBackend
from auxctl.plugins.backends.process import ProcessBackend
from auxctl.services.orchestration import ServiceOrchestrator


class StubWallet:
    """Wallet provider answering with fixed strings."""

    def get_descriptor(self, testnet: bool) -> str:
        return "wpkh(stub)"

    def get_address(self, testnet: bool, account: int, index: int) -> str:
        return f"stub-{account}-{index}"

    def get_wif(self, testnet: bool, account: int, index: int) -> str:
        return "stub-wif"

    def get_public_key(self, testnet: bool, account: int, index: int) -> str:
        return "stub-pub"


def _entry_point(name: str, target):
    def load():
        if isinstance(target, Exception):
            raise target
        return target

    return SimpleNamespace(name=name, load=load)


@pytest.fixture
def entry_points(monkeypatch):
    """Install a fixed set of entry points per group."""
    groups: dict[str, list] = {}
    monkeypatch.setattr(importlib.metadata, "entry_points", lambda group=None: groups.get(group, []))
    return groups


class TestBackendDiscovery:
    """Tests for registering the built-in backends."""

    def test_builtin_backends_registered(self, entry_points):
        """Both shipped backends are found under their execution modes."""
        discover_plugins()

        assert isinstance(get_container().find_backend("docker"), DockerBackend)
        assert isinstance(get_container().find_backend("native"), ProcessBackend)

    def test_backend_is_shared(self, entry_points):
        """Every lookup of a mode returns the same backend instance."""
        discover_plugins()

        assert get_container().find_backend("native") is get_container().find_backend("native")


class TestWalletDiscovery:
    """Tests for the wallet provider entry point group."""

    def test_no_wallet_by_default(self, entry_points):
        """Without a wallet plugin nothing is registered."""
        discover_plugins()
        assert get_container().try_resolve(IWalletProvider) is None

    def test_provider_class_registered(self, entry_points):
        """A provider class is built once and shared."""
        entry_points["auxctl.wallets"] = [_entry_point("stub", StubWallet)]

        discover_plugins()

        wallet = get_container().try_resolve(IWalletProvider)
        assert isinstance(wallet, StubWallet)
        assert get_container().try_resolve(IWalletProvider) is wallet

    def test_broken_entry_point_skipped(self, entry_points):
        """A wallet plugin that fails to import does not hide the next one."""
        entry_points["auxctl.wallets"] = [
            _entry_point("broken", ImportError("no module named hdwallet")),
            _entry_point("stub", StubWallet()),
        ]

        discover_plugins()

        assert isinstance(get_container().try_resolve(IWalletProvider), StubWallet)

    def test_non_provider_ignored(self, entry_points):
        """An entry point naming something that is not a wallet is ignored."""
        entry_points["auxctl.wallets"] = [_entry_point("odd", object())]

        discover_plugins()

        assert get_container().try_resolve(IWalletProvider) is None

    def test_existing_registration_kept(self, entry_points):
        """A wallet registered by the host application wins over plugins."""
        own = StubWallet()
        get_container().register_singleton(IWalletProvider, implementation=own)
        entry_points["auxctl.wallets"] = [_entry_point("stub", StubWallet)]

        discover_plugins()

        assert get_container().try_resolve(IWalletProvider) is own


class TestRegisteredWallet:
    """Tests for wallet macros in commands run through the orchestrator."""

    def test_macros_use_registered_wallet(self, registry):
        """The orchestrator's template engine finds the registered wallet."""
        get_container().register_singleton(IWalletProvider, implementation=StubWallet())
        orchestrator = ServiceOrchestrator(registry, backends={})

        resolved = orchestrator.template_engine.resolve("{{macro:Wallet.GetAddress(true, 0, 3)}}", {})

        assert resolved == "stub-0-3"
