"""
Wallet capability consumed by command template macros.

Key derivation and address encoding are provided by the host application;
auxctl only calls through this protocol.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class IWalletProvider(Protocol):
    """Read-only access to the currently loaded wallet."""

    def get_descriptor(self, testnet: bool) -> str:
        """Return the wallet's output descriptor."""
        ...

    def get_address(self, testnet: bool, account: int, index: int) -> str:
        """Return the receive address at account/index."""
        ...

    def get_wif(self, testnet: bool, account: int, index: int) -> str:
        """Return the private key at account/index in WIF encoding."""
        ...

    def get_public_key(self, testnet: bool, account: int, index: int) -> str:
        """Return the hex-encoded public key at account/index."""
        ...
