"""
Built-in template macros.

A macro is a callable taking the comma-separated argument list of its
placeholder (already trimmed) and returning the replacement text.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from ...core.exceptions import TemplateResolutionError
from ...core.interfaces.wallet import IWalletProvider

Macro = Callable[[list[str]], str]
WalletSource = Callable[[], "IWalletProvider | None"]


def timestamp_now(args: list[str]) -> str:
    """Current unix time in whole seconds."""
    return str(int(time.time()))


def timestamp_now_string(args: list[str]) -> str:
    """The literal "now", accepted by node RPCs in place of a timestamp."""
    return "now"


def _flag(args: list[str], position: int) -> bool:
    return len(args) > position and args[position].strip().lower() == "true"


def _index(args: list[str], position: int) -> int:
    if len(args) <= position:
        return 0
    value = args[position].strip()
    return int(value) if value.isdigit() else 0


def wallet_macros(source: WalletSource) -> dict[str, Macro]:
    """
    Build the wallet macros bound to a wallet source.

    Arguments are ``(testnet, account, index)``; a missing or malformed
    argument means ``false`` / ``0``.
    """

    def wallet() -> IWalletProvider:
        provider = source()
        if provider is None:
            raise TemplateResolutionError("No wallet loaded")
        return provider

    def descriptor(args: list[str]) -> str:
        return wallet().get_descriptor(_flag(args, 0))

    def address(args: list[str]) -> str:
        return wallet().get_address(_flag(args, 0), _index(args, 1), _index(args, 2))

    def wif(args: list[str]) -> str:
        return wallet().get_wif(_flag(args, 0), _index(args, 1), _index(args, 2))

    def public_key(args: list[str]) -> str:
        return wallet().get_public_key(_flag(args, 0), _index(args, 1), _index(args, 2))

    return {
        "GetDescriptor": descriptor,
        "GetAddress": address,
        "GetWIF": wif,
        "GetPublicKey": public_key,
    }


def default_macros(source: WalletSource | None = None) -> dict[str, Macro]:
    """All built-in macros, keyed by their placeholder name."""
    macros: dict[str, Macro] = {
        "Timestamp.Now": timestamp_now,
        "Timestamp.NowString": timestamp_now_string,
    }
    for name, fn in wallet_macros(source or (lambda: None)).items():
        macros[f"Wallet.{name}"] = fn
        # Documents written for older releases use the HDWallet prefix.
        macros[f"HDWallet.{name}"] = fn
    return macros
