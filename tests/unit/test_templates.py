"""
Unit tests for the custom command template engine.
"""

import re

import pytest

from auxctl.core.exceptions import TemplateResolutionError
from auxctl.core.interfaces.wallet import IWalletProvider
from auxctl.core.models.service import CommandInput, CustomCommand
from auxctl.services.templates import CommandTemplateEngine, default_macros


class FakeWallet(IWalletProvider):
    """Deterministic wallet answers that echo their arguments."""

    def get_descriptor(self, testnet: bool) -> str:
        return f"wpkh(desc,testnet={testnet})"

    def get_address(self, testnet: bool, account: int, index: int) -> str:
        return f"addr-{testnet}-{account}-{index}"

    def get_wif(self, testnet: bool, account: int, index: int) -> str:
        return f"wif-{account}-{index}"

    def get_public_key(self, testnet: bool, account: int, index: int) -> str:
        return f"pub-{account}-{index}"


class TestResolve:
    """Tests for placeholder substitution."""

    def test_input_and_timestamp(self):
        """An input and a timestamp macro resolve in one template."""
        engine = CommandTemplateEngine()

        resolved = engine.resolve("{{input:addr}} {{macro:Timestamp.Now}}", {"addr": "X"})

        assert re.fullmatch(r"X \d+", resolved)

    def test_timestamp_with_empty_parentheses(self):
        """Empty parentheses are allowed on a macro without arguments."""
        assert CommandTemplateEngine().resolve("{{macro:Timestamp.Now()}}", {}).isdigit()

    def test_now_string(self):
        """Timestamp.NowString gives the literal now."""
        assert CommandTemplateEngine().resolve("{{macro:Timestamp.NowString}}", {}) == "now"

    def test_plain_text_unchanged(self):
        """Text without placeholders is returned as is."""
        assert CommandTemplateEngine().resolve("getblockcount", {}) == "getblockcount"

    def test_missing_input_raises(self):
        """A missing input names the input."""
        with pytest.raises(TemplateResolutionError, match="Missing input: addr"):
            CommandTemplateEngine().resolve("{{input:addr}}", {})

    def test_unknown_macro_raises(self):
        """An unknown macro is an error."""
        with pytest.raises(TemplateResolutionError, match="Unknown macro"):
            CommandTemplateEngine().resolve("{{macro:Nope.Never}}", {})

    def test_inputs_are_not_reinterpreted_as_inputs(self):
        """An input placeholder inside an input value stays literal text."""
        resolved = CommandTemplateEngine().resolve("{{input:a}}", {"a": "{{input:b}}"})
        assert resolved == "{{input:b}}"

    def test_input_values_do_not_run_macros(self):
        """A macro placeholder typed into an input stays literal text."""
        engine = CommandTemplateEngine(lambda: FakeWallet())

        resolved = engine.resolve("echo {{input:label}}", {"label": "{{macro:Wallet.GetWIF(false,0,0)}}"})

        assert resolved == "echo {{macro:Wallet.GetWIF(false,0,0)}}"

    def test_missing_input_checked_before_macros_run(self):
        """No macro is called when any input of the template is missing."""
        calls = []
        engine = CommandTemplateEngine()
        engine.register_macro("Count", lambda args: calls.append(args) or "n")

        with pytest.raises(TemplateResolutionError, match="Missing input: b"):
            engine.resolve("{{macro:Count}} {{input:b}}", {})
        assert calls == []

    def test_custom_macro(self):
        """A registered macro receives its trimmed arguments."""
        engine = CommandTemplateEngine()
        engine.register_macro("Echo.Args", lambda args: "|".join(args))

        assert engine.resolve("{{macro:Echo.Args(a, b ,c)}}", {}) == "a|b|c"
        assert "Echo.Args" in engine.macros

    def test_failing_macro_wrapped(self):
        """A macro that raises becomes a resolution error."""
        engine = CommandTemplateEngine()

        def broken(args):
            raise RuntimeError("kaput")

        engine.register_macro("Broken", broken)
        with pytest.raises(TemplateResolutionError, match="kaput"):
            engine.resolve("{{macro:Broken}}", {})


class TestWalletMacros:
    """Tests for the wallet-backed macros."""

    def test_no_wallet_loaded(self):
        """Wallet macros fail when no wallet is loaded."""
        with pytest.raises(TemplateResolutionError, match="No wallet loaded"):
            CommandTemplateEngine().resolve("{{macro:Wallet.GetAddress(true, 0, 1)}}", {})

    def test_address_arguments(self):
        """Address arguments are parsed, with defaults when omitted."""
        wallet = FakeWallet()
        engine = CommandTemplateEngine(lambda: wallet)

        assert engine.resolve("{{macro:Wallet.GetAddress(true, 2, 7)}}", {}) == "addr-True-2-7"
        assert engine.resolve("{{macro:Wallet.GetAddress()}}", {}) == "addr-False-0-0"
        assert engine.resolve("{{macro:Wallet.GetAddress(TRUE, x)}}", {}) == "addr-True-0-0"

    def test_descriptor_and_legacy_prefix(self):
        """Descriptor works under both the Wallet and HDWallet prefixes."""
        wallet = FakeWallet()
        engine = CommandTemplateEngine(lambda: wallet)

        assert engine.resolve("{{macro:HDWallet.GetDescriptor(false)}}", {}) == "wpkh(desc,testnet=False)"
        assert engine.resolve("{{macro:Wallet.GetWIF(false, 1, 3)}}", {}) == "wif-1-3"
        assert engine.resolve("{{macro:Wallet.GetPublicKey(false, 1, 3)}}", {}) == "pub-1-3"

    def test_default_macro_names(self):
        """The default macros include timestamps and both wallet prefixes."""
        names = set(default_macros())
        assert {"Timestamp.Now", "Timestamp.NowString", "Wallet.GetAddress", "HDWallet.GetAddress"} <= names


class TestProcessCommand:
    """Tests for resolving a whole custom command."""

    def test_binary_and_arguments_joined(self):
        """The binary and resolved arguments are joined with spaces."""
        command = CustomCommand(
            binary="node-cli",
            arguments=["sendtoaddress", "{{input:address}}", "{{input:amount}}"],
        )

        line = CommandTemplateEngine().process_command(command, {"address": "tb1abc", "amount": "0.5"})

        assert line == "node-cli sendtoaddress tb1abc 0.5"

    def test_non_string_arguments_from_yaml(self):
        """Numbers in the arguments list are turned into text."""
        command = CustomCommand(binary="node-cli", arguments=["generate", 10])
        assert CommandTemplateEngine().process_command(command, {}) == "node-cli generate 10"

    def test_failure_resolves_nothing(self):
        """A failure in any argument fails the whole command."""
        command = CustomCommand(binary="node-cli", arguments=["{{input:a}}", "{{input:b}}"])
        with pytest.raises(TemplateResolutionError):
            CommandTemplateEngine().process_command(command, {"a": "1"})


class TestValidateInput:
    """Tests for input pattern validation."""

    def test_pattern(self):
        """Values are checked against the input pattern."""
        engine = CommandTemplateEngine()
        command_input = CommandInput(name="address", pattern="^tb1[a-z0-9]+$")

        assert engine.validate_input(command_input, "tb1qxyz")
        assert not engine.validate_input(command_input, "bc1qxyz")

    def test_no_pattern_or_empty_value_passes(self):
        """No pattern or an empty value always passes."""
        engine = CommandTemplateEngine()

        assert engine.validate_input(CommandInput(name="a"), "anything")
        assert engine.validate_input(CommandInput(name="a", pattern="^x$"), "")
