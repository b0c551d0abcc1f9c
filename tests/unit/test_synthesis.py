"""
Unit tests for command synthesis and parameter validation.

Tests verify:
- Only parameters with an explicit value reach the command line
- Boolean flags appear once when true and never otherwise
- use_equals and string[] rendering
- Port, volume and environment maps use effective values
- Synthesis is deterministic and does not modify the definition
"""

import pytest

from auxctl.core.exceptions import InvalidArgumentError, ParameterValidationError
from auxctl.core.models.service import (
    EnvironmentVariable,
    PortMapping,
    ServiceDefinition,
    ServiceParameter,
    VolumeMapping,
)
from auxctl.services.synthesis import (
    build_environment,
    build_port_map,
    build_volume_map,
    parameter_tokens,
    read_only_paths,
    render_command,
    split_command_line,
    split_list_value,
    synthesize_command,
    validate_parameter_value,
)


def _service(**kwargs) -> ServiceDefinition:
    return ServiceDefinition(id="svc", name="Service", **kwargs)


class TestParameterTokens:
    """Tests for rendering a single parameter."""

    def test_unset_parameter_emits_nothing(self):
        """A default alone is never emitted."""
        parameter = ServiceParameter(name="rpcport", cli_flag="-rpcport", type="int", default=18332)
        assert parameter_tokens(parameter) == []

    def test_bool_true_emits_bare_flag(self):
        """A true bool is the bare flag, without a value."""
        parameter = ServiceParameter(name="txindex", cli_flag="-txindex", type="bool", value=True)
        assert parameter_tokens(parameter) == ["-txindex"]

    def test_bool_false_emits_nothing(self):
        """A false bool is omitted entirely."""
        parameter = ServiceParameter(name="txindex", cli_flag="-txindex", type="bool", value=False)
        assert parameter_tokens(parameter) == []

    def test_bool_string_value(self):
        """Boolean values stored as text are interpreted."""
        on = ServiceParameter(name="a", cli_flag="-a", type="bool", value="true")
        off = ServiceParameter(name="b", cli_flag="-b", type="bool", value="false")
        assert parameter_tokens(on) == ["-a"]
        assert parameter_tokens(off) == []

    def test_scalar_uses_equals_by_default(self):
        """Scalars are passed as flag=value by default."""
        parameter = ServiceParameter(name="rpcport", cli_flag="-rpcport", type="int", value=18443)
        assert parameter_tokens(parameter) == ["-rpcport=18443"]

    def test_scalar_without_equals(self):
        """With use_equals off the value is a separate token."""
        parameter = ServiceParameter(
            name="datadir", cli_flag="--datadir", type="string", value="/data", use_equals=False
        )
        assert parameter_tokens(parameter) == ["--datadir", "/data"]

    def test_list_repeats_flag(self):
        """Each element of a string[] gets its own flag."""
        parameter = ServiceParameter(
            name="connect", cli_flag="--connect", type="string[]", value=["a:1", "b:2"]
        )
        assert parameter_tokens(parameter) == ["--connect=a:1", "--connect=b:2"]

    def test_list_from_comma_string(self):
        """A comma-joined string is split into list elements."""
        parameter = ServiceParameter(
            name="connect", cli_flag="--connect", type="string[]", value="a:1, b:2", use_equals=False
        )
        assert parameter_tokens(parameter) == ["--connect", "a:1", "--connect", "b:2"]

    def test_hidden_parameter_emits_nothing(self):
        """Hidden parameters are never passed."""
        parameter = ServiceParameter(name="x", cli_flag="-x", type="int", value=1, hidden=True)
        assert parameter_tokens(parameter) == []

    def test_parameter_without_flag_emits_nothing(self):
        """A parameter without a flag is never passed."""
        parameter = ServiceParameter(name="x", type="int", value=1)
        assert parameter_tokens(parameter) == []


class TestSynthesizeCommand:
    """Tests for the full argument list."""

    def test_binary_command_then_parameters_in_order(self):
        """The binary comes first, then the legacy command, then parameters in order."""
        service = _service(
            container={"binary": "noded", "command": "--printtoconsole -conf='/etc/my node.conf'"},
            parameters=[
                {"name": "txindex", "cli_flag": "-txindex", "type": "bool", "value": True},
                {"name": "unset", "cli_flag": "-unset", "type": "int"},
                {"name": "rpcport", "cli_flag": "-rpcport", "type": "int", "value": 18443},
            ],
        )

        assert synthesize_command(service) == [
            "noded",
            "--printtoconsole",
            "-conf=/etc/my node.conf",
            "-txindex",
            "-rpcport=18443",
        ]

    def test_bool_flag_appears_exactly_once(self, registry):
        """A true bool flag appears once."""
        registry.set_parameter_value("node", "txindex", "true")
        tokens = synthesize_command(registry.get_service("node"))
        assert tokens.count("-txindex") == 1

    def test_bool_flag_absent_when_false_or_unset(self, registry):
        """A false or unset bool flag is absent."""
        service = registry.get_service("node")
        assert "-txindex" not in synthesize_command(service)

        registry.set_parameter_value("node", "txindex", "false")
        assert "-txindex" not in synthesize_command(registry.get_service("node"))

    def test_synthesis_is_deterministic_and_pure(self, registry):
        """Synthesis returns the same tokens and leaves the service unchanged."""
        service = registry.get_service("node")
        before = service.model_dump()

        first = synthesize_command(service)
        second = synthesize_command(service)

        assert first == second
        assert service.model_dump() == before

    def test_empty_definition(self):
        """A service with nothing to run gives no tokens."""
        assert synthesize_command(_service()) == []


class TestLaunchMaps:
    """Tests for port, volume and environment synthesis."""

    def test_port_map_uses_effective_host_port(self):
        """Port maps use the effective host port."""
        service = _service(
            ports=[
                PortMapping(name="rpc", container_port=18332),
                PortMapping(name="p2p", container_port=18333, host_port_default=28333),
                PortMapping(
                    name="api", container_port=80, host_port_default=8080, host_port_override=9090
                ),
                PortMapping(name="metrics", container_port=9100, optional=True),
            ]
        )

        assert build_port_map(service) == {18332: 18332, 28333: 18333, 9090: 80}

    def test_volume_map_skips_volumes_without_host_path(self):
        """Volumes without a host path are left out."""
        service = _service(
            volumes=[
                VolumeMapping(name="data", container_path="/data", host_path_default="./data"),
                VolumeMapping(
                    name="conf",
                    container_path="/conf",
                    host_path_default="./conf",
                    host_path_override="/srv/conf",
                    read_only=True,
                ),
                VolumeMapping(name="tmp", container_path="/tmp"),
            ]
        )

        assert build_volume_map(service) == {"./data": "/data", "/srv/conf": "/conf"}
        assert read_only_paths(service) == ["/srv/conf"]

    def test_environment_omits_empty_values(self):
        """Empty environment values are left out."""
        service = _service(
            environment=[
                EnvironmentVariable(name="A", value="1"),
                EnvironmentVariable(name="B", value="default", value_override="override"),
                EnvironmentVariable(name="C", value=""),
                EnvironmentVariable(name="D", value="set", value_override=""),
            ]
        )

        assert build_environment(service) == {"A": "1", "B": "override"}


class TestCommandLineSplitting:
    """Tests for quote-aware splitting and rendering."""

    def test_split_honours_quotes(self):
        """Quoted words stay together when splitting."""
        assert split_command_line("""cli send "two words" 'single quoted'""") == [
            "cli",
            "send",
            "two words",
            "single quoted",
        ]

    def test_unterminated_quote_raises(self):
        """An unterminated quote is rejected."""
        with pytest.raises(InvalidArgumentError):
            split_command_line('cli "unterminated')

    def test_render_quotes_tokens_with_spaces(self):
        """Tokens with spaces are quoted when rendered."""
        assert render_command(["noded", "-conf=/a b"]) == "noded '-conf=/a b'"


class TestValidateParameterValue:
    """Tests for coercing operator input into typed parameter values."""

    def test_int_within_bounds(self):
        """Integers inside the bounds are accepted."""
        parameter = ServiceParameter(
            name="rpcport", type="int", validation={"min": 1024, "max": 65535}
        )
        assert validate_parameter_value(parameter, "18443") == 18443

    @pytest.mark.parametrize("raw", ["80", "70000", "abc", "1.5"])
    def test_int_rejected(self, raw):
        """Integers outside the bounds or non-numeric text are rejected."""
        parameter = ServiceParameter(
            name="rpcport", type="int", validation={"min": 1024, "max": 65535}
        )
        with pytest.raises(ParameterValidationError):
            validate_parameter_value(parameter, raw)

    @pytest.mark.parametrize(("raw", "expected"), [("true", True), ("YES", True), ("0", False), ("off", False)])
    def test_bool_spellings(self, raw, expected):
        """Common spellings of true and false are accepted."""
        parameter = ServiceParameter(name="txindex", type="bool")
        assert validate_parameter_value(parameter, raw) is expected

    def test_bool_rejects_other_text(self):
        """Other words are not booleans."""
        parameter = ServiceParameter(name="txindex", type="bool")
        with pytest.raises(ParameterValidationError):
            validate_parameter_value(parameter, "maybe")

    def test_enum_enforced(self):
        """Only enum members are accepted."""
        parameter = ServiceParameter(name="chain", type="string", enum=["main", "test"])
        assert validate_parameter_value(parameter, "test") == "test"
        with pytest.raises(ParameterValidationError):
            validate_parameter_value(parameter, "regtest")

    def test_list_elements_checked_against_enum(self):
        """Each list element must be an enum member."""
        parameter = ServiceParameter(name="only", type="string[]", enum=["a", "b"])
        assert validate_parameter_value(parameter, "a,b") == ["a", "b"]
        with pytest.raises(ParameterValidationError):
            validate_parameter_value(parameter, "a,c")

    def test_split_list_value_drops_empty_items(self):
        """Empty list items are dropped."""
        assert split_list_value("a, ,b,") == ["a", "b"]
        assert split_list_value(None) == []
