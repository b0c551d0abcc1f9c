"""
Tests for auxctl configuration loading and persistence.

Tests verify:
- Defaults come from the Pydantic models
- Config round-trip (save -> load) preserves values
- Only non-default values are written
- `auxctl config set` validates keys and value types
- Environment variables override the config file
"""

from pathlib import Path

import pytest

from auxctl.config import (
    CONFIGURABLE_KEYS,
    _get_default_config,
    config_get,
    config_set,
    load_config,
    save_config,
)
from auxctl.core.exceptions import ConfigValidationError
from auxctl.core.settings import find_config_file, load_settings, user_config_path


class TestConfigLoading:
    """Tests for load_config and find_config_file."""

    def test_load_config_without_file_returns_defaults(self, tmp_path: Path) -> None:
        """Without a config file every value is the model default."""
        config = load_config(start_dir=str(tmp_path))

        assert config["docker"]["binary"] == "docker"
        assert config["document"]["path"] == "services.yaml"
        assert config["discovery"]["github_token"] is None
        assert "_config_file" not in config

    def test_load_config_merges_with_defaults(self, tmp_path: Path) -> None:
        """Values from the file replace defaults key by key."""
        config_dir = tmp_path / ".auxctl"
        config_dir.mkdir()
        (config_dir / "config.toml").write_text('[docker]\nbinary = "podman"\n')

        config = load_config(start_dir=str(tmp_path))

        assert config["docker"]["binary"] == "podman"
        assert config["docker"]["stop_timeout"] == 10
        assert config["_config_file"] == str(config_dir / "config.toml")

    def test_found_from_subdirectory(self, tmp_path: Path) -> None:
        """The config file is found from a nested directory."""
        config_dir = tmp_path / ".auxctl"
        config_dir.mkdir()
        (config_dir / "config.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert find_config_file(str(nested)) == config_dir / "config.toml"

    def test_pyproject_tool_table(self, tmp_path: Path) -> None:
        """A [tool.auxctl] table in pyproject.toml is used."""
        (tmp_path / "pyproject.toml").write_text(
            '[project]\nname = "x"\n\n[tool.auxctl.process]\nservices_root = "bin"\n'
        )

        config = load_config(start_dir=str(tmp_path))

        assert config["process"]["services_root"] == "bin"

    def test_pyproject_without_table_ignored(self, tmp_path: Path) -> None:
        """A pyproject.toml without a [tool.auxctl] table is not a config file."""
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n')
        assert find_config_file(str(tmp_path)) is None

    def test_invalid_toml_reports_error(self, tmp_path: Path) -> None:
        """A file that does not parse gives defaults and an error message."""
        config_dir = tmp_path / ".auxctl"
        config_dir.mkdir()
        (config_dir / "config.toml").write_text("[docker\nbinary = ")

        settings = load_settings(start_dir=str(tmp_path))

        assert settings.docker.binary == "docker"
        assert settings.config_error is not None

    def test_environment_overrides_file(self, tmp_path: Path, monkeypatch) -> None:
        """AUXCTL_* variables win over the file."""
        config_dir = tmp_path / ".auxctl"
        config_dir.mkdir()
        (config_dir / "config.toml").write_text('[docker]\nbinary = "podman"\n')
        monkeypatch.setenv("AUXCTL_DOCKER__BINARY", "nerdctl")

        assert config_get("docker.binary", start_dir=str(tmp_path)) == "nerdctl"

    def test_config_get_unknown_key(self, tmp_path: Path) -> None:
        """An unknown key reads as None."""
        assert config_get("docker.nope", start_dir=str(tmp_path)) is None


class TestDocumentPath:
    """Tests for resolving the service document location."""

    def test_relative_to_project_root(self, tmp_path: Path) -> None:
        """A relative document path is taken from the project root."""
        config_dir = tmp_path / ".auxctl"
        config_dir.mkdir()
        (config_dir / "config.toml").write_text('[document]\npath = "conf/services.yaml"\n')
        nested = tmp_path / "sub"
        nested.mkdir()

        settings = load_settings(start_dir=str(nested))

        assert settings.document_path() == tmp_path / "conf" / "services.yaml"

    def test_without_config_file(self, tmp_path: Path) -> None:
        """Without a config file the document path is relative to the base dir."""
        settings = load_settings(start_dir=str(tmp_path))
        assert settings.document_path(tmp_path) == tmp_path / "services.yaml"

    def test_absolute_path_kept(self, tmp_path: Path, monkeypatch) -> None:
        """An absolute document path is used as is."""
        target = tmp_path / "elsewhere" / "doc.yaml"
        monkeypatch.setenv("AUXCTL_DOCUMENT__PATH", str(target))

        assert load_settings(start_dir=str(tmp_path)).document_path() == target


class TestConfigSaveLoad:
    """Tests for save_config round-trips."""

    def test_save_and_reload_preserves_values(self, tmp_path: Path) -> None:
        """Saved values load back unchanged, quotes included."""
        config = _get_default_config()
        config["docker"]["binary"] = "podman"
        config["docker"]["stop_timeout"] = 30
        config["discovery"]["github_token"] = 'tok"en'
        config["logging"]["level"] = "debug"
        path = tmp_path / "config.toml"

        save_config(config, path)
        loaded = load_config(config_path=path)

        assert loaded["docker"]["binary"] == "podman"
        assert loaded["docker"]["stop_timeout"] == 30
        assert loaded["discovery"]["github_token"] == 'tok"en'
        assert loaded["logging"]["level"] == "debug"

    def test_save_only_writes_non_defaults(self, tmp_path: Path) -> None:
        """Only values that differ from the defaults are written."""
        config = _get_default_config()
        config["process"]["startup_grace"] = 2.5
        path = tmp_path / "config.toml"

        save_config(config, path)

        assert path.read_text().strip() == "[process]\nstartup_grace = 2.5"

    def test_save_defaults_writes_nothing(self, tmp_path: Path) -> None:
        """Saving the defaults writes an empty file."""
        path = tmp_path / "config.toml"
        save_config(_get_default_config(), path)
        assert path.read_text() == ""


class TestConfigSet:
    """Tests for config_set validation and persistence."""

    def test_writes_project_config(self, tmp_path: Path) -> None:
        """config set creates .auxctl/config.toml and returns the typed value."""
        path, value = config_set("docker.stop_timeout", "25", start_dir=str(tmp_path))

        assert path == tmp_path / ".auxctl" / "config.toml"
        assert value == 25
        assert config_get("docker.stop_timeout", start_dir=str(tmp_path)) == 25

    @pytest.mark.parametrize(("raw", "expected"), [("yes", True), ("OFF", False), ("1", True)])
    def test_boolean_values(self, tmp_path: Path, raw: str, expected: bool) -> None:
        """Common spellings of true and false are accepted."""
        _, value = config_set("logging.console", raw, start_dir=str(tmp_path))
        assert value is expected

    def test_invalid_boolean(self, tmp_path: Path) -> None:
        """A word that is not a boolean is rejected."""
        with pytest.raises(ConfigValidationError, match="valid boolean"):
            config_set("logging.console", "maybe", start_dir=str(tmp_path))

    def test_invalid_number(self, tmp_path: Path) -> None:
        """A non-numeric value for a number is rejected before writing."""
        with pytest.raises(ConfigValidationError, match="valid number"):
            config_set("docker.startup_delay", "soon", start_dir=str(tmp_path))
        assert not (tmp_path / ".auxctl" / "config.toml").exists()

    def test_invalid_log_level(self, tmp_path: Path) -> None:
        """An unknown log level lists the accepted ones."""
        with pytest.raises(ConfigValidationError, match="'debug'"):
            config_set("logging.level", "verbose", start_dir=str(tmp_path))

    def test_constraint_from_model(self, tmp_path: Path) -> None:
        """Field constraints of the config models apply."""
        with pytest.raises(ConfigValidationError, match="greater than or equal to 0"):
            config_set("docker.stop_timeout", "-1", start_dir=str(tmp_path))

    def test_unknown_key(self, tmp_path: Path) -> None:
        """An unknown key is rejected."""
        with pytest.raises(ConfigValidationError, match="Unknown config key"):
            config_set("docker.colour", "blue", start_dir=str(tmp_path))

    def test_environment_values_not_persisted(self, tmp_path: Path, monkeypatch) -> None:
        """Environment overrides are not copied into the file."""
        monkeypatch.setenv("AUXCTL_DOCKER__BINARY", "nerdctl")

        path, _ = config_set("docker.stop_timeout", "25", start_dir=str(tmp_path))

        assert "nerdctl" not in path.read_text()

    def test_existing_file_values_kept(self, tmp_path: Path) -> None:
        """Setting one key keeps the others already in the file."""
        config_dir = tmp_path / ".auxctl"
        config_dir.mkdir()
        (config_dir / "config.toml").write_text('[docker]\nbinary = "podman"\n')

        config_set("process.services_root", "bin", start_dir=str(tmp_path))

        config = load_config(start_dir=str(tmp_path))
        assert config["docker"]["binary"] == "podman"
        assert config["process"]["services_root"] == "bin"


class TestConfigurableKeys:
    """Tests that CONFIGURABLE_KEYS agrees with the models."""

    def test_all_configurable_keys_are_valid(self) -> None:
        """Every configurable key exists with the model default and a description."""
        defaults = _get_default_config()

        for key, info in CONFIGURABLE_KEYS.items():
            section, field = key.split(".")
            assert field in defaults[section], f"{key} is not a config field"
            assert defaults[section][field] == info["default"], f"{key} default mismatch"
            assert info["description"]


class TestUserConfig:
    """Tests for the per-user config file that holds secrets."""

    def test_user_file_location(self, tmp_path: Path) -> None:
        """The user file lives under ~/.config unless XDG_CONFIG_HOME says otherwise."""
        assert user_config_path() == tmp_path / "home" / ".config" / "auxctl" / "config.toml"

    def test_xdg_config_home(self, tmp_path: Path, monkeypatch) -> None:
        """XDG_CONFIG_HOME moves the user file."""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert user_config_path() == tmp_path / "xdg" / "auxctl" / "config.toml"

    def test_token_saved_outside_project(self, tmp_path: Path) -> None:
        """A user-level value is read back but no project file is created."""
        path, _ = config_set("discovery.github_token", "ghp_secret", start_dir=str(tmp_path), user=True)

        assert path == user_config_path()
        assert not (tmp_path / ".auxctl").exists()
        assert config_get("discovery.github_token", start_dir=str(tmp_path)) == "ghp_secret"

    def test_project_file_wins_over_user_file(self, tmp_path: Path) -> None:
        """Both files are merged per key, the project file taking precedence."""
        config_set("docker.binary", "podman", start_dir=str(tmp_path), user=True)
        config_set("docker.stop_timeout", "40", start_dir=str(tmp_path), user=True)
        config_set("docker.binary", "nerdctl", start_dir=str(tmp_path))

        settings = load_settings(start_dir=str(tmp_path))

        assert settings.docker.binary == "nerdctl"
        assert settings.docker.stop_timeout == 40

    def test_project_set_does_not_copy_user_values(self, tmp_path: Path) -> None:
        """Writing the project file leaves the user-level token out of it."""
        config_set("discovery.github_token", "ghp_secret", start_dir=str(tmp_path), user=True)

        path, _ = config_set("docker.binary", "podman", start_dir=str(tmp_path))

        assert "ghp_secret" not in path.read_text()

    def test_invalid_user_file_reported(self, tmp_path: Path) -> None:
        """A broken user file is reported like a broken project file."""
        path = user_config_path()
        path.parent.mkdir(parents=True)
        path.write_text("[docker\n")

        settings = load_settings(start_dir=str(tmp_path))

        assert settings.docker.binary == "docker"
        assert str(path) in settings.config_error
