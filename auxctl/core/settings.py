"""
Application settings for auxctl.

Sources, highest priority first:

1. Keyword arguments to AuxctlSettings
2. Environment variables: AUXCTL_<SECTION>__<FIELD>, e.g. AUXCTL_DOCKER__BINARY
3. The project config file: .auxctl/config.toml, or the [tool.auxctl] table
   of a pyproject.toml, in the start directory or any parent
4. The user config file: $XDG_CONFIG_HOME/auxctl/config.toml (default
   ~/.config/auxctl/config.toml), which holds secrets such as the registry
   token so they stay out of project directories
5. Model defaults
"""

from __future__ import annotations

import os
from contextvars import ContextVar
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib

from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from .models.config import (
    DiscoveryConfig,
    DockerConfig,
    DocumentConfig,
    LoggingConfig,
    ProcessConfig,
)

CONFIG_DIR_NAME = ".auxctl"
CONFIG_FILE_NAME = "config.toml"


def _get_logger():
    from ..services.logging import NullLogger
    from .di import resolve_or_default
    from .interfaces.logger import ILogger

    return resolve_or_default(ILogger, NullLogger)


def _has_auxctl_table(pyproject: Path) -> bool:
    try:
        with open(pyproject, "rb") as f:
            return "auxctl" in tomllib.load(f).get("tool", {})
    except (tomllib.TOMLDecodeError, OSError) as e:
        _get_logger().debug("Ignoring unreadable %s: %s", pyproject, e)
        return False


def user_config_path() -> Path:
    """Per-user config file, outside any project."""
    base = os.environ.get("XDG_CONFIG_HOME")
    return (Path(base) if base else Path.home() / ".config") / "auxctl" / CONFIG_FILE_NAME


def find_config_file(start_dir: str | None = None) -> Path | None:
    """
    Nearest config file at or above start_dir (default: cwd).

    In each directory .auxctl/config.toml is preferred over a pyproject.toml
    with a [tool.auxctl] table.
    """
    start = Path(start_dir) if start_dir else Path.cwd()
    for directory in (start, *start.parents):
        candidate = directory / CONFIG_DIR_NAME / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate
        pyproject = directory / "pyproject.toml"
        if pyproject.exists() and _has_auxctl_table(pyproject):
            return pyproject
    return None


class TomlConfigSource(PydanticBaseSettingsSource):
    """
    Settings source reading one TOML config file.

    The file is located and parsed once, in the constructor. A file that
    cannot be parsed contributes nothing; the reason is kept in ``error``.
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        config_path: Path | None = None,
        start_dir: str | None = None,
    ) -> None:
        super().__init__(settings_cls)
        self.path: Path | None = None
        self.error: str | None = None
        self.data: dict[str, Any] = {}

        path = config_path or find_config_file(start_dir)
        if path is not None and path.exists():
            self._read(path)

    def _read(self, path: Path) -> None:
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (tomllib.TOMLDecodeError, OSError) as e:
            _get_logger().warning("Cannot use config file %s: %s", path, e)
            self.error = f"Cannot use config file {path}: {e}"
            return
        if path.name == "pyproject.toml":
            data = data.get("tool", {}).get("auxctl", {})
        self.path = path
        self.data = data

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self.data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return {section: dict(values) if isinstance(values, dict) else values for section, values in self.data.items()}


# Where load_settings wants the project source to look, and the project and
# user sources built from it. pydantic-settings gives
# settings_customise_sources no way to receive them.
_toml_location: ContextVar[tuple[Path | None, str | None]] = ContextVar("auxctl_toml_location", default=(None, None))
_toml_sources: ContextVar[tuple[TomlConfigSource, ...]] = ContextVar("auxctl_toml_sources", default=())


class AuxctlSettings(BaseSettings):
    """auxctl settings; see the module docstring for source priority."""

    model_config = {
        "env_prefix": "AUXCTL_",
        "env_nested_delimiter": "__",
        "extra": "ignore",
    }

    document: DocumentConfig = DocumentConfig()
    docker: DockerConfig = DockerConfig()
    process: ProcessConfig = ProcessConfig()
    discovery: DiscoveryConfig = DiscoveryConfig()
    logging: LoggingConfig = LoggingConfig()

    # Filled in by load_settings
    _config_file: str | None = None
    _config_error: str | None = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        config_path, start_dir = _toml_location.get()
        project = TomlConfigSource(settings_cls, config_path=config_path, start_dir=start_dir)
        user = TomlConfigSource(settings_cls, config_path=user_config_path())
        _toml_sources.set((project, user))
        return init_settings, env_settings, project, user

    @property
    def config_file(self) -> str | None:
        return self._config_file

    @property
    def config_error(self) -> str | None:
        return self._config_error

    def document_path(self, base_dir: Path | None = None) -> Path:
        """
        Location of the service document.

        A relative ``document.path`` is taken from the project root (the
        directory holding .auxctl/ or pyproject.toml), or from base_dir (default:
        cwd) when there is no config file.
        """
        path = Path(self.document.path).expanduser()
        if path.is_absolute():
            return path
        if self._config_file is None:
            return (base_dir or Path.cwd()) / path
        root = Path(self._config_file).parent
        if root.name == CONFIG_DIR_NAME:
            root = root.parent
        return root / path

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = self.model_dump(include={"document", "docker", "process", "discovery", "logging"})
        if self._config_file:
            result["_config_file"] = self._config_file
        if self._config_error:
            result["_config_error"] = self._config_error
        return result


def load_settings(config_path: Path | None = None, start_dir: str | None = None) -> AuxctlSettings:
    """
    Load settings from the config file and the environment.

    Args:
        config_path: Use this file instead of searching for one
        start_dir: Where the search for a config file starts (default: cwd)
    """
    location = _toml_location.set((config_path, start_dir))
    sources = _toml_sources.set(())
    try:
        settings = AuxctlSettings()
        built = _toml_sources.get()
    finally:
        _toml_location.reset(location)
        _toml_sources.reset(sources)

    if built:
        project = built[0]
        settings._config_file = str(project.path) if project.path else None
        settings._config_error = "; ".join(s.error for s in built if s.error) or None
    return settings


def get_settings() -> AuxctlSettings:
    """The bootstrapped settings, or freshly loaded ones before bootstrap."""
    from .di import try_resolve

    settings = try_resolve(AuxctlSettings)
    return settings if settings is not None else load_settings()
