"""Reading and writing auxctl's own configuration file."""

from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .core.exceptions import ConfigValidationError
from .core.models.config import AuxctlConfig
from .core.settings import (
    CONFIG_DIR_NAME,
    CONFIG_FILE_NAME,
    AuxctlSettings,
    TomlConfigSource,
    find_config_file,
    load_settings,
    user_config_path,
)

# Keys `auxctl config set` accepts. The remaining fields (regex and request
# timeouts, user agent) can still be set in the file or the environment.
_DESCRIPTIONS = {
    "document.path": "Path of the YAML service document (relative to the project root)",
    "docker.binary": "Container CLI executable",
    "docker.startup_delay": "Seconds to wait after `run` before checking the container is running",
    "docker.shutdown_delay": "Seconds to wait after `stop` before returning",
    "docker.stop_timeout": "Grace period passed to `docker stop --time`",
    "process.services_root": "Directory holding one sub-directory per native service",
    "process.startup_grace": "Seconds a native process must survive to count as started",
    "process.terminate_timeout": "Seconds to wait after a graceful stop request",
    "process.kill_timeout": "Seconds to wait after killing the process tree",
    "discovery.api_url": "Base URL of the release/package registry API",
    "discovery.cache_ttl": "Seconds a discovery result stays cached",
    "discovery.github_token": "Access token for private container packages",
    "logging.level": "Log level (debug, info, warning, error)",
    "logging.console": "Output diagnostic logs to stderr",
    "logging.file": "Output diagnostic logs to ~/.auxctl/auxctl.log",
}


def _section_model(section: str):
    return AuxctlConfig.model_fields[section].annotation


def _build_keys() -> dict[str, dict[str, Any]]:
    defaults = AuxctlConfig()
    keys = {}
    for key, description in _DESCRIPTIONS.items():
        section, name = key.split(".")
        keys[key] = {
            "type": _section_model(section).model_fields[name].annotation,
            "default": getattr(getattr(defaults, section), name),
            "description": description,
        }
    return keys


CONFIGURABLE_KEYS: dict[str, dict[str, Any]] = _build_keys()


def _get_default_config() -> dict:
    return AuxctlConfig().to_dict()


def load_config(config_path: Path | None = None, start_dir: str | None = None) -> dict:
    """
    Effective configuration as a nested dict: defaults, then the config
    file, then AUXCTL_* environment variables.

    ``_config_file`` is set when a file was found.
    """
    return load_settings(config_path=config_path, start_dir=start_dir).to_dict()


def get_config_path_for_write(start_dir: str | None = None) -> Path:
    """
    The .auxctl/config.toml that `config set` writes to.

    An existing one found by walking up from start_dir wins; otherwise one
    is created in start_dir (or cwd). A pyproject.toml is never rewritten.
    """
    existing = find_config_file(start_dir)
    if existing is not None and existing.name == CONFIG_FILE_NAME:
        return existing

    config_dir = (Path(start_dir) if start_dir else Path.cwd()) / CONFIG_DIR_NAME
    config_dir.mkdir(exist_ok=True)
    return config_dir / CONFIG_FILE_NAME


def _toml_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
    if isinstance(value, list):
        return "[" + ", ".join(_toml_literal(v) for v in value) + "]"
    return str(value)


def save_config(config: dict, config_path: Path) -> None:
    """Write one TOML table per section, keeping only values that differ from the defaults."""
    out: list[str] = []
    for section, defaults in _get_default_config().items():
        values = config.get(section)
        if not isinstance(values, dict):
            continue
        changed = [(k, v) for k, v in values.items() if v is not None and v != defaults.get(k)]
        if not changed:
            continue
        out.append(f"[{section}]")
        out.extend(f"{k} = {_toml_literal(v)}" for k, v in changed)
        out.append("")

    config_path.write_text("\n".join(out))


def parse_value(key: str, raw: str) -> Any:
    """
    Convert a command-line string to the type of a config field.

    Conversion and constraints are those of the config models, so a value
    accepted here also loads back.

    Raises:
        ConfigValidationError: unknown key, or a value the field rejects
    """
    if key not in CONFIGURABLE_KEYS:
        raise ConfigValidationError(
            f"Unknown config key: {key}. Valid keys: {', '.join(CONFIGURABLE_KEYS)}",
            key=key,
        )

    section, name = key.split(".")
    try:
        validated = _section_model(section)(**{name: raw})
    except ValidationError as e:
        reason = e.errors()[0]["msg"]
        raise ConfigValidationError(f"Invalid value for {key}: {reason}", key=key, value=raw, cause=e) from e
    return getattr(validated, name)


def config_get(key: str, start_dir: str | None = None) -> Any:
    """Effective value of a dotted key, or None if no such key exists."""
    section, _, name = key.partition(".")
    values = load_config(start_dir=start_dir).get(section)
    return values.get(name) if isinstance(values, dict) else None


def config_set(key: str, value: str, start_dir: str | None = None, user: bool = False) -> tuple[Path, Any]:
    """Validate a value and store it in the project or the user config file.

    Only what the target file already holds is carried over; values coming
    from the environment or the other file are not written out.

    Args:
        key: Dotted config key, e.g. docker.binary
        value: Value as typed on the command line
        start_dir: Where the search for the project config file starts
        user: Write the per-user file instead (used for secrets)

    Returns:
        (path written, typed value)

    Raises:
        ConfigValidationError: unknown key or a value of the wrong type
    """
    typed_value = parse_value(key, value)

    if user:
        config_path = user_config_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)
        stored = TomlConfigSource(AuxctlSettings, config_path=config_path)()
    else:
        stored = TomlConfigSource(AuxctlSettings, start_dir=start_dir)()
        config_path = get_config_path_for_write(start_dir)
    section, name = key.split(".")
    stored.setdefault(section, {})[name] = typed_value

    save_config(stored, config_path)
    return config_path, typed_value


def config_list() -> dict[str, dict[str, Any]]:
    return CONFIGURABLE_KEYS
