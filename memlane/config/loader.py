"""Layered TOML configuration for memlane.

config/default.toml is the base layer and config/{MEMLANE_ENV}.toml, when
present, is laid over it section by section. Every key in a layer must
name a Settings field, so a misspelt section such as [storge] fails at
startup instead of silently leaving the defaults in place.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from memlane.config.settings import Settings

CONFIG_DIR_ENV = "MEMLANE_CONFIG_DIR"
ENVIRONMENT_ENV = "MEMLANE_ENV"
DEFAULT_ENVIRONMENT = "development"
BASE_FILE = "default.toml"

# How many directories, starting at the working directory, are searched
SEARCH_DEPTH = 5


class ConfigError(ValueError):
    """Raised when a configuration layer holds keys memlane does not define."""

    def __init__(self, path: Path, keys: list[str]) -> None:
        super().__init__(f"{path.name}: unknown configuration keys: {', '.join(keys)}")
        self.path = path
        self.keys = keys


def get_config_dir() -> Path:
    """Locate the directory holding default.toml.

    MEMLANE_CONFIG_DIR wins when set. Otherwise the working directory and
    its parents are searched for a config/ directory with a default.toml.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        path = Path(override)
        if not path.is_dir():
            raise FileNotFoundError(f"{CONFIG_DIR_ENV} is not a directory: {override}")
        return path

    cwd = Path.cwd()
    for directory in [cwd, *cwd.parents][:SEARCH_DEPTH]:
        candidate = directory / "config"
        if (candidate / BASE_FILE).is_file():
            return candidate

    return Path("config")


def get_environment() -> str:
    """Name of the overlay layer, from MEMLANE_ENV (default: development)."""
    return os.environ.get(ENVIRONMENT_ENV, "").strip().lower() or DEFAULT_ENVIRONMENT


def load_toml(path: Path) -> dict[str, Any]:
    """Parse one TOML layer.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    with path.open("rb") as f:
        return tomllib.load(f)


def merge_layers(*layers: dict[str, Any]) -> dict[str, Any]:
    """Merge layers left to right; tables merge, anything else is replaced.

    The inputs are never modified.
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged[key] = merge_layers(current, value)
            elif isinstance(value, dict):
                merged[key] = merge_layers(value)
            else:
                merged[key] = value
    return merged


def unknown_keys(
    model: type[BaseModel], data: dict[str, Any], prefix: str = ""
) -> list[str]:
    """Dotted paths in data that do not name a field of model."""
    unknown: list[str] = []
    for key, value in data.items():
        field = model.model_fields.get(key)
        if field is None:
            unknown.append(f"{prefix}{key}")
            continue
        section = field.annotation
        if (
            isinstance(value, dict)
            and isinstance(section, type)
            and issubclass(section, BaseModel)
        ):
            unknown.extend(unknown_keys(section, value, f"{prefix}{key}."))
    return sorted(unknown)


def load_config(
    config_dir: Path | None = None, environment: str | None = None
) -> dict[str, Any]:
    """Load and merge default.toml and the environment layer.

    Args:
        config_dir: Directory to read; defaults to get_config_dir()
        environment: Overlay name; defaults to get_environment()

    Returns:
        Merged configuration dictionary

    Raises:
        FileNotFoundError: If default.toml is missing
        ConfigError: If a layer contains unknown keys
    """
    config_dir = config_dir or get_config_dir()
    environment = environment or get_environment()

    base = config_dir / BASE_FILE
    if not base.is_file():
        raise FileNotFoundError(
            f"Base configuration not found: {base}. "
            f"Create config/{BASE_FILE} or set {CONFIG_DIR_ENV}."
        )

    paths = [base]
    overlay = config_dir / f"{environment}.toml"
    if overlay != base and overlay.is_file():
        paths.append(overlay)

    layers = []
    for path in paths:
        layer = load_toml(path)
        unknown = unknown_keys(Settings, layer)
        if unknown:
            raise ConfigError(path, unknown)
        layers.append(layer)

    return merge_layers(*layers)
