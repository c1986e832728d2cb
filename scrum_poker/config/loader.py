"""Layered TOML configuration for the session store.

``config/default.toml`` is required; ``config/<env>.toml`` is merged over it
when present. The environment name comes from ``SCRUM_POKER_ENV``.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_VAR = "SCRUM_POKER_CONFIG_DIR"
ENV_VAR = "SCRUM_POKER_ENV"
DEFAULT_ENV = "development"
BASE_FILE = "default.toml"


def find_config_dir() -> Path:
    """Locate the directory holding ``default.toml``.

    ``SCRUM_POKER_CONFIG_DIR`` wins when set. Otherwise the working
    directory and its parents are searched for ``config/default.toml``.
    """
    override = os.environ.get(CONFIG_DIR_VAR)
    if override:
        path = Path(override)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {override}")
        return path

    cwd = Path.cwd()
    for directory in (cwd, *cwd.parents):
        candidate = directory / "config"
        if (candidate / BASE_FILE).is_file():
            return candidate
    return Path("config")


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")
    return tomllib.loads(file_path.read_text(encoding="utf-8"))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; tables merge, scalars replace."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def config_layers(config_dir: Path, env: str) -> list[Path]:
    """Files to merge, lowest precedence first."""
    base = config_dir / BASE_FILE
    if not base.is_file():
        raise FileNotFoundError(
            f"Default configuration file not found: {base}. "
            f"Create config/{BASE_FILE} or set {CONFIG_DIR_VAR}."
        )
    overlay = config_dir / f"{env}.toml"
    return [base, overlay] if overlay.is_file() else [base]


def load_config(env: str | None = None) -> dict[str, Any]:
    """Merge the configuration layers for ``env`` (default: ``SCRUM_POKER_ENV``)."""
    env = env or os.environ.get(ENV_VAR, DEFAULT_ENV)
    config: dict[str, Any] = {}
    for layer in config_layers(find_config_dir(), env):
        config = deep_merge(config, load_toml(layer))
    return config
