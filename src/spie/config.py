"""Configuration management with XDG paths and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.spie/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`. ``SPIE_CONFIG_DIR`` overrides the config directory.
* **Global config** -- a single :class:`~spie.models.GlobalConfig` JSON
  file storing user defaults (scheme, base URL, timeout, redirects, ...).
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and the global config into the effective settings.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import ValidationError

from spie.exceptions import ConfigError
from spie.models import GlobalConfig

_APP_NAME = "spie"
_CONFIG_FILENAME = "config.json"

# Environment variable -> (GlobalConfig field, converter)
_ENV_OVERRIDES: dict[str, tuple[str, Callable[[str], Any]]] = {
    "SPIE_DEFAULT_SCHEME": ("default_scheme", str.lower),
    "SPIE_BASE_URL": ("base_url", str),
    "SPIE_TIMEOUT": ("timeout", float),
    "SPIE_MAX_REDIRECTS": ("max_redirects", int),
    "SPIE_TRANSPORT": ("transport", str),
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory.

    ``$SPIE_CONFIG_DIR`` when set. Otherwise, on Linux/BSD
    ``$XDG_CONFIG_HOME/spie/`` (default ``~/.config/spie/``), and on
    macOS/Windows ``~/.spie/``. The directory is not created; spie only
    reads from it.
    """
    override = os.environ.get("SPIE_CONFIG_DIR", "")
    if override:
        return Path(override)
    if _is_xdg_platform():
        return _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    return _fallback_base_dir()


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/spie/`` (default ``~/.local/share/spie/``).
    On macOS/Windows: ``~/.spie/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~spie.models.GlobalConfig`. If the file
        does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def _env_overrides() -> dict[str, Any]:
    """Collect ``SPIE_*`` environment overrides, converted to field types."""
    overrides: dict[str, Any] = {}
    for env_var, (field, convert) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_var, "")
        if not raw:
            continue
        try:
            overrides[field] = convert(raw)
        except ValueError as exc:
            raise ConfigError(f"Invalid value for {env_var}: {raw!r}") from exc
    return overrides


# --- Precedence resolution ---


def resolve_config(cli_overrides: Optional[dict[str, Any]] = None) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (*cli_overrides*; ``None`` values are ignored)
        2. Environment variables (``SPIE_DEFAULT_SCHEME``, ``SPIE_BASE_URL``,
           ``SPIE_TIMEOUT``, ``SPIE_MAX_REDIRECTS``, ``SPIE_TRANSPORT``)
        3. User config (``~/.config/spie/config.json``)
        4. Defaults

    Raises:
        ConfigError: If the config file, an environment variable, or the
            merged result is invalid.
    """
    # 4 + 3. Defaults and the user config file
    merged = load_global_config().model_dump()

    # 2. Environment variables
    merged.update(_env_overrides())

    # 1. CLI flags
    if cli_overrides:
        merged.update({k: v for k, v in cli_overrides.items() if v is not None})

    try:
        return GlobalConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
