"""
YAML configuration loader.

Search precedence for the user configuration (first match wins):

1. An explicit path argument (``--config`` on the CLI or
   ``$PDFCOMATIC_CONFIG``).
2. ``$XDG_CONFIG_HOME/pdfcomatic/config.yaml`` (``~/.config`` when unset).
3. Nothing – the packaged default is used unchanged.

The user document is deep-merged over the packaged default before the result
is validated, so a user file only needs the keys it changes.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml
from importlib.resources import files
from pydantic import ValidationError as PydanticValidationError

from ..utils.errors import ConfigError
from .schema import ConfigSchema

log = structlog.get_logger()

CONFIG_ENV = "PDFCOMATIC_CONFIG"

_DEFAULT_CONFIG = files("pdfcomatic.resources") / "default_config.yaml"


def _user_config_path() -> Path:
    """Return ``$XDG_CONFIG_HOME/pdfcomatic/config.yaml``."""
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base).expanduser() / "pdfcomatic" / "config.yaml"


def _parse_yaml(text: str, origin: str) -> dict:
    """Parse *text* into a mapping.

    Args:
        text: YAML document.
        origin: Human-readable source used in error messages.

    Returns:
        Parsed dictionary, or an empty dict for an empty document.

    Raises:
        ConfigError: When the document is not valid YAML or not a mapping.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {origin} – {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{origin} must contain a mapping at the top level")
    return data


def _deep_merge(base: dict, override: dict) -> dict:
    """Return *base* updated recursively with *override*."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _resolve_user_config(explicit: Optional[str | Path]) -> Optional[Path]:
    """Return the user configuration path or ``None`` if there is none.

    Raises:
        ConfigError: When an explicitly requested file does not exist.
    """
    if explicit is None:
        env_path = os.environ.get(CONFIG_ENV)
        explicit = env_path or None

    if explicit is not None:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigError(f"Configuration file not found at {path}")
        return path

    candidate = _user_config_path()
    return candidate if candidate.is_file() else None


def load_config(config_path: Optional[str | Path] = None) -> ConfigSchema:
    """Return a fully validated :class:`ConfigSchema`.

    Args:
        config_path: Explicit YAML path. ``None`` triggers the search sequence
            described in the module doc-string.

    Returns:
        Validated configuration.

    Raises:
        ConfigError: When a file is unreadable or fails validation.
    """
    raw: dict[str, Any] = _parse_yaml(_DEFAULT_CONFIG.read_text(encoding="utf-8"), "packaged default")

    user_path = _resolve_user_config(config_path)
    if user_path is not None:
        try:
            text = user_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Could not read {user_path}: {exc}") from exc
        raw = _deep_merge(raw, _parse_yaml(text, str(user_path)))
        log.debug("config.loaded", path=str(user_path))
    else:
        log.debug("config.default")

    try:
        return ConfigSchema(**raw)
    except PydanticValidationError as exc:
        origin = user_path or "packaged default"
        raise ConfigError(f"Invalid configuration in {origin} – {exc}") from exc
