"""Client settings with file, environment and flag precedence.

:func:`load_settings` resolves the effective
:class:`~authpark.models.ClientSettings`.

Precedence (high to low):
    1. Explicit overrides (CLI flags)
    2. Environment variables (``AUTHPARK_BASE_URL``, ``AUTHPARK_TIMEOUT``,
       ``AUTHPARK_VERIFY_SSL``, ``AUTHPARK_TOKEN_ENV``)
    3. Settings file (``./authpark.json`` unless a path is given)
    4. Defaults
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from authpark.exceptions import ConfigError
from authpark.models import ClientSettings

_SETTINGS_FILENAME = "authpark.json"

_ENV_VARS = {
    "AUTHPARK_BASE_URL": "base_url",
    "AUTHPARK_TIMEOUT": "timeout",
    "AUTHPARK_VERIFY_SSL": "verify_ssl",
    "AUTHPARK_TOKEN_ENV": "token_env",
}


def load_settings_file(path: Optional[Path] = None) -> dict[str, Any]:
    """Read the JSON settings file.

    Args:
        path: File to read. Defaults to ``./authpark.json``; a missing
            default file yields an empty dict.

    Raises:
        ConfigError: If the file contains invalid JSON or is not an object,
            or if an explicitly given *path* does not exist.
    """
    explicit = path is not None
    path = path or Path.cwd() / _SETTINGS_FILENAME
    if not path.is_file():
        if explicit:
            raise ConfigError(f"Settings file not found: {path}")
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid settings file at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid settings file at {path}: expected a JSON object")
    return data


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for var, field in _ENV_VARS.items():
        value = os.environ.get(var)
        if value:
            overrides[field] = value
    return overrides


def load_settings(path: Optional[Path] = None, **overrides: Any) -> ClientSettings:
    """Resolve settings through the full precedence chain.

    Args:
        path: Optional settings file (see :func:`load_settings_file`).
        **overrides: Field values from the command line. ``None`` values are
            treated as "not given".

    Raises:
        ConfigError: If the merged values fail validation.
    """
    data = load_settings_file(path)
    data.update(_env_overrides())
    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ClientSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
