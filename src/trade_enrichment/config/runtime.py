from __future__ import annotations

"""Runtime helpers for working with environment-backed configuration."""


import json
import os
from pathlib import Path
from typing import Callable, Optional, TypeVar

from .errors import ConfigurationError

T = TypeVar("T")

_TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "f", "no", "n", "off"}

_DOTENV_PATH = Path(".env")
_JSON_DEFAULTS_PATH = Path("config") / "runtime_env.json"

_DEFAULT_VALUES: dict[str, str] | None = None


def _read_dotenv(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise ConfigurationError(f"Failed to load configuration from {path}") from exc

    values: dict[str, str] = {}
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, _, value = stripped.partition("=")
        if key.startswith("export "):
            key = key[len("export ") :]
        values[key.strip()] = value.strip().strip("'\"")
    return values


def _read_json_defaults(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Failed to read runtime defaults at {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigurationError(f"Runtime defaults at {path} must be a JSON object")
    return {str(key): str(value) for key, value in payload.items() if value is not None}


def _load_default_values() -> dict[str, str]:
    """Load fallback values from ``.env`` and ``config/runtime_env.json`` (first wins)."""
    global _DEFAULT_VALUES
    if _DEFAULT_VALUES is not None:
        return _DEFAULT_VALUES

    defaults: dict[str, str] = {}
    for source in (_read_dotenv(_DOTENV_PATH), _read_json_defaults(_JSON_DEFAULTS_PATH)):
        for key, value in source.items():
            defaults.setdefault(key, value)

    _DEFAULT_VALUES = defaults
    return defaults


def reset_default_values() -> None:
    """Forget cached file defaults so the next lookup re-reads them."""
    global _DEFAULT_VALUES
    _DEFAULT_VALUES = None


def env_str(
    name: str,
    or_value: str | None = None,
    *,
    required: bool = False,
    allow_blank: bool = False,
) -> str | None:
    """Fetch an environment variable as a stripped string."""

    value = os.getenv(name)
    if value is None:
        value = _load_default_values().get(name)
    if value is not None:
        value = value.strip()

    if value is None or (not allow_blank and value == ""):
        if required:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        return or_value
    return value


def _env_cast(name: str, or_value: Optional[T], cast: Callable[[str], T], kind: str) -> Optional[T]:
    raw = env_str(name)
    if raw is None:
        return or_value
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {name!r} must be {kind} (got {raw!r})") from exc


def env_int(name: str, or_value: int | None = None) -> int | None:
    """Fetch an environment variable and coerce it to ``int``."""
    return _env_cast(name, or_value, int, "an integer")


def env_float(name: str, or_value: float | None = None) -> float | None:
    """Fetch an environment variable and coerce it to ``float``."""
    return _env_cast(name, or_value, float, "a float")


def _parse_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(raw)


def env_bool(name: str, or_value: bool | None = None) -> bool | None:
    """Fetch an environment variable and coerce it to ``bool``."""
    return _env_cast(name, or_value, _parse_bool, "a boolean")
