"""Runtime settings loaded from defaults, an optional YAML file and the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
_DEFAULT_HTTP_TIMEOUT = (5.0, 30.0)
# Long enough for a slow form page or an operator solving a CAPTCHA by hand.
_DEFAULT_SESSION_TIMEOUT = 300.0

_ENV_VARS: dict[str, str] = {
    "http_timeout": "IPOCHECK_HTTP_TIMEOUT",
    "session_timeout": "IPOCHECK_SESSION_TIMEOUT",
    "max_workers": "IPOCHECK_MAX_WORKERS",
    "provider_workers": "IPOCHECK_PROVIDER_WORKERS",
    "retry_attempts": "IPOCHECK_RETRY_ATTEMPTS",
    "headless": "IPOCHECK_HEADLESS",
    "browser_executable": "IPOCHECK_BROWSER_PATH",
    "user_agent": "IPOCHECK_USER_AGENT",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    http_timeout: tuple[float, float] = _DEFAULT_HTTP_TIMEOUT
    session_timeout: float = _DEFAULT_SESSION_TIMEOUT
    max_workers: int = 8
    provider_workers: int = 4
    retry_attempts: int = 1
    headless: bool = True
    browser_executable: str | None = None
    user_agent: str = DEFAULT_USER_AGENT


def _parse_timeout(value: object) -> tuple[float, float]:
    if isinstance(value, str):
        parts: Sequence[object] = [part for part in value.split(",") if part.strip()]
    elif isinstance(value, int | float):
        parts = [value]
    elif isinstance(value, Sequence):
        parts = list(value)
    else:
        raise ConfigError(f"Ungültiges Timeout: {value!r}")

    try:
        numbers = [float(str(part).strip()) for part in parts]
    except ValueError as exc:
        raise ConfigError(f"Ungültiges Timeout: {value!r}") from exc

    if len(numbers) == 1:
        return (numbers[0], _DEFAULT_HTTP_TIMEOUT[1])
    if len(numbers) == 2:
        return (numbers[0], numbers[1])
    raise ConfigError(f"Timeout erwartet einen oder zwei Werte: {value!r}")


def _parse_bool(value: object, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name}: boolescher Wert erwartet, erhalten {value!r}")


def _parse_positive_int(value: object, name: str) -> int:
    try:
        number = int(str(value).strip())
    except ValueError as exc:
        raise ConfigError(f"{name}: Ganzzahl erwartet, erhalten {value!r}") from exc
    if number < 1:
        raise ConfigError(f"{name} muss mindestens 1 sein")
    return number


def _parse_positive_float(value: object, name: str) -> float:
    try:
        number = float(str(value).strip())
    except ValueError as exc:
        raise ConfigError(f"{name}: Zahl erwartet, erhalten {value!r}") from exc
    if number <= 0:
        raise ConfigError(f"{name} muss größer als 0 sein")
    return number


def _coerce(name: str, value: Any) -> Any:
    if name == "http_timeout":
        return _parse_timeout(value)
    if name == "session_timeout":
        return _parse_positive_float(value, name)
    if name in {"max_workers", "provider_workers", "retry_attempts"}:
        return _parse_positive_int(value, name)
    if name == "headless":
        return _parse_bool(value, name)
    if name == "browser_executable":
        text = str(value).strip() if value is not None else ""
        return text or None
    if name == "user_agent":
        text = str(value).strip()
        if not text:
            raise ConfigError("user_agent darf nicht leer sein")
        return text
    raise ConfigError(f"Unbekannter Konfigurationsschlüssel: {name}")


def _read_yaml(path: str | Path) -> dict[str, Any]:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Konfigurationsdatei nicht gefunden: {config_path}")

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Ungültiges YAML in {config_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError("Konfigurations-YAML muss ein Dictionary enthalten")
    return {str(key): value for key, value in data.items()}


def load_settings(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Build :class:`Settings` from defaults, then *path* (YAML), then *env*."""

    environ = os.environ if env is None else env
    known = {field.name for field in fields(Settings)}
    overrides: dict[str, Any] = {}

    if path is not None:
        for key, value in _read_yaml(path).items():
            if key not in known:
                raise ConfigError(f"Unbekannter Konfigurationsschlüssel: {key}")
            if value is None:
                continue
            overrides[key] = _coerce(key, value)

    for name, env_var in _ENV_VARS.items():
        raw = environ.get(env_var)
        if raw is None or raw.strip() == "":
            continue
        overrides[name] = _coerce(name, raw)

    return replace(Settings(), **overrides)


__all__ = ["DEFAULT_USER_AGENT", "Settings", "load_settings"]
