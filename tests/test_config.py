from __future__ import annotations

from pathlib import Path

import pytest

from ipocheck.config import DEFAULT_USER_AGENT, Settings, load_settings
from ipocheck.exceptions import ConfigError


def test_defaults_without_file_or_env() -> None:
    settings = load_settings(env={})

    assert settings == Settings()
    assert settings.http_timeout == (5.0, 30.0)
    assert settings.retry_attempts == 1
    assert settings.user_agent == DEFAULT_USER_AGENT


def test_yaml_then_env(tmp_path: Path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text(
        "http_timeout: [3, 20]\nmax_workers: 16\nheadless: false\nbrowser_executable:\n",
        encoding="utf-8",
    )

    settings = load_settings(
        config,
        env={"IPOCHECK_MAX_WORKERS": "2", "IPOCHECK_HTTP_TIMEOUT": "7", "IPOCHECK_HEADLESS": ""},
    )

    assert settings.http_timeout == (7.0, 30.0)
    assert settings.max_workers == 2
    assert settings.headless is False
    assert settings.browser_executable is None


def test_env_timeout_pair() -> None:
    settings = load_settings(env={"IPOCHECK_HTTP_TIMEOUT": "4, 25"})

    assert settings.http_timeout == (4.0, 25.0)


@pytest.mark.parametrize(
    "env",
    [
        {"IPOCHECK_HTTP_TIMEOUT": "fast"},
        {"IPOCHECK_MAX_WORKERS": "0"},
        {"IPOCHECK_HEADLESS": "maybe"},
        {"IPOCHECK_SESSION_TIMEOUT": "-5"},
    ],
)
def test_invalid_env_values(env: dict[str, str]) -> None:
    with pytest.raises(ConfigError):
        load_settings(env=env)


def test_unknown_yaml_key(tmp_path: Path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("max_wokers: 4\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="max_wokers"):
        load_settings(config, env={})


def test_yaml_must_be_a_mapping(tmp_path: Path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_settings(config, env={})


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.yaml", env={})
