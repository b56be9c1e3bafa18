"""Tests for authpark.config -- settings file, environment and override precedence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from authpark.config import load_settings, load_settings_file
from authpark.exceptions import ConfigError
from authpark.models import ClientSettings


def _write_json(path: Path, data: object) -> None:
    path.write_text(json.dumps(data), encoding="utf-8")


class TestSettingsFile:
    def test_missing_default_file_is_empty(self, isolated_config: Path) -> None:
        assert load_settings_file() == {}

    def test_missing_explicit_file_raises(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_settings_file(isolated_config / "nope.json")

    def test_invalid_json_raises(self, isolated_config: Path) -> None:
        (isolated_config / "authpark.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid settings file"):
            load_settings_file()

    def test_non_object_raises(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "authpark.json", ["a", "b"])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_settings_file()


class TestLoadSettings:
    def test_defaults(self, isolated_config: Path) -> None:
        assert load_settings() == ClientSettings()

    def test_file_values(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "authpark.json",
            {"base_url": "https://file.example.com", "timeout": 5},
        )
        settings = load_settings()
        assert settings.base_url == "https://file.example.com"
        assert settings.timeout == 5.0

    def test_env_overrides_file(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(isolated_config / "authpark.json", {"base_url": "https://file.example.com"})
        monkeypatch.setenv("AUTHPARK_BASE_URL", "https://env.example.com")
        monkeypatch.setenv("AUTHPARK_VERIFY_SSL", "false")
        monkeypatch.setenv("AUTHPARK_TOKEN_ENV", "MY_TOKEN")

        settings = load_settings()

        assert settings.base_url == "https://env.example.com"
        assert settings.verify_ssl is False
        assert settings.token_env == "MY_TOKEN"

    def test_overrides_beat_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AUTHPARK_BASE_URL", "https://env.example.com")
        settings = load_settings(base_url="https://flag.example.com", token_env=None)
        assert settings.base_url == "https://flag.example.com"
        assert settings.token_env is None

    def test_explicit_path(self, isolated_config: Path) -> None:
        path = isolated_config / "custom.json"
        _write_json(path, {"follow_redirects": False})
        assert load_settings(path).follow_redirects is False

    def test_invalid_value_raises(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AUTHPARK_TIMEOUT", "soon")
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_settings()
