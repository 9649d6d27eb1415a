"""Tests for file and environment configuration."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from src.config.models import AppConfig, EnvSettings, ProphetSourceConfig


def test_source_defaults():
    """Test a source only needs an endpoint."""
    source = ProphetSourceConfig(endpoint="http://webeye.example.com")
    assert source.path == "/prophet"
    assert source.timeout_seconds == 140
    assert source.headers == {}


def test_source_rejects_non_positive_timeout():
    with pytest.raises(ValidationError):
        ProphetSourceConfig(endpoint="http://webeye.example.com", timeout_seconds=0)


def test_default_source_is_first_configured():
    cfg = AppConfig.model_validate(
        {
            "sources": {
                "east": {"endpoint": "http://east.example.com"},
                "west": {"endpoint": "http://west.example.com"},
            }
        }
    )
    assert cfg.default_source == "east"


def test_unknown_default_source_rejected():
    with pytest.raises(ValidationError, match="not a configured source"):
        AppConfig.model_validate(
            {
                "sources": {"east": {"endpoint": "http://east.example.com"}},
                "default_source": "north",
            }
        )


def test_empty_config_has_no_default():
    cfg = AppConfig()
    assert cfg.sources == {}
    assert cfg.default_source is None


def test_load_from_file(tmp_path: Path):
    """Test loading a JSON config file."""
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(
        json.dumps(
            {
                "sources": {
                    "east": {
                        "endpoint": "http://east.example.com",
                        "path": "/webeye/prophet",
                        "timeout_seconds": 30,
                        "headers": {"Cookie": "niagara_session=abc"},
                    }
                }
            }
        )
    )
    cfg = AppConfig.load(cfg_path)
    east = cfg.sources["east"]
    assert east.path == "/webeye/prophet"
    assert east.timeout_seconds == 30
    assert east.headers == {"Cookie": "niagara_session=abc"}


def test_env_settings(monkeypatch, tmp_path: Path):
    """Test DATAEYE_* variables populate EnvSettings."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATAEYE_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("DATAEYE_CONFIG_PATH", str(tmp_path / "config.json"))
    settings = EnvSettings()
    assert settings.log_level == "DEBUG"
    assert settings.config_path == tmp_path / "config.json"


def test_env_settings_defaults(monkeypatch, tmp_path: Path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DATAEYE_LOG_LEVEL", raising=False)
    monkeypatch.delenv("DATAEYE_CONFIG_PATH", raising=False)
    settings = EnvSettings()
    assert settings.log_level == "INFO"
    assert settings.config_path is None
