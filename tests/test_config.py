"""Tests for configuration loading and validation."""

import pytest

from farm_passport.config.config_manager import ConfigManager, get_config, reset_config
from farm_passport.config.validator import ConfigValidator
from farm_passport.main import FarmPassportApp

ENV_VARS = [
    "BASE_API_URL", "API_TIMEOUT", "DATABASE_URL", "CAMERA_SOURCE", "CAMERA_SCAN_TIMEOUT",
    "EXPLORER_TX_URL", "ALLOW_DIRECT_UNLOCK", "LOG_LEVEL", "LOG_FILE", "DEBUG", "APP_VERSION",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "app.log"))
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'db' / 'sessions.db'}")
    reset_config()
    yield
    reset_config()


def test_defaults():
    config = ConfigManager()

    assert config.base_api_url == "http://localhost:3002"
    assert config.api_timeout == 30
    assert config.camera_source == "0"
    assert config.explorer_tx_url == "https://sepolia.etherscan.io/tx/"
    assert config.allow_direct_unlock is False
    assert config.debug is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("BASE_API_URL", "https://api.farmpassport.test")
    monkeypatch.setenv("ALLOW_DIRECT_UNLOCK", "TRUE")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = get_config()

    assert config.base_api_url == "https://api.farmpassport.test"
    assert config.allow_direct_unlock is True
    assert config.log_level == "DEBUG"
    assert get_config() is config


def test_valid_configuration_passes():
    result = ConfigValidator.validate()

    assert result["valid"], result["errors"]


@pytest.mark.parametrize("name,value", [
    ("BASE_API_URL", "localhost:3002"),
    ("API_TIMEOUT", "soon"),
    ("API_TIMEOUT", "0"),
    ("LOG_LEVEL", "LOUD"),
    ("DATABASE_URL", "postgres://db/farm"),
])
def test_invalid_values_are_errors(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    result = ConfigValidator.validate()

    assert not result["valid"]


def test_odd_camera_source_is_only_a_warning(monkeypatch):
    monkeypatch.setenv("CAMERA_SOURCE", "front-camera")

    result = ConfigValidator.validate()

    assert result["valid"]
    assert result["warnings"]


def test_check_config_prints_effective_defaults(capsys):
    FarmPassportApp().print_config()

    out = capsys.readouterr().out
    assert "BASE_API_URL         = NOT SET" in out
    assert "Effective Configuration:" in out
    assert "base_api_url         = http://localhost:3002" in out
    assert "api_timeout          = 30" in out
