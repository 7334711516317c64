"""Unit tests for the core configuration module."""

from pathlib import Path

from core.config import Settings, get_settings


def test_settings_defaults(monkeypatch):
    """Test that Settings initializes with expected defaults."""
    for name in ("AGRILEDGER_DATA_DIR", "AGRILEDGER_LOG_LEVEL", "AGRILEDGER_STAGING_DIR"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)

    assert settings.data_dir == Path("agriledger_data")
    assert settings.backup_prefix == "AgriLedger_Backup"
    assert settings.default_payment_categories == ["Seeds", "Fertilizer", "Labor", "Equipment"]
    assert settings.log_level == "WARNING"
    assert settings.resolved_staging_dir == Path("agriledger_data") / ".staging"


def test_settings_with_env_vars(monkeypatch, tmp_path):
    """Test that Settings properly loads values from environment variables."""
    monkeypatch.setenv("AGRILEDGER_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("AGRILEDGER_LOG_LEVEL", "debug")
    monkeypatch.setenv("AGRILEDGER_DEFAULT_PAYMENT_TYPES", '["General"]')
    monkeypatch.setenv("AGRILEDGER_STAGING_DIR", str(tmp_path / "cache"))

    settings = Settings(_env_file=None)

    assert settings.data_dir == tmp_path
    assert settings.log_level == "DEBUG"
    assert settings.default_payment_types == ["General"]
    assert settings.resolved_staging_dir == tmp_path / "cache"


def test_get_settings_singleton():
    get_settings.cache_clear()
    assert get_settings() is get_settings()
    get_settings.cache_clear()
