"""
Tests for configuration module.
"""

from cadence.config import FeatureFlags, GovernanceSettings, Settings, get_settings


def test_default_settings():
    settings = Settings()
    assert settings.app_env == "development"
    assert settings.is_production is False
    assert settings.auth_jwt_algorithm == "HS256"
    assert settings.governance.storage_backend == "memory"
    assert settings.governance.correlation_limit == 5


def test_feature_flags_from_env(monkeypatch):
    monkeypatch.setenv("FEATURE_TEMPLATES", "false")
    monkeypatch.setenv("FEATURE_VERSIONS", "false")

    flags = FeatureFlags()
    assert flags.templates is False
    assert flags.versions is False
    assert flags.hierarchy is True
    assert flags.to_dict()["templates"] is False


def test_governance_settings_from_env(monkeypatch):
    monkeypatch.setenv("GOVERNANCE_STORAGE_BACKEND", "supabase")
    monkeypatch.setenv("GOVERNANCE_CORRELATION_LIMIT", "10")

    governance = GovernanceSettings()
    assert governance.storage_backend == "supabase"
    assert governance.correlation_limit == 10


def test_production_flag(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    assert Settings().is_production is True


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()
