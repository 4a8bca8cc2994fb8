"""Tests for lattice.core.config - LatticeSettings and global config management."""

from __future__ import annotations

from lattice.core.config import LatticeSettings, clear_config_cache, get_config

# ============================================================================
# LatticeSettings - Default Values
# ============================================================================


class TestLatticeSettingsDefaults:
    """Test that LatticeSettings loads with correct default values."""

    def test_defaults(self, clean_env):
        settings = LatticeSettings()

        assert settings.vault_path == "."
        assert settings.log_level == "INFO"
        assert settings.log_format == "text"
        assert settings.log_file is None
        assert settings.stale_days == 14
        assert settings.max_chain_depth == 100
        assert settings.related_max_hops == 2
        assert settings.related_limit == 20
        assert settings.stdin_timeout == 30.0
        assert settings.auto_commit is False


# ============================================================================
# Environment overrides
# ============================================================================


class TestLatticeSettingsEnv:
    """Environment variables override defaults."""

    def test_vault_path_from_env(self, clean_env, monkeypatch):
        monkeypatch.setenv("LATTICE_VAULT", "/srv/vault")
        assert LatticeSettings().vault_path == "/srv/vault"

    def test_numeric_overrides(self, clean_env, monkeypatch):
        monkeypatch.setenv("LATTICE_STALE_DAYS", "7")
        monkeypatch.setenv("LATTICE_RELATED_LIMIT", "5")
        monkeypatch.setenv("LATTICE_STDIN_TIMEOUT", "2.5")

        settings = LatticeSettings()
        assert settings.stale_days == 7
        assert settings.related_limit == 5
        assert settings.stdin_timeout == 2.5

    def test_auto_commit_bool(self, clean_env, monkeypatch):
        monkeypatch.setenv("LATTICE_AUTO_COMMIT", "true")
        assert LatticeSettings().auto_commit is True

    def test_logging_overrides(self, clean_env, monkeypatch):
        monkeypatch.setenv("LATTICE_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("LATTICE_LOG_FORMAT", "json")
        settings = LatticeSettings()
        assert settings.log_level == "DEBUG"
        assert settings.log_format == "json"


# ============================================================================
# Singleton
# ============================================================================


class TestConfigSingleton:
    """get_config caches until clear_config_cache is called."""

    def test_get_config_returns_same_instance(self, clean_env):
        assert get_config() is get_config()

    def test_clear_config_cache(self, clean_env, monkeypatch):
        first = get_config()
        monkeypatch.setenv("LATTICE_STALE_DAYS", "3")
        assert get_config().stale_days == first.stale_days

        clear_config_cache()
        second = get_config()
        assert second is not first
        assert second.stale_days == 3
