"""Tests for configuration settings.

Tests the Config class and environment variable handling.
"""

import pytest
from pathlib import Path
from unittest.mock import patch

from proxyfail.common.config.settings import (
    Config,
    Environment,
    AuditStorageType,
    SessionStoreType,
    get_config,
    reset_config,
)
from proxyfail.common.exceptions import ConfigurationError


class TestEnums:
    """Tests for config enums."""

    def test_environment_from_string(self):
        """Test creating Environment from string."""
        assert Environment("development") == Environment.DEVELOPMENT
        assert Environment("production") == Environment.PRODUCTION

    def test_storage_type_values(self):
        assert AuditStorageType.LOCAL.value == "local"
        assert AuditStorageType.S3.value == "s3"
        assert SessionStoreType.MEMORY.value == "memory"
        assert SessionStoreType.DYNAMODB.value == "dynamodb"


class TestConfig:
    """Tests for Config class."""

    def test_default_config(self, monkeypatch):
        """Test default configuration values."""
        for name in (
            "PROXYFAIL_ENVIRONMENT",
            "PROXYFAIL_SESSION_STORE_TYPE",
            "PROXYFAIL_AUDIT_STORAGE_TYPE",
            "PROXYFAIL_RULES_FILE",
        ):
            monkeypatch.delenv(name, raising=False)

        config = Config()

        assert config.environment == Environment.DEVELOPMENT
        assert config.session_store_type == SessionStoreType.MEMORY
        assert config.audit_storage_type == AuditStorageType.LOCAL
        assert config.rules_file is None
        assert config.is_development
        assert not config.is_production

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PROXYFAIL_ENVIRONMENT", "production")
        monkeypatch.setenv("PROXYFAIL_SESSION_STORE_TYPE", "dynamodb")
        monkeypatch.setenv("PROXYFAIL_SESSIONS_TABLE", "prod-sessions")
        monkeypatch.setenv("PROXYFAIL_USE_BACKGROUND_AUDIT", "true")

        config = Config()

        assert config.is_production
        assert config.session_store_type == SessionStoreType.DYNAMODB
        assert config.sessions_table == "prod-sessions"
        assert config.use_background_audit is True

    def test_sweeps_flag(self, monkeypatch):
        monkeypatch.setenv("PROXYFAIL_ENABLE_SWEEPS", "true")
        assert Config().enable_sweeps is True
        monkeypatch.setenv("PROXYFAIL_ENABLE_SWEEPS", "false")
        assert Config().enable_sweeps is False

    def test_invalid_environment_rejected(self, monkeypatch):
        monkeypatch.setenv("PROXYFAIL_ENVIRONMENT", "qa")
        with pytest.raises(ValueError):
            Config()

    def test_s3_requires_bucket(self, monkeypatch):
        monkeypatch.setenv("PROXYFAIL_AUDIT_STORAGE_TYPE", "s3")
        monkeypatch.delenv("PROXYFAIL_AUDIT_S3_BUCKET", raising=False)
        with pytest.raises(ConfigurationError):
            Config()

    def test_dynamodb_requires_tables(self, monkeypatch):
        monkeypatch.setenv("PROXYFAIL_SESSION_STORE_TYPE", "dynamodb")
        monkeypatch.setenv("PROXYFAIL_ATTENDANCE_TABLE", "")
        with pytest.raises(ConfigurationError):
            Config()

    def test_debug_in_production_warns(self, monkeypatch):
        monkeypatch.setenv("PROXYFAIL_ENVIRONMENT", "production")
        monkeypatch.setenv("PROXYFAIL_DEBUG", "true")
        with pytest.warns(RuntimeWarning):
            Config()

    def test_rules_file_override(self, monkeypatch, tmp_path):
        rules = tmp_path / "rules.yaml"
        monkeypatch.setenv("PROXYFAIL_RULES_FILE", str(rules))

        config = Config()

        assert config.rules_file == rules
        assert config.resolved_rules_file == rules

    def test_bundled_rules_file(self, monkeypatch):
        monkeypatch.delenv("PROXYFAIL_RULES_FILE", raising=False)
        config = Config(project_root=Path("/srv/proxyfail"))
        assert config.resolved_rules_file == Path("/srv/proxyfail/config/verification_rules.yaml")


class TestConfigSingleton:
    """Tests for get_config/reset_config."""

    def test_singleton(self):
        assert get_config() is get_config()

    def test_reset(self):
        first = get_config()
        reset_config()
        assert get_config() is not first

    def test_reads_environment_once(self):
        reset_config()
        with patch.dict("os.environ", {"PROXYFAIL_ENVIRONMENT": "staging"}):
            config = get_config()
        assert config.environment == Environment.STAGING
        assert get_config().environment == Environment.STAGING
