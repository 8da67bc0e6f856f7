"""Configuration management - Centralized configuration for ProxyFail.

Provides environment-aware configuration with sensible defaults.
All configuration is loaded from environment variables with fallbacks.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from proxyfail.common.exceptions import ConfigurationError


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AuditStorageType(str, Enum):
    """Audit storage backend types."""
    LOCAL = "local"
    S3 = "s3"


class SessionStoreType(str, Enum):
    """Session/attendance store backend types."""
    MEMORY = "memory"
    DYNAMODB = "dynamodb"


def _get_project_root() -> Path:
    """Get the project root directory."""
    # settings.py -> config -> common -> proxyfail -> src -> project_root
    current = Path(__file__).resolve()
    return current.parent.parent.parent.parent.parent


@dataclass
class Config:
    """Central configuration object for ProxyFail.

    All settings can be overridden via environment variables prefixed with PROXYFAIL_.

    Example:
        PROXYFAIL_ENVIRONMENT=production
        PROXYFAIL_SESSION_STORE_TYPE=dynamodb
        PROXYFAIL_AUDIT_STORAGE_TYPE=s3
    """

    # Core settings
    environment: Environment = field(
        default_factory=lambda: Environment(
            os.getenv("PROXYFAIL_ENVIRONMENT", "development")
        )
    )
    debug: bool = field(
        default_factory=lambda: os.getenv("PROXYFAIL_DEBUG", "false").lower() == "true"
    )
    log_level: LogLevel = field(
        default_factory=lambda: LogLevel(os.getenv("PROXYFAIL_LOG_LEVEL", "INFO"))
    )

    # Paths
    project_root: Path = field(default_factory=_get_project_root)

    # Session/attendance stores
    session_store_type: SessionStoreType = field(
        default_factory=lambda: SessionStoreType(
            os.getenv("PROXYFAIL_SESSION_STORE_TYPE", "memory")
        )
    )
    sessions_table: str = field(
        default_factory=lambda: os.getenv("PROXYFAIL_SESSIONS_TABLE", "sessions")
    )
    attendance_table: str = field(
        default_factory=lambda: os.getenv("PROXYFAIL_ATTENDANCE_TABLE", "attendance")
    )

    # Audit settings
    audit_storage_type: AuditStorageType = field(
        default_factory=lambda: AuditStorageType(
            os.getenv("PROXYFAIL_AUDIT_STORAGE_TYPE", "local")
        )
    )
    audit_log_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("PROXYFAIL_AUDIT_LOG_DIR", "./logs/audit")
        )
    )
    audit_s3_bucket: Optional[str] = field(
        default_factory=lambda: os.getenv("PROXYFAIL_AUDIT_S3_BUCKET")
    )
    use_background_audit: bool = field(
        default_factory=lambda: os.getenv(
            "PROXYFAIL_USE_BACKGROUND_AUDIT", "false"
        ).lower() == "true"
    )

    # AWS settings (for S3/DynamoDB)
    aws_region: str = field(
        default_factory=lambda: os.getenv("AWS_DEFAULT_REGION", "us-east-1")
    )
    aws_profile: Optional[str] = field(
        default_factory=lambda: os.getenv("AWS_PROFILE")
    )

    # Verification rules
    rules_file: Optional[Path] = field(
        default_factory=lambda: (
            Path(os.environ["PROXYFAIL_RULES_FILE"])
            if os.getenv("PROXYFAIL_RULES_FILE") else None
        )
    )

    # Background sweeps
    enable_sweeps: bool = field(
        default_factory=lambda: os.getenv("PROXYFAIL_ENABLE_SWEEPS", "true").lower() == "true"
    )

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.audit_storage_type == AuditStorageType.S3 and not self.audit_s3_bucket:
            raise ConfigurationError(
                "PROXYFAIL_AUDIT_S3_BUCKET must be set when using S3 audit storage"
            )

        if self.session_store_type == SessionStoreType.DYNAMODB:
            if not self.sessions_table or not self.attendance_table:
                raise ConfigurationError(
                    "PROXYFAIL_SESSIONS_TABLE and PROXYFAIL_ATTENDANCE_TABLE "
                    "must be set when using DynamoDB stores"
                )

        if self.environment == Environment.PRODUCTION and self.debug:
            import warnings
            warnings.warn(
                "Debug mode is enabled in production environment",
                RuntimeWarning,
                stacklevel=2
            )

    @property
    def config_dir(self) -> Path:
        """Get the config directory path."""
        return self.project_root / "config"

    @property
    def resolved_rules_file(self) -> Path:
        """Rules file to load: explicit override or the bundled default."""
        return self.rules_file or self.config_dir / "verification_rules.yaml"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT


# Singleton instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config: The global configuration singleton.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
