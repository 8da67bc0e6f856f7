"""Configuration module - environment settings and verification rules."""

from proxyfail.common.config.settings import (
    Config,
    Environment,
    LogLevel,
    AuditStorageType,
    SessionStoreType,
    get_config,
    reset_config,
)
from proxyfail.common.config.rules import (
    VerificationRules,
    load_verification_rules,
)

__all__ = [
    "Config",
    "Environment",
    "LogLevel",
    "AuditStorageType",
    "SessionStoreType",
    "get_config",
    "reset_config",
    "VerificationRules",
    "load_verification_rules",
]
