"""Common utilities - logging, config, exceptions."""

from proxyfail.common.logging.logger import get_logger
from proxyfail.common.config import Config, get_config, reset_config
from proxyfail.common.exceptions import (
    ProxyFailException,
    ConfigurationError,
    ValidationError,
    SessionStoreError,
    SessionNotFoundError,
    ClaimNotFoundError,
    AuditError,
)

__all__ = [
    # Logging
    "get_logger",
    # Config
    "Config",
    "get_config",
    "reset_config",
    # Exceptions
    "ProxyFailException",
    "ConfigurationError",
    "ValidationError",
    "SessionStoreError",
    "SessionNotFoundError",
    "ClaimNotFoundError",
    "AuditError",
]
