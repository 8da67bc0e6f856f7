"""Audit Layer Configuration and Initialization.

Factory methods that build the audit store and logger from Config.

Environment variables:
- PROXYFAIL_AUDIT_STORAGE_TYPE: "local" (default) or "s3"
- PROXYFAIL_AUDIT_LOG_DIR: Directory for local JSONL logs
- PROXYFAIL_AUDIT_S3_BUCKET: S3 bucket for audit logs
- PROXYFAIL_USE_BACKGROUND_AUDIT: Queue audit writes on a thread
"""

import logging
from typing import Optional

from proxyfail.common.config import AuditStorageType, Config, get_config
from proxyfail.governance.audit.store import AuditStore, FileAuditStore
from proxyfail.governance.audit.logger import AuditLogger

logger = logging.getLogger(__name__)


def create_audit_store(config: Optional[Config] = None) -> AuditStore:
    """Create the audit store selected by configuration.

    Args:
        config: Configuration to read. Uses the global config if None.

    Returns:
        Configured AuditStore instance
    """
    config = config or get_config()

    if config.audit_storage_type == AuditStorageType.S3:
        from proxyfail.governance.audit.s3_store import S3AuditStore

        return S3AuditStore(
            bucket_name=config.audit_s3_bucket,
            environment=config.environment.value,
            region=config.aws_region,
            aws_profile=config.aws_profile,
        )

    return FileAuditStore(log_dir=str(config.audit_log_dir))


def create_audit_logger(
    config: Optional[Config] = None,
    rules_version: Optional[str] = None,
) -> AuditLogger:
    """Create an audit logger over the configured backend."""
    config = config or get_config()
    store = create_audit_store(config)
    logger.info(
        f"Audit logger using {type(store).__name__} "
        f"(background={config.use_background_audit})"
    )
    return AuditLogger(
        store=store,
        use_background_writer=config.use_background_audit,
        rules_version=rules_version,
    )


__all__ = [
    "create_audit_store",
    "create_audit_logger",
]
