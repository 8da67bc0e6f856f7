"""S3-backed audit store for immutable, versioned audit logs."""

import json, logging, hashlib, uuid, threading, os
from datetime import datetime, timezone
from typing import Generator, Optional

import boto3
from botocore.exceptions import ClientError

from proxyfail.common.constants import AuditConstants
from proxyfail.common.exceptions import AuditError
from proxyfail.governance.schemas import AuditEntry
from proxyfail.governance.audit.store import (
    AuditLogIntegrityError,
    AuditStore,
    matches_filters,
)

logger = logging.getLogger(__name__)


class S3AuditStore(AuditStore):
    """S3-backed audit store writing one object per verdict.

    Objects are independent, so each entry carries its own content hash
    and previous_hash stays None (no cross-writer chain).
    """

    DEFAULT_REGION = "us-east-1"
    DEFAULT_PREFIX = "audit-logs/"
    DEFAULT_ENVIRONMENT = "production"

    def __init__(self, bucket_name: Optional[str] = None,
                 prefix: str = DEFAULT_PREFIX, environment: str = DEFAULT_ENVIRONMENT,
                 region: Optional[str] = None, aws_profile: Optional[str] = None,
                 enable_versioning: bool = True,
                 hash_algorithm: str = AuditConstants.HASH_ALGORITHM,
                 enable_hash_chain: bool = True):
        self.bucket_name = bucket_name or os.environ.get("PROXYFAIL_AUDIT_S3_BUCKET")
        if not self.bucket_name:
            raise ValueError(
                "S3 bucket name required. Set PROXYFAIL_AUDIT_S3_BUCKET or pass bucket_name."
            )

        self.prefix = prefix
        self.environment = environment
        self.region = region or os.environ.get("AWS_REGION", self.DEFAULT_REGION)
        self.enable_versioning = enable_versioning
        self.hash_algorithm = hash_algorithm
        self.enable_hash_chain = enable_hash_chain

        if aws_profile:
            session = boto3.Session(profile_name=aws_profile)
            self.s3_client = session.client("s3", region_name=self.region)
        else:
            self.s3_client = boto3.client("s3", region_name=self.region)

        self._local_lock = threading.RLock()
        self._last_hash: Optional[str] = None

        self._ensure_bucket_configured()

        logger.info(
            f"Initialized S3AuditStore: bucket={self.bucket_name}, "
            f"env={self.environment}, versioning={self.enable_versioning}"
        )

    def _ensure_bucket_configured(self) -> None:
        """Ensure S3 bucket exists and is configured correctly."""
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            if e.response["Error"]["Code"] == "404":
                raise ValueError(f"S3 bucket {self.bucket_name} does not exist")
            raise

        if self.enable_versioning:
            try:
                self.s3_client.put_bucket_versioning(
                    Bucket=self.bucket_name,
                    VersioningConfiguration={"Status": "Enabled"}
                )
            except ClientError as e:
                logger.warning(f"Could not enable versioning: {e}")

    def _get_partition_prefix(self, date: Optional[str] = None) -> str:
        """Get the S3 prefix for a specific date (partition).

        Format: {prefix}{environment}/{date}/
        Example: audit-logs/production/2026-10-19/
        """
        if date is None:
            date = datetime.now(timezone.utc).strftime("%Y-%m-%d")

        return f"{self.prefix}{self.environment}/{date}/"

    def _get_unique_key(self, date: Optional[str] = None, attendance_id: Optional[str] = None) -> str:
        """Get a unique S3 key for a new entry.

        Format: {prefix}{environment}/{date}/{timestamp}_{uuid}_{attendance_id}.json
        """
        prefix = self._get_partition_prefix(date)
        ts = int(datetime.now(timezone.utc).timestamp() * 1000)
        uid = str(uuid.uuid4())
        suffix = f"_{attendance_id}" if attendance_id else ""
        return f"{prefix}{ts}_{uid}{suffix}.json"

    def _compute_hash(self, entry_dict: dict) -> str:
        """Content hash over the canonical entry with entry_hash blanked."""
        content = dict(entry_dict, entry_hash=None)
        hasher = hashlib.new(self.hash_algorithm)
        hasher.update(json.dumps(content, sort_keys=True, default=str).encode("utf-8"))
        return hasher.hexdigest()

    def append_entry(self, entry: AuditEntry) -> AuditEntry:
        """Append an audit entry to S3 (write a new object per entry).

        Raises:
            AuditError: If write fails
        """
        entry_dict = entry.model_dump(mode="json")
        entry_dict["previous_hash"] = None
        if self.enable_hash_chain:
            entry_dict["entry_hash"] = self._compute_hash(entry_dict)

        key = self._get_unique_key(attendance_id=entry.attendance_id)

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=json.dumps(entry_dict, default=str).encode("utf-8"),
                ContentType="application/json",
                Metadata={
                    "reason": entry.reason,
                    "timestamp": entry.timestamp.isoformat(),
                    "environment": self.environment,
                },
            )
        except ClientError as e:
            logger.error(f"Failed to append to S3: {e}")
            raise AuditError(f"S3 write failed: {e}", details={"key": key}) from e

        logger.debug(f"Appended audit entry to S3: {key} (attendance_id={entry.attendance_id})")

        stored = AuditEntry.model_validate(entry_dict)
        with self._local_lock:
            self._last_hash = stored.entry_hash
        return stored

    def _iter_objects(self, date: Optional[str]) -> Generator[tuple, None, None]:
        """Yield (key, parsed JSON body) for every object in a date partition."""
        prefix = self._get_partition_prefix(date)
        paginator = self.s3_client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
            for obj in page.get("Contents", []):
                key = obj["Key"]
                response = self.s3_client.get_object(Bucket=self.bucket_name, Key=key)
                yield key, json.loads(response["Body"].read().decode("utf-8"))

    def get_entries(
        self,
        date: Optional[str] = None,
        attendance_id: Optional[str] = None,
        session_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Generator[AuditEntry, None, None]:
        """Retrieve audit entries from S3 with filtering."""
        try:
            for key, body in self._iter_objects(date):
                try:
                    entry = AuditEntry.model_validate(body)
                except ValueError as e:
                    logger.warning(f"Could not parse audit entry {key}: {e}")
                    continue
                if matches_filters(entry, attendance_id, session_id, reason):
                    yield entry
        except ClientError as e:
            logger.error(f"Failed to list S3 objects: {e}")
            raise AuditError(f"S3 read failed: {e}") from e

    def verify_integrity(self, date: Optional[str] = None) -> bool:
        """Verify the content hash of every object in a date partition."""
        if not self.enable_hash_chain:
            return True

        try:
            for key, body in self._iter_objects(date):
                stored_hash = body.get("entry_hash")
                computed_hash = self._compute_hash(body)
                if computed_hash != stored_hash:
                    raise AuditLogIntegrityError(
                        f"Hash mismatch in {key}: "
                        f"expected {stored_hash}, got {computed_hash}"
                    )
        except ClientError as e:
            logger.error(f"Failed to list S3 objects for integrity check: {e}")
            raise AuditLogIntegrityError(f"Integrity check failed: {e}")

        return True

    def get_last_hash(self) -> Optional[str]:
        """Hash of the last entry written by this process."""
        return self._last_hash
