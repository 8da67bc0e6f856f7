"""DynamoDB-backed session and attendance stores."""

import logging, os
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

import boto3
from boto3.dynamodb.conditions import Attr
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from proxyfail.common.constants import DataConstants
from proxyfail.common.exceptions import SessionNotFoundError, SessionStoreError
from proxyfail.data.schemas import Attendance, Session
from proxyfail.store.base import (
    AttendanceStore,
    FieldUpdates,
    SessionStore,
    serialize_fields,
)

logger = logging.getLogger(__name__)


def to_dynamo(value: Any) -> Any:
    """Convert floats to Decimal recursively (DynamoDB rejects float)."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_dynamo(v) for v in value]
    return value


def from_dynamo(value: Any) -> Any:
    """Convert Decimal back to int/float recursively."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    return value


def build_update_expression(fields: FieldUpdates) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
    """Build a SET expression with placeholder names/values for each field."""
    names: Dict[str, str] = {}
    values: Dict[str, Any] = {}
    clauses = []
    for i, (name, value) in enumerate(serialize_fields(fields).items()):
        names[f"#f{i}"] = name
        values[f":v{i}"] = to_dynamo(value)
        clauses.append(f"#f{i} = :v{i}")
    return "SET " + ", ".join(clauses), names, values


class _DynamoDBTable:
    """Shared boto3 wiring for a single-key table."""

    DEFAULT_REGION = "us-east-1"

    def __init__(
        self,
        table_name: str,
        key_name: str,
        region: Optional[str] = None,
        aws_profile: Optional[str] = None,
    ):
        self.table_name = table_name
        self.key_name = key_name
        self.region = region or os.environ.get("AWS_REGION", self.DEFAULT_REGION)

        if aws_profile:
            session = boto3.Session(profile_name=aws_profile)
            self.dynamodb = session.resource("dynamodb", region_name=self.region)
            self.client = session.client("dynamodb", region_name=self.region)
        else:
            self.dynamodb = boto3.resource("dynamodb", region_name=self.region)
            self.client = boto3.client("dynamodb", region_name=self.region)

        self.table = self.dynamodb.Table(self.table_name)
        logger.info(f"DynamoDB initialized: {self.table_name} ({self.region})")

    def _get_item(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            resp = self.table.get_item(Key={self.key_name: key}, ConsistentRead=True)
        except ClientError as e:
            raise SessionStoreError(
                f"get_item failed on {self.table_name}: {e}", operation="get"
            ) from e
        item = resp.get("Item")
        return from_dynamo(dict(item)) if item else None

    def _put_item(self, record: Dict[str, Any]) -> None:
        try:
            self.table.put_item(Item=to_dynamo(record))
        except ClientError as e:
            raise SessionStoreError(
                f"put_item failed on {self.table_name}: {e}", operation="put"
            ) from e

    def _update_item(self, key: str, fields: FieldUpdates) -> bool:
        """Update an existing item. Returns False if the item does not exist."""
        expr, names, values = build_update_expression(fields)
        names["#pk"] = self.key_name
        try:
            self.table.update_item(
                Key={self.key_name: key},
                UpdateExpression=expr,
                ConditionExpression="attribute_exists(#pk)",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return False
            raise SessionStoreError(
                f"update_item failed on {self.table_name}: {e}", operation="update"
            ) from e


class DynamoDBSessionStore(_DynamoDBTable, SessionStore):
    """Sessions table keyed by sessionId.

    batch_update commits through TransactWriteItems. Batches larger than the
    transaction limit are committed in consecutive transactions; each
    session's fields are always written in a single item update.
    """

    def __init__(
        self,
        table_name: Optional[str] = None,
        region: Optional[str] = None,
        aws_profile: Optional[str] = None,
        transaction_limit: int = DataConstants.DYNAMODB_TRANSACTION_LIMIT,
    ):
        table_name = table_name or os.environ.get("PROXYFAIL_SESSIONS_TABLE")
        if not table_name:
            raise ValueError("PROXYFAIL_SESSIONS_TABLE required")
        super().__init__(table_name, "sessionId", region, aws_profile)
        self.transaction_limit = transaction_limit
        self._serializer = TypeSerializer()

    def get(self, session_id: str) -> Optional[Session]:
        record = self._get_item(session_id)
        return Session.model_validate(record) if record else None

    def query_active(self) -> List[Session]:
        sessions: List[Session] = []
        scan_kwargs: Dict[str, Any] = {"FilterExpression": Attr("isActive").eq(True)}
        try:
            while True:
                resp = self.table.scan(**scan_kwargs)
                for item in resp.get("Items", []):
                    sessions.append(Session.model_validate(from_dynamo(dict(item))))
                last_key = resp.get("LastEvaluatedKey")
                if not last_key:
                    break
                scan_kwargs["ExclusiveStartKey"] = last_key
        except ClientError as e:
            raise SessionStoreError(
                f"scan failed on {self.table_name}: {e}", operation="query_active"
            ) from e
        return sessions

    def put(self, session: Session) -> Session:
        self._put_item(session.to_record())
        return session

    def update_one(self, session_id: str, fields: FieldUpdates) -> None:
        if not self._update_item(session_id, fields):
            raise SessionNotFoundError(session_id)

    def _transact_item(self, session_id: str, fields: FieldUpdates) -> Dict[str, Any]:
        expr, names, values = build_update_expression(fields)
        names["#pk"] = self.key_name
        return {
            "Update": {
                "TableName": self.table_name,
                "Key": {self.key_name: self._serializer.serialize(session_id)},
                "UpdateExpression": expr,
                "ConditionExpression": "attribute_exists(#pk)",
                "ExpressionAttributeNames": names,
                "ExpressionAttributeValues": {
                    k: self._serializer.serialize(v) for k, v in values.items()
                },
            }
        }

    def batch_update(self, updates: Sequence[Tuple[str, FieldUpdates]]) -> None:
        if not updates:
            return
        session_ids = [sid for sid, _ in updates]
        items = [self._transact_item(sid, fields) for sid, fields in updates]
        for start in range(0, len(items), self.transaction_limit):
            chunk = items[start:start + self.transaction_limit]
            try:
                self.client.transact_write_items(TransactItems=chunk)
            except ClientError as e:
                committed = session_ids[:start]
                if committed:
                    logger.error(
                        f"Partial batch on {self.table_name}: committed {committed}, "
                        f"not applied {session_ids[start:]}"
                    )
                raise SessionStoreError(
                    f"transact_write_items failed on {self.table_name}: {e}",
                    operation="batch_update",
                    details={
                        "committed": committed,
                        "failed": session_ids[start:],
                        "total": len(items),
                    },
                ) from e
        logger.debug(f"Committed batch of {len(items)} session updates")


class DynamoDBAttendanceStore(_DynamoDBTable, AttendanceStore):
    """Attendance table keyed by attendanceId."""

    def __init__(
        self,
        table_name: Optional[str] = None,
        region: Optional[str] = None,
        aws_profile: Optional[str] = None,
    ):
        table_name = table_name or os.environ.get("PROXYFAIL_ATTENDANCE_TABLE")
        if not table_name:
            raise ValueError("PROXYFAIL_ATTENDANCE_TABLE required")
        super().__init__(table_name, "attendanceId", region, aws_profile)

    def get(self, attendance_id: str) -> Optional[Attendance]:
        record = self._get_item(attendance_id)
        return Attendance.model_validate(record) if record else None

    def put(self, claim: Attendance) -> Attendance:
        self._put_item(claim.to_record())
        return claim

    def update(self, attendance_id: str, fields: FieldUpdates) -> None:
        if not self._update_item(attendance_id, fields):
            raise SessionStoreError(
                f"Attendance record not found: {attendance_id}",
                operation="update",
                details={"attendance_id": attendance_id},
            )
