"""
Event Models

Pydantic models for the S3 object-created notifications that trigger
the forwarder. SES receipt rules store each inbound message as one S3
object; the notification carries the bucket name and object key.
"""

from typing import Any
from urllib.parse import unquote_plus

from pydantic import BaseModel, ConfigDict, Field


class S3ObjectRef(BaseModel):
    """Location of a stored raw email in S3."""

    model_config = ConfigDict(frozen=True)

    bucket: str = Field(..., min_length=1, description="S3 bucket name")
    key: str = Field(..., min_length=1, description="S3 object key (URL-decoded)")

    @property
    def s3_uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "S3ObjectRef":
        """
        Build a reference from one S3 notification record.

        Object keys arrive URL-encoded in S3 notifications
        (spaces as '+', other characters percent-escaped).

        Raises:
            pydantic.ValidationError: If bucket name or key is missing
        """
        s3_data = record.get("s3", {})
        return cls(
            bucket=s3_data.get("bucket", {}).get("name", ""),
            key=unquote_plus(s3_data.get("object", {}).get("key", "")),
        )


def parse_s3_event(event: dict[str, Any] | None) -> list[S3ObjectRef]:
    """
    Extract object references from an S3 event notification.

    Args:
        event: Lambda event payload

    Returns:
        Object references in record order (empty if the event has no records)

    Raises:
        pydantic.ValidationError: If a record lacks a bucket name or key
    """
    if not event:
        return []

    records = event.get("Records") or []
    return [S3ObjectRef.from_record(record) for record in records]
