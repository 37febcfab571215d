"""
S3 Tools

Retrieval of raw inbound emails stored in S3 by an SES receipt rule.
"""

import boto3
from botocore.exceptions import ClientError
import structlog

from relay.config import get_settings
from relay.exceptions import S3Error

log = structlog.get_logger()


def _get_client():
    """Get S3 client."""
    settings = get_settings()
    return boto3.client("s3", **settings.s3_config)


def fetch_raw_email(bucket: str, key: str) -> bytes:
    """
    Fetch raw email content from S3.

    Args:
        bucket: S3 bucket name
        key: S3 object key

    Returns:
        Raw email content as bytes

    Raises:
        S3Error: If the object cannot be read
    """
    log.info("fetching_email_from_s3", bucket=bucket, key=key)

    client = _get_client()

    try:
        response = client.get_object(Bucket=bucket, Key=key)
        content = response["Body"].read()
    except ClientError as e:
        error_code = e.response["Error"]["Code"]

        if error_code in ("NoSuchKey", "NoSuchBucket"):
            log.warning("email_object_not_found", bucket=bucket, key=key)
        else:
            log.error("s3_fetch_failed", bucket=bucket, key=key, error=str(e))

        raise S3Error(
            operation="download",
            bucket=bucket,
            key=key,
            error_message=str(e),
        ) from e

    log.debug(
        "email_fetched_from_s3",
        bucket=bucket,
        key=key,
        size_bytes=len(content),
    )

    return content
