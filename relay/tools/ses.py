"""
SES Tools

Submission of fully rendered MIME messages through SES SendRawEmail.
"""

import boto3
from botocore.exceptions import ClientError
import structlog

from relay.config import get_settings
from relay.exceptions import SESError

log = structlog.get_logger()


def _get_client():
    """Get SES client."""
    settings = get_settings()
    return boto3.client("ses", **settings.ses_config)


def send_raw_email(
    raw_message: bytes,
    *,
    source: str,
    destinations: list[str],
    configuration_set: str | None = None,
) -> str:
    """
    Send a raw MIME message via SES.

    The message headers are sent as-is; Source and Destinations
    only drive the SMTP envelope.

    Args:
        raw_message: Complete RFC 5322 message bytes
        source: Envelope sender (must be SES verified)
        destinations: Envelope recipients
        configuration_set: Override configuration set

    Returns:
        SES message ID

    Raises:
        SESError: If send fails
    """
    settings = get_settings()
    client = _get_client()

    config_set = configuration_set or settings.ses_configuration_set

    send_params = {
        "Source": source,
        "Destinations": list(destinations),
        "RawMessage": {"Data": raw_message},
    }

    if config_set:
        send_params["ConfigurationSetName"] = config_set

    log.info(
        "sending_raw_email",
        source=source,
        destinations=destinations,
        size_bytes=len(raw_message),
    )

    try:
        response = client.send_raw_email(**send_params)
    except ClientError as e:
        error_code = e.response["Error"]["Code"]
        error_message = e.response["Error"]["Message"]

        log.error(
            "ses_send_raw_failed",
            destinations=destinations,
            error_code=error_code,
            error_message=error_message,
        )

        raise SESError(
            operation="send_raw",
            recipient=", ".join(destinations),
            error_message=f"{error_code}: {error_message}",
        ) from e

    message_id = response["MessageId"]

    log.info(
        "ses_raw_email_sent",
        message_id=message_id,
        destinations=destinations,
    )

    return message_id
