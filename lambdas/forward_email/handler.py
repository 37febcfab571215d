"""
ForwardEmail Lambda Handler

Main entry point for forwarding inbound emails stored in S3 by SES.

Trigger: S3 object-created notification on the inbound email bucket
Output: SES SendRawEmail to the configured recipients

Flow:
1. Parse S3 notification (bucket, key)
2. Fetch the raw email from S3
3. Decode, select body, build and serialize the forwarded message
4. Submit the raw message through SES

Failures are logged and reported in the response; the handler never
raises so one bad message does not fail the invocation.
"""

import json
import logging
from typing import Any

import structlog
from pydantic import ValidationError

from lambdas.forward_email.pipeline import forward_raw_message
from relay.config import get_settings
from relay.exceptions import (
    AddressError,
    ParseError,
    RelayError,
    S3Error,
    SESError,
    SerializationError,
)
from relay.models.events import S3ObjectRef, parse_s3_event
from relay.tools.s3 import fetch_raw_email
from relay.tools.ses import send_raw_email

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

log = structlog.get_logger()


def _response(status_code: int, **body: Any) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "body": json.dumps(body),
    }


def _error_status(error: RelayError) -> int:
    """Map a forwarding failure to a status code."""
    if isinstance(error, (ParseError, AddressError)):
        return 400
    return 500


def _forward_object(ref: S3ObjectRef, request_id: str) -> dict[str, Any]:
    """Fetch, transform and send one stored email."""
    settings = get_settings()
    logger = log.bind(
        request_id=request_id,
        environment=settings.environment,
        s3_uri=ref.s3_uri,
    )

    try:
        config = settings.forwarding_config
    except ValidationError as e:
        logger.error("invalid_forwarding_config", error=str(e))
        return _response(400, error="Invalid forwarding configuration")

    try:
        raw_email = fetch_raw_email(ref.bucket, ref.key)
        result = forward_raw_message(raw_email, config, logger=logger)
        message_id = send_raw_email(
            result.raw,
            source=config.from_address,
            destinations=config.to_addresses,
        )
    except (ParseError, AddressError, SerializationError) as e:
        logger.error(
            "email_forward_failed",
            error_type=type(e).__name__,
            error=str(e),
        )
        return _response(_error_status(e), error=str(e), **e.context)
    except (S3Error, SESError) as e:
        logger.error(
            "email_relay_io_failed",
            error_type=type(e).__name__,
            error=str(e),
        )
        return _response(_error_status(e), error=str(e))

    logger.info(
        "email_forwarded",
        message_id=message_id,
        attachment_count=len(result.outbound.attachments),
    )

    return _response(
        200,
        status="forwarded",
        message_id=message_id,
        bucket=ref.bucket,
        key=ref.key,
        attachment_count=len(result.outbound.attachments),
    )


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    AWS Lambda handler for forwarding a stored inbound email.

    Args:
        event: S3 object-created notification
        context: Lambda context

    Returns:
        Response dict with processing status
    """
    request_id = getattr(context, "aws_request_id", "local")
    logging.getLogger().setLevel(get_settings().log_level)

    log.info(
        "processing_stored_email",
        request_id=request_id,
        event_keys=list(event.keys()) if event else [],
    )

    try:
        refs = parse_s3_event(event)
    except ValidationError as e:
        log.error("s3_event_invalid", request_id=request_id, error=str(e))
        return _response(400, error="Invalid S3 event record")

    if not refs:
        log.error("s3_event_empty", request_id=request_id)
        return _response(400, error="S3 event has no records")

    if len(refs) > 1:
        log.warning(
            "extra_records_ignored",
            request_id=request_id,
            record_count=len(refs),
        )

    try:
        return _forward_object(refs[0], request_id)
    except Exception as e:
        log.error("lambda_handler_failed", error=str(e), exc_info=True)
        return _response(500, error=str(e))
