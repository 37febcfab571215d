"""
Forwarding Pipeline

Runs decode -> select -> build -> serialize for one raw message.
The logger is passed in by the caller so every line carries the
invocation context bound by the handler.
"""

from dataclasses import dataclass

from structlog.stdlib import BoundLogger

from lambdas.forward_email.body_selector import select
from lambdas.forward_email.email_parser import decode
from lambdas.forward_email.message_builder import OutboundMessage, build
from lambdas.forward_email.serializer import serialize
from relay.config import ForwardingConfig


@dataclass(frozen=True)
class ForwardResult:
    """Rendered bytes plus the structure they were rendered from."""

    raw: bytes
    outbound: OutboundMessage


def forward_raw_message(
    raw: bytes,
    config: ForwardingConfig,
    *,
    logger: BoundLogger,
) -> ForwardResult:
    """
    Turn a stored raw message into the raw message to forward.

    Args:
        raw: Original message bytes
        config: Addressing and subject prefix
        logger: Bound logger for this invocation

    Returns:
        ForwardResult with the serialized outbound message

    Raises:
        ParseError: If the original message cannot be decoded
        AddressError: If a configured address is invalid
        SerializationError: If the outbound message cannot be rendered
    """
    decoded = decode(raw)
    logger.info(
        "email_decoded",
        subject=decoded.subject,
        from_address=decoded.from_address,
        message_id=decoded.message_id,
        body_types=[alt.content_type for alt in decoded.body_alternatives],
        attachment_count=len(decoded.attachments),
        attachment_bytes=sum(att.size_bytes for att in decoded.attachments),
    )

    body = select(decoded)
    logger.debug(
        "body_selected",
        content_type=body.content_type.value,
        body_length=len(body.text),
    )

    if not body.text and not decoded.attachments:
        # Still forwarded, the subject alone may be the content
        logger.warning(
            "forwarding_empty_message",
            subject=decoded.subject,
            message_id=decoded.message_id,
        )

    outbound = build(
        config.subject_prefix,
        body,
        decoded.attachments,
        config.from_address,
        config.to_addresses,
        original_subject=decoded.subject,
    )
    logger.info(
        "message_built",
        subject=outbound.subject,
        to_addresses=outbound.to_addresses,
        attachment_count=len(outbound.attachments),
    )

    raw_out = serialize(outbound)
    logger.debug("message_serialized", size_bytes=len(raw_out))

    return ForwardResult(raw=raw_out, outbound=outbound)
