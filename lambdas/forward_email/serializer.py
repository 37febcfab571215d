"""
Raw Serializer Module

Renders an OutboundMessage to wire-ready bytes (CRLF line endings)
for SES SendRawEmail.
"""

import secrets
from email import errors
from email.generator import BytesGenerator
from email.message import Message
from email.policy import SMTP
from io import BytesIO

from lambdas.forward_email.message_builder import OutboundMessage
from relay.exceptions import SerializationError, SerializationFailure

BOUNDARY_PREFIX = "=_mailrelay_"
MAX_BOUNDARY_ATTEMPTS = 10


def _render(part: Message) -> bytes:
    buffer = BytesIO()
    BytesGenerator(buffer, mangle_from_=False, policy=SMTP).flatten(part)
    return buffer.getvalue()


def make_boundary(rendered_parts: list[bytes]) -> str:
    """
    Generate a boundary token that occurs in none of the rendered parts.

    Raises:
        SerializationError: If no collision-free token was found
    """
    for _ in range(MAX_BOUNDARY_ATTEMPTS):
        boundary = f"{BOUNDARY_PREFIX}{secrets.token_hex(16)}"
        token = boundary.encode("ascii")
        if not any(token in rendered for rendered in rendered_parts):
            return boundary

    raise SerializationError(
        SerializationFailure.ENCODING_FAILURE,
        "could not generate a collision-free boundary",
    )


def serialize(msg: OutboundMessage) -> bytes:
    """
    Render the outbound message to raw bytes.

    Each child part is rendered first so the multipart boundary can be
    checked against the encoded part bodies before it is set.

    Args:
        msg: Message produced by the builder

    Returns:
        Complete RFC 5322 message bytes

    Raises:
        SerializationError: If rendering fails
    """
    envelope = msg.mime

    try:
        rendered_parts = [_render(part) for part in envelope.iter_parts()]
        envelope.set_boundary(make_boundary(rendered_parts))
        return _render(envelope)
    except OSError as e:
        raise SerializationError(SerializationFailure.IO_FAILURE, str(e)) from e
    except (errors.MessageError, UnicodeError, LookupError, ValueError, TypeError) as e:
        raise SerializationError(SerializationFailure.ENCODING_FAILURE, str(e)) from e
