"""
Message Builder Module

Composes the outbound multipart/mixed message from the selected body,
the original attachments and the configured addressing.
"""

import re
from dataclasses import dataclass, field
from email.message import EmailMessage, Message, MIMEPart
from email.parser import BytesHeaderParser
from email.policy import SMTP
from email.utils import getaddresses

from email_validator import EmailNotValidError, validate_email

from lambdas.forward_email.body_selector import SelectedBody
from lambdas.forward_email.email_parser import Attachment
from relay.exceptions import AddressError

DEFAULT_ATTACHMENT_TYPE = "application/octet-stream"

_BLANK_LINE = re.compile(rb"\r?\n\r?\n")
_LINE_END = re.compile(rb"\r?\n")


@dataclass
class OutboundMessage:
    """A message ready to be serialized and submitted."""

    from_address: str
    to_addresses: list[str]
    subject: str
    body: SelectedBody
    attachments: list[Attachment] = field(default_factory=list)

    # multipart/mixed structure, rendered by the serializer
    mime: EmailMessage = field(default_factory=EmailMessage, repr=False)


def validate_address(address: str) -> str:
    """
    Validate an email address, optionally with a display name.

    Uses email-validator library for RFC compliance.

    Args:
        address: "user@domain" or "Name <user@domain>"

    Returns:
        The address unchanged

    Raises:
        AddressError: If the input is not exactly one valid address
    """
    if not address or "\r" in address or "\n" in address:
        raise AddressError(invalid_address=address)

    parsed = getaddresses([address])
    if len(parsed) != 1 or not parsed[0][1]:
        raise AddressError(invalid_address=address, detail="expected exactly one address")
    addr_spec = parsed[0][1]

    try:
        validate_email(addr_spec, check_deliverability=False)
    except EmailNotValidError as e:
        raise AddressError(invalid_address=address, detail=str(e)) from e

    return address


def _split_mime_type(mime_type: str) -> tuple[str, str]:
    maintype, _, subtype = mime_type.partition("/")
    if not maintype or not subtype:
        return tuple(DEFAULT_ATTACHMENT_TYPE.split("/", 1))
    return maintype, subtype


def _body_part(body: SelectedBody) -> MIMEPart:
    part = MIMEPart(policy=SMTP)
    part.set_content(body.text, subtype=body.subtype, charset="utf-8")
    return part


def _status_blocks(content: bytes) -> list[Message]:
    """Split a delivery-status body into its header blocks."""
    parser = BytesHeaderParser(policy=SMTP)
    blocks = _BLANK_LINE.split(content)
    return [parser.parsebytes(block) for block in blocks if block.strip()]


def _attachment_part(attachment: Attachment) -> MIMEPart:
    """
    Wrap attachment bytes unchanged in a MIME part.

    message/* parts may not be base64 encoded, they are carried as 8bit
    in canonical CRLF form.
    """
    maintype, subtype = _split_mime_type(attachment.mime_type)
    content = attachment.content
    if maintype == "message":
        content = _LINE_END.sub(b"\r\n", content)

    part = MIMEPart(policy=SMTP)
    part.set_content(
        content,
        maintype=maintype,
        subtype=subtype,
        cte="8bit" if maintype == "message" else "base64",
        disposition="attachment",
        filename=attachment.filename,
    )
    if (maintype, subtype) == ("message", "delivery-status"):
        # the generator renders delivery-status bodies block by block
        part.set_payload(_status_blocks(content))
    return part


def _unfold(value: str) -> str:
    return " ".join(value.splitlines())


def build(
    subject_prefix: str,
    body: SelectedBody,
    attachments: list[Attachment],
    from_address: str,
    to_addresses: list[str],
    original_subject: str | None = None,
) -> OutboundMessage:
    """
    Build the outbound message.

    The subject is always subject_prefix + original subject (or just the
    prefix). The MIME structure is a multipart/mixed envelope holding the
    body part first and then one part per attachment, in input order.

    Args:
        subject_prefix: Prefix for the new subject
        body: Body chosen by the selector
        attachments: Attachments of the original message
        from_address: Sender address
        to_addresses: Recipient addresses (at least one)
        original_subject: Subject of the original message, if any

    Returns:
        OutboundMessage with its MIME structure

    Raises:
        AddressError: On the first invalid address, or if there are no recipients
    """
    validate_address(from_address)
    if not to_addresses:
        raise AddressError(invalid_address="", detail="no recipients configured")
    for address in to_addresses:
        validate_address(address)

    subject = subject_prefix + (original_subject or "")

    envelope = EmailMessage(policy=SMTP)
    envelope["From"] = from_address
    envelope["To"] = ", ".join(to_addresses)
    envelope["Subject"] = _unfold(subject)
    envelope["MIME-Version"] = "1.0"
    envelope.make_mixed()

    envelope.attach(_body_part(body))
    for attachment in attachments:
        envelope.attach(_attachment_part(attachment))

    return OutboundMessage(
        from_address=from_address,
        to_addresses=list(to_addresses),
        subject=subject,
        body=body,
        attachments=list(attachments),
        mime=envelope,
    )
