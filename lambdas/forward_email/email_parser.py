"""
Email Parser Module

Decodes a raw RFC 5322/MIME message into its subject, addressing,
body alternatives and attachment list.

Parsing is all-or-nothing: a structurally broken message raises
ParseError instead of returning a partial result.
"""

from dataclasses import dataclass, field
from email import errors
from email.message import EmailMessage
from email.parser import BytesParser
from email.policy import SMTP, default as default_policy
from email.utils import getaddresses
from typing import Iterator

from relay.exceptions import ParseError, ParseFailure

HTML_CONTENT_TYPE = "text/html"
PLAIN_CONTENT_TYPE = "text/plain"

KNOWN_TRANSFER_ENCODINGS = frozenset(
    {
        "7bit",
        "8bit",
        "binary",
        "base64",
        "quoted-printable",
        "uuencode",
        "x-uuencode",
        "uue",
        "x-uue",
    }
)

_HEADER_DEFECTS = (
    errors.MissingHeaderBodySeparatorDefect,
    errors.FirstHeaderLineIsContinuationDefect,
    errors.MisplacedEnvelopeHeaderDefect,
)

_MULTIPART_DEFECTS = (
    errors.NoBoundaryInMultipartDefect,
    errors.StartBoundaryNotFoundDefect,
    errors.CloseBoundaryNotFoundDefect,
    errors.MultipartInvariantViolationDefect,
)


@dataclass(frozen=True)
class Attachment:
    """A non-inline part, transfer-decoded."""

    filename: str
    mime_type: str
    content: bytes

    @property
    def size_bytes(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class BodyAlternative:
    """One inline text rendering of the message body."""

    content_type: str
    text: str


@dataclass
class DecodedMessage:
    """Result of decoding a raw message."""

    subject: str | None = None
    from_address: str = ""
    to_addresses: list[str] = field(default_factory=list)
    message_id: str | None = None

    # At most one text/html and one text/plain, in document order
    body_alternatives: list[BodyAlternative] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)

    def _alternative(self, content_type: str) -> str | None:
        for alternative in self.body_alternatives:
            if alternative.content_type == content_type:
                return alternative.text
        return None

    @property
    def html(self) -> str | None:
        return self._alternative(HTML_CONTENT_TYPE)

    @property
    def plain(self) -> str | None:
        return self._alternative(PLAIN_CONTENT_TYPE)


def _iter_tree(part: EmailMessage) -> Iterator[EmailMessage]:
    """
    Yield a part and all its descendants, depth first.

    Attached messages (message/rfc822) are leaves: they are forwarded
    whole, so their inner structure is never inspected.
    """
    yield part
    if part.get_content_maintype() == "multipart" and part.is_multipart():
        for sub_part in part.iter_parts():
            yield from _iter_tree(sub_part)


def _check_defects(msg: EmailMessage) -> None:
    """Raise ParseError for defects that make the structure unreliable."""
    for part in _iter_tree(msg):
        for defect in part.defects:
            if isinstance(defect, _HEADER_DEFECTS):
                raise ParseError(ParseFailure.MALFORMED_HEADERS, type(defect).__name__)
            if isinstance(defect, _MULTIPART_DEFECTS):
                raise ParseError(
                    ParseFailure.UNTERMINATED_MULTIPART, type(defect).__name__
                )


def _is_attachment(part: EmailMessage) -> bool:
    """
    Check whether a leaf is meant to be offered as a file.

    A filename is enough, whatever the declared disposition.
    """
    if part.get_content_disposition() == "attachment":
        return True
    return part.get_filename() is not None


def _transfer_encoding(part: EmailMessage) -> str:
    header = part.get("Content-Transfer-Encoding")
    if header is None:
        return "7bit"
    return str(header).strip().lower()


def _decode_payload(part: EmailMessage) -> bytes:
    """Return the part content with its transfer encoding removed."""
    if part.get_content_maintype() == "message" and part.is_multipart():
        # message/* payloads are parsed messages, render them back in
        # canonical CRLF form
        return b"".join(
            sub_part.as_bytes(policy=SMTP) for sub_part in part.get_payload()
        )

    encoding = _transfer_encoding(part)
    if encoding not in KNOWN_TRANSFER_ENCODINGS:
        raise ParseError(
            ParseFailure.UNSUPPORTED_ENCODING,
            f"unknown transfer encoding '{encoding}'",
        )

    return part.get_payload(decode=True) or b""


def _decode_text(part: EmailMessage, payload: bytes) -> str:
    charset = part.get_content_charset() or "utf-8"
    try:
        return payload.decode(charset, errors="replace")
    except LookupError as e:
        raise ParseError(
            ParseFailure.UNSUPPORTED_ENCODING,
            f"unknown charset '{charset}'",
        ) from e


def _extract_addresses(header_values: list[str] | None) -> list[str]:
    """Extract bare addresses from one or more address headers."""
    if not header_values:
        return []
    return [addr for _, addr in getaddresses([str(v) for v in header_values]) if addr]


def _optional_header(msg: EmailMessage, name: str) -> str | None:
    value = msg.get(name)
    return None if value is None else str(value)


def _collect_parts(
    msg: EmailMessage,
) -> tuple[list[BodyAlternative], list[Attachment]]:
    alternatives: dict[str, BodyAlternative] = {}
    attachments: list[Attachment] = []

    for part in _iter_tree(msg):
        if part.get_content_maintype() == "multipart":
            continue

        content_type = part.get_content_type()
        payload = _decode_payload(part)

        if (
            content_type in (PLAIN_CONTENT_TYPE, HTML_CONTENT_TYPE)
            and content_type not in alternatives
            and not _is_attachment(part)
        ):
            alternatives[content_type] = BodyAlternative(
                content_type=content_type,
                text=_decode_text(part, payload),
            )
            continue

        filename = part.get_filename()
        if not filename:
            filename = f"attachment.{part.get_content_subtype()}"

        attachments.append(
            Attachment(
                filename=filename,
                mime_type=content_type,
                content=payload,
            )
        )

    return list(alternatives.values()), attachments


def decode(raw: bytes) -> DecodedMessage:
    """
    Parse raw email content (MIME format) into a DecodedMessage.

    Walks the multipart tree to any depth. The first inline text/plain
    and text/html leaves become body alternatives; every other leaf,
    and any leaf carrying a filename, becomes an attachment.

    Args:
        raw: Raw email content as bytes

    Returns:
        DecodedMessage with transfer-decoded body text and attachments

    Raises:
        ParseError: If headers are malformed, a multipart is not terminated,
            or a part uses an unknown transfer encoding or charset
    """
    if not raw or not raw.strip():
        raise ParseError(ParseFailure.MALFORMED_HEADERS, "empty message")

    try:
        msg = BytesParser(policy=default_policy).parsebytes(raw)
    except (errors.MessageError, ValueError, TypeError) as e:
        raise ParseError(ParseFailure.MALFORMED_HEADERS, str(e)) from e

    if not msg.keys():
        raise ParseError(ParseFailure.MALFORMED_HEADERS, "no header block")

    _check_defects(msg)

    try:
        subject = _optional_header(msg, "Subject")
        message_id = _optional_header(msg, "Message-ID")
        from_addresses = _extract_addresses(msg.get_all("From"))
        to_addresses = _extract_addresses(msg.get_all("To"))
    except (errors.MessageError, ValueError, IndexError) as e:
        raise ParseError(ParseFailure.MALFORMED_HEADERS, str(e)) from e

    body_alternatives, attachments = _collect_parts(msg)

    return DecodedMessage(
        subject=subject,
        from_address=from_addresses[0] if from_addresses else "",
        to_addresses=to_addresses,
        message_id=message_id,
        body_alternatives=body_alternatives,
        attachments=attachments,
    )
