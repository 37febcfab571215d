"""
Custom Exceptions for the SES Mail Forwarder

Every core operation fails closed with one of these typed errors.
The Lambda handler is the only place they are caught and logged.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ParseFailure(str, Enum):
    """Why a raw message could not be decoded."""

    MALFORMED_HEADERS = "malformed_headers"
    UNTERMINATED_MULTIPART = "unterminated_multipart"
    UNSUPPORTED_ENCODING = "unsupported_encoding"


class SerializationFailure(str, Enum):
    """Why an outbound message could not be rendered to bytes."""

    IO_FAILURE = "io_failure"
    ENCODING_FAILURE = "encoding_failure"


class RelayError(Exception):
    """Base exception for the mail forwarder."""

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


@dataclass
class ParseError(RelayError):
    """Raw message bytes are not a usable RFC 5322/MIME message."""

    reason: ParseFailure
    detail: str | None = None

    def __init__(self, reason: ParseFailure, detail: str | None = None) -> None:
        self.reason = reason
        self.detail = detail
        super().__init__(
            f"Failed to parse message: {reason.value}"
            f"{f' - {detail}' if detail else ''}",
            reason=reason.value,
        )


@dataclass
class AddressError(RelayError):
    """A configured sender or recipient address is not syntactically valid."""

    invalid_address: str
    detail: str | None = None

    def __init__(self, invalid_address: str, detail: str | None = None) -> None:
        self.invalid_address = invalid_address
        self.detail = detail
        super().__init__(
            f"Invalid email address: '{invalid_address}'"
            f"{f'. {detail}' if detail else ''}",
            invalid_address=invalid_address,
        )


@dataclass
class SerializationError(RelayError):
    """Outbound message could not be rendered to raw bytes."""

    reason: SerializationFailure
    detail: str | None = None

    def __init__(
        self,
        reason: SerializationFailure,
        detail: str | None = None,
    ) -> None:
        self.reason = reason
        self.detail = detail
        super().__init__(
            f"Failed to serialize message: {reason.value}"
            f"{f' - {detail}' if detail else ''}",
            reason=reason.value,
        )


@dataclass
class SESError(RelayError):
    """SES email operation failed."""

    operation: str  # "send_raw"
    recipient: str | None = None

    def __init__(
        self,
        operation: str,
        recipient: str | None = None,
        error_message: str | None = None,
    ) -> None:
        self.operation = operation
        self.recipient = recipient
        super().__init__(
            f"SES {operation} failed{f' for {recipient}' if recipient else ''}: "
            f"{error_message or 'Unknown error'}",
            operation=operation,
            recipient=recipient,
            error_message=error_message,
        )


@dataclass
class S3Error(RelayError):
    """S3 operation failed."""

    operation: str  # "download"
    bucket: str
    key: str | None = None

    def __init__(
        self,
        operation: str,
        bucket: str,
        key: str | None = None,
        error_message: str | None = None,
    ) -> None:
        self.operation = operation
        self.bucket = bucket
        self.key = key
        super().__init__(
            f"S3 {operation} failed for s3://{bucket}/{key or '*'}: "
            f"{error_message or 'Unknown error'}",
            operation=operation,
            bucket=bucket,
            key=key,
            error_message=error_message,
        )
