# Shared Infrastructure for the Mail Forwarder
"""
Shared infrastructure components for the SES mail forwarder.

This package provides:
- Configuration management
- Custom exceptions
- Pydantic models for S3 event notifications
- Tool implementations for S3 and SES
"""

from relay.config import ForwardingConfig, Settings, get_settings
from relay.exceptions import (
    AddressError,
    ParseError,
    ParseFailure,
    RelayError,
    S3Error,
    SerializationError,
    SerializationFailure,
    SESError,
)

__all__ = [
    # Exceptions
    "RelayError",
    "ParseError",
    "ParseFailure",
    "AddressError",
    "SerializationError",
    "SerializationFailure",
    "S3Error",
    "SESError",
    # Config
    "ForwardingConfig",
    "Settings",
    "get_settings",
]
