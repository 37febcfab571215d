# Shared Models
"""
Pydantic models for events consumed by the forwarder.
"""

from relay.models.events import S3ObjectRef, parse_s3_event

__all__ = [
    "S3ObjectRef",
    "parse_s3_event",
]
