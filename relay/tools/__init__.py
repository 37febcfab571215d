# Shared Tools
"""
AWS tool implementations used by the forwarder Lambda.
"""

from relay.tools.s3 import fetch_raw_email
from relay.tools.ses import send_raw_email

__all__ = [
    # S3 tools
    "fetch_raw_email",
    # SES tools
    "send_raw_email",
]
