"""
ForwardEmail Lambda

Forwards inbound emails that SES stored in S3 to a fixed recipient list,
with a prefixed subject and the original body and attachments.

Flow:
    Inbound email
    → SES Receipt Rule (S3 action)
    → S3 ObjectCreated notification
    → This Lambda
    → SES SendRawEmail
"""

from lambdas.forward_email.body_selector import BodyType, SelectedBody, select
from lambdas.forward_email.email_parser import (
    Attachment,
    BodyAlternative,
    DecodedMessage,
    decode,
)
from lambdas.forward_email.handler import lambda_handler
from lambdas.forward_email.message_builder import OutboundMessage, build
from lambdas.forward_email.pipeline import ForwardResult, forward_raw_message
from lambdas.forward_email.serializer import serialize

__all__ = [
    "Attachment",
    "BodyAlternative",
    "BodyType",
    "DecodedMessage",
    "ForwardResult",
    "OutboundMessage",
    "SelectedBody",
    "build",
    "decode",
    "forward_raw_message",
    "lambda_handler",
    "select",
    "serialize",
]
