"""
Pytest Configuration and Shared Fixtures

Provides moto AWS mocking, sample raw emails, and test utilities.
"""

import os
from typing import Any
from unittest.mock import MagicMock

import boto3
import pytest
import structlog
from moto import mock_aws

# Set test environment before importing application modules
os.environ["MAILRELAY_FORWARD_FROM_ADDRESS"] = "forwarder@mail.acme.io"
os.environ["MAILRELAY_FORWARD_TO_ADDRESSES"] = "ops@acme.io,audit@acme.io"
os.environ["MAILRELAY_SUBJECT_PREFIX"] = "SES FW: "
os.environ["MAILRELAY_AWS_REGION"] = "us-west-2"
os.environ["AWS_DEFAULT_REGION"] = "us-west-2"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"

from relay.config import ForwardingConfig, get_settings  # noqa: E402
from tests.fixtures.emails import (  # noqa: E402
    CSV_BYTES,
    HTML_TEXT,
    INBOUND_BUCKET,
    PDF_BYTES,
    PLAIN_TEXT,
    make_raw_email,
)



@pytest.fixture(autouse=True)
def _reset_settings():
    """Drop cached settings so each test sees the current environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# --- AWS Mocking Fixtures ---


@pytest.fixture
def aws_credentials():
    """Mock AWS credentials for moto."""
    return {
        "aws_access_key_id": "testing",
        "aws_secret_access_key": "testing",
        "region_name": "us-west-2",
    }


@pytest.fixture
def mock_aws_all(aws_credentials):
    """
    Mock all AWS services used by the forwarder.

    The sender identity is verified so SendRawEmail is accepted.
    """
    with mock_aws():
        s3 = boto3.client("s3", **aws_credentials)
        s3.create_bucket(
            Bucket=INBOUND_BUCKET,
            CreateBucketConfiguration={"LocationConstraint": "us-west-2"},
        )

        ses = boto3.client("ses", **aws_credentials)
        ses.verify_email_identity(EmailAddress="forwarder@mail.acme.io")

        yield {
            "s3": s3,
            "ses": ses,
        }


# --- Configuration Fixtures ---


@pytest.fixture
def forwarding_config() -> ForwardingConfig:
    """Forwarding configuration matching the test environment."""
    return ForwardingConfig(
        from_address="forwarder@mail.acme.io",
        to_addresses=["ops@acme.io", "audit@acme.io"],
        subject_prefix="SES FW: ",
    )


@pytest.fixture
def test_logger():
    """Logger passed into the pipeline."""
    return structlog.get_logger().bind(request_id="test-request")


@pytest.fixture
def lambda_context() -> Any:
    """Minimal Lambda context."""
    context = MagicMock()
    context.aws_request_id = "req-0001"
    return context


# --- Raw Email Fixtures ---


@pytest.fixture
def plain_email() -> bytes:
    """Plain text only."""
    return make_raw_email(plain=PLAIN_TEXT)


@pytest.fixture
def alternative_email() -> bytes:
    """Plain and HTML alternatives."""
    return make_raw_email(plain=PLAIN_TEXT, html=HTML_TEXT)


@pytest.fixture
def email_with_attachments() -> bytes:
    """HTML body with two attachments."""
    return make_raw_email(
        plain=PLAIN_TEXT,
        html=HTML_TEXT,
        attachments=[
            ("report.pdf", "application/pdf", PDF_BYTES),
            ("totals.csv", "text/csv", CSV_BYTES),
        ],
    )


@pytest.fixture
def attachment_only_email() -> bytes:
    """No text parts, one attachment."""
    return make_raw_email(
        attachments=[("report.pdf", "application/pdf", PDF_BYTES)],
    )
