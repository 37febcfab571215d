"""
End-to-End Integration Tests for the Forwarding Flow

Stores a raw email in a moto-mocked S3 bucket, invokes the Lambda
handler with the matching notification and inspects what SES sent.
"""

import json

import pytest
from moto.core import DEFAULT_ACCOUNT_ID
from moto.ses.models import ses_backends

from lambdas.forward_email.email_parser import decode
from lambdas.forward_email.handler import lambda_handler
from tests.fixtures.emails import (
    CSV_BYTES,
    INBOUND_BUCKET,
    PDF_BYTES,
    make_nested_email,
    make_s3_event,
)


def _sent_messages() -> list:
    return ses_backends[DEFAULT_ACCOUNT_ID]["us-west-2"].sent_messages


@pytest.mark.integration
class TestForwardFlowE2E:
    """End-to-end tests from S3 notification to SES submission."""

    def test_stored_email_forwarded(self, mock_aws_all, email_with_attachments, lambda_context):
        """
        Test complete flow: S3 object -> notification -> handler -> SES.

        Verify that:
        1. The handler reports success with the SES message id
        2. SES received the readdressed message
        3. Attachments arrive byte for byte
        """
        key = "emails/4f1d0c2a"
        mock_aws_all["s3"].put_object(
            Bucket=INBOUND_BUCKET,
            Key=key,
            Body=email_with_attachments,
        )

        response = lambda_handler(make_s3_event(INBOUND_BUCKET, key), lambda_context)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "forwarded"
        assert body["attachment_count"] == 2

        sent = _sent_messages()
        assert len(sent) == 1
        assert sent[0].id == body["message_id"]
        assert sent[0].source == "forwarder@mail.acme.io"
        assert sent[0].destinations == ["ops@acme.io", "audit@acme.io"]

        forwarded = decode(sent[0].raw_data.encode("utf-8"))
        assert forwarded.subject == "SES FW: Quarterly numbers"
        assert [att.content for att in forwarded.attachments] == [PDF_BYTES, CSV_BYTES]

    def test_nested_email_forwarded(self, mock_aws_all, lambda_context):
        """Test a deeply nested message keeps its inline image and PDF."""
        key = "emails/nested"
        mock_aws_all["s3"].put_object(
            Bucket=INBOUND_BUCKET,
            Key=key,
            Body=make_nested_email(),
        )

        response = lambda_handler(make_s3_event(INBOUND_BUCKET, key), lambda_context)

        assert response["statusCode"] == 200
        forwarded = decode(_sent_messages()[0].raw_data.encode("utf-8"))
        assert forwarded.html is not None
        assert [att.filename for att in forwarded.attachments] == [
            "attachment.png",
            "report.pdf",
        ]

    def test_missing_object(self, mock_aws_all, lambda_context):
        """Test a notification for a missing object fails with 500."""
        response = lambda_handler(
            make_s3_event(INBOUND_BUCKET, "emails/does-not-exist"),
            lambda_context,
        )

        assert response["statusCode"] == 500
        assert _sent_messages() == []

    def test_unverified_sender_rejected(
        self, monkeypatch, mock_aws_all, plain_email, lambda_context
    ):
        """Test SES rejection of an unverified sender fails with 500."""
        monkeypatch.setenv("MAILRELAY_FORWARD_FROM_ADDRESS", "someone@unverified.acme.io")
        key = "emails/unverified"
        mock_aws_all["s3"].put_object(Bucket=INBOUND_BUCKET, Key=key, Body=plain_email)

        response = lambda_handler(make_s3_event(INBOUND_BUCKET, key), lambda_context)

        assert response["statusCode"] == 500
        assert "MessageRejected" in json.loads(response["body"])["error"]

    def test_undecodable_email_not_sent(self, mock_aws_all, lambda_context):
        """Test a truncated upload is rejected without sending."""
        key = "emails/truncated"
        mock_aws_all["s3"].put_object(
            Bucket=INBOUND_BUCKET,
            Key=key,
            Body=b"From: a@sender.io\r\nContent-Type: multipart/mixed; boundary=zz\r\n\r\n--zz\r\n\r\nhi\r\n",
        )

        response = lambda_handler(make_s3_event(INBOUND_BUCKET, key), lambda_context)

        assert response["statusCode"] == 400
        assert _sent_messages() == []
