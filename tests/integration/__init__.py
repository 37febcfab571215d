"""
Integration tests for the mail forwarder.

These tests use mocked AWS services to run the complete flow from an
S3 notification through the Lambda handler to SES.
"""
