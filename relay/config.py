"""
Configuration Management

Pydantic-settings based configuration for the mail forwarder.
All settings can be overridden via environment variables.
"""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class ForwardingConfig(BaseModel):
    """Addressing and subject rewrite applied to every forwarded message."""

    model_config = ConfigDict(frozen=True)

    from_address: str = Field(
        ...,
        min_length=1,
        description="SES verified sender address",
    )
    to_addresses: list[str] = Field(
        ...,
        min_length=1,
        description="Recipients of the forwarded message, in order",
    )
    subject_prefix: str = Field(
        default="",
        description="Prefix prepended to the original subject",
    )


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables are prefixed with MAILRELAY_ and are case-insensitive.
    Example: MAILRELAY_FORWARD_TO_ADDRESSES=ops@acme.io,audit@acme.io
    """

    model_config = SettingsConfigDict(
        env_prefix="MAILRELAY_",
        env_file=[".env.local", ".env"],  # Try .env.local first
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Forwarding Configuration
    forward_from_address: str = Field(
        default="forwarder@mail.example.com",
        description="From address for forwarded emails (must be SES verified)",
    )
    forward_to_addresses: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Comma-separated recipients of forwarded emails",
    )
    subject_prefix: str = Field(
        default="SES FW: ",
        description="Prefix added to the subject of forwarded emails",
    )

    # SES Configuration
    ses_configuration_set: str | None = Field(
        default=None,
        description="SES configuration set for tracking",
    )
    ses_endpoint_url: str | None = Field(
        default=None,
        description="SES endpoint URL (for local development)",
    )

    # S3 Configuration
    s3_endpoint_url: str | None = Field(
        default=None,
        description="S3 endpoint URL (for local development)",
    )

    # AWS Configuration
    aws_region: str = Field(
        default="us-west-2",
        description="AWS region",
    )

    # Application Configuration
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("forward_to_addresses", mode="before")
    @classmethod
    def _split_addresses(cls, value: object) -> object:
        if isinstance(value, str):
            return [addr.strip() for addr in value.split(",") if addr.strip()]
        return value

    @property
    def forwarding_config(self) -> ForwardingConfig:
        """
        Forwarding configuration for the message builder.

        Raises:
            pydantic.ValidationError: If no recipients are configured
        """
        return ForwardingConfig(
            from_address=self.forward_from_address,
            to_addresses=self.forward_to_addresses,
            subject_prefix=self.subject_prefix,
        )

    @property
    def s3_config(self) -> dict:
        """S3 client configuration."""
        config = {"region_name": self.aws_region}
        if self.s3_endpoint_url:
            config["endpoint_url"] = self.s3_endpoint_url
        return config

    @property
    def ses_config(self) -> dict:
        """SES client configuration."""
        config = {"region_name": self.aws_region}
        if self.ses_endpoint_url:
            config["endpoint_url"] = self.ses_endpoint_url
        return config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are loaded only once.
    Call get_settings.cache_clear() in tests after changing the environment.
    """
    return Settings()
