"""Data models for pillow-request.

All models use Pydantic v2.
"""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# Response Models
# =============================================================================


class ResponseEnvelope(BaseModel):
    """Normalized result of one HTTP exchange, produced by the transport.

    Header keys are lowercase. set-cookie is always a list of raw cookie
    strings; other repeated headers are joined with ", ".
    A network-level failure still produces an envelope, with response_error
    set and response_status_code None.
    """

    model_config = ConfigDict(extra="forbid")

    request_url: str = Field(description="URL the request was sent to")
    response_headers: dict[str, str | list[str]] = Field(
        default_factory=dict, description="Response headers (lowercase keys)"
    )
    response_status_code: int | None = Field(default=None, description="HTTP status code")
    response_body: str = Field(default="", description="Response body decoded as text")
    response_error: str | None = Field(
        default=None, description="Network error message if the request did not complete"
    )
    elapsed_time: float = Field(default=0.0, description="Elapsed time in milliseconds")

    def set_cookies(self) -> list[str]:
        """Raw Set-Cookie strings sent with the response."""
        value = self.response_headers.get("set-cookie")
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return list(value)


# =============================================================================
# Auth Models
# =============================================================================


class AuthOptions(BaseModel):
    """Credentials accepted by the top-level request functions.

    username + password take precedence over token when both are provided.
    """

    model_config = ConfigDict(extra="forbid")

    username: str | None = Field(default=None, description="Basic auth username")
    password: str | None = Field(default=None, description="Basic auth password")
    token: str | None = Field(default=None, description="Authorization header value")

    @property
    def has_basic(self) -> bool:
        return bool(self.username) and bool(self.password)


# =============================================================================
# Configuration Models
# =============================================================================


class TransportConfig(BaseModel):
    """Settings for the httpx-backed transport."""

    model_config = ConfigDict(extra="forbid")

    verify_ssl: bool = Field(default=True, description="Verify server certificates")
    ca_bundle: str | None = Field(default=None, description="Path to a CA bundle")
    cert: str | None = Field(default=None, description="Client certificate path (mTLS)")
    key: str | None = Field(default=None, description="Client key path (mTLS)")
    key_password: str | None = Field(default=None, description="Password for the client key")
    ciphers: str | None = Field(default=None, description="OpenSSL cipher string")
    follow_redirects: bool = Field(default=False, description="Follow 3xx redirects")
    default_timeout_ms: float = Field(
        default=30000.0, description="Timeout used when a request sets none"
    )

    @field_validator("default_timeout_ms")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("default_timeout_ms must be positive")
        return v

    @model_validator(mode="after")
    def check_client_cert(self) -> Self:
        if (self.cert is None) != (self.key is None):
            raise ValueError("cert and key must be provided together")
        return self


class ClientConfig(BaseModel):
    """Top-level configuration file structure."""

    model_config = ConfigDict(extra="forbid")

    use_https: bool = Field(default=False, description="Protocol for schemeless URLs")
    timeout_ms: float | None = Field(default=None, description="Per-request timeout hint")
    headers: dict[str, str | list[str]] = Field(
        default_factory=dict,
        description="Default headers (supports ${ENV_VAR} substitution)",
    )
    transport: TransportConfig = Field(
        default_factory=TransportConfig, description="Transport settings"
    )

    @field_validator("timeout_ms")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("timeout_ms must be positive")
        return v
