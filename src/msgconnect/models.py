"""Pydantic models shared across msgconnect.

This is the single source of truth for data shapes crossing the package
boundary.  The models fall into two groups:

**Configuration models** -- set once at startup and never mutated:
    :class:`Credentials`, :class:`RetryPolicy` and
    :class:`ConnectionSettings`.

**Send models** -- what callers hand in and get back per send:
    :class:`OutboundMessage` and :class:`SendOutcome`.

The in-memory token state lives in :mod:`msgconnect.auth.state` because it
never leaves the process.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from msgconnect.failures import FailureKind

DEFAULT_SCOPE = "message.send message.read"
"""Permission names requested with every token exchange."""

DEFAULT_AUTH_BASE_URL = "https://auth.messaging.example.com"
DEFAULT_API_BASE_URL = "https://api.messaging.example.com/v1"


# --- Configuration ---


class Credentials(BaseModel):
    """Client credentials exchanged for an access token.

    Example::

        Credentials(client_id="my-app", client_secret="s3cret")
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(min_length=1)
    client_secret: SecretStr
    grant_type: Literal["client_credentials"] = "client_credentials"
    scope: str = DEFAULT_SCOPE

    @field_validator("client_secret")
    @classmethod
    def _secret_not_empty(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("client_secret must not be empty")
        return value

    def basic_auth(self) -> tuple[str, str]:
        """Return the ``(username, password)`` pair for HTTP Basic auth."""
        return self.client_id, self.client_secret.get_secret_value()

    def token_form(self) -> dict[str, str]:
        """Return the form fields posted to the token endpoint."""
        return {"grant_type": self.grant_type, "scope": self.scope}


class RetryPolicy(BaseModel):
    """Bounds for the authentication retry loop."""

    model_config = ConfigDict(frozen=True)

    max_auth_attempts: int = Field(default=3, ge=1, description="Token exchange attempts per authentication")
    backoff_delay: float = Field(default=5.0, ge=0, description="Seconds to wait between attempts")


class ConnectionSettings(BaseModel):
    """Endpoints and request settings for one messaging API connection.

    Built by :func:`~msgconnect.config.load_settings` from the environment,
    or directly by callers and tests.
    """

    model_config = ConfigDict(frozen=True)

    auth_base_url: str = Field(default=DEFAULT_AUTH_BASE_URL, description="Base URL of the OAuth2 server")
    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, description="Base URL of the messaging API")
    scope: str = Field(default=DEFAULT_SCOPE, description="Space-separated permission names")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    @property
    def token_url(self) -> str:
        return f"{self.auth_base_url.rstrip('/')}/token"

    @property
    def send_url(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/message/send/"


# --- Send ---


class OutboundMessage(BaseModel):
    """A message to submit through the send endpoint.

    Extra fields are preserved and serialised alongside the declared ones,
    so API-specific options can ride along without a model change.
    """

    model_config = ConfigDict(extra="allow")

    sender: str = Field(min_length=1)
    recipients: list[str] = Field(min_length=1)
    content: Any

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class SendOutcome(BaseModel):
    """Result of one send attempt.

    ``success`` and ``status_code`` are the contract; ``kind`` and
    ``detail`` say why a failed send failed.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    status_code: int
    kind: Optional[FailureKind] = None
    detail: Optional[str] = None

    @classmethod
    def ok(cls) -> SendOutcome:
        return cls(success=True, status_code=int(HTTPStatus.OK))

    @classmethod
    def failed(
        cls,
        status_code: int,
        kind: FailureKind,
        detail: Optional[str] = None,
    ) -> SendOutcome:
        return cls(success=False, status_code=int(status_code), kind=kind, detail=detail)

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == HTTPStatus.UNAUTHORIZED
