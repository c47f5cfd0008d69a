"""Tests for the shared pydantic models, failure kinds and exceptions."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from msgconnect.client.retry import is_retryable, needs_reauthentication
from msgconnect.exceptions import (
    AuthError,
    ConfigError,
    ConnectionError_,
    MsgConnectError,
    TokenResponseError,
)
from msgconnect.failures import FailureKind
from msgconnect.models import ConnectionSettings, Credentials, OutboundMessage, RetryPolicy, SendOutcome


class TestCredentials:
    def test_secret_hidden_in_repr(self) -> None:
        credentials = Credentials(client_id="cid", client_secret="hunter2")
        assert "hunter2" not in repr(credentials)
        assert "hunter2" not in str(credentials)

    def test_frozen(self) -> None:
        credentials = Credentials(client_id="cid", client_secret="s")
        with pytest.raises(ValidationError):
            credentials.client_id = "other"

    def test_grant_type_is_fixed(self) -> None:
        with pytest.raises(ValidationError):
            Credentials(client_id="cid", client_secret="s", grant_type="password")


class TestSettings:
    def test_urls_tolerate_trailing_slash(self) -> None:
        settings = ConnectionSettings(auth_base_url="https://a.test/", api_base_url="https://b.test/v1/")
        assert settings.token_url == "https://a.test/token"
        assert settings.send_url == "https://b.test/v1/message/send/"

    def test_retry_policy_bounds(self) -> None:
        with pytest.raises(ValidationError):
            RetryPolicy(max_auth_attempts=0)
        with pytest.raises(ValidationError):
            RetryPolicy(backoff_delay=-0.1)
        assert RetryPolicy(backoff_delay=0).backoff_delay == 0


class TestOutboundMessage:
    def test_requires_recipients(self) -> None:
        with pytest.raises(ValidationError):
            OutboundMessage(sender="ops", recipients=[], content="x")

    def test_payload_keeps_extra_fields(self) -> None:
        message = OutboundMessage(sender="ops", recipients=["u"], content={"text": "hi"}, ttl=60)
        assert message.to_payload() == {"sender": "ops", "recipients": ["u"], "content": {"text": "hi"}, "ttl": 60}


class TestSendOutcome:
    def test_ok(self) -> None:
        outcome = SendOutcome.ok()
        assert outcome.success is True
        assert outcome.status_code == 200
        assert outcome.kind is None

    def test_failed(self) -> None:
        outcome = SendOutcome.failed(401, FailureKind.UNAUTHORIZED, "expired")
        assert outcome.success is False
        assert outcome.is_unauthorized
        assert outcome.detail == "expired"

    def test_every_failure_is_resent(self) -> None:
        for status, kind in [(400, FailureKind.SERVER_ERROR), (500, FailureKind.SERVER_ERROR), (401, FailureKind.TRANSPORT)]:
            assert is_retryable(SendOutcome.failed(status, kind))

    def test_only_401_reauthenticates(self) -> None:
        assert needs_reauthentication(SendOutcome.failed(401, FailureKind.UNAUTHORIZED))
        assert not needs_reauthentication(SendOutcome.failed(503, FailureKind.SERVER_ERROR))


class TestExceptions:
    @pytest.mark.parametrize(
        "exc_class, kind",
        [
            (AuthError, FailureKind.NOT_AUTHENTICATED),
            (TokenResponseError, FailureKind.MALFORMED_RESPONSE),
            (ConnectionError_, FailureKind.TRANSPORT),
            (ConfigError, FailureKind.CONFIGURATION),
        ],
    )
    def test_kinds(self, exc_class: type[MsgConnectError], kind: FailureKind) -> None:
        exc = exc_class("boom")
        assert isinstance(exc, MsgConnectError)
        assert exc.kind is kind
        assert str(exc) == "boom"

    def test_kind_override(self) -> None:
        assert AuthError("x", kind=FailureKind.TRANSPORT).kind is FailureKind.TRANSPORT

    def test_failure_kind_values(self) -> None:
        assert FailureKind.TRANSPORT == "transport"
        assert FailureKind("malformed_response") is FailureKind.MALFORMED_RESPONSE
