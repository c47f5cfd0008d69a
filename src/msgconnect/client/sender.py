"""Message submission with the cached bearer token.

:class:`MessageSender` posts one message to ``{api_base_url}/message/send/``
and reports a :class:`~msgconnect.models.SendOutcome`.  It performs exactly
one HTTP request per call and never raises: a 200 is success, any other
status is captured in the outcome, and a fault before a response arrives
is reported with the 401 placeholder status.

:class:`AsyncMessageSender` is the :class:`httpx.AsyncClient` twin.
"""

from __future__ import annotations

import json
import logging
from http import HTTPStatus
from typing import Any, Mapping, Protocol, Union

import httpx

from msgconnect.failures import FailureKind
from msgconnect.models import ConnectionSettings, OutboundMessage, SendOutcome

logger = logging.getLogger(__name__)

MessageInput = Union[OutboundMessage, Mapping[str, Any]]

PLACEHOLDER_STATUS = HTTPStatus.UNAUTHORIZED
"""Status reported when no response was received."""


class TokenSource(Protocol):
    @property
    def access_token(self) -> str: ...


def encode_message(message: MessageInput) -> bytes:
    """Serialise *message* to a JSON request body.

    Raises:
        TypeError: If the message contains values JSON cannot encode.
        ValueError: If the message contains circular references or NaN-like
            values JSON refuses.
    """
    if isinstance(message, OutboundMessage):
        payload: Any = message.to_payload()
    else:
        payload = dict(message)
    return json.dumps(payload, allow_nan=False).encode("utf-8")


def build_headers(access_token: str) -> dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    # Without a token the API answers 401, which drives re-authentication.
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    return headers


def outcome_from_response(response: httpx.Response) -> SendOutcome:
    """Map a send endpoint response to a :class:`SendOutcome`."""
    status = response.status_code
    if status == HTTPStatus.OK:
        return SendOutcome.ok()

    kind = FailureKind.UNAUTHORIZED if status == HTTPStatus.UNAUTHORIZED else FailureKind.SERVER_ERROR
    detail = f"HTTP {status}"
    if response.text:
        detail = f"{detail}: {response.text[:200]}"
    return SendOutcome.failed(status, kind, detail)


class MessageSender:
    """Send messages through the messaging API.

    Args:
        client: HTTP client shared with the authenticator.
        settings: Endpoint settings.
        tokens: Anything exposing the current ``access_token``, normally a
            :class:`~msgconnect.auth.state.TokenStore`.
    """

    def __init__(
        self,
        client: httpx.Client,
        settings: ConnectionSettings,
        tokens: TokenSource,
    ) -> None:
        self._client = client
        self._settings = settings
        self._tokens = tokens

    def send(self, message: MessageInput) -> SendOutcome:
        """Submit *message* once using the current token."""
        try:
            body = encode_message(message)
        except (TypeError, ValueError) as exc:
            logger.error("Message could not be encoded: %s", exc)
            return SendOutcome.failed(PLACEHOLDER_STATUS, FailureKind.INVALID_MESSAGE, str(exc))

        try:
            response = self._client.post(
                self._settings.send_url,
                content=body,
                headers=build_headers(self._tokens.access_token),
            )
        except (httpx.HTTPError, RuntimeError) as exc:
            # httpx raises RuntimeError for a request on a closed client.
            if isinstance(exc, RuntimeError) and not self._client.is_closed:
                raise
            logger.warning("Send request failed: %s", exc)
            return SendOutcome.failed(PLACEHOLDER_STATUS, FailureKind.TRANSPORT, str(exc))

        outcome = outcome_from_response(response)
        if not outcome.success:
            logger.warning("Send rejected: %s", outcome.detail)
        return outcome


class AsyncMessageSender:
    """Async variant of :class:`MessageSender`."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: ConnectionSettings,
        tokens: TokenSource,
    ) -> None:
        self._client = client
        self._settings = settings
        self._tokens = tokens

    async def send(self, message: MessageInput) -> SendOutcome:
        try:
            body = encode_message(message)
        except (TypeError, ValueError) as exc:
            logger.error("Message could not be encoded: %s", exc)
            return SendOutcome.failed(PLACEHOLDER_STATUS, FailureKind.INVALID_MESSAGE, str(exc))

        try:
            response = await self._client.post(
                self._settings.send_url,
                content=body,
                headers=build_headers(self._tokens.access_token),
            )
        except (httpx.HTTPError, RuntimeError) as exc:
            # httpx raises RuntimeError for a request on a closed client.
            if isinstance(exc, RuntimeError) and not self._client.is_closed:
                raise
            logger.warning("Send request failed: %s", exc)
            return SendOutcome.failed(PLACEHOLDER_STATUS, FailureKind.TRANSPORT, str(exc))

        outcome = outcome_from_response(response)
        if not outcome.success:
            logger.warning("Send rejected: %s", outcome.detail)
        return outcome
