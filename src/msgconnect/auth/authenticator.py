"""OAuth2 Client Credentials authenticator.

This module provides :class:`Authenticator`, which performs the
non-interactive Client Credentials grant (:rfc:`6749` section 4.4) against
``{auth_base_url}/token``: the ``client_id`` and ``client_secret`` travel as
HTTP Basic credentials, ``grant_type`` and ``scope`` as form fields.

Each :meth:`Authenticator.authenticate` call discards the cached token and
runs up to ``max_auth_attempts`` exchanges, waiting ``backoff_delay``
seconds before every attempt after the first.  A transport error, an error
status or an unusable body fails only that attempt; the caller sees a
single boolean once the loop ends.

See Also:
    :mod:`msgconnect.auth.state` for the token state machine.
    :mod:`msgconnect.auth.async_authenticator` for the asyncio variant.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import httpx

from msgconnect.auth.state import TokenPresent, TokenStore
from msgconnect.exceptions import (
    AuthError,
    ConfigError,
    ConnectionError_,
    MsgConnectError,
    TokenResponseError,
)
from msgconnect.models import ConnectionSettings, Credentials

logger = logging.getLogger(__name__)


def parse_token_response(response: httpx.Response) -> str:
    """Extract the access token from a token endpoint response.

    Args:
        response: The raw response from the token endpoint.

    Returns:
        The non-empty ``access_token`` value.

    Raises:
        AuthError: If the endpoint answered with an error status.
        TokenResponseError: If the body is not a JSON object or its
            ``access_token`` is missing, empty or not a string.
    """
    if not response.is_success:
        raise AuthError(
            f"Token request failed with status {response.status_code}: "
            f"{response.text[:200]}"
        )

    try:
        token_data: Any = response.json()
    except ValueError as exc:
        raise TokenResponseError(f"Token response is not valid JSON: {exc}") from exc

    if not isinstance(token_data, dict):
        raise TokenResponseError("Token response is not a JSON object")

    access_token = token_data.get("access_token")
    if not isinstance(access_token, str) or not access_token:
        raise TokenResponseError("Token response missing 'access_token' field")
    return access_token


class CredentialHolder:
    """Set-once slot for the client credentials.

    Shared by the sync and async authenticators so both enforce the same
    rule: credentials may be supplied again, but never changed.
    """

    def __init__(self) -> None:
        self._credentials: Optional[Credentials] = None

    @property
    def credentials(self) -> Optional[Credentials]:
        return self._credentials

    def set_credentials(self, credentials: Credentials) -> None:
        """Install the credentials used for every token exchange.

        Raises:
            ConfigError: If different credentials were already installed.
        """
        if self._credentials is not None and self._credentials != credentials:
            raise ConfigError("Client credentials are already set and cannot be changed")
        self._credentials = credentials


class Authenticator(CredentialHolder):
    """Acquire and refresh the access token held in a :class:`TokenStore`.

    Only one authentication runs at a time.  A caller that arrives while
    another is in flight waits for it and returns its result instead of
    starting a second exchange loop.

    Args:
        client: HTTP client used for the token exchange.
        settings: Endpoint and retry settings.
        store: Token store to update.  A fresh one is created if omitted.
        sleep: Blocking wait used between attempts.
    """

    def __init__(
        self,
        client: httpx.Client,
        settings: ConnectionSettings,
        store: Optional[TokenStore] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__()
        self._client = client
        self._settings = settings
        self._store = store if store is not None else TokenStore()
        self._sleep = sleep

    @property
    def store(self) -> TokenStore:
        return self._store

    def authenticate(self) -> bool:
        """Obtain a fresh access token.

        Returns:
            ``True`` if a non-empty token is now cached, ``False`` otherwise.
            Never raises for transport or response errors.
        """
        credentials = self._credentials
        if credentials is None:
            logger.error("Cannot authenticate: client credentials have not been set")
            return False

        if not self._store.begin():
            logger.debug("Authentication already in flight; waiting for its result")
            return isinstance(self._store.wait_settled(), TokenPresent)

        token = ""
        try:
            token = self._run_attempts(credentials)
        finally:
            self._store.settle(token)
        return bool(token)

    def _run_attempts(self, credentials: Credentials) -> str:
        policy = self._settings.retry
        for attempt in range(1, policy.max_auth_attempts + 1):
            if attempt > 1:
                logger.info(
                    "Retrying authentication in %.1fs (attempt %d/%d)",
                    policy.backoff_delay,
                    attempt,
                    policy.max_auth_attempts,
                )
                self._sleep(policy.backoff_delay)
            try:
                token = self._exchange(credentials)
            except MsgConnectError as exc:
                logger.warning(
                    "Authentication attempt %d/%d failed: %s",
                    attempt,
                    policy.max_auth_attempts,
                    exc,
                )
                continue
            logger.info("Authenticated on attempt %d/%d", attempt, policy.max_auth_attempts)
            return token

        logger.error("Authentication failed after %d attempts", policy.max_auth_attempts)
        return ""

    def _exchange(self, credentials: Credentials) -> str:
        """POST to the token endpoint and return the access token."""
        try:
            response = self._client.post(
                self._settings.token_url,
                data=credentials.token_form(),
                auth=credentials.basic_auth(),
                headers={"Accept": "application/json"},
            )
        except (httpx.HTTPError, RuntimeError) as exc:
            # httpx raises RuntimeError for a request on a closed client.
            if isinstance(exc, RuntimeError) and not self._client.is_closed:
                raise
            raise ConnectionError_(f"Token request failed: {exc}") from exc
        return parse_token_response(response)
