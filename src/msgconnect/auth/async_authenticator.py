"""Asynchronous OAuth2 Client Credentials authenticator.

Same exchange, retry bound and single-flight rule as
:class:`~msgconnect.auth.authenticator.Authenticator`, but the token
request goes through :class:`httpx.AsyncClient` and the wait between
attempts is :func:`asyncio.sleep`, so other tasks keep running during
backoff.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from msgconnect.auth.authenticator import CredentialHolder, parse_token_response
from msgconnect.auth.state import AsyncTokenStore, TokenPresent
from msgconnect.exceptions import ConnectionError_, MsgConnectError
from msgconnect.models import ConnectionSettings, Credentials

logger = logging.getLogger(__name__)


class AsyncAuthenticator(CredentialHolder):
    """Acquire and refresh the access token held in an :class:`AsyncTokenStore`.

    Args:
        client: Async HTTP client used for the token exchange.
        settings: Endpoint and retry settings.
        store: Token store to update.  A fresh one is created if omitted.
        sleep: Awaitable wait used between attempts.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: ConnectionSettings,
        store: Optional[AsyncTokenStore] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__()
        self._client = client
        self._settings = settings
        self._store = store if store is not None else AsyncTokenStore()
        self._sleep = sleep

    @property
    def store(self) -> AsyncTokenStore:
        return self._store

    async def authenticate(self) -> bool:
        credentials = self._credentials
        if credentials is None:
            logger.error("Cannot authenticate: client credentials have not been set")
            return False

        if not await self._store.begin():
            logger.debug("Authentication already in flight; waiting for its result")
            return isinstance(await self._store.wait_settled(), TokenPresent)

        token = ""
        try:
            token = await self._run_attempts(credentials)
        finally:
            await self._store.settle(token)
        return bool(token)

    async def _run_attempts(self, credentials: Credentials) -> str:
        policy = self._settings.retry
        for attempt in range(1, policy.max_auth_attempts + 1):
            if attempt > 1:
                logger.info(
                    "Retrying authentication in %.1fs (attempt %d/%d)",
                    policy.backoff_delay,
                    attempt,
                    policy.max_auth_attempts,
                )
                await self._sleep(policy.backoff_delay)
            try:
                token = await self._exchange(credentials)
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

    async def _exchange(self, credentials: Credentials) -> str:
        try:
            response = await self._client.post(
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
