"""Asynchronous connection manager.

:class:`AsyncConnectionManager` mirrors
:class:`~msgconnect.client.manager.ConnectionManager` on top of
:class:`httpx.AsyncClient`.  Authentication backoff uses
:func:`asyncio.sleep`, so a task waiting out a failed token exchange does
not block other sends on the loop.

A manager is bound to the event loop it is first used in.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Mapping, Optional

import httpx

from msgconnect.auth.async_authenticator import AsyncAuthenticator
from msgconnect.auth.state import AsyncTokenStore
from msgconnect.client.retry import is_retryable, needs_reauthentication
from msgconnect.client.sender import AsyncMessageSender, MessageInput
from msgconnect.config import load_credentials, load_settings, make_credentials
from msgconnect.failures import FailureKind
from msgconnect.models import ConnectionSettings, SendOutcome

logger = logging.getLogger(__name__)


class AsyncConnectionManager:
    """Authenticate and send messages from asyncio code.

    Args:
        settings: Endpoints, timeouts and retry policy.
        client: Async HTTP client to use.  When omitted the manager creates
            one and closes it in :meth:`aclose`.
        sleep: Awaitable wait used between authentication attempts.

    Example::

        async with AsyncConnectionManager(settings) as manager:
            if await manager.initialize_and_authenticate(client_id, client_secret):
                await manager.send_message(message)
    """

    def __init__(
        self,
        settings: Optional[ConnectionSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings if settings is not None else ConnectionSettings()
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(
            timeout=self._settings.timeout,
            verify=self._settings.verify_ssl,
        )
        self._store = AsyncTokenStore()
        self._authenticator = AsyncAuthenticator(self._client, self._settings, self._store, sleep=sleep)
        self._sender = AsyncMessageSender(self._client, self._settings, self._store)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> AsyncConnectionManager:
        """Build a manager from ``MSGCONNECT_*`` environment variables.

        Raises:
            ConfigError: If the environment holds invalid values.
        """
        return cls(load_settings(environ), client=client, sleep=sleep)

    @property
    def settings(self) -> ConnectionSettings:
        return self._settings

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncConnectionManager:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------ #
    # Authentication
    # ------------------------------------------------------------------ #

    async def initialize_and_authenticate(self, client_id: str, client_secret: str) -> bool:
        """Install the client credentials and fetch the first token.

        Raises:
            ConfigError: If either value is empty, or different credentials
                were installed earlier.
        """
        credentials = make_credentials(client_id, client_secret, self._settings.scope)
        self._authenticator.set_credentials(credentials)
        return await self._authenticator.authenticate()

    async def initialize_from_sources(self, client_id_source: str, client_secret_source: str) -> bool:
        """Like :meth:`initialize_and_authenticate` with ``env:``/``file:`` descriptors.

        Raises:
            ConfigError: If a source cannot be resolved.
        """
        credentials = load_credentials(client_id_source, client_secret_source, self._settings.scope)
        self._authenticator.set_credentials(credentials)
        return await self._authenticator.authenticate()

    async def authenticate(self) -> bool:
        return await self._authenticator.authenticate()

    def is_access_token_available(self) -> bool:
        return bool(self._store.access_token)

    def is_reauthenticating(self) -> bool:
        return self._store.is_authenticating

    # ------------------------------------------------------------------ #
    # Sending
    # ------------------------------------------------------------------ #

    async def send_message_with_outcome(self, message: MessageInput) -> SendOutcome:
        """Send *message*, resending once on failure (re-authenticating first on 401)."""
        outcome = await self._sender.send(message)
        if outcome.success or not is_retryable(outcome):
            return outcome

        if needs_reauthentication(outcome):
            logger.info("Send returned %d; re-authenticating before resend", outcome.status_code)
            if not await self._authenticator.authenticate():
                logger.error("Re-authentication failed; message not resent")
                return SendOutcome.failed(
                    outcome.status_code,
                    FailureKind.NOT_AUTHENTICATED,
                    "Re-authentication failed",
                )
        else:
            logger.info("Send returned %d; resending once", outcome.status_code)

        return await self._sender.send(message)

    async def send_message_with_status(self, message: MessageInput) -> tuple[bool, int]:
        outcome = await self.send_message_with_outcome(message)
        return outcome.success, outcome.status_code

    async def send_message(self, message: MessageInput) -> bool:
        return (await self.send_message_with_outcome(message)).success

    async def send_message_with_retry(self, message: MessageInput) -> bool:
        return await self.send_message(message)
