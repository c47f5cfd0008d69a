"""Connection manager: one token lifecycle, one send path.

This module provides :class:`ConnectionManager`, the blocking entry point
of msgconnect.  It owns an :class:`httpx.Client` and composes:

- **Authentication** -- :class:`~msgconnect.auth.authenticator.Authenticator`
  fetches the token with bounded retry and fixed backoff.
- **Sending** -- :class:`~msgconnect.client.sender.MessageSender` submits a
  message with the cached bearer token.
- **Resend policy** -- a failed send is attempted once more; when the API
  answered 401 the token is refreshed first.

Construct one manager at startup and hand it to the code that sends
messages.  Code that cannot be given an instance can use
:func:`get_connection_manager`, which lazily builds a shared one from the
environment.

See Also:
    :class:`~msgconnect.client.async_manager.AsyncConnectionManager` for the
    asyncio equivalent.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Mapping, Optional

import httpx

from msgconnect.auth.authenticator import Authenticator
from msgconnect.auth.state import TokenStore
from msgconnect.client.retry import is_retryable, needs_reauthentication
from msgconnect.client.sender import MessageInput, MessageSender
from msgconnect.config import load_credentials, load_settings, make_credentials
from msgconnect.failures import FailureKind
from msgconnect.models import ConnectionSettings, SendOutcome

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Authenticate against the messaging API and send messages through it.

    Safe to share between threads.  Sends run concurrently; at most one
    authentication is in flight at any time.

    Args:
        settings: Endpoints, timeouts and retry policy.  Defaults to
            :class:`~msgconnect.models.ConnectionSettings` defaults.
        client: HTTP client to use.  When omitted the manager creates one
            and closes it in :meth:`close`; a supplied client is left open.
        sleep: Blocking wait used between authentication attempts.

    Example::

        with ConnectionManager(settings) as manager:
            if manager.initialize_and_authenticate(client_id, client_secret):
                manager.send_message(message)
    """

    def __init__(
        self,
        settings: Optional[ConnectionSettings] = None,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings if settings is not None else ConnectionSettings()
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(
            timeout=self._settings.timeout,
            verify=self._settings.verify_ssl,
        )
        self._store = TokenStore()
        self._authenticator = Authenticator(self._client, self._settings, self._store, sleep=sleep)
        self._sender = MessageSender(self._client, self._settings, self._store)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> ConnectionManager:
        """Build a manager from ``MSGCONNECT_*`` environment variables.

        Raises:
            ConfigError: If the environment holds invalid values.
        """
        return cls(load_settings(environ), client=client, sleep=sleep)

    @property
    def settings(self) -> ConnectionSettings:
        return self._settings

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> ConnectionManager:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this manager created it."""
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------ #
    # Authentication
    # ------------------------------------------------------------------ #

    def initialize_and_authenticate(self, client_id: str, client_secret: str) -> bool:
        """Install the client credentials and fetch the first token.

        Credentials are set once; calling again with the same pair simply
        re-authenticates.

        Returns:
            ``True`` if a token was obtained within the retry budget.

        Raises:
            ConfigError: If either value is empty, or different credentials
                were installed earlier.
        """
        credentials = make_credentials(client_id, client_secret, self._settings.scope)
        self._authenticator.set_credentials(credentials)
        return self._authenticator.authenticate()

    def initialize_from_sources(self, client_id_source: str, client_secret_source: str) -> bool:
        """Like :meth:`initialize_and_authenticate` with ``env:``/``file:`` descriptors.

        Raises:
            ConfigError: If a source cannot be resolved.
        """
        credentials = load_credentials(client_id_source, client_secret_source, self._settings.scope)
        self._authenticator.set_credentials(credentials)
        return self._authenticator.authenticate()

    def authenticate(self) -> bool:
        """Discard the current token and fetch a new one."""
        return self._authenticator.authenticate()

    def is_access_token_available(self) -> bool:
        return bool(self._store.access_token)

    def is_reauthenticating(self) -> bool:
        return self._store.is_authenticating

    # ------------------------------------------------------------------ #
    # Sending
    # ------------------------------------------------------------------ #

    def send_message_with_outcome(self, message: MessageInput) -> SendOutcome:
        """Send *message*, resending once on failure.

        A 401 triggers one re-authentication before the resend; if that
        fails the message is not resent.  Any other failure is resent once
        as is.  The outcome of the last request made is returned.
        """
        outcome = self._sender.send(message)
        if outcome.success or not is_retryable(outcome):
            return outcome

        if needs_reauthentication(outcome):
            logger.info("Send returned %d; re-authenticating before resend", outcome.status_code)
            if not self._authenticator.authenticate():
                logger.error("Re-authentication failed; message not resent")
                return SendOutcome.failed(
                    outcome.status_code,
                    FailureKind.NOT_AUTHENTICATED,
                    "Re-authentication failed",
                )
        else:
            logger.info("Send returned %d; resending once", outcome.status_code)

        return self._sender.send(message)

    def send_message_with_status(self, message: MessageInput) -> tuple[bool, int]:
        """Send *message* and return ``(success, status_code)``."""
        outcome = self.send_message_with_outcome(message)
        return outcome.success, outcome.status_code

    def send_message(self, message: MessageInput) -> bool:
        """Send *message*, resending once on failure.  Returns success."""
        return self.send_message_with_outcome(message).success

    def send_message_with_retry(self, message: MessageInput) -> bool:
        return self.send_message(message)


# ------------------------------------------------------------------ #
# Shared instance
# ------------------------------------------------------------------ #

_manager: Optional[ConnectionManager] = None
_manager_lock = threading.Lock()


def get_connection_manager() -> ConnectionManager:
    """Return the shared :class:`ConnectionManager`.

    If none has been installed via :func:`set_connection_manager`, one is
    built from the environment on first access.  Construction happens at
    most once even when several threads race on the first call.

    Raises:
        ConfigError: If the environment holds invalid values.
    """
    global _manager
    manager = _manager
    if manager is None:
        with _manager_lock:
            if _manager is None:
                _manager = ConnectionManager.from_env()
            manager = _manager
    return manager


def set_connection_manager(manager: ConnectionManager) -> None:
    """Install *manager* as the shared instance."""
    global _manager
    with _manager_lock:
        _manager = manager


def reset_connection_manager() -> None:
    """Close and drop the shared instance.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _manager
    with _manager_lock:
        manager, _manager = _manager, None
    if manager is not None:
        manager.close()
