"""msgconnect -- OAuth2-authenticated connection manager for a messaging REST API.

This package obtains and caches a client-credentials access token, sends
messages through the API with it, and re-authenticates and resends once
when the token has expired or a send fails.

Typical workflow::

    from msgconnect import ConnectionManager, OutboundMessage

    with ConnectionManager.from_env() as manager:
        manager.initialize_and_authenticate("client-id", "client-secret")
        manager.send_message(
            OutboundMessage(sender="ops", recipients=["u-1"], content="Deploy done")
        )

Modules:
    models: Pydantic models shared across the package.
    config: ``MSGCONNECT_*`` environment settings and credential sources.
    exceptions: Exception hierarchy tagged with failure kinds.
    failures: The :class:`~msgconnect.failures.FailureKind` taxonomy.
    log: Optional Rich logging setup for applications.
    auth: Token state machine and authenticators.
    client: Connection managers and message senders.
"""

from msgconnect.client import (
    AsyncConnectionManager,
    ConnectionManager,
    get_connection_manager,
    reset_connection_manager,
    set_connection_manager,
)
from msgconnect.failures import FailureKind
from msgconnect.models import (
    ConnectionSettings,
    Credentials,
    OutboundMessage,
    RetryPolicy,
    SendOutcome,
)

__version__ = "0.1.0"

__all__ = [
    "AsyncConnectionManager",
    "ConnectionManager",
    "ConnectionSettings",
    "Credentials",
    "FailureKind",
    "OutboundMessage",
    "RetryPolicy",
    "SendOutcome",
    "get_connection_manager",
    "reset_connection_manager",
    "set_connection_manager",
]
