"""Connection managers and the message send path.

Classes:
    :class:`ConnectionManager` -- blocking manager backed by :class:`httpx.Client`.
    :class:`AsyncConnectionManager` -- asyncio manager backed by :class:`httpx.AsyncClient`.
    :class:`MessageSender` / :class:`AsyncMessageSender` -- one send, one outcome.

Example::

    from msgconnect.client import ConnectionManager

    with ConnectionManager(settings) as manager:
        manager.initialize_and_authenticate(client_id, client_secret)
        manager.send_message(message)
"""

from msgconnect.client.async_manager import AsyncConnectionManager
from msgconnect.client.manager import (
    ConnectionManager,
    get_connection_manager,
    reset_connection_manager,
    set_connection_manager,
)
from msgconnect.client.sender import AsyncMessageSender, MessageSender

__all__ = [
    "AsyncConnectionManager",
    "AsyncMessageSender",
    "ConnectionManager",
    "MessageSender",
    "get_connection_manager",
    "reset_connection_manager",
    "set_connection_manager",
]
