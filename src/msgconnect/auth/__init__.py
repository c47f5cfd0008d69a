"""Token acquisition for msgconnect.

The main entry points are:

- :class:`Authenticator` -- runs the client-credentials exchange with
  bounded retry and fixed backoff, one authentication in flight at a time.
- :class:`AsyncAuthenticator` -- the same on :mod:`asyncio`.
- :class:`TokenStore` / :class:`AsyncTokenStore` -- hold the current
  :data:`TokenState` (:class:`TokenAbsent`, :class:`TokenPending` or
  :class:`TokenPresent`).
"""

from msgconnect.auth.async_authenticator import AsyncAuthenticator
from msgconnect.auth.authenticator import Authenticator, parse_token_response
from msgconnect.auth.state import (
    AsyncTokenStore,
    TokenAbsent,
    TokenPending,
    TokenPresent,
    TokenState,
    TokenStore,
)

__all__ = [
    "Authenticator",
    "AsyncAuthenticator",
    "AsyncTokenStore",
    "TokenAbsent",
    "TokenPending",
    "TokenPresent",
    "TokenState",
    "TokenStore",
    "parse_token_response",
]
