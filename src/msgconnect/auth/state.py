"""Access-token state and the stores that guard it.

The token is held as one of three variants:

- :class:`TokenAbsent` -- no usable token.
- :class:`TokenPending` -- an authentication is in flight.
- :class:`TokenPresent` -- a verified, non-empty token.

A store owns exactly one variant at a time behind a single condition
variable.  Moving into :class:`TokenPending` is how a caller claims the
right to run the token exchange: :meth:`TokenStore.begin` only succeeds
for one caller at a time, and everyone else waits in
:meth:`TokenStore.wait_settled` until :meth:`TokenStore.settle` publishes
the outcome.  The exchange itself runs outside the lock, so readers such
as :attr:`TokenStore.is_authenticating` never queue behind a slow
authentication.

:class:`AsyncTokenStore` is the same machine on :class:`asyncio.Condition`
for :class:`~msgconnect.client.async_manager.AsyncConnectionManager`.
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class TokenAbsent:
    """No token has been obtained, or the last authentication failed."""


@dataclass(frozen=True)
class TokenPending:
    """An authentication is in flight; any previous token has been discarded."""


@dataclass(frozen=True)
class TokenPresent:
    """A token returned by the auth endpoint."""

    access_token: str

    def __post_init__(self) -> None:
        if not self.access_token:
            raise ValueError("TokenPresent requires a non-empty access token")


TokenState = Union[TokenAbsent, TokenPending, TokenPresent]


def _token_of(state: TokenState) -> str:
    return state.access_token if isinstance(state, TokenPresent) else ""


def _settled_state(token: str) -> TokenState:
    return TokenPresent(token) if token else TokenAbsent()


class TokenStore:
    """Thread-safe holder of the current :data:`TokenState`.

    Example::

        store = TokenStore()
        if store.begin():
            token = run_exchange()
            store.settle(token)
        else:
            store.wait_settled()
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._state: TokenState = TokenAbsent()

    @property
    def state(self) -> TokenState:
        with self._cond:
            return self._state

    @property
    def access_token(self) -> str:
        """The current token, or ``""`` when none is present."""
        with self._cond:
            return _token_of(self._state)

    @property
    def is_authenticating(self) -> bool:
        with self._cond:
            return isinstance(self._state, TokenPending)

    def begin(self) -> bool:
        """Try to claim the in-flight authentication.

        Returns:
            ``True`` if the caller moved the store into
            :class:`TokenPending` and must call :meth:`settle`.
            ``False`` if another authentication is already in flight.
        """
        with self._cond:
            if isinstance(self._state, TokenPending):
                return False
            self._state = TokenPending()
            return True

    def settle(self, token: str) -> None:
        """Publish the outcome of the in-flight authentication and wake waiters.

        Args:
            token: The new access token, or ``""`` when authentication failed.
        """
        with self._cond:
            self._state = _settled_state(token)
            self._cond.notify_all()

    def wait_settled(self) -> TokenState:
        """Block until no authentication is in flight and return the settled state."""
        with self._cond:
            self._cond.wait_for(lambda: not isinstance(self._state, TokenPending))
            return self._state


class AsyncTokenStore:
    """:class:`TokenStore` for a single event loop.

    Must be created and used inside the loop that runs the
    authentications.
    """

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._state: TokenState = TokenAbsent()

    # Plain attribute reads are atomic within one event loop.
    @property
    def state(self) -> TokenState:
        return self._state

    @property
    def access_token(self) -> str:
        return _token_of(self._state)

    @property
    def is_authenticating(self) -> bool:
        return isinstance(self._state, TokenPending)

    async def begin(self) -> bool:
        async with self._cond:
            if isinstance(self._state, TokenPending):
                return False
            self._state = TokenPending()
            return True

    async def settle(self, token: str) -> None:
        async with self._cond:
            self._state = _settled_state(token)
            self._cond.notify_all()

    async def wait_settled(self) -> TokenState:
        async with self._cond:
            await self._cond.wait_for(lambda: not isinstance(self._state, TokenPending))
            return self._state
