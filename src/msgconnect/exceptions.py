"""Exception hierarchy for msgconnect.

All exceptions inherit from :class:`MsgConnectError`, which carries a
``kind`` attribute drawn from :class:`~msgconnect.failures.FailureKind`.
They are raised inside a component and caught at its boundary: the
authenticator turns them into a failed attempt and the sender into a
:class:`~msgconnect.models.SendOutcome`.  Only :class:`ConfigError`
reaches callers, and only for invalid settings or credentials input.

Subclass hierarchy::

    MsgConnectError
    +-- AuthError            (not_authenticated)
    |   +-- TokenResponseError (malformed_response)
    +-- ConnectionError_     (transport)
    +-- ConfigError          (configuration)
"""

from __future__ import annotations

from msgconnect.failures import FailureKind


class MsgConnectError(Exception):
    """Base exception for all msgconnect errors.

    Args:
        message: Human-readable error description.
        kind: Optional override for the class-level failure kind.
    """

    kind: FailureKind = FailureKind.NOT_AUTHENTICATED

    def __init__(self, message: str, kind: FailureKind | None = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class AuthError(MsgConnectError):
    """Raised when the token endpoint refuses the client credentials."""

    kind = FailureKind.NOT_AUTHENTICATED


class TokenResponseError(AuthError):
    """Raised when the token response is not a JSON object with a usable ``access_token``."""

    kind = FailureKind.MALFORMED_RESPONSE


class ConnectionError_(MsgConnectError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    kind = FailureKind.TRANSPORT


class ConfigError(MsgConnectError):
    """Raised for configuration problems (bad environment values, empty or conflicting credentials)."""

    kind = FailureKind.CONFIGURATION
