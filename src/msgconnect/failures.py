"""Failure categories reported by msgconnect.

Each member names one class of fault in the token exchange or the send
path.  Exceptions in :mod:`msgconnect.exceptions` carry one of these as
their ``kind`` and :class:`~msgconnect.models.SendOutcome` exposes it to
callers that want more than a boolean.

Example::

    outcome = manager.send_message_with_outcome(msg)
    if outcome.kind is FailureKind.TRANSPORT:
        ...  # network trouble, status_code holds the 401 placeholder
"""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    """Why an authentication attempt or a send did not succeed."""

    TRANSPORT = "transport"
    """A network-level error occurred (timeout, DNS failure, connection refused)."""

    MALFORMED_RESPONSE = "malformed_response"
    """The response body was not the expected JSON shape or lacked a key."""

    UNAUTHORIZED = "unauthorized"
    """The API rejected the bearer token (HTTP 401)."""

    SERVER_ERROR = "server_error"
    """The API answered with a status other than 200 or 401."""

    NOT_AUTHENTICATED = "not_authenticated"
    """No usable token could be obtained."""

    INVALID_MESSAGE = "invalid_message"
    """The outbound message could not be serialised to JSON."""

    CONFIGURATION = "configuration"
    """Settings or credentials were missing or invalid."""
