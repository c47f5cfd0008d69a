"""Classification of failed sends for the one-shot resend policy.

:class:`~msgconnect.client.manager.ConnectionManager` resends a failed
message at most once.  These predicates decide whether it resends at all
and whether it re-authenticates first.
"""

from __future__ import annotations

from msgconnect.models import SendOutcome


def is_retryable(outcome: SendOutcome) -> bool:
    """Return whether a failed send may be attempted once more.

    Every failure currently qualifies, including 4xx responses other than
    401 and messages that could not be encoded.
    """
    # TODO: exclude non-transient statuses (400, 403, 404, 413, 422) once
    # the API documents which rejections are permanent.
    return True


def needs_reauthentication(outcome: SendOutcome) -> bool:
    """Return whether the token must be refreshed before resending."""
    return outcome.is_unauthorized
