"""Logging setup for applications embedding msgconnect.

Every msgconnect module logs through ``logging.getLogger(__name__)`` and
the library never installs handlers on its own.  Applications that want
readable diagnostics call :func:`configure_logging` once at startup; it
attaches a :class:`rich.logging.RichHandler` bound to a stderr
:class:`~rich.console.Console` to the ``msgconnect`` logger.

Colour follows `clig.dev <https://clig.dev/>`_ conventions: it is disabled
when ``NO_COLOR`` is set (any value), when ``TERM=dumb``, or when the
caller passes ``no_color=True``.
"""

from __future__ import annotations

import logging
import os
import sys

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "msgconnect"


def _should_disable_color() -> bool:
    """Return True when NO_COLOR is set (any value) or TERM=dumb."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


def configure_logging(
    verbose: bool = False,
    quiet: bool = False,
    no_color: bool = False,
) -> logging.Logger:
    """Route msgconnect log records to stderr through Rich.

    Calling it again replaces the handler installed by the previous call,
    so the level and colour settings can be changed at runtime.

    Args:
        verbose: Emit ``DEBUG`` records.
        quiet: Emit only ``WARNING`` and above.  Ignored when *verbose*.
        no_color: Disable colour and Rich markup.

    Returns:
        The configured ``msgconnect`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    console = Console(
        file=sys.stderr,
        stderr=True,
        no_color=no_color or _should_disable_color(),
    )
    handler = RichHandler(console=console, show_path=verbose, markup=False, rich_tracebacks=verbose)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)

    if verbose:
        logger.setLevel(logging.DEBUG)
    elif quiet:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.INFO)
    return logger
