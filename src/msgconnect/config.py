"""Environment-driven configuration and credential resolution.

msgconnect keeps no configuration files and no persisted state.  Settings
come from two places, highest precedence first:

1. Values passed explicitly to :class:`~msgconnect.models.ConnectionSettings`.
2. ``MSGCONNECT_*`` environment variables read by :func:`load_settings`.
3. Model defaults.

Client secrets can be given directly or through a source descriptor
resolved by :func:`resolve_credential` (``env:VAR`` or ``file:/path``), so
they never need to appear in code.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from msgconnect.exceptions import ConfigError
from msgconnect.models import ConnectionSettings, Credentials, RetryPolicy

ENV_PREFIX = "MSGCONNECT_"

_SETTINGS_ENV = {
    "auth_base_url": f"{ENV_PREFIX}AUTH_BASE_URL",
    "api_base_url": f"{ENV_PREFIX}API_BASE_URL",
    "scope": f"{ENV_PREFIX}SCOPE",
    "timeout": f"{ENV_PREFIX}TIMEOUT",
    "verify_ssl": f"{ENV_PREFIX}VERIFY_SSL",
}

_RETRY_ENV = {
    "max_auth_attempts": f"{ENV_PREFIX}MAX_AUTH_ATTEMPTS",
    "backoff_delay": f"{ENV_PREFIX}BACKOFF_SECONDS",
}


def _collect(environ: Mapping[str, str], names: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for field, var in names.items():
        raw = environ.get(var)
        if raw is not None and raw.strip():
            values[field] = raw.strip()
    return values


def load_settings(environ: Optional[Mapping[str, str]] = None) -> ConnectionSettings:
    """Build :class:`~msgconnect.models.ConnectionSettings` from the environment.

    Recognised variables:
        - ``MSGCONNECT_AUTH_BASE_URL`` / ``MSGCONNECT_API_BASE_URL``
        - ``MSGCONNECT_SCOPE``
        - ``MSGCONNECT_TIMEOUT`` (seconds)
        - ``MSGCONNECT_VERIFY_SSL`` (``true``/``false``/``1``/``0``)
        - ``MSGCONNECT_MAX_AUTH_ATTEMPTS``
        - ``MSGCONNECT_BACKOFF_SECONDS``

    Unset or blank variables fall back to the model defaults.

    Args:
        environ: Mapping to read instead of :data:`os.environ`.

    Returns:
        The validated settings.

    Raises:
        ConfigError: If a variable holds a value the model rejects.
    """
    env = os.environ if environ is None else environ
    data = _collect(env, _SETTINGS_ENV)
    retry = _collect(env, _RETRY_ENV)
    try:
        if retry:
            data["retry"] = RetryPolicy.model_validate(retry)
        return ConnectionSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid {ENV_PREFIX}* environment configuration: {exc}") from exc


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Args:
        source: The source descriptor string.

    Returns:
        The resolved credential string.

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    raise ConfigError(f"Unknown credential source format: {source}")


def make_credentials(client_id: str, client_secret: str, scope: str) -> Credentials:
    """Validate a client id/secret pair into :class:`~msgconnect.models.Credentials`.

    Raises:
        ConfigError: If either value is empty.
    """
    try:
        return Credentials(client_id=client_id, client_secret=client_secret, scope=scope)
    except ValidationError as exc:
        raise ConfigError(f"Invalid client credentials: {exc}") from exc


def load_credentials(
    client_id_source: str,
    client_secret_source: str,
    scope: str,
) -> Credentials:
    """Resolve both credential sources and build :class:`~msgconnect.models.Credentials`.

    Example::

        load_credentials("env:MSG_CLIENT_ID", "file:~/.secrets/msg", settings.scope)
    """
    return make_credentials(
        resolve_credential(client_id_source),
        resolve_credential(client_secret_source),
        scope,
    )
