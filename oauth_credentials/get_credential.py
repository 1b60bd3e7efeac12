"""
Credential accessor over an injected environment mapping.

Source readers never touch ``os.environ`` directly; they receive the mapping
from the caller so resolution stays testable and re-entrant. The process
environment is only used when the caller passes nothing.
"""

import os
from typing import Mapping, Optional


def resolve_environ(environ: Optional[Mapping[str, str]] = None) -> Mapping[str, str]:
    """Return the given mapping, or the process environment when None."""
    return os.environ if environ is None else environ


def get_credential(key: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Get a credential value from the environment mapping.

    Empty strings are treated the same as unset variables.

    Args:
        key: Credential identifier (e.g., "GOOGLE_CLIENT_SECRET")
        environ: Mapping to read from (defaults to the process environment)

    Returns:
        Credential value or None if not found or empty
    """
    value = resolve_environ(environ).get(key)
    return value if value else None


def interpolate_credentials(value: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Interpolate a credential reference in a configuration value.

    Supports the ${CREDENTIAL_KEY} form. Unresolvable references are left
    untouched.
    """
    if value.startswith("${") and value.endswith("}"):
        credential_key = value[2:-1]
        credential_value = get_credential(credential_key, environ)
        return credential_value if credential_value is not None else value

    return value
