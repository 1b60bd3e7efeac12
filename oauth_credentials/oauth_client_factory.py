"""
OAuth client construction from resolved credentials.

Validates the resolved CredentialRecord and projects it into the two shapes
callers need: an authorization client handle (authlib AsyncOAuth2Client, using
the first redirect URI as default) and a bare client id/secret pair. Both
entry points report every failure as CredentialLoadError.
"""

import logging
from typing import Any, Callable, Mapping, Optional

from authlib.integrations.httpx_client import AsyncOAuth2Client

from .credential_config_schema import CredentialLoaderConfig, CredentialRecord, MinimalCredential
from .credential_errors import IncompleteCredentialsError
from .credential_resolver import resolve_credentials
from .credential_sources import SecretsClientFactory
from .credential_utils import ErrorHandler

logger = logging.getLogger(__name__)

OAuthClientFactory = Callable[..., Any]


def validate_credentials(record: CredentialRecord) -> CredentialRecord:
    """
    Check that a record carries both a client id and a client secret.

    Raises:
        IncompleteCredentialsError: Naming the missing field(s)
    """
    missing = [field for field in ("client_id", "client_secret") if not getattr(record, field)]
    if missing:
        raise IncompleteCredentialsError(
            f"Client ID or Client Secret missing in credentials ({', '.join(missing)}).",
            missing=missing
        )
    return record


def build_oauth_client(
    record: CredentialRecord,
    client_factory: Optional[OAuthClientFactory] = None
) -> Any:
    """
    Build the OAuth client for a validated record.

    Raises:
        IncompleteCredentialsError: The record has no redirect URI
    """
    if not record.redirect_uris:
        raise IncompleteCredentialsError(
            "No redirect URI in credentials (redirect_uris).",
            missing=["redirect_uris"]
        )
    factory = client_factory or AsyncOAuth2Client
    return factory(
        client_id=record.client_id,
        client_secret=record.client_secret,
        redirect_uri=record.redirect_uris[0],
    )


def to_minimal_credential(record: CredentialRecord) -> MinimalCredential:
    return MinimalCredential(client_id=record.client_id, client_secret=record.client_secret)


async def initialize_oauth_client(
    config: Optional[CredentialLoaderConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
    secrets_client_factory: Optional[SecretsClientFactory] = None,
    client_factory: Optional[OAuthClientFactory] = None
) -> Any:
    """
    Resolve credentials and build the OAuth client.

    Args:
        config: Loader configuration (loaded from the environment if None)
        environ: Environment mapping (process environment if None)
        secrets_client_factory: Builds the secrets service client from a token
        client_factory: OAuth client constructor (AsyncOAuth2Client if None)

    Returns:
        OAuth client with the first redirect URI as its default redirect target

    Raises:
        CredentialLoadError: Wrapping any resolution, validation or
            construction failure
    """
    try:
        record = await resolve_credentials(config, environ, secrets_client_factory)
        validate_credentials(record)
        return build_oauth_client(record, client_factory)
    except Exception as e:
        raise ErrorHandler.log_and_wrap(logger, "Error loading OAuth keys", e) from e


async def load_credentials(
    config: Optional[CredentialLoaderConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
    secrets_client_factory: Optional[SecretsClientFactory] = None
) -> MinimalCredential:
    """
    Resolve credentials and return only the client id/secret pair.

    Raises:
        CredentialLoadError: Wrapping any resolution or validation failure
    """
    try:
        record = await resolve_credentials(config, environ, secrets_client_factory)
        return to_minimal_credential(validate_credentials(record))
    except Exception as e:
        raise ErrorHandler.log_and_wrap(logger, "Error loading credentials", e) from e
