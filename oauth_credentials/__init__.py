"""
OAuth Client Credentials Loader

Resolves OAuth2 client credentials (client id, client secret, redirect URIs)
from a prioritized chain of sources: a local JSON key file, environment
variables, and a remote secrets service.

Usage:
    from oauth_credentials import initialize_oauth_client, load_credentials

    # Authorization client with the first redirect URI as default
    client = await initialize_oauth_client()

    # Only the id/secret pair
    creds = await load_credentials()
    print(creds.client_id)
"""

from .credential_config_schema import (
    CredentialLoaderConfig,
    CredentialRecord,
    CredentialSourceName,
    MinimalCredential,
    SecretValue,
    SourceResult,
    load_config
)

from .credential_errors import (
    CredentialError,
    CredentialLoadError,
    CredentialsNotFoundError,
    IncompleteCredentialsError,
    InvalidFormatError,
    KeyFileParseError,
    KeyFileReadError,
    MissingConfigError,
    MissingTokenError,
    SourceUnavailableError
)

from .credential_sources import (
    EnvironmentSource,
    KeyFileSource,
    SecretsServiceSource,
    build_sources,
    fetch_from_secrets_service,
    read_environment,
    read_key_file
)

from .credential_resolver import (
    CredentialResolver,
    resolve_credentials
)

from .oauth_client_factory import (
    initialize_oauth_client,
    load_credentials,
    validate_credentials
)

from .secrets_service_client import (
    DopplerSecretsClient,
    SecretsServiceClient
)

__version__ = "0.1.0"
__description__ = "OAuth2 client credential resolution from key file, environment and secrets service"

__all__ = [
    # Main entry points
    "initialize_oauth_client",
    "load_credentials",
    "resolve_credentials",
    "validate_credentials",

    # Configuration and data models
    "CredentialLoaderConfig",
    "CredentialRecord",
    "CredentialSourceName",
    "MinimalCredential",
    "SecretValue",
    "SourceResult",
    "load_config",

    # Sources and resolver
    "CredentialResolver",
    "EnvironmentSource",
    "KeyFileSource",
    "SecretsServiceSource",
    "build_sources",
    "fetch_from_secrets_service",
    "read_environment",
    "read_key_file",

    # Secrets service
    "DopplerSecretsClient",
    "SecretsServiceClient",

    # Errors
    "CredentialError",
    "CredentialLoadError",
    "CredentialsNotFoundError",
    "IncompleteCredentialsError",
    "InvalidFormatError",
    "KeyFileParseError",
    "KeyFileReadError",
    "MissingConfigError",
    "MissingTokenError",
    "SourceUnavailableError"
]
