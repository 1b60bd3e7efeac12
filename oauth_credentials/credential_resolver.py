"""
OAuth Credential Resolver

Tries credential sources in a fixed priority order and returns the first
record one of them produces. Default order, configurable through
CredentialLoaderConfig.sources:

1. file            - JSON key file at keys_file_path
2. environment     - GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET / GOOGLE_REDIRECT_URI
3. secrets_service - same names, read from the secrets service with DOPPLER_TOKEN

Each source is attempted exactly once per call and never concurrently. When
all fail, CredentialsNotFoundError lists every source's reason.
"""

import logging
from typing import Mapping, Optional, Protocol, Sequence

from .credential_config_schema import CredentialLoaderConfig, CredentialRecord, SourceResult, load_config
from .credential_errors import CredentialsNotFoundError
from .credential_sources import SecretsClientFactory, build_sources
from .credential_utils import preview_value
from .get_credential import resolve_environ

logger = logging.getLogger(__name__)


class CredentialSource(Protocol):
    name: str

    async def attempt(self) -> SourceResult:
        ...


class CredentialResolver:
    """
    Ordered fallback over credential sources.

    Holds no state between calls; two resolutions over unchanged sources
    produce equal records.
    """

    def __init__(self, sources: Sequence[CredentialSource], test_mode: bool = False):
        self.sources = list(sources)
        self.test_mode = test_mode

    @classmethod
    def from_config(
        cls,
        config: CredentialLoaderConfig,
        environ: Optional[Mapping[str, str]] = None,
        secrets_client_factory: Optional[SecretsClientFactory] = None
    ) -> "CredentialResolver":
        return cls(
            build_sources(config, environ, secrets_client_factory),
            test_mode=config.test_mode
        )

    async def resolve(self) -> CredentialRecord:
        """
        Resolve credentials from the first source that succeeds.

        Returns:
            CredentialRecord from the winning source

        Raises:
            CredentialsNotFoundError: Every source failed
        """
        failures = []
        for source in self.sources:
            result = await source.attempt()
            if result.ok:
                if not self.test_mode:
                    logger.info(
                        f"Loading OAuth credentials from {source.name} "
                        f"(client_id={preview_value(result.record.client_id)})"
                    )
                return result.record
            failures.append((source.name, result.error_code, result.reason))

        raise CredentialsNotFoundError(failures)


async def resolve_credentials(
    config: Optional[CredentialLoaderConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
    secrets_client_factory: Optional[SecretsClientFactory] = None
) -> CredentialRecord:
    """
    Resolve OAuth client credentials.

    Args:
        config: Loader configuration (loaded from the environment if None)
        environ: Environment mapping (process environment if None)
        secrets_client_factory: Builds the secrets service client from a token

    Raises:
        CredentialsNotFoundError: No source produced credentials
    """
    environ = resolve_environ(environ)
    if config is None:
        config = load_config(environ)
    resolver = CredentialResolver.from_config(config, environ, secrets_client_factory)
    return await resolver.resolve()
