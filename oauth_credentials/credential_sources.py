"""
OAuth credential sources.

One reader per origin, each producing a CredentialRecord or raising a typed
CredentialError:

- read_key_file: local JSON key file (console "installed" export or flat object)
- read_environment: three environment variables
- fetch_from_secrets_service: secrets service listing, token from the environment

The *Source classes wrap the readers behind a single ``attempt()`` coroutine
returning a SourceResult, which is all the resolver relies on.
"""

import json
import logging
import os
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import ValidationError

from .credential_config_schema import (
    DEFAULT_REDIRECT_URI,
    CredentialLoaderConfig,
    CredentialRecord,
    CredentialSourceName,
    SourceResult,
)
from .credential_errors import (
    CredentialError,
    InvalidFormatError,
    KeyFileParseError,
    KeyFileReadError,
    MissingConfigError,
    MissingTokenError,
    SourceUnavailableError,
)
from .get_credential import get_credential, resolve_environ
from .secrets_service_client import DopplerSecretsClient, SecretsServiceClient

logger = logging.getLogger(__name__)

INVALID_FORMAT_MESSAGE = (
    'Invalid credentials file format. Expected either "installed" object '
    'or direct client_id/client_secret fields.'
)

SecretsClientFactory = Callable[[str, CredentialLoaderConfig], SecretsServiceClient]


def _build_record(values: Dict[str, Any]) -> CredentialRecord:
    try:
        return CredentialRecord(**values)
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise InvalidFormatError(f"{INVALID_FORMAT_MESSAGE} Invalid field(s): {', '.join(fields)}") from e


def parse_key_file(keys: Any) -> CredentialRecord:
    """
    Classify a parsed key file document and normalize it.

    The "installed" shape is copied verbatim; the flat shape gets the default
    redirect URI when it has none.
    """
    if not isinstance(keys, dict):
        raise InvalidFormatError(INVALID_FORMAT_MESSAGE)

    if keys.get("installed") is not None:
        installed = keys["installed"]
        if not isinstance(installed, dict):
            raise InvalidFormatError(INVALID_FORMAT_MESSAGE)
        values = {
            field: installed[field]
            for field in ("client_id", "client_secret", "redirect_uris")
            if installed.get(field) is not None
        }
        return _build_record(values)

    if keys.get("client_id") and keys.get("client_secret"):
        redirect_uris = keys.get("redirect_uris")
        return _build_record({
            "client_id": keys["client_id"],
            "client_secret": keys["client_secret"],
            "redirect_uris": redirect_uris if redirect_uris is not None else [DEFAULT_REDIRECT_URI],
        })

    raise InvalidFormatError(INVALID_FORMAT_MESSAGE)


def read_key_file(path: str) -> CredentialRecord:
    """
    Read and normalize an OAuth key file.

    Raises:
        KeyFileReadError: File missing or unreadable
        KeyFileParseError: File is not valid JSON
        InvalidFormatError: Document matches neither accepted shape
    """
    path = os.path.expanduser(path)
    try:
        with open(path, "rb") as f:
            content = f.read()
    except OSError as e:
        raise KeyFileReadError(f"Cannot read credentials file {path}: {e.strerror or e}") from e

    try:
        keys = json.loads(content)
    except ValueError as e:
        raise KeyFileParseError(f"Credentials file {path} is not valid JSON: {e}") from e

    return parse_key_file(keys)


def _missing_message(kind: str, missing) -> str:
    return f"{kind} not set: {', '.join(missing)}"


def read_environment(
    environ: Mapping[str, str],
    names: Mapping[str, str]
) -> CredentialRecord:
    """
    Read client id, secret and redirect URI from environment variables.

    Args:
        environ: Environment mapping
        names: Logical field ("client_id", "client_secret", "redirect_uri")
               to variable name

    Raises:
        MissingConfigError: Naming every variable that is unset or empty
    """
    values = {field: get_credential(var, environ) for field, var in names.items()}
    missing = [names[field] for field, value in values.items() if not value]
    if missing:
        raise MissingConfigError(
            _missing_message("OAuth credential environment variables", missing),
            missing=missing
        )

    return CredentialRecord(
        client_id=values["client_id"],
        client_secret=values["client_secret"],
        redirect_uris=[values["redirect_uri"]],
    )


async def fetch_from_secrets_service(
    environ: Mapping[str, str],
    config: CredentialLoaderConfig,
    client_factory: Optional[SecretsClientFactory] = None
) -> CredentialRecord:
    """
    Resolve client id, secret and redirect URI from the secrets service.

    Raises:
        MissingTokenError: No access token in the environment
        SourceUnavailableError: The listing call failed for any reason
        MissingConfigError: Naming every secret that is absent or empty
    """
    token = get_credential(config.secrets_token_var, environ)
    if not token:
        raise MissingTokenError(f"Secrets service token not set: {config.secrets_token_var}")

    try:
        client = (client_factory or default_secrets_client_factory)(token, config)
        secrets = await client.list(config.secrets_project, config.secrets_environment)
    except Exception as e:
        logger.warning(f"Secrets service unavailable: {e}")
        raise SourceUnavailableError(
            f"Secrets service request failed: {str(e) or type(e).__name__}"
        ) from e

    if not isinstance(secrets, Mapping):
        raise SourceUnavailableError(
            f"Secrets service returned {type(secrets).__name__} instead of a secrets mapping"
        )

    names = config.variable_names
    values = {}
    for field, secret_name in names.items():
        secret = secrets.get(secret_name)
        computed = getattr(secret, "computed", None)
        values[field] = computed if isinstance(computed, str) and computed else None

    missing = [names[field] for field, value in values.items() if value is None]
    if missing:
        raise MissingConfigError(_missing_message("Secrets service keys", missing), missing=missing)

    return CredentialRecord(
        client_id=values["client_id"],
        client_secret=values["client_secret"],
        redirect_uris=[values["redirect_uri"]],
    )


def default_secrets_client_factory(token: str, config: CredentialLoaderConfig) -> SecretsServiceClient:
    return DopplerSecretsClient(
        token=token,
        api_url=config.secrets_api_url,
        timeout=config.secrets_timeout
    )


def _as_result(name: str, error: CredentialError) -> SourceResult:
    logger.debug(f"Credential source '{name}' failed: [{error.code}] {error.message}")
    return SourceResult.failure(name, error.code, error.message)


class KeyFileSource:
    """Credentials from a local JSON key file"""
    name = CredentialSourceName.FILE.value

    def __init__(self, path: str):
        self.path = path

    async def attempt(self) -> SourceResult:
        try:
            return SourceResult.success(self.name, read_key_file(self.path))
        except CredentialError as e:
            return _as_result(self.name, e)


class EnvironmentSource:
    """Credentials from three environment variables"""
    name = CredentialSourceName.ENVIRONMENT.value

    def __init__(self, environ: Mapping[str, str], names: Mapping[str, str]):
        self.environ = environ
        self.names = dict(names)

    async def attempt(self) -> SourceResult:
        try:
            return SourceResult.success(self.name, read_environment(self.environ, self.names))
        except CredentialError as e:
            return _as_result(self.name, e)


class SecretsServiceSource:
    """Credentials from the remote secrets service"""
    name = CredentialSourceName.SECRETS_SERVICE.value

    def __init__(
        self,
        environ: Mapping[str, str],
        config: CredentialLoaderConfig,
        client_factory: Optional[SecretsClientFactory] = None
    ):
        self.environ = environ
        self.config = config
        self.client_factory = client_factory

    async def attempt(self) -> SourceResult:
        try:
            record = await fetch_from_secrets_service(self.environ, self.config, self.client_factory)
            return SourceResult.success(self.name, record)
        except CredentialError as e:
            return _as_result(self.name, e)


def build_sources(
    config: CredentialLoaderConfig,
    environ: Optional[Mapping[str, str]] = None,
    secrets_client_factory: Optional[SecretsClientFactory] = None
) -> list:
    """Instantiate the configured sources in priority order."""
    environ = resolve_environ(environ)
    sources = []
    for source_name in config.sources:
        if source_name == CredentialSourceName.FILE:
            sources.append(KeyFileSource(config.keys_file_path))
        elif source_name == CredentialSourceName.ENVIRONMENT:
            sources.append(EnvironmentSource(environ, config.variable_names))
        elif source_name == CredentialSourceName.SECRETS_SERVICE:
            sources.append(SecretsServiceSource(environ, config, secrets_client_factory))
    return sources
