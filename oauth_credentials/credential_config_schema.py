"""
Credential Loader Configuration Schema

Pydantic models for the resolved OAuth client credentials, the per-source
attempt results, secrets service values, and the loader configuration.
"""

from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .credential_utils import ConfigurationLoader
from .get_credential import get_credential, resolve_environ

DEFAULT_REDIRECT_URI = "http://localhost:3000/oauth2callback"
DEFAULT_KEYS_FILE_PATH = "./gcp-oauth.keys.json"
DEFAULT_SECRETS_API_URL = "https://api.doppler.com"


class CredentialSourceName(str, Enum):
    """Credential sources, in their default priority order"""
    FILE = "file"
    ENVIRONMENT = "environment"
    SECRETS_SERVICE = "secrets_service"


DEFAULT_SOURCE_ORDER = [
    CredentialSourceName.FILE,
    CredentialSourceName.ENVIRONMENT,
    CredentialSourceName.SECRETS_SERVICE,
]


class CredentialRecord(BaseModel):
    """OAuth client credentials as resolved from a single source"""
    model_config = ConfigDict(extra="forbid", frozen=True)

    client_id: str = Field(default="", description="OAuth2 client ID")
    client_secret: str = Field(default="", description="OAuth2 client secret")
    redirect_uris: Tuple[str, ...] = Field(
        default=(),
        description="Registered redirect URIs, first one is the default"
    )

    @property
    def default_redirect_uri(self) -> Optional[str]:
        return self.redirect_uris[0] if self.redirect_uris else None


class MinimalCredential(BaseModel):
    """Client id/secret pair for callers that don't need redirect URIs"""
    model_config = ConfigDict(extra="forbid", frozen=True)

    client_id: str
    client_secret: str


class SourceResult(BaseModel):
    """Outcome of one source attempt: either a record or a failure reason"""
    model_config = ConfigDict(frozen=True)

    source: str
    record: Optional[CredentialRecord] = None
    error_code: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, source: str, record: CredentialRecord) -> "SourceResult":
        return cls(source=source, record=record)

    @classmethod
    def failure(cls, source: str, error_code: str, reason: str) -> "SourceResult":
        return cls(source=source, error_code=error_code, reason=reason)

    @property
    def ok(self) -> bool:
        return self.record is not None


class SecretValue(BaseModel):
    """A single secret as returned by the secrets service listing"""
    raw: Optional[str] = None
    computed: Optional[str] = None


class CredentialLoaderConfig(BaseModel):
    """Where and in which order to look for OAuth client credentials"""
    model_config = ConfigDict(extra="forbid")

    # Key file source
    keys_file_path: str = Field(
        default=DEFAULT_KEYS_FILE_PATH,
        description="Path to the OAuth key file (console export or flat JSON)"
    )

    # Variable / secret names, shared by the environment and secrets service sources
    client_id_var: str = Field(default="GOOGLE_CLIENT_ID")
    client_secret_var: str = Field(default="GOOGLE_CLIENT_SECRET")
    redirect_uri_var: str = Field(default="GOOGLE_REDIRECT_URI")

    # Secrets service source
    secrets_token_var: str = Field(
        default="DOPPLER_TOKEN",
        description="Environment variable holding the secrets service access token"
    )
    secrets_project: Optional[str] = Field(default=None, description="Secrets service project")
    secrets_environment: Optional[str] = Field(
        default=None,
        description="Secrets service environment (config) within the project"
    )
    secrets_api_url: str = Field(default=DEFAULT_SECRETS_API_URL)
    secrets_timeout: float = Field(
        default=10.0,
        description="Timeout for secrets service requests in seconds"
    )

    # Resolution
    sources: List[CredentialSourceName] = Field(
        default_factory=lambda: list(DEFAULT_SOURCE_ORDER),
        description="Sources to try, highest priority first"
    )
    test_mode: bool = Field(
        default=False,
        description="Suppress the operational notice naming the winning source"
    )

    @field_validator("sources", mode="before")
    @classmethod
    def _split_sources(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("sources")
    @classmethod
    def _check_sources(cls, value: List[CredentialSourceName]) -> List[CredentialSourceName]:
        if not value:
            raise ValueError("at least one credential source must be configured")
        if len(set(value)) != len(value):
            raise ValueError("credential sources must not repeat")
        return value

    @property
    def variable_names(self) -> Dict[str, str]:
        """Logical field name -> variable/secret name"""
        return {
            "client_id": self.client_id_var,
            "client_secret": self.client_secret_var,
            "redirect_uri": self.redirect_uri_var,
        }

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CredentialLoaderConfig":
        """Build configuration from environment variables."""
        values = {}
        for field_name, key in (
            ("keys_file_path", "GOOGLE_OAUTH_CREDENTIALS"),
            ("secrets_project", "DOPPLER_PROJECT"),
            ("secrets_environment", "DOPPLER_CONFIG"),
            ("secrets_api_url", "DOPPLER_API_URL"),
            ("secrets_timeout", "DOPPLER_TIMEOUT"),
            ("sources", "OAUTH_CREDENTIALS_SOURCES"),
        ):
            value = get_credential(key, environ)
            if value is not None:
                values[field_name] = value

        test_mode = get_credential("OAUTH_CREDENTIALS_TEST_MODE", environ) or "false"
        values["test_mode"] = test_mode.lower() == "true"

        return cls(**values)

    @classmethod
    def load_from_file(
        cls,
        file_path: str,
        environ: Optional[Mapping[str, str]] = None
    ) -> "CredentialLoaderConfig":
        """Load configuration from a JSON or YAML file."""
        config = ConfigurationLoader.load_from_file(file_path, environ)
        return cls(**(config or {}))


def load_config(environ: Optional[Mapping[str, str]] = None) -> CredentialLoaderConfig:
    """
    Load loader configuration.

    Uses the file named by OAUTH_CREDENTIALS_CONFIG_FILE when set, otherwise
    builds the configuration from environment variables.
    """
    environ = resolve_environ(environ)
    config_file = get_credential("OAUTH_CREDENTIALS_CONFIG_FILE", environ)
    if config_file:
        return CredentialLoaderConfig.load_from_file(config_file, environ)
    return CredentialLoaderConfig.from_env(environ)


EXAMPLE_CONFIG_YAML = """
keys_file_path: "~/.config/my-app/gcp-oauth.keys.json"
secrets_project: "my-app"
secrets_environment: "prd"
sources:
  - file
  - environment
  - secrets_service
"""
