"""
Secrets service client.

The credential resolver only needs one operation from a secrets service:
``list(project, environment)`` returning a mapping of secret name to a value
with a ``computed`` field. DopplerSecretsClient provides it over the Doppler
REST API; any other SDK can be plugged in through the source's client factory.
"""

import logging
from typing import Dict, Mapping, Optional, Protocol

import httpx

from .credential_config_schema import DEFAULT_SECRETS_API_URL, SecretValue

logger = logging.getLogger(__name__)

SECRETS_LIST_PATH = "/v3/configs/config/secrets"


class SecretsServiceClient(Protocol):
    async def list(
        self,
        project: Optional[str],
        environment: Optional[str]
    ) -> Mapping[str, SecretValue]:
        ...


class DopplerSecretsClient:
    """
    Minimal Doppler client: reads the secrets listing of one project config.

    A fresh httpx.AsyncClient is opened per call so no connection state is
    shared between resolutions.
    """

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_SECRETS_API_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _build_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
            "User-Agent": "OAuth-Credentials-Loader/1.0"
        }

    async def list(
        self,
        project: Optional[str],
        environment: Optional[str]
    ) -> Dict[str, SecretValue]:
        """
        Fetch all secrets of a project environment.

        Project and environment may be omitted when the token is already
        scoped to a single config (service tokens).

        Raises:
            httpx.HTTPError: If the request fails or returns an error status
            ValueError: If the response body is not a secrets listing
        """
        params = {}
        if project:
            params["project"] = project
        if environment:
            params["config"] = environment

        async with httpx.AsyncClient(
            base_url=self.api_url,
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport
        ) as client:
            logger.debug(f"Listing secrets for project={project!r} environment={environment!r}")
            response = await client.get(
                SECRETS_LIST_PATH,
                params=params,
                headers=self._build_headers()
            )
            response.raise_for_status()

        try:
            payload = response.json()
        except ValueError as e:
            raise ValueError(f"Invalid JSON response from secrets service: {e}") from e

        secrets = payload.get("secrets") if isinstance(payload, dict) else None
        if not isinstance(secrets, dict):
            raise ValueError("Secrets service response missing 'secrets' object")

        return {
            name: SecretValue(**value) if isinstance(value, dict) else SecretValue()
            for name, value in secrets.items()
        }
