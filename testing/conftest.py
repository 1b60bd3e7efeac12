import json
from typing import Dict, Optional

import httpx
import pytest

from oauth_credentials import CredentialLoaderConfig, SecretValue


class FakeSecretsClient:
    """In-memory secrets service client; records every list() call."""

    def __init__(self, secrets: Optional[Dict[str, Optional[str]]] = None, error: Optional[Exception] = None):
        self.secrets = secrets or {}
        self.error = error
        self.calls = []

    async def list(self, project, environment):
        self.calls.append((project, environment))
        if self.error is not None:
            raise self.error
        return {name: SecretValue(raw=value, computed=value) for name, value in self.secrets.items()}


@pytest.fixture
def write_key_file(tmp_path):
    def _write(content, name="gcp-oauth.keys.json"):
        path = tmp_path / name
        if isinstance(content, str):
            path.write_text(content)
        else:
            path.write_text(json.dumps(content))
        return str(path)
    return _write


@pytest.fixture
def missing_key_file(tmp_path):
    return str(tmp_path / "does-not-exist.json")


@pytest.fixture
def google_env():
    return {
        "GOOGLE_CLIENT_ID": "id1",
        "GOOGLE_CLIENT_SECRET": "secret1",
        "GOOGLE_REDIRECT_URI": "http://x/cb",
    }


@pytest.fixture
def loader_config(missing_key_file):
    return CredentialLoaderConfig(keys_file_path=missing_key_file, test_mode=True)


@pytest.fixture
def fake_secrets_client():
    return FakeSecretsClient


@pytest.fixture
def unreachable_secrets_client():
    return FakeSecretsClient(error=httpx.ConnectError("connection refused"))
