"""
Tests for the individual credential source readers.
"""

import httpx
import pytest

from oauth_credentials import (
    CredentialLoaderConfig,
    CredentialRecord,
    CredentialsNotFoundError,
    EnvironmentSource,
    InvalidFormatError,
    KeyFileParseError,
    KeyFileReadError,
    KeyFileSource,
    MissingConfigError,
    MissingTokenError,
    SecretsServiceSource,
    SourceUnavailableError,
    fetch_from_secrets_service,
    read_environment,
    read_key_file,
    resolve_credentials,
)

ENV_NAMES = {
    "client_id": "GOOGLE_CLIENT_ID",
    "client_secret": "GOOGLE_CLIENT_SECRET",
    "redirect_uri": "GOOGLE_REDIRECT_URI",
}


# Key file source

def test_installed_shape_is_copied_verbatim(write_key_file):
    path = write_key_file({
        "installed": {
            "client_id": "console-id.apps.googleusercontent.com",
            "client_secret": "console-secret",
            "redirect_uris": ["http://localhost", "urn:ietf:wg:oauth:2.0:oob"],
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        }
    })

    record = read_key_file(path)

    assert record.client_id == "console-id.apps.googleusercontent.com"
    assert record.client_secret == "console-secret"
    assert record.redirect_uris == ("http://localhost", "urn:ietf:wg:oauth:2.0:oob")


def test_installed_shape_without_redirect_uris_is_not_defaulted(write_key_file):
    path = write_key_file({"installed": {"client_id": "a", "client_secret": "b"}})

    record = read_key_file(path)

    assert record.redirect_uris == ()
    assert record.default_redirect_uri is None


def test_empty_installed_object_takes_precedence_over_flat_fields(write_key_file):
    path = write_key_file({"installed": {}, "client_id": "flat", "client_secret": "s"})

    record = read_key_file(path)

    assert record.client_id == ""
    assert record.client_secret == ""
    assert record.redirect_uris == ()


def test_empty_installed_object_yields_empty_record(write_key_file):
    path = write_key_file({"installed": {}})

    record = read_key_file(path)

    assert record == CredentialRecord()


def test_installed_null_falls_back_to_flat_shape(write_key_file):
    path = write_key_file({"installed": None, "client_id": "flat", "client_secret": "s"})

    assert read_key_file(path).client_id == "flat"


def test_installed_non_object_is_invalid_format(write_key_file):
    path = write_key_file({"installed": "yes"})

    with pytest.raises(InvalidFormatError):
        read_key_file(path)


def test_redirect_uris_cannot_be_mutated(write_key_file):
    path = write_key_file({"client_id": "flat-id", "client_secret": "flat-secret"})
    record = read_key_file(path)

    with pytest.raises(AttributeError):
        record.redirect_uris.append("http://evil/cb")


def test_installed_shape_missing_secret_yields_empty_field(write_key_file):
    path = write_key_file({"installed": {"client_id": "a", "redirect_uris": ["http://x"]}})

    record = read_key_file(path)

    assert record.client_id == "a"
    assert record.client_secret == ""


def test_flat_shape_defaults_redirect_uri(write_key_file):
    path = write_key_file({"client_id": "flat-id", "client_secret": "flat-secret"})

    record = read_key_file(path)

    assert record.client_id == "flat-id"
    assert record.client_secret == "flat-secret"
    assert record.redirect_uris == ("http://localhost:3000/oauth2callback",)


def test_flat_shape_keeps_explicit_redirect_uris(write_key_file):
    path = write_key_file({
        "client_id": "flat-id",
        "client_secret": "flat-secret",
        "redirect_uris": ["https://app.example.com/cb"],
    })

    assert read_key_file(path).redirect_uris == ("https://app.example.com/cb",)


@pytest.mark.parametrize("document", [
    {},
    {"client_id": "only-id"},
    {"web": {"client_id": "a", "client_secret": "b"}},
    ["client_id", "client_secret"],
])
def test_unrecognized_shape_names_both_accepted_shapes(write_key_file, document):
    path = write_key_file(document)

    with pytest.raises(InvalidFormatError) as exc_info:
        read_key_file(path)

    message = str(exc_info.value)
    assert '"installed"' in message
    assert "client_id/client_secret" in message
    assert exc_info.value.code == "InvalidFormat"


def test_wrongly_typed_values_are_invalid_format(write_key_file):
    path = write_key_file({"client_id": 12345, "client_secret": "s", "redirect_uris": "http://x"})

    with pytest.raises(InvalidFormatError) as exc_info:
        read_key_file(path)

    assert "client_id" in str(exc_info.value)
    assert "redirect_uris" in str(exc_info.value)


def test_missing_file_is_io_error(missing_key_file):
    with pytest.raises(KeyFileReadError) as exc_info:
        read_key_file(missing_key_file)

    assert exc_info.value.code == "IOError"
    assert "does-not-exist.json" in str(exc_info.value)


def test_malformed_json_is_parse_error(write_key_file):
    path = write_key_file('{"installed": {"client_id": ')

    with pytest.raises(KeyFileParseError) as exc_info:
        read_key_file(path)

    assert exc_info.value.code == "ParseError"


@pytest.mark.asyncio
async def test_key_file_source_reports_failure_result(missing_key_file):
    result = await KeyFileSource(missing_key_file).attempt()

    assert not result.ok
    assert result.source == "file"
    assert result.error_code == "IOError"
    assert "does-not-exist.json" in result.reason


# Environment source

def test_environment_reader_builds_single_redirect_uri(google_env):
    record = read_environment(google_env, ENV_NAMES)

    assert record.client_id == "id1"
    assert record.client_secret == "secret1"
    assert record.redirect_uris == ("http://x/cb",)


@pytest.mark.parametrize("missing_var", list(ENV_NAMES.values()))
def test_environment_reader_names_the_missing_variable(google_env, missing_var):
    del google_env[missing_var]

    with pytest.raises(MissingConfigError) as exc_info:
        read_environment(google_env, ENV_NAMES)

    assert missing_var in str(exc_info.value)
    assert exc_info.value.missing == [missing_var]


def test_environment_reader_treats_empty_as_missing():
    environ = {"GOOGLE_CLIENT_ID": "id1", "GOOGLE_CLIENT_SECRET": "", "GOOGLE_REDIRECT_URI": ""}

    with pytest.raises(MissingConfigError) as exc_info:
        read_environment(environ, ENV_NAMES)

    assert exc_info.value.missing == ["GOOGLE_CLIENT_SECRET", "GOOGLE_REDIRECT_URI"]


@pytest.mark.asyncio
async def test_environment_source_success_result(google_env):
    result = await EnvironmentSource(google_env, ENV_NAMES).attempt()

    assert result.ok
    assert result.source == "environment"
    assert result.record.client_id == "id1"


# Secrets service source

@pytest.mark.asyncio
async def test_secrets_service_requires_token(fake_secrets_client):
    client = fake_secrets_client({"GOOGLE_CLIENT_ID": "x"})

    with pytest.raises(MissingTokenError) as exc_info:
        await fetch_from_secrets_service({}, CredentialLoaderConfig(), lambda token, config: client)

    assert "DOPPLER_TOKEN" in str(exc_info.value)
    assert client.calls == []


@pytest.mark.asyncio
async def test_secrets_service_success(fake_secrets_client):
    client = fake_secrets_client({
        "GOOGLE_CLIENT_ID": "remote-id",
        "GOOGLE_CLIENT_SECRET": "remote-secret",
        "GOOGLE_REDIRECT_URI": "https://remote/cb",
        "UNRELATED": "value",
    })
    config = CredentialLoaderConfig(secrets_project="oauth-app", secrets_environment="prd")
    tokens = []

    def factory(token, cfg):
        tokens.append(token)
        return client

    record = await fetch_from_secrets_service({"DOPPLER_TOKEN": "dp.st.abc"}, config, factory)

    assert record.client_id == "remote-id"
    assert record.client_secret == "remote-secret"
    assert record.redirect_uris == ("https://remote/cb",)
    assert client.calls == [("oauth-app", "prd")]
    assert tokens == ["dp.st.abc"]


@pytest.mark.asyncio
async def test_secrets_service_names_missing_keys(fake_secrets_client):
    client = fake_secrets_client({"GOOGLE_CLIENT_ID": "remote-id", "GOOGLE_CLIENT_SECRET": None})

    with pytest.raises(MissingConfigError) as exc_info:
        await fetch_from_secrets_service(
            {"DOPPLER_TOKEN": "t"}, CredentialLoaderConfig(), lambda token, config: client
        )

    assert exc_info.value.missing == ["GOOGLE_CLIENT_SECRET", "GOOGLE_REDIRECT_URI"]


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    httpx.ConnectError("connection refused"),
    httpx.ReadTimeout("timed out"),
    RuntimeError("sdk exploded"),
])
async def test_secrets_service_failures_become_source_unavailable(fake_secrets_client, error):
    client = fake_secrets_client(error=error)

    with pytest.raises(SourceUnavailableError) as exc_info:
        await fetch_from_secrets_service(
            {"DOPPLER_TOKEN": "t"}, CredentialLoaderConfig(), lambda token, config: client
        )

    assert str(error) in str(exc_info.value)
    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
async def test_secrets_service_source_failure_result(unreachable_secrets_client):
    source = SecretsServiceSource(
        {"DOPPLER_TOKEN": "t"},
        CredentialLoaderConfig(),
        lambda token, config: unreachable_secrets_client
    )

    result = await source.attempt()

    assert not result.ok
    assert result.source == "secrets_service"
    assert result.error_code == "SourceUnavailable"
    assert "connection refused" in result.reason


class MalformedSecretsClient:
    def __init__(self, listing):
        self.listing = listing

    async def list(self, project, environment):
        return self.listing


@pytest.mark.asyncio
@pytest.mark.parametrize("listing", [None, ["GOOGLE_CLIENT_ID"], "GOOGLE_CLIENT_ID=x"])
async def test_secrets_service_non_mapping_listing_is_source_unavailable(listing):
    client = MalformedSecretsClient(listing)

    with pytest.raises(SourceUnavailableError) as exc_info:
        await fetch_from_secrets_service(
            {"DOPPLER_TOKEN": "t"}, CredentialLoaderConfig(), lambda token, config: client
        )

    assert type(listing).__name__ in str(exc_info.value)


@pytest.mark.asyncio
async def test_secrets_client_construction_failure_is_source_unavailable():
    with pytest.raises(SourceUnavailableError) as exc_info:
        await fetch_from_secrets_service({"DOPPLER_TOKEN": "t"}, CredentialLoaderConfig(), _failing_factory)

    assert "sdk init failed" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def _null_listing_factory(token, config):
    return MalformedSecretsClient(None)


def _failing_factory(token, config):
    raise RuntimeError("sdk init failed")


@pytest.mark.asyncio
@pytest.mark.parametrize("factory", [_null_listing_factory, _failing_factory])
async def test_resolver_records_broken_secrets_client_as_failure(loader_config, factory):
    with pytest.raises(CredentialsNotFoundError) as exc_info:
        await resolve_credentials(loader_config, {"DOPPLER_TOKEN": "t"}, factory)

    assert "secrets_service: [SourceUnavailable]" in str(exc_info.value)
