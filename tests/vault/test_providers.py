"""Tests for the secret providers: SDK-backed clouds and the HTTP HashiCorp backend."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
from azure.core.exceptions import ClientAuthenticationError, ResourceNotFoundError
from botocore.exceptions import ClientError, EndpointConnectionError

from apigen.errors import KeyVaultError
from apigen.http import HttpTransport
from apigen.vault import (
    AwsSecretsManagerProvider,
    AzureKeyVaultProvider,
    HashiCorpVaultProvider,
    KeyVaultManager,
    SecretProvider,
    create_provider,
    register_provider,
)
from apigen.vault import providers
from apigen.vault.providers import _PROVIDER_FACTORIES


class StubSecretClient:
    """Answers get_secret from a dict; values may be exceptions to raise."""

    def __init__(self, secrets: Dict[str, Any]) -> None:
        self.secrets = secrets
        self.requested: List[str] = []
        self.closed = False

    def get_secret(self, name: str) -> SimpleNamespace:
        self.requested.append(name)
        outcome = self.secrets.get(name, ResourceNotFoundError(f"{name} not found"))
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(name=name, value=outcome)

    def close(self) -> None:
        self.closed = True


class StubSecretsManager:
    def __init__(self, responses: Dict[str, Any]) -> None:
        self.responses = responses
        self.calls: List[Dict[str, Any]] = []

    def get_secret_value(self, **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(kwargs)
        outcome = self.responses[kwargs["SecretId"]]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "GetSecretValue")


def _azure_config(make_config):
    return make_config(
        vault_type="azure",
        vault_url="https://orders-kv.vault.azure.net/",
        azure_client_id="client",
        azure_client_secret="client-secret",
        azure_tenant_id="tenant-1",
    )


def _aws_config(make_config):
    return make_config(
        vault_type="aws",
        aws_region="eu-west-1",
        aws_access_key_id="AKIDEXAMPLE",
        aws_secret_access_key="wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
        aws_session_token="session-token",
    )


def test_azure_provider_reads_secret_value_and_reuses_client(make_config) -> None:
    client = StubSecretClient({"repo-pat": "s3cret"})
    built: List[Any] = []

    def factory(config):
        built.append(config)
        return client

    provider = AzureKeyVaultProvider(HttpTransport(), client_factory=factory)
    config = _azure_config(make_config)

    assert provider.fetch("repo-pat", config) == "s3cret"
    assert provider.fetch("other", config) is None
    assert client.requested == ["repo-pat", "other"]
    assert len(built) == 1

    provider.close()
    assert client.closed is True


def test_azure_provider_wraps_sdk_failures(make_config) -> None:
    client = StubSecretClient({"repo-pat": ClientAuthenticationError("invalid_client")})
    provider = AzureKeyVaultProvider(HttpTransport(), client_factory=lambda config: client)

    with pytest.raises(KeyVaultError, match="Azure Key Vault error") as excinfo:
        provider.fetch("repo-pat", _azure_config(make_config))

    assert isinstance(excinfo.value.__cause__, ClientAuthenticationError)


def test_azure_client_uses_client_secret_credential(make_config, monkeypatch) -> None:
    captured: Dict[str, Any] = {}

    def fake_credential(**kwargs):
        captured["credential"] = kwargs
        return "credential"

    def fake_client(**kwargs):
        captured["client"] = kwargs
        return "client"

    monkeypatch.setattr(providers, "ClientSecretCredential", fake_credential)
    monkeypatch.setattr(providers, "SecretClient", fake_client)

    assert providers.azure_secret_client(_azure_config(make_config)) == "client"
    assert captured["credential"] == {
        "tenant_id": "tenant-1",
        "client_id": "client",
        "client_secret": "client-secret",
    }
    assert captured["client"]["vault_url"] == "https://orders-kv.vault.azure.net/"
    assert captured["client"]["credential"] == "credential"
    assert captured["client"]["read_timeout"] == 30


def test_aws_provider_returns_secret_string(make_config) -> None:
    client = StubSecretsManager({"repo-pat": {"Name": "repo-pat", "SecretString": "aws-secret"}})
    provider = AwsSecretsManagerProvider(HttpTransport(), client_factory=lambda config: client)

    assert provider.fetch("repo-pat", _aws_config(make_config)) == "aws-secret"
    assert client.calls == [{"SecretId": "repo-pat"}]


def test_aws_provider_maps_resource_not_found_to_none(make_config) -> None:
    client = StubSecretsManager({"missing": _client_error("ResourceNotFoundException")})
    provider = AwsSecretsManagerProvider(HttpTransport(), client_factory=lambda config: client)

    assert provider.fetch("missing", _aws_config(make_config)) is None


def test_aws_provider_raises_on_access_denied(make_config) -> None:
    client = StubSecretsManager({"repo-pat": _client_error("AccessDeniedException")})
    provider = AwsSecretsManagerProvider(HttpTransport(), client_factory=lambda config: client)

    with pytest.raises(KeyVaultError, match="AWS Secrets Manager error: AccessDeniedException"):
        provider.fetch("repo-pat", _aws_config(make_config))


def test_aws_provider_wraps_connection_errors(make_config) -> None:
    failure = EndpointConnectionError(endpoint_url="https://secretsmanager.eu-west-1.amazonaws.com")
    client = StubSecretsManager({"repo-pat": failure})
    provider = AwsSecretsManagerProvider(HttpTransport(), client_factory=lambda config: client)

    with pytest.raises(KeyVaultError) as excinfo:
        provider.fetch("repo-pat", _aws_config(make_config))

    assert excinfo.value.__cause__ is failure


def test_aws_provider_requires_region(make_config) -> None:
    provider = AwsSecretsManagerProvider(HttpTransport(), client_factory=lambda config: pytest.fail("built"))
    config = make_config(vault_type="aws", aws_region="")

    with pytest.raises(KeyVaultError, match="AWS_REGION is required"):
        provider.fetch("repo-pat", config)


def test_aws_client_session_carries_configured_credentials(make_config, monkeypatch) -> None:
    captured: Dict[str, Any] = {}

    class FakeSession:
        def __init__(self, **kwargs):
            captured["session"] = kwargs

        def client(self, service, config=None):
            captured["service"] = service
            captured["config"] = config
            return "secretsmanager-client"

    monkeypatch.setattr(providers, "Session", FakeSession)

    assert providers.aws_secrets_client(_aws_config(make_config)) == "secretsmanager-client"
    assert captured["session"] == {
        "aws_access_key_id": "AKIDEXAMPLE",
        "aws_secret_access_key": "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
        "aws_session_token": "session-token",
        "region_name": "eu-west-1",
    }
    assert captured["service"] == "secretsmanager"
    assert captured["config"].read_timeout == 30


def test_manager_close_releases_provider_client(make_config) -> None:
    client = StubSecretClient({"repo-pat": "s3cret"})
    provider = AzureKeyVaultProvider(HttpTransport(), client_factory=lambda config: client)

    with KeyVaultManager(_azure_config(make_config), environ={}, provider=provider) as manager:
        assert manager.get_secret("repo-pat") == "s3cret"

    assert client.closed is True


def test_hashicorp_provider_reads_kv_v2_value(make_config, fake_urlopen) -> None:
    fake_urlopen.add(
        "https://vault.internal:8200/v1/secret/data/ci/pat",
        body={"data": {"data": {"value": "hv-secret"}, "metadata": {}}},
    )
    config = make_config(vault_type="hashicorp", vault_url="https://vault.internal:8200", vault_token="hvs.1")

    value = HashiCorpVaultProvider(HttpTransport()).fetch("ci/pat", config)

    assert value == "hv-secret"
    assert fake_urlopen.requests[0].headers["x-vault-token"] == "hvs.1"


def test_hashicorp_provider_missing_field_returns_none(make_config, fake_urlopen) -> None:
    fake_urlopen.add("https://vault.internal/v1/secret/data/pat", body={"data": {"data": {}}})
    config = make_config(vault_type="hashicorp", vault_url="https://vault.internal", vault_token="t")

    assert HashiCorpVaultProvider(HttpTransport()).fetch("pat", config) is None


def test_manager_dispatches_by_vault_type(make_config, fake_urlopen) -> None:
    fake_urlopen.add("https://vault.internal/v1/secret/data/pat", body={"data": {"data": {"value": "v1"}}})
    config = make_config(vault_type="HashiCorp", vault_url="https://vault.internal", vault_token="t")

    with KeyVaultManager(config, environ={}) as manager:
        assert manager.get_secret("pat") == "v1"
        assert manager.get_secret("pat") == "v1"

    assert len(fake_urlopen.requests) == 1


def test_register_provider_adds_new_vault_type(make_config, monkeypatch) -> None:
    class StaticProvider(SecretProvider):
        def fetch(self, name, config):
            return f"static-{name}"

    monkeypatch.setitem(_PROVIDER_FACTORIES, "static", StaticProvider)
    register_provider("Static", StaticProvider)

    provider = create_provider("static", HttpTransport())

    assert isinstance(provider, StaticProvider)
    assert provider.fetch("a", make_config()) == "static-a"


def test_create_provider_rejects_unknown_type() -> None:
    with pytest.raises(KeyVaultError, match="Unsupported vault type"):
        create_provider("keychain", HttpTransport())
