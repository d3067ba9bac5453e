"""Secret provider adapters for Azure Key Vault, AWS Secrets Manager and HashiCorp Vault."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.identity import ClientSecretCredential
from azure.keyvault.secrets import SecretClient
from boto3.session import Session
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..config import Configuration
from ..errors import KeyVaultError
from ..http import HttpResponse, HttpTransport
from ..logging import get_logger

SDK_TIMEOUT_SECONDS = 30
AWS_NOT_FOUND = "ResourceNotFoundException"

_logger = get_logger("vault.providers")


class SecretProvider(ABC):
    """Contract for backends that resolve a secret by name."""

    def __init__(self, transport: HttpTransport) -> None:
        self.transport = transport

    @abstractmethod
    def fetch(self, name: str, config: Configuration) -> Optional[str]:
        """Return the secret value, or None when the backend reports it missing."""

    def close(self) -> None:
        """Release any SDK client held by the provider."""


def azure_secret_client(config: Configuration) -> SecretClient:
    credential = ClientSecretCredential(
        tenant_id=config.azure_tenant_id,
        client_id=config.azure_client_id,
        client_secret=config.azure_client_secret,
    )
    return SecretClient(
        vault_url=config.vault_url,
        credential=credential,
        connection_timeout=SDK_TIMEOUT_SECONDS,
        read_timeout=SDK_TIMEOUT_SECONDS,
    )


def aws_secrets_client(config: Configuration) -> Any:
    session = Session(
        aws_access_key_id=config.aws_access_key_id or None,
        aws_secret_access_key=config.aws_secret_access_key or None,
        aws_session_token=config.aws_session_token or None,
        region_name=config.aws_region,
    )
    return session.client(
        "secretsmanager",
        config=BotoConfig(connect_timeout=SDK_TIMEOUT_SECONDS, read_timeout=SDK_TIMEOUT_SECONDS),
    )


class AzureKeyVaultProvider(SecretProvider):
    """Reads secrets with the Key Vault SDK using client-secret credentials."""

    def __init__(
        self,
        transport: HttpTransport,
        *,
        client_factory: Callable[[Configuration], Any] | None = None,
    ) -> None:
        super().__init__(transport)
        self._client_factory = client_factory or azure_secret_client
        self._client: Any = None

    def fetch(self, name: str, config: Configuration) -> Optional[str]:
        _logger.debug("Retrieving secret from Azure Key Vault: %s", name)
        if self._client is None:
            self._client = self._client_factory(config)
        try:
            secret = self._client.get_secret(name)
        except ResourceNotFoundError:
            return None
        except AzureError as exc:
            raise KeyVaultError(f"Azure Key Vault error: {exc}", cause=exc) from exc
        value = getattr(secret, "value", None)
        return value if isinstance(value, str) else None

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


class AwsSecretsManagerProvider(SecretProvider):
    """Calls GetSecretValue through a boto3 Secrets Manager client."""

    def __init__(
        self,
        transport: HttpTransport,
        *,
        client_factory: Callable[[Configuration], Any] | None = None,
    ) -> None:
        super().__init__(transport)
        self._client_factory = client_factory or aws_secrets_client
        self._client: Any = None

    def fetch(self, name: str, config: Configuration) -> Optional[str]:
        _logger.debug("Retrieving secret from AWS Secrets Manager: %s", name)
        if not config.aws_region:
            raise KeyVaultError("AWS_REGION is required for AWS Secrets Manager")
        if self._client is None:
            self._client = self._client_factory(config)
        try:
            response = self._client.get_secret_value(SecretId=name)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code == AWS_NOT_FOUND:
                return None
            raise KeyVaultError(f"AWS Secrets Manager error: {code}", cause=exc) from exc
        except BotoCoreError as exc:
            raise KeyVaultError(f"AWS Secrets Manager error: {exc}", cause=exc) from exc
        value = response.get("SecretString")
        return value if isinstance(value, str) else None


class HashiCorpVaultProvider(SecretProvider):
    """Reads the `value` field of a KV v2 secret."""

    def fetch(self, name: str, config: Configuration) -> Optional[str]:
        _logger.debug("Retrieving secret from HashiCorp Vault: %s", name)
        url = f"{config.vault_url.rstrip('/')}/v1/secret/data/{quote(name, safe='/')}"
        response = self.transport.get(url, headers={"X-Vault-Token": config.vault_token})
        if response.status == 404:
            return None
        if not response.ok:
            raise KeyVaultError(f"HashiCorp Vault error: {response.status} - {response.text()}")
        payload = _json_object(response, "HashiCorp Vault")
        outer = payload.get("data")
        inner = outer.get("data") if isinstance(outer, dict) else None
        value = inner.get("value") if isinstance(inner, dict) else None
        return value if isinstance(value, str) else None


ProviderFactory = Callable[[HttpTransport], SecretProvider]

_PROVIDER_FACTORIES: Dict[str, ProviderFactory] = {
    "azure": AzureKeyVaultProvider,
    "aws": AwsSecretsManagerProvider,
    "hashicorp": HashiCorpVaultProvider,
}


def register_provider(vault_type: str, factory: ProviderFactory) -> None:
    """Register (or replace) the provider used for `vault_type`."""
    _PROVIDER_FACTORIES[vault_type.strip().lower()] = factory


def create_provider(vault_type: str, transport: HttpTransport) -> SecretProvider:
    key = vault_type.strip().lower()
    factory = _PROVIDER_FACTORIES.get(key)
    if factory is None:
        raise KeyVaultError(f"Unsupported vault type: {vault_type}")
    return factory(transport)


def _json_object(response: HttpResponse, source: str) -> Dict[str, object]:
    try:
        payload = response.json()
    except ValueError as exc:
        raise KeyVaultError(f"{source} returned invalid JSON", cause=exc) from exc
    return payload if isinstance(payload, dict) else {}


__all__ = [
    "AwsSecretsManagerProvider",
    "AzureKeyVaultProvider",
    "HashiCorpVaultProvider",
    "SecretProvider",
    "aws_secrets_client",
    "azure_secret_client",
    "create_provider",
    "register_provider",
]
