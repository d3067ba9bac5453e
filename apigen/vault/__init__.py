"""Key vault integration."""

from .manager import CI_TOKEN_VARIABLES, KeyVaultManager
from .providers import (
    AwsSecretsManagerProvider,
    AzureKeyVaultProvider,
    HashiCorpVaultProvider,
    SecretProvider,
    create_provider,
    register_provider,
)

__all__ = [
    "AwsSecretsManagerProvider",
    "AzureKeyVaultProvider",
    "CI_TOKEN_VARIABLES",
    "HashiCorpVaultProvider",
    "KeyVaultManager",
    "SecretProvider",
    "create_provider",
    "register_provider",
]
