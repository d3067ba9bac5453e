"""Secret resolution with per-run caching and CI token fallbacks."""

from __future__ import annotations

import os
from typing import Dict, Mapping, Optional, Tuple

from ..config import Configuration
from ..errors import KeyVaultError
from ..http import HttpTransport, TransportError
from ..logging import get_logger, log_structured, timed_operation
from .providers import SecretProvider, create_provider

# Checked in order when no explicit token or vault secret is configured.
CI_TOKEN_VARIABLES: Tuple[Tuple[str, str], ...] = (
    ("SYSTEM_ACCESSTOKEN", "Azure DevOps"),
    ("GITHUB_TOKEN", "GitHub Actions"),
    ("JENKINS_TOKEN", "Jenkins"),
    ("BUILD_TOKEN", "Jenkins"),
)

VAULT_TIMEOUT_SECONDS = 30.0


class KeyVaultManager:
    """Resolves secrets through the configured vault and caches them for the run."""

    def __init__(
        self,
        config: Configuration,
        *,
        transport: HttpTransport | None = None,
        provider: SecretProvider | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.config = config
        self._transport = transport or HttpTransport(timeout=VAULT_TIMEOUT_SECONDS)
        self._provider = provider
        self._environ = os.environ if environ is None else environ
        self._cache: Dict[str, str] = {}
        self._closed = False
        self._logger = get_logger("vault")

    def get_secret(self, name: str | None) -> Optional[str]:
        """Return the secret called `name`, or None when it cannot be resolved.

        No vault type configured and a blank name both short-circuit to None
        without touching the network. A secret the provider reports as
        missing is logged and returned as None; any other provider failure
        raises KeyVaultError.
        """
        if name is None or not name.strip():
            return None
        vault_type = self.config.vault_type.strip().lower()
        if not vault_type:
            self._logger.debug("No vault configured, skipping lookup of %s", name)
            return None

        cached = self._cache.get(name)
        if cached is not None:
            self._logger.debug("Retrieved secret from cache: %s", name)
            return cached

        provider = self._resolve_provider(vault_type)
        with timed_operation(self._logger, f"KeyVault:{vault_type}:{name}"):
            try:
                value = provider.fetch(name, self.config)
            except KeyVaultError:
                raise
            except (TransportError, ValueError, OSError) as exc:
                raise KeyVaultError(
                    f"Failed to retrieve secret '{name}' from {vault_type}: {exc}",
                    cause=exc,
                ) from exc

        if not value:
            self._logger.warning("Secret not found in %s vault: %s", vault_type, name)
            return None

        self._cache[name] = value
        log_structured(
            self._logger,
            "KeyVault",
            "SecretRetrieved",
            "SUCCESS",
            vault_type=vault_type,
            secret_name=name,
        )
        return value

    def get_pat_token(self) -> Optional[str]:
        """Return the repository PAT from config, the vault or the CI environment."""
        if self.config.pat_token:
            self._logger.debug("Using PAT token from configuration")
            return self.config.pat_token

        if self.config.pat_secret_name:
            secret = self.get_secret(self.config.pat_secret_name)
            if secret:
                self._logger.debug("Using PAT token from vault")
                return secret

        for variable, system in CI_TOKEN_VARIABLES:
            token = self._environ.get(variable)
            if token:
                self._logger.debug("Using %s token from %s", system, variable)
                return token

        self._logger.warning("No PAT token available from any source")
        return None

    def get_template_pat_token(self) -> Optional[str]:
        """Return the template repository token, falling back to the main PAT."""
        if self.config.template_pat:
            self._logger.debug("Using template PAT from configuration")
            return self.config.template_pat

        if self.config.template_pat_vault_key:
            secret = self.get_secret(self.config.template_pat_vault_key)
            if secret:
                self._logger.debug("Using template PAT from vault")
                return secret

        return self.get_pat_token()

    def clear_cache(self) -> None:
        self._cache.clear()
        self._logger.debug("Secret cache cleared")

    def close(self) -> None:
        if self._closed:
            return
        self._cache.clear()
        if self._provider is not None:
            self._provider.close()
        self._transport.close()
        self._closed = True

    def __enter__(self) -> "KeyVaultManager":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _resolve_provider(self, vault_type: str) -> SecretProvider:
        if self._provider is None:
            self._provider = create_provider(vault_type, self._transport)
        return self._provider


__all__ = ["CI_TOKEN_VARIABLES", "KeyVaultManager"]
