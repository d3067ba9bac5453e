"""Exception taxonomy shared by the generator pipeline."""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit statuses surfaced by pipeline failures."""

    SUCCESS = 0
    INVALID_CONFIGURATION = 1
    LICENSE_UNAVAILABLE = 2
    AUTHENTICATION_FAILURE = 3
    REPOSITORY_ACCESS_FAILURE = 4
    ENTITY_DISCOVERY_FAILURE = 5
    TEMPLATE_FAILURE = 6
    CODE_GENERATION_FAILURE = 7
    DEPLOYMENT_FAILURE = 8
    KEY_VAULT_FAILURE = 9
    UNEXPECTED = 99


class ApiGenError(RuntimeError):
    """Base error carrying the exit code an outer process should report."""

    default_exit_code: ExitCode = ExitCode.UNEXPECTED

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        *,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = int(exit_code if exit_code is not None else self.default_exit_code)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class ConfigError(ApiGenError):
    """Raised when configuration cannot be loaded or is invalid."""

    default_exit_code = ExitCode.INVALID_CONFIGURATION


class KeyVaultError(ApiGenError):
    """Raised when a secret provider fails for reasons other than not-found."""

    default_exit_code = ExitCode.KEY_VAULT_FAILURE


class EntityDiscoveryError(ApiGenError):
    """Raised when the discovery phase cannot complete."""

    default_exit_code = ExitCode.ENTITY_DISCOVERY_FAILURE


class TemplateError(ApiGenError):
    """Raised when templates cannot be fetched, validated or copied."""

    default_exit_code = ExitCode.TEMPLATE_FAILURE


class CodeGenerationError(ApiGenError):
    """Raised when project generation fails."""

    default_exit_code = ExitCode.CODE_GENERATION_FAILURE


class TagProcessingError(ApiGenError):
    """Raised when the deployment tag template cannot be expanded."""

    default_exit_code = ExitCode.CODE_GENERATION_FAILURE


__all__ = [
    "ApiGenError",
    "CodeGenerationError",
    "ConfigError",
    "EntityDiscoveryError",
    "ExitCode",
    "KeyVaultError",
    "TagProcessingError",
    "TemplateError",
]
