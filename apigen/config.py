"""Configuration loading for apigen (environment variables and optional YAML)."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from .errors import ConfigError
from .models import Language

CONFIG_FILE_ENV = "APIGEN_CONFIG"

_LANGUAGE_FLAGS: Tuple[Tuple[str, Language], ...] = (
    ("language_csharp", Language.CSHARP),
    ("language_java", Language.JAVA),
    ("language_python", Language.PYTHON),
    ("language_javascript", Language.JAVASCRIPT),
    ("language_typescript", Language.TYPESCRIPT),
    ("language_go", Language.GO),
)

_CLOUD_FLAGS: Tuple[Tuple[str, str], ...] = (
    ("cloud_azure", "azure"),
    ("cloud_aws", "aws"),
    ("cloud_gcp", "gcp"),
    ("cloud_oracle", "oracle"),
)

_VAULT_TYPES = ("azure", "aws", "hashicorp")


@dataclass
class Configuration:
    """Read-only settings bag for one pipeline run."""

    # Language selection (exactly one)
    language_csharp: bool = False
    language_java: bool = False
    language_python: bool = False
    language_javascript: bool = False
    language_typescript: bool = False
    language_go: bool = False

    # Cloud selection (exactly one)
    cloud_azure: bool = False
    cloud_aws: bool = False
    cloud_gcp: bool = False
    cloud_oracle: bool = False

    track_attribute: str = ""
    repo_url: str = ""
    branch: str = ""

    pat_token: str = ""
    pat_secret_name: str = ""

    vault_type: str = ""
    vault_url: str = ""
    azure_client_id: str = ""
    azure_client_secret: str = ""
    azure_tenant_id: str = ""
    aws_region: str = ""
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_session_token: str = ""
    vault_token: str = ""

    template_repo: str = ""
    template_branch: str = "main"
    template_path: str = ""
    template_pat: str = ""
    template_pat_vault_key: str = ""
    template_cache_ttl: int = 300
    template_validate_structure: bool = True

    tag_template: str = "{branch}/{repo}/api/{version}"

    azure_subscription: str = ""
    azure_resource_group: str = ""
    azure_region: str = ""
    aws_account_id: str = ""
    gcp_project_id: str = ""
    gcp_region: str = ""
    oci_compartment_id: str = ""
    oci_region: str = ""

    mode: str = "deploy"
    no_op: bool = False
    skip_build: bool = False

    entity_paths: str = ""
    build_output_path: str = ""
    ignore_marker: bool = False

    verbose: bool = False
    log_level: str = "INFO"

    @property
    def language(self) -> Optional[Language]:
        for flag, language in _LANGUAGE_FLAGS:
            if getattr(self, flag):
                return language
        return None

    @property
    def cloud(self) -> str:
        for flag, cloud in _CLOUD_FLAGS:
            if getattr(self, flag):
                return cloud
        return ""

    def entity_path_list(self) -> List[str]:
        """Split `entity_paths` on ':' (and the platform separator)."""
        raw = self.entity_paths.replace(os.pathsep, ":")
        return [part.strip() for part in raw.split(":") if part.strip()]

    def validate(self) -> None:
        """Raise ConfigError listing every problem found."""
        errors: List[str] = []

        language_count = sum(1 for flag, _ in _LANGUAGE_FLAGS if getattr(self, flag))
        if language_count == 0:
            errors.append(
                "No language specified. Set exactly one: "
                + ", ".join(flag.upper() for flag, _ in _LANGUAGE_FLAGS)
            )
        elif language_count > 1:
            errors.append("Multiple languages specified. Set exactly one language flag to true")

        cloud_count = sum(1 for flag, _ in _CLOUD_FLAGS if getattr(self, flag))
        if cloud_count == 0:
            errors.append(
                "No cloud provider specified. Set exactly one: "
                + ", ".join(flag.upper() for flag, _ in _CLOUD_FLAGS)
            )
        elif cloud_count > 1:
            errors.append("Multiple cloud providers specified. Set exactly one cloud provider flag to true")

        for name in ("track_attribute", "repo_url", "branch", "template_repo"):
            if not getattr(self, name).strip():
                errors.append(f"{name.upper()} is required")

        self._validate_cloud(errors)
        self._validate_vault(errors)

        if errors:
            raise ConfigError("Configuration validation failed:\n" + "\n".join(errors))

    def to_masked_dict(self) -> Dict[str, Any]:
        """Return a loggable summary with sensitive values omitted."""
        return {
            "language": self.language.value if self.language else "",
            "cloud": self.cloud,
            "track_attribute": self.track_attribute,
            "repo_url": self.repo_url,
            "branch": self.branch,
            "vault_type": self.vault_type,
            "template_repo": self.template_repo,
            "template_branch": self.template_branch,
            "template_path": self.template_path,
            "mode": self.mode,
            "verbose": self.verbose,
            "log_level": self.log_level,
        }

    def _validate_cloud(self, errors: List[str]) -> None:
        required: Dict[str, Tuple[str, ...]] = {
            "azure": ("azure_subscription", "azure_resource_group", "azure_region"),
            "aws": ("aws_region",),
            "gcp": ("gcp_project_id", "gcp_region"),
            "oracle": ("oci_compartment_id", "oci_region"),
        }
        for flag, cloud in _CLOUD_FLAGS:
            if not getattr(self, flag):
                continue
            for name in required[cloud]:
                if not getattr(self, name).strip():
                    errors.append(f"{name.upper()} is required when {flag.upper()} is true")

    def _validate_vault(self, errors: List[str]) -> None:
        vault_type = self.vault_type.strip().lower()
        if not vault_type:
            return
        if vault_type not in _VAULT_TYPES:
            errors.append(
                f"Invalid VAULT_TYPE: {self.vault_type}. Supported values: {', '.join(_VAULT_TYPES)}"
            )
            return
        if vault_type != "aws" and not self.vault_url.strip():
            errors.append("VAULT_URL is required when VAULT_TYPE is specified")
        required = {
            "azure": ("azure_client_id", "azure_client_secret", "azure_tenant_id"),
            "aws": ("aws_region", "aws_access_key_id", "aws_secret_access_key"),
            "hashicorp": ("vault_token",),
        }[vault_type]
        for name in required:
            if not getattr(self, name).strip():
                errors.append(f"{name.upper()} is required for VAULT_TYPE={vault_type}")


# Environment variable names that differ from the upper-cased field name.
_ENV_OVERRIDES = {
    "ignore_marker": "IGNORE_EXPORT_ATTRIBUTE",
}


def load_config(
    env: Mapping[str, str] | None = None,
    config_file: Path | None = None,
) -> Configuration:
    """Build a Configuration from defaults, an optional YAML file and the environment."""
    environ = os.environ if env is None else env
    config = Configuration()

    file_path = config_file
    if file_path is None and environ.get(CONFIG_FILE_ENV):
        file_path = Path(environ[CONFIG_FILE_ENV])
    if file_path is not None:
        _apply_values(config, _read_config_file(file_path.expanduser()))

    env_values: Dict[str, Any] = {}
    for item in fields(Configuration):
        key = _ENV_OVERRIDES.get(item.name, item.name.upper())
        if key in environ:
            env_values[item.name] = environ[key]
    _apply_values(config, env_values)
    return config


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}", cause=exc) from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _apply_values(config: Configuration, values: Mapping[str, Any]) -> None:
    known = {item.name: item for item in fields(Configuration)}
    for name, raw in values.items():
        item = known.get(str(name))
        if item is None:
            continue
        default = getattr(Configuration, item.name)
        if isinstance(default, bool):
            parsed = _as_bool(raw)
            if parsed is not None:
                setattr(config, item.name, parsed)
        elif isinstance(default, int):
            parsed_int = _as_int(raw)
            if parsed_int is not None:
                setattr(config, item.name, parsed_int)
        else:
            parsed_str = _as_str(raw)
            if parsed_str is not None:
                setattr(config, item.name, parsed_str)


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return None


__all__ = ["CONFIG_FILE_ENV", "Configuration", "load_config"]
