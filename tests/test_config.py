"""Tests for apigen.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from apigen.config import Configuration, load_config
from apigen.errors import ConfigError, ExitCode
from apigen.models import Language


def test_load_config_returns_defaults_for_empty_environment() -> None:
    config = load_config(env={})

    assert isinstance(config, Configuration)
    assert config.language is None
    assert config.cloud == ""
    assert config.template_branch == "main"
    assert config.template_cache_ttl == 300
    assert config.template_validate_structure is True
    assert config.tag_template == "{branch}/{repo}/api/{version}"
    assert config.ignore_marker is False


def test_load_config_reads_environment_variables() -> None:
    config = load_config(
        env={
            "LANGUAGE_GO": "true",
            "CLOUD_AWS": "1",
            "TRACK_ATTRIBUTE": "ApiEntity",
            "TEMPLATE_CACHE_TTL": "60",
            "TEMPLATE_VALIDATE_STRUCTURE": "no",
            "IGNORE_EXPORT_ATTRIBUTE": "YES",
            "VERBOSE": "false",
            "NO_OP": "True",
        }
    )

    assert config.language is Language.GO
    assert config.cloud == "aws"
    assert config.track_attribute == "ApiEntity"
    assert config.template_cache_ttl == 60
    assert config.template_validate_structure is False
    assert config.ignore_marker is True
    assert config.verbose is False
    assert config.no_op is True


def test_environment_overrides_yaml_file(tmp_path: Path) -> None:
    config_file = tmp_path / "apigen.yml"
    config_file.write_text(
        """
language_java: true
cloud_gcp: true
track_attribute: "FromFile"
branch: develop
template_cache_ttl: 120
unknown_key: ignored
""",
        encoding="utf-8",
    )

    config = load_config(env={"TRACK_ATTRIBUTE": "FromEnv"}, config_file=config_file)

    assert config.language is Language.JAVA
    assert config.cloud == "gcp"
    assert config.track_attribute == "FromEnv"
    assert config.branch == "develop"
    assert config.template_cache_ttl == 120


def test_config_file_can_be_named_by_environment(tmp_path: Path) -> None:
    config_file = tmp_path / "settings.yaml"
    config_file.write_text("repo_url: https://example.com/repo.git\n", encoding="utf-8")

    config = load_config(env={"APIGEN_CONFIG": str(config_file)})

    assert config.repo_url == "https://example.com/repo.git"


def test_missing_config_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(env={}, config_file=tmp_path / "absent.yml")


def test_non_mapping_config_file_raises(tmp_path: Path) -> None:
    config_file = tmp_path / "list.yml"
    config_file.write_text("- one\n- two\n", encoding="utf-8")

    with pytest.raises(ConfigError) as excinfo:
        load_config(env={}, config_file=config_file)

    assert excinfo.value.exit_code == ExitCode.INVALID_CONFIGURATION


def test_entity_path_list_splits_on_colons() -> None:
    config = Configuration(entity_paths="src/models: lib ::extra")

    assert config.entity_path_list() == ["src/models", "lib", "extra"]


def test_validate_accepts_complete_configuration(make_config) -> None:
    make_config().validate()


def test_validate_collects_every_problem() -> None:
    config = Configuration(language_csharp=True, language_java=True, vault_type="keychain")

    with pytest.raises(ConfigError) as excinfo:
        config.validate()

    message = str(excinfo.value)
    assert "Multiple languages specified" in message
    assert "No cloud provider specified" in message
    assert "TRACK_ATTRIBUTE is required" in message
    assert "TEMPLATE_REPO is required" in message
    assert "Invalid VAULT_TYPE: keychain" in message


def test_validate_requires_cloud_and_vault_fields(make_config) -> None:
    config = make_config(azure_region="", vault_type="hashicorp")

    with pytest.raises(ConfigError) as excinfo:
        config.validate()

    message = str(excinfo.value)
    assert "AZURE_REGION is required when CLOUD_AZURE is true" in message
    assert "VAULT_URL is required when VAULT_TYPE is specified" in message
    assert "VAULT_TOKEN is required for VAULT_TYPE=hashicorp" in message


def test_masked_dict_omits_secrets(make_config) -> None:
    config = make_config(pat_token="secret-pat", azure_client_secret="secret-client")

    summary = config.to_masked_dict()

    assert summary["language"] == "typescript"
    assert summary["cloud"] == "azure"
    assert "secret-pat" not in summary.values()
    assert "secret-client" not in summary.values()
