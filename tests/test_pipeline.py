from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import List

import pytest

from apigen.errors import EntityDiscoveryError, TemplateError
from apigen.generator import METADATA_FILE_NAME, OUTPUT_DIR_NAME
from apigen.pipeline import (
    ANALYSIS_FILE_NAME,
    TAG_PATTERNS_FILE_NAME,
    Pipeline,
    derive_version,
    select_template,
)
from apigen.templates import TemplateManager
from tests._fixtures.fake_git import FakeGitRunner, StubKeyVault

GIT_REPO = "https://git.example.com/acme/api-templates.git"
FIXED_NOW = datetime(2024, 5, 1, 9, 30, tzinfo=UTC)
TEMPLATE_FILES = {
    "standard/main.bicep": "param name string = '{project-name}'",
    "minimal/template.json": '{"name": "{project-name}", "version": "{version}"}',
}
CUSTOMER_SOURCE = {
    "src/customer.ts": """
    /** @Entity */
    export interface Customer {
        id: number;
        name?: string;
    }
    """
}


class Harness:
    """Builds a pipeline wired to fake git and key vault collaborators."""

    def __init__(self, tmp_path: Path, files: dict[str, str] | None = None) -> None:
        self.cache_dir = tmp_path / "cache"
        self.runner = FakeGitRunner(files or TEMPLATE_FILES)
        self.vaults: List[StubKeyVault] = []
        self.managers: List[TemplateManager] = []

    def key_vault_factory(self, config) -> StubKeyVault:
        vault = StubKeyVault()
        self.vaults.append(vault)
        return vault

    def template_manager_factory(self, config, key_vault) -> TemplateManager:
        manager = TemplateManager(config, key_vault, cache_dir=self.cache_dir, git_runner=self.runner)
        self.managers.append(manager)
        return manager

    def pipeline(self, config, working_dir: Path) -> Pipeline:
        return Pipeline(
            config,
            working_dir=working_dir,
            key_vault_factory=self.key_vault_factory,
            template_manager_factory=self.template_manager_factory,
            clock=lambda: FIXED_NOW,
        )


def test_derive_version_offsets_year() -> None:
    assert derive_version(datetime(2024, 5, 1, tzinfo=UTC)) == "4.5.1"
    assert derive_version(datetime(2031, 12, 24, tzinfo=UTC)) == "11.12.24"


@pytest.mark.parametrize(
    ("available", "configured", "expected"),
    [
        (["alpha", "standard", "minimal"], "", "minimal"),
        (["alpha", "Standard"], "", "Standard"),
        (["alpha", "beta"], "", "alpha"),
        (["alpha", "minimal"], "templates/alpha/", "alpha"),
        (["alpha", "minimal"], "templates/missing", "minimal"),
    ],
)
def test_select_template(available, configured, expected) -> None:
    assert select_template(available, configured) == expected


def test_select_template_requires_candidates() -> None:
    with pytest.raises(TemplateError):
        select_template([])


def test_run_generates_project_and_closes_collaborators(make_config, source_tree, tmp_path: Path) -> None:
    source_tree.write(CUSTOMER_SOURCE)
    harness = Harness(tmp_path)
    config = make_config(template_repo=GIT_REPO)

    result = harness.pipeline(config, source_tree.path()).run()

    assert result.version == "4.5.1"
    assert result.available_templates == ["minimal", "standard"]
    assert result.selected_template == "minimal"
    assert [entity.name for entity in result.entities] == ["Customer"]
    assert result.project is not None

    output = source_tree.path(OUTPUT_DIR_NAME)
    assert json.loads((output / "template.json").read_text(encoding="utf-8")) == {
        "name": "APIazureminimal",
        "version": "4.5.1",
    }
    assert (output / "models" / "Customer.ts").read_text(encoding="utf-8") == (
        "export interface Customer {\n    id: number;\n    name?: string;\n}\n"
    )
    assert (output / METADATA_FILE_NAME).is_file()
    assert harness.vaults[0].closed is True
    assert not harness.cache_dir.exists()


def test_skip_build_stops_after_template_selection(make_config, source_tree, tmp_path: Path) -> None:
    source_tree.write(CUSTOMER_SOURCE)
    harness = Harness(tmp_path)
    config = make_config(template_repo=GIT_REPO, skip_build=True)

    result = harness.pipeline(config, source_tree.path()).run()

    assert result.selected_template == "minimal"
    assert result.template_path is not None
    assert result.project is None
    assert not source_tree.path(OUTPUT_DIR_NAME).exists()


def test_run_without_entities_fails(make_config, source_tree, tmp_path: Path) -> None:
    source_tree.write({"src/plain.ts": "export interface Plain { id: number; }\n"})
    harness = Harness(tmp_path)

    with pytest.raises(EntityDiscoveryError, match="tracking attribute: Entity"):
        harness.pipeline(make_config(template_repo=GIT_REPO), source_tree.path()).run()

    assert harness.vaults[0].closed is True
    assert not harness.cache_dir.exists()


def test_run_without_templates_fails(make_config, source_tree, tmp_path: Path) -> None:
    source_tree.write(CUSTOMER_SOURCE)
    harness = Harness(tmp_path, files={"docs/README.md": "nothing"})
    config = make_config(template_repo=GIT_REPO, template_validate_structure=False)

    with pytest.raises(TemplateError, match="No valid templates"):
        harness.pipeline(config, source_tree.path()).run()


def test_run_analysis_writes_summary_and_tag_patterns(make_config, source_tree, tmp_path: Path) -> None:
    source_tree.write(CUSTOMER_SOURCE)
    harness = Harness(tmp_path)
    working_dir = source_tree.path()

    result = harness.pipeline(make_config(template_repo=GIT_REPO), working_dir).run_analysis()

    assert result.analysis_path == working_dir / ANALYSIS_FILE_NAME
    assert result.project is None
    assert not (working_dir / OUTPUT_DIR_NAME).exists()

    analysis = json.loads(result.analysis_path.read_text(encoding="utf-8"))
    assert analysis["analysisMode"] == "NOOP"
    assert analysis["version"] == "4.5.1"
    assert analysis["configuration"]["language"] == "typescript"
    assert analysis["templates"] == {"availableCount": 2, "available": ["minimal", "standard"]}
    assert analysis["entities"]["discoveredCount"] == 1
    assert analysis["entities"]["discovered"][0]["properties"] == [
        {"name": "id", "type": "number", "isNullable": False},
        {"name": "name", "type": "string", "isNullable": True},
    ]

    patterns = json.loads((working_dir / TAG_PATTERNS_FILE_NAME).read_text(encoding="utf-8"))
    assert patterns["metadata"]["version"] == "4.5.1"


def test_run_analysis_tolerates_missing_entities(make_config, source_tree, tmp_path: Path) -> None:
    source_tree.write({"src/plain.ts": "export interface Plain { id: number; }\n"})
    harness = Harness(tmp_path)

    result = harness.pipeline(make_config(template_repo=GIT_REPO), source_tree.path()).run_analysis()

    assert result.entities == []
    analysis = json.loads(result.analysis_path.read_text(encoding="utf-8"))
    assert analysis["entities"] == {"discoveredCount": 0, "discovered": []}


def test_no_op_run_only_writes_analysis(make_config, source_tree, tmp_path: Path) -> None:
    source_tree.write(CUSTOMER_SOURCE)
    harness = Harness(tmp_path)
    working_dir = source_tree.path()
    config = make_config(template_repo=GIT_REPO, no_op=True)

    result = harness.pipeline(config, working_dir).run()

    assert result.analysis_path == working_dir / ANALYSIS_FILE_NAME
    assert result.project is None
    assert result.selected_template is None
    assert not (working_dir / OUTPUT_DIR_NAME).exists()
    assert (working_dir / TAG_PATTERNS_FILE_NAME).is_file()
    assert harness.vaults[0].closed is True
