"""End-to-end workflows wiring discovery, templates and generation together."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .config import Configuration
from .discovery import EntityDiscovery
from .errors import EntityDiscoveryError, TemplateError
from .generator import CodeGenerator
from .logging import get_logger, log_file_generation
from .models import DiscoveredEntity, GeneratedProject
from .tags import TagProcessor
from .templates import TemplateManager
from .vault import KeyVaultManager

ANALYSIS_FILE_NAME = "analysis-results.json"
TAG_PATTERNS_FILE_NAME = "tag-patterns.json"
PREFERRED_TEMPLATES = ("minimal", "standard", "default", "basic")


def derive_version(now: datetime | None = None) -> str:
    """Return a date-based API version ``{year-2020}.{month}.{day}``."""
    moment = now or datetime.now(UTC)
    return f"{moment.year - 2020}.{moment.month}.{moment.day}"


def select_template(available: Sequence[str], configured_path: str = "") -> str:
    """Pick the configured template when present, else a preferred name, else the first one."""
    if not available:
        raise TemplateError("No templates available to select from")
    configured = Path(configured_path.strip().rstrip("/")).name if configured_path.strip() else ""
    if configured and configured in available:
        return configured
    lowered = {name.lower(): name for name in available}
    for preferred in PREFERRED_TEMPLATES:
        if preferred in lowered:
            return lowered[preferred]
    return available[0]


@dataclass
class PipelineResult:
    """Outcome of one pipeline run."""

    version: str
    template_root: Path
    available_templates: List[str]
    entities: List[DiscoveredEntity] = field(default_factory=list)
    selected_template: Optional[str] = None
    template_path: Optional[Path] = None
    project: Optional[GeneratedProject] = None
    analysis_path: Optional[Path] = None


KeyVaultFactory = Callable[[Configuration], KeyVaultManager]
TemplateManagerFactory = Callable[[Configuration, KeyVaultManager], TemplateManager]


class Pipeline:
    """Runs the generator workflow for one configuration.

    The key vault and template managers are created per run and closed when
    the run ends, whether it succeeds or fails.
    """

    def __init__(
        self,
        config: Configuration,
        *,
        working_dir: Path | None = None,
        key_vault_factory: KeyVaultFactory | None = None,
        template_manager_factory: TemplateManagerFactory | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.working_dir = working_dir or Path.cwd()
        self._key_vault_factory = key_vault_factory or KeyVaultManager
        self._template_manager_factory = template_manager_factory or TemplateManager
        self._clock = clock or (lambda: datetime.now(UTC))
        self._logger = get_logger("pipeline")

    def run(self) -> PipelineResult:
        """Fetch templates, discover entities and generate the project.

        With ``NO_OP`` set this is :meth:`run_analysis` and nothing is generated.
        """
        if self.config.no_op:
            self._logger.info("NO_OP set, running analysis only")
            return self.run_analysis()
        self._logger.info("Starting API generation: %s", self.config.to_masked_dict())
        with self._key_vault_factory(self.config) as key_vault:
            with self._template_manager_factory(self.config, key_vault) as templates:
                result = self._prepare(templates)

                selected = select_template(result.available_templates, self.config.template_path)
                self._logger.info("Selected template: %s", selected)
                result.selected_template = selected
                result.template_path = templates.get_template_path(result.template_root, selected)

                if self.config.skip_build:
                    self._logger.info("SKIP_BUILD set, code generation skipped")
                    return result

                tag_processor = TagProcessor(self.config, cwd=self.working_dir, clock=self._clock)
                generator = CodeGenerator(
                    self.config, tag_processor, output_root=self.working_dir, clock=self._clock
                )
                result.project = generator.generate_project(
                    result.entities, result.template_path, result.version
                )
                return result

    def run_analysis(self) -> PipelineResult:
        """Discover and summarise without generating; writes ``analysis-results.json``."""
        self._logger.info("Running analysis only (no generation)")
        with self._key_vault_factory(self.config) as key_vault:
            with self._template_manager_factory(self.config, key_vault) as templates:
                result = self._prepare(templates, require_entities=False)
                tag_processor = TagProcessor(self.config, cwd=self.working_dir, clock=self._clock)
                tag_processor.generate_tag_patterns(
                    result.version, result.template_root, self.working_dir / TAG_PATTERNS_FILE_NAME
                )

        payload = {
            "analysisMode": "NOOP",
            "generatedAt": self._clock().isoformat().replace("+00:00", "Z"),
            "version": result.version,
            "configuration": {
                "language": self.config.language.value if self.config.language else "",
                "cloud": self.config.cloud,
                "trackAttribute": self.config.track_attribute,
                "repoUrl": self.config.repo_url,
                "branch": self.config.branch,
            },
            "templates": {
                "availableCount": len(result.available_templates),
                "available": result.available_templates,
            },
            "entities": {
                "discoveredCount": len(result.entities),
                "discovered": [entity.to_summary() for entity in result.entities],
            },
        }
        target = self.working_dir / ANALYSIS_FILE_NAME
        text = json.dumps(payload, indent=2)
        target.write_text(text, encoding="utf-8")
        log_file_generation(self._logger, target, len(text.encode("utf-8")))
        result.analysis_path = target
        return result

    def _prepare(self, templates: TemplateManager, *, require_entities: bool = True) -> PipelineResult:
        template_root = templates.fetch_templates()
        available = templates.get_available_templates(template_root)
        if not available:
            raise TemplateError("No valid templates found in template repository")

        entities = EntityDiscovery(self.config, cwd=self.working_dir).discover_entities()
        if not entities and require_entities and not self.config.ignore_marker:
            raise EntityDiscoveryError(
                f"No entities found with tracking attribute: {self.config.track_attribute}"
            )
        if not entities:
            self._logger.warning("No entities discovered")

        version = derive_version(self._clock())
        self._logger.info("API version: %s", version)
        return PipelineResult(
            version=version,
            template_root=template_root,
            available_templates=available,
            entities=entities,
        )


__all__ = [
    "ANALYSIS_FILE_NAME",
    "TAG_PATTERNS_FILE_NAME",
    "Pipeline",
    "PipelineResult",
    "derive_version",
    "select_template",
]
