"""Generates the API project tree from discovered entities and a template."""

from __future__ import annotations

import json
import shutil
from datetime import UTC, datetime
from importlib import metadata
from pathlib import Path
from typing import Callable, Dict, List, Sequence
from urllib.parse import urlparse

from .config import Configuration
from .emitters import Emitter, create_emitter
from .errors import CodeGenerationError
from .logging import get_logger, log_file_generation, log_phase, timed_operation
from .models import DiscoveredEntity, GeneratedFile, GeneratedProject
from .tags import TagProcessor, template_type
from .text import capitalize, is_text_file, replace_tokens, sanitize_identifier, sanitize_namespace

OUTPUT_DIR_NAME = "generated-api"
METADATA_FILE_NAME = "api-metadata.json"


class CodeGenerator:
    """Combines a template tree with per-entity model files."""

    def __init__(
        self,
        config: Configuration,
        tag_processor: TagProcessor,
        output_root: Path | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.tag_processor = tag_processor
        self.output_root = output_root
        self._clock = clock or (lambda: datetime.now(UTC))
        self._logger = get_logger("generator")

    def generate_project(
        self,
        entities: Sequence[DiscoveredEntity],
        template_path: Path,
        version: str,
    ) -> GeneratedProject:
        """Write the generated project and return its summary.

        Output already written when a step fails is left in place.
        """
        with log_phase(self._logger, "Code Generation"):
            try:
                with timed_operation(self._logger, "Code Generation"):
                    return self._generate(list(entities), Path(template_path), version)
            except CodeGenerationError:
                raise
            except Exception as exc:
                self._logger.error("Code generation failed: %s", exc)
                raise CodeGenerationError(f"Code generation failed: {exc}", cause=exc) from exc

    def _generate(
        self, entities: List[DiscoveredEntity], template_path: Path, version: str
    ) -> GeneratedProject:
        language = self.config.language
        if language is None:
            raise CodeGenerationError("No language selected for code generation")
        try:
            emitter = create_emitter(language)
        except KeyError as exc:
            raise CodeGenerationError(f"Unsupported language: {language.value}", cause=exc) from exc

        output_path = (self.output_root or Path.cwd()) / OUTPUT_DIR_NAME
        output_path.mkdir(parents=True, exist_ok=True)

        project = GeneratedProject(
            output_path=output_path,
            language=language.value,
            cloud=self.config.cloud,
            version=version,
            template_path=template_path,
            generated_at=self._clock(),
            entities=entities,
        )
        project.token_replacements = self.create_token_replacements(
            entities, version, template_path, project.generated_at
        )

        self._process_template_files(project, template_path)
        self._generate_entity_code(project, emitter)
        self._write_metadata(project)

        self._logger.info(
            "Generated %d files in %s", len(project.generated_files), project.output_path
        )
        return project

    def create_token_replacements(
        self,
        entities: Sequence[DiscoveredEntity],
        version: str,
        template_path: Path,
        now: datetime | None = None,
    ) -> Dict[str, str]:
        now = now or self._clock()
        cloud = self.config.cloud
        template_name = template_type(template_path)
        tokens = {
            "project-name": sanitize_identifier(f"API-{cloud}-{template_name}"),
            "namespace": sanitize_namespace(f"Generated.API.{capitalize(cloud)}"),
            "version": version,
            "language": self.config.language.value if self.config.language else "",
            "cloud": cloud,
            "template-name": template_name,
            "repo-url": self.config.repo_url,
            "branch": self.config.branch,
            "repo-name": _repo_name(self.config.repo_url),
            "entity-count": str(len(entities)),
            "entity-names": ", ".join(entity.name for entity in entities),
            "primary-entity": entities[0].name if entities else "Entity",
            "generated-date": now.strftime("%Y-%m-%d"),
            "generated-datetime": now.strftime("%Y-%m-%d %H:%M:%S UTC"),
            "generator-version": generator_version(),
            "track-attribute": self.config.track_attribute,
            "azure-subscription": self.config.azure_subscription,
            "azure-resource-group": self.config.azure_resource_group,
            "azure-region": self.config.azure_region,
            "aws-region": self.config.aws_region,
            "aws-account-id": self.config.aws_account_id,
            "gcp-project-id": self.config.gcp_project_id,
            "gcp-region": self.config.gcp_region,
            "oci-compartment-id": self.config.oci_compartment_id,
            "oci-region": self.config.oci_region,
        }
        tag = self.tag_processor.process_tag_template(version, template_path)
        tokens["deployment-tag"] = tag
        tokens["tag-safe"] = sanitize_identifier(tag)
        return tokens

    def _process_template_files(self, project: GeneratedProject, template_path: Path) -> None:
        self._logger.debug("Processing template files from %s", template_path)
        for source in sorted(path for path in template_path.rglob("*") if path.is_file()):
            relative = source.relative_to(template_path).as_posix()
            target = project.output_path / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            if is_text_file(source):
                content = source.read_text(encoding="utf-8")
                target.write_text(replace_tokens(content, project.token_replacements), encoding="utf-8")
            else:
                shutil.copyfile(source, target)
            self._record(project, relative, target, "template")

    def _generate_entity_code(self, project: GeneratedProject, emitter: Emitter) -> None:
        self._logger.debug("Generating entity code for %d entities", len(project.entities))
        for entity in project.entities:
            tokens = dict(project.token_replacements)
            tokens.update(
                {
                    "entity-name": entity.name,
                    "entity-full-name": entity.full_name,
                    "entity-namespace": entity.namespace or "",
                    "entity-properties": emitter.generate_properties(entity.properties),
                    "entity-properties-count": str(len(entity.properties)),
                    "entity-source-file": entity.source_location,
                }
            )
            for emitted in emitter.generate_entity_files(entity, tokens):
                target = project.output_path / emitted.relative_path
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(emitted.content, encoding="utf-8")
                self._record(project, emitted.relative_path, target, emitted.type, entity.name)

    def _write_metadata(self, project: GeneratedProject) -> None:
        target = project.output_path / METADATA_FILE_NAME
        text = json.dumps(self.build_metadata(project), indent=2)
        target.write_text(text, encoding="utf-8")
        self._record(project, METADATA_FILE_NAME, target, "metadata")

    def build_metadata(self, project: GeneratedProject) -> Dict[str, object]:
        return {
            "language": project.language,
            "cloud": project.cloud,
            "version": project.version,
            "templatePath": str(project.template_path),
            "generatedAt": project.generated_at.isoformat().replace("+00:00", "Z"),
            "entityCount": len(project.entities),
            "entities": [entity.to_summary() for entity in project.entities],
            "generatedFileCount": len(project.generated_files),
            "generatedFiles": [
                {
                    "relativePath": item.relative_path,
                    "type": item.type,
                    "entity": item.entity,
                    "sizeBytes": item.size_bytes,
                }
                for item in project.generated_files
            ],
            "totalSizeBytes": project.total_size_bytes,
            "configuration": {
                "trackAttribute": self.config.track_attribute,
                "repoUrl": self.config.repo_url,
                "branch": self.config.branch,
                "mode": self.config.mode,
            },
        }

    def _record(
        self,
        project: GeneratedProject,
        relative_path: str,
        full_path: Path,
        file_type: str,
        entity: str | None = None,
    ) -> None:
        size = full_path.stat().st_size
        log_file_generation(self._logger, full_path, size)
        project.generated_files.append(
            GeneratedFile(
                relative_path=relative_path,
                full_path=full_path,
                type=file_type,
                size_bytes=size,
                entity=entity,
            )
        )


def generator_version() -> str:
    try:
        return metadata.version("apigen")
    except metadata.PackageNotFoundError:
        return "1.0.0"


def _repo_name(repo_url: str) -> str:
    if not repo_url or not repo_url.strip():
        return "unknown"
    name = urlparse(repo_url).path.rstrip("/").split("/")[-1]
    if name.lower().endswith(".git"):
        name = name[: -len(".git")]
    return sanitize_identifier(name) if name else "unknown"


__all__ = ["CodeGenerator", "METADATA_FILE_NAME", "OUTPUT_DIR_NAME", "generator_version"]
