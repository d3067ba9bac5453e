"""Template repository fetching, caching, validation and copying."""

from __future__ import annotations

import hashlib
import shutil
import tempfile
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional

from ..config import Configuration
from ..errors import TemplateError
from ..http import HttpTransport
from ..logging import (
    get_logger,
    log_file_generation,
    log_phase,
    log_template_validation,
    timed_operation,
)
from ..models import TemplateCacheEntry
from ..text import is_text_file, replace_tokens
from ..vault import KeyVaultManager
from .fetchers import GitRunner, select_fetcher

CACHE_DIR_NAME = "api-generator-templates"
DOWNLOAD_TIMEOUT_SECONDS = 60.0

# A directory is a template when it directly holds one of these.
TEMPLATE_MARKER_FILES = (
    "template.json",
    "main.bicep",
    "main.tf",
    "template.yaml",
    "template.yml",
    "cloudformation.yaml",
    "cloudformation.json",
    "function.json",
    "requirements.txt",
    "package.json",
    "pom.xml",
    "build.gradle",
    "go.mod",
)
TEMPLATE_MARKER_GLOBS = ("*.csproj",)


def is_valid_template_dir(path: Path) -> bool:
    """Return True when `path` directly contains a recognised template marker file."""
    if not path.is_dir():
        return False
    for name in TEMPLATE_MARKER_FILES:
        if (path / name).is_file():
            return True
    for pattern in TEMPLATE_MARKER_GLOBS:
        if any(candidate.is_file() for candidate in path.glob(pattern)):
            return True
    return False


class TemplateManager:
    """Obtains a validated local copy of the template repository.

    Fetched trees live under a private cache directory and are reused while
    younger than ``template_cache_ttl`` seconds. Closing the manager deletes
    the whole cache directory.
    """

    def __init__(
        self,
        config: Configuration,
        key_vault: KeyVaultManager,
        *,
        cache_dir: Path | None = None,
        transport: HttpTransport | None = None,
        git_runner: GitRunner | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.key_vault = key_vault
        self.cache_dir = cache_dir or Path(tempfile.gettempdir()) / CACHE_DIR_NAME
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._transport = transport or HttpTransport(timeout=DOWNLOAD_TIMEOUT_SECONDS)
        self._git_runner = git_runner
        self._clock = clock or (lambda: datetime.now(UTC))
        self._cache: Dict[str, TemplateCacheEntry] = {}
        self._closed = False
        self._logger = get_logger("templates")

    def fetch_templates(self) -> Path:
        """Return the local template root, fetching it when the cache entry is missing or stale."""
        with log_phase(self._logger, "Template Fetch"):
            try:
                with timed_operation(self._logger, "Template Fetch"):
                    return self._fetch_templates()
            except TemplateError:
                raise
            except Exception as exc:
                self._logger.error("Template fetch failed: %s", exc)
                raise TemplateError(f"Failed to fetch templates: {exc}", cause=exc) from exc

    def _fetch_templates(self) -> Path:
        key = self.cache_key()
        entry = self._cache.get(key)
        if entry is not None and not entry.is_expired(self.config.template_cache_ttl, self._clock()):
            self._logger.info("Using cached templates: %s", entry.local_path)
            if self.config.template_validate_structure:
                self.validate_structure(entry.local_path)
            return entry.local_path

        local_path = self._fetch_from_repository()
        if self.config.template_validate_structure:
            self.validate_structure(local_path)

        self._cache[key] = TemplateCacheEntry(
            local_path=local_path,
            fetched_at=self._clock(),
            repository_url=self.config.template_repo,
            branch=self.config.template_branch,
            sub_path=self.config.template_path,
        )
        return local_path

    def cache_key(self) -> str:
        raw = f"{self.config.template_repo}|{self.config.template_branch}|{self.config.template_path}"
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def get_available_templates(self, local_path: Path) -> List[str]:
        """Return the sorted names of valid template directories under the template root."""
        search_path = self._search_path(local_path)
        if not search_path.is_dir():
            self._logger.warning("Template path does not exist: %s", search_path)
            return []

        templates: List[str] = []
        for directory in sorted(item for item in search_path.iterdir() if item.is_dir()):
            if is_valid_template_dir(directory):
                templates.append(directory.name)
                self._logger.debug("Found valid template: %s", directory.name)
            else:
                self._logger.debug("Invalid template directory: %s", directory.name)

        self._logger.info("Found %d valid templates: %s", len(templates), ", ".join(templates))
        return templates

    def get_template_path(self, base_path: Path, template_name: str) -> Path:
        template_path = self._search_path(base_path) / template_name
        if not template_path.is_dir():
            raise TemplateError(f"Template not found: {template_name} at {template_path}")
        return template_path

    def copy_template(
        self,
        template_path: Path,
        destination: Path,
        tokens: Mapping[str, str] | None = None,
    ) -> List[Path]:
        """Copy a template tree, substituting tokens in text files. Returns the written files."""
        self._logger.info("Copying template from %s to %s", template_path, destination)
        try:
            written = copy_tree(template_path, destination, tokens or {})
        except (OSError, UnicodeDecodeError) as exc:
            raise TemplateError(f"Failed to copy template: {exc}", cause=exc) from exc
        for path in written:
            log_file_generation(self._logger, path, path.stat().st_size)
        self._logger.info("Template copied successfully to %s", destination)
        return written

    def validate_structure(self, local_path: Path) -> int:
        """Raise TemplateError unless at least one valid template exists; return the count."""
        search_path = self._search_path(local_path)
        self._logger.debug("Validating template structure: %s", search_path)
        if not search_path.is_dir():
            raise TemplateError(f"Template path does not exist: {search_path}")
        directories = sorted(item for item in search_path.iterdir() if item.is_dir())
        if not directories:
            raise TemplateError(f"No template directories found in: {search_path}")

        valid = 0
        for directory in directories:
            if is_valid_template_dir(directory):
                valid += 1
                log_template_validation(self._logger, directory.name, True)
            else:
                log_template_validation(
                    self._logger, directory.name, False, "Missing required template files"
                )
        if valid == 0:
            raise TemplateError("No valid templates found in repository")
        self._logger.info("Template structure validation passed: %d valid templates", valid)
        return valid

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._cache.clear()
        self._transport.close()
        if not self.cache_dir.exists():
            return
        try:
            shutil.rmtree(self.cache_dir)
            self._logger.debug("Removed template cache directory %s", self.cache_dir)
        except OSError as exc:
            self._logger.warning("Failed to clean up template cache %s: %s", self.cache_dir, exc)

    def __enter__(self) -> "TemplateManager":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _fetch_from_repository(self) -> Path:
        repo_url = self.config.template_repo
        if not repo_url:
            raise TemplateError("TEMPLATE_REPO is not configured")
        self._logger.info("Fetching templates from repository: %s", repo_url)
        token = self.key_vault.get_template_pat_token()
        local_path = self.cache_dir / f"templates-{uuid.uuid4().hex}"
        fetcher = select_fetcher(repo_url, self._transport, self._git_runner)
        fetcher.fetch(repo_url, self.config.template_branch, local_path, token)
        self._logger.info("Templates fetched to: %s", local_path)
        return local_path

    def _search_path(self, local_path: Path) -> Path:
        sub_path = self.config.template_path.strip().strip("/")
        return local_path / sub_path if sub_path else local_path


def copy_tree(source: Path, destination: Path, tokens: Mapping[str, str]) -> List[Path]:
    """Recursively copy `source` into `destination`; text files get token substitution."""
    destination.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for item in sorted(source.iterdir()):
        target = destination / item.name
        if item.is_dir():
            written.extend(copy_tree(item, target, tokens))
            continue
        if is_text_file(item):
            content = item.read_text(encoding="utf-8")
            target.write_text(replace_tokens(content, tokens), encoding="utf-8")
        else:
            shutil.copyfile(item, target)
        written.append(target)
    return written


__all__ = [
    "CACHE_DIR_NAME",
    "TEMPLATE_MARKER_FILES",
    "TemplateManager",
    "copy_tree",
    "is_valid_template_dir",
]
