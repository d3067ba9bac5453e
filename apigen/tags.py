"""Deployment tag template expansion."""

from __future__ import annotations

import getpass
import json
import os
import re
import subprocess
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional
from urllib.parse import urlparse

from .config import Configuration
from .errors import TagProcessingError
from .logging import get_logger, log_file_generation
from .templates.fetchers import GitRunner, default_git_runner
from .text import find_tokens, replace_tokens

COMMIT_SHA_VARIABLES = ("GITHUB_SHA", "BUILD_SOURCEVERSION", "CI_COMMIT_SHA", "COMMIT_SHA")
BUILD_NUMBER_VARIABLES = (
    "BUILD_BUILDNUMBER",
    "BUILD_NUMBER",
    "GITHUB_RUN_NUMBER",
    "CI_PIPELINE_ID",
    "CIRCLE_BUILD_NUM",
    "TRAVIS_BUILD_NUMBER",
)
VARIANT_PATTERNS = (
    "{cloud}/{version}",
    "{repo}/v{version}",
    "api-{version}-{date}",
    "{template-path}-{version}",
    "{cloud}-{template-path}-v{version}",
    "{branch}-{version}",
    "release-{major}.{minor}.{patch}",
)
MAX_VARIANTS = 10

_VERSION = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?")
_TAG_UNSAFE = re.compile(r"[^a-zA-Z0-9\-_.]")


@dataclass(frozen=True)
class VersionComponents:
    major: str = "1"
    minor: str = "0"
    patch: str = "0"


class TagProcessor:
    """Expands ``config.tag_template`` into a deployment tag.

    Run-level values (branch, repository, commit, build number, user and
    timestamps) are captured once at construction; version and template
    values are supplied per call.
    """

    def __init__(
        self,
        config: Configuration,
        *,
        environ: Mapping[str, str] | None = None,
        cwd: Path | None = None,
        clock: Callable[[], datetime] | None = None,
        git_runner: GitRunner | None = None,
    ) -> None:
        self.config = config
        self._environ = os.environ if environ is None else environ
        self._cwd = Path.cwd() if cwd is None else cwd
        self._clock = clock or (lambda: datetime.now(UTC))
        self._git_runner = git_runner or default_git_runner
        self._logger = get_logger("tags")
        self._base_tokens = self._initial_tokens()

    def process_tag_template(self, version: str | None, template_path: Path | str | None = None) -> str:
        try:
            template = self.config.tag_template
            self._logger.debug("Processing tag template: %s", template)
            tag = replace_tokens(template, self.token_values(version, template_path))
            remaining = find_tokens(tag)
            if remaining:
                self._logger.warning("Unresolved tokens in tag template: %s", ", ".join(remaining))
            self._logger.info("Generated tag: %s", tag)
            return tag
        except (TypeError, ValueError) as exc:
            raise TagProcessingError(f"Tag processing failed: {exc}", cause=exc) from exc

    def token_values(self, version: str | None, template_path: Path | str | None) -> Dict[str, str]:
        values = dict(self._base_tokens)
        components = self.parse_version(version)
        values["version"] = version or "1.0.0"
        values["major"] = components.major
        values["minor"] = components.minor
        values["patch"] = components.patch
        values["template-path"] = template_type(template_path)
        return values

    def parse_version(self, version: str | None) -> VersionComponents:
        if not version or not version.strip():
            return VersionComponents()
        match = _VERSION.match(version.strip())
        if match is None:
            self._logger.warning("Invalid version format: %s, using default 1.0.0", version)
            return VersionComponents()
        return VersionComponents(
            major=match.group(1),
            minor=match.group(2) or "0",
            patch=match.group(3) or "0",
        )

    def generate_tag_variants(self, version: str | None, template_path: Path | str | None) -> List[str]:
        values = self.token_values(version, template_path)
        primary = self.process_tag_template(version, template_path)
        variants: List[str] = []
        for pattern in VARIANT_PATTERNS:
            variant = replace_tokens(pattern, values)
            if variant != primary and variant not in variants:
                variants.append(variant)
        return variants[:MAX_VARIANTS]

    def generate_tag_patterns(
        self,
        version: str | None,
        template_path: Path | str | None,
        output_path: Path | None = None,
    ) -> Path:
        """Write ``tag-patterns.json`` with the primary tag, variants and metadata."""
        target = output_path or self._cwd / "tag-patterns.json"
        values = self.token_values(version, template_path)
        payload = {
            "primary": self.process_tag_template(version, template_path),
            "variants": self.generate_tag_variants(version, template_path),
            "metadata": {
                "template": self.config.tag_template,
                "version": version,
                "templatePath": str(template_path) if template_path is not None else None,
                "cloud": self.config.cloud,
                "language": self.config.language.value if self.config.language else "",
                "generatedAt": self._clock().isoformat().replace("+00:00", "Z"),
                "tokensUsed": list(values.keys()),
            },
        }
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            text = json.dumps(payload, indent=2)
            target.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise TagProcessingError(f"Tag pattern generation failed: {exc}", cause=exc) from exc
        log_file_generation(self._logger, target, len(text.encode("utf-8")))
        self._logger.info(
            "Tag patterns generated: Primary=%s, Variants=%d",
            payload["primary"],
            len(payload["variants"]),
        )
        return target

    def _initial_tokens(self) -> Dict[str, str]:
        now = self._clock()
        commit = self._commit_sha()
        return {
            "branch": sanitize_for_tag(self.config.branch),
            "repo": repository_name(self.config.repo_url),
            "date": now.strftime("%Y-%m-%d"),
            "datetime": now.strftime("%Y-%m-%d-%H%M%S"),
            "cloud": self.config.cloud,
            "user": sanitize_for_tag(_current_user()),
            "commit-hash": commit[:7] if commit else "unknown",
            "commit-hash-full": commit or "unknown",
            "build-number": self._build_number(),
        }

    def _commit_sha(self) -> Optional[str]:
        """CI variables first, then ``git rev-parse HEAD``, then the ``.git`` files."""
        sha = next((self._environ[name] for name in COMMIT_SHA_VARIABLES if self._environ.get(name)), None)
        if sha:
            return sha
        try:
            output = self._git_runner(
                ["git", "rev-parse", "HEAD"], cwd=self._cwd, env=None, capture_output=True
            )
        except (subprocess.CalledProcessError, OSError) as exc:
            self._logger.debug("git rev-parse HEAD failed, reading .git directly: %s", exc)
        else:
            sha = (output or "").strip()
            if sha:
                return sha
        return _read_head_commit(self._cwd)

    def _build_number(self) -> str:
        for name in BUILD_NUMBER_VARIABLES:
            value = self._environ.get(name)
            if value:
                return value
        return "local"


def sanitize_for_tag(value: str | None) -> str:
    """Lower-case `value` and replace characters outside ``[a-z0-9-_.]`` with dashes."""
    if value is None or not value.strip():
        return "unknown"
    sanitized = _TAG_UNSAFE.sub("-", value).lower().strip("-_.")
    sanitized = re.sub(r"-+", "-", sanitized)
    return sanitized or "unknown"


def repository_name(repo_url: str | None) -> str:
    if not repo_url or not repo_url.strip():
        return "unknown"
    path = urlparse(repo_url).path.strip("/")
    name = path.split("/")[-1] if path else ""
    if name.lower().endswith(".git"):
        name = name[: -len(".git")]
    return sanitize_for_tag(name) if name else "unknown"


def template_type(template_path: Path | str | None) -> str:
    if template_path is None or not str(template_path).strip():
        return "default"
    name = Path(str(template_path).rstrip("/\\")).name
    return name or "default"


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "system"


def _read_head_commit(start: Path) -> Optional[str]:
    for directory in (start, *start.parents):
        git_dir = directory / ".git"
        if not git_dir.is_dir():
            continue
        head = git_dir / "HEAD"
        if not head.is_file():
            return None
        content = head.read_text(encoding="utf-8").strip()
        if content.startswith("ref: "):
            ref = content[len("ref: ") :]
            ref_file = git_dir / ref
            if ref_file.is_file():
                return ref_file.read_text(encoding="utf-8").strip()
            return _packed_ref(git_dir / "packed-refs", ref)
        return content if len(content) >= 7 else None
    return None


def _packed_ref(packed_refs: Path, ref: str) -> Optional[str]:
    if not packed_refs.is_file():
        return None
    for line in packed_refs.read_text(encoding="utf-8").splitlines():
        # "^<sha>" lines peel the preceding annotated tag.
        if not line or line.startswith(("#", "^")):
            continue
        sha, _, name = line.partition(" ")
        if name.strip() == ref:
            return sha
    return None


__all__ = [
    "TagProcessor",
    "VersionComponents",
    "repository_name",
    "sanitize_for_tag",
    "template_type",
]
