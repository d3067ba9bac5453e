"""Download strategies for template repositories hosted on GitHub, Azure DevOps or plain Git."""

from __future__ import annotations

import base64
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Iterable, List, Optional
from urllib.parse import quote, urlparse

from ..errors import TemplateError
from ..http import HttpTransport
from ..logging import get_logger
from .archive import extract_zip

GitRunner = Callable[..., str]

_logger = get_logger("templates.fetch")


class TemplateFetcher(ABC):
    """Materialises one branch of a template repository into a local directory."""

    @abstractmethod
    def fetch(self, repo_url: str, branch: str, destination: Path, token: Optional[str]) -> None:
        """Populate `destination` with the repository contents."""


class GitHubFetcher(TemplateFetcher):
    def __init__(self, transport: HttpTransport) -> None:
        self.transport = transport

    def fetch(self, repo_url: str, branch: str, destination: Path, token: Optional[str]) -> None:
        repo_path = github_repo_path(repo_url)
        url = f"https://api.github.com/repos/{repo_path}/zipball/{quote(branch, safe='')}"
        headers = {"User-Agent": "API-Generator/1.0", "Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"token {token}"
        _logger.debug("Downloading from GitHub: %s", url)
        response = self.transport.get(url, headers=headers)
        if not response.ok:
            raise TemplateError(f"GitHub API error: {response.status}")
        extract_zip(response.body, destination)


class AzureDevOpsFetcher(TemplateFetcher):
    def __init__(self, transport: HttpTransport) -> None:
        self.transport = transport

    def fetch(self, repo_url: str, branch: str, destination: Path, token: Optional[str]) -> None:
        url = azure_devops_items_url(repo_url, branch)
        headers = {"Accept": "application/zip"}
        if token:
            encoded = base64.b64encode(f":{token}".encode("ascii")).decode("ascii")
            headers["Authorization"] = f"Basic {encoded}"
        _logger.debug("Downloading from Azure DevOps: %s", url)
        response = self.transport.get(url, headers=headers)
        if not response.ok:
            raise TemplateError(f"Azure DevOps API error: {response.status}")
        extract_zip(response.body, destination)


class GitFetcher(TemplateFetcher):
    """Shallow-clones any other Git remote with the `git` CLI."""

    def __init__(self, runner: GitRunner | None = None) -> None:
        self._runner = runner or default_git_runner

    def fetch(self, repo_url: str, branch: str, destination: Path, token: Optional[str]) -> None:
        clone_url = inject_token(repo_url, token)
        args = ["git", "clone", "--branch", branch, "--depth", "1", clone_url, str(destination)]
        _logger.debug("Executing: %s", " ".join(mask_token(arg, token) for arg in args))
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._runner(args, cwd=destination.parent, env=None, capture_output=True)
        except subprocess.CalledProcessError as exc:
            detail = mask_token((exc.stderr or exc.output or "").strip(), token)
            raise TemplateError(f"Git clone failed: {detail or exc.returncode}") from None
        except OSError as exc:
            raise TemplateError(f"Git clone failed: {exc}", cause=exc) from exc

        git_dir = destination / ".git"
        if git_dir.exists():
            shutil.rmtree(git_dir)


def select_fetcher(
    repo_url: str,
    transport: HttpTransport,
    runner: GitRunner | None = None,
) -> TemplateFetcher:
    host = (urlparse(repo_url).hostname or "").lower()
    if host == "github.com" or host.endswith(".github.com"):
        return GitHubFetcher(transport)
    if host == "dev.azure.com" or host.endswith("visualstudio.com"):
        return AzureDevOpsFetcher(transport)
    return GitFetcher(runner)


def github_repo_path(repo_url: str) -> str:
    """Return ``owner/repo`` for a GitHub repository URL."""
    path = urlparse(repo_url).path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    parts = [part for part in path.split("/") if part]
    if len(parts) < 2:
        raise TemplateError(f"Invalid GitHub repository URL: {repo_url}")
    return f"{parts[0]}/{parts[1]}"


def azure_devops_items_url(repo_url: str, branch: str) -> str:
    """Build the Items API URL that returns the whole branch as a zip."""
    parsed = urlparse(repo_url)
    host = (parsed.hostname or "").lower()
    segments: List[str] = [part for part in parsed.path.split("/") if part]
    if "_git" not in segments:
        raise TemplateError("Invalid Azure DevOps repository URL format")
    git_index = segments.index("_git")
    if git_index + 1 >= len(segments):
        raise TemplateError("Invalid Azure DevOps repository URL format")
    repository = segments[git_index + 1]
    prefix = segments[:git_index]

    if host == "dev.azure.com":
        if len(prefix) < 2:
            raise TemplateError("Invalid Azure DevOps repository URL format")
        organization, project = prefix[0], prefix[1]
    else:
        if not prefix:
            raise TemplateError("Invalid Azure DevOps repository URL format")
        organization, project = host.split(".")[0], prefix[0]

    return (
        f"https://dev.azure.com/{organization}/{project}/_apis/git/repositories/{repository}/items"
        f"?path=/&versionDescriptor.version={quote(branch, safe='')}"
        "&versionDescriptor.versionType=branch&$format=zip&api-version=6.0&recursionLevel=full"
    )


def inject_token(repo_url: str, token: Optional[str]) -> str:
    """Place `token` in the userinfo part of an http(s) URL."""
    if not token:
        return repo_url
    parsed = urlparse(repo_url)
    if parsed.scheme not in {"http", "https"} or not parsed.hostname:
        return repo_url
    netloc = parsed.hostname if parsed.port is None else f"{parsed.hostname}:{parsed.port}"
    return parsed._replace(netloc=f"{quote(token, safe='')}@{netloc}").geturl()


def mask_token(text: str, token: Optional[str]) -> str:
    if not token:
        return text
    return text.replace(quote(token, safe=""), "[TOKEN]").replace(token, "[TOKEN]")


def default_git_runner(
    args: Iterable[str],
    *,
    cwd: Path,
    env: dict[str, str] | None = None,
    capture_output: bool = False,
) -> str:
    completed = subprocess.run(
        list(args),
        cwd=str(cwd),
        env=env,
        check=True,
        text=True,
        capture_output=capture_output,
    )
    if capture_output:
        return completed.stdout
    return ""


__all__ = [
    "AzureDevOpsFetcher",
    "GitFetcher",
    "GitHubFetcher",
    "GitRunner",
    "TemplateFetcher",
    "azure_devops_items_url",
    "default_git_runner",
    "github_repo_path",
    "inject_token",
    "mask_token",
    "select_fetcher",
]
